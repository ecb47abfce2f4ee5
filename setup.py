from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="post2social",
    version="0.1.0",
    author="OSInsight",
    author_email="hello@osinsight.io",
    description="Publish markdown articles to WeChat Official Accounts and X",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/OSInsight/post2social",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Text Processing :: Markup :: Markdown",
    ],
    python_requires=">=3.8",
    install_requires=[
        "requests>=2.28.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "Pillow>=10.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "post2social-wechat=post2social.core.cli:main",
            "post2social-browser=post2social.core.browser_cli:main",
            "post2social-cover=post2social.core.cover_cli:main",
        ],
    },
    include_package_data=True,
    package_data={
        "post2social": [
            "themes/*.css",
        ],
    },
)
