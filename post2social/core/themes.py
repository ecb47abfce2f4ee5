"""
Built-in article themes, stored as flat stylesheets
"""
from pathlib import Path
from typing import List

THEME_DIR = Path(__file__).resolve().parent.parent / "themes"
DEFAULT_THEME = "default"


def list_themes() -> List[str]:
    return sorted(path.stem for path in THEME_DIR.glob("*.css"))


def load_theme(name: str = DEFAULT_THEME) -> str:
    """Stylesheet text for a named theme"""
    path = THEME_DIR / f"{name}.css"
    if not path.is_file():
        raise ValueError(f"Unknown theme: {name} (available: {', '.join(list_themes())})")
    return path.read_text(encoding="utf-8")
