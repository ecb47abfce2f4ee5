"""
Shared fakes for the test suite
"""
import base64
import json
from pathlib import Path

import pytest
import requests

from post2social.core.config import Settings
from post2social.core.context import RunContext


PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8"
    "/w8AAgMBgN6M6vQAAAAASUVORK5CYII="
)

SOI = b"\xff\xd8"
EOI = b"\xff\xd9"
APP0 = b"\xff\xe0\x00\x10" + b"JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
DQT = b"\xff\xdb\x00\x04\x00\x00"


def segment(marker: int, payload: bytes) -> bytes:
    length = len(payload) + 2
    return bytes([0xFF, marker, length >> 8, length & 0xFF]) + payload


CLEAN_JPEG = SOI + APP0 + DQT + EOI
WATERMARKED_JPEG = SOI + segment(0xEB, b'AIGC{"Label":"1","ContentProducer":"x"}') + APP0 + DQT + EOI
# vendor segment without a known signature; only removed when forced
DUCKY_JPEG = SOI + segment(0xEC, b"Ducky\x00\x01\x00\x04\x00\x00\x00\x3c") + APP0 + DQT + EOI


class FakeResponse:
    def __init__(self, content=b"", status_code=200, headers=None, payload=None):
        self.content = content
        self.status_code = status_code
        self.headers = headers or {}
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    """Serves canned responses by URL; unknown URLs fail like a dead host"""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append(("GET", url, {"headers": headers, "timeout": timeout}))
        return self._lookup(url)

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, kwargs))
        return self._lookup(url)

    def _lookup(self, url):
        response = self.responses.get(url)
        if response is None:
            raise requests.ConnectionError(f"cannot reach {url}")
        if isinstance(response, list):
            return response.pop(0)
        return response

    def json_body(self, index):
        return json.loads(self.calls[index][2]["data"].decode("utf-8"))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        wechat_app_id="app-id",
        wechat_app_secret="app-secret",
        scratch_dir=tmp_path / "scratch",
    )


@pytest.fixture
def context(settings: Settings, tmp_path: Path) -> RunContext:
    return RunContext(settings, base_dir=tmp_path)
