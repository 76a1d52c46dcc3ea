"""Shared test fixtures for logokit."""

import base64
import io
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

from logokit.config import KitSettings
from logokit.references import InlineDataRef
from logokit.storage import LocalObjectStore


def _draw_logo(size, mode="RGB", background=(255, 255, 255)):
    img = Image.new(mode, size, background)
    draw = ImageDraw.Draw(img)
    w, h = size
    fill = (10, 10, 10) if mode == "RGB" else (10, 10, 10, 255)
    draw.rectangle([w // 4, h // 4, (3 * w) // 4, (3 * h) // 4], fill=fill)
    return img


def _encode(img, fmt="PNG"):
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_image():
    """Factory: make_image(size, mode="RGB", fmt="PNG") -> encoded bytes of a simple logo."""

    def factory(size=(300, 300), mode="RGB", fmt="PNG"):
        background = (0, 0, 0, 0) if mode == "RGBA" else (255, 255, 255)
        return _encode(_draw_logo(size, mode, background), fmt)

    return factory


@pytest.fixture
def logo_png(make_image) -> bytes:
    """300x300 opaque PNG: dark square on white."""
    return make_image((300, 300))


@pytest.fixture
def inline_ref(logo_png) -> InlineDataRef:
    return InlineDataRef(payload=base64.b64encode(logo_png).decode("ascii"), media_type="image/png")


@pytest.fixture
def local_root(tmp_path: Path, logo_png: bytes) -> Path:
    """Local object-store root holding uploads/logos/acme.png."""
    root = tmp_path / "public"
    target = root / "uploads" / "logos" / "acme.png"
    target.parent.mkdir(parents=True)
    target.write_bytes(logo_png)
    return root


@pytest.fixture
def local_store(local_root: Path) -> LocalObjectStore:
    return LocalObjectStore(local_root)


@pytest.fixture
def settings() -> KitSettings:
    return KitSettings(max_workers=4, trace_min_seconds=2.0)


@pytest.fixture
def scratch_root(tmp_path: Path, monkeypatch) -> Path:
    """Redirect temporary directories so tests can assert they are cleaned up."""
    root = tmp_path / "scratch"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 5, 1, 12, 30, 0, tzinfo=timezone.utc)
