"""Central Pytest Fixtures for the FamilyVerse widget synchronizer.

This module provides reusable store contents, images and clocks across all
test modules.

Fixtures included:
- Images: png_bytes, png_envelope
- Clocks: tz, noon
- Core: resolver
- Isolation: isolated_config (autouse), keeps real config files and env out
"""

import base64
import os
from datetime import datetime, timedelta, timezone
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

import familyverse.config as config_module
from familyverse.config import reset_config
from familyverse.core.resolver import ViewModelResolver
from familyverse.core.timefmt import to_epoch_ms

# Fixed offset so day boundaries do not depend on the machine running the tests
TEST_TZ = timezone(timedelta(hours=-5), "TEST")

NS = "flutter.flutter."


# =============================================================================
# Helper Functions
# =============================================================================


def make_png(width: int = 8, height: int = 6, color: str = "red") -> bytes:
    """Create an in-memory PNG.

    Args:
        width: Width in pixels.
        height: Height in pixels.
        color: Solid fill color.

    Returns:
        Encoded PNG bytes.
    """
    buffer = BytesIO()
    Image.new("RGB", (width, height), color=color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_jpeg(size: int = 128) -> bytes:
    """Create an in-memory JPEG of noise, large enough that truncation hits pixel data."""
    buffer = BytesIO()
    Image.effect_noise((size, size), 64).convert("RGB").save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()


def envelope(data: bytes, meta: str = "data:image/png;base64") -> str:
    """Wrap image bytes the way the companion app stores covers."""
    return f"{meta},{base64.b64encode(data).decode('ascii')}"


def ms(moment: datetime) -> int:
    """Epoch milliseconds for a datetime."""
    return to_epoch_ms(moment)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user config files and FAMILYVERSE_* variables out of every test."""
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_DIR", tmp_path / "home" / ".familyverse")
    for name in list(os.environ):
        if name.upper().startswith("FAMILYVERSE_"):
            monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def tz() -> timezone:
    """Fixed UTC-5 zone used as the widget's local zone."""
    return TEST_TZ


@pytest.fixture
def noon(tz: timezone) -> datetime:
    """Tuesday 2024-03-05 at noon in the test zone."""
    return datetime(2024, 3, 5, 12, 0, 0, tzinfo=tz)


@pytest.fixture
def resolver(tz: timezone) -> ViewModelResolver:
    """Resolver with default placeholders and the fixed test zone."""
    return ViewModelResolver(tz=tz)


@pytest.fixture
def png_bytes() -> bytes:
    """Small valid PNG."""
    return make_png()


@pytest.fixture
def png_envelope(png_bytes: bytes) -> str:
    """``data:image/png;base64,...`` envelope around ``png_bytes``."""
    return envelope(png_bytes)
