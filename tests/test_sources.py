import importlib
from types import SimpleNamespace

import pytest
from screeninfo import ScreenInfoError

from gazelod.errors import LandmarkSourceUnavailable
from gazelod.sources import MediaPipeLandmarkSource, NullLandmarkSource
from gazelod.utils import screen


def test_null_source_reports_no_face():
    source = NullLandmarkSource()
    assert source.read() is None
    source.release()


def test_mediapipe_source_without_camera_stack(monkeypatch):
    real_import = importlib.import_module

    def fake_import(name, *args, **kwargs):
        if name == "mediapipe":
            raise ImportError("No module named 'mediapipe'")
        return real_import(name, *args, **kwargs)

    monkeypatch.setattr(importlib, "import_module", fake_import)
    with pytest.raises(LandmarkSourceUnavailable):
        MediaPipeLandmarkSource(0)


def test_primary_monitor_preferred(monkeypatch):
    monitors = [
        SimpleNamespace(width=1280, height=1024, is_primary=False),
        SimpleNamespace(width=2560, height=1440, is_primary=True),
    ]
    monkeypatch.setattr(screen, "get_monitors", lambda: monitors)
    assert screen.get_screen_size() == (2560, 1440)


def test_headless_fallback(monkeypatch):
    def no_display():
        raise ScreenInfoError("No enumerators available")

    monkeypatch.setattr(screen, "get_monitors", no_display)
    assert screen.get_screen_size(fallback=(800, 480)) == (800, 480)
    with pytest.raises(ScreenInfoError):
        screen.get_screen_size()


def test_empty_monitor_list(monkeypatch):
    monkeypatch.setattr(screen, "get_monitors", lambda: [])
    assert screen.get_screen_size(fallback=(640, 480)) == (640, 480)
    with pytest.raises(ScreenInfoError):
        screen.get_screen_size()
