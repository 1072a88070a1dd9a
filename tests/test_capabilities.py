from __future__ import annotations

from types import SimpleNamespace
from unittest import mock

from unitask import RuntimeCapabilities, detect_capabilities


def test_detect_capabilities_shape() -> None:
    caps = detect_capabilities()
    assert isinstance(caps, RuntimeCapabilities)
    assert caps.cpu_count >= 1
    assert isinstance(caps.gil_enabled, bool)
    assert isinstance(caps.free_threading_build, bool)
    major, minor, micro = caps.python_version
    assert all(isinstance(part, int) for part in (major, minor, micro))
    assert caps.python_release.count(".") == 2


def test_suggested_io_workers_bounds() -> None:
    with mock.patch("unitask.capabilities.os.cpu_count", return_value=1):
        assert detect_capabilities().suggested_io_workers == 5
    with mock.patch("unitask.capabilities.os.cpu_count", return_value=64):
        assert detect_capabilities().suggested_io_workers == 32
    with mock.patch("unitask.capabilities.os.cpu_count", return_value=None):
        caps = detect_capabilities()
    assert caps.cpu_count == 1
    assert caps.suggested_io_workers >= 4


def test_is_gil_enabled_runtime_error() -> None:
    def raiser() -> bool:
        raise RuntimeError("no loop")

    with mock.patch(
        "unitask.capabilities.sys",
        SimpleNamespace(_is_gil_enabled=raiser),
    ):
        from unitask.capabilities import _is_gil_enabled

        assert _is_gil_enabled() is True


def test_is_gil_enabled_missing_helper() -> None:
    with mock.patch("unitask.capabilities.sys", SimpleNamespace()):
        from unitask.capabilities import _is_gil_enabled

        assert _is_gil_enabled() is True
