"""Tests for ResolverConfig validation and defaults."""

from __future__ import annotations

import pytest

from nestsolve.config import (
    DEFAULT_ARCHIVE_SUFFIXES,
    DEFAULT_DISCOVERY_TIMEOUT,
    DEFAULT_MANIFEST_NAMES,
    ResolverConfig,
)


class TestResolverConfig:
    """Tests for ResolverConfig."""

    def test_defaults(self) -> None:
        config = ResolverConfig()
        assert config.discovery_timeout == DEFAULT_DISCOVERY_TIMEOUT == 30.0
        assert config.solve_timeout is None
        assert config.manifest_names == DEFAULT_MANIFEST_NAMES
        assert config.archive_suffixes == DEFAULT_ARCHIVE_SUFFIXES
        assert not config.allow_unknown_version

    def test_worker_count_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("os.cpu_count", lambda: 8)
        assert ResolverConfig().worker_count == 7
        monkeypatch.setattr("os.cpu_count", lambda: 1)
        assert ResolverConfig().worker_count == 1
        monkeypatch.setattr("os.cpu_count", lambda: None)
        assert ResolverConfig().worker_count == 1

    def test_explicit_workers(self) -> None:
        assert ResolverConfig(max_workers=3).worker_count == 3

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"discovery_timeout": 0},
            {"solve_timeout": -1.0},
            {"max_workers": 0},
            {"manifest_names": ()},
        ],
    )
    def test_invalid(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            ResolverConfig(**kwargs)

    def test_frozen(self) -> None:
        config = ResolverConfig()
        with pytest.raises(AttributeError):
            config.discovery_timeout = 1.0  # type: ignore[misc]
