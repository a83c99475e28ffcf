"""Tests for resolution options."""

import pytest

from py2wgsl.config import EXTENSIONS_ENV, NAMES_ENV, ResolutionOptions


class TestResolutionOptions:
    """Tests for option defaults and environment overrides."""

    def test_defaults(self):
        """Test the default options."""
        options = ResolutionOptions.from_env()

        assert options.names == "strict"
        assert options.enable_extensions == ()
        assert options.binding_group == 0

    def test_environment(self, monkeypatch):
        """Test that PY2WGSL_* variables set the defaults."""
        monkeypatch.setenv(NAMES_ENV, "random")
        monkeypatch.setenv(EXTENSIONS_ENV, "f16, clip_distances")

        options = ResolutionOptions.from_env()

        assert options.names == "random"
        assert options.enable_extensions == ("f16", "clip_distances")

    def test_overrides_win(self, monkeypatch):
        """Test that explicit arguments override the environment."""
        monkeypatch.setenv(NAMES_ENV, "random")

        options = ResolutionOptions.from_env(names="strict", enable_extensions=["f16"])

        assert options.names == "strict"
        assert options.enable_extensions == ("f16",)

    @pytest.mark.parametrize(
        "kwargs", [{"names": "pretty"}, {"enable_extensions": ("magic",)}]
    )
    def test_invalid_options(self, kwargs):
        """Test that unknown modes and extensions are rejected."""
        with pytest.raises(ValueError):
            ResolutionOptions(**kwargs)
