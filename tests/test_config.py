"""
Tests for lineage.markdown.config

Covers:
  - LineAgeOptions validation (ImproperlyConfigured)
  - Merging settings.LINE_AGE with per-render overrides
  - Context helpers (options cache, repository root, active check)
"""

from __future__ import annotations

import pytest
from django.core.exceptions import ImproperlyConfigured

from lineage.gradient import RGBColor
from lineage.markdown.config import (
    LineAgeOptions,
    get_line_age_options,
    get_pandoc_config,
    get_repository_root,
    line_age_active,
)
from lineage.markers import COMMENT_MARKERS, DELIMITER_MARKERS


class TestLineAgeOptions:
    """Validation on construction."""

    def test_defaults(self):
        options = LineAgeOptions()
        assert options.enabled
        assert options.max_age_days == 365
        assert options.fresh_color == RGBColor(34, 197, 94)
        assert options.old_color == RGBColor(156, 163, 175)
        assert options.codec is COMMENT_MARKERS
        assert options.blame_format == "porcelain"
        assert options.blame_timeout is None

    def test_colors_are_coerced(self):
        options = LineAgeOptions(fresh_color=[1, 2, 3], old_color={"r": 4, "g": 5, "b": 6})
        assert options.fresh_color == RGBColor(1, 2, 3)
        assert options.old_color == RGBColor(4, 5, 6)

    @pytest.mark.parametrize("max_age_days", [0, -1, float("inf"), float("nan"), "365", True])
    def test_invalid_max_age(self, max_age_days):
        with pytest.raises(ImproperlyConfigured, match="max_age_days"):
            LineAgeOptions(max_age_days=max_age_days)

    def test_invalid_color(self):
        with pytest.raises(ImproperlyConfigured, match="fresh_color"):
            LineAgeOptions(fresh_color=(0, 0, 300))

    def test_invalid_marker_syntax(self):
        with pytest.raises(ImproperlyConfigured, match="marker_syntax"):
            LineAgeOptions(marker_syntax="zero-width")

    def test_invalid_blame_format(self):
        with pytest.raises(ImproperlyConfigured, match="blame_format"):
            LineAgeOptions(blame_format="incremental")

    @pytest.mark.parametrize("blame_timeout", [0, -5, "30", True, float("inf")])
    def test_invalid_timeout(self, blame_timeout):
        with pytest.raises(ImproperlyConfigured, match="blame_timeout"):
            LineAgeOptions(blame_timeout=blame_timeout)

    def test_valid_timeout(self):
        assert LineAgeOptions(blame_timeout=2.5).blame_timeout == 2.5

    @pytest.mark.parametrize("enabled", ["false", 0, None])
    def test_enabled_must_be_bool(self, enabled):
        with pytest.raises(ImproperlyConfigured, match="enabled"):
            LineAgeOptions(enabled=enabled)


class TestFromSettings:
    """settings.LINE_AGE plus overrides."""

    def test_settings_are_read(self, settings):
        settings.LINE_AGE = {"max_age_days": 90, "marker_syntax": "delimiter"}
        options = LineAgeOptions.from_settings()
        assert options.max_age_days == 90
        assert options.codec is DELIMITER_MARKERS

    def test_overrides_win(self, settings):
        settings.LINE_AGE = {"max_age_days": 90}
        assert LineAgeOptions.from_settings({"max_age_days": 7}).max_age_days == 7

    def test_missing_setting_uses_defaults(self, settings):
        del settings.LINE_AGE
        assert LineAgeOptions.from_settings() == LineAgeOptions()

    def test_unknown_key(self, settings):
        settings.LINE_AGE = {"max_age": 90}
        with pytest.raises(ImproperlyConfigured, match="max_age"):
            LineAgeOptions.from_settings()


class TestContextHelpers:
    """Helpers shared by the line age stages."""

    def test_options_are_cached_in_context(self):
        context = {"line_age": {"max_age_days": 30}}
        options = get_line_age_options(context)
        assert options.max_age_days == 30
        assert get_line_age_options(context) is options

    def test_options_instance_is_used_as_is(self, delimiter_options):
        assert get_line_age_options({"line_age": delimiter_options}) is delimiter_options

    def test_repository_root_precedence(self, settings, tmp_path):
        settings.LINE_AGE_REPOSITORY_ROOT = "/srv/docs"
        assert get_repository_root({"repository_root": str(tmp_path)}) == str(tmp_path)
        assert get_repository_root({}) == "/srv/docs"

    def test_repository_root_falls_back_to_cwd(self, settings, monkeypatch, tmp_path):
        settings.LINE_AGE_REPOSITORY_ROOT = None
        monkeypatch.chdir(tmp_path)
        assert get_repository_root({}) == str(tmp_path)

    def test_active_needs_file_path(self):
        assert not line_age_active({})
        assert line_age_active({"file_path": "doc.md"})

    def test_disabled(self):
        assert not line_age_active({"file_path": "doc.md", "line_age": {"enabled": False}})

    def test_pandoc_config(self):
        config = get_pandoc_config()
        assert config["writer_format"] == "html5"
        assert "--wrap=none" in config["writer_args"]
