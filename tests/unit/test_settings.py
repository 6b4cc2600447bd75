"""Unit tests for persisted settings and logging setup."""

import json
import logging
import sys

import pytest

from mergemate.logging_config import setup_logging
from mergemate.models import RenderOptions
from mergemate.settings import Settings, default_settings_path, load_settings, save_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("MERGEMATE_SETTINGS", raising=False)
    monkeypatch.delenv("MERGEMATE_LOG_LEVEL", raising=False)


class TestSettings:
    """Test suite for load_settings / save_settings."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "nope.json") == Settings()

    def test_round_trip(self, tmp_path):
        path = tmp_path / "cfg" / "settings.json"
        settings = Settings(date_format="long", number_format="currency", default_value="Friend")

        save_settings(settings, path)

        assert load_settings(path) == settings
        assert list(path.parent.iterdir()) == [path]

    def test_corrupt_file_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_settings(path) == Settings()

    def test_unknown_keys_ignored_and_bad_values_normalised(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(
            json.dumps({"date_format": "yesterday", "number_format": "roman", "colour": "blue"}),
            encoding="utf-8",
        )

        settings = load_settings(path)

        assert settings.date_format == "MM/DD/YYYY"
        assert settings.number_format == "default"

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "env.json"
        monkeypatch.setenv("MERGEMATE_SETTINGS", str(path))
        monkeypatch.setenv("MERGEMATE_LOG_LEVEL", "debug")

        assert default_settings_path() == path
        assert load_settings().log_level == "DEBUG"

    def test_render_options(self):
        settings = Settings(date_format="short", number_format="percent", default_value="-")
        assert settings.render_options() == RenderOptions(
            default_value="-", date_format="short", number_format="percent"
        )


class TestRenderOptionsCoerce:
    """Test suite for RenderOptions.coerce."""

    def test_camel_case_mapping(self):
        options = RenderOptions.coerce({"dateFormat": "long", "defaultValue": "x"})
        assert options == RenderOptions(default_value="x", date_format="long")

    def test_missing_keys_fall_back_to_base(self):
        base = RenderOptions(number_format="currency")
        assert RenderOptions.coerce({"date_format": "short"}, base=base).number_format == "currency"

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            RenderOptions.coerce(["long"])


def test_setup_logging_uses_stderr():
    logger = setup_logging("debug")
    try:
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.handlers[0].stream is sys.stderr
    finally:
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
