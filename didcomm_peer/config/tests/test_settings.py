from unittest import TestCase

import pytest

from ...defaults import DEFAULT_SETTINGS
from ..settings import Settings, SettingsError


class TestSettings(TestCase):
    def setUp(self):
        self.test_settings = {
            "transport.http_timeout": "5",
            "transport.emit_new_mime_type": "false",
            "test.int": "12",
            "test.str": 42,
        }
        self.test_instance = Settings(self.test_settings)

    def test_defaults(self):
        settings = Settings()
        for key, value in DEFAULT_SETTINGS.items():
            assert settings[key] == value
        assert len(settings) == len(DEFAULT_SETTINGS)

    def test_settings_init(self):
        for key in self.test_settings:
            assert key in self.test_instance
            assert self.test_instance[key] == self.test_settings[key]
        assert self.test_instance.get_value("missing", default="x") == "x"
        with pytest.raises(KeyError):
            self.test_instance["missing"]

    def test_get_typed(self):
        assert self.test_instance.get_float("transport.http_timeout") == 5.0
        assert self.test_instance.get_bool("transport.emit_new_mime_type") is False
        assert self.test_instance.get_int("test.int") == 12
        assert self.test_instance.get_str("test.str") == "42"
        assert self.test_instance.get_bool("missing") is None
        assert self.test_instance.get_bool("missing", default=True) is True

    def test_get_timeout(self):
        settings = Settings(
            {
                "transport.http_timeout": 0,
                "transport.ws_open_timeout": -1,
                "transport.ws_send_timeout": "bad",
            }
        )
        assert settings.get_timeout("transport.http_timeout") is None
        assert settings.get_timeout("transport.ws_open_timeout") is None
        with pytest.raises(SettingsError):
            settings.get_timeout("transport.ws_send_timeout")
        assert Settings().get_timeout("transport.http_timeout") == 30.0

    def test_set_extend(self):
        settings = Settings()
        settings["test.key"] = "value"
        settings.set_value("other.key", 1)
        extended = settings.extend({"third.key": True})
        assert extended["test.key"] == "value"
        assert extended["third.key"] is True
        assert "third.key" not in settings
        with pytest.raises(TypeError):
            settings[1] = "value"

    def test_coerce(self):
        assert Settings.coerce(self.test_instance) is self.test_instance
        assert isinstance(Settings.coerce(None), Settings)
        assert Settings.coerce({"a": 1})["a"] == 1
