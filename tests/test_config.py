"""Tests for configuration loading and persistence."""

import pytest
import yaml
from pydantic import ValidationError

from wpigpio.core.config import Config, ConfigManager, GPIOConfig, get_config
from wpigpio.core.errors import ConfigurationError


class TestModels:
    def test_defaults(self):
        config = Config()
        assert config.gpio.provider == "auto"
        assert config.gpio.command == "gpio"
        assert config.gpio.bcm_gpio is False
        assert config.gpio.sequence_delay == 0.1
        assert config.simulator.keyboard is True
        assert config.logging.level == "INFO"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("provider", "fpga"),
            ("command", ""),
            ("command", "gpio -g"),
            ("command_timeout", 0),
            ("sequence_delay", -0.1),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            GPIOConfig(**{field: value})


class TestConfigManager:
    def test_missing_file_uses_defaults_without_writing(self, temp_config_path):
        manager = ConfigManager(temp_config_path)
        assert manager.get() == Config()
        assert not temp_config_path.exists()

    def test_loads_yaml(self, temp_config_path):
        temp_config_path.parent.mkdir(parents=True)
        temp_config_path.write_text(
            yaml.safe_dump({"gpio": {"provider": "simulator", "bcm_gpio": True}})
        )
        config = ConfigManager(temp_config_path).get()
        assert config.gpio.provider == "simulator"
        assert config.gpio.bcm_gpio is True
        assert config.gpio.command == "gpio"

    def test_empty_file_uses_defaults(self, temp_config_path):
        temp_config_path.parent.mkdir(parents=True)
        temp_config_path.write_text("")
        assert ConfigManager(temp_config_path).get() == Config()

    def test_invalid_file_uses_defaults(self, temp_config_path):
        temp_config_path.parent.mkdir(parents=True)
        temp_config_path.write_text(yaml.safe_dump({"gpio": {"provider": "fpga"}}))
        assert ConfigManager(temp_config_path).get() == Config()

    def test_malformed_yaml_uses_defaults(self, temp_config_path):
        temp_config_path.parent.mkdir(parents=True)
        temp_config_path.write_text("gpio: [unclosed")
        assert ConfigManager(temp_config_path).get() == Config()

    def test_update_persists(self, temp_config_path):
        manager = ConfigManager(temp_config_path)
        manager.update(gpio={"bcm_gpio": True})
        assert manager.get().gpio.bcm_gpio is True

        reloaded = ConfigManager(temp_config_path).get()
        assert reloaded.gpio.bcm_gpio is True
        assert reloaded.gpio.provider == "auto"
        assert not temp_config_path.with_suffix(".tmp").exists()

    def test_update_rejects_invalid_values(self, temp_config_path):
        manager = ConfigManager(temp_config_path)
        with pytest.raises(ConfigurationError):
            manager.update(gpio={"command_timeout": -1})
        assert manager.get().gpio.command_timeout == 10.0
        assert not temp_config_path.exists()

    def test_get_returns_a_copy(self, temp_config_path):
        manager = ConfigManager(temp_config_path)
        config = manager.get()
        config.gpio.bcm_gpio = True
        assert manager.get().gpio.bcm_gpio is False

    def test_singleton(self, temp_config_path):
        first = ConfigManager.get_instance(temp_config_path)
        assert ConfigManager.get_instance() is first
        assert first.path == temp_config_path
        assert get_config() == Config()
