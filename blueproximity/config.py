import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace

logger = logging.getLogger(__name__)

PLACEHOLDER_ADDRESS = "XX:XX:XX:XX:XX:XX"
DEFAULT_CONFIG_FILE = "config.json"


class ConfigurationError(ValueError):
    """Raised at startup when the settings cannot drive a monitor."""


@dataclass(frozen=True)
class MonitorConfig:
    # Keys match the JSON settings file.
    bluetooth_device_address: str = PLACEHOLDER_ADDRESS
    check_interval: float = 5          # Seconds between samples
    check_repeat: int = 3              # Consecutive verdicts required when debounce is on
    lock_rssi: int = -14               # Lock when RSSI is at or below this value
    unlock_rssi: int = -14             # Unlock when RSSI is at or above this value
    desktop_env: str = "CINNAMON"
    session_timeout: float = 30 * 60   # Seconds an unlocked session may last, 0 disables
    debug: bool = True
    source: str = "hcitool"            # "hcitool" or "scan"
    debounce: bool = False

    @property
    def device_address(self):
        return self.bluetooth_device_address

    @property
    def lock_threshold(self):
        return self.lock_rssi

    @property
    def unlock_threshold(self):
        return self.unlock_rssi

    @property
    def confirmations(self):
        """Number of consecutive verdicts needed before a proximity transition."""
        return self.check_repeat if self.debounce else 1

    def validate(self):
        for name in ("bluetooth_device_address", "desktop_env", "source"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ConfigurationError(f"{name} must be a string, got {value!r}")
        address = self.bluetooth_device_address.strip()
        if not address or address.upper() == PLACEHOLDER_ADDRESS:
            raise ConfigurationError(
                "No device address configured. Find it with 'bluetoothctl scan on' "
                "and set bluetooth_device_address."
            )
        for name in ("lock_rssi", "unlock_rssi"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        for name in ("check_interval", "session_timeout", "check_repeat"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
        if self.check_interval <= 0:
            raise ConfigurationError(f"check_interval must be positive, got {self.check_interval!r}")
        if self.session_timeout < 0:
            raise ConfigurationError(f"session_timeout must be >= 0, got {self.session_timeout!r}")
        if self.check_repeat < 1:
            raise ConfigurationError(f"check_repeat must be >= 1, got {self.check_repeat!r}")
        return self


DEFAULT_CONFIG = MonitorConfig()


def write_default_config(path=DEFAULT_CONFIG_FILE):
    """Create a settings file holding the default values."""
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(asdict(DEFAULT_CONFIG), fh, indent=2)
            fh.write("\n")
    except OSError as e:
        raise ConfigurationError(f"Failed to create config file {path}: {e}") from e
    logger.info(f"Default config written to {path}")


def config_from_dict(data):
    known = {f.name for f in fields(MonitorConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
    config = MonitorConfig(**{k: v for k, v in data.items() if k in known})
    if not config.check_interval:
        # An unset interval would spin the loop; fall back like a missing key.
        config = replace(config, check_interval=DEFAULT_CONFIG.check_interval)
    return config


def load_config(path=DEFAULT_CONFIG_FILE):
    """Load settings from a JSON file, writing the defaults first if it does not exist."""
    if not os.path.exists(path):
        write_default_config(path)
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return config_from_dict(data)
