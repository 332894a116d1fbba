"""User configuration file holding defaults for the command line options"""

import configparser
import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

from gitrevision.versioning import (
    ConfigFileError,
    DEFAULT_BRANCH,
    DEFAULT_STOP_DEBOUNCE,
    DEFAULT_YEAR_FACTOR,
    InvalidConfigurationError,
)

logger = logging.getLogger(__name__)

APP_NAME = "gitrevision"
DEFAULTS_SECTION = "defaults"

builtin_defaults = {
    "baseBranch": DEFAULT_BRANCH,
    "yearFactor": DEFAULT_YEAR_FACTOR,
    "stopDebounce": DEFAULT_STOP_DEBOUNCE,
}


def get_config_dir() -> Path:
    if platform.system() == "Darwin":
        # macOS
        return Path("~/Library/Application Support/gitrevision").expanduser()
    _home = os.path.expanduser("~")
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(
        _home, ".config"
    )
    return Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file() -> Path:
    return get_config_dir() / f"{APP_NAME}.cfg"


class ConfigAccessor:
    """
    A dict-like accessor for the configuration file.

    Missing files, sections or keys are not an error; lookups fall back to
    the given default.

    Usage:
        config = ConfigAccessor()
        value = config.get('defaults', 'baseBranch', default='master')
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize a ConfigAccessor with an optional config file path.

        Args:
            config_path: Path to the configuration file. If None, uses the default path.

        Raises:
            ConfigFileError: If the file exists but is not valid INI syntax
        """
        if config_path is None:
            self.config_path = get_config_file()
        else:
            self.config_path = Path(config_path)

        self.config = configparser.ConfigParser()
        # keep camelCase keys as written
        self.config.optionxform = str
        if self.config_path.exists():
            logger.debug(f"Reading configuration from {self.config_path}")
            try:
                self.config.read(self.config_path)
            except configparser.Error as e:
                reason = e.message.splitlines()[0]
                raise ConfigFileError(self.config_path, reason) from e

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the specified section and key.

        Args:
            section: The configuration section
            key: The configuration key
            default: Value to return if the section or key doesn't exist

        Returns:
            The configuration value if it exists, otherwise the default value
        """
        try:
            return self.config[section][key]
        except KeyError:
            return default

    def get_int(self, section: str, key: str, default: Optional[int] = None) -> Optional[int]:
        """
        Get an integer configuration value.

        Raises:
            InvalidConfigurationError: If the stored value is not an integer
        """
        value = self.get(section, key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise InvalidConfigurationError(
                f"{section}.{key} in {self.config_path}", value, "an integer"
            )

    def sections(self) -> list:
        return self.config.sections()


def load_defaults(accessor: Optional[ConfigAccessor] = None) -> Dict[str, Any]:
    """
    Resolve option defaults from the config file and the built-in values.

    Args:
        accessor: Config file to read, defaults to the user config file

    Returns:
        Mapping with the keys of `builtin_defaults`
    """
    if accessor is None:
        accessor = ConfigAccessor()
    return {
        "baseBranch": accessor.get(
            DEFAULTS_SECTION, "baseBranch", builtin_defaults["baseBranch"]
        ),
        "yearFactor": accessor.get_int(
            DEFAULTS_SECTION, "yearFactor", builtin_defaults["yearFactor"]
        ),
        "stopDebounce": accessor.get_int(
            DEFAULTS_SECTION, "stopDebounce", builtin_defaults["stopDebounce"]
        ),
    }
