"""
Loading of the library config. The packaged defaults can be layered with an
override file (named by the CRDREG_CONFIG_FILE env var) and then with env var
overrides for individual keys.
"""

# Standard
from typing import Optional
import os

# Third Party
import yaml

# First Party
import aconfig
import alog

# Local
from ..exceptions import ConfigError, assert_config
from ..utils import merge_configs
from .validation import get_invalid_params

CONFIG_DIR = os.path.dirname(__file__)
DEFAULTS_FILE = os.path.join(CONFIG_DIR, "config.yaml")
VALIDATION_FILE = os.path.join(CONFIG_DIR, "config_validation.yaml")
OVERRIDE_FILE_ENV = "CRDREG_CONFIG_FILE"


def load_library_config(override_file: Optional[str] = None) -> aconfig.Config:
    """Load and validate the library config

    Args:
        override_file:  Optional[str]
            YAML file whose values are layered over the packaged defaults

    Returns:
        library_config:  aconfig.Config
            The validated config with env var overrides applied

    Raises:
        ConfigError:  If the override file is unreadable or any value is
            invalid
    """
    with open(DEFAULTS_FILE, encoding="utf-8") as handle:
        values = yaml.safe_load(handle)

    if override_file:
        try:
            with open(override_file, encoding="utf-8") as handle:
                overrides = yaml.safe_load(handle) or {}
        except (OSError, yaml.YAMLError) as err:
            raise ConfigError(
                f"Unable to read config file {override_file}: {err}"
            ) from err
        assert_config(
            isinstance(overrides, dict),
            f"Config file {override_file} must hold a mapping",
        )
        values = merge_configs(values, overrides)

    loaded = aconfig.Config(values, override_env_vars=True)
    invalid_params = get_invalid_params(loaded, validation_config)
    assert_config(
        not invalid_params,
        f"Library configuration found invalid values: {invalid_params}",
    )
    return loaded


# Parse the validation file, not allowing env overrides
validation_config = aconfig.Config.from_yaml(VALIDATION_FILE, override_env_vars=False)

library_config = load_library_config(os.environ.get(OVERRIDE_FILE_ENV))

# Do initial alog configuration
alog.configure(
    default_level=library_config.log_level,
    filters=library_config.log_filters,
    formatter="json" if library_config.log_json else "pretty",
    thread_id=library_config.log_thread_id,
)
