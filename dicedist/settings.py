import logging
import os
import typing

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = os.path.join(
    os.path.dirname(__file__), "settings.default.yaml"
)
SETTINGS_ENV_VAR = "DICEDIST_SETTINGS"
LOCAL_SETTINGS_FILE = "settings.yaml"

_settings: typing.Optional[typing.Dict[str, typing.Any]] = None


def _merge(
    base: typing.Dict[str, typing.Any], overrides: typing.Dict[str, typing.Any]
) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value


def load_settings(path: typing.Optional[str] = None) -> typing.Dict[str, typing.Any]:
    """Reads the packaged defaults and merges the YAML file at ``path`` over them."""
    with open(DEFAULT_SETTINGS_FILE) as file:
        settings = yaml.safe_load(file)
    if path is not None:
        with open(path) as file:
            overrides = yaml.safe_load(file) or {}
        if not isinstance(overrides, dict):
            raise ValueError("%s does not contain a mapping" % path)
        _merge(settings, overrides)
        logger.debug("loaded settings from %s", path)
    return settings


def get_settings() -> typing.Dict[str, typing.Any]:
    global _settings
    if _settings is None:
        path = os.environ.get(SETTINGS_ENV_VAR)
        if path is None and os.path.exists(LOCAL_SETTINGS_FILE):
            path = LOCAL_SETTINGS_FILE
        _settings = load_settings(path)
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


def configure_logging(level: typing.Optional[str] = None) -> None:
    if level is None:
        level = get_settings()["log_level"]
    logging.basicConfig(level=level.upper())
