import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from ipt.domain.shared.error import ConfigurationError

CONFIG_FILE_ENV = "IPT_CONFIG_FILE"
LOG_FILE_ENV = "IPT_LOG_FILE"


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings from the YAML file named by IPT_CONFIG_FILE, read once per Config()."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._data = self._read(os.environ.get(CONFIG_FILE_ENV))

    @staticmethod
    def _read(config_file: str | None) -> dict[str, Any]:
        if not config_file:
            return {}
        path = Path(config_file).expanduser()
        if not path.is_file():
            return {}
        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse config file {path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping at top level")
        return data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in self._data.items() if k in self.settings_cls.model_fields}


class Server(BaseModel):
    """Installation identity (nested in Config, uses env_nested_delimiter)."""

    name: str = "Integrated Publishing Toolkit"
    base_url: str = "http://localhost:8080/ipt"  # resource homepages hang off it


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    loggers: dict[str, str] = {}  # per-logger levels, e.g. {"ipt.domain.resource": "DEBUG"}

    @field_validator("level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("loggers")
    @classmethod
    def _upper_logger_levels(cls, v: dict[str, str]) -> dict[str, str]:
        return {name: level.upper() for name, level in v.items()}

    @property
    def file(self) -> str | None:
        """Log file path from IPT_LOG_FILE; stderr when unset."""
        return os.environ.get(LOG_FILE_ENV)


class Config(BaseSettings):
    server: Server = Server()
    logging: LoggingConfig = LoggingConfig()

    model_config = {
        "env_prefix": "IPT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # IPT_SERVER__BASE_URL
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Init arguments win over the environment, then .env, then the YAML file."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def _set_level(logger: logging.Logger, level: str) -> None:
    try:
        logger.setLevel(level)
    except ValueError as e:
        raise ConfigurationError(f"Invalid log level for {logger.name}: {level}") from e


def configure_logging(config: LoggingConfig) -> None:
    """Install a single root handler, writing to IPT_LOG_FILE or stderr.

    Called once by whatever embeds the resource model; calling it again replaces
    the handler rather than adding another.
    """
    root = logging.getLogger()
    _set_level(root, config.level)
    for name, level in config.loggers.items():
        _set_level(logging.getLogger(name), level)

    for old in root.handlers[:]:
        root.removeHandler(old)

    handler: logging.Handler
    if config.file:
        path = Path(config.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(config.format, datefmt=config.date_format))
    root.addHandler(handler)

    logging.getLogger(__name__).debug(f"Logging configured: level={config.level}, file={config.file}")
