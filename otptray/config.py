"""Runtime settings for otptray, read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import appdirs

from .errors import ValidationError
from .otp.secret_codec import SecretEncoding

APP_NAME = "otptray"
CONFIG_FILE_NAME = "otptray.yaml"
LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"

ENV_CONFIG = "OTPTRAY_CONFIG"
ENV_SECRET_ENCODING = "OTPTRAY_SECRET_ENCODING"
ENV_LOG_LEVEL = "OTPTRAY_LOG_LEVEL"


def default_config_path() -> Path:
    return Path(appdirs.user_config_dir()) / CONFIG_FILE_NAME


@dataclass
class Settings:
    config_path: Path
    secret_encoding: SecretEncoding = SecretEncoding.BASE32
    log_level: int = logging.WARNING

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        config_path = Path(env[ENV_CONFIG]).expanduser() if env.get(ENV_CONFIG) else default_config_path()
        encoding = SecretEncoding.parse(env.get(ENV_SECRET_ENCODING, SecretEncoding.BASE32.value))
        return cls(
            config_path=config_path,
            secret_encoding=encoding,
            log_level=_parse_log_level(env.get(ENV_LOG_LEVEL, "WARNING")),
        )


def _parse_log_level(value: str) -> int:
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValidationError(f"Unknown log level {value!r}.", field="log_level")
    return level


def configure_logging(level: int) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
