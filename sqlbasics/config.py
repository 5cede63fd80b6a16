"""Settings read from environment variables; CLI flags override them."""
import logging
import os
from dataclasses import dataclass
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    return default if value is None else value


def get_env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be an integer, got '{value}'.")


def get_env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Truthy: true, 1, yes, on. Falsey: false, 0, no, off, empty."""
    value = os.getenv(name)
    if value is None:
        return default
    val_lower = value.lower()
    if val_lower in ("true", "1", "yes", "on"):
        return True
    if val_lower in ("false", "0", "no", "off", ""):
        return False
    raise ValueError(f"Environment variable '{name}' must be a boolean, got '{value}'.")


@dataclass
class Settings:
    log_level: str = "WARNING"
    web_port: int = 5000
    seed: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        log_level = get_env_str("SQLBASICS_LOG_LEVEL", "WARNING").upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(
                f"Environment variable 'SQLBASICS_LOG_LEVEL' must be one of {', '.join(LOG_LEVELS)}, got '{log_level}'."
            )
        return cls(
            log_level=log_level,
            web_port=get_env_int("SQLBASICS_WEB_PORT", 5000),
            seed=get_env_bool("SQLBASICS_SEED", True),
        )


def configure_logging(level: str):
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
