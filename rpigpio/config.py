from __future__ import annotations

import logging
import math
import re
import threading
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

SYSFS_ROOT = Path("/sys/class/gpio")

# BCM numbers usable on the 40-pin header; 21 is deliberately left out
GPIO_PINS: tuple[int, ...] = (
    2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15, 16, 17, 18, 19, 20,
    22, 23, 24, 25, 26, 27,
)

DEFAULT_PIN = 18
DEFAULT_DELAY_S = 2.0
# longest wait time.sleep and thread timeouts accept on this platform
MAX_DELAY_S = threading.TIMEOUT_MAX

_UNIT_SECONDS = {
    "ns": Decimal("1e-9"),
    "us": Decimal("1e-6"),
    "µs": Decimal("1e-6"),  # U+00B5 micro sign
    "μs": Decimal("1e-6"),  # U+03BC greek mu
    "ms": Decimal("1e-3"),
    "s": Decimal(1),
    "m": Decimal(60),
    "h": Decimal(3600),
}
_TERM = r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"\+?(?:{_TERM})+")
_TERM_RE = re.compile(_TERM)


class ControlMode(str, Enum):
    TIMER = "timer"
    TOGGLE = "toggle"


DEFAULT_MODE = ControlMode.TIMER


def parse_duration(text: str) -> float:
    """
    Parse a duration such as "250ms", "1.5s" or "1h30m" into seconds.

    Terms are summed. "0" is the only unit-less value accepted, and no
    surrounding whitespace is allowed.
    """
    if text in ("0", "+0"):
        return 0.0
    if text.startswith("-"):
        raise ValueError(f"Invalid time delay: {text} must not be negative")
    if not _DURATION_RE.fullmatch(text):
        raise ValueError(f"Invalid time delay format: {text} (use 1ms, 1s, 1m, 1h)")

    total = sum(
        (Decimal(num) * _UNIT_SECONDS[unit] for num, unit in _TERM_RE.findall(text)),
        Decimal(0),
    )
    seconds = float(total)
    if seconds > MAX_DELAY_S:
        raise ValueError(f"Invalid time delay: {text} is longer than {MAX_DELAY_S}s")
    return seconds


class ControlConfig(BaseModel):
    """What to do with which pin. Built once, never mutated."""

    model_config = ConfigDict(frozen=True)

    mode: ControlMode = DEFAULT_MODE
    pin: int = DEFAULT_PIN
    delay: float = DEFAULT_DELAY_S  # seconds, timer mode only

    @field_validator("mode", mode="before")
    @classmethod
    def _check_mode(cls, v: Any) -> ControlMode:
        if isinstance(v, ControlMode):
            return v
        if isinstance(v, str):
            d = v.strip()
            if d == "":
                return DEFAULT_MODE
            if d in (ControlMode.TIMER.value, ControlMode.TOGGLE.value):
                return ControlMode(d)
        raise ValueError(f"Invalid control type: {v}")

    @field_validator("pin", mode="before")
    @classmethod
    def _check_pin(cls, v: Any) -> int:
        if isinstance(v, str):
            if v == "":
                return DEFAULT_PIN
            for p in GPIO_PINS:
                if str(p) == v:
                    return p
        elif isinstance(v, int) and not isinstance(v, bool) and v in GPIO_PINS:
            return v
        raise ValueError(f"Invalid GPIO pin number: {v}, choose one of: {list(GPIO_PINS)}")

    @field_validator("delay", mode="before")
    @classmethod
    def _check_delay(cls, v: Any) -> float:
        if isinstance(v, str):
            if v == "":
                return DEFAULT_DELAY_S
            return parse_duration(v)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            if isinstance(v, float) and math.isnan(v):
                raise ValueError(f"Invalid time delay: {v} is not a number")
            if v < 0:
                raise ValueError(f"Invalid time delay: {v} must not be negative")
            if v > MAX_DELAY_S:
                raise ValueError(f"Invalid time delay: {v} is longer than {MAX_DELAY_S}s")
            return float(v)
        raise ValueError(f"Invalid time delay format: {v} (use 1ms, 1s, 1m, 1h)")

    @classmethod
    def build(cls, mode: str = "", pin: str = "", delay: str = "") -> "ControlConfig":
        """Build from raw strings; empty strings select the defaults."""
        return cls(mode=mode, pin=pin, delay=delay)


class SysfsConfig(BaseModel):
    sysfs_root: Path = SYSFS_ROOT


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RPIGPIO_", env_nested_delimiter="__")

    control: ControlConfig = ControlConfig()
    gpio: SysfsConfig = SysfsConfig()
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        # environment wins over values read from the TOML file
        return env_settings, init_settings

    @classmethod
    def from_toml(cls, path: str) -> "AppConfig":
        from tomlkit import parse

        with open(path, "r", encoding="utf-8") as f:
            data = parse(f.read())
        logger.debug("Loaded config file %s", path)
        return cls(**data.unwrap())
