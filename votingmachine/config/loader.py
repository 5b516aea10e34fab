"""
Voting Machine TOML Configuration Loader

Loads config.toml with environment variable overrides. Defaults come from
``votingmachine.constants`` (which already honours a local ``.env``).

Environment variable mapping:
    [machine] quorum_bps      → VOTING_QUORUM_BPS
    [machine] seconds_per_day → VOTING_SECONDS_PER_DAY
    [machine] address         → VOTING_MACHINE_ADDRESS
    [logging] level           → LOG_LEVEL
    [logging] file_output     → LOG_FILE_OUTPUT
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ..constants import (
    BPS_DENOMINATOR,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
    LOG_LEVEL,
    VOTING_MACHINE_ADDRESS,
    VOTING_QUORUM_BPS,
    VOTING_SECONDS_PER_DAY,
    ZERO_ADDRESS,
    parse_bool,
)
from ..exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _as_bool(value: Any) -> bool:
    parsed = parse_bool(value)
    if not isinstance(parsed, bool):
        raise InvalidConfiguration(f"expected true/false, got {value!r}")
    return parsed


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"{name} must be an integer, got {value!r}") from e


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------


@dataclass
class MachineConfig:
    """[machine] section."""
    address: str = str(VOTING_MACHINE_ADDRESS)
    quorum_bps: int = int(VOTING_QUORUM_BPS)
    seconds_per_day: int = int(VOTING_SECONDS_PER_DAY)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MachineConfig":
        defaults = cls()
        return cls(
            address=str(data.get("address", defaults.address)),
            quorum_bps=_as_int(data.get("quorum_bps", defaults.quorum_bps), "quorum_bps"),
            seconds_per_day=_as_int(
                data.get("seconds_per_day", defaults.seconds_per_day), "seconds_per_day"
            ),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("VOTING_QUORUM_BPS"):
            self.quorum_bps = _as_int(v, "VOTING_QUORUM_BPS")
        if v := os.environ.get("VOTING_SECONDS_PER_DAY"):
            self.seconds_per_day = _as_int(v, "VOTING_SECONDS_PER_DAY")
        if v := os.environ.get("VOTING_MACHINE_ADDRESS"):
            self.address = v

    def validate(self) -> None:
        if not 0 <= self.quorum_bps <= BPS_DENOMINATOR:
            raise InvalidConfiguration(
                f"quorum_bps must be 0-{BPS_DENOMINATOR}, got {self.quorum_bps}"
            )
        if self.seconds_per_day <= 0:
            raise InvalidConfiguration("seconds_per_day must be positive")
        if not self.address or self.address == ZERO_ADDRESS:
            raise InvalidConfiguration("machine address cannot be zero")


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = str(LOG_LEVEL)
    highlighting: bool = bool(LOG_CONSOLE_HIGHLIGHTING)
    file_output: bool = bool(LOG_FILE_OUTPUT)
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        defaults = cls()
        return cls(
            level=str(data.get("level", defaults.level)).upper(),
            highlighting=_as_bool(data.get("highlighting", defaults.highlighting)),
            file_output=_as_bool(data.get("file_output", defaults.file_output)),
            log_file=data.get("log_file"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("LOG_LEVEL"):
            self.level = v.upper()
        if v := os.environ.get("LOG_FILE_OUTPUT"):
            self.file_output = _as_bool(v)

    def validate(self) -> None:
        if self.level not in _LOG_LEVELS:
            raise InvalidConfiguration(f"Invalid log level: {self.level}")


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


@dataclass
class AppConfig:
    """Root configuration, one attribute per TOML section."""
    machine: MachineConfig = field(default_factory=MachineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        return cls(
            machine=MachineConfig.from_dict(data.get("machine", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str | Path) -> "AppConfig":
        """
        Load configuration from a TOML file.

        A missing file is not an error: defaults (plus env overrides) are used.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
        else:
            with open(path, "rb") as f:
                try:
                    raw = tomllib.load(f)
                except tomllib.TOMLDecodeError as e:
                    raise InvalidConfiguration(f"{path}: {e}") from e
            cfg = cls.from_dict(raw)

        cfg.apply_env()
        cfg.validate()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.machine.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        self.machine.validate()
        self.logging.validate()
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "machine": {
                "address": self.machine.address,
                "quorum_bps": self.machine.quorum_bps,
                "seconds_per_day": self.machine.seconds_per_day,
            },
            "logging": {
                "level": self.logging.level,
                "highlighting": self.logging.highlighting,
                "file_output": self.logging.file_output,
                "log_file": self.logging.log_file,
            },
        }


def load_config(path: Optional[str] = None) -> AppConfig:
    """
    Load configuration.

    Resolution order:
        1. Explicit *path* argument
        2. VOTING_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("VOTING_CONFIG")
    if path is None:
        # No config was asked for; a missing ./config.toml is the normal case
        if not Path("config.toml").exists():
            cfg = AppConfig()
            cfg.apply_env()
            cfg.validate()
            return cfg
        path = "config.toml"

    return AppConfig.from_file(path)
