"""
Shredder Configuration Module
=============================

Provides immutable, environment-aware configuration with safe defaults.

Features:
- Immutable configuration after initialization
- Environment variable override support
- Confirmation can never be granted from the environment
- Type-safe configuration access
- OS-aware path handling
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Optional

from secureshred.core.shred.patterns import Pattern
from secureshred.core.shred.settings import PassFailurePolicy, ShredConfig


# Keys that must never be taken from the environment
_PROTECTED_KEYS: Final[frozenset[str]] = frozenset({
    "defaults.confirmed",
})

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _get_default_log_dir() -> Path:
    """Get OS-appropriate default log directory."""
    system = platform.system().lower()

    if system == "windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / "SecureShred" / "Logs"
    elif system == "darwin":
        return Path.home() / "Library" / "Logs" / "SecureShred"
    else:  # Linux and others
        return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state")) / "SecureShred" / "logs"


@dataclass(frozen=True, slots=True)
class PathConfig:
    """Immutable path configuration with OS-aware defaults."""

    log_dir: Path = field(default_factory=_get_default_log_dir)

    def __post_init__(self) -> None:
        """Validate paths after initialization."""
        if not self.log_dir.is_absolute():
            raise ValueError(f"log_dir must be an absolute path: {self.log_dir}")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "WARNING"
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = False
    json_format: bool = False
    redact_paths: bool = True

    def __post_init__(self) -> None:
        """Validate logging settings."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}")


class ShredderConfig:
    """
    Centralized, immutable configuration loader with environment override support.

    Usage:
        config = ShredderConfig.load()
        shred_config = config.defaults.with_confirmation()
        log_dir = config.paths.log_dir
    """

    __slots__ = ("_paths", "_logging", "_defaults", "_frozen")

    _instance: Optional[ShredderConfig] = None

    def __init__(
        self,
        paths: Optional[PathConfig] = None,
        logging: Optional[LoggingConfig] = None,
        defaults: Optional[ShredConfig] = None,
    ) -> None:
        """Initialize configuration. Use ShredderConfig.load() for standard initialization."""
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_paths", paths or PathConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_defaults", defaults or ShredConfig())
        object.__setattr__(self, "_frozen", True)

    @property
    def paths(self) -> PathConfig:
        """Get path configuration."""
        return self._paths

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return self._logging

    @property
    def defaults(self) -> ShredConfig:
        """Get default shredding parameters (never pre-confirmed)."""
        return self._defaults

    @classmethod
    def load(cls, env_prefix: str = "SECURESHRED") -> ShredderConfig:
        """
        Load configuration with environment variable overrides.

        Environment variables are prefixed with SECURESHRED_ and use
        double underscores for nested values.

        Examples:
            SECURESHRED_LOGGING__LEVEL=DEBUG
            SECURESHRED_DEFAULTS__PASSES=7
            SECURESHRED_DEFAULTS__PATTERN=zeros
            SECURESHRED_PATHS__LOG_DIR=/var/log/secureshred

        Args:
            env_prefix: Prefix for environment variables

        Returns:
            Configured ShredderConfig instance

        Raises:
            ValueError: If an override holds an invalid value
        """
        env_overrides = cls._parse_env_overrides(env_prefix)

        paths_kwargs: dict[str, Any] = {}
        if "paths.log_dir" in env_overrides:
            paths_kwargs["log_dir"] = Path(env_overrides["paths.log_dir"])

        logging_kwargs: dict[str, Any] = {}
        if "logging.level" in env_overrides:
            logging_kwargs["level"] = env_overrides["logging.level"].upper()
        for flag in ("enable_console", "enable_file", "json_format", "redact_paths"):
            if f"logging.{flag}" in env_overrides:
                logging_kwargs[flag] = _parse_bool(env_overrides[f"logging.{flag}"])

        defaults_kwargs: dict[str, Any] = {}
        if "defaults.passes" in env_overrides:
            defaults_kwargs["passes"] = int(env_overrides["defaults.passes"])
        if "defaults.pattern" in env_overrides:
            defaults_kwargs["pattern"] = Pattern.from_name(env_overrides["defaults.pattern"])
        if "defaults.on_pass_failure" in env_overrides:
            defaults_kwargs["on_pass_failure"] = PassFailurePolicy(
                env_overrides["defaults.on_pass_failure"].strip().lower()
            )
        if "defaults.chunk_size" in env_overrides:
            defaults_kwargs["chunk_size"] = int(env_overrides["defaults.chunk_size"])

        return cls(
            paths=PathConfig(**paths_kwargs) if paths_kwargs else None,
            logging=LoggingConfig(**logging_kwargs) if logging_kwargs else None,
            defaults=ShredConfig(**defaults_kwargs) if defaults_kwargs else None,
        )

    @staticmethod
    def _parse_env_overrides(prefix: str) -> dict[str, str]:
        """Parse environment variables with the given prefix."""
        overrides: dict[str, str] = {}
        prefix_upper = f"{prefix.upper()}_"

        for key, value in os.environ.items():
            if key.startswith(prefix_upper):
                # Convert SECURESHRED_SECTION__KEY to section.key
                config_key = key[len(prefix_upper):].lower().replace("__", ".")

                if config_key in _PROTECTED_KEYS:
                    continue

                overrides[config_key] = value

        return overrides

    @classmethod
    def get_instance(cls) -> ShredderConfig:
        """
        Get or create the singleton configuration instance.

        Returns:
            The global ShredderConfig instance
        """
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance. Use only for testing."""
        cls._instance = None

    def ensure_directories(self) -> None:
        """Create the log directory with owner-only permissions."""
        import stat

        log_dir = self._paths.log_dir
        log_dir.mkdir(parents=True, exist_ok=True)

        if platform.system().lower() != "windows":
            log_dir.chmod(stat.S_IRWXU)  # 700 - owner only

    def __repr__(self) -> str:
        return (
            f"ShredderConfig(passes={self._defaults.passes}, "
            f"pattern={self._defaults.pattern.value}, level={self._logging.level})"
        )

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after initialization."""
        if hasattr(self, "_frozen") and self._frozen:
            raise AttributeError("ShredderConfig is immutable after initialization")
        super().__setattr__(name, value)
