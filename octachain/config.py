"""
Configuration management for octachain.

Reads configuration from a .env file and environment variables with sensible
defaults. Command-line options override these values in __main__.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from octachain.audio.format import DEFAULT_SAMPLE_RATE
from octachain.slicer.accumulator import DEFAULT_TEMPO
from octachain.slicer.slice import LoopPointPolicy

# Default .env file location
DEFAULT_ENV_FILE = Path(".env")

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

logger = logging.getLogger(__name__)


def _load_env_file() -> None:
    """Load environment variables from .env file if it exists."""
    env_file = os.getenv("OCTACHAIN_ENV_FILE", str(DEFAULT_ENV_FILE))
    env_path = Path(env_file)

    if env_path.exists():
        load_dotenv(env_path, override=False)  # Don't override existing env vars


def _parse_int(name: str, default: str) -> int:
    value = os.getenv(name, default)
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid {name}: {value} (must be an integer)")


def _parse_bool(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes", "on")


@dataclass
class SlicerConfig:
    """Chain generation settings loaded from .env file and environment variables."""

    # Output naming
    output_folder: str = ""
    output_filename: str = "output"

    # Chain format
    sample_rate: int = DEFAULT_SAMPLE_RATE
    tempo: int = DEFAULT_TEMPO
    evenly_spaced: bool = False
    loop_policy: LoopPointPolicy = LoopPointPolicy.SLICE_LENGTH

    # Logging
    log_level: str = "INFO"

    @classmethod
    def load_config(cls) -> "SlicerConfig":
        """
        Load configuration from environment variables.

        Returns:
            SlicerConfig instance with loaded values

        Raises:
            ValueError: If configuration is invalid
        """
        # Load .env file first (if it exists)
        _load_env_file()

        output_folder = os.getenv("OCTACHAIN_OUTPUT_FOLDER", "")
        output_filename = os.getenv("OCTACHAIN_OUTPUT_FILENAME", "output")

        sample_rate = _parse_int("OCTACHAIN_SAMPLE_RATE", str(DEFAULT_SAMPLE_RATE))
        tempo = _parse_int("OCTACHAIN_TEMPO", str(DEFAULT_TEMPO))
        evenly_spaced = _parse_bool("OCTACHAIN_EVENLY_SPACED")

        loop_policy_str = os.getenv("OCTACHAIN_LOOP_POLICY", LoopPointPolicy.SLICE_LENGTH.value)
        try:
            loop_policy = LoopPointPolicy(loop_policy_str.lower())
        except ValueError:
            raise ValueError(
                f"Invalid OCTACHAIN_LOOP_POLICY: {loop_policy_str} "
                f"(must be one of: {', '.join(p.value for p in LoopPointPolicy)})"
            )

        log_level = os.getenv("OCTACHAIN_LOG_LEVEL", "INFO")

        config = cls(
            output_folder=output_folder,
            output_filename=output_filename,
            sample_rate=sample_rate,
            tempo=tempo,
            evenly_spaced=evenly_spaced,
            loop_policy=loop_policy,
            log_level=log_level,
        )

        config.validate()

        return config

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.output_filename:
            raise ValueError("Output filename cannot be empty")

        if self.sample_rate <= 0:
            raise ValueError(f"Invalid sample rate: {self.sample_rate} (must be > 0)")

        if self.tempo <= 0:
            raise ValueError(f"Invalid tempo: {self.tempo} (must be > 0)")

        if not isinstance(self.loop_policy, LoopPointPolicy):
            raise ValueError(f"Invalid loop policy: {self.loop_policy}")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {self.log_level} "
                f"(must be one of: {', '.join(VALID_LOG_LEVELS)})"
            )


def load_config() -> SlicerConfig:
    """
    Load and validate configuration from environment variables.

    Raises:
        ValueError: If configuration is invalid
    """
    try:
        return SlicerConfig.load_config()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise
