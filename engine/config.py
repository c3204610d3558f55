"""
Centralized configuration for the Knock Golf AI opponent.

Configuration is loaded from (in order of precedence):
1. Environment variables
2. .env file (if exists)
3. Default values

Usage:
    from config import config
    print(config.ai_timing.think_delay)
    print(config.table.hand_size)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    try:
        return float(os.environ.get(key, str(default)))
    except ValueError:
        return default


@dataclass
class AITiming:
    """Simulated "thinking" delays for the AI turn controller (seconds)."""
    think_delay: float = 1.0       # Before deciding where to draw
    swap_think_delay: float = 1.0  # After drawing, before swap/discard/special


@dataclass
class TableDefaults:
    """Default table settings."""
    hand_size: int = 4
    initial_peeks: int = 2
    max_turns_per_round: int = 200


@dataclass
class EngineConfig:
    """Engine configuration."""
    AI_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Simulated frame length used by the headless runner
    TICK_SECONDS: float = 1.0 / 60.0

    ai_timing: AITiming = field(default_factory=AITiming)
    table: TableDefaults = field(default_factory=TableDefaults)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load configuration from environment variables."""
        return cls(
            AI_DEBUG=get_env_bool("AI_DEBUG", False),
            LOG_LEVEL=get_env("LOG_LEVEL", "INFO"),
            ENVIRONMENT=get_env("ENVIRONMENT", "development"),
            TICK_SECONDS=get_env_float("TICK_SECONDS", 1.0 / 60.0),
            ai_timing=AITiming(
                think_delay=get_env_float("AI_THINK_DELAY", 1.0),
                swap_think_delay=get_env_float("AI_SWAP_THINK_DELAY", 1.0),
            ),
            table=TableDefaults(
                hand_size=get_env_int("HAND_SIZE", 4),
                initial_peeks=get_env_int("INITIAL_PEEKS", 2),
                max_turns_per_round=get_env_int("MAX_TURNS_PER_ROUND", 200),
            ),
        )


# Global config instance - loaded once at module import
config = EngineConfig.from_env()


def reload_config() -> EngineConfig:
    """Reload configuration from environment (useful for testing)."""
    global config
    config = EngineConfig.from_env()
    return config
