"""
RescueBot Configuration

Loads simulation and oracle settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Oracle (LLM) Provider Configuration
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-5-nano")

    # API Keys
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")

    # World
    GRID_SIZE: int = int(os.getenv("GRID_SIZE", "15"))
    SENSOR_RADIUS: int = int(os.getenv("SENSOR_RADIUS", "2"))

    # Robot energy model (battery is a percentage)
    MAX_BATTERY: float = float(os.getenv("MAX_BATTERY", "100"))
    CHARGING_RATE: float = float(os.getenv("CHARGING_RATE", "10"))
    CRITICAL_BATTERY: float = float(os.getenv("CRITICAL_BATTERY", "20"))

    # Scheduler
    TICK_RATE_MS: int = int(os.getenv("TICK_RATE_MS", "600"))

    # Decision oracle retry budget: 3 attempts, backoff 2s then 4s
    ORACLE_MAX_ATTEMPTS: int = int(os.getenv("ORACLE_MAX_ATTEMPTS", "3"))
    ORACLE_INITIAL_BACKOFF_SECONDS: float = float(
        os.getenv("ORACLE_INITIAL_BACKOFF_SECONDS", "2")
    )
    ORACLE_TIMEOUT_SECONDS: float = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "30"))

    # Project Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    SCENARIOS_DIR: Path = PROJECT_ROOT / "examples" / "scenarios"

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if required values are missing."""
        if cls.GRID_SIZE < 3:
            raise ValueError("GRID_SIZE must be at least 3 to leave room for hazards")

        if cls.SENSOR_RADIUS < 0:
            raise ValueError("SENSOR_RADIUS cannot be negative")

        if cls.LLM_PROVIDER == "anthropic" and not cls.ANTHROPIC_API_KEY:
            raise ValueError(
                "ANTHROPIC_API_KEY is required when using the 'anthropic' provider"
            )

        if cls.LLM_PROVIDER == "openai" and not cls.OPENAI_API_KEY:
            raise ValueError(
                "OPENAI_API_KEY is required when using the 'openai' provider. "
                "Use the rule-based oracle to run without an LLM."
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "RescueBot Configuration:",
            f"  LLM Provider: {cls.LLM_PROVIDER}",
            f"  LLM Model: {cls.LLM_MODEL}",
            f"  Grid: {cls.GRID_SIZE}x{cls.GRID_SIZE} (sensor radius {cls.SENSOR_RADIUS})",
            f"  Tick Rate: {cls.TICK_RATE_MS}ms",
            f"  Charging Rate: {cls.CHARGING_RATE}%/tick",
            f"  Oracle Attempts: {cls.ORACLE_MAX_ATTEMPTS} "
            f"(backoff from {cls.ORACLE_INITIAL_BACKOFF_SECONDS}s)",
        ]
        return "\n".join(lines)
