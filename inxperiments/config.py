"""
Inxperiments Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


# Fixed engine constants. These are part of the simulation contract and are not
# tunable from the environment.
AGENT_COUNT = 4
MEMORY_LIMIT = 5
WANDER_JITTER_RADIANS = 0.25

INITIAL_NARRATION = "The scene begins..."
FALLBACK_NARRATION = "The Director seems to be having trouble..."
CLOSING_NARRATION = " The simulation has ended."


class Config:
    """Application configuration loaded from environment variables."""

    # LLM Provider Configuration
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "google")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gemini-2.5-flash")

    # API Keys
    GOOGLE_API_KEY: str | None = os.getenv("GOOGLE_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")

    # World geometry. Generated scenarios are forced onto these dimensions.
    WORLD_WIDTH: int = int(os.getenv("WORLD_WIDTH", "800"))
    WORLD_HEIGHT: int = int(os.getenv("WORLD_HEIGHT", "600"))

    # Timers
    # FRAME_RATE stands in for the display refresh: one physics tick per frame,
    # with a fixed step per tick (speed is not scaled by elapsed time).
    FRAME_RATE: int = int(os.getenv("FRAME_RATE", "60"))
    RENDER_FPS: int = int(os.getenv("RENDER_FPS", "30"))
    DIRECTOR_INTERVAL_SECONDS: float = float(os.getenv("DIRECTOR_INTERVAL_SECONDS", "8"))
    DIRECTOR_INITIAL_DELAY_SECONDS: float = float(
        os.getenv("DIRECTOR_INITIAL_DELAY_SECONDS", "1")
    )
    COUNTDOWN_INTERVAL_SECONDS: float = float(os.getenv("COUNTDOWN_INTERVAL_SECONDS", "1"))

    # Project Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    SCENARIOS_DIR: Path = PROJECT_ROOT / "examples" / "scenarios"

    # Each provider needs the matching mirascope extra in pyproject.toml
    PROVIDER_KEYS = {
        "google": "GOOGLE_API_KEY",
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
    }

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if required values are missing."""
        env_name = cls.PROVIDER_KEYS.get(cls.LLM_PROVIDER)
        if env_name is not None:
            if not getattr(cls, env_name):
                raise ValueError(
                    f"{env_name} is required when using the '{cls.LLM_PROVIDER}' provider"
                )

        if cls.WORLD_WIDTH <= 0 or cls.WORLD_HEIGHT <= 0:
            raise ValueError("WORLD_WIDTH and WORLD_HEIGHT must be positive")

        if cls.FRAME_RATE <= 0 or cls.RENDER_FPS <= 0:
            raise ValueError("FRAME_RATE and RENDER_FPS must be positive")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Inxperiments Configuration:",
            f"  LLM Provider: {cls.LLM_PROVIDER}",
            f"  LLM Model: {cls.LLM_MODEL}",
            f"  World: {cls.WORLD_WIDTH}x{cls.WORLD_HEIGHT}",
            f"  Frame Rate: {cls.FRAME_RATE} ticks/s",
            f"  Director Interval: {cls.DIRECTOR_INTERVAL_SECONDS}s",
        ]
        return "\n".join(lines)
