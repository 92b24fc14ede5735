"""
Scenario intake: validation/normalization of generated scenes and JSON loading.

Whatever produced a ScenarioConfig (LLM scene generator or a JSON file), the
engine only accepts it after normalize_scenario():
- exactly AGENT_COUNT agents with unique ids, otherwise ScenarioValidationError
- world dimensions forced to the configured constants
- every agent's memory emptied

Scenario file structure:
```json
{
  "description": "A game of tag in a walled garden.",
  "duration": 60,
  "agents": [
    {"id": 1, "name": "Ada", "type": "it", "color": "#C952E7",
     "position": {"x": 100, "y": 100}, "speed": 2.5, "radius": 12}
  ],
  "items": []
}
```

Usage:
    loader = ScenarioLoader()
    config = loader.load("playground")
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError

from .config import AGENT_COUNT, Config
from .schemas import ScenarioConfig, WorldDimensions


class ScenarioValidationError(ValueError):
    """Raised when a scenario breaks the engine's start-up post-conditions."""


class SceneGenerator(Protocol):
    """Turns a free-text prompt into a ScenarioConfig."""

    async def generate(self, prompt: str) -> ScenarioConfig:
        ...


def normalize_scenario(
    config: ScenarioConfig,
    *,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> ScenarioConfig:
    """Validate and normalize a scenario before it is allowed to start.

    Returns a normalized deep copy; the input is left untouched.

    Raises:
        ScenarioValidationError: Wrong agent count or duplicate agent ids
    """
    if len(config.agents) != AGENT_COUNT:
        raise ScenarioValidationError(
            f"Generated config does not have exactly {AGENT_COUNT} agents "
            f"(got {len(config.agents)})."
        )

    ids = [agent.id for agent in config.agents]
    if len(set(ids)) != len(ids):
        raise ScenarioValidationError(f"Agent ids must be unique, got {ids}.")

    normalized = config.model_copy(deep=True)
    normalized.world = WorldDimensions(
        width=width or Config.WORLD_WIDTH,
        height=height or Config.WORLD_HEIGHT,
    )
    for agent in normalized.agents:
        agent.memory = []
    return normalized


class ScenarioLoader:
    """Load and validate scenarios from JSON files.

    Directory structure:
    - Default: {PROJECT_ROOT}/examples/scenarios/
    - Override via constructor: ScenarioLoader(Path("/custom/scenarios"))
    - Scenario files: {scenario_name}.json (e.g., "playground.json")

    The "world" block is optional in files because it is overwritten during
    normalization anyway.
    """

    def __init__(self, scenarios_dir: Optional[Path] = None):
        self.scenarios_dir = scenarios_dir or Config.SCENARIOS_DIR

    def load(self, scenario_name: str) -> ScenarioConfig:
        """Load, validate and normalize a scenario by name.

        Raises:
            FileNotFoundError: If the scenario file doesn't exist
            ScenarioValidationError: If the file is malformed or breaks the
                start-up post-conditions
            json.JSONDecodeError: If the file contains invalid JSON
        """
        scenario_path = self.scenarios_dir / f"{scenario_name}.json"

        if not scenario_path.exists():
            raise FileNotFoundError(
                f"Scenario '{scenario_name}' not found at {scenario_path}"
            )

        data = json.loads(scenario_path.read_text())
        return self.parse(data)

    def parse(self, data: Dict[str, Any]) -> ScenarioConfig:
        required = ["description", "duration", "agents"]
        missing = [field for field in required if field not in data]
        if missing:
            raise ScenarioValidationError(f"Scenario missing required fields: {missing}")

        payload = dict(data)
        payload.setdefault("world", {"width": Config.WORLD_WIDTH, "height": Config.WORLD_HEIGHT})
        try:
            config = ScenarioConfig.model_validate(payload)
        except ValidationError as exc:
            raise ScenarioValidationError(f"Scenario failed validation: {exc}") from exc

        return normalize_scenario(config)

    def list_scenarios(self) -> List[str]:
        """List available scenario names (without .json extension)."""
        if not self.scenarios_dir.exists():
            return []

        return sorted(
            f.stem for f in self.scenarios_dir.glob("*.json")
            if not f.name.startswith("_")
        )


def load_scenario(scenario_name: str) -> ScenarioConfig:
    """Convenience function to load a scenario from the default directory."""
    return ScenarioLoader().load(scenario_name)
