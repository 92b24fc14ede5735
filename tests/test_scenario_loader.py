"""Tests for scenario normalization and loading via ScenarioLoader."""

import json
from pathlib import Path

import pytest

from inxperiments.config import AGENT_COUNT, Config
from inxperiments.scenario import ScenarioLoader, ScenarioValidationError, normalize_scenario
from inxperiments.schemas import Agent, Position, ScenarioConfig, WorldDimensions

SCENARIOS_DIR = Path(__file__).resolve().parent.parent / "examples" / "scenarios"


def _config(agent_ids=(1, 2, 3, 4)) -> ScenarioConfig:
    return ScenarioConfig(
        description="Predators and prey.",
        duration=45,
        world=WorldDimensions(width=10, height=10),
        agents=[
            Agent(
                id=agent_id,
                name=f"agent-{agent_id}",
                type="prey",
                color="#00ff00",
                position=Position(x=50, y=50),
                speed=1.5,
                radius=10,
                memory=["should be wiped"],
            )
            for agent_id in agent_ids
        ],
    )


def test_normalize_forces_world_and_empties_memory():
    original = _config()

    normalized = normalize_scenario(original, width=800, height=600)

    assert normalized.world == WorldDimensions(width=800, height=600)
    assert all(agent.memory == [] for agent in normalized.agents)
    assert original.world == WorldDimensions(width=10, height=10)
    assert original.agents[0].memory == ["should be wiped"]


def test_normalize_defaults_to_configured_world():
    normalized = normalize_scenario(_config())

    assert normalized.world.width == Config.WORLD_WIDTH
    assert normalized.world.height == Config.WORLD_HEIGHT


@pytest.mark.parametrize("agent_ids", [(1, 2, 3), (1, 2, 3, 4, 5)])
def test_normalize_rejects_wrong_agent_count(agent_ids):
    with pytest.raises(ScenarioValidationError, match=f"exactly {AGENT_COUNT} agents"):
        normalize_scenario(_config(agent_ids))


def test_normalize_rejects_duplicate_ids():
    with pytest.raises(ScenarioValidationError, match="unique"):
        normalize_scenario(_config((1, 2, 2, 4)))


def test_loader_reads_bundled_playground():
    loader = ScenarioLoader(scenarios_dir=SCENARIOS_DIR)

    config = loader.load("playground")

    assert "playground" in loader.list_scenarios()
    assert len(config.agents) == AGENT_COUNT
    assert config.world.width == Config.WORLD_WIDTH
    assert config.items[0].id == "block-1"
    seeker = config.agents[0]
    assert seeker.behavior.action == "chase"
    assert seeker.behavior.target_agent_id == 2


def test_loader_reports_missing_fields(tmp_path):
    (tmp_path / "broken.json").write_text(json.dumps({"description": "no agents"}))
    loader = ScenarioLoader(scenarios_dir=tmp_path)

    with pytest.raises(ScenarioValidationError, match="missing required fields"):
        loader.load("broken")


def test_loader_wraps_schema_errors(tmp_path):
    data = {
        "description": "bad speed",
        "duration": 30,
        "agents": [{"id": 1, "name": "x"}],
    }
    (tmp_path / "bad.json").write_text(json.dumps(data))

    with pytest.raises(ScenarioValidationError, match="failed validation"):
        ScenarioLoader(scenarios_dir=tmp_path).load("bad")


def test_loader_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ScenarioLoader(scenarios_dir=tmp_path).load("nope")
