"""
Headless Run - Director-driven sandbox in the terminal
======================================================

WHAT THIS SHOWS:
- Loading a JSON scenario (or generating one from a prompt)
- The LLM Director re-directing agents every few seconds
- Reading throttled snapshots instead of touching live state

RUN:
    uv run python -m examples.headless.run
    uv run python -m examples.headless.run --prompt "predators hunting prey in a meadow"

Requires LLM_PROVIDER / LLM_MODEL and the matching API key (see .env).
"""

import argparse
import asyncio
import time

from inxperiments import (
    LLMDirector,
    LLMSceneGenerator,
    ScenarioLoader,
    SimulationController,
    WorldSnapshot,
)
from inxperiments.config import Config


class ConsoleView:
    """Prints at most one summary line block per ``period`` seconds."""

    def __init__(self, period: float = 2.0):
        self.period = period
        self._last_printed = 0.0
        self._last_narration = ""

    def __call__(self, snapshot: WorldSnapshot) -> None:
        now = time.monotonic()
        if snapshot.narration != self._last_narration:
            self._last_narration = snapshot.narration
            print(f"\n  Narration: {snapshot.narration}")
        if now - self._last_printed < self.period and snapshot.status.value == "running":
            return
        self._last_printed = now
        print(f"  [{snapshot.status.value}] {snapshot.time_left}s left")
        for agent in snapshot.agents:
            target = agent.behavior.target_agent_id or agent.behavior.target_item_id or ""
            print(
                f"    {agent.name:<8} ({agent.position.x:6.1f}, {agent.position.y:6.1f}) "
                f"{agent.behavior.action:<8} {target!s:<8} {agent.status:<8} {agent.dialogue}"
            )


async def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--scenario", default="playground", help="Scenario JSON name")
    parser.add_argument("--prompt", default=None, help="Generate the scene from a prompt instead")
    args = parser.parse_args()

    Config.validate()
    print(Config.display())

    controller = SimulationController(
        director=LLMDirector(),
        scene_generator=LLMSceneGenerator(),
        snapshot_listeners=[ConsoleView()],
    )

    if args.prompt:
        await controller.simulate(args.prompt)
    else:
        controller.start(ScenarioLoader().load(args.scenario))

    await controller.wait_until_ended()
    print(f"\nFinal narration: {controller.narration}")


if __name__ == "__main__":
    asyncio.run(main())
