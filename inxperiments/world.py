"""
World State Store: the single mutable source of truth for a running simulation.

Agents and items live in id-keyed dicts so that every cross-reference lookup
(chase target, interact target, Director update) is a dict lookup that can
legitimately come back empty. Callers must treat ``None`` as "no such entity"
rather than as an error.
"""

from typing import Dict, Iterable, List, Optional

from .collisions import clamp_to_bounds
from .schemas import (
    Agent,
    Item,
    ScenarioConfig,
    SimulationStatus,
    WorldDimensions,
    WorldSnapshot,
)


class WorldStateStore:
    """Owned, in-place mutable container for agents, items and scene metadata."""

    def __init__(self, dimensions: WorldDimensions):
        self.dimensions = dimensions
        self.agents: Dict[int, Agent] = {}
        self.items: Dict[str, Item] = {}
        self.description: Optional[str] = None
        self.duration: int = 0
        self.narration: str = ""
        self.time_left: int = 0

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def populate(self, config: ScenarioConfig) -> None:
        """Seed live state from a scenario config.

        Agents and items are deep-copied so the caller's config is never
        aliased with state the tick mutates.
        """
        self.clear()
        self.dimensions = config.world.model_copy()
        for agent in config.agents:
            self.agents[agent.id] = agent.model_copy(deep=True)
        for item in config.items:
            self.items[item.id] = item.model_copy(deep=True)
        self.description = config.description
        self.duration = config.duration
        self.time_left = config.duration
        clamp_to_bounds(self.agents.values(), self.dimensions.width, self.dimensions.height)

    def clear(self) -> None:
        self.agents.clear()
        self.items.clear()
        self.description = None
        self.duration = 0
        self.narration = ""
        self.time_left = 0

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_agent(self, agent_id: Optional[int]) -> Optional[Agent]:
        if agent_id is None:
            return None
        return self.agents.get(agent_id)

    def get_item(self, item_id: Optional[str]) -> Optional[Item]:
        if item_id is None:
            return None
        return self.items.get(item_id)

    # ------------------------------------------------------------------
    # Director-driven mutations
    # ------------------------------------------------------------------

    def remove_agents(self, agent_ids: Iterable[int]) -> List[int]:
        """Remove agents permanently. Unknown ids are ignored.

        Returns:
            The ids that were actually removed, in request order.
        """
        removed: List[int] = []
        for agent_id in agent_ids:
            if self.agents.pop(agent_id, None) is not None:
                removed.append(agent_id)
        return removed

    def add_items(self, items: Iterable[Item]) -> List[str]:
        """Place new items. An id that is already placed is left untouched.

        Returns:
            The ids that were added.
        """
        added: List[str] = []
        for item in items:
            if item.id in self.items:
                continue
            self.items[item.id] = item.model_copy(deep=True)
            added.append(item.id)
        return added

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def snapshot(self, status: SimulationStatus) -> WorldSnapshot:
        """Export an isolated copy of current state for the presentation layer."""
        return WorldSnapshot(
            status=status,
            narration=self.narration,
            time_left=self.time_left,
            description=self.description,
            duration=self.duration,
            world=self.dimensions.model_copy(),
            agents=[agent.model_copy(deep=True) for agent in self.agents.values()],
            items=[item.model_copy(deep=True) for item in self.items.values()],
        )
