"""
Director orchestration: package state for the oracle, await its decision, and
merge it back into live state.

The await on the oracle is the only suspension point in the engine. Ticks and
countdown steps keep running while a poll is outstanding, so a decision may
land against state that has moved on:

- Collision evidence is drained before the await; anything recorded while the
  call is in flight belongs to the next poll.
- Updates are matched to live agents by id. An id that no longer resolves is
  skipped without touching the rest of the decision.
- The caller-supplied ``is_current`` check runs after the await. If the run was
  reset or ended in the meantime, the response is dropped.
"""

from typing import Callable, List, Protocol

from .collisions import CollisionAccumulator, CollisionPair
from .config import FALLBACK_NARRATION
from .logging_utils import log_engine, log_error, log_info, log_llm, log_success
from .schemas import AgentView, DirectorDecision, DirectorRequest
from .world import WorldStateStore


class DirectorOracle(Protocol):
    """Black-box decision maker consulted on every poll."""

    async def decide(self, request: DirectorRequest) -> DirectorDecision:
        ...


def build_director_request(
    store: WorldStateStore, collisions: List[CollisionPair]
) -> DirectorRequest:
    return DirectorRequest(
        scenario_description=store.description or "",
        agents=[AgentView.from_agent(agent) for agent in store.agents.values()],
        items=[item.model_copy(deep=True) for item in store.items.values()],
        collisions=list(collisions),
    )


def apply_decision(store: WorldStateStore, decision: DirectorDecision) -> None:
    """Merge a Director decision into live state.

    Order is fixed: narration, removals, new items, per-agent updates. Behaviors
    that point at a removed agent are left alone; the tick treats them as
    having no target.
    """
    store.narration = decision.narration

    if decision.removed_agent_ids:
        removed = store.remove_agents(decision.removed_agent_ids)
        if removed:
            log_engine(f"[Director] Removed agents: {removed}")

    if decision.new_items:
        added = store.add_items(decision.new_items)
        if added:
            log_engine(f"[Director] Placed items: {added}")

    for update in decision.agent_updates:
        agent = store.get_agent(update.agent_id)
        if agent is None:
            continue
        agent.dialogue = update.dialogue
        agent.emote = update.emote
        agent.behavior = update.behavior.model_copy(deep=True)
        if update.status is not None:
            agent.status = update.status
        if update.can_see_map is not None:
            agent.can_see_map = update.can_see_map
        if update.new_memory:
            agent.remember(update.new_memory)


class DirectorOrchestrator:
    """Runs Director polls against a store and collision accumulator."""

    def __init__(
        self,
        oracle: DirectorOracle,
        store: WorldStateStore,
        accumulator: CollisionAccumulator,
    ):
        self.oracle = oracle
        self.store = store
        self.accumulator = accumulator

    async def poll(self, is_current: Callable[[], bool]) -> bool:
        """Run one Director round trip.

        Args:
            is_current: Returns True while the run that started this poll is
                still running. Checked before starting and again after the
                oracle responds.

        Returns:
            True if a decision was merged.
        """
        if not is_current():
            return False

        collisions = self.accumulator.drain()
        request = build_director_request(self.store, collisions)
        log_llm(
            f"[Director] Polling with {len(request.agents)} agents, "
            f"{len(request.items)} items, {len(collisions)} collisions..."
        )

        try:
            decision = DirectorDecision.model_validate(await self.oracle.decide(request))
        except Exception as exc:
            if is_current():
                log_error(f"[Director] Update failed: {exc}")
                self.store.narration = FALLBACK_NARRATION
            return False

        if not is_current():
            log_info("[Director] Dropping response for a run that is no longer active")
            return False

        apply_decision(self.store, decision)
        log_success(f"[Director] {decision.narration}")
        return True
