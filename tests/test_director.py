"""Tests for Director request building, decision merging and poll failure handling."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from inxperiments.collisions import CollisionAccumulator
from inxperiments.config import FALLBACK_NARRATION
from inxperiments.director import DirectorOrchestrator, apply_decision, build_director_request
from inxperiments.schemas import (
    Agent,
    AgentUpdate,
    Behavior,
    DirectorDecision,
    DirectorRequest,
    Item,
    Position,
    Size,
    WorldDimensions,
)
from inxperiments.world import WorldStateStore


def _agent(agent_id: int, **overrides) -> Agent:
    data = dict(
        id=agent_id,
        name=f"agent-{agent_id}",
        type="runner",
        color="#ffffff",
        position=Position(x=100 * agent_id, y=100),
        speed=2,
        radius=12,
        status="active",
        dialogue="",
    )
    data.update(overrides)
    return Agent(**data)


def _block(item_id: str, x: float = 300, y: float = 300) -> Item:
    return Item(id=item_id, color="#888888", position=Position(x=x, y=y), size=Size(width=30, height=30))


def _store() -> WorldStateStore:
    store = WorldStateStore(WorldDimensions(width=800, height=600))
    store.agents = {i: _agent(i) for i in (1, 2, 3, 4)}
    store.description = "A game of tag."
    store.narration = "The scene begins..."
    return store


def _update(agent_id: int, **overrides) -> AgentUpdate:
    data = dict(agent_id=agent_id, dialogue=f"line from {agent_id}", emote="happy", behavior=Behavior.wander())
    data.update(overrides)
    return AgentUpdate(**data)


def test_build_request_uses_reduced_agent_view_and_drained_collisions():
    store = _store()
    store.items = {"block-1": _block("block-1")}
    store.agents[1].memory = ["saw Bram"]

    request = build_director_request(store, [(1, 2)])

    assert request.scenario_description == "A game of tag."
    assert [view.id for view in request.agents] == [1, 2, 3, 4]
    assert request.agents[0].memory == ["saw Bram"]
    assert request.items[0].id == "block-1"
    assert request.collisions == [(1, 2)]
    dumped = request.agents[0].model_dump()
    assert "radius" not in dumped and "speed" not in dumped and "emote" not in dumped


def test_apply_decision_overwrites_mandatory_fields_and_keeps_unset_optionals():
    store = _store()
    store.agents[2].status = "hiding"
    store.agents[2].can_see_map = True

    decision = DirectorDecision(
        narration="Ada spots Bram.",
        agent_updates=[
            _update(1, behavior=Behavior(action="chase", target_agent_id=2), status="hunting", can_see_map=False),
            _update(2, emote=None, behavior=Behavior(action="flee", target_agent_id=1)),
        ],
    )

    apply_decision(store, decision)

    ada, bram = store.agents[1], store.agents[2]
    assert store.narration == "Ada spots Bram."
    assert ada.dialogue == "line from 1"
    assert ada.emote == "happy"
    assert ada.behavior.action == "chase" and ada.behavior.target_agent_id == 2
    assert ada.status == "hunting"
    assert ada.can_see_map is False
    assert bram.emote is None
    assert bram.status == "hiding"
    assert bram.can_see_map is True


def test_new_memory_is_appended_and_trimmed_to_five():
    store = _store()
    store.agents[1].memory = ["m1", "m2", "m3", "m4", "m5"]

    apply_decision(
        store,
        DirectorDecision(narration="...", agent_updates=[_update(1, new_memory="tagged Bram")]),
    )

    assert store.agents[1].memory == ["m2", "m3", "m4", "m5", "tagged Bram"]


def test_unknown_agent_update_is_ignored_without_affecting_others():
    store = _store()

    apply_decision(
        store,
        DirectorDecision(
            narration="Someone new?",
            agent_updates=[_update(42, new_memory="ghost"), _update(3, dialogue="hello")],
        ),
    )

    assert 42 not in store.agents
    assert store.agents[3].dialogue == "hello"


def test_removal_runs_before_updates_and_leaves_dangling_references():
    store = _store()
    store.agents[1].behavior = Behavior(action="chase", target_agent_id=2)

    apply_decision(
        store,
        DirectorDecision(
            narration="Bram is caught.",
            agent_updates=[_update(2, dialogue="noooo")],
            removed_agent_ids=[2, 77],
        ),
    )

    assert 2 not in store.agents
    assert store.agents[1].behavior.target_agent_id == 2


def test_new_items_are_appended_and_existing_ids_never_move():
    store = _store()
    store.items = {"block-1": _block("block-1", x=10, y=10)}

    apply_decision(
        store,
        DirectorDecision(
            narration="Blocks rain down.",
            new_items=[_block("block-1", x=500, y=500), _block("block-2")],
        ),
    )

    assert list(store.items) == ["block-1", "block-2"]
    assert store.items["block-1"].position == Position(x=10, y=10)


@pytest.mark.asyncio
async def test_poll_drains_collisions_and_merges():
    store = _store()
    accumulator = CollisionAccumulator()
    accumulator.record(2, 1)
    oracle = AsyncMock()
    oracle.decide.return_value = DirectorDecision(
        narration="They bumped.",
        agent_updates=[_update(1, new_memory="bumped into agent-2")],
    )
    orchestrator = DirectorOrchestrator(oracle, store, accumulator)

    merged = await orchestrator.poll(lambda: True)

    assert merged is True
    request: DirectorRequest = oracle.decide.await_args.args[0]
    assert request.collisions == [(1, 2)]
    assert len(accumulator) == 0
    assert store.narration == "They bumped."
    assert store.agents[1].memory == ["bumped into agent-2"]


@pytest.mark.asyncio
async def test_poll_is_skipped_when_not_running():
    store = _store()
    accumulator = CollisionAccumulator()
    accumulator.record(1, 2)
    oracle = AsyncMock()

    merged = await DirectorOrchestrator(oracle, store, accumulator).poll(lambda: False)

    assert merged is False
    oracle.decide.assert_not_awaited()
    assert (1, 2) in accumulator


@pytest.mark.asyncio
async def test_failed_poll_sets_fallback_and_leaves_state_untouched():
    store = _store()
    store.agents[1].memory = ["kept"]
    store.agents[1].dialogue = "still here"
    before = {agent_id: agent.model_dump() for agent_id, agent in store.agents.items()}
    oracle = AsyncMock()
    oracle.decide.side_effect = RuntimeError("The director AI failed to provide an update.")

    merged = await DirectorOrchestrator(oracle, store, CollisionAccumulator()).poll(lambda: True)

    assert merged is False
    assert store.narration == FALLBACK_NARRATION
    assert {agent_id: agent.model_dump() for agent_id, agent in store.agents.items()} == before


@pytest.mark.asyncio
async def test_malformed_response_is_treated_as_failure():
    store = _store()
    oracle = AsyncMock()
    oracle.decide.return_value = {"agent_updates": "not a list"}

    merged = await DirectorOrchestrator(oracle, store, CollisionAccumulator()).poll(lambda: True)

    assert merged is False
    assert store.narration == FALLBACK_NARRATION


@pytest.mark.asyncio
async def test_collisions_during_outstanding_call_belong_to_next_poll():
    store = _store()
    accumulator = CollisionAccumulator()
    accumulator.record(1, 2)
    release = asyncio.Event()
    seen: list[list[tuple[int, int]]] = []

    class SlowOracle:
        async def decide(self, request):
            seen.append(list(request.collisions))
            await release.wait()
            return DirectorDecision(narration="ok")

    orchestrator = DirectorOrchestrator(SlowOracle(), store, accumulator)
    task = asyncio.create_task(orchestrator.poll(lambda: True))
    await asyncio.sleep(0)

    accumulator.record(3, 4)
    release.set()
    await task

    assert seen == [[(1, 2)]]
    assert accumulator.drain() == [(3, 4)]


@pytest.mark.asyncio
async def test_stale_response_is_dropped():
    store = _store()
    running = True
    oracle = AsyncMock()

    async def decide(request):
        nonlocal running
        running = False  # run was reset while the call was outstanding
        return DirectorDecision(narration="too late", removed_agent_ids=[1])

    oracle.decide.side_effect = decide

    merged = await DirectorOrchestrator(oracle, store, CollisionAccumulator()).poll(lambda: running)

    assert merged is False
    assert store.narration == "The scene begins..."
    assert 1 in store.agents
