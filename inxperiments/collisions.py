"""Pairwise collision detection, separation and boundary clamping.

Collision handling here is positional only: there is no mass or momentum. Each
overlapping pair is pushed apart symmetrically by half the overlap, once per
tick. Three or more mutually overlapping bodies may still overlap slightly after
a pass; there is no convergence loop.

The detector is also the only producer of collision evidence. Every overlapping
pair is recorded into a ``CollisionAccumulator`` which the Director drains on
each poll.
"""

import math
from typing import Iterable, List, Set, Tuple

from .schemas import Agent

CollisionPair = Tuple[int, int]


def pair_key(agent_a: int, agent_b: int) -> CollisionPair:
    """Return the order-independent key for an agent pair."""
    return (agent_a, agent_b) if agent_a <= agent_b else (agent_b, agent_a)


class CollisionAccumulator:
    """Deduplicated set of agent-id pairs observed overlapping since the last drain."""

    def __init__(self) -> None:
        self._pairs: Set[CollisionPair] = set()

    def record(self, agent_a: int, agent_b: int) -> None:
        self._pairs.add(pair_key(agent_a, agent_b))

    def drain(self) -> List[CollisionPair]:
        """Return every recorded pair and clear the set in the same step.

        Pairs recorded after this call belong to the next interval.
        """
        pairs, self._pairs = self._pairs, set()
        return sorted(pairs)

    def clear(self) -> None:
        self._pairs.clear()

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return pair_key(*pair) in self._pairs


def resolve_collisions(agents: List[Agent], accumulator: CollisionAccumulator) -> int:
    """Separate overlapping agents in a single pass over every unordered pair.

    Args:
        agents: Live agents, in iteration order
        accumulator: Receives every overlapping pair

    Returns:
        Number of overlapping pairs found this pass
    """
    overlaps = 0
    for i in range(len(agents)):
        for j in range(i + 1, len(agents)):
            agent_a = agents[i]
            agent_b = agents[j]
            dx = agent_b.position.x - agent_a.position.x
            dy = agent_b.position.y - agent_a.position.y
            distance = math.hypot(dx, dy)
            min_distance = agent_a.radius + agent_b.radius
            if distance >= min_distance:
                continue

            overlaps += 1
            accumulator.record(agent_a.id, agent_b.id)

            # Coincident centers give atan2(0, 0) == 0: push apart along x.
            half_overlap = (min_distance - distance) / 2
            angle = math.atan2(dy, dx)
            move_x = half_overlap * math.cos(angle)
            move_y = half_overlap * math.sin(angle)
            agent_a.position.x -= move_x
            agent_a.position.y -= move_y
            agent_b.position.x += move_x
            agent_b.position.y += move_y
    return overlaps


def clamp_to_bounds(agents: Iterable[Agent], width: float, height: float) -> None:
    """Clip each agent into ``[r, width - r] x [r, height - r]``.

    Hard axis-aligned clip, no bounce.
    """
    for agent in agents:
        radius = agent.radius
        agent.position.x = max(radius, min(width - radius, agent.position.x))
        agent.position.y = max(radius, min(height - radius, agent.position.y))
