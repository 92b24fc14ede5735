"""
Behavior/physics tick.

Converts each agent's behavior into one fixed-size step, then separates
colliding agents and clamps everyone back inside the world.

Step size is a fixed magnitude per call (``agent.speed``), not a rate scaled by
elapsed time, so simulated speed follows the tick cadence.

Target resolution:
- chase / flee: the referenced agent's position; stop distance adds its radius
- interact: the referenced item's position; stop distance adds half its width
- moveTo: the literal point; stop distance is the agent's own radius
- a target that doesn't resolve (removed or unknown id) means no movement this
  tick, and the behavior is left as-is
"""

import math
import random
from typing import Optional, Tuple

from .collisions import CollisionAccumulator, clamp_to_bounds, resolve_collisions
from .config import WANDER_JITTER_RADIANS
from .schemas import Agent, Behavior, Position
from .world import WorldStateStore


def _resolve_target(agent: Agent, store: WorldStateStore) -> Optional[Tuple[Position, float]]:
    """Return (target point, stop distance) or None when there is no usable target."""
    behavior = agent.behavior
    if behavior.action in ("chase", "flee"):
        target_agent = store.get_agent(behavior.target_agent_id)
        if target_agent is None:
            return None
        return target_agent.position, agent.radius + target_agent.radius
    if behavior.action == "interact":
        target_item = store.get_item(behavior.target_item_id)
        if target_item is None:
            return None
        return target_item.position, agent.radius + target_item.size.width / 2
    if behavior.action == "moveTo":
        if behavior.target_position is None:
            return None
        return behavior.target_position, agent.radius
    return None


def _wander_step(agent: Agent, rng: random.Random) -> Tuple[float, float]:
    angle = agent._wander_angle + rng.uniform(-WANDER_JITTER_RADIANS, WANDER_JITTER_RADIANS)
    agent._wander_angle = angle
    return math.cos(angle) * agent.speed, math.sin(angle) * agent.speed


def step_agent(agent: Agent, store: WorldStateStore, rng: random.Random) -> None:
    """Move one agent by a single step according to its behavior."""
    if agent.behavior.action == "wander":
        dx, dy = _wander_step(agent, rng)
        agent.position.x += dx
        agent.position.y += dy
        return

    resolved = _resolve_target(agent, store)
    if resolved is None:
        # Dangling or missing target: wait in place for an external update.
        return

    target, stop_distance = resolved
    dx = target.x - agent.position.x
    dy = target.y - agent.position.y
    if math.hypot(dx, dy) > stop_distance:
        angle = math.atan2(dy, dx)
        direction = -1 if agent.behavior.action == "flee" else 1
        agent.position.x += math.cos(angle) * agent.speed * direction
        agent.position.y += math.sin(angle) * agent.speed * direction
    elif agent.behavior.action in ("moveTo", "interact"):
        # Arrived: resume idle roaming. chase/flee just hold position.
        agent.behavior = Behavior.wander()


def run_tick(store: WorldStateStore, accumulator: CollisionAccumulator, rng: random.Random) -> None:
    """Advance the world by one tick: move, separate, clamp."""
    agents = list(store.agents.values())
    for agent in agents:
        step_agent(agent, store, rng)
    resolve_collisions(agents, accumulator)
    clamp_to_bounds(agents, store.dimensions.width, store.dimensions.height)
