"""
Inxperiments - a Director-driven 2D multi-agent sandbox.

Describe a scene, and an LLM Director brings it to life: a small cast of agents
chases, flees, wanders and collides in a bounded world while the Director
periodically rewrites their intent, dialogue and memories.

The engine owns all mutable state. The Director, the scene generator and the
presentation layer are injected collaborators.
"""

__version__ = "0.1.0"

# Lifecycle
from .lifecycle import SimulationController, SimulationStateError

# Engine components
from .world import WorldStateStore
from .collisions import (
    CollisionAccumulator,
    clamp_to_bounds,
    pair_key,
    resolve_collisions,
)
from .physics import run_tick, step_agent
from .director import (
    DirectorOracle,
    DirectorOrchestrator,
    apply_decision,
    build_director_request,
)

# Scenario helpers
from .scenario import (
    SceneGenerator,
    ScenarioLoader,
    ScenarioValidationError,
    load_scenario,
    normalize_scenario,
)

# LLM-backed collaborators
from .llm_calls import (
    DirectorUnavailableError,
    LLMDirector,
    LLMSceneGenerator,
    SceneGenerationError,
)

# Core schemas
from .schemas import (
    Agent,
    AgentUpdate,
    AgentView,
    Behavior,
    DirectorDecision,
    DirectorRequest,
    Item,
    Position,
    ScenarioConfig,
    SimulationStatus,
    Size,
    WorldDimensions,
    WorldSnapshot,
)

__all__ = [
    # Lifecycle
    "SimulationController",
    "SimulationStateError",
    # Engine
    "WorldStateStore",
    "CollisionAccumulator",
    "clamp_to_bounds",
    "pair_key",
    "resolve_collisions",
    "run_tick",
    "step_agent",
    "DirectorOracle",
    "DirectorOrchestrator",
    "apply_decision",
    "build_director_request",
    # Scenario helpers
    "SceneGenerator",
    "ScenarioLoader",
    "ScenarioValidationError",
    "load_scenario",
    "normalize_scenario",
    # LLM collaborators
    "DirectorUnavailableError",
    "LLMDirector",
    "LLMSceneGenerator",
    "SceneGenerationError",
    # Schemas
    "Agent",
    "AgentUpdate",
    "AgentView",
    "Behavior",
    "DirectorDecision",
    "DirectorRequest",
    "Item",
    "Position",
    "ScenarioConfig",
    "SimulationStatus",
    "Size",
    "WorldDimensions",
    "WorldSnapshot",
]
