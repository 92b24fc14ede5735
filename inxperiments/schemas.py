"""
Pydantic schemas for the Inxperiments simulation engine.

All data structures exchanged between the engine, the Director and the
presentation layer are defined here.

Design Philosophy:
- Entities are plain mutable models; the engine mutates them in place each tick
- Cross-references (chase/flee/interact targets) are ids, never object links,
  so a removed referent simply stops resolving
- Director payloads are validated on the way in, so a malformed LLM response
  fails at the boundary instead of corrupting live state
"""

from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from .config import MEMORY_LIMIT


# ============================================================================
# Geometry
# ============================================================================


class Position(BaseModel):
    """A point in world coordinates (origin top-left, y grows downward)."""

    x: float
    y: float


class Size(BaseModel):
    """Rectangular footprint of an item."""

    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)


class WorldDimensions(BaseModel):
    """Width and height of the bounded world rectangle."""

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


# ============================================================================
# Agents and Items
# ============================================================================

BehaviorAction = Literal["chase", "flee", "wander", "moveTo", "interact"]
Emote = Optional[Literal["happy", "sad", "thinking", "surprised"]]


class Behavior(BaseModel):
    """Tagged movement intent for one agent.

    Only one target field is meaningful per action:
    - chase / flee -> target_agent_id
    - moveTo -> target_position
    - interact -> target_item_id
    - wander -> none

    Fields that don't belong to the action are cleared during validation, so an
    LLM that fills every slot can't leave a stale target behind.
    """

    action: BehaviorAction = Field(..., description="'chase', 'flee', 'wander', 'moveTo', or 'interact'")
    target_agent_id: Optional[int] = Field(None, description="Agent id for chase/flee")
    target_item_id: Optional[str] = Field(None, description="Item id for interact")
    target_position: Optional[Position] = Field(None, description="Point for moveTo")

    @model_validator(mode="after")
    def _clear_unused_targets(self) -> "Behavior":
        if self.action not in ("chase", "flee"):
            self.target_agent_id = None
        if self.action != "interact":
            self.target_item_id = None
        if self.action != "moveTo":
            self.target_position = None
        return self

    @classmethod
    def wander(cls) -> "Behavior":
        return cls(action="wander")


class Agent(BaseModel):
    """A mobile, behavior-driven entity.

    Identity is the integer ``id``; ids are never reused within a simulation.
    ``type`` and ``status`` are free-form tags that only the Director interprets.
    """

    id: int
    name: str
    type: str = Field(..., description="Role or personality (e.g., 'leader', 'seeker')")
    color: str = Field(..., description="Hex color code")
    position: Position
    status: str = Field("active", description="One-word status such as 'active' or 'hiding'")
    speed: float = Field(..., ge=0, description="Step magnitude per tick")
    radius: float = Field(..., gt=0, description="Body size used for collisions and bounds")
    dialogue: str = ""
    emote: Emote = None
    can_see_map: bool = True
    # Oldest first, at most MEMORY_LIMIT entries
    memory: List[str] = Field(default_factory=list)
    behavior: Behavior = Field(default_factory=Behavior.wander)

    # Persistent wander heading in radians. Engine-internal; never serialized.
    _wander_angle: float = PrivateAttr(default=0.0)

    @field_validator("memory")
    @classmethod
    def _keep_recent_memories(cls, value: List[str]) -> List[str]:
        return value[-MEMORY_LIMIT:]

    def remember(self, line: str) -> None:
        """Append a memory line, evicting the oldest entries past the limit."""
        self.memory.append(line)
        if len(self.memory) > MEMORY_LIMIT:
            del self.memory[: len(self.memory) - MEMORY_LIMIT]


class Item(BaseModel):
    """A static placed object. Items never move once placed."""

    id: str = Field(..., description='Unique identifier (e.g., "block-1")')
    type: str = Field("block", description="Item kind; currently only 'block'")
    color: str = Field(..., description="Hex color code")
    position: Position
    size: Size


# ============================================================================
# Scenario
# ============================================================================


class ScenarioConfig(BaseModel):
    """Initial scene produced once by the scene generator.

    Consumed exactly once by ``SimulationController.start``; the engine keeps
    the config read-only for description/duration display and seeds live
    state from a deep copy.
    """

    description: str
    duration: int = Field(..., gt=0, description="Simulation length in whole seconds")
    world: WorldDimensions
    agents: List[Agent]
    items: List[Item] = Field(default_factory=list)


# ============================================================================
# Director
# ============================================================================


class AgentUpdate(BaseModel):
    """Director instructions for a single agent.

    dialogue, emote and behavior always overwrite. status, can_see_map and
    new_memory are only applied when supplied.
    """

    agent_id: int
    dialogue: str
    emote: Emote = Field(..., description="'happy', 'sad', 'thinking', 'surprised' or null")
    behavior: Behavior
    status: Optional[str] = None
    can_see_map: Optional[bool] = None
    new_memory: Optional[str] = None


class DirectorDecision(BaseModel):
    """One Director response, merged into live state by the orchestrator."""

    narration: str = Field(..., description="Brief one-sentence narration of the moment")
    agent_updates: List[AgentUpdate] = Field(default_factory=list)
    new_items: Optional[List[Item]] = None
    removed_agent_ids: Optional[List[int]] = None


class AgentView(BaseModel):
    """Reduced agent view sent to the Director (no speed, radius or emote)."""

    id: int
    name: str
    type: str
    position: Position
    status: str
    dialogue: str
    can_see_map: bool
    memory: List[str]

    @classmethod
    def from_agent(cls, agent: Agent) -> "AgentView":
        return cls(
            id=agent.id,
            name=agent.name,
            type=agent.type,
            position=agent.position.model_copy(),
            status=agent.status,
            dialogue=agent.dialogue,
            can_see_map=agent.can_see_map,
            memory=list(agent.memory),
        )


class DirectorRequest(BaseModel):
    """Everything the Director sees on one poll."""

    scenario_description: str
    agents: List[AgentView]
    items: List[Item]
    collisions: List[Tuple[int, int]] = Field(
        default_factory=list,
        description="Unordered agent-id pairs that overlapped since the previous poll",
    )


# ============================================================================
# Lifecycle / presentation
# ============================================================================


class SimulationStatus(str, Enum):
    """Lifecycle states.

    PAUSED is reserved: no transition reaches it.
    """

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    ENDED = "ended"


class WorldSnapshot(BaseModel):
    """Read-only copy of live state for rendering."""

    model_config = {"frozen": True}

    status: SimulationStatus
    narration: str
    time_left: int
    description: Optional[str] = None
    duration: int = 0
    world: Optional[WorldDimensions] = None
    agents: List[Agent] = Field(default_factory=list)
    items: List[Item] = Field(default_factory=list)
