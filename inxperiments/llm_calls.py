"""
LLM-backed scene generator and Director.

This module provides:
- Initial scene generation from a free-text prompt (generate_scene)
- Director decisions from a DirectorRequest (get_director_decision)
- LLMSceneGenerator / LLMDirector adapters that plug those calls into the
  engine's SceneGenerator and DirectorOracle protocols

All functions are stateless and accept provider/model as parameters.
"""

from .config import AGENT_COUNT, Config
from .llm_utils import call_llm_with_retries
from .logging_utils import log_debug
from .schemas import DirectorDecision, DirectorRequest, ScenarioConfig


class SceneGenerationError(Exception):
    """Raised when the scene generator can't produce a usable scenario."""


class DirectorUnavailableError(Exception):
    """Raised when an LLM Director is built without a provider or model."""


SCENE_SYSTEM_PROMPT = """You are an AI assistant that designs 2D multi-agent simulations. Based on the user's request, generate a JSON object defining the initial scene.
- The simulation must have exactly {agent_count} agents with integer ids 1..{agent_count}. Give them distinct names, personalities/types, and colors.
- The simulation takes place in a {width}x{height} unit space. All agents and items must start inside these boundaries.
- Set a reasonable 'duration' in seconds between 30 and 120 (e.g., 60 seconds for a game of hide and seek).
- Agent speeds should be between 1 and 3. Radius (which controls character size) should be between 10 and 16.
- Set initial behavior to 'wander', initial emote to null, 'can_see_map' to true, and 'memory' to an empty list for all agents.
- If the prompt implies items are needed (e.g., building), add them to 'items'. Otherwise 'items' should be empty.
"""

DIRECTOR_SYSTEM_PROMPT = """You are the director of a 2D AI simulation. The scenario is: "{description}".

Your Directives:
1. CRITICAL: Handle Collisions. You MUST react to collisions based on agent types.
   - Example: If a 'predator' collides with a 'prey', remove the prey by adding its id to 'removed_agent_ids' and give the predator a memory of the event.
   - Example: If a 'seeker' collides with a 'hider', update the hider's status to 'found' and change their behavior.
   - Example: If friends collide, they might exchange dialogue.
2. Update Agent State. For every agent that is NOT removed, provide an entry in 'agent_updates'.
   - Use an agent's 'memory' to inform their next action.
   - Add a 'new_memory' if a significant event occurred.
   - Assign a logical behavior: 'chase' or 'flee' (set target_agent_id), 'moveTo' (set target_position), 'interact' (set target_item_id), or 'wander'.
   - Optionally update 'status', 'can_see_map', 'dialogue' and 'emote' ('happy', 'sad', 'thinking', 'surprised' or null).
3. Narrate. Provide a brief, one-sentence 'narration' of the current moment.
4. Manage World. You can add 'new_items' or use 'removed_agent_ids' to control the simulation.
"""


async def generate_scene(
    prompt: str,
    llm_provider: str,
    llm_model: str,
    *,
    width: int | None = None,
    height: int | None = None,
) -> ScenarioConfig:
    """
    Generate an initial scene from a free-text scenario prompt.

    Args:
        prompt: User's scenario description (e.g., "a game of tag in a park")
        llm_provider: LLM provider name (e.g., "google", "openai")
        llm_model: Model identifier (e.g., "gemini-2.5-flash")

    Returns:
        Unnormalized ScenarioConfig; run it through normalize_scenario()

    Raises:
        SceneGenerationError: If the LLM call fails or never validates
    """
    system_prompt = SCENE_SYSTEM_PROMPT.format(
        agent_count=AGENT_COUNT,
        width=width or Config.WORLD_WIDTH,
        height=height or Config.WORLD_HEIGHT,
    )
    user_prompt = f"""
The user prompt is: "{prompt}"

Generate the initial simulation scene. Output JSON matching the ScenarioConfig schema.
"""
    try:
        return await call_llm_with_retries(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            llm_provider=llm_provider,
            llm_model=llm_model,
            response_model=ScenarioConfig,
        )
    except Exception as exc:
        raise SceneGenerationError(
            "Failed to generate a valid simulation from the prompt. "
            "Please try a different scenario."
        ) from exc


async def get_director_decision(
    request: DirectorRequest,
    llm_provider: str,
    llm_model: str,
) -> DirectorDecision:
    """
    Ask the Director LLM for its next decision.

    Args:
        request: Reduced world view plus collisions since the previous poll
        llm_provider: LLM provider name
        llm_model: Model identifier

    Returns:
        Validated DirectorDecision

    Raises:
        Exception: If the LLM call fails or never validates
    """
    system_prompt = DIRECTOR_SYSTEM_PROMPT.format(description=request.scenario_description)
    agents_str = "[" + ",\n".join(a.model_dump_json(indent=2) for a in request.agents) + "]"
    items_str = "[" + ",\n".join(i.model_dump_json(indent=2) for i in request.items) + "]"
    collisions_str = ", ".join(f"[{a}, {b}]" for a, b in request.collisions) or "none"

    user_prompt = f"""
Current State:
- Agents: {agents_str}
- Items: {items_str}
- Recent Collisions: {collisions_str}

Generate the director's update. Output JSON matching the DirectorDecision schema.
"""

    log_debug("DEBUG_DIRECTOR", "Request", user_prompt)

    decision = await call_llm_with_retries(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        llm_provider=llm_provider,
        llm_model=llm_model,
        response_model=DirectorDecision,
    )

    log_debug("DEBUG_DIRECTOR", "Response", decision.model_dump_json(indent=2))

    return decision


class LLMSceneGenerator:
    """SceneGenerator backed by generate_scene()."""

    def __init__(self, llm_provider: str | None = None, llm_model: str | None = None):
        self.llm_provider = llm_provider or Config.LLM_PROVIDER
        self.llm_model = llm_model or Config.LLM_MODEL

    async def generate(self, prompt: str) -> ScenarioConfig:
        return await generate_scene(prompt, self.llm_provider, self.llm_model)


class LLMDirector:
    """DirectorOracle backed by get_director_decision()."""

    def __init__(self, llm_provider: str | None = None, llm_model: str | None = None):
        self.llm_provider = llm_provider or Config.LLM_PROVIDER
        self.llm_model = llm_model or Config.LLM_MODEL
        if not self.llm_provider or not self.llm_model:
            raise DirectorUnavailableError(
                "LLM Director requires a provider and model. "
                "Set LLM_PROVIDER and LLM_MODEL environment variables."
            )

    async def decide(self, request: DirectorRequest) -> DirectorDecision:
        return await get_director_decision(request, self.llm_provider, self.llm_model)
