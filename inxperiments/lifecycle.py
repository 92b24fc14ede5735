"""
Simulation lifecycle controller.

Owns the World State Store and every scheduled callback for a run:
1. Tick loop - one physics tick per frame (FRAME_RATE)
2. Director polls - one deferred initial poll plus a recurring poll
3. Countdown - 1 Hz; reaching zero ends the run
4. Snapshot publisher (optional) - feeds read-only snapshots to listeners at
   RENDER_FPS

All callbacks are asyncio tasks on one event loop. Mutation only happens
between awaits, so nothing needs a lock. The single suspension point that
matters is the Director's oracle call; see director.py for how late responses
are merged.

State machine: idle -> running -> ended, and reset() back to idle from any
state. PAUSED exists in SimulationStatus but nothing transitions into it.
"""

import asyncio
import random
from typing import Callable, Coroutine, List, Optional, Set
from uuid import UUID, uuid4

from .collisions import CollisionAccumulator
from .config import CLOSING_NARRATION, INITIAL_NARRATION, Config
from .director import DirectorOracle, DirectorOrchestrator
from .logging_utils import log_engine, log_error, log_info, log_success
from .physics import run_tick
from .scenario import SceneGenerator, normalize_scenario
from .schemas import ScenarioConfig, SimulationStatus, WorldDimensions, WorldSnapshot
from .world import WorldStateStore


SnapshotListener = Callable[[WorldSnapshot], None]


class SimulationStateError(Exception):
    """Raised when a lifecycle operation is invalid for the current state."""


class SimulationController:
    """Runs one simulation at a time against an injected Director.

    Dependencies are injected; timer intervals default to Config values and
    can be overridden per controller (tests use short intervals).
    """

    def __init__(
        self,
        director: DirectorOracle,
        scene_generator: Optional[SceneGenerator] = None,
        *,
        frame_rate: Optional[int] = None,
        render_fps: Optional[int] = None,
        director_interval: Optional[float] = None,
        director_initial_delay: Optional[float] = None,
        countdown_interval: Optional[float] = None,
        world_width: Optional[int] = None,
        world_height: Optional[int] = None,
        rng: Optional[random.Random] = None,
        snapshot_listeners: Optional[List[SnapshotListener]] = None,
    ):
        """Initialize controller.

        Args:
            director: Oracle consulted on every poll
            scene_generator: Optional generator used by simulate(prompt)
            frame_rate: Ticks per second (stands in for display refresh)
            render_fps: Snapshot publish rate for listeners
            director_interval: Seconds between recurring polls
            director_initial_delay: Seconds before the first poll
            countdown_interval: Seconds per countdown step
            world_width: Width forced onto generated scenarios
            world_height: Height forced onto generated scenarios
            rng: Random source for wander headings
            snapshot_listeners: Callables receiving WorldSnapshot copies
        """
        self.scene_generator = scene_generator
        self.frame_interval = 1.0 / (frame_rate or Config.FRAME_RATE)
        self.render_interval = 1.0 / (render_fps or Config.RENDER_FPS)
        self.director_interval = (
            director_interval if director_interval is not None else Config.DIRECTOR_INTERVAL_SECONDS
        )
        self.director_initial_delay = (
            director_initial_delay
            if director_initial_delay is not None
            else Config.DIRECTOR_INITIAL_DELAY_SECONDS
        )
        self.countdown_interval = (
            countdown_interval if countdown_interval is not None else Config.COUNTDOWN_INTERVAL_SECONDS
        )
        self.world_width = world_width or Config.WORLD_WIDTH
        self.world_height = world_height or Config.WORLD_HEIGHT
        self.rng = rng or random.Random()
        self.snapshot_listeners: List[SnapshotListener] = list(snapshot_listeners or [])

        self.store = WorldStateStore(WorldDimensions(width=self.world_width, height=self.world_height))
        self.accumulator = CollisionAccumulator()
        self.director = DirectorOrchestrator(director, self.store, self.accumulator)

        self.status = SimulationStatus.IDLE
        self.config: Optional[ScenarioConfig] = None
        self.run_id: Optional[UUID] = None
        self._tasks: Set[asyncio.Task] = set()
        self._stopped = asyncio.Event()

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def narration(self) -> str:
        return self.store.narration

    @property
    def time_left(self) -> int:
        return self.store.time_left

    @property
    def description(self) -> Optional[str]:
        return self.config.description if self.config else None

    @property
    def duration(self) -> int:
        return self.config.duration if self.config else 0

    @property
    def has_scheduled_work(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def snapshot(self) -> WorldSnapshot:
        return self.store.snapshot(self.status)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, config: ScenarioConfig) -> None:
        """Install a scenario and start all timers.

        Must be called from inside a running event loop.

        Raises:
            SimulationStateError: If the controller is not idle
        """
        if self.status is not SimulationStatus.IDLE:
            raise SimulationStateError(
                f"Cannot start from '{self.status.value}'; call reset() first."
            )
        # Raises RuntimeError outside an event loop, before any state changes.
        asyncio.get_running_loop()

        self.config = config.model_copy(deep=True)
        self.store.populate(self.config)
        self.store.narration = INITIAL_NARRATION
        self.accumulator.clear()
        self.run_id = uuid4()
        self.status = SimulationStatus.RUNNING
        self._stopped.clear()

        self._spawn(self._tick_loop())
        self._spawn(self._countdown_loop())
        self._spawn(self._deferred_poll())
        self._spawn(self._poll_loop())
        if self.snapshot_listeners:
            self._spawn(self._publish_loop())

        log_engine(
            f"Starting simulation run {self.run_id}: {len(self.store.agents)} agents, "
            f"{len(self.store.items)} items, {self.config.duration}s"
        )

    async def simulate(self, prompt: str) -> ScenarioConfig:
        """Reset, generate a scene from ``prompt``, validate it and start.

        Generation and validation errors propagate to the caller; the
        controller stays idle in that case.
        """
        if self.scene_generator is None:
            raise SimulationStateError("No scene generator configured.")

        self.reset()
        log_info(f"Generating scene for prompt: {prompt!r}")
        generated = await self.scene_generator.generate(prompt)
        config = normalize_scenario(generated, width=self.world_width, height=self.world_height)
        self.start(config)
        return config

    async def run(self, config: ScenarioConfig) -> WorldSnapshot:
        """Start ``config`` and wait for the run to end. Returns the final snapshot."""
        self.start(config)
        await self.wait_until_ended()
        return self.snapshot()

    async def wait_until_ended(self) -> None:
        """Wait until the current run ends or is reset."""
        await self._stopped.wait()

    def reset(self) -> None:
        """Cancel all scheduled work and discard all state. Safe in any state."""
        self._cancel_tasks()
        self.store.clear()
        self.accumulator.clear()
        self.config = None
        self.run_id = None
        was_idle = self.status is SimulationStatus.IDLE
        self.status = SimulationStatus.IDLE
        self._stopped.set()
        if not was_idle:
            log_engine("Simulation reset")

    def _end(self) -> None:
        self.status = SimulationStatus.ENDED
        self._cancel_tasks()
        self.store.narration += CLOSING_NARRATION
        self._stopped.set()
        log_success(f"Simulation {self.run_id} ended")
        self._publish()

    # ------------------------------------------------------------------
    # Scheduled callbacks
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Run one physics tick. No-op unless running."""
        if self.status is not SimulationStatus.RUNNING:
            return
        run_tick(self.store, self.accumulator, self.rng)

    def countdown_step(self) -> None:
        """Advance the countdown by one second; ends the run at zero."""
        if self.status is not SimulationStatus.RUNNING:
            return
        if self.store.time_left <= 1:
            self.store.time_left = 0
            self._end()
        else:
            self.store.time_left -= 1

    async def poll_director(self) -> bool:
        """Run one Director poll bound to the current run."""
        run_id = self.run_id

        def is_current() -> bool:
            return self.status is SimulationStatus.RUNNING and self.run_id == run_id

        return await self.director.poll(is_current)

    async def _tick_loop(self) -> None:
        while self.status is SimulationStatus.RUNNING:
            self.tick()
            await asyncio.sleep(self.frame_interval)

    async def _countdown_loop(self) -> None:
        while self.status is SimulationStatus.RUNNING:
            await asyncio.sleep(self.countdown_interval)
            self.countdown_step()

    async def _deferred_poll(self) -> None:
        await asyncio.sleep(self.director_initial_delay)
        await self.poll_director()

    async def _poll_loop(self) -> None:
        # Polls are fired on schedule even if a previous one is still waiting.
        while self.status is SimulationStatus.RUNNING:
            await asyncio.sleep(self.director_interval)
            if self.status is SimulationStatus.RUNNING:
                self._spawn(self.poll_director())

    async def _publish_loop(self) -> None:
        while self.status is SimulationStatus.RUNNING:
            self._publish()
            await asyncio.sleep(self.render_interval)

    def _publish(self) -> None:
        if not self.snapshot_listeners:
            return
        snapshot = self.snapshot()
        for listener in self.snapshot_listeners:
            try:
                listener(snapshot)
            except Exception as exc:
                log_error(f"[Presentation] Listener failed: {exc}")

    # ------------------------------------------------------------------
    # Task bookkeeping
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log_error(f"Scheduled task failed: {exc!r}")

    def _cancel_tasks(self) -> None:
        """Cancel every scheduled task except the one currently running.

        The caller's own loop exits on its next status check.
        """
        if not self._tasks:
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in list(self._tasks):
            if task is not current:
                task.cancel()
        self._tasks.clear()
