"""
Proximity monitor: the lock/unlock state machine.

Each cycle samples the device once, classifies the reading against the
lock/unlock thresholds, applies the transition rules and the session
timeout, dispatches at most one actuator call, then sleeps for the
check interval.

State machine: LOCKED <-> UNLOCKED, starting LOCKED.
"""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from .readings import (
    InRange,
    LockState,
    OutOfRange,
    ProximityReading,
    SamplingFailed,
    Verdict,
)

logger = logging.getLogger(__name__)


class Action(Enum):
    NONE = "none"
    LOCK = "lock"
    UNLOCK = "unlock"


@dataclass
class MonitorState:
    lock_state: LockState = LockState.LOCKED
    last_unlocked_at: Optional[float] = None  # Only meaningful while UNLOCKED
    streak_verdict: Optional[Verdict] = None
    streak_length: int = 0


def classify(reading, lock_threshold, unlock_threshold):
    """Map a reading to a verdict. SamplingFailed has no verdict and returns None."""
    if isinstance(reading, SamplingFailed):
        return None
    if isinstance(reading, OutOfRange):
        return Verdict.FAR
    strength = reading.signal_strength
    if strength >= unlock_threshold:
        return Verdict.NEAR
    if strength <= lock_threshold:
        return Verdict.FAR
    return Verdict.INDETERMINATE


def decide(lock_state, verdict):
    """Proximity transition for a (state, verdict) pair, ignoring the session timeout."""
    if lock_state is LockState.LOCKED and verdict is Verdict.NEAR:
        return Action.UNLOCK
    if lock_state is LockState.UNLOCKED and verdict is Verdict.FAR:
        return Action.LOCK
    return Action.NONE


class BackgroundDispatcher:
    """Runs actuator calls on one worker thread so a slow command never stalls polling."""

    def __init__(self):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="actuator")

    def __call__(self, fn):
        future = self._executor.submit(fn)
        future.add_done_callback(self._report)

    @staticmethod
    def _report(future):
        exc = future.exception()
        if exc is not None:
            logger.error(f"Actuator call failed: {exc!r}")

    def shutdown(self):
        # Lets in-flight calls finish on their own.
        self._executor.shutdown(wait=False)


def run_inline(fn):
    fn()


class ProximityMonitor:
    def __init__(
        self,
        config,
        source,
        actuator,
        clock: Callable[[], float] = time.time,
        dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
    ):
        self.config = config
        self._source = source
        self._actuator = actuator
        self._clock = clock
        self._dispatch = dispatch if dispatch is not None else BackgroundDispatcher()
        self._state = MonitorState()
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> MonitorState:
        return replace(self._state)

    @property
    def lock_state(self) -> LockState:
        return self._state.lock_state

    def _confirmed(self, verdict):
        """Track consecutive verdicts and report whether this one is confirmed."""
        state = self._state
        if verdict is Verdict.INDETERMINATE:
            state.streak_verdict, state.streak_length = None, 0
            return False
        if verdict is state.streak_verdict:
            state.streak_length += 1
        else:
            state.streak_verdict, state.streak_length = verdict, 1
        return state.streak_length >= self.config.confirmations

    def step(self, reading: ProximityReading, now: float) -> Action:
        """Apply one reading to the state and return the action it calls for."""
        state = self._state
        verdict = classify(reading, self.config.lock_threshold, self.config.unlock_threshold)
        if verdict is None:
            logger.warning(f"Sampling failed ({reading.cause}); keeping state {state.lock_state.value}")
            return Action.NONE

        confirmed = self._confirmed(verdict)
        action = decide(state.lock_state, verdict) if confirmed else Action.NONE

        if action is Action.UNLOCK:
            state.lock_state = LockState.UNLOCKED
            state.last_unlocked_at = now
        elif action is Action.LOCK:
            state.lock_state = LockState.LOCKED
            state.last_unlocked_at = None

        timeout = self.config.session_timeout
        if (
            state.lock_state is LockState.UNLOCKED
            and timeout > 0
            and now - state.last_unlocked_at > timeout
        ):
            logger.info(f"Session timeout of {timeout}s reached. Locking.")
            state.lock_state = LockState.LOCKED
            state.last_unlocked_at = None
            action = Action.LOCK

        if action is not Action.NONE:
            state.streak_verdict, state.streak_length = None, 0
            logger.info(f"Transition -> {state.lock_state.value} (verdict: {verdict.value})")
        return action

    def _act(self, action):
        if action is Action.LOCK:
            self._dispatch(self._actuator.lock)
        elif action is Action.UNLOCK:
            self._dispatch(self._actuator.unlock)

    async def run_cycle(self) -> Action:
        """Sample once, decide, and dispatch. Does not sleep."""
        reading = await self._source.sample(self.config.device_address)
        logger.debug(f"{self.config.device_address}: {reading}")
        # No await between the decision and its dispatch.
        action = self.step(reading, self._clock())
        self._act(action)
        return action

    async def run(self):
        logger.info("Starting Bluetooth proximity monitoring...")
        logger.info(f"Device to track: {self.config.device_address}")
        logger.info(
            f"Unlock if RSSI >= {self.config.unlock_threshold} dBm | "
            f"Lock if RSSI <= {self.config.lock_threshold} dBm"
        )
        try:
            while True:
                try:
                    await self.run_cycle()
                except Exception:
                    logger.exception(f"Proximity check failed; keeping state {self._state.lock_state.value}")
                await asyncio.sleep(self.config.check_interval)
        finally:
            logger.info("Proximity monitor stopped.")

    def start(self) -> asyncio.Task:
        """Schedule the monitor loop on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run(), name="ProximityMonitor")
        return self._task

    async def stop(self):
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if isinstance(self._dispatch, BackgroundDispatcher):
            self._dispatch.shutdown()
            self._dispatch = BackgroundDispatcher()
