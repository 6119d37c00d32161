"""Periodic and lifecycle-triggered session activity."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Set, Union

from ..core.enums import AppState
from .session_manager import SessionManager
from .token_manager import TokenManager

logger = logging.getLogger(__name__)


class ActivityHeartbeat:
    """Keeps the session record's ``lastActivity`` fresh and re-validates on foreground.

    Two independent timers run while started:
    - activity ping every ``activity_interval`` seconds
    - proactive token refresh every ``token_refresh_interval`` seconds

    Timer errors are logged and swallowed; a failed background refresh never
    forces sign-out. Lifecycle transitions are handled once and never retried.
    """

    def __init__(
        self,
        session_manager: SessionManager,
        token_manager: TokenManager,
        on_session_invalid: Callable[[], Awaitable[None]],
        *,
        activity_interval: float = 300,
        token_refresh_interval: float = 1500,
        initial_state: AppState = AppState.ACTIVE
    ):
        if activity_interval <= 0 or token_refresh_interval <= 0:
            raise ValueError("Heartbeat intervals must be positive")

        self._session_manager = session_manager
        self._token_manager = token_manager
        self._on_session_invalid = on_session_invalid
        self.activity_interval = activity_interval
        self.token_refresh_interval = token_refresh_interval
        self._app_state = initial_state

        self._timers: Dict[str, asyncio.Task] = {}
        # Ticks outlive stop(); references kept until they finish
        self._inflight: Set[asyncio.Task] = set()

    @property
    def app_state(self) -> AppState:
        return self._app_state

    @property
    def running(self) -> bool:
        return bool(self._timers)

    def start(self) -> None:
        """Start both timers. Must be called from a running event loop; idempotent."""
        if self._timers:
            return

        self._timers["activity"] = self._start_timer(
            "activity", self.activity_interval, self._activity_tick
        )
        self._timers["token_refresh"] = self._start_timer(
            "token_refresh", self.token_refresh_interval, self._token_refresh_tick
        )
        logger.debug(
            f"Heartbeat started (activity={self.activity_interval}s, "
            f"token_refresh={self.token_refresh_interval}s)"
        )

    def _start_timer(
        self,
        name: str,
        interval: float,
        tick: Callable[[], Awaitable[None]]
    ) -> asyncio.Task:
        async def timer_loop():
            while True:
                try:
                    await asyncio.sleep(interval)
                    self._spawn(tick())
                except asyncio.CancelledError:
                    break

        return asyncio.get_running_loop().create_task(timer_loop(), name=f"heartbeat-{name}")

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def stop(self) -> None:
        """Cancel the timers. In-flight ticks are left to complete on their own."""
        timers = list(self._timers.values())
        self._timers.clear()
        for timer in timers:
            timer.cancel()
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)
            logger.debug("Heartbeat stopped")

    async def _activity_tick(self) -> None:
        try:
            await self._session_manager.touch_activity()
        except Exception as e:
            logger.warning(f"Activity heartbeat failed: {e}")

    async def _token_refresh_tick(self) -> None:
        try:
            await self._token_manager.get_valid_access_token()
            await self._session_manager.touch_activity()
        except Exception as e:
            # No sign-out from the background path; the next tick tries again
            logger.warning(f"Background token refresh failed: {e}")

    async def revalidate(self) -> bool:
        """Validate the session; invalid sessions trigger ``on_session_invalid``.

        Raises:
            TransientStoreError: If the store cannot be reached
        """
        valid = await self._session_manager.validate()
        if not valid:
            logger.info("Session no longer valid, forcing sign-out")
            await self._on_session_invalid()
            return False

        await self._session_manager.refresh_snapshot()
        await self._session_manager.touch_activity()
        return True

    async def on_app_state_change(
        self,
        next_state: Union[AppState, str],
        *,
        validate: bool = True
    ) -> Optional[bool]:
        """Handle a host lifecycle transition.

        Args:
            next_state: State the host app moved to
            validate: Re-validate on a transition to the foreground; the state
                is tracked either way

        Returns:
            The validation result for a transition to the foreground, else None
        """
        next_state = AppState(next_state)
        previous = self._app_state
        self._app_state = next_state

        if not previous.is_foreground and next_state.is_foreground:
            if not validate:
                return None
            try:
                return await self.revalidate()
            except Exception as e:
                logger.warning(f"Foreground session validation failed: {e}")
                return None

        if previous.is_foreground and not next_state.is_foreground:
            await self._activity_tick()

        return None
