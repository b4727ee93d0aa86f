import asyncio
from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class TriggerState(Enum):
    IDLE = "idle"
    CHECKED = "checked"
    STOPPED = "stopped"


class TriggerLifecycle:
    """Gate for scheduled repository checks.

    In polling mode every tick runs a check. With webhooks enabled only the
    first tick does; later changes arrive as webhook deliveries.
    """

    def __init__(self, use_hooks: bool):
        self.use_hooks = use_hooks
        self.state = TriggerState.IDLE
        self._lock = asyncio.Lock()

    @property
    def has_run_once(self) -> bool:
        return self.state != TriggerState.IDLE

    @property
    def is_stopped(self) -> bool:
        return self.state == TriggerState.STOPPED

    async def advance(self) -> bool:
        """Return True when the caller should check the repository now."""
        async with self._lock:
            if self.state == TriggerState.STOPPED:
                logger.warning("Tick received after trigger was stopped")
                return False

            if self.use_hooks and self.state == TriggerState.CHECKED:
                return False

            self.state = TriggerState.CHECKED
            return True

    def stop(self) -> None:
        self.state = TriggerState.STOPPED
