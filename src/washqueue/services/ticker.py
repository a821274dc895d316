"""Periodic driver for engine ticks."""

import asyncio
import logging
from dataclasses import dataclass

from washqueue.services.scheduling import SchedulingEngine

logger = logging.getLogger(__name__)


@dataclass
class TickRunner:
    """Call ``engine.tick()`` on a fixed interval."""

    engine: SchedulingEngine
    interval_seconds: float = 1.0

    async def run(self) -> None:
        """Tick until cancelled; a failing tick is logged and the loop continues."""
        while True:
            try:
                self.engine.tick()
            except Exception:
                logger.exception("Scheduling tick failed")
            await asyncio.sleep(self.interval_seconds)
