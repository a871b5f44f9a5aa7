"""Cooperative pause/resume/abort token checked between pipeline stages."""

import asyncio
import logging

from errors import PipelineCancelledError

logger = logging.getLogger(__name__)


class PipelineControl:
    """Shared by the orchestrator and whoever drives it.

    The orchestrator awaits `checkpoint()` between stages: it raises once the
    run is aborted and blocks while the run is paused.
    """

    def __init__(self):
        self._running = asyncio.Event()
        self._running.set()
        self._aborted = False

    @property
    def is_paused(self) -> bool:
        return not self._running.is_set()

    @property
    def is_aborted(self) -> bool:
        return self._aborted

    def pause(self) -> None:
        if not self._aborted:
            logger.info("Pipeline paused")
            self._running.clear()

    def resume(self) -> None:
        logger.info("Pipeline resumed")
        self._running.set()

    def abort(self) -> None:
        logger.info("Pipeline abort requested")
        self._aborted = True
        # wake a paused checkpoint so it can raise
        self._running.set()

    async def checkpoint(self) -> None:
        if self._aborted:
            raise PipelineCancelledError()
        await self._running.wait()
        if self._aborted:
            raise PipelineCancelledError()
