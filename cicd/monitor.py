"""Background monitor that re-runs the build loop on an interval."""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from contracts import BuildResult, MonitorConfig, MonitorStatus

from .build_system import BuildSystem
from .performance import BuildProfile

logger = logging.getLogger(__name__)

FilesGetter = Callable[[], Dict[str, str]]
StatusCallback = Callable[[MonitorStatus], None]
ResultCallback = Callable[[BuildResult], None]


class CICDMonitor:
    """Polls a file snapshot and runs the build loop with the speed profile.

    Runs as an asyncio task: one check immediately on start, then one per
    `check_interval` seconds until stopped.
    """

    def __init__(
        self,
        build_system: BuildSystem,
        config: Optional[MonitorConfig] = None,
        settings=None,
        clock: Callable[[], float] = time.time,
    ):
        if settings is None:
            from config import settings
        self.build_system = build_system
        self.settings = settings
        self.config = config or MonitorConfig(check_interval=settings.monitor_interval_seconds)
        self.profile = BuildProfile.optimize_for_speed(settings)
        self._status = MonitorStatus()
        self._clock = clock
        self._task: Optional[asyncio.Task] = None
        self._files_getter: Optional[FilesGetter] = None
        self._on_status: Optional[StatusCallback] = None
        self._on_result: Optional[ResultCallback] = None

    @property
    def status(self) -> MonitorStatus:
        return self._status.model_copy()

    def start(
        self,
        files_getter: FilesGetter,
        on_status: Optional[StatusCallback] = None,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        """Start monitoring. Must be called from a running event loop."""
        if self._status.active:
            logger.warning("CI/CD monitor is already running")
            return

        self._files_getter = files_getter
        self._on_status = on_status
        self._on_result = on_result
        self.config = self.config.model_copy(update={"enabled": True})
        self._status.active = True
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("CI/CD monitor started (interval %.0fs)", self.config.check_interval)

    async def _run(self) -> None:
        while self.config.enabled and self._status.active:
            try:
                await self.perform_check()
            except Exception:
                logger.exception("CI/CD check crashed")
            await asyncio.sleep(self.config.check_interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._status.active = False
        self.config = self.config.model_copy(update={"enabled": False})
        self._notify_status()
        logger.info("CI/CD monitor stopped")

    async def perform_check(self) -> None:
        """One unattended build. Skips when there is nothing to build.

        A files getter that raises counts as a failed check.
        """
        if self._files_getter is None:
            logger.warning("No project files getter registered")
            return

        try:
            files = self._files_getter()
        except Exception as e:
            logger.error("Reading project files failed: %s", e)
            self._status.last_check = self._clock()
            self._status.total_checks += 1
            self._status.failed_builds += 1
            self._notify_status()
            return
        if not files:
            return

        self._status.last_check = self._clock()
        self._status.total_checks += 1
        self._notify_status()

        try:
            result = await self.build_system.run_cicd_pipeline(files, profile=self.profile)
        except Exception as e:
            logger.error("CI/CD check failed: %s", e)
            self._status.failed_builds += 1
            self._notify_status()
            return

        self._status.last_result = result
        if result.success:
            self._status.successful_builds += 1
            self._notify_result(result)
        else:
            self._status.failed_builds += 1
            if self.config.notify_on_error:
                self._notify_result(result)
        self._notify_status()

    async def update_config(self, **changes) -> None:
        """Apply config changes; a running monitor is restarted with them."""
        self.config = self.config.model_copy(update=changes)
        if self._status.active and self._task is not None:
            getter, on_status, on_result = self._files_getter, self._on_status, self._on_result
            await self.stop()
            if getter is not None:
                self.start(getter, on_status, on_result)

    async def manual_check(self) -> Optional[BuildResult]:
        """Run the build loop once with the default retry bound."""
        if self._files_getter is None:
            return None
        return await self.build_system.run_cicd_pipeline(self._files_getter())

    def _notify_status(self) -> None:
        if self._on_status is not None:
            try:
                self._on_status(self.status)
            except Exception as e:
                logger.error("Monitor status callback failed: %s", e)

    def _notify_result(self, result: BuildResult) -> None:
        if self._on_result is not None:
            try:
                self._on_result(result)
            except Exception as e:
                logger.error("Monitor result callback failed: %s", e)
