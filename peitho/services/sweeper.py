"""
Sweeper

Background loop that deletes workload deployments stuck with unavailable
replicas, together with their TLS ConfigMaps. Runs every interval seconds,
starting one interval after start(), until stop() is called; backend errors are logged and never end the loop.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from .orchestration.base import OrchestratorBackend

logger = logging.getLogger(__name__)

DEFAULT_PREFIXES = ("dev-", "chaincode-")


class Sweeper:
    """Periodic garbage collector for failed workload deployments."""

    def __init__(
        self,
        orchestrator: OrchestratorBackend,
        enable: bool = True,
        interval: float = 60,
        delete_delay: float = 1.0,
        prefixes: Sequence[str] = DEFAULT_PREFIXES
    ):
        self.orchestrator = orchestrator
        self.enable = enable
        self.interval = interval
        self.delete_delay = delete_delay
        self.prefixes = list(prefixes)

        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.enable:
            logger.info("[SWEEPER] Sweeper disabled, not starting")
            return
        if self.running:
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())
        logger.info(f"[SWEEPER] Sweeper started (interval: {self.interval}s, prefixes: {self.prefixes})")

    async def stop(self) -> None:
        if self._task is None:
            return

        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("[SWEEPER] Sweeper stopped")

    async def _run(self) -> None:
        # First sweep fires one interval after start
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                return
            except asyncio.TimeoutError:
                pass

            await self.sweep_once()

    async def sweep_once(self) -> List[str]:
        """
        Run a single sweep.

        Returns:
            Names of the deployments that were deleted
        """
        try:
            deployments = await self.orchestrator.list_deployments_by_prefix(self.prefixes)
        except Exception as e:
            logger.error(f"[SWEEPER] List deployments failed, skipping sweep: {e}")
            return []

        swept = []
        for deployment in deployments:
            unavailable = (deployment.status.unavailable_replicas or 0) if deployment.status else 0
            if unavailable <= 0:
                continue

            name = deployment.metadata.name
            logger.info(f"[SWEEPER] Deployment {name} has {unavailable} unavailable replicas, deleting")

            try:
                await self.orchestrator.delete_deployment(name)
                swept.append(name)
            except Exception as e:
                logger.error(f"[SWEEPER] Delete deployment {name} failed: {e}")

            try:
                await self.orchestrator.delete_config_map(name)
            except Exception as e:
                logger.error(f"[SWEEPER] Delete configmap for {name} failed: {e}")

            await asyncio.sleep(self.delete_delay)

        if swept:
            logger.info(f"[SWEEPER] Swept {len(swept)} deployments")
        return swept
