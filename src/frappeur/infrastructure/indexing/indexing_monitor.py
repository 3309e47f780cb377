"""
Indexing monitor.

Polls the DAS read-index until each minted asset becomes queryable. One
shared loop serves every job: it starts with the first job and exits when
the active set is empty.
"""

import asyncio
import time
from collections import OrderedDict
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from frappeur.domain.entities.mint_operation import IndexingStatus
from frappeur.domain.entities.monitoring_job import JobStatus, MonitoringJob
from frappeur.domain.exceptions import ReadIndexError
from frappeur.domain.repositories.i_operation_store import IOperationStore
from frappeur.domain.services.i_chain_client import IChainClient
from frappeur.infrastructure.monitoring import metrics
from frappeur.infrastructure.monitoring.logger import get_logger, request_id_ctx
from frappeur.infrastructure.scheduling.background_tasks import BackgroundTasks

logger = get_logger(__name__)

TIMEOUT_RECOMMENDATION = (
    "Asset not visible in the read-index yet; it may still appear within "
    "30-60 minutes. Use force recheck to query again."
)


class MonitorEvent(str, Enum):
    """Lifecycle events (values double as webhook event names)."""

    MONITORING_STARTED = "monitoringStarted"
    INDEXING_COMPLETED = "indexingCompleted"
    INDEXING_TIMEOUT = "indexingTimeout"
    INDEXING_ERROR = "indexingError"
    MONITORING_STOPPED = "monitoringStopped"


EventListener = Callable[[str, dict], Awaitable[Any]]

_JOB_TO_INDEXING_STATUS = {
    JobStatus.INDEXED: IndexingStatus.INDEXED,
    JobStatus.TIMEOUT: IndexingStatus.TIMEOUT,
    JobStatus.ERROR: IndexingStatus.ERROR,
    JobStatus.STOPPED: IndexingStatus.STOPPED,
}


class ProbeError(Exception):
    """Read-index probe failed for a reason other than 'not found'."""


class IndexingMonitor:
    """
    Tracks MonitoringJobs and drives the shared poll loop.

    Invariants:
    - At most one active job per operation_id
    - Active-set mutations never span an await
    - Probe results for jobs stopped mid-flight are discarded
    """

    def __init__(
        self,
        chain_client: IChainClient,
        operation_store: Optional[IOperationStore] = None,
        check_interval: float = 30.0,
        max_attempts: int = 40,
        probe_timeout: float = 10.0,
        completed_cache_size: int = 500,
        background_tasks: Optional[BackgroundTasks] = None,
    ):
        self.chain_client = chain_client
        self.operation_store = operation_store
        self.check_interval = check_interval
        self.max_attempts = max_attempts
        self.probe_timeout = probe_timeout
        self.completed_cache_size = completed_cache_size
        self._owns_tasks = background_tasks is None
        self.background_tasks = background_tasks or BackgroundTasks()

        self._active: dict[str, MonitoringJob] = {}
        self._completed: OrderedDict[str, MonitoringJob] = OrderedDict()
        self._listeners: dict[str, list[EventListener]] = {}
        self._loop_task: Optional[asyncio.Task] = None

        self._stats = {
            "total_monitored": 0,
            "successfully_indexed": 0,
            "timeouts": 0,
            "errors": 0,
            "average_indexing_time": 0.0,
        }

    # ================================================================
    # Events
    # ================================================================

    def on(self, event: str, listener: EventListener) -> None:
        """Register an async listener for a lifecycle event."""
        key = event.value if isinstance(event, MonitorEvent) else event
        self._listeners.setdefault(key, []).append(listener)

    def _emit(self, event: MonitorEvent, data: dict) -> None:
        """Schedule every listener; the poll cycle never waits on delivery."""
        for listener in self._listeners.get(event.value, []):
            self.background_tasks.spawn(
                self._deliver(listener, event, data),
                name=f"monitor-{event.value}-{data.get('operation_id')}",
            )

    async def _deliver(
        self, listener: EventListener, event: MonitorEvent, data: dict
    ) -> None:
        try:
            await listener(event.value, data)
        except Exception as e:
            logger.error(
                f"Listener for {event.value} failed: {e}",
                exc_info=True,
                extra={"operation_id": data.get("operation_id")},
            )

    # ================================================================
    # Job lifecycle
    # ================================================================

    @property
    def is_running(self) -> bool:
        """Shared poll loop currently scheduled."""
        return self._loop_task is not None and not self._loop_task.done()

    async def start_monitoring(
        self,
        operation_id: str,
        asset_id: str,
        metadata: Optional[dict] = None,
    ) -> Optional[MonitoringJob]:
        """
        Begin polling the read-index for an asset.

        Args:
            operation_id: Owning mint operation
            asset_id: Asset ID to look up
            metadata: tree_address, leaf_index, collection, nft_name, recipient

        Returns:
            The new job, or None if one is already active for the operation
        """
        if operation_id in self._active:
            logger.warning(
                f"Monitoring already active for operation {operation_id}"
            )
            return None

        job = MonitoringJob(
            operation_id=operation_id,
            asset_id=asset_id,
            metadata=dict(metadata or {}),
        )
        self._active[operation_id] = job
        self._stats["total_monitored"] += 1
        metrics.indexing_jobs_active.set(len(self._active))
        self._ensure_loop()

        logger.info(
            f"Started indexing monitor for {asset_id}",
            extra={"operation_id": operation_id, "asset_id": asset_id},
        )
        self._emit(
            MonitorEvent.MONITORING_STARTED,
            {
                "operation_id": operation_id,
                "asset_id": asset_id,
                "metadata": job.metadata,
                "max_attempts": self.max_attempts,
                "check_interval": self.check_interval,
            },
        )
        return job

    async def stop_monitoring(
        self, operation_id: str, reason: str = "manual"
    ) -> bool:
        """
        Stop polling for an operation.

        Returns:
            False if no active job exists for the operation
        """
        job = self._active.get(operation_id)
        if job is None:
            return False

        job.finish(JobStatus.STOPPED, reason)
        self._archive(job)

        logger.info(
            f"Stopped indexing monitor ({reason})",
            extra={"operation_id": operation_id, "asset_id": job.asset_id},
        )
        await self._update_store(job)
        self._emit(
            MonitorEvent.MONITORING_STOPPED,
            {
                "operation_id": operation_id,
                "asset_id": job.asset_id,
                "reason": reason,
                "attempts": job.attempts,
            },
        )
        return True

    def _archive(self, job: MonitoringJob) -> None:
        self._active.pop(job.operation_id, None)
        self._completed[job.operation_id] = job
        self._completed.move_to_end(job.operation_id)
        while len(self._completed) > self.completed_cache_size:
            self._completed.popitem(last=False)
        metrics.indexing_jobs_active.set(len(self._active))
        metrics.indexing_jobs_total.labels(status=job.status.value).inc()

    # ================================================================
    # Poll loop
    # ================================================================

    def _ensure_loop(self) -> None:
        if not self.is_running:
            self._loop_task = asyncio.create_task(
                self._run_loop(), name="indexing-monitor"
            )

    async def _run_loop(self) -> None:
        # Serves every operation, not the request that happened to start it
        request_id_ctx.set(None)
        logger.debug("Indexing monitor loop started")
        try:
            while self._active:
                await asyncio.sleep(self.check_interval)
                if not self._active:
                    break
                await self.run_cycle()
        finally:
            logger.debug("Indexing monitor loop stopped")

    async def run_cycle(self) -> None:
        """Probe every active job once, concurrently."""
        jobs = list(self._active.values())
        if not jobs:
            return

        results = await asyncio.gather(
            *(self._check_job(job) for job in jobs),
            return_exceptions=True,
        )
        for job, result in zip(jobs, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Unexpected failure checking {job.asset_id}: {result}",
                    exc_info=result,
                )

    def _is_current(self, job: MonitoringJob) -> bool:
        return job.is_active and self._active.get(job.operation_id) is job

    async def _probe(self, asset_id: str) -> bool:
        """
        Ask the read-index for an asset.

        Returns:
            True when the index returns the asset with a matching ID

        Raises:
            ProbeError: Transport failure or timeout
        """
        try:
            asset = await asyncio.wait_for(
                self.chain_client.get_asset(asset_id),
                timeout=self.probe_timeout,
            )
        except ReadIndexError as e:
            if e.is_not_found:
                return False
            raise ProbeError(str(e)) from e
        except asyncio.TimeoutError as e:
            raise ProbeError(f"probe timed out after {self.probe_timeout}s") from e
        except Exception as e:
            raise ProbeError(f"{type(e).__name__}: {e}") from e

        return bool(asset) and asset.get("id") == asset_id

    async def _check_job(self, job: MonitoringJob) -> None:
        if not self._is_current(job):
            return

        job.attempts += 1
        started = time.monotonic()
        error: Optional[str] = None
        indexed = False

        try:
            indexed = await self._probe(job.asset_id)
        except ProbeError as e:
            error = str(e)

        if not self._is_current(job):
            # Stopped while the probe was in flight
            return

        job.record_poll(indexed, time.monotonic() - started, error)

        if indexed:
            await self._complete(job)
        elif job.attempts >= self.max_attempts:
            if error is not None:
                await self._fail(job, error)
            else:
                await self._time_out(job)
        else:
            logger.debug(
                f"Asset {job.asset_id} not indexed yet "
                f"({job.attempts}/{self.max_attempts})"
            )

    # ================================================================
    # Terminal transitions
    # ================================================================

    async def _complete(self, job: MonitoringJob) -> None:
        job.finish(JobStatus.INDEXED, "indexed")
        self._archive(job)

        total_time = job.elapsed
        indexed_count = self._stats["successfully_indexed"] + 1
        self._stats["successfully_indexed"] = indexed_count
        self._stats["average_indexing_time"] += (
            total_time - self._stats["average_indexing_time"]
        ) / indexed_count
        metrics.indexing_duration_seconds.observe(total_time)

        logger.info(
            f"Asset {job.asset_id} indexed after {job.attempts} checks "
            f"({total_time:.1f}s)",
            extra={"operation_id": job.operation_id},
        )
        await self._update_store(job)
        self._emit(
            MonitorEvent.INDEXING_COMPLETED,
            {
                "operation_id": job.operation_id,
                "asset_id": job.asset_id,
                "attempts": job.attempts,
                "total_time": round(total_time, 3),
                "metadata": job.metadata,
                "phantom_ready": True,
            },
        )

    async def _time_out(self, job: MonitoringJob) -> None:
        job.finish(JobStatus.TIMEOUT, "max_attempts")
        self._archive(job)
        self._stats["timeouts"] += 1

        logger.warning(
            f"Asset {job.asset_id} not indexed after {job.attempts} checks",
            extra={"operation_id": job.operation_id},
        )
        await self._update_store(job)
        self._emit(
            MonitorEvent.INDEXING_TIMEOUT,
            {
                "operation_id": job.operation_id,
                "asset_id": job.asset_id,
                "attempts": job.attempts,
                "total_time": round(job.elapsed, 3),
                "metadata": job.metadata,
                "recommendation": TIMEOUT_RECOMMENDATION,
            },
        )

    async def _fail(self, job: MonitoringJob, error: str) -> None:
        job.finish(JobStatus.ERROR, "probe_error")
        self._archive(job)
        self._stats["errors"] += 1

        logger.error(
            f"Indexing monitor for {job.asset_id} gave up: {error}",
            extra={"operation_id": job.operation_id},
        )
        await self._update_store(job)
        self._emit(
            MonitorEvent.INDEXING_ERROR,
            {
                "operation_id": job.operation_id,
                "asset_id": job.asset_id,
                "attempts": job.attempts,
                "error": error,
                "metadata": job.metadata,
            },
        )

    async def _update_store(self, job: MonitoringJob) -> None:
        if self.operation_store is None:
            return

        indexing_status = _JOB_TO_INDEXING_STATUS[job.status]
        fields: dict[str, Any] = {
            "indexing_status": indexing_status,
            "indexing_history": [record.to_dict() for record in job.history],
            "phantom_ready": job.status == JobStatus.INDEXED,
            "total_indexing_time": round(job.elapsed, 3),
            "last_checked": job.history[-1].timestamp if job.history else None,
        }
        if job.status == JobStatus.TIMEOUT:
            fields["recommendations"] = [TIMEOUT_RECOMMENDATION]

        try:
            await self.operation_store.update(job.operation_id, fields)
        except Exception as e:
            logger.error(
                f"Failed to persist indexing result for {job.operation_id}: {e}"
            )

    # ================================================================
    # Introspection
    # ================================================================

    def get_operation_status(self, operation_id: str) -> Optional[dict]:
        """Job snapshot from the active set, then the completed cache."""
        job = self._active.get(operation_id) or self._completed.get(operation_id)
        if job is None:
            return None
        data = job.to_dict()
        data["is_active"] = job.is_active
        data["max_attempts"] = self.max_attempts
        return data

    def get_active_operations(self) -> list[dict]:
        """Summaries of every polling job."""
        return [
            {
                "operation_id": job.operation_id,
                "asset_id": job.asset_id,
                "attempts": job.attempts,
                "max_attempts": self.max_attempts,
                "elapsed_time": round(job.elapsed, 3),
                "metadata": dict(job.metadata),
            }
            for job in self._active.values()
        ]

    def get_monitoring_stats(self) -> dict:
        """Cumulative counters plus current load."""
        average = self._stats["average_indexing_time"]
        return {
            **self._stats,
            "average_indexing_time": round(average, 3),
            "average_indexing_time_minutes": round(average / 60, 2),
            "active_jobs": len(self._active),
            "completed_jobs": len(self._completed),
            "is_running": self.is_running,
            "check_interval": self.check_interval,
            "max_attempts": self.max_attempts,
        }

    async def shutdown(self) -> None:
        """Cancel the poll loop and stop every active job."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        for operation_id in list(self._active):
            await self.stop_monitoring(operation_id, reason="shutdown")

        if self._owns_tasks:
            await self.background_tasks.cancel_all()

        logger.info("Indexing monitor shut down")
