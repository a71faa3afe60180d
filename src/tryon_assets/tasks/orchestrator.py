"""
Generation task orchestrator.

Submits generation jobs and drives each resulting task to a terminal state
by polling the service on a fixed cadence:

    QUEUED -> PROCESSING -> {COMPLETED | FAILED}

Polling rules:
    - The first poll runs right after submission, then every poll_interval
    - At most one poll is in flight per task; the next one is scheduled only
      after the previous settles
    - A poll whose transport retries are exhausted leaves the task in its last
      known status ("can't reach the service" is not "the job failed")
    - COMPLETED/FAILED stop polling and notify observers exactly once
    - A discarded task gets no further polls; an in-flight poll completes and
      its result is dropped. The remote job is never cancelled.
"""

import asyncio
import inspect
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

import structlog

from tryon_assets.client.base_client import BaseGenerationClient
from tryon_assets.config import Settings
from tryon_assets.exceptions import AssetLayerError, SubmissionError, error_kind_of
from tryon_assets.models.enums import ErrorKind, GenerationKind, TaskStatus
from tryon_assets.models.task_models import (
    GenerationPayload,
    GenerationTask,
    TaskError,
    TaskStatusResponse,
)
from tryon_assets.retry.policy import RetryPolicy
from tryon_assets.telemetry.events import (
    COMPONENT_ORCHESTRATOR,
    COMPONENT_POLL,
    COMPONENT_SUBMIT,
)
from tryon_assets.telemetry.sinks import TelemetrySink, record_event

logger = structlog.get_logger(__name__)

TaskCallback = Callable[[GenerationTask], Optional[Awaitable[None]]]


@dataclass
class _TaskWatch:
    """Orchestrator-side state for one task."""

    task: GenerationTask
    started_at: float
    callbacks: list[TaskCallback] = field(default_factory=list)
    discarded: asyncio.Event = field(default_factory=asyncio.Event)
    done: "asyncio.Future[GenerationTask]" = field(
        default_factory=lambda: asyncio.get_running_loop().create_future()
    )
    terminal_notified: bool = False


class GenerationTaskOrchestrator:
    """
    Drives generation tasks from submission to a terminal state.

    Attributes:
        client: Generation service client
        submit_policy: RetryPolicy wrapping the submission call
        poll_policy: RetryPolicy wrapping each status request
        poll_interval: Seconds between the end of one poll and the next
        max_wait: Seconds after submission before giving up (None = never)
        supersede_same_kind: Discard the previous active task of the same kind
            when a new one is submitted
    """

    def __init__(
        self,
        client: BaseGenerationClient,
        submit_policy: RetryPolicy,
        poll_policy: RetryPolicy,
        poll_interval: float = 3.0,
        max_wait: float | None = 600.0,
        supersede_same_kind: bool = True,
        telemetry: TelemetrySink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if poll_interval < 0:
            raise ValueError("poll_interval must be >= 0")
        if max_wait is not None and max_wait <= 0:
            raise ValueError("max_wait must be > 0 when set")

        self.client = client
        self.submit_policy = submit_policy
        self.poll_policy = poll_policy
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.supersede_same_kind = supersede_same_kind
        self.telemetry = telemetry
        self._clock = clock
        self._watches: dict[str, _TaskWatch] = {}
        self._runners: set[asyncio.Task] = set()

        logger.info(
            "GenerationTaskOrchestrator initialized",
            poll_interval=poll_interval,
            max_wait=max_wait,
            submit_max_attempts=submit_policy.max_attempts,
            poll_max_attempts=poll_policy.max_attempts,
        )

    @classmethod
    def from_settings(
        cls,
        client: BaseGenerationClient,
        settings: Settings,
        telemetry: TelemetrySink | None = None,
    ) -> "GenerationTaskOrchestrator":
        return cls(
            client=client,
            submit_policy=RetryPolicy.from_settings(
                settings, COMPONENT_SUBMIT, settings.SUBMIT_MAX_ATTEMPTS, telemetry
            ),
            poll_policy=RetryPolicy.from_settings(
                settings, COMPONENT_POLL, settings.POLL_MAX_ATTEMPTS, telemetry
            ),
            poll_interval=settings.POLL_INTERVAL_SECONDS,
            max_wait=settings.POLL_MAX_WAIT_SECONDS,
            supersede_same_kind=settings.SUPERSEDE_SAME_KIND,
            telemetry=telemetry,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def submit(
        self,
        kind: GenerationKind,
        payload: GenerationPayload,
        on_update: TaskCallback | None = None,
    ) -> GenerationTask:
        """
        Submit a generation job and start polling it.

        Args:
            kind: What to generate
            payload: Media files and options
            on_update: Optional observer registered before the first poll

        Returns:
            The new task, status QUEUED

        Raises:
            SubmissionError: Submission failed terminally or after retries;
                no task was created
        """
        try:
            task_id = await self.submit_policy.execute(
                lambda: self.client.submit_job(kind, payload)
            )
        except Exception as e:
            message = e.message if isinstance(e, AssetLayerError) else str(e)
            logger.error(
                "Generation submission failed",
                kind=kind.value,
                error_kind=error_kind_of(e).value,
                error=message,
            )
            raise SubmissionError(
                f"Could not submit {kind.value} generation: {message}",
                cause=e,
                details={"kind": kind.value},
            ) from e

        task = GenerationTask(id=task_id, kind=kind)

        if self.supersede_same_kind:
            # Finished tasks of the same kind are released too
            for other in list(self._watches.values()):
                if other.task.kind != kind:
                    continue
                if not other.task.is_terminal:
                    logger.info(
                        "Superseding previous task",
                        kind=kind.value,
                        previous_task_id=other.task.id,
                        task_id=task.id,
                    )
                self.discard(other.task)

        watch = _TaskWatch(task=task, started_at=self._clock())
        if on_update is not None:
            watch.callbacks.append(on_update)
        self._watches[task.id] = watch

        runner = asyncio.create_task(self._poll_loop(watch), name=f"poll-{task.id}")
        self._runners.add(runner)
        runner.add_done_callback(self._runners.discard)

        self._emit("submitted", watch)
        logger.info("Generation task submitted", task_id=task.id, kind=kind.value)
        return task

    def on_task_update(self, task: GenerationTask, callback: TaskCallback) -> None:
        """
        Register an observer for a task.

        The callback receives a snapshot of the task after every successful
        non-terminal poll and exactly once after the terminal transition.
        Registering on a task that already finished delivers the terminal
        snapshot once.

        Raises:
            KeyError: The task is unknown or was discarded
        """
        watch = self._watches.get(task.id)
        if watch is None:
            raise KeyError(f"Unknown or discarded task: {task.id}")

        watch.callbacks.append(callback)
        if watch.terminal_notified:
            delivery = asyncio.get_running_loop().create_task(
                self._invoke(callback, watch.task.model_copy(deep=True))
            )
            self._runners.add(delivery)
            delivery.add_done_callback(self._runners.discard)

    def discard(self, task: GenerationTask) -> None:
        """Stop polling a task. The remote job keeps running."""
        watch = self._watches.pop(task.id, None)
        if watch is None:
            return

        watch.discarded.set()
        if not watch.task.is_terminal:
            self._emit("discarded", watch)
            logger.info("Generation task discarded", task_id=task.id, status=watch.task.status.value)

    async def wait(self, task: GenerationTask) -> GenerationTask:
        """
        Wait until a task stops being polled.

        Returns:
            The task in its terminal state, or in its last known state if it
            was discarded first

        Raises:
            KeyError: The task is unknown
        """
        watch = self._watches.get(task.id)
        if watch is None:
            if task.is_terminal:
                return task
            raise KeyError(f"Unknown or discarded task: {task.id}")
        return await asyncio.shield(watch.done)

    def active_tasks(self) -> list[GenerationTask]:
        """Tasks still being polled."""
        return [w.task for w in self._watches.values() if not w.task.is_terminal]

    async def close(self) -> None:
        """Discard every task and wait for the poll loops to exit."""
        for watch in list(self._watches.values()):
            self.discard(watch.task)
        if self._runners:
            await asyncio.gather(*list(self._runners), return_exceptions=True)
        logger.debug("GenerationTaskOrchestrator closed")

    # ------------------------------------------------------------------
    # Poll loop
    # ------------------------------------------------------------------

    async def _poll_loop(self, watch: _TaskWatch) -> None:
        structlog.contextvars.bind_contextvars(task_id=watch.task.id, kind=watch.task.kind.value)
        try:
            while not watch.discarded.is_set():
                if self._deadline_passed(watch):
                    await self._time_out(watch)
                    break

                if await self._poll_once(watch):
                    break

                await self._wait_interval(watch)
        except Exception as e:
            logger.exception("Poll loop crashed", task_id=watch.task.id)
            if not watch.done.done():
                watch.done.set_exception(e)
        finally:
            if not watch.done.done():
                watch.done.set_result(watch.task)

    async def _poll_once(self, watch: _TaskWatch) -> bool:
        """Run one poll. Returns True when polling should stop."""
        task = watch.task
        try:
            response = await self.poll_policy.execute(
                lambda: self.client.get_job_status(task.id),
                task_id=task.id,
            )
        except Exception as e:
            if watch.discarded.is_set():
                return True

            kind = error_kind_of(e)
            if kind == ErrorKind.TRANSPORT:
                self._emit("transport_unavailable", watch, error_kind=kind)
                logger.warning(
                    "Generation service unreachable, keeping task status",
                    status=task.status.value,
                    error=str(e),
                )
                return False

            message = e.message if isinstance(e, AssetLayerError) else str(e)
            self._finish_failed(watch, TaskError(message=message, kind=kind))
            await self._notify(watch)
            return True

        if watch.discarded.is_set():
            logger.debug("Dropping poll result for discarded task", status=response.status.value)
            return True

        self._apply(watch, response)
        await self._notify(watch)
        return task.is_terminal

    def _apply(self, watch: _TaskWatch, response: TaskStatusResponse) -> None:
        task = watch.task
        task.polls += 1
        task.updated_at = datetime.now(timezone.utc)

        if response.status == TaskStatus.COMPLETED:
            if response.result is None:
                self._finish_failed(
                    watch,
                    TaskError(message="Job completed without an asset", kind=ErrorKind.REMOTE_JOB),
                )
                return
            task.result = response.result
            task.progress = 100
            task.status = TaskStatus.COMPLETED
            self._emit("completed", watch)
            logger.info(
                "Generation task completed",
                polls=task.polls,
                primary_url=response.result.primary_url,
                mirrors=len(response.result.mirror_urls),
            )
            return

        if response.status == TaskStatus.FAILED:
            self._finish_failed(
                watch,
                TaskError(
                    message=response.error or "The generation service could not produce a result",
                    kind=ErrorKind.REMOTE_JOB,
                ),
            )
            return

        # QUEUED/PROCESSING: never move back to QUEUED, never lower progress
        if not (task.status == TaskStatus.PROCESSING and response.status == TaskStatus.QUEUED):
            task.status = response.status
        if response.progress is not None:
            task.progress = max(task.progress or 0, response.progress)
        self._emit("progress", watch)
        logger.debug("Generation task progress", status=task.status.value, progress=task.progress)

    def _finish_failed(self, watch: _TaskWatch, error: TaskError) -> None:
        task = watch.task
        task.error = error
        task.status = TaskStatus.FAILED
        task.updated_at = datetime.now(timezone.utc)
        self._emit("failed", watch, error_kind=error.kind)
        logger.warning("Generation task failed", error_kind=error.kind.value, error=error.message)

    def _deadline_passed(self, watch: _TaskWatch) -> bool:
        if self.max_wait is None:
            return False
        return self._clock() - watch.started_at >= self.max_wait

    async def _time_out(self, watch: _TaskWatch) -> None:
        self._emit("timed_out", watch, error_kind=ErrorKind.TIMEOUT)
        self._finish_failed(
            watch,
            TaskError(
                message=f"Gave up waiting for the generation service after {self.max_wait:.0f}s",
                kind=ErrorKind.TIMEOUT,
            ),
        )
        await self._notify(watch)

    async def _wait_interval(self, watch: _TaskWatch) -> None:
        """Sleep until the next poll, waking early if the task is discarded."""
        try:
            await asyncio.wait_for(watch.discarded.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass

    # ------------------------------------------------------------------
    # Observers & telemetry
    # ------------------------------------------------------------------

    async def _notify(self, watch: _TaskWatch) -> None:
        if watch.terminal_notified:
            return
        if watch.task.is_terminal:
            watch.terminal_notified = True

        snapshot = watch.task.model_copy(deep=True)
        for callback in list(watch.callbacks):
            await self._invoke(callback, snapshot)

    @staticmethod
    async def _invoke(callback: TaskCallback, snapshot: GenerationTask) -> None:
        try:
            result = callback(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Task update callback failed", task_id=snapshot.id)

    def _emit(self, outcome: str, watch: _TaskWatch, error_kind: ErrorKind | None = None) -> None:
        record_event(
            self.telemetry,
            component=COMPONENT_ORCHESTRATOR,
            outcome=outcome,
            attempt=watch.task.polls,
            error_kind=error_kind,
            duration_ms=max(0.0, (self._clock() - watch.started_at) * 1000),
            task_id=watch.task.id,
        )
