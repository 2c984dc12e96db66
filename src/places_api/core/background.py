"""Background task runner abstraction.

Provides a protocol for submitting and tracking background tasks, with an
in-process asyncio implementation. Place refreshes are submitted here so
callers never wait on the provider.
"""

import asyncio
import enum
import uuid
from collections import deque
from collections.abc import Coroutine
from typing import Any, Protocol


class JobStatus(enum.StrEnum):
    """Status of a background job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BackgroundTaskRunner(Protocol):
    """Protocol for background task execution."""

    def submit_task(self, coro: Coroutine[Any, Any, Any]) -> str:
        """Submit an async task for background execution.

        Args:
            coro: The coroutine to execute.

        Returns:
            A job ID string for tracking.
        """
        ...

    def get_status(self, job_id: str) -> JobStatus:
        """Get the current status of a background job.

        Args:
            job_id: The job ID returned by submit_task.

        Returns:
            The current job status.
        """
        ...


class InProcessTaskRunner:
    """In-process background task runner using asyncio.

    Tasks run in the same event loop as the caller via asyncio.create_task().
    Finished tasks are released. Only the statuses of the ``max_finished_jobs``
    most recently finished jobs are retained.
    """

    def __init__(self, max_finished_jobs: int = 1000) -> None:
        if max_finished_jobs < 1:
            msg = "max_finished_jobs must be at least 1"
            raise ValueError(msg)
        self._max_finished_jobs = max_finished_jobs
        self._jobs: dict[str, JobStatus] = {}
        self._tasks: dict[str, asyncio.Task[Any]] = {}
        self._finished: deque[str] = deque()

    def submit_task(self, coro: Coroutine[Any, Any, Any]) -> str:
        """Submit an async task for background execution.

        Args:
            coro: The coroutine to execute.

        Returns:
            A job ID string for tracking.
        """
        job_id = str(uuid.uuid4())
        self._jobs[job_id] = JobStatus.PENDING

        async def _run() -> None:
            self._jobs[job_id] = JobStatus.RUNNING
            try:
                await coro
                self._jobs[job_id] = JobStatus.COMPLETED
            except Exception:
                self._jobs[job_id] = JobStatus.FAILED
                raise

        task = asyncio.create_task(_run())
        self._tasks[job_id] = task
        task.add_done_callback(lambda _t: self._finish(job_id))
        return job_id

    def _finish(self, job_id: str) -> None:
        self._tasks.pop(job_id, None)
        self._finished.append(job_id)
        while len(self._finished) > self._max_finished_jobs:
            self._jobs.pop(self._finished.popleft(), None)

    def get_status(self, job_id: str) -> JobStatus:
        """Get the current status of a background job.

        Args:
            job_id: The job ID returned by submit_task.

        Returns:
            The current job status.

        Raises:
            KeyError: If the job ID is unknown, or its status was evicted
                after more than ``max_finished_jobs`` later jobs finished.
        """
        return self._jobs[job_id]

    @property
    def pending_count(self) -> int:
        """Number of submitted tasks that have not finished yet."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight task to finish.

        Failures are already recorded as ``FAILED``; they are not re-raised here.
        """
        while self._tasks:
            tasks = list(self._tasks.values())
            await asyncio.gather(*tasks, return_exceptions=True)


# Singleton instance for the application
task_runner = InProcessTaskRunner()
