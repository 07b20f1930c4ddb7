from __future__ import annotations
"""Fixed-interval job poller shared by the Replicate and Runway integrations.

A job moves PENDING → PROCESSING → {SUCCEEDED | FAILED | CANCELED}. The poller
adds its own TIMEOUT outcome when the attempt budget runs out. Each call polls
a single job sequentially; there is no backoff and no jitter.
"""

import asyncio
import enum
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from momentful.errors import JobCanceledError, JobFailedError, JobTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 60
DEFAULT_INTERVAL = 2.0


class JobState(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELED = "CANCELED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.SUCCEEDED, JobState.FAILED, JobState.CANCELED)


@dataclass
class JobStatus:
    """Provider-neutral view of one status fetch.

    ``payload`` keeps the provider's raw response so callers can return it
    unchanged.
    """
    job_id: str
    state: JobState
    raw_status: str
    progress: float | None = None
    output: Any = None
    error: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def output_url(self) -> str | None:
        return extract_output_url(self.output)


ProgressCallback = Callable[[str, "float | None"], "Awaitable[None] | None"]


def extract_output_url(output: Any) -> str | None:
    """First URL in a provider output (string, list of strings/objects, or object)."""
    if not output:
        return None
    if isinstance(output, str):
        return output
    if isinstance(output, (list, tuple)):
        first = output[0] if output else None
        if isinstance(first, str):
            return first
        if isinstance(first, dict) and isinstance(first.get("url"), str):
            return first["url"]
        return None
    if isinstance(output, dict):
        for key in ("url", "imageUrl", "image_url"):
            if isinstance(output.get(key), str):
                return output[key]
    return None


async def poll_job(
    job_id: str,
    fetch_status: Callable[[str], Awaitable[JobStatus]],
    *,
    on_progress: ProgressCallback | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    interval: float = DEFAULT_INTERVAL,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> JobStatus:
    """Poll ``fetch_status(job_id)`` until a terminal state or ``max_attempts``.

    The first fetch happens immediately. ``on_progress(status, progress)`` is
    invoked after every fetch, including the terminal one.

    Raises:
        JobFailedError: provider reported failure (message from the provider).
        JobCanceledError: provider reported cancellation.
        JobTimeoutError: attempts exhausted while still non-terminal.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            status = await fetch_status(job_id)
        except Exception as e:
            logger.error("Error polling job %s (attempt %d): %s", job_id, attempt, e)
            raise

        if on_progress is not None:
            result = on_progress(status.raw_status, status.progress)
            if inspect.isawaitable(result):
                await result

        if status.state is JobState.SUCCEEDED:
            logger.info("Job %s succeeded after %d attempt(s)", job_id, attempt)
            return status
        if status.state is JobState.FAILED:
            raise JobFailedError(status.error or "Job failed", job_id=job_id)
        if status.state is JobState.CANCELED:
            raise JobCanceledError("Job was canceled", job_id=job_id)

        logger.debug("Job %s: %s (attempt %d/%d)", job_id, status.raw_status, attempt, max_attempts)
        if attempt < max_attempts:
            await sleep(interval)

    raise JobTimeoutError(
        f"Job polling timed out after {max_attempts} attempts", job_id=job_id
    )
