"""
Turns an asynchronous generation job into a single awaited result.

``poll_until_done`` keeps asking ``fetch_status(job_id)`` for the job until
it reaches a terminal state. ``fetch_status`` returns the status payload, or
``None`` while the job is not visible yet.
"""

import logging
import random
import re
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urljoin

from config import DEFAULT_POLL_INTERVAL_SECONDS

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


class PollError(Exception):
    """Base class for polling failures."""


class JobFailed(PollError):
    """The job reached the error state. ``str(exc)`` is the upstream message."""


class JobExpired(JobFailed):
    """The job was evicted by the retention sweep before it was read."""


class PollCancelled(PollError):
    """The caller set the cancellation event."""


class PollTimeout(PollError):
    """The retry policy ran out of attempts or time."""


@dataclass
class RetryPolicy:
    interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_attempts: Optional[int] = None
    deadline: Optional[float] = None  # seconds from the first query
    jitter: float = 0.0  # up to this many extra seconds per wait

    def delay(self) -> float:
        if self.jitter > 0:
            return self.interval + random.uniform(0, self.jitter)
        return self.interval


def resolve_result_url(url: str, base_url: str) -> str:
    if isinstance(url, str) and _ABSOLUTE_URL.match(url):
        return url
    if not base_url:
        raise PollError(f"Cannot resolve relative result URL '{url}' without a base URL")
    return urljoin(base_url.rstrip("/") + "/", url or "")


def poll_until_done(
    fetch_status: Callable[[str], Optional[dict]],
    job_id: str,
    base_url: str = "",
    policy: Optional[RetryPolicy] = None,
    cancel_event: Optional[threading.Event] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> str:
    """Return the absolute result URL of ``job_id`` once it is done."""
    policy = policy or RetryPolicy()
    started = clock()
    attempts = 0

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise PollCancelled("Cancelled")

        attempts += 1
        job = fetch_status(job_id)
        if job is not None:
            status = job.get("status")
            if status in ("done", "completed"):
                if not job.get("url"):
                    raise JobFailed("Job finished without a result URL")
                return resolve_result_url(job["url"], base_url)
            if status == "error":
                raise JobFailed(job.get("error") or "Job failed")
            logging.debug(f"Job {job_id} is {status} ({job.get('progress', '?')}%)")

        if policy.max_attempts is not None and attempts >= policy.max_attempts:
            raise PollTimeout(f"Job {job_id} not finished after {attempts} attempts")
        if policy.deadline is not None and clock() - started >= policy.deadline:
            raise PollTimeout(f"Job {job_id} not finished after {policy.deadline} seconds")

        if cancel_event is not None:
            # wakes up early when cancelled
            cancel_event.wait(policy.delay())
        else:
            sleep(policy.delay())
