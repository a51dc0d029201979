"""
Durable "generate web memory for post X" queue.

Jobs live one per post (``id == postId``) and move through an explicit
state machine::

    pending --(success)--------------------> completed
    pending --(failure, attempts < max)----> pending
    pending --(failure, attempts >= max)---> failed
    pending --(configuration error)--------> failed

Claims are guarded by a lease written with the document's ETag, so two
overlapping worker invocations can never both own the same job. A lease
that lapses means the worker died mid-run (host timeout, crash); the next
claim records that as a failed attempt before running the job again.
"""
from datetime import datetime, timedelta
from typing import Optional, Union

from src.shared.config import JOB_LEASE_SECONDS, MAX_JOB_ATTEMPTS
from src.shared.logging_utils import info as log_info, warning as log_warning
from src.shared.state import JobStore, get_job_store
from src.specs.common.datetime_utils import format_iso_datetime, utc_now
from src.specs.common.enums import JobOutcome, JobStatus
from src.specs.common.errors import JobStateError, LeaseExpiredError
from src.specs.models.persistence import JobDocument


def new_job(post_id: str, now: datetime) -> JobDocument:
    return JobDocument(id=post_id, postId=post_id, createdAt=format_iso_datetime(now))


def _ensure_pending(job: JobDocument) -> None:
    if job.is_terminal:
        raise JobStateError(job.postId, str(job.status))


def claimed(job: JobDocument, now: datetime, lease_seconds: int = JOB_LEASE_SECONDS) -> JobDocument:
    _ensure_pending(job)
    return job.model_copy(update={"leaseExpiresAt": format_iso_datetime(now + timedelta(seconds=lease_seconds))})


def completed(job: JobDocument, now: datetime, outcome: Optional[Union[JobOutcome, str]] = None) -> JobDocument:
    _ensure_pending(job)
    if isinstance(outcome, JobOutcome):
        outcome = outcome.value
    return job.model_copy(
        update={
            "status": JobStatus.COMPLETED.value,
            "processedAt": format_iso_datetime(now),
            "leaseExpiresAt": None,
            "outcome": outcome,
        }
    )


def failed_attempt(
    job: JobDocument,
    error: BaseException,
    now: datetime,
    max_attempts: int = MAX_JOB_ATTEMPTS,
    *,
    terminal: bool = False,
) -> JobDocument:
    """Count one failed run. ``terminal`` fails the job regardless of attempts left."""
    _ensure_pending(job)
    attempts = job.attempts + 1
    update = {
        "attempts": attempts,
        "lastErrorMessage": str(error) or type(error).__name__,
        "lastErrorAt": format_iso_datetime(now),
        "leaseExpiresAt": None,
    }
    if terminal or attempts >= max_attempts:
        update["status"] = JobStatus.FAILED.value
        update["processedAt"] = format_iso_datetime(now)
    return job.model_copy(update=update)


def lease_lapsed(job: JobDocument, now: datetime, max_attempts: int = MAX_JOB_ATTEMPTS) -> JobDocument:
    """Charge an abandoned claim (lease set but expired) as a failed attempt."""
    return failed_attempt(job, LeaseExpiredError(job.postId, job.leaseExpiresAt or ""), now, max_attempts)


class JobQueue:
    def __init__(self, store: Optional[JobStore] = None, *, max_attempts: int = MAX_JOB_ATTEMPTS) -> None:
        self._store = store or get_job_store()
        self.max_attempts = max_attempts

    def enqueue(self, post_id: str) -> bool:
        """Insert a pending job for ``post_id``; returns False if one already exists."""
        created = self._store.insert(new_job(post_id, utc_now()))
        if created:
            log_info(post_id, "queue:enqueued")
        else:
            log_info(post_id, "queue:already_queued")
        return created

    def get(self, post_id: str) -> Optional[JobDocument]:
        return self._store.get(post_id)

    def claim_next(self) -> Optional[JobDocument]:
        """Claim the oldest pending job, or return None if there is none (or a race was lost).

        Jobs whose abandoned lease uses up their last attempt are failed here
        and the next candidate is tried.
        """
        while True:
            now = utc_now()
            candidate = self._store.next_claimable(format_iso_datetime(now))
            if candidate is None:
                return None

            job = candidate
            if candidate.leaseExpiresAt:
                job = lease_lapsed(candidate, now, self.max_attempts)
                log_warning(
                    candidate.postId,
                    "queue:lease_expired",
                    leaseExpiresAt=candidate.leaseExpiresAt,
                    attempts=job.attempts,
                    status=job.status,
                )
                if job.is_terminal:
                    if not self._store.replace(job):
                        log_info(candidate.postId, "queue:claim_lost")
                        return None
                    continue

            if not self._store.replace(claimed(job, now)):
                log_info(candidate.postId, "queue:claim_lost")
                return None
            log_info(candidate.postId, "queue:claimed", attempts=job.attempts)
            # Re-read so the caller holds the post-claim ETag
            return self._store.get(candidate.postId) or claimed(job, now)

    def complete(self, job: JobDocument, outcome: Optional[Union[JobOutcome, str]] = None) -> JobDocument:
        done = completed(job, utc_now(), outcome)
        self._save(done)
        log_info(job.postId, "queue:completed", outcome=done.outcome)
        return done

    def fail(self, job: JobDocument, error: BaseException, *, terminal: bool = False) -> JobDocument:
        after = failed_attempt(job, error, utc_now(), self.max_attempts, terminal=terminal)
        self._save(after)
        log_warning(
            job.postId,
            "queue:failed_attempt",
            attempts=after.attempts,
            status=after.status,
            terminal=terminal,
            error=after.lastErrorMessage,
        )
        return after

    def _save(self, job: JobDocument) -> None:
        if not self._store.replace(job):
            # ETag moved after our claim; the job stays claimable once the lease lapses
            log_warning(job.postId, "queue:save_conflict", status=job.status)
