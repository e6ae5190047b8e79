import time

from recruitflow.config.settings import Settings
from recruitflow.database.connection import get_connection
from recruitflow.database.models import JobRecord
from recruitflow.database.repositories.job_repository import JobRepository
from recruitflow.logging.logger import Log
from recruitflow.worker.job_executor import JobExecutor


class Worker:
    """Drains the processing_jobs table: claim the oldest pending job, execute it, repeat.

    Jobs are only ever written as pending rows by the API, so a crash between
    upload and execution leaves work queued rather than lost.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        executor: JobExecutor,
        settings: Settings,
    ) -> None:
        self._job_repo = job_repo
        self._executor = executor
        self._poll_interval = settings.job_poll_interval_seconds

    def run(self, max_jobs: int | None = None) -> None:
        """Poll until interrupted, or until max_jobs jobs have been executed."""
        Log.info("Worker started", poll_interval_seconds=self._poll_interval)
        succeeded = failed = 0
        try:
            while max_jobs is None or succeeded + failed < max_jobs:
                job = self._try_claim_job()
                if job is None:
                    Log.debug("No pending jobs, sleeping")
                    time.sleep(self._poll_interval)
                elif self._execute(job):
                    succeeded += 1
                else:
                    failed += 1
        except KeyboardInterrupt:
            Log.info("Worker interrupted, shutting down")
        Log.info("Worker stopped", succeeded=succeeded, failed=failed)

    def _execute(self, job: JobRecord) -> bool:
        """Run a claimed job. Errors recording its outcome count as a failure."""
        try:
            return self._executor.execute(job)
        except Exception as exc:
            Log.error(f"Could not record job outcome: {exc}", job_id=job.id)
            return False

    def _try_claim_job(self) -> JobRecord | None:
        """Claim the next pending job. Database errors are logged and retried on the next poll."""
        try:
            with get_connection() as conn:
                return self._job_repo.claim_next_job(conn)
        except Exception as exc:
            Log.warning(f"Could not claim a job, will retry: {exc}")
            return None
