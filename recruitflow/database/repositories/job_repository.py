from typing import Any

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from recruitflow.database.connection import get_connection
from recruitflow.database.ids import is_valid_id
from recruitflow.database.models import JobRecord
from recruitflow.logging.logger import Log
from recruitflow.processing.models import JobStatus
from recruitflow.services.exceptions import ConflictError, NotFoundError

_JOB_COLUMNS = """
    id, attachment_id, candidate_id, pipeline_stage, job_type, status, progress,
    config, input_data, output_data, result_attachment_id, error_message,
    started_at, completed_at, created_at
"""


class JobRepository:
    """Database operations for the processing_jobs table.

    Status transitions are conditional updates on the expected source state,
    so a job only ever moves pending -> processing -> completed | failed.
    """

    def create_job(
        self,
        *,
        attachment_id: str,
        candidate_id: str,
        pipeline_stage: str,
        job_type: str,
        config: dict[str, Any],
        input_data: dict[str, Any] | None = None,
    ) -> JobRecord:
        """Insert a new pending job."""
        with get_connection() as conn:
            job = self._insert(
                conn,
                attachment_id=attachment_id,
                candidate_id=candidate_id,
                pipeline_stage=pipeline_stage,
                job_type=job_type,
                config=config,
                input_data=input_data,
            )
            conn.commit()
        return job

    def create_jobs_guarded(
        self,
        *,
        attachment_id: str,
        candidate_id: str,
        pipeline_stage: str,
        planned: list[dict[str, Any]],
        active_statuses: tuple[str, ...] = (JobStatus.PROCESSING.value,),
    ) -> list[JobRecord]:
        """Insert pending jobs unless any planned kind is already active.

        Each item of ``planned`` holds job_type, config and input_data. Advisory
        locks on every (attachment, kind) pair are taken in sorted order, then
        all kinds are checked before anything is inserted, in one transaction.
        A conflict therefore leaves no new rows behind.

        Raises:
            ConflictError: if an active job exists for the attachment and any kind.
        """
        if not planned:
            return []
        job_types = sorted({item["job_type"] for item in planned})
        with get_connection() as conn:
            with conn.transaction():
                for job_type in job_types:
                    conn.execute(
                        "SELECT pg_advisory_xact_lock(hashtext(%s))",
                        (f"{attachment_id}:{job_type}",),
                    )
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        SELECT job_type FROM processing_jobs
                        WHERE attachment_id = %s
                          AND job_type = ANY(%s)
                          AND status = ANY(%s)
                        ORDER BY job_type
                        LIMIT 1
                        """,
                        (attachment_id, job_types, list(active_statuses)),
                    )
                    existing = cur.fetchone()
                if existing is not None:
                    raise ConflictError(
                        f"A {existing[0]} job is already in progress for attachment "
                        f"{attachment_id}"
                    )
                return [
                    self._insert(
                        conn,
                        attachment_id=attachment_id,
                        candidate_id=candidate_id,
                        pipeline_stage=pipeline_stage,
                        job_type=item["job_type"],
                        config=item["config"],
                        input_data=item.get("input_data"),
                    )
                    for item in planned
                ]

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> JobRecord | None:
        """Claim the oldest pending job using SELECT FOR UPDATE SKIP LOCKED.

        Jobs whose attachment already has a running job of the same kind are skipped.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT j.id
                FROM processing_jobs j
                WHERE j.status = 'pending'
                  AND NOT EXISTS (
                      SELECT 1 FROM processing_jobs r
                      WHERE r.attachment_id = j.attachment_id
                        AND r.job_type = j.job_type
                        AND r.status = 'processing'
                  )
                ORDER BY j.created_at
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """
            )
            row = cur.fetchone()

        if row is None:
            conn.rollback()
            return None

        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                UPDATE processing_jobs
                SET status = 'processing', started_at = NOW()
                WHERE id = %s
                RETURNING {_JOB_COLUMNS}
                """,
                (row["id"],),
            )
            claimed = cur.fetchone()
        conn.commit()
        return _row_to_job(claimed) if claimed is not None else None

    def mark_processing(self, job_id: str) -> bool:
        """Move a pending job to processing. Returns False if it was not pending."""
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        UPDATE processing_jobs
                        SET status = 'processing', started_at = NOW()
                        WHERE id = %s AND status = 'pending'
                        """,
                        (job_id,),
                    )
                    updated = cur.rowcount == 1
                conn.commit()
        except pg_errors.UniqueViolation:
            Log.warning("Job not started: a sibling job is already running", job_id=job_id)
            return False
        return updated

    def mark_completed(
        self,
        job_id: str,
        output_data: dict[str, Any],
        result_attachment_id: str | None = None,
    ) -> None:
        """Mark a processing job as completed with its output payload."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE processing_jobs
                SET status = 'completed', progress = 100, output_data = %s,
                    result_attachment_id = %s, error_message = NULL,
                    completed_at = NOW()
                WHERE id = %s AND status = 'processing'
                """,
                (Jsonb(output_data), result_attachment_id, job_id),
            )
            conn.commit()

    def mark_failed(self, job_id: str, error: str) -> None:
        """Mark a processing job as failed. Any output is discarded."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE processing_jobs
                SET status = 'failed', error_message = %s, output_data = NULL,
                    completed_at = NOW()
                WHERE id = %s AND status = 'processing'
                """,
                (error, job_id),
            )
            conn.commit()

    def find_by_id(self, job_id: str) -> JobRecord:
        """Find a job by ID.

        Raises:
            NotFoundError: if no job with this ID exists.
        """
        if not is_valid_id(job_id):
            raise NotFoundError(f"Job {job_id} not found")
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM processing_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise NotFoundError(f"Job {job_id} not found")
        return _row_to_job(row)

    def list_jobs(
        self,
        *,
        attachment_id: str | None = None,
        candidate_id: str | None = None,
        status: str | None = None,
    ) -> list[JobRecord]:
        """List jobs, newest first, filtered by any of the given fields."""
        if any(v is not None and not is_valid_id(v) for v in (attachment_id, candidate_id)):
            return []
        conditions: list[str] = []
        params: list[Any] = []
        for column, value in (
            ("attachment_id", attachment_id),
            ("candidate_id", candidate_id),
            ("status", status),
        ):
            if value is not None:
                conditions.append(f"{column} = %s")
                params.append(value)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_JOB_COLUMNS} FROM processing_jobs
                    {where}
                    ORDER BY created_at DESC
                    """,
                    params,
                )
                rows = cur.fetchall()
        return [_row_to_job(row) for row in rows]

    @staticmethod
    def _insert(
        conn: psycopg.Connection[Any],
        *,
        attachment_id: str,
        candidate_id: str,
        pipeline_stage: str,
        job_type: str,
        config: dict[str, Any],
        input_data: dict[str, Any] | None,
    ) -> JobRecord:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                INSERT INTO processing_jobs
                (attachment_id, candidate_id, pipeline_stage, job_type, status,
                 config, input_data)
                VALUES (%s, %s, %s, %s, 'pending', %s, %s)
                RETURNING {_JOB_COLUMNS}
                """,
                (
                    attachment_id,
                    candidate_id,
                    pipeline_stage,
                    job_type,
                    Jsonb(config),
                    Jsonb(input_data or {}),
                ),
            )
            row = cur.fetchone()
        if row is None:
            raise RuntimeError("INSERT ... RETURNING produced no row")
        return _row_to_job(row)


def _optional_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def _row_to_job(row: dict[str, Any]) -> JobRecord:
    return JobRecord(
        id=str(row["id"]),
        attachment_id=str(row["attachment_id"]),
        candidate_id=str(row["candidate_id"]),
        pipeline_stage=row["pipeline_stage"],
        job_type=row["job_type"],
        status=row["status"],
        progress=row["progress"] or 0,
        config=row["config"] or {},
        input_data=row["input_data"] or {},
        output_data=row["output_data"],
        result_attachment_id=_optional_str(row["result_attachment_id"]),
        error_message=row["error_message"],
        started_at=row["started_at"],
        completed_at=row["completed_at"],
        created_at=row["created_at"],
    )
