from typing import Any

from psycopg.rows import dict_row

from recruitflow.database.connection import get_connection
from recruitflow.database.ids import is_valid_id
from recruitflow.database.models import CandidateRecord, InterviewNoteRecord
from recruitflow.services.exceptions import NotFoundError

# Bookkeeping columns left out of the JSON rendering of profiles and preferences.
_INTERNAL_COLUMNS = frozenset({"id", "candidate_id", "created_at", "updated_at"})


class CandidateRepository:
    """Read access to candidates and the candidate data used as prompt context."""

    def find_by_id(self, candidate_id: str) -> CandidateRecord:
        """Find a candidate by ID.

        Raises:
            NotFoundError: if no candidate with this ID exists.
        """
        if not is_valid_id(candidate_id):
            raise NotFoundError(f"Candidate {candidate_id} not found")
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, name, pipeline_stage, template_id, resume_raw_text
                    FROM candidates
                    WHERE id = %s
                    """,
                    (candidate_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise NotFoundError(f"Candidate {candidate_id} not found")
        return CandidateRecord(
            id=str(row["id"]),
            name=row["name"],
            pipeline_stage=row["pipeline_stage"],
            template_id=str(row["template_id"]) if row["template_id"] else None,
            resume_raw_text=row["resume_raw_text"],
        )

    def get_profile(self, candidate_id: str) -> dict[str, Any] | None:
        """Structured profile of a candidate, or None if none was recorded."""
        return self._fetch_document("candidate_profiles", candidate_id)

    def get_preference(self, candidate_id: str) -> dict[str, Any] | None:
        """Structured preferences of a candidate, or None if none were recorded."""
        return self._fetch_document("candidate_preferences", candidate_id)

    def list_interview_notes(self, candidate_id: str) -> list[InterviewNoteRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, candidate_id, stage, interviewer, rating, content, created_at
                    FROM interview_notes
                    WHERE candidate_id = %s
                    ORDER BY created_at
                    """,
                    (candidate_id,),
                )
                rows = cur.fetchall()
        return [
            InterviewNoteRecord(
                id=str(row["id"]),
                candidate_id=str(row["candidate_id"]),
                stage=row["stage"],
                interviewer=row["interviewer"],
                rating=row["rating"],
                content=row["content"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    @staticmethod
    def _fetch_document(table: str, candidate_id: str) -> dict[str, Any] | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT * FROM {table} WHERE candidate_id = %s",
                    (candidate_id,),
                )
                row = cur.fetchone()
        if row is None:
            return None
        return {
            key: value
            for key, value in row.items()
            if key not in _INTERNAL_COLUMNS and value not in (None, [], {})
        }
