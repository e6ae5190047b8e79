from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from recruitflow.database.connection import get_connection
from recruitflow.database.ids import is_valid_id
from recruitflow.database.models import AttachmentRecord, NewAttachment
from recruitflow.services.exceptions import NotFoundError

_ATTACHMENT_COLUMNS = """
    id, candidate_id, pipeline_stage, type, file_name, blob_url, mime_type,
    file_size, description, tags, ai_generated, stage_id, source_prompt_id,
    prompt_name_snapshot, uploaded_by, created_at
"""

RELINKABLE_COLUMNS = frozenset(
    {"stage_id", "pipeline_stage", "source_prompt_id", "prompt_name_snapshot"}
)


class AttachmentRepository:
    """Database operations for the attachments table."""

    def find_by_id(self, attachment_id: str) -> AttachmentRecord:
        """Find an attachment by ID.

        Raises:
            NotFoundError: if no attachment with this ID exists.
        """
        if not is_valid_id(attachment_id):
            raise NotFoundError(f"Attachment {attachment_id} not found")
        rows = self._select("WHERE id = %s", (attachment_id,))
        if not rows:
            raise NotFoundError(f"Attachment {attachment_id} not found")
        return rows[0]

    def list_for_candidate(self, candidate_id: str) -> list[AttachmentRecord]:
        """All attachments of a candidate, oldest first."""
        if not is_valid_id(candidate_id):
            return []
        return self._select(
            "WHERE candidate_id = %s ORDER BY created_at, id",
            (candidate_id,),
        )

    def list_by_ids(
        self,
        candidate_id: str,
        attachment_ids: list[str],
    ) -> list[AttachmentRecord]:
        """Attachments of a candidate whose ID is in attachment_ids, oldest first.

        IDs belonging to another candidate, or malformed, are ignored.
        """
        valid_ids = [i for i in attachment_ids if is_valid_id(i)]
        if not valid_ids or not is_valid_id(candidate_id):
            return []
        return self._select(
            "WHERE candidate_id = %s AND id = ANY(%s::uuid[]) ORDER BY created_at, id",
            (candidate_id, valid_ids),
        )

    def list_for_stages(
        self,
        candidate_id: str,
        stages: list[str],
    ) -> list[AttachmentRecord]:
        """Attachments of a candidate filed under any of the given stages."""
        if not stages or not is_valid_id(candidate_id):
            return []
        return self._select(
            "WHERE candidate_id = %s AND pipeline_stage = ANY(%s) ORDER BY created_at, id",
            (candidate_id, list(stages)),
        )

    def insert(self, attachment: NewAttachment) -> AttachmentRecord:
        """Insert an attachment row and return it."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO attachments
                    (candidate_id, pipeline_stage, type, file_name, blob_url,
                     mime_type, file_size, description, tags, ai_generated,
                     stage_id, source_prompt_id, prompt_name_snapshot, uploaded_by)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {_ATTACHMENT_COLUMNS}
                    """,
                    (
                        attachment.candidate_id,
                        attachment.pipeline_stage,
                        attachment.type,
                        attachment.file_name,
                        attachment.blob_url,
                        attachment.mime_type,
                        attachment.file_size,
                        attachment.description,
                        Jsonb(attachment.tags),
                        attachment.ai_generated,
                        attachment.stage_id,
                        attachment.source_prompt_id,
                        attachment.prompt_name_snapshot,
                        attachment.uploaded_by,
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError("INSERT ... RETURNING produced no row")
        return _row_to_attachment(row)

    def delete(self, attachment_id: str) -> None:
        """Delete an attachment row.

        Raises:
            NotFoundError: if no attachment with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM attachments WHERE id = %s", (attachment_id,))
                if cur.rowcount == 0:
                    raise NotFoundError(f"Attachment {attachment_id} not found")
            conn.commit()

    def relink(self, attachment_id: str, values: dict[str, str | None]) -> AttachmentRecord:
        """Update the stage and prompt back-references of an attachment.

        Raises:
            ValueError: if values names a column that cannot be relinked.
            NotFoundError: if no attachment with this ID exists.
        """
        unknown = set(values) - RELINKABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot relink columns: {sorted(unknown)}")
        if not values:
            return self.find_by_id(attachment_id)

        assignments = ", ".join(f"{column} = %s" for column in values)
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE attachments SET {assignments}
                    WHERE id = %s
                    RETURNING {_ATTACHMENT_COLUMNS}
                    """,
                    (*values.values(), attachment_id),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise NotFoundError(f"Attachment {attachment_id} not found")
        return _row_to_attachment(row)

    @staticmethod
    def _select(clause: str, params: tuple[Any, ...]) -> list[AttachmentRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(f"SELECT {_ATTACHMENT_COLUMNS} FROM attachments {clause}", params)
                rows = cur.fetchall()
        return [_row_to_attachment(row) for row in rows]


def _optional_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def _row_to_attachment(row: dict[str, Any]) -> AttachmentRecord:
    return AttachmentRecord(
        id=str(row["id"]),
        candidate_id=str(row["candidate_id"]),
        pipeline_stage=row["pipeline_stage"],
        type=row["type"],
        file_name=row["file_name"],
        blob_url=row["blob_url"],
        mime_type=row["mime_type"],
        file_size=row["file_size"],
        description=row["description"],
        tags=list(row["tags"] or []),
        ai_generated=bool(row["ai_generated"]),
        stage_id=_optional_str(row["stage_id"]),
        source_prompt_id=_optional_str(row["source_prompt_id"]),
        prompt_name_snapshot=row["prompt_name_snapshot"],
        uploaded_by=row["uploaded_by"],
        created_at=row["created_at"],
    )
