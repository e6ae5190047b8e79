from typing import Any

from psycopg.rows import dict_row

from recruitflow.database.connection import get_connection
from recruitflow.database.ids import is_valid_id
from recruitflow.database.models import (
    ReferenceFileRecord,
    StagePromptRecord,
    TemplateStageRecord,
)
from recruitflow.processing.models import ProcessingRule
from recruitflow.services.exceptions import NotFoundError


class TemplateRepository:
    """Read access to pipeline templates: stages, prompts, reference files, stage configs."""

    def find_prompt(self, prompt_id: str) -> StagePromptRecord:
        """Find an instruction template by ID.

        Raises:
            NotFoundError: if no prompt with this ID exists.
        """
        if not is_valid_id(prompt_id):
            raise NotFoundError(f"Prompt {prompt_id} not found")
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT id, stage_id, name, instructions FROM stage_prompts WHERE id = %s",
                    (prompt_id,),
                )
                row = cur.fetchone()
        if row is None:
            raise NotFoundError(f"Prompt {prompt_id} not found")
        return StagePromptRecord(
            id=str(row["id"]),
            stage_id=str(row["stage_id"]),
            name=row["name"],
            instructions=row["instructions"],
        )

    def list_reference_files(self, prompt_id: str) -> list[ReferenceFileRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, prompt_id, file_name, blob_url, mime_type, file_size
                    FROM prompt_reference_files
                    WHERE prompt_id = %s
                    ORDER BY created_at
                    """,
                    (prompt_id,),
                )
                rows = cur.fetchall()
        return [
            ReferenceFileRecord(
                id=str(row["id"]),
                prompt_id=str(row["prompt_id"]),
                file_name=row["file_name"],
                blob_url=row["blob_url"],
                mime_type=row["mime_type"],
                file_size=row["file_size"],
            )
            for row in rows
        ]

    def find_stage(self, stage_id: str) -> TemplateStageRecord | None:
        if not is_valid_id(stage_id):
            return None
        return self._find_stage("WHERE id = %s", (stage_id,))

    def find_stage_by_name(self, template_id: str, name: str) -> TemplateStageRecord | None:
        """Find the stage called name within a template."""
        return self._find_stage("WHERE template_id = %s AND name = %s", (template_id, name))

    def get_processing_rules(self, stage: str) -> list[ProcessingRule]:
        """Processing rules configured for a stage, in priority order."""
        row = self._fetch_stage_config(stage)
        if row is None:
            return []
        return [
            ProcessingRule.from_dict(raw)
            for raw in row["processing_rules"] or []
            if isinstance(raw, dict)
        ]

    def get_summary_prompt(self, stage: str) -> str | None:
        row = self._fetch_stage_config(stage)
        if row is None:
            return None
        return row["stage_summary_prompt"] or None

    @staticmethod
    def _fetch_stage_config(stage: str) -> dict[str, Any] | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT processing_rules, stage_summary_prompt
                    FROM pipeline_stage_configs
                    WHERE stage = %s
                    """,
                    (stage,),
                )
                return cur.fetchone()

    @staticmethod
    def _find_stage(clause: str, params: tuple[Any, ...]) -> TemplateStageRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT id, template_id, name, display_name, system_prompt
                    FROM template_stages
                    {clause}
                    """,
                    params,
                )
                row = cur.fetchone()
        if row is None:
            return None
        return TemplateStageRecord(
            id=str(row["id"]),
            template_id=str(row["template_id"]),
            name=row["name"],
            display_name=row["display_name"],
            system_prompt=row["system_prompt"],
        )
