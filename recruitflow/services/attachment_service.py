"""Attachment lifecycle: upload with rule-driven job creation, delete, relink, reprocess."""

from typing import Any, Final

from recruitflow.database.models import AttachmentRecord, JobRecord, NewAttachment
from recruitflow.database.repositories.attachment_repository import AttachmentRepository
from recruitflow.database.repositories.candidate_repository import CandidateRepository
from recruitflow.database.repositories.job_repository import JobRepository
from recruitflow.database.repositories.template_repository import TemplateRepository
from recruitflow.logging.logger import Log
from recruitflow.processing.models import PIPELINE_STAGES, JobKind, JobStatus, ProcessingRule
from recruitflow.processing.rules import match_rule
from recruitflow.services.exceptions import NotFoundError, ValidationError
from recruitflow.storage.base import BaseStorage, attachment_path
from recruitflow.storage.exceptions import StorageError


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Marks a relink argument that was not supplied, as opposed to an explicit None.
UNSET: Final = _Unset()


def _is_recording(media_type: str | None) -> bool:
    return media_type is not None and media_type.startswith(("audio/", "video/"))


def planned_jobs(rule: ProcessingRule, media_type: str | None) -> list[dict[str, Any]]:
    """Jobs a rule asks for, as job_type/config/input_data values."""
    jobs: list[dict[str, Any]] = []
    if rule.auto_transcribe and _is_recording(media_type):
        jobs.append(
            {
                "job_type": JobKind.TRANSCRIBE.value,
                "config": {"options": {"language": "auto"}},
                "input_data": None,
            }
        )
    if rule.auto_analyze:
        jobs.append(
            {
                "job_type": JobKind.ANALYZE.value,
                "config": {"prompt": rule.analysis_prompt},
                "input_data": {"output_type": rule.output_type},
            }
        )
    return jobs


class AttachmentService:
    """Coordinates storage, attachment rows and processing jobs."""

    def __init__(
        self,
        *,
        storage: BaseStorage,
        attachment_repo: AttachmentRepository,
        candidate_repo: CandidateRepository,
        template_repo: TemplateRepository,
        job_repo: JobRepository,
        auto_process_uploads: bool = True,
        block_pending: bool = False,
    ) -> None:
        self._storage = storage
        self._attachment_repo = attachment_repo
        self._candidate_repo = candidate_repo
        self._template_repo = template_repo
        self._job_repo = job_repo
        self._auto_process_uploads = auto_process_uploads
        self._active_statuses: tuple[str, ...] = (
            (JobStatus.PENDING.value, JobStatus.PROCESSING.value)
            if block_pending
            else (JobStatus.PROCESSING.value,)
        )

    def upload(
        self,
        *,
        candidate_id: str,
        stage: str,
        file_name: str,
        data: bytes,
        media_type: str | None,
        declared_type: str = "other",
        description: str | None = None,
        uploaded_by: str | None = None,
    ) -> tuple[AttachmentRecord, list[str]]:
        """Store a file, record it, and queue the jobs its stage rules ask for.

        Returns the attachment and the IDs of any jobs created.

        Raises:
            ValidationError: if the stage is unknown or no file was given.
            NotFoundError: if the candidate does not exist.
            StorageError: if the file could not be stored; no row is written.
        """
        if stage not in PIPELINE_STAGES:
            raise ValidationError(f"Invalid pipeline stage: {stage}")
        if not file_name or not data:
            raise ValidationError("No file provided")
        self._candidate_repo.find_by_id(candidate_id)

        url = self._storage.put(
            attachment_path(candidate_id, stage, file_name),
            data,
            media_type or "application/octet-stream",
        )
        attachment = self._attachment_repo.insert(
            NewAttachment(
                candidate_id=candidate_id,
                pipeline_stage=stage,
                type=declared_type or "other",
                file_name=file_name,
                blob_url=url,
                mime_type=media_type,
                file_size=len(data),
                description=description,
                uploaded_by=uploaded_by,
            )
        )
        Log.info(
            f"Uploaded {file_name}", attachment_id=attachment.id, candidate_id=candidate_id
        )

        job_ids: list[str] = []
        if self._auto_process_uploads:
            job_ids = self.create_jobs_for_attachment(attachment, guarded=False)
        return attachment, job_ids

    def list_attachments(self, candidate_id: str, stage: str) -> list[AttachmentRecord]:
        if stage not in PIPELINE_STAGES:
            raise ValidationError(f"Invalid pipeline stage: {stage}")
        return self._attachment_repo.list_for_stages(candidate_id, [stage])

    def delete(self, attachment_id: str) -> None:
        """Delete an attachment. The stored object is removed best-effort.

        Raises:
            NotFoundError: if the attachment does not exist.
        """
        attachment = self._attachment_repo.find_by_id(attachment_id)
        try:
            self._storage.delete(attachment.blob_url)
        except StorageError as exc:
            Log.warning(f"Failed to delete stored object: {exc}", attachment_id=attachment_id)
        self._attachment_repo.delete(attachment_id)
        Log.info("Deleted attachment", attachment_id=attachment_id)

    def relink(
        self,
        attachment_id: str,
        *,
        stage_id: str | None | _Unset = UNSET,
        prompt_id: str | None | _Unset = UNSET,
    ) -> AttachmentRecord:
        """Point an attachment at a new template stage and/or source prompt.

        None clears the link; UNSET leaves it untouched. Snapshots of the
        stage display name and prompt name are refreshed with the link.

        Raises:
            NotFoundError: if the attachment, stage or prompt does not exist.
        """
        self._attachment_repo.find_by_id(attachment_id)
        values: dict[str, str | None] = {}

        if stage_id is None:
            values.update(stage_id=None, pipeline_stage=None)
        elif not isinstance(stage_id, _Unset):
            stage = self._template_repo.find_stage(stage_id)
            if stage is None:
                raise NotFoundError(f"Stage {stage_id} not found")
            values.update(stage_id=stage.id, pipeline_stage=stage.display_name)

        if prompt_id is None:
            values.update(source_prompt_id=None, prompt_name_snapshot=None)
        elif not isinstance(prompt_id, _Unset):
            prompt = self._template_repo.find_prompt(prompt_id)
            values.update(source_prompt_id=prompt.id, prompt_name_snapshot=prompt.name)

        return self._attachment_repo.relink(attachment_id, values)

    def reprocess(self, attachment_id: str) -> list[str]:
        """Queue the jobs the attachment's stage rules ask for.

        Raises:
            NotFoundError: if the attachment does not exist.
            ValidationError: if no processing rule matches the attachment.
            ConflictError: if a job of the same kind is already in flight.
        """
        attachment = self._attachment_repo.find_by_id(attachment_id)
        job_ids = self.create_jobs_for_attachment(attachment, guarded=True)
        if not job_ids:
            raise ValidationError(
                f"No processing rule applies to attachment {attachment_id}"
            )
        return job_ids

    def create_jobs_for_attachment(
        self,
        attachment: AttachmentRecord,
        *,
        guarded: bool,
    ) -> list[str]:
        """Create pending jobs for the rule matching an attachment.

        Returns the new job IDs; empty when no rule matches or the rule asks
        for nothing.
        """
        stage = attachment.pipeline_stage
        if not stage:
            Log.info("Attachment has no stage, no rules apply", attachment_id=attachment.id)
            return []
        rule = match_rule(
            self._template_repo.get_processing_rules(stage),
            attachment.mime_type,
            attachment.type,
        )
        if rule is None:
            Log.info("No processing rule matches", attachment_id=attachment.id, stage=stage)
            return []

        planned = planned_jobs(rule, attachment.mime_type)
        if not planned:
            return []
        if guarded:
            jobs = self._job_repo.create_jobs_guarded(
                attachment_id=attachment.id,
                candidate_id=attachment.candidate_id,
                pipeline_stage=stage,
                planned=planned,
                active_statuses=self._active_statuses,
            )
        else:
            jobs = [
                self._job_repo.create_job(
                    attachment_id=attachment.id,
                    candidate_id=attachment.candidate_id,
                    pipeline_stage=stage,
                    **item,
                )
                for item in planned
            ]
        for job in jobs:
            Log.info(f"Queued {job.job_type} job", job_id=job.id, attachment_id=attachment.id)
        return [job.id for job in jobs]

    def list_jobs(
        self,
        *,
        attachment_id: str | None = None,
        candidate_id: str | None = None,
        status: str | None = None,
    ) -> list[JobRecord]:
        if status is not None and status not in {s.value for s in JobStatus}:
            raise ValidationError(f"Unknown job status: {status}")
        return self._job_repo.list_jobs(
            attachment_id=attachment_id,
            candidate_id=candidate_id,
            status=status,
        )
