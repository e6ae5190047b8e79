import time
from datetime import UTC, datetime
from typing import Any

from recruitflow.database.models import AttachmentRecord, CandidateRecord, JobRecord, NewAttachment
from recruitflow.database.repositories.attachment_repository import AttachmentRepository
from recruitflow.database.repositories.candidate_repository import CandidateRepository
from recruitflow.database.repositories.job_repository import JobRepository
from recruitflow.extraction.extractor import ContentExtractor
from recruitflow.extraction.media import MARKDOWN_MEDIA_TYPE, MediaKind, classify_media
from recruitflow.inference.client_base import BaseInferenceClient
from recruitflow.inference.models import ContentBlock, DocumentBlock, ImageBlock, TextBlock
from recruitflow.inference.prompt_loader import fill_placeholders
from recruitflow.logging.logger import Log
from recruitflow.processing.models import JobKind, JobStatus, OutputKind
from recruitflow.storage.base import BaseStorage, attachment_path

TRANSCRIPTION_PENDING_MESSAGE = (
    "Automatic transcription is not integrated yet; upload a transcript manually."
)


class JobExecutor:
    """Drive one processing job from pending to a terminal state."""

    def __init__(
        self,
        *,
        job_repo: JobRepository,
        attachment_repo: AttachmentRepository,
        candidate_repo: CandidateRepository,
        storage: BaseStorage,
        inference_client: BaseInferenceClient,
        extractor: ContentExtractor,
        max_tokens: int,
    ) -> None:
        self._job_repo = job_repo
        self._attachment_repo = attachment_repo
        self._candidate_repo = candidate_repo
        self._storage = storage
        self._inference_client = inference_client
        self._extractor = extractor
        self._max_tokens = max_tokens

    def run(self, job_id: str) -> bool:
        """Claim a pending job by ID and execute it.

        Returns False without any transition when the job is not pending.

        Raises:
            NotFoundError: if the job does not exist.
        """
        job = self._job_repo.find_by_id(job_id)
        if job.status != JobStatus.PENDING:
            Log.warning(f"Refusing to run a {job.status} job", job_id=job_id)
            return False
        if not self._job_repo.mark_processing(job_id):
            Log.warning("Job was claimed elsewhere", job_id=job_id)
            return False
        return self.execute(job)

    def execute(self, job: JobRecord) -> bool:
        """Execute a job that is already in processing and record its outcome."""
        Log.info(
            f"Running {job.job_type} job",
            job_id=job.id,
            attachment_id=job.attachment_id,
            candidate_id=job.candidate_id,
        )
        try:
            output, result_attachment_id = self._process(job)
            self._job_repo.mark_completed(job.id, output, result_attachment_id)
        except Exception as exc:
            Log.error(f"Job failed: {exc}", job_id=job.id)
            self._job_repo.mark_failed(job.id, str(exc) or type(exc).__name__)
            return False
        Log.info("Job completed", job_id=job.id, result_attachment_id=result_attachment_id)
        return True

    def _process(self, job: JobRecord) -> tuple[dict[str, Any], str | None]:
        attachment = self._attachment_repo.find_by_id(job.attachment_id)
        candidate = self._candidate_repo.find_by_id(job.candidate_id)

        kind = JobKind(job.job_type)
        if kind is JobKind.TRANSCRIBE:
            return {"status": "requires_manual", "message": TRANSCRIPTION_PENDING_MESSAGE}, None
        return self._analyze(job, attachment, candidate)

    def _analyze(
        self,
        job: JobRecord,
        attachment: AttachmentRecord,
        candidate: CandidateRecord,
    ) -> tuple[dict[str, Any], str | None]:
        output_type = job.input_data.get("output_type") or job.input_data.get("outputType")
        prompt = job.config.get("prompt")
        if not prompt:
            Log.warning("No analysis prompt configured", job_id=job.id)
            return {"output_type": output_type, "message": "No analysis prompt configured"}, None

        prompt = fill_placeholders(
            prompt,
            candidate_name=candidate.name,
            stage=job.pipeline_stage,
            file_name=attachment.file_name,
        )
        response = self._inference_client.complete(
            self._build_blocks(prompt, attachment),
            max_tokens=self._max_tokens,
        )
        output: dict[str, Any] = {
            "analysis": response.text,
            "output_type": output_type,
            "model": response.model,
            "timestamp": datetime.now(UTC).isoformat(),
        }

        result_attachment_id = None
        output_kind = OutputKind(output_type) if output_type in set(OutputKind) else None
        if output_kind is not None and output_kind.creates_attachment:
            report = self._save_report(job, attachment, response.text)
            result_attachment_id = report.id
            output["report_attachment_id"] = report.id
        return output, result_attachment_id

    def _build_blocks(self, prompt: str, attachment: AttachmentRecord) -> list[ContentBlock]:
        kind = classify_media(attachment.mime_type, attachment.file_name)
        if kind is MediaKind.PDF:
            return [
                DocumentBlock.from_bytes(self._storage.get(attachment.blob_url), attachment.file_name),
                TextBlock(fill_placeholders(prompt, content="Analyze the PDF document above.")),
            ]
        if kind is MediaKind.IMAGE:
            return [
                ImageBlock.from_bytes(
                    self._storage.get(attachment.blob_url), attachment.mime_type or ""
                ),
                TextBlock(fill_placeholders(prompt, content="Analyze the image above.")),
            ]
        if kind is MediaKind.TEXT:
            content = self._extractor.read_text(attachment.blob_url, attachment.file_name)
        else:
            content = (
                f"[File type {attachment.mime_type or 'unknown'} cannot be analyzed directly; "
                "convert it to PDF or text first]"
            )
        return [TextBlock(fill_placeholders(prompt, content=content))]

    def _save_report(
        self,
        job: JobRecord,
        source: AttachmentRecord,
        analysis: str,
    ) -> AttachmentRecord:
        file_name = f"AI-analysis_{source.file_name}_{int(time.time() * 1000)}.md"
        data = analysis.encode("utf-8")
        url = self._storage.put(
            attachment_path(job.candidate_id, job.pipeline_stage, file_name),
            data,
            MARKDOWN_MEDIA_TYPE,
        )
        report = self._attachment_repo.insert(
            NewAttachment(
                candidate_id=job.candidate_id,
                pipeline_stage=job.pipeline_stage,
                type=OutputKind.NOTE.value,
                file_name=file_name,
                blob_url=url,
                mime_type=MARKDOWN_MEDIA_TYPE,
                file_size=len(data),
                description=f"AI-generated analysis of {source.file_name}",
                ai_generated=True,
            )
        )
        Log.info(
            f"Saved analysis of {source.file_name}", job_id=job.id, attachment_id=report.id
        )
        return report
