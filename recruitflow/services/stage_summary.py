from datetime import UTC, datetime

from recruitflow.context.models import SECTION_SEPARATOR
from recruitflow.database.models import AttachmentRecord, NewAttachment
from recruitflow.database.repositories.attachment_repository import AttachmentRepository
from recruitflow.database.repositories.candidate_repository import CandidateRepository
from recruitflow.database.repositories.template_repository import TemplateRepository
from recruitflow.extraction.extractor import ContentExtractor
from recruitflow.extraction.media import MARKDOWN_MEDIA_TYPE, is_text_like
from recruitflow.inference.client_base import BaseInferenceClient
from recruitflow.inference.exceptions import InferenceError
from recruitflow.inference.models import PDF_MEDIA_TYPE, TextBlock
from recruitflow.inference.prompt_loader import fill_placeholders, load_prompt_template
from recruitflow.logging.logger import Log
from recruitflow.processing.models import PIPELINE_STAGES, stage_label
from recruitflow.services.exceptions import ValidationError
from recruitflow.storage.base import BaseStorage, attachment_path


class StageSummaryGenerator:
    """Writes a summary report over every attachment up to a pipeline stage."""

    def __init__(
        self,
        *,
        candidate_repo: CandidateRepository,
        template_repo: TemplateRepository,
        attachment_repo: AttachmentRepository,
        extractor: ContentExtractor,
        storage: BaseStorage,
        inference_client: BaseInferenceClient,
        max_tokens: int,
    ) -> None:
        self._candidate_repo = candidate_repo
        self._template_repo = template_repo
        self._attachment_repo = attachment_repo
        self._extractor = extractor
        self._storage = storage
        self._inference_client = inference_client
        self._max_tokens = max_tokens

    def generate(self, candidate_id: str, stage: str) -> AttachmentRecord:
        """Generate and save the summary for a stage.

        Raises:
            ValidationError: if the stage is unknown or there is no material.
            NotFoundError: if the candidate does not exist.
            InferenceError: if the model call fails or returns nothing.
        """
        if stage not in PIPELINE_STAGES:
            raise ValidationError(f"Invalid pipeline stage: {stage}")
        candidate = self._candidate_repo.find_by_id(candidate_id)

        stages = list(PIPELINE_STAGES[: PIPELINE_STAGES.index(stage) + 1])
        attachments = self._attachment_repo.list_for_stages(candidate_id, stages)
        if not attachments:
            raise ValidationError("No material found for this candidate; upload files first")

        materials = SECTION_SEPARATOR.join(
            f"### [{stage_label(a.pipeline_stage)}] {a.file_name}\n\n{self._read(a)}"
            for a in attachments
        )
        template = self._template_repo.get_summary_prompt(stage) or load_prompt_template(
            "stage_summary.txt"
        )
        prompt = fill_placeholders(
            template,
            candidate_name=candidate.name,
            current_stage=stage_label(stage),
            materials=materials,
        )

        Log.info(
            f"Generating {stage} summary for candidate {candidate_id} "
            f"from {len(attachments)} attachments"
        )
        response = self._inference_client.complete(
            [TextBlock(prompt)], max_tokens=self._max_tokens
        )
        if not response.text:
            raise InferenceError("AI returned an empty summary")

        timestamp = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
        file_name = f"{stage}-summary-{timestamp}.md"
        data = response.text.encode("utf-8")
        url = self._storage.put(
            attachment_path(candidate_id, stage, file_name), data, MARKDOWN_MEDIA_TYPE
        )
        summary = self._attachment_repo.insert(
            NewAttachment(
                candidate_id=candidate_id,
                pipeline_stage=stage,
                type="note",
                file_name=file_name,
                blob_url=url,
                mime_type=MARKDOWN_MEDIA_TYPE,
                file_size=len(data),
                description=f"AI-generated {stage_label(stage)} stage summary",
                ai_generated=True,
            )
        )
        Log.info(f"Saved {stage} summary", attachment_id=summary.id, candidate_id=candidate_id)
        return summary

    def _read(self, attachment: AttachmentRecord) -> str:
        # Text files are inlined; everything else is only noted.
        if is_text_like(attachment.mime_type, attachment.file_name):
            return self._extractor.read_text(attachment.blob_url, attachment.file_name)
        if attachment.mime_type == PDF_MEDIA_TYPE or attachment.file_name.lower().endswith(".pdf"):
            return f"[PDF file: {attachment.file_name}]"
        return f"[File: {attachment.file_name}, type: {attachment.mime_type or 'unknown'}]"
