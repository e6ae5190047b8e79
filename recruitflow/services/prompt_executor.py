from dataclasses import dataclass

from recruitflow.context.aggregator import ContextAggregator
from recruitflow.context.models import SECTION_SEPARATOR, ContextBundle, ContextItem, ContextSection
from recruitflow.database.models import AttachmentRecord, NewAttachment
from recruitflow.database.repositories.attachment_repository import AttachmentRepository
from recruitflow.database.repositories.candidate_repository import CandidateRepository
from recruitflow.database.repositories.template_repository import TemplateRepository
from recruitflow.extraction.extractor import ContentExtractor
from recruitflow.extraction.media import MARKDOWN_MEDIA_TYPE
from recruitflow.inference.client_base import BaseInferenceClient
from recruitflow.inference.exceptions import InferenceError
from recruitflow.inference.models import TextBlock
from recruitflow.inference.prompt_loader import load_prompt_template
from recruitflow.logging.logger import Log
from recruitflow.services.exceptions import ValidationError
from recruitflow.storage.base import BaseStorage, attachment_path

AI_ANALYSIS_TYPE = "ai_analysis"
AI_ANALYSIS_TAG = "AI analysis"


@dataclass
class PromptExecutionResult:
    attachment: AttachmentRecord
    content: str


class PromptExecutor:
    """Runs a named instruction template against selected candidate material.

    Reference files and candidate material go in the user message, context
    first. The template stage's system prompt and the task instructions go
    in the system prompt. The reply is saved as a Markdown attachment.
    """

    def __init__(
        self,
        *,
        candidate_repo: CandidateRepository,
        template_repo: TemplateRepository,
        attachment_repo: AttachmentRepository,
        aggregator: ContextAggregator,
        extractor: ContentExtractor,
        storage: BaseStorage,
        inference_client: BaseInferenceClient,
        max_tokens: int,
    ) -> None:
        self._candidate_repo = candidate_repo
        self._template_repo = template_repo
        self._attachment_repo = attachment_repo
        self._aggregator = aggregator
        self._extractor = extractor
        self._storage = storage
        self._inference_client = inference_client
        self._max_tokens = max_tokens
        self._closing = load_prompt_template("prompt_closing.txt")

    def execute(
        self,
        candidate_id: str,
        stage: str,
        prompt_id: str,
        attachment_ids: list[str] | None = None,
    ) -> PromptExecutionResult:
        """Execute a prompt and persist its output.

        Raises:
            ValidationError: if prompt_id or stage is missing.
            NotFoundError: if the candidate or prompt does not exist.
            ExtractionLimitError: if a file is too large for the model.
            InferenceError: if the model call fails or returns nothing.
        """
        if not prompt_id or not stage:
            raise ValidationError("prompt_id and stage are required")

        candidate = self._candidate_repo.find_by_id(candidate_id)
        prompt = self._template_repo.find_prompt(prompt_id)
        template_stage = (
            self._template_repo.find_stage_by_name(candidate.template_id, stage)
            if candidate.template_id
            else None
        )

        bundle = ContextBundle()
        references = self._reference_section(prompt_id)
        if references is not None:
            bundle.sections.append(references)
        bundle.sections.append(
            ContextSection(
                heading=f"Candidate material: {candidate.name}",
                text="The candidate material to analyze follows.",
            )
        )
        bundle.sections.extend(
            self._aggregator.build_from_selection(candidate_id, attachment_ids or []).sections
        )

        system_parts = []
        if template_stage is not None and template_stage.system_prompt:
            system_parts.append(template_stage.system_prompt)
        system_parts.append(f"# Task instructions\n\n{prompt.instructions}")

        Log.info(
            f"Executing prompt '{prompt.name}' for candidate {candidate_id} "
            f"with {len(attachment_ids or [])} selected attachments"
        )
        response = self._inference_client.complete(
            [TextBlock(f"{bundle.render()}{SECTION_SEPARATOR}{self._closing}")],
            max_tokens=self._max_tokens,
            system_prompt=SECTION_SEPARATOR.join(system_parts),
        )
        if not response.text:
            raise InferenceError(f"AI returned no content for prompt '{prompt.name}'")

        file_name = f"{prompt.name}_{candidate.name}.md"
        data = response.text.encode("utf-8")
        url = self._storage.put(
            attachment_path(candidate_id, stage, file_name),
            data,
            MARKDOWN_MEDIA_TYPE,
            add_random_suffix=True,
        )
        attachment = self._attachment_repo.insert(
            NewAttachment(
                candidate_id=candidate_id,
                pipeline_stage=template_stage.display_name if template_stage else stage,
                type=AI_ANALYSIS_TYPE,
                file_name=file_name,
                blob_url=url,
                mime_type=MARKDOWN_MEDIA_TYPE,
                file_size=len(data),
                description=f"AI generated: {prompt.name}",
                tags=[AI_ANALYSIS_TAG, prompt.name],
                ai_generated=True,
                stage_id=template_stage.id if template_stage else None,
                source_prompt_id=prompt.id,
                prompt_name_snapshot=prompt.name,
            )
        )
        Log.info("Saved prompt output", attachment_id=attachment.id, prompt_id=prompt.id)
        return PromptExecutionResult(attachment=attachment, content=response.text)

    def _reference_section(self, prompt_id: str) -> ContextSection | None:
        files = self._template_repo.list_reference_files(prompt_id)
        if not files:
            Log.debug("No reference files for prompt", prompt_id=prompt_id)
            return None
        return ContextSection(
            heading="Reference material",
            text="Templates and standards to follow:",
            items=[
                ContextItem(f.file_name, self._extractor.extract(f.blob_url, f.mime_type, f.file_name))
                for f in files
            ],
        )
