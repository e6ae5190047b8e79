from dataclasses import dataclass

from recruitflow.config.settings import Settings
from recruitflow.context.aggregator import ContextAggregator
from recruitflow.database.repositories.attachment_repository import AttachmentRepository
from recruitflow.database.repositories.candidate_repository import CandidateRepository
from recruitflow.database.repositories.job_repository import JobRepository
from recruitflow.database.repositories.template_repository import TemplateRepository
from recruitflow.extraction.extractor import ContentExtractor
from recruitflow.inference.factory import InferenceClientFactory
from recruitflow.pdf.factory import PdfExtractorFactory
from recruitflow.services.attachment_service import AttachmentService
from recruitflow.services.prompt_executor import PromptExecutor
from recruitflow.services.stage_summary import StageSummaryGenerator
from recruitflow.storage.factory import StorageFactory
from recruitflow.worker.job_executor import JobExecutor


@dataclass
class Services:
    """Everything the HTTP layer and the worker call into."""

    job_repo: JobRepository
    attachments: AttachmentService
    job_executor: JobExecutor
    prompt_executor: PromptExecutor
    stage_summary: StageSummaryGenerator


def build_services(settings: Settings) -> Services:
    """Build services with all required adapters."""
    storage = StorageFactory.create(settings)
    inference_client = InferenceClientFactory.create(settings)
    extractor = ContentExtractor(
        storage=storage,
        inference_client=inference_client,
        max_tokens=settings.inference_max_output_tokens,
        pdf_extractor=PdfExtractorFactory.create(settings),
    )
    job_repo = JobRepository()
    attachment_repo = AttachmentRepository()
    candidate_repo = CandidateRepository()
    template_repo = TemplateRepository()
    aggregator = ContextAggregator(
        attachment_repo=attachment_repo,
        candidate_repo=candidate_repo,
        extractor=extractor,
        detect_legacy_ai_reports=settings.detect_legacy_ai_reports,
    )
    return Services(
        job_repo=job_repo,
        attachments=AttachmentService(
            storage=storage,
            attachment_repo=attachment_repo,
            candidate_repo=candidate_repo,
            template_repo=template_repo,
            job_repo=job_repo,
            auto_process_uploads=settings.auto_process_uploads,
            block_pending=settings.reprocess_block_pending,
        ),
        job_executor=JobExecutor(
            job_repo=job_repo,
            attachment_repo=attachment_repo,
            candidate_repo=candidate_repo,
            storage=storage,
            inference_client=inference_client,
            extractor=extractor,
            max_tokens=settings.inference_max_output_tokens,
        ),
        prompt_executor=PromptExecutor(
            candidate_repo=candidate_repo,
            template_repo=template_repo,
            attachment_repo=attachment_repo,
            aggregator=aggregator,
            extractor=extractor,
            storage=storage,
            inference_client=inference_client,
            max_tokens=settings.prompt_max_output_tokens,
        ),
        stage_summary=StageSummaryGenerator(
            candidate_repo=candidate_repo,
            template_repo=template_repo,
            attachment_repo=attachment_repo,
            extractor=extractor,
            storage=storage,
            inference_client=inference_client,
            max_tokens=settings.summary_max_output_tokens,
        ),
    )
