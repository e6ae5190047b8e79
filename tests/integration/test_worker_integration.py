from pathlib import Path
from unittest.mock import MagicMock

import pytest

from recruitflow.config.settings import Settings
from recruitflow.database.models import AttachmentRecord, JobRecord
from recruitflow.database.repositories.attachment_repository import AttachmentRepository
from recruitflow.database.repositories.candidate_repository import CandidateRepository
from recruitflow.database.repositories.job_repository import JobRepository
from recruitflow.extraction.extractor import ContentExtractor
from recruitflow.inference.exceptions import InferenceError
from recruitflow.inference.models import InferenceResponse
from recruitflow.storage.local_adapter import LocalStorage
from recruitflow.worker.job_executor import JobExecutor
from recruitflow.worker.worker import Worker

PUBLIC_BASE_URL = "http://localhost:8000/files"


def _build_worker(files_root: Path, inference_client: MagicMock, settings: Settings) -> Worker:
    storage = LocalStorage(PUBLIC_BASE_URL, files_root=files_root)
    job_repo = JobRepository()
    executor = JobExecutor(
        job_repo=job_repo,
        attachment_repo=AttachmentRepository(),
        candidate_repo=CandidateRepository(),
        storage=storage,
        inference_client=inference_client,
        extractor=ContentExtractor(
            storage=storage, inference_client=inference_client, max_tokens=1024
        ),
        max_tokens=1024,
    )
    return Worker(job_repo, executor, settings)


@pytest.mark.integration
class TestWorkerIntegration:
    def test_worker_completes_job_and_links_report(
        self,
        seed_job: JobRecord,
        seed_attachment: AttachmentRecord,
        test_settings: Settings,
        tmp_path: Path,
    ) -> None:
        (tmp_path / "solution.txt").write_text("def solve(): return 42", encoding="utf-8")
        inference_client = MagicMock()
        inference_client.complete.return_value = InferenceResponse(
            text="Correct and tidy", model="test-model"
        )

        _build_worker(tmp_path, inference_client, test_settings).run(max_jobs=1)

        job = JobRepository().find_by_id(seed_job.id)
        assert job.status == "completed"
        assert job.output_data is not None
        assert job.output_data["analysis"] == "Correct and tidy"
        assert job.result_attachment_id is not None

        report = AttachmentRepository().find_by_id(job.result_attachment_id)
        assert report.ai_generated is True
        assert report.candidate_id == seed_attachment.candidate_id
        stored = LocalStorage(PUBLIC_BASE_URL, files_root=tmp_path).get(report.blob_url)
        assert stored == b"Correct and tidy"

        (block,) = inference_client.complete.call_args[0][0]
        assert block.text == "Review solution.txt:\ndef solve(): return 42"

    def test_worker_records_failure_without_artifact(
        self,
        seed_job: JobRecord,
        seed_attachment: AttachmentRecord,
        test_settings: Settings,
        tmp_path: Path,
    ) -> None:
        (tmp_path / "solution.txt").write_text("code", encoding="utf-8")
        inference_client = MagicMock()
        inference_client.complete.side_effect = InferenceError("provider unavailable")

        _build_worker(tmp_path, inference_client, test_settings).run(max_jobs=1)

        job = JobRepository().find_by_id(seed_job.id)
        assert job.status == "failed"
        assert job.error_message == "provider unavailable"
        assert job.result_attachment_id is None
        attachments = AttachmentRepository().list_for_candidate(seed_attachment.candidate_id)
        assert [a.id for a in attachments] == [seed_attachment.id]
