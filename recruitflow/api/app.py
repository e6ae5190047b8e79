"""FastAPI app exposing attachment processing, prompt execution and stage summaries.

Routes are thin: they translate HTTP to service calls. Domain errors are
mapped to status codes by the exception handlers registered in create_app.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse

from recruitflow.api.schemas import (
    AttachmentResponse,
    ErrorResponse,
    ExecutePromptRequest,
    ExecutePromptResponse,
    HealthResponse,
    JobListResponse,
    JobResponse,
    RelinkRequest,
    ReprocessResponse,
    RunJobResponse,
    UploadResponse,
)
from recruitflow.config.settings import Settings
from recruitflow.database.connection import close_pool, init_pool
from recruitflow.extraction.exceptions import ExtractionLimitError
from recruitflow.inference.exceptions import InferenceError, InferenceLimitError
from recruitflow.logging.logger import Log
from recruitflow.services.attachment_service import UNSET
from recruitflow.services.exceptions import ConflictError, NotFoundError, ValidationError
from recruitflow.services.factory import Services, build_services
from recruitflow.storage.exceptions import StorageError

# Most specific first; handlers are resolved along the exception's MRO.
ERROR_RESPONSES: list[tuple[type[Exception], int, str]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (ConflictError, status.HTTP_409_CONFLICT, "conflict"),
    (ValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (ExtractionLimitError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "limit_exceeded"),
    (InferenceLimitError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "limit_exceeded"),
    (InferenceError, status.HTTP_502_BAD_GATEWAY, "inference_error"),
    (StorageError, status.HTTP_502_BAD_GATEWAY, "storage_error"),
]


def get_services(request: Request) -> Services:
    return request.app.state.services


def _error_handler(
    status_code: int, error: str
) -> Callable[[Request, Exception], Awaitable[JSONResponse]]:
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            Log.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            Log.warning(f"{request.method} {request.url.path} rejected: {exc}")
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=error, detail=str(exc)).model_dump(),
        )

    return handler


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Create the app. Without prebuilt services, the lifespan opens the pool and builds them."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if services is not None:
            app.state.services = services
            yield
            return
        Log.configure(settings.log_level)
        init_pool(settings)
        app.state.services = build_services(settings)
        Log.info("API started")
        try:
            yield
        finally:
            close_pool()
            Log.info("API shut down")

    app = FastAPI(title="recruitflow", version="0.1.0", lifespan=lifespan)
    if services is not None:
        app.state.services = services
    for exc_type, status_code, error in ERROR_RESPONSES:
        app.add_exception_handler(exc_type, _error_handler(status_code, error))

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post(
        "/candidates/{candidate_id}/stages/{stage}/attachments",
        response_model=UploadResponse,
        status_code=status.HTTP_201_CREATED,
    )
    def upload_attachment(
        candidate_id: str,
        stage: str,
        file: UploadFile | None = File(None),
        declared_type: str = Form("other", alias="type"),
        description: str | None = Form(None),
        uploaded_by: str | None = Form(None),
        svc: Services = Depends(get_services),
    ) -> UploadResponse:
        attachment, job_ids = svc.attachments.upload(
            candidate_id=candidate_id,
            stage=stage,
            file_name=(file.filename or "") if file else "",
            data=file.file.read() if file else b"",
            media_type=file.content_type if file else None,
            declared_type=declared_type,
            description=description,
            uploaded_by=uploaded_by,
        )
        return UploadResponse(
            attachment=AttachmentResponse.from_record(attachment), job_ids=job_ids
        )

    @app.get(
        "/candidates/{candidate_id}/stages/{stage}/attachments",
        response_model=list[AttachmentResponse],
    )
    def list_attachments(
        candidate_id: str,
        stage: str,
        svc: Services = Depends(get_services),
    ) -> list[AttachmentResponse]:
        return [
            AttachmentResponse.from_record(a)
            for a in svc.attachments.list_attachments(candidate_id, stage)
        ]

    @app.delete("/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_attachment(attachment_id: str, svc: Services = Depends(get_services)) -> None:
        svc.attachments.delete(attachment_id)

    @app.patch("/attachments/{attachment_id}/relink", response_model=AttachmentResponse)
    def relink_attachment(
        attachment_id: str,
        body: RelinkRequest,
        svc: Services = Depends(get_services),
    ) -> AttachmentResponse:
        provided = body.model_fields_set
        attachment = svc.attachments.relink(
            attachment_id,
            stage_id=body.stage_id if "stage_id" in provided else UNSET,
            prompt_id=body.prompt_id if "prompt_id" in provided else UNSET,
        )
        return AttachmentResponse.from_record(attachment)

    @app.post(
        "/attachments/{attachment_id}/reprocess",
        response_model=ReprocessResponse,
        status_code=status.HTTP_202_ACCEPTED,
    )
    def reprocess_attachment(
        attachment_id: str, svc: Services = Depends(get_services)
    ) -> ReprocessResponse:
        return ReprocessResponse(job_ids=svc.attachments.reprocess(attachment_id))

    @app.get("/processing/jobs", response_model=JobListResponse)
    def list_jobs(
        attachment_id: str | None = None,
        candidate_id: str | None = None,
        status: str | None = None,
        svc: Services = Depends(get_services),
    ) -> JobListResponse:
        jobs = svc.attachments.list_jobs(
            attachment_id=attachment_id, candidate_id=candidate_id, status=status
        )
        return JobListResponse(jobs=[JobResponse.from_record(job) for job in jobs])

    @app.post("/processing/jobs/{job_id}/run", response_model=RunJobResponse)
    def run_job(job_id: str, svc: Services = Depends(get_services)) -> RunJobResponse:
        success = svc.job_executor.run(job_id)
        return RunJobResponse(
            success=success, job=JobResponse.from_record(svc.job_repo.find_by_id(job_id))
        )

    @app.post("/candidates/{candidate_id}/execute-prompt", response_model=ExecutePromptResponse)
    def execute_prompt(
        candidate_id: str,
        body: ExecutePromptRequest,
        svc: Services = Depends(get_services),
    ) -> ExecutePromptResponse:
        result = svc.prompt_executor.execute(
            candidate_id,
            body.stage or "",
            body.prompt_id or "",
            body.selected_attachment_ids,
        )
        return ExecutePromptResponse(
            attachment=AttachmentResponse.from_record(result.attachment),
            content=result.content,
        )

    @app.post(
        "/candidates/{candidate_id}/stages/{stage}/summary",
        response_model=AttachmentResponse,
    )
    def generate_stage_summary(
        candidate_id: str, stage: str, svc: Services = Depends(get_services)
    ) -> AttachmentResponse:
        return AttachmentResponse.from_record(svc.stage_summary.generate(candidate_id, stage))

    return app
