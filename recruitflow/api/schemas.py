from dataclasses import asdict
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from recruitflow.database.models import AttachmentRecord, JobRecord


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    status: str


class AttachmentResponse(BaseModel):
    id: str
    candidate_id: str
    pipeline_stage: str | None
    type: str
    file_name: str
    blob_url: str
    mime_type: str | None = None
    file_size: int | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    ai_generated: bool = False
    stage_id: str | None = None
    source_prompt_id: str | None = None
    prompt_name_snapshot: str | None = None
    uploaded_by: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: AttachmentRecord) -> "AttachmentResponse":
        return cls(**asdict(record))


class JobResponse(BaseModel):
    id: str
    attachment_id: str
    candidate_id: str
    pipeline_stage: str
    job_type: str
    status: str
    progress: int = 0
    config: dict[str, Any] = Field(default_factory=dict)
    input_data: dict[str, Any] = Field(default_factory=dict)
    output_data: dict[str, Any] | None = None
    result_attachment_id: str | None = None
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: JobRecord) -> "JobResponse":
        return cls(**asdict(record))


class JobListResponse(BaseModel):
    jobs: list[JobResponse]


class ReprocessResponse(BaseModel):
    """Jobs queued by a reprocess request. Poll their status via /processing/jobs."""

    job_ids: list[str]


class RunJobResponse(BaseModel):
    success: bool
    job: JobResponse


class UploadResponse(BaseModel):
    attachment: AttachmentResponse
    job_ids: list[str] = Field(default_factory=list)


class ExecutePromptRequest(BaseModel):
    """Execute-prompt request. Accepts camelCase keys from older clients."""

    prompt_id: str | None = Field(
        default=None, validation_alias=AliasChoices("prompt_id", "promptId")
    )
    stage: str | None = None
    selected_attachment_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("selected_attachment_ids", "selectedAttachmentIds"),
    )


class ExecutePromptResponse(BaseModel):
    attachment: AttachmentResponse
    content: str


class RelinkRequest(BaseModel):
    """Omitted fields are left untouched; explicit nulls clear the link."""

    stage_id: str | None = Field(
        default=None, validation_alias=AliasChoices("stage_id", "stageId")
    )
    prompt_id: str | None = Field(
        default=None, validation_alias=AliasChoices("prompt_id", "promptId")
    )
