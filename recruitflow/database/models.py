from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class AttachmentRecord:
    """Represents a row from the attachments table."""

    id: str
    candidate_id: str
    pipeline_stage: str | None
    type: str
    file_name: str
    blob_url: str
    mime_type: str | None = None
    file_size: int | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    ai_generated: bool = False
    stage_id: str | None = None
    source_prompt_id: str | None = None
    prompt_name_snapshot: str | None = None
    uploaded_by: str | None = None
    created_at: datetime | None = None


@dataclass
class NewAttachment:
    """Values for inserting an attachments row."""

    candidate_id: str
    pipeline_stage: str | None
    type: str
    file_name: str
    blob_url: str
    mime_type: str | None = None
    file_size: int | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    ai_generated: bool = False
    stage_id: str | None = None
    source_prompt_id: str | None = None
    prompt_name_snapshot: str | None = None
    uploaded_by: str | None = None


@dataclass
class JobRecord:
    """Represents a row from the processing_jobs table."""

    id: str
    attachment_id: str
    candidate_id: str
    pipeline_stage: str
    job_type: str
    status: str
    progress: int = 0
    config: dict[str, Any] = field(default_factory=dict)
    input_data: dict[str, Any] = field(default_factory=dict)
    output_data: dict[str, Any] | None = None
    result_attachment_id: str | None = None
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class CandidateRecord:
    """Represents the candidates columns this service reads."""

    id: str
    name: str
    pipeline_stage: str
    template_id: str | None = None
    resume_raw_text: str | None = None


@dataclass
class InterviewNoteRecord:
    id: str
    candidate_id: str
    stage: str
    interviewer: str | None = None
    rating: int | None = None
    content: str | None = None
    created_at: datetime | None = None


@dataclass
class StagePromptRecord:
    """Represents a row from the stage_prompts table (an instruction template)."""

    id: str
    stage_id: str
    name: str
    instructions: str


@dataclass
class ReferenceFileRecord:
    """A template-scoped file from the prompt_reference_files table."""

    id: str
    prompt_id: str
    file_name: str
    blob_url: str
    mime_type: str | None = None
    file_size: int | None = None


@dataclass
class TemplateStageRecord:
    id: str
    template_id: str
    name: str
    display_name: str
    system_prompt: str | None = None
