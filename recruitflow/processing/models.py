from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class JobKind(StrEnum):
    TRANSCRIBE = "transcribe"
    ANALYZE = "analyze"


class JobStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class FileCategory(StrEnum):
    """File categories a processing rule can target."""

    RECORDING = "recording"
    TRANSCRIPT = "transcript"
    HOMEWORK = "homework"
    NOTE = "note"
    RESUME = "resume"
    OTHER = "other"


class OutputKind(StrEnum):
    REPORT = "report"
    NOTE = "note"
    PROFILE_UPDATE = "profile_update"
    PREFERENCE_UPDATE = "preference_update"

    @property
    def creates_attachment(self) -> bool:
        return self in (OutputKind.REPORT, OutputKind.NOTE)


@dataclass(frozen=True)
class ProcessingRule:
    """One entry of a stage's processing_rules configuration."""

    file_type: str
    auto_transcribe: bool = False
    auto_analyze: bool = False
    analysis_prompt: str = ""
    output_type: str = OutputKind.REPORT.value
    output_template: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ProcessingRule":
        """Build a rule from its stored JSON form (camelCase or snake_case keys)."""

        def pick(snake: str, camel: str, default: Any) -> Any:
            if snake in raw:
                return raw[snake]
            return raw.get(camel, default)

        return cls(
            file_type=str(pick("file_type", "fileType", "")),
            auto_transcribe=bool(pick("auto_transcribe", "autoTranscribe", False)),
            auto_analyze=bool(pick("auto_analyze", "autoAnalyze", False)),
            analysis_prompt=str(pick("analysis_prompt", "analysisPrompt", "") or ""),
            output_type=str(pick("output_type", "outputType", OutputKind.REPORT.value)),
            output_template=pick("output_template", "outputTemplate", None),
        )


# Hiring pipeline stages in order. Stage summaries cover every stage up to the current one.
PIPELINE_STAGES: tuple[str, ...] = (
    "resume_review",
    "phone_screen",
    "homework",
    "team_interview",
    "consultant_review",
    "final_interview",
    "offer",
)

STAGE_LABELS: dict[str, str] = {
    "resume_review": "Resume review",
    "phone_screen": "Phone screen",
    "homework": "Homework",
    "team_interview": "Team interview",
    "consultant_review": "Consultant review",
    "final_interview": "Final interview",
    "offer": "Offer",
}


def stage_label(stage: str | None) -> str:
    if not stage:
        return "unclassified"
    return STAGE_LABELS.get(stage, stage)
