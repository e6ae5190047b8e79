"""Assembles candidate data into Markdown context for prompts.

Two modes are supported. Named-source mode renders one section per requested
ContextSource in the order given. Explicit-selection mode renders exactly the
attachments a user picked, grouped by pipeline stage.
"""

import json
import re
from collections.abc import Callable

from recruitflow.context.models import (
    ContextBundle,
    ContextItem,
    ContextSection,
    ContextSource,
)
from recruitflow.database.models import AttachmentRecord, CandidateRecord
from recruitflow.database.repositories.attachment_repository import AttachmentRepository
from recruitflow.database.repositories.candidate_repository import CandidateRepository
from recruitflow.extraction.extractor import ContentExtractor
from recruitflow.extraction.media import (
    MARKDOWN_MEDIA_TYPE,
    MediaKind,
    classify_media,
    is_text_like,
)
from recruitflow.logging.logger import Log
from recruitflow.storage.exceptions import StorageError

UNCLASSIFIED_STAGE = "unclassified"
NO_MATERIAL_SELECTED = "[No candidate material selected]"

# Markers written into AI output before the ai_generated column existed.
# "AI" as a standalone token, so "EMAIL" or "MAIN" do not match.
LEGACY_AI_DESCRIPTION_MARKER = re.compile(r"(?<![A-Za-z])AI(?![A-Za-z])")
LEGACY_AI_FILE_NAME_MARKER = "AI分析报告"


def is_ai_report(attachment: AttachmentRecord, *, detect_legacy: bool = True) -> bool:
    """Whether an attachment is AI-generated output.

    The ai_generated flag is authoritative. Rows written before it existed are
    recognised by their description, file name or Markdown media type when
    detect_legacy is on.
    """
    if attachment.ai_generated:
        return True
    if not detect_legacy:
        return False
    return (
        LEGACY_AI_DESCRIPTION_MARKER.search(attachment.description or "") is not None
        or LEGACY_AI_FILE_NAME_MARKER in attachment.file_name
        or attachment.mime_type == MARKDOWN_MEDIA_TYPE
    )


class ContextAggregator:
    """Builds read-only context bundles for a candidate."""

    def __init__(
        self,
        *,
        attachment_repo: AttachmentRepository,
        candidate_repo: CandidateRepository,
        extractor: ContentExtractor,
        detect_legacy_ai_reports: bool = True,
    ) -> None:
        self._attachment_repo = attachment_repo
        self._candidate_repo = candidate_repo
        self._extractor = extractor
        self._detect_legacy_ai_reports = detect_legacy_ai_reports

    def build_from_sources(
        self,
        candidate_id: str,
        current_stage: str,
        sources: list[ContextSource],
    ) -> ContextBundle:
        """Render one section per requested source, skipping sources without data.

        Raises:
            NotFoundError: if the resume is requested for an unknown candidate.
        """
        builders: dict[ContextSource, Callable[[], ContextSection | None]] = {
            ContextSource.RESUME: lambda: self._resume_section(
                self._candidate_repo.find_by_id(candidate_id)
            ),
            ContextSource.PROFILE: lambda: self._json_section(
                "Candidate profile", self._candidate_repo.get_profile(candidate_id)
            ),
            ContextSource.PREFERENCE: lambda: self._json_section(
                "Candidate preferences", self._candidate_repo.get_preference(candidate_id)
            ),
            ContextSource.STAGE_ATTACHMENTS: lambda: self._stage_files_section(
                candidate_id, current_stage
            ),
            ContextSource.HISTORY_ATTACHMENTS: lambda: self._history_files_section(
                candidate_id, current_stage
            ),
            ContextSource.HISTORY_REPORTS: lambda: self._reports_section(candidate_id),
            ContextSource.INTERVIEW_NOTES: lambda: self._interview_notes_section(
                candidate_id
            ),
        }
        bundle = ContextBundle()
        for source in sources:
            section = builders[ContextSource(source)]()
            if section is not None:
                bundle.sections.append(section)
        Log.debug(
            f"Built {len(bundle.sections)} context sections for candidate {candidate_id}"
        )
        return bundle

    def build_from_selection(
        self,
        candidate_id: str,
        attachment_ids: list[str],
    ) -> ContextBundle:
        """Render the selected attachments grouped by stage.

        An empty or unmatched selection yields a single placeholder section;
        named-source data is never substituted.
        """
        attachments = self._attachment_repo.list_by_ids(candidate_id, attachment_ids)
        if not attachments:
            return ContextBundle(
                [ContextSection(heading="Selected material", text=NO_MATERIAL_SELECTED)]
            )

        by_stage: dict[str, list[AttachmentRecord]] = {}
        for attachment in attachments:
            by_stage.setdefault(attachment.pipeline_stage or UNCLASSIFIED_STAGE, []).append(
                attachment
            )

        return ContextBundle(
            [
                ContextSection(
                    heading=f"Stage: {stage}",
                    items=[
                        ContextItem(attachment.file_name, self._extract(attachment))
                        for attachment in stage_attachments
                    ],
                )
                for stage, stage_attachments in by_stage.items()
            ]
        )

    def _extract(self, attachment: AttachmentRecord) -> str:
        kind = classify_media(attachment.mime_type, attachment.file_name)
        if kind is MediaKind.UNSUPPORTED:
            return (
                f"[{attachment.type} file, content extraction not supported "
                "(e.g. audio or video)]"
            )
        return self._extractor.extract(
            attachment.blob_url, attachment.mime_type, attachment.file_name
        )

    @staticmethod
    def _resume_section(candidate: CandidateRecord) -> ContextSection | None:
        if not candidate.resume_raw_text:
            return None
        return ContextSection(heading="Resume", text=candidate.resume_raw_text)

    @staticmethod
    def _json_section(heading: str, document: dict[str, object] | None) -> ContextSection | None:
        if not document:
            return None
        rendered = json.dumps(document, indent=2, ensure_ascii=False, default=str)
        return ContextSection(heading=heading, text=f"```json\n{rendered}\n```")

    def _stage_files_section(self, candidate_id: str, stage: str) -> ContextSection | None:
        attachments = [
            a
            for a in self._attachment_repo.list_for_candidate(candidate_id)
            if a.pipeline_stage == stage
        ]
        if not attachments:
            return None
        return ContextSection(
            heading=f"Current stage files ({stage})",
            text=_file_listing(attachments),
            items=[
                ContextItem(a.file_name, self._extractor.read_text(a.blob_url, a.file_name))
                for a in attachments
                if is_text_like(a.mime_type, a.file_name)
            ],
        )

    def _history_files_section(self, candidate_id: str, stage: str) -> ContextSection | None:
        attachments = [
            a
            for a in self._attachment_repo.list_for_candidate(candidate_id)
            if a.pipeline_stage != stage
        ]
        if not attachments:
            return None
        return ContextSection(
            heading="Files from earlier stages",
            text=_file_listing(attachments, with_stage=True),
        )

    def _reports_section(self, candidate_id: str) -> ContextSection | None:
        reports = [
            a
            for a in self._attachment_repo.list_for_candidate(candidate_id)
            if is_ai_report(a, detect_legacy=self._detect_legacy_ai_reports)
        ]
        if not reports:
            return None
        return ContextSection(
            heading="Earlier AI reports",
            items=[ContextItem(report.file_name, self._report_content(report)) for report in reports],
        )

    def _report_content(self, report: AttachmentRecord) -> str:
        failed = f"[Failed to load report: {report.file_name}]"
        if not is_text_like(report.mime_type, report.file_name):
            return failed
        try:
            return self._extractor.load_text(report.blob_url)
        except StorageError as exc:
            Log.warning(f"Failed to load report {report.file_name}: {exc}")
            return failed

    def _interview_notes_section(self, candidate_id: str) -> ContextSection | None:
        notes = self._candidate_repo.list_interview_notes(candidate_id)
        if not notes:
            return None
        items = []
        for note in notes:
            rating = f"{note.rating}" if note.rating is not None else "not rated"
            title = (
                f"Stage: {note.stage} | Interviewer: {note.interviewer or 'unknown'} "
                f"| Rating: {rating}"
            )
            items.append(ContextItem(title, note.content or "(no notes recorded)"))
        return ContextSection(heading="Interview notes", items=items)


def _file_listing(attachments: list[AttachmentRecord], *, with_stage: bool = False) -> str:
    lines = []
    for a in attachments:
        prefix = f"[{a.pipeline_stage or UNCLASSIFIED_STAGE}] " if with_stage else ""
        lines.append(f"- {prefix}{a.file_name} ({a.type})")
    return "\n".join(lines)
