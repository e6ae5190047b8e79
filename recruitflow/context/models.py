from dataclasses import dataclass, field
from enum import StrEnum

SECTION_SEPARATOR = "\n\n---\n\n"


class ContextSource(StrEnum):
    """Categories of candidate data that can be pulled into a prompt."""

    RESUME = "resume"
    PROFILE = "profile"
    PREFERENCE = "preference"
    STAGE_ATTACHMENTS = "stage_attachments"
    HISTORY_ATTACHMENTS = "history_attachments"
    HISTORY_REPORTS = "history_reports"
    INTERVIEW_NOTES = "interview_notes"


@dataclass(frozen=True)
class ContextItem:
    title: str
    content: str

    def render(self) -> str:
        return f"### {self.title}\n\n{self.content}"


@dataclass
class ContextSection:
    """One Markdown section: a heading, optional free text, then items."""

    heading: str
    text: str = ""
    items: list[ContextItem] = field(default_factory=list)

    def render(self) -> str:
        parts = [f"## {self.heading}"]
        if self.text:
            parts.append(self.text)
        parts.extend(item.render() for item in self.items)
        return "\n\n".join(parts)


@dataclass
class ContextBundle:
    sections: list[ContextSection] = field(default_factory=list)

    def render(self) -> str:
        return SECTION_SEPARATOR.join(section.render() for section in self.sections)

    def __bool__(self) -> bool:
        return bool(self.sections)
