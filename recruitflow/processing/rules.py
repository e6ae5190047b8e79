"""Selects the processing rule that applies to an uploaded attachment."""

from recruitflow.processing.models import FileCategory, ProcessingRule

WILDCARD = "*"

MEDIA_PREFIXES: dict[FileCategory, tuple[str, ...]] = {
    FileCategory.RECORDING: ("audio/", "video/"),
    FileCategory.TRANSCRIPT: ("text/plain", "text/"),
    FileCategory.HOMEWORK: ("application/pdf", "text/", "application/zip"),
    FileCategory.NOTE: ("text/plain", "text/markdown", "application/"),
    FileCategory.RESUME: (
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats",
    ),
    FileCategory.OTHER: (WILDCARD,),
}


def media_prefixes(category: str) -> tuple[str, ...]:
    """Return the media-type prefixes for a category; unknown categories match anything."""
    try:
        return MEDIA_PREFIXES[FileCategory(category)]
    except ValueError:
        return (WILDCARD,)


def matches_media_type(media_type: str | None, category: str) -> bool:
    if not media_type:
        return False
    return any(
        prefix == WILDCARD or media_type.startswith(prefix)
        for prefix in media_prefixes(category)
    )


def match_rule(
    rules: list[ProcessingRule],
    media_type: str | None,
    declared_type: str,
) -> ProcessingRule | None:
    """Pick the rule for an attachment.

    An exact match on the declared attachment type wins; otherwise the first
    rule whose category accepts the media type is used. Rule order is priority.
    """
    for rule in rules:
        if rule.file_type == declared_type:
            return rule
    for rule in rules:
        if matches_media_type(media_type, rule.file_type):
            return rule
    return None
