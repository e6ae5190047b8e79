from pathlib import Path

from recruitflow.inference.exceptions import InferenceError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(name: str, prompt_dir: Path | None = None) -> str:
    """Load a bundled prompt template by file name.

    Args:
        name: File name inside the prompt directory, e.g. "stage_summary.txt".
        prompt_dir: Directory to load from. Defaults to the bundled prompts.

    Returns:
        The raw template string with placeholders.

    Raises:
        InferenceError: if the file cannot be read.
    """
    path = (prompt_dir or _DEFAULT_PROMPT_DIR) / name
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise InferenceError(f"Failed to load prompt template: {exc}") from exc


def fill_placeholders(template: str, **values: str) -> str:
    """Replace every {name} placeholder present in values.

    Unlike str.format, braces that are not known placeholders (JSON examples
    in user-authored prompts) are left alone.
    """
    for key, value in values.items():
        template = template.replace(f"{{{key}}}", value)
    return template
