"""Stage prompt templates.

Each pipeline stage has a system and a user template under templates/,
named {stage}_system.txt and {stage}_user.txt. Templates use
string.Template $placeholders, so prior-stage output containing braces
or JSON passes through untouched.
"""

from functools import lru_cache
from pathlib import Path
from string import Template

_TEMPLATES_DIR = Path(__file__).parent / "templates"


def template_names() -> list[str]:
    """Names of all bundled templates, without the .txt suffix."""
    return sorted(path.stem for path in _TEMPLATES_DIR.glob("*.txt"))


@lru_cache(maxsize=32)
def _compile(name: str) -> Template:
    path = _TEMPLATES_DIR / f"{name}.txt"
    if not path.is_file():
        raise FileNotFoundError(f"Prompt template not found: {path}")
    return Template(path.read_text(encoding="utf-8"))


def render(name: str, **variables: str) -> str:
    """Render a stage template with its variables.

    Rendered text is not trimmed, so forwarded stage output keeps its
    exact whitespace.

    Args:
        name: Template name, e.g. "write_user"
        **variables: Values for the template's $placeholders

    Returns:
        Rendered prompt text

    Raises:
        FileNotFoundError: If no template has that name
        KeyError: If a placeholder has no value; the message names the template
    """
    try:
        return _compile(name).substitute(variables)
    except KeyError as e:
        raise KeyError(f"Template '{name}' needs variable {e.args[0]!r}") from e
