"""Standards as Claude Code skills.

Each standard ``standards/<path>.md`` becomes
``.claude/skills/<path-with-dashes>/SKILL.md``, rendered from the profile's
``claude-code-skill-template.md``.
"""

import re
from pathlib import PurePosixPath

SKILL_TEMPLATE_FILE = "claude-code-skill-template.md"

ACRONYMS = (
    "API",
    "CSS",
    "HTML",
    "SQL",
    "REST",
    "JSON",
    "XML",
    "HTTP",
    "HTTPS",
    "URL",
    "URI",
    "CLI",
    "GUI",
    "IDE",
    "SDK",
    "JWT",
)

_SEPARATORS_RE = re.compile(r"[-_/]")
_ACRONYM_RE = re.compile(r"\b(" + "|".join(ACRONYMS) + r")\b", re.IGNORECASE)


def _words(filename: str) -> str:
    name = filename[: -len(".md")] if filename.endswith(".md") else filename
    return _SEPARATORS_RE.sub(" ", name)


def _upper_acronyms(name: str) -> str:
    return _ACRONYM_RE.sub(lambda m: m.group(1).upper(), name)


def convert_filename_to_human_name(filename: str) -> str:
    """``frontend/rest-api.md`` -> ``frontend REST API``."""
    return _upper_acronyms(_words(filename).lower())


def convert_filename_to_human_name_capitalized(filename: str) -> str:
    """``frontend/rest-api.md`` -> ``Frontend REST API``."""
    words = _words(filename).split(" ")
    return _upper_acronyms(" ".join(w[:1].upper() + w[1:] for w in words))


def skill_name(standard_path: str) -> str:
    """``standards/frontend/css.md`` -> ``frontend-css``."""
    path = standard_path.removeprefix("standards/").removesuffix(".md")
    return path.replace("/", "-")


def skill_relative_path(standard_path: str) -> PurePosixPath:
    """Location of a standard's skill, relative to the project directory."""
    return PurePosixPath(".claude", "skills", skill_name(standard_path), "SKILL.md")


def render_skill(template: str, standard_path: str) -> str:
    """
    Render a skill template for one standard.

    Args:
        template: Text of ``claude-code-skill-template.md``
        standard_path: Path relative to the profile (``standards/frontend/css.md``)

    Returns:
        Skill text with the three standard placeholders filled in
    """
    name = standard_path.removeprefix("standards/")
    return (
        template.replace("{{standard_name_humanized_capitalized}}", convert_filename_to_human_name_capitalized(name))
        .replace("{{standard_name_humanized}}", convert_filename_to_human_name(name))
        .replace("{{standard_file_path}}", f"agent-os/{standard_path}")
    )
