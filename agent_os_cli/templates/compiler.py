"""Compilation pipeline: one source document in, one CompiledArtifact out."""

import logging
import re
from datetime import date

from ..config import CompileConfig
from ..profiles.resolver import ProfileResolver
from .conditionals import expand_conditionals
from .models import CompiledArtifact
from .models import CompileIssue
from .models import DocumentKind
from .models import EmbedMode
from .models import IssueKind
from .models import Severity
from .models import split_issues
from .references import ReferenceEmbedder

logger = logging.getLogger(__name__)

PLAYWRIGHT_TOOLS = (
    "mcp__playwright__browser_close",
    "mcp__playwright__browser_console_messages",
    "mcp__playwright__browser_handle_dialog",
    "mcp__playwright__browser_evaluate",
    "mcp__playwright__browser_file_upload",
    "mcp__playwright__browser_fill_form",
    "mcp__playwright__browser_install",
    "mcp__playwright__browser_press_key",
    "mcp__playwright__browser_type",
    "mcp__playwright__browser_navigate",
    "mcp__playwright__browser_navigate_back",
    "mcp__playwright__browser_network_requests",
    "mcp__playwright__browser_take_screenshot",
    "mcp__playwright__browser_snapshot",
    "mcp__playwright__browser_click",
    "mcp__playwright__browser_drag",
    "mcp__playwright__browser_hover",
    "mcp__playwright__browser_select_option",
    "mcp__playwright__browser_tabs",
    "mcp__playwright__browser_wait_for",
    "mcp__ide__getDiagnostics",
    "mcp__ide__executeCode",
    "mcp__playwright__browser_resize",
)

_TOOLS_LINE_RE = re.compile(r"^(tools:[ \t]*)(.*)$", re.MULTILINE)


def apply_stamps(content: str, config: CompileConfig, today: date | None = None) -> str:
    """Fill in ``{{agent_os_version}}`` and ``{{compiled_date}}``."""
    today = today or date.today()
    return content.replace("{{agent_os_version}}", config.version).replace(
        "{{compiled_date}}", today.isoformat()
    )


def expand_tools(content: str) -> str:
    """
    Expand ``Playwright`` in an agent's front-matter ``tools:`` line.

    Only the front matter (between the leading ``---`` fences) is touched,
    and within it only the ``tools:`` line.
    """
    if not content.startswith("---\n"):
        return content
    end = content.find("\n---", 4)
    if end == -1:
        return content

    def rewrite(match: re.Match[str]) -> str:
        tools = [tool.strip() for tool in match.group(2).split(",")]
        if "Playwright" not in tools:
            return match.group(0)
        expanded: list[str] = []
        for tool in tools:
            expanded.extend(PLAYWRIGHT_TOOLS if tool == "Playwright" else [tool])
        return match.group(1) + ", ".join(expanded)

    front_matter = _TOOLS_LINE_RE.sub(rewrite, content[:end], count=1)
    return front_matter + content[end:]


def substitute_roles(content: str, role_data: dict[str, str]) -> str:
    """Replace ``{{key}}`` with its value for every key in ``role_data``."""
    for key, value in role_data.items():
        content = content.replace(f"{{{{{key}}}}}", str(value))
    return content


class DocumentCompiler:
    """Runs the compilation passes over documents of one profile.

    Passes, in order:
    1. conditionals
    2. references (LAZY when ``lazy_load_workflows`` is set)
    3. version and date stamps
    4. tool list rewriting (agents only)
    5. role substitution (when role data is given)

    Template problems never raise; they are collected on the artifact.
    """

    def __init__(self, resolver: ProfileResolver, config: CompileConfig, today: date | None = None):
        self.resolver = resolver
        self.config = config
        self.today = today
        self.embedder = ReferenceEmbedder(resolver, config)

    @property
    def mode(self) -> EmbedMode:
        return EmbedMode.LAZY if self.config.lazy_load_workflows else EmbedMode.EAGER

    def compile(
        self,
        source: str,
        kind: DocumentKind,
        *,
        role_data: dict[str, str] | None = None,
        text: str | None = None,
    ) -> CompiledArtifact:
        """
        Compile one document.

        Args:
            source: Path of the document relative to a profile (``agents/implementer.md``)
            kind: Document kind; agents get their tool list rewritten
            role_data: Optional ``{{key}}`` substitutions applied last
            text: Source text to compile instead of resolving ``source``

        Returns:
            CompiledArtifact with the expanded content and every issue found
        """
        if text is None:
            result = self.resolver.resolve(source, self.config.profile)
            if not result.found:
                return self._unreadable(source, kind, result.describe(), result.status.value)
            try:
                text = result.found_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                return self._unreadable(source, kind, f"could not be read ({e})", "unreadable")

        issues: list[CompileIssue] = []

        content, found = expand_conditionals(text, self.config, document=source)
        issues.extend(found)

        content, found = self.embedder.expand(content, self.config.profile, self.mode, document=source)
        issues.extend(found)

        content = apply_stamps(content, self.config, self.today)

        if kind is DocumentKind.AGENT:
            content = expand_tools(content)

        if role_data:
            content = substitute_roles(content, role_data)

        warnings, errors = split_issues(issues)
        if errors:
            logger.error(f"Compiled {source} with {len(errors)} error(s), {len(warnings)} warning(s)")
        elif warnings:
            logger.info(f"Compiled {source} with {len(warnings)} warning(s)")
        else:
            logger.debug(f"Compiled {source}")

        return CompiledArtifact(source=source, kind=kind, content=content, warnings=warnings, errors=errors)

    @staticmethod
    def _unreadable(source: str, kind: DocumentKind, reason: str, outcome: str) -> CompiledArtifact:
        issue = CompileIssue(
            kind=IssueKind.RESOLUTION,
            severity=Severity.ERROR,
            message=f"Source document {source} {reason}",
            document=source,
            outcome=outcome,
        )
        logger.error(issue.message)
        return CompiledArtifact(source=source, kind=kind, content="", errors=[issue])


def compile_document(
    source: str,
    kind: DocumentKind,
    resolver: ProfileResolver,
    config: CompileConfig,
    *,
    role_data: dict[str, str] | None = None,
    text: str | None = None,
) -> CompiledArtifact:
    """Compile a single document with a throwaway DocumentCompiler."""
    return DocumentCompiler(resolver, config).compile(source, kind, role_data=role_data, text=text)
