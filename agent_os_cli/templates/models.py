"""Data models for template compilation."""

from enum import Enum

from pydantic import BaseModel
from pydantic import Field


class DocumentKind(str, Enum):
    """Kind of document being compiled; selects the final substitutions."""

    AGENT = "agent"
    COMMAND = "command"
    STANDARD = "standard"


class EmbedMode(str, Enum):
    """How workflow and protocol references are expanded."""

    EAGER = "eager"
    LAZY = "lazy"


class IssueKind(str, Enum):
    RESOLUTION = "resolution"
    TAG_STRUCTURE = "tag-structure"
    COMPLETION = "completion"


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class CompileIssue(BaseModel):
    """A problem found while compiling one document.

    Attributes:
        kind: Which family of problem this is
        severity: ERROR for limit overruns, WARNING otherwise
        message: Human-readable description
        document: Source document the problem was found in
        tag: Tag text involved, with delimiters
        outcome: Resolution outcome, for resolution problems
    """

    kind: IssueKind
    severity: Severity = Severity.WARNING
    message: str
    document: str | None = None
    tag: str | None = None
    outcome: str | None = None

    def __str__(self) -> str:
        parts = []
        if self.document:
            parts.append(f"{self.document}:")
        parts.append(self.message)
        if self.tag and self.tag not in self.message:
            parts.append(f"[{self.tag}]")
        return " ".join(parts)


class CompiledArtifact(BaseModel):
    """Fully expanded text of one document plus everything found on the way."""

    source: str
    kind: DocumentKind
    content: str
    warnings: list[CompileIssue] = Field(default_factory=list)
    errors: list[CompileIssue] = Field(default_factory=list)

    @property
    def issues(self) -> list[CompileIssue]:
        return [*self.errors, *self.warnings]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def ok(self) -> bool:
        return not self.errors and not self.warnings


def split_issues(issues: list[CompileIssue]) -> tuple[list[CompileIssue], list[CompileIssue]]:
    """Split issues into (warnings, errors)."""
    warnings = [i for i in issues if i.severity is Severity.WARNING]
    errors = [i for i in issues if i.severity is Severity.ERROR]
    return warnings, errors
