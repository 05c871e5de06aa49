"""Reference embedding: workflows, protocols, standards and PHASE tags.

Every reference is resolved through the profile resolver. Eagerly embedded
documents are expanded recursively (conditionals first, then their own
references) up to MAX_EMBED_DEPTH levels. A reference that cannot be resolved
is replaced by a visible warning line so the rest of the document still
compiles.
"""

import logging
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from pathlib import PurePosixPath

from ..config import CompileConfig
from ..profiles.models import ResolutionResult
from ..profiles.resolver import ProfileResolver
from .conditionals import expand_conditionals
from .models import CompileIssue
from .models import EmbedMode
from .models import IssueKind
from .models import Severity
from .scanner import REFERENCE_PREFIXES
from .scanner import TagMatch
from .scanner import is_macro_tag
from .scanner import iter_tags
from .scanner import parse_phase

logger = logging.getLogger(__name__)

MAX_EMBED_DEPTH = 20

POINTER_PREFIX = "@agent-os/"
STANDARDS_INDEX_FILE = "_index.md"

REFERENCE_TAG_PREFIXES = (*REFERENCE_PREFIXES, "PHASE")


@dataclass
class _Context:
    """State of one top-level ``expand`` call."""

    profile: str
    mode: EmbedMode
    config: CompileConfig
    document: str | None
    issues: list[CompileIssue] = field(default_factory=list)


def _with_suffix(path: str) -> str:
    return path if path.endswith(".md") else f"{path}.md"


def phase_title(file_name: str) -> str:
    """Turn ``1-product-concept.md`` into ``Product Concept``."""
    stem = PurePosixPath(file_name).stem
    head, sep, tail = stem.partition("-")
    if sep and head.isdigit():
        stem = tail
    return " ".join(word[:1].upper() + word[1:].lower() for word in stem.replace("-", " ").split())


def phase_source_path(reference: str) -> str:
    """
    Map a PHASE reference to the single-agent command file it embeds.

    ``@agent-os/commands/plan-product/1-product-concept.md`` becomes
    ``commands/plan-product/single-agent/1-product-concept.md``.
    """
    path = reference.strip()
    if path.startswith(POINTER_PREFIX):
        path = path[len(POINTER_PREFIX) :]
    path = _with_suffix(path.lstrip("/"))
    if path.startswith("commands/"):
        path = path[len("commands/") :]

    parts = PurePosixPath(path).parts
    if len(parts) >= 2 and "single-agent" not in parts:
        parts = (*parts[:-1], "single-agent", parts[-1])
    return "/".join(("commands", *parts))


class ReferenceEmbedder:
    """Expands reference tags against a profile.

    Tag families:
    - ``{{workflows/<path>}}`` and ``{{protocols/<path>}}``: inlined in EAGER
      mode, replaced by an ``@agent-os/...`` pointer in LAZY mode
    - ``{{standards/<category>/*}}``: every standard in the category, sorted
      by relative path, always inlined
    - ``{{standards/<category>/<name>}}``: one standard, always inlined
    - ``{{PHASE <n>: <path>}}``: a numbered single-agent command file under an
      H1 heading, always inlined, expanded with ``compiled_single_command``

    A standard referenced by more than one standards tag in the same buffer
    is embedded once, at the last tag that references it.
    """

    def __init__(self, resolver: ProfileResolver, config: CompileConfig):
        self.resolver = resolver
        self.config = config

    def expand(
        self,
        buffer: str,
        profile: str | None = None,
        mode: EmbedMode | None = None,
        *,
        document: str | None = None,
    ) -> tuple[str, list[CompileIssue]]:
        """
        Expand every reference tag in a buffer.

        Args:
            buffer: Document text (conditionals already expanded)
            profile: Profile to resolve against (default: config.profile)
            mode: Embedding mode (default: from config.lazy_load_workflows)
            document: Document identity used in issue messages

        Returns:
            Tuple of (expanded text, issues)
        """
        if mode is None:
            mode = EmbedMode.LAZY if self.config.lazy_load_workflows else EmbedMode.EAGER
        ctx = _Context(profile=profile or self.config.profile, mode=mode, config=self.config, document=document)

        result = self._expand(buffer, ctx, depth=0, include_stack=())

        for match in iter_tags(result):
            if is_macro_tag(match.inner):
                ctx.issues.append(
                    CompileIssue(
                        kind=IssueKind.COMPLETION,
                        message=f"Unexpanded tag remains after compilation: {match.text}",
                        document=document,
                        tag=match.text,
                    )
                )

        return result, ctx.issues

    def _expand(self, buffer: str, ctx: _Context, depth: int, include_stack: tuple[Path, ...]) -> str:
        tags = [m for m in iter_tags(buffer) if m.inner.strip().startswith(REFERENCE_TAG_PREFIXES)]
        standards_owner = self._plan_standards(tags, ctx)

        output: list[str] = []
        pos = 0
        for index, match in enumerate(tags):
            output.append(buffer[pos : match.start])
            inner = match.inner.strip()

            if inner.startswith("workflows/"):
                replacement = self._reference(match, "workflow", ctx, depth, include_stack)
            elif inner.startswith("protocols/"):
                replacement = self._reference(match, "protocol", ctx, depth, include_stack)
            elif inner.startswith("standards/"):
                replacement = self._standards(match, index, standards_owner, ctx, depth, include_stack)
            else:
                replacement = self._phase(match, ctx, depth, include_stack)

            output.append(replacement)
            pos = match.end

        output.append(buffer[pos:])
        return "".join(output)

    # ----- workflows / protocols -----

    def _reference(
        self, match: TagMatch, family: str, ctx: _Context, depth: int, include_stack: tuple[Path, ...]
    ) -> str:
        relative = _with_suffix(match.inner.strip())
        result = self.resolver.resolve(relative, ctx.profile)
        if not result.found:
            return self._unresolved(match, family, result, ctx)

        if ctx.mode is EmbedMode.LAZY:
            return f"{POINTER_PREFIX}{relative}"

        return self._embed_file(match, family, result, ctx, depth, include_stack, ctx.config)

    # ----- standards -----

    def _standards_results(self, inner: str, ctx: _Context) -> list[ResolutionResult] | ResolutionResult:
        rest = inner[len("standards/") :]
        if rest.endswith("*"):
            prefix = f"standards/{rest[:-1]}"
            subdir = prefix.rsplit("/", 1)[0]
            return [
                r
                for r in self.resolver.list_files(ctx.profile, subdir, suffixes=(".md",))
                if r.relative_path.startswith(prefix) and PurePosixPath(r.relative_path).name != STANDARDS_INDEX_FILE
            ]
        return self.resolver.resolve(_with_suffix(f"standards/{rest}"), ctx.profile)

    def _plan_standards(self, tags: list[TagMatch], ctx: _Context) -> dict[str, int]:
        """Map each standard's relative path to the index of the last tag that includes it."""
        owner: dict[str, int] = {}
        for index, match in enumerate(tags):
            inner = match.inner.strip()
            if not inner.startswith("standards/"):
                continue
            results = self._standards_results(inner, ctx)
            if isinstance(results, ResolutionResult):
                results = [results] if results.found else []
            for result in results:
                owner[result.relative_path] = index
        return owner

    def _standards(
        self,
        match: TagMatch,
        index: int,
        owner: dict[str, int],
        ctx: _Context,
        depth: int,
        include_stack: tuple[Path, ...],
    ) -> str:
        inner = match.inner.strip()
        results = self._standards_results(inner, ctx)
        warning = ""

        if isinstance(results, ResolutionResult):
            if not results.found:
                return self._unresolved(match, "standard", results, ctx)
            results = [results]
        else:
            walk = self.resolver.walk_chain(ctx.profile)
            if not walk.complete:
                # The wildcard only saw the profiles reached before the walk stopped.
                warning = self._failed(match, "standard", inner, walk.describe(), ctx, code=walk.status.value)

        if not results and not warning:
            ctx.issues.append(
                CompileIssue(
                    kind=IssueKind.RESOLUTION,
                    message=f"{match.text} matched no standards in profile '{ctx.profile}'",
                    document=ctx.document,
                    tag=match.text,
                    outcome="no matches",
                )
            )
            return ""

        parts = [
            self._embed_file(match, "standard", result, ctx, depth, include_stack, ctx.config)
            for result in results
            if owner.get(result.relative_path) == index
        ]
        return "\n\n".join(part for part in (warning, *parts) if part)

    # ----- PHASE -----

    def _phase(self, match: TagMatch, ctx: _Context, depth: int, include_stack: tuple[Path, ...]) -> str:
        parsed = parse_phase(match.inner)
        if parsed is None:
            return match.text

        number, reference = parsed
        relative = phase_source_path(reference)
        result = self.resolver.resolve(relative, ctx.profile)
        if not result.found:
            return self._unresolved(match, "phase", result, ctx)

        config = ctx.config.with_flags(compiled_single_command=True)
        content = self._embed_file(match, "phase", result, ctx, depth, include_stack, config)
        return f"# PHASE {number}: {phase_title(relative)}\n\n{content}"

    # ----- shared -----

    def _embed_file(
        self,
        match: TagMatch,
        family: str,
        result: ResolutionResult,
        ctx: _Context,
        depth: int,
        include_stack: tuple[Path, ...],
        config: CompileConfig,
    ) -> str:
        relative = result.relative_path
        path = result.found_path.resolve()

        if depth + 1 > MAX_EMBED_DEPTH:
            return self._failed(
                match,
                family,
                relative,
                f"maximum embedding depth ({MAX_EMBED_DEPTH}) exceeded",
                ctx,
                Severity.ERROR,
            )

        if path in include_stack:
            return self._failed(match, family, relative, "circular reference", ctx, Severity.ERROR)

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return self._failed(match, family, relative, f"unreadable ({e})", ctx)

        logger.debug(f"Embedding {relative} from profile '{result.profile}' (depth {depth + 1})")

        text, issues = expand_conditionals(text, config, document=relative)
        ctx.issues.extend(issues)

        nested = _Context(
            profile=ctx.profile, mode=ctx.mode, config=config, document=ctx.document, issues=ctx.issues
        )
        return self._expand(text, nested, depth + 1, (*include_stack, path)).rstrip("\n")

    def _unresolved(self, match: TagMatch, family: str, result: ResolutionResult, ctx: _Context) -> str:
        return self._failed(
            match, family, result.relative_path, result.describe(), ctx, code=result.status.value
        )

    def _failed(
        self,
        match: TagMatch,
        family: str,
        relative: str,
        outcome: str,
        ctx: _Context,
        severity: Severity = Severity.WARNING,
        code: str | None = None,
    ) -> str:
        """Record a RESOLUTION issue and return the inline warning line.

        ``code`` overrides the issue's ``outcome`` when the caller has a
        resolution status to report instead of the readable message.
        """
        ctx.issues.append(
            CompileIssue(
                kind=IssueKind.RESOLUTION,
                severity=severity,
                message=f"Could not embed {family} file {relative}: {outcome}",
                document=ctx.document,
                tag=match.text,
                outcome=code or outcome,
            )
        )
        logger.warning(f"{ctx.document or '<buffer>'}: could not embed {relative}: {outcome}")
        label = family.capitalize()
        return f"⚠️ {label} file {relative} could not be embedded: {outcome} (profile '{ctx.profile}')"


def expand_references(
    buffer: str,
    resolver: ProfileResolver,
    config: CompileConfig,
    profile: str | None = None,
    mode: EmbedMode | None = None,
    *,
    document: str | None = None,
) -> tuple[str, list[CompileIssue]]:
    """Functional entry point for ``ReferenceEmbedder.expand``."""
    return ReferenceEmbedder(resolver, config).expand(buffer, profile, mode, document=document)
