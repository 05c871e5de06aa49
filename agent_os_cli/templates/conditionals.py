"""Conditional block expansion: ``{{IF flag}}`` / ``{{UNLESS flag}}``.

The buffer is tokenised once into text runs and conditional tags, then a
stack machine decides which text runs survive. Content inside an inactive
block is dropped without being looked at further, so references in excluded
branches are never resolved.
"""

import logging
from dataclasses import dataclass

from ..config import CompileConfig
from .models import CompileIssue
from .models import IssueKind
from .models import Severity
from .scanner import iter_tags
from .scanner import parse_conditional

logger = logging.getLogger(__name__)

MAX_CONDITIONAL_DEPTH = 50

OPENERS = {"IF": "ENDIF", "UNLESS": "ENDUNLESS"}


@dataclass(frozen=True)
class _ConditionalTag:
    keyword: str
    flag: str
    text: str
    span_start: int


@dataclass(frozen=True)
class _Frame:
    kind: str
    flag: str
    active: bool
    tag: str


def _tokenize(buffer: str) -> list[str | _ConditionalTag]:
    """Split a buffer into text runs and conditional tags.

    A conditional tag that is alone on its line takes the whole line with it,
    newline included; an inline tag takes only itself.
    """
    tokens: list[str | _ConditionalTag] = []
    pos = 0
    for match in iter_tags(buffer):
        parsed = parse_conditional(match.inner)
        if parsed is None:
            continue

        span_start, span_end = match.start, match.end
        line_start = buffer.rfind("\n", 0, match.start) + 1
        line_end = buffer.find("\n", match.end)
        line_end = len(buffer) if line_end == -1 else line_end
        if (
            line_start >= pos
            and not buffer[line_start : match.start].strip()
            and not buffer[match.end : line_end].strip()
        ):
            span_start = line_start
            span_end = min(line_end + 1, len(buffer))

        if span_start > pos:
            tokens.append(buffer[pos:span_start])
        keyword, flag = parsed
        tokens.append(_ConditionalTag(keyword, flag, match.text, span_start))
        pos = span_end

    if pos < len(buffer):
        tokens.append(buffer[pos:])
    return tokens


def expand_conditionals(
    buffer: str,
    config: CompileConfig,
    *,
    document: str | None = None,
) -> tuple[str, list[CompileIssue]]:
    """
    Expand every IF/UNLESS block in a buffer.

    A block is kept when its enclosing block is kept and its condition holds:
    ``IF flag`` needs the flag to be true, ``UNLESS flag`` needs it not to be
    true. Unknown flags count as not true.

    Structural problems never raise:
    - a close tag of the wrong kind or flag warns and closes the open block
      with the open block's semantics
    - a close tag with nothing open warns and is dropped
    - blocks still open at end of document warn and end there
    - nesting deeper than MAX_CONDITIONAL_DEPTH is an error; the remainder of
      the document is emitted verbatim (if it was being kept) without further
      conditional expansion

    Args:
        buffer: Document text
        config: Flags to evaluate conditions against
        document: Document identity used in issue messages

    Returns:
        Tuple of (expanded text, issues)
    """
    issues: list[CompileIssue] = []
    output: list[str] = []
    stack: list[_Frame] = []
    unknown_flags: set[str] = set()
    active = True

    def issue(message: str, tag: str, severity: Severity = Severity.WARNING) -> None:
        issues.append(
            CompileIssue(
                kind=IssueKind.TAG_STRUCTURE, severity=severity, message=message, document=document, tag=tag
            )
        )

    for token in _tokenize(buffer):
        if isinstance(token, str):
            if active:
                output.append(token)
            continue

        if token.keyword in OPENERS:
            if len(stack) >= MAX_CONDITIONAL_DEPTH:
                issue(
                    f"Conditional nesting deeper than {MAX_CONDITIONAL_DEPTH} levels; "
                    "remaining content was not processed",
                    token.text,
                    Severity.ERROR,
                )
                if active:
                    output.append(buffer[token.span_start :])
                stack.clear()
                break

            value = config.flag(token.flag)
            if value is None:
                if token.flag not in unknown_flags:
                    unknown_flags.add(token.flag)
                    issue(f"Unknown conditional flag: {token.flag}", token.text)
                value = False

            condition = value if token.keyword == "IF" else not value
            frame = _Frame(token.keyword, token.flag, active and condition, token.text)
            stack.append(frame)
            active = frame.active
            continue

        if not stack:
            issue(f"{token.text} has no matching opening tag", token.text)
            continue

        frame = stack.pop()
        expected = OPENERS[frame.kind]
        if token.keyword != expected or token.flag != frame.flag:
            issue(f"Mismatched template tags: {token.text} closes {frame.tag}", token.text)
        active = stack[-1].active if stack else True

    if stack:
        issue(
            f"Unclosed conditional block detected (nesting level: {len(stack)}): "
            + ", ".join(frame.tag for frame in stack),
            stack[0].tag,
        )

    for found in issues:
        logger.debug(str(found))

    return "".join(output), issues
