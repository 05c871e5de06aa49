"""Tag scanning shared by every template processor.

A tag is ``{{`` + inner text + ``}}`` on a single line. Matching is
non-greedy and balanced at one level only: an opening delimiter that meets
another opening delimiter before its close is abandoned and scanning resumes
at the inner one. Deeper structure (conditional nesting) is the processors'
job. Only ``str.find`` and ASCII regexes are used, so results never depend
on the current locale.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass

OPEN = "{{"
CLOSE = "}}"

REFERENCE_PREFIXES = ("workflows/", "protocols/", "standards/")
MACRO_KEYWORDS = ("IF", "UNLESS", "ENDIF", "ENDUNLESS", "PHASE")

CONDITIONAL_RE = re.compile(r"(IF|UNLESS|ENDIF|ENDUNLESS)[ \t]+([a-z0-9_]+)", re.ASCII)
PHASE_RE = re.compile(r"PHASE[ \t]+([0-9]+)[ \t]*:[ \t]*(\S(?:.*\S)?)", re.ASCII)


@dataclass(frozen=True)
class TagMatch:
    """One tag found in a buffer.

    Attributes:
        inner: Text between the delimiters, unstripped
        start: Offset of the opening ``{{``
        end: Offset just past the closing ``}}``
    """

    inner: str
    start: int
    end: int

    @property
    def text(self) -> str:
        return f"{OPEN}{self.inner}{CLOSE}"


def find_next_tag(buffer: str, from_offset: int = 0) -> TagMatch | None:
    """
    Locate the next tag starting at or after ``from_offset``.

    Args:
        buffer: Text to scan
        from_offset: Offset to start scanning from

    Returns:
        TagMatch, or None when no further complete tag exists
    """
    pos = from_offset
    while True:
        start = buffer.find(OPEN, pos)
        if start == -1:
            return None
        close = buffer.find(CLOSE, start + len(OPEN))
        if close == -1:
            return None

        nested = buffer.find(OPEN, start + len(OPEN), close)
        newline = buffer.find("\n", start + len(OPEN), close)
        if nested != -1 and (newline == -1 or nested < newline):
            pos = nested
            continue
        if newline != -1:
            pos = newline + 1
            continue

        return TagMatch(buffer[start + len(OPEN) : close], start, close + len(CLOSE))


def iter_tags(buffer: str) -> Iterator[TagMatch]:
    """Yield every tag in the buffer, left to right."""
    pos = 0
    while (match := find_next_tag(buffer, pos)) is not None:
        yield match
        pos = match.end


def is_macro_tag(inner: str) -> bool:
    """
    Whether a tag belongs to the macro language.

    Deliberately looser than the processors' parsers: a malformed macro such
    as ``{{IF Flag-Name}}`` still counts, so it is reported as unexpanded
    instead of silently passing as a plain placeholder.
    """
    inner = inner.strip()
    if inner.startswith(REFERENCE_PREFIXES):
        return True
    keyword = inner.split(maxsplit=1)[0].rstrip(":") if inner else ""
    return keyword in MACRO_KEYWORDS


def parse_conditional(inner: str) -> tuple[str, str] | None:
    """Return (keyword, flag) for a well-formed conditional tag."""
    match = CONDITIONAL_RE.fullmatch(inner.strip())
    if match is None:
        return None
    return match.group(1), match.group(2)


def parse_phase(inner: str) -> tuple[int, str] | None:
    """Return (phase number, path) for a well-formed PHASE tag."""
    match = PHASE_RE.fullmatch(inner.strip())
    if match is None:
        return None
    return int(match.group(1)), match.group(2)
