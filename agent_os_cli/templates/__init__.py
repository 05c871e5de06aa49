"""Template compilation: the ``{{...}}`` macro language."""

from .compiler import DocumentCompiler
from .compiler import compile_document
from .conditionals import MAX_CONDITIONAL_DEPTH
from .conditionals import expand_conditionals
from .models import CompiledArtifact
from .models import CompileIssue
from .models import DocumentKind
from .models import EmbedMode
from .models import IssueKind
from .models import Severity
from .references import MAX_EMBED_DEPTH
from .references import ReferenceEmbedder
from .references import expand_references
from .scanner import TagMatch
from .scanner import find_next_tag
from .scanner import iter_tags

__all__ = [
    "MAX_CONDITIONAL_DEPTH",
    "MAX_EMBED_DEPTH",
    "CompileIssue",
    "CompiledArtifact",
    "DocumentCompiler",
    "DocumentKind",
    "EmbedMode",
    "IssueKind",
    "ReferenceEmbedder",
    "Severity",
    "TagMatch",
    "compile_document",
    "expand_conditionals",
    "expand_references",
    "find_next_tag",
    "iter_tags",
]
