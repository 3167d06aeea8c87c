"""Call metadata and the ``Result`` type shared by gateway components."""

from .meta import EnvelopeKind, EnvelopeMeta, new_meta, validate_meta
from .result import Result, failure, success

__all__ = [
    "EnvelopeKind",
    "EnvelopeMeta",
    "Result",
    "failure",
    "new_meta",
    "success",
    "validate_meta",
]
