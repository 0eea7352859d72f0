"""Exception and warning types raised by the generator."""

from __future__ import annotations


class ServiceGenError(Exception):
    """Base class for fatal generator errors."""


class UnsupportedDocumentError(ServiceGenError):
    """The input is not a normalized OpenAPI 3 document."""


class DocumentIntegrityError(ServiceGenError):
    """An internal $ref points at a segment that does not exist."""

    def __init__(self, ref: str):
        super().__init__(f"Unresolvable reference: {ref}")
        self.ref = ref


class SynthesisError(ServiceGenError):
    """Building the descriptor of one operation failed."""

    def __init__(self, tag: str, method: str, path: str):
        super().__init__(f"Failed to build {method.upper()} {path} (tag {tag!r})")
        self.tag = tag
        self.method = method
        self.path = path


class RenderError(ServiceGenError):
    """One or more output units failed to render or write."""

    def __init__(self, failed: list[str]):
        super().__init__(f"Failed to render: {', '.join(failed)}")
        self.failed = failed


class NamingWarning(UserWarning):
    """A source name could only be turned into an identifier lossily."""
