from __future__ import annotations

from typing import Optional


class ComposerError(Exception):
    """Base exception for composition errors.

    ``source`` names the descriptor file and ``stage`` the pipeline step
    (parse, synthesize, serialize, emit) where the failure happened.
    """

    def __init__(
        self, message: str, *, source: Optional[str] = None, stage: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source = source
        self.stage = stage

    def with_context(
        self, *, source: Optional[str] = None, stage: Optional[str] = None
    ) -> "ComposerError":
        if self.source is None:
            self.source = source
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        prefix = ""
        if self.source:
            prefix += f"{self.source}: "
        if self.stage:
            prefix += f"{self.stage}: "
        return f"{prefix}{self.message}"


class ParseError(ComposerError):
    """Raised when a descriptor cannot be read or does not match the schema."""


class QuantityFormatError(ComposerError):
    """Raised when a volume size is not a valid storage quantity."""


class UnresolvableResourceKind(ComposerError):
    """Raised when a resource has no registered apiVersion/kind."""


class SinkWriteError(ComposerError):
    """Raised when the output stream rejects a write."""
