"""Errors raised while deriving `FromZeros` implementations."""

from .types import Span


class GenerationError(RuntimeError):
    """Raised when a type definition cannot be turned into an implementation.

    Carries the offending type and the best known source position so the
    message can point at the original declaration.
    """

    code = "generation-error"

    def __init__(
        self,
        message: str,
        *,
        type_name: str | None = None,
        source: str | None = None,
        span: Span | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.type_name = type_name
        self.source = source
        self.span = span

    @property
    def location(self) -> str:
        """`source:line:column`, or as much of it as is known."""
        parts = []
        if self.source:
            parts.append(self.source)
        if self.span is not None:
            parts.append(f"{self.span.line}:{self.span.column}")
        return ":".join(parts)

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ParseError(GenerationError):
    """Raised when the input cannot be read as type definitions."""

    code = "parse-error"


class UnsupportedKind(GenerationError):
    """Raised when a definition is neither a struct, a union nor an enum."""

    code = "unsupported-kind"


class LayoutUndefined(GenerationError):
    """Raised when an enum's discriminant layout is not well defined."""

    code = "layout-undefined"


class NoZeroDiscriminant(GenerationError):
    """Raised when no enum variant provably has the discriminant zero."""

    code = "no-zero-discriminant"


class UnmetFieldConstraint(GenerationError):
    """Raised when a field's type cannot be shown to implement `FromZeros`."""

    code = "unmet-field-constraint"

    def __init__(
        self,
        message: str,
        *,
        field: str,
        field_type: str,
        variant: str | None = None,
        type_name: str | None = None,
        source: str | None = None,
        span: Span | None = None,
    ):
        super().__init__(message, type_name=type_name, source=source, span=span)
        self.field = field
        self.field_type = field_type
        self.variant = variant
