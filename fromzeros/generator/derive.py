"""Derive `FromZeros` implementations from type descriptors."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import assert_never

from .compose import bound_generics, compose_fields
from .errors import GenerationError, ParseError
from .layout import RepresentationKind, check_layout, classify, zero_variant
from .types import (
    FieldList,
    GeneratedImplementation,
    GenericParam,
    TypeDescriptor,
    TypeKind,
)

TRAIT_PATH = "fromzeros::FromZeros"


@dataclass
class Analysis:
    """Outcome of deriving one type, for reporting."""

    name: str
    kind: TypeKind
    representation: RepresentationKind | None = None  # Enums only
    zero_variant: str | None = None  # Enums only
    generics: list[GenericParam] = field(default_factory=list)
    error: GenerationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _own_fields(descriptor: TypeDescriptor) -> FieldList:
    if descriptor.fields is None:
        raise ParseError(
            f"{descriptor.kind} `{descriptor.name}` has no field list",
            type_name=descriptor.name,
            source=descriptor.source,
            span=descriptor.span,
        )
    return descriptor.fields


def _target_fields(descriptor: TypeDescriptor) -> tuple[FieldList, str | None]:
    """Return the field list to construct and, for enums, the variant it belongs to."""
    kind = descriptor.kind
    if kind is TypeKind.STRUCT:
        return _own_fields(descriptor), None
    if kind is TypeKind.UNION:
        return _own_fields(descriptor), None
    if kind is TypeKind.ENUM:
        check_layout(descriptor)
        variant = zero_variant(descriptor)
        return variant.fields, variant.name
    assert_never(kind)


def derive(
    descriptor: TypeDescriptor,
    *,
    known: Iterable[str] = (),
    trait_path: str = TRAIT_PATH,
) -> GeneratedImplementation:
    """Derive the `FromZeros` implementation for one type definition.

    known names user types that implement the capability themselves. Raises a
    GenerationError subclass if the type cannot implement it.
    """
    fields, variant = _target_fields(descriptor)
    construction = compose_fields(
        descriptor,
        fields,
        trait_path=trait_path,
        known=frozenset(known),
        variant=variant,
    )

    return GeneratedImplementation(
        target=descriptor.name,
        kind=descriptor.kind,
        generics=bound_generics(descriptor.generics, trait_path),
        where_clause=list(descriptor.where_clause),
        trait_path=trait_path,
        construction=construction,
        variant=variant,
        span=descriptor.span,
        source=descriptor.source,
    )


def known_types(descriptors: list[TypeDescriptor], assume: Iterable[str] = ()) -> frozenset[str]:
    """Return the user types that may appear as fields: every derived type plus assumed ones."""
    return frozenset([d.name for d in descriptors] + list(assume))


def derive_all(
    descriptors: list[TypeDescriptor],
    *,
    assume: Iterable[str] = (),
    trait_path: str = TRAIT_PATH,
) -> list[GeneratedImplementation]:
    """Derive implementations for a batch of type definitions, in input order.

    The batch fails as a whole on the first error.
    """
    known = known_types(descriptors, assume)
    return [derive(d, known=known, trait_path=trait_path) for d in descriptors]


def analyze(
    descriptor: TypeDescriptor,
    *,
    known: Iterable[str] = (),
    trait_path: str = TRAIT_PATH,
) -> Analysis:
    """Run the derivation and capture its outcome instead of raising."""
    analysis = Analysis(name=descriptor.name, kind=descriptor.kind)

    if descriptor.kind is TypeKind.ENUM:
        analysis.representation = classify(descriptor)

    try:
        impl = derive(descriptor, known=known, trait_path=trait_path)
    except GenerationError as e:
        analysis.error = e
        return analysis

    analysis.zero_variant = impl.variant
    analysis.generics = impl.generics
    return analysis
