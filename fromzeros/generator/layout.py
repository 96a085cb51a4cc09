"""Enum layout classification and zero-discriminant resolution."""

import re
from enum import StrEnum, auto

from .errors import LayoutUndefined, NoZeroDiscriminant
from .types import Attribute, FieldShape, TypeDescriptor, TypeKind, Variant

# Representation hints that fix the size and position of the discriminant
PRIMITIVE_REPRS = frozenset(
    [
        "i8",
        "i16",
        "i32",
        "i64",
        "i128",
        "isize",
        "u8",
        "u16",
        "u32",
        "u64",
        "u128",
        "usize",
    ]
)

_INT_LITERAL_RE = re.compile(
    r"""
    ^(?P<sign>-)?\s*
    (?:
        0x(?P<hex>[0-9a-fA-F_]+)
      | 0o(?P<oct>[0-7_]+)
      | 0b(?P<bin>[01_]+)
      | (?P<dec>[0-9][0-9_]*)
    )
    (?:[iu](?:8|16|32|64|128|size))?$
    """,
    re.VERBOSE,
)


class RepresentationKind(StrEnum):
    """Classification of an enum's memory layout."""

    UNDEFINED = auto()  # Discriminant byte pattern cannot be reasoned about
    CLIKE = auto()  # Every variant is unit-like
    PRIMITIVE = auto()  # Explicit primitive integer repr


def primitive_repr(attributes: list[Attribute]) -> str | None:
    """Return the primitive integer named by a `repr` attribute, if any."""
    for attr in attributes:
        if attr.name != "repr":
            continue
        for arg in attr.args:
            if arg in PRIMITIVE_REPRS:
                return arg
    return None


def is_clike(descriptor: TypeDescriptor) -> bool:
    """Check if every variant of an enum is unit-like."""
    return all(variant.fields.shape is FieldShape.UNIT for variant in descriptor.variants)


def classify(descriptor: TypeDescriptor) -> RepresentationKind:
    """Classify the layout of an enum."""
    if descriptor.kind is not TypeKind.ENUM:
        raise ValueError(f"{descriptor.name} is a {descriptor.kind}, not an enum")

    if is_clike(descriptor):
        return RepresentationKind.CLIKE
    if primitive_repr(descriptor.attributes) is not None:
        return RepresentationKind.PRIMITIVE
    return RepresentationKind.UNDEFINED


def check_layout(descriptor: TypeDescriptor) -> RepresentationKind:
    """Classify the layout of an enum, failing if it is not well defined."""
    representation = classify(descriptor)
    if representation is RepresentationKind.UNDEFINED:
        raise LayoutUndefined(
            f"enum `{descriptor.name}` must be either C-like or use a primitive repr "
            f"such as #[repr(u8)]",
            type_name=descriptor.name,
            source=descriptor.source,
            span=descriptor.span,
        )
    return representation


def explicit_discriminant(variant: Variant) -> int | None:
    """Return the value of a variant's explicit discriminant, if it is an integer literal."""
    if variant.discriminant is None:
        return None

    match = _INT_LITERAL_RE.match(variant.discriminant.strip())
    if not match:
        return None

    if match["hex"] is not None:
        value = int(match["hex"].replace("_", ""), 16)
    elif match["oct"] is not None:
        value = int(match["oct"].replace("_", ""), 8)
    elif match["bin"] is not None:
        value = int(match["bin"].replace("_", ""), 2)
    else:
        value = int(match["dec"].replace("_", ""))

    return -value if match["sign"] else value


def zero_variant(descriptor: TypeDescriptor) -> Variant:
    """Find the variant whose discriminant is zero.

    The first variant is zero unless its explicit discriminant is a non-zero
    integer literal. Other expressions such as `A = ZERO` are taken as zero.
    Later variants only qualify with an explicit `= 0`; their implicit values
    are not computed, so `A = -1, B` has no zero variant.
    """
    if descriptor.variants:
        first, *rest = descriptor.variants

        # The first variant counts as zero unless it has a non-zero integer literal
        if explicit_discriminant(first) in (None, 0):
            return first

        for variant in rest:
            if explicit_discriminant(variant) == 0:
                return variant

    raise NoZeroDiscriminant(
        f"enum `{descriptor.name}` does not have a variant with a provably-zero discriminant",
        type_name=descriptor.name,
        source=descriptor.source,
        span=descriptor.span,
    )
