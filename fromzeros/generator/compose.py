"""Zero construction of field lists and generic bound propagation."""

from dataclasses import replace

from .errors import UnmetFieldConstraint
from .leaves import is_zeroable
from .types import (
    Construction,
    FieldInit,
    FieldList,
    GenericKind,
    GenericParam,
    TypeDescriptor,
    render_type,
)


def type_parameters(generics: list[GenericParam]) -> frozenset[str]:
    """Return the names of the type parameters (not lifetimes or consts)."""
    return frozenset(param.name for param in generics if param.kind is GenericKind.TYPE)


def bound_generics(generics: list[GenericParam], trait_path: str) -> list[GenericParam]:
    """Add the capability bound to every type parameter.

    Lifetime and const parameters are returned unchanged. Order and arity are
    preserved.
    """
    return [
        replace(param, bounds=[*param.bounds, trait_path])
        if param.kind is GenericKind.TYPE
        else replace(param)
        for param in generics
    ]


def compose_fields(
    descriptor: TypeDescriptor,
    fields: FieldList,
    *,
    trait_path: str,
    known: frozenset[str] = frozenset(),
    variant: str | None = None,
) -> Construction:
    """Build the zero construction for a field list.

    Every field must implement the capability, including every member of a
    union even though one would be enough for soundness.
    """
    params = type_parameters(descriptor.generics)
    inits = []

    for index, field in enumerate(fields.fields):
        type_text = render_type(field.type)
        if not is_zeroable(field.type, params, known):
            field_name = field.name if field.name is not None else str(index)
            owner = f"`{descriptor.name}::{variant}`" if variant else f"`{descriptor.name}`"
            raise UnmetFieldConstraint(
                f"field `{field_name}` of {owner} has type `{type_text}`, "
                f"which cannot be shown to implement `{trait_path}`",
                field=field_name,
                field_type=type_text,
                variant=variant,
                type_name=descriptor.name,
                source=descriptor.source,
                span=field.span or descriptor.span,
            )
        inits.append(FieldInit(type=type_text, name=field.name, span=field.span))

    return Construction(shape=fields.shape, fields=inits)
