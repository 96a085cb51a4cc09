"""Type definitions for type descriptors and generated implementations."""

from dataclasses import dataclass, field
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin


class TypeKind(StrEnum):
    """The kind of a type definition."""

    STRUCT = auto()
    UNION = auto()
    ENUM = auto()


class FieldShape(StrEnum):
    """The shape of a struct's, union's or variant's fields."""

    UNIT = auto()
    UNNAMED = auto()
    NAMED = auto()


class GenericKind(StrEnum):
    """The kind of a generic parameter."""

    LIFETIME = auto()
    TYPE = auto()
    CONST = auto()


class TypeExprKind(StrEnum):
    """The kind of a type expression.

    LIFETIME, CONST and BINDING only appear as generic arguments of a PATH.
    """

    PATH = auto()
    TUPLE = auto()
    ARRAY = auto()
    SLICE = auto()
    POINTER = auto()
    REFERENCE = auto()
    NEVER = auto()
    LIFETIME = auto()
    CONST = auto()
    BINDING = auto()


@dataclass
class Span(DataClassJsonMixin):
    """Source position of a declaration (1-based)."""

    line: int
    column: int


@dataclass
class TypeExpr(DataClassJsonMixin):
    """Represents the declared type of a field.

    - PATH: name is the path (`u8`, `core::cell::Cell`), args are its generic arguments
    - TUPLE: args are the elements, `()` has none
    - ARRAY: args holds the element type, length is the length expression
    - SLICE, POINTER, REFERENCE: args holds the element or pointee type
    - LIFETIME, CONST: name holds the argument text
    - BINDING: name is the associated type, args holds the bound type
    """

    kind: TypeExprKind
    name: str | None = None
    args: list["TypeExpr"] = field(default_factory=list)
    length: str | None = None
    mutable: bool = False
    lifetime: str | None = None

    def __str__(self) -> str:
        return render_type(self)


@dataclass
class Attribute(DataClassJsonMixin):
    """Represents an outer attribute, e.g. `#[repr(C, u8)]`.

    args holds the top-level tokens of a list attribute as source text.
    value holds the right hand side of a `#[name = value]` attribute.
    """

    name: str
    args: list[str] = field(default_factory=list)
    value: str | None = None


@dataclass
class GenericParam(DataClassJsonMixin):
    """Represents a generic parameter of a type definition."""

    kind: GenericKind
    name: str
    bounds: list[str] = field(default_factory=list)
    const_type: str | None = None
    default: str | None = None


@dataclass
class Field(DataClassJsonMixin):
    """Represents a field of a struct, union or variant."""

    type: TypeExpr
    name: str | None = None
    span: Span | None = None
    attributes: list[Attribute] = field(default_factory=list)


@dataclass
class FieldList(DataClassJsonMixin):
    """Represents the fields of a struct, union or variant, in declaration order."""

    shape: FieldShape
    fields: list[Field] = field(default_factory=list)


@dataclass
class Variant(DataClassJsonMixin):
    """Represents one enum variant.

    discriminant holds the explicit discriminant expression as written, if any.
    """

    name: str
    fields: FieldList = field(default_factory=lambda: FieldList(FieldShape.UNIT))
    discriminant: str | None = None
    span: Span | None = None
    attributes: list[Attribute] = field(default_factory=list)


@dataclass
class TypeDescriptor(DataClassJsonMixin):
    """Represents one type definition handed to the generator.

    Structs and unions carry fields, enums carry variants.
    """

    name: str
    kind: TypeKind
    generics: list[GenericParam] = field(default_factory=list)
    where_clause: list[str] = field(default_factory=list)
    attributes: list[Attribute] = field(default_factory=list)
    fields: FieldList | None = None
    variants: list[Variant] = field(default_factory=list)
    span: Span | None = None
    source: str | None = None


@dataclass
class FieldInit(DataClassJsonMixin):
    """A single field initializer of a zero construction."""

    type: str
    name: str | None = None
    span: Span | None = None


@dataclass
class Construction(DataClassJsonMixin):
    """The zero construction of a field list."""

    shape: FieldShape
    fields: list[FieldInit] = field(default_factory=list)


@dataclass
class GeneratedImplementation(DataClassJsonMixin):
    """A `FromZeros` implementation for one type.

    generics already carry the propagated capability bound. variant is set for
    enums and names the variant that is constructed.
    """

    target: str
    kind: TypeKind
    generics: list[GenericParam]
    where_clause: list[str]
    trait_path: str
    construction: Construction
    variant: str | None = None
    span: Span | None = None
    source: str | None = None


def render_generic_args(args: list[TypeExpr]) -> str:
    """Render generic arguments, e.g. `<'a, T, 4>`."""
    if not args:
        return ""
    return "<" + ", ".join(render_type(arg) for arg in args) + ">"


def render_type(t: TypeExpr) -> str:
    """Render a type expression as Rust source text."""
    kind = t.kind
    if kind is TypeExprKind.PATH:
        return f"{t.name}{render_generic_args(t.args)}"
    if kind is TypeExprKind.TUPLE:
        if len(t.args) == 1:
            return f"({render_type(t.args[0])},)"
        return "(" + ", ".join(render_type(arg) for arg in t.args) + ")"
    if kind is TypeExprKind.ARRAY:
        return f"[{render_type(t.args[0])}; {t.length}]"
    if kind is TypeExprKind.SLICE:
        return f"[{render_type(t.args[0])}]"
    if kind is TypeExprKind.POINTER:
        qualifier = "mut" if t.mutable else "const"
        return f"*{qualifier} {render_type(t.args[0])}"
    if kind is TypeExprKind.REFERENCE:
        lifetime = f"{t.lifetime} " if t.lifetime else ""
        qualifier = "mut " if t.mutable else ""
        return f"&{lifetime}{qualifier}{render_type(t.args[0])}"
    if kind is TypeExprKind.NEVER:
        return "!"
    if kind is TypeExprKind.LIFETIME or kind is TypeExprKind.CONST:
        return str(t.name)
    if kind is TypeExprKind.BINDING:
        return f"{t.name} = {render_type(t.args[0])}"
    raise ValueError(f"Unknown type expression kind: {kind}")
