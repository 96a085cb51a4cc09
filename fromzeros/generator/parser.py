"""Type definition parser using Lark."""

import json
import os
import re
from dataclasses import dataclass
from typing import Any, TypeVar

from lark import Lark, Token
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken
from lark.visitors import Transformer, v_args

from .errors import ParseError, UnsupportedKind
from .types import (
    Attribute,
    Field,
    FieldList,
    FieldShape,
    GenericKind,
    GenericParam,
    Span,
    TypeDescriptor,
    TypeExpr,
    TypeExprKind,
    TypeKind,
    Variant,
    render_generic_args,
    render_type,
)

_g_parser: Lark | None = None

_COMMENT_RE = re.compile(r"//[^\n]*|/\*.*?\*/", re.DOTALL)


@dataclass
class _AttrArgs:
    value: list[str]


@dataclass
class _AttrValue:
    value: str


@dataclass
class _Visibility:
    value: str


@dataclass
class _Bounds:
    value: list[str]


@dataclass
class _ForLifetimes:
    value: str


@dataclass
class _Generics:
    value: list[GenericParam]


@dataclass
class _Where:
    value: list[str]


@dataclass
class _Discriminant:
    value: str


@dataclass
class _Segment:
    name: str
    args: list[TypeExpr]


@dataclass
class _GenericArgs:
    value: list[TypeExpr]


@dataclass
class _Body:
    fields: FieldList
    where: list[str]


@dataclass
class _Definition:
    kind: TypeKind
    name: Token
    generics: list[GenericParam]
    where: list[str]
    fields: FieldList | None
    variants: list[Variant]


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_one(args: list[Any], class_type: type[object]) -> Any:
    filtered = _filter(args, class_type)
    if len(filtered) == 0:
        return None
    if len(filtered) > 1:
        raise RuntimeError(f"Found more than one {class_type}")

    if hasattr(filtered[0], "value") and not isinstance(filtered[0], Token):
        return filtered[0].value
    return filtered[0]


TMany = TypeVar("TMany")


def _find_many(args: list[Any], class_type: type[TMany]) -> list[TMany]:
    return _filter(args, class_type)


def _token(args: list[Any], token_type: str) -> Token | None:
    for arg in args:
        if isinstance(arg, Token) and arg.type == token_type:
            return arg
    return None


def _span(token: Token | None) -> Span | None:
    if token is None or token.line is None or token.column is None:
        return None
    return Span(line=token.line, column=token.column)


def _meta_span(meta: Any) -> Span | None:
    if getattr(meta, "empty", True):
        return None
    return Span(line=meta.line, column=meta.column)


def _path(segments: list[_Segment]) -> TypeExpr:
    # Generic arguments on inner segments stay part of the path text
    *inner, last = segments
    prefix = "".join(f"{seg.name}{render_generic_args(seg.args)}::" for seg in inner)
    return TypeExpr(kind=TypeExprKind.PATH, name=prefix + last.name, args=last.args)


class TreeTransformer(Transformer):
    """Transform parse tree into type descriptors."""

    # Attributes

    def attr_path(self, args: list[Any]) -> str:
        return "::".join(str(arg) for arg in args)

    def attr_args(self, args: list[Any]) -> _AttrArgs:
        return _AttrArgs(value=[str(arg) for arg in args])

    def attr_value(self, args: list[Any]) -> _AttrValue:
        return _AttrValue(value=str(args[0]))

    def attr_token(self, args: list[Any]) -> str:
        text = args[0]
        if len(args) == 1:
            return text
        if isinstance(args[1], _AttrArgs):
            return f"{text}({', '.join(args[1].value)})"
        return f"{text} = {args[1].value}"

    def attr_literal(self, args: list[Any]) -> str:
        return str(args[0])

    def attribute(self, args: list[Any]) -> Attribute:
        return Attribute(
            name=args[0],
            args=_find_one(args, _AttrArgs) or [],
            value=_find_one(args, _AttrValue),
        )

    def vis_path(self, args: list[Any]) -> str:
        return "::".join(str(arg) for arg in args)

    def visibility(self, args: list[Any]) -> _Visibility:
        return _Visibility(value=f"pub({args[0]})" if args else "pub")

    # Types

    def path_segment(self, args: list[Any]) -> _Segment:
        return _Segment(name=str(args[0]), args=_find_one(args, _GenericArgs) or [])

    def generic_args(self, args: list[Any]) -> _GenericArgs:
        return _GenericArgs(value=list(args))

    def path_type(self, args: list[Any]) -> TypeExpr:
        return _path(args)

    def global_path(self, args: list[Any]) -> TypeExpr:
        path = _path(args)
        path.name = f"::{path.name}"
        return path

    def unit_type(self, _args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.TUPLE)

    def tuple_type(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.TUPLE, args=list(args))

    def array_type(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.ARRAY, args=[args[0]], length=str(args[1]).strip())

    def slice_type(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.SLICE, args=[args[0]])

    def const_pointer(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.POINTER, args=[args[-1]], mutable=False)

    def mut_pointer(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.POINTER, args=[args[-1]], mutable=True)

    def reference_type(self, args: list[Any]) -> TypeExpr:
        lifetime = _token(args, "LIFETIME")
        return TypeExpr(
            kind=TypeExprKind.REFERENCE,
            args=[args[-1]],
            mutable=_token(args, "MUT") is not None,
            lifetime=str(lifetime) if lifetime else None,
        )

    def never_type(self, _args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.NEVER)

    def lifetime_arg(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.LIFETIME, name=str(args[0]))

    def const_arg(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.CONST, name=str(args[0]))

    def block_arg(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.CONST, name=f"{{ {str(args[0]).strip()} }}")

    def binding_arg(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind=TypeExprKind.BINDING, name=str(args[0]), args=[args[1]])

    # Generics

    def lifetime_bounds(self, args: list[Any]) -> _Bounds:
        return _Bounds(value=[str(arg) for arg in args])

    def for_lifetimes(self, args: list[Any]) -> _ForLifetimes:
        return _ForLifetimes(value=f"for<{', '.join(str(arg) for arg in args)}>")

    def trait_bound(self, args: list[Any]) -> str:
        maybe = "?" if _token(args, "MAYBE") else ""
        hrtb = _find_one(args, _ForLifetimes)
        prefix = f"{hrtb} " if hrtb else ""
        return f"{maybe}{prefix}{render_type(args[-1])}"

    def bounds(self, args: list[Any]) -> _Bounds:
        return _Bounds(value=[str(arg) for arg in args])

    def lifetime_param(self, args: list[Any]) -> GenericParam:
        return GenericParam(
            kind=GenericKind.LIFETIME,
            name=str(args[0]),
            bounds=_find_one(args, _Bounds) or [],
        )

    def const_param(self, args: list[Any]) -> GenericParam:
        default = _token(args, "CONST_DEFAULT")
        return GenericParam(
            kind=GenericKind.CONST,
            name=str(args[0]),
            const_type=render_type(args[1]),
            default=str(default).strip() if default else None,
        )

    def type_param(self, args: list[Any]) -> GenericParam:
        default = _find_one(args, TypeExpr)
        return GenericParam(
            kind=GenericKind.TYPE,
            name=str(args[0]),
            bounds=_find_one(args, _Bounds) or [],
            default=render_type(default) if default else None,
        )

    def generics(self, args: list[Any]) -> _Generics:
        return _Generics(value=list(args))

    def type_predicate(self, args: list[Any]) -> str:
        hrtb = _find_one(args, _ForLifetimes)
        prefix = f"{hrtb} " if hrtb else ""
        bounds = _find_one(args, _Bounds) or []
        return f"{prefix}{render_type(_find_one(args, TypeExpr))}: {' + '.join(bounds)}".rstrip()

    def lifetime_predicate(self, args: list[Any]) -> str:
        return f"{args[0]}: {' + '.join(args[1].value)}"

    def where_clause(self, args: list[Any]) -> _Where:
        return _Where(value=list(args))

    # Fields

    def named_field(self, args: list[Any]) -> Field:
        name = _token(args, "NAME")
        return Field(
            name=str(name),
            type=args[-1],
            span=_span(name),
            attributes=_find_many(args, Attribute),
        )

    @v_args(meta=True)
    def unnamed_field(self, meta: Any, args: list[Any]) -> Field:
        return Field(
            type=args[-1],
            span=_meta_span(meta),
            attributes=_find_many(args, Attribute),
        )

    def named_fields(self, args: list[Any]) -> FieldList:
        return FieldList(shape=FieldShape.NAMED, fields=list(args))

    def unnamed_fields(self, args: list[Any]) -> FieldList:
        return FieldList(shape=FieldShape.UNNAMED, fields=list(args))

    def named_body(self, args: list[Any]) -> _Body:
        return _Body(fields=_find_one(args, FieldList), where=_find_one(args, _Where) or [])

    def unnamed_body(self, args: list[Any]) -> _Body:
        return _Body(fields=_find_one(args, FieldList), where=_find_one(args, _Where) or [])

    def unit_body(self, args: list[Any]) -> _Body:
        return _Body(fields=FieldList(shape=FieldShape.UNIT), where=_find_one(args, _Where) or [])

    # Definitions

    def discriminant(self, args: list[Any]) -> _Discriminant:
        return _Discriminant(value=_COMMENT_RE.sub("", str(args[0])).strip())

    def variant(self, args: list[Any]) -> Variant:
        name = _token(args, "NAME")
        return Variant(
            name=str(name),
            fields=_find_one(args, FieldList) or FieldList(shape=FieldShape.UNIT),
            discriminant=_find_one(args, _Discriminant),
            span=_span(name),
            attributes=_find_many(args, Attribute),
        )

    def struct_def(self, args: list[Any]) -> _Definition:
        body = _find_one(args, _Body)
        return _Definition(
            kind=TypeKind.STRUCT,
            name=args[0],
            generics=_find_one(args, _Generics) or [],
            where=body.where,
            fields=body.fields,
            variants=[],
        )

    def union_def(self, args: list[Any]) -> _Definition:
        return _Definition(
            kind=TypeKind.UNION,
            name=args[0],
            generics=_find_one(args, _Generics) or [],
            where=_find_one(args, _Where) or [],
            fields=_find_one(args, FieldList),
            variants=[],
        )

    def enum_def(self, args: list[Any]) -> _Definition:
        return _Definition(
            kind=TypeKind.ENUM,
            name=args[0],
            generics=_find_one(args, _Generics) or [],
            where=_find_one(args, _Where) or [],
            fields=None,
            variants=_find_many(args, Variant),
        )

    def item(self, args: list[Any]) -> TypeDescriptor:
        definition = _find_one(args, _Definition)
        return TypeDescriptor(
            name=str(definition.name),
            kind=definition.kind,
            generics=definition.generics,
            where_clause=definition.where,
            attributes=_find_many(args, Attribute),
            fields=definition.fields,
            variants=definition.variants,
            span=_span(definition.name),
        )

    def start(self, args: list[Any]) -> list[TypeDescriptor]:
        return list(args)


def _duplicates(names: list[str]) -> list[str]:
    seen: set[str] = set()
    repeated = []
    for name in names:
        if name in seen and name not in repeated:
            repeated.append(name)
        seen.add(name)
    return repeated


_SINGLE_ARG_KINDS = frozenset(
    [
        TypeExprKind.ARRAY,
        TypeExprKind.SLICE,
        TypeExprKind.POINTER,
        TypeExprKind.REFERENCE,
        TypeExprKind.BINDING,
    ]
)


def _type_problem(t: TypeExpr) -> str | None:
    """Check that a type expression has the parts its kind needs to be rendered."""
    if t.kind in _SINGLE_ARG_KINDS and len(t.args) != 1:
        return f"{t.kind} type needs exactly one element type, got {len(t.args)}"
    if t.kind is TypeExprKind.ARRAY and t.length is None:
        return "array type has no length"
    if t.kind is TypeExprKind.NEVER and t.args:
        return "never type cannot have arguments"
    if t.kind in (TypeExprKind.PATH, TypeExprKind.LIFETIME, TypeExprKind.CONST, TypeExprKind.BINDING):
        if not t.name:
            return f"{t.kind} type has no name"
    for arg in t.args:
        problem = _type_problem(arg)
        if problem:
            return problem
    return None


def _field_list_problem(fields: FieldList) -> str | None:
    names = [f.name for f in fields.fields]
    if fields.shape is FieldShape.UNIT and fields.fields:
        return "unit field list has fields"
    if fields.shape is FieldShape.UNNAMED and any(n is not None for n in names):
        return "unnamed field list has named fields"
    if fields.shape is FieldShape.NAMED:
        if any(n is None for n in names):
            return "named field list has unnamed fields"
        repeated = _duplicates([str(n) for n in names])
        if repeated:
            return f"field `{repeated[0]}` is declared more than once"
    for index, f in enumerate(fields.fields):
        problem = _type_problem(f.type)
        if problem:
            return f"field `{f.name if f.name is not None else index}`: {problem}"
    return None


def validate(descriptors: list[TypeDescriptor]) -> None:
    """Validate parsed type definitions."""
    repeated = _duplicates([d.name for d in descriptors])
    if repeated:
        dup = [d for d in descriptors if d.name == repeated[0]][-1]
        raise ParseError(
            f"`{dup.name}` is defined more than once",
            type_name=dup.name,
            source=dup.source,
            span=dup.span,
        )

    for descriptor in descriptors:
        if descriptor.kind is TypeKind.ENUM:
            repeated = _duplicates([v.name for v in descriptor.variants])
            if descriptor.fields is not None:
                problem = "enum cannot have fields, only variants"
            elif repeated:
                problem = f"variant `{repeated[0]}` is declared more than once"
            else:
                problem = next(
                    filter(None, (_field_list_problem(v.fields) for v in descriptor.variants)), None
                )
        elif descriptor.fields is None or descriptor.variants:
            problem = f"{descriptor.kind} must have fields and no variants"
        else:
            problem = _field_list_problem(descriptor.fields)

        if problem:
            raise ParseError(
                f"{problem} in `{descriptor.name}`",
                type_name=descriptor.name,
                source=descriptor.source,
                span=descriptor.span,
            )


def _error_span(e: UnexpectedInput) -> Span | None:
    line = getattr(e, "line", -1)
    column = getattr(e, "column", -1)
    if line is None or line < 1:
        return None
    return Span(line=line, column=column)


def parse(text: str, source: str | None = None) -> list[TypeDescriptor]:
    """Parse Rust-style struct, union and enum definitions."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/typedef.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar, propagate_positions=True)

    try:
        tree = _g_parser.parse(text)
    except UnexpectedCharacters as e:
        raise ParseError(
            f"unexpected character {e.char!r}", source=source, span=_error_span(e)
        ) from e
    except UnexpectedToken as e:
        raise ParseError(
            f"unexpected token {str(e.token)!r}", source=source, span=_error_span(e)
        ) from e
    except UnexpectedInput as e:
        raise ParseError("unexpected end of input", source=source) from e

    descriptors: list[TypeDescriptor] = TreeTransformer().transform(tree)
    for descriptor in descriptors:
        descriptor.source = source

    validate(descriptors)

    return descriptors


def parse_json(text: str, source: str | None = None) -> list[TypeDescriptor]:
    """Load type descriptors produced by another front-end.

    Accepts either a list of descriptor objects or `{"types": [...]}`.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON: {e.msg}", source=source, span=Span(e.lineno, e.colno)) from e

    if isinstance(data, dict):
        data = data.get("types")
    if not isinstance(data, list):
        raise ParseError("expected a list of type descriptors", source=source)

    kinds = {kind.value for kind in TypeKind}
    descriptors = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ParseError(f"type descriptor {index} is not an object", source=source)
        name = item.get("name")
        if item.get("kind") not in kinds:
            raise UnsupportedKind(
                f"`{name}` has kind {item.get('kind')!r}, expected one of {', '.join(sorted(kinds))}",
                type_name=name,
                source=source,
            )
        try:
            descriptor = TypeDescriptor.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(
                f"malformed type descriptor {name or index}: {e}", type_name=name, source=source
            ) from e
        if descriptor.source is None:
            descriptor.source = source
        descriptors.append(descriptor)

    validate(descriptors)

    return descriptors
