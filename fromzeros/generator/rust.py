"""Rust code generator for `FromZeros` implementations."""

from jinja2 import Environment, PackageLoader

from .leaves import PRIMITIVE_LEAVES
from .types import FieldInit, GeneratedImplementation, GenericKind, GenericParam

env = Environment(
    loader=PackageLoader("fromzeros.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("rust.rs.j2")


def _impl_param(param: GenericParam) -> str:
    """Render a generic parameter for the `impl<...>` list (defaults are dropped)."""
    if param.kind is GenericKind.CONST:
        return f"const {param.name}: {param.const_type}"
    if param.bounds:
        return f"{param.name}: {' + '.join(param.bounds)}"
    return param.name


def _impl_generics(impl: GeneratedImplementation) -> str:
    if not impl.generics:
        return ""
    return "<" + ", ".join(_impl_param(param) for param in impl.generics) + ">"


def _type_generics(impl: GeneratedImplementation) -> str:
    if not impl.generics:
        return ""
    return "<" + ", ".join(param.name for param in impl.generics) + ">"


def _constructor(impl: GeneratedImplementation) -> str:
    """The construction site: the type itself, or the zero variant of an enum."""
    if impl.variant is not None:
        return f"{impl.target}::{impl.variant}"
    return impl.target


def _zeroed(impl: GeneratedImplementation, init: FieldInit) -> str:
    return f"<{init.type} as {impl.trait_path}>::zeroed()"


def _location(impl: GeneratedImplementation, init: FieldInit) -> str:
    """Trailing comment pointing back at the field declaration."""
    if init.span is None:
        return ""
    source = f"{impl.source}:" if impl.source else ""
    return f"  // {source}{init.span.line}:{init.span.column}"


def render(impls: list[GeneratedImplementation], comments: list[str] | None = None) -> str:
    """Render implementations to Rust source code.

    Args:
        impls: Implementations in the order they should appear
        comments: Extra lines for the file header
    """
    return template.render(
        impls=impls,
        comments=comments or [],
        impl_generics=_impl_generics,
        type_generics=_type_generics,
        constructor=_constructor,
        zeroed=_zeroed,
        location=_location,
    )


def runtime() -> str:
    """Generate the Rust runtime providing `FromZeros` for leaf types."""
    runtime_template = env.get_template("runtime.rs.j2")
    return runtime_template.render(leaves=["()", *PRIMITIVE_LEAVES])
