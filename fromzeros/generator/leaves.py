"""Leaf types whose `FromZeros` implementation is provided by the runtime."""

from .types import TypeExpr, TypeExprKind

# Primitive types with a one-line `FromZeros` implementation in the runtime
PRIMITIVE_LEAVES = (
    "bool",
    "char",
    "i8",
    "i16",
    "i32",
    "i64",
    "i128",
    "isize",
    "f32",
    "f64",
    "u8",
    "u16",
    "u32",
    "u64",
    "u128",
    "usize",
)

PRIMITIVE_LEAF_SET = frozenset(PRIMITIVE_LEAVES)


def is_zeroable(t: TypeExpr, params: frozenset[str], known: frozenset[str]) -> bool:
    """Check whether a field type can be shown to implement `FromZeros`.

    params are the type parameters of the definition being derived; they are
    satisfied by the bound added to them. known are user types that implement
    the capability themselves.
    """
    kind = t.kind
    if kind is TypeExprKind.PATH:
        name = str(t.name)
        if not t.args and (name in PRIMITIVE_LEAF_SET or name in params):
            return True
        return name in known
    if kind is TypeExprKind.TUPLE:
        # Only the unit type; tuples have no implementation in the runtime
        return not t.args
    if kind is TypeExprKind.ARRAY:
        return is_zeroable(t.args[0], params, known)
    if kind is TypeExprKind.SLICE:
        return True
    if kind is TypeExprKind.POINTER:
        pointee = t.args[0]
        # The pointer implementations require a sized pointee
        return pointee.kind is not TypeExprKind.SLICE and is_zeroable(pointee, params, known)
    # References must not be null and `!` has no values
    return False
