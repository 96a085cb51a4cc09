"""Tests for the type definition parser."""

import pytest

from fromzeros.generator import parse, parse_json
from fromzeros.generator.errors import ParseError, UnsupportedKind
from fromzeros.generator.types import FieldShape, GenericKind, TypeExprKind, TypeKind


def describe_parse_struct():
    def parses_named_struct(expect):
        (point,) = parse(
            """
            pub struct Point {
                pub x: i32,
                y: i32,
            }
        """
        )
        expect(point.name) == "Point"
        expect(point.kind) == TypeKind.STRUCT
        expect(point.fields.shape) == FieldShape.NAMED
        expect([f.name for f in point.fields.fields]) == ["x", "y"]
        expect(str(point.fields.fields[0].type)) == "i32"

    def parses_tuple_struct(expect):
        (pair,) = parse("struct Pair(pub u8, u16);")
        expect(pair.fields.shape) == FieldShape.UNNAMED
        expect(len(pair.fields.fields)) == 2
        expect(pair.fields.fields[0].name) == None
        expect(str(pair.fields.fields[1].type)) == "u16"

    def parses_unit_struct(expect):
        (marker,) = parse("struct Marker;")
        expect(marker.fields.shape) == FieldShape.UNIT
        expect(marker.fields.fields) == []

    def parses_empty_braces_as_named(expect):
        (empty,) = parse("struct Empty {}")
        expect(empty.fields.shape) == FieldShape.NAMED
        expect(empty.fields.fields) == []

    def parses_multiple_items(expect):
        items = parse(
            """
            struct A { a: u8 }
            union B { b: u8 }
            enum C { X }
        """
        )
        expect([item.name for item in items]) == ["A", "B", "C"]
        expect([item.kind for item in items]) == [TypeKind.STRUCT, TypeKind.UNION, TypeKind.ENUM]


def describe_parse_types():
    def _field_type(text):
        (item,) = parse(f"struct S {{ f: {text} }}")
        return item.fields.fields[0].type

    def parses_arrays_and_slices(expect):
        array = _field_type("[u8; 16]")
        expect(array.kind) == TypeExprKind.ARRAY
        expect(array.length) == "16"
        expect(array.args[0].name) == "u8"
        expect(_field_type("[[u16; 2]; N]").args[0].kind) == TypeExprKind.ARRAY
        expect(_field_type("[u8]").kind) == TypeExprKind.SLICE

    def parses_pointers_and_references(expect):
        const_ptr = _field_type("*const u8")
        mut_ptr = _field_type("*mut Node")
        reference = _field_type("&'a mut u8")
        expect(const_ptr.kind) == TypeExprKind.POINTER
        expect(const_ptr.mutable) == False
        expect(mut_ptr.mutable) == True
        expect(reference.kind) == TypeExprKind.REFERENCE
        expect(reference.lifetime) == "'a"
        expect(reference.mutable) == True

    def parses_tuples(expect):
        expect(_field_type("()").args) == []
        expect(len(_field_type("(u8, u16)").args)) == 2
        expect(_field_type("(u8)").kind) == TypeExprKind.PATH

    def parses_paths_with_generic_arguments(expect):
        t = _field_type("core::cell::Cell<Option<T>>")
        expect(t.name) == "core::cell::Cell"
        expect(str(t)) == "core::cell::Cell<Option<T>>"
        expect(str(_field_type("Wrapper<'a, T, 4, Item = u8>"))) == "Wrapper<'a, T, 4, Item = u8>"
        expect(str(_field_type("::std::num::Wrapping<u8>"))) == "::std::num::Wrapping<u8>"

    def renders_types_back_to_source(expect):
        for text in ["[*const T; 3]", "&'a [u8]", "(u8, (), !)", "*mut [u8]"]:
            expect(str(_field_type(text))) == text


def describe_parse_generics():
    def parses_all_parameter_kinds(expect):
        (item,) = parse(
            """
            struct Buffer<'a, T: Copy + 'a, U = u8, const N: usize = 4> where T: Default {
                data: [T; N],
                extra: *const U,
                marker: *const &'a (),
            }
        """
        )
        kinds = [param.kind for param in item.generics]
        expect(kinds) == [GenericKind.LIFETIME, GenericKind.TYPE, GenericKind.TYPE, GenericKind.CONST]
        expect(item.generics[1].bounds) == ["Copy", "'a"]
        expect(item.generics[2].default) == "u8"
        expect(item.generics[3].const_type) == "usize"
        expect(item.generics[3].default) == "4"
        expect(item.where_clause) == ["T: Default"]

    def parses_where_clause_on_tuple_struct(expect):
        (item,) = parse("struct Wrap<T>(T) where T: ?Sized + Clone;")
        expect(item.fields.shape) == FieldShape.UNNAMED
        expect(item.where_clause) == ["T: ?Sized + Clone"]


def describe_parse_enum():
    def parses_variants_and_discriminants(expect):
        (item,) = parse(
            """
            #[repr(u8)]
            enum Op {
                Nop,
                Load(u8) = 0x10,
                Store { addr: u16 } = 2,
                Jump = -1, // backwards
            }
        """
        )
        expect([v.name for v in item.variants]) == ["Nop", "Load", "Store", "Jump"]
        expect([v.discriminant for v in item.variants]) == [None, "0x10", "2", "-1"]
        expect(item.variants[0].fields.shape) == FieldShape.UNIT
        expect(item.variants[1].fields.shape) == FieldShape.UNNAMED
        expect(item.variants[2].fields.shape) == FieldShape.NAMED

    def strips_comments_from_last_discriminant(expect):
        (item,) = parse(
            """
            enum E {
                A = 1,
                B = 0 // zero
            }
        """
        )
        expect(item.variants[1].discriminant) == "0"

    def parses_discriminants_with_nested_commas(expect):
        (item,) = parse("#[repr(u8)] enum E { A = f(1, 2), B = { 1 }, C = [0, 1][(0)], D = 0 }")
        expect([v.name for v in item.variants]) == ["A", "B", "C", "D"]
        expect([v.discriminant for v in item.variants]) == ["f(1, 2)", "{ 1 }", "[0, 1][(0)]", "0"]

    def parses_empty_enum(expect):
        (item,) = parse("enum Never {}")
        expect(item.variants) == []


def describe_parse_attributes():
    def parses_list_and_value_attributes(expect):
        (item,) = parse(
            """
            #[derive(FromZeros, Debug)]
            #[repr(C, align(4))]
            #[doc = "A documented type"]
            struct S;
        """
        )
        expect([a.name for a in item.attributes]) == ["derive", "repr", "doc"]
        expect(item.attributes[0].args) == ["FromZeros", "Debug"]
        expect(item.attributes[1].args) == ["C", "align(4)"]
        expect(item.attributes[2].value) == '"A documented type"'

    def keeps_field_attributes(expect):
        (item,) = parse("struct S { #[serde(skip)] a: u8 }")
        expect(item.fields.fields[0].attributes[0].name) == "serde"


def describe_positions():
    def records_type_and_field_positions(expect):
        (item,) = parse("struct Point {\n    x: i32,\n    y: i32,\n}\n", source="point.rs")
        expect(item.source) == "point.rs"
        expect((item.span.line, item.span.column)) == (1, 8)
        expect((item.fields.fields[1].span.line, item.fields.fields[1].span.column)) == (3, 5)

    def records_variant_positions(expect):
        (item,) = parse("enum E {\n  A,\n  B,\n}")
        expect(item.variants[1].span.line) == 3


def describe_parse_errors():
    def rejects_invalid_syntax(expect):
        with pytest.raises(ParseError) as e:
            parse("struct Broken { a: }", source="broken.rs")
        expect(e.value.source) == "broken.rs"
        expect(e.value.span.line) == 1

    def rejects_unsupported_items(expect):
        with pytest.raises(ParseError):
            parse("trait Foo {}")

    def rejects_duplicate_types(expect):
        with pytest.raises(ParseError) as e:
            parse("struct A; struct A;")
        expect("more than once" in str(e.value)) == True

    def rejects_duplicate_fields(expect):
        with pytest.raises(ParseError):
            parse("struct A { a: u8, a: u16 }")

    def rejects_duplicate_variants(expect):
        with pytest.raises(ParseError):
            parse("enum E { A, A }")


def describe_parse_json():
    def loads_descriptor_list(expect):
        (item,) = parse_json(
            """
            [{
                "name": "Pair",
                "kind": "struct",
                "generics": [{"kind": "type", "name": "T"}],
                "fields": {
                    "shape": "unnamed",
                    "fields": [
                        {"type": {"kind": "path", "name": "T"}},
                        {"type": {"kind": "pointer", "args": [{"kind": "path", "name": "u8"}]}}
                    ]
                }
            }]
            """,
            source="pair.json",
        )
        expect(item.kind) == TypeKind.STRUCT
        expect(item.source) == "pair.json"
        expect(item.generics[0].kind) == GenericKind.TYPE
        expect(item.fields.fields[1].type.kind) == TypeExprKind.POINTER
        expect(str(item.fields.fields[1].type)) == "*const u8"

    def loads_types_object(expect):
        items = parse_json('{"types": [{"name": "E", "kind": "enum", "variants": [{"name": "A"}]}]}')
        expect(items[0].variants[0].fields.shape) == FieldShape.UNIT

    def round_trips_parsed_descriptors(expect):
        items = parse("#[repr(u8)] enum E<T> { A(T) = 0, B { b: [u8; 2] } }")
        expect(parse_json(f"[{items[0].to_json()}]")) == items

    def rejects_unsupported_kind(expect):
        with pytest.raises(UnsupportedKind) as e:
            parse_json('[{"name": "Alias", "kind": "typedef"}]')
        expect(e.value.type_name) == "Alias"

    def rejects_malformed_json(expect):
        with pytest.raises(ParseError):
            parse_json("[{")

    def rejects_struct_without_fields(expect):
        with pytest.raises(ParseError):
            parse_json('[{"name": "S", "kind": "struct"}]')

    def rejects_named_list_with_unnamed_field(expect):
        with pytest.raises(ParseError):
            parse_json(
                '[{"name": "S", "kind": "struct", "fields": '
                '{"shape": "named", "fields": [{"type": {"kind": "path", "name": "u8"}}]}}]'
            )

    def rejects_array_without_element_type(expect):
        with pytest.raises(ParseError) as e:
            parse_json(
                '[{"name": "S", "kind": "struct", "fields": '
                '{"shape": "named", "fields": [{"name": "a", "type": {"kind": "array"}}]}}]'
            )
        expect(e.value.type_name) == "S"
        expect("field `a`" in str(e.value)) == True

    def rejects_incomplete_nested_types(expect):
        pointee = '{"kind": "pointer", "args": [{"kind": "slice", "args": []}]}'
        with pytest.raises(ParseError):
            parse_json(
                '[{"name": "S", "kind": "struct", "fields": '
                f'{{"shape": "unnamed", "fields": [{{"type": {pointee}}}]}}}}]'
            )
        with pytest.raises(ParseError):
            parse_json(
                '[{"name": "S", "kind": "struct", "fields": {"shape": "unnamed", "fields": '
                '[{"type": {"kind": "array", "args": [{"kind": "path", "name": "u8"}]}}]}}]'
            )
