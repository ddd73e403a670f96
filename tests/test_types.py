import pydantic as pdt
import pytest

import colbatch.errors as errors
import colbatch.types as types
from colbatch.types import Category


class TestCategory:
    def test_writable_closed_set(self):
        writable = {c for c in Category if c.is_writable}
        assert writable == {
            Category.INT,
            Category.LONG,
            Category.DOUBLE,
            Category.STRING,
            Category.LIST,
            Category.MAP,
            Category.STRUCT,
        }

    def test_values_are_orc_type_names(self):
        assert Category("bigint") is Category.LONG
        assert Category("array") is Category.LIST

    def test_compound_categories(self):
        assert Category.LIST.is_compound
        assert Category.UNION.is_compound
        assert not Category.STRING.is_compound


class TestTypeDescriptor:
    def test_builders(self):
        assert types.long_().category == Category.LONG
        assert types.int_().category == Category.INT
        assert types.double().category == Category.DOUBLE
        assert types.string().category == Category.STRING

    def test_list_element(self):
        t = types.list_of(types.long_())
        assert t.category == Category.LIST
        assert t.element == types.long_()

    def test_map_key_value(self):
        t = types.map_of(types.string(), types.double())
        assert t.key == types.string()
        assert t.value == types.double()

    def test_struct_keeps_field_order(self):
        t = types.struct(b=types.string(), a=types.long_())
        assert t.field_names == ("b", "a")
        assert [name for name, _ in t.fields()] == ["b", "a"]

    def test_struct_of_pairs(self):
        t = types.struct_of([("x", types.long_()), ("y", types.double())])
        assert t.children == (types.long_(), types.double())

    def test_descriptor_is_frozen(self):
        t = types.long_()
        with pytest.raises(pdt.ValidationError):
            t.category = Category.STRING

    def test_descriptors_are_hashable(self):
        assert {types.list_of(types.long_()), types.list_of(types.long_())} == {types.list_of(types.long_())}

    def test_str_renders_orc_type_string(self):
        t = types.struct(
            a=types.string(),
            b=types.list_of(types.long_()),
            c=types.map_of(types.string(), types.double()),
        )
        assert str(t) == "struct<a:string,b:array<bigint>,c:map<string,double>>"

    def test_model_validate_from_names(self):
        t = types.TypeDescriptor.model_validate(
            {"category": "array", "children": [{"category": "int"}]}
        )
        assert t == types.list_of(types.int_())

    def test_unsupported_category_is_representable(self):
        t = types.primitive(Category.TIMESTAMP)
        assert str(t) == "timestamp"
        assert not t.category.is_writable


class TestTypeDescriptorValidation:
    def test_list_needs_one_child(self):
        with pytest.raises(errors.InvalidSchemaError, match="exactly 1 child"):
            types.TypeDescriptor(category=Category.LIST)

    def test_map_needs_two_children(self):
        with pytest.raises(errors.InvalidSchemaError, match="exactly 2 children"):
            types.TypeDescriptor(category=Category.MAP, children=(types.string(),))

    def test_struct_names_match_children(self):
        with pytest.raises(errors.InvalidSchemaError, match="field names"):
            types.TypeDescriptor(category=Category.STRUCT, children=(types.string(),))

    def test_struct_duplicate_names(self):
        with pytest.raises(errors.InvalidSchemaError, match="duplicate"):
            types.struct_of([("a", types.string()), ("a", types.long_())])

    def test_primitive_takes_no_children(self):
        with pytest.raises(errors.InvalidSchemaError, match="no children"):
            types.TypeDescriptor(category=Category.LONG, children=(types.long_(),))

    def test_field_names_only_on_struct(self):
        with pytest.raises(errors.InvalidSchemaError, match="only struct"):
            types.TypeDescriptor(category=Category.LONG, field_names=("a",))
