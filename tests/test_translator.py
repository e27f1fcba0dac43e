"""Tests for the translator module."""

from oasbridge.diagnostics import DiagnosticAccumulator, DiagnosticCode
from oasbridge.registry import TypeRegistry
from oasbridge.structural import (
    BOOL,
    BYTES,
    DOUBLE,
    FLOAT,
    INT32,
    INT32_MAX,
    INT32_MIN,
    INT64,
    NIL,
    STRING,
    ArrayType,
    MapType,
    Primitive,
    Record,
    Reference,
    UnionType,
    Unknown,
    is_nilable,
)
from oasbridge.schema import parse_schema
from oasbridge.translator import SchemaTranslator, describe, strip_html, translate_schema

from conftest import contract


def _translator(schemas=None):
    diagnostics = DiagnosticAccumulator()
    registry = TypeRegistry(diagnostics)
    return SchemaTranslator(contract(schemas), registry, diagnostics)


class TestPrimitives:
    """Test primitive kinds and formats."""

    def test_string(self):
        assert translate_schema({"type": "string"}, _translator()) == Primitive(STRING)

    def test_byte_and_binary(self):
        t = _translator()
        assert translate_schema({"type": "string", "format": "byte"}, t).name == BYTES
        assert translate_schema({"type": "string", "format": "binary"}, t).name == BYTES

    def test_unknown_string_format(self):
        assert translate_schema({"type": "string", "format": "uuid"}, _translator()).name == STRING

    def test_int32_range(self):
        """int32 carries its value range."""
        result = translate_schema({"type": "integer", "format": "int32"}, _translator())
        assert result.name == INT32
        assert (result.minimum, result.maximum) == (INT32_MIN, INT32_MAX)

    def test_integer_default(self):
        result = translate_schema({"type": "integer"}, _translator())
        assert result.name == INT64
        assert result.minimum is None

    def test_number_formats(self):
        t = _translator()
        assert translate_schema({"type": "number"}, t).name == DOUBLE
        assert translate_schema({"type": "number", "format": "float"}, t).name == FLOAT

    def test_boolean(self):
        assert translate_schema({"type": "boolean"}, _translator()).name == BOOL

    def test_enum(self):
        result = translate_schema({"type": "string", "enum": ["a", "b"]}, _translator())
        assert result.enum == ("a", "b")

    def test_nullable(self):
        result = translate_schema({"type": "string", "nullable": True}, _translator())
        assert result == UnionType((Primitive(STRING), Primitive(NIL)))


class TestContainers:
    def test_array(self):
        result = translate_schema({"type": "array", "items": {"type": "boolean"}}, _translator())
        assert result == ArrayType(Primitive(BOOL))

    def test_untyped_array(self):
        result = translate_schema({"type": "array"}, _translator())
        assert isinstance(result.element, Unknown)

    def test_map(self):
        result = translate_schema({"type": "object", "additionalProperties": {"type": "integer"}}, _translator())
        assert result == MapType(Primitive(INT64))

    def test_free_form_object(self):
        result = translate_schema({"type": "object"}, _translator())
        assert isinstance(result, MapType)
        assert isinstance(result.value, Unknown)

    def test_anonymous_record(self):
        """Inline objects without a naming context stay anonymous."""
        result = translate_schema({"type": "object", "properties": {"a": {"type": "string"}}}, _translator())
        assert isinstance(result, Record)
        assert result.name is None

    def test_inline_record_hoisted(self):
        """Inline objects with a context become uniquely named records."""
        t = _translator()
        first = translate_schema({"type": "object", "properties": {"a": {"type": "string"}}}, t, "ListPetsResponse")
        second = translate_schema({"type": "object", "properties": {"b": {"type": "string"}}}, t, "ListPetsResponse")
        assert first == Reference("ListPetsResponse")
        assert second == Reference("ListPetsResponse_2")
        assert t.registry.get("ListPetsResponse").field_named("a").type == Primitive(STRING)

    def test_same_inline_schema_hoisted_once(self):
        """Reaching one inline schema twice under the same name reuses the record."""
        t = _translator()
        raw = {"type": "object", "properties": {"a": {"type": "string"}}}
        assert translate_schema(raw, t, "Options") == Reference("Options")
        assert translate_schema(raw, t, "Options") == Reference("Options")
        assert list(t.registry) == ["Options"]

    def test_one_of(self):
        result = translate_schema({"oneOf": [{"type": "string"}, {"type": "integer"}]}, _translator())
        assert result == UnionType((Primitive(STRING), Primitive(INT64)))

    def test_hoisted_name_avoids_components(self):
        """An inline record never takes the name of a component schema."""
        t = _translator({
            "Pet": {"type": "object", "properties": {"owner": {"type": "object", "properties": {"a": {"type": "string"}}}}},
            "PetOwner": {"type": "string"},
        })
        t.translate_components()
        assert t.registry.get("Pet").field_named("owner").type == Reference("PetOwner_2")
        assert t.registry.get("PetOwner") == Primitive(STRING)


class TestReferences:
    """Test $ref resolution through the registry."""

    def test_reference(self):
        t = _translator({"Pet": {"type": "object", "properties": {"name": {"type": "string"}}}})
        assert translate_schema({"$ref": "#/components/schemas/Pet"}, t) == Reference("Pet")
        assert isinstance(t.registry.get("Pet"), Record)

    def test_unresolved(self):
        t = _translator()
        result = translate_schema({"$ref": "#/components/schemas/Missing"}, t)
        assert isinstance(result, Unknown)
        assert t.diagnostics.codes() == [DiagnosticCode.UNRESOLVED_REFERENCE]

    def test_self_reference(self):
        """Self-referencing schemas terminate and refer to themselves."""
        t = _translator({
            "Node": {
                "type": "object",
                "properties": {
                    "children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}},
                },
            },
        })
        t.translate_components()
        node = t.registry.get("Node")
        assert node.field_named("children").type == ArrayType(Reference("Node"))

    def test_mutual_reference(self):
        t = _translator({
            "A": {"type": "object", "properties": {"b": {"$ref": "#/components/schemas/B"}}},
            "B": {"type": "object", "properties": {"a": {"$ref": "#/components/schemas/A"}}},
        })
        t.translate_components()
        assert [name for name, _ in t.registry.items()] == ["B", "A"]
        assert t.registry.get("B").field_named("a").type == Reference("A")

    def test_components_translated_once(self):
        t = _translator({
            "A": {"type": "string"},
            "B": {"type": "array", "items": {"$ref": "#/components/schemas/A"}},
        })
        t.translate_components()
        t.translate_components()
        assert len(t.registry) == 2
        assert len(t.diagnostics) == 0


class TestComponents:
    def test_named_record(self, petstore):
        diagnostics = DiagnosticAccumulator()
        t = SchemaTranslator(petstore, TypeRegistry(diagnostics), diagnostics)
        t.translate_components()
        new_pet = t.registry.get("NewPet")
        assert new_pet.name == "NewPet"
        assert new_pet.description == "A pet to add."
        assert new_pet.field_named("name").required
        assert not new_pet.field_named("tag").required
        assert new_pet.field_named("owner").type == Reference("NewPetOwner")

    def test_leaf_first_order(self, petstore):
        diagnostics = DiagnosticAccumulator()
        t = SchemaTranslator(petstore, TypeRegistry(diagnostics), diagnostics)
        t.translate_components()
        assert [name for name, _ in t.registry.items()] == ["NewPetOwner", "NewPet", "Pet", "Category", "Status"]

    def test_all_of_merge(self, petstore):
        """allOf of records merges their fields in member order."""
        diagnostics = DiagnosticAccumulator()
        t = SchemaTranslator(petstore, TypeRegistry(diagnostics), diagnostics)
        t.translate_components()
        pet = t.registry.get("Pet")
        assert [f.name for f in pet.fields] == ["name", "tag", "owner", "id"]
        assert pet.field_named("id").required

    def test_all_of_single_member(self):
        t = _translator({
            "Id": {"allOf": [{"type": "string"}, {"description": "An identifier"}]},
        })
        t.translate_components()
        assert t.registry.get("Id") == UnionType((Primitive(STRING),), "Id")

    def test_all_of_unsupported(self):
        t = _translator({"Mixed": {"allOf": [{"type": "string"}, {"type": "integer"}]}})
        t.translate_components()
        assert isinstance(t.registry.get("Mixed"), Unknown)
        assert t.diagnostics.codes() == [DiagnosticCode.UNSUPPORTED_COMBINATOR]

    def test_all_of_back_reference(self):
        """An allOf member naming a component still being built merges in either order."""
        category = {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "children": {"type": "array", "items": {"$ref": "#/components/schemas/SubCategory"}},
            },
        }
        sub_category = {"allOf": [
            {"$ref": "#/components/schemas/Category"},
            {"type": "object", "properties": {"depth": {"type": "integer"}}},
        ]}
        for schemas in (
            {"Category": category, "SubCategory": sub_category},
            {"SubCategory": sub_category, "Category": category},
        ):
            t = _translator(schemas)
            t.translate_components()
            sub = t.registry.get("SubCategory")
            assert isinstance(sub, Record)
            assert [f.name for f in sub.fields] == ["name", "children", "depth"]
            assert sub.field_named("children").type == ArrayType(Reference("SubCategory"))
            assert t.registry.get("Category").field_named("children").type == ArrayType(Reference("SubCategory"))
            assert len(t.diagnostics) == 0

    def test_nullable_record_reference(self):
        """References to a nullable record component are nilable."""
        t = _translator({
            "Pet": {"type": "object", "nullable": True, "properties": {"name": {"type": "string"}}},
            "Owner": {"type": "object", "properties": {"pet": {"$ref": "#/components/schemas/Pet"}}},
        })
        t.translate_components()
        assert isinstance(t.registry.get("Pet"), Record)
        pet = t.registry.get("Owner").field_named("pet").type
        assert pet == UnionType((Reference("Pet"), Primitive(NIL)))
        assert is_nilable(pet)

    def test_nullable_all_of_reference(self):
        t = _translator({
            "Base": {"type": "object", "properties": {"id": {"type": "integer"}}},
            "Pet": {
                "nullable": True,
                "allOf": [{"$ref": "#/components/schemas/Base"}, {"type": "object", "properties": {"name": {"type": "string"}}}],
            },
        })
        result = translate_schema({"$ref": "#/components/schemas/Pet"}, t)
        assert is_nilable(result)
        assert [f.name for f in t.registry.get("Pet").fields] == ["id", "name"]

    def test_all_of_nullable_member(self):
        """A nullable record member still merges its fields."""
        t = _translator({
            "Base": {"type": "object", "nullable": True, "properties": {"id": {"type": "integer"}}},
            "Pet": {"allOf": [{"$ref": "#/components/schemas/Base"}, {"type": "object", "properties": {"name": {"type": "string"}}}]},
        })
        t.translate_components()
        assert [f.name for f in t.registry.get("Pet").fields] == ["id", "name"]

    def test_named_union(self):
        t = _translator({"Id": {"oneOf": [{"type": "string"}, {"type": "integer"}], "nullable": True}})
        t.translate_components()
        result = t.registry.get("Id")
        assert result.name == "Id"
        assert result.members[-1] == Primitive(NIL)

    def test_unsupported_type(self):
        t = _translator({"Blob": {"type": "file"}})
        t.translate_components()
        assert isinstance(t.registry.get("Blob"), Unknown)
        assert t.diagnostics.codes() == [DiagnosticCode.UNSUPPORTED_SCHEMA]


class TestDescriptions:
    def test_strip_html(self):
        assert strip_html("<p>List  all\n<b>pets</b></p>") == "List all pets"

    def test_enum_values(self):
        node = parse_schema({"type": "string", "enum": ["a", "b"], "description": "State"})
        assert describe(node) == "State (values: a, b)"

    def test_enum_only(self):
        assert describe(parse_schema({"enum": [1, 2]})) == "Values: 1, 2"


class TestFields:
    def test_read_only_and_default(self):
        t = _translator({"Job": {"type": "object", "properties": {
            "id": {"type": "string", "readOnly": True},
            "retries": {"type": "integer", "default": 3, "description": "<b>Retry</b> count"},
        }}})
        t.translate_components()
        job = t.registry.get("Job")
        assert job.field_named("id").read_only
        retries = job.field_named("retries")
        assert retries.default == 3
        assert retries.description == "Retry count"
