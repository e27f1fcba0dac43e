"""Tests for the examples module."""

from oasbridge.diagnostics import DiagnosticAccumulator, DiagnosticCode, Location
from oasbridge.examples import (
    ContractExampleMapper,
    NodeExampleMapper,
    RecordFieldExampleMapper,
    RequestExampleMapper,
    annotations_for,
    has_both_example_annotations,
)
from oasbridge.literals import decode_literal
from oasbridge.symbols import Annotation, AnnotationType, Symbol, SymbolKind, TypeDescriptor


def _example(value):
    return Annotation(AnnotationType("openapi", "Example"), {"value": value})


def _examples(value):
    return Annotation(AnnotationType("openapi", "Examples"), {"value": value})


def _payload_symbol(*annotations):
    return Symbol(
        "pet", SymbolKind.PARAMETER, TypeDescriptor("Pet"),
        (Annotation(AnnotationType("http", "Payload")), *annotations),
        location=Location("api.py", 4, 9),
    )


class TestNodeExampleMapper:
    """Test example and examples on a single contract node."""

    def test_example(self):
        node = {"type": "integer"}
        diagnostics = DiagnosticAccumulator()
        NodeExampleMapper("query parameter", "limit", (_example("10"),), node, diagnostics).apply()
        assert node["example"] == 10
        assert "examples" not in node
        assert len(diagnostics) == 0

    def test_named_examples(self):
        node = {}
        diagnostics = DiagnosticAccumulator()
        mapper = NodeExampleMapper("type", "Pet", (_examples("{'a': {'value': 1, 'summary': 'one'}}"),), node, diagnostics)
        mapper.apply()
        assert node["examples"] == {"a": {"value": 1, "summary": "one"}}

    def test_both_annotations_disable_target(self):
        """A target with both annotations gets exactly one diagnostic and no examples."""
        node = {}
        diagnostics = DiagnosticAccumulator()
        mapper = NodeExampleMapper("type", "Pet", (_example("1"), _examples("{}")), node, diagnostics)
        mapper.apply()
        mapper.set_example()
        mapper.set_examples()
        assert node == {}
        assert diagnostics.codes() == [DiagnosticCode.CONFLICTING_EXAMPLE_ANNOTATIONS]

    def test_malformed_literal(self):
        node = {}
        diagnostics = DiagnosticAccumulator()
        NodeExampleMapper("field", "Pet.tags", (_example("{1, 2}"),), node, diagnostics).apply()
        assert node == {}
        (diagnostic,) = diagnostics
        assert diagnostic.code is DiagnosticCode.MALFORMED_EXAMPLE_LITERAL
        assert "Pet.tags" in diagnostic.message

    def test_missing_value_field(self):
        node = {}
        diagnostics = DiagnosticAccumulator()
        annotation = Annotation(AnnotationType("openapi", "Example"))
        NodeExampleMapper("type", "Pet", (annotation,), node, diagnostics).apply()
        assert diagnostics.codes() == [DiagnosticCode.MALFORMED_EXAMPLE_LITERAL]

    def test_named_examples_must_be_objects(self):
        node = {}
        diagnostics = DiagnosticAccumulator()
        NodeExampleMapper("type", "Pet", (_examples("{'a': 1}"),), node, diagnostics).apply()
        assert node == {}
        assert diagnostics.codes() == [DiagnosticCode.MALFORMED_EXAMPLE_LITERAL]

    def test_no_annotations(self):
        node = {}
        diagnostics = DiagnosticAccumulator()
        NodeExampleMapper("type", "Pet", (), node, diagnostics).apply()
        assert node == {}
        assert len(diagnostics) == 0

    def test_has_both(self):
        assert has_both_example_annotations((_example("1"), _examples("{}")))
        assert not has_both_example_annotations((_example("1"),))


class TestRequestExampleMapper:
    """Request bodies take examples only with exactly one media type."""

    def test_single_media_type(self):
        body = {"content": {"application/json": {"schema": {}}}}
        diagnostics = DiagnosticAccumulator()
        RequestExampleMapper(_payload_symbol(_example("{'name': 'Rex'}")), body, diagnostics).apply()
        assert body["content"]["application/json"]["example"] == {"name": "Rex"}
        assert len(diagnostics) == 0

    def test_two_media_types(self):
        body = {"content": {"application/json": {}, "application/xml": {}}}
        diagnostics = DiagnosticAccumulator()
        RequestExampleMapper(_payload_symbol(_example("1")), body, diagnostics).apply()
        assert all("example" not in media for media in body["content"].values())
        (diagnostic,) = diagnostics
        assert diagnostic.code is DiagnosticCode.INVALID_MEDIA_TYPE_COUNT
        assert diagnostic.location == Location("api.py", 4, 9)

    def test_zero_media_types(self):
        diagnostics = DiagnosticAccumulator()
        RequestExampleMapper(_payload_symbol(_examples("{'a': {'value': 1}}")), {"content": {}}, diagnostics).apply()
        assert diagnostics.codes() == [DiagnosticCode.INVALID_MEDIA_TYPE_COUNT]

    def test_no_content(self):
        diagnostics = DiagnosticAccumulator()
        RequestExampleMapper(_payload_symbol(_example("1")), {}, diagnostics).apply()
        assert len(diagnostics) == 0

    def test_no_annotations_no_diagnostic(self):
        body = {"content": {"application/json": {}, "application/xml": {}}}
        diagnostics = DiagnosticAccumulator()
        RequestExampleMapper(_payload_symbol(), body, diagnostics).apply()
        assert len(diagnostics) == 0


class TestRecordFieldExampleMapper:
    def test_fields(self):
        schema = {"properties": {"name": {"type": "string"}, "age": {"type": "integer"}}}
        symbol = Symbol("Pet", SymbolKind.TYPE, fields={
            "name": Symbol("name", SymbolKind.FIELD, annotations=(_example("'Rex'"),)),
            "age": Symbol("age", SymbolKind.FIELD, annotations=(_examples("{'young': {'value': 1}}"),)),
            "extra": Symbol("extra", SymbolKind.FIELD, annotations=(_example("1"),)),
        })
        diagnostics = DiagnosticAccumulator()
        RecordFieldExampleMapper("Pet", symbol, schema, diagnostics).apply()
        assert schema["properties"]["name"]["example"] == "Rex"
        assert schema["properties"]["age"]["examples"] == {"young": {"value": 1}}
        assert "extra" not in schema["properties"]
        assert len(diagnostics) == 0


class TestContractExampleMapper:
    """Test a whole contract against the petstore symbol manifest."""

    def test_set_examples(self, petstore, symbols):
        diagnostics = DiagnosticAccumulator()
        ContractExampleMapper(petstore, symbols, diagnostics).set_examples()
        schemas = petstore["components"]["schemas"]
        paths = petstore["paths"]

        assert "example" not in schemas["Pet"]
        assert schemas["NewPet"]["example"] == {"name": "Rex", "tag": None}
        assert schemas["NewPet"]["properties"]["name"]["examples"] == {"short": {"value": "Rex"}}
        assert "example" not in schemas["NewPet"]["properties"]["tag"]

        limit = paths["/pets"]["get"]["parameters"][0]
        assert limit["example"] == 10
        body = paths["/pets"]["post"]["requestBody"]["content"]["application/json"]
        assert body["example"] == {"name": "Rex"}
        assert paths["/pets/{petId}"]["parameters"][0]["example"] == 42
        assert paths["/pets/{petId}"]["get"]["parameters"][0]["example"] == "abc-123"

        assert diagnostics.codes() == [
            DiagnosticCode.CONFLICTING_EXAMPLE_ANNOTATIONS,
            DiagnosticCode.MALFORMED_EXAMPLE_LITERAL,
        ]

    def test_non_data_parameter_ignored(self, petstore, symbols):
        ContractExampleMapper(petstore, symbols, DiagnosticAccumulator()).set_examples()
        for param in petstore["paths"]["/pets"]["get"]["parameters"]:
            assert param.get("example") != "ignored"

    def test_type_extension(self, symbols):
        """x-python-type names the source type of a renamed component."""
        document = {"components": {"schemas": {"pet_v2": {"type": "object", "x-python-type": "NewPet"}}}}
        ContractExampleMapper(document, symbols, DiagnosticAccumulator()).set_examples()
        assert document["components"]["schemas"]["pet_v2"]["example"] == {"name": "Rex", "tag": None}


class TestAnnotationsFor:
    """Contract examples back into source annotations."""

    def test_example(self):
        (annotation,) = annotations_for({"example": {"name": "Rex"}}, "Pet", DiagnosticAccumulator())
        assert annotation.type.qualified_name == "openapi.Example"
        assert decode_literal(annotation.fields["value"]) == {"name": "Rex"}

    def test_null_example(self):
        (annotation,) = annotations_for({"example": None}, "Pet", DiagnosticAccumulator())
        assert annotation.fields["value"] == "None"

    def test_examples(self):
        (annotation,) = annotations_for({"examples": {"a": {"value": 1}}}, "Pet", DiagnosticAccumulator())
        assert annotation.type.name == "Examples"

    def test_both(self):
        diagnostics = DiagnosticAccumulator()
        assert annotations_for({"example": 1, "examples": {}}, "Pet", diagnostics) == ()
        assert diagnostics.codes() == [DiagnosticCode.CONFLICTING_EXAMPLE_ANNOTATIONS]

    def test_none(self):
        assert annotations_for({"type": "string"}, "Pet", DiagnosticAccumulator()) == ()

    def test_round_trip_through_mapper(self):
        """An example read from a contract and written back is unchanged."""
        annotations = annotations_for({"example": [1, "two", None]}, "Tags", DiagnosticAccumulator())
        node = {}
        NodeExampleMapper("type", "Tags", annotations, node, DiagnosticAccumulator()).apply()
        assert node == {"example": [1, "two", None]}
