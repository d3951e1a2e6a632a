import pytest

from oas_normalizer.config import NormalizerConfig
from oas_normalizer.errors import CycleLimitExceeded
from oas_normalizer.model.schema import ObjectSchema, Primitive, Reference
from oas_normalizer.parser.document import dump_document, parse_document
from oas_normalizer.parser.schema import parse_schema
from oas_normalizer.transform.walker import Walker


def _doc(paths=None, schemas=None) -> dict:
    raw = {"openapi": "3.0.3", "paths": paths or {}}
    if schemas:
        raw["components"] = {"schemas": schemas}
    return raw


def _walk(raw: dict, config=None):
    walker = Walker(config)
    return walker, dump_document(walker.normalize(parse_document(raw)))


class TestOperationIdentifiers:
    def test_synthesizes_missing_id(self):
        _, out = _walk(_doc({"/accounts/{account_id}/zones": {"get": {}}}))
        assert out["paths"]["/accounts/{account_id}/zones"]["get"]["operationId"] == "get_accounts_account_id_zones"

    def test_collision_gets_suffix(self):
        walker, out = _walk(_doc({"/zones": {"get": {}}, "/zones/": {"get": {}}}))
        assert out["paths"]["/zones"]["get"]["operationId"] == "get_zones"
        assert out["paths"]["/zones/"]["get"]["operationId"] == "get_zones_2"
        assert walker.report.synthesized_ids == 2

    def test_existing_ids_are_kept_and_avoided(self):
        _, out = _walk(
            _doc(
                {
                    "/zones": {"get": {}},
                    "/other": {"get": {"operationId": "get_zones"}},
                }
            )
        )
        assert out["paths"]["/other"]["get"]["operationId"] == "get_zones"
        assert out["paths"]["/zones"]["get"]["operationId"] == "get_zones_2"

    def test_duplicate_existing_id_is_suffixed(self):
        walker, out = _walk(
            _doc(
                {
                    "/a": {"get": {"operationId": "listZones"}},
                    "/b": {"get": {"operationId": "listZones"}},
                }
            )
        )
        assert out["paths"]["/a"]["get"]["operationId"] == "listZones"
        assert out["paths"]["/b"]["get"]["operationId"] == "listZones_2"
        assert walker.report.renamed_ids == 1

    def test_empty_id_is_replaced(self):
        _, out = _walk(_doc({"/zones": {"post": {"operationId": ""}}}))
        assert out["paths"]["/zones"]["post"]["operationId"] == "post_zones"


class TestSchemaTraversal:
    def test_nested_rewrites_bottom_up(self):
        schema = {
            "type": "object",
            "properties": {
                "items": {
                    "type": "array",
                    "items": {
                        "allOf": [
                            {"type": "object", "properties": {"kind": {"oneOf": [{"type": "string"}, {"type": "integer"}]}}},
                            {"type": "object", "properties": {"state": {"type": "string", "enum": ["on"], "maxLength": 2}}},
                        ]
                    },
                }
            },
        }
        _, out = _walk(_doc(schemas={"Thing": schema}))
        item = out["components"]["schemas"]["Thing"]["properties"]["items"]["items"]
        assert item == {
            "type": "object",
            "properties": {
                "kind": {"type": "string"},
                "state": {"type": "string", "enum": ["on"]},
            },
        }

    def test_composite_containing_union_member(self):
        schema = {
            "allOf": [
                {"oneOf": [{"type": "object", "properties": {"a": {"type": "string"}}}, {"type": "string"}]},
                {"type": "object", "properties": {"b": {"type": "integer"}}},
            ]
        }
        _, out = _walk(_doc(schemas={"Mixed": schema}))
        assert out["components"]["schemas"]["Mixed"] == {
            "type": "object",
            "properties": {"a": {"type": "string"}, "b": {"type": "integer"}},
        }

    def test_reference_merged_through_component(self):
        schemas = {
            "common": {"type": "object", "required": ["success"], "properties": {"success": {"type": "boolean"}}},
            "alias": {"$ref": "#/components/schemas/common"},
            "response": {"allOf": [{"$ref": "#/components/schemas/alias"}, {"properties": {"result": {"type": "string"}}}]},
        }
        _, out = _walk(_doc(schemas=schemas))
        response = out["components"]["schemas"]["response"]
        assert list(response["properties"]) == ["success", "result"]
        assert response["required"] == ["success"]
        # plain references elsewhere stay references
        assert out["components"]["schemas"]["alias"] == {"$ref": "#/components/schemas/common"}

    def test_component_referenced_from_path_is_normalized_once(self):
        raw = _doc(
            paths={
                "/a": {
                    "get": {
                        "responses": {
                            "200": {
                                "description": "ok",
                                "content": {"application/json": {"schema": {"allOf": [{"$ref": "#/components/schemas/Base"}]}}},
                            }
                        }
                    }
                }
            },
            schemas={"Base": {"allOf": [{"type": "object", "properties": {"x": {"type": "string"}}}]}},
        )
        walker, out = _walk(raw)
        schema = out["paths"]["/a"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema == {"type": "object", "properties": {"x": {"type": "string"}}}
        assert walker.report.merged_composites == 2

    def test_parameters_headers_and_bodies_are_visited(self):
        union = {"anyOf": [{"type": "integer"}, {"type": "string"}]}
        raw = _doc(
            {
                "/a": {
                    "parameters": [{"name": "p", "in": "query", "schema": union}],
                    "post": {
                        "parameters": [{"name": "q", "in": "query", "content": {"application/json": {"schema": union}}}],
                        "requestBody": {"content": {"application/json": {"schema": union}}},
                        "responses": {"200": {"description": "ok", "headers": {"X-N": {"schema": union}}}},
                    },
                }
            }
        )
        _, out = _walk(raw)
        item = out["paths"]["/a"]
        post = item["post"]
        assert item["parameters"][0]["schema"] == {"type": "integer"}
        assert post["parameters"][0]["content"]["application/json"]["schema"] == {"type": "integer"}
        assert post["requestBody"]["content"]["application/json"]["schema"] == {"type": "integer"}
        assert post["responses"]["200"]["headers"]["X-N"]["schema"] == {"type": "integer"}

    def test_component_sections_are_visited(self):
        raw = _doc()
        raw["components"] = {
            "parameters": {"limit": {"name": "limit", "in": "query", "schema": {"oneOf": [{"type": "integer"}]}}},
            "requestBodies": {"body": {"content": {"application/json": {"schema": {"oneOf": [{"type": "string"}]}}}}},
            "responses": {"err": {"description": "e", "content": {"application/json": {"schema": {"anyOf": []}}}}},
            "headers": {"X-Id": {"schema": {"type": "string", "enum": ["a"], "pattern": "a"}}},
        }
        _, out = _walk(raw)
        components = out["components"]
        assert components["parameters"]["limit"]["schema"] == {"type": "integer"}
        assert components["requestBodies"]["body"]["content"]["application/json"]["schema"] == {"type": "string"}
        assert components["responses"]["err"]["content"]["application/json"]["schema"] == {}
        assert components["headers"]["X-Id"]["schema"] == {"type": "string", "enum": ["a"]}

    def test_union_siblings_applied_to_first_alternative(self):
        schemas = {"Status": {"type": "string", "oneOf": [{"enum": ["a", "b"]}, {"format": "uuid"}]}}
        _, out = _walk(_doc(schemas=schemas))
        status = out["components"]["schemas"]["Status"]
        assert status.get("enum") == ["a", "b"]
        assert status == {"type": "string", "enum": ["a", "b"]}

    def test_union_sibling_type_kept_on_enum(self):
        schemas = {"Level": {"type": "integer", "anyOf": [{"enum": [1, 2]}, {"minimum": 3}], "description": "L"}}
        _, out = _walk(_doc(schemas=schemas))
        assert out["components"]["schemas"]["Level"] == {"type": "integer", "enum": [1, 2], "description": "L"}

    def test_union_siblings_merged_with_reference(self):
        schemas = {
            "Base": {"type": "object", "properties": {"id": {"type": "string"}}},
            "Item": {
                "type": "object",
                "properties": {"name": {"type": "string"}},
                "oneOf": [{"$ref": "#/components/schemas/Base"}, {"required": ["name"]}],
            },
        }
        _, out = _walk(_doc(schemas=schemas))
        assert out["components"]["schemas"]["Item"] == {
            "type": "object",
            "properties": {"id": {"type": "string"}, "name": {"type": "string"}},
        }

    def test_annotation_next_to_reference_kept(self):
        schemas = {
            "Base": {"type": "object", "properties": {"id": {"type": "string"}}},
            "Child": {"allOf": [{"$ref": "#/components/schemas/Base"}, {"description": "x"}]},
        }
        _, out = _walk(_doc(schemas=schemas))
        assert out["components"]["schemas"]["Child"] == {
            "type": "object",
            "properties": {"id": {"type": "string"}},
            "description": "x",
        }


class TestCycles:
    def test_self_referencing_composite_terminates(self):
        schemas = {
            "Node": {
                "allOf": [
                    {"$ref": "#/components/schemas/Node"},
                    {"type": "object", "properties": {"next": {"$ref": "#/components/schemas/Node"}}},
                ]
            }
        }
        walker, out = _walk(_doc(schemas=schemas))
        assert out["components"]["schemas"]["Node"] == {
            "type": "object",
            "properties": {"next": {"$ref": "#/components/schemas/Node"}},
        }
        assert walker.report.unresolved_refs == ["#/components/schemas/Node -> #/components/schemas/Node"]

    def test_mutual_composites_terminate(self):
        schemas = {
            "A": {"allOf": [{"$ref": "#/components/schemas/B"}, {"properties": {"a": {"type": "string"}}}]},
            "B": {"allOf": [{"$ref": "#/components/schemas/A"}, {"properties": {"b": {"type": "string"}}}]},
        }
        _, out = _walk(_doc(schemas=schemas))
        assert out["components"]["schemas"]["A"]["properties"] == {"b": {"type": "string"}, "a": {"type": "string"}}
        assert out["components"]["schemas"]["B"]["properties"] == {"b": {"type": "string"}}

    def test_alias_loop_is_unresolved(self):
        schemas = {
            "A": {"$ref": "#/components/schemas/B"},
            "B": {"$ref": "#/components/schemas/A"},
            "C": {"allOf": [{"$ref": "#/components/schemas/A"}]},
        }
        _, out = _walk(_doc(schemas=schemas))
        assert out["components"]["schemas"]["C"] == {"$ref": "#/components/schemas/A"}

    def test_depth_limit(self):
        schema = {"type": "string"}
        for _ in range(10):
            schema = {"type": "array", "items": schema}
        with pytest.raises(CycleLimitExceeded) as exc:
            _walk(_doc(schemas={"Deep": schema}), NormalizerConfig(max_depth=5))
        assert exc.value.location.startswith("#/components/schemas/Deep/items")

    def test_visit_single_node(self):
        walker = Walker()
        node = walker.visit(parse_schema({"oneOf": [{"$ref": "#/components/schemas/x"}]}), "#")
        assert node == Reference(ref="#/components/schemas/x")

    def test_visit_object_additional_properties(self):
        walker = Walker()
        node = walker.visit(
            parse_schema({"type": "object", "additionalProperties": {"anyOf": [{"type": "string"}]}}), "#"
        )
        assert isinstance(node, ObjectSchema)
        assert node.additional_properties == Primitive(primitive_type="string")
