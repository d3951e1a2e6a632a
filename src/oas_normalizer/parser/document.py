"""OpenAPI 3.x document parser.

Parses a generic JSON-like tree into the Document model and renders it
back. Only schema-bearing positions and operation identifiers are
interpreted; all other keys are carried through unchanged.
"""

from typing import Any

from oas_normalizer.config import DEFAULT_MAX_DEPTH
from oas_normalizer.errors import StructuralError
from oas_normalizer.model.document import (
    HTTP_METHODS,
    Components,
    Document,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
)
from oas_normalizer.parser.schema import child_location, dump_schema, parse_schema

COMPONENT_SECTIONS = {
    "schemas": "schemas",
    "parameters": "parameters",
    "requestBodies": "request_bodies",
    "responses": "responses",
    "headers": "headers",
}


def parse_document(raw: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> Document:
    """Parse a raw OpenAPI document into a Document.

    ``raw`` is read, never modified. Schemas nested deeper than
    ``max_depth`` raise CycleLimitExceeded.
    """
    _expect_dict(raw, "#")
    paths = {}
    raw_paths = raw.get("paths", {})
    _expect_dict(raw_paths, "#/paths")
    for path, item in raw_paths.items():
        paths[path] = _parse_path_item(item, child_location("#/paths", path), max_depth)

    components = _parse_components(raw.get("components", {}), "#/components", max_depth)
    extras = {k: v for k, v in raw.items() if k not in ("paths", "components")}
    return Document(paths=paths, components=components, extras=extras)


def _parse_path_item(raw: Any, location: str, max_depth: int) -> PathItem:
    _expect_dict(raw, location)
    operations = {}
    extras = {}
    parameters = []
    for key, value in raw.items():
        if key.lower() in HTTP_METHODS:
            operations[key.lower()] = _parse_operation(value, child_location(location, key), max_depth)
        elif key == "parameters":
            parameters = _parse_parameters(value, child_location(location, key), max_depth)
        else:
            extras[key] = value
    return PathItem(operations=operations, parameters=parameters, extras=extras)


def _parse_operation(raw: Any, location: str, max_depth: int) -> Operation:
    _expect_dict(raw, location)
    operation_id = raw.get("operationId")
    if operation_id is not None and not isinstance(operation_id, str):
        raise StructuralError("operationId must be a string", location)

    request_body = None
    if "requestBody" in raw:
        request_body = _parse_request_body(raw["requestBody"], child_location(location, "requestBody"), max_depth)

    raw_responses = raw.get("responses", {})
    _expect_dict(raw_responses, child_location(location, "responses"))
    responses = {}
    for status, response in raw_responses.items():
        # YAML loads bare status codes as integers.
        status = str(status)
        responses[status] = _parse_response(response, child_location(location, "responses", status), max_depth)

    return Operation(
        operation_id=operation_id,
        parameters=_parse_parameters(raw.get("parameters", []), child_location(location, "parameters"), max_depth),
        request_body=request_body,
        responses=responses,
        extras={k: v for k, v in raw.items() if k not in ("operationId", "parameters", "requestBody", "responses")},
    )


def _parse_parameters(raw: Any, location: str, max_depth: int) -> list[Parameter]:
    if not isinstance(raw, list):
        raise StructuralError("parameters must be a list", location)
    return [_parse_parameter(p, child_location(location, i), max_depth) for i, p in enumerate(raw)]


def _parse_parameter(raw: Any, location: str, max_depth: int) -> Parameter:
    _expect_dict(raw, location)
    if "$ref" in raw:
        return Parameter(ref=_ref(raw, location), extras=_without(raw, ("$ref",)))
    schema_node = None
    if "schema" in raw:
        schema_node = parse_schema(raw["schema"], child_location(location, "schema"), max_depth=max_depth)
    return Parameter(
        schema_node=schema_node,
        content=_parse_content(raw.get("content", {}), child_location(location, "content"), max_depth),
        extras=_without(raw, ("schema", "content")),
    )


def _parse_request_body(raw: Any, location: str, max_depth: int) -> RequestBody:
    _expect_dict(raw, location)
    if "$ref" in raw:
        return RequestBody(ref=_ref(raw, location), extras=_without(raw, ("$ref",)))
    return RequestBody(
        content=_parse_content(raw.get("content", {}), child_location(location, "content"), max_depth),
        extras=_without(raw, ("content",)),
    )


def _parse_response(raw: Any, location: str, max_depth: int) -> Response:
    _expect_dict(raw, location)
    if "$ref" in raw:
        return Response(ref=_ref(raw, location), extras=_without(raw, ("$ref",)))
    return Response(
        content=_parse_content(raw.get("content", {}), child_location(location, "content"), max_depth),
        headers=_parse_named(raw.get("headers", {}), child_location(location, "headers"), _parse_parameter, max_depth),
        extras=_without(raw, ("content", "headers")),
    )


def _parse_content(raw: Any, location: str, max_depth: int) -> dict[str, MediaType]:
    _expect_dict(raw, location)
    content = {}
    for media_type, media in raw.items():
        media_location = child_location(location, media_type)
        _expect_dict(media, media_location)
        schema_node = None
        if "schema" in media:
            schema_location = child_location(media_location, "schema")
            schema_node = parse_schema(media["schema"], schema_location, max_depth=max_depth)
        content[media_type] = MediaType(schema_node=schema_node, extras=_without(media, ("schema",)))
    return content


def _parse_component_schema(raw: Any, location: str, max_depth: int):
    return parse_schema(raw, location, max_depth=max_depth)


def _parse_components(raw: Any, location: str, max_depth: int) -> Components:
    _expect_dict(raw, location)
    parsers = {
        "schemas": _parse_component_schema,
        "parameters": _parse_parameter,
        "requestBodies": _parse_request_body,
        "responses": _parse_response,
        "headers": _parse_parameter,
    }
    sections = {}
    for key, field in COMPONENT_SECTIONS.items():
        if key in raw:
            sections[field] = _parse_named(raw[key], child_location(location, key), parsers[key], max_depth)
    return Components(**sections, extras=_without(raw, tuple(COMPONENT_SECTIONS)))


def _parse_named(raw: Any, location: str, parse, max_depth: int) -> dict:
    _expect_dict(raw, location)
    return {name: parse(value, child_location(location, name), max_depth) for name, value in raw.items()}


def dump_document(document: Document, max_depth: int = DEFAULT_MAX_DEPTH) -> dict:
    """Render a Document back to a raw OpenAPI object."""
    out = dict(document.extras)
    out["paths"] = {
        path: _dump_path_item(item, child_location("#/paths", path), max_depth)
        for path, item in document.paths.items()
    }
    if not document.components.is_empty():
        out["components"] = _dump_components(document.components, max_depth)
    return out


def _dump_path_item(item: PathItem, location: str, max_depth: int) -> dict:
    out = dict(item.extras)
    if item.parameters:
        out["parameters"] = _dump_parameters(item.parameters, child_location(location, "parameters"), max_depth)
    for method, operation in item.operations.items():
        out[method] = _dump_operation(operation, child_location(location, method), max_depth)
    return out


def _dump_operation(operation: Operation, location: str, max_depth: int) -> dict:
    out = {}
    if operation.operation_id is not None:
        out["operationId"] = operation.operation_id
    out.update(operation.extras)
    if operation.parameters:
        out["parameters"] = _dump_parameters(operation.parameters, child_location(location, "parameters"), max_depth)
    if operation.request_body is not None:
        out["requestBody"] = _dump_request_body(
            operation.request_body, child_location(location, "requestBody"), max_depth
        )
    if operation.responses:
        out["responses"] = {
            code: _dump_response(r, child_location(location, "responses", code), max_depth)
            for code, r in operation.responses.items()
        }
    return out


def _dump_parameters(parameters: list[Parameter], location: str, max_depth: int) -> list[dict]:
    return [_dump_parameter(p, child_location(location, i), max_depth) for i, p in enumerate(parameters)]


def _dump_parameter(parameter: Parameter, location: str, max_depth: int) -> dict:
    if parameter.ref is not None:
        return {"$ref": parameter.ref, **parameter.extras}
    out = dict(parameter.extras)
    if parameter.schema_node is not None:
        out["schema"] = dump_schema(parameter.schema_node, child_location(location, "schema"), max_depth=max_depth)
    if parameter.content:
        out["content"] = _dump_content(parameter.content, child_location(location, "content"), max_depth)
    return out


def _dump_request_body(body: RequestBody, location: str, max_depth: int) -> dict:
    if body.ref is not None:
        return {"$ref": body.ref, **body.extras}
    out = dict(body.extras)
    out["content"] = _dump_content(body.content, child_location(location, "content"), max_depth)
    return out


def _dump_response(response: Response, location: str, max_depth: int) -> dict:
    if response.ref is not None:
        return {"$ref": response.ref, **response.extras}
    out = dict(response.extras)
    if response.headers:
        out["headers"] = {
            name: _dump_parameter(h, child_location(location, "headers", name), max_depth)
            for name, h in response.headers.items()
        }
    if response.content:
        out["content"] = _dump_content(response.content, child_location(location, "content"), max_depth)
    return out


def _dump_content(content: dict[str, MediaType], location: str, max_depth: int) -> dict:
    out = {}
    for media_type, media in content.items():
        entry = {}
        if media.schema_node is not None:
            schema_location = child_location(location, media_type, "schema")
            entry["schema"] = dump_schema(media.schema_node, schema_location, max_depth=max_depth)
        entry.update(media.extras)
        out[media_type] = entry
    return out


def _dump_components(components: Components, max_depth: int) -> dict:
    location = "#/components"
    out = {}
    if components.schemas:
        out["schemas"] = {
            name: dump_schema(s, child_location(location, "schemas", name), max_depth=max_depth)
            for name, s in components.schemas.items()
        }
    if components.parameters:
        out["parameters"] = {
            name: _dump_parameter(p, child_location(location, "parameters", name), max_depth)
            for name, p in components.parameters.items()
        }
    if components.request_bodies:
        out["requestBodies"] = {
            name: _dump_request_body(b, child_location(location, "requestBodies", name), max_depth)
            for name, b in components.request_bodies.items()
        }
    if components.responses:
        out["responses"] = {
            name: _dump_response(r, child_location(location, "responses", name), max_depth)
            for name, r in components.responses.items()
        }
    if components.headers:
        out["headers"] = {
            name: _dump_parameter(h, child_location(location, "headers", name), max_depth)
            for name, h in components.headers.items()
        }
    out.update(components.extras)
    return out


def _expect_dict(raw: Any, location: str) -> None:
    if not isinstance(raw, dict):
        raise StructuralError(f"expected an object, got {type(raw).__name__}", location)


def _without(raw: dict, keys) -> dict:
    return {k: v for k, v in raw.items() if k not in keys}


def _ref(raw: dict, location: str) -> str:
    ref = raw["$ref"]
    if not isinstance(ref, str):
        raise StructuralError("$ref must be a string", location)
    return ref
