"""Entry points: normalize a raw OpenAPI document, or list what is left to normalize."""

from typing import Any

from pydantic import BaseModel

from oas_normalizer.config import NormalizerConfig
from oas_normalizer.model.document import Document, MediaType, Parameter, Response
from oas_normalizer.model.schema import (
    ArraySchema,
    Composite,
    Enumeration,
    ObjectSchema,
    SchemaBase,
    SchemaNode,
    UnionSchema,
)
from oas_normalizer.parser.document import dump_document, parse_document
from oas_normalizer.parser.schema import child_location
from oas_normalizer.transform.walker import NormalizationReport, Walker


class NormalizationResult(BaseModel):
    document: dict[str, Any]
    report: NormalizationReport


def normalize_document(raw: dict, config: NormalizerConfig | None = None) -> NormalizationResult:
    """Normalize ``raw`` and report what was rewritten.

    ``raw`` is not modified, but values the normalizer does not interpret
    (examples, vendor extensions) are shared with the result, not copied.
    """
    config = config or NormalizerConfig()
    document = parse_document(raw, config.max_depth)
    walker = Walker(config)
    normalized = walker.normalize(document)
    return NormalizationResult(document=dump_document(normalized, config.max_depth), report=walker.report)


def normalize(raw: dict, config: NormalizerConfig | None = None) -> dict:
    """Return the normalized copy of ``raw``.

    Raises StructuralError, CycleLimitExceeded or UniquenessExhausted.
    """
    return normalize_document(raw, config).document


def find_violations(raw: dict, config: NormalizerConfig | None = None) -> list[str]:
    """Describe every place where ``raw`` is not yet normalized.

    An empty list means every operation has a unique identifier and no
    ``allOf``/``oneOf``/``anyOf`` or over-constrained enumeration remains.
    """
    config = config or NormalizerConfig()
    document = parse_document(raw, config.max_depth)
    violations = _operation_violations(document)
    for location, node in _iter_schema_positions(document):
        violations.extend(_schema_violations(node, location, config.enum_stripped_keywords))
    return violations


def _operation_violations(document: Document) -> list[str]:
    violations = []
    seen = set()
    for path, method, operation in document.iter_operations():
        location = child_location("#/paths", path, method)
        if not operation.operation_id:
            violations.append(f"{location}: missing operationId")
        elif operation.operation_id in seen:
            violations.append(f"{location}: duplicate operationId {operation.operation_id!r}")
        else:
            seen.add(operation.operation_id)
    return violations


def _iter_schema_positions(document: Document):
    for path, item in document.paths.items():
        location = child_location("#/paths", path)
        yield from _iter_parameters(item.parameters, child_location(location, "parameters"))
        for method, operation in item.operations.items():
            op_location = child_location(location, method)
            yield from _iter_parameters(operation.parameters, child_location(op_location, "parameters"))
            if operation.request_body is not None:
                body_location = child_location(op_location, "requestBody", "content")
                yield from _iter_content(operation.request_body.content, body_location)
            for status, response in operation.responses.items():
                yield from _iter_response(response, child_location(op_location, "responses", status))

    components = document.components
    for name, schema in components.schemas.items():
        yield child_location("#/components/schemas", name), schema
    for name, parameter in components.parameters.items():
        yield from _iter_parameter(parameter, child_location("#/components/parameters", name))
    for name, body in components.request_bodies.items():
        yield from _iter_content(body.content, child_location("#/components/requestBodies", name, "content"))
    for name, response in components.responses.items():
        yield from _iter_response(response, child_location("#/components/responses", name))
    for name, header in components.headers.items():
        yield from _iter_parameter(header, child_location("#/components/headers", name))


def _iter_parameters(parameters: list[Parameter], location: str):
    for i, parameter in enumerate(parameters):
        yield from _iter_parameter(parameter, child_location(location, i))


def _iter_parameter(parameter: Parameter, location: str):
    if parameter.schema_node is not None:
        yield child_location(location, "schema"), parameter.schema_node
    yield from _iter_content(parameter.content, child_location(location, "content"))


def _iter_response(response: Response, location: str):
    for name, header in response.headers.items():
        yield from _iter_parameter(header, child_location(location, "headers", name))
    yield from _iter_content(response.content, child_location(location, "content"))


def _iter_content(content: dict[str, MediaType], location: str):
    for media_type, media in content.items():
        if media.schema_node is not None:
            yield child_location(location, media_type, "schema"), media.schema_node


def _schema_violations(node: SchemaNode, location: str, stripped) -> list[str]:
    violations = []
    stack = [(node, location)]
    while stack:
        node, location = stack.pop()
        if isinstance(node, Composite):
            violations.append(f"{location}: allOf remains")
            stack.extend((m, child_location(location, "allOf", i)) for i, m in enumerate(node.members))
        elif isinstance(node, UnionSchema):
            violations.append(f"{location}: {node.union_kind} remains")
            stack.extend((m, child_location(location, node.union_kind, i)) for i, m in enumerate(node.members))
        elif isinstance(node, Enumeration):
            kept = sorted(k for k in {**node.constraints, **node.extras} if k in stripped)
            if kept:
                violations.append(f"{location}: enum carries {', '.join(kept)}")
        elif isinstance(node, ObjectSchema):
            for name, child in node.properties.items():
                stack.append((child, child_location(location, "properties", name)))
            if isinstance(node.additional_properties, SchemaBase):
                stack.append((node.additional_properties, child_location(location, "additionalProperties")))
        elif isinstance(node, ArraySchema):
            stack.append((node.items, child_location(location, "items")))
    return sorted(violations)
