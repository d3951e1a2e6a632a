"""Convert raw JSON-like schema objects to SchemaNode variants and back."""

from typing import Any

from oas_normalizer.config import DEFAULT_MAX_DEPTH
from oas_normalizer.errors import CycleLimitExceeded, StructuralError
from oas_normalizer.model.schema import (
    PRIMITIVE_TYPES,
    AnySchema,
    ArraySchema,
    Composite,
    Enumeration,
    ObjectSchema,
    Primitive,
    Reference,
    SchemaNode,
    UnionSchema,
)

CONSTRAINT_KEYS = (
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minLength",
    "maxLength",
    "pattern",
    "format",
)

OBJECT_KEYS = ("properties", "required", "additionalProperties")

# Keywords that change the shape of a value. Next to allOf they become a
# member of their own, next to oneOf/anyOf they are copied into every
# alternative; everything else is annotation.
SHAPE_KEYS = frozenset(
    ("type", "enum", "items", "allOf", "oneOf", "anyOf") + OBJECT_KEYS + CONSTRAINT_KEYS
)


def child_location(location: str, *tokens: Any) -> str:
    """Extend a JSON pointer with escaped reference tokens."""
    for token in tokens:
        location += "/" + str(token).replace("~", "~0").replace("/", "~1")
    return location


def check_depth(depth: int, max_depth: int, location: str) -> None:
    if depth > max_depth:
        raise CycleLimitExceeded(f"schema nesting deeper than {max_depth}", location)


def parse_schema(
    raw: Any, location: str = "#", depth: int = 0, max_depth: int = DEFAULT_MAX_DEPTH
) -> SchemaNode:
    """Classify a raw schema object into exactly one SchemaNode variant.

    Raises StructuralError on malformed input and CycleLimitExceeded when
    schemas nest deeper than ``max_depth``.
    """
    check_depth(depth, max_depth, location)
    if raw is True:
        return AnySchema()
    if not isinstance(raw, dict):
        raise StructuralError(f"expected a schema object, got {type(raw).__name__}", location)

    if "$ref" in raw:
        ref = raw["$ref"]
        if not isinstance(ref, str):
            raise StructuralError("$ref must be a string", location)
        return Reference(ref=ref, extras=_without(raw, ("$ref",)))

    if "allOf" in raw:
        return _parse_composite(raw, location, depth, max_depth)

    for key in ("oneOf", "anyOf"):
        if key in raw:
            return _parse_union(raw, key, location, depth, max_depth)

    return _parse_typed(raw, location, depth, max_depth)


def _parse_composite(raw: dict, location: str, depth: int, max_depth: int) -> SchemaNode:
    members = _parse_members(raw["allOf"], child_location(location, "allOf"), depth, max_depth)
    rest = _without(raw, ("allOf",))
    siblings = {k: v for k, v in rest.items() if k in SHAPE_KEYS}
    if siblings:
        members.append(parse_schema(siblings, location, depth + 1, max_depth))
    extras = {k: v for k, v in rest.items() if k not in SHAPE_KEYS}
    return Composite(members=members, extras=extras)


def _parse_union(raw: dict, key: str, location: str, depth: int, max_depth: int) -> SchemaNode:
    raw_members = raw[key]
    rest = _without(raw, (key,))
    siblings = {k: v for k, v in rest.items() if k in SHAPE_KEYS}
    if siblings and isinstance(raw_members, list):
        # {type: string, oneOf: [A, B]} means oneOf: [A + type, B + type].
        raw_members = [_with_siblings(member, siblings) for member in raw_members]
    members = _parse_members(raw_members, child_location(location, key), depth, max_depth)
    extras = {k: v for k, v in rest.items() if k not in SHAPE_KEYS}
    return UnionSchema(union_kind=key, members=members, extras=extras)


def _with_siblings(member: Any, siblings: dict) -> Any:
    """Add the keywords next to a union to one alternative; keywords it sets itself win."""
    if member is True:
        return dict(siblings)
    if not isinstance(member, dict):
        return member
    if "$ref" in member:
        return {"allOf": [member], **siblings}
    return {**siblings, **member}


def _parse_members(raw: Any, location: str, depth: int, max_depth: int) -> list[SchemaNode]:
    if not isinstance(raw, list):
        raise StructuralError("expected a list of schemas", location)
    return [
        parse_schema(member, child_location(location, i), depth + 1, max_depth)
        for i, member in enumerate(raw)
    ]


def _parse_typed(raw: dict, location: str, depth: int, max_depth: int) -> SchemaNode:
    schema_type = raw.get("type")
    nullable = False
    if isinstance(schema_type, list):
        # OpenAPI 3.1 type arrays: keep the first non-null type.
        non_null = [t for t in schema_type if t != "null"]
        nullable = "null" in schema_type and bool(non_null)
        schema_type = non_null[0] if non_null else "null"
    if schema_type is not None and not isinstance(schema_type, str):
        raise StructuralError(f"unrecognized schema type {schema_type!r}", location)

    if "enum" in raw:
        values = raw["enum"]
        if not isinstance(values, list):
            raise StructuralError("enum must be a list", location)
        node = Enumeration(
            values=list(values),
            primitive_type=schema_type or "string",
            constraints=_pick(raw, CONSTRAINT_KEYS),
            extras=_without(raw, ("type", "enum") + CONSTRAINT_KEYS),
        )
    elif schema_type == "object" or (schema_type is None and any(k in raw for k in OBJECT_KEYS)):
        node = _parse_object(raw, location, depth, max_depth)
    elif schema_type == "array" or (schema_type is None and "items" in raw):
        items = AnySchema()
        if "items" in raw:
            items = parse_schema(raw["items"], child_location(location, "items"), depth + 1, max_depth)
        node = ArraySchema(items=items, extras=_without(raw, ("type", "items")))
    elif schema_type in PRIMITIVE_TYPES:
        node = Primitive(
            primitive_type=schema_type,
            constraints=_pick(raw, CONSTRAINT_KEYS),
            extras=_without(raw, ("type",) + CONSTRAINT_KEYS),
        )
    elif schema_type is None:
        node = AnySchema(extras=dict(raw))
    else:
        raise StructuralError(f"unrecognized schema type {schema_type!r}", location)

    if nullable:
        node.extras["nullable"] = True
    return node


def _parse_object(raw: dict, location: str, depth: int, max_depth: int) -> ObjectSchema:
    raw_properties = raw.get("properties", {})
    if not isinstance(raw_properties, dict):
        raise StructuralError("properties must be an object", location)
    properties = {}
    for name, prop in raw_properties.items():
        prop_location = child_location(location, "properties", name)
        properties[name] = parse_schema(prop, prop_location, depth + 1, max_depth)

    required = raw.get("required", [])
    if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
        raise StructuralError("required must be a list of property names", location)

    additional = raw.get("additionalProperties")
    if additional is not None and not isinstance(additional, bool):
        additional_location = child_location(location, "additionalProperties")
        additional = parse_schema(additional, additional_location, depth + 1, max_depth)

    return ObjectSchema(
        properties=properties,
        required=list(dict.fromkeys(required)),
        additional_properties=additional,
        extras=_without(raw, ("type",) + OBJECT_KEYS),
    )


def dump_schema(
    node: SchemaNode, location: str = "#", depth: int = 0, max_depth: int = DEFAULT_MAX_DEPTH
) -> dict:
    """Render a SchemaNode back to its raw JSON-like form."""
    check_depth(depth, max_depth, location)

    def dump(child: SchemaNode, *tokens) -> dict:
        return dump_schema(child, child_location(location, *tokens), depth + 1, max_depth)

    if isinstance(node, Reference):
        out = {"$ref": node.ref}
    elif isinstance(node, ObjectSchema):
        out = {"type": "object", "properties": {k: dump(v, "properties", k) for k, v in node.properties.items()}}
        if node.required:
            out["required"] = list(node.required)
        if isinstance(node.additional_properties, bool):
            out["additionalProperties"] = node.additional_properties
        elif node.additional_properties is not None:
            out["additionalProperties"] = dump(node.additional_properties, "additionalProperties")
    elif isinstance(node, ArraySchema):
        out = {"type": "array", "items": dump(node.items, "items")}
    elif isinstance(node, Composite):
        out = {"allOf": [dump(m, "allOf", i) for i, m in enumerate(node.members)]}
    elif isinstance(node, UnionSchema):
        out = {node.union_kind: [dump(m, node.union_kind, i) for i, m in enumerate(node.members)]}
    elif isinstance(node, Enumeration):
        out = {"type": node.primitive_type, "enum": list(node.values), **node.constraints}
    elif isinstance(node, Primitive):
        out = {"type": node.primitive_type, **node.constraints}
    elif isinstance(node, AnySchema):
        out = {}
    else:
        raise TypeError(f"not a schema node: {node!r}")
    for key, value in node.extras.items():
        out.setdefault(key, value)
    return out


def _pick(raw: dict, keys) -> dict:
    return {k: raw[k] for k in keys if k in raw}


def _without(raw: dict, keys) -> dict:
    return {k: v for k, v in raw.items() if k not in keys}
