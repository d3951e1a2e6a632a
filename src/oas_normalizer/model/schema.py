"""Schema node model.

A JSON-Schema-like node is represented as one of a closed set of variants.
Every transform matches on the variant instead of poking at raw keys.
Keywords the transforms do not interpret (description, nullable, x-*, ...)
travel along in ``extras`` and are written back untouched.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

COMPONENT_SCHEMA_PREFIX = "#/components/schemas/"

PRIMITIVE_TYPES = ("string", "number", "integer", "boolean", "null")


class SchemaBase(BaseModel):
    """Fields shared by every schema variant."""

    extras: dict[str, Any] = {}


class Reference(SchemaBase):
    """Pointer to a shared schema. Not owned; resolved by name."""

    kind: Literal["reference"] = "reference"
    ref: str

    @property
    def name(self) -> str | None:
        """Component name for ``#/components/schemas/<name>`` refs, else None."""
        if not self.ref.startswith(COMPONENT_SCHEMA_PREFIX):
            return None
        name = self.ref[len(COMPONENT_SCHEMA_PREFIX):]
        if not name or "/" in name:
            return None
        return name.replace("~1", "/").replace("~0", "~")


class ObjectSchema(SchemaBase):
    kind: Literal["object"] = "object"
    properties: dict[str, "SchemaNode"] = {}
    required: list[str] = []
    additional_properties: "bool | SchemaNode | None" = None


class ArraySchema(SchemaBase):
    kind: Literal["array"] = "array"
    items: "SchemaNode"


class Composite(SchemaBase):
    """``allOf``: the value must satisfy every member."""

    kind: Literal["composite"] = "composite"
    members: list["SchemaNode"] = []


class UnionSchema(SchemaBase):
    """``oneOf`` / ``anyOf``: the value must satisfy one (or some) member(s)."""

    kind: Literal["union"] = "union"
    union_kind: Literal["oneOf", "anyOf"] = "oneOf"
    members: list["SchemaNode"] = []


class Enumeration(SchemaBase):
    kind: Literal["enumeration"] = "enumeration"
    values: list[Any]
    primitive_type: str = "string"
    constraints: dict[str, Any] = {}


class Primitive(SchemaBase):
    kind: Literal["primitive"] = "primitive"
    primitive_type: Literal["string", "number", "integer", "boolean", "null"]
    constraints: dict[str, Any] = {}


class AnySchema(SchemaBase):
    """Unconstrained schema (``{}``): accepts any value."""

    kind: Literal["any"] = "any"


SchemaNode = Annotated[
    Reference
    | ObjectSchema
    | ArraySchema
    | Composite
    | UnionSchema
    | Enumeration
    | Primitive
    | AnySchema,
    Field(discriminator="kind"),
]

for _model in (ObjectSchema, ArraySchema, Composite, UnionSchema):
    _model.model_rebuild()
