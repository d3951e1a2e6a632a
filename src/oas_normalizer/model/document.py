"""Document-level models: paths, operations and the component library.

Only the parts that carry schemas or operation identifiers are modelled;
everything else on each object is kept verbatim in ``extras``.
"""

from typing import Any

from pydantic import BaseModel

from oas_normalizer.model.schema import SchemaNode

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class MediaType(BaseModel):
    schema_node: SchemaNode | None = None
    extras: dict[str, Any] = {}


class Parameter(BaseModel):
    """A parameter or header object. ``ref`` is set for ``$ref`` entries."""

    ref: str | None = None
    schema_node: SchemaNode | None = None
    content: dict[str, MediaType] = {}
    extras: dict[str, Any] = {}


class RequestBody(BaseModel):
    ref: str | None = None
    content: dict[str, MediaType] = {}
    extras: dict[str, Any] = {}


class Response(BaseModel):
    ref: str | None = None
    content: dict[str, MediaType] = {}
    headers: dict[str, Parameter] = {}
    extras: dict[str, Any] = {}


class Operation(BaseModel):
    operation_id: str | None = None
    parameters: list[Parameter] = []
    request_body: RequestBody | None = None
    responses: dict[str, Response] = {}
    extras: dict[str, Any] = {}


class PathItem(BaseModel):
    operations: dict[str, Operation] = {}
    parameters: list[Parameter] = []
    extras: dict[str, Any] = {}


class Components(BaseModel):
    schemas: dict[str, SchemaNode] = {}
    parameters: dict[str, Parameter] = {}
    request_bodies: dict[str, RequestBody] = {}
    responses: dict[str, Response] = {}
    headers: dict[str, Parameter] = {}
    extras: dict[str, Any] = {}

    def is_empty(self) -> bool:
        return not (
            self.schemas
            or self.parameters
            or self.request_bodies
            or self.responses
            or self.headers
            or self.extras
        )


class Document(BaseModel):
    """Root of a parsed OpenAPI 3.x document."""

    paths: dict[str, PathItem] = {}
    components: Components = Components()
    extras: dict[str, Any] = {}

    def iter_operations(self):
        """Yield ``(path, method, operation)`` in document order."""
        for path, item in self.paths.items():
            for method, operation in item.operations.items():
                yield path, method, operation
