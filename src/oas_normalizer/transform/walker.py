"""Recursive walker that applies every rewrite across a whole document.

Schemas are visited depth-first, children before parents. At each node the
rewrites run in a fixed order: merge ``allOf``, then reduce unions, then
sanitize enumerations. Component schemas form an arena keyed by name; each
one is normalized at most once, on first use.
"""

from pydantic import BaseModel

from oas_normalizer.config import NormalizerConfig
from oas_normalizer.model.document import (
    Components,
    Document,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
)
from oas_normalizer.model.schema import (
    COMPONENT_SCHEMA_PREFIX,
    ArraySchema,
    Composite,
    Enumeration,
    ObjectSchema,
    Reference,
    SchemaBase,
    SchemaNode,
    UnionSchema,
)
from oas_normalizer.parser.schema import check_depth, child_location
from oas_normalizer.transform.identifiers import IdentifierRegistry, candidate_operation_id
from oas_normalizer.transform.merge import merge_composite
from oas_normalizer.transform.reduce import reduce_union
from oas_normalizer.transform.sanitize import sanitize_enumeration


class NormalizationReport(BaseModel):
    """Counts of what one run rewrote."""

    operations: int = 0
    synthesized_ids: int = 0
    renamed_ids: int = 0
    merged_composites: int = 0
    reduced_unions: int = 0
    sanitized_enums: int = 0
    unresolved_refs: list[str] = []


class Walker:
    """Normalizes one document. Create a new instance per run."""

    def __init__(self, config: NormalizerConfig | None = None):
        self.config = config or NormalizerConfig()
        self.registry = IdentifierRegistry(
            separator=self.config.separator,
            max_suffix=self.config.max_identifier_suffix,
        )
        self.report = NormalizationReport()
        self._components: dict[str, SchemaNode] = {}
        self._normalized: dict[str, SchemaNode] = {}
        self._in_progress: list[str] = []

    def normalize(self, document: Document) -> Document:
        self._components = document.components.schemas
        identifiers = self._assign_identifiers(document)

        paths = {}
        for path, item in document.paths.items():
            paths[path] = self._path_item(path, item, identifiers)

        return document.model_copy(
            update={"paths": paths, "components": self._components_section(document.components)}
        )

    # -- operations -------------------------------------------------------

    def _assign_identifiers(self, document: Document) -> dict[tuple[str, str], str]:
        """Keep existing unique ids, then suffix duplicates and fill in missing ones."""
        assigned = {}
        pending = []
        for path, method, operation in document.iter_operations():
            self.report.operations += 1
            if operation.operation_id and self.registry.reserve(operation.operation_id):
                assigned[(path, method)] = operation.operation_id
            else:
                pending.append((path, method, operation.operation_id))

        for path, method, existing in pending:
            location = child_location("#/paths", path, method)
            if existing:
                self.report.renamed_ids += 1
                candidate = existing
            else:
                self.report.synthesized_ids += 1
                candidate = candidate_operation_id(method, path, self.config.separator)
            assigned[(path, method)] = self.registry.claim(candidate, location)
        return assigned

    def _path_item(self, path: str, item: PathItem, identifiers) -> PathItem:
        location = child_location("#/paths", path)
        operations = {}
        for method, operation in item.operations.items():
            operations[method] = self._operation(
                operation, identifiers[(path, method)], child_location(location, method)
            )
        parameters = self._parameters(item.parameters, child_location(location, "parameters"))
        return item.model_copy(update={"operations": operations, "parameters": parameters})

    def _operation(self, operation: Operation, operation_id: str, location: str) -> Operation:
        request_body = operation.request_body
        if request_body is not None:
            request_body = self._request_body(request_body, child_location(location, "requestBody"))
        responses = {}
        for status, response in operation.responses.items():
            responses[status] = self._response(response, child_location(location, "responses", status))
        return operation.model_copy(
            update={
                "operation_id": operation_id,
                "parameters": self._parameters(operation.parameters, child_location(location, "parameters")),
                "request_body": request_body,
                "responses": responses,
            }
        )

    def _parameters(self, parameters: list[Parameter], location: str) -> list[Parameter]:
        return [self._parameter(p, child_location(location, i)) for i, p in enumerate(parameters)]

    def _parameter(self, parameter: Parameter, location: str) -> Parameter:
        if parameter.ref is not None:
            return parameter
        schema_node = parameter.schema_node
        if schema_node is not None:
            schema_node = self.visit(schema_node, child_location(location, "schema"))
        return parameter.model_copy(
            update={
                "schema_node": schema_node,
                "content": self._content(parameter.content, child_location(location, "content")),
            }
        )

    def _request_body(self, body: RequestBody, location: str) -> RequestBody:
        if body.ref is not None:
            return body
        return body.model_copy(update={"content": self._content(body.content, child_location(location, "content"))})

    def _response(self, response: Response, location: str) -> Response:
        if response.ref is not None:
            return response
        headers = {}
        for name, header in response.headers.items():
            headers[name] = self._parameter(header, child_location(location, "headers", name))
        return response.model_copy(
            update={
                "content": self._content(response.content, child_location(location, "content")),
                "headers": headers,
            }
        )

    def _content(self, content: dict[str, MediaType], location: str) -> dict[str, MediaType]:
        out = {}
        for media_type, media in content.items():
            if media.schema_node is not None:
                schema_location = child_location(location, media_type, "schema")
                media = media.model_copy(update={"schema_node": self.visit(media.schema_node, schema_location)})
            out[media_type] = media
        return out

    def _components_section(self, components: Components) -> Components:
        location = "#/components"
        schemas = {}
        for name in components.schemas:
            schemas[name] = self._component(name, 0)
        parameters = {}
        for name, parameter in components.parameters.items():
            parameters[name] = self._parameter(parameter, child_location(location, "parameters", name))
        request_bodies = {}
        for name, body in components.request_bodies.items():
            request_bodies[name] = self._request_body(body, child_location(location, "requestBodies", name))
        responses = {}
        for name, response in components.responses.items():
            responses[name] = self._response(response, child_location(location, "responses", name))
        headers = {}
        for name, header in components.headers.items():
            headers[name] = self._parameter(header, child_location(location, "headers", name))
        return components.model_copy(
            update={
                "schemas": schemas,
                "parameters": parameters,
                "request_bodies": request_bodies,
                "responses": responses,
                "headers": headers,
            }
        )

    # -- schemas ----------------------------------------------------------

    def visit(self, node: SchemaNode, location: str, depth: int = 0) -> SchemaNode:
        """Normalize ``node`` and everything below it."""
        check_depth(depth, self.config.max_depth, location)

        node = self._visit_children(node, location, depth)

        if isinstance(node, Composite):
            self.report.merged_composites += 1
            node = merge_composite(node, lambda ref: self._resolve(ref, location, depth))
        if isinstance(node, UnionSchema):
            self.report.reduced_unions += 1
            node = reduce_union(node)
        if isinstance(node, Enumeration):
            sanitized = sanitize_enumeration(node, self.config.enum_stripped_keywords)
            if sanitized is not node:
                self.report.sanitized_enums += 1
            node = sanitized
        return node

    def _visit_children(self, node: SchemaNode, location: str, depth: int) -> SchemaNode:
        if isinstance(node, ObjectSchema):
            properties = {}
            for name, child in node.properties.items():
                properties[name] = self.visit(child, child_location(location, "properties", name), depth + 1)
            additional = node.additional_properties
            if isinstance(additional, SchemaBase):
                additional = self.visit(additional, child_location(location, "additionalProperties"), depth + 1)
            return node.model_copy(update={"properties": properties, "additional_properties": additional})
        if isinstance(node, ArraySchema):
            return node.model_copy(update={"items": self.visit(node.items, child_location(location, "items"), depth + 1)})
        if isinstance(node, Composite):
            return node.model_copy(update={"members": self._visit_members(node.members, child_location(location, "allOf"), depth)})
        if isinstance(node, UnionSchema):
            members_location = child_location(location, node.union_kind)
            return node.model_copy(update={"members": self._visit_members(node.members, members_location, depth)})
        return node

    def _visit_members(self, members: list[SchemaNode], location: str, depth: int) -> list[SchemaNode]:
        visited = []
        for i, member in enumerate(members):
            visited.append(self.visit(member, child_location(location, i), depth + 1))
        return visited

    def _resolve(self, reference: Reference, location: str, depth: int) -> SchemaNode | None:
        """Follow a reference (and alias chains) to a normalized component."""
        seen = set()
        node = reference
        while isinstance(node, Reference):
            name = node.name
            if name is None or name in seen:
                self._unresolved(node.ref, location)
                return None
            seen.add(name)
            node = self._component(name, depth + 1)
            if node is None:
                self._unresolved(reference.ref, location)
                return None
        return node

    def _component(self, name: str, depth: int) -> SchemaNode | None:
        """Normalized component schema ``name``; None if unknown or already on the stack."""
        if name in self._normalized:
            return self._normalized[name]
        if name in self._in_progress or name not in self._components:
            return None
        self._in_progress.append(name)
        try:
            location = child_location(COMPONENT_SCHEMA_PREFIX.rstrip("/"), name)
            node = self.visit(self._components[name], location, depth)
        finally:
            self._in_progress.pop()
        self._normalized[name] = node
        return node

    def _unresolved(self, ref: str, location: str) -> None:
        entry = f"{location} -> {ref}"
        if entry not in self.report.unresolved_refs:
            self.report.unresolved_refs.append(entry)
