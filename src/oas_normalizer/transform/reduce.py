"""Union reduction: ``oneOf`` / ``anyOf`` collapse to their first member."""

from oas_normalizer.model.schema import AnySchema, SchemaNode, UnionSchema


def reduce_union(node: UnionSchema) -> SchemaNode:
    """Return the first listed alternative, or an unconstrained schema if there is none.

    Members must already be normalized. The union's own annotations are kept
    unless the chosen member overrides them.
    """
    if not node.members:
        return AnySchema(extras=dict(node.extras))
    first = node.members[0]
    return first.model_copy(update={"extras": {**node.extras, **first.extras}})
