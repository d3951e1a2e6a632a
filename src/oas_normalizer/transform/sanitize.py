"""Enumeration sanitizing."""

from oas_normalizer.config import DEFAULT_ENUM_STRIPPED_KEYWORDS
from oas_normalizer.model.schema import Enumeration, SchemaNode


def sanitize_enumeration(node: SchemaNode, stripped=DEFAULT_ENUM_STRIPPED_KEYWORDS) -> SchemaNode:
    """Drop string-shape keywords from an enumeration; other nodes pass through.

    The value list and the primitive type are never touched.
    """
    if not isinstance(node, Enumeration):
        return node
    constraints = {k: v for k, v in node.constraints.items() if k not in stripped}
    extras = {k: v for k, v in node.extras.items() if k not in stripped}
    if constraints == node.constraints and extras == node.extras:
        return node
    return node.model_copy(update={"constraints": constraints, "extras": extras})
