"""Composite (``allOf``) merging.

Object members are folded into a single object schema: properties are
unioned with the later member winning on a name clash, and required names
are unioned in first-seen order. References are merged when they resolve
to an object schema. Members that cannot be represented as object fields
are dropped, but their annotations (description, example, ...) are kept
where no earlier member set them.
"""

from typing import Callable

from oas_normalizer.model.schema import Composite, ObjectSchema, Reference, SchemaNode

Resolver = Callable[[Reference], "SchemaNode | None"]


def merge_composite(node: Composite, resolve: Resolver) -> SchemaNode:
    """Fold the (already normalized) members of ``node`` into one schema."""
    objects = []
    others = []
    annotations = {}
    for member in node.members:
        target = resolve(member) if isinstance(member, Reference) else member
        if isinstance(target, ObjectSchema):
            objects.append(target)
            source = target.extras
        else:
            others.append(member)
            source = member.extras
        for key, value in source.items():
            annotations.setdefault(key, value)

    if not objects and others:
        # Nothing to merge: keep the first concrete member, e.g. a
        # description wrapped around a single $ref.
        first = others[0]
        return first.model_copy(update={"extras": {**annotations, **node.extras}})

    properties = {}
    required = []
    additional = None
    for member in objects:
        properties.update(member.properties)
        for name in member.required:
            if name not in required:
                required.append(name)
        if member.additional_properties is not None:
            additional = member.additional_properties
    extras = {**annotations, **node.extras}

    return ObjectSchema(
        properties=properties,
        required=required,
        additional_properties=additional,
        extras=extras,
    )
