#!/usr/bin/env python3
"""
Dependency graph of the resources in a stack.

Edges come from explicit DependsOn declarations and from references in
properties. Ordering is deterministic: ties are broken by declaration order.
"""
from .errors import GraphError
from .s3 import BucketPolicy, PublicAccessBlock


def build(resources, variables=()):
    """
    Return a mapping of logical name to the logical names it depends on.

    References to variables are not edges. A reference to anything else that
    is not a declared resource is an error.
    """
    names = [resource.logical_name for resource in resources]
    clashes = sorted(set(names) & set(variables))
    if clashes:
        raise GraphError(f"Resources share a name with a variable: {clashes}")

    graph = {}
    for resource in resources:
        deps = []
        for name in resource.depends_on:
            if name in variables:
                continue
            if name not in names:
                raise GraphError(
                    f"{resource.logical_name} refers to unknown resource `{name}`"
                )
            if name == resource.logical_name:
                raise GraphError(f"{name} depends on itself")
            deps.append(name)
        graph[resource.logical_name] = deps
    return graph


def levels(graph):
    """
    Group the resources in batches, each batch only depending on earlier ones.

    Resources inside a batch are independent of each other.
    """
    remaining = {name: set(deps) for name, deps in graph.items()}
    done = set()
    batches = []
    while remaining:
        batch = [name for name, deps in remaining.items() if deps <= done]
        if not batch:
            raise GraphError(f"Dependency cycle between: {', '.join(sorted(remaining))}")
        for name in batch:
            del remaining[name]
        done.update(batch)
        batches.append(batch)
    return batches


def topological_order(graph):
    """Return the logical names so every resource comes after its dependencies."""
    return [name for batch in levels(graph) for name in batch]


def depends_transitively(graph, name, target):
    """Whether `name` depends on `target`, directly or through other resources."""
    seen = set()
    stack = list(graph[name])
    while stack:
        current = stack.pop()
        if current == target:
            return True
        if current not in seen:
            seen.add(current)
            stack.extend(graph.get(current, []))
    return False


def check_public_policies(resolved, graph):
    """
    Ensure every public bucket policy is applied after public policies have
    been allowed on its bucket.

    `resolved` is a list of (resource, properties) pairs.
    """
    blocks = [
        (resource, props)
        for resource, props in resolved
        if isinstance(resource, PublicAccessBlock)
    ]
    for resource, props in resolved:
        if not isinstance(resource, BucketPolicy) or not resource.is_public(props):
            continue
        allowed = [
            block.logical_name
            for block, block_props in blocks
            if block_props.get("Bucket") == props["Bucket"]
            and not block_props.get("BlockPublicPolicy", False)
            and depends_transitively(graph, resource.logical_name, block.logical_name)
        ]
        if not allowed:
            raise GraphError(
                f"{resource.logical_name} grants public access to "
                f"`{props['Bucket']}` but does not depend on a PublicAccessBlock "
                "that allows public policies on that bucket"
            )
