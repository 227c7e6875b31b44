#!/usr/bin/env python3
"""
References and intrinsic functions usable in resource properties.

Every function node knows how to render itself as a declarative document, how
to resolve itself against a Context at plan time, and which logical names it
refers to.
"""
import hashlib
import re
from pathlib import Path


SUB_PATTERN = re.compile(r"\$\{([^}]+)\}")


class Context:
    """Values available while resolving properties."""

    def __init__(self, variables=None, attributes=None, source_dir="."):
        self.variables = variables or {}
        self.attributes = attributes if attributes is not None else {}
        self.source_dir = Path(source_dir)

    def ref(self, target):
        """Resolve a Ref: variables first, then the Id of a resource."""
        if target in self.variables:
            return self.variables[target]
        return self.get_att(target, "Id")

    def get_att(self, logical_name, attr):
        """Resolve a computed attribute of a resource resolved earlier."""
        if logical_name not in self.attributes:
            raise ValueError(f"Unknown reference target: `{logical_name}`")
        attributes = self.attributes[logical_name]
        if attr not in attributes:
            raise ValueError(f"Resource `{logical_name}` has no attribute `{attr}`")
        return attributes[attr]


def resolve(node, context):
    """Iteratively replace all function nodes in the node with their values."""
    if isinstance(node, list):
        return [resolve(item, context) for item in node]
    if isinstance(node, dict):
        return {name: resolve(value, context) for name, value in node.items()}
    if node is None or isinstance(node, (str, bool, int, float)):
        return node
    if isinstance(node, Function):
        return node.resolve(context)
    raise ValueError(f"Invalid value specified in the code: {node}")


def render(node):
    """Iteratively render all function nodes in the node as dictionaries."""
    if isinstance(node, list):
        return [render(item) for item in node]
    if isinstance(node, dict):
        return {name: render(value) for name, value in node.items()}
    if isinstance(node, Function):
        return node.render()
    return node


def references(node):
    """Yield every logical name the node refers to."""
    if isinstance(node, list):
        for item in node:
            yield from references(item)
    elif isinstance(node, dict):
        for value in node.values():
            yield from references(value)
    elif isinstance(node, Function):
        yield from node.references()


class Function:
    """Base class of all function nodes."""

    # pylint: disable=R0903

    def render(self):
        """Render the node as a dictionary."""
        raise NotImplementedError

    def resolve(self, context):
        """Compute the value of the node."""
        raise NotImplementedError

    def references(self):
        """Names this node refers to."""
        return iter(())


class Ref(Function):
    """Refers to a variable, or to the Id of a resource."""

    # This is our DSL, it's a very thin wrapper around dictionary.
    # pylint: disable=R0903
    def __init__(self, target):
        """Creates a Ref node with a target."""
        self.target = target

    def render(self):
        return {"Ref": self.target}

    def resolve(self, context):
        return context.ref(self.target)

    def references(self):
        yield self.target


class GetAtt(Function):
    """Computed attribute of a resource."""

    # pylint: disable=R0903

    def __init__(self, logical_name, attr):
        self.logical_name = logical_name
        self.attr = attr

    def render(self):
        return {"Fn::GetAtt": [self.logical_name, self.attr]}

    def resolve(self, context):
        return context.get_att(self.logical_name, self.attr)

    def references(self):
        yield self.logical_name


class Join(Function):
    """Join resolved elements with a delimiter."""

    # pylint: disable=R0903

    def __init__(self, delimiter, elements):
        self.delimiter = delimiter
        self.elements = elements

    def render(self):
        return {"Fn::Join": [self.delimiter, render(self.elements)]}

    def resolve(self, context):
        return self.delimiter.join(str(item) for item in resolve(self.elements, context))

    def references(self):
        return references(self.elements)


class Sub(Function):
    """
    Substitute `${Name}` and `${Resource.Attr}` in a string.

    `${!Literal}` is written out as `${Literal}`.
    """

    # pylint: disable=R0903

    def __init__(self, target, mapping=None):
        if not isinstance(target, str):
            raise ValueError(
                f"The first argument of Fn::Sub must be string: `{target}`"
            )
        self.target = target
        self.mapping = mapping or {}

    def render(self):
        if self.mapping:
            return {"Fn::Sub": [self.target, render(self.mapping)]}
        return {"Fn::Sub": self.target}

    def _names(self):
        for match in SUB_PATTERN.finditer(self.target):
            name = match.group(1)
            if not name.startswith("!"):
                yield name

    def resolve(self, context):
        mapping = resolve(self.mapping, context)

        def _replace(match):
            name = match.group(1)
            if name.startswith("!"):
                return "${" + name[1:] + "}"
            if name in mapping:
                return str(mapping[name])
            if "." in name:
                logical_name, attr = name.split(".", 1)
                return str(context.get_att(logical_name, attr))
            return str(context.ref(name))

        return SUB_PATTERN.sub(_replace, self.target)

    def references(self):
        for name in self._names():
            if name not in self.mapping:
                yield name.split(".", 1)[0]
        yield from references(self.mapping)


class FileMd5(Function):
    """Hex md5 digest of a local file, relative to the source directory."""

    # pylint: disable=R0903

    def __init__(self, path):
        self.path = path

    def render(self):
        return {"Fn::FileMd5": self.path}

    def resolve(self, context):
        path = context.source_dir / self.path
        try:
            content = path.read_bytes()
        except FileNotFoundError as error:
            raise ValueError(f"File not found: `{path}`") from error
        return hashlib.md5(content).hexdigest()


class Fn:
    """
    This is a container for all functions.

    Rationale is instead of having to import all the functions,
    we just import Fn and use any function as Fn.FuncName
    """

    # pylint: disable=R0903

    GetAtt = GetAtt
    Join = Join
    Sub = Sub
    FileMd5 = FileMd5
