#!/usr/bin/env python3
"""
Input variables: declaration, loading and validation.

Every problem with the supplied values is collected before anything is
reported, so an operator sees all of them in one pass.
"""
import json
from pathlib import Path

import yaml

from .errors import VariableError


REQUIRED = object()

TYPE_NAMES = {str: "string", bool: "bool", dict: "map(string)"}


class Validation:
    """A single rule: the value is valid when condition(value) is truthy."""

    # pylint: disable=R0903
    def __init__(self, condition, message):
        self.condition = condition
        self.message = message


class Variable:
    """Declares one input variable of a stack."""

    def __init__(self, type, default=REQUIRED, description="", validations=()):
        # pylint: disable=W0622
        if type not in TYPE_NAMES:
            raise ValueError(f"Unsupported variable type: {type}")
        self.type = type
        self.default = default
        self.description = description
        self.validations = list(validations)

    @property
    def required(self):
        """Whether the variable has no default value."""
        return self.default is REQUIRED

    @property
    def template(self):
        """Declarative form of the variable."""
        tmplt = {"Type": TYPE_NAMES[self.type]}
        if self.description:
            tmplt["Description"] = self.description
        if not self.required:
            tmplt["Default"] = self.default
        return tmplt

    def convert(self, name, value):
        """
        Return the value if it has the declared type, or raise ValueError.

        Nothing is coerced, so numbers are rejected for strings and map values.
        """
        if self.type is dict:
            if not isinstance(value, dict):
                raise ValueError(f"Variable `{name}` must be a map of strings.")
            for key, item in value.items():
                if not isinstance(key, str) or not isinstance(item, str):
                    raise ValueError(
                        f"Variable `{name}` must be a map of strings, "
                        f"but `{key}` is not a string."
                    )
            return dict(value)

        # bool is a subclass of int, so check it exactly.
        if type(value) is not self.type:
            raise ValueError(f"Variable `{name}` must be of type {TYPE_NAMES[self.type]}.")
        return value

    def parse(self, raw):
        """
        Parse a value given on the command line.

        Strings are taken verbatim and every scalar in a map stays a string.
        Only bools go through the YAML resolver.
        """
        if self.type is str:
            return raw
        if self.type is dict:
            return yaml.load(raw, Loader=yaml.BaseLoader)
        return yaml.safe_load(raw)


def validate(declarations, supplied):
    """
    Check supplied values against the declarations.

    Returns the complete mapping of values, defaults included. Raises
    VariableError with every violation found, in declaration order.
    """
    errors = []
    values = {}

    for name in supplied:
        if name not in declarations:
            errors.append(f"Variable `{name}` is not declared.")

    for name, variable in declarations.items():
        if name in supplied:
            value = supplied[name]
        elif variable.required:
            errors.append(f"Variable `{name}` is required.")
            continue
        else:
            value = variable.default

        try:
            value = variable.convert(name, value)
        except ValueError as error:
            errors.append(str(error))
            continue

        for validation in variable.validations:
            if not validation.condition(value):
                errors.append(validation.message)
        values[name] = value

    if errors:
        raise VariableError(errors)
    return values


def load_variable_file(path):
    """Load variable values from a YAML or JSON file."""
    pathobj = Path(path)
    with pathobj.open(encoding="utf-8") as fobj:
        try:
            if pathobj.suffix == ".json":
                data = json.load(fobj)
            else:
                data = yaml.safe_load(fobj)
        except (json.JSONDecodeError, yaml.YAMLError) as error:
            raise VariableError([f"Invalid variable file `{path}`: {error}"]) from error

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise VariableError([f"Variable file `{path}` must contain a mapping."])
    return data


def parse_assignments(assignments, declarations=None):
    """
    Parse `name=value` pairs from the command line.

    Declared variables are parsed according to their type, so
    `bucket_name=0123` stays a string while `use_localstack=true` is a bool
    and `tags={Project: demo}` a map. Undeclared names are loaded as YAML and
    reported by `validate`.
    """
    declarations = declarations or {}
    values = {}
    for assignment in assignments:
        name, sep, raw = assignment.partition("=")
        name = name.strip()
        if not sep or not name:
            raise VariableError([f"Invalid variable assignment: `{assignment}`"])
        try:
            if name in declarations:
                value = declarations[name].parse(raw)
            else:
                value = yaml.safe_load(raw)
        except yaml.YAMLError as error:
            raise VariableError([f"Invalid value for `{name}`: {error}"]) from error
        # An empty right hand side is an empty string, not null.
        values[name] = "" if value is None else value
    return values
