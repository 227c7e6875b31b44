#!/usr/bin/env python3
"""
Declarative S3 static website deployments.
"""
from .errors import (
    GraphError,
    ProviderError,
    ResourceError,
    SiteStackError,
    VariableError,
)
from .fn import Fn, GetAtt, Ref
from .models import Resource
from .provider import ProviderConfig
from .stack import Stack
from .variables import Validation, Variable
from .website import StaticSite

__all__ = [
    "Fn",
    "GetAtt",
    "GraphError",
    "ProviderConfig",
    "ProviderError",
    "Ref",
    "Resource",
    "ResourceError",
    "SiteStackError",
    "Stack",
    "StaticSite",
    "Validation",
    "Variable",
    "VariableError",
]
