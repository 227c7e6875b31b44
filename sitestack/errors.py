#!/usr/bin/env python3
"""
Exceptions raised by sitestack.
"""


class SiteStackError(Exception):
    """Base class for all errors reported to the operator."""


class VariableError(SiteStackError, ValueError):
    """One or more input variables failed validation."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("\n".join(self.errors))


class ProviderError(SiteStackError):
    """The provider configuration cannot be resolved."""


class GraphError(SiteStackError, ValueError):
    """The resource graph is malformed."""


class ResourceError(SiteStackError):
    """A remote operation on a single resource failed."""

    def __init__(self, logical_name, action, cause):
        self.logical_name = logical_name
        self.action = action
        self.cause = cause
        super().__init__(f"Failed to {action} {logical_name}: {cause}")
