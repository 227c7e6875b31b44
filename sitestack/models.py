#!/usr/bin/env python3
"""Model definitions in sitestack."""
from .fn import references, render, resolve
from .utils import get_logger


logger = get_logger(__name__)

# Concrete resource types by name, filled in by ResourceBase.
REGISTRY = {}


class ResourceBase(type):
    """Metaclass for all resources."""

    def __new__(cls, name, bases, attrs):
        super_new = super().__new__

        # Only perform custom logic for the subclasses of Resource, but not Resource
        # itself.
        parents = [b for b in bases if isinstance(b, ResourceBase)]
        if not parents:
            return super_new(cls, name, bases, attrs)

        new_class = super_new(cls, name, bases, attrs)
        if "service" in attrs:
            # A concrete type like s3.Bucket, not a declared resource.
            REGISTRY[f"AWS::{attrs['service']}::{name}"] = new_class

        return new_class


class StackBase(type):
    """Metaclass for all stacks."""

    def __new__(cls, name, bases, attrs):
        super_new = super().__new__

        # Only perform custom logic for the subclasses of Stack, but not Stack itself.
        parents = [b for b in bases if isinstance(b, StackBase)]
        if not parents:
            return super_new(cls, name, bases, attrs)

        new_class = super_new(cls, name, bases, attrs)
        if hasattr(new_class, "Resources"):
            names = [kls.__name__ for kls in new_class.Resources]
            duplicates = sorted({n for n in names if names.count(n) > 1})
            if duplicates:
                raise ValueError(f"Duplicate resources in {name}: {duplicates}")
        return new_class


def lookup_type(resource_type):
    """Return the concrete class of a resource type name."""
    try:
        return REGISTRY[resource_type]
    except KeyError:
        raise ValueError(f"Unknown resource type: `{resource_type}`") from None


class Resource(metaclass=ResourceBase):
    """Represents a resource definition."""

    # Properties only used locally, never compared with the remote state.
    local_properties = ()

    @property
    def logical_name(self):
        """Return the logical of the resource, mapping to the name of the class."""
        return self.__class__.__name__

    @property
    def resource_type(self):
        """Return the type of the resource from its concrete base class."""
        base_class = type(self)
        while "service" not in vars(base_class):
            base_class = base_class.__base__
            if base_class is Resource:
                raise TypeError(f"{self.logical_name} does not extend a resource type.")
        return f"AWS::{base_class.service}::{base_class.__name__}"

    @property
    def properties(self):
        """Return the declared properties of the resource."""
        return {
            name: getattr(self, name)
            for name in dir(self)
            if name[0].isupper() and name != "DependsOn"
        }

    @property
    def depends_on(self):
        """Logical names this resource depends on, explicit or referenced."""
        names = list(getattr(self, "DependsOn", []))
        for name in references(self.properties):
            if name not in names:
                names.append(name)
        return names

    @property
    def template(self):
        """Return the declarative fragment of the resource."""
        tmplt = {
            "Type": self.resource_type,
            "Properties": render(self.properties),
        }
        if getattr(self, "DependsOn", None):
            tmplt["DependsOn"] = list(self.DependsOn)
        return tmplt

    def resolve(self, context):
        """Return the properties with every reference replaced by its value."""
        return resolve(self.properties, context)

    def identity(self, props):
        """Identity of the remote object, the bucket name for sub-configurations."""
        return props.get("Bucket")

    def attributes(self, props, provider):
        """Computed attributes, available to other resources and outputs."""
        # pylint: disable=W0613
        return {"Id": self.identity(props)}

    def diff(self, desired, current):
        """Names of the properties that differ from the remote state."""
        keys = (set(desired) | set(current)) - set(self.local_properties)
        return sorted(key for key in keys if desired.get(key) != current.get(key))

    def read(self, client, props):
        """Current remote state shaped like the properties, or None."""
        raise NotImplementedError

    def create(self, client, props):
        """Create the remote object."""
        raise NotImplementedError

    def update(self, client, props, current):
        """Bring an existing remote object in line with the properties."""
        # Most sub-configurations are put operations.
        # pylint: disable=W0613
        self.create(client, props)

    def delete(self, client, props):
        """Remove the remote object."""
        raise NotImplementedError
