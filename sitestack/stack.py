#!/usr/bin/env python3
"""Stack definitions in sitestack."""
import json
import re
from functools import cached_property
from pathlib import Path

import yaml
from botocore.exceptions import BotoCoreError, ClientError

from . import graph as graphlib
from .errors import GraphError, ResourceError
from .fn import Context, render, resolve
from .hooks import check_source_files, guard_public_bucket_adoption
from .models import StackBase, lookup_type
from .provider import ProviderConfig
from .state import DEFAULT_STATE_FILE, StateFile
from .utils import get_logger
from .variables import validate


logger = get_logger(__name__)


def format_name(name):
    """
    Generate a stack name from class name by converting camel case to dash case.
    Adapted from https://stackoverflow.com/questions/1175208/.

    The stack name prefixes nothing remote, it only labels the log lines. Set
    the name field in DeployOptions to pick another one.

    example: format_name("StaticSite") == "static-site"
    """
    name = re.sub("(.)([A-Z][a-z]+)", r"\1-\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1-\2", name).lower()


def format_changes(changes):
    """
    Format planned changes so they read well in the log, one line per resource.

    Resources without a pending action are left out.
    """
    parts = []
    for change in changes:
        if change.action == "noop":
            continue
        line = f"[{change.action.upper()}] {change.logical_name}({change.resource_type})"
        if change.details:
            line += f":\n\t{', '.join(change.details)}"
        parts.append(line)
    return "\n".join(parts)


class Change:
    """A planned action on a single resource."""

    # pylint: disable=R0903,R0913

    def __init__(self, action, resource, props, current=None, details=()):
        self.action = action
        self.resource = resource
        self.props = props
        self.current = current
        self.details = list(details)

    @property
    def logical_name(self):
        """Logical name of the resource."""
        return self.resource.logical_name

    @property
    def resource_type(self):
        """Type of the resource."""
        return self.resource.resource_type

    def __repr__(self):
        return f"<Change {self.action} {self.logical_name}>"


class Stack(metaclass=StackBase):
    """Represents a set of resources deployed together."""

    Hooks = {
        "pre_deploy": [
            check_source_files,
            guard_public_bucket_adoption,
        ],
    }
    Parameters = {}
    Outputs = {}
    Provider = {"region": "us-east-1", "use_localstack": False}

    def __init__(self, variables=None, state_path=None, source_dir=None):
        self.supplied = dict(variables or {})
        self.state_file = StateFile(
            state_path or self.deploy_options.get("state_path", DEFAULT_STATE_FILE)
        )
        self.source_dir = Path(source_dir or self.deploy_options.get("source_dir", "."))

    @property
    def name(self):
        """Name of the stack."""
        return self.deploy_options.get("name", format_name(self.__class__.__name__))

    @property
    def deploy_options(self):
        """Shortcut to DeployOptions dict provided in Subclasses."""
        return getattr(self, "DeployOptions", {})

    @cached_property
    def variables(self):
        """Validated variable values, defaults included."""
        return validate(self.Parameters, self.supplied)

    @cached_property
    def provider(self):
        """Provider configuration of this invocation, checked before use."""
        settings = resolve(self.Provider, Context(self.variables))
        provider = ProviderConfig.select(
            settings.get("region", ""),
            use_localstack=settings.get("use_localstack", False),
            endpoint=settings.get("endpoint"),
        )
        provider.check()
        return provider

    @cached_property
    def client(self):
        """S3 client shared by every resource operation."""
        return self.provider.client("s3")

    @property
    def resources(self):
        """Instances of the declared resources, in declaration order."""
        if not hasattr(self, "Resources"):
            raise ValueError("Please define Resources in your stack.")
        # Resources is defined in child classes.
        # pylint: disable=E1101
        return [kls() for kls in self.Resources]

    @cached_property
    def graph(self):
        """Mapping of logical name to the logical names it depends on."""
        return graphlib.build(self.resources, self.Parameters)

    @property
    def order(self):
        """Resources sorted so each one follows its dependencies."""
        by_name = {resource.logical_name: resource for resource in self.resources}
        return [by_name[name] for name in graphlib.topological_order(self.graph)]

    @property
    def template(self):
        """Declarative, unresolved representation of the stack."""
        tmplt = {
            "Parameters": {
                name: variable.template for name, variable in self.Parameters.items()
            },
            "Provider": render(self.Provider),
            "Resources": {
                resource.logical_name: resource.template for resource in self.resources
            },
        }
        if self.Outputs:
            tmplt["Outputs"] = render(self.Outputs)
        return tmplt

    @property
    def json(self):
        """Return the template in json format"""
        return json.dumps(self.template, indent=2)

    @property
    def yaml(self):
        """Return the template in yaml format"""
        # pyyaml will try to be smart and add an anchor to the generated yaml file.
        # This "feature" is not desirable.
        yaml.Dumper.ignore_aliases = lambda self, data: True
        return yaml.dump(self.template, Dumper=yaml.Dumper, sort_keys=False)

    @property
    def outputs(self):
        """Outputs projected by the last successful deployment."""
        return self.state_file.load().get("outputs", {})

    def resolve(self):
        """
        Resolve the properties of every resource in dependency order.

        Returns a list of (resource, properties) pairs and the context holding
        variables and computed attributes.
        """
        context = Context(self.variables, source_dir=self.source_dir)
        resolved = []
        for resource in self.order:
            try:
                props = resource.resolve(context)
            except ValueError as error:
                raise GraphError(f"{resource.logical_name}: {error}") from error
            context.attributes[resource.logical_name] = resource.attributes(
                props, self.provider
            )
            resolved.append((resource, props))
        graphlib.check_public_policies(resolved, self.graph)
        return resolved, context

    def plan(self):
        """Compare the desired resources with the remote state."""
        changes, _ = self.__plan()
        return changes

    def deploy(self, dryrun=True):
        """Wrapper around different steps in the stack deployment process."""
        self.pre_deploy(dryrun)
        outputs = self.__deploy(dryrun)
        self.post_deploy(dryrun)
        return outputs

    def pre_deploy(self, dryrun):
        """Allowing the subclass to add additional steps before the deployment."""
        for hook in self.Hooks.get("pre_deploy", []):
            hook(self, dryrun)

    def post_deploy(self, dryrun):
        """Allowing the subclass to add additional steps after the deployment."""
        for hook in self.Hooks.get("post_deploy", []):
            hook(self, dryrun)

    def delete(self, dryrun=True):
        """Wrapper around different steps in the stack deletion process."""
        self.pre_delete(dryrun)
        self.__delete(dryrun)
        self.post_delete(dryrun)

    def pre_delete(self, dryrun):
        """Allowing the subclass to add additional steps before the deletion."""
        for hook in self.Hooks.get("pre_delete", []):
            hook(self, dryrun)

    def post_delete(self, dryrun):
        """Allowing the subclass to add additional steps after the deletion."""
        for hook in self.Hooks.get("post_delete", []):
            hook(self, dryrun)

    def __read(self, resource, props):
        try:
            return resource.read(self.client, props)
        except (BotoCoreError, ClientError) as error:
            raise ResourceError(resource.logical_name, "read", error) from error

    def __recorded(self, state):
        """Resources in the state file, rebuilt from their recorded type."""
        recorded = []
        for name, record in state["resources"].items():
            kls = type(name, (lookup_type(record["Type"]),), {})
            recorded.append((kls(), record["Properties"]))
        return recorded

    def __stale(self, state, resolved):
        """
        Recorded resources to delete before anything is created.

        A resource is stale when it is no longer declared, or when its identity
        changed (e.g. a new bucket name), in which case it is replaced.
        """
        desired = {
            resource.logical_name: (resource, props) for resource, props in resolved
        }
        stale = []
        for resource, props in self.__recorded(state):
            name = resource.logical_name
            if name not in desired:
                stale.append((resource, props, []))
                continue
            new, new_props = desired[name]
            identity = new.identity(new_props)
            if resource.identity(props) != identity:
                stale.append((resource, props, [f"replaced by {identity}"]))
        return stale

    def __plan(self):
        resolved, context = self.resolve()
        state = self.state_file.load()

        changes = []
        creating = set()
        for resource, props in resolved:
            name = resource.logical_name
            if creating & set(self.graph[name]):
                # Nothing to read while a dependency does not exist yet.
                current = None
            else:
                current = self.__read(resource, props)

            if current is None:
                creating.add(name)
                changes.append(Change("create", resource, props))
                continue
            details = resource.diff(props, current)
            action = "update" if details else "noop"
            changes.append(Change(action, resource, props, current, details))

        # State is written in apply order, so reversing it deletes dependents first.
        deletes = [
            Change("delete", resource, props, self.__read(resource, props), details)
            for resource, props, details in reversed(self.__stale(state, resolved))
        ]
        return deletes + changes, context

    def __record(self, state, change):
        state["resources"][change.logical_name] = {
            "Type": change.resource_type,
            "Properties": change.props,
            "Attributes": change.resource.attributes(change.props, self.provider),
        }

    def __call(self, state, change, method, *args):
        """Run one remote operation, keeping the state on failure."""
        try:
            method(self.client, *args)
        except (BotoCoreError, ClientError) as error:
            self.state_file.save(state)
            raise ResourceError(change.logical_name, change.action, error) from error

    def __deploy(self, dryrun):
        """Deploy stack changes with the minimal set of calls."""
        changes, context = self.__plan()
        if any(change.action != "noop" for change in changes):
            logger.info(f"Changes in {self.name} stack: \n{format_changes(changes)}")
        else:
            logger.info(f"No change in {self.name} stack.")

        if dryrun:
            logger.info("Skipping deployment as this is a dry run.")
            return None

        state = self.state_file.load()
        for change in changes:
            if change.action == "delete":
                if change.current is not None:
                    self.__call(state, change, change.resource.delete, change.props)
                state["resources"].pop(change.logical_name, None)
                self.state_file.save(state)
                continue

            if change.action == "create":
                self.__call(state, change, change.resource.create, change.props)
            elif change.action == "update":
                self.__call(
                    state, change, change.resource.update, change.props, change.current
                )
            self.__record(state, change)
            if change.action != "noop":
                logger.info(f"{change.action.capitalize()}d {change.logical_name}.")
                self.state_file.save(state)

        outputs = resolve(self.Outputs, context)
        state["outputs"] = outputs
        self.state_file.save(state)
        for name, value in outputs.items():
            logger.info(f"Output {name} = {value}")
        return outputs

    def __delete(self, dryrun):
        """Delete every resource recorded in the state file."""
        state = self.state_file.load()
        position = {
            resource.logical_name: index for index, resource in enumerate(self.order)
        }
        recorded = list(reversed(self.__recorded(state)))
        # Leftovers first, then declared resources in reverse dependency order.
        recorded.sort(
            key=lambda pair: position.get(pair[0].logical_name, len(position)),
            reverse=True,
        )

        targets = []
        for resource, props in recorded:
            if self.__read(resource, props) is None:
                logger.info(f"{resource.logical_name} is already gone.")
                continue
            targets.append(Change("delete", resource, props))

        if not targets:
            logger.info(f"Nothing to delete in {self.name} stack.")
        else:
            logger.info(f"Changes in {self.name} stack: \n{format_changes(targets)}")

        if dryrun:
            logger.info("Skipping deletion as this is a dry run.")
            return

        for change in targets:
            self.__call(state, change, change.resource.delete, change.props)
            state["resources"].pop(change.logical_name, None)
            logger.info(f"Deleted {change.logical_name}.")
            self.state_file.save(state)

        state["resources"] = {}
        state["outputs"] = {}
        self.state_file.save(state)
