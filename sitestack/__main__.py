#!/usr/bin/env python3
"""
Cli interface for sitestack
"""
import argparse
import sys

from botocore.exceptions import BotoCoreError

from .errors import SiteStackError
from .state import DEFAULT_STATE_FILE
from .variables import load_variable_file, parse_assignments
from .website import StaticSite


def build_parser():
    """Argument parser with one subcommand per operation."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--var-file",
        action="append",
        default=[],
        help="YAML or JSON file with variable values, may be repeated.",
    )
    common.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Set a single variable, may be repeated.",
    )
    common.add_argument(
        "--state", default=DEFAULT_STATE_FILE, help="Path of the state file."
    )
    common.add_argument(
        "--source-dir", default=".", help="Directory holding index.html."
    )

    parser = argparse.ArgumentParser(
        prog="sitestack", description="Deploy a static website bucket on S3."
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("plan", parents=[common], help="Show pending changes.")
    apply = commands.add_parser("apply", parents=[common], help="Apply changes.")
    apply.add_argument("--dry-run", action="store_true")
    destroy = commands.add_parser(
        "destroy", parents=[common], help="Delete every managed resource."
    )
    destroy.add_argument("--dry-run", action="store_true")
    commands.add_parser("output", parents=[common], help="Print the last outputs.")
    show = commands.add_parser("show", parents=[common], help="Print the stack.")
    show.add_argument("--format", choices=["yaml", "json"], default="yaml")
    return parser


def load_variables(args, stack_class=StaticSite):
    """Merge variable files and command line assignments, later ones win."""
    values = {}
    for path in args.var_file:
        values.update(load_variable_file(path))
    values.update(parse_assignments(args.var, stack_class.Parameters))
    return values


def print_outputs(outputs):
    """Print outputs as `name = value` lines."""
    for name, value in outputs.items():
        print(f"{name} = {value}")


def run(args, stack_class=StaticSite):
    """Execute a parsed command."""
    if args.command in ("output", "show"):
        stack = stack_class(state_path=args.state, source_dir=args.source_dir)
        if args.command == "output":
            print_outputs(stack.outputs)
        else:
            print(stack.yaml if args.format == "yaml" else stack.json)
        return

    stack = stack_class(
        variables=load_variables(args, stack_class),
        state_path=args.state,
        source_dir=args.source_dir,
    )
    if args.command == "plan":
        stack.deploy(dryrun=True)
    elif args.command == "apply":
        outputs = stack.deploy(dryrun=args.dry_run)
        if outputs is not None:
            print_outputs(outputs)
    else:
        stack.delete(dryrun=args.dry_run)


def main(argv=None):
    """Entry point of the sitestack command."""
    args = build_parser().parse_args(argv)
    try:
        run(args)
    except (SiteStackError, BotoCoreError, OSError) as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
