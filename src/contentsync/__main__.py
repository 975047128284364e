"""
contentsync - Entry Point

Command line access to the capability matrix and the resource stores.
"""

import argparse
import asyncio
import json
import logging
import sys

from config import create_default_config, load_config

from .bootstrap import build_context
from .core.aggregates import dashboard_counts
from .core.capability_matrix import Action
from .core.errors import StoreError
from .core.roles import Role, parse_role

logger = logging.getLogger(__name__)


def cmd_permissions(args, context) -> int:
    """Print the capability matrix, optionally for one role"""
    table = context.matrix.to_dict()
    roles = [parse_role(args.role)] if args.role else list(Role)
    if None in roles:
        print(f"Unknown role: {args.role}", file=sys.stderr)
        return 2
    if len(roles) == 1:
        print(f"# {roles[0].label}")

    for resource, grants in table.items():
        cells = []
        for role in roles:
            grant = grants[role.value]
            flags = "".join(
                letter if grant[action] else "-"
                for letter, action in (("C", "create"), ("E", "edit"), ("D", "delete"))
            )
            cells.append(f"{role.value}={flags}")
        print(f"{resource:<14} {'  '.join(cells)}")
    return 0


def cmd_check(args, context) -> int:
    """Exit 0 when ROLE may perform ACTION on RESOURCE, 1 otherwise"""
    allowed = context.matrix.permit(args.role, args.resource, args.action)
    print("allow" if allowed else "deny")
    return 0 if allowed else 1


async def cmd_list(args, context) -> int:
    """Fetch and print a resource's rows"""
    store = context.registry.store_for(args.resource)
    try:
        rows = await store.list()
    except StoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    for row in rows[: args.limit] if args.limit else rows:
        print(json.dumps(row.model_dump(mode="json"), ensure_ascii=False))
    return 0


async def cmd_counts(args, context) -> int:
    """Print row totals for every resource"""
    stores = {name: context.registry.store_for(name) for name in context.registry.names()}
    counts = await dashboard_counts(stores)
    for name, total in counts.items():
        print(f"{name:<18} {total}")
    return 0


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="contentsync",
        description="Capability matrix and resource synchronizer for the content admin console",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show who may do what
  python -m contentsync permissions
  python -m contentsync permissions --role chef_projet

  # Gate a single action (exit code 0 = allowed)
  python -m contentsync check partenaire projects create

  # Fetch a collection through the ordering fallback chain
  python -m contentsync list news --limit 5

  # Dashboard totals via count-only queries
  python -m contentsync counts

  # Write a starter contentsync.yaml
  python -m contentsync init-config
"""
    )
    parser.add_argument('--config', '-c', help='Path to contentsync.yaml')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    permissions = subparsers.add_parser('permissions', help='Print the capability matrix')
    permissions.add_argument('--role', help='Only show this role')

    check = subparsers.add_parser('check', help='Check one permission')
    check.add_argument('role')
    check.add_argument('resource')
    check.add_argument('action', choices=[a.value for a in Action])

    list_parser = subparsers.add_parser('list', help='List rows of a resource')
    list_parser.add_argument('resource')
    list_parser.add_argument('--limit', type=int, default=0, help='Maximum rows to print')

    subparsers.add_parser('counts', help='Row totals per resource')

    init = subparsers.add_parser('init-config', help='Write a default contentsync.yaml')
    init.add_argument('--output', '-o', help='Output path')

    args = parser.parse_args(argv)

    if args.command == 'init-config':
        path = create_default_config(args.output)
        print(f"Wrote {path}")
        return 0

    config = load_config(args.config)
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if args.debug else config.logging.level)
    for handler in root.handlers:
        handler.setFormatter(logging.Formatter(config.logging.format))

    context = build_context(config)

    if args.command == 'permissions':
        return cmd_permissions(args, context)
    if args.command == 'check':
        return cmd_check(args, context)
    if args.command == 'list':
        if args.resource not in context.registry.resources:
            print(f"Unknown resource: {args.resource}", file=sys.stderr)
            return 2
        return await cmd_list(args, context)
    if args.command == 'counts':
        return await cmd_counts(args, context)
    return 2


def run():
    """Entry point for console script"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
