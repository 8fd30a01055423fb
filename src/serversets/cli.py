"""CLI entry point for serversets."""

import argparse
import json
import sys
import time
from contextlib import contextmanager

from kazoo.exceptions import KazooException

from .config import ServerSetConfig, load_config, merge_cli_args
from .entity import Endpoint
from .errors import HierarchyNotFoundError, ServerSetError
from .paths import expand_to_ancestor_chain
from .serverset import ServerSet


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add identity and namespace flags shared by all subcommands."""
    parser.add_argument("--config", type=str, help="Path to YAML config file")
    parser.add_argument("--role", type=str, help="Role (usually the owning user or team)")
    parser.add_argument("--environment", type=str, help="Environment, e.g. prod or devel")
    parser.add_argument("--service", type=str, help="Service name (no slashes)")
    parser.add_argument(
        "--zookeepers", type=str,
        help="Comma-separated list of ZooKeeper host:port entries",
    )
    parser.add_argument(
        "--base-directory", type=str, dest="base_directory",
        help="ZooKeeper namespace all server sets live under (default: /aurora)",
    )
    parser.add_argument(
        "--member-prefix", type=str, dest="member_prefix",
        help="Name prefix of member znodes (default: member_)",
    )
    parser.add_argument(
        "--zk-timeout", type=float, dest="zk_timeout",
        help="ZooKeeper connection timeout in seconds (default: 5)",
    )


def _build_config(args) -> ServerSetConfig:
    """Build a ServerSetConfig from a config file + CLI overrides."""
    if args.config:
        config = load_config(args.config)
    else:
        config = ServerSetConfig()
    return merge_cli_args(config, args)


def _build_serverset(args) -> ServerSet:
    config = _build_config(args)
    missing = [name for name in ("role", "environment", "service") if not getattr(config, name)]
    if missing:
        print(
            f"Error: --{', --'.join(missing)} required (or set in the config file).",
            file=sys.stderr,
        )
        sys.exit(1)
    return ServerSet(
        config.role, config.environment, config.service,
        config.zookeepers, config=config.namespace,
    )


@contextmanager
def _connected(serverset: ServerSet):
    client = serverset.connect()
    try:
        yield client
    finally:
        client.stop()
        client.close()


def _wait_forever() -> None:
    """Block until Ctrl-C."""
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("", file=sys.stderr)


def _format_endpoints(endpoints: list[str], fmt: str) -> str:
    if fmt == "json":
        return json.dumps(endpoints, indent=2)
    return "\n".join(endpoints) if endpoints else "(no members)"


def _parse_additional(values: list[str] | None) -> dict[str, Endpoint]:
    """Parse NAME=HOST:PORT entries."""
    additional = {}
    for value in values or []:
        try:
            name, address = value.split("=", 1)
            host, port = address.rsplit(":", 1)
            additional[name] = Endpoint(host, int(port))
        except ValueError:
            print(f"Error: invalid additional endpoint '{value}' (expected NAME=HOST:PORT).",
                  file=sys.stderr)
            sys.exit(1)
    return additional


def cmd_path(args) -> None:
    """Print the namespace path and the directories it is made of."""
    serverset = _build_serverset(args)
    print(serverset.directory_path)
    if args.ancestors:
        for path in expand_to_ancestor_chain(serverset.directory_path):
            print(f"  {path}")


def cmd_ensure(args) -> None:
    serverset = _build_serverset(args)
    with _connected(serverset) as client:
        serverset.ensure_hierarchy_exists(client)
    print(f"Ensured {serverset.directory_path}", file=sys.stderr)


def cmd_check(args) -> None:
    serverset = _build_serverset(args)
    with _connected(serverset) as client:
        try:
            serverset.verify_hierarchy_exists(client)
        except HierarchyNotFoundError as exc:
            print(f"Missing: {exc.path}", file=sys.stderr)
            sys.exit(1)
    print(f"{serverset.directory_path} exists", file=sys.stderr)


def cmd_list(args) -> None:
    serverset = _build_serverset(args)
    with _connected(serverset) as client:
        endpoints = serverset.endpoints(client)
    print(_format_endpoints(endpoints, args.format))


def cmd_register(args) -> None:
    """Join the server set and stay registered until interrupted."""
    serverset = _build_serverset(args)
    additional = _parse_additional(args.additional)
    membership = serverset.register_endpoint(
        args.host, args.port, additional_endpoints=additional, shard=args.shard,
    )
    with membership:
        print(f"Registered {args.host}:{args.port} at {membership.path}", file=sys.stderr)
        _wait_forever()
    print(f"Deregistered {args.host}:{args.port}", file=sys.stderr)


def cmd_watch(args) -> None:
    """Print the endpoint list every time it changes."""
    serverset = _build_serverset(args)

    def on_change(endpoints: list[str]) -> None:
        print(_format_endpoints(endpoints, args.format), flush=True)
        if args.format == "text":
            print("--", flush=True)

    print(f"Watching {serverset.directory_path}", file=sys.stderr)
    with serverset.watch(callback=on_change):
        _wait_forever()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="serversets",
        description="Register and discover services through ZooKeeper server sets",
    )
    subparsers = parser.add_subparsers(dest="command")

    # path
    path_parser = subparsers.add_parser("path", help="Print the namespace path (no network)")
    _add_common_args(path_parser)
    path_parser.add_argument(
        "--ancestors", action="store_true",
        help="Also print every directory znode along the path",
    )
    path_parser.set_defaults(func=cmd_path)

    # ensure
    ensure_parser = subparsers.add_parser("ensure", help="Create the directory znodes")
    _add_common_args(ensure_parser)
    ensure_parser.set_defaults(func=cmd_ensure)

    # check
    check_parser = subparsers.add_parser("check", help="Verify the directory znodes exist")
    _add_common_args(check_parser)
    check_parser.set_defaults(func=cmd_check)

    # list
    list_parser = subparsers.add_parser("list", help="List ALIVE members")
    _add_common_args(list_parser)
    list_parser.add_argument(
        "--format", choices=["text", "json"], default="text",
        help="Output format (default: text)",
    )
    list_parser.set_defaults(func=cmd_list)

    # register
    register_parser = subparsers.add_parser(
        "register", help="Register an endpoint until interrupted",
    )
    _add_common_args(register_parser)
    register_parser.add_argument("--host", type=str, required=True, help="Endpoint host")
    register_parser.add_argument("--port", type=int, required=True, help="Endpoint port")
    register_parser.add_argument("--shard", type=int, default=0, help="Shard index (default: 0)")
    register_parser.add_argument(
        "--additional", action="append", metavar="NAME=HOST:PORT",
        help="Additional named endpoint (repeatable)",
    )
    register_parser.set_defaults(func=cmd_register)

    # watch
    watch_parser = subparsers.add_parser("watch", help="Print members as they change")
    _add_common_args(watch_parser)
    watch_parser.add_argument(
        "--format", choices=["text", "json"], default="text",
        help="Output format (default: text)",
    )
    watch_parser.set_defaults(func=cmd_watch)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except (ServerSetError, KazooException) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
