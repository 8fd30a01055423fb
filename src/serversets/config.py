"""Configuration loading and merging for serversets."""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Callable, Optional

import yaml


# Finagle server sets name their member znodes member_0000000001, ...
MEMBER_PREFIX = "member_"

BASE_DIRECTORY = "/aurora"

DEFAULT_ZK_TIMEOUT = 5.0  # seconds

DEFAULT_PATH_TEMPLATE = "{base}/{role}/{environment}/{service}"


PathFormatter = Callable[[str, str, str], str]


@dataclass(frozen=True)
class NamespaceConfig:
    """Where and how server set members live in ZooKeeper.

    ``base_directory`` must begin with ``/``. ``path_formatter``, when set,
    takes ``(role, environment, service)`` and returns the full directory
    path, overriding ``path_template``.
    """
    base_directory: str = BASE_DIRECTORY
    member_prefix: str = MEMBER_PREFIX
    zk_timeout: float = DEFAULT_ZK_TIMEOUT
    path_template: str = DEFAULT_PATH_TEMPLATE
    path_formatter: Optional[PathFormatter] = None

    def format_path(self, role: str, environment: str, service: str) -> str:
        """Return the directory path for the given identity."""
        if self.path_formatter is not None:
            return self.path_formatter(role, environment, service)
        return self.path_template.format(
            base=self.base_directory,
            role=role,
            environment=environment,
            service=service,
        )


DEFAULT_NAMESPACE = NamespaceConfig()


@dataclass
class ServerSetConfig:
    role: str = ""
    environment: str = ""
    service: str = ""

    # ZooKeeper ensemble as host:port strings
    zookeepers: list[str] = field(default_factory=list)

    namespace: NamespaceConfig = DEFAULT_NAMESPACE


# Fields that live on NamespaceConfig and may be given on the command line
_NAMESPACE_FIELDS = {"base_directory", "member_prefix", "zk_timeout", "path_template"}


def parse_zookeepers(value) -> list[str]:
    """Accept a list or a comma-separated string of host:port entries."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


def load_config(path: str | Path) -> ServerSetConfig:
    """Load a ServerSetConfig from a YAML file."""
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    # Namespace settings may be nested under 'namespace' or given at top level
    raw_namespace = data.pop("namespace", None) or {}
    for key in _NAMESPACE_FIELDS:
        if key in data and key not in raw_namespace:
            raw_namespace[key] = data[key]
    ns_fields = {k: v for k, v in raw_namespace.items() if k in _NAMESPACE_FIELDS}
    if "zk_timeout" in ns_fields:
        ns_fields["zk_timeout"] = float(ns_fields["zk_timeout"])
    namespace = NamespaceConfig(**ns_fields)

    valid_fields = {f.name for f in fields(ServerSetConfig)} - {"namespace"}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    if "zookeepers" in filtered:
        filtered["zookeepers"] = parse_zookeepers(filtered["zookeepers"])

    return ServerSetConfig(**filtered, namespace=namespace)


def merge_cli_args(config: ServerSetConfig, args) -> ServerSetConfig:
    """Overlay CLI arguments onto an existing config. CLI values take precedence."""
    for name in ("role", "environment", "service"):
        cli_val = getattr(args, name, None)
        if cli_val is not None:
            setattr(config, name, cli_val)

    zookeepers = getattr(args, "zookeepers", None)
    if zookeepers is not None:
        config.zookeepers = parse_zookeepers(zookeepers)

    overrides = {}
    for name in _NAMESPACE_FIELDS:
        cli_val = getattr(args, name, None)
        if cli_val is not None:
            overrides[name] = cli_val
    if overrides:
        config.namespace = replace(config.namespace, **overrides)
    return config
