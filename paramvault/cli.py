from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from . import __version__, commands
from .environ import DEFAULT_STRICT_VALUE, EnvironError, build_environment
from .process import exec_command
from .store.config import load_settings
from .store.contracts import Store
from .store.errors import StoreError, ValidationError
from .store.factory import build_store
from .store.models import LATEST_VERSION, join_path, strip_prefix, validate_path
from .utils.yamlio import load_yaml_or_json

APP_NAME = "paramvault"

# Timestamp format for get/list tables.
SHORT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(APP_NAME)


def _setup_logging(verbose: bool) -> None:
    root = logging.getLogger(APP_NAME)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.propagate = False


def _store(args: argparse.Namespace) -> Store:
    injected = getattr(args, "store", None)
    if injected is not None:
        return injected
    settings = load_settings(
        cli_path=args.config,
        backend=args.backend,
        retries=args.retries,
        verbose=args.verbose,
    )
    if settings.verbose:
        logging.getLogger(APP_NAME).setLevel(logging.DEBUG)
    store = build_store(settings)
    logger.debug("using store %s", store.describe())
    return store


def _format_time(value) -> str:
    if value is None:
        return ""
    return value.astimezone().strftime(SHORT_TIME_FORMAT)


def _read_value(raw: str, singleline: bool) -> str:
    if raw != "-":
        return raw
    if singleline:
        return sys.stdin.readline().rstrip("\n")
    return sys.stdin.read()


def cmd_put(args: argparse.Namespace) -> int:
    name = commands.parameter_name(args.path)
    value = _read_value(args.value, bool(args.singleline))
    written = commands.put_if_changed(_store(args), name, value, secure=bool(args.secret))
    if not written:
        logger.debug("%s unchanged", name.key)
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    name = commands.parameter_name(args.path)
    config = _store(args).get(name, int(args.version))
    if args.quiet:
        print(config.value or "")
        return 0
    print("Key\tValue\tVersion\tSecure\tLastModified\tUser")
    print(
        f"{config.meta.key}\t{config.value or ''}\t{config.meta.version}\t{str(config.meta.secure).lower()}\t"
        f"{_format_time(config.meta.last_modified_date)}\t{config.meta.last_modified_user}"
    )
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    prefix = join_path(args.prefix)
    validate_path(prefix)
    configs = _store(args).list(prefix, include_values=bool(args.expand))
    configs = commands.sort_values(configs, by=args.sort)

    header = "Key\tVersion\tLastModified\tUser"
    if args.expand:
        header += "\tValue"
    print(header)
    for c in configs:
        row = (
            f"{strip_prefix(c.meta.key, prefix)}\t{c.meta.version}\t"
            f"{_format_time(c.meta.last_modified_date)}\t{c.meta.last_modified_user}"
        )
        if args.expand:
            row += f"\t{c.value or ''}"
        print(row)
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    commands.delete_keys(
        _store(args),
        args.path,
        recursive=bool(args.recursive),
        force=bool(args.force),
        dry_run=bool(args.dryrun),
        report=lambda key: print(f"Removing `{key}`"),
    )
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    if args.file == "-":
        data = load_yaml_or_json(sys.stdin)
    else:
        with Path(args.file).open("r", encoding="utf-8") as handle:
            data = load_yaml_or_json(handle)
    commands.import_values(
        _store(args),
        args.path,
        data,
        secure=bool(args.secret),
        report=lambda key: print(f"Importing `{key}`"),
    )
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    values = commands.export_values(_store(args), args.prefix)
    text = commands.render_export(values, args.format)
    if args.output_file:
        Path(args.output_file).write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)
    return 0


def cmd_exec(args: argparse.Namespace) -> int:
    command_argv: List[str] = list(getattr(args, "command_argv", None) or [])
    if not command_argv:
        raise ValidationError("must specify command to run after '--'. See usage")

    prefixes = []
    for p in args.prefixes:
        prefix = join_path(p)
        validate_path(prefix)
        prefixes.append(prefix)

    store = _store(args)
    if args.pristine:
        logger.debug("pristine mode engaged")
    if args.strict:
        logger.debug("strict mode engaged")

    env, collisions = build_environment(
        store,
        prefixes,
        seed=[f"{k}={v}" for k, v in os.environ.items()],
        strict=bool(args.strict),
        strict_value=args.strict_value,
        pristine=bool(args.pristine),
    )
    for prefix, name in collisions:
        logger.warning("configuration %s overwriting environment variable %s", prefix, name)

    exec_command(command_argv[0], command_argv[1:], env)
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    print(f"{APP_NAME} version {__version__}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=APP_NAME, description="CLI for managing configurations")
    p.add_argument("--verbose", action="store_true", default=None, help="Enable verbose output")
    p.add_argument("-b", "--backend", default=None, help="Backend to use: null (no-op) or ssm (SSM Parameter Store)")
    p.add_argument("-r", "--retries", type=int, default=None, help="For SSM, the number of retries to make before giving up")
    p.add_argument("--config", default=None, help="Settings YAML file")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("put", help="Put configuration to the system")
    sp.add_argument("path")
    sp.add_argument("value", help="Value, or '-' to read from stdin")
    sp.add_argument("--secret", action="store_true", help="Add configuration as secret value")
    sp.add_argument("-s", "--singleline", action="store_true", help="Read a single line from stdin")
    sp.set_defaults(func=cmd_put)

    sp = sub.add_parser("get", help="Get configuration from the system")
    sp.add_argument("path")
    sp.add_argument("-v", "--version", type=int, default=LATEST_VERSION, help="Version number; defaults to latest")
    sp.add_argument("-q", "--quiet", action="store_true", help="Only print the value")
    sp.set_defaults(func=cmd_get)

    sp = sub.add_parser("list", help="List configurations under a prefix")
    sp.add_argument("prefix")
    sp.add_argument("-e", "--expand", action="store_true", help="Include values")
    sort = sp.add_mutually_exclusive_group()
    sort.add_argument("-t", "--time", dest="sort", action="store_const", const="time", help="Sort by modified time")
    sort.add_argument("-u", "--user", dest="sort", action="store_const", const="user", help="Sort by user")
    sort.add_argument("-v", "--version", dest="sort", action="store_const", const="version", help="Sort by version")
    sp.set_defaults(func=cmd_list, sort="name")

    sp = sub.add_parser("delete", help="Delete configurations, including all versions")
    sp.add_argument("path")
    sp.add_argument("--recursive", action="store_true", help="Delete recursively")
    sp.add_argument("--force", action="store_true", help="Allow a recursive delete operation")
    sp.add_argument("--dryrun", action="store_true", help="Only print what would be removed")
    sp.set_defaults(func=cmd_delete)

    sp = sub.add_parser("import", help="Import configurations from a JSON or YAML file")
    sp.add_argument("path")
    sp.add_argument("file", help="File, or '-' for stdin")
    sp.add_argument("--secret", action="store_true", help="Add configurations as secrets")
    sp.set_defaults(func=cmd_import)

    sp = sub.add_parser("export", help="Export configurations under a prefix")
    sp.add_argument("prefix")
    sp.add_argument("-f", "--format", default="json", choices=commands.EXPORT_FORMATS)
    sp.add_argument("-o", "--output-file", default="", help="Output file (default is standard output)")
    sp.set_defaults(func=cmd_export)

    sp = sub.add_parser("exec", help="Execute a command with configurations loaded into the environment")
    sp.add_argument("prefixes", nargs="+", metavar="prefix")
    sp.add_argument("--pristine", action="store_true", help="Do not inherit existing environment variables")
    sp.add_argument(
        "--strict",
        action="store_true",
        help="Only inject values for env vars set to --strict-value, failing if any of those is missing from the store",
    )
    sp.add_argument("--strict-value", default=DEFAULT_STRICT_VALUE, help="Value to expect in --strict mode")
    sp.set_defaults(func=cmd_exec)

    sp = sub.add_parser("version", help="Print the paramvault version")
    sp.set_defaults(func=cmd_version)

    return p


def _split_command(argv: Sequence[str]) -> tuple:
    """Split "exec ... -- cmd args" into the paramvault part and the command part."""
    argv = list(argv)
    if "exec" in argv and "--" in argv and argv.index("exec") < argv.index("--"):
        ix = argv.index("--")
        return argv[:ix], argv[ix + 1 :]
    return argv, []


def main(argv: Optional[Sequence[str]] = None, *, store: Optional[Store] = None) -> int:
    own_argv, command_argv = _split_command(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(own_argv)
    args.command_argv = command_argv
    args.store = store

    _setup_logging(bool(args.verbose))
    try:
        return int(args.func(args) or 0)
    except (StoreError, EnvironError, OSError) as e:
        print(f"{APP_NAME}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
