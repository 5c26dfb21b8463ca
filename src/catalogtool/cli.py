"""Command line interface for catalogtool."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import IntPrompt

from .additions import dump_additions
from .api import (
    AddOptions,
    add_entries,
    dependency_names,
    dump_entry,
    extract_catalog_text,
    inspect_catalog,
    open_catalog,
    resolve_internal_id,
)
from .container import register_backend_by_name
from .errors import CatalogError
from .logging import configure_logging, get_logger
from .reporting import (
    REPORTER_NAMES,
    get_reporter,
    make_reporter,
    set_reporter,
    set_verbosity,
)


def _choose_interactively(query: str, candidates: Sequence[str]) -> Optional[str]:
    """Let the user pick one of several matching InternalIds."""
    if not sys.stdin.isatty():
        return None
    console = Console(stderr=True, highlight=False)
    console.print(
        f"Some InternalIds matching [bold]{escape(query)}[/] have been found, pick one:"
    )
    for i, name in enumerate(candidates):
        console.print(f"  [cyan]{i}[/] {escape(name)}")
    index = IntPrompt.ask(
        "Selection",
        console=console,
        choices=[str(i) for i in range(len(candidates))],
    )
    return candidates[index]


def _add_cmd(args: argparse.Namespace) -> int:
    add_entries(
        AddOptions(
            catalog_path=args.catalog,
            additions_path=args.additions,
            output_path=args.output,
            bundled=args.bundled,
            extra_index=args.extra_index,
        )
    )
    return 0


def _dependencies_cmd(args: argparse.Namespace) -> int:
    catalog = open_catalog(args.catalog, bundled=args.bundled)
    iid = resolve_internal_id(catalog, args.internal_id, _choose_interactively)
    names = dependency_names(catalog, iid, transitive=args.transitive)
    for name in names:
        print(f"Dependency found: {name}")
    get_reporter().summary(
        "dependencies", count=len(names), transitive=args.transitive
    )
    return 0


def _dump_cmd(args: argparse.Namespace) -> int:
    catalog = open_catalog(args.catalog, bundled=args.bundled)
    iid = resolve_internal_id(catalog, args.internal_id, _choose_interactively)
    additions = dump_entry(catalog, iid)
    dump_additions(additions, args.output)
    get_reporter().summary(
        "dump",
        bundles=len(additions.bundles),
        prefabs=len(additions.prefabs),
        output=args.output.name,
    )
    return 0


def _extract_cmd(args: argparse.Namespace) -> int:
    size = extract_catalog_text(args.catalog, args.output)
    get_reporter().summary("extract", output=args.output.name, bytes=size)
    return 0


def _inspect_cmd(args: argparse.Namespace) -> int:
    catalog = open_catalog(args.catalog, bundled=args.bundled)
    info = inspect_catalog(catalog)
    if args.json:
        print(json.dumps(info, indent=2, sort_keys=True))
    else:
        get_reporter().summary(
            "catalog",
            **{k: v for k, v in info.items() if not isinstance(v, dict)},
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="catalogtool",
        description="Command-line tool to consult and edit a Unity Addressables catalog",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=REPORTER_NAMES,
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    p.add_argument(
        "-b",
        "--bundled",
        action="store_true",
        help="Treat the catalog as a bundle (needs a container backend)",
    )
    p.add_argument(
        "--container-backend",
        dest="container_backend",
        default=os.getenv("CATALOGTOOL_CONTAINER_BACKEND"),
        help="'module:callable' loading bundle containers"
        " (default: $CATALOGTOOL_CONTAINER_BACKEND)",
    )
    p.add_argument(
        "catalog",
        type=Path,
        help="Path to the catalog file as a bundle or a JSON",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    a = sub.add_parser("add", help="Append new entries to the catalog")
    a.add_argument("output", type=Path, help="Output path for the catalog file")
    a.add_argument(
        "additions",
        type=Path,
        help="TOML/YAML/JSON file with the entries to append",
    )
    a.add_argument(
        "--extra-index",
        dest="extra_index",
        type=int,
        default=None,
        help="Extra-data record copied onto new bundles (default: last record)",
    )
    a.set_defaults(func=_add_cmd)

    d = sub.add_parser("dependencies", help="Output dependencies for a prefab")
    d.add_argument(
        "internal_id",
        help="InternalId (or a fragment of it) to find dependencies for",
    )
    d.add_argument(
        "--transitive",
        action="store_true",
        help="Expand dependencies of dependencies",
    )
    d.set_defaults(func=_dependencies_cmd)

    x = sub.add_parser("extract", help="Extract the JSON from a bundle file")
    x.add_argument("output", type=Path, help="Output path for the JSON file")
    x.set_defaults(func=_extract_cmd)

    du = sub.add_parser(
        "dump",
        help="Output an additions file describing an existing catalog entry",
    )
    du.add_argument("internal_id", help="InternalId (or a fragment of it) to dump")
    du.add_argument(
        "output",
        type=Path,
        help="Output path for the dumped entry (.toml/.yaml/.json)",
    )
    du.set_defaults(func=_dump_cmd)

    i = sub.add_parser("inspect", help="Summarize the catalog tables")
    i.add_argument("--json", action="store_true", help="Emit JSON summary")
    i.set_defaults(func=_inspect_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    set_reporter(make_reporter(args.reporter, interactive=sys.stderr.isatty()))
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    rep = get_reporter()
    try:
        if args.container_backend:
            register_backend_by_name(args.container_backend)
        return args.func(args)
    except CatalogError as e:
        rep.error(e.message)
        get_logger().debug("error context: %s", e.context)
        return 1
    except OSError as e:
        rep.error(f"An error happened while accessing {e.filename or 'a file'}: {e.strerror or e}")
        return 1
    finally:
        rep.flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
