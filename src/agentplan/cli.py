"""CLI entry point for agentplan."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import cast

from agentplan import __version__
from agentplan.config import ResolverConfig, load_resolver_config
from agentplan.registry.errors import AgentPlanError
from agentplan.registry.loader import load_catalog
from agentplan.registry.models import normalize_category
from agentplan.workflow.reporter import exit_code, summarize
from agentplan.workflow.session import ResolutionSession


def _parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def _parse_picks(values: list[str] | None) -> dict[str, str]:
    picks: dict[str, str] = {}
    for raw in values or []:
        category, sep, agent_id = raw.partition("=")
        if not sep or not category.strip() or not agent_id.strip():
            raise argparse.ArgumentTypeError(f"--pick expects CATEGORY=AGENT_ID, got '{raw}'")
        picks[category.strip()] = agent_id.strip()
    return picks


def _emit(payload: dict[str, object]) -> None:
    print(json.dumps(payload, indent=2))


def _emit_error(error: AgentPlanError) -> None:
    _emit({"error": {"kind": error.kind.value, "message": error.message}})


def _load_config(args: argparse.Namespace) -> ResolverConfig:
    config_path = cast(Path | None, args.config)
    config = load_resolver_config(config_path)
    if args.dir is not None:
        config.agents_dir = str(args.dir)
    if getattr(args, "workers", None) is not None:
        config.workers = cast(int, args.workers)
    if getattr(args, "timeout", None) is not None:
        config.load_timeout = cast(float, args.timeout)
    if getattr(args, "strict", False):
        config.strict = True
    if args.log_level is not None:
        config.log_level = cast(str, args.log_level).upper()
    return config


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _cmd_resolve(args: argparse.Namespace, config: ResolverConfig) -> int:
    try:
        picks = _parse_picks(cast(list[str] | None, args.pick))
    except argparse.ArgumentTypeError as e:
        _emit({"error": {"kind": "UsageError", "message": str(e)}})
        return 1

    categories = _parse_csv(cast(str | None, args.categories)) or None
    session = ResolutionSession(config)
    result = session.run(
        categories=categories,
        stack=_parse_csv(cast(str | None, args.stack)),
        picks=picks,
    )

    if result.fatal is not None:
        _emit_error(result.fatal)
    elif result.plan is not None:
        _emit(result.plan.to_output())

    if result.issues and result.summary is not None:
        print(result.summary.report, file=sys.stderr)
    return result.exit_code


def _cmd_validate(_args: argparse.Namespace, config: ResolverConfig) -> int:
    session = ResolutionSession(config)
    try:
        session.load()
    except AgentPlanError as e:
        summary = summarize([*session.issues, e.to_issue()])
        print(summary.report)
        return exit_code(summary, e)

    summary = summarize(session.issues)
    print(summary.report)
    return exit_code(summary)


def _cmd_list(args: argparse.Namespace, config: ResolverConfig) -> int:
    graph = config.phase_graph()
    try:
        loaded = load_catalog(
            config.agents_dir or Path.cwd(),
            phase_table=graph.phase_table,
            workers=config.workers,
            timeout=config.load_timeout,
            exclude_names=config.exclude_names,
        )
    except AgentPlanError as e:
        _emit_error(e)
        return exit_code(summarize([]), e)

    category = normalize_category(args.category) if args.category else None
    records = (
        loaded.registry.list_by_category(category) if category else loaded.registry.all_records()
    )
    _emit(
        {
            "agents": [
                {
                    "id": r.id,
                    "name": r.name,
                    "category": r.category,
                    "phase": r.phase,
                    "stack_tags": sorted(r.stack_tags),
                    "source_path": r.source_path,
                }
                for r in records
            ]
        }
    )
    return 0


def _cmd_phases(_args: argparse.Namespace, config: ResolverConfig) -> int:
    graph = config.phase_graph()
    try:
        phases = graph.build()
    except AgentPlanError as e:
        _emit_error(e)
        return exit_code(summarize([]), e)

    _emit(
        {
            "phases": [{"ordinal": p.ordinal, "categories": list(p.categories)} for p in phases],
            "precedence": [list(edge) for edge in graph.edges()],
        }
    )
    return 0


def _add_common(p: argparse.ArgumentParser, *, catalog: bool = True) -> None:
    if catalog:
        _ = p.add_argument(
            "--dir",
            type=Path,
            default=None,
            help="Agent catalog directory (default: $AGENTS_DIR or the current directory)",
        )
        _ = p.add_argument("--workers", type=int, default=None, help="Parser thread count")
        _ = p.add_argument(
            "--timeout", type=float, default=None, help="Load deadline in seconds"
        )
    else:
        p.set_defaults(dir=None)
    _ = p.add_argument(
        "--config", type=Path, default=None, help="Path to agentplan.json (default: ./agentplan.json)"
    )
    _ = p.add_argument(
        "--log-level",
        default=None,
        dest="log_level",
        help="Logging level for stderr (default: WARNING)",
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="agentplan",
        description="Resolve phase-ordered agent workflows from an agent catalog",
    )
    _ = parser.add_argument(
        "-V", "--version", action="version", version=f"agentplan {__version__}"
    )
    subparsers = parser.add_subparsers(dest="command")

    # resolve subcommand
    resolve_p = subparsers.add_parser("resolve", help="Build a workflow plan as JSON")
    _add_common(resolve_p)
    _ = resolve_p.add_argument(
        "--stack", default=None, help="Comma-separated stack tags, e.g. react,typescript"
    )
    _ = resolve_p.add_argument(
        "--categories",
        default=None,
        help="Comma-separated categories (default: every ranked category)",
    )
    _ = resolve_p.add_argument(
        "--pick",
        action="append",
        default=None,
        metavar="CATEGORY=AGENT_ID",
        help="Force a specific agent for a category (repeatable)",
    )
    _ = resolve_p.add_argument(
        "--strict", action="store_true", help="Treat unresolved categories as errors"
    )

    # validate subcommand
    validate_p = subparsers.add_parser("validate", help="Load the catalog and report issues")
    _add_common(validate_p)

    # list subcommand
    list_p = subparsers.add_parser("list", help="List catalog agents as JSON")
    _add_common(list_p)
    _ = list_p.add_argument("--category", default=None, help="Only this category")

    # phases subcommand
    phases_p = subparsers.add_parser("phases", help="Show the phase order as JSON")
    _add_common(phases_p, catalog=False)

    args = parser.parse_args(argv if argv is not None else sys.argv[1:])
    dispatch = {
        "resolve": _cmd_resolve,
        "validate": _cmd_validate,
        "list": _cmd_list,
        "phases": _cmd_phases,
    }
    command = cast(str | None, args.command)
    handler = dispatch.get(command) if command is not None else None
    if handler is None:
        parser.print_help()
        sys.exit(1)

    config = _load_config(args)
    _configure_logging(config.log_level)
    sys.exit(handler(args, config))
