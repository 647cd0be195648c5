#!/usr/bin/env python3
"""Main Entry Point and CLI Integration.

Command-line interface for the issuegraph dependency engine. Every command
takes a root item id and an optional ``--output`` file; results go to stdout
otherwise, logs go to stderr.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import structlog

from issuegraph.config import IssueGraphConfig, load_config
from issuegraph.errors import DependencyError, SelfDependencyError
from issuegraph.log_config import bind_command_context, clear_context, configure_logging
from issuegraph.manager import RENDER_FORMATS, DependencyManager
from issuegraph.models import ItemResult

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def write_output(text: str, destination: str | None) -> None:
    """Write ``text`` to ``destination`` or stdout.

    Args:
        text: Rendered output
        destination: File path, or None for stdout
    """
    if destination:
        path = Path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
        logger.info("output_written", path=str(path), bytes=len(text))
    else:
        sys.stdout.write(text + "\n")


def _format_results(results: list[ItemResult] | list[str]) -> str:
    lines = []
    for result in results:
        if isinstance(result, ItemResult):
            suffix = f" ({result.error})" if result.error else f" {result.title}"
            lines.append(f"#{result.item_id} [{result.state.value}]{suffix}".rstrip())
        else:
            lines.append(f"#{result}")
    return "\n".join(lines)


def _to_json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2)


async def run_command(manager: DependencyManager, args: argparse.Namespace) -> int:
    """Dispatch one parsed command to the manager.

    Args:
        manager: Configured dependency manager
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    command = args.command
    item_id = args.item

    if command == "add":
        added = await manager.add_dependency(item_id, args.target)
        state = "added" if added else "already present"
        write_output(f"#{item_id} depends on #{args.target} ({state})", args.output)
        return EXIT_OK

    if command == "remove":
        removed = await manager.remove_dependency(item_id, args.target)
        state = "removed" if removed else "not present"
        write_output(f"#{item_id} -> #{args.target} ({state})", args.output)
        return EXIT_OK

    if command == "get":
        deps = await manager.get_dependencies(item_id, detailed=args.detailed)
        write_output(_format_results(deps) or f"#{item_id} has no dependencies", args.output)
        return EXIT_OK

    if command == "blocked":
        dependents = await manager.get_blocked_items(item_id, detailed=args.detailed)
        write_output(
            _format_results(dependents) or f"No items depend on #{item_id}",
            args.output,
        )
        return EXIT_OK

    if command == "validate":
        result = await manager.validate_dependencies(
            item_id,
            recursive=args.recursive,
            use_cache=not args.no_cache,
        )
        write_output(_to_json(result.to_dict()), args.output)
        return EXIT_OK if result.valid else EXIT_FAILURE

    if command == "circular":
        check = await manager.detect_circular_dependencies(item_id)
        write_output(_to_json(check.to_dict()), args.output)
        return EXIT_FAILURE if check.has_circular else EXIT_OK

    if command == "can-close":
        decision = await manager.can_close(item_id, use_cache=not args.no_cache)
        write_output(_to_json(decision.to_dict()), args.output)
        return EXIT_OK if decision.can_close else EXIT_FAILURE

    if command == "status":
        status = await manager.dependency_status(item_id)
        write_output(_to_json(status.to_dict()), args.output)
        return EXIT_OK

    rendered = await manager.render(item_id, command, max_depth=args.max_depth)
    write_output(rendered, args.output)
    return EXIT_OK


def _load(args: argparse.Namespace) -> IssueGraphConfig:
    overrides: dict[str, Any] = {"storage": {"mode": args.mode}}
    if args.log_level != "INFO":
        overrides["logging_level"] = args.log_level
    return load_config(args.config, overrides)


async def main_async(args: argparse.Namespace) -> int:
    """Main async entry point.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for failure or a negative check)
    """
    configure_logging(args.log_level, json_logs=not args.console_logs)
    bind_command_context(args.command, item_id=args.item)
    logger.debug("command_started")

    try:
        config = _load(args)
        configure_logging(config.logging_level, json_logs=not args.console_logs)

        for warning in config.validate_config():
            logger.debug("configuration_warning", message=warning)

        async with DependencyManager.from_config(config) as manager:
            return await run_command(manager, args)

    except SelfDependencyError as e:
        logger.error("self_dependency_rejected", error=e.message)
        return EXIT_FAILURE

    except DependencyError as e:
        logger.exception("dependency_operation_failed", error=e.message)
        return EXIT_FAILURE

    except FileNotFoundError as e:
        logger.exception("configuration_file_not_found", error=str(e))
        return EXIT_FAILURE

    except ValueError as e:
        logger.exception("configuration_validation_error", error=str(e))
        return EXIT_FAILURE

    finally:
        clear_context()


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="issuegraph",
        description="Dependency graph engine for GitHub issues",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Issue 12 depends on issue 7
  issuegraph add 12 7

  # Is issue 12 safe to close?
  issuegraph can-close 12

  # Render the dependency tree as Mermaid into a file
  issuegraph mermaid 12 --output deps.mmd

  # Work offline against the local cache
  issuegraph --mode local tree 12
        """,
    )

    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="Path to configuration YAML file (default: issuegraph.yaml or environment)",
    )
    parser.add_argument(
        "--mode",
        choices=["label", "native", "local"],
        default=None,
        help="Override the configured storage mode",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug output (DEBUG level)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set logging level (default: INFO)",
    )
    parser.add_argument(
        "--console-logs",
        action="store_true",
        help="Render logs for humans instead of JSON",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_command(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("item", help="Item (issue) id")
        sub.add_argument("-o", "--output", default=None, help="Write output to this file")
        return sub

    for name, help_text in (
        ("add", "Record that ITEM depends on TARGET"),
        ("remove", "Remove the dependency of ITEM on TARGET"),
    ):
        add_command(name, help_text).add_argument("target", help="Dependency item id")

    for name, help_text in (
        ("get", "List the items ITEM depends on"),
        ("blocked", "List the items that depend on ITEM"),
    ):
        add_command(name, help_text).add_argument(
            "--detailed",
            action="store_true",
            help="Resolve titles and states",
        )

    validate = add_command("validate", "Check whether ITEM's dependencies are closed")
    validate.add_argument("--recursive", action="store_true", help="Include transitive dependencies")
    validate.add_argument("--no-cache", action="store_true", help="Bypass the validation cache")

    add_command("circular", "Detect circular dependencies reachable from ITEM")

    can_close = add_command("can-close", "Decide whether ITEM can be closed")
    can_close.add_argument("--no-cache", action="store_true", help="Bypass the validation cache")

    add_command("status", "Summarize ITEM's dependencies and dependents")

    for name in RENDER_FORMATS:
        add_command(name, f"Render the dependency graph of ITEM as {name}").add_argument(
            "--max-depth",
            type=int,
            default=None,
            help="Override the configured traversal depth",
        )

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    args = build_parser().parse_args(argv)
    if args.debug:
        args.log_level = "DEBUG"
    return args


def main() -> None:
    """Main entry point for the CLI."""
    args = parse_args()

    try:
        exit_code = asyncio.run(main_async(args))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
