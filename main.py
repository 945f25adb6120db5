"""
Azure DevOps Work Item Creator

Creates or updates Azure DevOps work items from JSON specification files,
and lists the work items and area paths of a project. Work items created by
this tool are tagged so later runs update them instead of creating
duplicates, while work items created by others are left alone.
"""

import argparse
import os
import sys
from typing import List, Optional

from loguru import logger

import constants
from exceptions import WorkItemCreatorError
from spec_loader import load_spec
from work_item_executor import WorkItemExecutor

COMMANDS = ("create", "list")


def configure_logging(console_level: str = constants.LOGGING_LEVEL) -> None:
    """Configure loguru logging with both file and console output."""
    logger.remove()
    os.makedirs(constants.DATA_DIR, exist_ok=True)
    # File Logging
    logger.add(
        constants.LOG_FILE,
        level="INFO",
        format="{time:YYYY-MM-DD HH:mm:ss} - {level} - {message}",
        rotation="10 MB",
        retention="30 days",
    )
    # Console Logging
    logger.add(
        sys.stderr,
        level=console_level,
        format="<level>{message}</level>",
        colorize=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser with the create and list commands."""
    parser = argparse.ArgumentParser(
        prog="azdo-wi-creator",
        description="Azure DevOps Work Item Creator - Create or update work items from JSON specifications",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create or update work items")
    create.add_argument("-o", "--organization", required=True, help="Azure DevOps organization URL (e.g., https://dev.azure.com/myorg)")
    create.add_argument("-p", "--project", help="Default Azure DevOps project name (optional if project is specified in spec file per work item)")
    create.add_argument("-t", "--type", dest="work_item_type", required=True, help="Work item type (e.g., Bug, User Story, Task)")
    create.add_argument("-s", "--spec", required=True, help="Path to JSON specification file (local path, URL, or name like 'feature')")
    create.add_argument("--pat", help=f"Personal Access Token for authentication. If not provided, uses {constants.AZDO_PAT_ENV_VAR}.")
    create.add_argument("--simulate", action="store_true", help="Simulate the operation without making any changes (dry-run mode)")
    create.add_argument("--force", action="store_true", help=f"WARNING: Force update of work items even if they don't have the '{constants.TOOL_TAG}' tag. Use with caution!")
    create.add_argument("--new", dest="force_new", action="store_true", help="Always create new work items instead of updating existing ones with the same title")

    list_parser = subparsers.add_parser("list", help="List all work items created by this tool or area paths in the project")
    list_parser.add_argument("-o", "--organization", required=True, help="Azure DevOps organization URL (e.g., https://dev.azure.com/myorg)")
    list_parser.add_argument("-p", "--project", required=True, help="Azure DevOps project name")
    list_parser.add_argument("--pat", help=f"Personal Access Token for authentication. If not provided, uses {constants.AZDO_PAT_ENV_VAR}.")
    list_parser.add_argument("--area-paths", action="store_true", help="List all area paths defined in the Azure DevOps project hierarchically")
    list_parser.add_argument("--full-strings", action="store_true", help="When used with --area-paths, output full path strings with quotes and commas (useful for copying to spec files)")
    output = list_parser.add_mutually_exclusive_group()
    output.add_argument("--table", action="store_true", help="Display work items in a table format with auto-sized columns (ID, Title, State, Area Path, Tags)")
    output.add_argument("--json", dest="json_format", action="store_true", help="Display work items as JSON")

    return parser


def normalize_args(argv: List[str]) -> List[str]:
    """Show help without arguments; default to the create command otherwise."""
    if not argv:
        return ["--help"]
    if not argv[0].startswith("-") and argv[0] not in COMMANDS:
        return ["create"] + argv
    return argv


def run_create(args: argparse.Namespace) -> int:
    spec_file = load_spec(args.spec)
    executor = WorkItemExecutor(args.organization, args.project, args.work_item_type, args.pat)
    summary = executor.execute_create(spec_file, simulate=args.simulate, force=args.force, force_new=args.force_new)
    return summary.exit_code


def run_list(args: argparse.Namespace) -> int:
    executor = WorkItemExecutor(args.organization, args.project, "", args.pat)
    if args.area_paths:
        print(executor.execute_list_area_paths(full_strings=args.full_strings))
    else:
        print(executor.execute_list(table_format=args.table, json_format=args.json_format))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the work item creator.

    Returns:
        int: Process exit status (non-zero when any error was recorded).
    """
    args = build_parser().parse_args(normalize_args(sys.argv[1:] if argv is None else argv))

    # Keep stdout clean for JSON output
    quiet = args.command == "list" and args.json_format
    configure_logging("WARNING" if quiet else constants.LOGGING_LEVEL)

    try:
        if args.command == "create":
            return run_create(args)
        return run_list(args)
    except WorkItemCreatorError as e:
        logger.error("Error: {}", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
