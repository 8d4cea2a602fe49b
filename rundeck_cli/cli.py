"""
Rundeck CLI - Opinionated command-line interface.

This layer provides the user-facing CLI commands, using the SDK layer
for all operations. It handles:
- Argument parsing
- Table output for humans, JSON output (--json) for piping/automation
- Turning SDK errors into a JSON error object and a non-zero exit
"""

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TextIO

from rundeck_cli.core.client import CLIError, ValidationError
from rundeck_cli.core.types import User, UserInfoUpdate
from rundeck_cli.sdk import NIL_LOGIN, RundeckClient

logger = logging.getLogger("rundeck_cli.cli")

# =============================================================================
# Output Helpers
# =============================================================================


def json_output(data: Any, stream: TextIO | None = None) -> None:
    """Print JSON output, indented when writing to a terminal."""
    out = stream or sys.stdout
    indent = 2 if out.isatty() else None
    print(json.dumps(data, indent=indent, default=str), file=out)


def error_output(error: CLIError) -> None:
    """Print error and exit."""
    json_output(error.to_dict())
    sys.exit(1)


@dataclass
class TableFormatter:
    """Collects rows under fixed headers and renders them as a table or JSON."""

    json_mode: bool = False
    stream: TextIO | None = None
    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    def set_headers(self, headers: Sequence[str]) -> None:
        """Start a new table with these column names."""
        self.headers = list(headers)
        self.rows = []

    def add_row(self, row: Sequence[Any]) -> None:
        """Add a row; it must have one value per header."""
        if len(row) != len(self.headers):
            raise ValidationError(
                f"Row has {len(row)} columns, expected {len(self.headers)}",
                details={"headers": self.headers, "row": [str(v) for v in row]},
            )
        self.rows.append(["" if v is None else str(v) for v in row])

    def records(self) -> list[dict[str, str]]:
        """Rows as header-keyed dicts."""
        return [dict(zip(self.headers, row)) for row in self.rows]

    def draw(self) -> None:
        """Print the collected rows."""
        out = self.stream or sys.stdout
        if self.json_mode:
            json_output(self.records(), stream=out)
            return

        widths = [len(h) for h in self.headers]
        for row in self.rows:
            widths = [max(w, len(v)) for w, v in zip(widths, row)]

        # Header
        header_line = "  ".join(h.ljust(w) for h, w in zip(self.headers, widths)).rstrip()
        print(header_line, file=out)
        print("-" * len(header_line), file=out)

        # Rows
        for row in self.rows:
            print("  ".join(v.ljust(w) for v, w in zip(row, widths)).rstrip(), file=out)


@dataclass
class CommandContext:
    """Everything a command handler needs: the client and where to write."""

    client: RundeckClient
    output: TableFormatter


def format_time(value: datetime | None) -> str:
    """Format a timestamp for a table cell; unset timestamps are blank."""
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M:%S")


# =============================================================================
# CLI Commands
# =============================================================================


USER_HEADERS = ["Login", "First Name", "Last Name", "Email"]
USER_LIST_HEADERS = USER_HEADERS + ["Created", "Updated", "Last Job", "Tokens"]
ACL_HEADERS = ["Name", "Path", "Type", "HRef", "Parent", "Parent Type"]
SYSTEM_INFO_HEADERS = ["Version", "Build", "Node", "Base", "API Version", "Server UUID", "Execution Mode"]


def _profile_row(user: User) -> list[str]:
    return [user.login, user.first_name, user.last_name, user.email]


def cmd_users_list(ctx: CommandContext, _args: argparse.Namespace) -> None:
    """List all users."""
    try:
        users = ctx.client.users.list()
        ctx.output.set_headers(USER_LIST_HEADERS)
        for u in users:
            ctx.output.add_row(
                _profile_row(u)
                + [format_time(u.created), format_time(u.updated), format_time(u.last_job), str(u.tokens)]
            )
        ctx.output.draw()
    except CLIError as e:
        error_output(e)


def cmd_users_info(ctx: CommandContext, args: argparse.Namespace) -> None:
    """Show the current user's profile, or another user's with --login."""
    try:
        if args.login:
            user = ctx.client.users.get(args.login)
        else:
            user = ctx.client.users.current()
        ctx.output.set_headers(USER_HEADERS)
        ctx.output.add_row(_profile_row(user))
        ctx.output.draw()
    except CLIError as e:
        error_output(e)


def cmd_users_modify(ctx: CommandContext, args: argparse.Namespace) -> None:
    """Modify a user's profile."""
    try:
        update = UserInfoUpdate(
            first_name=args.first_name,
            last_name=args.last_name,
            email=args.email,
        )
        user = ctx.client.users.modify(args.login, update)
        ctx.output.set_headers(USER_HEADERS)
        ctx.output.add_row(_profile_row(user))
        ctx.output.draw()
    except CLIError as e:
        error_output(e)


def cmd_acl_list(ctx: CommandContext, _args: argparse.Namespace) -> None:
    """List system ACL policies."""
    try:
        policies = ctx.client.acl.list_system()
        ctx.output.set_headers(ACL_HEADERS)
        for p in policies.resources:
            ctx.output.add_row([p.name, p.path, p.type, p.href, policies.parent, policies.type])
        ctx.output.draw()
    except CLIError as e:
        error_output(e)


def cmd_system_info(ctx: CommandContext, _args: argparse.Namespace) -> None:
    """Show server information."""
    try:
        info = ctx.client.system.info()
        ctx.output.set_headers(SYSTEM_INFO_HEADERS)
        ctx.output.add_row(
            [
                info.version,
                info.build,
                info.node,
                info.base,
                str(info.api_version),
                info.server_uuid,
                info.execution_mode,
            ]
        )
        ctx.output.draw()
    except CLIError as e:
        error_output(e)


# =============================================================================
# Main CLI
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rundeck",
        description="Rundeck CLI - Command-line interface for the Rundeck API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration:
  RUNDECK_URL          Server base URL (default http://localhost:4440)
  RUNDECK_TOKEN        API token
  RUNDECK_API_VERSION  API version (default 24)

Examples:
  rundeck users list
  rundeck users info --login jdoe
  rundeck users modify --login jdoe --email jdoe@example.com
  rundeck --json acl list | jq '.[].Name'
""",
    )
    parser.add_argument("--url", help="Rundeck base URL (overrides RUNDECK_URL)")
    parser.add_argument("--api-version", help="API version (overrides RUNDECK_API_VERSION)")
    parser.add_argument("--json", "-j", action="store_true", help="Print JSON instead of a table")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log requests to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ========== Users ==========
    users = subparsers.add_parser("users", help="List and manage users")
    users.set_defaults(func=lambda _c, _a: users.print_help())
    users_sub = users.add_subparsers(dest="subcommand")

    u_list = users_sub.add_parser("list", help="List users")
    u_list.set_defaults(func=cmd_users_list)

    u_info = users_sub.add_parser("info", help="Show a user profile")
    u_info.add_argument("--login", "-l", help="Login of another user (requires admin)")
    u_info.set_defaults(func=cmd_users_info)

    u_modify = users_sub.add_parser("modify", help="Modify a user profile")
    u_modify.add_argument("--login", "-l", default=NIL_LOGIN, help="Login of the user to modify")
    u_modify.add_argument("--first-name", help="New first name")
    u_modify.add_argument("--last-name", help="New last name")
    u_modify.add_argument("--email", help="New email address")
    u_modify.set_defaults(func=cmd_users_modify)

    # ========== ACL ==========
    acl = subparsers.add_parser("acl", help="System ACL policies")
    acl.set_defaults(func=lambda _c, _a: acl.print_help())
    acl_sub = acl.add_subparsers(dest="subcommand")

    a_list = acl_sub.add_parser("list", help="List system ACL policies")
    a_list.set_defaults(func=cmd_acl_list)

    # ========== System ==========
    system = subparsers.add_parser("system", help="Server information")
    system.set_defaults(func=lambda _c, _a: system.print_help())
    system_sub = system.add_subparsers(dest="subcommand")

    s_info = system_sub.add_parser("info", help="Show server version and API version")
    s_info.set_defaults(func=cmd_system_info)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        client = RundeckClient(base_url=args.url, api_version=args.api_version)
    except CLIError as e:
        error_output(e)
    logger.debug("Using %s with API version %s", client.base_url, client.api_version)

    ctx = CommandContext(client=client, output=TableFormatter(json_mode=args.json))

    # Run command (all subparsers have default funcs that print help)
    args.func(ctx, args)


if __name__ == "__main__":
    main()
