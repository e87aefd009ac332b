"""
Command-line interface for the repository mirroring tool.
"""

import sys

from repo_mirror import __version__
from repo_mirror.cli.base_command import BaseCommand
from repo_mirror.cli.commands.list_command import list_command
from repo_mirror.cli.commands.migrate_command import migrate_command, migrate_specific_command

EPILOG = """
Examples:
  repo-mirror migrate --dry-run
  repo-mirror migrate --no-skip-existing --temp-dir /var/tmp/mirror
  repo-mirror migrate-specific api-server web-client
  repo-mirror migrate-specific --repos-file repos.csv
  repo-mirror list

Exit codes:
  0 - Success
  1 - Configuration error
  2 - Mirror operation error (any repository failed)
  3 - Unexpected error
"""


def build_command() -> BaseCommand:
    command = BaseCommand(description="Migrate repositories between git hosting services", epilog=EPILOG)
    command.parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    migrate = command.add_command("migrate", "Migrate all repositories from the source host")
    command.add_migration_args(migrate)

    specific = command.add_command("migrate-specific", "Migrate specific repositories by name")
    specific.add_argument("repos", nargs="*", metavar="REPO", help="Repository names")
    specific.add_argument("--repos-file", help="CSV file with one repository name per line")
    command.add_migration_args(specific)

    listing = command.add_command("list", "List all repositories of the source host")
    listing.add_argument(
        "--destination", action="store_true", help="List the destination's repositories instead"
    )
    return command


def main(argv=None) -> int:
    """Main entry point for the CLI tool."""
    command = build_command()
    args = command.parse_args(argv)

    if args.command == "list":
        return command.run_command(list_command, destination=args.destination)

    options = {
        "dry_run": args.dry_run,
        "skip_existing": args.skip_existing,
        "temp_dir": args.temp_dir,
        "log_dir": args.log_dir,
    }
    if args.command == "migrate-specific":
        return command.run_command(
            migrate_specific_command, args.repos, repos_file=args.repos_file, **options
        )
    return command.run_command(migrate_command, **options)


if __name__ == "__main__":
    sys.exit(main())
