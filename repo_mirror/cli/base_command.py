"""
Base command utilities for standardizing CLI interfaces.
"""

import argparse
import logging
import traceback
from datetime import date
from pathlib import Path
from typing import Any, Callable, Optional, Union

from dotenv import load_dotenv

from repo_mirror.core.config import get_env_variable
from repo_mirror.core.exceptions import ConfigError, MirrorError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_MIRROR_ERROR = 2
EXIT_UNEXPECTED_ERROR = 3


def setup_logging(level: int = logging.INFO, log_dir: Optional[Union[str, Path]] = None) -> None:
    """
    Configure logging for the application with a standardized format.

    Args:
        level: Logging level (default: INFO)
        log_dir: Directory for the daily ``migration-YYYY-MM-DD.log`` file, none if omitted
    """
    handlers = [logging.StreamHandler()]
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.FileHandler(
                log_path / f"migration-{date.today().isoformat()}.log",
                encoding="utf-8",
                errors="backslashreplace",
            )
        )

    logging.basicConfig(format=LOG_FORMAT, level=level, handlers=handlers, force=True)


class BaseCommand:
    """Base class for standardizing command-line interfaces."""

    def __init__(
        self,
        description: str,
        epilog: Optional[str] = None,
        formatter_class: Any = argparse.RawDescriptionHelpFormatter,
    ):
        """
        Initialize the base command.

        Args:
            description: Command description for help text
            epilog: Optional epilog text for help output
            formatter_class: Argument parser formatter class
        """
        # Load environment variables
        load_dotenv()

        self.parser = argparse.ArgumentParser(
            prog="repo-mirror", description=description, epilog=epilog, formatter_class=formatter_class
        )
        self.subparsers = self.parser.add_subparsers(dest="command", metavar="COMMAND")
        self.subparsers.required = True

    def add_command(self, name: str, help_text: str) -> argparse.ArgumentParser:
        """Register a subcommand carrying the standard debug and logging options."""
        command = self.subparsers.add_parser(name, help=help_text, description=help_text)
        debug_group = command.add_argument_group("Debug Options")
        debug_group.add_argument("--debug", help="Enable debug logging", action="store_true")
        debug_group.add_argument(
            "--log-dir",
            help="Directory for the daily log file (default: from LOG_DIR env var or ./logs)",
            default=get_env_variable("LOG_DIR") or "./logs",
        )
        return command

    @staticmethod
    def add_migration_args(command: argparse.ArgumentParser) -> None:
        """Add the options shared by the migrate commands."""
        behavior_group = command.add_argument_group("Behavior")
        behavior_group.add_argument(
            "--dry-run",
            help="Show what would be migrated without making changes",
            action="store_true",
            default=None,
        )
        behavior_group.add_argument(
            "--no-skip-existing",
            help="Do not skip repositories that already exist on the destination",
            dest="skip_existing",
            action="store_false",
            default=None,
        )
        behavior_group.add_argument(
            "--temp-dir",
            help="Temporary directory for cloning repositories (default: from TEMP_DIR env var)",
            default=None,
        )

    def parse_args(self, argv=None) -> argparse.Namespace:
        """
        Parse command line arguments and configure logging.

        Returns:
            Parsed command line arguments
        """
        args = self.parser.parse_args(argv)
        setup_logging(logging.DEBUG if args.debug else logging.INFO, args.log_dir)
        return args

    def run_command(self, command_func: Callable, *args, **kwargs) -> int:
        """
        Run the command function with standardized error handling.

        Args:
            command_func: Function to run, returning an exit code
            *args: Positional arguments for the command function
            **kwargs: Keyword arguments for the command function

        Returns:
            Process exit code
        """
        try:
            return command_func(*args, **kwargs)
        except ConfigError as e:
            logging.error("Configuration error: %s", e)
            return EXIT_CONFIG_ERROR
        except MirrorError as e:
            logging.error("Mirror operation failed: %s", e)
            return EXIT_MIRROR_ERROR
        except Exception as e:  # pylint: disable=broad-exception-caught
            logging.error("Unexpected error: %s", e)
            traceback.print_exc()
            return EXIT_UNEXPECTED_ERROR
