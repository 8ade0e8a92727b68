#!/usr/bin/env python3

import argparse
import argcomplete
import re
import sys

from abc import ABC, abstractmethod
from typing import List, Optional

from loguru import logger

from .ai import generate_command
from .config import get_config
from .errors import ConfigError, ProviderError
from .logging_utils import configure_logging


USAGE = "Usage: uwu <command description>"

_FENCE_PATTERN = re.compile(r"^```.*?\n|```$")
_QUOTES_PATTERN = re.compile(r"^[\"'`]+|[\"'`]+$")


class Argument(ABC):
    def __init__(self, help: str, kwargs: Optional[dict] = None):
        self.help = help
        self.kwargs = kwargs if kwargs is not None else {}

    @abstractmethod
    def add_to_parser(self, parser: argparse.ArgumentParser):
        pass


class OptionalArg(Argument):
    def __init__(
        self,
        long_option: str,
        help: str,
        kwargs: Optional[dict] = None,
    ):
        super().__init__(help=help, kwargs=kwargs)
        self.long_option = long_option

    def add_to_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument(self.long_option, help=self.help, **self.kwargs)


class PositionalArg(Argument):
    def __init__(self, name: str, help: str, kwargs: Optional[dict] = None):
        super().__init__(help=help, kwargs=kwargs)
        self.name = name

    def add_to_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument(self.name, help=self.help, **self.kwargs)


ARGUMENTS: List[Argument] = [
    PositionalArg(
        name="description",
        help="The natural language description of the command you need.",
        kwargs={"nargs": argparse.REMAINDER},
    ),
    OptionalArg(
        long_option="--debug",
        help="Log provider traffic and command selection to stderr.",
        kwargs={"action": "store_true"},
    ),
]


def clean_command(command: str) -> str:
    """Strips a stray fence line and any surrounding quotes or backticks."""
    command = _FENCE_PATTERN.sub("", command)
    return _QUOTES_PATTERN.sub("", command).strip()


def _fail(*lines: str):
    for line in lines:
        print(line, file=sys.stderr)
    sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uwu",
        description="Turn a natural language description into a shell command.",
    )
    for arg in ARGUMENTS:
        arg.add_to_parser(parser)
    return parser


def run_cli(argv: Optional[List[str]] = None):
    """
    Parses command-line arguments, generates the command and prints it.

    Args:
        argv: A list of strings representing the command-line arguments.
              If None, `sys.argv[1:]` is used automatically by `parse_known_args`.
    """
    parser = build_parser()

    # Enable argument auto-completion.
    argcomplete.autocomplete(parser)

    # Everything from the first description word on belongs to the description,
    # dashes included. Unknown dash tokens before it are description words too.
    args, leading_words = parser.parse_known_args(argv)
    configure_logging(debug=args.debug)

    command_description = " ".join(leading_words + args.description).strip()
    if not command_description:
        _fail("Error: No command description provided.", USAGE)

    try:
        config = get_config()
    except ConfigError as e:
        _fail(str(e))

    try:
        command = generate_command(config, command_description)
    except ProviderError as e:
        _fail(f"Error: {e}")
    except Exception as e:
        logger.opt(exception=e).debug("Command generation failed")
        _fail(f"Error generating command: {e}")

    if not command:
        _fail("Error: No command generated")

    print(clean_command(command))


def main():
    """The main entry point for the command-line interface, called by the `uwu` script."""
    run_cli()


if __name__ == "__main__":
    main()
