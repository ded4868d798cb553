"""Command-line interface: ``gsbuild [-m ARCH] [-c CPU] [-d CMD] [-i IMAGE] [-s] [-w]``."""

from __future__ import annotations

import argparse
import logging
import os
import re
import sys
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, NoReturn

from gsbuild.errors import (
    BuildError,
    BuildInterrupted,
    ConfigurationError,
    ToolMissingError,
    UsageError,
)
from gsbuild.orchestrator import build
from gsbuild.platforms import resolve_config

logger = logging.getLogger("gsbuild")

LOG_LEVEL_ENV = "GSBUILD_LOG_LEVEL"

USAGE = """\
Usage: gsbuild [-m ARCH] [-c CPU] [-d CMD] [-i IMAGE] [-s] [-w]

Options:

  -m ARCH   `uname -m` from the target machine; defaults to `uname -m`
            from the local machine
  -c CPU    generate machine instructions for CPU of this type; this
            value gets passed as `-march` (or `-mcpu` for ppc64le) to gcc;
            inferred from ARCH if not set explicitly
  -d CMD    build in a Docker container and use CMD as the `docker`
            command; e.g., `-d docker` or `-d podman`
  -i IMAGE  build in this Docker image; inferred from ARCH if not set
            explicitly
  -s        install whatever software is necessary for build to
            succeed; on some operating systems this option is not
            supported; on others it can have partial effect
  -w        automatically download tarballs for dependencies if they
            do not already exist in ./deps; dependencies are described
            in ./build.info"""

EXIT_FAILURE = 1
EXIT_USAGE = 2

_DUPLICATE = "duplicate option"
_EMPTY = "empty value"

_MESSAGE_PATTERNS: tuple[tuple[re.Pattern[str], Callable[[re.Match[str]], str]], ...] = (
    (re.compile(rf"^argument (-\w+): {_DUPLICATE}$"), lambda m: f"duplicate option: {m[1]}"),
    (re.compile(rf"^argument (-\w+): {_EMPTY}$"), lambda m: f"incorrect value of {m[1]}: ''"),
    (
        re.compile(r"^argument (-\w+): expected one argument$"),
        lambda m: f"missing required argument: {m[1]}",
    ),
    (re.compile(r"^unrecognized arguments: (.*)$"), lambda m: _unrecognized(m[1])),
)


def _unrecognized(arguments: str) -> str:
    first = arguments.split(" ", 1)[0]
    if first.startswith("-") and first != "-":
        return f"invalid option: {first}"
    return "unexpected positional argument"


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        for pattern, render in _MESSAGE_PATTERNS:
            match = pattern.match(message)
            if match:
                raise UsageError(render(match))
        raise UsageError(message)


class _StoreOnce(argparse.Action):
    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        if getattr(namespace, self.dest) is not None:
            raise argparse.ArgumentError(self, _DUPLICATE)
        if not values:
            raise argparse.ArgumentError(self, _EMPTY)
        setattr(namespace, self.dest, values)


class _HelpRequested(Exception):
    pass


class _Help(argparse.Action):
    """Stop parsing at the first ``-h``; later arguments are never validated."""

    def __init__(self, option_strings: Sequence[str], dest: str, **kwargs: Any) -> None:
        super().__init__(option_strings, dest, nargs=0, default=False, **kwargs)

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        raise _HelpRequested


class _FlagOnce(argparse.Action):
    def __init__(self, option_strings: Sequence[str], dest: str, **kwargs: Any) -> None:
        super().__init__(option_strings, dest, nargs=0, default=False, **kwargs)

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        if getattr(namespace, self.dest):
            raise argparse.ArgumentError(self, _DUPLICATE)
        setattr(namespace, self.dest, True)


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="gsbuild", add_help=False, allow_abbrev=False, usage=USAGE)
    parser.add_argument("-m", dest="arch", action=_StoreOnce, metavar="ARCH")
    parser.add_argument("-c", dest="cpu", action=_StoreOnce, metavar="CPU")
    parser.add_argument("-d", dest="docker_command", action=_StoreOnce, metavar="CMD")
    parser.add_argument("-i", dest="docker_image", action=_StoreOnce, metavar="IMAGE")
    parser.add_argument("-s", dest="install_tools", action=_FlagOnce)
    parser.add_argument("-w", dest="download_deps", action=_FlagOnce)
    parser.add_argument("-h", dest="help", action=_Help)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    try:
        return build_parser().parse_args(argv)
    except _HelpRequested:
        return argparse.Namespace(help=True)


def log_level(environ: Mapping[str, str] | None = None) -> int:
    """Level named by $GSBUILD_LOG_LEVEL; unknown names fall back to INFO."""
    environ = os.environ if environ is None else environ
    name = environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if not name:
        return logging.INFO
    level = logging.getLevelNamesMapping().get(name)
    if level is None:
        logger.warning("[warning] ignoring unknown %s: %s", LOG_LEVEL_ENV, name)
        return logging.INFO
    return level


def configure_logging() -> None:
    logging.basicConfig(stream=sys.stderr, format="%(message)s", level=log_level())


def report_failure(error: BuildError) -> None:
    internal = isinstance(error, ConfigurationError) or (
        isinstance(error, ToolMissingError) and not error.installable
    )
    prefix = "[internal error]" if internal else "[error]"
    logger.error("%s %s", prefix, error)


def run_guarded(action: Callable[[], object]) -> int:
    """Run *action* and map failures to exit codes with a diagnostic on stderr."""
    try:
        action()
    except UsageError as exc:
        report_failure(exc)
        return EXIT_USAGE
    except BuildInterrupted as exc:
        report_failure(exc)
        return 128 + exc.signum
    except BuildError as exc:
        report_failure(exc)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.error("[error] interrupted")
        return 130
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    return run_guarded(lambda: _run(argv))


def _run(argv: Sequence[str] | None) -> None:
    options = parse_args(argv)
    if options.help:
        print(USAGE)
        return
    config = resolve_config(
        arch=options.arch,
        cpu=options.cpu,
        docker_command=options.docker_command,
        docker_image=options.docker_image,
        install_tools=options.install_tools,
        download_deps=options.download_deps,
    )
    build(config, project_dir=Path.cwd())


if __name__ == "__main__":
    sys.exit(main())
