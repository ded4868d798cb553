"""Entry point of a delegated build inside a container.

The host passes the resolved configuration as ``GSBUILD_*`` variables and mounts the
project directory as the working directory; this module rebuilds the configuration and
runs the in-process pipeline exactly as a host build would.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from gsbuild.backends.host import HostBackend
from gsbuild.cli import configure_logging, run_guarded
from gsbuild.models import BuildConfig


def run_delegated(environ: dict[str, str] | None = None, *, project_dir: Path | None = None) -> None:
    config = BuildConfig.from_env(dict(os.environ) if environ is None else environ)
    backend = HostBackend()
    project_dir = project_dir or Path.cwd()
    backend.prepare(config, project_dir)
    backend.execute(config, project_dir)


def main() -> int:
    configure_logging()
    return run_guarded(run_delegated)


if __name__ == "__main__":
    sys.exit(main())
