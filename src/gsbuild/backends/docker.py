"""Container delegation: rerun the same pipeline inside a container image.

The host resolves the configuration, passes it to the container as ``GSBUILD_*``
environment variables, mounts the project directory read-write at ``/out`` and this
package read-only at ``/opt/gsbuild``, and blocks until ``python3 -m gsbuild.delegate``
inside the container has finished.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from gsbuild.backends.base import MountSpec
from gsbuild.builders import published_binary_path
from gsbuild.errors import ConfigurationError, DelegationError
from gsbuild.models import APP_NAME, BuildConfig, BuildResult
from gsbuild.pipeline import file_sha256
from gsbuild.platforms.resolve import ensure_docker_command
from gsbuild.process import run_command

logger = logging.getLogger(__name__)

OUT_MOUNT = "/out"
PACKAGE_MOUNT = "/opt/gsbuild"

# Third-party packages the delegated run imports; installed only together with -s.
DELEGATE_REQUIREMENTS: tuple[str, ...] = ("cbor2",)

# Bootstrap exit status when the image lacks DELEGATE_REQUIREMENTS; gsbuild itself never exits 3.
MISSING_REQUIREMENTS_EXIT = 3

BOOTSTRAP_TEMPLATE = """\
if [ -n "$GSBUILD_INSTALL_TOOLS" ]; then
  python3 -m pip install --quiet --disable-pip-version-check {requirements}
elif ! python3 -c 'import {modules}' 2>/dev/null; then
  echo "[error] python packages missing in this image: {requirements}" >&2
  exit {missing_exit}
fi
export PYTHONPATH={package_mount}${{PYTHONPATH:+:$PYTHONPATH}}
exec python3 -m gsbuild.delegate
"""


def package_root() -> Path:
    """Directory that contains the ``gsbuild`` package."""
    return Path(__file__).resolve().parents[2]


def bootstrap_script() -> str:
    return BOOTSTRAP_TEMPLATE.format(
        requirements=" ".join(DELEGATE_REQUIREMENTS),
        modules=", ".join(DELEGATE_REQUIREMENTS),
        missing_exit=MISSING_REQUIREMENTS_EXIT,
        package_mount=PACKAGE_MOUNT,
    )


@dataclass(slots=True)
class DockerBackend:
    name: str = "docker"

    def mount_plan(self, config: BuildConfig, project_dir: Path) -> tuple[MountSpec, ...]:
        mounts = [
            MountSpec(source=project_dir, target=OUT_MOUNT),
            MountSpec(source=package_root(), target=PACKAGE_MOUNT, read_only=True),
        ]
        return tuple(sorted(mounts, key=lambda mount: mount.target))

    def command(self, config: BuildConfig, project_dir: Path) -> list[str]:
        if not config.docker_command or not config.docker_image:
            raise ConfigurationError(
                "Container delegation requires a resolved command and image.",
                context={"backend": self.name},
            )
        argv = [config.docker_command, "run"]
        for key, value in config.to_env().items():
            argv.extend(["-e", f"{key}={value}"])
        for mount in self.mount_plan(config, project_dir):
            suffix = ":ro" if mount.read_only else ""
            argv.extend(["-v", f"{mount.source}:{mount.target}{suffix}"])
        argv.extend(["-w", OUT_MOUNT, "--rm", "--", config.docker_image])
        argv.extend(["/bin/sh", "-uec", bootstrap_script()])
        return argv

    def prepare(self, config: BuildConfig, project_dir: Path) -> None:
        if config.docker_command is None:
            raise ConfigurationError("Container delegation requires -d.", context={"backend": self.name})
        ensure_docker_command(config.docker_command)

    def execute(self, config: BuildConfig, project_dir: Path) -> BuildResult:
        project_dir = project_dir.resolve()
        argv = self.command(config, project_dir)
        logger.info("Delegating to %s image %s ...", config.docker_command, config.docker_image)
        try:
            run_command(argv, operation="delegate", error=DelegationError, capture=False)
        except DelegationError as exc:
            if exc.context.get("returncode") != str(MISSING_REQUIREMENTS_EXIT):
                raise
            raise DelegationError(
                f"{config.docker_image} lacks the python packages the delegated build imports.",
                hint="Rerun with -s to install them in the container, or use an image that has them.",
                context={"backend": self.name, "requirements": " ".join(DELEGATE_REQUIREMENTS)},
            ) from exc

        artifact = published_binary_path(project_dir)
        if not artifact.is_file():
            raise DelegationError(
                "Container build finished without publishing the binary.",
                context={"backend": self.name, "expected": str(artifact)},
            )
        report_path = artifact.with_name(f"{APP_NAME}.build.json")
        events_path = artifact.with_name(f"{APP_NAME}.build.jsonl")
        return BuildResult(
            config=config,
            artifact=artifact,
            artifact_sha256=file_sha256(artifact),
            report_path=report_path if report_path.is_file() else None,
            events_path=events_path if events_path.is_file() else None,
        )

    def cleanup(self, config: BuildConfig, project_dir: Path) -> None:
        pass
