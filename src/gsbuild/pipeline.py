"""In-process build pipeline: probe, fetch, compile, validate, publish.

This is the single code path for producing ``usrbin/gitstatusd``. The host backend calls
it directly and the container backend calls it from inside the container, so both
produce the same artifact for the same :class:`~gsbuild.models.BuildConfig`.
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path

from gsbuild.builders import (
    BuildContext,
    GitstatusdBuilder,
    Libgit2Builder,
    detect_jobs,
    published_binary_path,
    temp_binary_path,
)
from gsbuild.fetch import dependency_spec, fetch_dependency, read_manifest
from gsbuild.models import APP_NAME, BuildConfig, BuildResult, DependencySpec, ToolchainFlags
from gsbuild.observability import BuildReport, StructuredLogger
from gsbuild.smoke import run_smoke_test
from gsbuild.toolchain import (
    ToolchainEnv,
    install_build_tools,
    probe_toolchain,
    require_tools,
    required_commands,
)
from gsbuild.workarea import WorkArea

logger = logging.getLogger(__name__)

DEPENDENCY_NAME = "libgit2"
WORKDIR_PLACEHOLDER = "$WORKDIR"


def run_pipeline(
    config: BuildConfig,
    *,
    project_dir: Path,
    env: ToolchainEnv | None = None,
    jobs: int | None = None,
    tmpdir: Path | None = None,
    events: StructuredLogger | None = None,
) -> BuildResult:
    env = env or ToolchainEnv.from_environ()
    events = events if events is not None else StructuredLogger()
    project_dir = project_dir.resolve()
    jobs = jobs or detect_jobs()

    with WorkArea(tmpdir=tmpdir) as area:
        area.track(temp_binary_path(project_dir))

        if config.install_tools:
            events.log(operation="build", phase="install_tools", message=config.kernel)
            install_build_tools(config.kernel)

        toolchain = probe_toolchain(config, workdir=area.path, env=env)
        events.log(
            operation="build",
            phase="probe",
            message="toolchain probed",
            extra={"accepted": list(toolchain.accepted), "static": toolchain.static_link_mode},
        )
        require_tools(required_commands(toolchain), install_tools=config.install_tools)

        spec = dependency_spec(read_manifest(project_dir), name=DEPENDENCY_NAME, project_dir=project_dir)
        area.track(spec.temp_path)
        tarball = fetch_dependency(
            spec,
            download_deps=config.download_deps,
            install_tools=config.install_tools,
            display_name=os.path.relpath(spec.cache_path, project_dir),
        )
        events.log(operation="build", phase="fetch", message=f"{spec.name} {spec.version} verified")

        ctx = BuildContext(
            config=config,
            toolchain=toolchain,
            env=env,
            workdir=area.path,
            project_dir=project_dir,
            jobs=jobs,
        )
        libgit2_dir = Libgit2Builder(dependency=spec, tarball=tarball).build(ctx)
        events.log(operation="build", phase="libgit2", message="built")
        binary = GitstatusdBuilder(libgit2_dir=libgit2_dir).build(ctx)
        events.log(operation="build", phase=APP_NAME, message="built")

        run_smoke_test(binary, workdir=area.path)
        events.log(operation="build", phase="smoke_test", message="passed")

        artifact = publish(binary, project_dir=project_dir)
        report = build_report(config, spec=spec, toolchain=toolchain, artifact=artifact, workdir=area.path)

    report_path = artifact.with_name(f"{APP_NAME}.build.json")
    report.to_json(report_path)
    report.to_cbor(artifact.with_name(f"{APP_NAME}.build.cbor"))
    events.log(operation="build", phase="publish", message=str(artifact))
    events_path = events.to_json_lines(artifact.with_name(f"{APP_NAME}.build.jsonl"))

    logger.info("-------------------------------------------------")
    logger.info("SUCCESS: created %s", os.path.relpath(artifact, project_dir))
    return BuildResult(
        config=config,
        artifact=artifact,
        artifact_sha256=report.artifact_sha256,
        report_path=report_path,
        events_path=events_path,
    )


def publish(binary: Path, *, project_dir: Path) -> Path:
    """Atomically move a validated binary to its published name."""
    artifact = published_binary_path(project_dir)
    os.replace(binary, artifact)
    return artifact


def file_sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(1 << 16), b""):
            digest.update(chunk)
    return digest.hexdigest()


def build_report(
    config: BuildConfig,
    *,
    spec: DependencySpec,
    toolchain: ToolchainFlags,
    artifact: Path,
    workdir: Path,
) -> BuildReport:
    def scrub(flags: list[str]) -> list[str]:
        return [flag.replace(str(workdir), WORKDIR_PLACEHOLDER) for flag in flags]

    return BuildReport(
        config={"kernel": config.kernel, "arch": config.arch, "cpu": config.cpu},
        dependency={"name": spec.name, "version": spec.version, "sha256": spec.sha256},
        toolchain={
            "compiler": toolchain.compiler,
            "cxx": toolchain.cxx,
            "make": toolchain.make,
            "cflags": scrub(toolchain.cflags),
            "ldflags": scrub(toolchain.ldflags),
            "static_link_mode": toolchain.static_link_mode,
            "accepted": list(toolchain.accepted),
        },
        artifact_sha256=file_sha256(artifact),
    )
