from pathlib import Path

import pytest

from gsbuild.errors import (
    BuildError,
    BuildInterrupted,
    ConfigurationError,
    ErrorCode,
    IntegrityError,
    ToolMissingError,
    UsageError,
)
from gsbuild.models import BuildConfig, DependencySpec, ToolchainFlags


def test_build_config_round_trips_through_environment() -> None:
    config = BuildConfig(
        kernel="linux",
        arch="aarch64",
        cpu="armv8-a",
        docker_command="podman",
        docker_image="arm64v8/python:3.12-alpine3.20",
        install_tools=True,
        download_deps=False,
    )

    env = config.to_env()

    assert env["GSBUILD_INSTALL_TOOLS"] == "1"
    assert env["GSBUILD_DOWNLOAD_DEPS"] == ""
    assert all(key.startswith("GSBUILD_") for key in env)
    assert BuildConfig.from_env(env) == config


def test_build_config_from_env_lists_missing_keys() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        BuildConfig.from_env({"GSBUILD_KERNEL": "linux"})

    assert excinfo.value.context["missing"] == "GSBUILD_ARCH, GSBUILD_CPU"
    assert excinfo.value.hint is not None


def test_build_config_rejects_empty_cpu() -> None:
    with pytest.raises(ConfigurationError):
        BuildConfig(kernel="linux", arch="x86_64", cpu="")


def test_build_config_rejects_image_without_command() -> None:
    with pytest.raises(UsageError):
        BuildConfig(kernel="linux", arch="x86_64", cpu="x86-64", docker_image="alpine")


def test_build_config_delegated_only_with_docker_command(linux_config: BuildConfig) -> None:
    assert not linux_config.delegated
    delegated = BuildConfig(kernel="linux", arch="x86_64", cpu="x86-64", docker_command="docker")
    assert delegated.delegated


@pytest.mark.parametrize(
    ("mode", "flag"),
    [("static-pie", "-static-pie"), ("static", "-static"), ("none", None)],
)
def test_toolchain_static_link_flag(mode: str, flag: str | None) -> None:
    toolchain = ToolchainFlags(compiler="cc", cxx="g++", make="make", static_link_mode=mode)  # type: ignore[arg-type]

    assert toolchain.static_link_flag == flag


def test_dependency_spec_archive_root() -> None:
    spec = DependencySpec(
        name="libgit2",
        version="tag-5860",
        sha256="0" * 64,
        cache_path=Path("deps/libgit2-tag-5860.tar.gz"),
        source_url="https://example.invalid/libgit2.tar.gz",
        temp_path=Path("deps/gitstatusd.libgit2.tmp"),
    )

    assert spec.archive_root == "libgit2-tag-5860"


def test_error_codes_are_stable() -> None:
    assert UsageError("x").code == ErrorCode.USAGE.value == "E_USAGE"
    assert IntegrityError("x").code == "E_INTEGRITY"
    assert ToolMissingError("x").code == "E_TOOL_MISSING"
    assert BuildInterrupted(15).code == "E_INTERRUPTED"


def test_error_rendering_includes_hint_and_context() -> None:
    error = IntegrityError(
        "sha256 mismatch",
        hint="Delete the tarball and refetch it.",
        context={"file": "deps/libgit2.tar.gz", "expected": "aa", "actual": "bb"},
    )

    rendered = str(error)
    assert rendered.splitlines()[0] == "sha256 mismatch"
    assert "Hint: Delete the tarball and refetch it." in rendered
    assert "expected: aa" in rendered
    assert "actual  : bb" in rendered


def test_error_to_dict_is_machine_readable() -> None:
    payload = ConfigurationError("bad", context={"line": "3"}).to_dict()

    assert payload["code"] == "E_CONFIGURATION"
    assert payload["context"] == {"line": "3"}
    assert "hint" not in payload


def test_all_errors_share_base_class() -> None:
    assert issubclass(UsageError, BuildError)
    assert issubclass(BuildInterrupted, BuildError)
    assert ToolMissingError("x").installable is True
    assert ToolMissingError("x", installable=False).installable is False
