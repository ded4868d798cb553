from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

from gsbuild.builders import (
    CMAKE_FEATURE_FLAGS,
    BuildContext,
    GitstatusdBuilder,
    Libgit2Builder,
    published_binary_path,
    temp_binary_path,
)
from gsbuild.builders.base import join_flags
from gsbuild.errors import CompileError
from gsbuild.models import BuildConfig, DependencySpec, ToolchainFlags
from gsbuild.toolchain import ToolchainEnv


def test_libgit2_builder_unpacks_configures_and_builds(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    linux_config: BuildConfig,
) -> None:
    ctx = _context(tmp_path, linux_config)
    spec = _spec(tmp_path)
    calls = _record_commands(monkeypatch, "gsbuild.builders.libgit2.run_command", unpack_as=spec.archive_root)

    source_dir = Libgit2Builder(dependency=spec, tarball=spec.cache_path).build(ctx)

    assert source_dir == ctx.workdir / "libgit2"
    assert (source_dir / "build").is_dir()
    tar, cmake, make = calls
    assert tar["argv"] == ["tar", "-xzf", str(spec.cache_path)]
    assert tar["cwd"] == ctx.workdir
    assert cmake["argv"][0] == "cmake"
    assert set(CMAKE_FEATURE_FLAGS) <= set(cmake["argv"])
    assert "-DENABLE_REPRODUCIBLE_BUILDS=ON" in cmake["argv"]
    assert cmake["argv"][-1] == ".."
    assert cmake["cwd"] == source_dir / "build"
    assert "-O3" in cmake["env"]["CFLAGS"].split()
    assert "-march=x86-64" in cmake["env"]["CFLAGS"].split()
    assert make["argv"] == ["make", "-j", "4", "VERBOSE=1"]


def test_libgit2_builder_rejects_unexpected_tarball_layout(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    linux_config: BuildConfig,
) -> None:
    ctx = _context(tmp_path, linux_config)
    spec = _spec(tmp_path)
    _record_commands(monkeypatch, "gsbuild.builders.libgit2.run_command", unpack_as="libgit2-main")

    with pytest.raises(CompileError) as excinfo:
        Libgit2Builder(dependency=spec, tarball=spec.cache_path).build(ctx)

    assert excinfo.value.context["expected"] == spec.archive_root


def test_gitstatusd_builder_links_statically_and_strips(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    linux_config: BuildConfig,
) -> None:
    ctx = _context(tmp_path, linux_config)
    libgit2_dir = ctx.workdir / "libgit2"
    calls = _record_commands(monkeypatch, "gsbuild.builders.gitstatusd.run_command")

    binary = GitstatusdBuilder(libgit2_dir=libgit2_dir).build(ctx)

    assert binary == temp_binary_path(ctx.project_dir)
    make, strip = calls
    assert make["argv"] == ["make", "-C", str(ctx.project_dir), "-j", "4"]
    env = make["env"]
    assert env["APPNAME"] == "gitstatusd.tmp"
    assert env["OBJDIR"] == str(ctx.workdir / "gitstatus")
    assert env["CXX"] == "g++"
    assert f"-I{libgit2_dir / 'include'}" in env["CXXFLAGS"].split()
    assert "-DGITSTATUS_ZERO_NSEC" in env["CXXFLAGS"].split()
    assert env["LDFLAGS"].split()[-1] == "-static-pie"
    assert f"-L{libgit2_dir / 'build'}" in env["LDFLAGS"].split()
    assert strip["argv"] == ["strip", str(binary)]


def test_gitstatusd_builder_prepends_user_flags(tmp_path: Path, linux_config: BuildConfig) -> None:
    ctx = _context(tmp_path, linux_config, env=ToolchainEnv(cxxflags="-g", ldflags="-Wl,--build-id"))
    env = GitstatusdBuilder(libgit2_dir=ctx.workdir / "libgit2").make_env(ctx)

    assert env["CXXFLAGS"].startswith("-g -march=x86-64 ")
    assert env["LDFLAGS"].startswith("-Wl,--build-id ")


def test_user_flags_keep_their_quoting(tmp_path: Path, linux_config: BuildConfig) -> None:
    raw = "-DNAME='\"a b\"' -O1"
    ctx = _context(tmp_path, linux_config, env=ToolchainEnv.from_environ({"CXXFLAGS": raw, "CFLAGS": raw}))

    env = GitstatusdBuilder(libgit2_dir=ctx.workdir / "libgit2").make_env(ctx)

    assert env["CXXFLAGS"].startswith(raw + " ")
    libgit2 = Libgit2Builder(dependency=_spec(tmp_path), tarball=tmp_path / "libgit2.tar.gz")
    assert join_flags(ctx.env.cflags, libgit2.cflags(ctx)).startswith(raw + " ")


def test_join_flags_without_user_flags() -> None:
    assert join_flags("", ["-O3", "-DNDEBUG"]) == "-O3 -DNDEBUG"
    assert join_flags("  ", ["-O3"]) == "-O3"
    assert join_flags("-g", []) == "-g"


def test_binary_paths_live_under_usrbin(tmp_path: Path) -> None:
    assert published_binary_path(tmp_path) == tmp_path / "usrbin" / "gitstatusd"
    assert temp_binary_path(tmp_path) == tmp_path / "usrbin" / "gitstatusd.tmp"


def _context(tmp_path: Path, config: BuildConfig, *, env: ToolchainEnv | None = None) -> BuildContext:
    workdir = tmp_path / "work"
    project = tmp_path / "project"
    workdir.mkdir()
    project.mkdir()
    toolchain = ToolchainFlags(
        compiler="cc",
        cxx="g++",
        make="make",
        cflags=["-march=x86-64", "-fno-plt"],
        static_link_mode="static-pie",
        cmake_flags=["-DENABLE_REPRODUCIBLE_BUILDS=ON"],
    )
    return BuildContext(
        config=config,
        toolchain=toolchain,
        env=env or ToolchainEnv(),
        workdir=workdir,
        project_dir=project,
        jobs=4,
    )


def _spec(tmp_path: Path) -> DependencySpec:
    return DependencySpec(
        name="libgit2",
        version="tag-5860",
        sha256="0" * 64,
        cache_path=tmp_path / "deps" / "libgit2-tag-5860.tar.gz",
        source_url="https://github.com/romkatv/libgit2/archive/tag-5860.tar.gz",
        temp_path=tmp_path / "deps" / "gitstatusd.libgit2.tmp",
    )


def _record_commands(
    monkeypatch: pytest.MonkeyPatch,
    target: str,
    *,
    unpack_as: str | None = None,
) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_run(argv: Sequence[str], **kwargs: Any) -> None:
        calls.append({"argv": list(argv), **kwargs})
        if argv[0] == "tar" and unpack_as is not None:
            (kwargs["cwd"] / unpack_as).mkdir()

    monkeypatch.setattr(target, fake_run)
    return calls
