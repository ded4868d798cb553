"""Target platform resolution for gitstatusd builds."""

from __future__ import annotations

from .resolve import (
    CPU_BY_ARCH,
    DOCKER_IMAGE_BY_ARCH,
    host_arch,
    host_kernel,
    infer_cpu,
    infer_docker_image,
    is_windows_kernel,
    normalize_kernel,
    resolve_config,
)

__all__ = [
    "CPU_BY_ARCH",
    "DOCKER_IMAGE_BY_ARCH",
    "host_arch",
    "host_kernel",
    "infer_cpu",
    "infer_docker_image",
    "is_windows_kernel",
    "normalize_kernel",
    "resolve_config",
]
