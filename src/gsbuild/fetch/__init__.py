"""Pinned dependency manifest, retrieval and integrity verification."""

from .digest import DIGEST_TOOLS, DigestTool, compute_sha256, normalize_digest, verify_sha256
from .http import WGET_VARIANTS, download, fetch_dependency
from .manifest import MANIFEST_NAME, dependency_spec, parse_manifest, read_manifest

__all__ = [
    "DIGEST_TOOLS",
    "DigestTool",
    "MANIFEST_NAME",
    "WGET_VARIANTS",
    "compute_sha256",
    "dependency_spec",
    "download",
    "fetch_dependency",
    "normalize_digest",
    "parse_manifest",
    "read_manifest",
    "verify_sha256",
]
