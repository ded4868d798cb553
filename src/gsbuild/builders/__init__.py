from .base import BuildContext, Builder, detect_jobs
from .gitstatusd import GitstatusdBuilder, published_binary_path, temp_binary_path
from .libgit2 import CMAKE_FEATURE_FLAGS, Libgit2Builder

__all__ = [
    "BuildContext",
    "Builder",
    "CMAKE_FEATURE_FLAGS",
    "GitstatusdBuilder",
    "Libgit2Builder",
    "detect_jobs",
    "published_binary_path",
    "temp_binary_path",
]
