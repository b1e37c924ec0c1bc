"""
Settings module for fs-inspector.
"""

from fs_inspector.settings.config import ENV_PREFIX, ServerSettings

__all__ = [
    "ENV_PREFIX",
    "ServerSettings",
]
