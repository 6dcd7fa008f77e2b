"""
bookvault.utils - Utility module

Common utilities including logging configuration and path resolution.
"""

from bookvault.utils.paths import DEFAULT_CONFIG_DIR, prefs_path, resolve_config_dir

__all__ = ["DEFAULT_CONFIG_DIR", "prefs_path", "resolve_config_dir"]
