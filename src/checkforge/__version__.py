"""Version information for CheckForge"""

__version__ = "1.0.0"
__version_info__ = (1, 0, 0)
__release_date__ = "2026-10-18"
