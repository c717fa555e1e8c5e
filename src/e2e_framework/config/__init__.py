"""Framework settings and browser projects."""

from e2e_framework.config.projects import PROJECTS, ProjectConfig, get_project
from e2e_framework.config.settings import FrameworkSettings, load_settings

__all__ = [
    "PROJECTS",
    "ProjectConfig",
    "get_project",
    "FrameworkSettings",
    "load_settings",
]
