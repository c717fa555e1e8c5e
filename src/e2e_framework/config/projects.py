"""Named browser/device projects a run can target with ``--project``."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from e2e_framework.models.browser_models import BrowserType


class ProjectConfig(BaseModel):
    """A browser and device combination tests run against."""

    name: str = Field(description="Project name")
    browser_type: BrowserType = Field(
        default=BrowserType.CHROMIUM, description="Browser engine"
    )
    device: Optional[str] = Field(
        default=None, description="Playwright device descriptor name"
    )
    channel: Optional[str] = Field(default=None, description="Branded browser channel")
    base_url: Optional[str] = Field(
        default=None, description="Override of the run's base URL"
    )
    requires_browser: bool = Field(default=True, description="Whether a browser is launched")
    markers: List[str] = Field(
        default_factory=list, description="Markers selected when the project runs alone"
    )

    def context_options(self, devices: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """Context options from the device descriptor, if any.

        Args:
            devices: ``playwright.devices`` mapping

        Raises:
            KeyError: If the device name is unknown to Playwright
        """
        if not self.device:
            return {}
        if self.device not in devices:
            raise KeyError(f"Unknown Playwright device: {self.device}")
        options = dict(devices[self.device])
        # Launch-level key, not a context option
        options.pop("default_browser_type", None)
        return options


PROJECTS: Dict[str, ProjectConfig] = {
    "chromium": ProjectConfig(
        name="chromium", device="Desktop Chrome"
    ),
    "firefox": ProjectConfig(
        name="firefox", browser_type=BrowserType.FIREFOX, device="Desktop Firefox"
    ),
    "webkit": ProjectConfig(
        name="webkit", browser_type=BrowserType.WEBKIT, device="Desktop Safari"
    ),
    "mobile-chrome": ProjectConfig(name="mobile-chrome", device="Pixel 5"),
    "mobile-safari": ProjectConfig(
        name="mobile-safari", browser_type=BrowserType.WEBKIT, device="iPhone 12"
    ),
    "tablet": ProjectConfig(
        name="tablet", browser_type=BrowserType.WEBKIT, device="iPad Pro 11"
    ),
    "api": ProjectConfig(name="api", requires_browser=False, markers=["api"]),
    "visual-chromium": ProjectConfig(
        name="visual-chromium", device="Desktop Chrome", markers=["visual"]
    ),
}

DEFAULT_PROJECT = "chromium"


def get_project(name: Optional[str] = None) -> ProjectConfig:
    """Look up a project by name.

    Raises:
        KeyError: If the project is not defined
    """
    name = name or DEFAULT_PROJECT
    if name not in PROJECTS:
        known = ", ".join(sorted(PROJECTS))
        raise KeyError(f"Unknown project '{name}'. Known projects: {known}")
    return PROJECTS[name]


def list_projects() -> List[str]:
    return list(PROJECTS)
