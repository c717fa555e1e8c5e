"""Records collected by the custom reporter."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TestStatus(str, Enum):
    """Final status of a test."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    TIMED_OUT = "timedOut"


class TestResultRecord(BaseModel):
    """Outcome of a single test."""

    __test__ = False

    title: str = Field(description="Test name")
    nodeid: str = Field(default="", description="pytest node id")
    status: TestStatus = Field(description="Final status")
    duration: int = Field(default=0, description="Duration in milliseconds")
    error: Optional[str] = Field(default=None, description="First line of the failure")
    project_name: str = Field(default="unknown", description="Project the test ran in")
    tags: List[str] = Field(default_factory=list, description="Markers on the test")
    attachments: List[Dict[str, str]] = Field(
        default_factory=list, description="Artifacts attached to the test"
    )


class RunSummary(BaseModel):
    """Totals for a run."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    success_rate: float = 0.0
    duration: int = Field(default=0, description="Wall clock duration in milliseconds")
    timestamp: datetime = Field(default_factory=datetime.now)


class ExecutionMetrics(BaseModel):
    """Duration statistics across the run."""

    total_duration: int = 0
    average_test_duration: int = 0
    slowest_test: str = "None"
    slowest_test_duration: int = 0
    fastest_test: str = "None"
    fastest_test_duration: int = 0


class ProjectStats(BaseModel):
    """Per-project counts."""

    total: int = 0
    passed: int = 0
    failed: int = 0
