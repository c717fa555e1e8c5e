"""Run-level setup and teardown."""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from e2e_framework.config.settings import FrameworkSettings

logger = logging.getLogger(__name__)

ARCHIVE_ROOT = Path("archived-results")


def global_setup(settings: FrameworkSettings) -> None:
    """Create the artifact directories before any test runs.

    Raises:
        OSError: If a directory cannot be created
    """
    logger.info("Starting global setup...")
    try:
        settings.ensure_directories()
    except OSError as e:
        logger.error(f"Global setup failed: {e}")
        raise
    logger.info("Global setup completed successfully")


def archive_results(
    results_dir: Path, archive_root: Path = ARCHIVE_ROOT
) -> Optional[Path]:
    """Copy ``results_dir`` to ``archive_root/<timestamp>``."""
    if not results_dir.exists():
        return None

    timestamp = datetime.now().isoformat().replace(":", "-").replace(".", "-")
    archive_dir = archive_root / timestamp
    archive_root.mkdir(parents=True, exist_ok=True)
    shutil.copytree(results_dir, archive_dir)
    logger.info(f"Test results archived to {archive_dir}")
    return archive_dir


def global_teardown(
    settings: FrameworkSettings, archive_root: Path = ARCHIVE_ROOT
) -> None:
    """Archive results when enabled. Errors are logged, never raised."""
    logger.info("Starting global teardown...")
    try:
        if settings.archive_results:
            archive_results(settings.results_dir, archive_root)
        logger.info("Global teardown completed successfully")
    except OSError as e:
        logger.error(f"Global teardown failed: {e}")
