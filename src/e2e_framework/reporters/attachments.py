"""Artifacts attached to a running test.

Attachments are stored on the pytest item's ``user_properties`` so they end up
in the JUnit XML report and are picked up by the custom reporter.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

ATTACHMENT_PROPERTY = "attachment"


class AttachmentRecorder:
    """Collect artifacts produced during a test.

    Args:
        node: pytest item the attachments belong to (optional)
    """

    def __init__(self, node: Optional[Any] = None):
        self.node = node
        self.attachments: List[Dict[str, str]] = []

    def attach(self, name: str, path: Union[str, Path], content_type: str) -> Dict[str, str]:
        record = {"name": name, "path": str(path), "content_type": content_type}
        self.attachments.append(record)
        if self.node is not None:
            self.node.user_properties.append((ATTACHMENT_PROPERTY, record))
        logger.debug(f"Attached {name}: {path}")
        return record


def attachments_from_properties(user_properties: List[Any]) -> List[Dict[str, str]]:
    """Extract attachment records from a report's user properties."""
    return [
        value
        for key, value in user_properties
        if key == ATTACHMENT_PROPERTY and isinstance(value, dict)
    ]
