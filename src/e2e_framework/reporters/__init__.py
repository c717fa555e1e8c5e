"""Run reporting: attachments, custom reports and notifications."""

from e2e_framework.reporters.attachments import AttachmentRecorder
from e2e_framework.reporters.custom_reporter import CustomReporter
from e2e_framework.reporters.notifications import NotificationService

__all__ = ["AttachmentRecorder", "CustomReporter", "NotificationService"]
