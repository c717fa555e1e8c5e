"""Run-complete notifications for chat channels."""

import logging
from typing import Optional

import httpx

from e2e_framework.config.settings import FrameworkSettings
from e2e_framework.models.report_models import RunSummary

logger = logging.getLogger(__name__)


def build_message(summary: RunSummary) -> str:
    outcome = (
        "Some tests failed. Please check the detailed report."
        if summary.failed > 0
        else "All tests passed!"
    )
    return (
        "Test Execution Complete!\n\n"
        "Results:\n"
        f"- Total: {summary.total}\n"
        f"- Passed: {summary.passed}\n"
        f"- Failed: {summary.failed}\n"
        f"- Skipped: {summary.skipped}\n"
        f"- Success Rate: {summary.success_rate:.1f}%\n"
        f"- Duration: {summary.duration / 1000:.1f}s\n\n"
        f"{outcome}"
    )


class NotificationService:
    """Post run summaries to Slack and Teams incoming webhooks.

    Failures are logged and never propagate into the test run.
    """

    def __init__(
        self,
        settings: FrameworkSettings,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.settings = settings
        self.transport = transport

    def send_all(self, summary: RunSummary) -> None:
        message = build_message(summary)

        if self.settings.slack_webhook_url:
            self._post("Slack", self.settings.slack_webhook_url, {"text": message})
        if self.settings.teams_webhook_url:
            self._post("Teams", self.settings.teams_webhook_url, {"text": message})
        if self.settings.email_enabled:
            self.send_email(message)

    def _post(self, channel: str, url: str, payload: dict) -> bool:
        try:
            with httpx.Client(timeout=10.0, transport=self.transport) as client:
                response = client.post(url, json=payload)
                response.raise_for_status()
            logger.info(f"{channel} notification sent")
            return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send {channel} notification: {e}")
            return False

    def send_email(self, message: str) -> None:
        # No mail transport is configured; the message is only logged
        logger.info(f"Email notification would be sent: {message}")
