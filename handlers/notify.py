"""
Build Status Notification Callback

Subscription callback that publishes a short summary of a CodeBuild build
state change to an SNS topic. The topic is taken from the subscription config
(``topic_arn``) or from the NOTIFICATION_TOPIC_ARN environment variable.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import boto3

from codebuild_automation.events import PhaseStatus, SubscriptionEvent

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

_sns_client = None


def get_sns_client():
    global _sns_client
    if _sns_client is None:
        _sns_client = boto3.client("sns")
    return _sns_client


def failed_phases(event: SubscriptionEvent) -> List[str]:
    """Names of the phases that did not succeed"""
    failed = []
    for phase in event.phases:
        status = phase.get("phase-status")
        if status and status not in (PhaseStatus.SUCCEEDED.value, PhaseStatus.IN_PROGRESS.value):
            failed.append(f"{phase['phase-type']} ({status})")
    return failed


def format_message(event: SubscriptionEvent) -> str:
    """
    Build the notification body for a build state change

    Args:
        event: The subscription event

    Returns:
        Plain text message listing the build, its status and any failed phases
    """
    detail = event.detail
    info = detail.get("additional-information", {})

    lines = [
        f"Project: {event.project_name}",
        f"Status: {event.build_status}",
        f"Build: {detail.get('build-id', 'unknown')}",
    ]

    if info.get("initiator"):
        lines.append(f"Initiator: {info['initiator']}")

    phases = failed_phases(event)
    if phases:
        lines.append(f"Failed phases: {', '.join(phases)}")

    deep_link = info.get("logs", {}).get("deep-link")
    if deep_link:
        lines.append(f"Logs: {deep_link}")

    return "\n".join(lines)


def on_build_state_change(event: SubscriptionEvent, options: Dict[str, Any]) -> Optional[str]:
    """
    Publish a build state change to SNS

    Returns:
        The SNS message id
    """
    config = options.get("config") or {}
    topic_arn = config.get("topic_arn") or os.environ.get("NOTIFICATION_TOPIC_ARN")
    if not topic_arn:
        raise ValueError("No SNS topic configured for build notifications")

    subject = f"[{event.build_status}] {event.project_name}"
    response = get_sns_client().publish(
        TopicArn=topic_arn,
        Subject=subject[:100],
        Message=format_message(event),
    )

    logger.info(f"Published notification {response['MessageId']} for {event.project_name}")
    return response["MessageId"]
