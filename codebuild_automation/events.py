"""
CodeBuild Build State Change event types

EventBridge delivers a "CodeBuild Build State Change" event every time a
build moves between states. The shapes below describe the ``detail`` block of
that event as published by CodeBuild; this package only reads them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, TypedDict, Union

EVENT_SOURCE = "aws.codebuild"
EVENT_DETAIL_TYPE = "CodeBuild Build State Change"


class BuildStatus(str, Enum):
    """Outcome of a build as reported in ``detail.build-status``."""

    FAILED = "FAILED"
    FAULT = "FAULT"
    IN_PROGRESS = "IN_PROGRESS"
    STOPPED = "STOPPED"
    SUCCEEDED = "SUCCEEDED"
    TIMED_OUT = "TIMED_OUT"


class PhaseStatus(str, Enum):
    FAILED = "FAILED"
    FAULT = "FAULT"
    IN_PROGRESS = "IN_PROGRESS"
    # Submitted and queued behind other builds
    QUEUED = "QUEUED"
    STOPPED = "STOPPED"
    SUCCEEDED = "SUCCEEDED"
    TIMED_OUT = "TIMED_OUT"


class PhaseType(str, Enum):
    SUBMITTED = "SUBMITTED"
    PROVISIONING = "PROVISIONING"
    DOWNLOAD_SOURCE = "DOWNLOAD_SOURCE"
    INSTALL = "INSTALL"
    PRE_BUILD = "PRE_BUILD"
    BUILD = "BUILD"
    POST_BUILD = "POST_BUILD"
    UPLOAD_ARTIFACTS = "UPLOAD_ARTIFACTS"
    FINALIZING = "FINALIZING"
    COMPLETED = "COMPLETED"


class ComputeType(str, Enum):
    BUILD_GENERAL1_SMALL = "BUILD_GENERAL1_SMALL"
    BUILD_GENERAL1_MEDIUM = "BUILD_GENERAL1_MEDIUM"
    BUILD_GENERAL1_LARGE = "BUILD_GENERAL1_LARGE"


# Times are formatted like 'Sep 1, 2017 4:12:29 PM' and may be missing
NonCompletedPhase = TypedDict(
    "NonCompletedPhase",
    {
        "phase-type": str,
        "phase-status": str,
        "phase-context": List[Any],
        "start-time": str,
        "end-time": str,
        "duration-in-seconds": int,
    },
    total=False,
)

CompletedPhase = TypedDict(
    "CompletedPhase",
    {"phase-type": Literal["COMPLETED"], "start-time": str},
    total=False,
)

Phase = Union[NonCompletedPhase, CompletedPhase]

BuildArtifact = TypedDict(
    "BuildArtifact",
    {"md5sum": str, "sha256sum": str, "location": str},
)

BuildEnvironment = TypedDict(
    "BuildEnvironment",
    {
        "image": str,
        "privileged-mode": bool,
        "compute-type": str,
        "type": str,
        "environment-variables": List[Any],
    },
    total=False,
)

BuildSource = TypedDict("BuildSource", {"location": str, "type": str}, total=False)

BuildLogs = TypedDict(
    "BuildLogs",
    {"group-name": str, "stream-name": str, "deep-link": str},
)

# artifact, initiator, source and logs are only present for some builds
AdditionalInformation = TypedDict(
    "AdditionalInformation",
    {
        "artifact": BuildArtifact,
        "environment": BuildEnvironment,
        "timeout-in-minutes": int,
        "build-complete": bool,
        "initiator": str,
        "build-start-time": str,
        "source": BuildSource,
        "logs": BuildLogs,
        "phases": List[Phase],
    },
    total=False,
)

CodeBuildStateChangeDetail = TypedDict(
    "CodeBuildStateChangeDetail",
    {
        "build-status": str,
        "project-name": str,
        "build-id": str,
        "additional-information": AdditionalInformation,
        "current-phase": str,
        "current-phase-context": str,
        "version": str,
    },
)


@dataclass(frozen=True)
class SubscriptionEvent:
    """
    Event handed to a subscription callback

    Attributes:
        event: The raw EventBridge event as received by the Lambda function
        detail: The CodeBuild state change detail extracted from ``event``
    """

    event: Dict[str, Any]
    detail: CodeBuildStateChangeDetail

    @property
    def project_name(self) -> str:
        return self.detail["project-name"]

    @property
    def build_status(self) -> str:
        return self.detail["build-status"]

    @property
    def phases(self) -> List[Phase]:
        return self.detail.get("additional-information", {}).get("phases", [])
