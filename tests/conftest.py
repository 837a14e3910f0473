"""Shared fixtures for the CodeBuild automation tests."""

from typing import Any, Dict

import pytest


@pytest.fixture
def build_state_change_event() -> Dict[str, Any]:
    """A CodeBuild Build State Change event for project P1."""
    return {
        "version": "0",
        "id": "c030038d-8c4d-6141-9545-00ff7b7153EX",
        "detail-type": "CodeBuild Build State Change",
        "source": "aws.codebuild",
        "account": "123456789012",
        "time": "2017-09-01T16:14:28Z",
        "region": "us-west-2",
        "resources": ["arn:aws:codebuild:us-west-2:123456789012:build/P1:8745a7a9"],
        "detail": {
            "build-status": "FAILED",
            "project-name": "P1",
            "build-id": "arn:aws:codebuild:us-west-2:123456789012:build/P1:8745a7a9",
            "additional-information": {
                "environment": {"image": "aws/codebuild/standard:7.0", "type": "LINUX_CONTAINER"},
                "timeout-in-minutes": 60,
                "build-complete": True,
                "initiator": "MyCodeBuildDemoUser",
                "build-start-time": "Sep 1, 2017 4:12:29 PM",
                "logs": {
                    "group-name": "/aws/codebuild/P1",
                    "stream-name": "8745a7a9",
                    "deep-link": "https://console.aws.amazon.com/cloudwatch/home?region=us-west-2#logEvent:group=/aws/codebuild/P1;stream=8745a7a9",
                },
                "phases": [
                    {
                        "phase-context": [],
                        "start-time": "Sep 1, 2017 4:12:29 PM",
                        "end-time": "Sep 1, 2017 4:12:29 PM",
                        "duration-in-seconds": 0,
                        "phase-type": "SUBMITTED",
                        "phase-status": "SUCCEEDED",
                    },
                    {
                        "phase-context": ["COMMAND_EXECUTION_ERROR: exit status 1"],
                        "start-time": "Sep 1, 2017 4:13:05 PM",
                        "end-time": "Sep 1, 2017 4:14:21 PM",
                        "duration-in-seconds": 76,
                        "phase-type": "BUILD",
                        "phase-status": "FAILED",
                    },
                    {"start-time": "Sep 1, 2017 4:14:26 PM", "phase-type": "COMPLETED"},
                ],
            },
            "current-phase": "COMPLETED",
            "current-phase-context": "[]",
            "version": "1",
        },
    }
