#!/usr/bin/env python3
"""
AWS CDK Python Application for CodeBuild Automation

Deploys two stacks:
- BuildAutomation: CI and pull request CodeBuild projects for every
  repository listed in the ``projects`` context value, with build status
  notifications delivered to SNS
- EcsCluster: VPC and ECS cluster capacity for the built containers
"""

import os
from typing import Any, Dict

from aws_cdk import App, Environment, Tags

from stacks.automation_stack import BuildAutomationStack
from stacks.cluster_stack import EcsClusterStack


def get_configuration() -> Dict[str, Any]:
    """
    Get configuration parameters from environment variables or defaults

    Returns:
        Dict containing configuration parameters
    """
    notify_on_status = [status.strip() for status in os.getenv("NOTIFY_ON_STATUS", "").split(",") if status.strip()]

    return {
        "environment_name": os.getenv("ENVIRONMENT", "dev"),
        "notification_email": os.getenv("NOTIFICATION_EMAIL"),
        "notify_on_status": notify_on_status or None,
        "cluster_prefix": os.getenv("CLUSTER_PREFIX", "infratest"),
        "cluster_az_count": int(os.getenv("CLUSTER_AZ_COUNT", "2")),
        "cluster_instance_type": os.getenv("CLUSTER_INSTANCE_TYPE", "t2.small"),
        "cluster_min_size": int(os.getenv("CLUSTER_MIN_SIZE", "10")),
    }


def main() -> None:
    app = App()

    account = os.getenv("CDK_DEFAULT_ACCOUNT", os.getenv("AWS_ACCOUNT_ID"))
    region = os.getenv("CDK_DEFAULT_REGION", os.getenv("AWS_REGION", "us-east-1"))
    env = Environment(account=account, region=region)

    config = get_configuration()
    projects = app.node.try_get_context("projects") or []

    BuildAutomationStack(
        app,
        "BuildAutomation",
        description="CodeBuild projects, webhooks and build status notifications",
        projects=projects,
        environment_name=config["environment_name"],
        notify_on_status=config["notify_on_status"],
        notification_email=config["notification_email"],
        env=env,
    )

    EcsClusterStack(
        app,
        "EcsCluster",
        description="VPC and ECS cluster infrastructure",
        prefix=config["cluster_prefix"],
        number_of_availability_zones=config["cluster_az_count"],
        instance_type=config["cluster_instance_type"],
        min_capacity=config["cluster_min_size"],
        env=env,
    )

    Tags.of(app).add("Application", "CodeBuildAutomation")
    Tags.of(app).add("Environment", config["environment_name"])
    Tags.of(app).add("ManagedBy", "CDK")

    app.synth()


if __name__ == "__main__":
    main()
