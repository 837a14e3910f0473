"""
Build Automation Stack

Declares a CI build (pushes to the default branch) and a pull request build
for every configured repository, and sends build status notifications to an
SNS topic for the projects that subscribe to them.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from aws_cdk import (
    CfnOutput,
    Stack,
    aws_codebuild as codebuild,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_sns as sns,
    aws_sns_subscriptions as sns_subscriptions,
)
from constructs import Construct

from codebuild_automation.automation_server import AutomationServer
from codebuild_automation.configuration import BuildConfiguration
from codebuild_automation.subscriptions import BuildSubscriptions

ROOT_DIR = Path(__file__).resolve().parent.parent

# Everything in the repository that the notification function does not need
ASSET_EXCLUDES = [
    "cdk.out",
    ".git",
    ".venv",
    ".pytest_cache",
    "tests",
    "stacks",
    "*.md",
    "*.txt",
    "*.json",
    "*.egg-info",
    "**/__pycache__",
    "app.py",
    "setup.py",
]

DEFAULT_BUILD_IMAGE = "aws/codebuild/standard:7.0"


def _webhook_filter(filter_type: str, pattern: str) -> codebuild.CfnProject.WebhookFilterProperty:
    return codebuild.CfnProject.WebhookFilterProperty(type=filter_type, pattern=pattern)


def _build_args(
    project: Dict[str, Any],
    build_type: str,
    buildspec: str,
    service_role: str,
) -> Dict[str, Any]:
    """CfnProject properties shared by every build of a repository"""
    return {
        "name": f"{project['name']}-{build_type}",
        "description": f"{build_type.upper()} build for {project['name']}",
        "service_role": service_role,
        "source": codebuild.CfnProject.SourceProperty(
            type="GITHUB",
            location=project["repository"],
            build_spec=buildspec,
            report_build_status=True,
        ),
        "artifacts": codebuild.CfnProject.ArtifactsProperty(type="NO_ARTIFACTS"),
        "environment": codebuild.CfnProject.EnvironmentProperty(
            type="LINUX_CONTAINER",
            compute_type=project["compute_type"],
            image=project["image"],
            privileged_mode=project.get("privileged", False),
        ),
        "timeout_in_minutes": project["timeout_in_minutes"],
    }


class BuildAutomationStack(Stack):
    """
    Stack for per-branch and per-pull-request CodeBuild automation

    Each project mapping needs ``name`` and ``repository``; ``branch``,
    ``compute_type``, ``image``, ``buildspec`` and ``subscriptions`` are
    optional and fall back to the stack defaults.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        projects: Sequence[Dict[str, Any]],
        environment_name: str = "dev",
        notify_on_status: Optional[List[str]] = None,
        notification_email: Optional[str] = None,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.environment_name = environment_name

        self.codebuild_role = self._create_codebuild_role()
        self.notification_topic = self._create_notification_topic(notification_email)

        self.automation = AutomationServer(
            self,
            "AutomationServer",
            build_setup=self._build_setup,
            projects=projects,
            project_defaults={
                "branch": "main",
                "compute_type": "BUILD_GENERAL1_SMALL",
                "image": DEFAULT_BUILD_IMAGE,
                "buildspec": "buildspec.yml",
                "timeout_in_minutes": 30,
            },
            subscriptions=BuildSubscriptions(
                callback="handlers.notify:on_build_state_change",
                code=lambda_.Code.from_asset(str(ROOT_DIR), exclude=ASSET_EXCLUDES),
                config={"topic_arn": self.notification_topic.topic_arn},
                build_type={
                    "ci": {"status": notify_on_status or ["FAILED", "FAULT", "TIMED_OUT"]},
                    # Pull request builds report back to GitHub, so no default notifications
                    "pr": {"status": []},
                },
            ),
        )

        self.notification_topic.grant_publish(self.automation.subscription_role)

        self._create_outputs()

    def _build_setup(self, project: Dict[str, Any]) -> Dict[str, BuildConfiguration]:
        """Build configurations for one repository, keyed by build type"""
        role_arn = self.codebuild_role.role_arn
        buildspec = project["buildspec"]

        return {
            "ci": BuildConfiguration(
                build=_build_args(project, "ci", buildspec, role_arn),
                webhook_filter_groups=[
                    [
                        _webhook_filter("EVENT", "PUSH"),
                        _webhook_filter("HEAD_REF", f"^refs/heads/{project['branch']}$"),
                    ]
                ],
            ),
            "pr": BuildConfiguration(
                build=_build_args(project, "pr", buildspec, role_arn),
                webhook_filter_groups=[
                    [
                        _webhook_filter("EVENT", "PULL_REQUEST_CREATED,PULL_REQUEST_UPDATED,PULL_REQUEST_REOPENED"),
                        _webhook_filter("BASE_REF", f"^refs/heads/{project['branch']}$"),
                    ]
                ],
            ),
        }

    def _create_codebuild_role(self) -> iam.Role:
        """Create IAM role shared by the CodeBuild projects"""
        role = iam.Role(
            self,
            "CodeBuildRole",
            assumed_by=iam.ServicePrincipal("codebuild.amazonaws.com"),
            description="Role for automation CodeBuild projects",
        )

        role.add_to_policy(
            iam.PolicyStatement(
                actions=[
                    "logs:CreateLogGroup",
                    "logs:CreateLogStream",
                    "logs:PutLogEvents",
                ],
                resources=[
                    f"arn:aws:logs:{self.region}:{self.account}:log-group:/aws/codebuild/*",
                ],
            )
        )

        return role

    def _create_notification_topic(self, notification_email: Optional[str]) -> sns.Topic:
        topic = sns.Topic(
            self,
            "BuildNotificationTopic",
            topic_name=f"codebuild-automation-notifications-{self.environment_name}",
            display_name="CodeBuild Automation Notifications",
        )

        if notification_email:
            topic.add_subscription(sns_subscriptions.EmailSubscription(notification_email))

        return topic

    def _create_outputs(self) -> None:
        CfnOutput(
            self,
            "NotificationTopicArn",
            value=self.notification_topic.topic_arn,
            description="SNS topic receiving build status notifications",
        )
        CfnOutput(
            self,
            "BuildProjectNames",
            value=",".join(
                build.name for setup in self.automation.plan.setups for build in setup.builds.values()
            ),
            description="CodeBuild projects declared for the configured repositories",
        )
