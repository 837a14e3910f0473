"""
AutomationServer construct

Declares CodeBuild projects (with optional webhook triggers) for a list of
projects that share a build setup strategy, and wires build state change
notifications for the projects that subscribe to them:

- One CodeBuild project per build configuration
- An IAM role and inline policy for the notification function
- One Lambda function shared by every subscription
- One EventBridge rule per distinct status set, targeting that function
"""

from typing import Dict, List, Optional, Sequence

from aws_cdk import (
    Duration,
    Stack,
    aws_codebuild as codebuild,
    aws_events as events,
    aws_events_targets as targets,
    aws_iam as iam,
    aws_lambda as lambda_,
)
from constructs import Construct

from .configuration import BuildConfiguration, BuildSetupStrategy, ProjectArgs
from .plan import AutomationPlan, plan_automation
from .subscriptions import (
    CALLBACK_ENV_VAR,
    ENVIRONMENT_SIZE_LIMIT,
    TABLE_ENV_VAR,
    BuildSubscriptions,
    SubscriptionConfigurationError,
    environment_size,
)


class AutomationServer(Construct):
    """
    CodeBuild projects and build status subscriptions for many projects

    Attributes:
        plan: The resolved builds, subscriptions and status groups
        projects: Declared CodeBuild projects, in declaration order
        webhooks: Webhook triggers keyed by CodeBuild project name
        subscription_role: Role of the notification function
        subscription_role_policy: Inline policy granting build read access
        subscription_function: The shared notification function
        event_rules: One rule per distinct status set
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        build_setup: BuildSetupStrategy,
        projects: Sequence[ProjectArgs],
        project_defaults: Optional[ProjectArgs] = None,
        subscriptions: Optional[BuildSubscriptions] = None,
        runtime: Optional[lambda_.Runtime] = None,
        timeout: Optional[Duration] = None,
    ) -> None:
        super().__init__(scope, construct_id)

        self.plan: AutomationPlan = plan_automation(
            projects,
            build_setup,
            project_defaults=project_defaults,
            subscriptions=subscriptions,
        )

        self.projects: List[codebuild.CfnProject] = []
        self.webhooks: Dict[str, codebuild.CfnProject.ProjectTriggersProperty] = {}
        self.subscription_role: Optional[iam.Role] = None
        self.subscription_role_policy: Optional[iam.Policy] = None
        self.subscription_function: Optional[lambda_.Function] = None
        self.event_rules: List[events.Rule] = []

        for setup in self.plan.setups:
            for build in setup.builds.values():
                self.projects.append(self._create_build_project(build))

        if subscriptions is not None:
            self.subscription_role = self._create_subscription_role()
            self.subscription_role_policy = self._create_subscription_role_policy()
            self.subscription_function = self._create_subscription_function(
                subscriptions,
                runtime or lambda_.Runtime.PYTHON_3_12,
                timeout or Duration.minutes(1),
            )
            self.event_rules = self._create_event_rules()

    def _create_build_project(self, build: BuildConfiguration) -> codebuild.CfnProject:
        """Declare one CodeBuild project, with a webhook trigger if filters are given"""
        props = dict(build.build)

        if build.webhook_filter_groups is not None:
            trigger = codebuild.CfnProject.ProjectTriggersProperty(
                webhook=True,
                filter_groups=list(build.webhook_filter_groups),
            )
            props["triggers"] = trigger
            self.webhooks[build.name] = trigger

        return codebuild.CfnProject(self, build.name, **props)

    def _create_subscription_role(self) -> iam.Role:
        return iam.Role(
            self,
            "SubscriptionRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            description="Role for the CodeBuild build status notification function",
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    "service-role/AWSLambdaBasicExecutionRole"
                )
            ],
        )

    def _create_subscription_role_policy(self) -> iam.Policy:
        return iam.Policy(
            self,
            "SubscriptionRolePolicy",
            roles=[self.subscription_role],
            statements=[
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=[
                        "codebuild:ListBuildsForProject",
                        "codebuild:BatchGetBuilds",
                    ],
                    resources=["*"],
                )
            ],
        )

    def _create_subscription_function(
        self,
        subscriptions: BuildSubscriptions,
        runtime: lambda_.Runtime,
        timeout: Duration,
    ) -> lambda_.Function:
        """
        Create the Lambda function shared by all event rules

        Raises:
            SubscriptionConfigurationError: If the subscription table does not
                fit in the function's environment
        """
        # Unresolved tokens in config are measured by their placeholder text
        size = environment_size(
            {TABLE_ENV_VAR: self.plan.table.to_json(), CALLBACK_ENV_VAR: subscriptions.callback}
        )
        if size > ENVIRONMENT_SIZE_LIMIT:
            raise SubscriptionConfigurationError(
                f"Subscription table for {len(self.plan.subscriptions)} builds needs {size} bytes of "
                f"function environment, over the {ENVIRONMENT_SIZE_LIMIT} byte Lambda limit. "
                "Split the projects across several AutomationServer constructs or move shared "
                "options into the build type defaults."
            )

        table = Stack.of(self).to_json_string(self.plan.table.to_dict())

        return lambda_.Function(
            self,
            "SubscriptionFunction",
            runtime=runtime,
            handler=subscriptions.handler,
            code=subscriptions.code,
            role=self.subscription_role,
            timeout=timeout,
            description="Dispatches CodeBuild build state changes to subscriptions",
            environment={
                TABLE_ENV_VAR: table,
                CALLBACK_ENV_VAR: subscriptions.callback,
            },
        )

    def _create_event_rules(self) -> List[events.Rule]:
        """Create one EventBridge rule per status group"""
        rules = []

        for index, group in enumerate(self.plan.groups):
            pattern = group.event_pattern()
            rule = events.Rule(
                self,
                f"EventRule{index}",
                description=f"CodeBuild build status {group.key}",
                event_pattern=events.EventPattern(
                    source=pattern["source"],
                    detail_type=pattern["detail-type"],
                    detail=pattern["detail"],
                ),
            )
            rule.add_target(targets.LambdaFunction(self.subscription_function))
            rules.append(rule)

        return rules
