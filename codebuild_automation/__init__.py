"""
CodeBuild automation helpers

Resolution, grouping and dispatch live in CDK-free modules so the dispatch
function can import this package without ``aws-cdk-lib``. The CDK construct
is imported from ``codebuild_automation.automation_server`` and the Lambda
entry point lives in ``codebuild_automation.dispatcher``.
"""

from .configuration import BuildConfiguration, ProjectSetup, override_fields, resolve_project_setups
from .events import BuildStatus, ComputeType, PhaseStatus, PhaseType, SubscriptionEvent
from .plan import AutomationPlan, plan_automation
from .subscriptions import (
    BuildSubscriptions,
    EffectiveSubscription,
    StatusGroup,
    SubscriptionConfigurationError,
    SubscriptionTable,
    group_by_status,
    resolve_subscriptions,
)

__version__ = "1.0.0"
