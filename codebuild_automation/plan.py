"""
Automation plan

Resolves projects, builds and subscription groups without declaring any
resources, so the result can be inspected and tested without a CDK app.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .configuration import BuildSetupStrategy, ProjectArgs, ProjectSetup, resolve_project_setups
from .subscriptions import (
    BuildSubscriptions,
    EffectiveSubscription,
    StatusGroup,
    SubscriptionTable,
    group_by_status,
    resolve_subscriptions,
)


@dataclass(frozen=True)
class AutomationPlan:
    setups: List[ProjectSetup]
    subscriptions: List[EffectiveSubscription] = field(default_factory=list)
    groups: List[StatusGroup] = field(default_factory=list)
    table: Optional[SubscriptionTable] = None


def plan_automation(
    projects: Sequence[ProjectArgs],
    build_setup: BuildSetupStrategy,
    project_defaults: Optional[ProjectArgs] = None,
    subscriptions: Optional[BuildSubscriptions] = None,
) -> AutomationPlan:
    setups = resolve_project_setups(projects, project_defaults, build_setup)
    if subscriptions is None:
        return AutomationPlan(setups=setups)

    resolved = resolve_subscriptions(setups, subscriptions.build_type)
    return AutomationPlan(
        setups=setups,
        subscriptions=resolved,
        groups=group_by_status(resolved),
        table=SubscriptionTable.build(subscriptions, resolved),
    )
