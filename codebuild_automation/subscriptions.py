"""
Build status subscriptions

Projects opt into notifications per build type. Every (build project, status
set) pair is resolved into an EffectiveSubscription, and subscriptions that
share the same status set are grouped so that a single EventBridge rule can
match all of their projects.
"""

import copy
import json
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .configuration import ProjectSetup, override_fields
from .events import EVENT_DETAIL_TYPE, EVENT_SOURCE, BuildStatus

logger = logging.getLogger(__name__)

DISPATCH_HANDLER = "codebuild_automation.dispatcher.handler"
TABLE_ENV_VAR = "SUBSCRIPTION_TABLE"
CALLBACK_ENV_VAR = "SUBSCRIPTION_CALLBACK"

# Lambda limit on the combined size of a function's environment variables
ENVIRONMENT_SIZE_LIMIT = 4096


class SubscriptionConfigurationError(ValueError):
    """Subscription settings that cannot be applied to the resolved builds"""


def canonical_status(statuses: Optional[Iterable[Any]]) -> Tuple[str, ...]:
    """
    Validate, deduplicate and sort a list of build statuses

    Raises:
        ValueError: If a value is not a CodeBuild build status
    """
    if not statuses:
        return ()
    if isinstance(statuses, str):
        raise ValueError(f"Status must be a list of build statuses, not {statuses!r}")
    return tuple(sorted({BuildStatus(status).value for status in statuses}))


@dataclass(frozen=True)
class BuildSubscriptions:
    """
    Notification settings shared by every project

    Attributes:
        callback: Import path (``module:attribute``) of the function invoked
            with ``(SubscriptionEvent, options)`` for each matching event
        code: Lambda code asset containing this package and the callback module
        config: Opaque, JSON-serializable configuration handed to the callback
        build_type: Default ``status`` and optional ``config`` per build type
        handler: Lambda handler of the shared dispatch function
    """

    callback: str
    code: Any
    config: Any = None
    build_type: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    handler: str = DISPATCH_HANDLER

    def __post_init__(self) -> None:
        if ":" not in self.callback:
            raise ValueError(
                f"Callback must be an import path like 'package.module:function', got {self.callback!r}"
            )


@dataclass(frozen=True)
class EffectiveSubscription:
    """
    Resolved subscription for one CodeBuild project

    Attributes:
        name: CodeBuild project name, matched against ``detail.project-name``
        project: Name of the logical project the build belongs to
        build_type: Build type key the build was produced under
        status: Canonical (sorted, deduplicated) status set
        options: Build type defaults overridden by the project's own options
    """

    name: str
    project: str
    build_type: str
    status: Tuple[str, ...]
    options: Dict[str, Any]

    @property
    def group_key(self) -> str:
        return ",".join(self.status)


@dataclass
class StatusGroup:
    """Subscriptions sharing one status set, declared as one event rule"""

    key: str
    status: Tuple[str, ...]
    members: List[EffectiveSubscription] = field(default_factory=list)

    @property
    def project_names(self) -> List[str]:
        return [member.name for member in self.members]

    def event_pattern(self) -> Dict[str, Any]:
        """EventBridge pattern matching this group's projects and statuses"""
        return {
            "source": [EVENT_SOURCE],
            "detail-type": [EVENT_DETAIL_TYPE],
            "detail": {
                "build-status": list(self.status),
                "project-name": self.project_names,
            },
        }


def resolve_subscriptions(
    setups: Sequence[ProjectSetup],
    build_type_defaults: Mapping[str, Mapping[str, Any]],
) -> List[EffectiveSubscription]:
    """
    Resolve the effective subscription of every build

    The project's own options for a build type override the build type
    defaults field by field. Builds whose resolved status set is empty are
    left out.

    Raises:
        SubscriptionConfigurationError: If a project overrides a build type
            its build setup did not produce, or two builds share a name
    """
    resolved = []
    seen: Dict[str, str] = {}

    for setup in setups:
        overrides = setup.project.get("subscriptions") or {}
        unknown = sorted(set(overrides) - set(setup.builds))
        if unknown:
            raise SubscriptionConfigurationError(
                f"Project {setup.name} has subscriptions for unknown build types: {', '.join(unknown)}"
            )

        for build_type, build in setup.builds.items():
            if build.name in seen:
                raise SubscriptionConfigurationError(
                    f"Build name {build.name} is used by both {seen[build.name]} and {setup.name}"
                )
            seen[build.name] = setup.name

            options = override_fields(build_type_defaults.get(build_type), overrides.get(build_type))
            status = canonical_status(options.get("status"))
            if not status:
                logger.debug("No subscription for %s (%s)", build.name, build_type)
                continue

            options["status"] = list(status)
            resolved.append(
                EffectiveSubscription(
                    name=build.name,
                    project=setup.name,
                    build_type=build_type,
                    status=status,
                    options=options,
                )
            )

    return resolved


def group_by_status(subscriptions: Iterable[EffectiveSubscription]) -> List[StatusGroup]:
    """Group subscriptions by status set, in order of first appearance"""
    groups: "OrderedDict[str, StatusGroup]" = OrderedDict()
    for subscription in subscriptions:
        if not subscription.status:
            continue
        key = subscription.group_key
        if key not in groups:
            groups[key] = StatusGroup(key=key, status=subscription.status)
        groups[key].members.append(subscription)
    return list(groups.values())


def callback_options(
    config: Any,
    build_type_defaults: Mapping[str, Mapping[str, Any]],
    subscription: EffectiveSubscription,
) -> Dict[str, Any]:
    """
    Options handed to the callback for one subscription

    Global config, overridden by the build type's default status, overridden
    by the subscription's own options. The result shares no objects with its
    inputs, so callers may modify it freely.
    """
    default_status = (build_type_defaults.get(subscription.build_type) or {}).get("status")
    return copy.deepcopy(
        override_fields(
            {"config": config},
            {"status": list(canonical_status(default_status))},
            subscription.options,
        )
    )


def _build_type_options(build_type_defaults: Mapping[str, Mapping[str, Any]], build_type: str) -> Dict[str, Any]:
    options = override_fields(build_type_defaults.get(build_type))
    if "status" in options:
        options["status"] = list(canonical_status(options["status"]))
    return options


def environment_size(environment: Mapping[str, str]) -> int:
    """Size in bytes of a Lambda environment, keys and values included"""
    return sum(len(key.encode("utf-8")) + len(value.encode("utf-8")) for key, value in environment.items())


@dataclass(frozen=True)
class SubscriptionTable:
    """
    Lookup table the dispatch function is armed with

    Serialized into the function's environment at deploy time and read back
    on cold start. Never modified after construction.

    Lambda caps the environment at 4 KB, so each serialized project entry
    only carries the options that differ from its build type defaults.
    """

    config: Any
    build_type: Mapping[str, Mapping[str, Any]]
    subscriptions: Mapping[str, EffectiveSubscription]

    @classmethod
    def build(cls, subscriptions: BuildSubscriptions, resolved: Iterable[EffectiveSubscription]) -> "SubscriptionTable":
        return cls(
            config=subscriptions.config,
            build_type={key: dict(value) for key, value in subscriptions.build_type.items()},
            subscriptions={subscription.name: subscription for subscription in resolved},
        )

    def lookup(self, project_name: str) -> Optional[EffectiveSubscription]:
        return self.subscriptions.get(project_name)

    def options_for(self, subscription: EffectiveSubscription) -> Dict[str, Any]:
        return callback_options(self.config, self.build_type, subscription)

    def to_dict(self) -> Dict[str, Any]:
        projects = {}
        for name, subscription in self.subscriptions.items():
            defaults = _build_type_options(self.build_type, subscription.build_type)
            entry: Dict[str, Any] = {"project": subscription.project, "buildType": subscription.build_type}
            overrides = {
                key: value
                for key, value in subscription.options.items()
                if key not in defaults or defaults[key] != value
            }
            if overrides:
                entry["options"] = overrides
            projects[name] = entry

        return {
            "config": self.config,
            "buildType": {key: _build_type_options(self.build_type, key) for key in self.build_type},
            "projects": projects,
        }

    def to_json(self) -> str:
        """Compact JSON rendering, as written to the function environment"""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SubscriptionTable":
        build_type = data.get("buildType", {})
        subscriptions = {}
        for name, entry in data.get("projects", {}).items():
            options = override_fields(_build_type_options(build_type, entry["buildType"]), entry.get("options"))
            subscriptions[name] = EffectiveSubscription(
                name=name,
                project=entry["project"],
                build_type=entry["buildType"],
                status=canonical_status(options.get("status")),
                options=options,
            )
        return cls(
            config=data.get("config"),
            build_type=build_type,
            subscriptions=subscriptions,
        )
