"""
Build state change dispatcher

Lambda entry point shared by every subscription event rule. On cold start it
reads the subscription table and the callback import path from the
environment, then routes each CodeBuild state change event to the callback
with the options resolved for the originating project.
"""

import asyncio
import importlib
import inspect
import json
import logging
import os
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from .events import SubscriptionEvent
from .subscriptions import CALLBACK_ENV_VAR, TABLE_ENV_VAR, SubscriptionTable

logger = logging.getLogger()
logger.setLevel(logging.INFO)

SubscriptionCallback = Callable[[SubscriptionEvent, Dict[str, Any]], Union[None, Awaitable[None]]]


class ProjectOptionsNotFoundError(LookupError):
    """The event names a CodeBuild project with no subscription"""


def load_callback(path: str) -> SubscriptionCallback:
    """Import a callback given as ``package.module:attribute``"""
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Invalid callback path {path!r}")

    target: Any = importlib.import_module(module_name)
    for part in attribute.split("."):
        target = getattr(target, part)
    return target


async def _wait(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


class SubscriptionDispatcher:
    """
    Routes build state change events to a subscription callback

    The table is read-only once the dispatcher is built, so a single instance
    can serve concurrent invocations.
    """

    def __init__(self, table: SubscriptionTable, callback: SubscriptionCallback) -> None:
        self.table = table
        self.callback = callback

    @classmethod
    def from_environment(cls, environ: Optional[Dict[str, str]] = None) -> "SubscriptionDispatcher":
        environ = os.environ if environ is None else environ
        table = SubscriptionTable.from_dict(json.loads(environ[TABLE_ENV_VAR]))
        return cls(table, load_callback(environ[CALLBACK_ENV_VAR]))

    def __call__(self, event: Dict[str, Any], context: Any = None) -> None:
        self.dispatch(event)

    def dispatch(self, event: Dict[str, Any]) -> None:
        """
        Invoke the callback once for ``event``

        Raises:
            ProjectOptionsNotFoundError: If no subscription matches the
                event's project name
        """
        detail = event["detail"]
        project_name = detail["project-name"]

        subscription = self.table.lookup(project_name)
        if subscription is None:
            raise ProjectOptionsNotFoundError(f"Project options not found: {project_name}")

        options = self.table.options_for(subscription)
        logger.info(
            f"Dispatching {detail.get('build-status')} for {project_name} (build type {subscription.build_type})"
        )

        result = self.callback(SubscriptionEvent(event=event, detail=detail), options)
        if inspect.isawaitable(result):
            asyncio.run(_wait(result))


_dispatcher: Optional[SubscriptionDispatcher] = None


def handler(event: Dict[str, Any], context: Any) -> None:
    """Lambda handler for CodeBuild Build State Change events"""
    global _dispatcher

    if _dispatcher is None:
        _dispatcher = SubscriptionDispatcher.from_environment()

    try:
        _dispatcher(event, context)
    except Exception as e:
        logger.error(f"Error dispatching build state change: {str(e)}")
        raise
