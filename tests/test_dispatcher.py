"""
Unit tests for the build state change dispatcher.
"""

import json

import pytest

from codebuild_automation import dispatcher
from codebuild_automation.dispatcher import (
    ProjectOptionsNotFoundError,
    SubscriptionDispatcher,
    load_callback,
)
from codebuild_automation.events import SubscriptionEvent
from codebuild_automation.plan import plan_automation
from codebuild_automation.subscriptions import BuildSubscriptions

from . import callbacks
from .builds import ci_only_setup


def make_table(callback="tests.callbacks:record"):
    subscriptions = BuildSubscriptions(
        callback=callback,
        code=None,
        config={"channel": "#builds"},
        build_type={"ci": {"status": ["FAILED"]}},
    )
    plan = plan_automation(
        [{"name": "P1"}, {"name": "P2", "subscriptions": {"ci": {"status": ["FAILED", "STOPPED"]}}}],
        ci_only_setup,
        subscriptions=subscriptions,
    )
    return plan.table


class TestSubscriptionDispatcher:
    def setup_method(self):
        self.calls = []
        self.dispatcher = SubscriptionDispatcher(make_table(), lambda event, options: self.calls.append((event, options)))

    def test_known_project_invokes_callback_once(self, build_state_change_event):
        self.dispatcher.dispatch(build_state_change_event)

        assert len(self.calls) == 1
        event, options = self.calls[0]
        assert isinstance(event, SubscriptionEvent)
        assert event.event is build_state_change_event
        assert event.detail is build_state_change_event["detail"]
        assert options == {"config": {"channel": "#builds"}, "status": ["FAILED"]}

    def test_project_specific_options(self, build_state_change_event):
        build_state_change_event["detail"]["project-name"] = "P2"

        self.dispatcher(build_state_change_event, None)

        assert self.calls[0][1]["status"] == ["FAILED", "STOPPED"]

    def test_unknown_project_raises_without_calling_back(self, build_state_change_event):
        build_state_change_event["detail"]["project-name"] = "unknown"

        with pytest.raises(ProjectOptionsNotFoundError):
            self.dispatcher.dispatch(build_state_change_event)

        assert self.calls == []

    def test_event_without_detail_raises(self):
        with pytest.raises(KeyError):
            self.dispatcher.dispatch({"source": "aws.codebuild"})

        assert self.calls == []

    def test_async_callback_is_awaited(self, build_state_change_event):
        completed = []

        async def callback(event, options):
            completed.append(event.project_name)

        SubscriptionDispatcher(make_table(), callback).dispatch(build_state_change_event)

        assert completed == ["P1"]

    def test_callback_changes_do_not_leak_into_later_dispatches(self, build_state_change_event):
        def callback(event, options):
            self.calls.append(json.loads(json.dumps(options)))
            options["status"].append("SUCCEEDED")
            options["config"]["channel"] = "#elsewhere"

        armed = SubscriptionDispatcher(make_table(), callback)
        armed.dispatch(build_state_change_event)
        armed.dispatch(build_state_change_event)

        expected = {"config": {"channel": "#builds"}, "status": ["FAILED"]}
        assert self.calls == [expected, expected]

    def test_callback_errors_propagate(self, build_state_change_event):
        def callback(event, options):
            raise RuntimeError("webhook down")

        with pytest.raises(RuntimeError, match="webhook down"):
            SubscriptionDispatcher(make_table(), callback).dispatch(build_state_change_event)


class TestLoadCallback:
    def test_module_attribute(self):
        assert load_callback("tests.callbacks:record") is callbacks.record

    def test_nested_attribute(self):
        assert load_callback("tests.callbacks:Nested.record") is callbacks.Nested.record

    def test_invalid_path(self):
        with pytest.raises(ValueError):
            load_callback("tests.callbacks")


class TestLambdaHandler:
    @pytest.fixture(autouse=True)
    def environment(self, monkeypatch):
        monkeypatch.setenv(dispatcher.TABLE_ENV_VAR, json.dumps(make_table().to_dict()))
        monkeypatch.setenv(dispatcher.CALLBACK_ENV_VAR, "tests.callbacks:record")
        monkeypatch.setattr(dispatcher, "_dispatcher", None)
        callbacks.CALLS.clear()

    def test_handler_arms_from_environment(self, build_state_change_event):
        dispatcher.handler(build_state_change_event, None)

        assert len(callbacks.CALLS) == 1
        event, options = callbacks.CALLS[0]
        assert event.project_name == "P1"
        assert options == {"config": {"channel": "#builds"}, "status": ["FAILED"]}

    def test_handler_reuses_dispatcher(self, build_state_change_event):
        dispatcher.handler(build_state_change_event, None)
        armed = dispatcher._dispatcher

        dispatcher.handler(build_state_change_event, None)

        assert dispatcher._dispatcher is armed
        assert len(callbacks.CALLS) == 2

    def test_handler_reraises_dispatch_miss(self, build_state_change_event):
        build_state_change_event["detail"]["project-name"] = "unknown"

        with pytest.raises(ProjectOptionsNotFoundError):
            dispatcher.handler(build_state_change_event, None)

        assert callbacks.CALLS == []
