"""BDD step definitions for the agent lifecycle feature."""

from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when
from tests.fakes import RecordingTransport

import vigilant
from vigilant import Config, Vigilant
from vigilant.core.errors import NotInitializedError, TransportError


@dataclass
class AgentScenarioContext:
    transport: RecordingTransport = field(default_factory=RecordingTransport)
    agent: Vigilant | None = None
    error: Exception | None = None
    logged: list[str] = field(default_factory=list)


@pytest.fixture
def ctx() -> AgentScenarioContext:
    """Fresh scenario context for each test."""
    return AgentScenarioContext()


def _delivered(ctx: AgentScenarioContext, type_: str) -> list[dict]:
    return [item for payload in ctx.transport.of_type(type_) for item in payload[type_]]


def _attempt(ctx: AgentScenarioContext, action) -> None:
    try:
        action()
    except Exception as e:
        ctx.error = e


# === Background Steps ===
@given("a recording transport")
def step_transport(ctx: AgentScenarioContext) -> None:
    ctx.transport = RecordingTransport()


@given(parsers.parse('an agent configured for service "{name}"'))
def step_agent(ctx: AgentScenarioContext, name: str) -> None:
    config = Config(name=name, token="bdd-token", batch_interval=0.01)
    ctx.agent = vigilant.init(config, transport=ctx.transport)


@given("no agent has been initialized")
def step_no_agent(ctx: AgentScenarioContext) -> None:
    vigilant.shutdown()
    ctx.agent = None


@given("the transport rejects every payload")
def step_rejecting_transport(ctx: AgentScenarioContext) -> None:
    ctx.transport.fail_with = TransportError("rejected")


# === Emit Steps ===
@when(parsers.parse("the application logs {n:d} info messages"))
def step_log_n(ctx: AgentScenarioContext, n: int) -> None:
    for i in range(n):
        body = f"message {i}"
        ctx.logged.append(body)
        _attempt(ctx, lambda body=body: vigilant.log_info(body))


@when(parsers.parse('the application raises an alert titled "{title}"'))
def step_alert(ctx: AgentScenarioContext, title: str) -> None:
    _attempt(ctx, lambda: vigilant.create_alert(title))


@when(parsers.parse('the application increments counter "{name}" by {value:d}'))
def step_counter(ctx: AgentScenarioContext, name: str, value: int) -> None:
    _attempt(ctx, lambda: vigilant.metric_counter(name, value))


@when(
    parsers.parse(
        'the application logs "{body}" with ambient attribute "{key}" set to "{value}"'
    )
)
def step_log_with_ambient(ctx: AgentScenarioContext, body: str, key: str, value: str) -> None:
    vigilant.with_attributes({key: value}, lambda: vigilant.log_info(body))


@when("the application logs without an agent")
def step_log_without_agent(ctx: AgentScenarioContext) -> None:
    _attempt(ctx, lambda: vigilant.log_info("nobody listens"))


@when("the agent is shut down")
def step_shutdown(ctx: AgentScenarioContext) -> None:
    assert ctx.agent is not None
    _attempt(ctx, ctx.agent.shutdown)


# === Outcome Steps ===
@then(parsers.parse("{n:d} logs are delivered in the order they were logged"))
def step_logs_delivered(ctx: AgentScenarioContext, n: int) -> None:
    bodies = [log["body"] for log in _delivered(ctx, "logs")]
    assert len(bodies) == n
    assert bodies == ctx.logged


@then(parsers.parse('every delivered log has service name "{name}"'))
def step_service_name(ctx: AgentScenarioContext, name: str) -> None:
    for log in _delivered(ctx, "logs"):
        assert log["attributes"]["service.name"] == name


@then(parsers.parse('an alert titled "{title}" is delivered'))
def step_alert_delivered(ctx: AgentScenarioContext, title: str) -> None:
    assert [alert["title"] for alert in _delivered(ctx, "alerts")] == [title]


@then("no logs are delivered")
def step_no_logs(ctx: AgentScenarioContext) -> None:
    assert _delivered(ctx, "logs") == []


@then(parsers.parse('the delivered counter "{name}" totals {total:d}'))
def step_counter_total(ctx: AgentScenarioContext, name: str, total: int) -> None:
    counters = [
        counter
        for payload in ctx.transport.metrics()
        for counter in payload["metrics_counters"]
        if counter["metric_name"] == name
    ]
    assert sum(counter["value"] for counter in counters) == total


@then(parsers.parse('the log "{body}" carries attribute "{key}" with value "{value}"'))
def step_log_attribute(ctx: AgentScenarioContext, body: str, key: str, value: str) -> None:
    [log] = [log for log in _delivered(ctx, "logs") if log["body"] == body]
    assert log["attributes"][key] == value


@then("the transport is closed")
def step_transport_closed(ctx: AgentScenarioContext) -> None:
    assert ctx.transport.closed


@then("a not initialized error is raised")
def step_not_initialized(ctx: AgentScenarioContext) -> None:
    assert isinstance(ctx.error, NotInitializedError)


@then("no error reaches the application")
def step_no_error(ctx: AgentScenarioContext) -> None:
    assert ctx.error is None
    assert len(ctx.transport.payloads) >= 1
