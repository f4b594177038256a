"""End-to-end tests for the Vigilant agent with a recording transport."""

import asyncio
import dataclasses
import logging
import sys
import threading

import pytest
from tests.fakes import RecordingTransport

import vigilant
from vigilant import Config, Log, LogLevel, Vigilant
from vigilant.adapters.logging import VigilantHandler
from vigilant.attributes import with_attributes
from vigilant.core.errors import ConfigNameRequiredError, NotInitializedError

pytestmark = [pytest.mark.integration, pytest.mark.tier(2)]


def logs_of(transport: RecordingTransport) -> list[dict]:
    return [log for payload in transport.of_type("logs") for log in payload["logs"]]


def alerts_of(transport: RecordingTransport) -> list[dict]:
    return [alert for payload in transport.of_type("alerts") for alert in payload["alerts"]]


@pytest.fixture
def agent(config: Config, transport: RecordingTransport):
    agent = Vigilant(config, transport=transport)
    agent.start()
    yield agent
    agent.shutdown()


class TestVigilantAgent:
    """Tests for the explicit agent handle."""

    def test_logs_are_enriched_and_delivered(
        self, agent: Vigilant, transport: RecordingTransport
    ) -> None:
        agent.log_info("server started", {"port": "8080"})
        agent.log_error("boom")
        agent.shutdown()

        delivered = logs_of(transport)
        assert [(log["level"], log["body"]) for log in delivered] == [
            ("INFO", "server started"),
            ("ERROR", "boom"),
        ]
        assert delivered[0]["attributes"] == {"port": "8080", "service.name": "test-service"}
        assert transport.payloads[0]["token"] == "test-token"

    def test_every_level_helper(self, agent: Vigilant, transport: RecordingTransport) -> None:
        agent.log_debug("d")
        agent.log_warn("w")
        agent.log_trace("t")
        agent.log(LogLevel.INFO, "i")
        agent.shutdown()

        assert [log["level"] for log in logs_of(transport)] == ["DEBUG", "WARN", "TRACE", "INFO"]

    def test_alerts_go_to_alert_batches(
        self, agent: Vigilant, transport: RecordingTransport
    ) -> None:
        agent.create_alert("db down", {"db": "users"})
        agent.shutdown()

        [alert] = alerts_of(transport)
        assert alert["title"] == "db down"
        assert alert["attributes"] == {"db": "users", "service.name": "test-service"}
        assert logs_of(transport) == []

    def test_metrics_are_aggregated_and_flushed_on_shutdown(
        self, agent: Vigilant, transport: RecordingTransport
    ) -> None:
        agent.metric_counter("requests", 2, {"route": "/"})
        agent.metric_counter("requests", 3, {"route": "/"})
        agent.metric_gauge("queue_depth", 7)
        agent.metric_histogram("latency", 0.5)
        agent.shutdown()

        payloads = transport.metrics()
        counters = [c for p in payloads for c in p["metrics_counters"]]
        assert sum(c["value"] for c in counters) == 5.0
        assert {c["tags"]["route"] for c in counters} == {"/"}
        assert any(g["metric_name"] == "queue_depth" for p in payloads for g in p["metrics_gauges"])
        assert [h["values"] for p in payloads for h in p["metrics_histograms"]] == [[0.5]]

    def test_ambient_attributes_are_captured_in_caller_context(
        self, agent: Vigilant, transport: RecordingTransport
    ) -> None:
        with_attributes({"request.id": "r1"}, lambda: agent.log_info("inside"))
        agent.log_info("outside")
        agent.shutdown()

        inside, outside = logs_of(transport)
        assert inside["attributes"]["request.id"] == "r1"
        assert "request.id" not in outside["attributes"]

    def test_ambient_attributes_from_async_handlers(
        self, agent: Vigilant, transport: RecordingTransport
    ) -> None:
        async def handle(request_id: str) -> None:
            async def body() -> None:
                await asyncio.sleep(0.01)
                agent.log_info(f"handled {request_id}")

            await with_attributes({"request.id": request_id}, body)

        async def serve() -> None:
            await asyncio.gather(handle("a"), handle("b"))

        asyncio.run(serve())
        agent.shutdown()

        seen = {log["body"]: log["attributes"]["request.id"] for log in logs_of(transport)}
        assert seen == {"handled a": "a", "handled b": "b"}

    def test_global_attributes(self, config: Config, transport: RecordingTransport) -> None:
        config = dataclasses.replace(config, attributes={"env": "prod"})
        agent = Vigilant(config, transport=transport)
        agent.start()
        agent.log_info("hello", {"env": "dev"})
        agent.shutdown()

        assert logs_of(transport)[0]["attributes"]["env"] == "prod"

    def test_concurrent_emitters_lose_nothing(
        self, agent: Vigilant, transport: RecordingTransport
    ) -> None:
        def emit(thread_id: int) -> None:
            for i in range(50):
                agent.log_info(f"{thread_id}-{i}")

        threads = [threading.Thread(target=emit, args=(t,)) for t in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        agent.shutdown()

        delivered = [log["body"] for log in logs_of(transport)]
        assert len(delivered) == 200
        for t in range(4):
            mine = [b for b in delivered if b.startswith(f"{t}-")]
            assert mine == [f"{t}-{i}" for i in range(50)]

    def test_invalid_input_is_dropped_without_raising(
        self, agent: Vigilant, transport: RecordingTransport
    ) -> None:
        agent.log_info(123)  # type: ignore[arg-type]
        agent.metric_counter("", 1)
        agent.metric_gauge("g", float("nan"))
        agent.shutdown()

        assert transport.payloads == []

    def test_shutdown_is_idempotent_and_closes_transport(
        self, agent: Vigilant, transport: RecordingTransport
    ) -> None:
        agent.shutdown()
        agent.shutdown()

        assert transport.closed
        assert not agent.running

    def test_events_after_shutdown_are_dropped(
        self, agent: Vigilant, transport: RecordingTransport
    ) -> None:
        agent.shutdown()
        agent.log_info("late")
        agent.metric_counter("late", 1)

        assert transport.payloads == []

    def test_event_reaching_loop_after_final_flush_is_dropped(
        self, config: Config, caplog: pytest.LogCaptureFixture
    ) -> None:
        """An emit racing shutdown lands after the drain and is logged, not queued."""
        late = Log("2024-05-01T12:00:00.000000000Z", "late", LogLevel.INFO, {})

        class LateEmitTransport(RecordingTransport):
            async def aclose(self) -> None:
                agent._enqueue(agent._logs.add, late)
                await super().aclose()

        transport = LateEmitTransport()
        agent = Vigilant(config, transport=transport)
        agent.start()
        agent.log_info("on time")
        with caplog.at_level(logging.DEBUG, logger="vigilant.agent"):
            agent.shutdown()

        assert [log["body"] for log in logs_of(transport)] == ["on time"]
        assert agent._logs.pending == 0
        assert "Agent already flushed; dropping Log" in caplog.text

    def test_failed_delivery_never_reaches_caller(
        self, config: Config, failing_transport: RecordingTransport
    ) -> None:
        agent = Vigilant(config, transport=failing_transport)
        agent.start()
        agent.log_info("lost")
        agent.shutdown()

        assert len(failing_transport.payloads) == 1


class TestOutputModes:
    """Passthrough, noop and autocapture."""

    def test_passthrough_prints_and_sends(
        self,
        config: Config,
        transport: RecordingTransport,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        agent = Vigilant(dataclasses.replace(config, passthrough=True), transport=transport)
        agent.start()
        agent.log_info("hello", {"k": "v"})
        agent.create_alert("db down")
        agent.shutdown()

        captured = capsys.readouterr()
        assert "[INFO] hello k=v, service.name=test-service" in captured.out
        assert "[db down] service.name=test-service" in captured.err
        assert len(logs_of(transport)) == 1

    def test_noop_sends_nothing_but_still_passes_through(
        self,
        config: Config,
        transport: RecordingTransport,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        noop = dataclasses.replace(config, noop=True, passthrough=True)
        agent = Vigilant(noop, transport=transport)
        agent.start()
        agent.log_warn("careful")
        agent.metric_counter("requests", 1)
        agent.shutdown()

        assert transport.payloads == []
        assert "[WARN] careful" in capsys.readouterr().err

    def test_autocapture_turns_prints_into_logs(
        self, config: Config, transport: RecordingTransport
    ) -> None:
        agent = Vigilant(dataclasses.replace(config, autocapture=True), transport=transport)
        agent.start()
        print("from print")
        sys.stderr.write("from stderr\n")
        sys.stdout.write("unterminated")
        agent.shutdown()

        assert [(log["level"], log["body"]) for log in logs_of(transport)] == [
            ("INFO", "from print"),
            ("ERROR", "from stderr"),
            ("INFO", "unterminated"),
        ]

    def test_stdlib_logging_bridge(self, agent: Vigilant, transport: RecordingTransport) -> None:
        logger = logging.getLogger("app.bridge")
        handler = VigilantHandler(agent)
        logger.addHandler(handler)
        try:
            logger.warning("from stdlib", extra={"user": "alice"})
        finally:
            logger.removeHandler(handler)
        agent.shutdown()

        [log] = logs_of(transport)
        assert log["level"] == "WARN"
        assert log["attributes"]["user"] == "alice"
        assert log["attributes"]["logger"] == "app.bridge"


class TestModuleLevelApi:
    """init()/shutdown() and the delegating emit functions."""

    def test_emit_before_init_raises(self) -> None:
        with pytest.raises(NotInitializedError):
            vigilant.log_info("too early")
        with pytest.raises(NotInitializedError):
            vigilant.metric_counter("too_early", 1)

    def test_shutdown_before_init_raises(self) -> None:
        with pytest.raises(NotInitializedError):
            vigilant.shutdown()

    def test_init_validates_config(self) -> None:
        with pytest.raises(ConfigNameRequiredError):
            vigilant.init(Config(name="", token="tk"))

    def test_init_emit_shutdown(self, config: Config, transport: RecordingTransport) -> None:
        agent = vigilant.init(config, transport=transport)
        assert vigilant.get_instance() is agent

        vigilant.log_info("hello")
        vigilant.log_debug("debug")
        vigilant.log_warn("warn")
        vigilant.log_error("error")
        vigilant.log_trace("trace")
        vigilant.create_alert("alert")
        vigilant.metric_counter("c", 1)
        vigilant.metric_gauge("g", 1)
        vigilant.metric_histogram("h", 1)
        vigilant.shutdown()

        assert len(logs_of(transport)) == 5
        assert len(alerts_of(transport)) == 1
        assert transport.metrics()
        assert transport.closed
        with pytest.raises(NotInitializedError):
            vigilant.get_instance()
        with pytest.raises(NotInitializedError):
            vigilant.shutdown()

    def test_reinit_warns_and_replaces_instance(
        self,
        config: Config,
        transport: RecordingTransport,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        first = vigilant.init(config, transport=RecordingTransport())
        with caplog.at_level(logging.WARNING, logger="vigilant"):
            second = vigilant.init(config, transport=transport)

        assert vigilant.get_instance() is second
        assert "previous agent" in caplog.text
        vigilant.shutdown()
        first.shutdown()
