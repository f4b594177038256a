"""Tests for port interfaces."""

import pytest
from tests.fakes import RecordingSender, RecordingTransport

from vigilant.adapters.autocapture import NullProvider, StdStreamProvider
from vigilant.adapters.transport import HttpTransport
from vigilant.attributes.provider import (
    GlobalAttributeAppender,
    ServiceNameAppender,
    StoredAttributeAppender,
)
from vigilant.core.ports import (
    AttributeAppender,
    MetricsSenderPort,
    OutputProvider,
    TransportPort,
)
from vigilant.pipeline.sender import MetricsSender


class TestTransportPort:
    """Tests for TransportPort protocol."""

    @pytest.mark.core
    def test_protocol_has_post_and_aclose(self) -> None:
        assert hasattr(TransportPort, "post")
        assert hasattr(TransportPort, "aclose")

    @pytest.mark.core
    def test_http_transport_satisfies_protocol(self) -> None:
        """HttpTransport must satisfy TransportPort."""
        assert isinstance(HttpTransport("http://localhost/api/message"), TransportPort)

    @pytest.mark.core
    def test_fake_transport_satisfies_protocol(self) -> None:
        assert isinstance(RecordingTransport(), TransportPort)

    @pytest.mark.core
    def test_incomplete_class_is_not_recognized(self) -> None:
        """A class without aclose does not satisfy TransportPort."""

        class PostOnly:
            async def post(self, payload: dict) -> None:
                pass

        assert not isinstance(PostOnly(), TransportPort)


class TestOtherPorts:
    @pytest.mark.core
    def test_metrics_senders_satisfy_protocol(self) -> None:
        assert isinstance(MetricsSender(RecordingTransport(), "tk"), MetricsSenderPort)
        assert isinstance(RecordingSender(), MetricsSenderPort)

    @pytest.mark.core
    def test_output_providers_satisfy_protocol(self) -> None:
        assert isinstance(NullProvider(), OutputProvider)
        assert isinstance(StdStreamProvider(), OutputProvider)

    @pytest.mark.core
    def test_appenders_satisfy_protocol(self) -> None:
        assert isinstance(ServiceNameAppender("svc"), AttributeAppender)
        assert isinstance(StoredAttributeAppender(), AttributeAppender)
        assert isinstance(GlobalAttributeAppender({}), AttributeAppender)
