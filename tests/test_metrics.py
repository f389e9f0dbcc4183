"""
Unit tests for the metrics abstraction layer

Test Coverage:
- MetricsClient interface implementations
- Backend selection via factory function
- Metric name prefixing for the Telegraf backend
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from authini.metrics import (
    MetricsClient,
    NoOpMetricsClient,
    TelegrafMetricsClient,
    create_metrics_client,
)


class TestMetricsClientInterface:
    def test_interface_is_abstract(self):
        """MetricsClient should be abstract and not instantiable."""
        with pytest.raises(TypeError):
            MetricsClient()  # type: ignore


class TestNoOpMetricsClient:
    @pytest.fixture
    def noop_client(self):
        return NoOpMetricsClient()

    def test_noop_increment(self, noop_client):
        noop_client.increment("test.counter", 1, {"tag": "value"})
        noop_client.increment("test.counter")

    def test_noop_timer(self, noop_client):
        noop_client.timer("test.timer", 1.234, {"tag": "value"})

    async def test_noop_connect_and_close(self, noop_client):
        await noop_client.connect()
        await noop_client.close()


class TestTelegrafMetricsClient:
    @pytest.fixture
    def mock_statsd(self):
        mock = Mock()
        mock.connect = AsyncMock()
        mock.close = AsyncMock()
        return mock

    @pytest.fixture
    def telegraf_client(self, mock_statsd):
        with patch(
            "authini.metrics.TelegrafStatsdClient", return_value=mock_statsd
        ):
            yield TelegrafMetricsClient(host="telegraf", port=8125, prefix="authini")

    def test_increment_is_prefixed(self, telegraf_client, mock_statsd):
        telegraf_client.increment("session.start", 1, {"client_id": "CRM"})

        mock_statsd.increment.assert_called_once_with(
            "authini.session.start", 1, tag_dict={"client_id": "CRM"}
        )

    def test_increment_no_tags(self, telegraf_client, mock_statsd):
        telegraf_client.increment("session.redeem")

        mock_statsd.increment.assert_called_once_with(
            "authini.session.redeem", 1, tag_dict={}
        )

    def test_timer(self, telegraf_client, mock_statsd):
        telegraf_client.timer("server.request.time", 0.25, {"method": "GET"})

        mock_statsd.timer.assert_called_once_with(
            "authini.server.request.time", 0.25, tag_dict={"method": "GET"}
        )

    async def test_connect(self, telegraf_client, mock_statsd):
        await telegraf_client.connect()
        mock_statsd.connect.assert_awaited_once()

    async def test_close_swallows_backend_errors(self, telegraf_client, mock_statsd):
        mock_statsd.close.side_effect = ConnectionError("gone")
        await telegraf_client.close()
        mock_statsd.close.assert_awaited_once()

    def test_empty_prefix(self, mock_statsd):
        with patch(
            "authini.metrics.TelegrafStatsdClient", return_value=mock_statsd
        ):
            client = TelegrafMetricsClient(host="telegraf", port=8125, prefix="")
        client.increment("x")
        mock_statsd.increment.assert_called_once_with("x", 1, tag_dict={})


class TestCreateMetricsClient:
    def test_none_backend(self):
        assert isinstance(create_metrics_client("none"), NoOpMetricsClient)

    def test_backend_name_is_normalized(self):
        assert isinstance(create_metrics_client(" NONE "), NoOpMetricsClient)

    def test_telegraf_backend(self):
        with patch("authini.metrics.TelegrafStatsdClient") as statsd_class:
            client = create_metrics_client(
                "telegraf", host="metrics", port=9125, prefix="p", debug=True
            )
        assert isinstance(client, TelegrafMetricsClient)
        statsd_class.assert_called_once_with(host="metrics", port=9125, debug=True)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown metrics backend"):
            create_metrics_client("datadog")
