from __future__ import annotations

import base64
import json
import logging
import threading
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from apm_intake import ApiKey, ApmClient, Batch, Config, SecretToken
from apm_intake.errors import CertificateError, TransportBuildError
from apm_intake.log_codes import FLUSH_DELIVERY_FAILED, FLUSH_STOP_TIMED_OUT


class RecordingCollector:
    """
    Stand-in collector behind an httpx.MockTransport.
    """

    def __init__(self, status_code: int = 202):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []
        self.received = threading.Event()
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        self.received.set()
        return httpx.Response(self.status_code)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def bodies(self) -> list[list[dict]]:
        return [
            [json.loads(line) for line in r.content.decode("utf-8").splitlines()]
            for r in self.requests
        ]


@pytest.fixture
def collector() -> RecordingCollector:
    return RecordingCollector()


@pytest.fixture
def config() -> Config:
    return Config("https://apm.example.com/", flush_interval=0.05)


@pytest.mark.unit
class TestApmClient:
    """
    Test the client facade end to end against a mock collector.
    """

    def test_delivers_batches_in_order(
        self, config: Config, collector: RecordingCollector
    ) -> None:
        client = ApmClient(config, transport=collector.transport)
        for i in range(3):
            client.send_batch(Batch({"seq": i}, transaction={"id": f"t{i}"}))
        client.close()

        assert [body[0] for body in collector.bodies()] == [
            {"metadata": {"seq": 0}},
            {"metadata": {"seq": 1}},
            {"metadata": {"seq": 2}},
        ]
        for request in collector.requests:
            assert str(request.url) == "https://apm.example.com/intake/v2/events"
            assert request.headers["Content-Type"] == "application/x-ndjson"
            assert "Authorization" not in request.headers

    def test_delivers_without_close(
        self, config: Config, collector: RecordingCollector
    ) -> None:
        """
        Test the background loop picks batches up on its own.
        """
        client = ApmClient(config, transport=collector.transport)
        try:
            client.send_batch(Batch({"seq": 1}))
            assert collector.received.wait(5)
        finally:
            client.close()

        assert len(collector.requests) == 1

    def test_secret_token_header(
        self, config: Config, collector: RecordingCollector
    ) -> None:
        with ApmClient(
            config.with_authorization(SecretToken("abc")),
            transport=collector.transport,
        ) as client:
            client.send_batch(Batch({"seq": 1}))

        assert collector.requests[0].headers["Authorization"] == "Bearer abc"

    def test_api_key_header(
        self, config: Config, collector: RecordingCollector
    ) -> None:
        with ApmClient(
            config.with_authorization(ApiKey(id="u", key="p")),
            transport=collector.transport,
        ) as client:
            client.send_batch(Batch({"seq": 1}))
            client.send_batch(Batch({"seq": 2}))

        expected = "ApiKey " + base64.b64encode(b"u:p").decode()
        assert [r.headers["Authorization"] for r in collector.requests] == [
            expected,
            expected,
        ]

    def test_delivery_failure_is_logged_not_raised(
        self, config: Config, caplog: pytest.LogCaptureFixture
    ) -> None:
        """
        Test producers never observe a rejected batch.
        """
        collector = RecordingCollector(status_code=503)

        with caplog.at_level(logging.ERROR):
            with ApmClient(config, transport=collector.transport) as client:
                client.send_batch(Batch({"seq": 1}))
                client.send_batch(Batch({"seq": 2}))

        assert len(collector.requests) == 2
        assert caplog.messages.count(FLUSH_DELIVERY_FAILED) == 2

    def test_merge_batches(self, collector: RecordingCollector) -> None:
        config = Config("https://apm.example.com", flush_interval=60, merge_batches=True)

        with patch("apm_intake.intake.loop.FlushLoop.start"):
            client = ApmClient(config, transport=collector.transport)
        client.send_batch(Batch({"seq": 1}))
        client.send_batch(Batch({"seq": 2}))

        # Drive the loop by hand so both batches land in one snapshot.
        client._loop.flush()
        client.close()

        assert collector.bodies() == [
            [{"metadata": {"seq": 1}}, {"metadata": {"seq": 2}}]
        ]

    def test_buffer_capacity_from_config(self, collector: RecordingCollector) -> None:
        config = Config(
            "https://apm.example.com",
            max_buffered_batches=2,
            overflow_policy="drop_newest",
        )

        with patch("apm_intake.intake.loop.FlushLoop.start"):
            client = ApmClient(config, transport=collector.transport)
        for i in range(4):
            client.send_batch(Batch({"seq": i}))
        client._loop.flush()
        client.close()

        assert [body[0]["metadata"]["seq"] for body in collector.bodies()] == [0, 1]

    def test_close_is_idempotent(
        self, config: Config, collector: RecordingCollector
    ) -> None:
        client = ApmClient(config, transport=collector.transport)

        client.close()
        client.close()

        assert client._loop.is_running is False

    def test_close_timeout_keeps_http_client_open(
        self, config: Config, caplog: pytest.LogCaptureFixture
    ) -> None:
        """
        Test a timed-out close does not pull the client from under a request.
        """
        in_flight = threading.Event()
        release = threading.Event()

        def handler(request: httpx.Request) -> httpx.Response:
            in_flight.set()
            release.wait(5)
            return httpx.Response(202)

        client = ApmClient(config, transport=httpx.MockTransport(handler))
        client.send_batch(Batch({"seq": 1}))
        assert in_flight.wait(5)

        try:
            with caplog.at_level(logging.WARNING):
                client.close(timeout=0.05)

            assert FLUSH_STOP_TIMED_OUT in caplog.messages
            assert client._sender.client.is_closed is False
        finally:
            release.set()
            client._loop.stop(timeout=5)
            client._sender.close()

        assert client._loop.is_running is False

    def test_concurrent_producers(
        self, config: Config, collector: RecordingCollector
    ) -> None:
        producers = 8
        per_producer = 25

        with ApmClient(config, transport=collector.transport) as client:

            def produce(worker: int) -> None:
                for i in range(per_producer):
                    client.send_batch(Batch({"seq": worker * per_producer + i}))

            threads = [
                threading.Thread(target=produce, args=(w,)) for w in range(producers)
            ]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        seqs = sorted(body[0]["metadata"]["seq"] for body in collector.bodies())
        assert seqs == list(range(producers * per_producer))


@pytest.mark.unit
class TestApmClientConstruction:
    """
    Construction failures abort before the loop starts.
    """

    def test_unreadable_root_cert(self, tmp_path: Path) -> None:
        config = Config(
            "https://apm.example.com", root_cert_path=str(tmp_path / "missing.pem")
        )

        with patch("apm_intake.client.FlushLoop") as mock_loop:
            with pytest.raises(CertificateError):
                ApmClient(config)

        mock_loop.assert_not_called()

    def test_transport_build_failure(self) -> None:
        with patch(
            "apm_intake.transport.builder.httpx.Client",
            side_effect=ValueError("broken"),
        ), patch("apm_intake.client.FlushLoop") as mock_loop:
            with pytest.raises(TransportBuildError):
                ApmClient(Config("https://apm.example.com"))

        mock_loop.assert_not_called()

    def test_starts_one_loop_thread(
        self, config: Config, collector: RecordingCollector
    ) -> None:
        before = [t for t in threading.enumerate() if t.name == "apm-intake-flush"]

        with ApmClient(config, transport=collector.transport):
            during = [t for t in threading.enumerate() if t.name == "apm-intake-flush"]

        assert len(during) == len(before) + 1
