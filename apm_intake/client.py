"""
APM intake client.

The ApmClient is what application code holds. Building it resolves the
credential and the TLS posture, creates the HTTP client and then starts
one background flush loop. send_batch() only touches the in-memory
buffer, so producers never wait on the network and never see delivery
failures; those end up in the log.
"""

from __future__ import annotations

import logging

import httpx

from apm_intake.config.auth import resolve_authorization
from apm_intake.config.main import Config
from apm_intake.config.tls import get_tls_config
from apm_intake.intake.batch import Batch
from apm_intake.intake.buffer import IntakeBuffer
from apm_intake.intake.callbacks import DeliveryCallbacks
from apm_intake.intake.loop import FlushLoop
from apm_intake.log_codes import CLIENT_CLOSED, CLIENT_STARTED, FLUSH_STOP_TIMED_OUT
from apm_intake.transport.builder import build_http_client
from apm_intake.transport.http import EventSender
from apm_intake.transport.policy import DEFAULT_POLICY, DeliveryPolicy

logger = logging.getLogger(__name__)


class ApmClient:
    """
    Buffers batches and ships them to the collector in the background.

    Args:
        config (Config): Construction-time settings.
        policy (DeliveryPolicy): Failure policy, best-effort by default.
        callbacks (Optional[DeliveryCallbacks]): Delivery event hooks.
        transport (Optional[httpx.BaseTransport]): HTTP transport override.

    Raises:
        CertificateError: If the root certificate cannot be loaded.
        TransportBuildError: If the HTTP client cannot be created.
    """

    def __init__(
        self,
        config: Config,
        policy: DeliveryPolicy = DEFAULT_POLICY,
        callbacks: DeliveryCallbacks | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.config = config

        authorization = resolve_authorization(config.authorization)
        tls_config = get_tls_config(
            allow_invalid_certs=config.allow_invalid_certs,
            root_cert_path=config.root_cert_path,
        )
        http_client = build_http_client(
            tls_config,
            authorization=authorization,
            timeout=config.timeout,
            transport=transport,
        )

        self._buffer = IntakeBuffer(
            max_batches=config.max_buffered_batches,
            overflow_policy=config.overflow_policy,
        )
        self._sender = EventSender(config.apm_address, http_client)
        self._loop = FlushLoop(
            self._buffer,
            self._sender,
            flush_interval=config.flush_interval,
            policy=policy,
            merge_batches=config.merge_batches,
            callbacks=callbacks,
        )
        self._closed = False

        self._loop.start()
        logger.info(
            CLIENT_STARTED,
            extra={
                "intake_url": self._sender.intake_url,
                "tls_mode": tls_config.mode,
                "policy": policy.name,
            },
        )

    def send_batch(self, batch: Batch) -> None:
        """
        Queue a batch for delivery. Never blocks on I/O and never raises.
        """
        self._buffer.append(batch)

    def close(self, timeout: float | None = None) -> None:
        """
        Stop the flush loop, delivering what is still buffered, and release
        the HTTP client.
        """
        if self._closed:
            return
        self._closed = True

        self._loop.stop(timeout)
        if self._loop.is_running:
            # The loop may still be mid-request; leave the HTTP client to it.
            logger.warning(FLUSH_STOP_TIMED_OUT, extra={"timeout": timeout})
            return

        self._sender.close()
        logger.info(CLIENT_CLOSED)

    def __enter__(self) -> "ApmClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
