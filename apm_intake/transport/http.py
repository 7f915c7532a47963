from __future__ import annotations

import httpx

from apm_intake.constants import INTAKE_EVENTS_PATH, NDJSON_CONTENT_TYPE
from apm_intake.errors import DeliveryError
from apm_intake.intake.batch import Batch

RESPONSE_DETAIL_LIMIT = 512


class EventSender:
    """Posts serialized batches to the collector intake endpoint."""

    def __init__(self, base_url: str, http_client: httpx.Client):
        self.base_url = base_url.rstrip("/")
        self.client = http_client

    @property
    def intake_url(self) -> str:
        return f"{self.base_url}{INTAKE_EVENTS_PATH}"

    def send_batch(self, batch: Batch) -> None:
        self.send_ndjson(batch.to_ndjson())

    def send_ndjson(self, body: str) -> None:
        """
        Post an already serialized body, for example several batches
        joined into one request.
        """
        resp = self.client.post(
            self.intake_url,
            headers={"Content-Type": NDJSON_CONTENT_TYPE},
            content=body.encode("utf-8"),
        )

        if resp.is_success:
            return

        raise DeliveryError(
            resp.status_code, detail=resp.text[:RESPONSE_DETAIL_LIMIT] or None
        )

    def close(self) -> None:
        self.client.close()
