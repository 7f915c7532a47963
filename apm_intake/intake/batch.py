from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterator


@dataclass(frozen=True)
class Batch:
    """
    One delivery unit: required metadata plus optional transaction, span
    and error records.

    The values are opaque to the client and are serialized as given.
    """

    metadata: Any
    transaction: Any | None = None
    span: Any | None = None
    error: Any | None = None

    FIELDS = ("metadata", "transaction", "span", "error")

    def lines(self) -> Iterator[str]:
        """
        Yield one JSON object per present field, metadata first.
        """
        for name in self.FIELDS:
            value = getattr(self, name)
            if name != "metadata" and value is None:
                continue
            yield json.dumps({name: value}, separators=(",", ":"))

    def to_ndjson(self) -> str:
        return "".join(f"{line}\n" for line in self.lines())

    def __str__(self) -> str:
        return self.to_ndjson()
