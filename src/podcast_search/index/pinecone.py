"""
Pinecone data-plane client over REST.

Only the ``query`` operation is needed; vectors are upserted into the index
by separate tooling. All transport, HTTP and payload errors surface as
``RemoteUnavailableError`` so the search fallback chain can downgrade.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import RemoteUnavailableError
from .base import VectorMatch

logger = logging.getLogger(__name__)

_API_VERSION = "2024-07"
_SERVICE = "pinecone"


def _normalize_host(host: str) -> str:
    host = host.strip().rstrip("/")
    if not host.startswith(("http://", "https://")):
        host = f"https://{host}"
    return host


class PineconeIndex:
    """Query a Pinecone serverless index through its REST endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        host: str,
        name: str | None = None,
        namespace: str | None = None,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("PINECONE_API_KEY not found.")
        if not host:
            raise ValueError("PINECONE_INDEX_HOST not found.")
        self.host = _normalize_host(host)
        self.name = name or self.host
        self.namespace = namespace
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)
        self._headers = {
            "Api-Key": api_key,
            "Content-Type": "application/json",
            "X-Pinecone-API-Version": _API_VERSION,
        }

    def close(self) -> None:
        self._client.close()

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 10,
        include_metadata: bool = True,
        filter: dict[str, Any] | None = None,
    ) -> list[VectorMatch]:
        body: dict[str, Any] = {
            "vector": list(vector),
            "topK": max(int(top_k), 1),
            "includeMetadata": include_metadata,
            "includeValues": False,
        }
        if filter:
            body["filter"] = filter
        if self.namespace:
            body["namespace"] = self.namespace

        logger.debug("Querying Pinecone index %s (topK=%d)", self.name, body["topK"])
        try:
            resp = self._client.post(
                f"{self.host}/query",
                headers=self._headers,
                json=body,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.TimeoutException as exc:
            raise RemoteUnavailableError(
                f"Pinecone index {self.name!r} query timed out after {self.timeout}s",
                service=_SERVICE,
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise RemoteUnavailableError(
                f"Pinecone index {self.name!r} error: HTTP {exc.response.status_code}",
                service=_SERVICE,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteUnavailableError(
                f"Network connection error: {exc}", service=_SERVICE
            ) from exc
        except ValueError as exc:
            raise RemoteUnavailableError(
                "Pinecone returned a non-JSON response", service=_SERVICE
            ) from exc
        except RuntimeError as exc:
            # httpx refuses requests on a closed client.
            raise RemoteUnavailableError(
                f"Pinecone client unavailable: {exc}", service=_SERVICE
            ) from exc

        return _parse_matches(payload)


def _parse_matches(payload: Any) -> list[VectorMatch]:
    if not isinstance(payload, dict):
        raise RemoteUnavailableError("Malformed Pinecone response", service=_SERVICE)
    raw_matches = payload.get("matches") or []
    if not isinstance(raw_matches, list):
        raise RemoteUnavailableError("Malformed Pinecone matches", service=_SERVICE)

    matches: list[VectorMatch] = []
    for raw in raw_matches:
        if not isinstance(raw, dict) or "id" not in raw:
            raise RemoteUnavailableError("Malformed Pinecone match", service=_SERVICE)
        try:
            score = float(raw.get("score") or 0.0)
        except (TypeError, ValueError) as exc:
            raise RemoteUnavailableError(
                f"Malformed score for match {raw.get('id')!r}", service=_SERVICE
            ) from exc
        metadata = raw.get("metadata")
        matches.append(
            VectorMatch(
                id=str(raw["id"]),
                score=score,
                metadata=metadata if isinstance(metadata, dict) else {},
            )
        )
    return matches
