"""
Kintone REST client.

Thin async wrapper over the three record-store calls the relay needs:
query records, update one record, download an attachment.

Dependencies: httpx
System role: Record store boundary (HTTP)
"""

import logging
from typing import Any

import httpx

from threadchat.core.exceptions import (
    ConcurrentUpdateError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

_TOKEN_HEADER = "X-Cybozu-API-Token"
_REVISION_CONFLICT_CODE = "GAIA_CO02"


def quote_query_value(value: str) -> str:
    """Quote a value for use in a Kintone query string."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_equality_query(conditions: dict[str, str], limit: int | None = None) -> str:
    """
    Build a conjunctive equality query.

    Args:
        conditions: Field code to expected value
        limit: Optional row limit

    Returns:
        str: Kintone query, e.g. 'documentID = "D1" and status = "open" limit 1'
    """
    query = " and ".join(
        f"{field} = {quote_query_value(str(value))}" for field, value in conditions.items()
    )
    if limit is not None:
        query = f"{query} limit {int(limit)}"
    return query


class KintoneClient:
    """Async Kintone REST API client."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            base_url: https://<subdomain>.cybozu.com
            timeout_seconds: Timeout per request
            http_client: Preconfigured client (tests inject a MockTransport)
        """
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_matching(
        self,
        app_id: str,
        token: str,
        conditions: dict[str, str],
    ) -> dict[str, Any] | None:
        """
        Fetch the first record matching all equality conditions.

        Args:
            app_id: Kintone app id
            token: API token of the app
            conditions: Field code to expected value

        Returns:
            dict | None: Raw record (field code -> {"type", "value"}) or None

        Raises:
            UpstreamUnavailableError: When the API call fails
        """
        query = build_equality_query(conditions, limit=1)
        response = await self._request(
            "GET",
            "/k/v1/records.json",
            token,
            operation="get_records",
            params={"app": app_id, "query": query},
        )
        records = response.json().get("records") or []
        return records[0] if records else None

    async def update(
        self,
        app_id: str,
        token: str,
        record_id: str,
        fields: dict[str, Any],
        revision: str | None = None,
    ) -> str | None:
        """
        Update fields of one record.

        Args:
            app_id: Kintone app id
            token: API token of the app
            record_id: Record $id
            fields: Field code to raw value payload ({"value": ...})
            revision: Expected current revision (optimistic check)

        Returns:
            str | None: New record revision

        Raises:
            ConcurrentUpdateError: When the revision does not match
            UpstreamUnavailableError: When the API call fails
        """
        body: dict[str, Any] = {"app": app_id, "id": record_id, "record": fields}
        if revision is not None:
            body["revision"] = revision
        response = await self._request(
            "PUT",
            "/k/v1/record.json",
            token,
            operation="update_record",
            json=body,
        )
        new_revision = response.json().get("revision")
        return str(new_revision) if new_revision is not None else None

    async def download_file(self, file_key: str, token: str) -> bytes:
        """
        Download an attachment by file key.

        Raises:
            UpstreamUnavailableError: When the download fails
        """
        response = await self._request(
            "GET",
            "/k/v1/file.json",
            token,
            operation="download_file",
            params={"fileKey": file_key},
        )
        return response.content

    async def _request(
        self,
        method: str,
        path: str,
        token: str,
        operation: str,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = {_TOKEN_HEADER: token}
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(
                f"Kintone {operation} timed out",
                service="kintone",
                operation=operation,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(
                f"Kintone {operation} failed: {type(e).__name__}: {e}",
                service="kintone",
                operation=operation,
            ) from e

        if response.is_success:
            return response

        error_code = _error_code(response)
        if response.status_code == 409 or error_code == _REVISION_CONFLICT_CODE:
            raise ConcurrentUpdateError(
                "Record was modified by another request",
                details={"operation": operation, "kintone_code": error_code},
            )

        logger.error(
            "Kintone %s failed: status=%s code=%s",
            operation, response.status_code, error_code,
        )
        raise UpstreamUnavailableError(
            f"Kintone {operation} failed ({response.status_code})",
            service="kintone",
            operation=operation,
            details={"status": response.status_code, "body": response.text[:300]},
        )


def _error_code(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        return payload.get("code")
    return None
