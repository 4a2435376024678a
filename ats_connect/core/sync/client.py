"""
HTTP client for provider collection endpoints.

Requests are plain GETs shaped by the provider adapter. Transport failures,
non-2xx responses and undecodable bodies all surface as TransportError; the
engine never retries a request.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ats_connect.core.exceptions import TransportError
from ats_connect.core.mapping.paths import extract_path
from ats_connect.core.providers import get_adapter
from ats_connect.data.models.connection import AtsConnection
from ats_connect.utils.config import get_settings
from ats_connect.utils.constants import COLLECTION_ENVELOPE_KEYS, EntityType
from ats_connect.utils.logger import LoggerMixin


@dataclass
class Paging:
    """Pagination settings read from a connection's configuration."""

    page_param: Optional[str] = None
    start: int = 1
    max_pages: int = 1
    per_page_param: Optional[str] = None
    page_size: Optional[int] = None

    @classmethod
    def from_connection(cls, connection: AtsConnection, default_max_pages: int) -> "Paging":
        config = connection.configuration
        page_param = config.get("page_param")
        if not page_param:
            return cls()

        page_size = config.get("page_size")
        return cls(
            page_param=str(page_param),
            start=int(config.get("page_start", 1)),
            max_pages=max(int(config.get("max_pages") or default_max_pages), 1),
            per_page_param=config.get("per_page_param") or None,
            page_size=int(page_size) if page_size else None,
        )


class ProviderClient(LoggerMixin):
    """
    Fetches raw records from a provider.

    An ``httpx.Client`` may be injected (tests pass one built on
    ``httpx.MockTransport``); otherwise a short-lived client is opened per
    request.
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ) -> None:
        sync_settings = get_settings().sync
        self._client = http_client
        self._timeout = timeout or sync_settings.request_timeout
        self._test_timeout = sync_settings.test_timeout
        self._default_max_pages = sync_settings.max_pages

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _get(
        self,
        url: str,
        headers: dict[str, str],
        params: dict[str, str],
        timeout: float,
    ) -> httpx.Response:
        try:
            if self._client is not None:
                response = self._client.get(url, headers=headers, params=params, timeout=timeout)
            else:
                with httpx.Client(timeout=timeout) as client:
                    response = client.get(url, headers=headers, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise TransportError(f"GET {url} returned HTTP {status_code}", status_code=status_code) from e
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url} failed: {e}") from e
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Response from {response.request.url} is not valid JSON",
                status_code=response.status_code,
            ) from e

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def unwrap(self, connection: AtsConnection, entity_type: EntityType, body: Any) -> list[Any]:
        """
        Pull the record list out of a response body.

        Lookup order: the connection's ``<entity>s_array_path`` override, the
        adapter's collection path, the common envelope keys, and finally a
        top-level list. Anything else yields no records.
        """
        entity_type = EntityType(entity_type)
        candidates: list[Optional[str]] = [
            connection.field_mapping.get(f"{entity_type.value}s_array_path"),
            get_adapter(connection.provider).collection_path(entity_type),
        ]
        for path in candidates:
            if path:
                found = extract_path(body, path)
                if isinstance(found, list):
                    return found

        if isinstance(body, dict):
            for key in COLLECTION_ENVELOPE_KEYS[entity_type]:
                if isinstance(body.get(key), list):
                    return body[key]
        if isinstance(body, list):
            return body

        self.logger.warning(
            f"No {entity_type.value} records found in response from {connection.name}"
        )
        return []

    def fetch_collection(
        self,
        connection: AtsConnection,
        entity_type: EntityType,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[Any]:
        """Fetch every raw record of one entity type, following pagination when configured."""
        adapter = get_adapter(connection.provider)
        url = adapter.endpoint(connection, entity_type)
        headers = adapter.headers(connection)
        params = adapter.default_params(connection, filters, entity_type)
        paging = Paging.from_connection(connection, self._default_max_pages)

        records: list[Any] = []
        for page_number in range(paging.max_pages):
            page_params = dict(params)
            if paging.page_param:
                page_params[paging.page_param] = str(paging.start + page_number)
                if paging.per_page_param and paging.page_size:
                    page_params[paging.per_page_param] = str(paging.page_size)

            response = self._get(url, headers, page_params, self._timeout)
            batch = self.unwrap(connection, entity_type, self._decode(response))
            records.extend(batch)

            if not paging.page_param or not batch:
                break
            if paging.page_size and len(batch) < paging.page_size:
                break

        self.logger.debug(f"Fetched {len(records)} {entity_type.value} records from {url}")
        return records

    def test_request(self, connection: AtsConnection) -> httpx.Response:
        """Single-record jobs request used to check a connection's credentials."""
        adapter = get_adapter(connection.provider)
        return self._get(
            adapter.jobs_endpoint(connection),
            adapter.headers(connection),
            {"limit": "1"},
            self._test_timeout,
        )
