"""Supabase PostgREST client."""

from typing import Any

import httpx

from labnotify.exceptions import DataStoreError
from labnotify.utils.logging import get_logger

logger = get_logger(__name__)

Row = dict[str, Any]


class SupabaseClient:
    """Minimal async client for Supabase's REST interface.

    Filters are exact matches only (``column=eq.value``), which is all the
    patient and notification lookups need.
    """

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize Supabase client.

        Args:
            url: Project URL, e.g. https://<ref>.supabase.co
            service_key: Service-role key used for both apikey and bearer auth
            timeout: Request timeout in seconds
            http_client: Preconfigured client (mostly for tests)
        """
        self.rest_url = f"{url.rstrip('/')}/rest/v1"
        self.headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "SupabaseClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        """Select rows matching all ``filters``.

        Args:
            table: Table name
            filters: Column to exact value
            columns: PostgREST column list
            order: Column to order by
            descending: Order direction
            limit: Maximum number of rows

        Returns:
            Matching rows (possibly empty)
        """
        params = {"select": columns, **self._eq_params(filters)}
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)

        return await self._request("GET", table, params=params)

    async def insert(self, table: str, values: Row) -> Row:
        """Insert one row and return it as stored."""
        rows = await self._request(
            "POST",
            table,
            json=values,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise DataStoreError(f"Insert into {table} returned no row")
        return rows[0]

    async def update(self, table: str, values: Row, filters: dict[str, Any]) -> list[Row]:
        """Update rows matching ``filters`` and return them as stored."""
        if not filters:
            raise ValueError("Refusing to update without filters")
        return await self._request(
            "PATCH",
            table,
            params=self._eq_params(filters),
            json=values,
            headers={"Prefer": "return=representation"},
        )

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Row | None = None,
        headers: dict[str, str] | None = None,
    ) -> list[Row]:
        url = f"{self.rest_url}/{table}"
        try:
            response = await self.client.request(
                method, url, params=params, json=json, headers={**self.headers, **(headers or {})}
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase {method} {table} transport error: {e}")
            raise DataStoreError(f"Data store request failed: {type(e).__name__}") from e

        if not response.is_success:
            detail = self._error_detail(response)
            logger.error(f"Supabase {method} {table} failed ({response.status_code}): {detail}")
            raise DataStoreError(f"Data store error: {detail}", status_code=response.status_code)

        if not response.content:
            return []

        try:
            data = response.json()
        except ValueError as e:
            raise DataStoreError(f"Data store returned invalid JSON for {table}") from e

        return data if isinstance(data, list) else [data]

    @staticmethod
    def _eq_params(filters: dict[str, Any] | None) -> dict[str, str]:
        params: dict[str, str] = {}
        for column, value in (filters or {}).items():
            if value is None:
                params[column] = "is.null"
            elif isinstance(value, bool):
                params[column] = f"eq.{str(value).lower()}"
            else:
                params[column] = f"eq.{value}"
        return params

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return body.get("message") or body.get("error") or str(body)
        return str(body)
