from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar
from urllib.parse import quote

import httpx

from app.services.exceptions import DownstreamServiceError
from app.services.mock_store import MockDataStore, MockStoreError, get_mock_store

logger = logging.getLogger(__name__)

T = TypeVar("T")

Row = Dict[str, Any]


class GatewayErrorKind(str, Enum):
    response = "response"
    transport = "transport"
    unknown = "unknown"


@dataclass(frozen=True)
class GatewayError:
    kind: GatewayErrorKind
    message: str
    status_code: int | None = None


@dataclass(frozen=True)
class GatewayResult(Generic[T]):
    """Outcome of one gateway call: either ``data`` or an ``error``."""

    data: Optional[T] = None
    error: Optional[GatewayError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T | None = None) -> "GatewayResult[T]":
        return cls(data=data)

    @classmethod
    def failure(
        cls,
        message: str,
        *,
        kind: GatewayErrorKind = GatewayErrorKind.unknown,
        status_code: int | None = None,
    ) -> "GatewayResult[T]":
        return cls(error=GatewayError(kind=kind, message=message, status_code=status_code))

    def message_or(self, fallback: str) -> str:
        if self.error is None or not self.error.message:
            return fallback
        return self.error.message

    def unwrap(self) -> T:
        if self.error is not None:
            raise DownstreamServiceError(self.error.message, status_code=self.error.status_code)
        return self.data  # type: ignore[return-value]


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True

    def as_param(self) -> str:
        return f"{self.column}.{'asc' if self.ascending else 'desc'}"


def _filter_params(filters: Mapping[str, Any] | None) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for column, value in (filters or {}).items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        params[column] = f"eq.{value}"
    return params


def _parse_content_range(header: str | None) -> int:
    # "0-24/3573" or "*/0"
    if not header or "/" not in header:
        return 0
    total = header.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else 0


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Gateway returned status {response.status_code}"
    if isinstance(body, dict):
        for key in ("message", "error_description", "msg", "error"):
            if body.get(key):
                return str(body[key])
    return f"Gateway returned status {response.status_code}"


class GatewayClient:
    """Async table/storage client for the hosted backend (PostgREST + Storage).

    In mock mode every call is served by the in-memory store instead of HTTP.
    Calls never raise for backend failures; they return a ``GatewayResult``.
    """

    def __init__(
        self,
        base_url: str | None,
        *,
        api_key: str | None = None,
        timeout: float = 10.0,
        use_mock_data: bool = True,
        store: MockDataStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/") if base_url else None
        self._timeout = timeout
        self.use_mock_data = use_mock_data or not self._base_url
        self._headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if api_key:
            self._headers.update({"apikey": api_key, "Authorization": f"Bearer {api_key}"})
        self._transport = transport
        self._store = store
        self._client: Optional[httpx.AsyncClient] = None
        if not self.use_mock_data and self._base_url:
            self._client = self._build_client()

    @property
    def base_url(self) -> str | None:
        return self._base_url

    @property
    def store(self) -> MockDataStore:
        # Resolved lazily so a reset mock store is picked up by a cached client.
        return self._store or get_mock_store()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=self._headers,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.use_mock_data or not self._base_url:
            raise RuntimeError("HTTP client requested while running in mock mode")
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def simulate_latency(self) -> None:
        """Allow callers to await for latency even when mocking responses."""

        await asyncio.sleep(0)

    async def _mock_call(self, operation: str, call: Callable[[], T]) -> GatewayResult[T]:
        await self.simulate_latency()
        try:
            return GatewayResult.success(call())
        except MockStoreError as exc:
            logger.warning("Mock gateway rejected %s: %s", operation, exc)
            return GatewayResult.failure(str(exc), kind=GatewayErrorKind.response, status_code=400)
        except Exception as exc:  # pragma: no cover
            logger.exception("Unexpected mock gateway failure during %s", operation)
            return GatewayResult.failure(str(exc))

    async def request(
        self,
        operation: str,
        method: str,
        path: str,
        handle: Callable[[httpx.Response], T],
        **kwargs: Any,
    ) -> GatewayResult[T]:
        try:
            client = await self._ensure_client()
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
            return GatewayResult.success(handle(response))
        except httpx.HTTPStatusError as exc:
            logger.exception("Gateway returned error %s during %s", exc.response.status_code, operation)
            return GatewayResult.failure(
                _error_message(exc.response),
                kind=GatewayErrorKind.response,
                status_code=exc.response.status_code,
            )
        except httpx.RequestError as exc:
            logger.exception("Unable to reach gateway during %s: %s", operation, exc)
            return GatewayResult.failure("Unable to reach the booking backend", kind=GatewayErrorKind.transport)
        except Exception as exc:
            logger.exception("Unexpected gateway failure during %s", operation)
            return GatewayResult.failure(str(exc))

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> GatewayResult[List[Row]]:
        logger.debug("select %s filters=%s order=%s limit=%s", table, filters, order, limit)
        if self.use_mock_data:
            return await self._mock_call(
                f"select {table}",
                lambda: self.store.table(table).select(
                    filters, [(item.column, item.ascending) for item in order], limit
                ),
            )

        params: Dict[str, Any] = {"select": "*", **_filter_params(filters)}
        if order:
            params["order"] = ",".join(item.as_param() for item in order)
        if limit is not None:
            params["limit"] = limit
        return await self.request(
            f"select {table}", "GET", f"/rest/v1/{table}", lambda response: list(response.json()), params=params
        )

    async def count(self, table: str, *, filters: Mapping[str, Any] | None = None) -> GatewayResult[int]:
        if self.use_mock_data:
            return await self._mock_call(f"count {table}", lambda: self.store.table(table).count(filters))

        params = {"select": "id", **_filter_params(filters)}
        return await self.request(
            f"count {table}",
            "HEAD",
            f"/rest/v1/{table}",
            lambda response: _parse_content_range(response.headers.get("content-range")),
            params=params,
            headers={"Prefer": "count=exact"},
        )

    async def insert(self, table: str, record: Mapping[str, Any]) -> GatewayResult[Row]:
        logger.info("Inserting into %s", table)
        if self.use_mock_data:
            return await self._mock_call(f"insert {table}", lambda: self.store.table(table).insert(record))

        def _first_row(response: httpx.Response) -> Row:
            body = response.json()
            return body[0] if isinstance(body, list) and body else {}

        return await self.request(
            f"insert {table}",
            "POST",
            f"/rest/v1/{table}",
            _first_row,
            json=[dict(record)],
            headers={"Prefer": "return=representation"},
        )

    async def update(
        self, table: str, key: Mapping[str, Any], patch: Mapping[str, Any]
    ) -> GatewayResult[None]:
        logger.info("Updating %s where %s", table, dict(key))
        if self.use_mock_data:
            return await self._mock_call(
                f"update {table}", lambda: self._discard(self.store.table(table).update(key, patch))
            )

        return await self.request(
            f"update {table}",
            "PATCH",
            f"/rest/v1/{table}",
            lambda response: None,
            params=_filter_params(key),
            json=dict(patch),
            headers={"Prefer": "return=minimal"},
        )

    async def delete(self, table: str, key: Mapping[str, Any]) -> GatewayResult[None]:
        logger.info("Deleting from %s where %s", table, dict(key))
        if self.use_mock_data:
            return await self._mock_call(
                f"delete {table}", lambda: self._discard(self.store.table(table).delete(key))
            )

        return await self.request(
            f"delete {table}",
            "DELETE",
            f"/rest/v1/{table}",
            lambda response: None,
            params=_filter_params(key),
        )

    async def upsert(
        self, table: str, record: Mapping[str, Any], *, on_conflict: str
    ) -> GatewayResult[None]:
        logger.info("Upserting into %s on %s=%s", table, on_conflict, record.get(on_conflict))
        if self.use_mock_data:
            return await self._mock_call(
                f"upsert {table}",
                lambda: self._discard(self.store.table(table).upsert(record, on_conflict)),
            )

        return await self.request(
            f"upsert {table}",
            "POST",
            f"/rest/v1/{table}",
            lambda response: None,
            params={"on_conflict": on_conflict},
            json=[dict(record)],
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def upload(
        self, bucket: str, path: str, content: bytes, *, content_type: str = "application/octet-stream"
    ) -> GatewayResult[str]:
        logger.info("Uploading %s bytes to %s/%s", len(content), bucket, path)
        if self.use_mock_data:
            return await self._mock_call(
                f"upload {bucket}", lambda: self.store.storage.upload(bucket, path, content, content_type)
            )

        return await self.request(
            f"upload {bucket}",
            "POST",
            f"/storage/v1/object/{bucket}/{quote(path)}",
            lambda response: path,
            content=content,
            headers={"Content-Type": content_type},
        )

    def public_url(self, bucket: str, path: str, *, site_url: str = "") -> str:
        if self.use_mock_data:
            return f"{site_url.rstrip('/')}/mock-storage/{bucket}/{quote(path)}"
        return f"{self._base_url}/storage/v1/object/public/{bucket}/{quote(path)}"

    @staticmethod
    def _discard(_: Any) -> None:
        return None


async def gather_results(*calls: Awaitable[GatewayResult[Any]]) -> Tuple[GatewayResult[Any], ...]:
    """Run independent gateway calls concurrently."""

    return tuple(await asyncio.gather(*calls))
