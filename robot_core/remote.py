"""HTTP connection to the build server."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Sequence

import requests
from requests import RequestException, Response

from .config import ServerSettings
from .errors import RemoteError

__all__ = ["RobotConnection", "connect"]

log = logging.getLogger(__name__)

NDJSON = "application/x-ndjson"


@dataclass
class RobotConnection:
    """A single session with the build server, shared by every store."""

    base_url: str
    timeout: float = 30.0
    token: str | None = None
    session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        self.session = requests.Session()
        if self.token:
            self.session.headers.setdefault("Authorization", f"Bearer {self.token}")

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        ok_statuses: Sequence[int] = tuple(range(200, 300)),
        **kwargs: Any,
    ) -> Response:
        url = self._url(path)
        log.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except RequestException as exc:
            raise RemoteError(f"{method} {url} failed: {exc}") from exc

        if resp.status_code not in ok_statuses:
            detail = _error_detail(resp)
            resp.close()
            raise RemoteError(
                f"{method} {url} returned {resp.status_code}: {detail}",
                status=resp.status_code,
            )
        return resp

    def post_json(self, path: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        resp = self._request("POST", path, json=dict(payload))
        return _decode_object(resp)

    def put_bytes(self, path: str, data: bytes, *, headers: Mapping[str, str] | None = None) -> dict[str, Any]:
        merged = {"Content-Type": "application/octet-stream", **(headers or {})}
        resp = self._request("PUT", path, data=data, headers=merged)
        return _decode_object(resp)

    @contextmanager
    def stream_search(self, domain: str, query: Mapping[str, Any]) -> Iterator[Iterator[dict[str, Any]]]:
        """Open a search stream yielding one decoded record per match.

        The response is closed when the block exits, including when the
        caller stops reading early.
        """

        resp = self._request(
            "POST",
            f"/v1/{domain}/search",
            json={"query": dict(query)},
            headers={"Accept": NDJSON},
            stream=True,
        )
        try:
            yield _iter_records(resp)
        finally:
            resp.close()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "RobotConnection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@contextmanager
def connect(settings: ServerSettings) -> Iterator[RobotConnection]:
    """Open a connection for the duration of one command."""

    connection = RobotConnection(
        base_url=settings.address,
        timeout=settings.timeout_seconds,
        token=settings.token,
    )
    log.debug("connected to %s", connection.base_url)
    try:
        yield connection
    finally:
        connection.close()


def _iter_records(resp: Response) -> Iterator[dict[str, Any]]:
    try:
        for line in resp.iter_lines(decode_unicode=True):
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as exc:
                raise RemoteError(f"invalid search record from {resp.url}: {line[:80]!r}") from exc
            if not isinstance(record, dict):
                raise RemoteError(f"invalid search record from {resp.url}: {line[:80]!r}")
            if "error" in record and len(record) == 1:
                raise RemoteError(f"search failed: {record['error']}")
            yield record
    except RequestException as exc:
        raise RemoteError(f"search stream from {resp.url} failed: {exc}") from exc


def _decode_object(resp: Response) -> dict[str, Any]:
    try:
        payload = resp.json()
    except ValueError as exc:
        raise RemoteError(f"invalid response from {resp.url}: {resp.text[:200]!r}") from exc
    if not isinstance(payload, dict):
        raise RemoteError(f"invalid response from {resp.url}: expected an object")
    return payload


def _error_detail(resp: Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return resp.text
