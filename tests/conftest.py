"""Shared fixtures: an in-process build server speaking the robot HTTP API."""

from __future__ import annotations

import hashlib
import http.server
import json
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

import pytest

from robot_core.config import ServerSettings
from robot_core.errors import QueryError
from robot_core.remote import RobotConnection, connect
from robot_core.search import query_from_dict

DOMAINS = ("artifacts", "packages", "tracks", "stash")


class MockBuildState:
    """In-memory server state that mirrors the real API payloads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.records: Dict[str, List[Dict[str, Any]]] = {domain: [] for domain in DOMAINS}
        self.blobs: Dict[str, bytes] = {}
        self.build_sets: Dict[Tuple[str, str], str] = {}
        self.calls: List[Tuple[str, str]] = []
        self.authorizations: List[str | None] = []
        self.fail_stash_names: set[str] = set()
        self.search_error: str | None = None

    def add_track(self, track_id: str, name: str, description: str = "", head: str = "") -> Dict[str, Any]:
        record = {"id": track_id, "name": name, "description": description, "head": head}
        self.records["tracks"].append(record)
        return record

    def track(self, track_id: str) -> Dict[str, Any] | None:
        for record in self.records["tracks"]:
            if record["id"] == track_id:
                return record
        return None

    def calls_to(self, method: str, path: str) -> int:
        return sum(1 for call in self.calls if call == (method, path))

    def stash(self, entry_id: str, name: str, data: bytes, executable: bool) -> Dict[str, Any]:
        with self._lock:
            if hashlib.sha256(data).hexdigest() != entry_id:
                raise ValueError("content does not match id")
            self.blobs[entry_id] = data
            for record in self.records["stash"]:
                if record["id"] == entry_id:
                    if name not in record["names"]:
                        record["names"].append(name)
                    return record
            record = {
                "id": entry_id,
                "names": [name],
                "executable": executable,
                "status": "Uploaded",
                "length": len(data),
                "timestamp": "2017-01-01T00:00:00Z",
            }
            self.records["stash"].append(record)
            return record

    def add_build(self, entry_id: str, information: Dict[str, Any]) -> Tuple[str, bool]:
        with self._lock:
            if entry_id not in self.blobs:
                raise KeyError(entry_id)
            fingerprint = (entry_id, json.dumps(information, sort_keys=True))
            existing = self.build_sets.get(fingerprint)
            if existing is not None:
                return existing, True
            set_id = f"set-{len(self.build_sets) + 1}"
            self.build_sets[fingerprint] = set_id
            self.records["packages"].append(
                {"id": set_id, "information": information, "artifacts": [entry_id], "parent": ""}
            )
            self.records["artifacts"].append({"id": entry_id, "host": information.get("builder"), "tools": {}})
            return set_id, False

    def update_track(self, payload: Dict[str, Any]) -> Dict[str, Any] | None:
        with self._lock:
            track_id = payload.get("id")
            if not track_id:
                track_id = f"t{len(self.records['tracks']) + 1}"
                record = {"id": track_id, "name": "", "description": "", "head": ""}
                self.records["tracks"].append(record)
            else:
                record = self.track(track_id)
                if record is None:
                    return None
            for key in ("name", "description", "head"):
                if key in payload:
                    record[key] = payload[key]
            return dict(record)


class _MockBuildRequestHandler(http.server.BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def _state(self) -> MockBuildState:
        return self.server.state  # type: ignore[attr-defined]

    def _body(self) -> bytes:
        self._state().authorizations.append(self.headers.get("Authorization"))
        length = int(self.headers.get("Content-Length", "0"))
        return self.rfile.read(length) if length else b""

    def _write(self, status: int, data: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _write_json(self, status: int, payload: Dict[str, Any]) -> None:
        self._write(status, json.dumps(payload).encode("utf-8"), "application/json")

    def _parts(self) -> List[str]:
        return [p for p in self.path.split("?")[0].split("/") if p]

    def do_PUT(self) -> None:
        parts = self._parts()
        body = self._body()
        self._state().calls.append(("PUT", "/" + "/".join(parts[:2])))
        if parts[:2] != ["v1", "stash"] or len(parts) != 3:
            self._write_json(404, {"detail": "not found"})
            return
        name = self.headers.get("X-Stash-Name", "")
        if name in self._state().fail_stash_names:
            self._write_json(500, {"detail": f"storage rejected {name}"})
            return
        executable = self.headers.get("X-Stash-Executable", "") == "true"
        try:
            record = self._state().stash(parts[2], name, body, executable)
        except ValueError as exc:
            self._write_json(400, {"detail": str(exc)})
            return
        self._write_json(200, record)

    def do_POST(self) -> None:
        parts = self._parts()
        body = self._body()
        path = "/" + "/".join(parts)
        self._state().calls.append(("POST", path))
        try:
            payload = json.loads(body or b"{}")
        except json.JSONDecodeError:
            self._write_json(400, {"detail": "invalid json"})
            return

        if len(parts) == 3 and parts[0] == "v1" and parts[1] in DOMAINS and parts[2] == "search":
            self._search(parts[1], payload)
            return
        if parts == ["v1", "builds"]:
            try:
                set_id, merged = self._state().add_build(payload["id"], payload["information"])
            except KeyError:
                self._write_json(404, {"detail": "unknown stash entry"})
                return
            self._write_json(200, {"id": set_id, "merged": merged})
            return
        if parts == ["v1", "tracks"]:
            track = self._state().update_track(payload)
            if track is None:
                self._write_json(404, {"detail": "unknown track"})
                return
            self._write_json(200, track)
            return
        self._write_json(404, {"detail": "not found"})

    def _search(self, domain: str, payload: Dict[str, Any]) -> None:
        try:
            query = query_from_dict(payload["query"])
            matches = [record for record in self._state().records[domain] if query.matches(record)]
        except (KeyError, QueryError) as exc:
            self._write_json(400, {"detail": f"bad query: {exc}"})
            return
        lines = [json.dumps(record) for record in matches]
        if self._state().search_error is not None:
            lines.append(json.dumps({"error": self._state().search_error}))
        data = "".join(line + "\n" for line in lines).encode("utf-8")
        self._write(200, data, "application/x-ndjson")

    def log_message(self, *_: Any) -> None:  # pragma: no cover - avoid noisy logs
        return


class _ThreadingHTTPServer(http.server.ThreadingHTTPServer):
    allow_reuse_address = True


class MockBuildServer:
    """Helper that runs the mock build server in a background thread."""

    def __init__(self) -> None:
        self.state = MockBuildState()
        self.httpd = _ThreadingHTTPServer(("127.0.0.1", 0), _MockBuildRequestHandler)
        self.httpd.state = self.state  # type: ignore[attr-defined]
        self.thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)
        self.url = ""

    def start(self) -> None:
        self.thread.start()
        host, port = self.httpd.server_address[:2]
        self.url = f"http://{host}:{port}"

    def stop(self) -> None:
        self.httpd.shutdown()
        self.thread.join(timeout=2)
        self.httpd.server_close()


@pytest.fixture
def build_server() -> Iterator[MockBuildServer]:
    server = MockBuildServer()
    server.start()
    try:
        yield server
    finally:
        server.stop()


@pytest.fixture
def connection(build_server: MockBuildServer) -> Iterator[RobotConnection]:
    with connect(ServerSettings(address=build_server.url, timeout_seconds=5.0)) as conn:
        yield conn


@pytest.fixture
def no_user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for name in ("ROBOT_SERVER", "ROBOT_CONFIG", "ROBOT_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path / "missing-config.toml"
