"""
Shared fixtures: an in-memory Drive fake.

The token endpoint sits behind a mocked requests.Session wrapped in a real
google-auth Request; Drive calls go to a fake googleapiclient resource.
"""

import base64
import itertools
import json
import re
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock
from urllib.parse import parse_qsl

import pytest
import requests
from google.auth.transport.requests import Request
from googleapiclient.errors import HttpError

from drive_uploader.utils.config import UploaderConfig
from drive_uploader.utils.metrics import UploadMetrics

FOLDER_MIME = "application/vnd.google-apps.folder"

_QUERY = re.compile(
    r"^'(?P<parent>(?:[^'\\]|\\.)*)' in parents"
    r" and name = '(?P<name>(?:[^'\\]|\\.)*)'"
    r"(?: and mimeType = '(?P<mime>[^']*)')?"
    r" and trashed = false$"
)


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


def make_response(status: int = 200, payload: Any = None) -> MagicMock:
    """Build a requests.Response stand-in for the token endpoint."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.headers = {"content-type": "application/json"}
    response.content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    return response


def http_error(status: int, message: str) -> HttpError:
    """Build the HttpError googleapiclient raises for a Drive error payload."""
    resp = MagicMock()
    resp.status = status
    resp.reason = "Error"
    content = json.dumps({"error": {"code": status, "message": message}}).encode("utf-8")
    return HttpError(resp, content)


def encode_bundle(payload: Dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


VALID_BUNDLE = encode_bundle(
    {"client_id": "cid", "client_secret": "secret", "refresh_token": "refresh"}
)


class _FakeRequest:
    """HttpRequest stand-in; the handler runs on execute()."""

    def __init__(self, handler, kwargs: Dict[str, Any]) -> None:
        self._handler = handler
        self._kwargs = kwargs

    def execute(self, num_retries: int = 0) -> Dict[str, Any]:
        return self._handler(self._kwargs)


class _FakeFiles:
    def __init__(self, drive: "FakeDrive") -> None:
        self._drive = drive

    def get(self, **kwargs):
        return _FakeRequest(self._drive._get, kwargs)

    def list(self, **kwargs):
        return _FakeRequest(self._drive._search, kwargs)

    def create(self, **kwargs):
        if "media_body" in kwargs:
            return _FakeRequest(self._drive._upload, kwargs)
        return _FakeRequest(self._drive._create, kwargs)


class _FakeService:
    def __init__(self, drive: "FakeDrive") -> None:
        self._drive = drive

    def files(self) -> _FakeFiles:
        return _FakeFiles(self._drive)


class FakeDrive:
    """
    Minimal Drive v3 backend.

    Items are dicts with id, name, parents, mimeType and trashed. Every
    request is appended to ``calls`` as (operation, kwargs); uploads also
    land in ``uploads`` with the bytes and mimetype that were sent.
    """

    def __init__(self, config: UploaderConfig) -> None:
        self.config = config
        self.items: List[Dict[str, Any]] = []
        self.calls: List[tuple] = []
        self.uploads: List[Dict[str, Any]] = []
        self.token_status = 200
        self.upload_error: Optional[tuple] = None
        self.create_error: Optional[tuple] = None
        self._ids = itertools.count(1)

        self.session = MagicMock(spec=requests.Session)
        self.session.request.side_effect = self._token
        self.auth_request = Request(session=self.session)
        self.service = _FakeService(self)

    # -- fixtures -----------------------------------------------------------

    def add_folder(self, folder_id: str, name: str, parent: str = "root", trashed: bool = False,
                   drive_id: Optional[str] = None) -> None:
        item = {"id": folder_id, "name": name, "parents": [parent], "mimeType": FOLDER_MIME,
                "trashed": trashed}
        if drive_id:
            item["driveId"] = drive_id
        self.items.append(item)

    def add_file(self, file_id: str, name: str, parent: str, trashed: bool = False) -> None:
        self.items.append({"id": file_id, "name": name, "parents": [parent],
                           "mimeType": "video/mp4", "trashed": trashed})

    def operations(self) -> List[str]:
        return [operation for operation, _ in self.calls]

    def count(self, operation: str) -> int:
        return self.operations().count(operation)

    # -- token endpoint -----------------------------------------------------

    def _token(self, method: str, url: str, data=None, headers=None, timeout=None, **kwargs):
        fields = dict(parse_qsl(data.decode("utf-8"))) if data else {}
        self.calls.append(("token", {"method": method, "url": url, "data": fields, "timeout": timeout}))
        if self.token_status != 200:
            return make_response(self.token_status, {"error": "invalid_grant",
                                                     "error_description": "Token has been expired or revoked."})
        return make_response(200, {"access_token": "ya29.token", "expires_in": 3599})

    # -- Drive resource -----------------------------------------------------

    def _get(self, kwargs):
        self.calls.append(("get", kwargs))
        for item in self.items:
            if item["id"] == kwargs["fileId"]:
                return dict(item)
        raise http_error(404, f"File not found: {kwargs['fileId']}.")

    def _search(self, kwargs):
        self.calls.append(("search", kwargs))
        match = _QUERY.match(kwargs["q"])
        assert match, kwargs["q"]
        parent = _unescape(match.group("parent"))
        name = _unescape(match.group("name"))
        mime = match.group("mime")
        files = [
            {"id": item["id"], "name": item["name"]}
            for item in self.items
            if parent in item["parents"] and item["name"] == name and not item["trashed"]
            and (mime is None or item["mimeType"] == mime)
        ]
        return {"files": files}

    def _create(self, kwargs):
        self.calls.append(("create", kwargs))
        if self.create_error:
            raise http_error(*self.create_error)
        body = kwargs["body"]
        new_id = f"F{next(self._ids)}"
        self.items.append({"id": new_id, "name": body["name"], "parents": list(body["parents"]),
                           "mimeType": body["mimeType"], "trashed": False})
        return {"id": new_id, "name": body["name"]}

    def _upload(self, kwargs):
        self.calls.append(("upload", kwargs))
        media = kwargs["media_body"]
        self.uploads.append({
            "body": kwargs["body"],
            "data": media.getbytes(0, media.size()),
            "mimetype": media.mimetype(),
            "resumable": media.resumable(),
        })
        if self.upload_error:
            raise http_error(*self.upload_error)
        body = kwargs["body"]
        new_id = f"U{next(self._ids)}"
        self.items.append({"id": new_id, "name": body["name"], "parents": list(body["parents"]),
                           "mimeType": media.mimetype(), "trashed": False})
        return {"id": new_id, "name": body["name"]}


@pytest.fixture
def config() -> UploaderConfig:
    return UploaderConfig()


@pytest.fixture
def drive(config, monkeypatch) -> FakeDrive:
    fake = FakeDrive(config)
    monkeypatch.setattr(
        "drive_uploader.uploader.uploader.build_drive_service",
        lambda credentials, config: fake.service,
    )
    return fake


@pytest.fixture
def metrics() -> UploadMetrics:
    return UploadMetrics(enabled=True)


@pytest.fixture
def render_file(tmp_path):
    """A small rendered output file."""
    path = tmp_path / "out.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42" + b"\x01" * 64)
    return path
