"""
Drive v3 client used by the upload flow.

Wraps a googleapiclient Drive resource and turns every HttpError or
transport failure into a RemoteError carrying the provider's error
message. Nothing is retried.
"""

from typing import Any, BinaryIO, Dict, List, Optional

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials as OAuthCredentials
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiClientError
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from drive_uploader.errors import RemoteError
from drive_uploader.uploader.models import FolderRef
from drive_uploader.utils.config import UploaderConfig
from drive_uploader.utils.logging import get_logger
from drive_uploader.utils.metrics import UploadMetrics

logger = get_logger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
FOLDER_FIELDS = "id, name, parents, driveId, trashed"
CREATED_FIELDS = "id, name"


def escape_query_value(value: str) -> str:
    """Escape a literal for use inside single quotes in a Drive `q` expression."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def folder_from_metadata(metadata: Dict[str, Any]) -> FolderRef:
    parents = metadata.get("parents") or []
    return FolderRef(
        id=metadata["id"],
        name=metadata.get("name", ""),
        parent_id=parents[0] if parents else None,
        drive_id=metadata.get("driveId"),
        trashed=bool(metadata.get("trashed", False)),
    )


def provider_message(error: HttpError) -> str:
    """Return the error.message of a Drive error payload, or the HTTP reason."""
    return error.reason or str(error)


def build_drive_service(credentials: OAuthCredentials, config: UploaderConfig):
    """
    Build a Drive v3 resource authorized with credentials.

    The bundled discovery document is used, so building makes no request.
    """
    http = google_auth_httplib2.AuthorizedHttp(
        credentials,
        http=httplib2.Http(timeout=config.request_timeout_seconds),
        max_refresh_attempts=0,
    )
    client_options = {"api_endpoint": config.api_endpoint} if config.api_endpoint else None
    return build(
        "drive",
        "v3",
        http=http,
        cache_discovery=False,
        client_options=client_options,
    )


class DriveClient:
    """
    Drive v3 operations used by the upload flow.

    Example:
        >>> client = DriveClient(build_drive_service(credentials, config))
        >>> folder = client.get_folder("1AbCdEf")
        >>> client.find_children(folder.id, "out.mp4")
        []
    """

    def __init__(self, service: Any, metrics: Optional[UploadMetrics] = None) -> None:
        self._service = service
        self._metrics = metrics

    def _record(self, operation: str, status: str) -> None:
        if self._metrics is not None:
            self._metrics.record_api_request(operation, status)

    def _execute(self, request: Any, operation: str) -> Dict[str, Any]:
        try:
            payload = request.execute(num_retries=0)
        except HttpError as e:
            status = e.resp.status
            self._record(operation, str(status))
            raise RemoteError(
                f"Drive {operation} failed ({status}): {provider_message(e)}",
                status_code=status,
            ) from e
        except (GoogleApiClientError, GoogleAuthError, httplib2.HttpLib2Error, OSError) as e:
            self._record(operation, "error")
            raise RemoteError(f"Drive {operation} request failed: {e}") from e

        self._record(operation, "ok")
        if not isinstance(payload, dict):
            raise RemoteError(f"Drive {operation} returned an unexpected payload")
        return payload

    def get_folder(self, folder_id: str) -> FolderRef:
        """Fetch folder metadata including trashed state and drive scope."""
        request = self._service.files().get(
            fileId=folder_id,
            fields=FOLDER_FIELDS,
            supportsAllDrives=True,
        )
        return folder_from_metadata(self._execute(request, "get_folder"))

    def find_children(
        self,
        parent_id: str,
        name: str,
        mime_type: Optional[str] = None,
        drive_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List non-trashed children of parent_id whose name equals name exactly.

        Results keep the order the API returned them in. Entries without an
        id are dropped.
        """
        query = (
            f"'{escape_query_value(parent_id)}' in parents"
            f" and name = '{escape_query_value(name)}'"
        )
        if mime_type:
            query += f" and mimeType = '{mime_type}'"
        query += " and trashed = false"

        params: Dict[str, Any] = {
            "q": query,
            "fields": "files(id, name)",
            "includeItemsFromAllDrives": True,
            "supportsAllDrives": True,
        }
        if drive_id:
            params["corpora"] = "drive"
            params["driveId"] = drive_id

        payload = self._execute(self._service.files().list(**params), "search")
        return [item for item in payload.get("files") or [] if item.get("id")]

    def create_folder(self, name: str, parent_id: str) -> Dict[str, Any]:
        """Create a folder named name under parent_id."""
        request = self._service.files().create(
            body={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
            fields=CREATED_FIELDS,
            supportsAllDrives=True,
        )
        return self._execute(request, "create_folder")

    def upload_file(
        self,
        name: str,
        parent_id: str,
        stream: BinaryIO,
        mime_type: str,
    ) -> Dict[str, Any]:
        """Create a file from stream with a single multipart request."""
        media = MediaIoBaseUpload(stream, mimetype=mime_type, resumable=False)
        request = self._service.files().create(
            body={"name": name, "parents": [parent_id]},
            media_body=media,
            fields=CREATED_FIELDS,
            supportsAllDrives=True,
        )
        return self._execute(request, "upload")
