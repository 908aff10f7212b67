"""
Value types passed between the upload stages.

Every instance is created and consumed inside one upload invocation; none
of them is cached or shared across invocations.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Credentials:
    """
    Decoded OAuth client credentials.

    Attributes:
        client_id: OAuth client id
        client_secret: OAuth client secret
        refresh_token: Long-lived refresh token exchanged for an access token
    """

    client_id: str
    client_secret: str = field(repr=False)
    refresh_token: str = field(repr=False)


@dataclass(frozen=True)
class FolderRef:
    """
    Drive folder metadata.

    A FolderRef with trashed=True is never used as an upload target.
    """

    id: str
    name: str
    parent_id: Optional[str] = None
    drive_id: Optional[str] = None
    trashed: bool = False


@dataclass
class FileDescriptor:
    """
    Local file about to be uploaded.

    Attributes:
        local_path: Absolute path of the rendered file
        desired_name: Name requested by the action
        resolved_name: Name actually used for upload, after conflict resolution
        mime_type: Content type sent with the binary part
    """

    local_path: str
    desired_name: str
    resolved_name: Optional[str] = None
    mime_type: str = "application/octet-stream"


@dataclass(frozen=True)
class UploadResult:
    """Identifier and name of the file created on Drive."""

    remote_id: str
    remote_name: str


@dataclass(frozen=True)
class UploadRequest:
    """
    Fully explicit input of one upload invocation.

    Attributes:
        base64_credentials: Encoded credential bundle
        local_path: Absolute path of the file to upload
        file_name: Desired remote file name
        folder_url: Parent folder reference; None selects the flat-upload variant
        composition_name: Subfolder created under the parent (folder-copy variant)
        drive_id: Shared drive id; flat uploads land in its root
        mime_type: Content type override (guessed from local_path when None)
    """

    base64_credentials: str = field(repr=False)
    local_path: str
    file_name: str
    folder_url: Optional[str] = None
    composition_name: Optional[str] = None
    drive_id: Optional[str] = None
    mime_type: Optional[str] = None
