"""
Google Drive uploader module.

Uploads one rendered file into a Drive folder: resolves an access token,
verifies the parent folder, finds or creates the composition subfolder,
avoids name clashes and performs a single multipart upload.
"""

from .models import Credentials, FileDescriptor, FolderRef, UploadRequest, UploadResult
from .credentials import decode_credentials, exchange_token
from .drive import DriveClient
from .folders import parse_folder_reference, resolve_subfolder, verify_folder
from .naming import COPY_SEPARATOR, resolve_file_name
from .external import run_external_upload
from .uploader import UploadOutcome, try_upload, upload_to_drive

__all__ = [
    "Credentials",
    "FileDescriptor",
    "FolderRef",
    "UploadRequest",
    "UploadResult",
    "decode_credentials",
    "exchange_token",
    "DriveClient",
    "parse_folder_reference",
    "resolve_subfolder",
    "verify_folder",
    "COPY_SEPARATOR",
    "resolve_file_name",
    "run_external_upload",
    "UploadOutcome",
    "try_upload",
    "upload_to_drive",
]
