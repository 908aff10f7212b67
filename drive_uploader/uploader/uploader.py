"""
Google Drive upload orchestration.

Runs the staged upload flow for one rendered file:

    AUTHENTICATING -> VERIFYING_FOLDER -> RESOLVING_SUBFOLDER
        -> RESOLVING_NAME -> UPLOADING -> DONE

Any stage moves straight to FAILED on error. Without a folder reference
(flat-upload variant) the two folder stages are skipped and the file lands
in the shared drive given by drive_id, or in the user's root folder.

Example usage:
    >>> from drive_uploader.uploader import UploadRequest, upload_to_drive
    >>> request = UploadRequest(
    ...     base64_credentials=bundle,
    ...     local_path="/renders/job-1/out.mp4",
    ...     file_name="out.mp4",
    ...     folder_url="https://drive.google.com/drive/folders/P1",
    ...     composition_name="CompX",
    ... )
    >>> result = upload_to_drive(request)
    >>> print(result.remote_id)
"""

import mimetypes
import os
from dataclasses import dataclass
from typing import Optional

from google.auth import transport
from google.auth.transport.requests import Request

from drive_uploader.errors import ConfigError, DriveUploadError, ErrorKind, RemoteError, Stage
from drive_uploader.uploader.credentials import decode_credentials, exchange_token
from drive_uploader.uploader.drive import DriveClient, build_drive_service
from drive_uploader.uploader.folders import parse_folder_reference, resolve_subfolder, verify_folder
from drive_uploader.uploader.models import FileDescriptor, UploadRequest, UploadResult
from drive_uploader.uploader.naming import resolve_file_name
from drive_uploader.utils.config import UploaderConfig, get_config
from drive_uploader.utils.logging import get_logger
from drive_uploader.utils.metrics import UploadMetrics, get_metrics

logger = get_logger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
ROOT_FOLDER_ID = "root"
UNEXPECTED_KIND = "unexpected"


@dataclass(frozen=True)
class UploadOutcome:
    """
    Tagged result of try_upload.

    Attributes:
        success: Whether the upload completed
        stage: DONE on success, otherwise the stage that failed
        result: UploadResult when successful
        error: The raised DriveUploadError when not successful
    """

    success: bool
    stage: Stage
    result: Optional[UploadResult] = None
    error: Optional[DriveUploadError] = None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None


def describe_file(request: UploadRequest) -> FileDescriptor:
    """
    Validate the local file and build its descriptor.

    Raises:
        ConfigError: If the file name is empty or the path is not an
            existing, readable, absolute file path
    """
    if not request.file_name or not request.file_name.strip():
        raise ConfigError("File name must not be empty")

    path = request.local_path
    if not path or not os.path.isabs(path):
        raise ConfigError(f"Local path must be absolute: {path!r}")
    if not os.path.isfile(path):
        raise ConfigError(f"File not found: {path}")
    if not os.access(path, os.R_OK):
        raise ConfigError(f"File is not readable: {path}")

    mime_type = request.mime_type or mimetypes.guess_type(path)[0] or DEFAULT_MIME_TYPE
    return FileDescriptor(local_path=path, desired_name=request.file_name, mime_type=mime_type)


class _UploadFlow:
    """One pass through the upload stages for a single request."""

    def __init__(
        self,
        request: UploadRequest,
        config: UploaderConfig,
        auth_request: transport.Request,
        metrics: UploadMetrics,
    ) -> None:
        self.request = request
        self.config = config
        self.auth_request = auth_request
        self.metrics = metrics
        self.stage: Optional[Stage] = None

    def _enter(self, stage: Stage) -> None:
        logger.debug(f"Stage: {self.stage.value if self.stage else 'start'} -> {stage.value}")
        self.stage = stage

    def run(self) -> UploadResult:
        request = self.request

        # Parameter checks that need no network
        folder_id = None
        if request.folder_url is not None:
            folder_id = parse_folder_reference(request.folder_url)
            if not request.composition_name or not request.composition_name.strip():
                raise ConfigError("Composition name is required when a folder URL is given")
        descriptor = describe_file(request)

        self._enter(Stage.AUTHENTICATING)
        credentials = decode_credentials(request.base64_credentials)
        oauth_credentials = exchange_token(
            self.auth_request,
            credentials,
            self.config.token_url,
            timeout=self.config.request_timeout_seconds,
            metrics=self.metrics,
        )
        client = DriveClient(build_drive_service(oauth_credentials, self.config), metrics=self.metrics)

        if folder_id is not None:
            logger.info(f"Folder ID: {folder_id}")
            logger.info(f"Drive ID: {request.drive_id}")

            self._enter(Stage.VERIFYING_FOLDER)
            parent = verify_folder(client, folder_id)

            self._enter(Stage.RESOLVING_SUBFOLDER)
            destination = resolve_subfolder(client, parent, request.composition_name)
            destination_id = destination.id
            drive_id = destination.drive_id or request.drive_id
        else:
            destination_id = request.drive_id or ROOT_FOLDER_ID
            drive_id = request.drive_id

        self._enter(Stage.RESOLVING_NAME)
        descriptor.resolved_name = resolve_file_name(
            client, destination_id, descriptor.desired_name, drive_id=drive_id
        )

        self._enter(Stage.UPLOADING)
        try:
            stream = open(descriptor.local_path, "rb")
        except FileNotFoundError as e:
            raise ConfigError(f"File disappeared before upload: {descriptor.local_path}") from e
        except OSError as e:
            raise RemoteError(f"Could not read {descriptor.local_path}: {e}") from e

        with stream:
            size = os.fstat(stream.fileno()).st_size
            created = client.upload_file(
                descriptor.resolved_name,
                destination_id,
                stream,
                descriptor.mime_type,
            )

        remote_id = created.get("id")
        if not remote_id:
            raise RemoteError("Upload response contained no file id")

        result = UploadResult(remote_id=remote_id, remote_name=created.get("name", descriptor.resolved_name))
        self.metrics.record_upload_success(bytes_uploaded=size)
        self._enter(Stage.DONE)
        logger.info(f"File uploaded: {result.remote_name} (ID: {result.remote_id})")
        return result


def upload_to_drive(
    request: UploadRequest,
    config: Optional[UploaderConfig] = None,
    metrics: Optional[UploadMetrics] = None,
    auth_request: Optional[transport.Request] = None,
) -> UploadResult:
    """
    Upload request.local_path to Google Drive and return the created file.

    Args:
        request: Explicit inputs of this invocation
        config: Endpoint and timeout settings (process config if None)
        metrics: Metrics sink (process metrics if None)
        auth_request: google-auth transport for the token exchange (a
            fresh requests-based Request if None)

    Returns:
        UploadResult with the provider's file id and name

    Raises:
        DriveUploadError: Subclass matching the failure; its ``stage`` is
            the stage that failed (None for parameter errors). Any other
            exception is counted as an "unexpected" failure and re-raised.
    """
    config = config if config is not None else get_config()
    metrics = metrics if metrics is not None else get_metrics()
    auth_request = auth_request if auth_request is not None else Request()

    flow = _UploadFlow(request, config, auth_request, metrics)
    try:
        with metrics.track_upload():
            return flow.run()
    except DriveUploadError as e:
        if e.stage is None:
            e.stage = flow.stage
        failed_in = flow.stage.value if flow.stage else "validation"
        logger.debug(f"Stage: {failed_in} -> {Stage.FAILED.value}")
        metrics.record_upload_failure(stage=failed_in, kind=e.kind.value)
        raise
    except Exception:
        failed_in = flow.stage.value if flow.stage else "validation"
        logger.debug(f"Stage: {failed_in} -> {Stage.FAILED.value}")
        metrics.record_upload_failure(stage=failed_in, kind=UNEXPECTED_KIND)
        raise


def try_upload(
    request: UploadRequest,
    config: Optional[UploaderConfig] = None,
    metrics: Optional[UploadMetrics] = None,
    auth_request: Optional[transport.Request] = None,
) -> UploadOutcome:
    """
    Run upload_to_drive and return a tagged outcome instead of raising.

    Only DriveUploadError is captured; anything else propagates.

    Example:
        >>> outcome = try_upload(request)
        >>> if outcome.kind is ErrorKind.NOT_FOUND:
        ...     print("check the folder URL")
    """
    try:
        result = upload_to_drive(request, config=config, metrics=metrics, auth_request=auth_request)
    except DriveUploadError as e:
        return UploadOutcome(success=False, stage=e.stage or Stage.FAILED, error=e)
    return UploadOutcome(success=True, stage=Stage.DONE, result=result)
