"""
Post-render action adapter.

Bridges the render pipeline's action contract (job, action parameters,
lifecycle type) to the uploader. The action only runs in the "postrender"
lifecycle phase; every failure is logged with ACTION_PREFIX and re-raised
unchanged.

Action parameters:
    base64Credentials  encoded OAuth bundle (falls back to DRIVE_BASE64_CREDENTIALS)
    fileName           remote file name (required)
    folderUrl          parent folder URL; omit for a flat upload
    compositionName    subfolder under folderUrl (required with folderUrl)
    input              explicit local file, instead of job.output
    driveId            shared drive id
    mimeType           content type override
    command            external upload command; replaces the in-process upload
"""

import os
from typing import Any, Mapping, Optional

from google.auth import transport

from drive_uploader.errors import ConfigError
from drive_uploader.uploader import UploadRequest, run_external_upload, upload_to_drive
from drive_uploader.utils.config import UploaderConfig, get_config
from drive_uploader.utils.logging import ACTION_PREFIX, get_logger, set_correlation_id
from drive_uploader.utils.metrics import UploadMetrics

logger = get_logger(__name__)

POSTRENDER = "postrender"


def _job_value(job: Any, key: str) -> Optional[str]:
    """Read key from a job given either as a mapping or as an object."""
    if isinstance(job, Mapping):
        return job.get(key)
    return getattr(job, key, None)


def resolve_input_path(job: Any, action: Mapping[str, Any]) -> str:
    """
    Return the absolute path of the file to upload.

    Uses action["input"] when given, otherwise job.output; relative paths
    are joined to job.workpath.

    Raises:
        ConfigError: If no input is known, or a relative path has no workpath
    """
    path = action.get("input") or _job_value(job, "output")
    if not path:
        raise ConfigError(f"{ACTION_PREFIX} Missing input file: neither action input nor job output is set.")

    if not os.path.isabs(path):
        workpath = _job_value(job, "workpath")
        if not workpath:
            raise ConfigError(f"{ACTION_PREFIX} Relative input {path!r} needs a job workpath.")
        path = os.path.join(workpath, path)
    return os.path.normpath(path)


def build_request(
    job: Any,
    action: Mapping[str, Any],
    config: UploaderConfig,
) -> UploadRequest:
    """
    Turn action parameters into an UploadRequest.

    Raises:
        ConfigError: If base64Credentials or fileName is missing, or
            folderUrl is present but blank
    """
    credentials = action.get("base64Credentials") or config.base64_credentials
    if not credentials:
        raise ConfigError(f"{ACTION_PREFIX} Missing base64Credentials.")
    if not action.get("fileName"):
        raise ConfigError(f"{ACTION_PREFIX} Missing fileName.")

    folder_url = action.get("folderUrl")
    if folder_url is not None and (not isinstance(folder_url, str) or not folder_url.strip()):
        raise ConfigError(
            f"{ACTION_PREFIX} folderUrl is empty; omit it to upload without a folder."
        )

    return UploadRequest(
        base64_credentials=credentials,
        local_path=resolve_input_path(job, action),
        file_name=action["fileName"],
        folder_url=folder_url,
        composition_name=action.get("compositionName") or None,
        drive_id=action.get("driveId") or None,
        mime_type=action.get("mimeType") or None,
    )


def run(
    job: Any,
    action: Mapping[str, Any],
    type: str,
    config: Optional[UploaderConfig] = None,
    metrics: Optional[UploadMetrics] = None,
    auth_request: Optional[transport.Request] = None,
) -> Optional[str]:
    """
    Run the Drive upload action for one render job.

    Args:
        job: Render job (mapping or object) with output, workpath and uid
        action: Action parameters (see module docstring)
        type: Lifecycle phase; must be "postrender"
        config: Uploader configuration (process config if None)
        metrics: Metrics sink passed through to the uploader
        auth_request: google-auth transport for the token exchange

    Returns:
        The remote file id, or None when an external command did the upload

    Raises:
        DriveUploadError: Any classified failure, after it has been logged.
            Other exceptions are logged the same way and re-raised unchanged.
    """
    if type != POSTRENDER:
        error = ConfigError(
            f"{ACTION_PREFIX} Action can only be run in {POSTRENDER} mode, you provided: {type}."
        )
        logger.error(str(error))
        raise error

    job_uid = _job_value(job, "uid")
    if job_uid:
        set_correlation_id(str(job_uid))

    config = config if config is not None else get_config()

    try:
        command = action.get("command")
        if command:
            local_path = resolve_input_path(job, action)
            logger.info(f"{ACTION_PREFIX} Handing file to external upload command: {local_path}")
            run_external_upload(command, local_path, timeout=config.request_timeout_seconds)
            logger.info(f"{ACTION_PREFIX} External upload finished: {local_path}")
            return None

        request = build_request(job, action, config)
        logger.info(f"{ACTION_PREFIX} Uploading file to Google Drive: {request.local_path}")
        result = upload_to_drive(request, config=config, metrics=metrics, auth_request=auth_request)
    except Exception as e:
        logger.error(f"{ACTION_PREFIX} Failed to upload file: {e}")
        raise

    logger.info(
        f"{ACTION_PREFIX} File uploaded successfully to Google Drive with ID: {result.remote_id}"
    )
    return result.remote_id
