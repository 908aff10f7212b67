"""
Error taxonomy for the Drive upload action.

Every failure raised by the upload flow is a DriveUploadError subclass that
carries an ErrorKind tag and the Stage it was raised in, so callers can
branch on the kind of failure without matching on message text.

Example usage:
    >>> try:
    ...     upload_to_drive(request)
    ... except DriveUploadError as e:
    ...     if e.kind is ErrorKind.INVALID_STATE:
    ...         print("parent folder is in the trash")
"""

from enum import Enum
from typing import Optional


class Stage(str, Enum):
    """Stages of a single upload invocation, in execution order."""

    AUTHENTICATING = "authenticating"
    VERIFYING_FOLDER = "verifying_folder"
    RESOLVING_SUBFOLDER = "resolving_subfolder"
    RESOLVING_NAME = "resolving_name"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Discriminator carried by every DriveUploadError."""

    CONFIG = "config"
    CREDENTIAL = "credential"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    REMOTE = "remote"


class DriveUploadError(Exception):
    """
    Base class for all upload failures.

    Attributes:
        kind: ErrorKind tag for this failure
        stage: Stage in which the failure occurred (None if raised outside
            the staged flow, e.g. while validating action parameters)
        status_code: HTTP status from the provider, when there was one
    """

    kind: ErrorKind = ErrorKind.REMOTE

    def __init__(
        self,
        message: str,
        stage: Optional[Stage] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.status_code = status_code


class ConfigError(DriveUploadError):
    """Missing or invalid parameter, or an unparsable folder reference."""

    kind = ErrorKind.CONFIG


class CredentialError(DriveUploadError):
    """Credential bundle could not be decoded into the expected fields."""

    kind = ErrorKind.CREDENTIAL


class AuthError(DriveUploadError):
    """Token endpoint rejected the refresh-token grant."""

    kind = ErrorKind.AUTH


class NotFoundError(DriveUploadError):
    """Parent folder is missing or not accessible with this token."""

    kind = ErrorKind.NOT_FOUND


class InvalidStateError(DriveUploadError):
    """Parent folder exists but is in the trash."""

    kind = ErrorKind.INVALID_STATE


class RemoteError(DriveUploadError):
    """Any other API-level failure, including folder create and upload."""

    kind = ErrorKind.REMOTE
