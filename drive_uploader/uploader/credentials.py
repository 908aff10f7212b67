"""
Credential resolution: decode the credential bundle and exchange it for a
short-lived access token with a refresh-token grant.
"""

import base64
import binascii
import functools
import json
from typing import Optional

from google.auth import transport
from google.auth.exceptions import RefreshError, TransportError
from google.oauth2.credentials import Credentials as OAuthCredentials

from drive_uploader.errors import AuthError, CredentialError
from drive_uploader.uploader.models import Credentials
from drive_uploader.utils.logging import get_logger
from drive_uploader.utils.metrics import UploadMetrics

logger = get_logger(__name__)

REQUIRED_CREDENTIAL_FIELDS = ("client_id", "client_secret", "refresh_token")


def decode_credentials(base64_credentials: str) -> Credentials:
    """
    Decode a base64 JSON credential bundle.

    Raises:
        CredentialError: If the bundle is not base64, not JSON, not an object,
            or lacks a non-empty client_id, client_secret or refresh_token
    """
    if not base64_credentials or not base64_credentials.strip():
        raise CredentialError("Credential bundle is empty")

    try:
        raw = base64.b64decode(base64_credentials.strip(), validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise CredentialError(f"Credential bundle is not base64-encoded JSON: {e}") from e

    if not isinstance(payload, dict):
        raise CredentialError("Credential bundle must decode to a JSON object")

    missing = [
        name for name in REQUIRED_CREDENTIAL_FIELDS
        if not isinstance(payload.get(name), str) or not payload.get(name)
    ]
    if missing:
        raise CredentialError(f"Credential bundle is missing fields: {', '.join(missing)}")

    return Credentials(
        client_id=payload["client_id"],
        client_secret=payload["client_secret"],
        refresh_token=payload["refresh_token"],
    )


def exchange_token(
    auth_request: transport.Request,
    credentials: Credentials,
    token_url: str,
    timeout: Optional[float] = None,
    metrics: Optional[UploadMetrics] = None,
) -> OAuthCredentials:
    """
    Exchange a refresh token for a bearer access token.

    The grant is sent by google-auth through auth_request (normally a
    google.auth.transport.requests.Request); the request body holds
    exactly client_id, client_secret, refresh_token and grant_type.

    Returns:
        Refreshed google-auth credentials; ``token`` is the access token

    Raises:
        AuthError: If the endpoint is unreachable, rejects the grant, or
            answers without an access_token
    """
    oauth_credentials = OAuthCredentials(
        token=None,
        refresh_token=credentials.refresh_token,
        token_uri=token_url,
        client_id=credentials.client_id,
        client_secret=credentials.client_secret,
    )

    request = auth_request
    if timeout is not None:
        request = functools.partial(request, timeout=timeout)

    try:
        oauth_credentials.refresh(request)
    except TransportError as e:
        _record(metrics, "error")
        raise AuthError(f"Token endpoint unreachable: {e}") from e
    except RefreshError as e:
        _record(metrics, "rejected")
        message = e.args[0] if e.args else str(e)
        raise AuthError(f"Token exchange rejected: {message}") from e

    _record(metrics, "ok")
    if not oauth_credentials.token:
        raise AuthError("Token endpoint returned no access_token")

    logger.debug("Access token obtained")
    return oauth_credentials


def _record(metrics: Optional[UploadMetrics], status: str) -> None:
    if metrics is not None:
        metrics.record_api_request("token", status)
