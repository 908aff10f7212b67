"""File name conflict resolution."""

import secrets
from typing import Optional

from drive_uploader.uploader.drive import DriveClient
from drive_uploader.utils.logging import get_logger, log_function_call

logger = get_logger(__name__)

COPY_SEPARATOR = "_copy_"
SUFFIX_BYTES = 4


def copy_name(desired_name: str) -> str:
    """Return desired_name with the copy separator and 8 random hex characters appended."""
    return f"{desired_name}{COPY_SEPARATOR}{secrets.token_hex(SUFFIX_BYTES)}"


@log_function_call
def resolve_file_name(
    client: DriveClient,
    folder_id: str,
    desired_name: str,
    drive_id: Optional[str] = None,
) -> str:
    """
    Return a name that does not clash with a non-trashed item in folder_id.

    The desired name passes through unchanged when it is free. Otherwise a
    random suffix is appended once; the new name is not re-checked.
    """
    if not client.find_children(folder_id, desired_name, drive_id=drive_id):
        return desired_name

    resolved = copy_name(desired_name)
    logger.info(f"File name conflict. New name: {resolved}")
    return resolved
