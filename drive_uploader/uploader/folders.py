"""
Destination folder resolution: parse the folder reference, verify the
parent folder and find-or-create the composition subfolder.
"""

import re

from drive_uploader.errors import ConfigError, InvalidStateError, NotFoundError, RemoteError
from drive_uploader.uploader.drive import FOLDER_MIME_TYPE, DriveClient
from drive_uploader.uploader.models import FolderRef
from drive_uploader.utils.logging import get_logger, log_function_call

logger = get_logger(__name__)

FOLDER_ID_PATTERN = re.compile(r"/folders/([^/?#]+)")


def parse_folder_reference(folder_url: str) -> str:
    """
    Extract the folder id from a Drive folder URL.

    Example:
        >>> parse_folder_reference("https://drive.google.com/drive/folders/1AbC?usp=sharing")
        '1AbC'

    Raises:
        ConfigError: If the reference contains no /folders/<id> segment
    """
    match = FOLDER_ID_PATTERN.search(folder_url or "")
    if not match:
        raise ConfigError(f"Invalid folder URL: {folder_url!r}")
    return match.group(1)


@log_function_call
def verify_folder(client: DriveClient, folder_id: str) -> FolderRef:
    """
    Confirm the parent folder exists, is reachable and is not trashed.

    Raises:
        NotFoundError: If the folder is missing or not accessible
        InvalidStateError: If the folder is in the trash
        RemoteError: On any other API failure
    """
    try:
        folder = client.get_folder(folder_id)
    except RemoteError as e:
        if e.status_code in (403, 404):
            raise NotFoundError(
                f"Parent folder {folder_id} not found or not accessible: {e}",
                status_code=e.status_code,
            ) from e
        raise

    if folder.trashed:
        raise InvalidStateError(f"Parent folder is in the trash: {folder.name} (ID: {folder.id})")

    logger.info(f"Parent folder verified: {folder.name} (ID: {folder.id})")
    return folder


@log_function_call
def resolve_subfolder(client: DriveClient, parent: FolderRef, name: str) -> FolderRef:
    """
    Find the child folder called name under parent, creating it if absent.

    When several folders share the name, the first one the API lists is
    reused. Two concurrent invocations can both miss each other's create and
    produce duplicates; later runs then keep picking the first.

    Raises:
        ConfigError: If name is empty
        RemoteError: If the search or the create call is rejected
    """
    if not name or not name.strip():
        raise ConfigError("Subfolder name must not be empty")

    matches = client.find_children(
        parent.id, name, mime_type=FOLDER_MIME_TYPE, drive_id=parent.drive_id
    )
    if matches:
        if len(matches) > 1:
            logger.warning(
                f"{len(matches)} folders named {name!r} under {parent.id}, using {matches[0]['id']}"
            )
        existing = matches[0]
        logger.info(f"Folder exists: {existing.get('name', name)} (ID: {existing['id']})")
        return FolderRef(
            id=existing["id"],
            name=existing.get("name", name),
            parent_id=parent.id,
            drive_id=parent.drive_id,
        )

    logger.info(f"Folder doesn't exist, creating: {name}")
    created = client.create_folder(name, parent.id)
    if not created.get("id"):
        raise RemoteError(f"Folder create for {name!r} returned no id")

    logger.info(f"Folder created: {created.get('name', name)} (ID: {created['id']})")
    return FolderRef(
        id=created["id"],
        name=created.get("name", name),
        parent_id=parent.id,
        drive_id=parent.drive_id,
    )
