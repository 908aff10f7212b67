"""
Job file loader and validator for the upload CLI.

Loads YAML job descriptions that mirror what the render pipeline hands to
the post-render action, and validates them before any network call.

Example job file (jobs/comp_x.yaml):
    ```yaml
    version: "1.0"
    type: postrender

    job:
      uid: comp-x-0042
      output: out.mp4
      workpath: /renders/comp-x-0042

    action:
      base64Credentials: eyJjbGllbnRfaWQiOiAi...
      folderUrl: https://drive.google.com/drive/folders/1AbCdEf
      compositionName: CompX
      fileName: out.mp4
    ```

Usage:
    >>> from drive_uploader.utils.config_loader import load_job_file, validate_job_file
    >>> job_file = load_job_file("jobs/comp_x.yaml")
    >>> errors = validate_job_file(job_file)
    >>> if not errors:
    ...     print(job_file["action"]["fileName"])
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from drive_uploader.utils.logging import get_logger

logger = get_logger(__name__)


SUPPORTED_VERSIONS = ["1.0"]

# Action keys that must be non-empty strings when present
STRING_ACTION_FIELDS = [
    "base64Credentials",
    "folderUrl",
    "compositionName",
    "fileName",
    "input",
    "driveId",
    "mimeType",
]


@dataclass
class FieldError:
    """Validation error in a job file."""

    field: str
    message: str
    value: Optional[Any] = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value})"
        return f"{self.field}: {self.message}"


def load_job_file(job_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a job description from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the path is not a file or the document is empty or not a mapping
        yaml.YAMLError: If the YAML is malformed
    """
    path = Path(job_path)
    logger.info(f"Loading job file from: {path}")

    if not path.exists():
        raise FileNotFoundError(f"Job file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Job path is not a file: {path}")

    try:
        with open(path, "r") as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise

    if document is None:
        raise ValueError("Job file is empty")
    if not isinstance(document, dict):
        raise ValueError(f"Job file must contain a mapping, got {type(document).__name__}")

    return document


def validate_job_file(document: Dict[str, Any]) -> List[FieldError]:
    """
    Validate a loaded job document.

    Only structure is checked here; required-parameter rules for the two
    action variants are enforced by the action itself.

    Returns:
        List of validation errors (empty if valid)
    """
    errors: List[FieldError] = []

    if "version" in document and str(document["version"]) not in SUPPORTED_VERSIONS:
        errors.append(
            FieldError(
                "version",
                f"Unsupported version (supported: {SUPPORTED_VERSIONS})",
                document["version"],
            )
        )

    job = document.get("job")
    if not isinstance(job, dict):
        errors.append(FieldError("job", "Missing required mapping"))
    else:
        for field in ["output", "workpath"]:
            if field in job and not isinstance(job[field], str):
                errors.append(
                    FieldError(f"job.{field}", "Must be a string", type(job[field]).__name__)
                )

    action = document.get("action")
    if not isinstance(action, dict):
        errors.append(FieldError("action", "Missing required mapping"))
    else:
        for field in STRING_ACTION_FIELDS:
            if field not in action:
                continue
            value = action[field]
            if not isinstance(value, str):
                errors.append(
                    FieldError(f"action.{field}", "Must be a string", type(value).__name__)
                )
            elif not value.strip():
                errors.append(FieldError(f"action.{field}", "Must not be empty"))

    if errors:
        logger.warning(f"Job file validation failed with {len(errors)} errors")
    return errors
