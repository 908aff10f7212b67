#!/usr/bin/env python3
"""
Upload a rendered file to Google Drive.

CLI wrapper around the post-render action. Takes either a YAML job file or
explicit flags; flags override values from the job file.

Usage:
    python scripts/upload.py --job jobs/comp_x.yaml
    python scripts/upload.py --file /renders/out.mp4 --file-name out.mp4 \\
        --folder-url https://drive.google.com/drive/folders/1AbC --composition CompX
"""

import argparse
import sys
from pathlib import Path

# Add project root to path for imports (before other imports)
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from drive_uploader.action import POSTRENDER, run  # noqa: E402
from drive_uploader.errors import DriveUploadError  # noqa: E402
from drive_uploader.utils.config import get_config  # noqa: E402
from drive_uploader.utils.config_loader import load_job_file, validate_job_file  # noqa: E402
from drive_uploader.utils.logging import get_logger, setup_logging  # noqa: E402
from drive_uploader.utils.metrics import start_metrics_server  # noqa: E402

logger = get_logger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Upload a rendered file to Google Drive",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a job description
  %(prog)s --job jobs/comp_x.yaml

  # Upload into <folder>/CompX, renaming on conflict
  %(prog)s --file /renders/out.mp4 --file-name out.mp4 \\
      --folder-url https://drive.google.com/drive/folders/1AbC --composition CompX

  # Flat upload into a shared drive root
  %(prog)s --file /renders/out.mp4 --file-name out.mp4 --drive-id 0AbCdEf
        """,
    )

    parser.add_argument("-j", "--job", help="YAML job file")
    parser.add_argument("-f", "--file", help="Local file to upload")
    parser.add_argument("-n", "--file-name", help="Remote file name")
    parser.add_argument("--folder-url", help="Parent Drive folder URL")
    parser.add_argument("-c", "--composition", help="Composition subfolder name")
    parser.add_argument("--drive-id", help="Shared drive id")
    parser.add_argument("--mime-type", help="Content type override")
    parser.add_argument(
        "--credentials",
        help="Base64 credential bundle (default: DRIVE_BASE64_CREDENTIALS)",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        help="Expose Prometheus metrics on this port while uploading",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return parser.parse_args(argv)


def build_invocation(args):
    """Merge the job file (if any) with command-line flags."""
    job = {}
    action = {}
    lifecycle = POSTRENDER

    if args.job:
        document = load_job_file(args.job)
        errors = validate_job_file(document)
        if errors:
            raise ValueError("; ".join(str(error) for error in errors))
        job = dict(document.get("job") or {})
        action = dict(document.get("action") or {})
        lifecycle = document.get("type", POSTRENDER)

    overrides = {
        "input": str(Path(args.file).resolve()) if args.file else None,
        "fileName": args.file_name,
        "folderUrl": args.folder_url,
        "compositionName": args.composition,
        "driveId": args.drive_id,
        "mimeType": args.mime_type,
        "base64Credentials": args.credentials,
    }
    action.update({key: value for key, value in overrides.items() if value})

    if args.job and job.get("workpath") and not Path(job["workpath"]).is_absolute():
        job["workpath"] = str((Path(args.job).parent / job["workpath"]).resolve())

    return job, action, lifecycle


def main(argv=None):
    """Main entry point for upload CLI."""
    args = parse_args(argv)

    try:
        config = get_config()
    except DriveUploadError as e:
        print(f"❌ Configuration error: {e}")
        return 1

    setup_logging(level="DEBUG" if args.verbose else config.log_level)

    if not args.job and not args.file:
        print("❌ Either --job or --file is required")
        return 1

    try:
        job, action, lifecycle = build_invocation(args)
    except (OSError, ValueError) as e:
        print(f"❌ Invalid job file: {e}")
        return 1

    if args.metrics_port:
        start_metrics_server(port=args.metrics_port)

    try:
        remote_id = run(job, action, lifecycle, config=config)
    except DriveUploadError as e:
        print(f"❌ Upload failed ({e.kind.value}): {e}")
        return 1
    except KeyboardInterrupt:
        print("\n⚠️  Upload cancelled by user")
        return 130

    if remote_id:
        print("✅ Upload successful!")
        print(f"  File ID: {remote_id}")
    else:
        print("✅ External upload command finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
