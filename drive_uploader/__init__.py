"""
Drive Uploader

Post-render action that uploads a rendered output file to Google Drive,
optionally into a per-composition subfolder of a shared parent folder.

This package provides:
- uploader: Credential exchange, folder resolution, name conflicts and upload
- action: Render pipeline adapter ("postrender" actions)
- utils: Logging, configuration, job files and metrics
"""

__version__ = "0.1.0"

from drive_uploader.utils.logging import setup_logging

# Initialize default logging configuration
setup_logging()
