"""Unit tests for the post-render action adapter."""

import logging
import os
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from drive_uploader.action import build_request, resolve_input_path, run
from drive_uploader.errors import ConfigError, InvalidStateError
from drive_uploader.utils.config import UploaderConfig
from drive_uploader.utils.logging import ACTION_PREFIX

from tests.conftest import VALID_BUNDLE


def folder_action(**overrides):
    action = {
        "base64Credentials": VALID_BUNDLE,
        "folderUrl": "https://drive.google.com/drive/folders/P1",
        "compositionName": "CompX",
        "fileName": "out.mp4",
    }
    action.update(overrides)
    return action


class TestResolveInputPath:
    def test_relative_output_joined_to_workpath(self, tmp_path):
        job = {"output": "out.mp4", "workpath": str(tmp_path)}

        assert resolve_input_path(job, {}) == str(tmp_path / "out.mp4")

    def test_absolute_output_kept(self, tmp_path):
        job = {"output": str(tmp_path / "out.mp4"), "workpath": "/elsewhere"}

        assert resolve_input_path(job, {}) == str(tmp_path / "out.mp4")

    def test_explicit_input_wins(self, tmp_path):
        job = {"output": "out.mp4", "workpath": str(tmp_path)}

        assert resolve_input_path(job, {"input": "encoded/final.mov"}) == str(tmp_path / "encoded" / "final.mov")

    def test_job_object(self, tmp_path):
        job = SimpleNamespace(output="out.mp4", workpath=str(tmp_path), uid="j1")

        assert resolve_input_path(job, {}) == os.path.join(str(tmp_path), "out.mp4")

    def test_no_output(self):
        with pytest.raises(ConfigError, match="Missing input"):
            resolve_input_path({"workpath": "/tmp"}, {})

    def test_relative_without_workpath(self):
        with pytest.raises(ConfigError, match="workpath"):
            resolve_input_path({"output": "out.mp4"}, {})


class TestBuildRequest:
    def test_missing_credentials(self, render_file):
        with pytest.raises(ConfigError, match="base64Credentials"):
            build_request({"output": str(render_file)}, folder_action(base64Credentials=""), UploaderConfig())

    def test_credentials_fallback_from_config(self, render_file):
        config = UploaderConfig(base64_credentials=VALID_BUNDLE)

        request = build_request({"output": str(render_file)}, folder_action(base64Credentials=None), config)

        assert request.base64_credentials == VALID_BUNDLE

    def test_missing_file_name(self, render_file):
        with pytest.raises(ConfigError, match="fileName"):
            build_request({"output": str(render_file)}, folder_action(fileName=None), UploaderConfig())

    def test_flat_variant(self, render_file):
        action = {"base64Credentials": VALID_BUNDLE, "fileName": "out.mp4", "driveId": "D1"}

        request = build_request({"output": str(render_file)}, action, UploaderConfig())

        assert request.folder_url is None
        assert request.drive_id == "D1"

    @pytest.mark.parametrize("folder_url", ["", "   "])
    def test_blank_folder_url_rejected(self, render_file, folder_url):
        with pytest.raises(ConfigError, match="folderUrl is empty"):
            build_request({"output": str(render_file)}, folder_action(folderUrl=folder_url), UploaderConfig())

    def test_folder_url_passed_through(self, render_file):
        request = build_request({"output": str(render_file)}, folder_action(), UploaderConfig())

        assert request.folder_url == "https://drive.google.com/drive/folders/P1"
        assert request.composition_name == "CompX"


class TestRun:
    """Test the action entry point."""

    def test_rejects_non_postrender(self, drive, config, render_file):
        with pytest.raises(ConfigError, match="postrender mode, you provided: prerender"):
            run({"output": str(render_file)}, folder_action(), "prerender", config=config, auth_request=drive.auth_request)
        assert drive.calls == []

    def test_successful_run_returns_id(self, drive, config, metrics, render_file, caplog):
        drive.add_folder("P1", "Renders")
        job = {"uid": "job-7", "output": render_file.name, "workpath": str(render_file.parent)}

        with caplog.at_level(logging.INFO):
            remote_id = run(job, folder_action(), "postrender", config=config, auth_request=drive.auth_request, metrics=metrics)

        assert remote_id == drive.items[-1]["id"]
        assert f"{ACTION_PREFIX} Uploading file to Google Drive: {render_file}" in caplog.text
        assert f"{ACTION_PREFIX} File uploaded successfully to Google Drive with ID: {remote_id}" in caplog.text

    def test_failure_logged_with_prefix_and_reraised(self, drive, config, metrics, render_file, caplog):
        drive.add_folder("P1", "Renders", trashed=True)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(InvalidStateError):
                run({"output": str(render_file)}, folder_action(), "postrender",
                    config=config, auth_request=drive.auth_request, metrics=metrics)

        assert f"{ACTION_PREFIX} Failed to upload file: Parent folder is in the trash" in caplog.text

    def test_unclassified_error_logged_with_prefix(self, drive, config, metrics, render_file, caplog):
        drive.add_folder("P1", "Renders")

        with patch("drive_uploader.action.upload_to_drive", side_effect=OSError("Input/output error")):
            with caplog.at_level(logging.ERROR):
                with pytest.raises(OSError, match="Input/output error"):
                    run({"output": str(render_file)}, folder_action(), "postrender",
                        config=config, metrics=metrics, auth_request=drive.auth_request)

        assert f"{ACTION_PREFIX} Failed to upload file: Input/output error" in caplog.text

    def test_file_removed_mid_run_logged_and_counted(self, drive, config, metrics, render_file, caplog):
        drive.add_folder("P1", "Renders")
        original = drive._search

        def search_then_remove_file(kwargs):
            render_file.unlink(missing_ok=True)
            return original(kwargs)

        with patch.object(drive, "_search", side_effect=search_then_remove_file):
            with caplog.at_level(logging.ERROR):
                with pytest.raises(ConfigError):
                    run({"output": str(render_file)}, folder_action(), "postrender",
                        config=config, metrics=metrics, auth_request=drive.auth_request)

        assert f"{ACTION_PREFIX} Failed to upload file: File disappeared before upload" in caplog.text
        assert metrics.registry.get_sample_value("drive_uploads_total", {"status": "failure"}) == 1.0

    def test_credentials_never_logged(self, drive, config, metrics, render_file, caplog):
        drive.add_folder("P1", "Renders")

        with caplog.at_level(logging.DEBUG):
            run({"output": str(render_file)}, folder_action(), "postrender",
                config=config, auth_request=drive.auth_request, metrics=metrics)

        assert VALID_BUNDLE not in caplog.text
        assert "secret" not in caplog.text
        assert "ya29.token" not in caplog.text

    def test_external_command_variant(self, drive, config, render_file):
        action = {"command": "upload-script --verbose", "fileName": "out.mp4"}

        with patch("drive_uploader.action.run_external_upload", return_value=0) as external:
            result = run({"output": str(render_file)}, action, "postrender", config=config, auth_request=drive.auth_request)

        assert result is None
        external.assert_called_once_with("upload-script --verbose", str(render_file), timeout=None)
        assert drive.calls == []
