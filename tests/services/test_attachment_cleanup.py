# -*- coding: utf-8 -*-
"""
Tests for best-effort attachment deletion.
"""
from unittest.mock import patch

from services.attachment_cleanup import (
    AttachmentOutcome, delete_attachment, delete_attachments, existing_attachments,
    resolve_attachment_path,
)


def test_relative_paths_resolve_against_photos_dir(tmp_path):
    assert resolve_attachment_path("a.jpg", tmp_path) == tmp_path / "a.jpg"
    assert resolve_attachment_path(tmp_path / "b.jpg", tmp_path / "other") == tmp_path / "b.jpg"


def test_delete_existing_file(tmp_path):
    photo = tmp_path / "a.jpg"
    photo.write_bytes(b"a")

    result = delete_attachment("a.jpg", tmp_path)

    assert result.outcome is AttachmentOutcome.DELETED
    assert result.ok
    assert not photo.exists()


def test_missing_file_is_not_an_error(tmp_path):
    result = delete_attachment(tmp_path / "gone.jpg")

    assert result.outcome is AttachmentOutcome.MISSING
    assert result.ok


def test_os_error_is_reported_not_raised(tmp_path):
    photo = tmp_path / "a.jpg"
    photo.write_bytes(b"a")

    with patch("services.attachment_cleanup.os.remove", side_effect=PermissionError("in use")):
        result = delete_attachment(photo)

    assert result.outcome is AttachmentOutcome.ERROR
    assert not result.ok
    assert "in use" in result.error
    assert photo.exists()


def test_delete_many_skips_blank_entries(tmp_path):
    photo = tmp_path / "a.jpg"
    photo.write_bytes(b"a")

    results = delete_attachments([str(photo), "", None, str(tmp_path / "gone.jpg")])

    assert [r.outcome for r in results] == [AttachmentOutcome.DELETED, AttachmentOutcome.MISSING]


def test_existing_attachments_keeps_order(tmp_path):
    (tmp_path / "b.jpg").write_bytes(b"b")
    (tmp_path / "a.jpg").write_bytes(b"a")

    found = existing_attachments(["b.jpg", "missing.jpg", "", "a.jpg"], tmp_path)

    assert found == [tmp_path / "b.jpg", tmp_path / "a.jpg"]
