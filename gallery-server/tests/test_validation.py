"""Tests for upload validation and storage path generation."""

import re

import pytest

from conftest import make_file
from gallery.core.config import MIB
from gallery.modules.assets.validation import (
    generate_storage_path,
    sanitize_segment,
    thumbnail_path_for,
)
from gallery.modules.common import StorageErrorKind, ValidationError


def test_valid_png_passes(validator):
    result = validator.validate(make_file())
    assert result.valid
    assert result.errors == []


@pytest.mark.parametrize("size", [20 * MIB + 1, 25 * MIB])
def test_oversized_file_is_rejected(validator, size):
    result = validator.validate(make_file(size=size))
    assert not result.valid
    assert any("20MB" in error for error in result.errors)


@pytest.mark.parametrize("content_type", ["application/pdf", "text/plain", "image/bmp", "video/mp4"])
def test_disallowed_mime_is_rejected(validator, content_type):
    result = validator.validate(make_file(name="doc.bin", content_type=content_type))
    assert not result.valid
    assert any("not supported" in error for error in result.errors)


def test_non_image_mime_reports_both_rules(validator):
    result = validator.validate(make_file(name="notes.txt", content_type="text/plain"))
    assert "File is not an image" in result.errors
    assert len(result.errors) == 2


def test_empty_file_is_rejected(validator):
    result = validator.validate(make_file(data=b""))
    assert not result.valid
    assert "File is empty" in result.errors


@pytest.mark.parametrize("name", ["../etc/passwd.png", "a/b.png", "a\\b.png"])
def test_traversal_in_file_name_is_rejected(validator, name):
    result = validator.validate(make_file(name=name))
    assert not result.valid
    assert "File name contains invalid characters" in result.errors


def test_exactly_max_size_is_allowed(validator):
    assert validator.validate(make_file(size=20 * MIB)).valid


def test_raise_for_errors_carries_kind_and_details(validator):
    result = validator.validate(make_file(size=21 * MIB))
    with pytest.raises(ValidationError) as excinfo:
        result.raise_for_errors()
    assert excinfo.value.kind is StorageErrorKind.VALIDATION
    assert excinfo.value.message.startswith("File validation failed: ")
    assert excinfo.value.details["errors"] == result.errors


def test_storage_path_layout():
    path = generate_storage_path("My Photo (1).JPG", "user-42", "moments", clock=lambda: 1700000000.5)
    assert re.fullmatch(r"moments/user_42/1700000000500-[0-9a-f]{12}-My_Photo_1_\.JPG", path)


def test_storage_paths_are_unique_for_same_name_and_time():
    paths = {generate_storage_path("a.png", "u1", "moments", clock=lambda: 1.0) for _ in range(50)}
    assert len(paths) == 50


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("photo.png", "photo.png"),
        ("über cool!!.png", "ber_cool_.png"),
        ("a   b", "a_b"),
        ("..", "file"),
        ("", "file"),
        ("___", "file"),
    ],
)
def test_sanitize_segment(raw, expected):
    assert sanitize_segment(raw) == expected


def test_sanitized_user_segment_cannot_escape_prefix():
    path = generate_storage_path("x.png", "../../root", "moments")
    assert path.startswith("moments/")
    assert "/../" not in path
    assert path.split("/")[1] == ".._.._root"


def test_thumbnail_path_for():
    assert (
        thumbnail_path_for("moments/u1/1700-abc-photo.png", "moments", "thumbnails")
        == "moments/thumbnails/u1/1700-abc-photo_thumb.jpg"
    )
