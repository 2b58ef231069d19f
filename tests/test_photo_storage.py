"""
Unit tests for photo filename handling and URL to path mapping.
"""

import pytest

from app.config import settings
from app.services.photo_storage import path_for_url, sanitize_filename, url_for


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("holiday.jpg", "holiday.jpg"),
        ("my photo (1).png", "my_photo_1_.png"),
        ("../../etc/passwd", "passwd"),
        ("", "photo"),
        (None, "photo"),
        ("...", "photo"),
    ],
)
def test_sanitize_filename(filename, expected):
    assert sanitize_filename(filename) == expected


def test_url_and_path_round_trip():
    url = url_for("123-abc-photo.png")

    assert url == f"{settings.upload_url_prefix.rstrip('/')}/123-abc-photo.png"
    assert path_for_url(url).name == "123-abc-photo.png"


def test_path_outside_upload_dir_is_refused():
    with pytest.raises(ValueError):
        path_for_url(f"{settings.upload_url_prefix}/../secrets.txt")
