from __future__ import annotations

import pytest

from clipvault.modules.acquisition.platforms import detect_platform, is_url_supported
from clipvault.modules.acquisition.service import title_from_filename, with_mp4_extension
from clipvault.platform.ports import object_storage
from clipvault.platform.ports.object_storage import generate_file_key


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://www.youtube.com/watch?v=abc", "YouTube"),
        ("https://youtu.be/abc", "YouTube"),
        ("https://www.tiktok.com/@user/video/1", "TikTok"),
        ("https://www.instagram.com/p/xyz/", "Instagram"),
        ("https://www.linkedin.com/posts/abc", "LinkedIn"),
        ("https://x.com/user/status/1", "Twitter/X"),
        ("https://vimeo.com/12345", "Vimeo"),
        ("https://example.com/video.mp4", None),
        ("https://www.netflix.com/title/1", None),
        ("https://dropbox.com/s/clip.mp4", None),
        ("https://example.com/?next=youtube.com", None),
        ("https://notyoutube.com/watch?v=1", None),
        ("https://m.youtube.com/watch?v=abc", "YouTube"),
        ("youtu.be/abc", "YouTube"),
        ("https://X.com/user/status/1", "Twitter/X"),
        ("", None),
    ],
)
def test_detect_platform(url, expected) -> None:
    assert detect_platform(url) == expected
    assert is_url_supported(url) is (expected is not None)


@pytest.mark.parametrize(
    "filename,expected",
    [
        ("My_Video-Clip.mp4", "My video clip"),
        ("funny-cat_compilation.webm", "Funny cat compilation"),
        ("already clean", "Already clean"),
        ("__.mp4", "__.mp4"),
    ],
)
def test_title_from_filename(filename, expected) -> None:
    assert title_from_filename(filename) == expected


def test_with_mp4_extension() -> None:
    assert with_mp4_extension("clip.webm") == "clip.mp4"
    assert with_mp4_extension("clip.final.mov") == "clip.final.mp4"
    assert with_mp4_extension("clip") == "clip.mp4"


def test_file_keys_unique_within_the_same_millisecond(monkeypatch) -> None:
    monkeypatch.setattr(object_storage.time, "time", lambda: 1_700_000_000.123)
    keys = {generate_file_key("clip.mp4") for _ in range(1000)}
    assert len(keys) == 1000
    assert all(k.startswith("videos/1700000000123-") and k.endswith(".mp4") for k in keys)


def test_file_key_extension_defaults_to_mp4() -> None:
    assert generate_file_key("noext").endswith(".mp4")
    assert generate_file_key("Clip.WEBM").endswith(".webm")
