import re
from dataclasses import dataclass
from urllib.parse import urlsplit

@dataclass(frozen=True)
class Platform:
    name: str
    # matched against the URL host only
    pattern: re.Pattern
    icon: str

def _host(*domains: str) -> re.Pattern:
    return re.compile(r"(^|\.)(" + "|".join(re.escape(d) for d in domains) + r")$", re.I)

SUPPORTED_PLATFORMS: tuple[Platform, ...] = (
    Platform("YouTube", _host("youtube.com", "youtu.be"), "youtube"),
    Platform("TikTok", _host("tiktok.com"), "tiktok"),
    Platform("Instagram", _host("instagram.com"), "instagram"),
    Platform("LinkedIn", _host("linkedin.com"), "linkedin"),
    Platform("Twitter/X", _host("twitter.com", "x.com"), "twitter"),
    Platform("Vimeo", _host("vimeo.com"), "vimeo"),
)

def url_host(url: str) -> str:
    url = url.strip()
    if "://" not in url:
        url = f"https://{url}"
    try:
        return (urlsplit(url).hostname or "").rstrip(".")
    except ValueError:
        return ""

def detect_platform(url: str) -> str | None:
    host = url_host(url)
    if not host:
        return None
    for platform in SUPPORTED_PLATFORMS:
        if platform.pattern.search(host):
            return platform.name
    return None

def is_url_supported(url: str) -> bool:
    return detect_platform(url) is not None
