import logging
import httpx
from clipvault.core.errors import FetchError
from clipvault.modules.acquisition.types import FetchedMedia

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "video/mp4"

def _header_length(value: str | None) -> int | None:
    if value is None or not value.strip().isdigit():
        return None
    return int(value)

class MediaFetcher:
    def __init__(self, http: httpx.AsyncClient, *, timeout: float = 120.0):
        self.http = http
        self.timeout = timeout

    async def fetch(self, media_url: str) -> FetchedMedia:
        try:
            response = await self.http.get(media_url, follow_redirects=True, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Download failed: {e!r}") from e
        if not response.is_success:
            raise FetchError(
                f"Download failed: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            )

        data = response.content
        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        # a missing, zero or garbage header must not stand in for the real size
        length = _header_length(response.headers.get("content-length"))
        if not length:
            length = len(data)
        logger.debug(f"Fetched {length} bytes ({content_type}) from {media_url}")
        return FetchedMedia(data=data, content_type=content_type.split(";")[0].strip(), content_length=length)
