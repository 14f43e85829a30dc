import logging
import httpx
from clipvault.core.config import Settings
from clipvault.modules.acquisition.types import (
    AcquisitionRequest, Direct, Failure, Picker, PickerItem, ResolutionResult,
)

logger = logging.getLogger(__name__)

TRANSPORT_ERROR = "transport_error"

def parse_resolution(payload: dict) -> ResolutionResult:
    """Turn a resolution-service JSON body into one of the closed variants."""
    status = payload.get("status")
    if status in ("tunnel", "redirect"):
        url = payload.get("url")
        if not url or not isinstance(url, str):
            return Failure(code=TRANSPORT_ERROR, service_context=f"{status} response without url")
        filename = payload.get("filename")
        return Direct(media_url=url, suggested_filename=filename if isinstance(filename, str) and filename else "video.mp4")
    if status == "picker":
        entries = payload.get("picker") or []
        if not isinstance(entries, list):
            return Failure(code=TRANSPORT_ERROR, service_context="malformed picker body")
        items = tuple(
            PickerItem(
                kind="video" if item.get("type") == "video" else "photo",
                media_url=item["url"],
                thumb_url=item.get("thumb"),
            )
            for item in entries
            if isinstance(item, dict) and isinstance(item.get("url"), str) and item["url"]
        )
        return Picker(items=items)
    if status == "error":
        error = payload.get("error") or {}
        if not isinstance(error, dict):
            return Failure(code=TRANSPORT_ERROR, service_context="malformed error body")
        context = error.get("context")
        service = context.get("service") if isinstance(context, dict) else None
        return Failure(code=str(error.get("code") or "unknown"), service_context=service)
    return Failure(code=TRANSPORT_ERROR, service_context=f"unexpected status: {status!r}")

class ResolutionClient:
    """Client for a cobalt-compatible resolution service.

    ``resolve`` always returns a value: transport and protocol problems come
    back as ``Failure(code="transport_error")``. Retries are the caller's call.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self.http = http
        self.api_url = settings.RESOLVER_API_URL
        self.timeout = settings.RESOLVER_TIMEOUT_SECONDS
        self.defaults = {
            "videoQuality": settings.RESOLVER_VIDEO_QUALITY,
            "audioFormat": settings.RESOLVER_AUDIO_FORMAT,
            "audioBitrate": settings.RESOLVER_AUDIO_BITRATE,
            "downloadMode": settings.RESOLVER_DOWNLOAD_MODE,
            "filenameStyle": settings.RESOLVER_FILENAME_STYLE,
            "youtubeVideoCodec": settings.RESOLVER_VIDEO_CODEC,
        }

    def build_body(self, request: AcquisitionRequest) -> dict:
        body = {"url": request.url, **self.defaults}
        if request.quality:
            body["videoQuality"] = request.quality
        if request.download_mode:
            body["downloadMode"] = request.download_mode
        return body

    async def resolve(self, request: AcquisitionRequest) -> ResolutionResult:
        body = self.build_body(request)
        try:
            response = await self.http.post(
                self.api_url,
                json=body,
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"Resolution service unreachable at {self.api_url}: {e!r}")
            return Failure(code=TRANSPORT_ERROR, service_context=str(e) or type(e).__name__)

        # error bodies from the service are still valid variants
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            logger.error(f"Resolution service returned {response.status_code} with a non-JSON body")
            return Failure(code=TRANSPORT_ERROR, service_context=f"HTTP {response.status_code}")
        if response.is_error and payload.get("status") != "error":
            return Failure(code=TRANSPORT_ERROR, service_context=f"HTTP {response.status_code}")

        result = parse_resolution(payload)
        logger.debug(f"Resolved {request.url} -> {type(result).__name__}")
        return result

    async def check_health(self) -> bool:
        try:
            response = await self.http.get(self.api_url, headers={"Accept": "application/json"}, timeout=5.0)
            return response.is_success
        except httpx.HTTPError:
            return False
