# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from Libs    import global_request
from .errors import VideoLoadFailed
import httpx

PLAYABLE_CONTENT_TYPES = ("video/", "audio/", "application/vnd.apple.mpegurl", "application/x-mpegurl", "application/octet-stream", "binary/octet-stream")

async def probe_native_source(url: str) -> None:
    """Native kaynağa HEAD isteği at, oynatılamayacaksa VideoLoadFailed fırlat"""
    try:
        response = await global_request.probe(url)
    except (httpx.HTTPError, RuntimeError) as hata:
        raise VideoLoadFailed(f"Videoya erişilemiyor: {type(hata).__name__}") from hata

    if response.status_code >= 400:
        raise VideoLoadFailed(f"Videoya erişilemiyor (HTTP {response.status_code})")

    content_type = response.headers.get("content-type", "").lower()
    if content_type and not content_type.startswith(PLAYABLE_CONTENT_TYPES):
        raise VideoLoadFailed(f"Desteklenmeyen içerik türü: {content_type.split(';')[0]}")
