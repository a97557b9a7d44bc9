# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from dataclasses  import dataclass
from urllib.parse import urlsplit, parse_qs
import re

NATIVE       = "native"
YOUTUBE      = "youtube"
VIMEO        = "vimeo"
UNRECOGNIZED = "unrecognized"

PLAYER_KINDS = (NATIVE, YOUTUBE, VIMEO)

VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".mov", ".m3u8", ".mkv")
MEDIA_DOMAINS    = ("googleapis.com", "cloudflare.com", "sample-videos.com")

YOUTUBE_HOSTS = ("youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com", "youtube-nocookie.com", "www.youtube-nocookie.com")
YOUTUBE_ID    = re.compile(r"^[A-Za-z0-9_-]{11}$")
YOUTUBE_PATHS = re.compile(r"^/(?:embed|shorts|live|v)/([^/?#]+)")

VIMEO_HOSTS = ("vimeo.com", "www.vimeo.com", "player.vimeo.com")
VIMEO_PATH  = re.compile(r"^/(?:video/)?(\d+)(?:/|$)")

@dataclass(frozen=True)
class Source:
    """Sınıflandırılmış video kaynağı"""
    kind     : str
    url      : str
    video_id : str | None = None
    format   : str        = ""

    @property
    def is_embed(self) -> bool:
        return self.kind in (YOUTUBE, VIMEO)

def _youtube_id(host: str, path: str, query: str) -> str | None:
    if host in ("youtu.be", "www.youtu.be"):
        aday = path.lstrip("/").split("/")[0]
        return aday if YOUTUBE_ID.match(aday) else None

    if host not in YOUTUBE_HOSTS:
        return None

    if path == "/watch":
        aday = (parse_qs(query).get("v") or [""])[0]
        return aday if YOUTUBE_ID.match(aday) else None

    eslesme = YOUTUBE_PATHS.match(path)
    if eslesme and YOUTUBE_ID.match(eslesme[1]):
        return eslesme[1]

    return None

def _vimeo_id(host: str, path: str) -> str | None:
    if host not in VIMEO_HOSTS:
        return None

    eslesme = VIMEO_PATH.match(path)
    return eslesme[1] if eslesme else None

def _native_format(url: str, path: str) -> str:
    if ".m3u8" in url.lower():
        return "hls"

    for uzanti in VIDEO_EXTENSIONS:
        if uzanti in path:
            return uzanti.lstrip(".")

    return "mp4"

def classify(url) -> Source:
    """
    Video URL'sini oynatıcı türüne göre sınıflandır.

    Saf ve total bir fonksiyondur: aynı girdi her zaman aynı sonucu verir,
    hatalı URL'lerde exception fırlatmak yerine `unrecognized` döner.

    Öncelik sırası:
        1. YouTube embed kalıpları
        2. Vimeo embed kalıpları
        3. Diğer tüm geçerli http(s) URL'leri -> native (uzantıdan format)
    """
    if not isinstance(url, str) or not url.strip():
        return Source(UNRECOGNIZED, url if isinstance(url, str) else "")

    url = url.strip()

    try:
        parcalar = urlsplit(url)
        host     = (parcalar.hostname or "").lower()
    except ValueError:
        return Source(UNRECOGNIZED, url)

    if parcalar.scheme.lower() not in ("http", "https") or not host or " " in url:
        return Source(UNRECOGNIZED, url)

    path = parcalar.path or "/"

    if video_id := _youtube_id(host, path, parcalar.query):
        return Source(YOUTUBE, url, video_id)

    if video_id := _vimeo_id(host, path):
        return Source(VIMEO, url, video_id)

    # Uzantı / medya domaini eşleşmese de geçerli her http(s) URL native oynatıcıya gider
    return Source(NATIVE, url, format=_native_format(url, path.lower()))

def is_valid_video_url(url) -> bool:
    return classify(url).kind != UNRECOGNIZED

def has_media_hint(url: str) -> bool:
    """URL dosya uzantısı veya bilinen medya domaini ile doğrudan video olduğunu gösteriyor mu"""
    try:
        parcalar = urlsplit(url.strip())
        host     = (parcalar.hostname or "").lower()
    except (ValueError, AttributeError):
        return False

    path = parcalar.path.lower()
    return any(uzanti in path for uzanti in VIDEO_EXTENSIONS) or any(domain in host for domain in MEDIA_DOMAINS)
