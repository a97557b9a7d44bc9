# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI import konsol
import asyncio, yt_dlp

RESOLVE_TIMEOUT = 30.0

def _extract(url: str) -> dict | None:
    ydl_opts = {
        "simulate"      : True,   # Download yok, sadece tespit
        "quiet"         : True,   # Log kirliliği yok
        "no_warnings"   : True,   # Uyarı mesajları yok
        "skip_download" : True,
        "noplaylist"    : True,
    }

    with yt_dlp.YoutubeDL(ydl_opts) as ydl:
        return ydl.extract_info(url, download=False, process=False)

async def ytdlp_extract_video_info(url: str) -> dict | None:
    """
    yt-dlp ile embed video metadata'sı çıkar (başlık, süre, küçük resim).

    Embed oynatıcılar kaynağı kendileri çalar; burada sadece süre bilgisi
    (drift clamp için) ve başlık alınır. Hata durumunda None döner, çağıran
    taraf metadata'sız devam eder.

    Returns:
        {
            "title"     : str,
            "duration"  : float,
            "thumbnail" : str | None,
            "extractor" : str
        }
    """
    try:
        info = await asyncio.wait_for(asyncio.to_thread(_extract, url), timeout=RESOLVE_TIMEOUT)
    except asyncio.TimeoutError:
        konsol.log(f"[red]yt-dlp timeout:[/] {url}")
        return None
    except Exception as hata:
        konsol.log(f"[yellow][⚠] yt-dlp kontrol hatası: {hata}[/yellow]")
        return None

    # Generic extractor ise atla
    if not info or info.get("extractor_key") == "Generic":
        return None

    return {
        "title"     : info.get("title") or "Video",
        "duration"  : float(info.get("duration") or 0.0),
        "thumbnail" : info.get("thumbnail"),
        "extractor" : info.get("extractor_key", "Unknown"),
    }
