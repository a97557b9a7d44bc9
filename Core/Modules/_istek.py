# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI         import konsol
from Core        import kekik_FastAPI, Request, JSONResponse
from time        import time
from user_agents import parse
import asyncio

ISTEK_TIMEOUT = 30

@kekik_FastAPI.middleware("http")
async def istekten_once_sonra(request: Request, call_next):
    baslangic_zamani = time()

    try:
        ua_header = request.headers.get("User-Agent")
        parsed_ua = parse(ua_header or "")
        cihaz = ua_header if str(parsed_ua).split("/")[2].strip() == "Other" else parsed_ua
    except Exception:
        cihaz = request.headers.get("User-Agent")

    fw_for    = request.headers.get("X-Forwarded-For")
    client_ip = fw_for.split(",")[0].strip() if fw_for else (request.client.host if request.client else "-")

    log_veri = {
        "id"     : request.headers.get("X-Request-ID") or "",
        "method" : request.method,
        "url"    : str(request.url).rstrip("?").split("?")[0],
        "veri"   : dict(request.query_params),
        "kod"    : None,
        "sure"   : None,
        "ip"     : client_ip,
        "cihaz"  : cihaz,
    }

    try:
        response = await asyncio.wait_for(call_next(request), timeout=ISTEK_TIMEOUT)
        log_veri["kod"] = response.status_code
    except asyncio.TimeoutError:
        log_veri["kod"] = 504
        response        = JSONResponse(status_code=504, content={"success": False, "message": "Zaman Aşımı.."})
        konsol.log(f"[red]⏱️ Timeout:[/] {request.url.path} - {ISTEK_TIMEOUT}sn aşıldı")
    except asyncio.CancelledError:
        konsol.log(f"[yellow]🚫 İstemci bağlantıyı kapattı:[/] {request.url.path}")
        raise

    if request.url.path.endswith("/api/v1/health"):
        return response

    log_veri["sure"] = round(time() - baslangic_zamani, 2)
    log_salla(log_veri)

    return response

def _etiket(ad: str) -> str:
    return f"[green]{ad:<5}:[/]"

def log_salla(log_veri: dict):
    """İstek özetini konsola bas (health kontrolleri hariç)"""
    kimlik = f"[bold bright_blue]{log_veri['id']}[/][bold green]@[/]" if log_veri["id"] else ""

    satirlar = [
        f"[bold blue]»[/] [bold turquoise2]{log_veri['url']}[/]",
        f"  {_etiket('durum')} [bold green]{log_veri['method']}[/] [blue]-[/] [bold bright_yellow]{log_veri['kod']}[/] [blue]-[/] [bold yellow2]{log_veri['sure']} sn[/]",
        f"  {_etiket('ip')} {kimlik}[bold red]{log_veri['ip']}[/]",
        f"  {_etiket('cihaz')} [magenta]{log_veri['cihaz']}[/]",
    ]

    if log_veri["veri"]:
        satirlar.insert(1, f"[bold magenta]»[/] [bold cyan]{log_veri['veri']}[/]")

    konsol.log("\n".join(satirlar) + "\n")
