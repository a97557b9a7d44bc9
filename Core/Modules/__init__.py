# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI                   import konsol
from fastapi               import FastAPI
from contextlib            import asynccontextmanager
from Settings              import STORE_BACKEND
from Libs                  import global_request
from Public.WebSocket.Libs import room_storage

@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan events - startup ve shutdown"""

    await global_request.start()

    # Redis'te pub/sub dinleyicisi burada açılır, memory için no-op
    await room_storage.start()
    konsol.log(f"[green]Paylaşılan depo hazır:[/] {STORE_BACKEND}")

    try:
        yield
    finally:
        await room_storage.close()
        await global_request.stop()
        konsol.log("[yellow]Kaynaklar kapatıldı.[/]")
