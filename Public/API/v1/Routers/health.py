# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from Core                  import JSONResponse
from Settings              import STORE_BACKEND
from Public.WebSocket.Libs import room_storage
from .                     import api_v1_router

@api_v1_router.get("/health")
async def health_check():
    """API sağlık kontrolü"""
    return JSONResponse({
        "success" : True,
        "status"  : "healthy",
        "store"   : STORE_BACKEND,
        "clients" : room_storage.view_count,
    })
