# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from Core                  import HTTPException, JSONResponse
from Settings              import PUBLIC_URL
from Public.WebSocket.Libs import room_storage, RoomStore, classify, has_media_hint, share_link, normalize_room_code
from .                     import api_v1_router

async def _oku(code: str):
    store = RoomStore(room_storage)
    try:
        room = await store.get(normalize_room_code(code))
    finally:
        store.close()

    if room is None:
        raise HTTPException(status_code=404, detail="Oda bulunamadı")

    return room

@api_v1_router.get("/rooms/{code}")
async def get_room(code: str):
    """Odanın depodaki son snapshot'ı"""
    room = await _oku(code)
    return JSONResponse({"success": True, "room": room.to_dict()})

@api_v1_router.get("/rooms/{code}/share")
async def get_share_link(code: str):
    room = await _oku(code)
    return JSONResponse({"success": True, "code": room.code, "link": share_link(room.code, PUBLIC_URL)})

@api_v1_router.get("/classify")
async def classify_url(url: str):
    """URL'nin hangi oynatıcıyla açılacağı"""
    source = classify(url)
    return JSONResponse({
        "success"  : True,
        "kind"     : source.kind,
        "url"      : source.url,
        "video_id" : source.video_id,
        "format"   : source.format,
        "embed"    : source.is_embed,
        "media"    : has_media_hint(url),
    })
