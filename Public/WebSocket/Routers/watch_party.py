# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI      import konsol
from fastapi  import WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from .        import wss_router
from ..Libs   import MessageHandler, WatchPartyError, room_storage
import json, asyncio, time

MAX_PAYLOAD = 512 * 1024  # 512 KB (sesli mesajlar data URL olarak gelir)

HIGH_FREQ_OPS = {"player_state", "seek", "typing", "volume"}

class Bucket:
    """Saniyelik sabit pencere sayacı"""

    def __init__(self, limit: int):
        self.limit   = limit
        self.sayac   = 0
        self.baslama = time.perf_counter()

    def izin(self) -> bool:
        simdi = time.perf_counter()
        if simdi - self.baslama > 1.0:
            self.sayac   = 0
            self.baslama = simdi

        self.sayac += 1
        return self.sayac <= self.limit

def validation_message(hata: ValidationError) -> str:
    hatalar = hata.errors()
    if not hatalar:
        return "Geçersiz mesaj"

    ilk  = hatalar[0]
    alan = ".".join(str(parca) for parca in ilk.get("loc", ()))
    return f"{alan}: {ilk['msg']}" if alan else ilk["msg"]

@wss_router.websocket("/watch_party")
async def watch_party_websocket(websocket: WebSocket):
    await websocket.accept()
    handler = MessageHandler(websocket, room_storage)

    # (needs_user, takes_msg, fn)
    handlers = {
        "join"         : (False, True,  handler.handle_join),

        "get_state"    : (True,  False, handler.handle_get_state),
        "typing"       : (True,  False, handler.handle_typing),
        "ended"        : (True,  False, handler.handle_ended),

        "video_change" : (True,  True,  handler.handle_video_change),
        "play"         : (True,  True,  handler.handle_play),
        "pause"        : (True,  True,  handler.handle_pause),
        "seek"         : (True,  True,  handler.handle_seek),
        "chat"         : (True,  True,  handler.handle_chat),
        "voice"        : (True,  True,  handler.handle_voice),
        "volume"       : (True,  True,  handler.handle_volume),

        "player_ready" : (True,  True,  handler.handle_player_ready),
        "player_state" : (True,  True,  handler.handle_player_state),
        "player_error" : (True,  True,  handler.handle_player_error),
    }

    # Flood control: genel 10/s, oynatıcı raporları 30/s
    genel  = Bucket(10)
    yuksek = Bucket(30)

    try:
        while True:
            raw = await websocket.receive_text()

            # Sesli mesajlar dahil üst sınır
            if len(raw.encode("utf-8")) > MAX_PAYLOAD:
                await handler.send_error("Mesaj boyutu çok büyük")
                continue

            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await handler.send_error("Geçersiz JSON formatı")
                continue

            if not isinstance(msg, dict):
                await handler.send_error("Geçersiz mesaj")
                continue

            t = msg.get("type")
            if not t:
                continue

            if t in HIGH_FREQ_OPS:
                # Oynatıcı raporları sessizce düşer
                if not yuksek.izin():
                    continue
            elif not genel.izin():
                await handler.send_error("Çok hızlı işlem yapıyorsunuz")
                continue

            entry = handlers.get(t)
            if not entry:
                continue

            needs_user, takes_msg, fn = entry

            if needs_user and not handler.user:
                await handler.send_error("Önce bir odaya katılın")
                continue

            try:
                await (fn(msg) if takes_msg else fn())
            except ValidationError as hata:
                await handler.send_error(validation_message(hata))
            except WatchPartyError as hata:
                await handler.notify(hata)

    except WebSocketDisconnect:
        pass
    except asyncio.CancelledError:
        raise
    except Exception as e:
        konsol.log(f"[red]WebSocket Error:[/] {type(e).__name__}: {e}")
    finally:
        await handler.handle_disconnect()
