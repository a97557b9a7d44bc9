# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

class WatchPartyError(Exception):
    """Yerelde toparlanan, kullanıcıya bildirim olarak gösterilen hatalar"""
    kod   = "watch_party_error"
    mesaj = "Bir hata oluştu"

    def __init__(self, mesaj: str | None = None):
        super().__init__(mesaj or self.mesaj)
        self.mesaj = mesaj or self.mesaj

    def to_notification(self) -> dict:
        return {
            "type"    : "notification",
            "level"   : "error",
            "code"    : self.kod,
            "message" : self.mesaj,
        }

class JoinError(WatchPartyError):
    kod = "join_error"

class RoomNotFound(JoinError):
    kod   = "room_not_found"
    mesaj = "Oda bulunamadı, oda kodunu kontrol edin"

class RoomFull(JoinError):
    kod   = "room_full"
    mesaj = "Oda dolu"

class UsernameTaken(JoinError):
    kod   = "username_taken"
    mesaj = "Bu kullanıcı adı odada zaten kullanılıyor, farklı bir isim seçin"

class InvalidUsername(WatchPartyError):
    kod   = "invalid_username"
    mesaj = "Geçersiz kullanıcı adı"

class VideoLoadFailed(WatchPartyError):
    kod   = "video_load_failed"
    mesaj = "Video yüklenemedi, URL'yi kontrol edin"

class AdapterNotReady(WatchPartyError):
    kod   = "adapter_not_ready"
    mesaj = "Oynatıcı henüz hazır değil"

class PersistenceFailure(WatchPartyError):
    kod   = "persistence_failure"
    mesaj = "Oda durumu kaydedilemedi"
