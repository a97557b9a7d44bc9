# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from collections import OrderedDict
from ..Models    import Room, Message

class MessageLog:
    """
    Oda içine gömülü, sınırlı ve sıralı chat / sesli mesaj kaydı.

    Replay kimlik (id) bazlıdır: daha önce render edilmiş hiçbir mesaj tekrar
    oynatılmaz, aynı kullanıcının ikinci mesajı da kaybolmaz.
    """

    def __init__(self, limit: int = 100):
        self.limit     = limit
        self._rendered : OrderedDict[str, None] = OrderedDict()
        self._rendered_count = 0

    @property
    def rendered_count(self) -> int:
        return self._rendered_count

    def append_local(self, room: Room, message: Message) -> None:
        """Mesajı ekle, sadece son `limit` mesajı tut (en eskiler düşer)"""
        room.messages.append(message)

        if len(room.messages) > self.limit:
            room.messages = room.messages[-self.limit:]

    def mark_rendered(self, message: Message) -> bool:
        """Mesajı render edildi olarak işaretle; zaten işaretliyse False"""
        if message.id in self._rendered:
            return False

        self._rendered[message.id] = None
        self._rendered_count += 1

        # Uzak log en fazla `limit` mesaj taşır, daha eski kimlikleri unut
        while len(self._rendered) > self.limit * 4:
            self._rendered.popitem(last=False)

        return True

    def forget(self, message: Message) -> None:
        """Yayınlanamayan yerel mesajın işaretini geri al"""
        if message.id in self._rendered:
            del self._rendered[message.id]
            self._rendered_count -= 1

    def replay(self, messages: list[Message]) -> list[Message]:
        """Henüz render edilmemiş mesajları sırasıyla döndür ve işaretle"""
        return [message for message in messages if self.mark_rendered(message)]
