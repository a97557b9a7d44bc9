# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI                import konsol
from urllib.parse       import urlsplit, urlunsplit, parse_qs, urlencode
from ..Models           import Room, User, VideoState, MAX_USERNAME_LENGTH
from .errors            import RoomNotFound, RoomFull, UsernameTaken, InvalidUsername, VideoLoadFailed
from .room_store        import RoomStore
from .source_classifier import classify, UNRECOGNIZED
import secrets, string

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH   = 6
MAX_CODE_ATTEMPTS  = 5

def generate_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))

def normalize_room_code(code: str) -> str:
    return (code or "").strip().upper()

def share_link(code: str, base_url: str) -> str:
    """Oda kodundan paylaşım linki üret (mevcut query korunur)"""
    parcalar = urlsplit(base_url)
    query    = {k: v[0] for k, v in parse_qs(parcalar.query).items() if k != "room"}
    query["room"] = code
    return urlunsplit((parcalar.scheme, parcalar.netloc, parcalar.path or "/", urlencode(query), ""))

def room_code_from_link(link: str) -> str | None:
    kod = (parse_qs(urlsplit(link).query).get("room") or [""])[0]
    return normalize_room_code(kod) or None

class SessionManager:
    """Oda yaşam döngüsü: oluştur / katıl / ayrıl ve üyelik kuralları"""

    def __init__(self, store: RoomStore, max_participants: int = 4):
        self.store            = store
        self.max_participants = max_participants

    @staticmethod
    def create_user(username: str) -> User:
        username = (username or "").strip() if isinstance(username, str) else ""
        if not username:
            raise InvalidUsername("Lütfen bir kullanıcı adı girin")
        if len(username) > MAX_USERNAME_LENGTH:
            raise InvalidUsername(f"Kullanıcı adı çok uzun (en fazla {MAX_USERNAME_LENGTH} karakter)")

        return User(username=username)

    async def create_room(self, user: User, initial_video_url: str | None = None) -> Room:
        """Yeni oda oluştur, kullanıcıyı tek üye olarak ekle ve kaydet"""
        video_state = VideoState()
        if initial_video_url:
            source = classify(initial_video_url)
            if source.kind == UNRECOGNIZED:
                raise VideoLoadFailed("Geçerli bir video URL'si girin")
            video_state = VideoState(url=source.url, player_type=source.kind)

        code = await self._unused_code()
        room = Room(code=code, users=[user], video_state=video_state)

        await self.store.put(code, room)
        konsol.log(f"[green]🎬 Oda oluşturuldu:[/] {code} [cyan]({user.username})[/]")
        return room

    async def _unused_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_room_code()
            if await self.store.get_raw(code) is None:
                return code

        # Pratikte ulaşılmaz, çakışma yönetimi kapsam dışı
        return generate_room_code(ROOM_CODE_LENGTH + 2)

    async def join_room(self, code: str, user: User) -> Room:
        """Mevcut odaya katıl - RoomNotFound / RoomFull / UsernameTaken"""
        code = normalize_room_code(code)

        room = await self.store.get(code) if code else None
        if room is None:
            raise RoomNotFound()

        if len(room.users) >= self.max_participants:
            raise RoomFull(f"Oda dolu (en fazla {self.max_participants} kişi)")

        if room.has_username(user.username):
            raise UsernameTaken()

        room.users.append(user)
        await self.store.put(code, room)

        konsol.log(f"[green]👋 Odaya katıldı:[/] {code} [cyan]({user.username})[/]")
        return room

    async def leave_room(self, code: str, user_id: str) -> Room | None:
        """Kullanıcıyı odadan çıkar (oda veya kullanıcı yoksa no-op)"""
        code = normalize_room_code(code)

        room = await self.store.get(code)
        if room is None or room.find_user(user_id) is None:
            return room

        room.users = [user for user in room.users if user.id != user_id]
        await self.store.put(code, room)
        return room
