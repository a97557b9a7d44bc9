# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from dataclasses import dataclass, field, replace
import uuid, time

MESSAGE_TYPES = ("text", "voice", "system")

def generate_id() -> str:
    """Yerel benzersiz kimlik (kriptografik garanti yok)"""
    return uuid.uuid4().hex[:12]

@dataclass
class User:
    """Watch Party kullanıcısı"""
    username  : str
    id        : str   = field(default_factory=generate_id)
    joined_at : float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "id"       : self.id,
            "username" : self.username,
            "joinedAt" : self.joined_at,
        }

    @classmethod
    def from_dict(cls, veri: dict) -> "User":
        return cls(
            username  = str(veri["username"]),
            id        = str(veri["id"]),
            joined_at = float(veri.get("joinedAt", 0.0)),
        )

@dataclass
class Message:
    """Replike edilen chat / sesli mesaj"""
    username  : str
    content   : str
    type      : str   = "text"
    id        : str   = field(default_factory=generate_id)
    timestamp : float = field(default_factory=time.time)
    duration  : float = 0.0  # Sadece voice mesajlarda anlamlı

    def to_dict(self) -> dict:
        veri = {
            "id"        : self.id,
            "username"  : self.username,
            "content"   : self.content,
            "timestamp" : self.timestamp,
            "type"      : self.type,
        }
        if self.type == "voice":
            veri["duration"] = self.duration
        return veri

    @classmethod
    def from_dict(cls, veri: dict) -> "Message":
        tip = veri.get("type", "text")
        if tip not in MESSAGE_TYPES:
            raise ValueError(f"Bilinmeyen mesaj tipi: {tip}")

        return cls(
            username  = str(veri["username"]),
            content   = str(veri.get("content", "")),
            type      = tip,
            id        = str(veri["id"]),
            timestamp = float(veri.get("timestamp", 0.0)),
            duration  = float(veri.get("duration", 0.0)),
        )

@dataclass
class VideoState:
    """Paylaşılan oynatım kaydı - her aksiyonda bütün olarak yeniden yazılır"""
    url         : str   = ""
    player_type : str   = ""     # "native" | "youtube" | "vimeo"
    current_time: float = 0.0
    playing     : bool  = False
    last_update : float = field(default_factory=time.time)

    def rewrite(self, **degisiklikler) -> "VideoState":
        """Yeni bir kayıt üret (kısmi patch değil, tüm kayıt + taze lastUpdate)"""
        degisiklikler.setdefault("last_update", time.time())
        return replace(self, **degisiklikler)

    def to_dict(self) -> dict:
        return {
            "url"         : self.url,
            "playerType"  : self.player_type,
            "currentTime" : self.current_time,
            "playing"     : self.playing,
            "lastUpdate"  : self.last_update,
        }

    @classmethod
    def from_dict(cls, veri: dict) -> "VideoState":
        return cls(
            url          = str(veri.get("url") or ""),
            player_type  = str(veri.get("playerType") or ""),
            current_time = float(veri.get("currentTime") or 0.0),
            playing      = bool(veri.get("playing", False)),
            last_update  = float(veri.get("lastUpdate") or 0.0),
        )

@dataclass
class Room:
    """Watch Party odası - paylaşılan depodaki replike kayıt"""
    code        : str
    created_at  : float            = field(default_factory=time.time)
    users       : list[User]       = field(default_factory=list)
    messages    : list[Message]    = field(default_factory=list)
    video_state : VideoState       = field(default_factory=VideoState)

    def has_username(self, username: str) -> bool:
        return any(user.username == username for user in self.users)

    def find_user(self, user_id: str) -> User | None:
        return next((user for user in self.users if user.id == user_id), None)

    def copy(self) -> "Room":
        """Bağımsız derin kopya"""
        return Room.from_dict(self.to_dict())

    def to_dict(self) -> dict:
        return {
            "code"       : self.code,
            "createdAt"  : self.created_at,
            "users"      : [user.to_dict() for user in self.users],
            "messages"   : [msg.to_dict() for msg in self.messages],
            "videoState" : self.video_state.to_dict(),
        }

    @classmethod
    def from_dict(cls, veri: dict) -> "Room":
        return cls(
            code        = str(veri["code"]),
            created_at  = float(veri.get("createdAt", 0.0)),
            users       = [User.from_dict(u) for u in veri.get("users") or []],
            messages    = [Message.from_dict(m) for m in veri.get("messages") or []],
            video_state = VideoState.from_dict(veri.get("videoState") or {}),
        )
