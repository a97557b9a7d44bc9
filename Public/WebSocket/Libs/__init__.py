# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from Settings           import STORE_BACKEND, STORE_KEY_PREFIX, STORE_QUOTA_BYTES, STORE_TTL, REDIS_URL
from .errors            import WatchPartyError, JoinError, RoomNotFound, RoomFull, UsernameTaken, InvalidUsername, VideoLoadFailed, AdapterNotReady, PersistenceFailure
from .source_classifier import Source, classify, is_valid_video_url, has_media_hint, NATIVE, YOUTUBE, VIMEO, UNRECOGNIZED
from .room_store        import Storage, MemoryStorage, RedisStorage, RoomStore, RoomChange, build_storage
from .message_log       import MessageLog
from .players           import PlaybackAdapter, NativePlayer, YouTubePlayer, VimeoPlayer, PlayerFactory
from .session_manager   import SessionManager, share_link, room_code_from_link, normalize_room_code
from .sync_engine       import SyncEngine, SyncEvent
from .message_handlers  import MessageHandler

# Süreç genelinde tek paylaşılan depo ortamı, her bağlantı kendi RoomStore görünümünü açar
room_storage = build_storage(
    STORE_BACKEND,
    key_prefix  = STORE_KEY_PREFIX,
    quota_bytes = STORE_QUOTA_BYTES,
    redis_url   = REDIS_URL,
    ttl         = STORE_TTL,
)
