# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from .WatchPartyModels import User, Message, VideoState, Room, generate_id, MESSAGE_TYPES
from .PayloadModels    import (
    JoinPayload,
    VideoChangePayload,
    TimePayload,
    SeekPayload,
    ChatPayload,
    VoicePayload,
    VolumePayload,
    PlayerReadyPayload,
    PlayerStatePayload,
    PlayerErrorPayload,
    MAX_USERNAME_LENGTH,
    MAX_MESSAGE_LENGTH,
)
