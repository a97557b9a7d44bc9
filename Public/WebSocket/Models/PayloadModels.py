# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from pydantic import BaseModel, Field, field_validator

MAX_USERNAME_LENGTH = 20
MAX_MESSAGE_LENGTH  = 500

class JoinPayload(BaseModel):
    """Odaya katıl / oda oluştur"""
    username  : str        = Field(min_length=1, max_length=MAX_USERNAME_LENGTH)
    room_code : str | None = None
    video_url : str | None = None

    @field_validator("username", mode="before")
    @classmethod
    def _strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("room_code", "video_url", mode="before")
    @classmethod
    def _empty_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

class VideoChangePayload(BaseModel):
    url : str = Field(min_length=1)

    @field_validator("url", mode="before")
    @classmethod
    def _strip_url(cls, value):
        return value.strip() if isinstance(value, str) else value

class TimePayload(BaseModel):
    time : float | None = Field(default=None, ge=0.0, allow_inf_nan=False)

class SeekPayload(BaseModel):
    time : float = Field(ge=0.0, allow_inf_nan=False)

class ChatPayload(BaseModel):
    message : str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)

    @field_validator("message", mode="before")
    @classmethod
    def _strip_message(cls, value):
        return value.strip() if isinstance(value, str) else value

class VoicePayload(BaseModel):
    data     : str   = Field(min_length=1)
    duration : float = Field(default=0.0, ge=0.0, allow_inf_nan=False)

    @field_validator("data")
    @classmethod
    def _audio_data_url(cls, value: str):
        if not value.startswith("data:audio/"):
            raise ValueError("Sesli mesaj data:audio/ formatında olmalı")
        return value

class VolumePayload(BaseModel):
    level : float = Field(ge=0.0, le=1.0, allow_inf_nan=False)

class PlayerReadyPayload(BaseModel):
    kind : str

class PlayerStatePayload(BaseModel):
    current_time : float = Field(default=0.0, ge=0.0, allow_inf_nan=False)
    duration     : float = Field(default=0.0, ge=0.0, allow_inf_nan=False)
    playing      : bool  = False

class PlayerErrorPayload(BaseModel):
    message : str = "Video yüklenemedi"
