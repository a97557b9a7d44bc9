# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

import re
import pytest

from Public.WebSocket.Libs import (
    RoomStore,
    SessionManager,
    RoomNotFound,
    RoomFull,
    UsernameTaken,
    InvalidUsername,
    VideoLoadFailed,
    share_link,
    room_code_from_link,
    YOUTUBE,
)


@pytest.fixture
def store(storage):
    return RoomStore(storage)


@pytest.fixture
def sessions(store):
    return SessionManager(store, max_participants=4)


class TestCreateRoom:
    async def test_creator_is_sole_member_and_room_is_persisted(self, sessions, store):
        ayse = sessions.create_user("ayse")
        room = await sessions.create_room(ayse)

        assert re.fullmatch(r"[A-Z0-9]{6}", room.code)
        assert [u.username for u in room.users] == ["ayse"]
        assert room.messages == []
        assert room.video_state.url == ""

        assert await store.get(room.code) == room

    async def test_initial_video_is_classified(self, sessions):
        room = await sessions.create_room(sessions.create_user("ayse"), "https://youtu.be/dQw4w9WgXcQ")
        assert room.video_state.player_type == YOUTUBE
        assert room.video_state.playing is False

    async def test_unrecognized_initial_video_rejected(self, sessions):
        with pytest.raises(VideoLoadFailed):
            await sessions.create_room(sessions.create_user("ayse"), "video değil")

    @pytest.mark.parametrize("username", ["", "   ", "x" * 21, None])
    def test_invalid_username(self, username):
        with pytest.raises(InvalidUsername):
            SessionManager.create_user(username)


class TestJoinRoom:
    async def test_join_appends_member(self, sessions, store):
        room = await sessions.create_room(sessions.create_user("ayse"))
        await sessions.join_room(room.code.lower(), sessions.create_user("mehmet"))

        kayit = await store.get(room.code)
        assert [u.username for u in kayit.users] == ["ayse", "mehmet"]

    async def test_unknown_code(self, sessions):
        with pytest.raises(RoomNotFound):
            await sessions.join_room("ZZZZZZ", sessions.create_user("ayse"))

    async def test_empty_code(self, sessions):
        with pytest.raises(RoomNotFound):
            await sessions.join_room("  ", sessions.create_user("ayse"))

    async def test_duplicate_username(self, sessions):
        room = await sessions.create_room(sessions.create_user("ayse"))
        with pytest.raises(UsernameTaken):
            await sessions.join_room(room.code, sessions.create_user("ayse"))

    async def test_capacity(self, sessions, store):
        room = await sessions.create_room(sessions.create_user("u0"))
        for i in range(1, 4):
            await sessions.join_room(room.code, sessions.create_user(f"u{i}"))

        with pytest.raises(RoomFull):
            await sessions.join_room(room.code, sessions.create_user("u4"))

        assert len((await store.get(room.code)).users) == 4


class TestLeaveRoom:
    async def test_leave_removes_member(self, sessions, store):
        ayse   = sessions.create_user("ayse")
        mehmet = sessions.create_user("mehmet")
        room   = await sessions.create_room(ayse)
        await sessions.join_room(room.code, mehmet)

        await sessions.leave_room(room.code, mehmet.id)
        assert [u.username for u in (await store.get(room.code)).users] == ["ayse"]

    async def test_unknown_room_or_user_is_noop(self, sessions):
        assert await sessions.leave_room("ZZZZZZ", "yok") is None

        room = await sessions.create_room(sessions.create_user("ayse"))
        kalan = await sessions.leave_room(room.code, "yok")
        assert len(kalan.users) == 1


class TestShareLink:
    def test_round_trip(self):
        link = share_link("ABC123", "https://watch.example.com/")
        assert link == "https://watch.example.com/?room=ABC123"
        assert room_code_from_link(link) == "ABC123"

    def test_existing_query_is_kept(self):
        link = share_link("ABC123", "https://watch.example.com/app?lang=tr&room=OLD")
        assert "lang=tr" in link
        assert room_code_from_link(link) == "ABC123"

    def test_link_without_room(self):
        assert room_code_from_link("https://watch.example.com/") is None
