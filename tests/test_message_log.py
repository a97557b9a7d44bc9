# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from Public.WebSocket.Models import Room, Message
from Public.WebSocket.Libs   import MessageLog


def mesajlar(adet, username="mehmet"):
    return [Message(username=username, content=f"mesaj {i}") for i in range(1, adet + 1)]


class TestReplay:
    def test_only_unrendered_suffix_is_replayed_in_order(self):
        log    = MessageLog()
        uzak   = mesajlar(5)

        assert log.replay(uzak[:3]) == uzak[:3]
        assert log.rendered_count == 3

        assert [m.content for m in log.replay(uzak)] == ["mesaj 4", "mesaj 5"]
        assert log.rendered_count == 5

    def test_replay_is_idempotent(self):
        log  = MessageLog()
        uzak = mesajlar(2)
        log.replay(uzak)
        assert log.replay(uzak) == []

    def test_own_message_marked_at_send_is_never_replayed(self):
        log  = MessageLog()
        kendi = Message(username="ayse", content="selam")
        assert log.mark_rendered(kendi)

        baska = Message(username="mehmet", content="merhaba")
        assert log.replay([kendi, baska]) == [baska]

    def test_two_messages_from_same_user_both_replayed(self):
        log = MessageLog()
        iki = mesajlar(2, username="ayse")
        assert log.replay(iki) == iki

    def test_forget_allows_rendering_again(self):
        log = MessageLog()
        msg = Message(username="ayse", content="gönderilemedi")
        log.mark_rendered(msg)
        log.forget(msg)

        assert log.rendered_count == 0
        assert log.replay([msg]) == [msg]

    def test_rendered_ids_are_bounded(self):
        log = MessageLog(limit=2)
        log.replay(mesajlar(20))
        assert len(log._rendered) == 8


class TestBoundedLog:
    def test_101st_append_drops_oldest(self):
        log  = MessageLog(limit=100)
        room = Room(code="ABC123")
        ilk  = mesajlar(100)
        for msg in ilk:
            log.append_local(room, msg)

        yeni = Message(username="ayse", content="yeni")
        log.append_local(room, yeni)

        assert len(room.messages) == 100
        assert room.messages[:-1] == ilk[1:]
        assert room.messages[-1] is yeni
