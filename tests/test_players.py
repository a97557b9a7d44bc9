# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

import asyncio
import pytest
from unittest.mock import MagicMock

from Public.WebSocket.Libs import (
    classify,
    PlayerFactory,
    NativePlayer,
    YouTubePlayer,
    VimeoPlayer,
    VideoLoadFailed,
    AdapterNotReady,
)

MP4     = classify("https://cdn.example.com/film.mp4")
YOUTUBE = classify("https://youtu.be/dQw4w9WgXcQ")
VIMEO   = classify("https://vimeo.com/76979871")


class TestFactory:
    @pytest.mark.parametrize("kind, cls", [("native", NativePlayer), ("youtube", YouTubePlayer), ("vimeo", VimeoPlayer)])
    def test_kind_table(self, kind, cls):
        assert isinstance(PlayerFactory()(kind), cls)

    def test_unknown_kind(self):
        with pytest.raises(VideoLoadFailed):
            PlayerFactory()("dailymotion")


class TestNotReady:
    def test_queries_are_neutral(self, clock):
        player = YouTubePlayer(clock=clock)
        assert player.get_current_time() == 0.0
        assert player.get_duration() == 0.0
        assert player.get_volume() == 0.0
        assert player.is_playing() is False

    def test_mutators_are_noops(self, clock):
        komutlar = MagicMock()
        player   = YouTubePlayer(clock=clock, on_command=komutlar)
        player.play()
        player.seek(30)
        player.set_volume(0.5)
        komutlar.assert_not_called()

    def test_pending_load_has_depth_one(self, clock):
        komutlar = MagicMock()
        player   = YouTubePlayer(clock=clock, on_command=komutlar)
        player.load(VIMEO)
        player.load(YOUTUBE)

        player.mark_ready()
        player.mark_ready()

        loads = [c for c in komutlar.call_args_list if c.args[0] == "load"]
        assert len(loads) == 1
        assert loads[0].args[1]["video_id"] == "dQw4w9WgXcQ"
        assert player.source == YOUTUBE


class TestPlaybackModel:
    @pytest.fixture
    def player(self, clock):
        player = NativePlayer(clock=clock)
        player.start()
        player.load(MP4)
        return player

    def test_native_ready_on_start(self, player):
        assert player.ready

    def test_time_advances_with_clock_while_playing(self, player, clock):
        player.play()
        clock.advance(4)
        assert player.get_current_time() == pytest.approx(4.0)

        player.pause()
        clock.advance(10)
        assert player.get_current_time() == pytest.approx(4.0)

    def test_clamped_to_duration(self, player, clock):
        player.sync_from_renderer(current_time=95.0, duration=100.0, playing=True)
        clock.advance(30)
        assert player.get_current_time() == 100.0

    def test_seek_clamps_negative(self, player):
        player.seek(-5)
        assert player.get_current_time() == 0.0

    def test_destroy_emits_and_unreadies(self, clock):
        komutlar = MagicMock()
        player   = NativePlayer(clock=clock, on_command=komutlar)
        player.start()
        player.destroy()

        assert not player.ready
        assert komutlar.call_args_list[-1].args[0] == "destroy"


class TestBackgroundWork:
    async def test_probe_failure_reported(self, clock):
        async def prober(url):
            raise VideoLoadFailed("403")

        hatalar = MagicMock()
        player  = NativePlayer(clock=clock, prober=prober, on_error=hatalar)
        player.start()
        player.load(MP4)
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        hata = hatalar.call_args.args[0]
        assert isinstance(hata, VideoLoadFailed)

    async def test_embed_ready_timeout(self, clock):
        hatalar = MagicMock()
        player  = YouTubePlayer(clock=clock, ready_timeout=0.01, on_error=hatalar)
        player.start()
        await asyncio.sleep(0.05)

        assert isinstance(hatalar.call_args.args[0], AdapterNotReady)

    async def test_embed_ready_in_time_reports_nothing(self, clock):
        hatalar = MagicMock()
        player  = YouTubePlayer(clock=clock, ready_timeout=0.01, on_error=hatalar)
        player.start()
        player.mark_ready()
        await asyncio.sleep(0.05)

        hatalar.assert_not_called()

    async def test_resolver_sets_duration(self, clock):
        async def resolver(url):
            return {"title": "Klip", "duration": 212.0}

        player = YouTubePlayer(clock=clock, auto_ready=True, resolver=resolver)
        player.start()
        player.load(YOUTUBE)
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert player.title == "Klip"
        assert player.get_duration() == 212.0
