import unittest
from unittest.mock import AsyncMock, MagicMock

import httpx

from mediabot.errors import InvalidPlaylistUrl, UpstreamApiError
from mediabot.youtube.importer import (
    YOUTUBE_API_URL,
    PlaylistEntry,
    PlaylistImporter,
    extract_playlist_id,
)

PLAYLIST_URL = "https://www.youtube.com/playlist?list=PLabc123_-x"


def item(title: str, video_id: str) -> dict:
    return {"snippet": {"title": title, "resourceId": {"kind": "youtube#video", "videoId": video_id}}}


def page(items: list, next_token: str | None = None) -> dict:
    data = {"kind": "youtube#playlistItemListResponse", "items": items}
    if next_token:
        data["nextPageToken"] = next_token
    return data


class FakeYouTube:
    """Records requests and replays queued (status, body) responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses.pop(0)
        return httpx.Response(status, json=body)


class TestExtractPlaylistId(unittest.TestCase):
    def test_valid_urls(self):
        cases = {
            "https://www.youtube.com/playlist?list=PL123": "PL123",
            "https://youtube.com/watch?v=dQw4w9WgXcQ&list=PLxyz_-9": "PLxyz_-9",
            "http://m.youtube.com/playlist?list=OLAK5uy": "OLAK5uy",
            "https://music.youtube.com/playlist?list=RDCLAK&si=abc": "RDCLAK",
            "https://youtu.be/dQw4w9WgXcQ?list=PLshort": "PLshort",
            "youtube.com/playlist?list=PLnoscheme": "PLnoscheme",
        }
        for url, expected in cases.items():
            with self.subTest(url=url):
                self.assertEqual(extract_playlist_id(url), expected)

    def test_invalid_urls(self):
        for url in (
            "",
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://vimeo.com/playlist?list=PL123",
            "https://evil.example/youtube.com/playlist?list=PL123",
            "not a url",
        ):
            with self.subTest(url=url):
                with self.assertRaises(InvalidPlaylistUrl):
                    extract_playlist_id(url)


class TestPlaylistImporter(unittest.IsolatedAsyncioTestCase):
    def make_importer(self, fake: FakeYouTube, **kwargs) -> PlaylistImporter:
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
        self.sleep = AsyncMock()
        return PlaylistImporter(self.client, "test-key", sleep=self.sleep, **kwargs)

    async def asyncTearDown(self):
        client = getattr(self, "client", None)
        if client is not None:
            await client.aclose()

    async def test_paginates_until_no_token(self):
        fake = FakeYouTube([
            (200, page([item("Episode 10", "v10"), item("Episode 2", "v2")], "B")),
            (200, page([item("Episode 1", "v1")], "C")),
            (200, page([item("Bonus", "vb")])),
        ])
        importer = self.make_importer(fake)

        entries = await importer.fetch(PLAYLIST_URL)

        self.assertEqual(len(fake.requests), 3)
        self.assertEqual([r.url.params.get("pageToken") for r in fake.requests], [None, "B", "C"])
        first = fake.requests[0].url
        self.assertEqual(str(first).split("?")[0], YOUTUBE_API_URL)
        self.assertEqual(first.params["playlistId"], "PLabc123_-x")
        self.assertEqual(first.params["key"], "test-key")
        self.assertEqual(first.params["part"], "snippet")
        self.assertEqual(first.params["maxResults"], "50")
        self.assertEqual(
            entries,
            [
                PlaylistEntry("Bonus", "vb"),
                PlaylistEntry("Episode 1", "v1"),
                PlaylistEntry("Episode 2", "v2"),
                PlaylistEntry("Episode 10", "v10"),
            ],
        )
        self.sleep.assert_not_awaited()

    async def test_items_without_video_id_are_skipped(self):
        fake = FakeYouTube([(200, page([item("ok", "v1"), {"snippet": {"title": "broken"}}]))])
        entries = await self.make_importer(fake).fetch(PLAYLIST_URL)
        self.assertEqual(entries, [PlaylistEntry("ok", "v1")])

    async def test_rate_limit_retried_once(self):
        fake = FakeYouTube([
            (200, page([item("A", "a")], "B")),
            (429, {"error": {"code": 429, "message": "Too many requests"}}),
            (200, page([item("B", "b")])),
        ])
        importer = self.make_importer(fake)

        entries = await importer.fetch(PLAYLIST_URL)

        self.assertEqual([e.external_id for e in entries], ["a", "b"])
        self.assertEqual(len(fake.requests), 3)
        self.assertEqual(fake.requests[1].url.params["pageToken"], "B")
        self.assertEqual(fake.requests[2].url.params["pageToken"], "B")
        self.sleep.assert_awaited_once_with(5)

    async def test_second_rate_limit_propagates(self):
        fake = FakeYouTube([
            (429, {"error": {"message": "Too many requests"}}),
            (429, {"error": {"message": "Too many requests"}}),
        ])
        with self.assertRaises(UpstreamApiError) as cm:
            await self.make_importer(fake).fetch(PLAYLIST_URL)
        self.assertEqual(cm.exception.status, 429)
        self.assertEqual(len(fake.requests), 2)

    async def test_other_errors_are_not_retried(self):
        message = "The request cannot be completed because you have exceeded your quota."
        fake = FakeYouTube([(403, {"error": {"code": 403, "message": message}})])
        with self.assertRaises(UpstreamApiError) as cm:
            await self.make_importer(fake).fetch(PLAYLIST_URL)
        self.assertEqual(str(cm.exception), message)
        self.assertEqual(cm.exception.status, 403)
        self.assertEqual(len(fake.requests), 1)
        self.sleep.assert_not_awaited()

    async def test_transport_errors_are_wrapped(self):
        def boom(request):
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(UpstreamApiError):
            await self.make_importer(boom).fetch(PLAYLIST_URL)

    async def test_invalid_url_makes_no_request(self):
        fake = FakeYouTube([])
        with self.assertRaises(InvalidPlaylistUrl):
            await self.make_importer(fake).fetch("https://example.com/?list=PL1")
        self.assertEqual(fake.requests, [])

    async def test_missing_api_key(self):
        importer = PlaylistImporter(MagicMock(), "")
        with self.assertRaises(UpstreamApiError):
            await importer.fetch(PLAYLIST_URL)

    async def test_stream_sends_bounded_chunks_with_pauses(self):
        importer = self.make_importer(FakeYouTube([]))
        entries = [PlaylistEntry(f"Video number {i} with a reasonably long title", f"id{i:08d}") for i in range(200)]
        channel = MagicMock()
        channel.send = AsyncMock()

        sent = await importer.stream(channel, entries)

        self.assertGreater(sent, 1)
        self.assertEqual(channel.send.await_count, sent)
        messages = [c.args[0] for c in channel.send.await_args_list]
        for message in messages:
            self.assertLessEqual(len(message), 1900)
        self.assertEqual("\n".join(messages).split("\n"), [e.render() for e in entries])
        self.assertEqual(self.sleep.await_count, sent - 1)
        self.sleep.assert_awaited_with(1)

    def test_render(self):
        self.assertEqual(PlaylistEntry("Intro", "abc").render(), "Intro: https://youtu.be/abc")

    def test_from_config(self):
        importer = PlaylistImporter.from_config(
            MagicMock(),
            {
                "youtube_api_key": "k",
                "playlist": {"page_size": 25, "chunk_delay_seconds": 2, "rate_limit_retry_seconds": 7},
                "formatting": {"max_message_length": 1500},
            },
        )
        self.assertEqual(importer.api_key, "k")
        self.assertEqual(importer.page_size, 25)
        self.assertEqual(importer.chunk_delay_seconds, 2)
        self.assertEqual(importer.rate_limit_retry_seconds, 7)
        self.assertEqual(importer.max_message_length, 1500)


if __name__ == "__main__":
    unittest.main()
