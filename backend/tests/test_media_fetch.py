import json

import httpx
import pytest

from app.core.errors import AcquisitionError, MediaFetchFailed
from app.services import media_fetch, webpage
from app.services.webpage import _soup, extract_hero_image, extract_visible_text

BODY_TEXT = "Mexa o leite condensado com a manteiga até engrossar. " * 56   # ~3000 chars

RECIPE_PAGE = f"""
<html>
  <head>
    <title>Brigadeiro</title>
    <meta property="og:image" content="https://cdn.example.com/brigadeiro.jpg">
    <script>var tracking = "ignore me";</script>
    <style>body {{ color: red; }}</style>
  </head>
  <body>
    <nav>Home | Recipes</nav>
    <header>Site header</header>
    <!-- ad slot -->
    <article><p>{BODY_TEXT}</p><p>Rende 20 &amp; poucos.</p></article>
    <aside>Related posts</aside>
    <footer>Copyright</footer>
  </body>
</html>
"""


def mock_client_factory(handler):
    def factory():
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return factory


@pytest.fixture
def serve(monkeypatch):
    """Route both media and webpage fetches through one handler."""
    def install(handler):
        monkeypatch.setattr(media_fetch, "_client", mock_client_factory(handler))
        monkeypatch.setattr(webpage, "_client", mock_client_factory(handler))
    return install


@pytest.fixture
def ytdlp_fails(monkeypatch):
    async def fail(url):
        raise MediaFetchFailed("ERROR: Unsupported URL")
    monkeypatch.setattr(media_fetch, "download_via_ytdlp", fail)


class TestDirectFetch:
    @pytest.mark.asyncio
    async def test_video_response(self, serve):
        serve(lambda request: httpx.Response(200, content=b"\x00\x01", headers={"content-type": "video/mp4"}))
        item = await media_fetch.load_remote_media_direct("https://cdn.example.com/clips/bolo.mp4?sig=1")
        assert item.mime_type == "video/mp4"
        assert item.filename == "bolo.mp4"
        assert item.data == b"\x00\x01"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, content_type, reason", [
        (200, "text/html; charset=utf-8", "Unsupported content type: text/html"),
        (404, "video/mp4", "HTTP 404"),
    ])
    async def test_recoverable_failures(self, serve, status, content_type, reason):
        serve(lambda request: httpx.Response(status, content=b"x", headers={"content-type": content_type}))
        with pytest.raises(MediaFetchFailed, match=reason):
            await media_fetch.load_remote_media_direct("https://example.com/a")


class TestAcquireRemote:
    @pytest.mark.asyncio
    async def test_falls_back_to_webpage_text_and_image(self, serve, ytdlp_fails):
        serve(lambda request: httpx.Response(200, text=RECIPE_PAGE, headers={"content-type": "text/html"}))
        content = await media_fetch.acquire_remote("https://blog.example.com/brigadeiro")

        assert content.media == []
        assert content.image == "https://cdn.example.com/brigadeiro.jpg"
        assert len(content.text) >= 3000
        assert "Rende 20 & poucos." in content.text
        for noise in ("ignore me", "color: red", "Home | Recipes", "Site header", "ad slot", "Related posts", "Copyright"):
            assert noise not in content.text

    @pytest.mark.asyncio
    async def test_media_wins_over_scrape(self, serve):
        serve(lambda request: httpx.Response(200, content=b"img", headers={"content-type": "image/jpeg"}))
        content = await media_fetch.acquire_remote("https://cdn.example.com/bolo.jpg")
        assert [m.mime_type for m in content.media] == ["image/jpeg"]
        assert content.text is None

    @pytest.mark.asyncio
    async def test_all_strategies_fail(self, serve, ytdlp_fails):
        serve(lambda request: httpx.Response(200, content=b"{}", headers={"content-type": "application/json"}))
        with pytest.raises(AcquisitionError) as exc:
            await media_fetch.acquire_remote("https://api.example.com/recipe")
        message = exc.value.message
        assert message.startswith("Unable to download media from URL.")
        assert "Direct download failed: Unsupported content type: application/json" in message
        assert "yt-dlp failed: ERROR: Unsupported URL" in message
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_page_surfaces_chain_error(self, serve, ytdlp_fails):
        serve(lambda request: httpx.Response(200, text="<html><body><script>x()</script></body></html>",
                                             headers={"content-type": "text/html"}))
        with pytest.raises(AcquisitionError, match="Unable to download media from URL"):
            await media_fetch.acquire_remote("https://blog.example.com/empty")

    @pytest.mark.asyncio
    async def test_malformed_url_is_an_acquisition_error(self):
        with pytest.raises(AcquisitionError) as exc:
            await media_fetch.acquire_remote("http://[invalid")
        assert exc.value.status_code == 400
        assert "Direct download failed" in exc.value.message

    @pytest.mark.asyncio
    async def test_malformed_url_page_fetch_returns_none(self):
        assert await webpage.fetch_webpage_content("http://[invalid") is None


class TestYtDlp:
    @pytest.mark.asyncio
    async def test_download_reads_file_and_cleans_up(self, monkeypatch):
        seen = {}

        def fake_run(url, folder):
            seen["folder"] = folder
            (folder / "capture.mkv").write_bytes(b"merged")

        monkeypatch.setattr(media_fetch, "_run_ytdlp", fake_run)
        item = await media_fetch.download_via_ytdlp("https://www.instagram.com/reel/abc/")
        assert item.mime_type == "video/mp4"
        assert item.data == b"merged"
        assert not seen["folder"].exists()

    @pytest.mark.asyncio
    async def test_no_output_file(self, monkeypatch):
        seen = {}

        def fake_run(url, folder):
            seen["folder"] = folder
            (folder / "capture.part").write_bytes(b"partial")

        monkeypatch.setattr(media_fetch, "_run_ytdlp", fake_run)
        with pytest.raises(MediaFetchFailed):
            await media_fetch.download_via_ytdlp("https://www.tiktok.com/@a/video/1")
        assert not seen["folder"].exists()

    @pytest.mark.asyncio
    async def test_extractor_value_error(self, monkeypatch):
        def fake_run(url, folder):
            raise ValueError("Invalid IPv6 URL")

        monkeypatch.setattr(media_fetch, "_run_ytdlp", fake_run)
        with pytest.raises(MediaFetchFailed, match="Invalid IPv6 URL"):
            await media_fetch.download_via_ytdlp("http://[invalid")

    def test_options(self, tmp_path):
        opts = media_fetch._ytdlp_options("https://x.example/v", tmp_path)
        assert opts["merge_output_format"] == "mp4"
        assert opts["geo_bypass"] and opts["noplaylist"] and opts["quiet"]
        assert opts["http_headers"]["Referer"] == "https://x.example/v"
        assert opts["outtmpl"].endswith("capture.%(ext)s")


class TestScrapeHelpers:
    def test_twitter_image_when_no_og(self):
        soup = _soup('<meta name="twitter:image" content="/img/card.png">')
        assert extract_hero_image(soup, "https://site.example/recipes/1") == "https://site.example/img/card.png"

    @pytest.mark.parametrize("ld", [
        {"@type": "Recipe", "image": "/a.jpg"},
        {"@type": ["Recipe", "NewsArticle"], "image": ["/a.jpg", "/b.jpg"]},
        {"@graph": [{"@type": "WebPage"}, {"@type": "Recipe", "image": {"url": "/a.jpg"}}]},
        [{"@type": "Person"}, {"@type": "Recipe", "image": "https://site.example/a.jpg"}],
    ])
    def test_json_ld_image(self, ld):
        html = f'<script type="application/ld+json">{json.dumps(ld)}</script>'
        assert extract_hero_image(_soup(html), "https://site.example/recipes/1") == "https://site.example/a.jpg"

    def test_broken_json_ld_is_skipped(self):
        html = '<script type="application/ld+json">{not json</script>'
        assert extract_hero_image(_soup(html), "https://site.example/") is None

    def test_text_truncated(self):
        text = extract_visible_text(_soup(f"<p>{'a' * 50}</p>"), limit=10)
        assert text == "a" * 10 + "..."


@pytest.mark.parametrize("filename, declared, expected", [
    ("clip.mov", "video/quicktime", "video/quicktime"),
    ("clip.mov", "application/octet-stream", "video/quicktime"),
    ("voice.m4a", None, "audio/mp4"),
    ("photo.jpg", "", "image/jpeg"),
    ("blob", None, "application/octet-stream"),
])
def test_guess_mime_type(filename, declared, expected):
    assert media_fetch.guess_mime_type(filename, declared) == expected
