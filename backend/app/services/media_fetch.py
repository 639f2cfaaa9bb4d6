# app/services/media_fetch.py
# 목적: 원격 URL → 재생 가능한 미디어 바이트 (또는 일반 웹페이지 텍스트)
# 순서: 직접 다운로드 → yt-dlp → 웹페이지 스크랩
# - 단계별 실패 사유를 모아 최종 오류 메시지로 사용
# - yt-dlp 작업 폴더는 항상 삭제

from __future__ import annotations
import asyncio
import logging
import mimetypes
import tempfile
from pathlib import Path
from typing import List, Optional

import httpx
import yt_dlp

from app.core.config import settings
from app.core.errors import AcquisitionError, MediaFetchFailed
from app.models.schemas import MediaItem, RemoteContent
from app.services.webpage import BROWSER_UA, fetch_webpage_content

log = logging.getLogger(__name__)

SUPPORTED_MEDIA_PREFIXES = ("video/", "audio/", "image/")
MIME_LOOKUP = {
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",
    ".mov": "video/quicktime",
    ".webm": "video/webm",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".wav": "audio/wav",
}
# 확장자는 알지만 MIME 표에 없는 영상 → video/mp4
VIDEO_EXTENSIONS = (".mkv", ".flv", ".avi", ".3gp", ".ts")
HEADERS = {"User-Agent": BROWSER_UA, "Accept": "*/*"}


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(headers=HEADERS, timeout=settings.HTTP_TIMEOUT, follow_redirects=True)


def _filename_from_url(url: str, fallback: str = "remote-media") -> str:
    name = Path(httpx.URL(url).path).name
    return name or fallback


def guess_mime_type(filename: str, declared: Optional[str] = None) -> str:
    # 선언된 content-type → 확장자 추측 → octet-stream
    declared = (declared or "").split(";")[0].strip().lower()
    if declared and declared != "application/octet-stream":
        return declared
    suffix = Path(filename or "").suffix.lower()
    if suffix in MIME_LOOKUP:
        return MIME_LOOKUP[suffix]
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or "application/octet-stream"


# ---------------------------------------------------------------------
# 1) 직접 다운로드
# ---------------------------------------------------------------------
async def load_remote_media_direct(url: str) -> MediaItem:
    try:
        async with _client() as cli:
            r = await cli.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise MediaFetchFailed(f"request failed: {e}") from e

    if not r.is_success:
        raise MediaFetchFailed(f"HTTP {r.status_code}")
    content_type = r.headers.get("content-type", "").split(";")[0].strip().lower()
    if not content_type.startswith(SUPPORTED_MEDIA_PREFIXES):
        raise MediaFetchFailed(f"Unsupported content type: {content_type or 'unknown'}")
    if not r.content:
        raise MediaFetchFailed("empty response body")

    return MediaItem(data=r.content, mime_type=content_type, filename=_filename_from_url(url))


# ---------------------------------------------------------------------
# 2) yt-dlp (SNS/영상 플랫폼 페이지)
# ---------------------------------------------------------------------
def _ytdlp_options(url: str, folder: Path) -> dict:
    return {
        "outtmpl": str(folder / "capture.%(ext)s"),
        "format": "bv+ba/best",
        "merge_output_format": "mp4",
        "http_headers": {"Referer": url, "User-Agent": BROWSER_UA},
        "nocheckcertificate": True,
        "no_warnings": True,
        "geo_bypass": True,
        "quiet": True,
        "noprogress": True,
        "noplaylist": True,
    }


def _run_ytdlp(url: str, folder: Path) -> None:
    with yt_dlp.YoutubeDL(_ytdlp_options(url, folder)) as ydl:
        ydl.download([url])


def _pick_downloaded(folder: Path) -> Optional[Path]:
    for path in sorted(folder.iterdir()):
        if path.is_file() and (path.suffix.lower() in MIME_LOOKUP or path.suffix.lower() in VIDEO_EXTENSIONS):
            return path
    return None


async def download_via_ytdlp(url: str) -> MediaItem:
    with tempfile.TemporaryDirectory(prefix="recipe-ytdlp-") as tmp:
        folder = Path(tmp)
        try:
            await asyncio.to_thread(_run_ytdlp, url, folder)
        except (yt_dlp.utils.YoutubeDLError, OSError, ValueError) as e:
            raise MediaFetchFailed(f"yt-dlp: {e}") from e

        path = _pick_downloaded(folder)
        if path is None:
            raise MediaFetchFailed("yt-dlp finished without producing a media file")
        log.info("yt-dlp downloaded %s (%d bytes)", path.name, path.stat().st_size)
        return MediaItem(
            data=path.read_bytes(),
            mime_type=MIME_LOOKUP.get(path.suffix.lower(), "video/mp4"),
            filename=path.name,
        )


# ---------------------------------------------------------------------
# 체인
# ---------------------------------------------------------------------
async def load_remote_media(url: str) -> List[MediaItem]:
    errors: List[str] = []
    for label, loader in (("Direct download", load_remote_media_direct), ("yt-dlp", download_via_ytdlp)):
        try:
            return [await loader(url)]
        except MediaFetchFailed as e:
            log.info("%s failed for %s: %s", label, url, e)
            errors.append(f"{label} failed: {e}")
    raise AcquisitionError("Unable to download media from URL. " + " | ".join(errors))


async def acquire_remote(url: str) -> RemoteContent:
    """미디어 체인 실패 시 웹페이지 텍스트로 폴백. 둘 다 없으면 체인 오류를 그대로 올림."""
    try:
        media = await load_remote_media(url)
        return RemoteContent(media=media)
    except AcquisitionError as chain_error:
        page = await fetch_webpage_content(url)
        if page and page.text:
            log.info("using webpage text for %s (%d chars)", url, len(page.text))
            return page
        raise chain_error
