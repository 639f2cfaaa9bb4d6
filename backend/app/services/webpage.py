# app/services/webpage.py
# 목적: 재생 가능한 미디어가 없는 일반 레시피 페이지 → (본문 텍스트, 대표 이미지)
# 의존: httpx, beautifulsoup4, lxml
# 이미지 우선순위: og:image → twitter:image → JSON-LD Recipe.image (상대경로는 페이지 URL 기준)

from __future__ import annotations
import json
import logging
import re
from typing import Any, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Comment

from app.core.config import settings
from app.models.schemas import RemoteContent

log = logging.getLogger(__name__)

BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36"
)
HEADERS = {
    "User-Agent": BROWSER_UA,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,pt;q=0.8,es;q=0.7",
}
NOISE_TAGS = ("script", "style", "noscript", "nav", "header", "footer", "aside")


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(headers=HEADERS, timeout=settings.HTTP_TIMEOUT, follow_redirects=True)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def _meta_content(soup: BeautifulSoup, selector: str) -> Optional[str]:
    node = soup.select_one(selector)
    content = node.get("content") if node else None
    return content.strip() if isinstance(content, str) and content.strip() else None


def _is_recipe(node: Any) -> bool:
    kind = node.get("@type") if isinstance(node, dict) else None
    return kind == "Recipe" or (isinstance(kind, list) and "Recipe" in kind)


def _find_recipe_node(data: Any) -> Optional[dict]:
    # 단일 객체 / 배열 / @graph 컨테이너
    if isinstance(data, list):
        for item in data:
            found = _find_recipe_node(item)
            if found:
                return found
        return None
    if not isinstance(data, dict):
        return None
    if _is_recipe(data):
        return data
    if isinstance(data.get("@graph"), list):
        return _find_recipe_node(data["@graph"])
    return None


def _image_value(image: Any) -> Optional[str]:
    if isinstance(image, list):
        image = image[0] if image else None
    if isinstance(image, dict):
        image = image.get("url")
    return image if isinstance(image, str) and image.strip() else None


def extract_hero_image(soup: BeautifulSoup, page_url: str) -> Optional[str]:
    image = (
        _meta_content(soup, "meta[property='og:image']")
        or _meta_content(soup, "meta[name='twitter:image']")
    )
    if not image:
        for script in soup.select("script[type='application/ld+json']"):
            try:
                data = json.loads(script.string or script.get_text() or "")
            except ValueError:
                continue
            recipe = _find_recipe_node(data)
            image = _image_value(recipe.get("image")) if recipe else None
            if image:
                break
    if image and not image.startswith("http"):
        image = urljoin(page_url, image)
    return image


def extract_visible_text(soup: BeautifulSoup, limit: Optional[int] = None) -> str:
    for tag in soup(NOISE_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    text = re.sub(r"\s+", " ", soup.get_text(" ")).strip()
    limit = limit or settings.WEBPAGE_TEXT_LIMIT
    if len(text) > limit:
        text = text[:limit] + "..."
    return text


async def fetch_webpage_content(url: str) -> Optional[RemoteContent]:
    # 실패는 None 반환 (호출부가 원래 오류 메시지를 사용)
    if not url:
        return None
    try:
        async with _client() as cli:
            r = await cli.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        log.warning("webpage fetch failed: %s", e)
        return None
    if not r.is_success:
        return None
    content_type = r.headers.get("content-type", "").lower()
    if "text/html" not in content_type and "application/xhtml" not in content_type:
        return None

    soup = _soup(r.text)
    image = extract_hero_image(soup, url)
    text = extract_visible_text(soup)
    return RemoteContent(text=text or None, image=image)
