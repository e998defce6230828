from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from deadline.models.interfaces import ScrapedArticle
from deadline.tools.web_utils import collapse_whitespace, extract_source

NOISE_TAGS = ("script", "style", "nav", "header", "footer")
CONTAINER_CLASS_MARKERS = ("content", "article", "post", "story", "news", "entry", "body")
TEXT_DIV_CLASS_MARKERS = ("text", "content", "article")

MAX_CONTENT_CHARS = 5000
CONTAINER_MIN_CHARS = 300
PARAGRAPH_MIN_CHARS = 200
DESCRIPTION_MIN_CHARS = 100
BLOCK_MIN_CHARS = 50

TITLE_SELECTORS = (
    ('meta[property="og:title"]', "content"),
    ('meta[name="twitter:title"]', "content"),
    ("title", None),
    ("h1", None),
    ('meta[name="title"]', "content"),
)


def _class_matches(tag: Tag, markers: tuple[str, ...]) -> bool:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    joined = " ".join(classes).lower()
    return any(marker in joined for marker in markers)


def _text_of(tag: Tag) -> str:
    return collapse_whitespace(tag.get_text(" "))


def _meta_content(soup: BeautifulSoup, selector: str) -> str:
    tag = soup.select_one(selector)
    if tag is None:
        return ""
    value = tag.get("content") or ""
    return collapse_whitespace(str(value))


def extract_title(soup: BeautifulSoup) -> str:
    """First non-empty title from og/twitter meta, <title>, <h1>, meta title."""
    for selector, attribute in TITLE_SELECTORS:
        if attribute:
            value = _meta_content(soup, selector)
        else:
            tag = soup.select_one(selector)
            value = _text_of(tag) if tag is not None else ""
        if value:
            return value
    return ""


def _strip_noise(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(NOISE_TAGS):
        tag.decompose()


def _longest_container_text(soup: BeautifulSoup) -> str:
    candidates: list[Tag] = list(soup.find_all(["article", "main"]))
    candidates.extend(
        div for div in soup.find_all("div") if _class_matches(div, CONTAINER_CLASS_MARKERS)
    )
    best = ""
    for candidate in candidates:
        text = _text_of(candidate)
        if len(text) > len(best):
            best = text
    return best


def _paragraph_text(soup: BeautifulSoup) -> str:
    blocks = [_text_of(p) for p in soup.find_all("p")]
    return collapse_whitespace(" ".join(b for b in blocks if len(b) > BLOCK_MIN_CHARS))


def _text_div_text(soup: BeautifulSoup) -> str:
    matched = [div for div in soup.find_all("div") if _class_matches(div, TEXT_DIV_CLASS_MARKERS)]
    matched_ids = {id(div) for div in matched}
    # Nested matches would repeat their text inside the outer match.
    outermost = [
        div
        for div in matched
        if not any(id(parent) in matched_ids for parent in div.parents)
    ]
    blocks = [_text_of(div) for div in outermost]
    return collapse_whitespace(" ".join(b for b in blocks if len(b) > BLOCK_MIN_CHARS))


def extract_article_content(html: str, url: str, *, max_chars: int = MAX_CONTENT_CHARS) -> ScrapedArticle:
    """Best-effort article body and title from arbitrary HTML. Never raises."""
    soup = BeautifulSoup(html or "", "html.parser")
    _strip_noise(soup)

    title = extract_title(soup)
    description = _meta_content(soup, 'meta[name="description"]')

    content = _longest_container_text(soup)

    if len(content) < CONTAINER_MIN_CHARS:
        paragraphs = _paragraph_text(soup)
        if paragraphs:
            content = paragraphs

    if len(content) < PARAGRAPH_MIN_CHARS:
        div_text = _text_div_text(soup)
        if len(div_text) > len(content):
            content = div_text

    if len(content) < DESCRIPTION_MIN_CHARS:
        content = description

    return ScrapedArticle(
        url=url,
        title=title,
        content=content[:max_chars],
        source=extract_source(url),
    )
