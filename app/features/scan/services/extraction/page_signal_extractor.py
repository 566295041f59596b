from typing import Iterable, List, Optional
from urllib.parse import urldefrag, urljoin, urlparse

from app.features.scan.schemas.page_signal import Headings, ImageSignal, PageSignal
from app.features.scan.schemas.rendering import RawPageFacts

DEFAULT_PORTS = {"http": 80, "https": 443}


def count_words(text: Optional[str]) -> int:
    """Count whitespace-separated tokens longer than two characters."""
    if not text:
        return 0
    return sum(1 for word in text.split() if len(word) > 2)


def origin_of(url: str) -> Optional[str]:
    """
    Return "scheme://host[:port]" for an http(s) URL, or None.
    Default ports are dropped so https://a.com:443 and https://a.com match.
    """
    try:
        parsed = urlparse(url)
        scheme = parsed.scheme.lower()
        host = (parsed.hostname or "").lower()
        port = parsed.port
    except ValueError:
        return None

    if scheme not in DEFAULT_PORTS or not host:
        return None
    if port and port != DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def normalize_page_url(url: str) -> str:
    """Strip the fragment so #anchors do not count as separate pages."""
    return urldefrag(url.strip())[0]


class PageSignalExtractor:
    MAX_INTERNAL_LINKS = 10
    MAX_IMAGES = 50
    SUBSTANTIAL_CONTENT_WORDS = 50
    HEADING_TAGS = ("h1", "h2", "h3")

    @staticmethod
    def extract(facts: RawPageFacts, origin: str) -> PageSignal:
        """Normalize renderer output into a PageSignal restricted to `origin`."""
        word_count = max(0, facts.word_count)
        return PageSignal(
            url=facts.url,
            title=PageSignalExtractor._clean(facts.title),
            meta_description=PageSignalExtractor._clean(facts.meta_description),
            headings=PageSignalExtractor.extract_headings(facts.headings),
            images=PageSignalExtractor.extract_images(facts.images),
            word_count=word_count,
            has_substantial_content=word_count > PageSignalExtractor.SUBSTANTIAL_CONTENT_WORDS,
            internal_links=PageSignalExtractor.extract_internal_links(
                facts.links, facts.final_url or facts.url, origin
            ),
        )

    @staticmethod
    def extract_headings(raw: dict) -> Headings:
        cleaned = {}
        for tag in PageSignalExtractor.HEADING_TAGS:
            texts = (PageSignalExtractor._clean(text) for text in raw.get(tag) or [])
            cleaned[tag] = [text for text in texts if text]
        return Headings(**cleaned)

    @staticmethod
    def extract_images(raw: Iterable[dict]) -> List[ImageSignal]:
        images = []
        for image in raw:
            src = PageSignalExtractor._clean(image.get("src"))
            if not src or src.startswith("data:"):
                continue
            images.append(ImageSignal(src=src, current_alt=PageSignalExtractor._clean(image.get("alt"))))
            if len(images) >= PageSignalExtractor.MAX_IMAGES:
                break
        return images

    @staticmethod
    def extract_internal_links(hrefs: Iterable[Optional[str]], base_url: str, origin: str) -> List[str]:
        """
        Resolve hrefs against the page URL and keep the same-origin ones,
        de-duplicated in document order and capped at MAX_INTERNAL_LINKS.
        Malformed hrefs are dropped.
        """
        links: List[str] = []
        seen = set()
        for href in hrefs:
            if not href or not href.strip():
                continue
            try:
                absolute = normalize_page_url(urljoin(base_url, href.strip()))
            except ValueError:
                continue
            if origin_of(absolute) != origin or absolute in seen:
                continue
            seen.add(absolute)
            links.append(absolute)
            if len(links) >= PageSignalExtractor.MAX_INTERNAL_LINKS:
                break
        return links

    @staticmethod
    def _clean(value: Optional[str]) -> str:
        return " ".join(value.split()) if value else ""
