"""
Readable-text extraction from page HTML.

Candidates are tried in priority order and the first one with enough text
wins: <main>, <article>, role="main", role="article", the best content-like
container, the body without navigation chrome, and finally the raw body.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from .models import ExtractedContent

MIN_CANDIDATE_CHARS = 100
MIN_FALLBACK_CHARS = 50

NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]
HIDDEN_SELECTOR = '[hidden], [aria-hidden="true" i]'
CHROME_SELECTOR = "header, nav, footer, aside, .sidebar, .navigation, .menu"
CONTAINER_TAGS = ["div", "section"]
CONTENT_TAGS = {"main", "article", "section"}
CONTENT_ROLES = {"main", "article", "region", "contentinfo"}
CONTENT_CLASS_KEYWORDS = ("content", "main-content", "article", "post", "entry")


def normalize_text(text: str) -> str:
    cleaned = re.sub(r"\s+", " ", text or "")
    cleaned = re.sub(r"\n\s*\n", "\n\n", cleaned)
    return cleaned.strip()


def _parse(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html or "", "html.parser")
    for element in soup.find_all(NON_CONTENT_TAGS) + soup.select(HIDDEN_SELECTOR):
        if getattr(element, "decomposed", False):
            continue
        element.decompose()
    return soup


def element_text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return normalize_text(element.get_text(" "))


def _class_names(element: Tag) -> str:
    classes = element.get("class") or []
    if isinstance(classes, str):
        return classes.lower()
    return " ".join(classes).lower()


def looks_like_content(element: Tag) -> bool:
    if element.name in CONTENT_TAGS:
        return True
    role = (element.get("role") or "").strip().lower()
    if role in CONTENT_ROLES:
        return True
    class_names = _class_names(element)
    return any(keyword in class_names for keyword in CONTENT_CLASS_KEYWORDS)


def _substantial(element: Optional[Tag]) -> str:
    text = element_text(element)
    return text if len(text) > MIN_CANDIDATE_CHARS else ""


def _best_container(soup: BeautifulSoup) -> str:
    best_text = ""
    for element in soup.find_all(CONTAINER_TAGS):
        if not looks_like_content(element):
            continue
        text = element_text(element)
        if len(text) > len(best_text) and len(text) > MIN_CANDIDATE_CHARS:
            best_text = text
    return best_text


def _body_without_chrome(html: str) -> str:
    soup = _parse(html)
    body = soup.body
    if body is None:
        return ""
    for element in body.select(CHROME_SELECTOR):
        if getattr(element, "decomposed", False):
            continue
        element.decompose()
    text = element_text(body)
    return text if len(text) > MIN_FALLBACK_CHARS else ""


def extract_text(html: str) -> str:
    soup = _parse(html)

    text = _substantial(soup.find("main"))
    if text:
        return text

    for article in soup.find_all("article"):
        text = _substantial(article)
        if text:
            return text

    for role in ("main", "article"):
        text = _substantial(soup.find(attrs={"role": role}))
        if text:
            return text

    text = _best_container(soup)
    if text:
        return text

    text = _body_without_chrome(html)
    if text:
        return text

    return element_text(soup.body if soup.body is not None else soup)


def extract_title(html: str) -> str:
    soup = BeautifulSoup(html or "", "html.parser")
    if soup.title is None:
        return ""
    return normalize_text(soup.title.get_text(" "))


def extract_content(html: str, url: str = "", title: str = "") -> ExtractedContent:
    return ExtractedContent(
        text=extract_text(html),
        source_url=url or "",
        title=(title or "").strip() or extract_title(html),
    )

