import threading

import pytest

from voice_reader.preferences import AIConfig, PreferenceStore
from voice_reader.reader import PageReader
from voice_reader.session import ReadingSession
from voice_reader.sites import SiteResolver

ARTICLE_TEXT = "A long enough article body that the extractor will happily read out loud for the user. " * 3
ARTICLE_HTML = f"<html><head><title>News</title></head><body><nav>Menu</nav><main>{ARTICLE_TEXT}</main></body></html>"


class RecordingUtterance:
    def __init__(self, text, listener):
        self.text = text
        self.listener = listener
        self.paused = False
        self.cancelled = False

    def pause(self):
        self.listener(self, "pause", None)
        self.paused = True

    def resume(self):
        self.paused = False
        self.listener(self, "resume", None)

    def cancel(self):
        self.cancelled = True


class StartingSpeaker:
    """Starts every utterance immediately and keeps it running."""

    def __init__(self):
        self.utterances = []

    def speak(self, text, settings, listener=None):
        utterance = RecordingUtterance(text, listener)
        self.utterances.append(utterance)
        listener(utterance, "start", None)
        return utterance


class FakeBrowser:
    def __init__(self, html=ARTICLE_HTML, url="https://news.example.com/story", title="News"):
        self.html = html
        self.url = url
        self.title = title
        self.calls = []
        self.fail = False

    def page_snapshot(self):
        return {"html": self.html, "url": self.url, "title": self.title}

    def navigate(self, url, new_tab=False):
        self.calls.append(("navigate", url, new_tab))
        return "ok"

    def zoom(self, delta, reset=False):
        if self.fail:
            raise RuntimeError("page gone")
        self.calls.append(("zoom", delta, reset))
        return 100

    def scroll(self, direction, amount):
        if self.fail:
            raise RuntimeError("page gone")
        self.calls.append(("scroll", direction, amount))



class BlockingBrowser(FakeBrowser):
    """Holds page_snapshot() until the test releases it."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def page_snapshot(self):
        self.entered.set()
        self.release.wait(5)
        return super().page_snapshot()


class FixedSummarizer:
    def summarize(self, content, metadata=None):
        return "Summary of the page."


@pytest.fixture
def speaker():
    return StartingSpeaker()


@pytest.fixture
def browser():
    return FakeBrowser()


@pytest.fixture
def blocking_browser():
    return BlockingBrowser()


@pytest.fixture
def preferences(tmp_path):
    return PreferenceStore(tmp_path / "prefs.json")


@pytest.fixture
def announcements():
    return []


@pytest.fixture
def reader(speaker, browser, preferences, announcements):
    session = ReadingSession(speaker, FixedSummarizer())
    return PageReader(session, browser, preferences, announcements.append)


@pytest.fixture
def resolver():
    return SiteResolver(lambda: AIConfig())
