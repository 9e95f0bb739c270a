import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, Set

from .errors import EmptyContent
from .extractor import extract_content
from .intents import ANNOUNCEMENTS
from .logs import describe_error, log_line
from .models import ExtractedContent, ReadingMode
from .preferences import PreferenceStore, get_reading_mode, set_reading_mode
from .session import ReadingSession


class PageSource(Protocol):
    def page_snapshot(self) -> Dict[str, str]: ...


@dataclass
class ReadRequest:
    generation: int
    content: ExtractedContent
    mode: ReadingMode


class PageReader:
    """Fetches the current page, extracts it and hands it to the session."""

    def __init__(
        self,
        session: ReadingSession,
        page_source: PageSource,
        preferences: PreferenceStore,
        announce: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self.session = session
        self._page_source = page_source
        self._preferences = preferences
        self._announce = announce
        self._tasks: Set["asyncio.Task[None]"] = set()
        self.last_content: Optional[ExtractedContent] = None

    async def extract(self) -> ExtractedContent:
        snapshot = await asyncio.to_thread(self._page_source.page_snapshot)
        content = extract_content(
            snapshot.get("html", ""),
            url=snapshot.get("url", ""),
            title=snapshot.get("title", ""),
        )
        self.last_content = content
        return content

    async def prepare(self, mode: Optional[ReadingMode] = None, remember: bool = False) -> Optional[ReadRequest]:
        """Loads the page for a new reading.

        Returns None when the reading was stopped or replaced while the page
        was loading. Raises EmptyContent when the page has nothing to read.
        """
        generation = self.session.begin_request()
        content = await self.extract()
        if not self.session.is_current(generation):
            log_line("  Page loaded after the reading was stopped; not reading it.")
            return None
        if mode is None:
            mode = get_reading_mode(self._preferences, content.source_url)
        elif remember:
            set_reading_mode(self._preferences, mode, content.source_url)
        if not content.text.strip():
            self.session.fail_empty(generation)
        return ReadRequest(generation, content, mode)

    async def read(self, request: ReadRequest) -> None:
        content = request.content
        log_line(
            f"  Reading '{content.title or content.source_url or 'page'}' "
            f"({request.mode.value}, {len(content.text)} chars)."
        )
        await self.session.start_reading(
            content.text,
            request.mode,
            content.metadata(),
            expected_generation=request.generation,
        )

    async def start(self, mode: Optional[ReadingMode] = None, remember: bool = False) -> None:
        request = await self.prepare(mode, remember)
        if request is not None:
            await self.read(request)

    def start_in_background(self, mode: Optional[ReadingMode] = None, remember: bool = False) -> "asyncio.Task[None]":
        return self._track(self.start(mode, remember))

    def read_in_background(self, request: ReadRequest) -> "asyncio.Task[None]":
        return self._track(self.read(request))

    def _track(self, coro) -> "asyncio.Task[None]":
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        if isinstance(exc, EmptyContent):
            log_line(f"WARN: {exc}")
            self._say(ANNOUNCEMENTS["empty_page"])
            return
        log_line(f"ERROR: Could not start reading ({describe_error(exc)}).")
        self._say(ANNOUNCEMENTS["start_failed"])

    def _say(self, text: str) -> None:
        if self._announce is not None:
            self._announce(text)

    async def wait_idle(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
