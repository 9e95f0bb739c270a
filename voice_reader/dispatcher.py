import asyncio
from typing import Any, Callable, Dict, Optional, Protocol

from .config import OPEN_IN_NEW_TAB
from .errors import EmptyQuery
from .intents import ANNOUNCEMENTS
from .logs import describe_error, log_line
from .models import IntentKind, ReadingMode, ReadingStatus, SiteResolution, VoiceIntent
from .reader import PageReader
from .sites import SiteResolver


class Viewport(Protocol):
    def navigate(self, url: str, new_tab: bool = False) -> str: ...

    def zoom(self, delta: int, reset: bool = False) -> int: ...

    def scroll(self, direction: str, amount: int) -> None: ...


async def open_website(
    resolver: SiteResolver,
    viewport: Viewport,
    query: str,
    new_tab: bool = False,
) -> SiteResolution:
    resolution = await asyncio.to_thread(resolver.resolve_site, query)
    how = "matched" if resolution.matched else "search fallback"
    log_line(f"  Site '{query}' -> {resolution.final_url} ({how})")
    await asyncio.to_thread(viewport.navigate, resolution.final_url, new_tab)
    return resolution


class CommandDispatcher:
    """Routes interpreted voice intents to the reader, resolver and viewport."""

    def __init__(
        self,
        reader: PageReader,
        resolver: SiteResolver,
        viewport: Viewport,
        announce: Optional[Callable[[str], Any]] = None,
        open_in_new_tab: bool = OPEN_IN_NEW_TAB,
    ) -> None:
        self._reader = reader
        self._session = reader.session
        self._resolver = resolver
        self._viewport = viewport
        self._announce = announce
        self._open_in_new_tab = open_in_new_tab

    def _say(self, text: str) -> str:
        if self._announce is not None and text:
            self._announce(text)
        return text

    async def dispatch(self, intent: VoiceIntent) -> str:
        kind = intent.kind
        if kind == IntentKind.IGNORE:
            log_line("  Ignored our own announcement.")
            return ""
        if kind == IntentKind.STOP:
            self._session.stop_reading()
            return self._say(ANNOUNCEMENTS["stop"])
        if kind == IntentKind.PAUSE:
            if self._session.get_status() != ReadingStatus.READING:
                return self._say(ANNOUNCEMENTS["nothing_to_pause"])
            self._session.pause_reading()
            return ANNOUNCEMENTS["pause"]
        if kind == IntentKind.RESUME:
            if self._session.get_status() != ReadingStatus.PAUSED:
                return self._say(ANNOUNCEMENTS["nothing_to_resume"])
            self._session.resume_reading()
            return ANNOUNCEMENTS["resume"]
        if kind == IntentKind.ZOOM:
            return await self._zoom(intent)
        if kind == IntentKind.SCROLL:
            return await self._scroll(intent)
        if kind == IntentKind.OPEN_SITE:
            return await self._open_site(intent.query)
        if kind == IntentKind.SET_MODE and intent.mode is not None:
            key = "mode_summary" if intent.mode == ReadingMode.SUMMARY else "mode_full"
            self._say(ANNOUNCEMENTS[key])
            self._reader.start_in_background(intent.mode, remember=True)
            return ANNOUNCEMENTS[key]
        return self._say(ANNOUNCEMENTS["unknown"])

    async def _zoom(self, intent: VoiceIntent) -> str:
        try:
            await asyncio.to_thread(self._viewport.zoom, intent.zoom_delta, intent.zoom_reset)
        except Exception as exc:
            log_line(f"WARN: Zoom failed ({describe_error(exc)}).")
            return self._say(ANNOUNCEMENTS["viewport_failed"])
        if intent.zoom_reset:
            return self._say(ANNOUNCEMENTS["zoom_reset"])
        key = "zoom_in" if intent.zoom_delta >= 0 else "zoom_out"
        return self._say(ANNOUNCEMENTS[key].format(amount=abs(intent.zoom_delta)))

    async def _scroll(self, intent: VoiceIntent) -> str:
        try:
            await asyncio.to_thread(self._viewport.scroll, intent.scroll_direction, intent.scroll_amount)
        except Exception as exc:
            log_line(f"WARN: Scroll failed ({describe_error(exc)}).")
            return self._say(ANNOUNCEMENTS["viewport_failed"])
        if intent.scroll_direction in {"top", "bottom"}:
            return self._say(ANNOUNCEMENTS["scroll_edge"].format(edge=intent.scroll_direction))
        return self._say(ANNOUNCEMENTS["scroll"].format(direction=intent.scroll_direction))

    async def _open_site(self, query: str) -> str:
        try:
            await open_website(self._resolver, self._viewport, query, self._open_in_new_tab)
        except EmptyQuery:
            return self._say(ANNOUNCEMENTS["unknown"])
        except Exception as exc:
            log_line(f"WARN: Could not open '{query}' ({describe_error(exc)}).")
            return self._say(ANNOUNCEMENTS["open_failed"])
        return self._say(ANNOUNCEMENTS["open_site"].format(name=query))


def intent_summary(intent: VoiceIntent) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"kind": intent.kind.value}
    if intent.mode is not None:
        payload["mode"] = intent.mode.value
    if intent.kind == IntentKind.ZOOM:
        payload["delta"] = intent.zoom_delta
        payload["reset"] = intent.zoom_reset
    if intent.kind == IntentKind.SCROLL:
        payload["direction"] = intent.scroll_direction
        payload["amount"] = intent.scroll_amount
    if intent.query:
        payload["query"] = intent.query
    return payload
