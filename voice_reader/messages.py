import asyncio
from typing import Any, Dict, Optional

from .config import OPEN_IN_NEW_TAB
from .dispatcher import Viewport, open_website
from .logs import describe_error, log_line
from .models import ReadingMode
from .reader import PageReader
from .sites import SiteResolver
from .summarizer import SummarizationGateway

START_READING = "START_READING"
PAUSE_READING = "PAUSE_READING"
RESUME_READING = "RESUME_READING"
STOP_READING = "STOP_READING"
GET_STATUS = "GET_STATUS"
REQUEST_SUMMARY = "REQUEST_SUMMARY"
OPEN_WEBSITE = "OPEN_WEBSITE"


class MessageHandler:
    """Answers control-surface messages (panel buttons, typed requests)."""

    def __init__(
        self,
        reader: PageReader,
        summarizer: SummarizationGateway,
        resolver: SiteResolver,
        viewport: Viewport,
    ) -> None:
        self._reader = reader
        self._session = reader.session
        self._summarizer = summarizer
        self._resolver = resolver
        self._viewport = viewport

    async def handle(self, message: Dict[str, Any]) -> Dict[str, Any]:
        message_type = str(message.get("type", ""))
        try:
            if message_type == START_READING:
                mode: Optional[ReadingMode] = None
                if message.get("mode"):
                    mode = ReadingMode.parse(message.get("mode"))
                    if mode is None:
                        return {"error": f"Unknown reading mode: {message.get('mode')}"}
                request = await self._reader.prepare(mode)
                if request is None:
                    return {"error": "Reading was stopped before it started."}
                self._reader.read_in_background(request)
                return {"success": True}
            if message_type == PAUSE_READING:
                self._session.pause_reading()
                return {"success": True}
            if message_type == RESUME_READING:
                self._session.resume_reading()
                return {"success": True}
            if message_type == STOP_READING:
                self._session.stop_reading()
                return {"success": True}
            if message_type == GET_STATUS:
                return self._session.snapshot()
            if message_type == REQUEST_SUMMARY:
                return await self._request_summary(message)
            if message_type == OPEN_WEBSITE:
                return await self._open_website(message)
        except Exception as exc:
            log_line(f"WARN: {message_type or 'message'} failed ({describe_error(exc)}).")
            return {"error": describe_error(exc)}
        return {"error": "Unknown message type"}

    async def _request_summary(self, message: Dict[str, Any]) -> Dict[str, Any]:
        content = str(message.get("content") or "")
        metadata = message.get("metadata") or {}
        try:
            summary = await asyncio.to_thread(self._summarizer.summarize, content, metadata)
        except Exception as exc:
            return {"error": describe_error(exc)}
        return {"summary": summary}

    async def _open_website(self, message: Dict[str, Any]) -> Dict[str, Any]:
        options = message.get("options") or {}
        new_tab = bool(options.get("newTab", OPEN_IN_NEW_TAB))
        try:
            resolution = await open_website(self._resolver, self._viewport, str(message.get("query") or ""), new_tab)
        except Exception as exc:
            return {"success": False, "error": describe_error(exc)}
        return {
            "success": True,
            "matchedUrl": resolution.matched_url,
            "finalUrl": resolution.final_url,
            "matched": resolution.matched,
        }
