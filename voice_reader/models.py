from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ReadingStatus(str, Enum):
    IDLE = "idle"
    SUMMARIZING = "summarizing"
    READING = "reading"
    PAUSED = "paused"
    STOPPED = "stopped"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_STATUSES = {ReadingStatus.STOPPED, ReadingStatus.COMPLETE, ReadingStatus.ERROR}


class ReadingMode(str, Enum):
    SUMMARY = "summary"
    FULL = "full"

    @classmethod
    def parse(cls, value: Any) -> Optional["ReadingMode"]:
        if isinstance(value, ReadingMode):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class ExtractedContent:
    text: str
    source_url: str = ""
    title: str = ""

    def metadata(self) -> Dict[str, str]:
        return {"title": self.title, "url": self.source_url}


@dataclass(frozen=True)
class SpeechSettings:
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0
    voice_id: Optional[str] = None


@dataclass(frozen=True)
class SiteResolution:
    requested_query: str
    matched_url: Optional[str]
    final_url: str
    matched: bool


class IntentKind(str, Enum):
    STOP = "stop"
    PAUSE = "pause"
    RESUME = "resume"
    SET_MODE = "set_mode"
    ZOOM = "zoom"
    SCROLL = "scroll"
    OPEN_SITE = "open_site"
    IGNORE = "ignore"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class VoiceIntent:
    kind: IntentKind
    mode: Optional[ReadingMode] = None
    zoom_delta: int = 0
    zoom_reset: bool = False
    scroll_direction: str = ""
    scroll_amount: int = 0
    query: str = ""

    @classmethod
    def stop(cls) -> "VoiceIntent":
        return cls(IntentKind.STOP)

    @classmethod
    def pause(cls) -> "VoiceIntent":
        return cls(IntentKind.PAUSE)

    @classmethod
    def resume(cls) -> "VoiceIntent":
        return cls(IntentKind.RESUME)

    @classmethod
    def set_mode(cls, mode: ReadingMode) -> "VoiceIntent":
        return cls(IntentKind.SET_MODE, mode=mode)

    @classmethod
    def zoom(cls, delta: int = 0, reset: bool = False) -> "VoiceIntent":
        return cls(IntentKind.ZOOM, zoom_delta=0 if reset else delta, zoom_reset=reset)

    @classmethod
    def scroll(cls, direction: str, amount: int = 0) -> "VoiceIntent":
        # "top" and "bottom" are absolute edges and carry no amount.
        if direction in {"top", "bottom"}:
            amount = 0
        return cls(IntentKind.SCROLL, scroll_direction=direction, scroll_amount=amount)

    @classmethod
    def open_site(cls, query: str) -> "VoiceIntent":
        return cls(IntentKind.OPEN_SITE, query=query)

    @classmethod
    def ignore(cls) -> "VoiceIntent":
        return cls(IntentKind.IGNORE)

    @classmethod
    def unknown(cls) -> "VoiceIntent":
        return cls(IntentKind.UNKNOWN)
