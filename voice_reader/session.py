"""
Reading session state machine.

One ReadingSession owns the status of the single reading attempt in a page
context. Status changes are pushed to one registered listener and can be
polled from anywhere through get_status()/snapshot().

Every start bumps a generation counter. Engine events and summaries are
tagged with the generation that started them and are dropped once the
session has moved on, so a stop during summarization or a late "end" from a
cancelled utterance never resurrects an old session.
"""

import asyncio
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from .errors import EmptyContent
from .logs import describe_error, log_line
from .models import TERMINAL_STATUSES, ReadingMode, ReadingStatus, SpeechSettings

StatusListener = Callable[[ReadingStatus], None]


class UtteranceHandle(Protocol):
    @property
    def paused(self) -> bool: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def cancel(self) -> None: ...


class Speaker(Protocol):
    def speak(self, text: str, settings: SpeechSettings, listener: Any = None) -> UtteranceHandle: ...


class Summarizer(Protocol):
    def summarize(self, content: str, metadata: Optional[Dict[str, Any]] = None) -> str: ...


@dataclass
class Session:
    status: ReadingStatus = ReadingStatus.IDLE
    mode: ReadingMode = ReadingMode.FULL
    raw_text: str = ""
    spoken_text: str = ""
    utterance: Optional[UtteranceHandle] = None
    generation: int = 0


class ReadingSession:
    def __init__(
        self,
        speaker: Speaker,
        summarizer: Optional[Summarizer] = None,
        settings_loader: Optional[Callable[[], SpeechSettings]] = None,
    ) -> None:
        self._speaker = speaker
        self._summarizer = summarizer
        self._settings_loader = settings_loader or SpeechSettings
        self._lock = threading.RLock()
        self._session = Session()
        self._listener: Optional[StatusListener] = None

    def set_status_listener(self, listener: Optional[StatusListener]) -> None:
        with self._lock:
            self._listener = listener

    def _set_status(self, status: ReadingStatus) -> None:
        with self._lock:
            if self._session.status == status:
                return
            self._session.status = status
            listener = self._listener
            if listener is not None:
                try:
                    listener(status)
                except Exception as exc:
                    log_line(f"WARN: status listener failed ({describe_error(exc)}).")

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return self._session.generation == generation

    def _cancel_utterance(self) -> None:
        with self._lock:
            utterance = self._session.utterance
            self._session.utterance = None
        if utterance is not None:
            try:
                utterance.cancel()
            except Exception as exc:
                log_line(f"WARN: could not cancel speech ({describe_error(exc)}).")

    def _begin(self, text: str, mode: ReadingMode, expected_generation: Optional[int] = None) -> Optional[int]:
        with self._lock:
            if expected_generation is not None and self._session.generation != expected_generation:
                return None
            utterance = self._session.utterance
            generation = self._session.generation + 1
            self._session = Session(
                status=self._session.status,
                mode=mode,
                raw_text=text or "",
                generation=generation,
            )
            self._set_status(ReadingStatus.IDLE)
        if utterance is not None:
            try:
                utterance.cancel()
            except Exception as exc:
                log_line(f"WARN: could not cancel speech ({describe_error(exc)}).")
        return generation

    def begin_request(self) -> int:
        """Retires the current reading and returns a token for the next one.

        Work that has to happen before start_reading() (loading the page)
        passes the token back as expected_generation; a stop or a newer
        request in between makes that start a no-op.
        """
        generation = self._begin("", self.current_mode())
        assert generation is not None
        return generation

    def is_current(self, generation: int) -> bool:
        return self._is_current(generation)

    def fail_empty(self, generation: int) -> None:
        with self._lock:
            if self._session.generation == generation:
                self._set_status(ReadingStatus.ERROR)
        raise EmptyContent()

    async def start_reading(
        self,
        text: str,
        mode: ReadingMode = ReadingMode.FULL,
        metadata: Optional[Dict[str, Any]] = None,
        expected_generation: Optional[int] = None,
    ) -> None:
        generation = self._begin(text, mode, expected_generation)
        if generation is None:
            log_line("  Discarded a reading request that was stopped or replaced.")
            return
        if not text or not text.strip():
            self.fail_empty(generation)

        to_speak = text
        if mode is ReadingMode.SUMMARY:
            self._set_status(ReadingStatus.SUMMARIZING)
            summary = await self._summarize(text, metadata)
            if not self._is_current(generation):
                log_line("  Discarded a summary for a reading that was stopped or replaced.")
                return
            if summary and summary.strip():
                to_speak = summary

        if not to_speak or not to_speak.strip():
            self.fail_empty(generation)
        self._speak(generation, to_speak)

    async def _summarize(self, text: str, metadata: Optional[Dict[str, Any]]) -> Optional[str]:
        if self._summarizer is None:
            return None
        try:
            return await asyncio.to_thread(self._summarizer.summarize, text, metadata)
        except Exception as exc:
            log_line(f"WARN: Summary failed ({describe_error(exc)}); reading the full page instead.")
            return None

    def _speak(self, generation: int, text: str) -> None:
        settings = self._settings_loader()

        def on_engine_event(handle: Any, event: str, error: Optional[BaseException] = None) -> None:
            self._on_engine_event(generation, event, error)

        with self._lock:
            if self._session.generation != generation:
                return
            self._session.spoken_text = text
            # The engine may report events before speak() returns; they are
            # matched by generation, not by handle.
            utterance = self._speaker.speak(text, settings, on_engine_event)
            if self._session.status not in TERMINAL_STATUSES:
                self._session.utterance = utterance

    def _on_engine_event(self, generation: int, event: str, error: Optional[BaseException] = None) -> None:
        with self._lock:
            if self._session.generation != generation:
                return
            status = self._session.status
            if event == "start":
                if status in (ReadingStatus.IDLE, ReadingStatus.SUMMARIZING):
                    self._set_status(ReadingStatus.READING)
            elif event == "pause":
                if status == ReadingStatus.READING:
                    self._set_status(ReadingStatus.PAUSED)
            elif event == "resume":
                if status == ReadingStatus.PAUSED:
                    self._set_status(ReadingStatus.READING)
            elif event == "end":
                self._session.utterance = None
                if status not in TERMINAL_STATUSES:
                    self._set_status(ReadingStatus.COMPLETE)
            elif event == "error":
                self._session.utterance = None
                log_line(f"ERROR: Speech engine failed ({describe_error(error) if error else 'unknown error'}).")
                if status not in TERMINAL_STATUSES:
                    self._set_status(ReadingStatus.ERROR)
            else:
                log_line(f"WARN: Ignoring unknown speech event '{event}'.")

    def pause_reading(self) -> None:
        with self._lock:
            if self._session.status != ReadingStatus.READING:
                return
            utterance = self._session.utterance
        if utterance is not None:
            utterance.pause()

    def resume_reading(self) -> None:
        with self._lock:
            utterance = self._session.utterance
        if utterance is None or not utterance.paused:
            return
        utterance.resume()

    def stop_reading(self) -> None:
        with self._lock:
            # A stop also retires any summary still in flight.
            self._session.generation += 1
        self._cancel_utterance()
        self._set_status(ReadingStatus.STOPPED)

    def get_status(self) -> ReadingStatus:
        with self._lock:
            return self._session.status

    def is_reading(self) -> bool:
        return self.get_status() == ReadingStatus.READING

    def is_paused(self) -> bool:
        return self.get_status() == ReadingStatus.PAUSED

    def current_mode(self) -> ReadingMode:
        with self._lock:
            return self._session.mode

    def spoken_text(self) -> str:
        with self._lock:
            return self._session.spoken_text

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            status = self._session.status
        return {
            "status": status.value,
            "isReading": status == ReadingStatus.READING,
            "isPaused": status == ReadingStatus.PAUSED,
        }
