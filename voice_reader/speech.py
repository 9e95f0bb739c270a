import queue
import re
import threading
import time
from difflib import SequenceMatcher
from typing import Any, Callable, List, Optional, Tuple

import pyttsx3

from .config import ECHO_GUARD_ENABLED, ECHO_GUARD_SECONDS, TTS_RATE
from .errors import EngineFailure
from .logs import describe_error, log_line
from .models import SpeechSettings

# Listener signature: (utterance, event_name, error). Events are
# "start", "pause", "resume", "end" and "error".
EngineListener = Callable[["Utterance", str, Optional[BaseException]], None]

MAX_CHUNK_CHARS = 400


def split_into_chunks(text: str, max_chars: int = MAX_CHUNK_CHARS) -> List[str]:
    chunks: List[str] = []
    for paragraph in re.split(r"\n\s*\n", text or ""):
        current = ""
        for sentence in re.split(r"(?<=[.!?])\s+", paragraph.strip()):
            sentence = sentence.strip()
            if not sentence:
                continue
            if current and len(current) + len(sentence) + 1 > max_chars:
                chunks.append(current)
                current = sentence
            else:
                current = f"{current} {sentence}".strip()
        if current:
            chunks.append(current)
    return chunks


class Utterance:
    """Handle to one reading request queued on the speech worker."""

    def __init__(
        self,
        engine: "SpeechEngine",
        text: str,
        settings: SpeechSettings,
        listener: Optional[EngineListener],
    ) -> None:
        self.text = text
        self.settings = settings
        self.chunks = split_into_chunks(text) or [text]
        self.position = 0
        self._engine = engine
        self._listener = listener
        self._cancel_event = threading.Event()
        self._pause_requested = threading.Event()
        self._resume_event = threading.Event()
        self._paused = threading.Event()
        self._speaking = threading.Event()
        self._finished = threading.Event()

    @property
    def speaking(self) -> bool:
        return self._speaking.is_set() and not self._finished.is_set()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def pause(self) -> None:
        if self.finished or self.cancelled or self.paused:
            return
        self._resume_event.clear()
        self._pause_requested.set()
        self._engine.interrupt()

    def resume(self) -> None:
        if not self.paused:
            return
        self._pause_requested.clear()
        self._resume_event.set()

    def cancel(self) -> None:
        if self.finished:
            return
        self._cancel_event.set()
        self._resume_event.set()
        self._engine.interrupt()

    def emit(self, event: str, error: Optional[BaseException] = None) -> None:
        if self._listener is None:
            return
        try:
            self._listener(self, event, error)
        except Exception as exc:
            log_line(f"WARN: speech listener failed on '{event}' ({describe_error(exc)}).")


class SpeechEngine:
    """pyttsx3 wrapped in a single worker thread.

    Long text is spoken chunk by chunk so a pause can interrupt the current
    chunk and a resume can repeat it from the start.
    """

    def __init__(self, base_rate: int = TTS_RATE) -> None:
        self._base_rate = base_rate
        self._lock = threading.Lock()
        self._engine: Optional[Any] = None
        self._engine_error: Optional[BaseException] = None
        self._queue: "queue.Queue[Tuple[str, Any]]" = queue.Queue()
        self._shutdown_event = threading.Event()
        self._worker_thread: Optional[threading.Thread] = None
        self._active: Optional[Utterance] = None
        self._busy = threading.Event()
        self._last_text = ""
        self._last_started_at = 0.0
        self._last_ended_at = 0.0

    def _init_engine(self) -> Optional[Any]:
        if self._engine is not None or self._engine_error is not None:
            return self._engine
        try:
            engine = pyttsx3.init()
            engine.setProperty("rate", self._base_rate)
            self._engine = engine
        except Exception as exc:
            self._engine_error = exc
            log_line(f"WARN: pyttsx3 init failed ({describe_error(exc)}). Speech output is unavailable.")
        return self._engine

    def start(self) -> None:
        if self._worker_thread is not None and self._worker_thread.is_alive():
            return
        self._shutdown_event.clear()
        self._worker_thread = threading.Thread(target=self._worker_loop, name="voice-reader-tts", daemon=True)
        self._worker_thread.start()

    def shutdown(self) -> None:
        self._shutdown_event.set()
        with self._lock:
            active = self._active
        if active is not None:
            active.cancel()
        self._queue.put(("quit", None))
        if self._worker_thread is not None:
            self._worker_thread.join(timeout=1.5)

    def speak(self, text: str, settings: SpeechSettings, listener: Optional[EngineListener] = None) -> Utterance:
        self.start()
        utterance = Utterance(self, text, settings, listener)
        self._queue.put(("utterance", utterance))
        return utterance

    def announce(self, text: str) -> bool:
        """Speak a short confirmation unless a reading is in progress."""
        if self.is_speaking():
            return False
        self.start()
        self._queue.put(("announce", text))
        return True

    def is_speaking(self) -> bool:
        return self._busy.is_set()

    def interrupt(self) -> None:
        with self._lock:
            engine = self._engine
        if engine is None:
            return
        try:
            engine.stop()
        except Exception:
            pass

    def _apply_settings(self, engine: Any, settings: SpeechSettings) -> None:
        engine.setProperty("rate", max(40, int(self._base_rate * settings.rate)))
        engine.setProperty("volume", max(0.0, min(1.0, settings.volume)))
        if settings.voice_id:
            try:
                known = {voice.id for voice in engine.getProperty("voices")}
                if settings.voice_id in known:
                    engine.setProperty("voice", settings.voice_id)
                else:
                    log_line(f"WARN: Voice '{settings.voice_id}' is not installed; using the default voice.")
            except Exception as exc:
                log_line(f"WARN: Could not select voice ({describe_error(exc)}).")

    def _say(self, engine: Any, text: str) -> None:
        with self._lock:
            self._last_text = text
            self._last_started_at = time.time()
        try:
            engine.say(text)
            engine.runAndWait()
        finally:
            with self._lock:
                self._last_ended_at = time.time()

    def _worker_loop(self) -> None:
        while not self._shutdown_event.is_set():
            try:
                kind, item = self._queue.get(timeout=0.15)
            except queue.Empty:
                continue
            try:
                if kind == "utterance":
                    self._run_utterance(item)
                elif kind == "announce":
                    self._run_announcement(item)
            finally:
                self._queue.task_done()

    def _run_announcement(self, text: str) -> None:
        engine = self._init_engine()
        if engine is None:
            return
        self._busy.set()
        try:
            self._apply_settings(engine, SpeechSettings())
            self._say(engine, text)
        except Exception as exc:
            log_line(f"WARN: announcement failed ({describe_error(exc)}).")
        finally:
            self._busy.clear()

    def _wait_while_paused(self, utterance: Utterance) -> bool:
        utterance._paused.set()
        utterance.emit("pause")
        while not utterance._resume_event.wait(timeout=0.1):
            if self._shutdown_event.is_set():
                utterance._cancel_event.set()
                break
        utterance._paused.clear()
        if utterance.cancelled:
            return False
        utterance.emit("resume")
        return True

    def _run_utterance(self, utterance: Utterance) -> None:
        if utterance.cancelled:
            utterance._finished.set()
            return
        engine = self._init_engine()
        if engine is None:
            utterance._finished.set()
            utterance.emit("error", EngineFailure(describe_error(self._engine_error or RuntimeError("no engine"))))
            return

        with self._lock:
            self._active = utterance
        self._busy.set()
        utterance._speaking.set()
        try:
            self._apply_settings(engine, utterance.settings)
            utterance.emit("start")
            while utterance.position < len(utterance.chunks):
                if utterance.cancelled:
                    return
                if utterance._pause_requested.is_set():
                    if not self._wait_while_paused(utterance):
                        return
                    continue
                self._say(engine, utterance.chunks[utterance.position])
                if utterance.cancelled:
                    return
                if utterance._pause_requested.is_set():
                    # Interrupted mid-chunk; speak it again after resume.
                    continue
                utterance.position += 1
            utterance._finished.set()
            utterance.emit("end")
        except Exception as exc:
            log_line(f"WARN: pyttsx3 speak failed ({describe_error(exc)}).")
            utterance._finished.set()
            utterance.emit("error", EngineFailure(describe_error(exc)))
        finally:
            utterance._finished.set()
            utterance._speaking.clear()
            with self._lock:
                if self._active is utterance:
                    self._active = None
            self._busy.clear()

    def is_probable_echo(self, user_text: str) -> bool:
        if not ECHO_GUARD_ENABLED:
            return False
        normalized_user = normalize_echo_text(user_text)
        if len(normalized_user) < 4:
            return False
        with self._lock:
            spoken = self._last_text
            started_at = self._last_started_at
            ended_at = self._last_ended_at
        if not spoken:
            return False
        now = time.time()
        if self.is_speaking():
            if now - started_at > ECHO_GUARD_SECONDS * 6:
                return False
        else:
            if ended_at <= 0:
                return False
            if now - ended_at > ECHO_GUARD_SECONDS:
                return False
        normalized_spoken = normalize_echo_text(spoken)
        if len(normalized_spoken) < 4:
            return False
        if len(normalized_user) >= 6 and normalized_user in normalized_spoken:
            return True
        similarity = SequenceMatcher(None, normalized_user, normalized_spoken).ratio()
        return similarity >= 0.84


def normalize_echo_text(text: str) -> str:
    lowered = text.strip().lower()
    lowered = re.sub(r"[^a-z0-9\s]+", " ", lowered)
    lowered = re.sub(r"\s+", " ", lowered).strip()
    return lowered
