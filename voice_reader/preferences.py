import json
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from .config import DEFAULT_AI_BASE_URL, DEFAULT_AI_MODEL, PREFERENCES_PATH
from .logs import log_line
from .models import ReadingMode, SpeechSettings

SPEECH_RATE = "speechRate"
SPEECH_PITCH = "speechPitch"
SPEECH_VOICE = "speechVoice"
SPEECH_VOLUME = "speechVolume"
AI_API_KEY = "aiApiKey"
AI_MODEL = "aiModel"
AI_BASE_URL = "aiBaseUrl"
READING_MODE = "readingMode"

DEFAULT_READING_MODE = ReadingMode.SUMMARY


@dataclass(frozen=True)
class AIConfig:
    api_key: str = ""
    model: str = DEFAULT_AI_MODEL
    base_url: str = DEFAULT_AI_BASE_URL

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)


class PreferenceStore:
    """Key/value preferences persisted as one JSON object."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else PREFERENCES_PATH
        self._lock = threading.Lock()
        self._values: Optional[Dict[str, Any]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, Any]:
        if self._values is not None:
            return self._values
        values: Dict[str, Any] = {}
        if self._path.exists():
            try:
                payload = json.loads(self._path.read_text(encoding="utf-8"))
                if isinstance(payload, dict):
                    values = payload
                else:
                    log_line(f"WARN: Ignoring preferences in {self._path}: expected a JSON object.")
            except (OSError, ValueError) as exc:
                log_line(f"WARN: Could not read preferences from {self._path} ({exc}).")
        self._values = values
        return values

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            value = self._load().get(key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        self.update({key: value})

    def update(self, items: Dict[str, Any]) -> None:
        with self._lock:
            values = dict(self._load())
            values.update(items)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(values, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp_path, self._path)
            self._values = values


def _to_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def load_speech_settings(store: PreferenceStore) -> SpeechSettings:
    defaults = SpeechSettings()
    voice = store.get(SPEECH_VOICE)
    return SpeechSettings(
        rate=_to_float(store.get(SPEECH_RATE), defaults.rate),
        pitch=_to_float(store.get(SPEECH_PITCH), defaults.pitch),
        volume=_to_float(store.get(SPEECH_VOLUME), defaults.volume),
        voice_id=str(voice) if voice else None,
    )


def load_ai_config(store: PreferenceStore) -> AIConfig:
    api_key = str(store.get(AI_API_KEY, "") or os.environ.get("OPENAI_API_KEY", "")).strip()
    model = str(store.get(AI_MODEL, "") or "").strip() or DEFAULT_AI_MODEL
    base_url = str(store.get(AI_BASE_URL, "") or "").strip() or DEFAULT_AI_BASE_URL
    return AIConfig(api_key=api_key, model=model, base_url=base_url.rstrip("/"))


def page_origin(url: str) -> str:
    parsed = urlparse(url or "")
    if not parsed.scheme or not parsed.netloc:
        return ""
    return f"{parsed.scheme}://{parsed.netloc}".lower()


def _origin_key(origin: str) -> str:
    return f"{READING_MODE}:{origin}"


def get_reading_mode(store: PreferenceStore, url: str = "") -> ReadingMode:
    origin = page_origin(url)
    if origin:
        mode = ReadingMode.parse(store.get(_origin_key(origin)))
        if mode is not None:
            return mode
    return ReadingMode.parse(store.get(READING_MODE)) or DEFAULT_READING_MODE


def set_reading_mode(store: PreferenceStore, mode: ReadingMode, url: str = "") -> None:
    origin = page_origin(url)
    key = _origin_key(origin) if origin else READING_MODE
    store.set(key, mode.value)
