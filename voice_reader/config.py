import os
from pathlib import Path

TTS_RATE = int(os.environ.get("VOICE_READER_TTS_RATE", "180"))
LISTEN_TIMEOUT = int(os.environ.get("VOICE_READER_LISTEN_TIMEOUT", "10"))
PHRASE_TIME_LIMIT = int(os.environ.get("VOICE_READER_PHRASE_LIMIT", "15"))
PAUSE_THRESHOLD = float(os.environ.get("VOICE_READER_PAUSE_THRESHOLD", "1.2"))
NON_SPEAKING_DURATION = float(os.environ.get("VOICE_READER_NON_SPEAKING_DURATION", "0.5"))
PHRASE_THRESHOLD = float(os.environ.get("VOICE_READER_PHRASE_THRESHOLD", "0.3"))
MIC_INDEX_ENV = os.environ.get("VOICE_READER_MIC_INDEX", "").strip()
LIST_ALL_MICROPHONES = os.environ.get("VOICE_READER_LIST_ALL_MICS", "0").strip() == "1"
MINI_UI_ENABLED = os.environ.get("VOICE_READER_MINI_UI", "1").strip() != "0"
STATUS_POLL_SECONDS = float(os.environ.get("VOICE_READER_STATUS_POLL_SECONDS", "1.0"))
ECHO_GUARD_ENABLED = os.environ.get("VOICE_READER_ECHO_GUARD", "1").strip() != "0"
ECHO_GUARD_SECONDS = float(os.environ.get("VOICE_READER_ECHO_GUARD_SECONDS", "4"))
BROWSER_ENGINE = os.environ.get("VOICE_READER_BROWSER", "chromium").strip().lower()
BROWSER_EXECUTABLE = os.environ.get("VOICE_READER_EXECUTABLE_PATH", "").strip()
BROWSER_COMMAND_TIMEOUT = int(os.environ.get("VOICE_READER_BROWSER_TIMEOUT", "60"))
OPEN_IN_NEW_TAB = os.environ.get("VOICE_READER_OPEN_IN_NEW_TAB", "0").strip() == "1"
AI_TIMEOUT_SECONDS = int(os.environ.get("VOICE_READER_AI_TIMEOUT", "30"))
SEARCH_URL = os.environ.get("VOICE_READER_SEARCH_URL", "https://www.google.com/search?q=").strip()
DEFAULT_START_URL = os.environ.get("VOICE_READER_START_URL", "https://en.wikipedia.org/wiki/Special:Random").strip()

DATA_DIR = Path(os.environ.get("VOICE_READER_DATA_DIR", "").strip() or (Path.home() / ".voice-reader"))
PREFERENCES_PATH = Path(
    os.environ.get("VOICE_READER_PREFS_PATH", "").strip() or (DATA_DIR / "preferences.json")
)

DEFAULT_AI_MODEL = "gpt-4o-mini"
DEFAULT_AI_BASE_URL = "https://api.openai.com/v1"
