import re
from typing import Dict, List, Optional

from .models import ReadingMode, VoiceIntent

# Everything the dispatcher says out loud. Hearing any of these back through
# an open microphone must not be treated as a command.
ANNOUNCEMENTS: Dict[str, str] = {
    "stop": "Stopped reading.",
    "pause": "Paused reading.",
    "resume": "Resumed reading.",
    "nothing_to_pause": "Nothing is being read right now.",
    "nothing_to_resume": "Reading is not paused.",
    "zoom_in": "Zoomed in {amount} percent.",
    "zoom_out": "Zoomed out {amount} percent.",
    "zoom_reset": "Zoom set back to default.",
    "scroll_edge": "Scrolled to the {edge}.",
    "scroll": "Scrolling {direction}.",
    "open_site": "Opening {name}.",
    "open_failed": "Sorry, I could not open that website.",
    "mode_summary": "Summarizing this page.",
    "mode_full": "Reading the full page.",
    "empty_page": "I could not find anything to read on this page.",
    "start_failed": "Sorry, something went wrong starting the reader.",
    "viewport_failed": "Sorry, I could not change the page view.",
    "unknown": (
        "Sorry, I did not catch that. You can say pause, resume, stop, summarize, "
        "read the full page, zoom in, scroll down, or open a website."
    ),
}

FEEDBACK_PHRASES: List[str] = [
    "stopped reading",
    "stopping reading",
    "paused reading",
    "pausing reading",
    "resumed reading",
    "resuming reading",
    "nothing is being read",
    "reading is not paused",
    "zoomed in",
    "zoomed out",
    "zooming in",
    "zooming out",
    "zoom set back to default",
    "scrolled to the top",
    "scrolled to the bottom",
    "scrolling up",
    "scrolling down",
    "scrolling left",
    "scrolling right",
    "could not open that website",
    "could not find anything to read",
    "something went wrong starting the reader",
    "could not change the page view",
    "sorry i did not catch that",
]

# These announcements are also plausible requests ("start reading the full
# page"), so they only count when they are the whole transcript.
FEEDBACK_SENTENCES: List[str] = [
    "summarizing this page",
    "reading the full page",
]
OPENING_FEEDBACK_PATTERN = re.compile(r"^opening\s+\S")

FRACTION_WORDS = {"half": 50, "quarter": 25}
NUMBER_WORDS = {"ten": 10, "twenty": 20, "thirty": 30}
DEFAULT_ZOOM_STEP = 10
DEFAULT_SCROLL_AMOUNT = 50

STOP_PATTERN = re.compile(r"\b(stop|cancel|halt)\b")
PAUSE_PATTERN = re.compile(r"\bpause\b")
RESUME_PATTERN = re.compile(r"\b(resume|continue)\b")
ZOOM_PATTERN = re.compile(r"\b(zoom|magnify|enlarge|shrink)\b|\bmake (?:it |the text |text )?(?:bigger|larger|smaller)\b")
ZOOM_RESET_PATTERN = re.compile(r"\b(reset (?:the )?zoom|zoom reset|default zoom|normal size|actual size)\b")
ZOOM_OUT_PATTERN = re.compile(r"\b(out|smaller|shrink)\b")
SCROLL_PATTERN = re.compile(
    r"\bscroll\b|\b(?:go|jump|move|back) (?:up |down )?to (?:the )?(?:top|bottom)\b|\bpage (?:up|down)\b"
)
OPEN_SITE_PATTERN = re.compile(r"\b(?:open|go to|visit|launch)\s+(.+)")
SUMMARY_PATTERN = re.compile(r"\b(describe|summary|summarize|summarise|overview|short version)\b")
FULL_PATTERN = re.compile(r"\b(read|full|entire|article|out loud)\b")
AMOUNT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:%|percent\b|per cent\b)")


def normalize_transcript(text: str) -> str:
    lowered = (text or "").strip().lower()
    lowered = re.sub(r"[^a-z0-9%'\s]+", " ", lowered)
    return re.sub(r"\s+", " ", lowered).strip()


def _contains_phrase(text: str, phrase: str) -> bool:
    escaped = re.escape(phrase.strip())
    escaped = escaped.replace(r"\ ", r"\s+")
    return re.search(rf"(?<!\w){escaped}(?!\w)", text) is not None


def is_self_feedback(text: str) -> bool:
    if text in FEEDBACK_SENTENCES or OPENING_FEEDBACK_PATTERN.match(text):
        return True
    return any(_contains_phrase(text, phrase) for phrase in FEEDBACK_PHRASES)


def extract_amount(text: str, default: int) -> int:
    match = AMOUNT_PATTERN.search(text)
    if match:
        value = int(round(float(match.group(1))))
        if value > 0:
            return value
    for word, value in FRACTION_WORDS.items():
        if re.search(rf"\b{word}\b", text):
            return value
    for word, value in NUMBER_WORDS.items():
        if re.search(rf"\b{word}\b", text):
            return value
    return default


def _zoom_intent(text: str) -> VoiceIntent:
    if ZOOM_RESET_PATTERN.search(text):
        return VoiceIntent.zoom(reset=True)
    amount = extract_amount(text, DEFAULT_ZOOM_STEP)
    if ZOOM_OUT_PATTERN.search(text):
        amount = -amount
    return VoiceIntent.zoom(delta=amount)


def _scroll_intent(text: str) -> VoiceIntent:
    if re.search(r"\btop\b", text):
        return VoiceIntent.scroll("top")
    if re.search(r"\bbottom\b", text):
        return VoiceIntent.scroll("bottom")
    direction = "down"
    for candidate in ("up", "down", "left", "right"):
        if re.search(rf"\b{candidate}\b", text):
            direction = candidate
            break
    return VoiceIntent.scroll(direction, extract_amount(text, DEFAULT_SCROLL_AMOUNT))


def extract_site_query(text: str) -> Optional[str]:
    match = OPEN_SITE_PATTERN.search(text)
    if not match:
        return None
    remainder = match.group(1)
    remainder = re.sub(r"^the\s+", "", remainder.strip())
    remainder = re.sub(r"\b(?:website|site)\b", " ", remainder)
    remainder = re.sub(r"\s+", " ", remainder).strip(" .!?,")
    return remainder or None


def interpret(transcript: str) -> VoiceIntent:
    text = normalize_transcript(transcript)
    if not text:
        return VoiceIntent.unknown()

    if is_self_feedback(text):
        return VoiceIntent.ignore()
    if STOP_PATTERN.search(text):
        return VoiceIntent.stop()
    if PAUSE_PATTERN.search(text):
        return VoiceIntent.pause()
    if RESUME_PATTERN.search(text):
        return VoiceIntent.resume()
    if ZOOM_PATTERN.search(text):
        return _zoom_intent(text)
    if SCROLL_PATTERN.search(text):
        return _scroll_intent(text)

    query = extract_site_query(text)
    if query:
        return VoiceIntent.open_site(query)

    if SUMMARY_PATTERN.search(text):
        return VoiceIntent.set_mode(ReadingMode.SUMMARY)
    if FULL_PATTERN.search(text):
        return VoiceIntent.set_mode(ReadingMode.FULL)
    return VoiceIntent.unknown()
