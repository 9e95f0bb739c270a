from typing import List, Optional, Tuple

import speech_recognition as sr

from .config import (
    LIST_ALL_MICROPHONES,
    LISTEN_TIMEOUT,
    MIC_INDEX_ENV,
    NON_SPEAKING_DURATION,
    PAUSE_THRESHOLD,
    PHRASE_THRESHOLD,
    PHRASE_TIME_LIMIT,
)
from .logs import log_line


def create_recognizer() -> sr.Recognizer:
    recognizer = sr.Recognizer()
    recognizer.pause_threshold = max(0.3, PAUSE_THRESHOLD)
    recognizer.non_speaking_duration = max(0.1, NON_SPEAKING_DURATION)
    recognizer.phrase_threshold = max(0.1, PHRASE_THRESHOLD)
    return recognizer


def create_microphone() -> Tuple[sr.Microphone, Optional[int], str, List[str]]:
    names = sr.Microphone.list_microphone_names()
    if not names:
        raise RuntimeError("No microphone devices found.")

    selected_index: Optional[int] = None
    if MIC_INDEX_ENV:
        try:
            selected_index = int(MIC_INDEX_ENV)
        except ValueError:
            log_line(f"WARN: Invalid VOICE_READER_MIC_INDEX='{MIC_INDEX_ENV}'. Using system default.")

    if selected_index is not None and not 0 <= selected_index < len(names):
        log_line(
            f"WARN: VOICE_READER_MIC_INDEX {selected_index} is out of range (0-{len(names) - 1}). "
            "Using system default."
        )
        selected_index = None

    if selected_index is None:
        selected_name = "System default microphone"
    else:
        selected_name = f"{selected_index}: {names[selected_index]}"

    log_line("Available microphones:")
    display_count = len(names) if LIST_ALL_MICROPHONES else min(15, len(names))
    for idx, name in enumerate(names[:display_count]):
        marker = "*" if selected_index == idx else " "
        log_line(f"  {marker} [{idx}] {name}")
    if display_count < len(names):
        log_line(f"  ... {len(names) - display_count} more devices. Set VOICE_READER_LIST_ALL_MICS=1 to list all.")

    return sr.Microphone(device_index=selected_index), selected_index, selected_name, names


def calibrate_microphone(recognizer: sr.Recognizer, microphone: sr.Microphone, duration: float) -> None:
    with microphone as source:
        recognizer.adjust_for_ambient_noise(source, duration=duration)


def capture_audio(recognizer: sr.Recognizer, microphone: sr.Microphone) -> sr.AudioData:
    with microphone as source:
        return recognizer.listen(source, timeout=LISTEN_TIMEOUT, phrase_time_limit=PHRASE_TIME_LIMIT)


def transcribe_audio(recognizer: sr.Recognizer, audio: sr.AudioData) -> str:
    # Only final transcripts reach the interpreter; partial results are never used.
    return recognizer.recognize_google(audio).strip()
