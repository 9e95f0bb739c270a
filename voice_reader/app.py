"""
Voice Reader.

Architecture:
  Browser page -> Content Extractor -> (AI summary) -> Speech Session -> Speaker
  Microphone -> Speech Recognition -> Intent Interpreter -> Command Dispatcher
  Control panel buttons -> Message Handler -> Speech Session
"""

import asyncio
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import speech_recognition as sr

from .browser import BrowserController
from .config import DEFAULT_START_URL, MINI_UI_ENABLED
from .dispatcher import CommandDispatcher, intent_summary
from .errors import BrowserCommandError
from .intents import interpret
from .logs import describe_error, log_debug, log_line, set_ui_logger
from .messages import GET_STATUS, MessageHandler
from .models import ReadingStatus
from .preferences import PreferenceStore, load_ai_config, load_speech_settings
from .reader import PageReader
from .recognition import calibrate_microphone, capture_audio, create_microphone, create_recognizer, transcribe_audio
from .session import ReadingSession
from .sites import SiteResolver, normalize_site_url
from .speech import SpeechEngine
from .summarizer import SummarizationGateway
from .ui import MiniControlUI

PANEL_POLL_SECONDS = 0.1


@dataclass
class ReaderServices:
    preferences: PreferenceStore
    engine: SpeechEngine
    browser: BrowserController
    session: ReadingSession
    reader: PageReader
    dispatcher: CommandDispatcher
    messages: MessageHandler


def build_services(
    preferences: PreferenceStore,
    engine: SpeechEngine,
    browser: BrowserController,
    ui: Optional[MiniControlUI] = None,
) -> ReaderServices:
    def announce(text: str) -> None:
        log_line(f"  Say: {text}")
        if ui:
            ui.set_status(text)
        engine.announce(text)

    def on_status(status: ReadingStatus) -> None:
        log_line(f"  Reader status: {status.value}")
        if ui:
            ui.push_reading_status(session.snapshot())

    summarizer = SummarizationGateway(lambda: load_ai_config(preferences))
    resolver = SiteResolver(lambda: load_ai_config(preferences))
    session = ReadingSession(engine, summarizer, lambda: load_speech_settings(preferences))
    session.set_status_listener(on_status)
    reader = PageReader(session, browser, preferences, announce)
    dispatcher = CommandDispatcher(reader, resolver, browser, announce)
    messages = MessageHandler(reader, summarizer, resolver, browser)
    return ReaderServices(preferences, engine, browser, session, reader, dispatcher, messages)


class VoiceInput:
    def __init__(self) -> None:
        self.recognizer = create_recognizer()
        self.microphone, self.selected_index, self.selected_name, self.names = create_microphone()

    async def calibrate(self, duration: float) -> None:
        await asyncio.to_thread(calibrate_microphone, self.recognizer, self.microphone, duration)

    async def select(self, index: Optional[int]) -> bool:
        if index is None:
            self.microphone = sr.Microphone(device_index=None)
            self.selected_index = None
            self.selected_name = "System default microphone"
        elif isinstance(index, int) and 0 <= index < len(self.names):
            self.microphone = sr.Microphone(device_index=index)
            self.selected_index = index
            self.selected_name = f"{index}: {self.names[index]}"
        else:
            return False
        await self.calibrate(0.8)
        return True

    async def listen(self) -> str:
        audio = await asyncio.to_thread(capture_audio, self.recognizer, self.microphone)
        return (await asyncio.to_thread(transcribe_audio, self.recognizer, audio)).strip()


async def handle_utterance(services: ReaderServices, user_text: str) -> str:
    intent = interpret(user_text)
    log_line(f"  Intent: {intent_summary(intent)}")
    return await services.dispatcher.dispatch(intent)


async def handle_panel_event(
    services: ReaderServices,
    voice: VoiceInput,
    ui: MiniControlUI,
    event: Dict[str, Any],
) -> bool:
    """Handles one panel event. Returns False when the panel asked to quit."""
    event_type = str(event.get("type", ""))
    if event_type == "quit":
        return False
    if event_type == "control":
        message = event.get("message") or {}
        response = await services.messages.handle(message)
        if message.get("type") == GET_STATUS:
            ui.push_reading_status(response)
        elif response.get("error"):
            log_line(f"WARN: {message.get('type')} -> {response['error']}")
            ui.set_status(str(response["error"]))
    elif event_type == "utterance":
        user_text = str(event.get("text", "")).strip()
        if user_text:
            log_line(f'  Typed: "{user_text}"')
            await handle_utterance(services, user_text)
    elif event_type == "set_mic":
        if await voice.select(event.get("index")):
            msg = f"Using microphone: {voice.selected_name}"
            log_line(msg)
            ui.set_status(msg)
        else:
            services.engine.announce("That microphone index is not valid.")
    return True


async def panel_loop(services: ReaderServices, voice: VoiceInput, ui: MiniControlUI, stop_event: asyncio.Event) -> None:
    while not stop_event.is_set():
        event = ui.poll_event()
        while event is not None:
            try:
                keep_running = await handle_panel_event(services, voice, ui, event)
            except Exception as exc:
                log_line(f"  Panel event failed: {describe_error(exc)}")
                log_debug(exc)
                keep_running = True
            if not keep_running:
                stop_event.set()
                return
            event = ui.poll_event()
        await asyncio.sleep(PANEL_POLL_SECONDS)


async def voice_loop(
    services: ReaderServices,
    voice: VoiceInput,
    ui: Optional[MiniControlUI],
    stop_event: asyncio.Event,
) -> None:
    unknown_streak = 0
    while not stop_event.is_set():
        log_line("\nListening...")
        try:
            if ui:
                ui.set_status("Listening...")
            user_text = await voice.listen()
            if stop_event.is_set():
                break
            if services.engine.is_probable_echo(user_text):
                log_line("  Ignored speaker echo.")
                continue
            log_line(f'  Heard: "{user_text}"')
            if not user_text:
                continue
            unknown_streak = 0
            await handle_utterance(services, user_text)
        except sr.WaitTimeoutError:
            continue
        except sr.UnknownValueError:
            unknown_streak += 1
            log_line("  Could not understand speech; listening again.")
            if unknown_streak in {3, 6}:
                services.engine.announce(
                    "I heard audio but could not understand words. "
                    "Try speaking closer, or pick a different microphone."
                )
        except sr.RequestError as exc:
            log_line(f"ERROR: Speech recognition error ({exc}).")
            services.engine.announce("Speech recognition is not available right now.")
            if ui:
                ui.set_status("Speech recognition error")
            await asyncio.sleep(2.0)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log_line(f"  Unexpected error: {describe_error(exc)}")
            log_debug(exc)
            services.engine.announce("Something went wrong. Please try again.")
            if ui:
                ui.set_status("Error")


def resolve_initial_url(argv: List[str]) -> str:
    if len(argv) > 1:
        url = normalize_site_url(argv[1])
        if url:
            return url
        log_line(f"WARN: '{argv[1]}' is not a web address; opening {DEFAULT_START_URL} instead.")
    return DEFAULT_START_URL


async def main(argv: Optional[List[str]] = None) -> None:
    argv = sys.argv if argv is None else argv
    voice = VoiceInput()
    ui: Optional[MiniControlUI] = None
    if MINI_UI_ENABLED:
        ui = MiniControlUI(voice.names, voice.selected_index)
        ui.start()
        ui.set_status("Starting...")
        set_ui_logger(ui)

    preferences = PreferenceStore()
    engine = SpeechEngine()
    engine.start()
    browser = BrowserController()
    services = build_services(preferences, engine, browser, ui)

    log_line(f"Preferences: {preferences.path}")
    log_line("Browser mode: headed (always).")
    if voice.selected_index is None:
        log_line(f"Using microphone: {voice.selected_name}")
    else:
        log_line(f"Using microphone index {voice.selected_index}: {voice.selected_name}")
    await voice.calibrate(1.5)

    initial_url = resolve_initial_url(argv)
    try:
        await asyncio.to_thread(browser.navigate, initial_url)
    except BrowserCommandError as exc:
        log_line(f"ERROR: Browser launch failed ({exc}).")
        if ui:
            ui.set_status("Browser launch failed")
            ui.stop()
        set_ui_logger(None)
        engine.shutdown()
        return

    log_line("Ready. Say 'summarize', 'read the full page', 'pause', 'stop' or 'open' a website.")
    if ui:
        ui.set_status("Ready")
        ui.push_reading_status(services.session.snapshot())

    stop_event = asyncio.Event()
    tasks = [asyncio.create_task(voice_loop(services, voice, ui, stop_event))]
    if ui:
        tasks.append(asyncio.create_task(panel_loop(services, voice, ui, stop_event)))
    try:
        if ui:
            await stop_event.wait()
        else:
            await tasks[0]
    finally:
        stop_event.set()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        services.session.stop_reading()
        await services.reader.wait_idle()
        try:
            await asyncio.to_thread(browser.close)
        except Exception:
            pass
        engine.shutdown()
        if ui:
            ui.stop()
        set_ui_logger(None)
        log_line("Voice Reader closed.")


def main_cli() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        log_line("Interrupted. Exiting cleanly.")
    # The recognizer thread may still be blocked on the microphone.
    sys.exit(0)


if __name__ == "__main__":
    main_cli()
