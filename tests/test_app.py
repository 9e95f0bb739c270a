import asyncio

from voice_reader.app import ReaderServices, handle_panel_event, handle_utterance, resolve_initial_url
from voice_reader.config import DEFAULT_START_URL
from voice_reader.dispatcher import CommandDispatcher
from voice_reader.messages import MessageHandler


class FakePanel:
    def __init__(self):
        self.statuses = []
        self.snapshots = []

    def set_status(self, text):
        self.statuses.append(text)

    def push_reading_status(self, snapshot):
        self.snapshots.append(snapshot)


class FakeEngine:
    def __init__(self):
        self.announced = []

    def announce(self, text):
        self.announced.append(text)
        return True


class FakeVoice:
    def __init__(self):
        self.selected = []
        self.selected_name = "System default microphone"

    async def select(self, index):
        self.selected.append(index)
        return index is None or index == 0


def services_for(reader, resolver, browser, preferences, engine):
    summarizer = reader.session._summarizer
    return ReaderServices(
        preferences=preferences,
        engine=engine,
        browser=browser,
        session=reader.session,
        reader=reader,
        dispatcher=CommandDispatcher(reader, resolver, browser, engine.announce),
        messages=MessageHandler(reader, summarizer, resolver, browser),
    )


def run_events(services, panel, voice, *events):
    async def scenario():
        results = []
        for event in events:
            results.append(await handle_panel_event(services, voice, panel, event))
            await services.reader.wait_idle()
        return results

    return asyncio.run(scenario())


def test_panel_buttons_drive_the_session(reader, resolver, browser, preferences, speaker):
    panel = FakePanel()
    services = services_for(reader, resolver, browser, preferences, FakeEngine())
    results = run_events(
        services,
        panel,
        FakeVoice(),
        {"type": "control", "message": {"type": "START_READING", "mode": "summary"}},
        {"type": "control", "message": {"type": "GET_STATUS"}},
        {"type": "control", "message": {"type": "STOP_READING"}},
        {"type": "quit"},
    )
    assert results == [True, True, True, False]
    assert speaker.utterances[-1].text == "Summary of the page."
    assert panel.snapshots == [{"status": "reading", "isReading": True, "isPaused": False}]


def test_panel_errors_are_shown(reader, resolver, browser, preferences):
    panel = FakePanel()
    services = services_for(reader, resolver, browser, preferences, FakeEngine())
    run_events(services, panel, FakeVoice(), {"type": "control", "message": {"type": "NOPE"}})
    assert panel.statuses == ["Unknown message type"]


def test_typed_text_is_interpreted_like_speech(reader, resolver, browser, preferences):
    engine = FakeEngine()
    services = services_for(reader, resolver, browser, preferences, engine)
    run_events(services, FakePanel(), FakeVoice(), {"type": "utterance", "text": "zoom in"})
    assert browser.calls == [("zoom", 10, False)]
    assert engine.announced == ["Zoomed in 10 percent."]


def test_microphone_selection(reader, resolver, browser, preferences):
    engine = FakeEngine()
    panel = FakePanel()
    voice = FakeVoice()
    services = services_for(reader, resolver, browser, preferences, engine)
    run_events(services, panel, voice, {"type": "set_mic", "index": 0}, {"type": "set_mic", "index": 7})
    assert voice.selected == [0, 7]
    assert panel.statuses == ["Using microphone: System default microphone"]
    assert engine.announced == ["That microphone index is not valid."]


def test_handle_utterance_returns_reply(reader, resolver, browser, preferences):
    services = services_for(reader, resolver, browser, preferences, FakeEngine())
    assert asyncio.run(handle_utterance(services, "stop")) == "Stopped reading."


def test_resolve_initial_url():
    assert resolve_initial_url(["voice-reader"]) == DEFAULT_START_URL
    assert resolve_initial_url(["voice-reader", "example.org"]) == "https://example.org"
    assert resolve_initial_url(["voice-reader", "not a url"]) == DEFAULT_START_URL
