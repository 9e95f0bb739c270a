from types import SimpleNamespace

from voice_reader import speech
from voice_reader.errors import EngineFailure
from voice_reader.models import SpeechSettings
from voice_reader.speech import SpeechEngine, Utterance, split_into_chunks


class FakeDriver:
    def __init__(self, on_say=None):
        self.said = []
        self.props = {}
        self.stops = 0
        self.on_say = on_say

    def setProperty(self, name, value):
        self.props[name] = value

    def getProperty(self, name):
        if name == "voices":
            return [SimpleNamespace(id="voice-a"), SimpleNamespace(id="voice-b")]
        return self.props.get(name)

    def say(self, text):
        self.said.append(text)
        if self.on_say is not None:
            self.on_say(text)

    def runAndWait(self):
        pass

    def stop(self):
        self.stops += 1


def engine_with(monkeypatch, driver):
    monkeypatch.setattr(speech.pyttsx3, "init", lambda: driver)
    return SpeechEngine(base_rate=200)


def recorder(events):
    def listener(utterance, event, error):
        events.append((event, error))

    return listener


def test_split_into_chunks_keeps_sentences_together():
    text = "One short sentence. Another one here! A third? " + "Long " * 30
    chunks = split_into_chunks(text, max_chars=60)
    assert chunks[0] == "One short sentence. Another one here! A third?"
    assert all(len(chunk) <= 160 for chunk in chunks)
    assert split_into_chunks("") == []


def test_utterance_speaks_every_chunk_with_settings(monkeypatch):
    driver = FakeDriver()
    engine = engine_with(monkeypatch, driver)
    events = []
    utterance = Utterance(engine, "Hello there.", SpeechSettings(rate=1.5, volume=3.0, voice_id="voice-b"), recorder(events))

    engine._run_utterance(utterance)

    assert driver.said == ["Hello there."]
    assert driver.props["rate"] == 300
    assert driver.props["volume"] == 1.0
    assert driver.props["voice"] == "voice-b"
    assert [event for event, _ in events] == ["start", "end"]
    assert utterance.finished
    assert not engine.is_speaking()


def test_pause_repeats_the_interrupted_chunk(monkeypatch):
    events = []
    holder = {}

    def on_say(text):
        if text == "First part." and not holder.get("paused"):
            holder["paused"] = True
            holder["utterance"].pause()

    driver = FakeDriver(on_say)
    engine = engine_with(monkeypatch, driver)

    def listener(utterance, event, error):
        events.append(event)
        if event == "pause":
            utterance.resume()

    utterance = Utterance(engine, "First part. Second part.", SpeechSettings(), listener)
    utterance.chunks = ["First part.", "Second part."]
    holder["utterance"] = utterance

    engine._run_utterance(utterance)

    assert driver.said == ["First part.", "First part.", "Second part."]
    assert events == ["start", "pause", "resume", "end"]
    assert driver.stops == 1


def test_cancelled_utterance_is_never_spoken(monkeypatch):
    driver = FakeDriver()
    engine = engine_with(monkeypatch, driver)
    events = []
    utterance = Utterance(engine, "Hello.", SpeechSettings(), recorder(events))
    utterance.cancel()

    engine._run_utterance(utterance)

    assert driver.said == []
    assert events == []
    assert utterance.finished


def test_engine_init_failure_reports_error_event(monkeypatch):
    def broken_init():
        raise OSError("no audio device")

    monkeypatch.setattr(speech.pyttsx3, "init", broken_init)
    engine = SpeechEngine()
    events = []
    engine._run_utterance(Utterance(engine, "Hello.", SpeechSettings(), recorder(events)))

    assert len(events) == 1
    event, error = events[0]
    assert event == "error"
    assert isinstance(error, EngineFailure)


def test_echo_guard_matches_recent_speech(monkeypatch):
    driver = FakeDriver()
    engine = engine_with(monkeypatch, driver)
    engine._run_utterance(Utterance(engine, "Opening the weather page now.", SpeechSettings(), None))

    assert engine.is_probable_echo("the weather page")
    assert not engine.is_probable_echo("scroll down")
    assert not engine.is_probable_echo("ok")
