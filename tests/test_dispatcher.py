import asyncio

from voice_reader.dispatcher import CommandDispatcher, intent_summary
from voice_reader.intents import ANNOUNCEMENTS, interpret
from voice_reader.models import ReadingMode, ReadingStatus, VoiceIntent
from voice_reader.preferences import get_reading_mode
from voice_reader.reader import PageReader
from voice_reader.session import ReadingSession


def run_command(reader, resolver, browser, announcements, transcript):
    dispatcher = CommandDispatcher(reader, resolver, browser, announcements.append)

    async def scenario():
        reply = await dispatcher.dispatch(interpret(transcript))
        await reader.wait_idle()
        return reply

    return asyncio.run(scenario())


def test_read_full_page_persists_mode_and_speaks_article(reader, resolver, browser, preferences, announcements, speaker):
    reply = run_command(reader, resolver, browser, announcements, "read the full page please")
    assert reply == ANNOUNCEMENTS["mode_full"]
    assert announcements == [ANNOUNCEMENTS["mode_full"]]
    assert speaker.utterances[-1].text == reader.last_content.text
    assert reader.last_content.text.startswith("A long enough article body")
    assert reader.session.get_status() == ReadingStatus.READING
    assert get_reading_mode(preferences, browser.url) == ReadingMode.FULL


def test_summarize_speaks_summary(reader, resolver, browser, announcements, speaker):
    run_command(reader, resolver, browser, announcements, "summarize this page")
    assert speaker.utterances[-1].text == "Summary of the page."
    assert reader.session.current_mode() == ReadingMode.SUMMARY


def test_pause_resume_stop(reader, resolver, browser, announcements, speaker):
    run_command(reader, resolver, browser, announcements, "read it out loud")
    assert run_command(reader, resolver, browser, announcements, "pause") == ANNOUNCEMENTS["pause"]
    assert reader.session.is_paused()
    assert run_command(reader, resolver, browser, announcements, "resume") == ANNOUNCEMENTS["resume"]
    assert reader.session.is_reading()
    assert run_command(reader, resolver, browser, announcements, "stop") == ANNOUNCEMENTS["stop"]
    assert reader.session.get_status() == ReadingStatus.STOPPED
    assert speaker.utterances[-1].cancelled


def test_pause_with_nothing_playing_is_explained(reader, resolver, browser, announcements):
    run_command(reader, resolver, browser, announcements, "pause")
    run_command(reader, resolver, browser, announcements, "resume")
    assert announcements == [ANNOUNCEMENTS["nothing_to_pause"], ANNOUNCEMENTS["nothing_to_resume"]]
    assert reader.session.get_status() == ReadingStatus.IDLE


def test_zoom_and_scroll_reach_the_viewport(reader, resolver, browser, announcements):
    run_command(reader, resolver, browser, announcements, "zoom out 20 percent")
    run_command(reader, resolver, browser, announcements, "scroll to the bottom")
    assert browser.calls == [("zoom", -20, False), ("scroll", "bottom", 0)]
    assert announcements == ["Zoomed out 20 percent.", "Scrolled to the bottom."]


def test_viewport_failure_is_spoken_not_raised(reader, resolver, browser, announcements):
    browser.fail = True
    reply = run_command(reader, resolver, browser, announcements, "scroll down")
    assert reply == ANNOUNCEMENTS["viewport_failed"]


def test_open_site_navigates_to_alias(reader, resolver, browser, announcements):
    run_command(reader, resolver, browser, announcements, "open youtube")
    assert browser.calls == [("navigate", "https://www.youtube.com/", False)]
    assert announcements == ["Opening youtube."]


def test_unknown_and_ignored(reader, resolver, browser, announcements):
    assert run_command(reader, resolver, browser, announcements, "asdkjf") == ANNOUNCEMENTS["unknown"]
    assert run_command(reader, resolver, browser, announcements, "Stopped reading.") == ""
    assert announcements == [ANNOUNCEMENTS["unknown"]]


def test_empty_page_is_announced(speaker, browser, preferences, resolver):
    heard = []
    browser.html = "<html><body></body></html>"
    reader = PageReader(ReadingSession(speaker), browser, preferences, heard.append)
    run_command(reader, resolver, browser, heard, "read the full page")
    assert heard[-1] == ANNOUNCEMENTS["empty_page"]
    assert reader.session.get_status() == ReadingStatus.ERROR


def test_intent_summary():
    assert intent_summary(VoiceIntent.scroll("up", 25)) == {"kind": "scroll", "direction": "up", "amount": 25}
    assert intent_summary(VoiceIntent.set_mode(ReadingMode.FULL)) == {"kind": "set_mode", "mode": "full"}
