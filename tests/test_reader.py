import asyncio

import pytest

from voice_reader.errors import EmptyContent
from voice_reader.models import ReadingMode, ReadingStatus
from voice_reader.reader import PageReader
from voice_reader.session import ReadingSession


async def wait_for(event):
    while not event.is_set():
        await asyncio.sleep(0.01)


def test_stop_while_page_loads_keeps_reading_stopped(speaker, blocking_browser, preferences):
    browser = blocking_browser
    reader = PageReader(ReadingSession(speaker), browser, preferences)

    async def scenario():
        task = reader.start_in_background(ReadingMode.FULL)
        await wait_for(browser.entered)
        reader.session.stop_reading()
        browser.release.set()
        await task

    asyncio.run(scenario())
    assert reader.session.get_status() == ReadingStatus.STOPPED
    assert speaker.utterances == []


def test_newer_request_wins_over_one_still_loading(speaker, blocking_browser, preferences):
    browser = blocking_browser
    reader = PageReader(ReadingSession(speaker), browser, preferences)

    async def scenario():
        first = reader.start_in_background(ReadingMode.FULL)
        await wait_for(browser.entered)
        second = reader.start_in_background(ReadingMode.FULL)
        browser.release.set()
        await asyncio.gather(first, second)

    asyncio.run(scenario())
    assert len(speaker.utterances) == 1
    assert reader.session.get_status() == ReadingStatus.READING


def test_prepare_resolves_mode_and_reports_empty_pages(speaker, browser, preferences):
    reader = PageReader(ReadingSession(speaker), browser, preferences)
    request = asyncio.run(reader.prepare(ReadingMode.SUMMARY, remember=True))
    assert request.mode is ReadingMode.SUMMARY
    assert request.content.text.startswith("A long enough article body")
    assert reader.session.is_current(request.generation)

    browser.html = "<html><body></body></html>"
    with pytest.raises(EmptyContent):
        asyncio.run(reader.prepare())
    assert reader.session.get_status() == ReadingStatus.ERROR
    assert speaker.utterances == []
