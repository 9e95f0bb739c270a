import json

import pytest

from voice_reader.browser import BrowserController, BrowserRuntime
from voice_reader.errors import BrowserCommandError


class ScriptedRuntime:
    def __init__(self, replies):
        self.replies = replies
        self.commands = []
        self.closed = False

    def execute(self, args):
        self.commands.append(list(args))
        reply = self.replies.get(args[0], "")
        if isinstance(reply, Exception):
            raise reply
        return reply

    def _close(self):
        self.closed = True


def controller_with(replies):
    controller = BrowserController(timeout=5)
    runtime = ScriptedRuntime(replies)
    controller._runtime = runtime
    return controller, runtime


def test_snapshot_is_decoded():
    payload = json.dumps({"html": "<p>x</p>", "url": "https://example.org/", "title": "Example"})
    controller, _ = controller_with({"snapshot": payload})
    assert controller.page_snapshot() == {"html": "<p>x</p>", "url": "https://example.org/", "title": "Example"}


def test_viewport_commands_are_translated():
    controller, runtime = controller_with({"zoom": "90", "scroll": "ok", "open": "ok", "tab_new": "ok"})
    assert controller.zoom(-10) == 90
    controller.zoom(0, reset=True)
    controller.scroll("down", 50)
    controller.navigate("https://example.org/")
    controller.navigate("https://example.org/", new_tab=True)
    assert runtime.commands == [
        ["zoom", "-10", "step"],
        ["zoom", "0", "reset"],
        ["scroll", "down", "50"],
        ["open", "https://example.org/"],
        ["tab_new", "https://example.org/"],
    ]


def test_command_failure_raises_browser_error():
    controller, _ = controller_with({"scroll": RuntimeError("Unknown scroll direction: sideways")})
    with pytest.raises(BrowserCommandError, match="sideways"):
        controller.scroll("sideways", 10)


def test_closed_browser_resets_runtime():
    controller, runtime = controller_with({"open": RuntimeError("Target page, context or browser has been closed")})
    with pytest.raises(BrowserCommandError):
        controller.navigate("https://example.org/")
    assert controller._runtime is not runtime
    assert isinstance(controller._runtime, BrowserRuntime)


def test_empty_command_does_not_launch_a_browser():
    assert BrowserRuntime().execute([]) == ""
