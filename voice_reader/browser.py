import json
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Any, Dict, List, Tuple

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from .config import BROWSER_COMMAND_TIMEOUT, BROWSER_ENGINE, BROWSER_EXECUTABLE
from .errors import BrowserCommandError
from .logs import log_line

MIN_ZOOM_PERCENT = 25
MAX_ZOOM_PERCENT = 500
SCROLL_DIRECTIONS = {"up", "down", "left", "right", "top", "bottom"}

ZOOM_SCRIPT = """([delta, reset, low, high]) => {
    const body = document.body;
    if (!body) return 100;
    const current = parseFloat(body.dataset.vrZoom || '100');
    let next = reset ? 100 : current + delta;
    next = Math.min(high, Math.max(low, next));
    body.dataset.vrZoom = String(next);
    body.style.zoom = next + '%';
    return next;
}"""

SCROLL_SCRIPT = """([direction, percent]) => {
    const el = document.scrollingElement || document.documentElement || document.body;
    if (direction === 'top') { window.scrollTo(window.scrollX, 0); return; }
    if (direction === 'bottom') { window.scrollTo(window.scrollX, el.scrollHeight); return; }
    const dy = Math.round(window.innerHeight * percent / 100);
    const dx = Math.round(window.innerWidth * percent / 100);
    if (direction === 'up') window.scrollBy(0, -dy);
    else if (direction === 'down') window.scrollBy(0, dy);
    else if (direction === 'left') window.scrollBy(-dx, 0);
    else if (direction === 'right') window.scrollBy(dx, 0);
}"""


def compact_playwright_error(exc: Exception) -> str:
    text = str(exc).strip()
    if not text:
        return exc.__class__.__name__
    first_line = text.splitlines()[0].strip()
    return first_line[:300]


class BrowserRuntime:
    def __init__(self) -> None:
        self._playwright = None
        self._browser = None
        self._context = None
        self._current_page = None

    def _launch(self) -> None:
        if self._context is not None:
            return
        self._playwright = sync_playwright().start()
        # Always headed: the user is looking at the page being read.
        launch_kwargs: Dict[str, Any] = {"headless": False, "args": ["--start-maximized"]}
        if BROWSER_EXECUTABLE:
            launch_kwargs["executable_path"] = BROWSER_EXECUTABLE
        if BROWSER_ENGINE in {"edge", "msedge"}:
            launch_kwargs["channel"] = "msedge"
        elif BROWSER_ENGINE == "chrome":
            launch_kwargs["channel"] = "chrome"
        self._browser = self._playwright.chromium.launch(**launch_kwargs)
        self._context = self._browser.new_context(no_viewport=True)

    def _ensure_page(self):
        self._launch()
        if self._current_page is None or self._current_page.is_closed():
            open_pages = [page for page in self._context.pages if not page.is_closed()]
            if open_pages:
                self._current_page = open_pages[-1]
            else:
                self._current_page = self._context.new_page()
        return self._current_page

    def _readable_page_title(self, page) -> str:
        try:
            return page.title().strip()
        except Exception:
            return ""

    def _close(self) -> None:
        try:
            if self._context is not None:
                try:
                    self._context.close()
                except Exception:
                    pass
        finally:
            self._context = None
            self._current_page = None
            if self._browser is not None:
                try:
                    self._browser.close()
                except Exception:
                    pass
                self._browser = None
            if self._playwright is not None:
                try:
                    self._playwright.stop()
                except Exception:
                    pass
                self._playwright = None

    def execute(self, args: List[str]) -> str:
        if not args:
            return ""

        command = args[0]
        if command == "close":
            self._close()
            return "✓ Browser closed"

        page = self._ensure_page()
        if command == "open":
            page.goto(args[1], wait_until="domcontentloaded", timeout=30000)
            return f"✓ {self._readable_page_title(page) or '(untitled)'}\n  {page.url}"
        if command == "tab_new":
            new_page = self._context.new_page()
            self._current_page = new_page
            new_page.goto(args[1], wait_until="domcontentloaded", timeout=30000)
            new_page.bring_to_front()
            return f"✓ New tab {new_page.url}"
        if command == "snapshot":
            return json.dumps(
                {"html": page.content(), "url": page.url, "title": self._readable_page_title(page)},
                ensure_ascii=True,
            )
        if command == "zoom":
            level = page.evaluate(
                ZOOM_SCRIPT,
                [int(args[1]), args[2] == "reset", MIN_ZOOM_PERCENT, MAX_ZOOM_PERCENT],
            )
            return str(int(level))
        if command == "scroll":
            direction = args[1].lower()
            if direction not in SCROLL_DIRECTIONS:
                raise RuntimeError(f"Unknown scroll direction: {direction}")
            page.evaluate(SCROLL_SCRIPT, [direction, int(args[2]) if len(args) > 2 else 50])
            return "✓ Scrolled"

        raise RuntimeError(f"Unsupported browser command: {command}")


class BrowserController:
    """Runs every Playwright call on one dedicated thread.

    The sync Playwright API is bound to the thread that started it, so the
    runtime and its executor are replaced together after a timeout or a
    closed-browser error.
    """

    def __init__(self, timeout: int = BROWSER_COMMAND_TIMEOUT) -> None:
        self._timeout = timeout
        self._lock = threading.Lock()
        self._runtime = BrowserRuntime()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="browser-runtime")

    def _reset(self, reason: str) -> None:
        log_line(f"WARN: Resetting browser runtime ({reason}).")
        with self._lock:
            old_runtime = self._runtime
            old_executor = self._executor
            self._runtime = BrowserRuntime()
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="browser-runtime")
        try:
            old_executor.submit(old_runtime._close)
        except Exception:
            pass
        old_executor.shutdown(wait=False, cancel_futures=True)

    def run(self, args: List[str]) -> Tuple[str, str, int]:
        if args[:1] != ["snapshot"]:
            log_line(f"  RUN: {' '.join(args)}")
        with self._lock:
            runtime = self._runtime
            executor = self._executor
        future = None
        try:
            future = executor.submit(runtime.execute, args)
            output = future.result(timeout=self._timeout)
            return output.strip(), "", 0
        except FuturesTimeoutError:
            if future is not None:
                future.cancel()
            self._reset("command timeout")
            return "", f"Browser command timed out after {self._timeout} seconds. Runtime restarted.", 1
        except Exception as exc:
            if isinstance(exc, PlaywrightError):
                err = compact_playwright_error(exc)
            else:
                err = str(exc)
            lowered = err.lower()
            closed = "browser has been closed" in lowered or "target page, context or browser has been closed" in lowered
            if args and args[0] == "close" and closed:
                return "✓ Browser closed", "", 0
            if closed:
                self._reset(err)
            return "", err, 1

    def run_ok(self, args: List[str]) -> str:
        out, err, code = self.run(args)
        if code != 0:
            message = err or f"Browser command failed: {' '.join(args)}"
            log_line(f"  ERROR: {message}")
            raise BrowserCommandError(message)
        return out

    def page_snapshot(self) -> Dict[str, str]:
        raw = self.run_ok(["snapshot"])
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise BrowserCommandError("Could not read the page content.") from exc
        return {
            "html": str(payload.get("html", "")),
            "url": str(payload.get("url", "")),
            "title": str(payload.get("title", "")),
        }

    def navigate(self, url: str, new_tab: bool = False) -> str:
        return self.run_ok(["tab_new" if new_tab else "open", url])

    def zoom(self, delta: int, reset: bool = False) -> int:
        return int(self.run_ok(["zoom", str(int(delta)), "reset" if reset else "step"]))

    def scroll(self, direction: str, amount: int) -> None:
        self.run_ok(["scroll", direction, str(int(amount))])

    def close(self) -> None:
        try:
            self.run_ok(["close"])
        finally:
            with self._lock:
                self._executor.shutdown(wait=False, cancel_futures=True)
