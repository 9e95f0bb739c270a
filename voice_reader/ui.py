import multiprocessing as mp
import queue
from typing import Any, Dict, List, Optional

from .config import MINI_UI_ENABLED, STATUS_POLL_SECONDS
from .logs import log_line


class MiniControlUI:
    """Owns the control panel process and the three queues it talks through."""

    def __init__(self, mic_names: List[str], selected_mic_index: Optional[int]) -> None:
        self._mic_names = mic_names
        self._selected_mic_index = selected_mic_index
        self._ctx = mp.get_context("spawn")
        self._command_queue: "mp.Queue[Any]" = self._ctx.Queue(maxsize=200)
        self._status_queue: "mp.Queue[Any]" = self._ctx.Queue(maxsize=300)
        self._log_queue: "mp.Queue[Any]" = self._ctx.Queue(maxsize=1000)
        self._process: Optional[mp.Process] = None
        self._run_ui = None

    def start(self) -> None:
        if not MINI_UI_ENABLED:
            return
        if self._process is not None and self._process.is_alive():
            return
        if self._run_ui is None:
            try:
                from .mini_ui_host import run_ui

                self._run_ui = run_ui
            except Exception as exc:
                log_line(f"WARN: Control panel unavailable ({exc}).")
                return
        try:
            self._process = self._ctx.Process(
                target=self._run_ui,
                args=(
                    self._mic_display_items(),
                    self._selected_mic_index,
                    self._command_queue,
                    self._status_queue,
                    self._log_queue,
                    STATUS_POLL_SECONDS,
                ),
                daemon=True,
            )
            self._process.start()
        except Exception as exc:
            self._process = None
            log_line(f"WARN: Control panel failed to start ({exc}).")

    def stop(self) -> None:
        if self._process is None:
            return
        try:
            self._status_queue.put_nowait({"type": "shutdown"})
        except Exception:
            pass
        if self._process.is_alive():
            self._process.join(timeout=3.0)
        if self._process.is_alive():
            try:
                self._process.terminate()
            except Exception:
                pass
        self._process = None

    def poll_event(self) -> Optional[Dict[str, Any]]:
        try:
            event = self._command_queue.get_nowait()
        except queue.Empty:
            return None
        if isinstance(event, dict):
            return event
        return None

    def set_status(self, status: str) -> None:
        self._put_status({"type": "status", "value": status})

    def push_reading_status(self, snapshot: Dict[str, Any]) -> None:
        payload = {"type": "reading"}
        payload.update(snapshot)
        self._put_status(payload)

    def add_log(self, line: str) -> None:
        if not MINI_UI_ENABLED:
            return
        try:
            self._log_queue.put_nowait({"type": "log", "value": line})
        except queue.Full:
            pass

    def _put_status(self, payload: Dict[str, Any]) -> None:
        if not MINI_UI_ENABLED:
            return
        try:
            self._status_queue.put_nowait(payload)
        except queue.Full:
            pass

    def _mic_display_items(self) -> List[str]:
        return [f"[{idx}] {name}" for idx, name in enumerate(self._mic_names)]
