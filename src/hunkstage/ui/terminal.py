"""Terminal session: cbreak input, alternate screen, key decoding.

Raw bytes from stdin are translated into the same normalized key tokens the
keymap uses (``UP``, ``CTRL_N``, ``TAB``, ``ESC``, single characters).
"""

from __future__ import annotations

import logging
import os
import select
import sys
import termios
import tty
from typing import List, Optional, Tuple

from rich.console import Console, Group
from rich.text import Text

logger = logging.getLogger(__name__)

ESC_SEQUENCE_TIMEOUT_MS = 25
RESIZE_POLL_MS = 250
RESIZE = "RESIZE"

_CONTROL_KEYS = {
    b"\x02": "CTRL_B",
    b"\x03": "CTRL_C",
    b"\x06": "CTRL_F",
    b"\x0e": "CTRL_N",
    b"\x10": "CTRL_P",
    b"\t": "TAB",
    b"\r": "ENTER",
    b"\n": "ENTER",
    b"\x7f": "BACKSPACE",
    b"\x08": "BACKSPACE",
}

_ARROWS = {b"A": "UP", b"B": "DOWN", b"C": "RIGHT", b"D": "LEFT"}


def _read_ready_byte(fd: int, timeout_ms: int) -> Optional[bytes]:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        raise EOFError("stdin closed")
    return ch


def _read_utf8_tail(fd: int, first: bytes) -> bytes:
    """Complete a multi-byte UTF-8 character started by *first*."""
    lead = first[0]
    if lead >= 0xF0:
        need = 3
    elif lead >= 0xE0:
        need = 2
    elif lead >= 0xC0:
        need = 1
    else:
        return first
    data = first
    for _ in range(need):
        nxt = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if nxt is None:
            break
        data += nxt
    return data


def read_key(fd: int, timeout_ms: Optional[int] = None) -> str:
    """Read one key token; ``""`` when *timeout_ms* elapses first.

    Raises EOFError once stdin is closed.
    """
    if timeout_ms is not None:
        ch = _read_ready_byte(fd, timeout_ms)
        if ch is None:
            return ""
    else:
        ch = os.read(fd, 1)
        if not ch:
            raise EOFError("stdin closed")

    if ch in _CONTROL_KEYS:
        return _CONTROL_KEYS[ch]
    if ch != b"\x1b":
        return _read_utf8_tail(fd, ch).decode("utf-8", errors="replace")

    # Escape / arrow key sequences: ESC [ A and the application-mode ESC O A.
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq not in (b"[", b"O"):
        return "ESC"
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq in _ARROWS:
        return _ARROWS[seq]
    # Drain the rest of an unrecognised CSI sequence so it does not leak as keys.
    while seq is not None and not (0x40 <= seq[0] <= 0x7E):
        seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    return "ESC"


class TerminalSession:
    """Owns cbreak mode and the alternate screen for the lifetime of the loop."""

    def __init__(self, console: Optional[Console] = None, stdin_fd: Optional[int] = None) -> None:
        self.console = console or Console()
        self.stdin_fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
        self._saved_tty_state: Optional[list] = None
        self._screen = None
        self._last_size: Tuple[int, int] = (0, 0)

    def __enter__(self) -> "TerminalSession":
        self._saved_tty_state = termios.tcgetattr(self.stdin_fd)
        # cbreak rather than raw: output post-processing stays on for rich.
        tty.setcbreak(self.stdin_fd, termios.TCSAFLUSH)
        try:
            self._screen = self.console.screen(hide_cursor=True)
            self._screen.__enter__()
        except BaseException:
            termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)
            raise
        self._last_size = self.size()
        logger.debug("terminal session started at %dx%d", *self._last_size)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._screen is not None:
                self._screen.__exit__(exc_type, exc, tb)
                self._screen = None
        finally:
            if self._saved_tty_state is not None:
                termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)
                self._saved_tty_state = None

    def size(self) -> Tuple[int, int]:
        width, height = self.console.size
        return width, height

    def read_key(self, timeout_ms: Optional[int] = None) -> str:
        return read_key(self.stdin_fd, timeout_ms)

    def next_key_event(self) -> str:
        """Block until a key arrives; return ``RESIZE`` if the window changes meanwhile."""
        while True:
            key = self.read_key(RESIZE_POLL_MS)
            if key:
                return key
            current = self.size()
            if current != self._last_size:
                self._last_size = current
                return RESIZE

    def draw(self, lines: List[Text]) -> None:
        if self._screen is None:
            raise RuntimeError("terminal session is not active")
        self._screen.update(Group(*lines))
