"""
cmem/console.py
===============

Line-at-a-time console over an ``Engine``.

* ``CommandHistory`` – the entries a display layer shows (commands, results,
  errors); ``clear()`` empties it
* ``Console``        – parse, evaluate and record one line
* ``format_value`` / ``format_heap`` – text rendering in the display base
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional

from cmem.builtins import BUILTIN_SPECS
from cmem.engine import Engine, EngineConfig
from cmem.errors import CmemError
from cmem.grammar import parse_statement
from cmem.values import LiteralKind, Result, Void

logger = logging.getLogger(__name__)

__all__ = [
    "HistoryStyle",
    "HistoryItem",
    "CommandHistory",
    "Console",
    "format_int",
    "format_value",
    "format_heap",
    "HELP_TEXT",
]

RESULT_PREFIX = "-> "


class HistoryStyle(enum.Enum):
    COMMAND = "command"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class HistoryItem:
    style: HistoryStyle
    text: str


def _default_history() -> List[HistoryItem]:
    return [HistoryItem(HistoryStyle.INFO, f"{RESULT_PREFIX}Type help() for usage.")]


class CommandHistory:
    """Ordered console transcript."""

    def __init__(self) -> None:
        self._items: List[HistoryItem] = _default_history()

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> List[HistoryItem]:
        return list(self._items)

    def append(self, style: HistoryStyle, text: str) -> HistoryItem:
        item = HistoryItem(style, text)
        self._items.append(item)
        return item

    def clear(self) -> None:
        self._items = []

    def reset(self) -> None:
        self._items = _default_history()


# ═══════════════════════════════════════════════════════════════════════════
# FORMATTING
# ═══════════════════════════════════════════════════════════════════════════

def format_int(value: int, base: int) -> str:
    sign = "-" if value < 0 else ""
    if base != 16:
        try:
            return str(value)
        except ValueError:
            # past the interpreter's decimal digit limit; hex has none
            pass
    return f"{sign}0x{abs(value):X}"


def format_value(value: Result, base: int = 16) -> str:
    """Render an evaluation result; ``VOID`` renders as an empty string."""
    if isinstance(value, Void):
        return ""
    if value.is_native_function:
        spec = BUILTIN_SPECS[value.payload.builtin]
        return f"<native function {spec.signature()}>"

    literal = value.literal
    if value.type.is_pointer:
        return f"({value.type.value}) {format_int(literal.value, base)}"
    if literal.kind is LiteralKind.INT:
        return format_int(literal.value, base)
    if literal.kind is LiteralKind.CHAR:
        return f"{chr(literal.value)!r} ({format_int(literal.value, base)})"
    if literal.kind is LiteralKind.DOUBLE:
        return repr(literal.value)
    escaped = literal.value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_heap(data: bytes, base: int = 16, width: int = 16) -> str:
    """Render heap bytes as rows of ``address: b0 b1 ...``."""
    cell = 2 if base == 16 else 3
    addr_width = len(format(max(len(data) - 1, 0), "X" if base == 16 else "d"))
    lines = []
    for start in range(0, len(data), width):
        row = data[start:start + width]
        if base == 16:
            addr = format(start, f"0{addr_width}X")
            cells = " ".join(format(b, f"0{cell}X") for b in row)
        else:
            addr = format(start, f"{addr_width}d")
            cells = " ".join(format(b, f"{cell}d") for b in row)
        lines.append(f"{addr}: {cells}")
    return "\n".join(lines)


HELP_TEXT = "\n".join(
    [
        "Statements: declarations (int x), assignments (x = 5, *p = 1),",
        "arithmetic (+ - * /), casts ((char) 65) and dereferences (*p).",
        "Types: int char double string int* char*",
        "Builtins:",
        *(f"  {spec.signature():<28} {spec.summary}" for spec in BUILTIN_SPECS.values()),
    ]
)


# ═══════════════════════════════════════════════════════════════════════════
# CONSOLE
# ═══════════════════════════════════════════════════════════════════════════

class Console:
    """One interactive session: an engine plus its history."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.history = CommandHistory()
        self.engine = Engine(config, on_clear=self.history.clear)

    @property
    def display_base(self) -> int:
        return self.engine.display_base

    def execute(self, line: str) -> List[HistoryItem]:
        """Run one console line; returns the history items it added.

        Classified errors are recorded, never raised.
        """
        start = len(self.history)
        text = line.strip()
        if not text:
            return []

        self.history.append(HistoryStyle.COMMAND, text)
        if text.rstrip(";") in ("help", "help()"):
            self.history.append(HistoryStyle.INFO, HELP_TEXT)
            return self.history.items[start:]

        try:
            result = self.engine.evaluate(parse_statement(text))
        except CmemError as exc:
            logger.info("%s -> %s", text, exc)
            self.history.append(HistoryStyle.ERROR, str(exc))
        else:
            rendered = format_value(result, self.display_base)
            if rendered:
                self.history.append(HistoryStyle.INFO, f"{RESULT_PREFIX}{rendered}")

        # clear() may have emptied the history mid-command.
        return self.history.items[min(start, len(self.history)):]

    def heap_dump(self, width: int = 16) -> str:
        return format_heap(self.engine.heap_bytes(), self.display_base, width)
