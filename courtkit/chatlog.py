"""Chat log entries and HTML formatting of chat messages."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from datetime import datetime

MAXIMUM_LOG_LENGTH = 5000

_URL_PATTERN = re.compile(r"\b(https?://\S+\.\S+)\b")

_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _text_date(moment: datetime | None) -> str:
    if moment is None:
        return ""
    return (
        f"{_DAY_NAMES[moment.weekday()]} {_MONTH_NAMES[moment.month - 1]} "
        f"{moment.day} {moment:%H:%M:%S} {moment.year}"
    )


def _or_unknown(text: str) -> str:
    return text if text else "UNKNOWN"


def _escape(text: str) -> str:
    return html.escape(text, quote=False).replace('"', "&quot;")


@dataclass
class ChatLogPiece:
    """One line of the in-character chat log."""

    character: str = ""
    character_name: str = ""
    message: str = ""
    action: str = ""
    timestamp: datetime | None = None
    local_player: bool = False
    color: int = 0

    def to_string(self) -> str:
        details = f"[{_text_date(self.timestamp)}] {_or_unknown(self.character_name)}"
        if self.character_name != self.character:
            details += f" ({_or_unknown(self.character)})"
        if self.action:
            details += f" {self.action}"
        return details + f": {_or_unknown(self.message)}"

    def __str__(self) -> str:
        return self.to_string()


def format_message(name: str, message: str, name_color: str, message_color: str = "") -> str:
    """Render a chat message as an HTML fragment with links made clickable."""
    prefix = ""
    if name:
        prefix = f"<b><font color={name_color}>{_escape(name)}</font></b>:&nbsp;"
        message += " "

    result = _escape(message).replace("\n", "<br>")
    result = _URL_PATTERN.sub(r"<a href='\1'>\1</a>", result)

    if message_color:
        result = f"<font color={message_color}>{result}</font>"
    return prefix + result