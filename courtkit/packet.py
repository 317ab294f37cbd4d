"""Wire packets: a header and '#'-separated fields, terminated by '#%'."""

from __future__ import annotations

from dataclasses import dataclass, field

_ESCAPES = (
    ("#", "<num>"),
    ("%", "<percent>"),
    ("$", "<dollar>"),
    ("&", "<and>"),
)


def encode(data: str) -> str:
    """Escape the characters that carry meaning in the wire format."""
    for raw, escaped in _ESCAPES:
        data = data.replace(raw, escaped)
    return data


def decode(data: str) -> str:
    """Turn escape sequences back into the characters they stand for."""
    for raw, escaped in _ESCAPES:
        data = data.replace(escaped, raw)
    return data


@dataclass
class Packet:
    """A single protocol message."""

    header: str = ""
    content: list[str] = field(default_factory=list)

    def to_string(self, ensure_encoded: bool = False) -> str:
        """Serialise the packet, optionally escaping every field."""
        fields = [encode(item) if ensure_encoded else item for item in self.content]
        return "".join([self.header, *("#" + item for item in fields), "#%"])

    def __str__(self) -> str:
        return self.to_string()


def split_packets(message: str) -> list[Packet]:
    """Split a raw message holding one or more packets into decoded packets."""
    packets = []
    for raw in (part for part in message.split("%") if part):
        if raw.endswith("#"):
            raw = raw[:-1]
        header, *fields = raw.split("#")
        packets.append(Packet(header, [decode(item) for item in fields]))
    return packets