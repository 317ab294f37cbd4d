import pytest

from courtkit.packet import Packet, decode, encode, split_packets


def test_encode_escapes_all_special_characters():
    assert encode("#%$&") == "<num><percent><dollar><and>"


def test_decode_restores_special_characters():
    assert decode("<num><percent><dollar><and>") == "#%$&"


@pytest.mark.parametrize("text", ["plain", "a#b", "50%", "$5 & more", "##%%", ""])
def test_encode_decode_round_trip(text):
    assert decode(encode(text)) == text


def test_encoded_text_has_no_separators():
    encoded = encode("x#y%z")
    assert "#" not in encoded and "%" not in encoded


def test_to_string_without_content():
    assert Packet("askchaa").to_string() == "askchaa#%"


def test_to_string_plain_fields():
    assert Packet("PN", ["0", "1"]).to_string() == "PN#0#1#%"


def test_to_string_encodes_when_asked():
    packet = Packet("CT", ["name", "a#b"])
    assert packet.to_string(True) == "CT#name#a<num>b#%"
    assert packet.to_string() == "CT#name#a#b#%"


def test_split_single_packet():
    (packet,) = split_packets("ID#0#DEMOINTERNAL#0#%")
    assert packet.header == "ID"
    assert packet.content == ["0", "DEMOINTERNAL", "0"]


def test_split_multiple_packets_and_decode():
    packets = split_packets("HI#x#%CT#me#a<num>b#%")
    assert [p.header for p in packets] == ["HI", "CT"]
    assert packets[1].content == ["me", "a#b"]


def test_split_packet_without_trailing_hash():
    (packet,) = split_packets("RC%")
    assert packet.header == "RC"
    assert packet.content == []


def test_split_then_serialise_round_trip():
    original = Packet("MS", ["chat", "hello # world", "100%"])
    (parsed,) = split_packets(original.to_string(True))
    assert parsed == original