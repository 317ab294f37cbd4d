from datetime import datetime

from courtkit.chatlog import ChatLogPiece, format_message


def test_to_string_with_timestamp():
    piece = ChatLogPiece(
        character="Phoenix",
        character_name="Phoenix",
        message="Objection!",
        timestamp=datetime(1998, 5, 20, 3, 40, 13),
    )
    assert piece.to_string() == "[Wed May 20 03:40:13 1998] Phoenix: Objection!"


def test_to_string_fills_unknown_fields():
    piece = ChatLogPiece()
    assert piece.to_string().endswith("UNKNOWN: UNKNOWN")
    assert "(" not in piece.to_string()


def test_to_string_shows_character_when_showname_differs():
    piece = ChatLogPiece(character="Phoenix", character_name="Nick", message="hi")
    assert " (Phoenix)" in piece.to_string()
    assert piece.to_string().startswith("[] Nick")


def test_to_string_unknown_character_in_parentheses():
    piece = ChatLogPiece(character="", character_name="Nick", message="hi")
    assert "(UNKNOWN)" in piece.to_string()


def test_to_string_includes_action():
    piece = ChatLogPiece(character="A", character_name="A", message="m", action="has presented evidence")
    assert piece.to_string().endswith("A has presented evidence: m")


def test_format_message_escapes_html():
    result = format_message("", "a<b>&\"c", "", "")
    assert "<b>" not in result
    assert "&lt;b&gt;" in result and "&amp;" in result and "&quot;" in result


def test_format_message_with_name():
    result = format_message("Judge", "order", "red")
    assert result.startswith("<b><font color=red>Judge</font></b>:&nbsp;")
    assert result.endswith("order ")


def test_format_message_with_message_color():
    result = format_message("", "text", "", "blue")
    assert result == "<font color=blue>text</font>"


def test_format_message_converts_newlines():
    assert "<br>" in format_message("", "one\ntwo", "")
    assert "\n" not in format_message("", "one\ntwo", "")


def test_format_message_links_urls():
    url = "https://example.com/page"
    result = format_message("", f"see {url} now", "")
    assert f"<a href='{url}'>{url}</a>" in result


def test_format_message_without_url_has_no_link():
    assert "<a href" not in format_message("", "no links here", "")