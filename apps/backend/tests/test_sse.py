import pytest

from leadcrm.sse import ChatStreamError, SSEDecoder, collect_reply, encode_frame


def test_encode_frame():
    assert encode_frame({"content": "hi"}) == 'data: {"content": "hi"}\n\n'


def test_frames_split_across_reads():
    decoder = SSEDecoder()
    raw = (encode_frame({"content": "Hel"}) + encode_frame({"content": "lo"})).encode()

    frames = []
    for i in range(0, len(raw), 5):
        frames.extend(decoder.feed(raw[i:i + 5]))

    assert frames == [{"content": "Hel"}, {"content": "lo"}]


def test_multibyte_character_split_between_reads():
    decoder = SSEDecoder()
    raw = 'data: {"content": "नमस्ते"}\n'.encode("utf-8")
    cut = raw.index("न".encode("utf-8")) + 1

    assert decoder.feed(raw[:cut]) == []
    assert decoder.feed(raw[cut:]) == [{"content": "नमस्ते"}]


def test_ignores_comments_blank_lines_and_crlf():
    decoder = SSEDecoder()

    frames = decoder.feed(b': keep-alive\r\n\r\nevent: message\r\ndata: {"done": true}\r\n\r\n')

    assert frames == [{"done": True}]


def test_flush_decodes_unterminated_line():
    decoder = SSEDecoder()

    assert decoder.feed(b'data: {"content": "tail"}') == []
    assert decoder.flush() == [{"content": "tail"}]
    assert decoder.flush() == []


def test_malformed_frame_raises():
    with pytest.raises(ValueError):
        SSEDecoder().feed(b"data: {oops\n")


def test_collect_reply_concatenates_in_order():
    frames = [{"conversationId": 3}, {"content": "a"}, {"content": "b"}, {"content": ""}, {"done": True}]

    assert collect_reply(frames) == "ab"


def test_collect_reply_raises_on_error_frame():
    with pytest.raises(ChatStreamError, match="try again"):
        collect_reply([{"content": "par"}, {"error": "Sorry, please try again."}])
