"""Tests for carriage-return framing."""

from brainboxes_ed_mcp.protocol.framing import (
    DELIMITER,
    FrameDecoder,
    decode,
    encode_command,
)


def test_encode_appends_single_carriage_return():
    """Encoding adds exactly one trailing CR and nothing else."""
    assert encode_command("@01") == b"@01\r"


def test_encode_does_not_validate_length():
    """Long commands are passed through untouched."""
    command = "#" + "0" * 100
    assert encode_command(command) == command.encode("ascii") + b"\r"


def test_roundtrip_encode_decode():
    """Decoding an encoded command yields the original text."""
    for command in ("@01", "#01B101", "@0155", "#010A", "$01RS"):
        frames, rest = decode("", encode_command(command))
        assert frames == [command]
        assert rest == ""


def test_decode_keeps_partial_frame():
    """Data after the last delimiter stays in the buffer."""
    frames, rest = decode("", b">ff\r!01")
    assert frames == [">ff"]
    assert rest == "!01"

    frames, rest = decode(rest, b"007\r")
    assert frames == ["!01007"]
    assert rest == ""


def test_decode_multiple_frames_in_one_chunk():
    """Several frames in a single chunk come out in order."""
    frames, rest = decode("", ">\r?\r>ff\r")
    assert frames == [">", "?", ">ff"]
    assert rest == ""


def test_decode_independent_of_chunking():
    """The same bytes split any way produce the same frames."""
    data = b">ff\r>\r!01007\r?\r"
    whole, _ = decode("", data)

    for size in range(1, len(data) + 1):
        buffer = ""
        frames: list[str] = []
        for i in range(0, len(data), size):
            new, buffer = decode(buffer, data[i : i + size])
            frames.extend(new)
        assert frames == whole
        assert buffer == ""


def test_empty_frames_are_dropped():
    """A delimiter at the front of the buffer is consumed without a frame."""
    frames, rest = decode("", "\r>\r\r>ff\r")
    assert frames == [">", ">ff"]
    assert rest == ""


def test_empty_frame_does_not_stall_later_frames():
    """Frames after an empty one are still delivered on later chunks."""
    decoder = FrameDecoder()
    assert list(decoder.feed(">\r\r")) == [">"]
    assert list(decoder.feed("?\r")) == ["?"]
    assert decoder.buffer == ""


def test_decode_is_8bit_clean():
    """Bytes above 0x7F survive decoding."""
    frames, _ = decode("", b"\xff\x80\r")
    assert frames == ["\xff\x80"]


def test_decoder_feed_is_lazy():
    """Frames are removed from the buffer only as they are consumed."""
    decoder = FrameDecoder()
    frames = decoder.feed(">1\r>2\r")
    assert decoder.buffer == ">1\r>2\r"

    assert next(frames) == ">1"
    assert decoder.buffer == ">2\r"
    assert list(frames) == [">2"]
    assert decoder.buffer == ""


def test_decoder_feed_is_not_restartable():
    """A consumed iterator yields nothing more."""
    decoder = FrameDecoder()
    frames = decoder.feed(">\r")
    assert list(frames) == [">"]
    assert list(frames) == []


def test_decoder_buffer_never_holds_delimiter_after_drain():
    """After draining, only an undelimited tail remains."""
    decoder = FrameDecoder()
    list(decoder.feed(">ff\r>0"))
    assert DELIMITER not in decoder.buffer
    assert decoder.buffer == ">0"


def test_decoder_reset():
    """Reset discards any partial frame."""
    decoder = FrameDecoder()
    list(decoder.feed(">f"))
    decoder.reset()
    assert decoder.buffer == ""
    assert list(decoder.feed("f\r")) == ["f"]
