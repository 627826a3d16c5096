import pytest

from tvhclient.messages import FieldType, HtspMessage, MessageError, encode_message
from tvhclient.subscription import (
    AUDIO_CODEC_AC3,
    AUDIO_CODEC_MPEG,
    VIDEO_CODEC_H264,
    StreamType,
    audio_lang_priority,
    parse_subscription_start,
)


def _field(ftype, name, data):
    name_bytes = name.encode()
    return bytes([ftype, len(name_bytes)]) + len(data).to_bytes(4, "big") + name_bytes + data


def _stream(**values):
    fields = []
    for key, value in values.items():
        ftype = FieldType.STR if isinstance(value, str) else FieldType.S64
        fields.append((ftype, key, value))
    return _field(FieldType.MAP, "", encode_message(fields)[4:])


def _start(*streams):
    body = encode_message([(FieldType.STR, "method", "subscriptionStart")])[4:]
    body += _field(FieldType.LIST, "streams", b"".join(streams))
    return HtspMessage(len(body).to_bytes(4, "big") + body)


@pytest.mark.parametrize(
    "lang, expected",
    [("eng", 99), ("v.o", 10), ("und", 1), ("qaa", 1), ("mul", 1),
     ("cat", -1), ("spa", -2), ("fra", 0), (None, 0)],
)
def test_audio_lang_priority(lang, expected):
    assert audio_lang_priority(lang) == expected


def test_video_stream_details():
    sub = parse_subscription_start(_start(_stream(index=1, type="H264", width=1280, height=720)))
    assert sub.videostream == 0
    assert sub.video.codec == VIDEO_CODEC_H264
    assert (sub.video.width, sub.video.height) == (1280, 720)
    assert sub.audiostream == -1


def test_english_preferred_over_spanish():
    sub = parse_subscription_start(_start(
        _stream(index=1, type="MPEG2AUDIO", language="spa"),
        _stream(index=2, type="MPEG2AUDIO", language="eng"),
        _stream(index=3, type="MPEG2AUDIO", language="cat"),
    ))
    assert sub.audio.index == 2
    assert sub.num_audio_streams == 3


def test_ac3_preferred_over_mpeg_same_language():
    sub = parse_subscription_start(_start(
        _stream(index=1, type="MPEG2AUDIO", language="eng"),
        _stream(index=2, type="AC3", language="eng"),
    ))
    assert sub.audio.codec == AUDIO_CODEC_AC3
    assert sub.audio.index == 2


def test_ac3_not_preferred_when_language_worse():
    sub = parse_subscription_start(_start(
        _stream(index=1, type="MPEG2AUDIO", language="eng"),
        _stream(index=2, type="AC3", language="spa"),
    ))
    assert sub.audio.codec == AUDIO_CODEC_MPEG


def test_first_audio_kept_on_tie():
    sub = parse_subscription_start(_start(
        _stream(index=4, type="AAC", language="fra"),
        _stream(index=5, type="MPEG2AUDIO", language="deu"),
    ))
    assert sub.audio.index == 4


def test_subtitle_and_unknown_streams():
    sub = parse_subscription_start(_start(
        _stream(index=1, type="DVBSUB"),
        _stream(index=2, type="TELETEXT"),
    ))
    assert [s.type for s in sub.streams] == [StreamType.SUB, StreamType.UNKNOWN]
    assert sub.num_streams == 2
    assert sub.videostream == -1


def test_audio_type_read():
    sub = parse_subscription_start(_start(_stream(index=1, type="AAC", audio_type=3)))
    assert sub.audio.audio_type == 3


def test_missing_streams_list():
    msg = HtspMessage(encode_message([(FieldType.STR, "method", "subscriptionStart")]))
    with pytest.raises(MessageError):
        parse_subscription_start(msg)


def test_missing_stream_type():
    with pytest.raises(MessageError):
        parse_subscription_start(_start(_stream(index=1)))