"""Parsing of HTSP subscriptionStart messages and audio stream selection."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .messages import HtspMessage, MessageError, iter_fields

log = logging.getLogger(__name__)

VIDEO_CODEC_MPEG2 = 1
VIDEO_CODEC_H264 = 2

AUDIO_CODEC_MPEG = 1
AUDIO_CODEC_AAC = 2
AUDIO_CODEC_AC3 = 3

SUB_CODEC_DVBSUB = 1

CODEC_UNKNOWN = 0


class StreamType(enum.IntEnum):
    """Kinds of elementary stream in a subscription."""

    UNKNOWN = 0
    VIDEO = 1
    AUDIO = 2
    SUB = 3


_STREAM_KINDS = {
    "MPEG2VIDEO": (StreamType.VIDEO, VIDEO_CODEC_MPEG2),
    "H264": (StreamType.VIDEO, VIDEO_CODEC_H264),
    "MPEG2AUDIO": (StreamType.AUDIO, AUDIO_CODEC_MPEG),
    "AAC": (StreamType.AUDIO, AUDIO_CODEC_AAC),
    "AC3": (StreamType.AUDIO, AUDIO_CODEC_AC3),
    "DVBSUB": (StreamType.SUB, SUB_CODEC_DVBSUB),
}

_LANG_PRIORITY = {
    "eng": 99,
    # Codes used on some broadcasts for alternative (mostly English) tracks.
    "v.o": 10,
    "und": 1,
    "qaa": 1,
    "mul": 1,
    "cat": -1,
    "spa": -2,
}


def audio_lang_priority(lang: Optional[str]) -> int:
    """Return a preference score for an audio language code (higher is better)."""
    if not lang:
        return 0
    return _LANG_PRIORITY.get(lang, 0)


@dataclass
class Stream:
    """One elementary stream announced by the server."""

    index: int
    type: StreamType
    codec: int
    lang: Optional[str] = None
    width: int = 0
    height: int = 0
    audio_type: int = 0


@dataclass
class Subscription:
    """The streams of a tuned channel and the chosen video and audio streams."""

    streams: List[Stream] = field(default_factory=list)
    videostream: int = -1
    audiostream: int = -1

    @property
    def num_streams(self) -> int:
        return len(self.streams)

    @property
    def num_audio_streams(self) -> int:
        return sum(1 for s in self.streams if s.type is StreamType.AUDIO)

    @property
    def video(self) -> Optional[Stream]:
        return self.streams[self.videostream] if self.videostream >= 0 else None

    @property
    def audio(self) -> Optional[Stream]:
        return self.streams[self.audiostream] if self.audiostream >= 0 else None


def _prefer_audio(current: Optional[Stream], candidate: Stream) -> bool:
    if current is None:
        return True
    new_prio = audio_lang_priority(candidate.lang)
    old_prio = audio_lang_priority(current.lang)
    if new_prio > old_prio:
        return True
    # AC3 wins over MPEG audio when the language is equally preferred.
    return (
        candidate.codec == AUDIO_CODEC_AC3
        and current.codec == AUDIO_CODEC_MPEG
        and new_prio == old_prio
    )


def parse_subscription_start(message: HtspMessage) -> Subscription:
    """Build a Subscription from a subscriptionStart message."""
    raw = message.get_list("streams")
    if raw is None:
        raise MessageError("subscriptionStart message has no streams list")

    subscription = Subscription()
    for entry in iter_fields(raw):
        sub_msg = HtspMessage(len(entry.data).to_bytes(4, "big") + entry.data, message.server)
        typestr = sub_msg.get_string("type")
        if typestr is None:
            raise MessageError("stream entry has no type")
        lang = sub_msg.get_string("language")
        index = sub_msg.get_int("index") or 0
        log.debug("%d %s %s", index, typestr, lang)

        kind, codec = _STREAM_KINDS.get(typestr, (StreamType.UNKNOWN, CODEC_UNKNOWN))
        if kind is StreamType.UNKNOWN:
            log.warning('Unknown stream type "%s"', typestr)

        stream = Stream(index=index, type=kind, codec=codec,
                        lang=lang[:4] if lang is not None else None)
        position = len(subscription.streams)

        if kind is StreamType.VIDEO:
            stream.width = sub_msg.get_int("width") or 0
            stream.height = sub_msg.get_int("height") or 0
            subscription.videostream = position
        elif kind is StreamType.AUDIO:
            stream.audio_type = sub_msg.get_int("audio_type") or 0
            if _prefer_audio(subscription.audio, stream):
                subscription.audiostream = position
                log.debug("Audio stream is index %d", stream.index)

        subscription.streams.append(stream)

    return subscription