"""Store of programme guide events received from HTSP servers."""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .channels import ChannelList, ChannelType
from .messages import HtspMessage, MessageError

log = logging.getLogger(__name__)


@dataclass
class Event:
    """One programme guide entry."""

    event_id: int
    server: int = 0
    channel_id: int = 0
    start: int = 0
    stop: int = 0
    title: Optional[str] = None
    description: Optional[str] = None
    serieslink_id: int = 0
    serieslink_uri: Optional[str] = None
    episode_id: int = 0
    episode_uri: Optional[str] = None
    season_number: int = 0
    episode_number: int = 0
    next_event_id: int = 0


def _or_null(value: Optional[str]) -> str:
    return "(null)" if value is None else value


def _stamp(seconds: int) -> str:
    t = time.localtime(seconds)
    return (f"{t.tm_year:04d}-{t.tm_mon:02d}-{t.tm_mday:02d} "
            f"{t.tm_hour:02d}:{t.tm_min:02d}:{t.tm_sec:02d}")


def format_event(event: Optional[Event]) -> str:
    """Render an event as readable text."""
    if event is None:
        return "NULL event\n"
    duration = event.stop - event.start
    lines = [
        f"Title:       {_or_null(event.title)}",
        f"Start:       {_stamp(event.start)}",
        f"Stop:        {_stamp(event.stop)}",
        f"Duration:    {duration // 3600:02d}:{(duration % 3600) // 60:02d}:{duration % 60:02d}",
        f"Season:      {event.season_number}",
        f"Episode:     {event.episode_number}",
        f"Description: {_or_null(event.description)}",
        f"Episode ID:  {event.episode_id}",
    ]
    if event.episode_uri:
        lines.append(f"EpisodeUri:  {event.episode_uri}")
    if event.serieslink_uri:
        lines.append(f"SerieslinkUri:  {event.serieslink_uri}")
    return "\n".join(lines) + "\n"


def _uint(message: HtspMessage, name: str) -> int:
    value = message.get_uint(name)
    return 0 if value is None else value


def _int64(message: HtspMessage, name: str) -> int:
    value = message.get_int64(name)
    return 0 if value is None else value


class EventStore:
    """Thread-safe map of events keyed by event id and server."""

    def __init__(self) -> None:
        self._events: Dict[Tuple[int, int], Event] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def process_message(self, method: str, message: HtspMessage) -> Event:
        """Store the event carried by an eventAdd or eventUpdate message."""
        event_id = message.get_uint("eventId")
        if event_id is None:
            raise MessageError("event message has no eventId")
        event = Event(
            event_id=event_id,
            server=message.server,
            channel_id=_uint(message, "channelId"),
            start=_int64(message, "start"),
            stop=_int64(message, "stop"),
            title=message.get_string("title"),
            description=message.get_string("description"),
            serieslink_id=_uint(message, "serieslinkId"),
            serieslink_uri=message.get_string("serieslinkUri"),
            episode_id=_uint(message, "episodeId"),
            episode_number=_uint(message, "episodeNumber"),
            season_number=_uint(message, "seasonNumber"),
            episode_uri=message.get_string("episodeUri"),
            next_event_id=_uint(message, "nextEventId"),
        )
        key = (event_id, message.server)
        with self._lock:
            exists = key in self._events
            if exists and method == "eventAdd":
                log.warning("eventAdd received for existing event %d, updating instead.",
                            event_id)
            elif not exists and method == "eventUpdate":
                log.warning("eventUpdate received for non-existent event %d, adding instead.",
                            event_id)
            self._events[key] = event
            return dataclasses.replace(event)

    def get(self, event_id: int, server: int) -> Optional[Event]:
        """Return the stored event itself, or None."""
        with self._lock:
            return self._events.get((event_id, server))

    def copy(self, event_id: int, server: int) -> Optional[Event]:
        """Return an independent copy of the stored event, or None."""
        with self._lock:
            event = self._events.get((event_id, server))
            return None if event is None else dataclasses.replace(event)

    def delete(self, event_id: int, server: int) -> None:
        """Remove an event if it is stored."""
        with self._lock:
            self._events.pop((event_id, server), None)

    def find_hd_version(self, event_id: int, server: int,
                        channels: ChannelList) -> Optional[int]:
        """Return the channel id of another showing of the same episode on an HD channel."""
        with self._lock:
            current = self._events.get((event_id, server))
            if current is None:
                raise KeyError((event_id, server))
            log.debug("Searching for episode %d", current.episode_id)
            for (other_id, other_server), event in self._events.items():
                if (other_id, other_server) == (event_id, server):
                    continue
                if (event.episode_id == current.episode_id
                        and event.start == current.start
                        and channels.get_type(event.channel_id) == ChannelType.HDTV):
                    return event.channel_id
            return None