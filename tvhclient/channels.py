"""Channel list merged from several HTSP servers, ordered by channel number."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Protocol, Tuple

log = logging.getLogger(__name__)

MAX_SERVERS = 2
NO_CHANNEL_NAME = "[NO CHANNEL]"


class ChannelType(enum.IntEnum):
    """Kinds of channel as reported by the server."""

    NONE = 0
    UNKNOWN = 1
    SDTV = 2
    HDTV = 3
    RADIO = 4


class _EventSource(Protocol):
    def copy(self, event_id: int, server: int): ...


def _per_server() -> List[int]:
    return [0] * MAX_SERVERS


@dataclass
class Channel:
    """One logical channel, possibly available from several servers."""

    id: int
    lcn: int
    name: str
    type: int = ChannelType.NONE
    tag: int = 0
    tvh_id: List[int] = field(default_factory=_per_server)
    event_id: List[int] = field(default_factory=_per_server)
    next_event_id: List[int] = field(default_factory=_per_server)

    def first_server(self) -> Optional[int]:
        """Return the lowest server number carrying this channel, if any."""
        return next((server for server, tvh in enumerate(self.tvh_id) if tvh), None)


def _to_type(value: int) -> int:
    try:
        return ChannelType(value)
    except ValueError:
        return value


class ChannelList:
    """Channels kept in ascending order of their logical channel number.

    Channels from different servers sharing a channel number are merged.
    Internal ids are handed out in order of creation.
    """

    def __init__(self) -> None:
        self._channels: List[Channel] = []
        self._by_id: Dict[int, Channel] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[Channel]:
        return iter(self._channels)

    @property
    def count(self) -> int:
        """Number of channel ids handed out so far."""
        return self._next_id

    @staticmethod
    def _check_server(server: int) -> None:
        if not 0 <= server < MAX_SERVERS:
            raise ValueError(f"server number out of range: {server}")

    def add(self, server: int, lcn: int, tvh_id: int, name: str, channel_type: int,
            event_id: int, next_event_id: int, tag: int) -> Channel:
        """Add a channel, or merge this server's data into one with the same number."""
        self._check_server(server)
        pos = next((i for i, ch in enumerate(self._channels) if ch.lcn >= lcn),
                   len(self._channels))
        if pos < len(self._channels) and self._channels[pos].lcn == lcn:
            existing = self._channels[pos]
            existing.tvh_id[server] = tvh_id
            existing.event_id[server] = event_id
            existing.next_event_id[server] = next_event_id
            return existing

        channel = Channel(id=self._next_id, lcn=lcn, name=name,
                          type=_to_type(channel_type), tag=tag)
        channel.tvh_id[server] = tvh_id
        channel.event_id[server] = event_id
        channel.next_event_id[server] = next_event_id
        self._next_id += 1
        self._channels.insert(pos, channel)
        self._by_id[channel.id] = channel
        return channel

    def update(self, server: int, tvh_id: int, event_id: int, next_event_id: int) -> bool:
        """Set the current and next event of a server's channel.

        Zero event ids leave the stored value alone. Returns False when no
        channel has that server id.
        """
        self._check_server(server)
        channel = next((ch for ch in self._channels if ch.tvh_id[server] == tvh_id), None)
        if channel is None:
            log.warning("Channel %d not found for update", tvh_id)
            return False
        if event_id:
            channel.event_id[server] = event_id
        if next_event_id:
            channel.next_event_id[server] = next_event_id
        return True

    def get_id(self, lcn: int) -> Optional[int]:
        """Return the id of the channel with this number, or None."""
        return next((ch.id for ch in self._channels if ch.lcn == lcn), None)

    def get_name(self, channel_id: int) -> str:
        channel = self._by_id.get(channel_id)
        return NO_CHANNEL_NAME if channel is None else channel.name

    def _per_server_value(self, channel_id: int, values: str) -> Optional[Tuple[int, int]]:
        channel = self._by_id.get(channel_id)
        if channel is None:
            return None
        server = channel.first_server()
        if server is None:
            return None
        return getattr(channel, values)[server], server

    def get_event_id(self, channel_id: int) -> Optional[Tuple[int, int]]:
        """Return (current event id, server) from the first server, or None."""
        return self._per_server_value(channel_id, "event_id")

    def get_next_event_id(self, channel_id: int) -> Optional[Tuple[int, int]]:
        """Return (next event id, server) from the first server, or None."""
        return self._per_server_value(channel_id, "next_event_id")

    def get_tvh_id(self, channel_id: int) -> Optional[Tuple[int, int]]:
        """Return (server's channel id, server) from the first server, or None."""
        return self._per_server_value(channel_id, "tvh_id")

    def get_lcn(self, channel_id: int) -> Optional[int]:
        channel = self._by_id.get(channel_id)
        return None if channel is None else channel.lcn

    def get_type(self, channel_id: int) -> Optional[int]:
        channel = self._by_id.get(channel_id)
        return None if channel is None else channel.type

    def get_tag(self, channel_id: int) -> Optional[int]:
        channel = self._by_id.get(channel_id)
        return None if channel is None else channel.tag

    def _position(self, channel_id: int) -> Optional[int]:
        channel = self._by_id.get(channel_id)
        if channel is None:
            return None
        return next(i for i, ch in enumerate(self._channels) if ch is channel)

    def get_next(self, channel_id: int) -> int:
        """Return the id of the following channel, wrapping to the first."""
        pos = self._position(channel_id)
        if pos is None:
            return self.get_first()
        return self._channels[(pos + 1) % len(self._channels)].id

    def get_prev(self, channel_id: int) -> int:
        """Return the id of the preceding channel, wrapping to the last."""
        pos = self._position(channel_id)
        if pos is None:
            return self.get_first()
        return self._channels[pos - 1].id

    def get_first(self) -> int:
        if not self._channels:
            raise LookupError("no channels")
        return self._channels[0].id

    def get_last(self) -> int:
        return self.get_prev(self.get_first())

    def dump(self, events: _EventSource) -> str:
        """Render a table of channels with the title of each one's current event."""
        lines = ["id     tvh_id  lcn   name\n"]
        for channel in self._channels:
            for server, tvh in enumerate(channel.tvh_id):
                if not tvh:
                    continue
                padding = " " * max(0, 25 - len(channel.name))
                event = events.copy(channel.event_id[server], server)
                title = "[no event]" if event is None else f"{event.title}"
                lines.append(
                    f"id={channel.id:5d}  {channel.lcn:5d} - {channel.name}{padding}"
                    f"{title} [server {server}, tvh_id {tvh}]\n"
                )
        return "".join(lines)