"""Message queues that feed packets and control messages to decoder threads."""

from __future__ import annotations

import enum
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

log = logging.getLogger(__name__)


class MessageType(enum.IntEnum):
    """Kinds of item passed to a decoder or player thread."""

    PACKET = 1
    PLAY = 2
    STOP = 3
    PAUSE = 4
    NEW_CHANNEL = 5
    ZOOM = 6
    SET_ASPECT_4_3 = 7
    SET_ASPECT_16_9 = 8
    HTSP_STARTED = 9
    CODECDATA = 10
    CROP = 11


@dataclass
class Packet:
    """A chunk of compressed audio or video with its timestamps."""

    data: bytes
    pts: int = -1
    dts: int = -1
    frametype: int = 0

    def __len__(self) -> int:
        return len(self.data)


@dataclass
class QueueItem:
    """One entry of a codec queue: a message type and an optional packet."""

    msgtype: int
    data: Optional[Packet] = None


class CodecQueue:
    """Thread-safe queue between the network reader and a decoder thread.

    Packets are delivered first in, first out. Control messages sent with
    send_message jump ahead of every queued packet. Stopping empties the
    queue, leaves a single stop message in it and refuses further packets
    until the queue is marked running again.
    """

    def __init__(self) -> None:
        # Left end is the head (newest packets); the right end is taken next.
        self._items: Deque[QueueItem] = deque()
        self._cond = threading.Condition()
        self._resume = threading.Event()
        self._running = True
        self._pts = -1
        self._pts_lock = threading.Lock()
        self.codec_type = 0
        self.width = 0
        self.height = 0
        self.first_packet = False

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    @property
    def is_running(self) -> bool:
        """Whether packets are currently accepted."""
        with self._cond:
            return self._running

    @is_running.setter
    def is_running(self, value: bool) -> None:
        with self._cond:
            self._running = bool(value)

    @property
    def pts(self) -> int:
        """Presentation timestamp of the last packet handled, or -1."""
        with self._pts_lock:
            return self._pts

    @pts.setter
    def pts(self, value: int) -> None:
        with self._pts_lock:
            self._pts = value

    def flush(self) -> None:
        """Discard everything in the queue."""
        with self._cond:
            self._items.clear()

    def _stop_with(self, msgtype: MessageType) -> None:
        with self._cond:
            self._running = False
            self._items.clear()
            self._items.append(QueueItem(msgtype))
            self._cond.notify_all()
            self.pts = -1

    def stop(self) -> None:
        """Empty the queue, stop accepting packets and queue a stop message."""
        self._stop_with(MessageType.STOP)

    def new_channel(self) -> None:
        """Empty the queue, stop accepting packets and queue a new-channel message."""
        self._stop_with(MessageType.NEW_CHANNEL)

    def send_message(self, msgtype: int, data: Optional[Packet] = None) -> None:
        """Queue a control message to be taken before any queued packet."""
        with self._cond:
            self._items.append(QueueItem(msgtype, data))
            self._cond.notify_all()

    def pause(self) -> None:
        """Ask the decoder thread to pause."""
        self.send_message(MessageType.PAUSE, None)

    def resume(self) -> None:
        """Wake a decoder thread waiting in wait_for_resume."""
        self._resume.set()

    def wait_for_resume(self, timeout: Optional[float] = None) -> bool:
        """Block until resume is called; return False if the timeout elapsed."""
        resumed = self._resume.wait(timeout)
        if resumed:
            self._resume.clear()
        return resumed

    def add_packet(self, packet: Optional[Packet],
                   msgtype: int = MessageType.PACKET) -> bool:
        """Queue a packet behind the others; return False if it was dropped."""
        if packet is None:
            log.error("Adding empty packet to queue, skipping")
            return False
        with self._cond:
            if not self._running:
                log.info("Dropping packet - codec is stopped.")
                return False
            self._items.appendleft(QueueItem(msgtype, packet))
            self._cond.notify_all()
            return True

    def get_next_item(self, timeout: Optional[float] = None) -> Optional[QueueItem]:
        """Take the next item, waiting for one; None if the timeout elapsed."""
        with self._cond:
            if not self._cond.wait_for(lambda: bool(self._items), timeout):
                return None
            return self._items.pop()