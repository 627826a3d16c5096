# tvhclient

A small Python library for talking to tvheadend servers over HTSP. HTSP is
the binary protocol that tvheadend uses for live TV, programme guide data and
streaming. The library uses only the standard library.

## Modules

- **`tvhclient.messages`**: HTSP binary messages.
  - `encode_message` turns `(FieldType, name, value)` triples into the
    length-prefixed wire form. It accepts STR, S64 and BIN fields.
  - `iter_fields` yields the `Field` entries of a message body.
  - `dump_fields` renders a body as text and recurses into lists and maps.
  - `HtspMessage` wraps a whole message, including its length header. It has
    lookups by field name: `get_string`, `get_int` (signed 32-bit),
    `get_uint` (unsigned 32-bit), `get_int64`, `get_bin` and `get_list`. Each
    lookup returns `None` when the field is absent. `dump` renders the
    message as text.
  - Malformed or truncated data, and values that cannot be encoded, raise
    `MessageError`.
- **`tvhclient.subscription`**: reading `subscriptionStart` messages.
  - `parse_subscription_start` turns such a message into a `Subscription`
    made of `Stream` entries, each with a `StreamType`.
  - It records the video stream and the preferred audio stream. The
    language ranking comes from `audio_lang_priority`. AC-3 is preferred
    over MPEG audio of equal rank.
- **`tvhclient.client`**: `HtspClient`, a TCP client for one or more servers
  given as `ServerAddress` values and addressed by their position.
  - `connect`, `send_message`, `recv_message` and `close` handle the
    connections. `recv_message` takes a timeout in milliseconds; with no
    server given, it reads from whichever connected server is ready.
  - `login` sends `hello` and returns the server's challenge. When a user
    name and password are given, it also authenticates with the SHA-1 digest
    from `login_digest`.
  - `send_skip` sends `subscriptionSkip`.
  - The client is a context manager. Failures raise `HtspError`.
- **`tvhclient.channels`**: `ChannelList` keeps `Channel` entries in order of
  logical channel number (LCN).
  - Channels from different servers that share an LCN are merged into one
    entry.
  - It offers lookups by internal id or LCN, and next/previous navigation
    that wraps around at either end.
  - `dump(events)` renders a table of the channels with the title of each
    one's current event.
- **`tvhclient.events`**: `EventStore`, a thread-safe store of programme
  guide `Event` entries keyed by event id and server.
  - `process_message` applies `eventAdd` and `eventUpdate` messages.
  - `get`, `copy` and `delete` work on single events.
  - `find_hd_version` looks for the same episode, at the same start time, on
    an HD channel of a `ChannelList`.
  - `format_event` renders an event as text.
- **`tvhclient.codec`**: `CodecQueue`, a thread-safe queue that feeds a
  decoder thread with `QueueItem` entries, each carrying a `MessageType` and
  an optional `Packet`.
  - Packets added with `add_packet` come out first in, first out. Control
    messages sent with `send_message` or `pause` go ahead of queued packets.
  - `stop` and `new_channel` empty the queue and leave a single control
    message in it. After that the queue refuses packets until `is_running`
    is set again.
  - `resume` and `wait_for_resume` let a paused decoder wait for a resume.
- **`tvhclient.config`**: settings from the command line and from a
  configuration file.
  - `parse_args(argv, home)` reads options, with the program name first, into
    a `Settings` value.
  - It then applies `name=value` lines from the file given with `--config`.
    Without that option it uses `.tvhclient` in the home directory.
    Command-line values take precedence over the file.
  - `load_config`, `find_option`, `format_usage` and `dump_settings` are
    available on their own.
  - Unknown options or missing values raise `ConfigError`. `--help` raises
    `HelpRequested`, which carries the usage text.

## Example

```python
from tvhclient.channels import ChannelList, ChannelType
from tvhclient.messages import FieldType, HtspMessage, encode_message

channels = ChannelList()
channels.add(0, 1, 101, "One", ChannelType.SDTV, 0, 0, 0)
channels.add(1, 1, 7, "One", ChannelType.SDTV, 0, 0, 0)    # same LCN: merged
channels.add(0, 2, 102, "Two HD", ChannelType.HDTV, 0, 0, 0)

first = channels.get_first()
print(len(channels))                            # 2
print(channels.get_name(channels.get_next(first)))  # Two HD
print(channels.get_tvh_id(first))               # (101, 0)

message = HtspMessage(encode_message([
    (FieldType.STR, "method", "hello"),
    (FieldType.S64, "htspversion", 1),
]))
print(message.get_string("method"), message.get_int("htspversion"))  # hello 1
```

The default HTSP port is 9982.

## What it does not do

This is a library only. It installs no command. It does not decode or
display audio or video. It does not read remote controls or keyboards, and it
does not discover servers on the network. `CodecQueue` carries packets to a
decoder, but the decoder is left to the application.

## Running the tests

Install the `test` extra, then run `pytest` from the project root.