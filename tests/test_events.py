import re

import pytest

from tvhclient.channels import ChannelList, ChannelType
from tvhclient.events import Event, EventStore, format_event
from tvhclient.messages import FieldType, HtspMessage, MessageError, encode_message


def make_msg(server=0, **fields):
    triples = []
    for name, value in fields.items():
        ftype = FieldType.STR if isinstance(value, str) else FieldType.S64
        triples.append((ftype, name, value))
    return HtspMessage(encode_message(triples), server)


def test_add_and_get_fields():
    store = EventStore()
    store.process_message("eventAdd", make_msg(
        eventId=42, channelId=7, start=1000, stop=2800, title="Film",
        description="A story", episodeId=9, seasonNumber=2, episodeNumber=5,
        nextEventId=43, episodeUri="ep://9"))
    event = store.get(42, 0)
    assert event.event_id == 42
    assert event.channel_id == 7
    assert (event.start, event.stop) == (1000, 2800)
    assert event.title == "Film"
    assert event.description == "A story"
    assert event.episode_id == 9
    assert (event.season_number, event.episode_number) == (2, 5)
    assert event.next_event_id == 43
    assert event.episode_uri == "ep://9"
    assert event.serieslink_uri is None


def test_update_replaces_event():
    store = EventStore()
    store.process_message("eventAdd", make_msg(eventId=1, title="Old"))
    store.process_message("eventUpdate", make_msg(eventId=1, title="New"))
    assert store.get(1, 0).title == "New"
    assert len(store) == 1


def test_update_of_unknown_event_adds_it():
    store = EventStore()
    store.process_message("eventUpdate", make_msg(eventId=3, title="X"))
    assert store.get(3, 0).title == "X"


def test_servers_are_separate():
    store = EventStore()
    store.process_message("eventAdd", make_msg(0, eventId=5, title="zero"))
    store.process_message("eventAdd", make_msg(1, eventId=5, title="one"))
    assert store.get(5, 0).title == "zero"
    assert store.get(5, 1).title == "one"
    assert store.get(5, 1).server == 1


def test_missing_event_id_raises():
    with pytest.raises(MessageError):
        EventStore().process_message("eventAdd", make_msg(title="none"))


def test_copy_is_independent():
    store = EventStore()
    store.process_message("eventAdd", make_msg(eventId=8, title="Orig"))
    copied = store.copy(8, 0)
    copied.title = "Changed"
    assert store.get(8, 0).title == "Orig"
    assert store.copy(99, 0) is None


def test_delete():
    store = EventStore()
    store.process_message("eventAdd", make_msg(eventId=8))
    store.delete(8, 0)
    assert store.get(8, 0) is None
    store.delete(8, 0)
    assert len(store) == 0


def test_find_hd_version():
    channels = ChannelList()
    channels.add(0, 1, 11, "SD", ChannelType.SDTV, 0, 0, 0)
    channels.add(0, 2, 12, "HD", ChannelType.HDTV, 0, 0, 0)
    sd_id, hd_id = channels.get_id(1), channels.get_id(2)
    store = EventStore()
    store.process_message("eventAdd", make_msg(eventId=1, channelId=sd_id, episodeId=4, start=500))
    store.process_message("eventAdd", make_msg(eventId=2, channelId=hd_id, episodeId=4, start=500))
    store.process_message("eventAdd", make_msg(eventId=3, channelId=hd_id, episodeId=6, start=500))
    assert store.find_hd_version(1, 0, channels) == hd_id
    assert store.find_hd_version(3, 0, channels) is None
    with pytest.raises(KeyError):
        store.find_hd_version(77, 0, channels)


def test_format_event_none():
    assert format_event(None) == "NULL event\n"


def test_format_event_fields():
    event = Event(event_id=1, start=0, stop=5400, title="Show", season_number=3,
                  episode_number=4, serieslink_uri="crid://series")
    lines = format_event(event).splitlines()
    assert lines[0] == "Title:       Show"
    assert re.fullmatch(r"Start:       \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", lines[1])
    assert lines[3] == "Duration:    01:30:00"
    assert lines[4] == "Season:      3"
    assert lines[5] == "Episode:     4"
    assert lines[6] == "Description: (null)"
    assert lines[-1] == "SerieslinkUri:  crid://series"
    assert not any(line.startswith("EpisodeUri") for line in lines)