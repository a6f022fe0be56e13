import sys
import os
import json

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import d21vote.persist
import d21vote.event
import d21vote.record
import d21vote.storage
import d21vote.tally
import d21vote.vote


OBJECTS = [
    d21vote.event.EventState(
        'creator', 'Persisted', 'Příliš žluťoučký kůň', ['A', 'B', 'C'],
        1700003600, 2, True, 1, 2, [4, -2, 1],
    ),
    d21vote.record.VoteRecord('voter1'),
    d21vote.record.VoteRecord('voter2', True, [0, 2], [1]),
    d21vote.vote.Ballot([3, 1], [0]),
    d21vote.vote.BallotValidator(5, 3, True, 1, 2),
    d21vote.vote.BallotCountChecker((1, 3), 'plus'),
    d21vote.event.EventConfigValidator(max_choices=5),
    d21vote.tally.TallyEngine(-10, 10),
]


@pytest.mark.parametrize('obj', OBJECTS)
def test_roundtrip(obj):
    dict_form = d21vote.persist.to_dict(obj)
    serial = json.dumps(dict_form)
    roundtrip_dict_form = d21vote.persist.from_dict(json.loads(serial)).to_dict()
    assert dict_form == roundtrip_dict_form
    assert serial == json.dumps(roundtrip_dict_form)


def test_record_form():
    record = d21vote.record.VoteRecord('voter2', True, [2, 0], [1])
    assert d21vote.persist.to_dict(record) == {
        'class': 'd21vote.record.VoteRecord',
        'voter': 'voter2',
        'has_voted': True,
        'plus_choices': {'type': 'frozenset', 'value': [0, 2]},
        'minus_choices': {'type': 'frozenset', 'value': [1]},
    }


def test_event_equal_after_roundtrip():
    event = OBJECTS[0]
    loaded = d21vote.persist.from_dict(d21vote.persist.to_dict(event))
    assert isinstance(loaded, d21vote.event.EventState)
    assert loaded == event
    assert loaded.total_votes == [4, -2, 1]


@pytest.mark.parametrize('value', [
    [],
    {'title': 'no class'},
    {'class': '.relative.Name'},
    {'class': 'not an identifier'},
])
def test_from_dict_invalid(value):
    with pytest.raises(ValueError):
        d21vote.persist.from_dict(value)


def test_serialize_unknown():
    with pytest.raises(ValueError):
        d21vote.persist.serialize_value(object())


@pytest.mark.parametrize('value', [
    {'class': 'subprocess.Popen', 'args': ['true']},
    {'class': 'os.system', 'command': 'true'},
    {'class': 'd21vote.storage.JSONFileStore', 'path': 'elsewhere.json'},
    {'class': 'd21vote.event.byte_length', 'text': 'abc'},
    {'class': 'd21vote.nothing.Here'},
    {'class': 'd21vote.event.Nothing'},
    {'class': 'd21vote.vote.Ballot', 'plus_choices': {
        'type': 'os.listdir', 'value': []
    }},
    {'class': 'd21vote.vote.Ballot', 'plus_choices': {
        'type': 'eval', 'value': ['1']
    }},
])
def test_from_dict_foreign_objects(value):
    with pytest.raises(ValueError):
        d21vote.persist.from_dict(value)


def test_file_store_refuses_foreign_class(tmp_path):
    path = tmp_path / 'store.json'
    path.write_text(json.dumps({
        '["event", "ev1"]': {'class': 'subprocess.Popen', 'args': ['true']},
    }), encoding='utf8')
    store = d21vote.storage.JSONFileStore(str(path))
    with pytest.raises(ValueError):
        store.read(d21vote.storage.event_key('ev1'))
