import sys
import os
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import d21vote.event
import d21vote.tally
import d21vote.errors
from d21vote.vote import Ballot
from d21vote.tally import COUNTER_MIN, COUNTER_MAX


def make_event(total_votes=None, choices=('A', 'B', 'C')):
    return d21vote.event.EventState(
        'creator', 'Tally', '', list(choices), 1700003600,
        max_plus_votes=2, allow_minus=True, max_minus_votes=1,
        min_plus_for_minus=2, total_votes=total_votes,
    )


@pytest.mark.parametrize(('value', 'delta', 'result'), [
    (0, 1, 1),
    (0, -1, -1),
    (COUNTER_MAX - 1, 1, COUNTER_MAX),
    (COUNTER_MIN + 1, -1, COUNTER_MIN),
    (COUNTER_MAX, -1, COUNTER_MAX - 1),
    (COUNTER_MIN, 1, COUNTER_MIN + 1),
])
def test_checked_add(value, delta, result):
    assert d21vote.tally.checked_add(value, delta) == result


@pytest.mark.parametrize(('value', 'delta'), [
    (COUNTER_MAX, 1),
    (COUNTER_MIN, -1),
])
def test_checked_add_overflow(value, delta):
    with pytest.raises(d21vote.errors.Overflow) as exc_info:
        d21vote.tally.checked_add(value, delta, index=2)
    assert exc_info.value.index == 2
    assert exc_info.value.value == value
    assert exc_info.value.delta == delta
    assert exc_info.value.code == 6009
    assert isinstance(exc_info.value, ArithmeticError)


@pytest.mark.parametrize(('tally', 'ballot', 'result'), [
    ([0, 0, 0], Ballot([0, 1]), [1, 1, 0]),
    ([1, 1, 0], Ballot([0]), [2, 1, 0]),
    ([0, 0, 0], Ballot([0, 2], [1]), [1, -1, 1]),
    ([5, -3, 2], Ballot([1], [0]), [4, -2, 2]),
])
def test_apply(tally, ballot, result):
    event = make_event(tally)
    applied = d21vote.tally.DEFAULT_ENGINE.apply(event, ballot)
    assert applied.total_votes == result
    assert event.total_votes == tally


@pytest.mark.parametrize(('tally', 'ballot'), [
    ([COUNTER_MAX, 0, 0], Ballot([0])),
    # the plus vote for A fits but the one for C does not
    ([0, 0, COUNTER_MAX], Ballot([0, 2])),
    # both plus votes fit, the minus vote does not
    ([0, COUNTER_MIN, 0], Ballot([0, 2], [1])),
    ([COUNTER_MAX - 1, COUNTER_MIN, 7], Ballot([0, 2], [1])),
])
def test_overflow_all_or_nothing(tally, ballot):
    event = make_event(tally)
    with pytest.raises(d21vote.errors.Overflow):
        d21vote.tally.DEFAULT_ENGINE.apply(event, ballot)
    assert event.total_votes == tally


def test_overflow_after_repeated_votes():
    engine = d21vote.tally.TallyEngine(max_value=3)
    event = make_event()
    for i in range(3):
        event = engine.apply(event, Ballot([0, 1]))
    assert event.total_votes == [3, 3, 0]
    with pytest.raises(d21vote.errors.Overflow):
        engine.apply(event, Ballot([2, 0]))
    assert event.total_votes == [3, 3, 0]


def test_adjusted_leaves_input():
    tally = [1, 2, 3]
    result = d21vote.tally.DEFAULT_ENGINE.adjusted(tally, Ballot([0], [2]))
    assert result == [2, 2, 2]
    assert tally == [1, 2, 3]


def test_summarize():
    event = make_event([2, -1, 5])
    results = d21vote.tally.summarize(event)
    assert [r.index for r in results] == [2, 0, 1]
    assert [r.label for r in results] == ['C', 'A', 'B']
    assert [r.votes for r in results] == [5, 2, -1]
    assert [r.share for r in results] == [
        Fraction(5, 8), Fraction(2, 8), Fraction(1, 8)
    ]


def test_summarize_ties_keep_order():
    event = make_event([1, 3, 3, 1], choices='ABCD')
    results = d21vote.tally.summarize(event)
    assert [r.label for r in results] == ['B', 'C', 'A', 'D']


def test_summarize_empty():
    results = d21vote.tally.summarize(make_event())
    assert [r.share for r in results] == [0, 0, 0]
    assert [r.label for r in results] == ['A', 'B', 'C']


@pytest.mark.parametrize(('tally', 'leaders'), [
    ([0, 0, 0], []),
    ([1, 0, 0], [0]),
    ([2, 5, 5], [1, 2]),
    ([-1, 0, 0], [1, 2]),
    ([-3, -1, -2], [1]),
])
def test_leaders(tally, leaders):
    assert d21vote.tally.leaders(make_event(tally)) == leaders
