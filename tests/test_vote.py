import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import d21vote.event
import d21vote.vote
import d21vote.errors
from d21vote.errors import (
    VotingClosed, AlreadyVoted, NoChoicesProvided, TooManyPlusVotes,
    TooManyMinusVotes, DuplicateChoices, ChoiceOutOfRange,
    MinusVotesNotAllowed, InsufficientPlusVotes, OverlappingChoices,
)

DEADLINE = 1700003600
BEFORE = DEADLINE - 60

PLUS_ONLY = d21vote.event.create_event(
    'creator', 'Plus only', '', ['A', 'B', 'C'],
    deadline=DEADLINE, max_plus_votes=2,
)
WITH_MINUS = d21vote.event.create_event(
    'creator', 'With minus', '', ['A', 'B', 'C', 'D', 'E', 'F'],
    deadline=DEADLINE, max_plus_votes=3,
    allow_minus=True, max_minus_votes=2, min_plus_for_minus=2,
)


def check_validation(event, plus, minus, error, now=BEFORE, has_voted=False):
    if error is None:
        return d21vote.vote.validate_ballot(event, plus, minus, now, has_voted)
    else:
        with pytest.raises(error):
            d21vote.vote.validate_ballot(event, plus, minus, now, has_voted)


@pytest.mark.parametrize(('plus', 'minus', 'error'), [
    ([0], None, None),
    ([0, 1], None, None),
    ([2, 0], None, None),
    ([], None, NoChoicesProvided),
    ([0, 1, 2], None, TooManyPlusVotes),
    ([0, 0], None, DuplicateChoices),
    ([0, 3], None, ChoiceOutOfRange),
    ([-1], None, ChoiceOutOfRange),
    ([True], None, ChoiceOutOfRange),
    (['0'], None, ChoiceOutOfRange),
    ([0.0], None, ChoiceOutOfRange),
    ([0], [1], MinusVotesNotAllowed),
    ([0], [], MinusVotesNotAllowed),
])
def test_plus_only(plus, minus, error):
    check_validation(PLUS_ONLY, plus, minus, error)


@pytest.mark.parametrize(('plus', 'minus', 'error'), [
    ([0, 1], [2], None),
    ([0, 1], [2, 3], None),
    ([0, 1, 2], [3, 4], None),
    ([0, 1], [], None),
    ([0], None, None),
    ([0], [], InsufficientPlusVotes),
    ([0], [1], InsufficientPlusVotes),
    ([0, 1], [2, 3, 4], TooManyMinusVotes),
    ([0, 1], [2, 2], DuplicateChoices),
    ([0, 1], [6], ChoiceOutOfRange),
    ([0, 1], [-2], ChoiceOutOfRange),
    ([0, 1], [1], OverlappingChoices),
    ([0, 1], [2, 0], OverlappingChoices),
])
def test_with_minus(plus, minus, error):
    check_validation(WITH_MINUS, plus, minus, error)


# each ballot violates several rules; the earliest check decides the error
@pytest.mark.parametrize(('event', 'plus', 'minus', 'now', 'has_voted', 'error'), [
    (PLUS_ONLY, [0, 0, 0], [0], DEADLINE, True, VotingClosed),
    (PLUS_ONLY, [0, 0, 0], [0], DEADLINE + 1, False, VotingClosed),
    (PLUS_ONLY, [0, 0, 0], [0], BEFORE, True, AlreadyVoted),
    (PLUS_ONLY, [], [0, 0], BEFORE, False, NoChoicesProvided),
    (PLUS_ONLY, [0, 0, 9], [0], BEFORE, False, TooManyPlusVotes),
    (PLUS_ONLY, [9, 9], [0], BEFORE, False, DuplicateChoices),
    (PLUS_ONLY, [0, 9], [0], BEFORE, False, ChoiceOutOfRange),
    (PLUS_ONLY, [0, 1], [0], BEFORE, False, MinusVotesNotAllowed),
    (WITH_MINUS, [0], [0, 0, 0], BEFORE, False, TooManyMinusVotes),
    (WITH_MINUS, [0], [0, 0], BEFORE, False, InsufficientPlusVotes),
    (WITH_MINUS, [0, 1], [9, 9], BEFORE, False, DuplicateChoices),
    (WITH_MINUS, [0, 1], [0, 9], BEFORE, False, ChoiceOutOfRange),
    (WITH_MINUS, [0, 1], [1, 2], BEFORE, False, OverlappingChoices),
])
def test_check_order(event, plus, minus, now, has_voted, error):
    check_validation(event, plus, minus, error, now=now, has_voted=has_voted)


@pytest.mark.parametrize('now', [DEADLINE, DEADLINE + 1, DEADLINE + 10 ** 6])
def test_closed_regardless_of_ballot(now):
    check_validation(PLUS_ONLY, [0], None, VotingClosed, now=now)
    check_validation(PLUS_ONLY, [], [5], VotingClosed, now=now)


def test_validated_ballot():
    ballot = check_validation(WITH_MINUS, (2, 0), [4], None)
    assert ballot.plus_choices == frozenset([0, 2])
    assert ballot.minus_choices == frozenset([4])
    assert ballot == d21vote.vote.Ballot([0, 2], [4])


def test_absent_minus_is_empty():
    ballot = check_validation(WITH_MINUS, [3], None, None)
    assert ballot.minus_choices == frozenset()


def test_validation_does_not_mutate():
    before = WITH_MINUS.to_dict()
    plus = [0, 1]
    minus = [2]
    check_validation(WITH_MINUS, plus, minus, None)
    check_validation(WITH_MINUS, plus, [1], OverlappingChoices)
    assert WITH_MINUS.to_dict() == before
    assert plus == [0, 1]
    assert minus == [2]


def test_adjustments_order():
    ballot = d21vote.vote.Ballot([3, 1], [2, 0])
    assert ballot.adjustments() == [(1, 1), (3, 1), (0, -1), (2, -1)]


def test_validator_from_event():
    validator = d21vote.vote.BallotValidator.from_event(WITH_MINUS)
    assert validator.n_choices == 6
    assert validator.max_plus_votes == 3
    assert validator.allow_minus
    assert validator.max_minus_votes == 2
    assert validator.min_plus_for_minus == 2
    assert validator.validate([5, 4], [0]) == d21vote.vote.Ballot([4, 5], [0])


@pytest.mark.parametrize(('bounds', 'count', 'error'), [
    ((1, 3), 0, NoChoicesProvided),
    ((1, 3), 1, None),
    ((1, 3), 3, None),
    ((1, 3), 4, TooManyPlusVotes),
    ((None, 3), 0, None),
    ((None, None), 100, None),
])
def test_count_checker(bounds, count, error):
    checker = d21vote.vote.BallotCountChecker(bounds, 'plus')
    assert checker.is_valid(count) == (error is None)
    if error is None:
        checker.check(count)
    else:
        with pytest.raises(error):
            checker.check(count)


def test_count_checker_minus():
    checker = d21vote.vote.BallotCountChecker((None, 1), 'minus')
    with pytest.raises(TooManyMinusVotes) as exc_info:
        checker.check(2)
    assert exc_info.value.count == 2
    assert exc_info.value.max_count == 1


def test_count_checker_bad_side():
    with pytest.raises(ValueError):
        d21vote.vote.BallotCountChecker((None, 1), 'neutral')


@pytest.mark.parametrize('error', [
    NoChoicesProvided, TooManyPlusVotes, TooManyMinusVotes, DuplicateChoices,
    ChoiceOutOfRange, MinusVotesNotAllowed, InsufficientPlusVotes,
    OverlappingChoices,
])
def test_structural_errors_recoverable(error):
    assert issubclass(error, d21vote.errors.StructuralError)
    assert error.recoverable


@pytest.mark.parametrize('error', [VotingClosed, AlreadyVoted])
def test_state_errors_final(error):
    assert issubclass(error, d21vote.errors.StateError)
    assert not error.recoverable
