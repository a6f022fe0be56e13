'''Ballots and ballot validators.

A D21 ballot consists of two sets of choice indices: the choices voted for
(plus votes) and the choices voted against (minus votes). The number of plus
votes is limited by the event, and minus votes are only possible when the
event allows them, up to their own limit, and only in ballots that contain
enough plus votes.

Ballots arrive as raw index sequences, which may contain duplicates, indices
out of range or anything else a client sends. :func:`validate_ballot` checks
them in a fixed order (the first violated rule determines the error) and
returns a :class:`Ballot` with the validated index sets. Validation never
modifies the event or the vote record.
'''

import itertools
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from d21vote.errors import (
    VotingClosed, AlreadyVoted, NoChoicesProvided, TooManyPlusVotes,
    TooManyMinusVotes, DuplicateChoices, ChoiceOutOfRange,
    MinusVotesNotAllowed, InsufficientPlusVotes, OverlappingChoices,
)
from d21vote.event import EventState
from d21vote.persist import simple_serialization

IntBoundsTupleType = Tuple[Optional[int], Optional[int]]


@simple_serialization
class Ballot:
    '''A validated D21 ballot.

    :param plus_choices: Indices of the choices voted for.
    :param minus_choices: Indices of the choices voted against.
    '''
    def __init__(self,
                 plus_choices: Iterable[int],
                 minus_choices: Iterable[int] = frozenset(),
                 ):
        self.plus_choices = frozenset(plus_choices)
        self.minus_choices = frozenset(minus_choices)

    def adjustments(self) -> List[Tuple[int, int]]:
        '''Return the tally adjustments the ballot implies.

        :returns: Pairs of choice index and counter delta; all plus votes
            first, then all minus votes, each in ascending index order.
        '''
        return (
            [(index, 1) for index in sorted(self.plus_choices)]
            + [(index, -1) for index in sorted(self.minus_choices)]
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Ballot):
            return NotImplemented
        return (
            self.plus_choices == other.plus_choices
            and self.minus_choices == other.minus_choices
        )

    def __hash__(self) -> int:
        return hash((self.plus_choices, self.minus_choices))

    def __repr__(self) -> str:
        return (
            f'<Ballot(+{sorted(self.plus_choices)},'
            f'-{sorted(self.minus_choices)})>'
        )


@simple_serialization
class BallotCountChecker:
    '''A helper class to check the number of choices on one side of a ballot.

    :param bounds: A tuple with lower and upper bounds (inclusive) for the
        number of choices. None means the respective bound is not checked.
    :param side: Which side of the ballot is checked, ``plus`` or ``minus``.
    '''
    def __init__(self,
                 bounds: IntBoundsTupleType = (None, None),
                 side: str = 'plus',
                 ):
        if side not in TOO_MANY_ERRORS:
            raise ValueError(f'invalid ballot side: {side!r}')
        self.bounds = tuple(bounds)
        self.min_count, self.max_count = bounds
        self.side = side

    def is_valid(self, count: int) -> bool:
        '''Return True if the count is within the given range.'''
        return (
            (self.min_count is None or count >= self.min_count)
            and (self.max_count is None or count <= self.max_count)
        )

    def check(self, count: int) -> None:
        '''Check if the count is within the given range.

        :raises NoChoicesProvided: If the count is below the lower bound.
        :raises BallotSizeError: If the count is above the upper bound
            (:class:`TooManyPlusVotes` or :class:`TooManyMinusVotes`
            depending on the side).
        '''
        if self.min_count is not None and count < self.min_count:
            raise NoChoicesProvided(f'{count} {self.side} choices given')
        if self.max_count is not None and count > self.max_count:
            raise TOO_MANY_ERRORS[self.side](count, self.max_count)


TOO_MANY_ERRORS = {
    'plus': TooManyPlusVotes,
    'minus': TooManyMinusVotes,
}


@simple_serialization
class BallotValidator:
    '''Validate the structure of a D21 ballot against the event limits.

    This covers the ballot shape only; whether the voting is still open and
    whether the voter has voted already is checked by
    :func:`validate_ballot`.

    :param n_choices: Number of choices of the event.
    :param max_plus_votes: Maximum number of plus votes.
    :param allow_minus: Whether minus votes are allowed.
    :param max_minus_votes: Maximum number of minus votes.
    :param min_plus_for_minus: Minimum number of plus votes required for
        minus votes to be cast.
    '''
    def __init__(self,
                 n_choices: int,
                 max_plus_votes: int,
                 allow_minus: bool = False,
                 max_minus_votes: int = 0,
                 min_plus_for_minus: int = 0,
                 ):
        self.n_choices = n_choices
        self.max_plus_votes = max_plus_votes
        self.allow_minus = allow_minus
        self.max_minus_votes = max_minus_votes
        self.min_plus_for_minus = min_plus_for_minus
        self.plus_checker = BallotCountChecker((1, max_plus_votes), 'plus')
        self.minus_checker = BallotCountChecker(
            (None, max_minus_votes), 'minus'
        )

    @classmethod
    def from_event(cls, event: EventState) -> 'BallotValidator':
        return cls(
            event.n_choices,
            event.max_plus_votes,
            event.allow_minus,
            event.max_minus_votes,
            event.min_plus_for_minus,
        )

    def validate(self,
                 plus_choices: Sequence[int],
                 minus_choices: Optional[Sequence[int]] = None,
                 ) -> Ballot:
        '''Check the ballot and return it in validated form.

        A minus choice list that is present is checked even when empty, so an
        empty minus list is still refused by events without minus votes.

        :param plus_choices: Indices of the choices voted for.
        :param minus_choices: Indices of the choices voted against, or None
            if the voter casts no minus votes.
        :raises NoChoicesProvided: If there are no plus choices.
        :raises TooManyPlusVotes: If there are too many plus choices.
        :raises DuplicateChoices: If an index repeats within either side.
        :raises ChoiceOutOfRange: If an index addresses no choice.
        :raises MinusVotesNotAllowed: If minus choices are given to an event
            that does not allow them.
        :raises TooManyMinusVotes: If there are too many minus choices.
        :raises InsufficientPlusVotes: If minus choices are given with too
            few plus choices.
        :raises OverlappingChoices: If a choice is voted both for and against.
        '''
        plus_choices = list(plus_choices)
        self.plus_checker.check(len(plus_choices))
        self._check_indices(plus_choices)
        if minus_choices is None:
            return Ballot(plus_choices)
        minus_choices = list(minus_choices)
        if not self.allow_minus:
            raise MinusVotesNotAllowed()
        self.minus_checker.check(len(minus_choices))
        if len(plus_choices) < self.min_plus_for_minus:
            raise InsufficientPlusVotes(
                len(plus_choices), self.min_plus_for_minus
            )
        self._check_indices(minus_choices)
        overlap = set(plus_choices).intersection(minus_choices)
        if overlap:
            raise OverlappingChoices(overlap)
        return Ballot(plus_choices, minus_choices)

    def _check_indices(self, choices: List[Any]) -> None:
        for first, second in itertools.combinations(choices, 2):
            if first == second:
                raise DuplicateChoices(choices)
        for index in choices:
            if not is_choice_index(index, self.n_choices):
                raise ChoiceOutOfRange(index, self.n_choices)


def is_choice_index(value: Any, n_choices: int) -> bool:
    '''Return True if the value is an integer index into the choices.'''
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value < n_choices
    )


def validate_ballot(event: EventState,
                    plus_choices: Sequence[int],
                    minus_choices: Optional[Sequence[int]],
                    now: int,
                    has_voted: bool = False,
                    ) -> Ballot:
    '''Check a ballot against the event, its deadline and the voter history.

    The voting deadline is checked first, then the voter history, then the
    ballot structure using :class:`BallotValidator`.

    :param event: The event voted in.
    :param plus_choices: Indices of the choices voted for.
    :param minus_choices: Indices of the choices voted against, or None.
    :param now: Current Unix time.
    :param has_voted: Whether the voter has already voted in the event.
    :returns: The validated ballot.
    :raises VotingClosed: If the deadline has passed.
    :raises AlreadyVoted: If the voter has already voted.
    :raises StructuralError: If the ballot is malformed.
    '''
    if not event.is_open(now):
        raise VotingClosed(event.deadline, now)
    if has_voted:
        raise AlreadyVoted()
    return BallotValidator.from_event(event).validate(
        plus_choices, minus_choices
    )
