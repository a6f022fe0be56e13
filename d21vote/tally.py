'''The running signed tally of an event.

Every choice has one counter, incremented by plus votes and decremented by
minus votes. Counters are kept in the signed 64-bit range; an adjustment
that would leave it fails with :class:`Overflow`. A ballot is applied as a
whole: either all its adjustments are applied, or none of them.

The module also summarizes a tally into ordered results.
'''

import logging
from fractions import Fraction
from typing import List, NamedTuple, Sequence

from d21vote.errors import Overflow
from d21vote.event import EventState
from d21vote.persist import simple_serialization
from d21vote.vote import Ballot

logger = logging.getLogger(__name__)

COUNTER_MIN: int = -2 ** 63
COUNTER_MAX: int = 2 ** 63 - 1


def checked_add(value: int,
                delta: int,
                index: int = -1,
                min_value: int = COUNTER_MIN,
                max_value: int = COUNTER_MAX,
                ) -> int:
    '''Add the delta to a counter value, refusing to leave the counter range.

    :param index: Choice index of the counter, reported in the error.
    :raises Overflow: If the result does not fit into the counter range.
    '''
    result = value + delta
    if not min_value <= result <= max_value:
        raise Overflow(index, value, delta)
    return result


@simple_serialization
class TallyEngine:
    '''Apply validated ballots to event tallies.

    The adjustments are computed on a working copy of the counters, which
    replaces the event tally only when all adjustments succeed.

    :param min_value: Lowest value a counter may reach.
    :param max_value: Highest value a counter may reach.
    '''
    def __init__(self,
                 min_value: int = COUNTER_MIN,
                 max_value: int = COUNTER_MAX,
                 ):
        self.min_value = min_value
        self.max_value = max_value

    def adjusted(self,
                 total_votes: Sequence[int],
                 ballot: Ballot,
                 ) -> List[int]:
        '''Return the counters with the ballot applied.

        The input counters are not modified.

        :param total_votes: Current counters, one per choice.
        :param ballot: A ballot validated against the same event.
        :raises Overflow: If any counter would leave the allowed range.
        '''
        working = list(total_votes)
        for index, delta in ballot.adjustments():
            working[index] = checked_add(
                working[index], delta, index, self.min_value, self.max_value
            )
        return working

    def apply(self, event: EventState, ballot: Ballot) -> EventState:
        '''Return a copy of the event with the ballot added to its tally.

        :param event: The event voted in; it is left unchanged.
        :param ballot: A ballot validated against the event.
        :raises Overflow: If any counter would leave the allowed range.
        '''
        new_tally = self.adjusted(event.total_votes, ballot)
        logger.debug('tally updated: %s -> %s', event.total_votes, new_tally)
        return event.with_tally(new_tally)


DEFAULT_ENGINE = TallyEngine()


class ChoiceResult(NamedTuple):
    '''Result of a single choice.'''
    index: int
    label: str
    votes: int
    share: Fraction


def summarize(event: EventState) -> List[ChoiceResult]:
    '''Summarize the tally of the event into ordered results.

    The share of a choice is the absolute value of its counter relative to
    the sum of absolute values of all counters (zero if all are zero).

    :returns: Results of all choices in descending order of votes; choices
        with equal votes keep their order in the event.
    '''
    abs_total = sum(abs(votes) for votes in event.total_votes)
    results = [
        ChoiceResult(
            index, label, votes,
            Fraction(abs(votes), abs_total) if abs_total else Fraction(0)
        )
        for index, (label, votes)
        in enumerate(zip(event.choices, event.total_votes))
    ]
    return sorted(results, key=lambda result: -result.votes)


def leaders(event: EventState) -> List[int]:
    '''Return the indices of the choices with the highest count.

    :returns: All choice indices sharing the maximum count in ascending
        order, or an empty list if nobody has voted for or against anything.
    '''
    if not any(event.total_votes):
        return []
    best = max(event.total_votes)
    return [i for i, votes in enumerate(event.total_votes) if votes == best]
