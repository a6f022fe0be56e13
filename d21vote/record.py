'''Per-voter vote records.

Each voter has at most one record per event. The record starts unvoted; the
:class:`VoteRecordGuard` marks it as voted together with the accepted ballot,
after which the record cannot change anymore.
'''

import logging
from typing import Any, Iterable

from d21vote.errors import AlreadyVoted
from d21vote.persist import simple_serialization
from d21vote.vote import Ballot

logger = logging.getLogger(__name__)


@simple_serialization
class VoteRecord:
    '''A record of a voter's participation in one event.

    Once ``has_voted`` is true, none of the attributes can be reassigned.

    :param voter: Identity of the voter.
    :param has_voted: Whether the voter has cast their ballot.
    :param plus_choices: Indices of the choices the voter voted for.
    :param minus_choices: Indices of the choices the voter voted against.
    '''
    def __init__(self,
                 voter: Any,
                 has_voted: bool = False,
                 plus_choices: Iterable[int] = frozenset(),
                 minus_choices: Iterable[int] = frozenset(),
                 ):
        self.voter = voter
        self.plus_choices = frozenset(plus_choices)
        self.minus_choices = frozenset(minus_choices)
        # must come last, freezes the record
        self.has_voted = has_voted

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get('has_voted', False):
            raise AttributeError(
                f'cannot set {name}: the vote of {self.voter} is recorded'
            )
        super().__setattr__(name, value)

    @property
    def ballot(self) -> Ballot:
        '''The recorded ballot.'''
        return Ballot(self.plus_choices, self.minus_choices)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, VoteRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        state = repr(self.ballot) if self.has_voted else 'not voted'
        return f'<VoteRecord({self.voter},{state})>'


class VoteRecordGuard:
    '''Record accepted ballots, allowing one ballot per voter only.

    This is the only way to obtain a voted record. Uniqueness of records per
    voter and event is kept by the storage; the guard additionally refuses
    records that are already voted.
    '''
    def record(self,
               record: VoteRecord,
               ballot: Ballot,
               ) -> VoteRecord:
        '''Return the voted counterpart of an unvoted record.

        :param record: The current record of the voter.
        :param ballot: The accepted ballot.
        :raises AlreadyVoted: If the record is already voted.
        '''
        if record.has_voted:
            raise AlreadyVoted(record.voter)
        voted = VoteRecord(
            record.voter, True, ballot.plus_choices, ballot.minus_choices
        )
        logger.info('voter %s cast D21 vote', record.voter)
        logger.info('plus choices: %s', sorted(voted.plus_choices))
        logger.info('minus choices: %s', sorted(voted.minus_choices))
        return voted


DEFAULT_GUARD = VoteRecordGuard()
