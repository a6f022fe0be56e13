'''Creating D21 events and casting ballots in them.

:func:`create_event` and :func:`cast_vote` are pure with respect to storage:
they take the current state and return the new state, leaving persistence to
the caller. A failed call raises a :class:`d21vote.errors.VotingError` and
returns nothing, so the caller's state stays exactly as it was.

:class:`VotingBooth` binds both operations to a key-value store and a clock.
The booth expects to be the only writer for an event while a ballot is being
cast; callers serving concurrent requests must serialize them per event.
'''

import logging
import time
from typing import Any, Callable, List, Optional, Sequence, Tuple

from d21vote.errors import AlreadyVoted, KeyExistsError, VotingError
from d21vote.event import EventState, create_event
from d21vote.record import VoteRecord, VoteRecordGuard, DEFAULT_GUARD
from d21vote.storage import KeyValueStore, event_key, record_key
from d21vote.tally import TallyEngine, DEFAULT_ENGINE
from d21vote.vote import validate_ballot

__all__ = ['create_event', 'cast_vote', 'system_clock', 'VotingBooth']

logger = logging.getLogger(__name__)

EVENT_STATUSES = ('ongoing', 'ended')


def system_clock() -> int:
    '''Return the current Unix time in whole seconds.'''
    return int(time.time())


def cast_vote(event: EventState,
              voter: Any,
              plus_choices: Sequence[int],
              minus_choices: Optional[Sequence[int]] = None,
              record: Optional[VoteRecord] = None,
              now: Optional[int] = None,
              engine: TallyEngine = DEFAULT_ENGINE,
              guard: VoteRecordGuard = DEFAULT_GUARD,
              ) -> Tuple[EventState, VoteRecord]:
    '''Cast a D21 ballot in an event.

    The ballot is validated first, then added to the tally, then recorded.
    The input event and record are never modified.

    :param event: The event to vote in.
    :param voter: Verified identity of the voter.
    :param plus_choices: Indices of the choices voted for.
    :param minus_choices: Indices of the choices voted against, or None.
    :param record: The voter's existing record for the event, if any.
    :param now: Current Unix time; taken from the system clock if not given.
    :param engine: Tally engine to apply the ballot with.
    :param guard: Guard to record the ballot with.
    :returns: The event with the updated tally and the voted record.
    :raises VotingError: If the ballot cannot be accepted.
    '''
    if now is None:
        now = system_clock()
    if record is None:
        record = VoteRecord(voter)
    try:
        ballot = validate_ballot(
            event, plus_choices, minus_choices, now, record.has_voted
        )
        new_event = engine.apply(event, ballot)
        new_record = guard.record(record, ballot)
    except VotingError as err:
        logger.debug('ballot of %s rejected: %s', voter, err)
        raise
    return new_event, new_record


class VotingBooth:
    '''Create events and cast ballots, keeping the state in a store.

    :param store: The store to keep events and vote records in.
    :param clock: A callable returning the current Unix time.
    '''
    def __init__(self,
                 store: KeyValueStore,
                 clock: Callable[[], int] = system_clock,
                 ):
        self.store = store
        self.clock = clock

    def create_event(self, creator: Any, *args, **kwargs) -> str:
        '''Create and store a new event.

        Accepts the parameters of :func:`d21vote.event.create_event`.

        :returns: Identifier of the new event.
        :raises ConfigurationError: If the event parameters are invalid.
        '''
        event = create_event(creator, *args, **kwargs)
        event_id = self.store.new_id()
        self.store.create(event_key(event_id), event)
        logger.info('event %s stored', event_id)
        return event_id

    def get_event(self, event_id: str) -> EventState:
        '''Return the current state of the event.

        :raises KeyNotFoundError: If there is no such event.
        '''
        return self.store.read(event_key(event_id))

    def get_record(self, event_id: str, voter: Any) -> Optional[VoteRecord]:
        '''Return the voter's record in the event, or None if not voted.'''
        return self.store.get(record_key(event_id, voter))

    def cast_vote(self,
                  event_id: str,
                  voter: Any,
                  plus_choices: Sequence[int],
                  minus_choices: Optional[Sequence[int]] = None,
                  ) -> Tuple[EventState, VoteRecord]:
        '''Cast a ballot in a stored event and store the outcome.

        The vote record and the updated tally are stored in a single commit,
        so a record that already exists for the voter blocks the tally
        update, and a failed write stores neither.

        :returns: The updated event and the voter's record.
        :raises VotingError: If the ballot cannot be accepted.
        :raises KeyNotFoundError: If there is no such event.
        '''
        event = self.get_event(event_id)
        new_event, new_record = cast_vote(
            event, voter, plus_choices, minus_choices,
            record=self.get_record(event_id, voter),
            now=self.clock(),
        )
        try:
            self.store.commit(
                created={record_key(event_id, voter): new_record},
                updated={event_key(event_id): new_event},
            )
        except KeyExistsError:
            raise AlreadyVoted(voter) from None
        return new_event, new_record

    def list_events(self,
                    status: Optional[str] = None,
                    ) -> List[Tuple[str, EventState]]:
        '''Return the stored events, optionally filtered by their status.

        :param status: ``ongoing`` for events still open for voting,
            ``ended`` for events past their deadline, None for all.
        :returns: Pairs of event identifier and event.
        :raises ValueError: If the status is not recognized.
        '''
        if status is not None and status not in EVENT_STATUSES:
            raise ValueError(
                f'invalid event status: {status!r}, must be one of'
                f' {", ".join(EVENT_STATUSES)}'
            )
        now = self.clock()
        events = []
        for key in self.store.keys():
            if key[0] != 'event':
                continue
            event = self.store.read(key)
            if status is None or (status == 'ongoing') == event.is_open(now):
                events.append((key[1], event))
        return events
