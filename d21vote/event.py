'''Voting events and validation of their configuration.

An event fixes an ordered list of choices (addressed by their zero-based
index for its whole lifetime), a deadline and the D21 limits:

-   ``max_plus_votes`` - how many choices a voter may vote for,
-   ``allow_minus`` - whether voting against choices is possible at all,
-   ``max_minus_votes`` - how many choices a voter may vote against,
-   ``min_plus_for_minus`` - how many plus votes a voter must cast before
    being allowed to cast any minus vote.

The event also holds the running signed tally, one counter per choice.
Events are created by :func:`create_event`, which refuses any configuration
that the ballot validator could not rely on.
'''

import logging
from typing import Any, List, Optional, Sequence

from d21vote.errors import (
    NoChoicesProvided, TitleTooLong, DescriptionTooLong, InvalidConfig
)
from d21vote.persist import simple_serialization

logger = logging.getLogger(__name__)

MAX_TITLE_BYTES: int = 64
MAX_DESCRIPTION_BYTES: int = 256
MAX_CHOICES: int = 10
MAX_CHOICE_BYTES: int = 64


def byte_length(text: str) -> int:
    '''Return the length of the text in UTF-8 encoded bytes.'''
    return len(text.encode('utf8'))


@simple_serialization
class EventState:
    '''A voting event: its fixed configuration and its running tally.

    Do not construct directly to create new events, use
    :func:`create_event`, which validates the configuration. The constructor
    accepts any values so that stored events can be loaded back.

    :param creator: Identity of the account that created the event.
    :param title: Title of the event.
    :param description: Longer description of the event.
    :param choices: Labels of the choices; their positions are the choice
        indices.
    :param deadline: Unix timestamp; voting is open strictly before it.
    :param max_plus_votes: Maximum number of plus votes in a ballot.
    :param allow_minus: Whether minus votes are allowed.
    :param max_minus_votes: Maximum number of minus votes in a ballot.
        Ignored when minus votes are not allowed.
    :param min_plus_for_minus: Minimum number of plus votes in a ballot that
        also contains minus votes. Ignored when minus votes are not allowed.
    :param total_votes: Signed vote counters, one per choice. Zeros if not
        given.
    '''
    def __init__(self,
                 creator: Any,
                 title: str,
                 description: str,
                 choices: Sequence[str],
                 deadline: int,
                 max_plus_votes: int,
                 allow_minus: bool = False,
                 max_minus_votes: int = 0,
                 min_plus_for_minus: int = 0,
                 total_votes: Optional[Sequence[int]] = None,
                 ):
        self.creator = creator
        self.title = title
        self.description = description
        self.choices = list(choices)
        self.deadline = deadline
        self.max_plus_votes = max_plus_votes
        self.allow_minus = allow_minus
        self.max_minus_votes = max_minus_votes
        self.min_plus_for_minus = min_plus_for_minus
        if total_votes is None:
            total_votes = [0] * len(self.choices)
        self.total_votes = list(total_votes)

    @property
    def n_choices(self) -> int:
        return len(self.choices)

    def is_open(self, now: int) -> bool:
        '''Return True if ballots may still be cast at the given time.'''
        return now < self.deadline

    def seconds_remaining(self, now: int) -> int:
        '''Return the number of seconds until the deadline, at least zero.'''
        return max(self.deadline - now, 0)

    def with_tally(self, total_votes: Sequence[int]) -> 'EventState':
        '''Return a copy of the event with the tally replaced.

        :raises ValueError: If the number of counters does not match the
            number of choices.
        '''
        if len(total_votes) != self.n_choices:
            raise ValueError(
                f'tally has {len(total_votes)} counters,'
                f' event has {self.n_choices} choices'
            )
        return EventState(
            self.creator, self.title, self.description, self.choices,
            self.deadline, self.max_plus_votes, self.allow_minus,
            self.max_minus_votes, self.min_plus_for_minus, total_votes,
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, EventState):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f'<EventState({self.title!r},{self.total_votes})>'


@simple_serialization
class EventConfigValidator:
    '''Validate the parameters of a new event.

    The checks run in a fixed order and the first failing one determines
    the error raised.

    :param max_title_bytes: Maximum UTF-8 length of the title.
    :param max_description_bytes: Maximum UTF-8 length of the description.
    :param max_choices: Maximum number of choices.
    :param max_choice_bytes: Maximum UTF-8 length of a choice label.
    '''
    def __init__(self,
                 max_title_bytes: int = MAX_TITLE_BYTES,
                 max_description_bytes: int = MAX_DESCRIPTION_BYTES,
                 max_choices: int = MAX_CHOICES,
                 max_choice_bytes: int = MAX_CHOICE_BYTES,
                 ):
        self.max_title_bytes = max_title_bytes
        self.max_description_bytes = max_description_bytes
        self.max_choices = max_choices
        self.max_choice_bytes = max_choice_bytes

    def validate(self,
                 title: str,
                 description: str,
                 choices: Sequence[str],
                 max_plus_votes: int,
                 allow_minus: bool = False,
                 max_minus_votes: int = 0,
                 min_plus_for_minus: int = 0,
                 ) -> None:
        '''Check the event parameters.

        :raises NoChoicesProvided: If there are no choices.
        :raises TitleTooLong: If the title is too long.
        :raises DescriptionTooLong: If the description is too long.
        :raises InvalidConfig: If the title or description is not text, there
            are too many choices, a choice label is invalid, or the D21
            limits are out of their ranges.
        '''
        if not choices:
            raise NoChoicesProvided('the event has no choices')
        self._check_text('title', title)
        title_len = byte_length(title)
        if title_len > self.max_title_bytes:
            raise TitleTooLong(title_len, self.max_title_bytes)
        self._check_text('description', description)
        desc_len = byte_length(description)
        if desc_len > self.max_description_bytes:
            raise DescriptionTooLong(desc_len, self.max_description_bytes)
        self._check_choices(choices)
        if not 1 <= max_plus_votes <= len(choices):
            raise InvalidConfig(
                f'max_plus_votes {max_plus_votes},'
                f' must be in [1, {len(choices)}]'
            )
        if allow_minus:
            if not 1 <= max_minus_votes <= max_plus_votes:
                raise InvalidConfig(
                    f'max_minus_votes {max_minus_votes},'
                    f' must be in [1, {max_plus_votes}]'
                )
            if not 1 <= min_plus_for_minus <= max_plus_votes:
                raise InvalidConfig(
                    f'min_plus_for_minus {min_plus_for_minus},'
                    f' must be in [1, {max_plus_votes}]'
                )

    @staticmethod
    def _check_text(name: str, value: Any) -> None:
        if not isinstance(value, str):
            raise InvalidConfig(f'{name} {value!r} is not text')

    def _check_choices(self, choices: Sequence[str]) -> None:
        if not isinstance(choices, (list, tuple)):
            raise InvalidConfig(f'choices {choices!r} are not a list')
        if len(choices) > self.max_choices:
            raise InvalidConfig(
                f'{len(choices)} choices, must be <={self.max_choices}'
            )
        for label in choices:
            if not isinstance(label, str):
                raise InvalidConfig(f'choice label {label!r} is not text')
            if byte_length(label) > self.max_choice_bytes:
                raise InvalidConfig(
                    f'choice label {label!r} is longer than'
                    f' {self.max_choice_bytes} bytes'
                )


DEFAULT_CONFIG_VALIDATOR = EventConfigValidator()


def create_event(creator: Any,
                 title: str,
                 description: str,
                 choices: Sequence[str],
                 deadline: int,
                 max_plus_votes: int,
                 allow_minus: bool = False,
                 max_minus_votes: int = 0,
                 min_plus_for_minus: int = 0,
                 validator: EventConfigValidator = DEFAULT_CONFIG_VALIDATOR,
                 ) -> EventState:
    '''Create a new voting event with a zeroed tally.

    Persisting the event is up to the caller.

    :param creator: Verified identity of the creator.
    :param validator: Validator of the event parameters.
    :returns: The new event.
    :raises ConfigurationError: If the parameters are invalid; no event is
        created then.
    '''
    validator.validate(
        title, description, choices,
        max_plus_votes, allow_minus, max_minus_votes, min_plus_for_minus,
    )
    event = EventState(
        creator, title, description, choices, deadline,
        max_plus_votes, allow_minus, max_minus_votes, min_plus_for_minus,
    )
    logger.info('event initialized by %s', creator)
    logger.info('title: %s', title)
    logger.info('choices: %s', event.choices)
    logger.info('deadline: %d', deadline)
    logger.info(
        'D21 config: max_plus=%d, allow_minus=%s, max_minus=%d,'
        ' min_plus_for_minus=%d',
        max_plus_votes, allow_minus, max_minus_votes, min_plus_for_minus
    )
    return event


def format_remaining(seconds: int) -> str:
    '''Format a number of seconds until the deadline for display.

    :returns: ``Ended`` for zero or less, otherwise the two or three most
        significant units, such as ``2d 3h 15m`` or ``4m 10s``.
    '''
    if seconds <= 0:
        return 'Ended'
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)
    if days > 0:
        return f'{days}d {hours}h {minutes}m'
    elif hours > 0:
        return f'{hours}h {minutes}m {secs}s'
    elif minutes > 0:
        return f'{minutes}m {secs}s'
    else:
        return f'{secs}s'


def choice_labels(event: EventState, indices: Sequence[int]) -> List[str]:
    '''Return the labels of the choices at the given indices.'''
    return [event.choices[i] for i in indices]
