'''Errors raised when an event or a ballot breaks the D21 voting rules.

The errors are split into four categories:

-   :class:`ConfigurationError` - invalid event parameters at creation.
-   :class:`StateError` - permanent conditions of the event or the voter
    (closed voting, repeated vote). Resubmitting a different ballot does not
    help.
-   :class:`StructuralError` - a malformed ballot; can be corrected and
    resubmitted.
-   :class:`TallyError` - the tally cannot absorb the ballot.

Every concrete error has a stable numeric ``code`` so that clients can
recognize it without parsing the message.
'''

import abc
from typing import Any, Collection, Optional


class VotingError(Exception, metaclass=abc.ABCMeta):
    '''An event or a ballot is invalid given the D21 voting rules.

    :param detail: Additional text appended to the default message.
    '''
    code: int = NotImplemented
    default_message: str = 'invalid vote'
    recoverable: bool = True

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        message = self.default_message
        if detail:
            message += f': {detail}'
        super().__init__(message)


class ConfigurationError(VotingError):
    '''Event parameters are invalid.'''
    pass


class StateError(VotingError):
    '''The event or the voter is in a state that forbids voting.'''
    recoverable = False


class StructuralError(VotingError):
    '''A ballot is malformed.'''
    pass


class TallyError(VotingError, ArithmeticError):
    '''The tally cannot be adjusted by the ballot.'''
    pass


class VotingClosed(StateError):
    '''The voting deadline has passed.

    :param deadline: Deadline of the event.
    :param now: Time at which the vote was attempted.
    '''
    code = 6000
    default_message = 'Voting deadline has passed'

    def __init__(self, deadline: int, now: int):
        self.deadline = deadline
        self.now = now
        super().__init__(f'deadline {deadline}, now {now}')


class AlreadyVoted(StateError):
    '''The voter has already cast a ballot in the event.'''
    code = 6001
    default_message = 'You have already voted'

    def __init__(self, voter: Any = None):
        self.voter = voter
        super().__init__(None if voter is None else f'voter {voter}')


class NoChoicesProvided(ConfigurationError, StructuralError):
    '''No choices were given, either for the event or in the plus ballot.'''
    code = 6003
    default_message = 'No choices provided'


class TitleTooLong(ConfigurationError):
    code = 6004
    default_message = 'Title is too long'

    def __init__(self, length: int, max_length: int):
        self.length = length
        self.max_length = max_length
        super().__init__(f'{length} bytes, must be <={max_length}')


class DescriptionTooLong(ConfigurationError):
    code = 6005
    default_message = 'Description is too long'

    def __init__(self, length: int, max_length: int):
        self.length = length
        self.max_length = max_length
        super().__init__(f'{length} bytes, must be <={max_length}')


class InvalidConfig(ConfigurationError):
    '''The D21 limits of the event contradict each other or the choices.'''
    code = 6006
    default_message = 'Invalid event configuration'


class DuplicateChoices(StructuralError):
    '''A choice index appears more than once within one side of the ballot.

    :param choices: The offending index sequence.
    '''
    code = 6007
    default_message = 'Duplicate choices provided'

    def __init__(self, choices: Collection[Any]):
        self.choices = choices
        super().__init__(f'{list(choices)}')


class ChoiceOutOfRange(StructuralError):
    '''A choice index does not address any of the event choices.

    :param index: The offending index.
    :param n_choices: Number of choices of the event.
    '''
    code = 6008
    default_message = 'Choice index out of range'

    def __init__(self, index: Any, n_choices: int):
        self.index = index
        self.n_choices = n_choices
        super().__init__(f'{index!r}, must be in [0, {n_choices - 1}]')


class Overflow(TallyError):
    '''A tally counter would leave the signed 64-bit range.

    :param index: Index of the choice whose counter would overflow.
    :param value: Current value of the counter.
    :param delta: The adjustment that could not be applied.
    '''
    code = 6009
    default_message = 'Overflow in vote tally'

    def __init__(self, index: int, value: int, delta: int):
        self.index = index
        self.value = value
        self.delta = delta
        super().__init__(f'choice {index}: {value} {delta:+d}')


class BallotSizeError(StructuralError):
    '''One side of the ballot selects more choices than allowed.

    :param count: Number of choices selected.
    :param max_count: Maximum allowed by the event.
    '''
    def __init__(self, count: int, max_count: int):
        self.count = count
        self.max_count = max_count
        super().__init__(f'{count}, must be <={max_count}')


class TooManyPlusVotes(BallotSizeError):
    code = 6010
    default_message = 'Too many plus votes'


class MinusVotesNotAllowed(StructuralError):
    code = 6011
    default_message = 'Minus votes are not allowed for this event'


class TooManyMinusVotes(BallotSizeError):
    code = 6012
    default_message = 'Too many minus votes'


class InsufficientPlusVotes(StructuralError):
    '''Too few plus votes were cast to unlock minus votes.

    :param count: Number of plus votes in the ballot.
    :param min_count: Number of plus votes required.
    '''
    code = 6013
    default_message = 'Insufficient plus votes to cast minus votes'

    def __init__(self, count: int, min_count: int):
        self.count = count
        self.min_count = min_count
        super().__init__(f'{count}, must be >={min_count}')


class OverlappingChoices(StructuralError):
    '''Some choices are voted both for and against.

    :param choices: The choice indices present on both sides.
    '''
    code = 6014
    default_message = 'Overlapping choices between plus and minus votes'

    def __init__(self, choices: Collection[int]):
        self.choices = choices
        super().__init__(f'{sorted(choices)}')


class StorageError(Exception):
    '''The storage collaborator cannot satisfy a request.'''
    pass


class KeyExistsError(StorageError):
    '''A key to be created is already present in the store.'''

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f'key already exists: {key!r}')


class KeyNotFoundError(StorageError, KeyError):
    '''A key to be read or updated is not present in the store.'''

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f'key not found: {key!r}')

    def __str__(self) -> str:
        return self.args[0]
