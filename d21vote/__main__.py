"""A commandline tool to run D21 votes kept in a JSON file.

Create events, cast ballots in them and show their results.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from d21vote.errors import VotingError, StorageError
from d21vote.event import EventState, format_remaining, choice_labels
from d21vote.storage import JSONFileStore
from d21vote.system import VotingBooth, EVENT_STATUSES
from d21vote.tally import summarize, leaders

EVENT_PARAMS = [
    'title', 'description', 'choices', 'deadline', 'max_plus_votes',
    'allow_minus', 'max_minus_votes', 'min_plus_for_minus',
]

argparser = argparse.ArgumentParser(
    prog='d21vote',
    description=__doc__,
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
argparser.add_argument(
    '-S', '--store',
    default='d21vote.json',
    help='JSON file to keep events and vote records in',
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all log messages',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='do not show any log messages',
)
subparsers = argparser.add_subparsers(dest='command', metavar='command')

create_parser = subparsers.add_parser(
    'create',
    help='create a new event',
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
create_parser.add_argument(
    'creator',
    help='identity of the event creator',
)
create_parser.add_argument(
    '-i', '--input-file',
    type=argparse.FileType('r', encoding='utf8'),
    help=(
        'JSON file with event parameters (keys: '
        + ', '.join(EVENT_PARAMS)
        + '); options given on the command line override it'
    ),
)
create_parser.add_argument('-t', '--title', help='event title')
create_parser.add_argument('-D', '--description', help='event description')
create_parser.add_argument(
    '-c', '--choices',
    nargs='+',
    help='labels of the choices',
)
create_parser.add_argument(
    '--deadline',
    type=int,
    help='Unix time at which the voting closes',
)
create_parser.add_argument(
    '--duration',
    type=int,
    help='close the voting this many minutes from now (overrides deadline)',
)
create_parser.add_argument(
    '-p', '--max-plus-votes',
    type=int,
    help='maximum number of plus votes per ballot',
)
create_parser.add_argument(
    '-m', '--allow-minus',
    action='store_true',
    default=None,
    help='allow minus votes',
)
create_parser.add_argument(
    '--max-minus-votes',
    type=int,
    help='maximum number of minus votes per ballot',
)
create_parser.add_argument(
    '--min-plus-for-minus',
    type=int,
    help='number of plus votes required to cast minus votes',
)

vote_parser = subparsers.add_parser('vote', help='cast a ballot')
vote_parser.add_argument('event_id', help='identifier of the event')
vote_parser.add_argument('voter', help='identity of the voter')
vote_parser.add_argument(
    '-P', '--plus',
    type=int,
    nargs='+',
    default=[],
    help='indices of the choices to vote for',
)
vote_parser.add_argument(
    '-M', '--minus',
    type=int,
    nargs='*',
    help='indices of the choices to vote against',
)

show_parser = subparsers.add_parser('show', help='show an event')
show_parser.add_argument('event_id', help='identifier of the event')

results_parser = subparsers.add_parser('results', help='show event results')
results_parser.add_argument('event_id', help='identifier of the event')

list_parser = subparsers.add_parser('list', help='list stored events')
list_parser.add_argument(
    '-s', '--status',
    choices=EVENT_STATUSES,
    help='only list events with this status',
)


def main(argv: Optional[List[str]] = None) -> int:
    args = argparser.parse_args(argv)
    logging.basicConfig(
        level=(
            logging.DEBUG if args.verbose
            else (logging.WARNING if args.quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    if args.command is None:
        argparser.print_usage()
        return 2
    booth = VotingBooth(JSONFileStore(args.store))
    try:
        COMMANDS[args.command](booth, args)
    except (VotingError, StorageError, ValueError) as err:
        print(f'error: {err}', file=sys.stderr)
        return 1
    return 0


def event_params(args: argparse.Namespace, now: int) -> Dict[str, Any]:
    """Gather event parameters from the input file and the options."""
    params = {}
    if args.input_file is not None:
        params.update(json.load(args.input_file))
        unknown = set(params) - set(EVENT_PARAMS)
        if unknown:
            raise ValueError(
                'unknown event parameters: ' + ', '.join(sorted(unknown))
            )
    for name in EVENT_PARAMS:
        value = getattr(args, name)
        if value is not None:
            params[name] = value
    if args.duration is not None:
        params['deadline'] = now + args.duration * 60
    params.setdefault('description', '')
    missing = [
        name for name in ('title', 'choices', 'deadline', 'max_plus_votes')
        if name not in params
    ]
    if missing:
        raise ValueError('missing event parameters: ' + ', '.join(missing))
    return params


def run_create(booth: VotingBooth, args: argparse.Namespace) -> None:
    params = event_params(args, booth.clock())
    event_id = booth.create_event(args.creator, **params)
    print(event_id)


def run_vote(booth: VotingBooth, args: argparse.Namespace) -> None:
    event, record = booth.cast_vote(
        args.event_id, args.voter, args.plus, args.minus
    )
    print(f'Vote of {record.voter} recorded')
    print('For:     ' + ', '.join(
        choice_labels(event, sorted(record.plus_choices))
    ))
    if record.minus_choices:
        print('Against: ' + ', '.join(
            choice_labels(event, sorted(record.minus_choices))
        ))


def run_show(booth: VotingBooth, args: argparse.Namespace) -> None:
    event = booth.get_event(args.event_id)
    now = booth.clock()
    print(event.title)
    if event.description:
        print(event.description)
    print(f'Created by {event.creator}')
    remaining = format_remaining(event.seconds_remaining(now))
    print(remaining if not event.is_open(now) else f'{remaining} left')
    print(f'Up to {event.max_plus_votes} plus votes per ballot')
    if event.allow_minus:
        print(
            f'Up to {event.max_minus_votes} minus votes per ballot,'
            f' at least {event.min_plus_for_minus} plus votes required'
        )
    n_just_chars = len(str(event.n_choices - 1))
    for i, label in enumerate(event.choices):
        print(str(i).rjust(n_just_chars), ' ', label)


def run_results(booth: VotingBooth, args: argparse.Namespace) -> None:
    event = booth.get_event(args.event_id)
    show_results(event)


def show_results(event: EventState) -> None:
    """Show the tally of the event, best choices first."""
    winners = leaders(event)
    results = summarize(event)
    n_just_chars = len(max(event.choices, key=len))
    for result in results:
        marker = '*' if result.index in winners else ' '
        print(
            marker,
            result.label.ljust(n_just_chars),
            ' ',
            format_votes(result.votes),
            f'({round(result.share * 100)}%)',
        )
    print(f'Total votes: {sum(abs(r.votes) for r in results)}')


def format_votes(votes: int) -> str:
    sign = '+' if votes > 0 else ''
    noun = 'vote' if abs(votes) == 1 else 'votes'
    return f'{sign}{votes} {noun}'


def run_list(booth: VotingBooth, args: argparse.Namespace) -> None:
    now = booth.clock()
    events = booth.list_events(args.status)
    if not events:
        print('No events found')
        return
    for event_id, event in events:
        remaining = format_remaining(event.seconds_remaining(now))
        print(event_id, ' ', event.title, f'[{remaining}]')


COMMANDS = {
    'create': run_create,
    'vote': run_vote,
    'show': run_show,
    'results': run_results,
    'list': run_list,
}


if __name__ == '__main__':
    sys.exit(main())
