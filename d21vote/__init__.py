"""D21vote - validation and tallying of D21 (Janeček method) votes.

In a D21 vote, each voter may vote for several of the offered choices and,
if the event allows it, also against a smaller number of them. The library
covers the whole life of a single event:

-   Creating an event with a validated configuration of choices and voting
    limits. This is done by :func:`event.create_event`.
-   Checking a submitted ballot against the event rules, its deadline and
    the voter's history. The validators are in the :mod:`vote` module.
-   Adding an accepted ballot to the running signed tally of the event
    (:mod:`tally`) and recording that the voter has voted (:mod:`record`).

The :mod:`system` module combines these into the :func:`system.cast_vote`
operation and the :class:`system.VotingBooth`, which keeps events and vote
records in a key-value store from the :mod:`storage` module.
"""
