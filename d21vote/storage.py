'''Key-value stores for events and vote records.

The voting logic does not care how events and records are stored; it only
needs a store that can create a key exactly once (the first write wins),
read it back and update it. Events are stored under ``('event', event_id)``
keys and vote records under ``('vote', event_id, voter)`` keys, so a voter
can have at most one record per event.

Values are kept in their serialized form (see :mod:`d21vote.persist`), so
objects read from a store never share state with the stored data.
'''

import abc
import itertools
import json
import os
import tempfile
import uuid
from typing import Any, Dict, Iterator, Optional, Tuple

from d21vote import persist
from d21vote.errors import KeyExistsError, KeyNotFoundError

KeyType = Tuple[Any, ...]


def event_key(event_id: str) -> KeyType:
    return ('event', event_id)


def record_key(event_id: str, voter: Any) -> KeyType:
    '''Return the key of the voter's record in the event.

    The voter identity is kept as it is, so identities of different types
    (such as ``1`` and ``'1'``) never share a record. It must be a JSON
    scalar for :class:`JSONFileStore`.
    '''
    return ('vote', event_id, voter)


class KeyValueStore(metaclass=abc.ABCMeta):
    '''An abstract store with first-write-wins creation of keys.'''

    @abc.abstractmethod
    def _get_raw(self, key: KeyType) -> Dict[str, Any]:
        '''Return the serialized value or raise a KeyError.'''
        raise NotImplementedError

    @abc.abstractmethod
    def _put_raw(self, items: Dict[KeyType, Dict[str, Any]]) -> None:
        '''Store all the serialized values at once, or none of them.'''
        raise NotImplementedError

    @abc.abstractmethod
    def keys(self) -> Iterator[KeyType]:
        '''Iterate over all keys in the store.'''
        raise NotImplementedError

    def __contains__(self, key: KeyType) -> bool:
        try:
            self._get_raw(key)
        except KeyError:
            return False
        return True

    def create(self, key: KeyType, value: Any) -> None:
        '''Store a value under a new key.

        :raises KeyExistsError: If the key is already present; the stored
            value is left untouched.
        '''
        self.commit(created={key: value})

    def read(self, key: KeyType) -> Any:
        '''Return the value stored under the key.

        :raises KeyNotFoundError: If the key is not present.
        '''
        try:
            raw = self._get_raw(key)
        except KeyError:
            raise KeyNotFoundError(key) from None
        return persist.from_dict(raw)

    def get(self, key: KeyType, default: Any = None) -> Any:
        '''Return the value stored under the key, or the default.'''
        try:
            return self.read(key)
        except KeyNotFoundError:
            return default

    def update(self, key: KeyType, value: Any) -> None:
        '''Replace the value stored under an existing key.

        :raises KeyNotFoundError: If the key is not present.
        '''
        self.commit(updated={key: value})

    def commit(self,
               created: Optional[Dict[KeyType, Any]] = None,
               updated: Optional[Dict[KeyType, Any]] = None,
               ) -> None:
        '''Create and update several keys as a single write.

        Either all the values are stored, or none of them is.

        :param created: Values to store under new keys.
        :param updated: Values to replace under existing keys.
        :raises KeyExistsError: If a key to create is already present.
        :raises KeyNotFoundError: If a key to update is not present.
        '''
        created = created or {}
        updated = updated or {}
        for key in created:
            if key in self:
                raise KeyExistsError(key)
        for key in updated:
            if key not in self:
                raise KeyNotFoundError(key)
        self._put_raw({
            key: persist.to_dict(value)
            for key, value in itertools.chain(created.items(), updated.items())
        })

    def new_id(self) -> str:
        '''Return a fresh opaque identifier for an event.'''
        return uuid.uuid4().hex


class InMemoryStore(KeyValueStore):
    '''A store keeping everything in a dictionary.'''

    def __init__(self):
        self._data = {}

    def _get_raw(self, key: KeyType) -> Dict[str, Any]:
        return self._data[tuple(key)]

    def _put_raw(self, items: Dict[KeyType, Dict[str, Any]]) -> None:
        self._data.update((tuple(key), value) for key, value in items.items())

    def keys(self) -> Iterator[KeyType]:
        return iter(list(self._data.keys()))


class JSONFileStore(KeyValueStore):
    '''A store persisting everything into a single JSON file.

    The file is rewritten on every write, via a temporary file that
    replaces the previous one, so it never holds a partial write. The
    contents seen through the store change only after the file is replaced.

    :param path: Path to the JSON file. It does not need to exist yet.
    '''
    def __init__(self, path: str):
        self.path = path
        if os.path.exists(path):
            with open(path, encoding='utf8') as infile:
                self._data = json.load(infile)
        else:
            self._data = {}

    @staticmethod
    def _encode_key(key: KeyType) -> str:
        return json.dumps(list(key), ensure_ascii=False)

    def _get_raw(self, key: KeyType) -> Dict[str, Any]:
        return self._data[self._encode_key(key)]

    def _put_raw(self, items: Dict[KeyType, Dict[str, Any]]) -> None:
        data = dict(self._data)
        data.update(
            (self._encode_key(key), value) for key, value in items.items()
        )
        self._flush(data)
        self._data = data

    def keys(self) -> Iterator[KeyType]:
        for encoded in list(self._data.keys()):
            yield tuple(json.loads(encoded))

    def _flush(self, data: Dict[str, Any]) -> None:
        dirname = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=dirname, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf8') as outfile:
                json.dump(data, outfile, ensure_ascii=False, indent=1)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
