'''Serialization of events, ballots and vote records to JSON-ready dicts.

Objects decorated with :func:`simple_serialization` are written as
dictionaries with a ``class`` key holding the scoped class name and one key
per constructor parameter. Frozen sets and tuples are tagged with a ``type``
key so that they survive a round trip through JSON.
'''

import sys
import inspect
import builtins
import importlib
from typing import Any, List, Dict, Callable

PACKAGE_NAME = __name__.split('.')[0]


def simple_serialization(class_: type) -> type:
    '''A decorator to provide a simple to_dict() serialization method.

    The resulting method will serialize all object attributes corresponding
    to the class's constructor parameter names (or the names listed in the
    ``serialize_params`` class attribute, if present). The class must store
    its parameters under the same names.

    :param class_: The class to add the method to.
    '''
    if hasattr(class_, 'serialize_params'):
        param_names = list(class_.serialize_params)
    else:
        param_names = [
            name for name in inspect.signature(class_.__init__).parameters
            if name != 'self'
        ]

    def to_dict(self) -> Dict[str, Any]:
        out_dict = {'class': scoped_class_name(self)}
        for attr in param_names:
            out_dict[attr] = serialize_value(getattr(self, attr))
        return out_dict

    class_.to_dict = to_dict
    return class_


def serialize_value(value: Any) -> Any:
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    elif isinstance(value, tuple(ATOMIC_TYPES)):
        return value
    elif type(value) in CONVERTIBLE_TYPES:
        return CONVERTIBLE_TYPES[type(value)](value)
    elif hasattr(value, 'items') and hasattr(value, 'keys'):
        if not all(isinstance(key, str) for key in value.keys()):
            raise ValueError(f'cannot serialize non-string keys of {value!r}')
        return {key: serialize_value(val) for key, val in value.items()}
    elif hasattr(value, '__iter__'):
        return [serialize_value(val) for val in value]
    else:
        raise ValueError(f'cannot serialize {value!r} to dict format')


def deserialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        if 'type' in value and is_scoped_identifier(value['type']):
            return deserialize_typed(value)
        elif 'class' in value and is_scoped_identifier(value['class']):
            return deserialize_class(value)
        else:
            return {key: deserialize_value(val) for key, val in value.items()}
    elif isinstance(value, tuple(ATOMIC_TYPES)):
        return value
    elif isinstance(value, list):
        return [deserialize_value(val) for val in value]
    else:
        raise ValueError(f'cannot deserialize {value!r}, type unknown')


def deserialize_typed(typedef: Dict[str, Any]) -> Any:
    typeobj = get_object(typedef['type'])
    if typeobj not in SEQUENCE_TYPES or 'value' not in typedef:
        raise ValueError(f'invalid typed value contents: {typedef!r}')
    return typeobj(deserialize_value(val) for val in typedef['value'])


def deserialize_class(clsdef: Dict[str, Any]) -> Any:
    cls = get_object(clsdef['class'])
    if not isinstance(cls, type) or not hasattr(cls, 'to_dict'):
        raise ValueError(f'{clsdef["class"]} is not a serializable class')
    params = {
        key: deserialize_value(val)
        for key, val in clsdef.items() if key != 'class'
    }
    return cls(**params)


def get_object(identifier: str) -> Any:
    '''Return the object named by the identifier.

    Only the built-in sequence types and objects of this package can be
    named, so stored data cannot import or call anything else.

    :raises ValueError: If the identifier names anything else.
    '''
    if '.' not in identifier:
        if identifier not in SEQUENCE_TYPE_NAMES:
            raise ValueError(f'{identifier} is not a serializable type')
        return getattr(builtins, identifier)
    if not identifier.startswith(PACKAGE_NAME + '.'):
        raise ValueError(
            f'{identifier} is outside the {PACKAGE_NAME} package'
        )
    module, name = identifier.rsplit('.', 1)
    if module not in sys.modules:
        try:
            importlib.import_module(module)
        except ImportError:
            raise ValueError(f'unknown module {module}') from None
    try:
        return getattr(sys.modules[module], name)
    except AttributeError:
        raise ValueError(f'unknown object {identifier}') from None


def from_dict(value: Dict[str, Any]) -> Any:
    """Recreate an event, ballot or vote record from its dictionary form.

    :param value: A dictionary created by :func:`to_dict`.
    :raises ValueError: If the dictionary does not define an object.
    """
    if not isinstance(value, dict):
        raise ValueError('invalid d21vote object def: dict expected, '
                         f'got {value!r}')
    elif 'class' not in value:
        raise ValueError('invalid d21vote object def: must have a class key')
    elif not is_scoped_identifier(value['class']):
        inval_cls = value['class']
        raise ValueError(f'invalid d21vote class def: {inval_cls}')
    else:
        return deserialize_value(value)


def to_dict(obj: Any) -> Dict[str, Any]:
    """Serialize an event, ballot or vote record to a JSON-ready dictionary.

    :param obj: An object providing a `to_dict()` method, usually courtesy of
        the :func:`simple_serialization` decorator.
    """
    return serialize_value(obj)


def is_scoped_identifier(value: Any) -> bool:
    return (
        isinstance(value, str)
        and not value.startswith('.')
        and all(chunk.isidentifier() for chunk in value.split('.'))
    )


def scoped_class_name(value: Any) -> str:
    cls = value.__class__
    return '.'.join((cls.__module__, cls.__name__))


def sequence_to_json_factory(typeobj: type) -> Callable[[Any], Dict[str, Any]]:
    typename = typeobj.__name__

    def sequence_to_json(seq) -> Dict[str, Any]:
        # sorted so that equal sets always serialize identically
        items = sorted(seq) if typeobj is frozenset else seq
        return {'type': typename, 'value': [serialize_value(v) for v in items]}

    return sequence_to_json


ATOMIC_TYPES: List[type] = [
    str, int, float, bool, type(None),
]

SEQUENCE_TYPES: List[type] = [frozenset, tuple]

SEQUENCE_TYPE_NAMES: List[str] = [
    seqtype.__name__ for seqtype in SEQUENCE_TYPES
]

CONVERTIBLE_TYPES: Dict[type, Callable] = {
    seqtype: sequence_to_json_factory(seqtype) for seqtype in SEQUENCE_TYPES
}
