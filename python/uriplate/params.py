"""
Normalised access to the values substituted into a template.

Every lookup answers with a :class:`Value` whose ``kind`` tells the expansion
engine how to treat it:

* ABSENT: not supplied, the variable is kept as residual template syntax
* DISCARD: explicitly dropped, the variable is removed from the output
* SCALAR: a single string
* LIST: an ordered tuple of strings
* ASSOC: an ordered tuple of (key, value) string pairs
"""
from collections import namedtuple
from collections.abc import Iterable, Mapping

from uriplate import exceptions

ABSENT = 'absent'
DISCARD = 'discard'
SCALAR = 'scalar'
LIST = 'list'
ASSOC = 'assoc'

Value = namedtuple('Value', 'kind data pre_encoded')
Value.__new__.__defaults__ = (None, False)

Param = namedtuple('Param', 'name value')

ABSENT_VALUE = Value(ABSENT)
DISCARD_VALUE = Value(DISCARD)


class ParamSource(object):
    """
    Base class for substitution sources. Subclass and implement lookup() to
    serve values from a custom store.
    """

    def lookup(self, name):
        """
        :param str  name:
        :rtype: Value
        """
        raise NotImplementedError


class MappingSource(ParamSource):
    def __init__(self, mapping):
        """
        :param Mapping  mapping:
        """
        self._mapping = dict(mapping)

    def __repr__(self):
        return 'MappingSource({!r})'.format(self._mapping)

    def lookup(self, name):
        if name not in self._mapping:
            return ABSENT_VALUE
        return to_value(name, self._mapping[name])


class ArraySource(MappingSource):
    """
    Positional parameters, either alternating names and values or Param
    tuples, eg::

        ArraySource('page', 1, Param('q', 'term'), 'tags', ['a', 'b'])
    """

    def __init__(self, *args):
        mapping = {}
        pending = None
        has_pending = False
        for arg in args:
            if has_pending:
                mapping[pending] = arg
                has_pending = False
            elif isinstance(arg, Param):
                mapping[arg.name] = arg.value
            elif isinstance(arg, str):
                pending = arg
                has_pending = True
            else:
                raise exceptions.InvalidParameters(
                    'Expected a parameter name or Param, got: {!r}'.format(arg)
                )
        if has_pending:
            raise exceptions.InvalidParameters('Missing value for parameter: {!r}'.format(pending))
        super(ArraySource, self).__init__(mapping)


class DiscardMissing(ParamSource):
    """ Treats every name not supplied by the wrapped source as discarded """

    def __init__(self, source):
        """
        :param ParamSource  source:
        """
        self._source = source

    def lookup(self, name):
        value = self._source.lookup(name)
        return DISCARD_VALUE if value.kind == ABSENT else value


def discard_missing(source):
    """
    :param ParamSource|Mapping  source:
    :rtype: DiscardMissing
    """
    return DiscardMissing(get_source(source))


def get_source(*args, **kwargs):
    """
    Normalises the supported call shapes into a ParamSource:

    * get_source(source)
    * get_source({'name': value})
    * get_source('name', value)
    * get_source('a', 1, Param('b', 2), ...)
    * get_source(name=value)

    Keyword arguments are merged over any positional parameters.

    :raise InvalidParameters: if the arguments cannot be paired
    :rtype: ParamSource
    """
    if len(args) == 1:
        arg = args[0]
        if isinstance(arg, ParamSource):
            if kwargs:
                raise exceptions.InvalidParameters(
                    'Keyword parameters cannot be combined with a custom source'
                )
            return arg
        if isinstance(arg, Mapping):
            mapping = dict(arg)
            mapping.update(kwargs)
            return MappingSource(mapping)
    source = ArraySource(*args)
    if kwargs:
        source._mapping.update(kwargs)
    return source


def to_value(name, value):
    """
    Classifies a python value into one of the supported kinds

    :raise UnsupportedValueShape: if a list or mapping contains nested
        collections

    :param str  name: Name of the variable, used for error reporting
    :param      value:
    :rtype: Value
    """
    # Imported here as the template module depends on the expansion engine
    from uriplate.template import URITemplate

    if value is None:
        return ABSENT_VALUE
    if isinstance(value, Value):
        return value
    if isinstance(value, URITemplate):
        return Value(SCALAR, str(value), pre_encoded=True)
    if isinstance(value, Mapping):
        pairs = tuple((_to_string(name, k), _to_string(name, v)) for k, v in value.items())
        return Value(ASSOC, pairs)
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        return Value(LIST, tuple(_to_string(name, item) for item in value))
    return Value(SCALAR, _to_string(name, value))


def _to_string(name, value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, bytes):
        return value.decode('utf-8')
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, Iterable)):
        raise exceptions.UnsupportedValueShape(
            'Unsupported nested value for variable {!r}: {!r}'.format(name, value)
        )
    if value is None:
        raise exceptions.UnsupportedValueShape(
            'Unsupported empty item for variable {!r}'.format(name)
        )
    return str(value)
