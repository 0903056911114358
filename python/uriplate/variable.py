from uriplate import constants
from uriplate import exceptions


class Modifier(object):
    NONE = ''
    RESERVED = '+'
    FRAGMENT = '#'
    LABEL = '.'
    PATH = '/'
    PATH_PARAM = ';'
    QUERY_START = '?'
    QUERY = '&'
    COLON = ':'

    # Positional hints understood by the builder only, never parsed
    DOMAIN = 'domain'
    PATH_BUILDER = 'path'
    QUERY_BUILDER = 'query'
    FRAGMENT_BUILDER = 'fragment'

    OPERATORS = (RESERVED, FRAGMENT, LABEL, PATH, PATH_PARAM, QUERY_START, QUERY, COLON)
    BUILDER = (DOMAIN, PATH_BUILDER, QUERY_BUILDER, FRAGMENT_BUILDER)

    _RENDERED = {
        DOMAIN: RESERVED,
        PATH_BUILDER: PATH,
        QUERY_BUILDER: QUERY,
        FRAGMENT_BUILDER: FRAGMENT,
    }

    @classmethod
    def is_valid(cls, modifier):
        """
        :param str  modifier:
        :rtype: bool
        """
        return modifier == cls.NONE or modifier in cls.OPERATORS or modifier in cls.BUILDER

    @classmethod
    def operator(cls, modifier):
        """
        Template operator character used when rendering the modifier

        :param str  modifier:
        :rtype: str
        """
        return cls._RENDERED.get(modifier, modifier)


class Variable(object):
    """
    A single variable occurrence of a template, ie, one varspec together with
    the operator of its expression.
    """

    __slots__ = ('_name', '_modifier', '_explode', '_prefix', '_pre_encoded')

    @classmethod
    def template(cls, name, modifier=Modifier.NONE, explode=False, prefix=None):
        """
        :param str  name:
        :param str  modifier:
        :param bool explode:
        :param int  prefix:
        :rtype: Variable
        """
        return cls(name, modifier=modifier, explode=explode, prefix=prefix)

    @classmethod
    def server(cls, name):
        """
        Variable standing for the scheme and authority of a URI, eg, a base
        address resolved at runtime.

        :param str  name:
        :rtype: Variable
        """
        return cls(name, modifier=Modifier.DOMAIN)

    def __init__(self, name, modifier=Modifier.NONE, explode=False, prefix=None, pre_encoded=False):
        """
        :raise MalformedTemplate: if the name is not a valid varname, or both
            explode and prefix are requested

        :param str  name:
        :param str  modifier:   One of the Modifier values
        :param bool explode:
        :param int  prefix:     Maximum number of characters of a scalar value
        :param bool pre_encoded: Values are spliced verbatim, without encoding
        """
        if not isinstance(name, str) or not constants.PATTERN_VARNAME.match(name):
            raise exceptions.MalformedTemplate('Invalid variable name: {!r}'.format(name))
        if not Modifier.is_valid(modifier):
            raise exceptions.MalformedTemplate(
                'Invalid modifier for variable {!r}: {!r}'.format(name, modifier)
            )
        if explode and prefix is not None:
            raise exceptions.MalformedTemplate(
                'Variable {!r} cannot have both explode and prefix'.format(name)
            )
        if prefix is not None and not (0 < prefix <= constants.MAX_PREFIX):
            raise exceptions.MalformedTemplate(
                'Prefix for variable {!r} must be between 1 and {}: {}'.format(
                    name, constants.MAX_PREFIX, prefix
                )
            )
        self._name = name
        self._modifier = modifier
        self._explode = bool(explode)
        self._prefix = prefix
        self._pre_encoded = bool(pre_encoded)

    def __repr__(self):
        return ('Variable({self._name!r}, modifier={self._modifier!r}, explode={self._explode!r}, '
                'prefix={self._prefix!r}, pre_encoded={self._pre_encoded!r})'.format(self=self))

    def __str__(self):
        return self.render()

    def __eq__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self._key() == other._key()

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash(self._key())

    @property
    def explode(self):
        """
        :rtype: bool
        """
        return self._explode

    @property
    def modifier(self):
        """
        :rtype: str
        """
        return self._modifier

    @property
    def name(self):
        """
        :rtype: str
        """
        return self._name

    @property
    def operator(self):
        """
        Operator character the variable is rendered with

        :rtype: str
        """
        return Modifier.operator(self._modifier)

    @property
    def pre_encoded(self):
        """
        :rtype: bool
        """
        return self._pre_encoded

    @property
    def prefix(self):
        """
        :rtype: int
        """
        return self._prefix

    @property
    def varspec(self):
        """
        The variable as it appears inside an expression, without the operator

        :rtype: str
        """
        if self._explode:
            return self._name + constants.EXPLODE
        if self._prefix is not None:
            return '{}{}{}'.format(self._name, constants.PREFIX, self._prefix)
        return self._name

    def render(self, operator=None):
        """
        Renders the variable as a single variable expression

        :param str  operator: Overrides the operator implied by the modifier
        :rtype: str
        """
        if operator is None:
            operator = self.operator
        return constants.GROUP_START + operator + self.varspec + constants.GROUP_END

    def _key(self):
        return self._name, self._modifier, self._explode, self._prefix, self._pre_encoded
