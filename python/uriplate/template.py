import logging

from uriplate import constants
from uriplate import exceptions
from uriplate import expansion
from uriplate import params
from uriplate import parser
from uriplate import uri

logger = logging.getLogger(__name__)


class URITemplate(object):
    """
    Immutable representation of a string as a URI template.

    Syntax is not validated on construction; it is checked when the template
    is expanded or converted to a URI. Every expansion returns a new template.
    """

    __slots__ = ('_value', '_expanded')

    def __init__(self, value):
        """
        :param str  value: String possibly containing template expressions
        """
        self._value = str(value)
        self._expanded = constants.GROUP_START not in self._value

    def __repr__(self):
        return 'URITemplate({!r})'.format(self._value)

    def __str__(self):
        return self._value

    def __eq__(self, other):
        if not isinstance(other, URITemplate):
            return NotImplemented
        return self._value == other._value

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash(self._value)

    @property
    def value(self):
        """
        :rtype: str
        """
        return self._value

    def discard(self, *names):
        """
        Removes the named variables from the template, equivalent to expanding
        them with empty lists.

        :param str  names: Variable names, or a single iterable of names
        :rtype: URITemplate
        """
        if len(names) == 1 and not isinstance(names[0], str):
            names = tuple(names[0])
        source = params.MappingSource({name: params.DISCARD_VALUE for name in names})
        return URITemplate(expansion.parse_and_expand(self._value, source))

    def expand(self, *args, **kwargs):
        """
        Substitutes the given values. Variables without a value are kept in
        the result. Accepts a name and value, a mapping, alternating names and
        values or Param tuples, a ParamSource, and keyword arguments.

        :raise MalformedTemplate: if the template cannot be parsed
        :raise UnsupportedValueShape: if a value cannot be expanded
        :rtype: URITemplate
        """
        source = params.get_source(*args, **kwargs)
        return URITemplate(expansion.parse_and_expand(self._value, source))

    def expand_only(self, substitutions):
        """
        Fully expands the template with the given values, variables without a
        value are removed.

        :param dict|params.ParamSource  substitutions:
        :rtype: URITemplate
        """
        source = params.discard_missing(substitutions)
        return URITemplate(expansion.parse_and_expand(self._value, source))

    def is_expanded(self):
        """
        :rtype: bool
        """
        return self._expanded

    def to_builder(self):
        """
        :raise NotFullyExpanded: if the template contains variables
        :rtype: uriplate.builder.URIBuilder
        """
        from uriplate.builder import URIBuilder
        return URIBuilder(self.to_uri())

    def to_uri(self):
        """
        Converts a fully expanded template to a URI

        :raise NotFullyExpanded: if the template contains variables
        :raise InvalidUriSyntax: if the expanded string is not a valid URI
        :rtype: urllib.parse.SplitResult
        """
        if not self._expanded:
            raise exceptions.NotFullyExpanded('Template not expanded: {}'.format(self._value))
        logger.debug('Finalizing template: %s', self._value)
        return uri.parse(self._value)

    def variables(self):
        """
        Parses the template and yields its variables in order of occurrence.
        Each call parses the template again.

        :raise MalformedTemplate: if the template cannot be parsed
        :rtype: collections.abc.Iterator[uriplate.variable.Variable]
        """
        return parser.variables(self._value)
