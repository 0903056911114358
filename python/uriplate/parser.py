"""
Lexical pass over RFC 6570 templates.

The parser turns a string into an ordered sequence of tokens: runs of literal
text and variable groups (one ``{...}`` expression each). It performs no
substitution or encoding, and joining the string form of every token returns
the original template unchanged.
"""
from collections import namedtuple

from uriplate import constants
from uriplate import exceptions
from uriplate.variable import Modifier, Variable


class Literal(namedtuple('Literal', 'text')):
    __slots__ = ()

    def __str__(self):
        return self.text


class VariableGroup(namedtuple('VariableGroup', 'operator variables')):
    __slots__ = ()

    def __str__(self):
        return '{}{}{}{}'.format(
            constants.GROUP_START,
            self.operator,
            constants.VARSPEC_SEPARATOR.join(v.varspec for v in self.variables),
            constants.GROUP_END,
        )


class TemplateListener(object):
    """
    Callback adapter for walk(). Override the methods of interest, by default
    a group reports each of its variables to on_variable().
    """

    def on_literal(self, text):
        """
        :param str  text:
        """

    def on_variable_group(self, group):
        """
        :param VariableGroup    group:
        """
        for variable in group.variables:
            self.on_variable(variable)

    def on_variable(self, variable):
        """
        :param Variable variable:
        """


def iter_tokens(template):
    """
    Lazily tokenizes the template from left to right

    :raise MalformedTemplate: on an unterminated, nested or empty group, or an
        invalid varspec

    :param str  template:
    :rtype: collections.abc.Iterator[Literal|VariableGroup]
    """
    index = 0
    length = len(template)
    while index < length:
        start = template.find(constants.GROUP_START, index)
        if start < 0:
            yield Literal(template[index:])
            return
        if start > index:
            yield Literal(template[index:start])

        end = template.find(constants.GROUP_END, start)
        nested = template.find(constants.GROUP_START, start + 1)
        if end < 0:
            raise exceptions.MalformedTemplate(
                'Unterminated expression at position {} in template: {}'.format(start, template),
                template=template, position=start
            )
        if 0 <= nested < end:
            raise exceptions.MalformedTemplate(
                'Nested expression at position {} in template: {}'.format(nested, template),
                template=template, position=nested
            )
        yield _parse_group(template, start, end)
        index = end + 1


def parse(template):
    """
    :param str  template:
    :rtype: tuple[Literal|VariableGroup]
    """
    return tuple(iter_tokens(template))


def variables(template):
    """
    Yields every variable of the template in order of occurrence

    :param str  template:
    :rtype: collections.abc.Iterator[Variable]
    """
    for token in iter_tokens(template):
        if isinstance(token, VariableGroup):
            for variable in token.variables:
                yield variable


def walk(template, listener):
    """
    Reports each token of the template to the listener, in order

    :param str              template:
    :param TemplateListener listener:
    """
    for token in iter_tokens(template):
        if isinstance(token, Literal):
            listener.on_literal(token.text)
        else:
            listener.on_variable_group(token)


def _parse_group(template, start, end):
    """
    :param str  template:
    :param int  start: Index of the opening brace
    :param int  end:   Index of the closing brace
    :rtype: VariableGroup
    """
    body_start = start + 1
    operator = Modifier.NONE
    if body_start < end and template[body_start] in Modifier.OPERATORS:
        operator = template[body_start]
        body_start += 1
    if body_start >= end:
        raise exceptions.MalformedTemplate(
            'Empty expression at position {} in template: {}'.format(start, template),
            template=template, position=start
        )

    variables = []
    position = body_start
    for varspec in template[body_start:end].split(constants.VARSPEC_SEPARATOR):
        variables.append(_parse_varspec(template, varspec, operator, position))
        position += len(varspec) + 1
    return VariableGroup(operator, tuple(variables))


def _parse_varspec(template, varspec, operator, position):
    """
    :param str  template:   Full template, for error reporting
    :param str  varspec:    eg, name, name*, name:3
    :param str  operator:
    :param int  position:   Index of the varspec in the template
    :rtype: Variable
    """
    name = varspec
    explode = False
    prefix = None
    if varspec.endswith(constants.EXPLODE):
        name = varspec[:-1]
        explode = True
    if constants.PREFIX in name:
        name, _, length = name.partition(constants.PREFIX)
        if explode or not length.isdigit() or length.startswith('0') or len(length) > 4:
            raise exceptions.MalformedTemplate(
                'Invalid prefix {!r} at position {} in template: {}'.format(
                    varspec, position, template
                ),
                template=template, position=position + len(name)
            )
        prefix = int(length)
    if not constants.PATTERN_VARNAME.match(name):
        raise exceptions.MalformedTemplate(
            'Invalid variable name {!r} at position {} in template: {}'.format(
                name, position, template
            ),
            template=template, position=position
        )
    return Variable(name, modifier=operator, explode=explode, prefix=prefix)
