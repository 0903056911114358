"""
Expansion of parsed templates, per http://tools.ietf.org/html/rfc6570#section-3

Variables the parameter source does not know about are not dropped: they are
written back as a residual expression so that the result is still a valid
template and can be expanded again later, eg::

    >>> parse_and_expand('/api{?p1,p2,p3*}', MappingSource({'p2': ['v2', 'v3']}))
    '/api?p2=v2&p2=v3{&p1,p3*}'
"""
from collections import namedtuple
from urllib.parse import quote

from uriplate import constants
from uriplate import exceptions
from uriplate import params
from uriplate.parser import Literal, VariableGroup, iter_tokens
from uriplate.variable import Modifier

Operator = namedtuple('Operator', 'first separator named if_empty allow_reserved')

OPERATORS = {
    Modifier.NONE: Operator('', ',', False, '', False),
    Modifier.RESERVED: Operator('', ',', False, '', True),
    Modifier.FRAGMENT: Operator('#', ',', False, '', True),
    Modifier.LABEL: Operator('.', '.', False, '', False),
    Modifier.PATH: Operator('/', '/', False, '', False),
    Modifier.PATH_PARAM: Operator(';', ';', True, '', False),
    Modifier.QUERY_START: Operator('?', '&', True, '=', False),
    Modifier.QUERY: Operator('&', '&', True, '=', False),
    Modifier.COLON: Operator(':', ':', False, '', False),
}

# Form-style operators always repeat the name for each list item
_FORM_OPERATORS = (Modifier.QUERY_START, Modifier.QUERY)

# Operators whose first character equals their separator
_POSITIONAL_OPERATORS = (Modifier.LABEL, Modifier.PATH, Modifier.PATH_PARAM, Modifier.COLON)


def encode(value, allow_reserved=False):
    """
    Percent-encodes every character outside the unreserved set. If reserved
    characters are allowed, they are kept along with existing pct-encoded
    triplets, which are never encoded twice.

    :param str  value:
    :param bool allow_reserved:
    :rtype: str
    """
    if not allow_reserved:
        return quote(value, safe='')
    segments = []
    last = 0
    for match in constants.PATTERN_PCT_ENCODED.finditer(value):
        segments.append(quote(value[last:match.start()], safe=constants.RESERVED))
        segments.append(match.group(0))
        last = match.end()
    segments.append(quote(value[last:], safe=constants.RESERVED))
    return ''.join(segments)


def encode_literal(text):
    """
    :param str  text: Literal run of a template
    :rtype: str
    """
    return encode(text, allow_reserved=True)


def parse_and_expand(template, source):
    """
    :raise MalformedTemplate: if the template cannot be parsed
    :raise UnsupportedValueShape: if a value cannot be expanded

    :param str                  template:
    :param params.ParamSource   source:
    :rtype: str
    """
    if constants.GROUP_START not in template:
        return template
    return expand(iter_tokens(template), source)


def expand(tokens, source):
    """
    :param collections.abc.Iterable[Literal|VariableGroup]  tokens:
    :param params.ParamSource                               source:
    :rtype: str
    """
    segments = []
    for token in tokens:
        if isinstance(token, Literal):
            segments.append(encode_literal(token.text))
        else:
            segments.append(expand_group(token, source))
    return ''.join(segments)


def expand_group(group, source):
    """
    Expands the variables the source knows about and keeps the others as
    template syntax.

    For operators that prefix every value with the separator ('.', '/', ';'
    and ':') each run of missing variables stays at its original position,
    eg, {/a,b} with only b gives {/a}/vb. Other operators write the expanded
    values first and the missing variables as one trailing group, eg,
    {?a,b} with only b gives ?b=vb{&a}.

    Comma joined operators ('', '+' and '#') keep the comma before the
    trailing group, as a template cannot express an optional separator.
    Discarding those variables later leaves the comma behind, eg, {x,y}
    with only y gives 768,{x} and then 768, once x is discarded.

    :param VariableGroup        group:
    :param params.ParamSource   source:
    :rtype: str
    """
    operator = OPERATORS[group.operator]
    if group.operator in _POSITIONAL_OPERATORS:
        return _expand_positional(group, operator, source)

    expanded = []
    missing = []
    for variable in group.variables:
        value = source.lookup(variable.name)
        if value.kind == params.ABSENT:
            missing.append(variable)
        elif value.kind != params.DISCARD:
            string = _expand_variable(group.operator, operator, variable, value)
            if string is not None:
                expanded.append(string)

    result = operator.first + operator.separator.join(expanded) if expanded else ''
    if missing:
        residual = group.operator
        if expanded:
            if group.operator == Modifier.QUERY_START:
                residual = Modifier.QUERY
            elif operator.separator == constants.VARSPEC_SEPARATOR:
                # Comma joined groups cannot restart with their own operator
                result += constants.VARSPEC_SEPARATOR
                if group.operator == Modifier.FRAGMENT:
                    residual = Modifier.RESERVED
        result += str(VariableGroup(residual, tuple(missing)))
    return result


def _expand_positional(group, operator, source):
    """
    :param VariableGroup        group:
    :param Operator             operator:
    :param params.ParamSource   source:
    :rtype: str
    """
    segments = []
    missing = []
    for variable in group.variables:
        value = source.lookup(variable.name)
        if value.kind == params.ABSENT:
            missing.append(variable)
            continue
        if missing:
            segments.append(str(VariableGroup(group.operator, tuple(missing))))
            missing = []
        if value.kind != params.DISCARD:
            string = _expand_variable(group.operator, operator, variable, value)
            if string is not None:
                segments.append(operator.first + string)
    if missing:
        segments.append(str(VariableGroup(group.operator, tuple(missing))))
    return ''.join(segments)


def _expand_variable(modifier, operator, variable, value):
    """
    :param str              modifier:   Operator character of the group
    :param Operator         operator:
    :param Variable         variable:
    :param params.Value     value:
    :rtype: str|None
    """
    if variable.pre_encoded or value.pre_encoded:
        def enc(string):
            return string
    else:
        def enc(string):
            return encode(string, operator.allow_reserved)

    def pair(name, string):
        return name + ('=' + string if string else operator.if_empty)

    name = variable.name
    if value.kind == params.SCALAR:
        string = value.data
        if variable.prefix is not None:
            string = string[:variable.prefix]
        return pair(name, enc(string)) if operator.named else enc(string)

    if not value.data:
        return None

    if value.kind == params.LIST:
        if variable.explode or modifier in _FORM_OPERATORS:
            if operator.named:
                return operator.separator.join(pair(name, enc(item)) for item in value.data)
            return operator.separator.join(enc(item) for item in value.data)
        joined = ','.join(enc(item) for item in value.data)
        return pair(name, joined) if operator.named else joined

    if value.kind == params.ASSOC:
        if variable.explode:
            if operator.named:
                return operator.separator.join(pair(enc(k), enc(v)) for k, v in value.data)
            return operator.separator.join(enc(k) + '=' + enc(v) for k, v in value.data)
        joined = ','.join(enc(k) + ',' + enc(v) for k, v in value.data)
        return pair(name, joined) if operator.named else joined

    raise exceptions.UnsupportedValueShape(
        'Unsupported value for variable {}: {!r}'.format(variable, value)
    )
