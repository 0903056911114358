import pytest

from uriplate import exceptions
from uriplate import parser
from uriplate.parser import Literal, VariableGroup
from uriplate.variable import Modifier, Variable


@pytest.mark.parametrize('template', (
    '',
    'http://www.example.com',
    '{var}',
    'http://www.example.com{?p1,p2,p3*}',
    '{/list*,path:4}',
    'rel{:param*}',
    'a}b',
    '{+base}/items{;x,y}{#frag}',
    'http://www.example.com/{a%20b}{.c.d}',
))
def test_round_trip(template):
    assert ''.join(str(token) for token in parser.parse(template)) == template


def test_parse():
    tokens = parser.parse('http://x/{id}{?q*,page:2}')
    assert tokens == (
        Literal('http://x/'),
        VariableGroup('', (Variable('id'),)),
        VariableGroup('?', (
            Variable('q', modifier=Modifier.QUERY_START, explode=True),
            Variable('page', modifier=Modifier.QUERY_START, prefix=2),
        )),
    )


def test_parse_no_expressions():
    assert parser.parse('http://x/a') == (Literal('http://x/a'),)
    assert parser.parse('') == ()


@pytest.mark.parametrize('template, position', (
    ('{', 0),
    ('abc{def', 3),
    ('{}', 0),
    ('x{+}', 1),
    ('{a{b}}', 2),
    ('{x,a b}', 3),
    ('{!a}', 1),
))
def test_malformed_position(template, position):
    with pytest.raises(exceptions.MalformedTemplate) as excinfo:
        parser.parse(template)
    assert excinfo.value.position == position
    assert excinfo.value.template == template


@pytest.mark.parametrize('template', (
    '{a*:3}',
    '{a:3*}',
    '{a:0}',
    '{a:01}',
    '{a:10000}',
    '{a:}',
    '{a,}',
    '{a..b}',
))
def test_malformed(template):
    with pytest.raises(exceptions.MalformedTemplate):
        parser.parse(template)


def test_iter_tokens_is_lazy():
    tokens = parser.iter_tokens('/ok/{id}/{bad')
    assert next(tokens) == Literal('/ok/')
    assert next(tokens) == VariableGroup('', (Variable('id'),))
    assert next(tokens) == Literal('/')
    with pytest.raises(exceptions.MalformedTemplate):
        next(tokens)


def test_variables():
    names = [v.name for v in parser.variables('{a}/x{?b,c*}{/d:2}')]
    assert names == ['a', 'b', 'c', 'd']


class CollectingListener(parser.TemplateListener):
    def __init__(self):
        self.events = []

    def on_literal(self, text):
        self.events.append(('literal', text))

    def on_variable(self, variable):
        self.events.append(('variable', variable.name))


def test_walk():
    listener = CollectingListener()
    parser.walk('/items/{id}{?page,size}', listener)
    assert listener.events == [
        ('literal', '/items/'),
        ('variable', 'id'),
        ('variable', 'page'),
        ('variable', 'size'),
    ]
