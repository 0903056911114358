from urllib.parse import SplitResult, urlsplit

import pytest

from uriplate import exceptions
from uriplate.builder import Fragment, URIBuilder
from uriplate.template import URITemplate
from uriplate.variable import Modifier, Variable


def test_relative_literal_braces():
    builder = URIBuilder('http://www.example.com/api').relative('items', '{name}')
    assert not builder.is_template
    assert str(builder) == 'http://www.example.com/api/items/%7Bname%7D'


def test_query_param_encoding():
    builder = URIBuilder('http://www.example.com/api?val1=%25')
    builder.query_param('val2', '%', '$', '#')
    assert str(builder) == 'http://www.example.com/api?val1=%25&val2=%25&val2=$&val2=%23'


def test_server():
    builder = URIBuilder('http://www.example.com/api/items')
    builder.server(Variable.server('services.myservice'))
    assert builder.is_template
    template = builder.to_template()
    assert template.value == '{+services.myservice}/api/items'
    expanded = template.expand({'services.myservice': 'http://localhost:8080'})
    assert expanded.value == 'http://localhost:8080/api/items'

    with pytest.raises(exceptions.UnsupportedValueShape):
        builder.server('http://localhost')


@pytest.mark.parametrize('origin, variable, expected', (
    ('http://h', Variable('id'), 'http://h{id}'),
    ('http://h/a', Variable('id'), 'http://h/a{id}'),
    ('http://h/a?x=1', Variable('id'), 'http://h/a?x=1&{id}'),
    ('http://h/a#f', Variable('id'), 'http://h/a#f{id}'),
    ('mailto:a@b.com', Variable('x'), 'mailto:a@b.com{x}'),
    ('http://h/a', Variable('p', modifier=Modifier.PATH_BUILDER), 'http://h/a{/p}'),
    ('http://h/a', Variable('p', modifier=Modifier.PATH), 'http://h/a{/p}'),
    ('http://h/a', Variable('q', modifier=Modifier.QUERY_BUILDER), 'http://h/a{?q}'),
    ('http://h/a?x=1', Variable('q', modifier=Modifier.QUERY_BUILDER), 'http://h/a?x=1{&q}'),
    ('http://h/a?x=1', Variable('q', modifier=Modifier.QUERY_START), 'http://h/a?x=1{&q}'),
    ('http://h/a', Variable('f', modifier=Modifier.FRAGMENT_BUILDER), 'http://h/a{#f}'),
))
def test_append(origin, variable, expected):
    builder = URIBuilder(origin).append(variable)
    assert builder.is_template
    assert str(builder) == expected
    assert builder.to_template() == URITemplate(expected)


def test_append_fail():
    with pytest.raises(exceptions.UnsupportedValueShape):
        URIBuilder('http://h').append('{id}')


@pytest.mark.parametrize('method, args', (
    ('host', ('h',)),
    ('path', ()),
    ('port', (80,)),
    ('query', ()),
    ('query_param', ('a', 'b')),
    ('user_info', ('user',)),
    ('relative', ('a',)),
    ('server', (Variable.server('base'),)),
))
def test_opaque_violation(method, args):
    builder = URIBuilder('mailto:a@b.com')
    assert builder.is_opaque
    with pytest.raises(exceptions.OpaqueUriViolation):
        getattr(builder, method)(*args)


def test_ssp_not_opaque():
    builder = URIBuilder('http://h/a')
    assert not builder.is_opaque
    with pytest.raises(exceptions.OpaqueUriViolation):
        builder.ssp('x')
    with pytest.raises(exceptions.OpaqueUriViolation):
        builder.ssp()


def test_opaque_ssp():
    builder = URIBuilder(opaque=True).scheme('urn')
    builder.ssp().set_delimiter(':').join('isbn', '0451450523')
    assert str(builder) == 'urn:isbn:0451450523'
    assert builder.to_uri().geturl() == 'urn:isbn:0451450523'

    builder = URIBuilder('urn:isbn').ssp().append(':0451450523')
    assert str(builder) == 'urn:isbn:0451450523'

    builder = URIBuilder('mailto:a@b.com').ssp('c@d.com')
    assert str(builder) == 'mailto:c@d.com'


def test_fragment_configured():
    builder = URIBuilder()
    with pytest.raises(exceptions.FragmentAlreadyConfigured):
        builder.path().set_prefix('/')
    with pytest.raises(exceptions.FragmentAlreadyConfigured):
        builder.path().set_delimiter('/')
    with pytest.raises(exceptions.FragmentAlreadyConfigured):
        builder.query().set_delimiter(';')
    with pytest.raises(exceptions.FragmentAlreadyConfigured):
        builder.host().set_delimiter('-')

    fragment = builder.fragment()
    assert isinstance(fragment, Fragment)
    assert fragment.component == 'fragment'
    assert fragment.set_delimiter('/') is fragment
    assert fragment.delimiter == '/'
    assert fragment.prefix is None


def test_from_scratch():
    builder = URIBuilder()
    assert str(builder) == ''
    builder.scheme('http').host('h').relative('a', 'b')
    assert str(builder) == 'http://h/a/b'

    builder = URIBuilder()
    builder.scheme('http').host().join('www', 'example', 'com')
    assert str(builder) == 'http://www.example.com'


def test_uri():
    builder = URIBuilder.uri('https', 'example.com', 8443)
    assert str(builder) == 'https://example.com:8443'
    assert str(builder.relative('a')) == 'https://example.com:8443/a'
    assert str(URIBuilder.uri('http', 'h')) == 'http://h'
    assert str(URIBuilder.uri('http', 'h', -1)) == 'http://h'
    assert str(URIBuilder.uri('http', 'h', None).port(80)) == 'http://h:80'


def test_user_info():
    builder = URIBuilder.uri('http', 'h').user_info('us er', 'p@ss')
    assert str(builder) == 'http://us%20er:p%40ss@h'
    assert str(URIBuilder('http://me@h/a')) == 'http://me@h/a'


def test_port():
    assert str(URIBuilder('http://h/a').port(8080)) == 'http://h:8080/a'
    assert str(URIBuilder('http://h:8080/a').port(-1)) == 'http://h/a'
    assert str(URIBuilder('http://h:8080/a').port(None)) == 'http://h/a'


@pytest.mark.parametrize('method, variable, expected', (
    ('port', Variable('port'), 'http://h:{port}/a'),
    ('host', Variable('host'), 'http://{host}/a'),
    ('scheme', Variable('scheme'), '{scheme}://h/a'),
))
def test_component_variable(method, variable, expected):
    builder = getattr(URIBuilder('http://h/a'), method)(variable)
    assert builder.is_template
    assert str(builder) == expected
    with pytest.raises(exceptions.NotFullyExpanded):
        builder.to_uri()


def test_normalize():
    builder = URIBuilder('http://h/a/b/../c/./d')
    assert builder.to_uri().geturl() == 'http://h/a/c/d'


def test_ipv6():
    builder = URIBuilder('http://[::1]:8080/a')
    assert str(builder) == 'http://[::1]:8080/a'
    assert str(URIBuilder.uri('http', '::1')) == 'http://[::1]'


def test_template_literal_encoding():
    builder = URIBuilder('http://h/a').relative('x y', Variable('id'))
    assert str(builder) == 'http://h/a/x%20y/{id}'
    assert builder.to_template().expand(id=1).value == 'http://h/a/x%20y/1'


def test_resolve():
    template = URIBuilder('http://h/a').resolve('/b{?q}')
    assert template == URITemplate('http://h/a/b{?q}')
    assert template.expand(q='x').value == 'http://h/a/b?q=x'


@pytest.mark.parametrize('value', (1.5, True, None, ['a']))
def test_unsupported_value(value):
    with pytest.raises(exceptions.UnsupportedValueShape):
        URIBuilder('http://h').relative(value)


def test_query():
    builder = URIBuilder('http://h/a?x=1').query().join('y=2', 'z=3')
    assert str(builder) == 'http://h/a?x=1&y=2&z=3'

    builder = URIBuilder('http://h/a').query_param('q', Variable('term'))
    assert str(builder) == 'http://h/a?q={term}'

    builder = URIBuilder('http://h/a').query_param('page', 1, 2)
    assert str(builder) == 'http://h/a?page=1&page=2'


def test_query_param_before_form_group():
    builder = URIBuilder('http://h/a').append(Variable('q', modifier=Modifier.QUERY_BUILDER))
    builder.query_param('p', 1)
    assert str(builder) == 'http://h/a?p=1{&q}'
    template = builder.to_template()
    assert template.discard('q').value == 'http://h/a?p=1'
    assert template.expand(q='x').value == 'http://h/a?p=1&q=x'

    builder.query_param('r', 2, 3)
    assert str(builder) == 'http://h/a?p=1&r=2&r=3{&q}'

    builder = URIBuilder('http://h/a?x=1').append(Variable('q', modifier=Modifier.QUERY_BUILDER))
    builder.query_param('p', 1)
    assert str(builder) == 'http://h/a?x=1&p=1{&q}'
    assert builder.to_template().discard('q').value == 'http://h/a?x=1&p=1'


@pytest.mark.parametrize('origin, expected', (
    ('http://me@h/a', 'http://me@h/a'),
    ('http://me:secret@h:8080/a', 'http://me:secret@h:8080/a'),
    ('http://us%20er@h/a', 'http://us%20er@h/a'),
    ('http://Example.COM/a', 'http://example.com/a'),
    ('http://[::1]/a', 'http://[::1]/a'),
    ('file:///tmp/x', 'file:///tmp/x'),
))
def test_authority(origin, expected):
    assert str(URIBuilder(origin)) == expected


def test_template_values():
    builder = URIBuilder('http://h').relative(URITemplate('a%20b'))
    assert not builder.is_template
    assert str(builder) == 'http://h/a%20b'

    builder = URIBuilder('http://h').relative(URITemplate('{x}'))
    assert builder.is_template
    assert str(builder) == 'http://h/{x}'


def test_based_on():
    origin = urlsplit('http://h/a?b=1#c')
    builder = URIBuilder.based_on(origin)
    assert str(builder) == 'http://h/a?b=1#c'
    result = builder.to_uri()
    assert isinstance(result, SplitResult)
    assert result == origin


@pytest.mark.parametrize('origin', (
    'http://h/a b',
    '1http://h',
    'http://h/%zz',
))
def test_invalid_origin(origin):
    with pytest.raises(exceptions.InvalidUriSyntax):
        URIBuilder(origin)


def test_relative_path_with_authority():
    builder = URIBuilder('http://h').path().append('a')
    with pytest.raises(exceptions.InvalidUriSyntax):
        builder.to_uri()


def test_fragment():
    assert str(URIBuilder('http://h/a').fragment('sec 1')) == 'http://h/a#sec%201'
    assert str(URIBuilder('http://h/a#x').fragment(None)) == 'http://h/a'
    builder = URIBuilder('http://h/a#x').fragment().append(Variable('f', modifier=Modifier.FRAGMENT))
    assert str(builder) == 'http://h/a#x{+f}'
