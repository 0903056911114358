import logging
from urllib.parse import SplitResult, quote, unquote

from uriplate import constants
from uriplate import exceptions
from uriplate import uri
from uriplate.template import URITemplate
from uriplate.variable import Modifier, Variable

logger = logging.getLogger(__name__)

_MISSING = object()

_SAFE = {
    constants.SSP: constants.SAFE_SSP,
    constants.HOST: constants.SAFE_QUERY,
    constants.PATH: constants.SAFE_PATH,
    constants.QUERY: constants.SAFE_QUERY,
    constants.FRAGMENT: constants.SAFE_FRAGMENT,
}

_ROUTES = {
    Modifier.DOMAIN: constants.HOST,
    Modifier.PATH: constants.PATH,
    Modifier.PATH_BUILDER: constants.PATH,
    Modifier.QUERY_START: constants.QUERY,
    Modifier.QUERY: constants.QUERY,
    Modifier.QUERY_BUILDER: constants.QUERY,
    Modifier.FRAGMENT: constants.FRAGMENT,
    Modifier.FRAGMENT_BUILDER: constants.FRAGMENT,
}


def _is_form_group(piece):
    text, is_template = piece
    return is_template and text.startswith(('{?', '{&'))


class Fragment(object):
    """
    Handle on a single component of a URIBuilder, eg::

        builder.path().join('api', 'items')
        builder.query().append('page=1')

    The prefix is written once before the first value passed to join(), the
    delimiter between each following value.
    """

    def __init__(self, builder, component, prefix=None, delimiter=None):
        """
        :param URIBuilder   builder:
        :param str          component:  Name of the builder component
        :param str          prefix:
        :param str          delimiter:
        """
        self._builder = builder
        self._component = component
        self._prefix = prefix
        self._delimiter = delimiter

    def __repr__(self):
        return 'Fragment({!r}, prefix={!r}, delimiter={!r})'.format(
            self._component, self._prefix, self._delimiter
        )

    @property
    def component(self):
        """
        :rtype: str
        """
        return self._component

    @property
    def delimiter(self):
        """
        :rtype: str
        """
        return self._delimiter

    @property
    def prefix(self):
        """
        :rtype: str
        """
        return self._prefix

    def set_delimiter(self, delimiter):
        """
        :raise FragmentAlreadyConfigured: if the component has a fixed delimiter
        :param str  delimiter:
        :rtype: Fragment
        """
        if self._delimiter is not None:
            raise exceptions.FragmentAlreadyConfigured(
                'Delimiter already set: {!r}'.format(self._delimiter)
            )
        self._delimiter = delimiter
        return self

    def set_prefix(self, prefix):
        """
        :raise FragmentAlreadyConfigured: if the component has a fixed prefix
        :param str  prefix:
        :rtype: Fragment
        """
        if self._prefix is not None:
            raise exceptions.FragmentAlreadyConfigured(
                'Prefix already set: {!r}'.format(self._prefix)
            )
        self._prefix = prefix
        return self

    def append(self, *values):
        """
        Appends each value to the component, unseparated

        :param str|int|Variable|URITemplate values:
        :rtype: URIBuilder
        """
        for value in values:
            self._builder._append(self._component, value)
        return self._builder

    def join(self, *values):
        """
        Appends each value to the component, separated by the delimiter

        :param str|int|Variable|URITemplate values:
        :rtype: URIBuilder
        """
        separator = self._prefix
        for value in values:
            if separator is not None:
                self._builder._append(self._component, separator)
            self._builder._append(self._component, value)
            separator = self._delimiter
        return self._builder


class URIBuilder(object):
    """
    Assembles a URI, or a URI template, component by component.

    Each component holds the base value copied from the origin URI and the
    values appended since. As soon as a template variable is appended the
    builder produces templates only.

    Builders are mutable and not thread safe; callers sharing one between
    threads must synchronise access themselves.
    """

    @classmethod
    def based_on(cls, origin):
        """
        :param str|SplitResult|URITemplate  origin: Any object whose string
            form is a valid URI
        :rtype: URIBuilder
        """
        return cls(origin)

    @classmethod
    def uri(cls, scheme, host, port=None):
        """
        :param str  scheme:
        :param str  host:
        :param int  port: None or -1 for the scheme default
        :rtype: URIBuilder
        """
        if port == -1:
            port = None
        return cls(uri.build(scheme=scheme, host=host, port=port))

    def __init__(self, origin=None, opaque=False):
        """
        :raise InvalidUriSyntax: if the origin is not a valid URI

        :param str|SplitResult|URITemplate  origin: URI to copy components from
        :param bool opaque: Without an origin, whether to build an opaque URI,
                            ie, one with a scheme-specific part only
        """
        self._template = False
        self._opaque = opaque
        self._scheme = None
        self._user_info = None
        self._port = None
        self._port_template = None
        self._server = None
        components = (constants.SSP, constants.HOST, constants.PATH, constants.QUERY, constants.FRAGMENT)
        self._base = dict.fromkeys(components)
        # Appended values are lists of (text, is_template) pieces
        self._appended = dict.fromkeys(components)

        if origin is None:
            if opaque:
                self._base[constants.SSP] = ''
            else:
                self._base[constants.PATH] = ''
        else:
            self._load(origin)

    def __repr__(self):
        return 'URIBuilder({!r})'.format(str(self))

    def __str__(self):
        if self._template:
            return self._template_string()
        return self._uri_string()

    @property
    def is_opaque(self):
        """
        :rtype: bool
        """
        return self._opaque

    @property
    def is_template(self):
        """
        :rtype: bool
        """
        return self._template

    def append(self, variable):
        """
        Appends the variable to the component matching its modifier, or to the
        last populated component if it has none.

        :param Variable variable:
        :rtype: URIBuilder
        """
        if not isinstance(variable, Variable):
            raise exceptions.UnsupportedValueShape(
                'Expected a template variable, got: {!r}'.format(variable)
            )
        component = _ROUTES.get(variable.modifier)
        fragment = self._last_segment() if component is None else self._fragment(component)
        logger.debug('Appending %s to %s', variable, fragment.component)
        fragment.append(variable)
        return self

    def fragment(self, value=_MISSING):
        """
        Sets the fragment, or returns a handle on it if no value is given

        :param str  value: Decoded fragment, None to remove it
        :rtype: URIBuilder|Fragment
        """
        if value is _MISSING:
            return Fragment(self, constants.FRAGMENT)
        self._base[constants.FRAGMENT] = value
        return self

    def host(self, value=_MISSING):
        """
        Sets the host, or returns a handle on it if no value is given. A
        variable replaces the current host.

        :raise OpaqueUriViolation: if the builder is opaque
        :param str|Variable value:
        :rtype: URIBuilder|Fragment
        """
        self._require_hierarchical('host')
        if value is _MISSING:
            return Fragment(self, constants.HOST, delimiter='.')
        if isinstance(value, Variable):
            self._base[constants.HOST] = None
            self._appended[constants.HOST] = [(self._render(constants.HOST, value), True)]
            self._template = True
        else:
            self._base[constants.HOST] = value
        return self

    def path(self):
        """
        :raise OpaqueUriViolation: if the builder is opaque
        :rtype: Fragment
        """
        self._require_hierarchical('path')
        return Fragment(self, constants.PATH, prefix='/', delimiter='/')

    def port(self, value):
        """
        :raise OpaqueUriViolation: if the builder is opaque
        :param int|Variable value: None or -1 for the scheme default
        :rtype: URIBuilder
        """
        self._require_hierarchical('port')
        if isinstance(value, Variable):
            self._port_template = value.render()
            self._template = True
        else:
            self._port = None if value is None or value == -1 else int(value)
        return self

    def query(self):
        """
        :raise OpaqueUriViolation: if the builder is opaque
        :rtype: Fragment
        """
        self._require_hierarchical('query')
        return Fragment(self, constants.QUERY, delimiter='&')

    def query_param(self, name, *values):
        """
        Adds a name=value pair to the query for each value. Values are encoded
        when the URI is built.

        Pairs are written before any trailing {?...} or {&...} groups so the
        query keeps its '?' when those groups expand to nothing.

        :raise OpaqueUriViolation: if the builder is opaque
        :param str                          name:
        :param str|int|Variable|URITemplate values:
        :rtype: URIBuilder
        """
        self._require_hierarchical('query')
        if not values:
            return self
        pieces = self._appended[constants.QUERY]
        if pieces is None:
            pieces = self._appended[constants.QUERY] = []
        for value in values:
            index = len(pieces)
            while index and _is_form_group(pieces[index - 1]):
                index -= 1
            pair = []
            if any(text for text, _ in pieces[:index]):
                pair.append(('&', False))
            pair.append((name + '=', False))
            pair.append(self._piece(constants.QUERY, value))
            pieces[index:index] = pair
            following = index + len(pair)
            if following < len(pieces) and pieces[following][0].startswith('{?'):
                # No longer the start of the query
                pieces[following] = ('{&' + pieces[following][0][2:], True)
        return self

    def relative(self, *segments):
        """
        Joins the segments to the path with forward slashes

        :raise OpaqueUriViolation: if the builder is opaque
        :param str|int|Variable|URITemplate segments:
        :rtype: URIBuilder
        """
        return self.path().join(*segments)

    def resolve(self, relative):
        """
        :param str  relative: Relative reference appended to this builder
        :rtype: URITemplate
        """
        return URITemplate(self._template_string() + relative)

    def scheme(self, value):
        """
        :param str|Variable value:
        :rtype: URIBuilder
        """
        if isinstance(value, Variable):
            value = value.render()
            self._template = True
        self._scheme = value
        return self

    def server(self, variable):
        """
        Replaces the scheme and authority with a single variable, eg, a base
        address such as http://localhost:8080 supplied on expansion.

        :raise OpaqueUriViolation: if the builder is opaque
        :param Variable variable:
        :rtype: URIBuilder
        """
        self._require_hierarchical('server')
        if not isinstance(variable, Variable):
            raise exceptions.UnsupportedValueShape(
                'Expected a template variable, got: {!r}'.format(variable)
            )
        self._server = variable.render(Modifier.RESERVED)
        self._template = True
        return self

    def ssp(self, value=_MISSING):
        """
        Sets the scheme-specific part, or returns a handle on it if no value is
        given

        :raise OpaqueUriViolation: if the builder is not opaque
        :param str  value:
        :rtype: URIBuilder|Fragment
        """
        if not self._opaque:
            raise exceptions.OpaqueUriViolation(
                'Constructed URI is not opaque: cannot modify scheme-specific part'
            )
        if value is _MISSING:
            return Fragment(self, constants.SSP)
        self._base[constants.SSP] = value
        return self

    def to_template(self):
        """
        :rtype: URITemplate
        """
        return URITemplate(self._template_string())

    def to_uri(self):
        """
        :raise NotFullyExpanded: if any component contains a template variable
        :raise InvalidUriSyntax: if the components do not form a valid URI
        :rtype: SplitResult
        """
        if self._template:
            raise exceptions.NotFullyExpanded(
                'This URI is a template: {}'.format(self._template_string())
            )
        string = self._uri_string()
        logger.debug('Built URI: %s', string)
        return uri.parse(string)

    def user_info(self, user, password=None):
        """
        :raise OpaqueUriViolation: if the builder is opaque
        :param str  user:
        :param str  password:
        :rtype: URIBuilder
        """
        self._require_hierarchical('user info')
        self._user_info = user if password is None else '{}:{}'.format(user, password)
        return self

    def _append(self, component, value):
        pieces = self._appended[component]
        if pieces is None:
            pieces = self._appended[component] = []
        pieces.append(self._piece(component, value))

    def _fragment(self, component):
        # type: (str) -> Fragment
        if component == constants.HOST:
            return self.host()
        if component == constants.PATH:
            return self.path()
        if component == constants.QUERY:
            return self.query()
        if component == constants.SSP:
            return self.ssp()
        return self.fragment()

    def _has_content(self, component):
        pieces = self._appended[component]
        return bool(self._base[component]) or any(text for text, _ in pieces or ())

    def _last_segment(self):
        """
        Handle on the last logical component populated so far, where a bare
        variable is appended

        :rtype: Fragment
        """
        if self._opaque:
            return self.ssp()
        for component in (constants.FRAGMENT, constants.QUERY):
            if self._appended[component] is not None or self._base[component] is not None:
                return self._fragment(component)
        if self._appended[constants.PATH] is not None or self._base[constants.PATH]:
            return self.path()
        return self.host()

    def _load(self, origin):
        if isinstance(origin, SplitResult):
            string = origin.geturl()
        else:
            string = str(origin)
        split = uri.parse(string)

        self._scheme = split.scheme or None
        if '#' in string:
            self._base[constants.FRAGMENT] = unquote(split.fragment)
        remainder = string.partition('#')[0]
        if self._scheme:
            remainder = remainder[len(self._scheme) + 1:]

        self._opaque = bool(self._scheme) and not remainder.startswith('/')
        if self._opaque:
            self._base[constants.SSP] = unquote(remainder)
            return

        if remainder.startswith('//'):
            if split.username is not None:
                self._user_info = unquote(split.username)
                if split.password is not None:
                    self._user_info += ':' + unquote(split.password)
            # Brackets of IPv6 hosts are restored on output
            self._base[constants.HOST] = split.hostname or ''
            self._port = split.port
        self._base[constants.PATH] = unquote(split.path)
        if '?' in remainder:
            self._base[constants.QUERY] = unquote(split.query)

    def _merge(self, component, encode, delimiter=''):
        """
        Merges the base and appended values of a component. Encoding applies to
        literal text only, never to template variables.

        :param str  component:
        :param bool encode:
        :param str  delimiter: Inserted between base and appended values
        :rtype: str|None
        """
        base = self._base[component]
        pieces = self._appended[component]
        safe = _SAFE[component]
        appended = None
        if pieces is not None:
            appended = ''.join(text if is_template or not encode else quote(text, safe=safe)
                               for text, is_template in pieces)
        if not base:
            return appended
        if encode:
            base = quote(base, safe=safe)
        if appended is None:
            return base
        if appended.startswith(('{?', '{&')):
            delimiter = ''
        return base + delimiter + appended

    def _piece(self, component, value):
        """
        :param str                          component:
        :param str|int|Variable|URITemplate value:
        :rtype: tuple[str, bool]
        """
        if isinstance(value, Variable):
            self._template = True
            return self._render(component, value), True
        if isinstance(value, URITemplate):
            if value.is_expanded():
                return unquote(str(value)), False
            self._template = True
            return str(value), True
        if isinstance(value, str):
            return value, False
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value), False
        raise exceptions.UnsupportedValueShape(
            'Cannot append {!r} to {}: expected a string, integer, Variable or URITemplate'.format(
                value, component
            )
        )

    def _render(self, component, variable):
        """
        Renders a variable with the operator suited to its position

        :param str      component:
        :param Variable variable:
        :rtype: str
        """
        modifier = variable.modifier
        if component == constants.QUERY and modifier in (Modifier.QUERY_START, Modifier.QUERY,
                                                         Modifier.QUERY_BUILDER):
            has_query = self._has_content(constants.QUERY)
            return variable.render(Modifier.QUERY if has_query else Modifier.QUERY_START)
        if component == constants.FRAGMENT and modifier in (Modifier.FRAGMENT, Modifier.FRAGMENT_BUILDER):
            has_fragment = self._has_content(constants.FRAGMENT)
            return variable.render(Modifier.RESERVED if has_fragment else Modifier.FRAGMENT)
        return variable.render()

    def _require_hierarchical(self, operation):
        if self._opaque:
            raise exceptions.OpaqueUriViolation(
                'Constructed URI is opaque: cannot set {}'.format(operation)
            )

    def _template_string(self):
        """
        String form of the builder with literal components encoded and
        template variables left as they are

        :rtype: str
        """
        parts = []
        if self._server is not None:
            parts.append(self._server)
        elif self._scheme is not None:
            parts.append(self._scheme + ':')

        if self._opaque:
            ssp = self._merge(constants.SSP, True)
            if ssp:
                parts.append(ssp)
        else:
            host = self._merge(constants.HOST, True)
            if self._server is None and host is not None:
                parts.append('//')
                if self._user_info is not None:
                    parts.append(quote(self._user_info, safe=constants.SAFE_USER_INFO) + '@')
                parts.append(host if constants.GROUP_START in host else uri.bracket_host(host))
                if self._port is not None:
                    parts.append(':{}'.format(self._port))
                elif self._port_template is not None:
                    parts.append(':' + self._port_template)
            path = self._merge(constants.PATH, True)
            if path:
                parts.append(path)
            query = self._merge(constants.QUERY, True, '&')
            if query is not None:
                if not query.startswith('{?'):
                    parts.append('?')
                parts.append(query)

        fragment = self._merge(constants.FRAGMENT, True)
        if fragment is not None:
            if not fragment.startswith('{#'):
                parts.append('#')
            parts.append(fragment)
        return ''.join(parts)

    def _uri_string(self):
        fragment = self._merge(constants.FRAGMENT, False)
        if self._opaque:
            return uri.build(scheme=self._scheme,
                             ssp=self._merge(constants.SSP, False) or '',
                             fragment=fragment)
        return uri.build(scheme=self._scheme,
                         user_info=self._user_info,
                         host=self._merge(constants.HOST, False),
                         port=self._port,
                         path=self._merge(constants.PATH, False),
                         query=self._merge(constants.QUERY, False, '&'),
                         fragment=fragment)
