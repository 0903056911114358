"""
Boundary to the platform URI type, urllib.parse.SplitResult.

Fully expanded templates and concrete builders are validated and assembled
here. Components given to build() are decoded values; every character that is
not legal in its component is quoted, '%' included.
"""
from urllib.parse import quote, urlsplit

from uriplate import constants
from uriplate import exceptions

_LEGAL = frozenset(constants.UNRESERVED + constants.RESERVED + '%')


def parse(string):
    """
    Validates the string as a URI reference and splits it into components

    :raise InvalidUriSyntax: if the string contains illegal characters,
        malformed escapes or an invalid scheme or authority
    :param str  string:
    :rtype: urllib.parse.SplitResult
    """
    for index, char in enumerate(string):
        if char not in _LEGAL:
            raise exceptions.InvalidUriSyntax(
                'Illegal character {!r} at index {}: {}'.format(char, index, string)
            )
        if char == '%' and not constants.PATTERN_PCT_ENCODED.match(string, index):
            raise exceptions.InvalidUriSyntax(
                'Malformed escape pair at index {}: {}'.format(index, string)
            )
    if string.count('#') > 1:
        raise exceptions.InvalidUriSyntax(
            'Illegal character {!r} at index {}: {}'.format('#', string.rindex('#'), string)
        )

    head = string
    for delimiter in '/?#':
        head = head.partition(delimiter)[0]
    if ':' in head and not constants.PATTERN_SCHEME.match(head.partition(':')[0]):
        raise exceptions.InvalidUriSyntax('Expected scheme name at index 0: {}'.format(string))

    try:
        result = urlsplit(string)
        # Validates the port range
        result.port
    except ValueError as e:
        raise exceptions.InvalidUriSyntax('{}: {}'.format(e, string))
    return result


def bracket_host(host):
    """
    Wraps literal IPv6 addresses in brackets

    :param str  host:
    :rtype: str
    """
    if ':' in host and not host.startswith('[') and not host.endswith(']'):
        return '[' + host + ']'
    return host


def remove_dot_segments(path):
    """
    Collapses '.' and '..' segments, see RFC 3986 section 5.2.4. Leading '..'
    segments of a relative path cannot be resolved and are kept.

    :param str  path:
    :rtype: str
    """
    if not path:
        return path
    absolute = path.startswith('/')
    segments = path.split('/')
    if absolute:
        segments = segments[1:]
    output = []
    for segment in segments:
        if segment == '..':
            if output and output[-1] != '..':
                output.pop()
            elif not absolute:
                output.append(segment)
        elif segment != '.':
            output.append(segment)
    if segments[-1] in ('.', '..') and (not output or output[-1] != '..'):
        output.append('')
    return ('/' if absolute else '') + '/'.join(output)


def build(scheme=None, user_info=None, host=None, port=None, path=None, query=None,
          fragment=None, ssp=None):
    """
    Assembles a normalized URI string from decoded components. If ssp is
    given, the URI is opaque and the hierarchical components are ignored.

    :raise InvalidUriSyntax: if the scheme is invalid, or a path is relative
        while an authority is present
    :param str  scheme:
    :param str  user_info:
    :param str  host:       None for no authority
    :param int  port:
    :param str  path:
    :param str  query:
    :param str  fragment:
    :param str  ssp:        Scheme-specific part of an opaque URI
    :rtype: str
    """
    parts = []
    if scheme:
        if not constants.PATTERN_SCHEME.match(scheme):
            raise exceptions.InvalidUriSyntax('Illegal scheme name: {!r}'.format(scheme))
        parts.append(scheme + ':')

    if ssp is not None:
        parts.append(quote(ssp, safe=constants.SAFE_SSP))
    else:
        if host is not None:
            parts.append('//')
            if user_info is not None:
                parts.append(quote(user_info, safe=constants.SAFE_USER_INFO) + '@')
            parts.append(bracket_host(host))
            if port is not None:
                parts.append(':{}'.format(port))
        if path:
            if host is not None and not path.startswith('/'):
                raise exceptions.InvalidUriSyntax('Relative path in absolute URI: {!r}'.format(path))
            parts.append(quote(remove_dot_segments(path), safe=constants.SAFE_PATH))
        if query is not None:
            parts.append('?' + quote(query, safe=constants.SAFE_QUERY))

    if fragment is not None:
        parts.append('#' + quote(fragment, safe=constants.SAFE_FRAGMENT))
    return ''.join(parts)
