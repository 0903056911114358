import re
import string

ENV_VAR = 'URIPLATE_CONFIG'

KEY_TEMPLATE = 'templates'
KEY_BASE = 'base'
REF_TEMPLATE = '@'
PATTERN_REFERENCE = re.compile('{' + REF_TEMPLATE + r'(\w+)}')

# RFC 3986 character classes
ALPHA = string.ascii_letters
DIGIT = string.digits
UNRESERVED = ALPHA + DIGIT + '-._~'
GEN_DELIMS = ':/?#[]@'
SUB_DELIMS = "!$&'()*+,;="
RESERVED = GEN_DELIMS + SUB_DELIMS

# RFC 6570 varname, varchar = ALPHA / DIGIT / "_" / pct-encoded
PATTERN_VARNAME = re.compile(r'^(?:[A-Za-z0-9_]|%[0-9A-Fa-f]{2})+(?:\.(?:[A-Za-z0-9_]|%[0-9A-Fa-f]{2})+)*$')
PATTERN_SCHEME = re.compile(r'^[A-Za-z][A-Za-z0-9+.\-]*$')
PATTERN_PCT_ENCODED = re.compile(r'%[0-9A-Fa-f]{2}')

MAX_PREFIX = 9999
EXPLODE = '*'
PREFIX = ':'
VARSPEC_SEPARATOR = ','
GROUP_START = '{'
GROUP_END = '}'

# Component names, used as builder slots
SSP = 'ssp'
HOST = 'host'
PATH = 'path'
QUERY = 'query'
FRAGMENT = 'fragment'

# Characters left unquoted when building a concrete URI from components
_MARK = "-_.!~*'()"
SAFE_USER_INFO = _MARK + ';:&=+$,'
SAFE_PATH = _MARK + ';:@&=+$,/'
SAFE_QUERY = _MARK + ';/?:@&=+$,[]'
SAFE_FRAGMENT = SAFE_QUERY
SAFE_SSP = SAFE_QUERY

