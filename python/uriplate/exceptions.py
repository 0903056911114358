class URITemplateError(Exception):
    """ Generic base exception for all uriplate errors """


class MalformedTemplate(URITemplateError, ValueError):
    """ Failure to parse a template string """

    def __init__(self, message, template=None, position=None):
        super(MalformedTemplate, self).__init__(message)
        self.template = template
        self.position = position


class UnsupportedValueShape(URITemplateError, TypeError):
    """ A substituted or appended value is not a scalar, list or mapping """


class InvalidParameters(URITemplateError, ValueError):
    """ Positional parameters that cannot be paired into names and values """


class NotFullyExpanded(URITemplateError, RuntimeError):
    """ Finalizing a template that still contains variables """


class InvalidUriSyntax(URITemplateError, ValueError):
    """ A fully expanded string is not a valid URI """


class OpaqueUriViolation(URITemplateError, RuntimeError):
    """ Hierarchical operation on an opaque builder or vice versa """


class FragmentAlreadyConfigured(URITemplateError, RuntimeError):
    """ Prefix or delimiter of a component fragment is already fixed """


class ConfigError(URITemplateError, KeyError):
    """ Any errors raised from reading a template configuration """

    def __str__(self):
        # KeyError quotes its message, keep it readable
        return Exception.__str__(self)


class MissingTemplateError(ConfigError):
    """ Error with a missing template """


class TemplateValidationError(ConfigError, ValueError):
    """ Errors with template validation """
