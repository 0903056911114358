"""
Optional registry of named templates read from YAML. The core modules never
import it; templates and builders work without any configuration.
"""
import logging
import os

import yaml

from uriplate import constants
from uriplate import exceptions
from uriplate import parser
from uriplate.builder import URIBuilder
from uriplate.template import URITemplate

logger = logging.getLogger(__name__)


class TemplateResolver(object):
    """
    Registry of named URI templates loaded from a configuration of the form::

        base: http://api.example.com
        templates:
          items: /items
          search: '{@items}{?q,page}'
          item: '{@items}/{id}'

    Templates can reference other templates by name with {@name}. The optional
    base is prefixed to every template that is not already absolute.
    """

    @classmethod
    def from_env(cls):
        """
        Loads the configuration file named by the URIPLATE_CONFIG environment
        variable

        :raise ConfigError: if the environment variable is not set
        :rtype: TemplateResolver
        """
        path = os.environ.get(constants.ENV_VAR)
        if not path:
            raise exceptions.ConfigError(
                'Environment variable {} is not set'.format(constants.ENV_VAR)
            )
        return cls.from_file(path)

    @classmethod
    def from_file(cls, path):
        """
        :param str  path: Path to a YAML configuration file
        :rtype: TemplateResolver
        """
        with open(path) as f:
            config = yaml.safe_load(f)
        logger.debug('Loaded template configuration: %s', path)
        return cls(config or {})

    def __init__(self, config):
        """
        :raise ConfigError: if a template is missing, invalid or references
            itself

        :param dict config:
        """
        self._config = config
        self._base = config.get(constants.KEY_BASE)
        self._templates = {}

        for name in self._config.get(constants.KEY_TEMPLATE) or ():
            # Templates can reference other templates which recursively load,
            # avoid reloading already evaluated templates
            if name not in self._templates:
                self._load_template(name, ())

    def __contains__(self, name):
        return name in self._templates

    @property
    def base(self):
        """
        :rtype: str
        """
        return self._base

    @property
    def templates(self):
        """
        :rtype: dict[str, URITemplate]
        """
        return self._templates.copy()

    def builder(self, template_name, substitutions=None):
        """
        Expands the template, removing any variables without a value, and
        returns a builder for the resulting URI

        :param str  template_name:
        :param dict substitutions:
        :rtype: URIBuilder
        """
        template = self.get_template(template_name).expand_only(substitutions or {})
        return URIBuilder(template.to_uri())

    def expand(self, template_name, *args, **kwargs):
        """
        :param str  template_name:
        :rtype: URITemplate
        """
        return self.get_template(template_name).expand(*args, **kwargs)

    def get_template(self, template_name):
        """
        :raise MissingTemplateError: if no template has the name
        :param str  template_name:
        :rtype: URITemplate
        """
        try:
            return self._templates[template_name]
        except KeyError:
            raise exceptions.MissingTemplateError(
                'Template {!r} does not exist'.format(template_name)
            )

    def _load_template(self, template_name, chain):
        """
        :param str              template_name:
        :param tuple[str, ...]  chain: Names of the templates referencing this one
        :rtype: URITemplate
        """
        if template_name in self._templates:
            return self._templates[template_name]
        if template_name in chain:
            raise exceptions.TemplateValidationError(
                'Template {!r} references itself: {}'.format(
                    template_name, ' -> '.join(chain + (template_name,))
                )
            )
        try:
            template_string = str(self._config[constants.KEY_TEMPLATE][template_name])
        except (KeyError, TypeError):
            raise exceptions.MissingTemplateError(
                'Template {!r} does not exist'.format(template_name)
            )

        def replace(match):
            return self._load_template(match.group(1), chain + (template_name,)).value

        resolved = constants.PATTERN_REFERENCE.sub(replace, template_string)
        if self._base and not _is_absolute(resolved):
            resolved = _prefix_base(self._base, resolved)

        try:
            parser.parse(resolved)
        except exceptions.MalformedTemplate as e:
            raise exceptions.TemplateValidationError(
                'Invalid template {!r}: {}'.format(template_name, e)
            )

        template = URITemplate(resolved)
        self._templates[template_name] = template
        logger.debug('Loaded template %r: %s', template_name, resolved)
        return template


def _is_absolute(template_string):
    """
    :param str  template_string:
    :rtype: bool
    """
    scheme, separator, _ = template_string.partition(':')
    if separator and constants.PATTERN_SCHEME.match(scheme):
        return True
    return template_string.startswith('//')


def _prefix_base(base, template_string):
    """
    :param str  base:
    :param str  template_string:
    :rtype: str
    """
    base = base.rstrip('/')
    if template_string.startswith(('/', constants.GROUP_START)):
        return base + template_string
    return base + '/' + template_string
