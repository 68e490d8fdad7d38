"""Exceptions raised by i18n-helper."""

from typing import Optional


class I18nHelperError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(I18nHelperError):
    """A required client setting is missing or invalid."""


class ResourceDirectoryNotFound(I18nHelperError):
    """The module has no resource directory to scan."""


class NoLocaleResources(I18nHelperError):
    """Discovery found no strings.xml files at all."""


class BaselineNotFound(I18nHelperError):
    """Resources were found but none of them is the default locale."""


class MalformedDocument(I18nHelperError):
    """The text could not be parsed as a resource document."""


class InvalidDocumentShape(I18nHelperError):
    """The document lacks the closing marker new entries are inserted before."""


class TransportFailure(I18nHelperError):
    """The request never produced a usable HTTP response."""


class NonSuccessResponse(I18nHelperError):
    """The endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body or ''
        super().__init__(f'HTTP {status_code}: {self.body[:200]}')


class MalformedTranslationOutput(I18nHelperError):
    """The model output is not a JSON object of strings."""


class TranslationAbandoned(I18nHelperError):
    """A locale's answer arrived after the run stopped waiting for it."""
