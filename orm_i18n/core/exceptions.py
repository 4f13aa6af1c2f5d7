"""
Custom exceptions for the translation layer.
"""


class I18NException(Exception):
    """Base exception for all orm_i18n exceptions."""
    pass


class ConfigurationError(I18NException):
    """Raised when the language configuration or a model definition is invalid."""
    pass


class ValidationError(I18NException):
    """Raised when an instance-level translation call is missing required input."""
    pass
