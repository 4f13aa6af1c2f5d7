"""
orm_i18n - per-language variants of model fields on top of SQLAlchemy
"""
from orm_i18n.core.exceptions import ConfigurationError, I18NException, ValidationError
from orm_i18n.models import VIRTUAL, Field, FindOptions, Include, TranslatableRecord, WriteOptions
from orm_i18n.services import I18N, ModelHost

__version__ = "0.1.0"

__all__ = [
    "I18N",
    "ModelHost",
    "Field",
    "VIRTUAL",
    "Include",
    "FindOptions",
    "WriteOptions",
    "TranslatableRecord",
    "I18NException",
    "ConfigurationError",
    "ValidationError",
]
