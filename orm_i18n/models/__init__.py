"""
Model descriptors and the translatable record capability
"""
from orm_i18n.models.fields import VIRTUAL, Field, ModelOptions
from orm_i18n.models.query import FindOptions, Include, WriteOptions
from orm_i18n.models.record import TranslatableRecord
from orm_i18n.models.registry import TranslationModel

__all__ = [
    "VIRTUAL",
    "Field",
    "ModelOptions",
    "FindOptions",
    "Include",
    "WriteOptions",
    "TranslatableRecord",
    "TranslationModel",
]
