"""
Model host and translation layer services
"""
from orm_i18n.services.model_host import ModelHost
from orm_i18n.services.translation_service import I18N

__all__ = [
    "ModelHost",
    "I18N",
]
