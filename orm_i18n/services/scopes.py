"""
Scope wiring - eager includes of the translation relation
"""
import logging
from functools import wraps
from typing import Any, Callable, Dict

from orm_i18n.models.query import Include
from orm_i18n.models.registry import TranslationModel
from orm_i18n.utils.helpers import to_list

logger = logging.getLogger(__name__)

I18N_SCOPE = "i18n"


def format_include(entry: TranslationModel) -> Include:
    return Include(model=entry.model, as_=entry.name)


def set_default_scope(model: type, entry: TranslationModel):
    """Append the translation include to the default scope of a model"""
    scope = model.__default_scope__
    scope["include"] = to_list(scope.get("include"))
    scope["include"].append(format_include(entry))


def inject_i18n_scope(model: type, entry: TranslationModel):
    """Append the translation include to every scope the model already declares"""
    scopes = model.__scopes__
    for name, scope in list(scopes.items()):
        if callable(scope):
            scopes[name] = _with_include(scope, entry)
        else:
            scope["include"] = to_list(scope.get("include"))
            scope["include"].append(format_include(entry))


def add_i18n_scope(model: type, entry: TranslationModel):
    """Define the `i18n` scope, optionally filtered on one language"""

    def i18n(language_id: Any = None) -> Dict[str, Any]:
        logger.info(f"i18n scope has been invoked with language {language_id}")
        include = format_include(entry)
        if language_id is not None:
            include.where["language_id"] = language_id
        return {"include": [include]}

    model.__scopes__[I18N_SCOPE] = i18n


def _with_include(scope: Callable[..., Dict[str, Any]], entry: TranslationModel):
    @wraps(scope)
    def scoped(*args, **kwargs):
        preset = dict(scope(*args, **kwargs) or {})
        preset["include"] = to_list(preset.get("include")) + [format_include(entry)]
        return preset

    return scoped
