"""
Query rewriting for translated fields
Runs as before_find hooks on base models
"""
from typing import Any

from orm_i18n.models.query import FindOptions, Include
from orm_i18n.models.registry import TranslationModel


def add_language(model: type, options: FindOptions):
    """
    Pin the requested language on every returned row.
    The language comes from the per-call override, else from where.language_id.
    """
    if "language_id" not in model.__virtual_fields__:
        return

    locale = options.language_id
    if locale is None:
        locale = options.where.get("language_id")
    if locale is None:
        return

    if options.attributes is None:
        options.attributes = [column.key for column in model.__table__.columns]
    options.virtuals["language_id"] = locale


def rewrite_find_options(entry: TranslationModel, model: type, options: FindOptions):
    """
    Move filters on translated fields (and list-valued filters) to the
    translation include, and sort translated fields through the relation.
    """
    for key in list(options.where):
        value = options.where[key]
        if key in entry.fields or isinstance(value, (list, tuple)):
            include = _translation_include(entry, options)
            include.where[key] = value
            del options.where[key]

    for index, item in enumerate(options.order):
        field_name, direction = _order_field(item)
        if field_name is not None and field_name in entry.fields:
            options.order[index] = (entry.model, field_name, direction)


def _translation_include(entry: TranslationModel, options: FindOptions) -> Include:
    for include in options.include:
        if include.model is entry.model:
            return include
    include = Include(model=entry.model, as_=entry.name)
    options.include.append(include)
    return include


def _order_field(item: Any):
    if isinstance(item, str):
        return item, "ASC"
    if len(item) == 2 and isinstance(item[0], str):
        return item[0], item[1]
    return None, None
