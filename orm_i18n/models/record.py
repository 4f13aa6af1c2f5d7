"""
TranslatableRecord - per-instance translation API
Mixed into every model that has a translation model
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import object_session

from orm_i18n.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Hidden from serialized translation rows
EXCLUDED_ATTRIBUTES = ("id", "parent_id")


class TranslatableRecord:
    """
    Capability of rows whose model carries translated fields.

    __i18n__ (TranslationModel) and __i18n_manager__ (I18N) are bound on the
    model class once its translation relation is wired.
    """

    __i18n__ = None
    __i18n_manager__ = None

    @property
    def translations(self) -> List[Any]:
        """Translation rows of this instance (loads them if needed)"""
        entry = self.__i18n__
        if entry is None:
            return []
        return list(getattr(self, entry.name) or [])

    def _loaded_translations(self) -> List[Any]:
        entry = self.__i18n__
        if entry is None:
            return []
        return list(self.__dict__.get(entry.name) or [])

    def add_translation(self, values: Dict[str, Any], language_id: Any):
        """
        Add a translation for another language.
        Keeps an existing row for that language untouched.

        Args:
            values: Translated field values (other keys are ignored)
            language_id: Configured language

        Returns:
            self, or None when the language or values are invalid
        """
        entry = self.__i18n__
        manager = self.__i18n_manager__
        if (
            not values
            or entry is None
            or language_id is None
            or language_id not in manager.options.languages
        ):
            logger.debug(f"Translation for language {language_id} ignored on {type(self).__name__}")
            return None

        db = object_session(self)
        where = {
            "language_id": language_id,
            "parent_id": getattr(self, entry.natural_key),
        }
        defaults = {key: value for key, value in values.items() if key in entry.translated}

        manager.host.find_or_create(db, entry.model, where=where, defaults={**defaults, **where})
        manager.host.reload(db, self)
        return self

    def delete_translation(self, language_id: Any) -> Optional[int]:
        """Remove the translation of one language; returns the number of removed rows"""
        entry = self.__i18n__
        if language_id is None or entry is None:
            return None

        db = object_session(self)
        removed = self.__i18n_manager__.host.bulk_destroy(
            db,
            entry.model,
            where={"language_id": language_id, "parent_id": getattr(self, entry.natural_key)},
        )
        self.__i18n_manager__.host.reload(db, self)
        return removed

    def get_translation(self, language_id: Any) -> Optional[Any]:
        """Loaded translation row of a language, without querying"""
        for row in self._loaded_translations():
            if row.language_id == language_id:
                return row
        return None

    def project_language(self, language_id: Any):
        """
        Copy the translated values of a language onto this instance.
        Timestamps and the soft-delete column of the translation row are not copied.
        """
        manager = self.__i18n_manager__
        if manager is None or manager.options.default_language is None:
            return self

        row = self.get_translation(language_id)
        if row is None:
            return self

        for key in self.__i18n__.translated:
            setattr(self, key, getattr(row, key))
        return self

    def set_translation(
        self,
        language_id: Any,
        field_name: Optional[str],
        value: Any,
        callback: Optional[Callable[[Any], None]] = None,
    ):
        """
        Upsert one translated value.

        Raises:
            ValidationError: no language and no default language, or missing field name
        """
        manager = self.__i18n_manager__
        default_language = manager.options.default_language if manager else None
        if language_id is None and default_language is None:
            raise ValidationError("No language given")
        if not field_name:
            raise ValidationError("Property name to update is missing")

        entry = self.__i18n__
        if entry is None:
            return None
        if field_name not in entry.translated:
            raise ValidationError(f"{field_name} is not a translated field of {entry.base_name}")

        values = {
            "parent_id": getattr(self, entry.natural_key),
            "language_id": language_id if language_id is not None else default_language,
            field_name: value,
        }
        db = object_session(self)
        row = manager.host.upsert(db, entry.model, values)
        manager.host.reload(db, self)

        if callback is not None and callable(callback):
            callback(row)
        return row

    def to_dict(self, exclude: Iterable[str] = ()) -> Dict[str, Any]:
        data = super().to_dict(exclude)
        entry = self.__i18n__
        if entry is not None and entry.name not in exclude and entry.name in self.__dict__:
            data[entry.name] = [
                row.to_dict(exclude=EXCLUDED_ATTRIBUTES) for row in self.__dict__[entry.name]
            ]
        return data
