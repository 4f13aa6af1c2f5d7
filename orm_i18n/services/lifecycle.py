"""
Translation row synchronization after base-row writes
"""
import logging
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.orm import Session

from orm_i18n.models.query import WriteOptions
from orm_i18n.models.registry import TranslationModel

logger = logging.getLogger(__name__)


class TranslationSynchronizer:
    """
    Keeps translation rows consistent with their base row.
    Bound as after_create / after_update / after_destroy hooks.
    """

    def __init__(self, i18n):
        self.i18n = i18n

    @property
    def host(self):
        return self.i18n.host

    def _entry(self, instance: Any) -> Optional[TranslationModel]:
        return self.i18n.i18n_models.get(type(instance).__model_options__.model_name)

    def _language(self, options: WriteOptions) -> Any:
        if options.language_id is not None:
            return options.language_id
        return self.i18n.options.default_language

    @staticmethod
    def _project(entry: TranslationModel, instance: Any, keys: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Translated values set on the instance, restricted to keys when given"""
        keys = set(keys) if keys is not None else None
        values = {}
        for name in entry.translated:
            if keys is not None and name not in keys:
                continue
            if name in instance.__dict__:
                values[name] = instance.__dict__[name]
        return values

    def after_create(self, db: Session, instance: Any, options: WriteOptions):
        """
        Create the translation row of a new base row.
        On failure the base row is hard-deleted and the error re-raised.
        """
        entry = self._entry(instance)
        if entry is None:
            return None

        values = self._project(entry, instance)
        values["language_id"] = self._language(options)
        values["parent_id"] = getattr(instance, entry.natural_key)

        try:
            self.host.find_or_create(
                db,
                entry.model,
                where={"language_id": values["language_id"], "parent_id": values["parent_id"]},
                defaults=values,
            )
            self.host.reload(db, instance)
        except Exception:
            db.rollback()
            logger.error(
                f"Translation creation failed for {entry.base_name} {values['parent_id']}, "
                f"removing the base row"
            )
            self.host.destroy(db, instance, force=True)
            raise
        return instance

    def after_update(self, db: Session, instance: Any, options: WriteOptions):
        """Update the translation row of the requested language, creating it when missing"""
        entry = self._entry(instance)
        if entry is None:
            return None

        values = self._project(entry, instance, options.fields)
        if values:
            where = {
                "parent_id": getattr(instance, entry.natural_key),
                "language_id": self._language(options),
            }
            updated = self.host.bulk_update(db, entry.model, values, where=where)
            if not updated:
                logger.debug(f"No {entry.name} row for {where}, creating it")
                self.host.find_or_create(db, entry.model, where=where, defaults=values)

        self.host.reload(db, instance)
        return instance

    def after_destroy(self, db: Session, instance: Any, options: WriteOptions):
        """Remove every translation row of a destroyed base row"""
        entry = self._entry(instance)
        if entry is None:
            return None

        return self.host.bulk_destroy(
            db,
            entry.model,
            where={"parent_id": getattr(instance, entry.natural_key)},
            force=options.force,
        )
