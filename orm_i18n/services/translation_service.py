"""
Translation Service - per-language variants of model fields
Hooks into a ModelHost: derives a translation model for every base model
with translatable fields, wires the relation, scopes and query/write hooks.
"""
import logging
from functools import partial
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Integer, String

from orm_i18n.core.config import I18NOptions, Settings
from orm_i18n.core.exceptions import ConfigurationError
from orm_i18n.models.fields import Field, ModelOptions
from orm_i18n.models.record import TranslatableRecord
from orm_i18n.models.registry import TranslationModel
from orm_i18n.services import query_rewriter, scopes
from orm_i18n.services.lifecycle import TranslationSynchronizer
from orm_i18n.services.model_host import ModelHost
from orm_i18n.services.schema import UNICITY_CONSTRAINT, derive_translation_schema, get_model_unique_key
from orm_i18n.utils.helpers import to_list

logger = logging.getLogger(__name__)


class I18N:
    """
    Translation layer bound to one ModelHost.

    Call init() before defining models: models defined afterwards with
    translatable fields get a `<name><suffix>` translation model.
    """

    to_list = staticmethod(to_list)
    get_model_unique_key = staticmethod(get_model_unique_key)

    def __init__(self, host: ModelHost, **options):
        try:
            self.options = I18NOptions(**options)
        except PydanticValidationError as exc:
            raise ConfigurationError(_error_message(exc)) from exc

        self.host = host
        self.language_type = Integer if self.get_language_type_name() == "INTEGER" else String(255)
        self.i18n_models: Dict[str, TranslationModel] = {}
        self.synchronizer = TranslationSynchronizer(self)

    @classmethod
    def from_settings(cls, host: ModelHost, settings: Settings) -> "I18N":
        """Build from environment settings"""
        try:
            options = I18NOptions.from_settings(settings)
        except PydanticValidationError as exc:
            raise ConfigurationError(_error_message(exc)) from exc
        return cls(host, **options.model_dump())

    def init(self):
        """Register definition hooks on the host"""
        self.host.before_define("before_define_i18n", self._before_define)
        self.host.after_define("after_define_i18n", self._after_define)

    def get_i18n_name(self, model_name: str) -> str:
        return f"{model_name}{self.options.suffix}"

    def get_language_type_name(self) -> str:
        if all(
            isinstance(language, int) and not isinstance(language, bool)
            for language in self.options.languages
        ):
            return "INTEGER"
        return "STRING"

    def match_language(self, language_code: Any) -> Optional[Any]:
        """
        Match a requested code against configured languages.

        Tries the code as given, then its primary subtag (en-US -> en).
        String languages compare case-insensitively; numeric ones by value.
        """
        if language_code is None:
            return None
        if language_code in self.options.languages:
            return language_code

        raw = str(language_code).strip()
        candidates = [raw, raw.replace("_", "-").split("-")[0]]
        for candidate in candidates:
            for language in self.options.languages:
                if isinstance(language, int):
                    if candidate.isdigit() and int(candidate) == language:
                        return language
                elif language.lower() == candidate.lower():
                    return language
        return None

    def detect_language(self, language_code: Any = None, fallback: Any = None) -> Any:
        """
        Normalize a requested language.

        Args:
            language_code: Requested code (e.g. 'EN', 'en-US', '2')
            fallback: Returned when nothing matches (default language if None)

        Returns:
            Configured language identifier
        """
        matched = self.match_language(language_code)
        if matched is not None:
            return matched
        return fallback if fallback is not None else self.options.default_language

    # ------------------------------------------------------------------
    # Definition hooks
    # ------------------------------------------------------------------

    def _before_define(self, fields: Dict[str, Field], options: ModelOptions):
        derived = derive_translation_schema(fields, options, self.language_type)
        if derived is None:
            return

        name = self.get_i18n_name(options.model_name)
        model = self.host.define(name, derived.fields, **derived.options)

        self.i18n_models[options.model_name] = TranslationModel(
            name=name,
            base_name=options.model_name,
            fields=frozenset(derived.fields),
            translated=frozenset(derived.translated),
            natural_key=derived.natural_key,
            model=model,
        )
        if TranslatableRecord not in options.mixins:
            options.mixins.append(TranslatableRecord)

        logger.info(
            f"Translation model {name} defined for {options.model_name}: "
            f"{', '.join(derived.translated)}"
        )

    def _after_define(self, model: type):
        entry = self.i18n_models.get(model.__model_options__.model_name)
        if entry is None:
            return

        # The relation must exist before scopes and hooks reference it
        self.host.has_many(
            model,
            entry.model,
            as_=entry.name,
            foreign_key="parent_id",
            source_key=entry.natural_key,
            unique=UNICITY_CONSTRAINT,
        )
        model.__i18n__ = entry
        model.__i18n_manager__ = self

        if self.options.i18n_default_scope:
            scopes.set_default_scope(model, entry)
        if self.options.inject_i18n_scope:
            scopes.inject_i18n_scope(model, entry)
        if self.options.add_i18n_scope:
            scopes.add_i18n_scope(model, entry)

        self.host.add_hook(model, "before_find", "add_language_i18n", query_rewriter.add_language)
        self.host.add_hook(
            model,
            "before_find",
            "before_find_i18n",
            partial(query_rewriter.rewrite_find_options, entry),
        )
        self.host.add_hook(model, "after_create", "after_create_i18n", self.synchronizer.after_create)
        self.host.add_hook(model, "after_update", "after_update_i18n", self.synchronizer.after_update)
        self.host.add_hook(model, "after_destroy", "after_delete_i18n", self.synchronizer.after_destroy)


def _error_message(exc: PydanticValidationError) -> str:
    messages = []
    for error in exc.errors():
        message = error.get("msg", "")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)
