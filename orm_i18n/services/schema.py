"""
Translation schema derivation
Splits translatable fields of a base model into a companion schema
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import DateTime

from orm_i18n.core.exceptions import ConfigurationError
from orm_i18n.models.fields import VIRTUAL, Field, ModelOptions

logger = logging.getLogger(__name__)

UNICITY_CONSTRAINT = "i18n_unicity_constraint"

# Options of the translation model that a base model may override through `i18n`
OVERRIDABLE_OPTIONS = ("paranoid", "timestamps", "underscored")


@dataclass
class TranslationSchema:
    fields: Dict[str, Field]
    natural_key: str
    translated: List[str]
    options: Dict[str, Any] = field(default_factory=dict)


def get_model_unique_key(fields: Dict[str, Field]) -> Optional[Tuple[str, Field]]:
    """
    Natural key of a model: first primary key field, else first unique field.

    Returns:
        (field name, Field) or None
    """
    for name, candidate in fields.items():
        if candidate.primary_key:
            return name, candidate
    for name, candidate in fields.items():
        if candidate.unique is True:
            return name, candidate
    return None


def derive_translation_schema(
    fields: Dict[str, Field],
    options: ModelOptions,
    language_type: Any,
) -> Optional[TranslationSchema]:
    """
    Build the translation schema of a base model and turn its translatable
    fields into virtual ones. The field map is mutated in place.

    Args:
        fields: Base model field map
        options: Base model options
        language_type: Column type of language_id

    Returns:
        TranslationSchema, or None when no field is translatable

    Raises:
        ConfigurationError: translatable fields on a model without natural key
    """
    natural_key = get_model_unique_key(fields)
    schema: Optional[Dict[str, Field]] = None
    translated: List[str] = []
    unique_fields: List[str] = []

    for name, candidate in fields.items():
        if not candidate.translatable:
            continue
        if natural_key is None:
            raise ConfigurationError(
                f"No primary or unique key found for {options.model_name} model"
            )

        if schema is None:
            schema = {
                "language_id": Field(language_type, unique=UNICITY_CONSTRAINT, nullable=False),
                "parent_id": Field(natural_key[1].type, unique=UNICITY_CONSTRAINT, nullable=False),
            }

        schema[name] = Field(candidate.type, nullable=candidate.nullable)
        translated.append(name)
        if candidate.unique is True:
            unique_fields.append(name)
        candidate.type = VIRTUAL

    if schema is None:
        return None

    if options.paranoid:
        # Soft-deleted rows stay in the table, so the deletion time is part of every unique key
        schema[options.deleted_at] = Field(DateTime(timezone=True), unique=UNICITY_CONSTRAINT)

    indexes = []
    for name in unique_fields:
        columns = ["language_id", options.deleted_at, name] if options.paranoid else ["language_id", name]
        indexes.append({"unique": True, "fields": columns})

    # Reports the requested language on query results
    language_field = fields.get("language_id")
    if language_field is None or not language_field.is_virtual:
        fields["language_id"] = Field(VIRTUAL)

    overrides = {
        key: value for key, value in (options.i18n or {}).items() if key in OVERRIDABLE_OPTIONS
    }
    model_options = {
        "paranoid": options.paranoid,
        "timestamps": options.timestamps,
        "underscored": options.underscored,
        **overrides,
        "deleted_at": options.deleted_at,
        "indexes": indexes,
    }

    logger.debug(f"Translation schema for {options.model_name}: {sorted(schema)}")

    return TranslationSchema(
        fields=schema,
        natural_key=natural_key[0],
        translated=translated,
        options=model_options,
    )
