"""
Registry entry describing a base model's companion translation model
"""
from dataclasses import dataclass
from typing import FrozenSet, Optional


@dataclass
class TranslationModel:
    """Translation model metadata kept per base model"""

    name: str
    base_name: str
    # Every column of the translation schema (language_id, parent_id, translated fields...)
    fields: FrozenSet[str]
    # Translated fields only
    translated: FrozenSet[str]
    natural_key: str
    model: Optional[type] = None

    def __repr__(self):
        return f"<TranslationModel(name={self.name}, base={self.base_name})>"
