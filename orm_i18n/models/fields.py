"""
Field and option descriptors used to define models on a ModelHost
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union


class _Virtual:
    """Marker type: exposed on instances, never persisted"""

    def __repr__(self):
        return "VIRTUAL"


VIRTUAL = _Virtual()


@dataclass
class Field:
    """Explicit field descriptor (replaces declaring a Column directly)"""

    type: Any
    primary_key: bool = False
    # True for a single-column unique, or the name of a composite unique constraint
    unique: Union[bool, str] = False
    translatable: bool = False
    nullable: bool = True
    autoincrement: Union[bool, str] = "auto"
    default: Any = None

    @property
    def is_virtual(self) -> bool:
        return self.type is VIRTUAL


@dataclass
class ModelOptions:
    """Options accepted by ModelHost.define()"""

    model_name: str
    table_name: Optional[str] = None
    paranoid: bool = False
    timestamps: bool = False
    underscored: bool = True
    deleted_at: Optional[str] = None
    indexes: List[Dict[str, Any]] = field(default_factory=list)
    default_scope: Dict[str, Any] = field(default_factory=dict)
    scopes: Dict[str, Union[Dict[str, Any], Callable[..., Dict[str, Any]]]] = field(
        default_factory=dict
    )
    mixins: List[type] = field(default_factory=list)
    i18n: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.table_name is None:
            self.table_name = self.model_name
        if self.deleted_at is None:
            self.deleted_at = "deleted_at" if self.underscored else "deletedAt"

    @property
    def created_at(self) -> str:
        return "created_at" if self.underscored else "createdAt"

    @property
    def updated_at(self) -> str:
        return "updated_at" if self.underscored else "updatedAt"
