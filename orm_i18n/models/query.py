"""
Query and write option containers passed through host hooks
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union


@dataclass
class Include:
    """Eager include of a relation, optionally filtered"""

    model: type
    as_: str
    where: Dict[str, Any] = field(default_factory=dict)


OrderItem = Union[str, Sequence[Any]]


@dataclass
class FindOptions:
    """Mutable read options; before_find hooks rewrite them in place"""

    where: Dict[str, Any] = field(default_factory=dict)
    include: List[Include] = field(default_factory=list)
    order: List[OrderItem] = field(default_factory=list)
    attributes: Optional[List[str]] = None
    language_id: Any = None
    # Literal values assigned to every returned row, never selected from storage
    virtuals: Dict[str, Any] = field(default_factory=dict)
    paranoid: bool = True


@dataclass
class WriteOptions:
    """Options handed to after_create / after_update / after_destroy hooks"""

    language_id: Any = None
    fields: Optional[List[str]] = None
    force: bool = False
