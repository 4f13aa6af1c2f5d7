"""
Model Host - SQLAlchemy-backed model registry
Defines models from explicit field descriptors and runs definition,
query and write hooks around them
"""
import copy
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    UniqueConstraint,
    and_,
    delete,
    select,
    update,
)
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, contains_eager, declarative_base, foreign, load_only, relationship

from orm_i18n.models.fields import Field, ModelOptions
from orm_i18n.models.query import FindOptions, Include, WriteOptions
from orm_i18n.utils.helpers import to_list, utcnow

logger = logging.getLogger(__name__)

HOOK_EVENTS = ("before_find", "after_create", "after_update", "after_destroy")

DefineHook = Callable[[Dict[str, Field], ModelOptions], None]
ModelHook = Callable[[type], None]


class HostModel:
    """Behavior shared by every model defined on a host"""

    __model_options__ = None
    __virtual_fields__ = ()

    def to_dict(self, exclude: Iterable[str] = ()) -> Dict[str, Any]:
        """Serialize persisted columns plus virtual values that were set"""
        exclude = set(exclude)
        data = {}
        for column in self.__table__.columns:
            if column.key not in exclude:
                data[column.key] = getattr(self, column.key)
        for name in self.__virtual_fields__:
            if name in self.__dict__ and name not in exclude:
                data[name] = self.__dict__[name]
        return data

    def __repr__(self):
        keys = ", ".join(
            f"{column.key}={self.__dict__.get(column.key)!r}"
            for column in self.__table__.primary_key.columns
        )
        return f"<{type(self).__name__}({keys})>"


class ModelHost:
    """
    Owns a declarative base, the defined models and their hooks.

    Hooks:
        before_define(fields, options)  - may mutate the field map and options
        after_define(model)             - runs once the mapped class exists
        before_find(model, options)     - may rewrite FindOptions in place
        after_create / after_update / after_destroy(db, instance, write_options)
    """

    def __init__(self, metadata: Optional[MetaData] = None):
        self.Base = declarative_base(cls=HostModel, metadata=metadata or MetaData())
        self.models: Dict[str, type] = {}
        self._before_define: List[Tuple[str, DefineHook]] = []
        self._after_define: List[Tuple[str, ModelHook]] = []

    @property
    def metadata(self) -> MetaData:
        return self.Base.metadata

    # ------------------------------------------------------------------
    # Definition
    # ------------------------------------------------------------------

    def before_define(self, name: str, fn: DefineHook):
        self._before_define = [(n, f) for n, f in self._before_define if n != name]
        self._before_define.append((name, fn))

    def after_define(self, name: str, fn: ModelHook):
        self._after_define = [(n, f) for n, f in self._after_define if n != name]
        self._after_define.append((name, fn))

    def define(self, name: str, fields: Dict[str, Field], **options) -> type:
        """
        Define and register a model.

        Args:
            name: Model name (also the table name unless table_name is given)
            fields: Field name -> Field descriptor
            **options: ModelOptions keyword arguments

        Returns:
            Mapped model class
        """
        fields = {key: copy.copy(value) for key, value in fields.items()}
        model_options = ModelOptions(model_name=name, **options)

        for _, fn in self._before_define:
            fn(fields, model_options)

        model = self._build_model(fields, model_options)
        self.models[name] = model
        logger.debug(f"Model defined: {name} (table {model_options.table_name})")

        for _, fn in self._after_define:
            fn(model)

        return model

    def _build_model(self, fields: Dict[str, Field], options: ModelOptions) -> type:
        attrs: Dict[str, Any] = {
            "__tablename__": options.table_name,
            "__model_options__": options,
            "__hooks__": {event: [] for event in HOOK_EVENTS},
            "__default_scope__": dict(options.default_scope),
            "__scopes__": {
                key: dict(scope) if isinstance(scope, dict) else scope
                for key, scope in options.scopes.items()
            },
        }
        virtual_fields = []
        constraint_groups: Dict[str, List[str]] = {}

        for field_name, field in fields.items():
            if field.is_virtual:
                attrs[field_name] = None
                virtual_fields.append(field_name)
                continue
            attrs[field_name] = Column(
                field_name,
                field.type,
                primary_key=field.primary_key,
                unique=field.unique is True,
                nullable=field.nullable and not field.primary_key,
                autoincrement=field.autoincrement,
                default=field.default,
            )
            if isinstance(field.unique, str):
                constraint_groups.setdefault(field.unique, []).append(field_name)

        if not any(f.primary_key for f in fields.values() if not f.is_virtual):
            attrs["id"] = Column("id", Integer, primary_key=True, autoincrement=True)

        if options.timestamps:
            attrs.setdefault(
                options.created_at,
                Column(options.created_at, DateTime(timezone=True), default=utcnow),
            )
            attrs.setdefault(
                options.updated_at,
                Column(options.updated_at, DateTime(timezone=True), default=utcnow, onupdate=utcnow),
            )
        if options.paranoid:
            attrs.setdefault(
                options.deleted_at,
                Column(options.deleted_at, DateTime(timezone=True), nullable=True),
            )

        table_args = [
            UniqueConstraint(*columns, name=f"uq_{options.table_name}_{group}")
            for group, columns in constraint_groups.items()
        ]
        for index in options.indexes:
            columns = list(index["fields"])
            index_name = index.get("name") or f"ix_{options.table_name}_{'_'.join(columns)}"
            table_args.append(Index(index_name, *columns, unique=index.get("unique", False)))
        if table_args:
            attrs["__table_args__"] = tuple(table_args)

        attrs["__virtual_fields__"] = tuple(virtual_fields)
        bases = tuple(options.mixins) + (self.Base,)
        return type(self.Base)(options.model_name, bases, attrs)

    def add_hook(self, model: type, event: str, name: str, fn: Callable):
        if event not in HOOK_EVENTS:
            raise ValueError(f"Unknown hook event: {event}")
        hooks = [(n, f) for n, f in model.__hooks__[event] if n != name]
        hooks.append((name, fn))
        model.__hooks__[event] = hooks

    def _run_hooks(self, model: type, event: str, *args):
        for _, fn in model.__hooks__[event]:
            fn(*args)

    def has_many(
        self,
        source: type,
        target: type,
        as_: str,
        foreign_key: str,
        source_key: str,
        **info,
    ):
        """
        One-to-many relationship from source to target, keyed on target.foreign_key.
        View-only: children are written through the host, not the collection.
        """
        target_table = target.__table__
        condition = foreign(target_table.c[foreign_key]) == source.__table__.c[source_key]
        target_options = target.__model_options__
        if target_options.paranoid:
            condition = and_(condition, target_table.c[target_options.deleted_at].is_(None))

        setattr(
            source,
            as_,
            relationship(
                target,
                primaryjoin=condition,
                viewonly=True,
                uselist=True,
                order_by=list(target_table.primary_key.columns),
                info=info,
            ),
        )

    def create_all(self, engine):
        self.metadata.create_all(bind=engine)

    def drop_all(self, engine):
        self.metadata.drop_all(bind=engine)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_all(
        self,
        db: Session,
        model: type,
        where: Optional[Dict[str, Any]] = None,
        include: Optional[List[Include]] = None,
        order: Optional[List[Any]] = None,
        attributes: Optional[List[str]] = None,
        language_id: Any = None,
        scopes: Any = None,
        unscoped: bool = False,
        paranoid: bool = True,
    ) -> List[Any]:
        """
        Find rows of a model.

        Scopes are merged first, then before_find hooks rewrite the options,
        then the select is built and executed.
        """
        options = FindOptions(
            where=dict(where or {}),
            include=[_copy_include(inc) for inc in include or []],
            order=list(order or []),
            attributes=list(attributes) if attributes is not None else None,
            language_id=language_id,
            paranoid=paranoid,
        )
        self._apply_scopes(model, options, scopes, unscoped)
        self._run_hooks(model, "before_find", model, options)

        stmt = self._build_select(model, options)
        rows = db.execute(stmt).unique().scalars().all()
        # Virtual values belong to this query, not to the shared identity-map row
        for row in rows:
            for key in model.__virtual_fields__:
                if key in options.virtuals:
                    setattr(row, key, options.virtuals[key])
                else:
                    row.__dict__.pop(key, None)
        return rows

    def find_one(self, db: Session, model: type, **options) -> Optional[Any]:
        rows = self.find_all(db, model, **options)
        return rows[0] if rows else None

    def find_by_pk(self, db: Session, model: type, pk: Any, **options) -> Optional[Any]:
        pk_name = list(model.__table__.primary_key.columns)[0].key
        where = dict(options.pop("where", None) or {})
        where[pk_name] = pk
        return self.find_one(db, model, where=where, **options)

    def _apply_scopes(self, model: type, options: FindOptions, scopes: Any, unscoped: bool):
        presets = []
        if not unscoped and model.__default_scope__:
            presets.append(model.__default_scope__)

        for entry in to_list(scopes):
            if isinstance(entry, str):
                name, args = entry, ()
            else:
                name, args = entry[0], tuple(entry[1:])
            scope = model.__scopes__.get(name)
            if scope is None:
                raise ValueError(f"Invalid scope {name} called on {model.__name__}")
            presets.append(scope(*args) if callable(scope) else scope)

        where: Dict[str, Any] = {}
        includes: List[Include] = []
        for preset in presets:
            where.update(preset.get("where") or {})
            includes.extend(_copy_include(inc) for inc in to_list(preset.get("include")))

        where.update(options.where)
        options.where = where
        options.include = _merge_includes(includes + options.include)

    def _build_select(self, model: type, options: FindOptions):
        stmt = select(model)
        joined: Dict[type, Any] = {}
        loaders = []

        for include in options.include:
            rel = getattr(model, include.as_)
            if include.where:
                stmt = stmt.join(rel).where(*_conditions(include.model, include.where))
            else:
                stmt = stmt.outerjoin(rel)
            loaders.append(contains_eager(rel))
            joined[include.model] = rel

        stmt = stmt.where(*_conditions(model, options.where))
        model_options = model.__model_options__
        if options.paranoid and model_options.paranoid:
            stmt = stmt.where(model.__table__.c[model_options.deleted_at].is_(None))

        for item in options.order:
            target, column_name, direction = _order_parts(model, item)
            if target is not model and target not in joined:
                rel = _relationship_to(model, target)
                stmt = stmt.outerjoin(rel)
                loaders.append(contains_eager(rel))
                joined[target] = rel
            column = target.__table__.c[column_name]
            stmt = stmt.order_by(column.desc() if direction == "DESC" else column.asc())

        stmt = stmt.order_by(*model.__table__.primary_key.columns)
        for target in joined:
            stmt = stmt.order_by(*target.__table__.primary_key.columns)

        if options.attributes is not None:
            columns = [getattr(model, name) for name in options.attributes if name in model.__table__.c]
            loaders.append(load_only(*columns))
        if loaders:
            stmt = stmt.options(*loaders)

        # Loaded collections may differ between queries (filtered includes)
        return stmt.execution_options(populate_existing=True)

    def _first(self, db: Session, model: type, where: Dict[str, Any]) -> Optional[Any]:
        stmt = select(model).where(*_conditions(model, where))
        model_options = model.__model_options__
        if model_options.paranoid:
            stmt = stmt.where(model.__table__.c[model_options.deleted_at].is_(None))
        return db.execute(stmt.limit(1)).scalars().first()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, db: Session, model: type, values: Dict[str, Any], language_id: Any = None) -> Any:
        """
        Insert a row, then run after_create hooks.

        Args:
            db: Database session
            model: Model class
            values: Column and virtual values
            language_id: Per-call language override handed to hooks

        Returns:
            Created instance
        """
        instance = model(**values)
        db.add(instance)
        db.commit()
        db.refresh(instance)

        self._run_hooks(
            model,
            "after_create",
            db,
            instance,
            WriteOptions(language_id=language_id, fields=list(values)),
        )
        return instance

    def update(self, db: Session, instance: Any, values: Dict[str, Any], language_id: Any = None) -> Any:
        model = type(instance)
        for key, value in values.items():
            if not hasattr(model, key):
                raise AttributeError(f"{model.__name__} has no field {key}")
            setattr(instance, key, value)
        db.commit()
        db.refresh(instance)

        self._run_hooks(
            model,
            "after_update",
            db,
            instance,
            WriteOptions(language_id=language_id, fields=list(values)),
        )
        return instance

    def destroy(self, db: Session, instance: Any, force: bool = False):
        """Delete a row (soft delete on paranoid models unless forced), then run after_destroy hooks"""
        model = type(instance)
        model_options = model.__model_options__

        # Keys must stay readable once the row is gone
        instance.to_dict()

        if model_options.paranoid and not force:
            setattr(instance, model_options.deleted_at, utcnow())
        else:
            db.delete(instance)
        db.commit()

        self._run_hooks(model, "after_destroy", db, instance, WriteOptions(force=force))

    def bulk_update(self, db: Session, model: type, values: Dict[str, Any], where: Dict[str, Any]) -> int:
        stmt = update(model.__table__).where(*_conditions(model, where)).values(**values)
        model_options = model.__model_options__
        if model_options.paranoid:
            stmt = stmt.where(model.__table__.c[model_options.deleted_at].is_(None))
        result = db.execute(stmt)
        db.commit()
        return result.rowcount

    def bulk_destroy(self, db: Session, model: type, where: Dict[str, Any], force: bool = False) -> int:
        table = model.__table__
        model_options = model.__model_options__
        conditions = _conditions(model, where)
        if model_options.paranoid and not force:
            deleted_at = table.c[model_options.deleted_at]
            stmt = (
                update(table)
                .where(*conditions, deleted_at.is_(None))
                .values({deleted_at: utcnow()})
            )
        else:
            stmt = delete(table).where(*conditions)
        result = db.execute(stmt)
        db.commit()
        return result.rowcount

    def find_or_create(
        self,
        db: Session,
        model: type,
        where: Dict[str, Any],
        defaults: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Any, bool]:
        """
        Find a row matching `where` or insert one from defaults + where.

        Returns:
            (instance, created)
        """
        instance = self._first(db, model, where)
        if instance is not None:
            return instance, False

        instance = model(**{**(defaults or {}), **where})
        db.add(instance)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            # Lost a race against a concurrent insert of the same key
            instance = self._first(db, model, where)
            if instance is None:
                raise
            return instance, False

        db.refresh(instance)
        return instance, True

    def upsert(self, db: Session, model: type, values: Dict[str, Any]) -> Any:
        """Insert or update, matched on primary key or the first fully populated unique constraint"""
        lookup = _upsert_lookup(model, values)
        instance = self._first(db, model, lookup) if lookup else None

        if instance is None:
            instance = model(**values)
            db.add(instance)
        else:
            for key, value in values.items():
                setattr(instance, key, value)
        db.commit()
        db.refresh(instance)
        return instance

    def reload(self, db: Session, instance: Any) -> Any:
        """Refresh from storage and load the relations of the default scope"""
        db.expire(instance)
        db.refresh(instance)
        for include in to_list(type(instance).__default_scope__.get("include")):
            getattr(instance, include.as_)
        return instance


def _copy_include(include: Include) -> Include:
    return Include(model=include.model, as_=include.as_, where=dict(include.where))


def _merge_includes(includes: List[Include]) -> List[Include]:
    merged: Dict[str, Include] = {}
    for include in includes:
        if include.as_ in merged:
            merged[include.as_].where.update(include.where)
        else:
            merged[include.as_] = include
    return list(merged.values())


def _conditions(model: type, where: Dict[str, Any]) -> list:
    conditions = []
    for key, value in where.items():
        column = model.__table__.c.get(key)
        if column is None:
            raise ValueError(f"Unknown field {key} for {model.__name__}")
        if isinstance(value, (list, tuple, set)):
            conditions.append(column.in_(list(value)))
        elif value is None:
            conditions.append(column.is_(None))
        else:
            conditions.append(column == value)
    return conditions


def _order_parts(model: type, item: Any) -> Tuple[type, str, str]:
    if isinstance(item, str):
        return model, item, "ASC"
    if len(item) == 3:
        return item[0], item[1], str(item[2]).upper()
    if len(item) == 2:
        return model, item[0], str(item[1]).upper()
    return model, item[0], "ASC"


def _relationship_to(model: type, target: type):
    for rel in sa_inspect(model).relationships:
        if rel.mapper.class_ is target:
            return getattr(model, rel.key)
    raise ValueError(f"{model.__name__} has no relationship to {target.__name__}")


def _upsert_lookup(model: type, values: Dict[str, Any]) -> Dict[str, Any]:
    table = model.__table__
    pk_names = [column.key for column in table.primary_key.columns]
    if all(values.get(name) is not None for name in pk_names):
        return {name: values[name] for name in pk_names}

    deleted_at = model.__model_options__.deleted_at
    unique_constraints = sorted(
        (c for c in table.constraints if isinstance(c, UniqueConstraint)),
        key=lambda c: c.name or "",
    )
    for constraint in unique_constraints:
        names = [column.key for column in constraint.columns if column.key != deleted_at]
        if names and all(values.get(name) is not None for name in names):
            return {name: values[name] for name in names}
    return {}
