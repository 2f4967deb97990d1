"""Column-to-field binding for record types.

A record type is a dataclass, a Pydantic model, or a plain class that is
either registered explicitly or annotates its attributes with ``Column``.
Fields opt in with a column tag::

    @dataclass
    class City:
        id: Annotated[UInt, Column("id")]
        name: Annotated[str, Column("name")]
        population: int = field(default=0, metadata={"db": "population"})
        note: str = ""  # untagged, never populated

Bindings are derived once per class and cached by TypeMappingCache.
"""

from __future__ import annotations

import dataclasses
import threading
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import BaseModel

from rowbind.core.exceptions import ShapeError


@dataclass(frozen=True)
class Column:
    """Column tag: binds the annotated field to a result column."""

    name: str


@dataclass(frozen=True)
class Unsigned:
    """Marks an ``int`` field as unsigned; negative values are rejected."""


UInt = Annotated[int, Unsigned()]


class FieldKind(Enum):
    """Semantic kind of a destination field."""

    STRING = "string"
    INTEGER = "integer"
    UNSIGNED = "unsigned"
    FLOAT = "float"
    BOOL = "bool"
    OPAQUE = "opaque"


_ZERO_VALUES: dict[FieldKind, Any] = {
    FieldKind.STRING: "",
    FieldKind.INTEGER: 0,
    FieldKind.UNSIGNED: 0,
    FieldKind.FLOAT: 0.0,
    FieldKind.BOOL: False,
    FieldKind.OPAQUE: None,
}


@dataclass(frozen=True)
class FieldBinding:
    """One tagged field of a record type."""

    index: int
    name: str
    kind: FieldKind
    nullable: bool = False
    annotation: Any = None

    @property
    def zero(self) -> Any:
        """Value stored for SQL NULL."""
        if self.nullable:
            return None
        return _ZERO_VALUES[self.kind]


class _Flavor(Enum):
    DATACLASS = "dataclass"
    PYDANTIC = "pydantic"
    PLAIN = "plain"


@dataclass(frozen=True)
class RecordSpec:
    """Everything the materializer needs to build and fill one record type."""

    record_type: type
    flavor: _Flavor
    columns: dict[str, FieldBinding]
    # Zero values for constructor arguments that have no default
    required: dict[str, Any]


def _is_pydantic_model(cls: type) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def _analyze(
    annotation: Any, extra: tuple[Any, ...] = ()
) -> tuple[FieldKind, bool, Any, list[Any]]:
    """Return (kind, nullable, base type, metadata) for a field annotation."""
    metadata = list(extra)
    base = annotation
    if get_origin(base) is Annotated:
        base, *more = get_args(base)
        metadata.extend(more)

    nullable = False
    if get_origin(base) in (Union, types.UnionType):
        members = get_args(base)
        non_null = [m for m in members if m is not type(None)]
        if len(non_null) == 1 and len(members) == 2:
            nullable = True
            base = non_null[0]
            if get_origin(base) is Annotated:
                base, *more = get_args(base)
                metadata.extend(more)

    if base is bool:
        kind = FieldKind.BOOL
    elif base is int:
        unsigned = any(isinstance(m, Unsigned) for m in metadata)
        kind = FieldKind.UNSIGNED if unsigned else FieldKind.INTEGER
    elif base is float:
        kind = FieldKind.FLOAT
    elif base is str:
        kind = FieldKind.STRING
    else:
        kind = FieldKind.OPAQUE
    return kind, nullable, base, metadata


def _column_tag(metadata: list[Any]) -> str:
    for item in metadata:
        if isinstance(item, Column):
            return item.name
    return ""


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as e:
        raise ShapeError(f"cannot resolve field annotations of {cls.__name__}: {e}") from e


def _dataclass_spec(cls: type) -> RecordSpec:
    hints = _type_hints(cls)
    columns: dict[str, FieldBinding] = {}
    required: dict[str, Any] = {}
    for index, f in enumerate(dataclasses.fields(cls)):
        kind, nullable, base, metadata = _analyze(hints.get(f.name, f.type))
        binding = FieldBinding(index, f.name, kind, nullable, base)
        tag = f.metadata.get("db") or _column_tag(metadata)
        if tag:
            columns[tag] = binding
        no_default = (
            f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        )
        if f.init and no_default:
            required[f.name] = binding.zero
    return RecordSpec(cls, _Flavor.DATACLASS, columns, required)


def _pydantic_spec(cls: type) -> RecordSpec:
    columns: dict[str, FieldBinding] = {}
    required: dict[str, Any] = {}
    for index, (name, info) in enumerate(cls.model_fields.items()):  # type: ignore[attr-defined]
        kind, nullable, base, metadata = _analyze(info.annotation, tuple(info.metadata))
        binding = FieldBinding(index, name, kind, nullable, base)
        tag = _column_tag(metadata)
        if tag:
            columns[tag] = binding
        if info.is_required():
            required[name] = binding.zero
    return RecordSpec(cls, _Flavor.PYDANTIC, columns, required)


def _plain_spec(cls: type, explicit: dict[str, str] | None) -> RecordSpec:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        hints = {}
    columns: dict[str, FieldBinding] = {}
    if explicit is not None:
        for index, (column, attr) in enumerate(explicit.items()):
            kind, nullable, base, _ = _analyze(hints.get(attr, Any))
            columns[column] = FieldBinding(index, attr, kind, nullable, base)
    else:
        for index, (attr, hint) in enumerate(hints.items()):
            kind, nullable, base, metadata = _analyze(hint)
            tag = _column_tag(metadata)
            if tag:
                columns[tag] = FieldBinding(index, attr, kind, nullable, base)
    return RecordSpec(cls, _Flavor.PLAIN, columns, {})


def _has_column_annotations(cls: type) -> bool:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        return False
    return any(_column_tag(_analyze(hint)[3]) for hint in hints.values())


class TypeMappingCache:
    """Per-type column binding cache.

    Lookups read without locking; the first caller for a type computes the
    spec under a lock, so each type is analysed exactly once.
    """

    def __init__(self) -> None:
        self._specs: dict[type, RecordSpec] = {}
        self._registered: dict[type, dict[str, str]] = {}
        self._lock = threading.Lock()

    def register(self, record_type: type, columns: dict[str, str]) -> None:
        """Bind a plain class explicitly: ``{column_name: attribute_name}``.

        The class must be constructible without arguments.
        """
        with self._lock:
            self._registered[record_type] = dict(columns)
            self._specs.pop(record_type, None)

    def is_record_type(self, record_type: Any) -> bool:
        """True if *record_type* is a class this cache can bind."""
        if not isinstance(record_type, type):
            return False
        if record_type in self._registered or record_type in self._specs:
            return True
        if dataclasses.is_dataclass(record_type) or _is_pydantic_model(record_type):
            return True
        return _has_column_annotations(record_type)

    def spec_for(self, record_type: type) -> RecordSpec:
        """Return the cached RecordSpec for *record_type*, building it once."""
        spec = self._specs.get(record_type)
        if spec is not None:
            return spec

        with self._lock:
            spec = self._specs.get(record_type)
            if spec is None:
                spec = self._build(record_type)
                self._specs[record_type] = spec
            return spec

    def mapping_for(self, record_type: type) -> dict[str, FieldBinding]:
        """Column tag -> field binding for *record_type*."""
        return self.spec_for(record_type).columns

    def _build(self, record_type: type) -> RecordSpec:
        if record_type in self._registered:
            return _plain_spec(record_type, self._registered[record_type])
        if dataclasses.is_dataclass(record_type):
            return _dataclass_spec(record_type)
        if _is_pydantic_model(record_type):
            return _pydantic_spec(record_type)
        if isinstance(record_type, type) and _has_column_annotations(record_type):
            return _plain_spec(record_type, None)
        name = getattr(record_type, "__name__", repr(record_type))
        raise ShapeError(f"{name} is not a record type")

    def __len__(self) -> int:
        return len(self._specs)


def new_record(spec: RecordSpec, values: dict[str, Any]) -> Any:
    """Construct a fresh record with *values* set and other required fields zeroed."""
    cls = spec.record_type
    if spec.flavor is _Flavor.DATACLASS:
        init_names = {f.name for f in dataclasses.fields(cls) if f.init}
        kwargs = dict(spec.required)
        late: dict[str, Any] = {}
        for name, value in values.items():
            if name in init_names:
                kwargs[name] = value
            else:
                late[name] = value
        record = cls(**kwargs)
        for name, value in late.items():
            object.__setattr__(record, name, value)
        return record
    if spec.flavor is _Flavor.PYDANTIC:
        return cls.model_construct(**{**spec.required, **values})  # type: ignore[attr-defined]
    record = cls()
    for name, value in values.items():
        setattr(record, name, value)
    return record


def assign_fields(spec: RecordSpec, record: Any, values: dict[str, Any]) -> None:
    """Set *values* on an existing record in place."""
    if spec.flavor is _Flavor.DATACLASS:
        for name, value in values.items():
            object.__setattr__(record, name, value)
        return
    for name, value in values.items():
        setattr(record, name, value)
