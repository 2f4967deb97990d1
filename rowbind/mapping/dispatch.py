"""Multi-result-set dispatch for stored procedures."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from rowbind.adapters.protocol import RowCursor
from rowbind.core.exceptions import ShapeError, TooManyResultSetsError
from rowbind.mapping.binding import TypeMappingCache
from rowbind.mapping.materialize import materialize_many, materialize_one

T = TypeVar("T")


class Rows(list, Generic[T]):  # type: ignore[type-arg]
    """List destination that knows its element type.

    ``Rows(City)`` receives every row of one result set; its contents are
    replaced in a single slice assignment once the whole set was read.
    """

    def __init__(self, record_type: type[T], items: Sequence[T] = ()) -> None:
        super().__init__(items)
        self.record_type = record_type

    def __repr__(self) -> str:
        return f"Rows({self.record_type.__name__}, {list.__repr__(self)})"


def check_destinations(destinations: Sequence[Any], cache: TypeMappingCache) -> None:
    """Validate every destination before the procedure is called."""
    if len(destinations) == 0:
        raise ShapeError("destinations cannot be empty")
    for index, dest in enumerate(destinations):
        if isinstance(dest, Rows):
            if not cache.is_record_type(dest.record_type):
                raise ShapeError(
                    f"destinations[{index}] holds {dest.record_type!r}, which is not a record type"
                )
        elif isinstance(dest, type) or not cache.is_record_type(type(dest)):
            raise ShapeError(
                f"destinations[{index}] must be a Rows collection or a record instance"
            )


def dispatch(cursor: RowCursor, destinations: Sequence[Any], cache: TypeMappingCache) -> None:
    """Route consecutive result sets into *destinations*, in order.

    A ``Rows`` destination takes all rows of its result set, a record
    instance takes the first row. Destinations beyond the last result set
    are left untouched; more result sets than destinations is an error.
    """
    index = 0
    while True:
        if index >= len(destinations):
            raise TooManyResultSetsError(len(destinations))

        dest = destinations[index]
        if isinstance(dest, Rows):
            dest[:] = materialize_many(cursor, dest.record_type, cache)
        else:
            materialize_one(cursor, dest, cache)

        if not cursor.next_result_set():
            break
        index += 1
