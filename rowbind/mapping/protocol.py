"""Value scanner protocol.

Field types outside the built-in kinds (str, int, float, bool) can take
over conversion of the raw driver value by implementing ``from_db``.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class ValueScanner(Protocol[T_co]):
    """Custom field type that builds itself from a raw driver value.

    ``from_db`` receives the value exactly as the driver returned it,
    including ``None`` for SQL NULL, and must either return an instance
    or raise.
    """

    @classmethod
    def from_db(cls, value: Any) -> T_co:
        """Convert a raw driver value into an instance."""
        ...
