"""Locate semantic columns in a table whose field keys vary between versions.

Matching is substring based and first-key-wins: the first field key
(lowercased, trimmed) that contains any of the supplied tokens is the
match. There is no scoring or backtracking, so specific fields and tokens
must be listed before generic ones.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from loadset_transfer.errors import ErrorCategory, TransferError

logger = logging.getLogger(__name__)


class FieldSpec(BaseModel):
    """A logical field and the tokens that identify its column."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Logical field name, e.g. 'SetName'")
    tokens: tuple[str, ...] = Field(min_length=1, description="Lowercase substrings, most specific first")


def find_field_index(
    field_keys: Sequence[str | None],
    tokens: Sequence[str],
    *,
    skip: Iterable[int] = (),
) -> int | None:
    """Return the index of the first key containing any token, or ``None``.

    Parameters
    ----------
    field_keys : Sequence[str | None]
        Column keys in table order.
    tokens : Sequence[str]
        Substrings to look for, tested in the order given.
    skip : Iterable[int]
        Column indices that must not be matched.
    """
    skipped = set(skip)
    lowered_tokens = [t.lower() for t in tokens if t]
    for index, key in enumerate(field_keys):
        if index in skipped:
            continue
        lowered = (key or "").strip().lower()
        for token in lowered_tokens:
            if token in lowered:
                return index
    return None


class FieldResolution:
    """Logical field name -> column index for one fetched schema."""

    def __init__(self, field_keys: Sequence[str], indices: Mapping[str, int | None]):
        self.field_keys = tuple(field_keys)
        self._indices = dict(indices)

    def __contains__(self, name: str) -> bool:
        return self._indices.get(name) is not None

    def __repr__(self) -> str:
        return f"FieldResolution({self._indices!r})"

    def index(self, name: str) -> int | None:
        return self._indices.get(name)

    def as_dict(self) -> dict[str, int | None]:
        return dict(self._indices)

    def unresolved(self) -> list[str]:
        return [name for name, index in self._indices.items() if index is None]

    def require(self, *names: str, table_key: str | None = None) -> None:
        """Raise a ``FIELD_UNRESOLVED`` error if any of ``names`` has no column."""
        missing = [name for name in names if self._indices.get(name) is None]
        if missing:
            where = f" in '{table_key}'" if table_key else ""
            raise TransferError(
                ErrorCategory.FIELD_UNRESOLVED,
                f"Could not determine columns for {', '.join(missing)}{where}. "
                f"Available fields: {', '.join(self.field_keys) or '(none)'}.",
                table_key=table_key,
            )


def resolve_fields(field_keys: Sequence[str], specs: Sequence[FieldSpec]) -> FieldResolution:
    """Resolve every spec against ``field_keys``.

    Specs are resolved in the order given; a column taken by an earlier spec
    is not offered to later ones. Matching each spec on its own with
    ``find_field_index`` can hand one column to two specs: against
    ``["ObjectSet", "Set"]`` both the area name and the load set tokens hit
    column 0.
    """
    claimed: list[int] = []
    indices: dict[str, int | None] = {}
    for spec in specs:
        index = find_field_index(field_keys, spec.tokens, skip=claimed)
        indices[spec.name] = index
        if index is not None:
            claimed.append(index)
    resolution = FieldResolution(field_keys, indices)
    logger.debug("Resolved fields %s against %s", resolution.as_dict(), list(field_keys))
    return resolution
