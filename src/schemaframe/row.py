from __future__ import annotations

from typing import Any, Iterable, Iterator

from schemaframe.column import Column
from schemaframe.dtypes import coerce, conversion_kind, is_sentinel_kind, kind_of, render_cell
from schemaframe.errors import DimensionMismatchError, SchemaMismatchError
from schemaframe.schema import Schema
from schemaframe.sentinels import is_theoretical, normalize_cell


default_row_name = 'Row'


class Row:
    '''
    Heterogeneous, positionally typed sequence of cells.

    The row schema is derived from the cells the first time it is asked for
    and kept in sync by `add` / `insert` / `remove` / `set`. A table may push
    its own authoritative schema down with `set_schema` (see
    `Table.render_state`).

    '''

    def __init__(
        self,
        values: Iterable[Any] = (),
        name: str | None = None,
    ) -> None:
        self._name: str = default_row_name
        self.name = name

        self._values: list[Any] = [normalize_cell(v) for v in values]
        self._schema: Schema | None = None

    @classmethod
    def trusted(
        cls,
        values: Iterable[Any],
        name: str | None = None,
        schema: Schema | None = None,
    ) -> Row:
        row = cls(name=name)
        row._values = list(values)
        row._schema = schema.copy() if schema is not None else None
        return row

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, name: str | None) -> None:
        self._name = name if name else default_row_name

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __getitem__(self, index: int | slice) -> Any:
        return self._values[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Row):
            return NotImplemented

        return self._values == other._values

    __hash__ = None

    def __repr__(self) -> str:
        return f'{self._name} : {[render_cell(v) for v in self._values]}'

    @property
    def values(self) -> tuple[Any, ...]:
        return tuple(self._values)

    def tolist(self) -> list[Any]:
        return list(self._values)

    def copy(self, name: str | None = None) -> Row:
        return Row.trusted(self._values, name or self._name, self._schema)

    def unique(self) -> list[Any]:
        return list(dict.fromkeys(self._values))

    # schema

    @property
    def schema(self) -> Schema:
        if self._schema is None:
            self._schema = Schema.of(self._values)

        return self._schema

    def set_schema(self, schema: Schema) -> None:
        '''
        Replace the cached schema with a copy of `schema`, an empty schema is
        ignored.

        '''
        if not len(schema):
            return

        if len(schema) != len(self._values):
            raise DimensionMismatchError(
                f'Schema of length {len(schema)} for row {self._name!r} of length {len(self)}'
            )

        self._schema = schema.copy()

    # mutation

    def add(self, value: Any) -> None:
        value = normalize_cell(value)
        self._values.append(value)
        if self._schema is not None:
            self._schema.append(kind_of(value))

    def extend(self, values: Iterable[Any]) -> None:
        for v in values:
            self.add(v)

    def insert(self, index: int, value: Any) -> None:
        value = normalize_cell(value)
        self._values.insert(index, value)
        if self._schema is not None:
            self._schema.insert(index, kind_of(value))

    def remove(self, index: int) -> Any:
        value = self._values.pop(index)
        if self._schema is not None:
            self._schema.pop(index)

        return value

    def set(self, index: int, value: Any) -> Any:
        '''
        Replace the cell at `index` following the safe merge rule: a sentinel
        fits anywhere, a concrete value must match the position's kind unless
        the position only saw sentinels so far, in which case it is upgraded.

        '''
        value = normalize_cell(value)
        kind = kind_of(value)
        current = self.schema[index]
        if not (
            is_sentinel_kind(kind)
            or is_sentinel_kind(current)
            or kind == current
        ):
            raise SchemaMismatchError(
                f'Cannot set {value!r} of kind {kind} at position {index} '
                f'of row {self._name!r}, expected {current}'
            )

        old = self._values[index]
        self._values[index] = value
        if not is_sentinel_kind(kind):
            self.schema.set(index, kind)

        return old

    def _put(self, index: int, value: Any) -> None:
        # unchecked write, used when a table swaps a whole column
        self._values[index] = value
        self._schema = None

    # queries

    def contains_na(self) -> bool:
        return any(is_theoretical(v) for v in self._values)

    def count_missing(self) -> int:
        return sum(1 for v in self._values if is_theoretical(v))

    def to_column(self) -> Column:
        '''
        Turn this row into a column. A singular row converts as is, a mixed
        row is first cast to its common numeric kind, anything else is a
        schema mismatch.

        '''
        schema = self.schema
        if schema.is_singular():
            return Column.trusted(self._values, self._name, schema.content_kind())

        kind = conversion_kind(self._values, sample=False)
        if kind is None:
            raise SchemaMismatchError(
                f'Row {self._name!r} with schema {schema.pretty_str()} '
                'is not singular and cannot become a column'
            )

        return Column.trusted(
            (coerce(v, kind) for v in self._values), self._name, kind
        )
