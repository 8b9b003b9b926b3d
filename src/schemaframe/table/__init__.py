from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Iterator, Sequence

import msgspec
import polars as pl

from schemaframe.column import Column
from schemaframe.dtypes import (
    Cell,
    ConcreteKind,
    factor_levels,
    is_sentinel_kind,
    join_kinds,
    kind_for_polars,
    polars_type_for,
    render_cell,
)
from schemaframe.errors import (
    ConcurrentShapeError,
    DimensionMismatchError,
    SchemaFrameError,
    SchemaMismatchError,
)
from schemaframe.row import Row
from schemaframe.schema import Schema, SchemaMeta
from schemaframe.sentinels import (
    NA,
    SortPolicy,
    default_policy,
    infinite_sign,
    is_theoretical,
    normalize_cell,
)
from schemaframe.structs import Struct
from schemaframe.table.builder import TableBuilder as TableBuilder, read_csv as read_csv
from schemaframe.table.condition import SubsetCondition as SubsetCondition
from schemaframe.table.options import TableOptions as TableOptions


log = logging.getLogger(__name__)


default_table_name = 'New Table'


class ColumnMeta(Struct):
    name: str
    kind: ConcreteKind | None
    values: list[Cell]


class TableMeta(Struct):
    name: str
    options: TableOptions
    schema: SchemaMeta
    columns: list[ColumnMeta]
    row_names: list[str]


ColumnKey = int | str


def synth_column_name(i: int) -> str:
    return f'V{i + 1}'


def synth_row_name(i: int) -> str:
    return str(i + 1)


class Table:
    '''
    Two dimensional container that keeps a list of `Column`s and a parallel
    list of `Row`s in lockstep, plus the table level `Schema`.

    Every mutation goes through the table so both views always agree in
    shape and content: column `i` has one cell per row and row `j` one cell
    per column. Rows and columns handed in are copied, the ones handed out
    by `column()` / `row()` are live and must not be mutated directly.

    The first row added to an empty table synthesizes its columns (named
    `V1`, `V2`...), the first column synthesizes its rows (named `1`,
    `2`...).

    '''

    def __init__(
        self,
        name: str | None = None,
        *,
        rows: Iterable[Row | Iterable[Any]] | None = None,
        columns: Iterable[Column | Iterable[Any]] | None = None,
        nrow: int | None = None,
        ncol: int | None = None,
        options: TableOptions | None = None,
    ) -> None:
        if name is not None and not isinstance(name, str):
            # rows and columns are keyword only
            raise TypeError(
                f'Table name must be a str, got {type(name).__name__}, '
                'pass contents as rows= or columns='
            )

        self.name: str = name or default_table_name
        self.options: TableOptions = (
            options.copy() if options is not None else self.default_options()
        )

        self._columns: list[Column] = []
        self._rows: list[Row] = []
        self._schema = Schema()

        self.exception_log: list[Exception] = []

        # set once render_state pushed the schema into every row
        self._rendered: bool = False

        if rows is not None and columns is not None:
            raise ValueError('Pass either rows or columns, not both')

        if nrow is not None or ncol is not None:
            self._presize(nrow or 0, ncol or 0)

        if rows is not None:
            self.add_rows(rows)

        if columns is not None:
            self.add_columns(columns)

    @classmethod
    def default_options(cls) -> TableOptions:
        return TableOptions()

    def _presize(self, nrow: int, ncol: int) -> None:
        if nrow <= 0 or ncol <= 0:
            raise ValueError(f'Table dimensions must be positive, got {nrow}x{ncol}')

        self._load(
            [Column.trusted([NA] * nrow, synth_column_name(i)) for i in range(ncol)]
        )

    # hooks for numeric only subclasses

    def _validate_cells(self, values: Iterable[Any]) -> None:
        pass

    # container protocol

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented

        return (
            self.column_names() == other.column_names()
            and self._columns == other._columns
        )

    __hash__ = None

    def __repr__(self) -> str:
        return self.pretty_str()

    @property
    def nrow(self) -> int:
        return len(self._rows)

    @property
    def ncol(self) -> int:
        return len(self._columns)

    @property
    def shape(self) -> tuple[int, int]:
        return self.nrow, self.ncol

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def columns(self) -> tuple[Column, ...]:
        return tuple(self._columns)

    @property
    def rows(self) -> tuple[Row, ...]:
        return tuple(self._rows)

    def is_empty(self) -> bool:
        return not self._columns

    def clear(self) -> None:
        self._columns = []
        self._rows = []
        self._schema = Schema()
        self._touch()

    def _touch(self) -> None:
        self._rendered = False

    # bootstrap & bulk loading

    def _load(
        self,
        columns: list[Column],
        row_names: Sequence[str] | None = None,
        schema: Schema | None = None,
        row_schema: Schema | None = None,
    ) -> None:
        '''
        Replace contents with `columns` and rebuild rows from them. Cells are
        only checked by `_validate_cells`, `row_schema` is attached to every
        row as is.

        '''
        for c in columns:
            self._validate_cells(c)

        nrow = len(columns[0]) if columns else 0
        if any(len(c) != nrow for c in columns):
            raise DimensionMismatchError('Columns of unequal length')

        names = list(row_names or ())
        names += [synth_row_name(j) for j in range(len(names), nrow)]

        self._columns = columns
        self._rows = [
            Row.trusted([c[j] for c in columns], names[j], row_schema)
            for j in range(nrow)
        ]
        self._schema = (
            schema.copy() if schema is not None
            else Schema(c.schema_kind() for c in columns)
        )
        self._touch()

    def _bootstrap_from_row(self, row: Row) -> None:
        self._columns = [
            Column.trusted([v], synth_column_name(i), None if is_sentinel_kind(k) else k)
            for i, (v, k) in enumerate(zip(row, row.schema))
        ]
        self._rows = [row]
        self._schema = row.schema.copy()
        self._touch()

    def _bootstrap_from_column(self, column: Column) -> None:
        self._load([column])

    @staticmethod
    def _as_row(row: Row | Iterable[Any], name: str) -> Row:
        # plain sequences get `name`, rows keep their own
        return row.copy() if isinstance(row, Row) else Row(row, name)

    @staticmethod
    def _as_column(column: Column | Iterable[Any]) -> Column:
        return column.copy() if isinstance(column, Column) else Column(column)

    # rows

    def _check_row_kinds(self, row: Row) -> None:
        if not (
            self._schema.is_compatible(row.schema)
            and all(c.accepts(v) for c, v in zip(self._columns, row))
        ):
            raise SchemaMismatchError(
                f'Row schema {row.schema.pretty_str()} does not match table '
                f'schema {self._schema.pretty_str()}'
            )

    def add_row(self, row: Row | Iterable[Any], index: int | None = None) -> None:
        '''
        Append `row` (or insert it at `index`), fanning its cells out into
        every column.

        The row schema is reconciled against the table schema: positions
        the table only saw sentinels for are upgraded, concrete mismatches
        raise `SchemaMismatchError` and leave the table untouched.

        '''
        row = self._as_row(row, synth_row_name(self.nrow))
        self._validate_cells(row)

        if self.is_empty():
            if index not in (None, 0):
                raise ConcurrentShapeError(
                    f'Cannot insert row at {index} into table {self.name!r} '
                    'without an established schema'
                )

            if not len(row):
                raise DimensionMismatchError('Cannot add an empty row to an empty table')

            self._bootstrap_from_row(row)
            return

        n = self.nrow
        if index is None:
            index = n

        if index < 0:
            raise IndexError(f'Row index {index} out of range')

        if index > n:
            raise ConcurrentShapeError(
                f'Cannot insert row at {index}, table {self.name!r} has {n} rows'
            )

        if len(row) != self.ncol:
            raise DimensionMismatchError(
                f'Row of length {len(row)} added to table {self.name!r} '
                f'with {self.ncol} columns'
            )

        self._check_row_kinds(row)

        for col, v in zip(self._columns, row):
            col.insert(index, v)

        self._rows.insert(index, row)
        self._schema.reconcile(row.schema)
        self._touch()

    def add_rows(self, rows: Iterable[Row | Iterable[Any]]) -> None:
        for row in rows:
            self.add_row(row)

    def remove_row(self, index: int) -> Row:
        if self.nrow == 1:
            row = self._rows[index]
            log.debug('last row removed, clearing table %r', self.name)
            self.clear()
            return row

        row = self._rows.pop(index)
        for col in self._columns:
            col.remove(index)

        self._touch()
        return row

    def remove_row_range(self, lo: int, hi: int, inclusive: bool = True) -> None:
        stop = self._check_range(lo, hi, self.nrow, inclusive)
        if lo == 0 and stop == self.nrow:
            self.clear()
            return

        del self._rows[lo:stop]
        for col in self._columns:
            col.remove_range(lo, stop)

        self._touch()

    def set_row(self, index: int, row: Row | Iterable[Any]) -> Row:
        '''
        Replace the row at `index`, returning the old one.

        '''
        row = self._as_row(row, self._rows[index].name)
        self._validate_cells(row)
        if len(row) != self.ncol:
            raise DimensionMismatchError(
                f'Row of length {len(row)} set on table with {self.ncol} columns'
            )

        self._check_row_kinds(row)

        old = self._rows[index]
        for col, v in zip(self._columns, row):
            col.set(index, v)

        self._rows[index] = row
        self._schema.reconcile(row.schema)
        self._touch()
        return old

    # columns

    def add_column(self, column: Column | Iterable[Any], index: int | None = None) -> None:
        '''
        Append `column` (or insert it at `index`), fanning its cells out into
        every row. Its length must match the row count unless the table is
        empty.

        '''
        column = self._as_column(column)
        self._validate_cells(column)

        if self.is_empty():
            if not len(column):
                raise DimensionMismatchError('Cannot add an empty column to an empty table')

            self._bootstrap_from_column(column)
            return

        if index is None:
            index = self.ncol

        if index < 0 or index > self.ncol:
            raise IndexError(f'Column index {index} out of range')

        if len(column) != self.nrow:
            raise DimensionMismatchError(
                f'Column {column.name!r} of length {len(column)} added to '
                f'table {self.name!r} with {self.nrow} rows'
            )

        for row, v in zip(self._rows, column):
            row.insert(index, v)

        self._columns.insert(index, column)
        self._schema.insert(index, column.schema_kind())
        self._touch()

    def add_columns(self, columns: Iterable[Column | Iterable[Any]]) -> None:
        for col in columns:
            self.add_column(col)

    def remove_column(self, index: ColumnKey) -> Column:
        index = self._column_index(index)
        if self.ncol == 1:
            col = self._columns[index]
            log.debug('last column removed, clearing table %r', self.name)
            self.clear()
            return col

        col = self._columns.pop(index)
        for row in self._rows:
            row.remove(index)

        self._schema.pop(index)
        self._touch()
        return col

    def remove_column_range(self, lo: int, hi: int, inclusive: bool = True) -> None:
        stop = self._check_range(lo, hi, self.ncol, inclusive)
        if lo == 0 and stop == self.ncol:
            self.clear()
            return

        for i in reversed(range(lo, stop)):
            self.remove_column(i)

    def set_column(self, index: ColumnKey, column: Column | Iterable[Any]) -> Column:
        '''
        Replace a whole column (its kind may change), returning the old one.

        '''
        index = self._column_index(index)
        column = self._as_column(column)
        if len(column) != self.nrow:
            raise DimensionMismatchError(
                f'Column of length {len(column)} set on table with {self.nrow} rows'
            )

        return self._replace_column(index, column)

    def _replace_column(self, index: int, column: Column) -> Column:
        self._validate_cells(column)
        old = self._columns[index]
        self._columns[index] = column
        for row, v in zip(self._rows, column):
            row._put(index, v)

        self._schema.set(index, column.schema_kind())
        self._touch()
        return old

    @staticmethod
    def _check_range(lo: int, hi: int, size: int, inclusive: bool) -> int:
        stop = hi + 1 if inclusive else hi
        if lo < 0 or stop > size or lo >= stop:
            raise IndexError(f'Invalid range [{lo}, {hi}] for size {size}')

        return stop

    # cells

    def get(self, row: int, column: ColumnKey) -> Any:
        return self._rows[row][self._column_index(column)]

    def set(self, row: int, column: ColumnKey, value: Any) -> Any:
        '''
        Write a single cell through both views, returning the old value.

        '''
        c = self._column_index(column)
        value = normalize_cell(value)
        self._validate_cells((value,))

        col = self._columns[c]
        if not col.accepts(value):
            raise SchemaMismatchError(
                f'Value {value!r} does not fit column {col.name!r} of kind {col.content_kind()}'
            )

        old = self._rows[row].set(c, value)
        col.set(row, value)
        self._schema.set(c, col.schema_kind())
        self._touch()
        return old

    # lookup & naming

    def _column_index(self, key: ColumnKey) -> int:
        if isinstance(key, str):
            return self.index_of_column(key)

        if not -self.ncol <= key < self.ncol:
            raise IndexError(f'Column index {key} out of range')

        return key % self.ncol

    def column(self, key: ColumnKey) -> Column:
        return self._columns[self._column_index(key)]

    def row(self, key: int | str) -> Row:
        if isinstance(key, str):
            key = self.index_of_row(key)

        return self._rows[key]

    def index_of_column(self, name: str) -> int:
        for i, col in enumerate(self._columns):
            if col.name == name:
                return i

        raise KeyError(f'No column named {name!r} in table {self.name!r}')

    def index_of_row(self, name: str) -> int:
        for i, row in enumerate(self._rows):
            if row.name == name:
                return i

        raise KeyError(f'No row named {name!r} in table {self.name!r}')

    def column_names(self) -> list[str]:
        return [c.name for c in self._columns]

    def row_names(self) -> list[str]:
        return [r.name for r in self._rows]

    def set_column_names(self, names: Sequence[str]) -> None:
        '''
        Rename columns in order, a shorter list leaves the rest untouched.

        '''
        if len(names) > self.ncol:
            raise ValueError(f'{len(names)} names given for {self.ncol} columns')

        for col, name in zip(self._columns, names):
            col.name = name

    def set_row_names(self, names: Sequence[str]) -> None:
        if len(names) > self.nrow:
            raise ValueError(f'{len(names)} names given for {self.nrow} rows')

        for row, name in zip(self._rows, names):
            row.name = name

    # options & exceptions

    def get_option(self, name: str) -> int:
        return self.options.get(name)

    def set_option(self, name: str, value: int) -> None:
        self.options.set(name, value)

    @staticmethod
    def option_keys() -> list[str]:
        return TableOptions.keys()

    def log_exception(self, e: Exception) -> None:
        self.exception_log.append(e)

    def has_exceptions(self) -> bool:
        return bool(self.exception_log)

    # queries

    def contains_na(self) -> bool:
        return any(c.contains_na() for c in self._columns)

    def count_missing(self) -> int:
        return sum(c.count_missing() for c in self._columns)

    # derived tables

    def _derived(
        self,
        name: str,
        rows: Sequence[Row],
        col_idx: Sequence[int] | None = None,
    ) -> Table:
        out = type(self)(name, options=self.options)
        if not rows:
            return out

        if col_idx is None:
            col_idx = range(self.ncol)

        out._load(
            [
                Column.trusted(
                    (r[i] for r in rows),
                    self._columns[i].name,
                    self._columns[i].content_kind(),
                )
                for i in col_idx
            ],
            row_names=[r.name for r in rows],
            schema=Schema(self._schema[i] for i in col_idx),
        )
        return out

    def copy(self, name: str | None = None) -> Table:
        out = self._derived(name or self.name, self._rows)
        out.exception_log = list(self.exception_log)
        return out

    def subset_by_condition(
        self,
        column: ColumnKey,
        condition: SubsetCondition,
    ) -> Table:
        '''
        New table holding only the rows whose cell in `column` satisfies
        `condition`, names and options are preserved.

        '''
        keep = self.column(column).logical_vector(condition)
        return self._derived(
            f'{self.name}_subset',
            [r for r, k in zip(self._rows, keep) if k]
        )

    def complete_cases(self) -> Table:
        '''
        Copy without any row that holds a sentinel.

        '''
        return self._derived(
            self.name,
            [r for r in self._rows if not r.contains_na()]
        )

    def dice(self, row_start: int, row_end: int, col_start: int, col_end: int) -> Table:
        '''
        Bounding box sub table, bounds are inclusive. Asking for the full
        range returns this same table.

        '''
        row_stop = self._check_range(row_start, row_end, self.nrow, True)
        col_stop = self._check_range(col_start, col_end, self.ncol, True)
        if (row_start, row_stop, col_start, col_stop) == (0, self.nrow, 0, self.ncol):
            return self

        return self._derived(
            self.name,
            self._rows[row_start:row_stop],
            range(col_start, col_stop)
        )

    # ordering

    def _sort(self, column: ColumnKey, descending: bool, policy: SortPolicy | None) -> None:
        col = self.column(column)
        order = col.sorted_indices(
            descending=descending, policy=policy or default_policy
        )
        if self.ncol == 1:
            col.permute(order)
            self._rows = [self._rows[j] for j in order]
            self._touch()
            return

        log.debug('reordering all rows of %r by column %r', self.name, col.name)
        names = self.column_names()
        rows = [self._rows[j] for j in order]
        self._load(
            [
                Column.trusted((r[i] for r in rows), names[i], c.content_kind())
                for i, c in enumerate(self._columns)
            ],
            row_names=[r.name for r in rows],
            schema=self._schema,
        )

    def sort_ascending(self, column: ColumnKey, policy: SortPolicy | None = None) -> None:
        self._sort(column, False, policy)

    def sort_descending(self, column: ColumnKey, policy: SortPolicy | None = None) -> None:
        self._sort(column, True, policy)

    # re-typing

    def transform(self) -> None:
        '''
        Re-type every column to the join of all column conversion kinds:
        'float' if any column needs it, else 'int', or 'str' as soon as one
        column is not numeric. Columns holding only sentinels take the
        joined kind too. Running it twice changes nothing.

        '''
        if self.is_empty():
            return

        target = join_kinds(
            c.content_kind() if c.is_numeric()
            else c.numeric_conversion_kind() or c.content_kind()
            for c in self._columns
        )
        if target is None:
            return

        match target:
            case 'str':
                columns = [c.as_character() for c in self._columns]

            case 'float':
                columns = [c.as_double() for c in self._columns]

            case _:
                columns = [c.as_integer() for c in self._columns]

        log.debug('table %r re-typed to %s', self.name, target)
        self._load(columns, row_names=self.row_names())

    def convert_column_to_numeric(self, column: ColumnKey) -> None:
        i = self._column_index(column)
        self._replace_column(i, self._columns[i].as_numeric())

    def convert_column_to_string(self, column: ColumnKey) -> None:
        i = self._column_index(column)
        self._replace_column(i, self._columns[i].as_character())

    def convert_to_numeric(self) -> bool:
        '''
        Convert every column to numeric or leave the table untouched,
        returning whether it worked.

        '''
        if self.is_empty():
            return False

        try:
            columns = [c.as_numeric() for c in self._columns]

        except SchemaFrameError:
            return False

        for i, col in enumerate(columns):
            self._replace_column(i, col)

        return True

    def convert_to_character(self) -> bool:
        if self.is_empty():
            return False

        for i, col in enumerate(self._columns):
            self._replace_column(i, col.as_character())

        return True

    def autobox(self) -> None:
        '''
        Convert every numeric looking string column in place. Failures are
        appended to `exception_log` instead of being raised.

        '''
        for i, col in enumerate(self._columns):
            if col.is_numeric() or not col.is_convertible_to_numeric():
                continue

            try:
                self.convert_column_to_numeric(i)

            except SchemaFrameError as e:
                self.log_exception(e)
                log.warning('could not autobox column %r: %s', col.name, e)

    def render_state(self) -> None:
        '''
        Push the table schema down into every row so rows that still show a
        sentinel kind where the table knows the concrete one agree with it.

        '''
        if self._rendered:
            return

        for row in self._rows:
            row.set_schema(self._schema)

        self._rendered = True

    # emission

    def text_rows(self) -> Iterator[list[str]]:
        for row in self._rows:
            yield [render_cell(v) for v in row]

    def pretty_str(self, head: int | None = None) -> str:
        '''
        Aligned text rendering of the first `head` rows (the `default.head`
        option when not given).

        '''
        opts = self.options
        head = opts.default_head if head is None else head
        head = min(head, self.nrow, max(opts.max_print // max(self.ncol, 1), 1))

        lines = []
        if opts.print_table_name:
            lines.append(self.name)

        if self.is_empty():
            lines.append('<empty>')
            return '\n'.join(lines)

        rows = [self._rows[j] for j in range(head)]
        label_width = max((len(r.name) for r in rows), default=0)
        widths = [c.width() for c in self._columns]
        gap = ' ' * opts.col_whitespace

        if opts.print_col_names:
            lines.append(
                ' ' * label_width + gap
                + gap.join(n.rjust(w) for n, w in zip(self.column_names(), widths))
            )

        for r in rows:
            lines.append(
                r.name.ljust(label_width) + gap
                + gap.join(render_cell(v).rjust(w) for v, w in zip(r, widths))
            )

        if head < self.nrow:
            lines.append(f'... {self.nrow - head} more rows')

        return '\n'.join(lines)

    # persisted state

    def encode(self) -> TableMeta:
        return TableMeta(
            name=self.name,
            options=self.options.copy(),
            schema=self._schema.encode(),
            columns=[
                ColumnMeta(name=c.name, kind=c.content_kind(), values=c.tolist())
                for c in self._columns
            ],
            row_names=self.row_names(),
        )

    @classmethod
    def from_like(cls, t: TableLike) -> Table:
        if isinstance(t, Table):
            return t

        if isinstance(t, dict):
            t = msgspec.convert(t, type=TableMeta)

        return cls.from_meta(t)

    @classmethod
    def from_meta(cls, meta: TableMeta) -> Table:
        table = cls(meta.name, options=meta.options)
        if meta.columns:
            table._load(
                [Column.trusted(c.values, c.name, c.kind) for c in meta.columns],
                row_names=meta.row_names,
                schema=Schema.from_like(meta.schema),
            )

        return table

    def to_bytes(self) -> bytes:
        return self.encode().encode()

    @classmethod
    def from_bytes(cls, raw: bytes) -> Table:
        return cls.from_meta(TableMeta.from_bytes(raw))

    def to_json(self, **kwargs) -> str:
        return self.encode().to_json(**kwargs)

    @classmethod
    def from_json(cls, s: str | bytes) -> Table:
        return cls.from_meta(TableMeta.from_json(s))

    # polars interop

    def to_polars(self) -> pl.DataFrame:
        '''
        Missing cells become nulls, infinities become float infinities.

        '''
        series = []
        for col in self._columns:
            has_inf = any(infinite_sign(v) for v in col)
            dtype = polars_type_for(col.content_kind(), has_infinite=has_inf)
            values = []
            for v in col:
                sign = infinite_sign(v)
                if sign and dtype == pl.Float64:
                    values.append(sign * math.inf)

                elif sign and dtype == pl.String:
                    values.append(render_cell(v))

                elif is_theoretical(v):
                    values.append(None)

                elif dtype == pl.Float64:
                    values.append(float(v))

                else:
                    values.append(render_cell(v) if dtype == pl.Categorical else v)

            series.append(pl.Series(col.name, values, dtype=dtype))

        return pl.DataFrame(series)

    @classmethod
    def from_polars(cls, df: pl.DataFrame, name: str | None = None) -> Table:
        '''
        Nulls and nans become `Missing`, float infinities `Infinite`.

        '''
        columns = []
        for s in df.iter_columns():
            values = [normalize_cell(v) for v in s.to_list()]
            if s.dtype == pl.Null:
                columns.append(Column.trusted(values, s.name))
                continue

            kind = kind_for_polars(s.dtype)
            match kind:
                case 'factor':
                    levels = factor_levels(v for v in values if not is_theoretical(v))
                    values = [v if is_theoretical(v) else levels[v] for v in values]

                case 'str':
                    values = [v if is_theoretical(v) else str(v) for v in values]

            columns.append(Column.trusted(values, s.name, kind))

        table = cls(name)
        if columns:
            table._load(columns)

        return table


TableLike = dict | TableMeta | Table
