from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Iterable

import polars as pl

from schemaframe.column import Column
from schemaframe.errors import DimensionMismatchError
from schemaframe.schema import Schema
from schemaframe.sentinels import NA, is_theoretical
from schemaframe.table.options import TableOptions


if TYPE_CHECKING:
    from schemaframe.table import Table


log = logging.getLogger(__name__)


class TableBuilder:
    '''
    Lightweight column store for trusted bulk ingestion.

    - append/extend accumulate one python list per column, every cell is
      taken as a string (None becomes `NA`) and no kind checks are done.
    - build() materializes a `Table` once with all string columns, then
      optionally autoboxes numeric looking columns and renders row schemas,
      clearing internal buffers for reuse.

    '''

    def __init__(
        self,
        name: str | None = None,
        *,
        columns: Iterable[str] | None = None,
        autobox: bool = True,
        render: bool = True,
        options: TableOptions | None = None,
    ) -> None:
        self.name = name
        self.autobox = autobox
        self.render = render
        self.options = options

        self._names: list[str] | None = list(columns) if columns is not None else None

        # one python list per column, created on first row
        self._col_lists: list[list[Any]] = []

    def set_header(self, names: Iterable[str]) -> None:
        names = list(names)
        if self._col_lists and len(names) > len(self._col_lists):
            raise DimensionMismatchError(
                f'{len(names)} column names for rows of width {len(self._col_lists)}'
            )

        self._names = names

    @staticmethod
    def _cell(v: Any) -> Any:
        if v is None:
            return NA

        if isinstance(v, str) or is_theoretical(v):
            return v

        return str(v)

    def append(self, row: Iterable[Any]) -> None:
        row = tuple(row)
        cols = self._col_lists
        if not cols:
            cols.extend([] for _ in row)

        if len(row) != len(cols):
            raise DimensionMismatchError(
                f'Row of width {len(row)} appended to builder of width {len(cols)}'
            )

        cell = self._cell
        i = 0
        for v in row:
            cols[i].append(cell(v))
            i += 1

    def extend(self, rows: Iterable[Iterable[Any]]) -> None:
        for row in rows:
            self.append(row)

    def rows(self) -> int:
        return len(self._col_lists[0]) if self._col_lists else 0

    def build(self) -> Table:
        from schemaframe.table import Table, synth_column_name

        table = Table(self.name, options=self.options)
        if not self._col_lists or not self.rows():
            self._col_lists = []
            return table

        names = list(self._names or ())
        if len(names) > len(self._col_lists):
            raise DimensionMismatchError(
                f'{len(names)} column names for rows of width {len(self._col_lists)}'
            )

        names += [synth_column_name(i) for i in range(len(names), len(self._col_lists))]

        prototype = Schema(['str'] * len(names))
        table._load(
            [
                Column.trusted(values, name, 'str')
                for name, values in zip(names, self._col_lists)
            ],
            schema=prototype,
            row_schema=prototype,
        )
        self._col_lists = []

        if self.autobox:
            table.autobox()

        if self.render:
            table.render_state()

        log.debug('built table %r with shape %s', table.name, table.shape)
        return table


def read_csv(
    source: str | Path | IO[bytes] | bytes,
    *,
    header: bool = True,
    separator: str = ',',
    autobox: bool = True,
    render: bool = True,
    name: str | None = None,
) -> Table:
    '''
    Parse a delimited text source into a `Table`.

    Every field is read as a string (`infer_schema=False`), empty fields and
    'NA' tokens end up as `Missing`, then numeric columns are autoboxed.

    '''
    df = pl.read_csv(
        source,
        has_header=header,
        separator=separator,
        infer_schema=False,
    )
    if name is None and isinstance(source, (str, Path)):
        name = Path(source).stem

    builder = TableBuilder(
        name,
        columns=df.columns if header else None,
        autobox=autobox,
        render=render,
    )
    builder.extend(df.iter_rows())
    return builder.build()
