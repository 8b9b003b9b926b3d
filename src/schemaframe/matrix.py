from __future__ import annotations

import logging
from typing import Any, Iterable

from schemaframe.column import Column
from schemaframe.dtypes import is_numeric_kind, is_sentinel_kind, kind_of
from schemaframe.errors import MatrixViabilityError
from schemaframe.sentinels import is_theoretical
from schemaframe.table import Table, TableOptions


log = logging.getLogger(__name__)


class Matrix(Table):
    '''
    `Table` that only ever holds numbers (and sentinels).

    Every add or set path checks its cells before the table sees them, a
    non numeric cell raises `MatrixViabilityError`. Column and table names
    are not printed by default.

    '''

    @classmethod
    def default_options(cls) -> TableOptions:
        return TableOptions(print_col_names=0, print_table_name=0)

    def _validate_cells(self, values: Iterable[Any]) -> None:
        for v in values:
            kind = kind_of(v)
            if not (is_numeric_kind(kind) or is_sentinel_kind(kind)):
                raise MatrixViabilityError(
                    f'Matrix must contain only numeric values, got {v!r} of kind {kind}'
                )

    def is_square(self) -> bool:
        return self.nrow == self.ncol

    def is_diagonal(self) -> bool:
        '''
        Square, with every diagonal cell non zero and every other cell zero.

        '''
        if not self.is_square() or self.is_empty():
            return False

        for i, col in enumerate(self._columns):
            for j, v in enumerate(col):
                if is_theoretical(v):
                    return False

                if (v != 0) != (i == j):
                    return False

        return True

    def standardize(self) -> Matrix:
        return Matrix(
            self.name,
            columns=[c.standardize() for c in self._columns],
            options=self.options,
        )

    def transpose(self) -> None:
        '''
        In place transpose: every row becomes a column named after it, old
        column names become row names.

        '''
        if self.is_empty():
            return

        row_names = self.column_names()
        columns = [r.to_column() for r in self._rows]
        self._load(columns, row_names=row_names)
        self.render_state()

    def impute_simple(self) -> Matrix:
        '''
        Replace every sentinel with the mean of its own column (sentinels
        excluded), int columns holding sentinels become float. In place,
        returns self.

        '''
        for i, col in enumerate(self._columns):
            if not col.contains_na():
                continue

            mean = col.mean()
            filled = Column.trusted(
                (mean if is_theoretical(v) else float(v) for v in col),
                col.name,
                'float',
            )
            log.debug('imputed %d cells of column %r with %f', col.count_missing(), col.name, mean)
            self._replace_column(i, filled)

        return self

    @staticmethod
    def multiply(a: Matrix, b: Matrix) -> Matrix:
        '''
        Standard matrix product `a x b`: cell (i, k) is the inner product of
        row i of `a` with column k of `b`. The result has `a.nrow` rows and
        `b.ncol` columns named `Col1`, `Col2`...

        '''
        if a.is_empty() or b.is_empty():
            raise MatrixViabilityError('Cannot multiply empty matrices')

        if a.ncol != b.nrow:
            raise MatrixViabilityError(
                f'Cannot multiply {a.nrow}x{a.ncol} by {b.nrow}x{b.ncol}, '
                'column count of a must equal row count of b'
            )

        if a.contains_na() or b.contains_na():
            raise MatrixViabilityError('Cannot multiply matrices holding sentinel values')

        a_rows = [r.to_column() for r in a.rows]
        return Matrix(
            columns=[
                Column(
                    (row.inner_product(col) for row in a_rows),
                    f'Col{k + 1}',
                )
                for k, col in enumerate(b.columns)
            ]
        )

    def __matmul__(self, other: Matrix) -> Matrix:
        return Matrix.multiply(self, other)


def multiply(a: Matrix, b: Matrix) -> Matrix:
    return Matrix.multiply(a, b)


def identity_matrix(n: int) -> Matrix:
    '''
    n x n int matrix with ones on the diagonal.

    '''
    if n < 2:
        raise MatrixViabilityError(f'Identity matrix needs n >= 2, got {n}')

    return Matrix(
        columns=[
            Column((1 if i == j else 0 for i in range(n)), f'V{j + 1}')
            for j in range(n)
        ]
    )
