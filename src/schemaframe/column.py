from __future__ import annotations

import logging
import math
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any, Iterable, Iterator

from schemaframe.dtypes import (
    ConcreteKind,
    Kind,
    Shape,
    coerce,
    conversion_kind,
    factor_levels,
    is_numeric_kind,
    is_sentinel_kind,
    kind_of,
    render_cell,
)
from schemaframe.errors import (
    ConversionError,
    DimensionMismatchError,
    MissingValueError,
    SchemaMismatchError,
)
from schemaframe.sentinels import (
    NA,
    Infinite,
    SortPolicy,
    compare_cells,
    default_policy,
    infinite_sign,
    is_theoretical,
    normalize_cell,
)
from schemaframe.structs import Struct

if TYPE_CHECKING:
    from schemaframe.row import Row
    from schemaframe.table.condition import SubsetCondition


log = logging.getLogger(__name__)


default_column_name = 'Column'


class ColumnState(Struct):
    '''
    Derived facts about a column's contents, computed in one pass on demand
    and dropped by any mutation.

    '''
    numeric: bool
    conversion_kind: Shape | None
    width: int
    na_count: int


class Column:
    '''
    Homogeneous, order preserving sequence of cells plus a name.

    The first non sentinel value ever added fixes the column kind, after that
    every value must be of that kind or a sentinel. Statistics and vector
    algebra work on numeric columns, or on string columns whose tokens all
    look numeric (see `schemaframe.dtypes.conversion_kind`), always skipping
    sentinel cells.

    '''

    def __init__(
        self,
        values: Iterable[Any] = (),
        name: str | None = None,
    ) -> None:
        self._name: str = default_column_name
        self.name = name

        self._values: list[Any] = []
        self._kind: ConcreteKind | None = None
        self._state: ColumnState | None = None

        self.extend(values)

    @classmethod
    def trusted(
        cls,
        values: Iterable[Any],
        name: str | None = None,
        kind: ConcreteKind | None = None,
    ) -> Column:
        '''
        Build a column without kind checks, for callers that already know
        every value is of `kind` or a sentinel (bulk ingestion, conversions,
        row to column).

        '''
        col = cls(name=name)
        col._values = list(values)
        col._kind = kind
        return col

    # naming

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, name: str | None) -> None:
        self._name = name if name else default_column_name
        self._state = None

    # container protocol

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __getitem__(self, index: int | slice) -> Any:
        return self._values[index]

    def __contains__(self, value: Any) -> bool:
        return value in self._values

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Column):
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

    def unique(self) -> list[Any]:
        return list(dict.fromkeys(self._values))

    def copy(self, name: str | None = None) -> Column:
        return Column.trusted(self._values, name or self._name, self._kind)

    # kind enforcement

    def content_kind(self) -> ConcreteKind | None:
        return self._kind

    def schema_kind(self) -> Kind:
        '''
        Kind this column contributes to a table schema, 'missing' while only
        sentinels were seen.

        '''
        return self._kind or 'missing'

    def _admit(self, value: Any, current: ConcreteKind | None) -> tuple[Any, ConcreteKind | None]:
        value = normalize_cell(value)
        kind = kind_of(value)
        if is_sentinel_kind(kind):
            return value, current

        if current is None or kind == current:
            return value, kind

        raise SchemaMismatchError(
            f'Value {value!r} of kind {kind} does not match column '
            f'{self._name!r} of kind {current}'
        )

    def accepts(self, value: Any) -> bool:
        try:
            self._admit(value, self._kind)

        except SchemaMismatchError:
            return False

        return True

    def _invalidate(self) -> None:
        self._state = None

    # mutation

    def add(self, value: Any) -> None:
        value, self._kind = self._admit(value, self._kind)
        self._values.append(value)
        self._invalidate()

    def extend(self, values: Iterable[Any]) -> None:
        '''
        Add every value or none of them.

        '''
        kind = self._kind
        admitted = []
        for v in values:
            v, kind = self._admit(v, kind)
            admitted.append(v)

        if not admitted:
            return

        self._values.extend(admitted)
        self._kind = kind
        self._invalidate()

    def insert(self, index: int, value: Any) -> None:
        value, self._kind = self._admit(value, self._kind)
        self._values.insert(index, value)
        self._invalidate()

    def set(self, index: int, value: Any) -> Any:
        '''
        Replace the cell at `index`, returning the previous value.

        '''
        value, kind = self._admit(value, self._kind)
        old = self._values[index]
        self._values[index] = value
        self._kind = kind
        self._invalidate()
        return old

    def remove(self, index: int) -> Any:
        value = self._values.pop(index)
        if not self._values:
            self._kind = None

        self._invalidate()
        return value

    def remove_range(self, start: int, stop: int) -> None:
        del self._values[start:stop]
        if not self._values:
            self._kind = None

        self._invalidate()

    def clear(self) -> None:
        self._values = []
        self._kind = None
        self._invalidate()

    # derived state

    @property
    def state(self) -> ColumnState:
        if self._state is None:
            numeric = is_numeric_kind(self._kind)

            if numeric:
                conv = self._kind

            elif self._kind in ('str', 'factor'):
                conv = conversion_kind(self._values)

            else:
                conv = None

            self._state = ColumnState(
                numeric=numeric,
                conversion_kind=conv,
                width=max(
                    (len(render_cell(v)) for v in self._values),
                    default=0
                ),
                na_count=sum(1 for v in self._values if is_theoretical(v)),
            )

        return self._state

    def is_numeric(self) -> bool:
        return self.state.numeric

    def numeric_conversion_kind(self) -> Shape | None:
        return self.state.conversion_kind

    def is_convertible_to_numeric(self) -> bool:
        return self.state.conversion_kind is not None

    def contains_na(self) -> bool:
        return self.state.na_count > 0

    def count_missing(self) -> int:
        return self.state.na_count

    def width(self) -> int:
        '''
        Longest textual rendering among the cells and the column name.

        '''
        return max(self.state.width, len(self._name))

    # conversions

    def _cast(self, kind: ConcreteKind) -> Column:
        return Column.trusted(
            (coerce(v, kind) for v in self._values), self._name, kind
        )

    def as_integer(self) -> Column:
        return self._cast('int')

    def as_double(self) -> Column:
        return self._cast('float')

    def as_character(self) -> Column:
        if self._kind == 'str':
            return self.copy()

        return self._cast('str')

    def as_numeric(self) -> Column:
        '''
        Numeric version of this column, integer unless any token is float
        shaped.

        '''
        if self.is_numeric():
            return self.copy()

        match self.numeric_conversion_kind():
            case 'int':
                return self.as_integer()

            case 'float':
                return self.as_double()

        raise ConversionError(
            f'Column {self._name!r} of kind {self._kind} cannot be converted to numeric'
        )

    def as_factor(self) -> Column:
        if self._kind == 'factor':
            return self.copy()

        labels = self.as_character()._values
        levels = factor_levels(v for v in labels if not is_theoretical(v))
        return Column.trusted(
            (v if is_theoretical(v) else levels[v] for v in labels),
            self._name,
            'factor',
        )

    # statistics

    def _numeric_view(self) -> Column:
        if self.is_numeric():
            return self

        # only sentinels so far, arithmetic reports them as missing
        if self._kind is None:
            return self.as_double()

        return self.as_numeric()

    def _numbers(self) -> list[int | float]:
        values = [v for v in self._numeric_view() if not is_theoretical(v)]
        if not values:
            raise MissingValueError(
                f'Cannot perform arithmetic on column {self._name!r}, no '
                'values left after removing sentinels'
            )

        return values

    def sum(self) -> int | float:
        return sum(self._numbers())

    def mean(self) -> float:
        values = self._numbers()
        return math.fsum(values) / len(values)

    def variance(self) -> float:
        '''
        Sample variance (n - 1 denominator).

        '''
        values = self._numbers()
        if len(values) < 2:
            raise MissingValueError(
                f'Variance of column {self._name!r} needs at least two values'
            )

        avg = math.fsum(values) / len(values)
        return math.fsum((v - avg) ** 2 for v in values) / (len(values) - 1)

    def standard_deviation(self) -> float:
        return math.sqrt(self.variance())

    def min(self) -> int | float:
        return min(self._numbers())

    def max(self) -> int | float:
        return max(self._numbers())

    def range(self) -> int | float:
        values = self._numbers()
        return max(values) - min(values)

    def mode(self) -> Any:
        '''
        Most frequent non sentinel value of any kind, ties go to the value
        seen first.

        '''
        counts: dict[Any, int] = {}
        for v in self._values:
            if not is_theoretical(v):
                counts[v] = counts.get(v, 0) + 1

        if not counts:
            raise MissingValueError(f'Column {self._name!r} only holds sentinels')

        return max(counts, key=counts.__getitem__)

    def summary(self) -> dict[str, Any]:
        info: dict[str, Any] = {
            'name': self._name,
            'kind': self._kind,
            'size': len(self),
            'width': self.width(),
            'missing': self.count_missing(),
        }
        if not (self.is_numeric() or self.is_convertible_to_numeric()):
            return info

        values = self._numbers()
        info.update(
            sum=self.sum(),
            mean=self.mean(),
            sd=self.standard_deviation() if len(values) > 1 else NA,
            min=min(values),
            max=max(values),
        )
        return info

    # element wise transforms, sentinels carry through

    def _map_float(self, fn) -> Column:
        out = []
        for v in self._numeric_view():
            out.append(v if is_theoretical(v) else fn(v))

        return Column.trusted(out, self._name, 'float')

    def center(self) -> Column:
        avg = self.mean()
        return self._map_float(lambda v: float(v) - avg)

    def standardize(self) -> Column:
        '''
        z-scores of every value. A constant column has no spread, all its
        non sentinel cells become `NA`.

        '''
        avg = self.mean()
        sd = self.standard_deviation()
        if sd == 0:
            log.debug('column %r has zero standard deviation', self._name)
            return self._map_float(lambda v: NA)

        return self._map_float(lambda v: (float(v) - avg) / sd)

    def log_transform(self) -> Column:
        out = []
        for v in self._numeric_view():
            sign = infinite_sign(v)
            if sign:
                out.append(Infinite(1) if sign > 0 else NA)

            elif is_theoretical(v) or v < 0:
                out.append(NA)

            elif v == 0:
                out.append(Infinite(-1))

            else:
                out.append(math.log(v))

        return Column.trusted(out, self._name, 'float')

    def scale_by_factor(self, scalar: float) -> Column:
        out = []
        for v in self._numeric_view():
            sign = infinite_sign(v)
            if sign:
                out.append(Infinite(sign if scalar > 0 else -sign) if scalar else NA)

            elif is_theoretical(v):
                out.append(NA)

            else:
                out.append(float(v) * scalar)

        return Column.trusted(out, self._name, 'float')

    # vector algebra

    def _pair(self, other: Column) -> tuple[list, list]:
        if len(self) != len(other):
            raise DimensionMismatchError(
                f'Column {self._name!r} has length {len(self)}, '
                f'{other._name!r} has length {len(other)}'
            )

        a = self._numeric_view()._values
        b = other._numeric_view()._values
        if any(is_theoretical(v) for v in a) or any(is_theoretical(v) for v in b):
            raise MissingValueError('Vector operations are undefined over sentinel values')

        return a, b

    def inner_product(self, other: Column) -> int | float:
        a, b = self._pair(other)
        if self._numeric_view()._kind == other._numeric_view()._kind == 'int':
            return sum(x * y for x, y in zip(a, b))

        return math.fsum(x * y for x, y in zip(a, b))

    def distance(self, other: Column, q: int = 2) -> float:
        '''
        Minkowski distance of order `q`.

        '''
        if q < 1:
            raise ValueError(f'q must be >= 1, got {q}')

        a, b = self._pair(other)
        total = math.fsum(abs(x - y) ** q for x, y in zip(a, b))
        return total ** (1 / q) if total else 0.0

    def euclidean_distance(self, other: Column) -> float:
        return self.distance(other, 2)

    # sorting

    def sorted_indices(
        self,
        *,
        descending: bool = False,
        policy: SortPolicy = default_policy
    ) -> list[int]:
        '''
        Stable permutation that sorts this column, used to reorder whole
        tables by one column.

        '''
        values = self._values
        key = cmp_to_key(lambda i, j: compare_cells(values[i], values[j], policy))
        return sorted(range(len(values)), key=key, reverse=descending)

    def permute(self, order: Iterable[int]) -> None:
        self._values = [self._values[i] for i in order]
        self._invalidate()

    def sort_ascending(self, policy: SortPolicy = default_policy) -> None:
        self.permute(self.sorted_indices(policy=policy))

    def sort_descending(self, policy: SortPolicy = default_policy) -> None:
        self.permute(self.sorted_indices(descending=True, policy=policy))

    # subsetting & reshaping

    def logical_vector(self, condition: SubsetCondition) -> list[bool]:
        return condition.evaluate(self)

    def subset_by_condition(self, condition: SubsetCondition) -> Column:
        keep = self.logical_vector(condition)
        return Column.trusted(
            (v for v, k in zip(self._values, keep) if k),
            f'{self._name}_subset',
            self._kind,
        )

    def to_row(self) -> Row:
        from schemaframe.row import Row

        return Row(self._values, self._name)
