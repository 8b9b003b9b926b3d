'''
# Value kinds

Every cell has a *kind*, a short tag naming what sort of value it holds:

    - concrete kinds: 'int', 'float', 'str', 'bool', 'factor'
    - sentinel kinds: 'missing', 'infinite'

Numeric kinds are 'int' and 'float'. Sentinel kinds are compatible with every
concrete kind, see `schemaframe.schema.Schema.reconcile`.

# Conversion lattice

    str -> int -> float
    str -> factor

Promotion only goes up: a column holding any float shaped token converts to
'float', never to 'int'. When several columns have to share a kind the join
is 'str' if any of them is not numeric, else 'float' if any needs it, else
'int'.

# Lexical shapes

Textual tokens are classified with the same patterns used to decide if a
string column can be cast to numbers:

    - int: [-+]?[0-9]+
    - float: [-+]?[0-9]*\\.?[0-9]+([eE][-+]?[0-9]+)?

'''
from __future__ import annotations

import re
from typing import Any, Iterable, Literal, get_args

import polars as pl

from schemaframe.errors import ConversionError, SchemaMismatchError
from schemaframe.sentinels import (
    Infinite,
    Missing,
    is_missing,
    is_theoretical,
    to_sentinel,
)
from schemaframe.structs import FrozenStruct


class Factor(FrozenStruct, frozen=True, order=True, tag='factor'):
    '''
    Categorical value, a label plus its integer level. Orders by label.

    '''
    label: str
    level: int = 0

    def __str__(self) -> str:
        return self.label


def factor_levels(labels: Iterable[str]) -> dict[str, Factor]:
    '''
    Assign each distinct label a level in order of first appearance.

    '''
    levels: dict[str, Factor] = {}
    for label in labels:
        if label not in levels:
            levels[label] = Factor(label, len(levels))

    return levels


# type hints

Kind = Literal['int', 'float', 'str', 'bool', 'factor', 'missing', 'infinite']

ConcreteKind = Literal['int', 'float', 'str', 'bool', 'factor']

Shape = Literal['int', 'float']

# any value that can sit in a cell
Cell = bool | int | float | str | Factor | Missing | Infinite


# kind sets

all_kinds: tuple[Kind, ...] = get_args(Kind)

sentinel_kinds: tuple[Kind, ...] = ('missing', 'infinite')

numeric_kinds: tuple[Kind, ...] = ('int', 'float')


# kind predicates


def is_sentinel_kind(kind: Kind | None) -> bool:
    return kind in sentinel_kinds


def is_numeric_kind(kind: Kind | None) -> bool:
    return kind in numeric_kinds


def kind_of(value: Any) -> Kind:
    '''
    Kind of a single cell value, sentinel shaped values (including 'NA'
    strings) map to their sentinel kind.

    '''
    if is_theoretical(value):
        return 'missing' if is_missing(value) else 'infinite'

    match value:
        case bool():
            return 'bool'

        case int():
            return 'int'

        case float():
            return 'float'

        case str():
            return 'str'

        case Factor():
            return 'factor'

    raise SchemaMismatchError(
        f'Unsupported cell type {type(value).__name__} for value {value!r}'
    )


# lexical shapes

int_pattern = re.compile(r'[-+]?[0-9]+')

float_pattern = re.compile(r'[-+]?[0-9]*\.?[0-9]+([eE][-+]?[0-9]+)?')

# below this many candidate tokens the whole column is scanned
full_scan_limit = 20


def token_shape(value: Any) -> Shape | None:
    '''
    Numeric shape of an ordinary value, None if it matches neither shape.

    '''
    match value:
        case bool():
            return None

        case int():
            return 'int'

        case float():
            return 'float'

        case Factor():
            return token_shape(value.label)

        case str():
            s = value.strip()
            if int_pattern.fullmatch(s):
                return 'int'

            if float_pattern.fullmatch(s):
                return 'float'

    return None


def conversion_kind(values: Iterable[Any], *, sample: bool = True) -> Shape | None:
    '''
    Decide which numeric kind a sequence of tokens could be cast to.

    Sentinel shaped tokens are skipped. With `sample` only the first third of
    the remaining tokens (all of them when there are fewer than
    `full_scan_limit`) must match a numeric shape, a token that matches
    neither aborts with None. Past that check a float shaped token anywhere
    forces 'float'.

    '''
    tokens = [v for v in values if not is_theoretical(v)]

    n = len(tokens)
    cutoff = n // 3 if sample and n >= full_scan_limit else n

    shapes = [token_shape(t) for t in tokens[:cutoff]]
    if not shapes or None in shapes:
        return None

    if 'float' in shapes or any(token_shape(t) == 'float' for t in tokens[cutoff:]):
        return 'float'

    return 'int'


def join_kinds(kinds: Iterable[Kind | None]) -> ConcreteKind | None:
    '''
    Least lossy common kind of a set of column conversion kinds, `None`
    entries (all sentinel columns) do not take part.

    '''
    seen = {k for k in kinds if k is not None and not is_sentinel_kind(k)}
    if not seen:
        return None

    if not seen <= set(numeric_kinds):
        return 'str'

    return 'float' if 'float' in seen else 'int'


# cell conversion


def to_int(value: Any) -> int | Missing | Infinite:
    if is_theoretical(value):
        return to_sentinel(value)

    match value:
        case bool():
            return int(value)

        case int():
            return value

        case float():
            if not value.is_integer():
                raise ConversionError(f'{value!r} is not integral')
            return int(value)

        case Factor():
            return to_int(value.label)

        case str():
            match token_shape(value):
                case 'int':
                    return int(value.strip())

                case 'float':
                    return to_int(float(value))

    raise ConversionError(f'Cannot convert {value!r} to int')


def to_float(value: Any) -> float | Missing | Infinite:
    if is_theoretical(value):
        return to_sentinel(value)

    match value:
        case bool() | int() | float():
            return float(value)

        case Factor():
            return to_float(value.label)

        case str():
            if token_shape(value):
                return float(value.strip())

    raise ConversionError(f'Cannot convert {value!r} to float')


def to_str(value: Any) -> str | Missing | Infinite:
    if is_theoretical(value):
        return to_sentinel(value)

    return render_cell(value)


converters = {
    'int': to_int,
    'float': to_float,
    'str': to_str,
}


def coerce(value: Any, kind: ConcreteKind) -> Any:
    try:
        return converters[kind](value)

    except KeyError:
        raise ConversionError(f'No direct conversion to kind {kind!r}') from None


def render_cell(value: Any) -> str:
    '''
    Natural textual form of a cell, sentinels render as their fixed literal
    tokens.

    '''
    if is_theoretical(value):
        return str(to_sentinel(value))

    return str(value)


# polars interop

kind_polars_map: dict[ConcreteKind, type[pl.DataType]] = {
    'int': pl.Int64,
    'float': pl.Float64,
    'str': pl.String,
    'bool': pl.Boolean,
    'factor': pl.Categorical,
}


def polars_type_for(kind: Kind | None, *, has_infinite: bool = False) -> type[pl.DataType]:
    '''
    Polars dtype used when emitting a column, int columns holding
    infinities have to widen to floats.

    '''
    if kind is None or is_sentinel_kind(kind):
        return pl.Float64 if has_infinite else pl.Null

    if kind == 'int' and has_infinite:
        return pl.Float64

    return kind_polars_map[kind]


def kind_for_polars(dtype: pl.DataType) -> ConcreteKind:
    if dtype.is_integer():
        return 'int'

    if dtype.is_float():
        return 'float'

    if dtype == pl.Boolean:
        return 'bool'

    if isinstance(dtype, pl.Categorical | pl.Enum):
        return 'factor'

    return 'str'
