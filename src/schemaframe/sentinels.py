'''
Sentinel values: concrete cells that stand in for an absent (`Missing`) or an
unbounded (`Infinite`) value.

A sentinel is never `None`, it occupies a cell like any other value and is
told apart by the `is_theoretical` capability test. Ordering against ordinary
values is implemented once in `compare_cells`, parametrized by a `SortPolicy`
instead of any global toggle.

Textual forms:

    - Missing: 'NA'
    - Infinite: 'Infinity' / '-Infinity'

Tokens recognised when classifying raw values:

    - missing: None, float nan, '', 'NA', '<NA>'
    - infinite: float +-inf, 'inf', 'infinite', 'infinity' (any case,
      optional sign)

'''
from __future__ import annotations

import math
from typing import Any, Literal

from schemaframe.errors import InfinityError, MissingValueError
from schemaframe.structs import FrozenStruct


# numeric representatives used when a sentinel is coerced to a number
MIN_INT: int = -(2 ** 31)
MAX_INT: int = 2 ** 31 - 1

missing_tokens: tuple[str, ...] = ('', 'NA', '<NA>')

infinite_tokens: tuple[str, ...] = ('inf', 'infinite', 'infinity')

CellClass = Literal['ordinary', 'missing', 'infinite']


class SortPolicy(FrozenStruct, frozen=True):
    '''
    How sentinels order against everything else.

    `missing_high` flips `Missing` from lowest of all to highest of all, it
    has no effect on the relative order of infinities.

    '''
    missing_high: bool = False


default_policy = SortPolicy()


class Theoretical(FrozenStruct, frozen=True):
    '''
    Common marker for sentinel cells.

    '''

    def number(self, policy: SortPolicy = default_policy, *, integral: bool = False) -> int | float:
        raise NotImplementedError

    def __float__(self) -> float:
        return float(self.number())

    def __int__(self) -> int:
        return int(self.number(integral=True))


class Missing(Theoretical, frozen=True, tag='na'):

    def number(self, policy: SortPolicy = default_policy, *, integral: bool = False) -> int:
        return MAX_INT if policy.missing_high else MIN_INT

    def __str__(self) -> str:
        return 'NA'


class Infinite(Theoretical, frozen=True, tag='inf'):
    sign: int = 1

    def __post_init__(self) -> None:
        if self.sign not in (1, -1):
            raise InfinityError(f'Infinite sign must be 1 or -1, got {self.sign}')

    @staticmethod
    def parse(token: Any) -> Infinite:
        '''
        Build an `Infinite` from a textual token or a float infinity.

        '''
        if isinstance(token, Infinite):
            return token

        if isinstance(token, float) and math.isinf(token):
            return Infinite(1 if token > 0 else -1)

        if is_missing(token):
            raise MissingValueError(f'{token!r} is not infinite, it is NA')

        if not isinstance(token, str):
            raise InfinityError(f'{token!r} is not infinite')

        s = token.strip().lower()
        sign = 1
        if s[:1] in ('+', '-'):
            sign = -1 if s[0] == '-' else 1
            s = s[1:]

        if s not in infinite_tokens:
            raise InfinityError(f'{token!r} is not infinite')

        return Infinite(sign)

    def number(self, policy: SortPolicy = default_policy, *, integral: bool = False) -> int | float:
        if integral:
            return MAX_INT if self.sign > 0 else MIN_INT

        return math.inf if self.sign > 0 else -math.inf

    def __str__(self) -> str:
        return 'Infinity' if self.sign > 0 else '-Infinity'


NA = Missing()

INF = Infinite(1)

NEG_INF = Infinite(-1)


# capability tests


def is_missing(value: Any) -> bool:
    match value:
        case Missing() | None:
            return True

        case float():
            return math.isnan(value)

        case str():
            return value in missing_tokens

    return False


def infinite_sign(value: Any) -> int:
    '''
    Sign of an infinite-shaped value, 0 when the value is not infinite.

    '''
    match value:
        case Infinite():
            return value.sign

        case float():
            if math.isinf(value):
                return 1 if value > 0 else -1

        case str():
            s = value.strip().lower()
            sign = 1
            if s[:1] in ('+', '-'):
                sign = -1 if s[0] == '-' else 1
                s = s[1:]

            if s in infinite_tokens:
                return sign

    return 0


def is_infinite(value: Any) -> bool:
    return infinite_sign(value) != 0


def is_theoretical(value: Any) -> bool:
    return isinstance(value, Theoretical) or is_missing(value) or is_infinite(value)


def classify(value: Any) -> CellClass:
    if is_missing(value):
        return 'missing'

    if is_infinite(value):
        return 'infinite'

    return 'ordinary'


def to_sentinel(value: Any) -> Theoretical:
    '''
    Normalize any sentinel shaped value to its `Missing` / `Infinite`
    instance.

    '''
    if isinstance(value, Theoretical):
        return value

    if is_missing(value):
        return NA

    sign = infinite_sign(value)
    if sign:
        return Infinite(sign)

    raise ValueError(f'{value!r} is not a sentinel value')


def normalize_cell(value: Any) -> Any:
    '''
    Language level absences (`None`, float nan/inf) become sentinels, every
    other value passes through untouched.

    '''
    if value is None:
        return NA

    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return to_sentinel(value)

    return value


def as_number(
    value: Any,
    policy: SortPolicy = default_policy,
    *,
    integral: bool = False
) -> int | float:
    '''
    Numeric coercion that never needs a null check, sentinels map to a fixed
    representative.

    '''
    if is_theoretical(value):
        return to_sentinel(value).number(policy, integral=integral)

    return int(value) if integral else float(value)


# ordering


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def compare_cells(a: Any, b: Any, policy: SortPolicy = default_policy) -> int:
    '''
    Total order over ordinary values and sentinels:

        - Missing sorts lowest of all (highest under `policy.missing_high`),
          regardless of any infinity.
        - Infinite sorts above (positive) or below (negative) every ordinary
          value, same signed infinities are equal.
        - ordinary vs ordinary falls back to natural ordering.

    '''
    a_na = is_missing(a)
    b_na = is_missing(b)
    if a_na or b_na:
        if a_na and b_na:
            return 0

        low = -1 if a_na else 1
        return -low if policy.missing_high else low

    a_inf = infinite_sign(a)
    b_inf = infinite_sign(b)
    if a_inf or b_inf:
        return _cmp(a_inf, b_inf)

    return _cmp(a, b)
