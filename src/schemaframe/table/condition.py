from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from schemaframe.dtypes import is_numeric_kind, kind_of
from schemaframe.errors import SchemaMismatchError
from schemaframe.sentinels import compare_cells, is_missing, is_theoretical
from schemaframe.structs import FrozenStruct

if TYPE_CHECKING:
    from schemaframe.column import Column


ConditionOp = Literal['eq', 'lt', 'gt']

op_targets: dict[ConditionOp, int] = {
    'eq': 0,
    'lt': -1,
    'gt': 1,
}


class SubsetCondition(FrozenStruct, frozen=True):
    '''
    Row filter over a single column: keep cells that compare `op` against
    `value`, optionally negated.

    Missing cells are kept (dropped when negated) unless `drop_missing` is
    set, in which case they never pass. A sentinel `value` only supports
    `'eq'`.

    '''
    op: ConditionOp
    value: Any
    negate: bool = False
    drop_missing: bool = False

    def __post_init__(self) -> None:
        if self.op not in op_targets:
            raise ValueError(f'Unknown condition operator {self.op!r}')

        if is_theoretical(self.value) and self.op != 'eq':
            raise ValueError(
                f'Conditions on sentinel value {self.value!r} only support \'eq\''
            )

    def _check_kind(self, column: Column) -> None:
        if is_theoretical(self.value):
            return

        have = column.content_kind()
        want = kind_of(self.value)
        if have is None or have == want:
            return

        if is_numeric_kind(have) and is_numeric_kind(want):
            return

        raise SchemaMismatchError(
            f'Condition value {self.value!r} of kind {want} cannot be compared '
            f'against column {column.name!r} of kind {have}'
        )

    def matches(self, cell: Any) -> bool:
        if is_missing(cell):
            return False if self.drop_missing else not self.negate

        hit = compare_cells(cell, self.value) == op_targets[self.op]
        return hit != self.negate

    def evaluate(self, column: Column) -> list[bool]:
        '''
        Keep vector for `column`, one bool per cell.

        '''
        self._check_kind(column)
        return [self.matches(v) for v in column]


def eq(value: Any, **kwargs) -> SubsetCondition:
    return SubsetCondition('eq', value, **kwargs)


def lt(value: Any, **kwargs) -> SubsetCondition:
    return SubsetCondition('lt', value, **kwargs)


def gt(value: Any, **kwargs) -> SubsetCondition:
    return SubsetCondition('gt', value, **kwargs)
