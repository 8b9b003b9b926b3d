from __future__ import annotations

import logging
from typing import Iterable, Iterator

from schemaframe.dtypes import (
    ConcreteKind,
    Kind,
    all_kinds,
    is_numeric_kind,
    is_sentinel_kind,
    kind_of,
)
from schemaframe.errors import SchemaMismatchError
from schemaframe.structs import FrozenStruct


log = logging.getLogger(__name__)


class SchemaMeta(FrozenStruct, frozen=True):
    kinds: list[Kind]


class Schema:
    '''
    Ordered sequence of value kinds, one per column of a table or one per
    cell of a row.

    Positions holding a sentinel kind are placeholders: `reconcile` upgrades
    them to the concrete kind of an incoming schema, concrete vs concrete
    differences are rejected.

    '''

    def __init__(self, kinds: Iterable[Kind] = ()) -> None:
        self._kinds: list[Kind] = list(kinds)
        for kind in self._kinds:
            if kind not in all_kinds:
                raise ValueError(f'Unknown kind {kind!r}')

    @staticmethod
    def of(values: Iterable) -> Schema:
        '''
        Derive the schema of a sequence of cells.

        '''
        return Schema(kind_of(v) for v in values)

    @staticmethod
    def from_like(s: SchemaLike) -> Schema:
        match s:
            case Schema():
                return s

            case dict() | SchemaMeta():
                if isinstance(s, dict):
                    s = SchemaMeta.convert(s)

                return Schema(s.kinds)

        return Schema(s)

    def __len__(self) -> int:
        return len(self._kinds)

    def __iter__(self) -> Iterator[Kind]:
        return iter(self._kinds)

    def __getitem__(self, index: int) -> Kind:
        return self._kinds[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Schema):
            return self._kinds == other._kinds

        if isinstance(other, list | tuple):
            return self._kinds == list(other)

        return NotImplemented

    def __repr__(self) -> str:
        return f'Schema({self._kinds!r})'

    def copy(self) -> Schema:
        return Schema(self._kinds)

    # structural edits, used by the owning table

    def append(self, kind: Kind) -> None:
        self._kinds.append(kind)

    def insert(self, index: int, kind: Kind) -> None:
        self._kinds.insert(index, kind)

    def pop(self, index: int) -> Kind:
        return self._kinds.pop(index)

    def set(self, index: int, kind: Kind) -> None:
        self._kinds[index] = kind

    # queries

    @property
    def kinds(self) -> tuple[Kind, ...]:
        return tuple(self._kinds)

    def concrete_kinds(self) -> set[ConcreteKind]:
        return {k for k in self._kinds if not is_sentinel_kind(k)}

    def contains_sentinels(self) -> bool:
        return any(is_sentinel_kind(k) for k in self._kinds)

    def is_numeric(self) -> bool:
        '''
        Every position is numeric or a sentinel, and at least one concrete
        kind has shown up. An all sentinel schema is not numeric yet.

        '''
        concrete = self.concrete_kinds()
        return bool(concrete) and all(is_numeric_kind(k) for k in concrete)

    def is_singular(self) -> bool:
        return len(self._kinds) > 0 and len(self.concrete_kinds()) <= 1

    def content_kind(self) -> ConcreteKind | None:
        '''
        The one concrete kind of a singular schema, None otherwise (or when
        only sentinels are present).

        '''
        concrete = self.concrete_kinds()
        if len(concrete) != 1:
            return None

        return next(iter(concrete))

    # safe merge

    def _upgrades(self, other: Schema) -> dict[int, Kind] | None:
        if len(other) != len(self):
            return None

        upgrades: dict[int, Kind] = {}
        for i, (mine, theirs) in enumerate(zip(self._kinds, other._kinds)):
            if is_sentinel_kind(theirs):
                continue

            if is_sentinel_kind(mine):
                upgrades[i] = theirs
                continue

            if mine != theirs:
                return None

        return upgrades

    def is_compatible(self, other: Schema) -> bool:
        '''
        Pure predicate: would `reconcile(other)` succeed.

        '''
        return self._upgrades(other) is not None

    def reconcile(self, other: Schema) -> Schema:
        '''
        Merge `other` into this schema or reject it.

        Position by position the kinds must be equal, or one side must be a
        sentinel kind. Sentinel positions on this side are upgraded in place
        to the concrete kind supplied by `other`.

        '''
        upgrades = self._upgrades(other)
        if upgrades is None:
            raise SchemaMismatchError(
                f'Schema {other._kinds} does not match {self._kinds}'
            )

        for i, kind in upgrades.items():
            log.debug('schema position %d upgraded from %s to %s', i, self._kinds[i], kind)
            self._kinds[i] = kind

        return self

    def pretty_str(self) -> str:
        return '[' + ', '.join(self._kinds) + ']'

    def encode(self) -> SchemaMeta:
        return SchemaMeta(kinds=list(self._kinds))


SchemaLike = Iterable[Kind] | dict | SchemaMeta | Schema
