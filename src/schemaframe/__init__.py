'''
Glossary:
    - Sentinel value: A concrete cell value standing in for "missing" (`NA`) or "infinite", never `None`.
    - Schema: Ordered sequence of value kinds describing a row's or a table's columns.
    - Safe merge: Reconciliation rule that upgrades a sentinel kind position to a concrete kind seen elsewhere, concrete vs concrete mismatches are rejected.
    - Conversion lattice: The ordering str -> int -> float (and str -> factor) used to pick the least lossy common kind.
    - Duality invariant: The row view and the column view of a table always agree in shape and content.
    - Convertible column: A column whose non sentinel tokens all look numeric, making it eligible for numeric casting.

'''

from .sentinels import (
    INF as INF,
    NA as NA,
    NEG_INF as NEG_INF,
    Infinite as Infinite,
    Missing as Missing,
    SortPolicy as SortPolicy,
)

from .dtypes import Factor as Factor

from .schema import Schema as Schema

from .column import Column as Column

from .row import Row as Row

from .table import (
    SubsetCondition as SubsetCondition,
    Table as Table,
    TableBuilder as TableBuilder,
    TableOptions as TableOptions,
    read_csv as read_csv,
)

from .matrix import (
    Matrix as Matrix,
    identity_matrix as identity_matrix,
    multiply as multiply,
)

from ._log import setup_logging as setup_logging
