import math

import pytest

from schemaframe.column import Column
from schemaframe.dtypes import Factor, conversion_kind
from schemaframe.errors import (
    ConversionError,
    DimensionMismatchError,
    MissingValueError,
    SchemaMismatchError,
)
from schemaframe.sentinels import INF, NA, NEG_INF, SortPolicy, is_missing
from schemaframe._testing import token_stream


def test_first_concrete_value_fixes_kind():
    col = Column([NA, NA])
    assert col.content_kind() is None
    assert col.schema_kind() == 'missing'

    col.add(3)
    assert col.content_kind() == 'int'

    col.add(None)
    assert is_missing(col[-1])

    with pytest.raises(SchemaMismatchError):
        col.add('x')

    with pytest.raises(SchemaMismatchError):
        col.add(2.5)


def test_extend_is_atomic():
    col = Column([1, 2])
    with pytest.raises(SchemaMismatchError):
        col.extend([3, 'x'])

    assert col.tolist() == [1, 2]


def test_set_insert_remove():
    col = Column([1, 2, 3], 'c')
    assert col.set(0, NA) == 1
    col.insert(1, 7)
    assert col.tolist() == [NA, 7, 2, 3]
    assert col.remove(1) == 7
    assert col.count_missing() == 1

    with pytest.raises(SchemaMismatchError):
        col.set(2, 'x')

    one = Column([5])
    one.remove(0)
    assert one.content_kind() is None
    one.add('now a string')
    assert one.content_kind() == 'str'


def test_derived_state_invalidated():
    col = Column(['1', '2'], 'tokens')
    assert col.numeric_conversion_kind() == 'int'
    col.add('2.5')
    assert col.numeric_conversion_kind() == 'float'
    col.add('abc')
    assert not col.is_convertible_to_numeric()

    assert col.width() == len('tokens')
    col.add('a very long token')
    assert col.width() == len('a very long token')


def test_conversion_lattice_monotonic():
    ints = list(token_stream(60, seed=1))
    assert conversion_kind(ints) == 'int'

    # float shaped token past the sampled third still forces float
    assert conversion_kind(ints + ['1.5']) == 'float'
    assert Column(ints + ['2.0']).numeric_conversion_kind() == 'float'


def test_conversion_sampling_window():
    tokens = list(token_stream(60, seed=2))
    # a bad token past the first third is not looked at
    assert conversion_kind(tokens + ['abc']) == 'int'
    # below the full scan limit every token is checked
    assert conversion_kind(['1', '2', 'abc']) is None
    assert conversion_kind(['NA', '', '3']) == 'int'
    assert conversion_kind(['NA']) is None


def test_as_numeric():
    col = Column(['1', 'NA', '3'], 'x')
    num = col.as_numeric()
    assert num.content_kind() == 'int'
    assert num.tolist() == [1, NA, 3]
    assert num.name == 'x'

    assert Column(['1', '2.5']).as_numeric().tolist() == [1.0, 2.5]

    with pytest.raises(ConversionError):
        Column(['a', 'b']).as_numeric()


def test_numeric_character_round_trip():
    for values in ([1, 2, 3], [1.5, 2.0, -0.25], [1, NA, 3]):
        col = Column(values)
        assert col.as_numeric().as_character().as_numeric() == col


def test_as_character_keeps_sentinels():
    col = Column([1, NA, INF]).as_character()
    assert col.content_kind() == 'str'
    assert col.tolist() == ['1', NA, INF]


def test_as_factor():
    col = Column(['b', 'a', 'b', NA]).as_factor()
    assert col.content_kind() == 'factor'
    assert col.tolist() == [Factor('b', 0), Factor('a', 1), Factor('b', 0), NA]


def test_as_integer_rejects_fractions():
    with pytest.raises(ConversionError):
        Column([1.5]).as_integer()


def test_statistics(scores):
    score = scores.column('score')
    assert score.mean() == 2.25
    assert score.sum() == 4.5
    assert score.min() == 1.5
    assert score.max() == 3.0
    assert score.range() == 1.5
    assert score.variance() == pytest.approx(1.125)
    assert score.standard_deviation() == pytest.approx(math.sqrt(1.125))

    ids = scores.column('id')
    assert ids.sum() == 6
    assert isinstance(ids.sum(), int)


def test_statistics_skip_infinities():
    col = Column([1.0, INF, 3.0, NEG_INF])
    assert col.mean() == 2.0


def test_statistics_on_string_tokens():
    assert Column(['1', '2', 'NA', '3']).mean() == 2.0


def test_statistics_all_sentinel():
    col = Column([NA, INF], 'empty')
    with pytest.raises(MissingValueError):
        col.as_double().mean()

    with pytest.raises(MissingValueError):
        Column([1.0]).variance()


def test_mode():
    assert Column(['x', 'y', 'y', 'x', NA, NA, NA]).mode() == 'x'
    assert Column([3, 1, 1, 3, 2]).mode() == 3
    assert Column([2, 5, 5]).mode() == 5
    with pytest.raises(MissingValueError):
        Column([NA]).mode()


def test_transforms():
    col = Column([1, 2, 3])
    assert col.center().tolist() == [-1.0, 0.0, 1.0]
    assert col.standardize().tolist() == [-1.0, 0.0, 1.0]
    assert col.scale_by_factor(2).tolist() == [2.0, 4.0, 6.0]

    logs = Column([1.0, 0.0, -1.0, NA]).log_transform()
    assert logs.tolist() == [0.0, NEG_INF, NA, NA]

    assert Column([INF, 1]).scale_by_factor(-1).tolist() == [NEG_INF, -1.0]


def test_standardize_constant_column():
    col = Column([2, 2, NA, 2], 'c')
    z = col.standardize()
    assert z.tolist() == [NA, NA, NA, NA]
    assert z.content_kind() == 'float'
    assert z.name == 'c'


def test_vector_algebra():
    a = Column([1, 2, 3])
    b = Column([4, 5, 6])
    assert a.inner_product(b) == 32
    assert isinstance(a.inner_product(b), int)
    assert a.inner_product(Column([0.5, 0.5, 0.5])) == 3.0
    assert a.euclidean_distance(b) == pytest.approx(math.sqrt(27))
    assert a.distance(b, 1) == pytest.approx(9.0)

    with pytest.raises(DimensionMismatchError):
        a.inner_product(Column([1, 2]))

    with pytest.raises(MissingValueError):
        a.inner_product(Column([1, NA, 3]))

    with pytest.raises(ValueError):
        a.distance(b, 0)


def test_sort_missing_first():
    col = Column([3, NA, 1, NA, 2])
    col.sort_ascending()
    assert col.tolist() == [NA, NA, 1, 2, 3]

    col.sort_descending()
    assert col.tolist() == [3, 2, 1, NA, NA]

    col.sort_ascending(SortPolicy(missing_high=True))
    assert col.tolist() == [1, 2, 3, NA, NA]


def test_sort_infinite_extremes():
    col = Column([1.0, INF, NEG_INF, 5.0, INF])
    col.sort_descending()
    assert col.tolist() == [INF, INF, 5.0, 1.0, NEG_INF]


def test_sorted_indices_stable():
    col = Column(['b', 'a', 'b', 'a'])
    assert col.sorted_indices() == [1, 3, 0, 2]
    assert col.sorted_indices(descending=True) == [0, 2, 1, 3]


def test_summary():
    info = Column([1, 2, 3], 'n').summary()
    assert info['mean'] == 2.0
    assert info['size'] == 3
    assert info['missing'] == 0

    info = Column(['a'], 's').summary()
    assert 'mean' not in info


def test_unique_and_to_row():
    col = Column([1, 1, NA, 2, NA], 'c')
    assert col.unique() == [1, NA, 2]
    row = col.to_row()
    assert row.name == 'c'
    assert row.tolist() == col.tolist()
