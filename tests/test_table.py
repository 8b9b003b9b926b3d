import random

import pytest

from schemaframe.column import Column
from schemaframe.errors import (
    ConcurrentShapeError,
    DimensionMismatchError,
    SchemaMismatchError,
)
from schemaframe.row import Row
from schemaframe.sentinels import INF, NA, SortPolicy
from schemaframe.table import SubsetCondition, Table
from schemaframe.table.condition import eq, gt, lt


def assert_duality(table: Table):
    for col in table.columns:
        assert len(col) == table.nrow

    for row in table.rows:
        assert len(row) == table.ncol

    for j, row in enumerate(table.rows):
        for i, col in enumerate(table.columns):
            assert row[i] is col[j] or row[i] == col[j]

    assert len(table.schema) == table.ncol


def test_mean_excludes_missing(scores):
    assert scores.column('score').mean() == 2.25
    assert scores.schema == ['int', 'float']
    assert_duality(scores)


def test_add_row_schema_mismatch():
    table = Table(rows=[[1, 2], [3, 4]])
    assert table.schema == ['int', 'int']

    with pytest.raises(SchemaMismatchError):
        table.add_row([4, 'x'])

    assert table.shape == (2, 2)
    assert_duality(table)


def test_add_row_dimension_mismatch():
    table = Table(rows=[[1, 2]])
    with pytest.raises(DimensionMismatchError):
        table.add_row([1, 2, 3])


def test_first_row_synthesizes_columns():
    table = Table('t')
    table.add_row(Row([1, 'a'], 'first'))
    assert table.column_names() == ['V1', 'V2']
    assert table.row_names() == ['first']


def test_first_column_synthesizes_rows():
    table = Table()
    table.add_column(Column([1, 2, 3], 'x'))
    assert table.row_names() == ['1', '2', '3']
    assert table.row(1).tolist() == [2]

    with pytest.raises(DimensionMismatchError):
        table.add_column(Column([1, 2], 'y'))

    with pytest.raises(DimensionMismatchError):
        Table().add_column(Column())


def test_sentinel_positions_upgrade():
    table = Table(rows=[[1, NA]])
    assert table.schema == ['int', 'missing']

    table.add_row([2, 'b'])
    assert table.schema == ['int', 'str']

    with pytest.raises(SchemaMismatchError):
        table.add_row([3, 4.5])


def test_insert_row():
    table = Table(rows=[[1, 'a'], [3, 'c']])
    table.add_row(Row([2, 'b'], 'mid'), index=1)
    assert table.column('V1').tolist() == [1, 2, 3]
    assert table.row_names()[1] == 'mid'
    assert_duality(table)

    with pytest.raises(ConcurrentShapeError):
        table.add_row([9, 'z'], index=10)

    with pytest.raises(ConcurrentShapeError):
        Table().add_row([1], index=3)


def test_insert_column():
    table = Table(rows=[[1, 'a'], [2, 'b']])
    table.add_column(Column([0.5, 1.5], 'w'), index=1)
    assert table.column_names() == ['V1', 'w', 'V2']
    assert table.schema == ['int', 'float', 'str']
    assert table.row(0).tolist() == [1, 0.5, 'a']
    assert_duality(table)


def test_rows_and_columns_are_copied():
    col = Column([1, 2], 'x')
    table = Table(columns=[col])
    col.add(3)
    assert table.nrow == 2


def test_remove_last_clears():
    table = Table(rows=[[1, 'a']])
    table.remove_row(0)
    assert table.is_empty()
    assert len(table.schema) == 0

    table = Table(rows=[[1, 'a'], [2, 'b']])
    table.remove_column('V2')
    table.remove_column(0)
    assert table.is_empty()
    assert table.shape == (0, 0)


def test_remove_ranges():
    table = Table(rows=[[i, i * 2, str(i)] for i in range(6)])
    table.remove_row_range(1, 3)
    assert table.column('V1').tolist() == [0, 4, 5]

    table.remove_column_range(0, 2, inclusive=False)
    assert table.column_names() == ['V3']
    assert table.schema == ['str']
    assert_duality(table)

    with pytest.raises(IndexError):
        table.remove_row_range(2, 1)


def test_duality_random_ops():
    rng = random.Random(7)
    table = Table(rows=[[0, 'x', 0.0]])
    for i in range(200):
        op = rng.choice(('add_row', 'remove_row', 'add_column', 'remove_column'))
        match op:
            case 'add_row' if not table.is_empty():
                table.add_row([
                    rng.choice([NA, i]) if k == 'int'
                    else str(i) if k == 'str'
                    else float(i) if k == 'float'
                    else NA
                    for k in table.schema
                ])

            case 'remove_row' if table.nrow > 1:
                table.remove_row(rng.randrange(table.nrow))

            case 'add_column' if not table.is_empty():
                table.add_column(Column([i] * table.nrow, f'c{i}'))

            case 'remove_column' if table.ncol > 1:
                table.remove_column(rng.randrange(table.ncol))

        assert_duality(table)


def test_set_cell():
    table = Table(rows=[[1, NA], [2, NA]])
    table.set(0, 1, 'a')
    assert table.schema == ['int', 'str']
    assert table.get(0, 1) == 'a'
    assert table.column(1).tolist() == ['a', NA]

    with pytest.raises(SchemaMismatchError):
        table.set(1, 1, 5)

    with pytest.raises(SchemaMismatchError):
        table.set(1, 0, 'x')

    assert_duality(table)


def test_set_row_and_column():
    table = Table(rows=[[1, 'a'], [2, 'b']])
    old = table.set_row(1, [5, 'e'])
    assert old.tolist() == [2, 'b']
    assert table.column(0).tolist() == [1, 5]

    table.set_column(1, Column([1.5, 2.5], 'f'))
    assert table.schema == ['int', 'float']
    assert table.row(0).tolist() == [1, 1.5]
    assert_duality(table)

    with pytest.raises(DimensionMismatchError):
        table.set_column(0, [1])


def test_names():
    table = Table(rows=[[1, 2], [3, 4]])
    table.set_column_names(['a'])
    assert table.column_names() == ['a', 'V2']
    assert table.index_of_column('V2') == 1

    table.set_row_names(['x', 'y'])
    assert table.row('y').tolist() == [3, 4]

    with pytest.raises(ValueError):
        table.set_column_names(['a', 'b', 'c'])

    with pytest.raises(KeyError):
        table.column('missing')


def test_presized():
    table = Table(nrow=3, ncol=2)
    assert table.shape == (3, 2)
    assert table.count_missing() == 6
    assert table.schema == ['missing', 'missing']

    table.set(0, 0, 4)
    assert table.schema == ['int', 'missing']

    with pytest.raises(ValueError):
        Table(nrow=0, ncol=2)


def test_sort_reorders_rows(people):
    people.sort_ascending('V3')
    assert people.column('V2').tolist() == ['bob', 'carol', 'alice', 'dave']
    assert people.column('V3').tolist() == [NA, 29.5, 34.0, 41.0]
    assert people.row_names() == ['2', '3', '1', '4']
    assert_duality(people)

    people.sort_descending('V3')
    assert people.column('V1').tolist() == [4, 1, 3, 2]

    people.sort_ascending('V3', policy=SortPolicy(missing_high=True))
    assert people.column('V1').tolist() == [3, 1, 4, 2]


def test_sort_single_column():
    table = Table(columns=[Column([2, INF, 1], 'x')])
    table.sort_descending('x')
    assert table.column('x').tolist() == [INF, 2, 1]
    assert [r[0] for r in table.rows] == [INF, 2, 1]
    assert table.row_names() == ['2', '1', '3']


def test_subset_by_condition(people):
    sub = people.subset_by_condition('V3', gt(30.0))
    assert sub.name == 'people_subset'
    # missing cells are kept unless asked otherwise
    assert sub.column('V2').tolist() == ['alice', 'bob', 'dave']
    assert sub.row_names() == ['1', '2', '4']

    sub = people.subset_by_condition('V3', gt(30.0, drop_missing=True))
    assert sub.column('V2').tolist() == ['alice', 'dave']

    sub = people.subset_by_condition('V3', lt(30.0, negate=True))
    assert sub.column('V2').tolist() == ['alice', 'dave']

    sub = people.subset_by_condition('V2', eq('carol'))
    assert sub.shape == (1, 3)
    assert people.shape == (4, 3)


def test_subset_on_missing():
    table = Table(rows=[[1, NA], [2, 5], [3, NA]])
    sub = table.subset_by_condition(1, SubsetCondition('eq', NA))
    assert sub.column('V1').tolist() == [1, 3]

    sub = table.subset_by_condition(1, SubsetCondition('eq', NA, negate=True))
    assert sub.column('V1').tolist() == [2]

    with pytest.raises(ValueError):
        SubsetCondition('lt', NA)

    with pytest.raises(SchemaMismatchError):
        table.subset_by_condition(1, eq('x'))


def test_subset_copies_options(people):
    people.set_option('col.whitespace', 2)
    sub = people.subset_by_condition('V1', gt(1))
    assert sub.get_option('col.whitespace') == 2
    sub.set_option('col.whitespace', 8)
    assert people.get_option('col.whitespace') == 2


def test_transform_joins_kinds():
    table = Table(columns=[
        Column([1, 2], 'a'),
        Column(['3', '4.5'], 'b'),
        Column([NA, NA], 'c'),
    ])
    table.transform()
    assert table.schema == ['float', 'float', 'float']
    assert table.column('a').tolist() == [1.0, 2.0]
    assert table.column('b').tolist() == [3.0, 4.5]
    assert_duality(table)

    before = table.copy()
    table.transform()
    assert table == before


def test_transform_to_strings():
    table = Table(columns=[Column([1, 2], 'a'), Column(['x', NA], 'b')])
    table.transform()
    assert table.schema == ['str', 'str']
    assert table.row(0).tolist() == ['1', 'x']

    empty = Table()
    empty.transform()
    assert empty.is_empty()


def test_convert_to_numeric():
    table = Table(columns=[Column(['1', '2'], 'a'), Column(['x', 'y'], 'b')])
    assert not table.convert_to_numeric()
    assert table.schema == ['str', 'str']

    table.convert_column_to_numeric('a')
    assert table.schema == ['int', 'str']
    assert table.row(1).tolist() == [2, 'y']

    assert table.convert_to_character()
    assert table.schema == ['str', 'str']

    table.remove_column('b')
    assert table.convert_to_numeric()
    assert table.schema == ['int']


def test_convert_empty_table_to_character():
    table = Table('empty')
    assert not table.convert_to_character()
    assert not table.convert_to_numeric()
    assert table.is_empty()


def test_contents_passed_as_name():
    with pytest.raises(TypeError):
        Table([Column([1, 2], 'a')])

    with pytest.raises(TypeError):
        Table([[1, 2], [3, 4]])

    table = Table(columns=[Column([1, 2], 'a')])
    assert table.shape == (2, 1)
    assert table.name == 'New Table'


def test_complete_cases(people):
    cc = people.complete_cases()
    assert cc.nrow == 3
    assert not cc.contains_na()
    assert people.contains_na()
    assert people.count_missing() == 1


def test_dice(people):
    assert people.dice(0, 3, 0, 2) is people

    sub = people.dice(1, 2, 1, 2)
    assert sub.shape == (2, 2)
    assert sub.column_names() == ['V2', 'V3']
    assert sub.row(0).tolist() == ['bob', NA]

    with pytest.raises(IndexError):
        people.dice(0, 4, 0, 0)


def test_render_state():
    table = Table(rows=[[NA, 1]])
    table.add_row([2, 3])
    assert table.schema == ['int', 'int']
    assert table.row(0).schema == ['missing', 'int']

    table.render_state()
    assert table.row(0).schema == ['int', 'int']

    table.set(0, 0, 7)
    assert table.row(0).schema == ['int', 'int']


def test_options():
    table = Table()
    assert table.get_option('max.print') == 10_000
    assert 'col.whitespace' in table.option_keys()

    table.set_option('print.col.names', 0)
    assert table.options.print_col_names == 0

    with pytest.raises(KeyError):
        table.get_option('no.such.option')

    with pytest.raises(ValueError):
        table.set_option('default.head', 0)


def test_exception_log():
    table = Table()
    assert not table.has_exceptions()
    table.log_exception(ValueError('boom'))
    assert table.has_exceptions()
    assert table.copy().has_exceptions()


def test_emission(people):
    rows = list(people.text_rows())
    assert rows[1] == ['2', 'bob', 'NA']
    text = people.pretty_str(head=2)
    assert text.splitlines()[0] == 'people'
    assert 'alice' in text
    assert 'dave' not in text
    assert '2 more rows' in text
