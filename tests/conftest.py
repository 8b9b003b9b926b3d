import pytest

from schemaframe._testing import people_table, scores_table
from schemaframe.column import Column


@pytest.fixture
def scores():
    return scores_table()


@pytest.fixture
def people():
    return people_table()


@pytest.fixture
def int_col():
    return Column([3, 1, 2], 'ints')
