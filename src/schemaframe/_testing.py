import random
from typing import Generator

from schemaframe.column import Column
from schemaframe.matrix import Matrix
from schemaframe.sentinels import NA
from schemaframe.table import Table


score_csv = '''id,name,score,grade
1,alice,1.5,A
2,bob,NA,B
3,carol,3.0,A
4,dave,,C
'''


def scores_table() -> Table:
    return Table(
        'scores',
        columns=[
            Column([1, 2, 3], 'id'),
            Column([1.5, NA, 3.0], 'score'),
        ]
    )


def people_table() -> Table:
    return Table(
        'people',
        rows=[
            [1, 'alice', 34.0],
            [2, 'bob', NA],
            [3, 'carol', 29.5],
            [4, 'dave', 41.0],
        ]
    )


def matrix_from_rows(rows: list[list[int | float]], name: str | None = None) -> Matrix:
    return Matrix(name, rows=rows)


def token_stream(
    n: int,
    *,
    na_every: int = 0,
    floats: bool = False,
    seed: int | None = None,
) -> Generator[str, None, None]:
    '''
    Numeric looking string tokens, optionally with an 'NA' every `na_every`
    tokens.

    '''
    rng = random.Random(seed)
    for i in range(n):
        if na_every and i % na_every == 0:
            yield 'NA'
            continue

        v = rng.randint(-1000, 1000)
        yield f'{v}.{rng.randint(0, 99)}' if floats else str(v)
