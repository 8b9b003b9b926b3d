'''
Error hierarchy, every error derives from `SchemaFrameError` and from the
closest builtin so callers can catch either one.

'''


class SchemaFrameError(Exception): ...


class SchemaMismatchError(SchemaFrameError, TypeError):
    '''
    A row, column or cell write violates the established kind of its
    position.

    '''


class DimensionMismatchError(SchemaFrameError, ValueError):
    '''
    Row length != column count, column length != row count, or two vectors
    combined with unequal length.

    '''


class MissingValueError(SchemaFrameError, ValueError):
    '''
    An arithmetic or statistical operation found nothing left after dropping
    sentinel cells.

    '''


class MatrixViabilityError(SchemaFrameError, ValueError):
    '''
    A numeric-only container got non numeric content, or a matrix operation
    precondition failed.

    '''


class InfinityError(SchemaFrameError, ValueError): ...


class ConversionError(SchemaFrameError, ValueError): ...


class ConcurrentShapeError(SchemaFrameError, RuntimeError):
    '''
    An insert at a position that would require fabricating sentinel filled
    rows or columns.

    '''
