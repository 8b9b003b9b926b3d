from __future__ import annotations

import msgspec

from schemaframe.structs import Struct


# options that behave as on/off switches, everything else is a count
flag_options: tuple[str, ...] = ('print_col_names', 'print_table_name')


class TableOptions(Struct):
    '''
    Per table display and sizing knobs.

    Fields can also be addressed by their dotted names, `'max.print'` is
    `max_print`.

    '''
    max_print: int = 10_000  # cells printed before output is cut off
    col_whitespace: int = 4  # spaces between printed columns
    default_head: int = 6  # rows shown by `Table.pretty_str()`
    default_num_rows: int = 25
    default_num_cols: int = 10
    print_col_names: int = 1
    print_table_name: int = 1

    @staticmethod
    def field_for(name: str) -> str:
        field = name.replace('.', '_')
        if field not in TableOptions.__struct_fields__:
            raise KeyError(f'Unknown table option {name!r}')

        return field

    @staticmethod
    def keys() -> list[str]:
        return [f.replace('_', '.') for f in TableOptions.__struct_fields__]

    def get(self, name: str) -> int:
        return getattr(self, self.field_for(name))

    def set(self, name: str, value: int) -> None:
        field = self.field_for(name)
        value = int(value)
        if field in flag_options:
            if value < 0:
                raise ValueError(f'Option {name!r} must be >= 0, got {value}')

        elif value < 1:
            raise ValueError(f'Option {name!r} must be >= 1, got {value}')

        setattr(self, field, value)

    def copy(self) -> TableOptions:
        return msgspec.structs.replace(self)
