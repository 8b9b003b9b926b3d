import json
from typing import Any, Self

import msgspec


class _Struct:
    @classmethod
    def from_other(cls, other: Self, **kwargs) -> Self:
        params = other.to_dict()
        params.update(kwargs)
        return cls.convert(params)

    @classmethod
    def from_json(cls, s: str | bytes) -> Self:
        return msgspec.json.decode(s, type=cls)

    @classmethod
    def from_bytes(cls, raw: bytes) -> Self:
        return msgspec.msgpack.decode(raw, type=cls)

    def encode(self) -> bytes:
        return msgspec.msgpack.encode(self)

    @classmethod
    def convert(cls, obj: Any) -> Self:
        return msgspec.convert(obj, type=cls)

    def to_dict(self) -> dict:
        return msgspec.to_builtins(self)

    def to_json(self, **kwargs) -> str:
        '''
        Pretty printable json, `kwargs` are forwarded to `json.dumps`.

        '''
        if not kwargs:
            return msgspec.json.encode(self).decode()

        return json.dumps(self.to_dict(), **kwargs)


class Struct(msgspec.Struct, _Struct): ...


class FrozenStruct(msgspec.Struct, _Struct, frozen=True): ...
