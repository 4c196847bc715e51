"""Generic decoded-record container."""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class Record:
    """One record decoded from an ordered field schema.

    Field order matches the wire order of the schema; `size` is the number
    of bytes the decode consumed, nested records included.
    """
    fields: dict[str, Any]
    offset: int      # absolute offset of the first byte
    size: int        # bytes consumed

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    @property
    def end(self) -> int:
        return self.offset + self.size
