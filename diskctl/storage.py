"""Low-level file access for virtual disk images."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO, Type, TypeVar, Union

T = TypeVar("T")


def create_file(path: Union[str, os.PathLike]) -> Path:
    """Create the file and its parent directories; an existing file is left untouched."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.touch(exist_ok=True)
    return target


def open_disk(path: Union[str, os.PathLike]) -> BinaryIO:
    """Open an existing disk image for reading and writing."""
    return open(path, "r+b")


def write_struct(handle: BinaryIO, obj, position: int) -> None:
    """Write a record (anything with ``pack``) or raw bytes at the given offset."""
    data = obj.pack() if hasattr(obj, "pack") else bytes(obj)
    handle.seek(position)
    handle.write(data)


def read_struct(handle: BinaryIO, cls: Type[T], position: int) -> T:
    """Read a record of type ``cls`` from the given offset."""
    handle.seek(position)
    data = handle.read(cls.SIZE)
    if len(data) < cls.SIZE:
        raise EOFError(
            f"unexpected end of file reading {cls.__name__} at offset {position}"
        )
    return cls.unpack(data)


def zero_range(path: Union[str, os.PathLike], start: int, end: int) -> None:
    """Overwrite the bytes from ``start`` to ``end`` inclusive with zeros."""
    with open_disk(path) as handle:
        file_size = os.fstat(handle.fileno()).st_size
        if start >= file_size or end >= file_size or start > end:
            raise ValueError(
                f"posición final o inicial, invalida. Tamaño: {file_size}"
            )
        handle.seek(start)
        handle.write(bytes(end - start + 1))


def percentage(part_size: int, disk_size: int) -> int:
    """Share of the disk taken by a partition, as a whole percent truncated toward zero."""
    scaled = part_size * 100
    quotient = abs(scaled) // abs(disk_size)
    return quotient if (scaled >= 0) == (disk_size > 0) else -quotient