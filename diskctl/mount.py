"""Mounting and unmounting of partitions on virtual disks."""

from __future__ import annotations

from contextlib import contextmanager
from typing import BinaryIO, Iterator, List, Optional, Union

from .disks import DiskError, DiskStore, is_drive_letter
from .storage import open_disk, read_struct, write_struct
from .structs import EBR, MBR, Partition

ID_SUFFIX = "04"
ID_WIDTH = 4
NAME_WIDTH = 16
LISTING_HEADER = "Listado de particiones montadas:"


def _name_key(name: str) -> bytes:
    return name.encode("utf-8")[:NAME_WIDTH]


@contextmanager
def _open(store: DiskStore, letter: str) -> Iterator[BinaryIO]:
    path = store.path_for(letter)
    try:
        handle = open_disk(path)
    except OSError as exc:
        raise DiskError(f"No se encontro el disco {path}: {exc}") from exc
    with handle:
        yield handle


def _read(handle: BinaryIO, cls, position: int):
    try:
        return read_struct(handle, cls, position)
    except (EOFError, OSError, ValueError) as exc:
        raise DiskError(f"Error al leer {cls.__name__} en {position}: {exc}") from exc


class MountRegistry:
    """Marks partitions as mounted and keeps a listing of what was mounted."""

    def __init__(self, store: DiskStore) -> None:
        self.store = store
        self._mounted: List[str] = []

    def mount(self, letter: str, name: str) -> Union[Partition, EBR]:
        """Mount the partition called ``name`` on disk ``letter``; return its record."""
        if not is_drive_letter(letter):
            raise DiskError("DriveLetter debe ser una letra")
        letter = letter.upper()
        with _open(self.store, letter) as handle:
            mbr = _read(handle, MBR, 0)
            mounted: Optional[Union[Partition, EBR]] = self._mount_primary(mbr, letter, name)
            if mounted is None:
                extended = [p for p in mbr.partitions if p.type == "e"]
                if extended:
                    mounted = self._mount_logical(handle, extended[-1].start, name)
            if mounted is None:
                raise DiskError("No se encontro la particion")
            write_struct(handle, mbr, 0)
        return mounted

    def _mount_primary(self, mbr: MBR, letter: str, name: str) -> Optional[Partition]:
        key = _name_key(name)
        target = next((p for p in mbr.partitions if _name_key(p.name) == key), None)
        if target is None:
            return None
        if target.type == "e":
            raise DiskError("No es se pudo montar la particion extendida")
        if target.status == "1":
            raise DiskError("La particion ya esta montada")
        target.status = "1"
        target.id = f"{letter}{target.correlative}{ID_SUFFIX}"[:ID_WIDTH]
        self._mounted.append(target.describe())
        return target

    def _mount_logical(self, handle: BinaryIO, start: int, name: str) -> Optional[EBR]:
        key = _name_key(name)
        found: Optional[EBR] = None
        position = start
        seen = set()
        while position >= 0 and position not in seen:
            seen.add(position)
            ebr = _read(handle, EBR, position)
            if ebr.size == 0:
                break
            if _name_key(ebr.name) == key:
                if ebr.mount == "1":
                    raise DiskError("La particion ya esta montada")
                ebr.mount = "1"
                write_struct(handle, ebr, position)
                self._mounted.append(ebr.describe())
                if found is None:
                    found = ebr
            position = ebr.next
        return found

    def unmount(self, partition_id: str) -> Optional[Partition]:
        """Mark the partition whose correlative the id names as unmounted.

        The correlative is the third character from the end of the id.
        Returns the partition changed, or None when no slot has that correlative.
        """
        if len(partition_id) < 3:
            raise DiskError(f"Id de partición invalido: {partition_id!r}")
        digit = partition_id[-3]
        if digit not in "0123456789":
            raise DiskError(f"Error al convertir la cadena a int32: {digit!r}")
        correlative = int(digit)
        with _open(self.store, partition_id[0].upper()) as handle:
            mbr = _read(handle, MBR, 0)
            target = next(
                (p for p in mbr.partitions if p.correlative == correlative), None
            )
            if target is not None:
                target.status = "0"
            write_struct(handle, mbr, 0)
        return target

    def listing(self) -> str:
        """Text listing every partition mounted through this registry."""
        return LISTING_HEADER + "\n" + "".join(f"{entry}\n" for entry in self._mounted)