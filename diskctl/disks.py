"""Creation, removal and partitioning of virtual disk images."""

from __future__ import annotations

import os
import random
import re
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, List, Optional, Union

from .storage import create_file, open_disk, read_struct, write_struct, zero_range
from .structs import EBR, MBR, Partition

LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
NAME_WIDTH = 16

_DRIVE_LETTER = re.compile(r"[a-zA-Z]")
_FITS = ("b", "f", "w")
_DISK_UNITS = ("k", "m")
_PARTITION_UNITS = ("b", "k", "m")
_PARTITION_TYPES = ("p", "e", "l")


class DiskError(Exception):
    """Raised when a disk operation cannot be carried out."""


def is_drive_letter(text: str) -> bool:
    """Whether ``text`` is exactly one ASCII letter."""
    return _DRIVE_LETTER.fullmatch(text) is not None


def generate_signature() -> int:
    """A pseudo-random disk signature in ``[0, 2**31)`` derived from the clock."""
    product = time.time_ns() * random.randrange(10000)
    # The product wraps like a signed 64-bit integer before the remainder is taken.
    product = (product + 2**63) % 2**64 - 2**63
    return abs(product) % (1 << 31)


def _scale(value: int, unit: str) -> int:
    if unit == "k":
        return value * 1024
    if unit == "m":
        return value * 1024 * 1024
    return value


def _name_key(name: str) -> bytes:
    return name.encode("utf-8")[:NAME_WIDTH]


def _same_name(stored: str, wanted: str) -> bool:
    return _name_key(stored) == _name_key(wanted)


class DiskStore:
    """A directory of disk images named by drive letter."""

    def __init__(self, directory: Union[str, os.PathLike]) -> None:
        self.directory = Path(directory)
        self.counter = 0

    def path_for(self, letter: str) -> Path:
        """Path of the image for the given drive letter."""
        return self.directory / f"{letter.upper()}.dsk"

    @contextmanager
    def _open(self, letter: str) -> Iterator[BinaryIO]:
        path = self.path_for(letter)
        try:
            handle = open_disk(path)
        except OSError as exc:
            raise DiskError(f"No se encontro el disco {path}: {exc}") from exc
        with handle:
            yield handle

    @staticmethod
    def _read_mbr(handle: BinaryIO) -> MBR:
        try:
            return read_struct(handle, MBR, 0)
        except EOFError as exc:
            raise DiskError(f"Error al leer el MBR: {exc}") from exc

    @staticmethod
    def _read_ebr(handle: BinaryIO, position: int) -> EBR:
        try:
            return read_struct(handle, EBR, position)
        except (EOFError, OSError, ValueError) as exc:
            raise DiskError(f"Error al leer el EBR en {position}: {exc}") from exc

    def create_disk(self, size: int, fit: str = "f", unit: str = "m") -> Path:
        """Create the next lettered disk of ``size`` units, zero-filled, with a fresh MBR."""
        if size <= 0:
            raise DiskError("El tamaño debe ser mayor que 0")
        if fit not in _FITS:
            raise DiskError("El ajuste debe ser (bf/ff/wf)")
        if unit not in _DISK_UNITS:
            raise DiskError("La unidad debe ser kilobytes o megabytes (k/m)")
        if not 0 <= self.counter < len(LETTERS):
            raise DiskError("No quedan letras disponibles para crear discos")

        letter = LETTERS[self.counter]
        total = _scale(size, unit)
        path = create_file(self.path_for(letter))
        mbr = MBR(
            size=total,
            created=datetime.now().strftime(TIME_FORMAT),
            signature=generate_signature(),
            fit=fit,
        )
        with open_disk(path) as handle:
            write_struct(handle, bytes(total), 0)
            write_struct(handle, mbr, 0)
        self.counter += 1
        return path

    def remove_disk(
        self, letter: str, confirm: Optional[Callable[[str], bool]] = None
    ) -> bool:
        """Delete a disk image, asking ``confirm`` first; return whether it was removed."""
        if not is_drive_letter(letter):
            raise DiskError("DriveLetter debe ser una letra")
        path = self.path_for(letter)
        if not path.exists():
            raise DiskError(f"El archivo {path} no existe.")
        if confirm is not None and not confirm(f"Eliminar:{letter.upper()}.dsk? (y/n)"):
            return False
        try:
            path.unlink()
        except OSError as exc:
            raise DiskError(f"Error al eliminar el archivo: {exc}") from exc
        self.counter -= 1
        return True

    def read_mbr(self, letter: str) -> MBR:
        """Read the MBR of the disk with the given letter."""
        with self._open(letter) as handle:
            return self._read_mbr(handle)

    def fdisk(
        self,
        size: int,
        letter: str,
        name: str,
        unit: str = "k",
        type_: str = "p",
        fit: str = "w",
        delete: str = "",
        add: int = 0,
    ) -> MBR:
        """Create, delete or resize a partition; return the MBR as stored afterwards."""
        self._validate(size, letter, name, unit, type_, fit, delete, add)
        size = _scale(size, unit)
        add = _scale(add, unit)
        path = self.path_for(letter)

        with self._open(letter) as handle:
            mbr = self._read_mbr(handle)
            if not delete and add == 0 and any(
                _same_name(p.name, name) for p in mbr.partitions
            ):
                raise DiskError("El nombre de la partición ya está en uso!")

            extended = [p for p in mbr.partitions if p.type == "e"]
            ext = extended[-1] if extended else None

            if delete == "full":
                self._delete(handle, path, mbr, name, ext)
            elif add != 0:
                self._resize(mbr, name, add)
            else:
                self._fill_slot(mbr, size, name, type_, fit)
                if ext is not None and type_ == "l":
                    self._add_logical(
                        handle, ext.start, ext.start + ext.size, size, name, fit
                    )
                    return self._read_mbr(handle)
                if ext is not None and sum(p.type == "e" for p in mbr.partitions) > 1:
                    raise DiskError(
                        "No se puede tener mas de 1 particion extendida por disco!"
                    )

            write_struct(handle, mbr, 0)
            return mbr

    @staticmethod
    def _validate(
        size: int,
        letter: str,
        name: str,
        unit: str,
        type_: str,
        fit: str,
        delete: str,
        add: int,
    ) -> None:
        if size <= 0 and delete != "full" and add == 0:
            raise DiskError("El tamaño debe ser mayor que 0.")
        if not is_drive_letter(letter):
            raise DiskError("DriveLetter debe ser una letra")
        if fit not in _FITS:
            raise DiskError("El ajuste debe ser (BF/FF/WF)")
        if unit not in _PARTITION_UNITS:
            raise DiskError("La unidad debe ser (B/K/M)")
        if type_ not in _PARTITION_TYPES and delete != "full" and add == 0:
            raise DiskError("El tipo debe ser (P/E/L)")
        if delete:
            if delete != "full":
                raise DiskError("Eliminar debe estar lleno")
            if not name:
                raise DiskError("Se necesita el nombre para eliminar")

    def _delete(
        self,
        handle: BinaryIO,
        path: Path,
        mbr: MBR,
        name: str,
        ext: Optional[Partition],
    ) -> None:
        # Deleting releases the correlative; the slot keeps its other fields.
        match = next((p for p in mbr.partitions if _same_name(p.name, name)), None)
        if match is not None and match.type in ("p", "e"):
            if match.type == "e":
                try:
                    zero_range(path, match.start, match.start + match.size)
                except ValueError:
                    pass
            match.correlative = 0
            return

        if ext is not None:
            position = ext.start
            while position >= 0:
                ebr = self._read_ebr(handle, position)
                if ebr.size == 0:
                    break
                if _same_name(ebr.name, name):
                    ebr.mount = "0"
                    ebr.size = 0
                    write_struct(handle, ebr, position)
                    return
                position = ebr.next
        raise DiskError("No se encontro la partición.")

    @staticmethod
    def _resize(mbr: MBR, name: str, add: int) -> None:
        partitions: List[Partition] = mbr.partitions
        for i, part in enumerate(partitions):
            if not _same_name(part.name, name):
                continue
            if part.size + add < 0:
                raise DiskError("El espacio de la partición no puede ser negativo")
            if i < len(partitions) - 1:
                following = partitions[i + 1]
                if following.start < part.start + part.size + add and following.start != 0:
                    raise DiskError(
                        "Al añadir espacio, se sobrepasa el start de la siguiente partición"
                    )
            part.size += add
            if part.size > mbr.size:
                raise DiskError("Supera el tamaño del disco")
            return

    @staticmethod
    def _fill_slot(mbr: MBR, size: int, name: str, type_: str, fit: str) -> None:
        used = [p for p in mbr.partitions if p.size != 0]
        free = next((p for p in mbr.partitions if p.size == 0), None)
        if free is None:
            return
        free.size = size
        free.start = used[-1].start + used[-1].size if used else MBR.SIZE
        if size + MBR.SIZE > mbr.size:
            raise DiskError("La particion excede el tamaño del disco.")
        free.name = name
        free.fit = fit
        free.status = "0"
        free.type = type_
        free.correlative = len(used) + 1

    def _add_logical(
        self,
        handle: BinaryIO,
        start: int,
        limit: int,
        size: int,
        name: str,
        fit: str,
    ) -> EBR:
        position = start
        while True:
            current = self._read_ebr(handle, position)
            if current.size != 0:
                rewritten = EBR(
                    mount="0",
                    fit=fit,
                    start=position + 1,
                    size=current.size,
                    next=position + current.size,
                    name=current.name,
                )
                write_struct(handle, rewritten, position)
                position += current.size
                continue
            new = EBR(mount="0", fit=fit, start=position + 1, size=size, next=-1, name=name)
            write_struct(handle, new, position)
            if new.start + new.size > limit:
                raise DiskError(
                    "La particion logica supera el tamaño de la particion extendida"
                )
            return new