"""On-disk records of the virtual disk format, packed little-endian without padding."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar, List

PARTITION_SLOTS = 4
INODE_BLOCKS = 15
FOLDER_ENTRIES = 4
POINTERS_PER_BLOCK = 16
JOURNAL_ENTRIES = 50


def _fixed(text: str, size: int) -> bytes:
    """Encode text into a fixed-width field, truncating or NUL-padding it."""
    return text.encode("utf-8")[:size].ljust(size, b"\x00")


def _text(raw: bytes) -> str:
    """Decode a fixed-width field, dropping its trailing NUL padding."""
    return raw.rstrip(b"\x00").decode("utf-8", errors="replace")


def _require(data: bytes, size: int, name: str) -> None:
    if len(data) < size:
        raise ValueError(f"{name} needs {size} bytes, got {len(data)}")


@dataclass
class Partition:
    """A primary or extended partition slot of the MBR."""

    status: str = ""
    type: str = ""
    fit: str = ""
    start: int = 0
    size: int = 0
    name: str = ""
    correlative: int = 0
    id: str = ""

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<1s1s1sii16si4s")
    SIZE: ClassVar[int] = _FORMAT.size

    def pack(self) -> bytes:
        return self._FORMAT.pack(
            _fixed(self.status, 1),
            _fixed(self.type, 1),
            _fixed(self.fit, 1),
            self.start,
            self.size,
            _fixed(self.name, 16),
            self.correlative,
            _fixed(self.id, 4),
        )

    @classmethod
    def unpack(cls, data: bytes) -> "Partition":
        _require(data, cls.SIZE, cls.__name__)
        status, type_, fit, start, size, name, corr, ident = cls._FORMAT.unpack_from(data)
        return cls(
            _text(status), _text(type_), _text(fit), start, size, _text(name), corr, _text(ident)
        )

    def describe(self) -> str:
        return (
            f"Nombre: {self.name}, Tipo: {self.type}, Inicio: {self.start}, "
            f"Tamaño: {self.size}, Estado: {self.status}, Id: {self.id}"
        )


@dataclass
class MBR:
    """Master boot record at offset 0 of every disk."""

    size: int = 0
    created: str = ""
    signature: int = 0
    fit: str = ""
    partitions: List[Partition] = field(
        default_factory=lambda: [Partition() for _ in range(PARTITION_SLOTS)]
    )

    _HEADER: ClassVar[struct.Struct] = struct.Struct("<i10si1s")
    SIZE: ClassVar[int] = _HEADER.size + PARTITION_SLOTS * Partition.SIZE

    def pack(self) -> bytes:
        if len(self.partitions) != PARTITION_SLOTS:
            raise ValueError(f"an MBR holds exactly {PARTITION_SLOTS} partitions")
        header = self._HEADER.pack(
            self.size, _fixed(self.created, 10), self.signature, _fixed(self.fit, 1)
        )
        return header + b"".join(p.pack() for p in self.partitions)

    @classmethod
    def unpack(cls, data: bytes) -> "MBR":
        _require(data, cls.SIZE, cls.__name__)
        size, created, signature, fit = cls._HEADER.unpack_from(data)
        offsets = range(cls._HEADER.size, cls.SIZE, Partition.SIZE)
        partitions = [Partition.unpack(data[o : o + Partition.SIZE]) for o in offsets]
        return cls(size, _text(created), signature, _text(fit), partitions)

    def describe(self) -> str:
        lines = [f"Data: {self.created}, fit: {self.fit}, size: {self.size}"]
        lines.extend(
            f"Partición {i}, Nombre: {p.name}, Tipo: {p.type}, Inicio: {p.start}, "
            f"Tamaño: {p.size} Estado {p.status} Correlativo {p.correlative} ID {p.id}"
            for i, p in enumerate(self.partitions)
        )
        return "\n".join(lines)


@dataclass
class EBR:
    """Extended boot record heading each logical partition."""

    mount: str = ""
    fit: str = ""
    start: int = 0
    size: int = 0
    next: int = 0
    name: str = ""

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<1s1siii16s")
    SIZE: ClassVar[int] = _FORMAT.size

    def pack(self) -> bytes:
        return self._FORMAT.pack(
            _fixed(self.mount, 1),
            _fixed(self.fit, 1),
            self.start,
            self.size,
            self.next,
            _fixed(self.name, 16),
        )

    @classmethod
    def unpack(cls, data: bytes) -> "EBR":
        _require(data, cls.SIZE, cls.__name__)
        mount, fit, start, size, nxt, name = cls._FORMAT.unpack_from(data)
        return cls(_text(mount), _text(fit), start, size, nxt, _text(name))

    def describe(self) -> str:
        return (
            f"MOUNT: {self.mount} Fit: {self.fit} Inicio: {self.start} "
            f"Tamaño: {self.size} Siguiente: {self.next} Nombre: {self.name}"
        )


@dataclass
class Superblock:
    """Superblock written at the start of a formatted partition."""

    filesystem_type: int = 0
    inodes_count: int = 0
    blocks_count: int = 0
    free_blocks_count: int = 0
    free_inodes_count: int = 0
    mtime: str = ""
    umtime: str = ""
    mnt_count: int = 0
    magic: int = 0
    inode_size: int = 0
    block_size: int = 0
    first_ino: int = 0
    first_blo: int = 0
    bm_inode_start: int = 0
    bm_block_start: int = 0
    inode_start: int = 0
    block_start: int = 0

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<5i17s17s10i")
    SIZE: ClassVar[int] = _FORMAT.size

    def pack(self) -> bytes:
        return self._FORMAT.pack(
            self.filesystem_type,
            self.inodes_count,
            self.blocks_count,
            self.free_blocks_count,
            self.free_inodes_count,
            _fixed(self.mtime, 17),
            _fixed(self.umtime, 17),
            self.mnt_count,
            self.magic,
            self.inode_size,
            self.block_size,
            self.first_ino,
            self.first_blo,
            self.bm_inode_start,
            self.bm_block_start,
            self.inode_start,
            self.block_start,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "Superblock":
        _require(data, cls.SIZE, cls.__name__)
        values = list(cls._FORMAT.unpack_from(data))
        values[5] = _text(values[5])
        values[6] = _text(values[6])
        return cls(*values)


@dataclass
class Inode:
    """Index node describing a file or folder."""

    uid: int = 0
    gid: int = 0
    size: int = 0
    atime: str = ""
    ctime: str = ""
    mtime: str = ""
    blocks: List[int] = field(default_factory=lambda: [0] * INODE_BLOCKS)
    type: str = ""
    perm: str = ""

    _FORMAT: ClassVar[struct.Struct] = struct.Struct(f"<3i17s17s17s{INODE_BLOCKS}i1s3s")
    SIZE: ClassVar[int] = _FORMAT.size

    def pack(self) -> bytes:
        if len(self.blocks) != INODE_BLOCKS:
            raise ValueError(f"an inode holds exactly {INODE_BLOCKS} block pointers")
        return self._FORMAT.pack(
            self.uid,
            self.gid,
            self.size,
            _fixed(self.atime, 17),
            _fixed(self.ctime, 17),
            _fixed(self.mtime, 17),
            *self.blocks,
            _fixed(self.type, 1),
            _fixed(self.perm, 3),
        )

    @classmethod
    def unpack(cls, data: bytes) -> "Inode":
        _require(data, cls.SIZE, cls.__name__)
        values = cls._FORMAT.unpack_from(data)
        uid, gid, size, atime, ctime, mtime = values[:6]
        blocks = list(values[6 : 6 + INODE_BLOCKS])
        type_, perm = values[6 + INODE_BLOCKS :]
        return cls(
            uid, gid, size, _text(atime), _text(ctime), _text(mtime), blocks, _text(type_), _text(perm)
        )


@dataclass
class Fileblock:
    """Data block holding raw file content."""

    content: bytes = b""

    SIZE: ClassVar[int] = 64

    def pack(self) -> bytes:
        return bytes(self.content[: self.SIZE]).ljust(self.SIZE, b"\x00")

    @classmethod
    def unpack(cls, data: bytes) -> "Fileblock":
        _require(data, cls.SIZE, cls.__name__)
        return cls(bytes(data[: cls.SIZE]))


@dataclass
class Content:
    """One name-to-inode entry of a folder block."""

    name: str = ""
    inode: int = 0

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<12si")
    SIZE: ClassVar[int] = _FORMAT.size

    def pack(self) -> bytes:
        return self._FORMAT.pack(_fixed(self.name, 12), self.inode)

    @classmethod
    def unpack(cls, data: bytes) -> "Content":
        _require(data, cls.SIZE, cls.__name__)
        name, inode = cls._FORMAT.unpack_from(data)
        return cls(_text(name), inode)


@dataclass
class Folderblock:
    """Directory block of four entries."""

    entries: List[Content] = field(
        default_factory=lambda: [Content() for _ in range(FOLDER_ENTRIES)]
    )

    SIZE: ClassVar[int] = FOLDER_ENTRIES * Content.SIZE

    def pack(self) -> bytes:
        if len(self.entries) != FOLDER_ENTRIES:
            raise ValueError(f"a folder block holds exactly {FOLDER_ENTRIES} entries")
        return b"".join(entry.pack() for entry in self.entries)

    @classmethod
    def unpack(cls, data: bytes) -> "Folderblock":
        _require(data, cls.SIZE, cls.__name__)
        offsets = range(0, cls.SIZE, Content.SIZE)
        return cls([Content.unpack(data[o : o + Content.SIZE]) for o in offsets])


@dataclass
class Pointerblock:
    """Indirect block of sixteen block pointers."""

    pointers: List[int] = field(default_factory=lambda: [0] * POINTERS_PER_BLOCK)

    _FORMAT: ClassVar[struct.Struct] = struct.Struct(f"<{POINTERS_PER_BLOCK}i")
    SIZE: ClassVar[int] = _FORMAT.size

    def pack(self) -> bytes:
        if len(self.pointers) != POINTERS_PER_BLOCK:
            raise ValueError(f"a pointer block holds exactly {POINTERS_PER_BLOCK} pointers")
        return self._FORMAT.pack(*self.pointers)

    @classmethod
    def unpack(cls, data: bytes) -> "Pointerblock":
        _require(data, cls.SIZE, cls.__name__)
        return cls(list(cls._FORMAT.unpack_from(data)))


@dataclass
class JournalEntry:
    """One recorded filesystem operation."""

    operation: str = ""
    path: str = ""
    content: str = ""
    date: str = ""

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<10s100s100s17s")
    SIZE: ClassVar[int] = _FORMAT.size

    def pack(self) -> bytes:
        return self._FORMAT.pack(
            _fixed(self.operation, 10),
            _fixed(self.path, 100),
            _fixed(self.content, 100),
            _fixed(self.date, 17),
        )

    @classmethod
    def unpack(cls, data: bytes) -> "JournalEntry":
        _require(data, cls.SIZE, cls.__name__)
        return cls(*(_text(raw) for raw in cls._FORMAT.unpack_from(data)))


@dataclass
class Journaling:
    """Journal area of an ext3-formatted partition."""

    size: int = 0
    last: int = 0
    entries: List[JournalEntry] = field(
        default_factory=lambda: [JournalEntry() for _ in range(JOURNAL_ENTRIES)]
    )

    _HEADER: ClassVar[struct.Struct] = struct.Struct("<ii")
    SIZE: ClassVar[int] = _HEADER.size + JOURNAL_ENTRIES * JournalEntry.SIZE

    def pack(self) -> bytes:
        if len(self.entries) != JOURNAL_ENTRIES:
            raise ValueError(f"a journal holds exactly {JOURNAL_ENTRIES} entries")
        return self._HEADER.pack(self.size, self.last) + b"".join(e.pack() for e in self.entries)

    @classmethod
    def unpack(cls, data: bytes) -> "Journaling":
        _require(data, cls.SIZE, cls.__name__)
        size, last = cls._HEADER.unpack_from(data)
        offsets = range(cls._HEADER.size, cls.SIZE, JournalEntry.SIZE)
        entries = [JournalEntry.unpack(data[o : o + JournalEntry.SIZE]) for o in offsets]
        return cls(size, last, entries)


@dataclass
class UserInfo:
    """The user of the current session."""

    id: str = ""
    name: str = ""

    def describe(self) -> str:
        return f"ID: {self.id}\nNombre: {self.name}"