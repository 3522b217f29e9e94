"""Formatting of mounted partitions with the ext2 and ext3 layouts."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import BinaryIO, Iterator, Tuple

from .disks import TIME_FORMAT, DiskError, DiskStore
from .storage import open_disk, read_struct, write_struct
from .structs import (
    INODE_BLOCKS,
    MBR,
    Content,
    Fileblock,
    Folderblock,
    Inode,
    Journaling,
    Partition,
    Superblock,
)

MAGIC = 0xEF53
USERS_FILE = "1,G,root\n1,U,root,root,123\n"
JOURNAL_CAPACITY = 50
FILESYSTEMS = ("2fs", "3fs")


@contextmanager
def _open(store: DiskStore, letter: str) -> Iterator[BinaryIO]:
    path = store.path_for(letter)
    try:
        handle = open_disk(path)
    except OSError as exc:
        raise DiskError(f"No se encontro el disco {path}: {exc}") from exc
    with handle:
        yield handle


def structure_count(partition_size: int, fs: str) -> int:
    """Number of inodes that fit in a partition; there are three blocks per inode."""
    numerator = partition_size - Superblock.SIZE
    denominator = 4 + Inode.SIZE + 3 * Fileblock.SIZE
    if fs != "2fs":
        denominator += Journaling.SIZE
    quotient = abs(numerator) // denominator
    return quotient if numerator >= 0 else -quotient


def format_partition(
    store: DiskStore, partition_id: str, type_: str = "full", fs: str = "2fs"
) -> Superblock:
    """Format the mounted partition with the given id; return the superblock written."""
    if not partition_id:
        raise DiskError("la identificación no puede estar vacía")
    if fs not in FILESYSTEMS:
        raise DiskError("fs debe ser 2fs o 3fs")

    with _open(store, partition_id[0].upper()) as handle:
        try:
            mbr = read_struct(handle, MBR, 0)
        except EOFError as exc:
            raise DiskError(f"Error al leer el MBR: {exc}") from exc

        partition = next(
            (p for p in mbr.partitions if p.size != 0 and partition_id in p.id), None
        )
        if partition is None:
            raise DiskError("Particion no encontrada")
        if "1" not in partition.status:
            raise DiskError("Partición no montada")

        n = structure_count(partition.size, fs)
        date = datetime.now().strftime(TIME_FORMAT)
        superblock = Superblock(
            free_blocks_count=3 * n,
            free_inodes_count=n,
            mtime=date,
            umtime=date,
            mnt_count=0,
        )
        if fs == "2fs":
            _create_ext2(handle, n, partition, superblock, date)
        else:
            _create_ext3(handle, n, partition, superblock, date)
        return read_struct(handle, Superblock, partition.start)


def _layout(superblock: Superblock, partition: Partition, n: int) -> None:
    superblock.bm_inode_start = partition.start + Superblock.SIZE
    superblock.bm_block_start = superblock.bm_inode_start + n
    superblock.inode_start = superblock.bm_block_start + 3 * n
    superblock.block_start = superblock.inode_start + n * Inode.SIZE
    # Two inodes and two blocks are taken by the root folder and users.txt.
    superblock.free_inodes_count -= 2
    superblock.free_blocks_count -= 2


def _write_blank(handle: BinaryIO, superblock: Superblock, n: int) -> None:
    count = max(n, 0)
    write_struct(handle, bytes(count), superblock.bm_inode_start)
    write_struct(handle, bytes(3 * count), superblock.bm_block_start)
    blank_inode = Inode(blocks=[-1] * INODE_BLOCKS).pack()
    write_struct(handle, blank_inode * count, superblock.inode_start)
    write_struct(handle, bytes(3 * count * Fileblock.SIZE), superblock.block_start)


def _root_records(date: str) -> Tuple[Inode, Inode, Folderblock, Fileblock]:
    def inode(first_block: int, size: int) -> Inode:
        blocks = [-1] * INODE_BLOCKS
        blocks[0] = first_block
        return Inode(
            uid=1, gid=1, size=size, atime=date, ctime=date, mtime=date,
            blocks=blocks, type="1", perm="664",
        )

    root = inode(0, 0)
    users = inode(1, Folderblock.SIZE)
    folder = Folderblock(
        [Content(".", 0), Content("..", 0), Content("users.txt", 1), Content()]
    )
    data = Fileblock(USERS_FILE.encode("utf-8"))
    return root, users, folder, data


def _write_root(handle: BinaryIO, superblock: Superblock, date: str) -> None:
    root, users, folder, data = _root_records(date)
    write_struct(handle, b"\x01\x01", superblock.bm_inode_start)
    write_struct(handle, b"\x01\x01", superblock.bm_block_start)
    write_struct(handle, root, superblock.inode_start)
    write_struct(handle, users, superblock.inode_start + Inode.SIZE)
    write_struct(handle, folder, superblock.block_start)
    write_struct(handle, data, superblock.block_start + Fileblock.SIZE)


def _create_ext2(
    handle: BinaryIO, n: int, partition: Partition, superblock: Superblock, date: str
) -> None:
    superblock.filesystem_type = 2
    _layout(superblock, partition, n)
    superblock.magic = MAGIC
    superblock.mnt_count = 1
    superblock.inode_size = Inode.SIZE
    superblock.block_size = Folderblock.SIZE
    _write_blank(handle, superblock, n)
    superblock.inodes_count = 2
    superblock.blocks_count = 1
    superblock.first_ino = 0
    superblock.first_blo = 1
    write_struct(handle, superblock, partition.start)
    _write_root(handle, superblock, date)


def _create_ext3(
    handle: BinaryIO, n: int, partition: Partition, superblock: Superblock, date: str
) -> None:
    superblock.filesystem_type = 3
    _layout(superblock, partition, n)
    _write_blank(handle, superblock, n)
    write_struct(handle, superblock, partition.start)
    journal = Journaling(size=JOURNAL_CAPACITY, last=-1)
    write_struct(handle, journal, superblock.block_start + 3 * n * Fileblock.SIZE)
    _write_root(handle, superblock, date)