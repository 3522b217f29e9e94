import pytest

from diskctl.disks import DiskError, DiskStore
from diskctl.filesystem import (
    MAGIC,
    USERS_FILE,
    format_partition,
    structure_count,
)
from diskctl.mount import MountRegistry
from diskctl.storage import open_disk, read_struct
from diskctl.structs import (
    Fileblock,
    Folderblock,
    Inode,
    Journaling,
    Superblock,
)


@pytest.fixture
def store(tmp_path):
    store = DiskStore(tmp_path)
    store.create_disk(1, "f", "m")
    store.fdisk(100, "A", "part1", "k", "p", "w")
    return store


@pytest.fixture
def mounted(store):
    partition = MountRegistry(store).mount("A", "part1")
    return store, partition


def test_structure_count_bounds():
    per_inode = 4 + Inode.SIZE + 3 * Fileblock.SIZE
    assert structure_count(Superblock.SIZE, "2fs") == 0
    assert structure_count(Superblock.SIZE + 10 * per_inode, "2fs") == 10
    assert structure_count(Superblock.SIZE + 10 * per_inode - 1, "2fs") == 9


def test_structure_count_journal_reduces():
    size = 100 * 1024
    assert structure_count(size, "3fs") < structure_count(size, "2fs")
    with_journal = 4 + Inode.SIZE + 3 * Fileblock.SIZE + Journaling.SIZE
    assert structure_count(Superblock.SIZE + 3 * with_journal, "3fs") == 3


def test_format_ext2_superblock(mounted):
    store, partition = mounted
    sb = format_partition(store, "A104", "full", "2fs")
    n = structure_count(partition.size, "2fs")
    assert sb.filesystem_type == 2
    assert sb.magic == MAGIC
    assert sb.inodes_count == 2
    assert sb.blocks_count == 1
    assert sb.first_blo == 1
    assert sb.mnt_count == 1
    assert sb.inode_size == Inode.SIZE
    assert sb.block_size == Folderblock.SIZE
    assert sb.free_inodes_count == n - 2
    assert sb.free_blocks_count == 3 * n - 2
    assert sb.bm_inode_start == partition.start + Superblock.SIZE
    assert sb.bm_block_start == sb.bm_inode_start + n
    assert sb.inode_start == sb.bm_block_start + 3 * n
    assert sb.block_start == sb.inode_start + n * Inode.SIZE


def test_format_ext2_root_records(mounted):
    store, _ = mounted
    sb = format_partition(store, "A104", "full", "2fs")
    with open_disk(store.path_for("A")) as handle:
        handle.seek(sb.bm_inode_start)
        assert handle.read(3) == b"\x01\x01\x00"
        handle.seek(sb.bm_block_start)
        assert handle.read(3) == b"\x01\x01\x00"
        root = read_struct(handle, Inode, sb.inode_start)
        users = read_struct(handle, Inode, sb.inode_start + Inode.SIZE)
        third = read_struct(handle, Inode, sb.inode_start + 2 * Inode.SIZE)
        folder = read_struct(handle, Folderblock, sb.block_start)
        data = read_struct(handle, Fileblock, sb.block_start + Fileblock.SIZE)
    assert root.blocks[0] == 0
    assert root.blocks[1:] == [-1] * (len(root.blocks) - 1)
    assert root.perm == "664"
    assert users.blocks[0] == 1
    assert users.size == Folderblock.SIZE
    assert third.blocks == [-1] * len(third.blocks)
    assert [e.name for e in folder.entries] == [".", "..", "users.txt", ""]
    assert folder.entries[2].inode == 1
    assert data.content.startswith(USERS_FILE.encode())


def test_format_ext3_writes_journal(mounted):
    store, partition = mounted
    sb = format_partition(store, "A104", "full", "3fs")
    n = structure_count(partition.size, "3fs")
    assert sb.filesystem_type == 3
    assert sb.free_inodes_count == n - 2
    with open_disk(store.path_for("A")) as handle:
        journal = read_struct(
            handle, Journaling, sb.block_start + 3 * n * Fileblock.SIZE
        )
        folder = read_struct(handle, Folderblock, sb.block_start)
    assert journal.size == 50
    assert journal.last == -1
    assert folder.entries[2].name == "users.txt"


def test_format_unmounted_partition(store):
    with pytest.raises(DiskError):
        format_partition(store, "A104", "full", "2fs")


def test_format_unknown_id(mounted):
    store, _ = mounted
    with pytest.raises(DiskError):
        format_partition(store, "A904", "full", "2fs")


@pytest.mark.parametrize("partition_id,fs", [("", "2fs"), ("A104", "4fs")])
def test_format_invalid_arguments(mounted, partition_id, fs):
    store, _ = mounted
    with pytest.raises(DiskError):
        format_partition(store, partition_id, "full", fs)