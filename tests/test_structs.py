import pytest

from diskctl.structs import (
    EBR,
    MBR,
    Content,
    Fileblock,
    Folderblock,
    Inode,
    JournalEntry,
    Journaling,
    Partition,
    Pointerblock,
    Superblock,
    UserInfo,
)


def test_fixed_record_sizes():
    assert len(Partition().pack()) == 35
    assert len(MBR().pack()) == 159
    assert len(Superblock().pack()) == 94


@pytest.mark.parametrize(
    "cls",
    [Partition, MBR, EBR, Superblock, Inode, Fileblock, Content, Folderblock,
     Pointerblock, JournalEntry, Journaling],
)
def test_default_pack_is_zero_filled(cls):
    data = cls().pack()
    assert len(data) == cls.SIZE
    assert data == bytes(cls.SIZE)


def test_partition_round_trip():
    part = Partition("1", "p", "w", 159, 2048, "Part1", 1, "A104")
    assert Partition.unpack(part.pack()) == part


def test_partition_name_is_nul_padded_in_place():
    data = Partition(name="abc").pack()
    assert data[11:27] == b"abc" + bytes(13)


def test_partition_long_name_truncated():
    part = Partition(name="x" * 30)
    assert Partition.unpack(part.pack()).name == "x" * 16


def test_partition_describe():
    part = Partition("1", "p", "w", 10, 20, "disco", 1, "A104")
    assert part.describe() == (
        "Nombre: disco, Tipo: p, Inicio: 10, Tamaño: 20, Estado: 1, Id: A104"
    )


def test_mbr_round_trip_truncates_date():
    mbr = MBR(size=1024, created="2006-01-02 15:04:05", signature=42, fit="f")
    mbr.partitions[2] = Partition("0", "e", "b", 200, 300, "ext", 3, "")
    back = MBR.unpack(mbr.pack())
    assert back.created == "2006-01-02"
    assert back.partitions == mbr.partitions
    assert (back.size, back.signature, back.fit) == (1024, 42, "f")


def test_mbr_requires_four_partitions():
    with pytest.raises(ValueError):
        MBR(partitions=[Partition()]).pack()


def test_mbr_describe_lists_every_slot():
    text = MBR(size=7, created="2024-01-01", fit="b").describe()
    lines = text.splitlines()
    assert lines[0] == "Data: 2024-01-01, fit: b, size: 7"
    assert len(lines) == 5
    assert lines[4].startswith("Partición 3, Nombre: ")


def test_ebr_round_trip_and_describe():
    ebr = EBR("0", "f", 500, 100, -1, "logic")
    assert EBR.unpack(ebr.pack()) == ebr
    assert ebr.describe() == (
        "MOUNT: 0 Fit: f Inicio: 500 Tamaño: 100 Siguiente: -1 Nombre: logic"
    )


def test_inode_round_trip():
    inode = Inode(1, 1, 0, "a", "b", "c", [-1] * 15, "1", "664")
    inode.blocks[0] = 0
    assert Inode.unpack(inode.pack()) == inode


def test_inode_wrong_block_count():
    with pytest.raises(ValueError):
        Inode(blocks=[0, 1]).pack()


def test_fileblock_round_trip():
    data = b"1,G,root\n1,U,root,root,123\n"
    block = Fileblock.unpack(Fileblock(data).pack())
    assert block.content.rstrip(b"\x00") == data
    assert len(block.content) == Fileblock.SIZE


def test_folderblock_round_trip():
    folder = Folderblock([Content(".", 0), Content("..", 0), Content("users.txt", 1), Content()])
    assert Folderblock.unpack(folder.pack()) == folder
    assert Folderblock.SIZE == Fileblock.SIZE


def test_pointerblock_round_trip():
    block = Pointerblock(list(range(-8, 8)))
    assert Pointerblock.unpack(block.pack()) == block


def test_journal_round_trip():
    journal = Journaling(size=50, last=-1)
    journal.entries[0] = JournalEntry("mkdir", "/home", "", "2024-01-01")
    back = Journaling.unpack(journal.pack())
    assert back == journal
    assert len(back.entries) == 50


def test_unpack_short_data_raises():
    with pytest.raises(ValueError):
        EBR.unpack(bytes(EBR.SIZE - 1))


def test_userinfo_describe():
    user = UserInfo("1", "root")
    assert user.describe() == "ID: 1\nNombre: root"