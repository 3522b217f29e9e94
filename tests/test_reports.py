from unittest import mock

import pytest

from diskctl.disks import DiskStore
from diskctl.filesystem import MAGIC, format_partition
from diskctl.mount import MountRegistry
from diskctl.reports import (
    ReportError,
    disk_dot,
    generate_report,
    mbr_dot,
    read_logical_chain,
    superblock_dot,
)
from diskctl.structs import MBR, Partition, Superblock


@pytest.fixture
def store(tmp_path):
    disks = DiskStore(tmp_path / "disks")
    disks.create_disk(64, "f", "k")
    return disks


@pytest.fixture
def extended_store(store):
    store.fdisk(30, "A", "ext", "k", "e", "w")
    return store


def _ext_start(store):
    return next(p for p in store.read_mbr("A").partitions if p.type == "e").start


def test_mbr_dot_lists_partitions_in_use():
    mbr = MBR(size=65536, created="2024-01-01", signature=7, fit="f")
    mbr.partitions[0] = Partition(
        status="0", type="p", fit="w", start=MBR.SIZE, size=1024, name="uno", correlative=1
    )
    dot = mbr_dot("A", mbr)
    assert "{MBR: A.dsk|" in dot
    assert "{mbr_tamaño|65536}" in dot
    assert "{mbr_disk_signature|7}" in dot
    assert "{mbr_fecha_creacion|2024-01-01}" in dot
    assert "{part_name|uno}" in dot
    assert f"{{part_start|{MBR.SIZE}}}" in dot
    assert dot.count("|Particion ") == 1


def test_disk_dot_empty_disk_is_all_free():
    mbr = MBR(size=65536)
    dot = disk_dot("A", mbr, [])
    assert dot.count("|Libre\\n0%") == 4
    assert "Reporte DISK A" in dot
    assert "Primaria" not in dot


def test_disk_dot_primary_share():
    mbr = MBR(size=65536)
    mbr.partitions[0] = Partition(type="p", size=16384, correlative=1, name="uno")
    dot = disk_dot("A", mbr, [])
    assert "|Primaria\\n25%" in dot
    assert dot.count("|Libre\\n") == 3


def test_disk_dot_zero_size_disk_raises():
    with pytest.raises(ReportError):
        disk_dot("A", MBR(size=0), [])


def test_read_logical_chain_follows_next(extended_store):
    extended_store.fdisk(5, "A", "log1", "k", "l", "w")
    extended_store.fdisk(5, "A", "log2", "k", "l", "w")
    start = _ext_start(extended_store)
    with open(extended_store.path_for("A"), "rb") as handle:
        chain = read_logical_chain(handle, start)
    assert [ebr.name for ebr in chain] == ["log1", "log2"]
    assert chain[-1].next == -1
    assert chain[1].start == chain[0].next + 1


def test_read_logical_chain_empty_extended(extended_store):
    start = _ext_start(extended_store)
    with open(extended_store.path_for("A"), "rb") as handle:
        chain = read_logical_chain(handle, start)
    assert len(chain) == 1
    assert chain[0].name == ""
    dot = disk_dot("A", extended_store.read_mbr("A"), chain)
    assert "|Libre 0%" in dot


def test_disk_dot_with_logicals(extended_store):
    extended_store.fdisk(5, "A", "log1", "k", "l", "w")
    extended_store.fdisk(5, "A", "log2", "k", "l", "w")
    start = _ext_start(extended_store)
    with open(extended_store.path_for("A"), "rb") as handle:
        chain = read_logical_chain(handle, start)
    dot = disk_dot("A", extended_store.read_mbr("A"), chain)
    assert dot.count("|EBR|Particion logica") == 2
    assert "|{Extendida " in dot


def test_superblock_dot_rows_in_order():
    dot = superblock_dot(Superblock(filesystem_type=2, magic=MAGIC, block_start=999))
    assert f'<td><b>S_magic</b></td><td bgcolor="#4682B4">{MAGIC}</td>' in dot
    assert '<td><b>S_block_start</b></td><td bgcolor="#4682B4">999</td>' in dot
    assert dot.index("S_filesystem_type") < dot.index("S_block_start")
    assert dot.count("<tr>") == 16


@mock.patch("diskctl.reports.subprocess.run")
def test_generate_mbr_report_writes_dot_and_runs_dot(mock_run, store, tmp_path):
    store.fdisk(10, "A", "part1", "k", "p", "w")
    out = tmp_path / "out"
    png = generate_report(store, "mbr", "A104", out)
    dot_path = png.with_suffix(".dot")
    assert png.name.startswith("MBR_")
    assert "{part_name|part1}" in dot_path.read_text(encoding="utf-8")
    assert mock_run.call_args.args[0] == ["dot", "-Tpng", "-o", str(png), str(dot_path)]


@mock.patch("diskctl.reports.subprocess.run")
def test_generate_disk_report(mock_run, extended_store, tmp_path):
    extended_store.fdisk(5, "A", "log1", "k", "l", "w")
    png = generate_report(extended_store, "disk", "A1", tmp_path / "out")
    text = png.with_suffix(".dot").read_text(encoding="utf-8")
    assert png.name.startswith("DISK_")
    assert text.count("|EBR|Particion logica") == 1
    assert mock_run.call_count == 1


@mock.patch("diskctl.reports.subprocess.run")
def test_generate_sb_report(mock_run, store, tmp_path):
    store.fdisk(10, "A", "part1", "k", "p", "w")
    part = MountRegistry(store).mount("A", "part1")
    written = format_partition(store, part.id)
    png = generate_report(store, "sb", part.id, tmp_path / "out")
    text = png.with_suffix(".dot").read_text(encoding="utf-8")
    assert png.name.startswith("SuperBloque_")
    assert f'<td bgcolor="#4682B4">{MAGIC}</td>' in text
    assert f'S_inode_start</b></td><td bgcolor="#4682B4">{written.inode_start}</td>' in text


@mock.patch("diskctl.reports.subprocess.run")
def test_generate_sb_report_unknown_partition(mock_run, store, tmp_path):
    with pytest.raises(ReportError, match="no encontrada"):
        generate_report(store, "sb", "A999", tmp_path / "out")
    assert mock_run.call_count == 0


@mock.patch("diskctl.reports.subprocess.run", side_effect=FileNotFoundError("dot"))
def test_render_failure_raises_but_keeps_dot(mock_run, store, tmp_path):
    out = tmp_path / "out"
    with pytest.raises(ReportError):
        generate_report(store, "mbr", "A1", out)
    assert len(list(out.glob("MBR_*.dot"))) == 1


@pytest.mark.parametrize(
    "name", ["inode", "Journaling", "block", "bm_inode", "bm_block", "tree", "file", "ls"]
)
def test_unsupported_reports(store, tmp_path, name):
    with pytest.raises(ReportError, match="No se puede generar"):
        generate_report(store, name, "A1", tmp_path)


def test_unknown_report(store, tmp_path):
    with pytest.raises(ReportError, match="Reporte no reconocido"):
        generate_report(store, "foo", "A1", tmp_path)


def test_missing_disk(store, tmp_path):
    with pytest.raises(ReportError):
        generate_report(store, "mbr", "Z104", tmp_path)


def test_empty_id(store, tmp_path):
    with pytest.raises(ReportError):
        generate_report(store, "mbr", "", tmp_path)