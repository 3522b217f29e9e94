import pytest

from diskctl.disks import DiskError, DiskStore
from diskctl.mount import LISTING_HEADER, MountRegistry
from diskctl.storage import open_disk, read_struct
from diskctl.structs import EBR, Partition


@pytest.fixture
def store(tmp_path):
    store = DiskStore(tmp_path)
    store.create_disk(1, "f", "m")
    store.fdisk(100, "A", "part1", "k", "p", "w")
    return store


@pytest.fixture
def registry(store):
    return MountRegistry(store)


def _add_logical(store):
    store.fdisk(200, "A", "ext1", "k", "e", "w")
    store.fdisk(50, "A", "log1", "k", "l", "w")


def test_mount_primary_assigns_id(store, registry):
    mounted = registry.mount("a", "part1")
    assert isinstance(mounted, Partition)
    assert mounted.id == "A104"
    assert mounted.status == "1"
    stored = store.read_mbr("A").partitions[0]
    assert stored.status == "1"
    assert stored.id == "A104"


def test_mount_twice_fails(registry):
    registry.mount("A", "part1")
    with pytest.raises(DiskError):
        registry.mount("A", "part1")


def test_mount_missing_partition(registry):
    with pytest.raises(DiskError):
        registry.mount("A", "nothere")


def test_mount_bad_letter(registry):
    with pytest.raises(DiskError):
        registry.mount("1", "part1")


def test_mount_missing_disk(registry):
    with pytest.raises(DiskError):
        registry.mount("B", "part1")


def test_mount_extended_refused(store, registry):
    store.fdisk(200, "A", "ext1", "k", "e", "w")
    with pytest.raises(DiskError):
        registry.mount("A", "ext1")


def test_mount_logical_partition(store, registry):
    _add_logical(store)
    ext = next(p for p in store.read_mbr("A").partitions if p.type == "e")
    mounted = registry.mount("A", "log1")
    assert isinstance(mounted, EBR)
    assert mounted.mount == "1"
    with open_disk(store.path_for("A")) as handle:
        ebr = read_struct(handle, EBR, ext.start)
    assert ebr.name == "log1"
    assert ebr.mount == "1"
    with pytest.raises(DiskError):
        registry.mount("A", "log1")


def test_listing_records_mounts(store, registry):
    assert registry.listing() == LISTING_HEADER + "\n"
    mounted = registry.mount("A", "part1")
    listing = registry.listing()
    assert listing.startswith(LISTING_HEADER)
    assert mounted.describe() in listing


def test_unmount_clears_status(store, registry):
    registry.mount("A", "part1")
    target = registry.unmount("A104")
    assert target is not None
    assert target.status == "0"
    assert store.read_mbr("A").partitions[0].status == "0"
    again = registry.mount("A", "part1")
    assert again.status == "1"


def test_unmount_unknown_correlative(store, registry):
    registry.mount("A", "part1")
    assert registry.unmount("A904") is None
    assert store.read_mbr("A").partitions[0].status == "1"


@pytest.mark.parametrize("bad_id", ["", "A4", "Ax04"])
def test_unmount_bad_id(registry, bad_id):
    with pytest.raises(DiskError):
        registry.unmount(bad_id)