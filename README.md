# diskctl

`diskctl` is an interactive command shell for virtual disk images (`A.dsk`,
`B.dsk`, ...). It writes a Master Boot Record to each image, creates primary,
extended and logical partitions, mounts them, formats them with an EXT2- or
EXT3-style layout and draws Graphviz reports of what is on disk.

## Installation

```
pip install .
```

There are no runtime dependencies. Reports are rendered to PNG by running the
Graphviz `dot` program, which must be on your `PATH` for the `rep` command to
succeed.

## Starting the shell

```
diskctl
diskctl --disks /tmp/disks --reports /tmp/reportes
```

- `--disks` is the directory holding the disk images (default: the current
  directory).
- `--reports` is the directory reports are written to (default: `reportes`).

The shell prints a `Comando:` prompt and reads one command per line until the
input ends. Command names are case-insensitive; parameters are written as
`-name=value`, and values containing spaces go in double quotes. Lines
starting with `#` are echoed as comments. Unknown parameters are reported and
otherwise ignored.

## Disk commands

```
mkdisk -size=10 -unit=m -fit=ff
rmdisk -driveletter=A
fdisk -size=300 -driveletter=A -name=Part1 -unit=k -type=p -fit=bf
fdisk -driveletter=A -name=Part1 -delete=full
fdisk -driveletter=A -name=Part1 -add=100 -unit=k
mount -driveletter=A -name=Part1
unmount -id=A104
mkfs -id=A104 -type=full -fs=3fs
```

- `mkdisk` creates a zero-filled image with a fresh MBR. `-unit` is `k` or
  `m` (default `m`); `-fit` is `bf`, `ff` or `wf` (only the first letter
  counts, default `ff`). Letters are handed out in order starting from `A`
  each time the shell starts; an existing image with that letter is
  overwritten.
- `rmdisk` asks for confirmation (`y`) before deleting the image.
- `fdisk` creates a partition in the next free MBR slot, placed right after the
  last partition in use. When any parameter is given, it defaults to
  `-unit=k`, `-fit=wf` and `-type=p`; `-unit` may also be `b` for bytes.
  Only one extended partition is allowed per disk; with an extended partition
  present, `-type=l` chains a logical partition inside it with EBRs.
  `-delete=full` deletes a partition by name (an extended partition's area is
  zeroed); `-add` grows or shrinks one, refusing to go negative, past the next
  partition or past the disk size. Partition names must be unique.
- `mount` marks a partition as mounted and gives it an identifier made of the
  drive letter, the partition's correlative number and `04`, e.g. `A104`, then
  prints the list of partitions mounted in this session. Logical partitions can
  be mounted too; extended ones cannot.
- `unmount` takes the correlative from the third character from the end of the
  id, marks that partition as unmounted and prints the MBR.
- `mkfs` formats a mounted partition: superblock, inode and block bitmaps,
  inode and block tables, and a root folder holding `users.txt` with a `root`
  group and user. `-fs` is `2fs` (default) or `3fs`; `3fs` also writes an
  empty journal.

## Scripts, pauses and reports

```
execute -path=/path/to/script.txt
pause
rep -id=A104 -name=mbr
```

- `execute` runs every line of a script file through the shell.
- `pause` waits for ENTER.
- `rep` writes a `.dot` file into the report directory and renders a `.png`
  beside it with `dot`. `-name` is one of `mbr` (MBR and partition table),
  `disk` (share of the disk taken by each partition, logical partitions
  included) or `sb` (superblock of a formatted partition). `-id` selects the
  disk by its first letter and, for `sb`, the mounted partition.

## What it does not do

- There are no users, groups or sessions: `login`, `logout`, `mkgrp`, `rmgrp`,
  `mkusr` and `rmusr` only report that the command is not available.
- Nothing is created inside a formatted partition beyond the root folder and
  `users.txt`: `mkfile`, `cat`, `remove`, `edit`, `rename`, `copy`, `move`,
  `find`, `chown`, `chgrp` and `chmod` report that the command is not
  available, and `mkdir` only prints the path and `-r` switch it was given.
- The `inode`, `Journaling`, `block`, `bm_inode`, `bm_block`, `tree`, `file`
  and `ls` reports are not produced.
- Mounted partitions are recorded on disk, but the listing printed by `mount`
  covers only the current session.

## Using it from Python

```python
from diskctl.disks import DiskStore
from diskctl.mount import MountRegistry
from diskctl.filesystem import format_partition
from diskctl.reports import generate_report

store = DiskStore("/tmp/disks")
store.create_disk(1, "f", "m")                        # /tmp/disks/A.dsk
store.fdisk(300, "A", "part1", "k", "p", "w", "", 0)  # returns the MBR

mounts = MountRegistry(store)
mounts.mount("A", "part1")                            # id "A104"
superblock = format_partition(store, "A104", "full", "2fs")

png = generate_report(store, "sb", "A104", "/tmp/reportes")
```

Failures raise `diskctl.disks.DiskError` (disk, partition, mount and format
operations) or `diskctl.reports.ReportError` (reports).

Other modules:

- `diskctl.structs` — the on-disk records (`MBR`, `Partition`, `EBR`,
  `Superblock`, `Inode`, `Fileblock`, `Folderblock`, `Content`,
  `Pointerblock`, `Journaling`, `JournalEntry`) with `pack()` / `unpack()`
  in little-endian layout without padding.
- `diskctl.storage` — reading and writing records at file offsets.
- `diskctl.params` — parsing of `-name=value` command parameters.
- `diskctl.cli.Shell` — the text command interface; it can be given its own
  input and output streams and run lines with `run_line()` or scripts with
  `execute_file()`.