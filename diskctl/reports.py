"""Graphviz reports of disk layout, partition tables and superblocks."""

from __future__ import annotations

import os
import subprocess
import time
from pathlib import Path
from typing import BinaryIO, Iterable, List, Union

from .disks import DiskStore
from .storage import percentage, read_struct
from .structs import EBR, MBR, Superblock

UNSUPPORTED_REPORTS = (
    "inode",
    "Journaling",
    "block",
    "bm_inode",
    "bm_block",
    "tree",
    "file",
    "ls",
)

_PARTITION_ROW = """
				|Particion %d
				|{part_status|%s}
				|{part_type|%s}
				|{part_fit|%s}
				|{part_start|%d}
				|{part_size|%d}
				|{part_name|%s}"""

_MBR_TEMPLATE = """
	digraph G {
		fontname="Helvetica,Arial,sans-serif"
		node [fontname="Helvetica,Arial,sans-serif", style="filled", color="lightblue", shape="record"]
		edge [fontname="Helvetica,Arial,sans-serif"]
		concentrate=True;
		rankdir=TB;
	
		title [label="Reporte MBR" shape=plaintext fontname="Helvetica,Arial,sans-serif" color="darkorange1" fontcolor="darkorange4"];
	
		mbr[label="
			{MBR: %s.dsk|
				{mbr_tamaño|%d}
				|{mbr_fecha_creacion|%s}
				|{mbr_disk_signature|%d}
				%s
			}
		"] [color="lightgoldenrod" fontcolor="darkgoldenrod"];
	
		title2 [label="Reporte EBR" shape=plaintext fontname="Helvetica,Arial,sans-serif" color="darkgreen" fontcolor="darkolivegreen1"];
		
		ebr[label="
			{EBR%s}
		"] [color="palegreen1" fontcolor="darkgreen"];
	
		title -> mbr [style=invis];
		mbr -> title2[style=invis];
		title2 -> ebr[style=invis];
	}"""

_DISK_TEMPLATE = """
	digraph G {
		graph [bgcolor="#000000"]
		fontname="Helvetica,Arial,sans-serif"
		node [fontname="Helvetica,Arial,sans-serif", style="filled", fillcolor="#FFA500", color="#FFFFFF", fontcolor="#FFFFFF"]
		edge [fontname="Helvetica,Arial,sans-serif", color="#FFFFFF"]
		concentrate=True;
		rankdir=TB;
		node [shape=record, style="filled", fillcolor="#FFA500", fontcolor="#FFFFFF"]
	
		title [label="Reporte DISK %s" shape=plaintext fontname="Helvetica,Arial,sans-serif" color="#FFFFFF" style="bold"]
	
		dsk[label="
		   {MBR}%s
		   }
		" fontname="Courier New" color="#FFFFFF" fillcolor="#FFA500"]
	
		title -> dsk [style=invis]
	}
	"""

_SB_HEADER = """
    digraph G {
		graph [bgcolor="#E6E6FA"];
		node [fontname="Helvetica,Arial,sans-serif", shape=record, style=filled, fillcolor="#FFFFFF", color="#000000", penwidth=2];
		edge [fontname="Helvetica,Arial,sans-serif", color="#000000", penwidth=2];
		concentrate=true;
		rankdir=TB;
	
		title [label="Reporte SUPERBLOCK" shape=plaintext fontname="Helvetica,Arial,sans-serif" fontsize=16 fontcolor="#333333"];
	
		sb[label=<
			<table border="0" cellborder="1" cellspacing="0" cellpadding="4" bgcolor="#FFFFFF">
				<tr><td colspan="2" bgcolor="#87CEFA"><b>Superblock</b></td></tr>
"""

_SB_ROW = '\t\t\t\t<tr><td><b>%s</b></td><td bgcolor="#4682B4">%d</td></tr>\n'

_SB_FOOTER = """			</table>
		>];
	
		title -> sb [style=invis];
	}
"""

_SB_FIELDS = (
    ("S_filesystem_type", "filesystem_type"),
    ("S_inodes_count", "inodes_count"),
    ("S_blocks_count", "blocks_count"),
    ("S_free_blocks_count", "free_blocks_count"),
    ("S_free_inodes_count", "free_inodes_count"),
    ("S_mnt_count", "mnt_count"),
    ("S_magic", "magic"),
    ("S_inode_size", "inode_size"),
    ("S_block_size", "block_size"),
    ("S_fist_ino", "first_ino"),
    ("S_first_blo", "first_blo"),
    ("S_bm_inode_start", "bm_inode_start"),
    ("S_bm_block_start", "bm_block_start"),
    ("S_inode_start", "inode_start"),
    ("S_block_start", "block_start"),
)


class ReportError(Exception):
    """Raised when a report cannot be produced."""


def _read(handle: BinaryIO, cls, position: int):
    try:
        return read_struct(handle, cls, position)
    except (EOFError, OSError, ValueError) as exc:
        raise ReportError(f"Error al leer {cls.__name__} en {position}: {exc}") from exc


def read_logical_chain(handle: BinaryIO, start: int) -> List[EBR]:
    """Follow the EBR chain from ``start`` until a record has no valid successor."""
    chain: List[EBR] = []
    seen = set()
    position = start
    while True:
        seen.add(position)
        ebr = _read(handle, EBR, position)
        chain.append(ebr)
        if ebr.next <= 0 or ebr.next in seen:
            return chain
        position = ebr.next


def mbr_dot(letter: str, mbr: MBR) -> str:
    """Graphviz source describing the MBR and its partitions in use."""
    rows = "".join(
        _PARTITION_ROW
        % (p.correlative, p.status, p.type, p.fit, p.start, p.size, p.name)
        for p in mbr.partitions
        if p.correlative != 0
    )
    return _MBR_TEMPLATE % (letter, mbr.size, mbr.created, mbr.signature, rows, "")


def disk_dot(letter: str, mbr: MBR, logicals: Iterable[EBR]) -> str:
    """Graphviz source showing how the disk is shared between partitions."""
    if mbr.size == 0:
        raise ReportError("El tamaño del disco es 0")
    logicals = list(logicals)
    parts: List[str] = []
    for partition in mbr.partitions:
        share = percentage(partition.size, mbr.size)
        if partition.correlative == 0:
            parts.append(f"|Libre\\n{share}%")
        if partition.type == "p":
            parts.append(f"|Primaria\\n{share}%")
        if partition.type == "e":
            parts.append(f"|{{Extendida {share}%|{{")
            for ebr in logicals:
                logical_share = percentage(ebr.size, mbr.size)
                if ebr.name:
                    parts.append(f"|EBR|Particion logica {logical_share}%")
                else:
                    parts.append(f"|Libre {logical_share}%")
            parts.append("}}")
    return _DISK_TEMPLATE % (letter, "".join(parts))


def superblock_dot(superblock: Superblock) -> str:
    """Graphviz source tabulating the fields of a superblock."""
    rows = "".join(
        _SB_ROW % (label, int(getattr(superblock, attr))) for label, attr in _SB_FIELDS
    )
    return _SB_HEADER + rows + _SB_FOOTER


def _render(dot_code: str, output_dir: Path, prefix: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = time.time_ns()
    dot_path = output_dir / f"{prefix}_{stamp}.dot"
    png_path = output_dir / f"{prefix}_{stamp}.png"
    try:
        dot_path.write_text(dot_code, encoding="utf-8")
    except OSError as exc:
        raise ReportError(f"Error al crear el archivo DOT: {exc}") from exc
    try:
        subprocess.run(
            ["dot", "-Tpng", "-o", str(png_path), str(dot_path)],
            check=True,
            capture_output=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise ReportError(f"Error al generar el gráfico: {exc}") from exc
    return png_path


def generate_report(
    store: DiskStore,
    name: str,
    partition_id: str,
    output_dir: Union[str, os.PathLike],
) -> Path:
    """Write the named report as DOT into ``output_dir`` and render it to PNG.

    Returns the path of the PNG image; the DOT file sits beside it.
    """
    if name in UNSUPPORTED_REPORTS:
        raise ReportError(f"No se puede generar el reporte de {name}.")
    if name not in ("mbr", "disk", "sb"):
        raise ReportError(f"Reporte no reconocido: {name}")
    if not partition_id:
        raise ReportError("El id de la partición no puede estar vacío")

    letter = partition_id[0].upper()
    path = store.path_for(letter)
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise ReportError(f"No se encontro el disco {path}: {exc}") from exc

    with handle:
        mbr = _read(handle, MBR, 0)
        if name == "mbr":
            prefix, dot_code = "MBR", mbr_dot(letter, mbr)
        elif name == "disk":
            extended = [p for p in mbr.partitions if p.type == "e"]
            logicals = read_logical_chain(handle, extended[-1].start) if extended else []
            prefix, dot_code = "DISK", disk_dot(letter, mbr, logicals)
        else:
            partition = next(
                (p for p in mbr.partitions if p.size != 0 and partition_id in p.id),
                None,
            )
            if partition is None:
                raise ReportError("Partición no encontrada.")
            superblock = _read(handle, Superblock, partition.start)
            prefix, dot_code = "SuperBloque", superblock_dot(superblock)

    return _render(dot_code, Path(output_dir), prefix)