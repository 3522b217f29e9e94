"""Interactive command shell for managing virtual disks."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO, Tuple, Union

from .disks import DiskError, DiskStore, is_drive_letter
from .filesystem import format_partition
from .mount import MountRegistry
from .params import COMMANDS, CommandArgs, parse_args, parse_execute, parse_mkdir
from .reports import ReportError, generate_report

_UNKNOWN_FLAG = {
    "mkdisk": "Error: Bandera no encontrada: {}",
    "rmdisk": "Bandera no encontrada: {}",
    "fdisk": "[Error] Bandera no encontrada: {}",
    "mount": "Bandera no encontrada: {}",
    "unmount": "Error archivo no encontrado: {}",
    "mkfs": "Archivo no encontrado: {}",
    "rep": "Error faltan parametros.",
}
_DEFAULT_UNKNOWN_FLAG = "Error parametro no encontrado: {}"

_UNAVAILABLE = (
    "login",
    "logout",
    "mkgrp",
    "rmgrp",
    "mkusr",
    "rmusr",
    "mkfile",
    "cat",
    "remove",
    "edit",
    "rename",
)
_UNAVAILABLE_AFTER_MKDIR = ("copy", "move", "find", "chown", "chgrp", "chmod")

Handler = Callable[[str, str], None]


class Shell:
    """Reads command lines and carries them out against a disk store."""

    def __init__(
        self,
        store: DiskStore,
        report_dir: Union[str, os.PathLike],
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ) -> None:
        self.store = store
        self.report_dir = Path(report_dir)
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.mounts = MountRegistry(store)
        # Checked in order: the first prefix the lowered line starts with wins.
        handlers: List[Tuple[str, Handler, bool]] = [
            ("mkdisk", self._mkdisk, True),
            ("rmdisk", self._rmdisk, True),
            ("fdisk", self._fdisk, True),
            ("mount", self._mount, True),
            ("unmount", self._unmount, True),
            ("mkfs", self._mkfs, True),
        ]
        handlers += [(name, self._unavailable, True) for name in _UNAVAILABLE]
        handlers.append(("mkdir", self._mkdir, True))
        handlers += [(name, self._unavailable, True) for name in _UNAVAILABLE_AFTER_MKDIR]
        handlers += [
            ("pause", self._pause, True),
            ("execute", self._execute, False),
            ("rep", self._rep, True),
            ("#", self._comment, False),
        ]
        self._handlers = tuple(handlers)

    def _say(self, text: str = "") -> None:
        print(text, file=self.stdout)

    def run_line(self, line: str) -> None:
        """Carry out one command line."""
        if not line:
            return
        lowered = line.lower()
        for prefix, handler, echo in self._handlers:
            if lowered.startswith(prefix):
                if echo:
                    self._say(f"\nComando: {line}")
                handler(prefix, line)
                return
        self._say(f"Comando no valido:  {line}")

    def execute_file(self, path: Union[str, os.PathLike]) -> None:
        """Run every line of a script file as a command."""
        try:
            handle = open(path, encoding="utf-8")
        except OSError as exc:
            self._say(f"Error al abrir el archivo: {exc}")
            return
        with handle:
            for line in handle:
                self.run_line(line.rstrip("\r\n"))

    def loop(self) -> None:
        """Prompt for commands until the input ends."""
        while True:
            self.stdout.write("\nComando: ")
            self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                return
            self.run_line(line.strip())

    def _parse(self, command: str, line: str) -> CommandArgs:
        args = parse_args(command, line)
        template = _UNKNOWN_FLAG.get(command, _DEFAULT_UNKNOWN_FLAG)
        for flag_name in args.unknown:
            self._say(template.format(flag_name))
        return args

    def _mkdisk(self, command: str, line: str) -> None:
        self._say("************ MKDISK ************")
        args = self._parse(command, line)
        self._say("Creando archivo")
        try:
            self.store.create_disk(args.size, args.fit, args.unit)
        except (DiskError, OSError) as exc:
            self._say(f"Error {exc}")
            return
        self._say("Archivo creado con exito")

    def _confirm(self, prompt: str) -> bool:
        self._say(prompt)
        return self.stdin.readline().strip() == "y"

    def _rmdisk(self, command: str, line: str) -> None:
        self._say("************ RMDISK ************")
        args = self._parse(command, line)
        try:
            removed = self.store.remove_disk(args.driveletter, self._confirm)
        except DiskError as exc:
            self._say(f"Error {exc}")
            return
        if removed:
            self._say(f"Disco {args.driveletter.upper()}.dsk eliminado")

    def _fdisk(self, command: str, line: str) -> None:
        self._say("************ FDISK ************")
        args = self._parse(command, line)
        try:
            self.store.fdisk(
                args.size,
                args.driveletter,
                args.name,
                args.unit,
                args.type,
                args.fit,
                args.delete,
                args.add,
            )
        except (DiskError, OSError) as exc:
            self._say(f"Error {exc}")
            return
        if args.delete == "full":
            self._say(f"Particion: {args.name} eliminada")

    def _mount(self, command: str, line: str) -> None:
        self._say("************ MOUNT ************")
        args = self._parse(command, line)
        if not is_drive_letter(args.driveletter):
            self._say("Error DriveLetter debe ser una letra")
            return
        self._say("Ejecutando MOUNT...")
        try:
            self.mounts.mount(args.driveletter, args.name)
        except DiskError as exc:
            self._say(f"Error {exc}")
        else:
            self._say("Particion montada con exito")
        self._say(self.mounts.listing())

    def _unmount(self, command: str, line: str) -> None:
        self._say("************ UNMOUNT ************")
        args = self._parse(command, line)
        if not args.id:
            self._say("Error Id es un campo obligatorio")
            return
        self._say("Ejecutando UNMOUNT...")
        try:
            self.mounts.unmount(args.id)
            mbr = self.store.read_mbr(args.id[0])
        except DiskError as exc:
            self._say(f"Error {exc}")
            return
        self._say(mbr.describe())

    def _mkfs(self, command: str, line: str) -> None:
        self._say("************ MKFS ************")
        args = self._parse(command, line)
        self._say("Ejecutando MKFS...")
        self._say(f"Id: {args.id}")
        self._say(f"Type: {args.type}")
        self._say(f"Fs: {args.fs}")
        try:
            superblock = format_partition(self.store, args.id, args.type, args.fs)
        except (DiskError, OSError, EOFError) as exc:
            self._say(f"Error {exc}")
            return
        self._say(f"Sistema de archivos ext{superblock.filesystem_type} creado")

    def _mkdir(self, command: str, line: str) -> None:
        args = parse_mkdir(line)
        for flag_name in args.unknown:
            self._say(_DEFAULT_UNKNOWN_FLAG.format(flag_name))
        if not args.path:
            self._say("Error path no puede estar vacio")
            return
        self._say(f"Path: {args.path}")
        self._say(f"r: {'true' if args.r else 'false'}")

    def _unavailable(self, command: str, line: str) -> None:
        if command in COMMANDS:
            self._parse(command, line)
        self._say(f"Error el comando {command} no está disponible.")

    def _pause(self, command: str, line: str) -> None:
        self._say("Presione ENTER tecla para continuar...")
        self.stdin.readline()

    def _execute(self, command: str, line: str) -> None:
        path = parse_execute(line)
        if not path:
            self._say("Error Path no puede estar vacío.")
            return
        self.execute_file(path)

    def _rep(self, command: str, line: str) -> None:
        args = self._parse(command, line)
        try:
            png = generate_report(self.store, args.name, args.id, self.report_dir)
        except ReportError as exc:
            self._say(str(exc))
            return
        self._say(f"Reporte {args.name} generado en {png}")

    def _comment(self, command: str, line: str) -> None:
        self._say(f"\nComentario: {line}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the interactive shell."""
    parser = argparse.ArgumentParser(description="Virtual disk management shell.")
    parser.add_argument("--disks", default=".", help="directory holding the disk images")
    parser.add_argument("--reports", default="reportes", help="directory for reports")
    args = parser.parse_args(argv)
    Shell(DiskStore(args.disks), args.reports).loop()
    return 0


if __name__ == "__main__":
    sys.exit(main())