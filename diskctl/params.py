"""Parsing of ``-name=value`` parameters given to shell commands."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from typing import Dict, List, Mapping, Tuple

_FLAG = re.compile(r'-(\w+)=("[^"]+"|\S+)', re.ASCII)
_CAT_FLAG = re.compile(r'-file(\d*)=("[^"]+"|\S+)', re.ASCII)
_BARE_FLAG = re.compile(r"-(\w+)", re.ASCII)
_LEADING_INT = re.compile(r"\s*([+-]?\d+)", re.ASCII)

_INT_FLAGS = frozenset({"size", "add"})
_FIRST_CHAR_FLAGS = frozenset({"fit"})
_BOOL_FLAGS = frozenset({"r"})


@dataclass
class CommandArgs:
    """Parameters collected from one command line.

    ``unknown`` lists the flag names the command does not accept, in the
    order they appeared.
    """

    size: int = 0
    fit: str = ""
    unit: str = ""
    type: str = ""
    driveletter: str = ""
    name: str = ""
    delete: str = ""
    add: int = 0
    path: str = ""
    id: str = ""
    fs: str = ""
    ruta: str = ""
    user: str = ""
    r: bool = False
    cont: str = ""
    destino: str = ""
    ugo: str = ""
    file: str = ""
    unknown: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class _Spec:
    flags: Tuple[str, ...]
    lowercase: bool = False
    defaults: Mapping[str, str] = field(default_factory=dict)
    # Defaults are filled only once at least one flag has been seen.
    defaults_need_flag: bool = False


_SPECS: Dict[str, _Spec] = {
    "mkdisk": _Spec(("size", "fit", "unit"), lowercase=True, defaults={"fit": "f", "unit": "m"}),
    "rmdisk": _Spec(("driveletter",), lowercase=True),
    "fdisk": _Spec(
        ("size", "driveletter", "name", "unit", "type", "fit", "delete", "add", "path"),
        lowercase=True,
        defaults={"unit": "k", "fit": "w", "type": "p"},
        defaults_need_flag=True,
    ),
    "mount": _Spec(("driveletter", "name"), lowercase=True),
    "unmount": _Spec(("id",), lowercase=True),
    "mkfs": _Spec(
        ("id", "type", "fs"),
        defaults={"type": "full", "fs": "2fs"},
        defaults_need_flag=True,
    ),
    "mkfile": _Spec(("path", "r", "size", "cont")),
    "remove": _Spec(("path",)),
    "edit": _Spec(("path", "cont")),
    "rename": _Spec(("path", "name")),
    "copy": _Spec(("path", "destino")),
    "move": _Spec(("path", "destino")),
    "find": _Spec(("path", "destino")),
    "chown": _Spec(("path", "user", "r")),
    "chmod": _Spec(("path", "ugo", "r")),
    "rep": _Spec(("name", "path", "id", "ruta")),
}

COMMANDS = frozenset(_SPECS)


def _scan_int(text: str) -> int:
    """Read a leading decimal integer, giving 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def find_flags(text: str) -> List[Tuple[str, str]]:
    """Return every ``-name=value`` pair in order, with surrounding quotes removed."""
    return [(m.group(1), m.group(2).strip('"')) for m in _FLAG.finditer(text)]


def parse_args(command: str, text: str) -> CommandArgs:
    """Collect the parameters of ``command`` from its command line ``text``."""
    try:
        spec = _SPECS[command.lower()]
    except KeyError:
        raise ValueError(f"unknown command: {command}") from None

    if spec.lowercase:
        text = text.lower()
    args = CommandArgs()
    pairs = find_flags(text)
    for flag_name, value in pairs:
        if flag_name not in spec.flags:
            args.unknown.append(flag_name)
            continue
        if flag_name in _INT_FLAGS:
            setattr(args, flag_name, _scan_int(value))
        elif flag_name in _BOOL_FLAGS:
            setattr(args, flag_name, True)
        elif flag_name in _FIRST_CHAR_FLAGS:
            setattr(args, flag_name, value[:1])
        else:
            setattr(args, flag_name, value)

    if pairs or not spec.defaults_need_flag:
        for key, default in spec.defaults.items():
            if not getattr(args, key):
                setattr(args, key, default)
    return args


def parse_mkdir(text: str) -> CommandArgs:
    """Collect ``-path`` and the bare ``-r`` switch of a mkdir command line."""
    args = CommandArgs()
    for piece in text.split("-"):
        if piece == "r":
            args.r = True
        parts = piece.split("=")
        if parts[0] == "path" and len(parts) > 1:
            value = parts[1]
            args.path = f'"{value}"' if " " in value else value

    for match in _BARE_FLAG.finditer(text):
        flag_name = match.group(1)
        if flag_name == "r":
            args.r = True
        elif flag_name != "path":
            args.unknown.append(flag_name)
    return args


def parse_cat(text: str) -> Tuple[str, str]:
    """Return the index suffix and value of the first ``-fileN=value`` flag."""
    match = _CAT_FLAG.search(text)
    if match is None:
        return "", ""
    return match.group(1), match.group(2).strip('"')


def parse_execute(text: str) -> str:
    """Return the raw value of the first flag of an execute command line."""
    match = _FLAG.search(text)
    return match.group(2) if match else ""


def field_names() -> Tuple[str, ...]:
    """Names of the parameters a :class:`CommandArgs` can hold."""
    return tuple(f.name for f in fields(CommandArgs) if f.name != "unknown")