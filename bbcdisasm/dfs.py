"""Parsers for Acorn DFS single sided disk images (``.ssd``).

The catalog occupies the first two 256 byte sectors of the image::

    sector 0  0x000-0x007  first eight characters of the disk title
              0x008-0x0FF  31 file names, 8 bytes each (7 name + directory)
    sector 1  0x100-0x103  last four characters of the disk title
              0x104        cycle number
              0x105        number of catalog entries * 8
              0x106        boot option (bits 4-5), sector count high (bits 0-1)
              0x107        sector count low
              0x108-0x1FF  31 file info blocks, 8 bytes each

File info blocks store 16-bit load/exec addresses and lengths; their top two
bits, and the top two bits of the start sector, are packed into byte 6.

References: http://mdfs.net/Docs/Comp/Disk/Format/DFS and the Acorn Disc
System User Guide.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Tuple


logger = logging.getLogger(__name__)

SECTOR_SIZE = 256
CATALOG_SIZE = 2 * SECTOR_SIZE
ENTRY_SIZE = 8
MAX_ENTRIES = 31


class DiskImageError(ValueError):
    """Raised when a disk image cannot be interpreted."""


@dataclass(frozen=True)
class CatalogEntry:
    """One file described by the DFS catalog."""

    filename: str
    directory: str
    length: int
    load_address: int
    exec_address: int
    start_sector: int
    attributes: int = 0
    locked: bool = False

    @property
    def start(self) -> int:
        return self.start_sector * SECTOR_SIZE

    @property
    def end(self) -> int:
        return self.start + self.length

    @property
    def qualified_name(self) -> str:
        return f"{self.directory}.{self.filename}"


def read_filename(block: bytes) -> Tuple[str, int]:
    """Decode a seven byte catalog name.

    The top bit of each character is an attribute flag; the flags are
    collected into a bitmask (character ``i`` supplies bit ``i``) and cleared
    from the returned name.
    """

    if len(block) < 7:
        raise DiskImageError("catalog name block is too short")
    attributes = 0
    chars: List[str] = []
    for i, value in enumerate(block[:7]):
        attributes |= ((value & 0x80) >> 7) << i
        chars.append(chr(value & 0x7F))
    return "".join(chars).rstrip(" \0"), attributes


@dataclass(frozen=True)
class DiskImage:
    """Disk catalog plus the raw image bytes."""

    title: str
    sectors: int
    boot_option: int
    cycle: int
    entries: Tuple[CatalogEntry, ...]
    data: bytes

    @classmethod
    def load(cls, path: Path) -> "DiskImage":
        return cls.parse(path.read_bytes())

    @classmethod
    def parse(cls, data: bytes) -> "DiskImage":
        if len(data) < CATALOG_SIZE:
            raise DiskImageError(
                f"disk image is {len(data)} bytes, smaller than the {CATALOG_SIZE} byte catalog"
            )

        count = data[0x105] // ENTRY_SIZE
        if count > MAX_ENTRIES:
            raise DiskImageError(f"catalog claims {count} entries, the maximum is {MAX_ENTRIES}")

        title_bytes = bytes(data[0:8]) + bytes(data[0x100:0x104])
        title = title_bytes.decode("latin-1").rstrip("\0 ")

        entries = tuple(cls._parse_entry(data, index) for index in range(count))
        return cls(
            title=title,
            sectors=data[0x107] | (data[0x106] & 0x03) << 8,
            boot_option=(data[0x106] & 0x30) >> 4,
            cycle=data[0x104],
            entries=entries,
            data=bytes(data),
        )

    @staticmethod
    def _parse_entry(data: bytes, index: int) -> CatalogEntry:
        name_offset = 0x008 + index * ENTRY_SIZE
        filename, attributes = read_filename(data[name_offset : name_offset + 7])
        directory_byte = data[name_offset + 7]

        info = data[0x108 + index * ENTRY_SIZE : 0x108 + (index + 1) * ENTRY_SIZE]
        high = info[6]
        return CatalogEntry(
            filename=filename,
            directory=chr(directory_byte & 0x7F),
            length=info[4] | info[5] << 8 | (high & 0x30) << 12,
            load_address=info[0] | info[1] << 8 | (high & 0x0C) << 14,
            exec_address=info[2] | info[3] << 8 | (high & 0xC0) << 10,
            start_sector=info[7] | (high & 0x03) << 8,
            attributes=attributes,
            locked=bool(directory_byte & 0x80),
        )

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def find(self, names: Iterable[str]) -> List[CatalogEntry]:
        """Return entries whose filename is in ``names`` (all when empty)."""

        wanted = set(names)
        if not wanted:
            return list(self.entries)
        return [entry for entry in self.entries if entry.filename in wanted]

    def entry_data(self, entry: CatalogEntry) -> bytes:
        if entry.end > len(self.data):
            raise DiskImageError(
                f"{entry.filename}: data [{entry.start}, {entry.end}) exceeds image size {len(self.data)}"
            )
        return self.data[entry.start : entry.end]

    def describe(self) -> List[str]:
        lines = [
            f"Disk Title  {self.title}",
            f"Num Files   {len(self.entries)}",
            f"Num Sectors {self.sectors}",
            f"Boot Option {self.boot_option}",
            f"Disk Cycle  0x{self.cycle:X}",
            "",
            "Filename  Length LoadAddr ExecAddr Sector",
        ]
        for entry in self.entries:
            if entry.end > len(self.data):
                logger.warning(
                    "catalog entry %s runs past the end of the image", entry.qualified_name
                )
            lines.append(
                f"{entry.filename:<7s}   {entry.length:04X}   "
                f"{entry.load_address:08X} {entry.exec_address:08X} {entry.start_sector:3d}"
            )
        return lines


def extract(image: DiskImage, names: Sequence[str], out_dir: Path) -> List[Path]:
    """Write the selected entries into ``out_dir`` and return the new paths.

    The directory is created when missing.  Every selected entry is validated
    before anything is written.
    """

    if out_dir.exists():
        if not out_dir.is_dir():
            raise DiskImageError(f"output path {out_dir} is not a directory")
    else:
        out_dir.mkdir(parents=True)

    selected = image.find(names)
    payloads = [(entry, image.entry_data(entry)) for entry in selected]

    written: List[Path] = []
    for entry, payload in payloads:
        target = out_dir / entry.filename
        target.write_bytes(payload)
        logger.debug("extracted %s (%d bytes) to %s", entry.qualified_name, len(payload), target)
        written.append(target)
    return written
