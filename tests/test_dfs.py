from pathlib import Path

import pytest

from bbcdisasm.dfs import CATALOG_SIZE, DiskImage, DiskImageError, extract, read_filename


def build_image(files, *, title="GAMES", boot_option=3, cycle=0x12, sectors=800):
    """Assemble a DFS image; ``files`` holds (name, dir, load, exec, payload, sector)."""

    image = bytearray(CATALOG_SIZE)
    raw_title = title.encode("ascii").ljust(12, b"\0")
    image[0:8] = raw_title[:8]
    image[0x100:0x104] = raw_title[8:12]
    image[0x104] = cycle
    image[0x105] = len(files) * 8
    image[0x106] = (boot_option << 4) | ((sectors >> 8) & 0x03)
    image[0x107] = sectors & 0xFF

    for index, (name, directory, load, exec_, payload, sector) in enumerate(files):
        name_offset = 0x008 + index * 8
        image[name_offset : name_offset + 7] = name.encode("ascii").ljust(7)
        image[name_offset + 7] = ord(directory)

        length = len(payload)
        info = 0x108 + index * 8
        image[info + 0] = load & 0xFF
        image[info + 1] = (load >> 8) & 0xFF
        image[info + 2] = exec_ & 0xFF
        image[info + 3] = (exec_ >> 8) & 0xFF
        image[info + 4] = length & 0xFF
        image[info + 5] = (length >> 8) & 0xFF
        image[info + 6] = (
            ((exec_ >> 16) & 0x03) << 6
            | ((length >> 16) & 0x03) << 4
            | ((load >> 16) & 0x03) << 2
            | ((sector >> 8) & 0x03)
        )
        image[info + 7] = sector & 0xFF

        start = sector * 256
        if len(image) < start + length:
            image.extend(b"\0" * (start + length - len(image)))
        image[start : start + length] = payload
    return bytes(image)


ELITE = bytes(range(16))
LOADER = b"\xA9\xC8\x60"


def _sample_image():
    return build_image(
        [
            ("ELITE", "$", 0x1900, 0x190A, ELITE, 2),
            ("LOADER", "$", 0x31100, 0x31100, LOADER, 3),
        ]
    )


def test_parse_catalog_header():
    image = DiskImage.parse(_sample_image())

    assert image.title == "GAMES"
    assert image.sectors == 800
    assert image.boot_option == 3
    assert image.cycle == 0x12
    assert len(image) == 2


def test_parse_catalog_entries():
    image = DiskImage.parse(_sample_image())
    elite, loader = image.entries

    assert elite.filename == "ELITE"
    assert elite.directory == "$"
    assert elite.qualified_name == "$.ELITE"
    assert elite.length == 16
    assert elite.load_address == 0x1900
    assert elite.exec_address == 0x190A
    assert elite.start_sector == 2
    assert not elite.locked

    assert loader.load_address == 0x31100
    assert loader.exec_address == 0x31100
    assert image.entry_data(loader) == LOADER


def test_title_spans_both_catalog_sectors():
    image = DiskImage.parse(build_image([], title="EXILEDISK123"))

    assert image.title == "EXILEDISK123"


def test_filename_attribute_bits_and_lock_flag():
    data = bytearray(_sample_image())
    data[0x008] |= 0x80  # attribute bit 0 on the first character
    data[0x00F] |= 0x80  # locked

    image = DiskImage.parse(bytes(data))
    entry = image.entries[0]

    assert entry.filename == "ELITE"
    assert entry.attributes == 1
    assert entry.locked
    assert entry.directory == "$"


def test_read_filename_rejects_short_block():
    with pytest.raises(DiskImageError, match="too short"):
        read_filename(b"ABC")


def test_image_smaller_than_catalog_is_rejected():
    with pytest.raises(DiskImageError, match="smaller than"):
        DiskImage.parse(b"\0" * 100)


def test_entry_data_outside_image_is_rejected():
    data = bytearray(_sample_image())
    data[0x108 + 7] = 0x90  # move ELITE far beyond the image

    image = DiskImage.parse(bytes(data))

    with pytest.raises(DiskImageError, match="exceeds image size"):
        image.entry_data(image.entries[0])


def test_describe_lists_entries():
    lines = DiskImage.parse(_sample_image()).describe()

    assert lines[0] == "Disk Title  GAMES"
    assert lines[1] == "Num Files   2"
    assert "Filename  Length LoadAddr ExecAddr Sector" in lines
    assert "ELITE     0010   00001900 0000190A   2" in lines


def test_find_selects_named_entries():
    image = DiskImage.parse(_sample_image())

    assert [entry.filename for entry in image.find(["LOADER"])] == ["LOADER"]
    assert [entry.filename for entry in image.find([])] == ["ELITE", "LOADER"]
    assert image.find(["MISSING"]) == []


def test_extract_creates_directory_and_writes_files(tmp_path: Path):
    image = DiskImage.parse(_sample_image())
    out_dir = tmp_path / "out" / "nested"

    written = extract(image, [], out_dir)

    assert sorted(path.name for path in written) == ["ELITE", "LOADER"]
    assert (out_dir / "ELITE").read_bytes() == ELITE
    assert (out_dir / "LOADER").read_bytes() == LOADER


def test_extract_single_entry(tmp_path: Path):
    image = DiskImage.parse(_sample_image())

    written = extract(image, ["LOADER"], tmp_path)

    assert written == [tmp_path / "LOADER"]
    assert not (tmp_path / "ELITE").exists()


def test_extract_rejects_file_as_output_directory(tmp_path: Path):
    image = DiskImage.parse(_sample_image())
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"")

    with pytest.raises(DiskImageError, match="not a directory"):
        extract(image, [], blocker)


def test_load_from_path(tmp_path: Path):
    path = tmp_path / "games.ssd"
    path.write_bytes(_sample_image())

    image = DiskImage.load(path)

    assert image.title == "GAMES"
