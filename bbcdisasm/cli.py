"""Extract and disassemble programs from BBC Micro DFS disk images."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from .dfs import DiskImage, extract
from .disassembler import Disassembler
from .symbols import Variable, parse_number, parse_variable


logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """Report usage errors with exit status 1 like every other failure."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="bbcdisasm", description=__doc__)
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log analysis details to stderr",
    )
    commands = parser.add_subparsers(dest="command", parser_class=_ArgumentParser)

    list_parser = commands.add_parser("list", aliases=["ls"], help="List a DFS disk image")
    list_parser.add_argument("image", type=Path)
    list_parser.set_defaults(handler=run_list)

    extract_parser = commands.add_parser(
        "extract",
        aliases=["x"],
        help="Extract one or more files from a DFS disk image",
    )
    extract_parser.add_argument("image", type=Path)
    extract_parser.add_argument(
        "entries",
        nargs="*",
        help="Catalog entries to extract; every entry when omitted",
    )
    extract_parser.add_argument(
        "--outdir",
        type=Path,
        default=Path("."),
        help="Output directory for extracted files",
    )
    extract_parser.set_defaults(handler=run_extract)

    disasm_parser = commands.add_parser("disasm", aliases=["d"], help="Disassemble a file")
    disasm_parser.add_argument("file", type=Path)
    disasm_parser.add_argument("offset", nargs="?", default=None)
    disasm_parser.add_argument("length", nargs="?", default=None)
    disasm_parser.add_argument(
        "--loadaddr",
        default="0",
        help="Load address of the code, used for addresses and branch targets",
    )
    disasm_parser.add_argument(
        "--codeaddrs",
        default="",
        help="Comma separated addresses known to hold code",
    )
    disasm_parser.add_argument(
        "--definevar",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Define a variable substituted for matching absolute operands",
    )
    disasm_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the listing to a file instead of stdout",
    )
    disasm_parser.set_defaults(handler=run_disasm)

    return parser


def _number(text: str, what: str) -> int:
    try:
        return parse_number(text)
    except ValueError:
        raise SystemExit(f"Could not parse {what}") from None


def resolve_window(
    file_length: int, offset_text: Optional[str], length_text: Optional[str]
) -> tuple[int, int]:
    """Validate the optional offset/length arguments against the file size."""

    offset = 0
    if offset_text is not None:
        offset = _number(offset_text, "offset")
        if offset < 0:
            raise SystemExit("offset cannot be before start of file")
        if offset >= file_length:
            raise SystemExit("offset cannot be past end of file")

    length = file_length - offset
    if length_text is not None:
        length = _number(length_text, "length")
        if length < 0:
            raise SystemExit("length cannot be negative")
        length = min(length, file_length - offset)
    return offset, length


def parse_code_addresses(text: str) -> List[int]:
    addresses: List[int] = []
    for part in text.split(","):
        if not part.strip():
            continue
        address = _number(part, "address")
        if address < 0:
            raise SystemExit("Invalid address")
        addresses.append(address)
    return addresses


def parse_definitions(definitions: Sequence[str]) -> List[Variable]:
    variables: List[Variable] = []
    for definition in definitions:
        try:
            variables.append(parse_variable(definition))
        except ValueError as exc:
            raise SystemExit(str(exc)) from None
    return variables


def run_list(args: argparse.Namespace) -> None:
    image = DiskImage.load(args.image)
    for line in image.describe():
        print(line)


def run_extract(args: argparse.Namespace) -> None:
    image = DiskImage.load(args.image)
    try:
        written = extract(image, args.entries, args.outdir)
    except ValueError as exc:
        raise SystemExit(f"Could not extract file from image: {exc}") from None
    for path in written:
        logger.info("wrote %s", path)


def run_disasm(args: argparse.Namespace) -> None:
    program = args.file.read_bytes()
    offset, length = resolve_window(len(program), args.offset, args.length)

    load_address = _number(args.loadaddr, "load address")
    if load_address < 0:
        raise SystemExit("load address cannot be negative")

    disassembler = Disassembler(
        program,
        offset=offset,
        length=length,
        branch_adjust=load_address,
        code_addresses=parse_code_addresses(args.codeaddrs),
        variables=parse_definitions(args.definevar),
    )

    if args.out is not None:
        disassembler.write_listing(args.out)
    else:
        disassembler.disassemble(sys.stdout)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0

    try:
        handler(args)
    except OSError as exc:
        raise SystemExit(f"{exc.filename or args.command}: {exc.strerror or exc}") from None
    except ValueError as exc:
        raise SystemExit(str(exc)) from None
    return 0


if __name__ == "__main__":
    sys.exit(main())
