"""
Command-line front end for the Huffman code table compressor

How to run:
  python compressor.py make-code book.txt book.code
  python compressor.py compress book.txt book.code book.short
  python compressor.py decompress book.short book.code book.new

Compressed file layout: an 8-byte big-endian count of original bytes, then the
bit payload padded with zero bits to a whole byte. The raw bit stream carries
no header or end marker, so the count is what tells the decoder where to stop.
"""

from __future__ import annotations

import argparse
import io
import logging
import sys
from pathlib import Path
from typing import List, Optional

import huffman as huff
from bitio import BitReader, BitWriter
from code_table import load_code_table, write_code_table
from errors import TruncatedInputError

logger = logging.getLogger(__name__)

COUNT_BYTES = 8 # size of the original-length prefix


def compress_bytes(data: bytes, root: huff.HuffmanNode) -> bytes:
    code_map = huff.generate_huffman_codes(root) # computed once, not per byte
    out = io.BytesIO()
    out.write(len(data).to_bytes(COUNT_BYTES, "big"))
    with BitWriter(out) as writer:
        huff.huffman_encode(data, code_map, writer)
    return out.getvalue()


def decompress_bytes(blob: bytes, root: huff.HuffmanNode) -> bytes:
    if len(blob) < COUNT_BYTES:
        raise TruncatedInputError(f"compressed data is {len(blob)} bytes, shorter than its {COUNT_BYTES}-byte length prefix")
    symbol_count = int.from_bytes(blob[:COUNT_BYTES], "big")
    reader = BitReader(blob[COUNT_BYTES:])
    return huff.huffman_decode(reader, root, symbol_count=symbol_count)


def cmd_make_code(args: argparse.Namespace) -> int:
    data = Path(args.input).read_bytes()
    root = huff.build_huffman_tree(huff.count_frequencies(data))
    with open(args.code_file, "w", encoding="ascii", newline="\n") as f:
        write_code_table(root, f)
    print(f"Wrote code for {len(huff.generate_huffman_codes(root))} symbols to {args.code_file}")
    return 0


def _read_code(path: str) -> huff.HuffmanNode:
    with open(path, "r", encoding="ascii", newline="") as f:
        return load_code_table(f)


def cmd_compress(args: argparse.Namespace) -> int:
    data = Path(args.input).read_bytes()
    packed = compress_bytes(data, _read_code(args.code_file))
    Path(args.output).write_bytes(packed)
    print(f"Compressed {len(data)} bytes to {len(packed)} bytes ({args.output})")
    return 0


def cmd_decompress(args: argparse.Namespace) -> int:
    blob = Path(args.input).read_bytes()
    data = decompress_bytes(blob, _read_code(args.code_file))
    Path(args.output).write_bytes(data)
    print(f"Decompressed {len(blob)} bytes to {len(data)} bytes ({args.output})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman code table compressor")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("make-code", help="Count byte frequencies and save a code table")
    p.add_argument("input", help="File to count byte frequencies in")
    p.add_argument("code_file", help="Where to write the code table")
    p.set_defaults(func=cmd_make_code)

    p = sub.add_parser("compress", help="Compress a file with a saved code table")
    p.add_argument("input")
    p.add_argument("code_file")
    p.add_argument("output")
    p.set_defaults(func=cmd_compress)

    p = sub.add_parser("decompress", help="Decompress a file with a saved code table")
    p.add_argument("input")
    p.add_argument("code_file")
    p.add_argument("output")
    p.set_defaults(func=cmd_decompress)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(name)s: %(message)s")
    try:
        return args.func(args)
    except (ValueError, OSError) as e: # HuffmanError is a ValueError
        logger.debug("command %s failed", args.command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
