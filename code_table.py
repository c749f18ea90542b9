import logging
from typing import Iterable, List, Tuple

from errors import FormatError
from huffman import ALPHABET_SIZE, HuffmanNode, build_tree_from_table

logger = logging.getLogger(__name__)

# Text format: two lines per leaf, the decimal symbol then its code, e.g.
#   97\n0\n98\n10\n99\n11\n
# No header, no count; the end of input ends the table.


def save_code_table(root: HuffmanNode) -> List[str]:
    lines = []
    for symbol, code in root.iter_leaves(): # left subtree first, not sorted by symbol
        lines.append(str(symbol))
        lines.append(code)
    return lines


def write_code_table(root: HuffmanNode, stream) -> None: # stream: text stream
    for line in save_code_table(root):
        stream.write(line + "\n")


def parse_code_table(lines: Iterable[str]) -> List[Tuple[int, str]]:
    stripped = [line.rstrip("\r\n") for line in lines]
    if len(stripped) % 2 != 0:
        raise FormatError(f"code table has an odd number of lines ({len(stripped)})")

    entries = []
    for i in range(0, len(stripped), 2):
        symbol_line, code = stripped[i], stripped[i + 1]
        if not (symbol_line.isascii() and symbol_line.isdigit()):
            raise FormatError(f"line {i + 1}: symbol {symbol_line!r} is not a decimal integer")
        symbol = int(symbol_line)
        if symbol >= ALPHABET_SIZE:
            raise FormatError(f"line {i + 1}: symbol {symbol} outside 0..{ALPHABET_SIZE - 1}")
        if any(ch not in "01" for ch in code):
            raise FormatError(f"line {i + 2}: code {code!r} is not binary")
        entries.append((symbol, code))

    logger.debug("parsed %d code table entries", len(entries))
    return entries


def load_code_table(source) -> HuffmanNode: # source: text stream, string, or list of lines
    if isinstance(source, str):
        source = source.splitlines()
    return build_tree_from_table(parse_code_table(source))
