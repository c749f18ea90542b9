import heapq
import logging
from typing import Dict, Iterable, Iterator, List, Tuple

from errors import EmptyAlphabetError, FormatError, StructuralError, TruncatedInputError

logger = logging.getLogger(__name__)

ALPHABET_SIZE = 256


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, frequency, left=None, right=None, order=0):
        self.symbol = symbol    # byte value; 0 for internal nodes
        self.frequency = frequency
        self.left = left
        self.right = right
        self.order = order # creation order, breaks ties between equal frequencies

    def __lt__(self, other):
        # equal frequencies: the node created first pops first, so the tree shape is reproducible
        return (self.frequency, self.order) < (other.frequency, other.order)

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode(symbol={self.symbol}, frequency={self.frequency})"
        return f"HuffmanNode(internal, frequency={self.frequency})"

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def child(self, bit: int) -> "HuffmanNode":
        if self.is_leaf():
            raise StructuralError(f"cannot descend below leaf for symbol {self.symbol}")
        if bit == 0:
            return self.left
        if bit == 1:
            return self.right
        raise StructuralError(f"bit must be 0 or 1, got {bit!r}")

    def iter_leaves(self) -> Iterator[Tuple[int, str]]:
        """
        Yield (symbol, code) for every leaf, left subtree before right subtree
        """
        stack = [(self, "")]
        while stack:
            node, code = stack.pop()
            if node.is_leaf():
                yield node.symbol, code
                continue
            # right is pushed first so the left branch comes out first
            if node.right is not None:
                stack.append((node.right, code + "1"))
            if node.left is not None:
                stack.append((node.left, code + "0"))


def count_frequencies(data: bytes) -> List[int]: # one count per byte value
    counts = [0] * ALPHABET_SIZE
    for byte in data:
        counts[byte] += 1
    return counts


def _frequency_items(frequency_table) -> List[Tuple[int, int]]:
    if isinstance(frequency_table, dict):
        items = sorted(frequency_table.items())
    else:
        items = list(enumerate(frequency_table))

    for symbol, frequency in items:
        if not 0 <= symbol < ALPHABET_SIZE:
            raise ValueError(f"symbol {symbol} outside 0..{ALPHABET_SIZE - 1}")
        if frequency < 0:
            raise ValueError(f"negative frequency {frequency} for symbol {symbol}")
    return [(symbol, frequency) for symbol, frequency in items if frequency > 0]


def build_huffman_tree(frequency_table) -> HuffmanNode: # frequency_table: dict of symbol -> frequency, or 256 counts
    items = _frequency_items(frequency_table)
    if not items:
        raise EmptyAlphabetError("frequency table has no symbol with a non-zero count")

    priority_queue = [HuffmanNode(symbol, frequency, order=i) for i, (symbol, frequency) in enumerate(items)]
    heapq.heapify(priority_queue)
    next_order = len(priority_queue)

    # Build the tree
    while len(priority_queue) > 1:
        left = heapq.heappop(priority_queue)
        right = heapq.heappop(priority_queue)
        merged_node = HuffmanNode(0, left.frequency + right.frequency, left, right, order=next_order) # internal node with combined frequency
        next_order += 1
        heapq.heappush(priority_queue, merged_node) # add the merged node back to the priority queue

    logger.debug("built tree over %d symbols", len(items))
    return priority_queue[0] # root of the tree


def build_tree_from_table(entries: Iterable[Tuple[int, str]]) -> HuffmanNode: # entries: (symbol, code) pairs in any order
    root = None
    count = 0
    for symbol, code in entries:
        if not 0 <= symbol < ALPHABET_SIZE:
            raise FormatError(f"symbol {symbol} outside 0..{ALPHABET_SIZE - 1}")
        if any(ch not in "01" for ch in code):
            raise FormatError(f"code {code!r} for symbol {symbol} is not binary")
        count += 1

        if code == "":
            # the whole tree is one leaf
            if root is not None:
                raise FormatError(f"empty code for symbol {symbol} conflicts with other codes")
            root = HuffmanNode(symbol, 0)
            continue

        if root is None:
            root = HuffmanNode(0, 0)
        elif root.is_leaf():
            raise FormatError(f"code {code!r} for symbol {symbol} conflicts with an empty code")

        node = root
        for depth, ch in enumerate(code):
            last = depth == len(code) - 1
            attr = "right" if ch == "1" else "left"
            nxt = getattr(node, attr)
            if nxt is None:
                nxt = HuffmanNode(symbol, 0) if last else HuffmanNode(0, 0)
                setattr(node, attr, nxt)
            elif last:
                # something already lives here: a leaf (duplicate) or a longer code (prefix)
                raise FormatError(f"code {code!r} for symbol {symbol} is a prefix of, or equal to, another code")
            elif nxt.is_leaf():
                raise FormatError(f"code {code!r} for symbol {symbol} extends the code of symbol {nxt.symbol}")
            node = nxt

    if root is None:
        raise EmptyAlphabetError("code table has no entries")

    # a code with no sibling leaves a one-child node behind
    stack = [(root, "")]
    while stack:
        node, code = stack.pop()
        if node.is_leaf():
            continue
        if node.left is None or node.right is None:
            missing = "1" if node.right is None else "0"
            raise FormatError(f"code table has no code starting with {code + missing!r}")
        stack.append((node.left, code + "0"))
        stack.append((node.right, code + "1"))

    logger.debug("rebuilt tree from %d table entries", count)
    return root


def generate_huffman_codes(root: HuffmanNode) -> Dict[int, str]: # root: root of the Huffman tree
    return dict(root.iter_leaves()) # mapping of symbols to their Huffman codes


def huffman_encode(data: bytes, code_map: Dict[int, str], writer) -> int: # writer: bit sink with write_bits
    written = 0
    for byte in data:
        code = code_map.get(byte)
        if code is None:
            raise ValueError(f"byte {byte} has no code in this table")
        writer.write_bits(code)
        written += len(code)
    logger.debug("encoded %d bytes into %d bits", len(data), written)
    return written


def huffman_decode(reader, root: HuffmanNode, symbol_count=None) -> bytes: # reader: bit source with has_next_bit/next_bit
    decoded_bytes = bytearray()

    if root.is_leaf():
        # every occurrence has the empty code, so only the caller knows how many there are
        decoded_bytes.extend([root.symbol] * (symbol_count or 0))
        if reader.has_next_bit():
            root.child(reader.next_bit())
        return bytes(decoded_bytes)

    while symbol_count is None or len(decoded_bytes) < symbol_count:
        if not reader.has_next_bit():
            if symbol_count is not None:
                raise TruncatedInputError(f"bit stream ended after {len(decoded_bytes)} of {symbol_count} symbols")
            break
        current_node = root
        while not current_node.is_leaf():
            if not reader.has_next_bit():
                raise TruncatedInputError(f"bit stream ended inside a code after {len(decoded_bytes)} symbols")
            current_node = current_node.child(reader.next_bit())
        decoded_bytes.append(current_node.symbol) # reached a leaf

    logger.debug("decoded %d symbols", len(decoded_bytes))
    return bytes(decoded_bytes)
