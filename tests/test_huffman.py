import io
import random

import pytest

import huffman as huff
from bitio import BitReader, BitWriter
from errors import EmptyAlphabetError, FormatError, StructuralError, TruncatedInputError

CLASSIC = {97: 5, 98: 9, 99: 12, 100: 13, 101: 16, 102: 45}


def encode_bits(data, root):
    out = io.BytesIO()
    with BitWriter(out) as writer:
        n = huff.huffman_encode(data, huff.generate_huffman_codes(root), writer)
    return out.getvalue(), n


def test_classic_six_symbol_codes():
    codes = huff.generate_huffman_codes(huff.build_huffman_tree(CLASSIC))
    assert codes == {
        102: "0",
        99: "100",
        100: "101",
        97: "1100",
        98: "1101",
        101: "111",
    }


def test_build_is_deterministic():
    first = huff.generate_huffman_codes(huff.build_huffman_tree(CLASSIC))
    second = huff.generate_huffman_codes(huff.build_huffman_tree(dict(reversed(list(CLASSIC.items())))))
    assert first == second


def test_equal_weights_merge_in_creation_order():
    codes = huff.generate_huffman_codes(huff.build_huffman_tree({1: 1, 2: 1, 3: 1, 4: 1}))
    assert codes == {1: "00", 2: "01", 3: "10", 4: "11"}


def test_list_and_dict_tables_agree():
    counts = [0] * 256
    for symbol, freq in CLASSIC.items():
        counts[symbol] = freq
    assert huff.generate_huffman_codes(huff.build_huffman_tree(counts)) == \
        huff.generate_huffman_codes(huff.build_huffman_tree(CLASSIC))


def test_zero_frequencies_get_no_leaf():
    codes = huff.generate_huffman_codes(huff.build_huffman_tree({1: 3, 2: 0, 3: 4}))
    assert set(codes) == {1, 3}


def test_codes_are_prefix_free():
    rng = random.Random(7)
    for _ in range(20):
        freqs = {s: rng.randint(1, 1000) for s in rng.sample(range(256), rng.randint(2, 256))}
        codes = list(huff.generate_huffman_codes(huff.build_huffman_tree(freqs)).values())
        assert len(codes) == len(freqs)
        for a in codes:
            for b in codes:
                if a is not b:
                    assert not b.startswith(a)


def test_internal_nodes_have_two_children():
    root = huff.build_huffman_tree(huff.count_frequencies(b"abracadabra"))
    stack = [root]
    while stack:
        node = stack.pop()
        if not node.is_leaf():
            assert node.left is not None and node.right is not None
            stack.extend([node.left, node.right])


def test_empty_frequency_table_raises():
    with pytest.raises(EmptyAlphabetError):
        huff.build_huffman_tree({})
    with pytest.raises(EmptyAlphabetError):
        huff.build_huffman_tree([0] * 256)


def test_bad_frequency_table_raises():
    with pytest.raises(ValueError):
        huff.build_huffman_tree({300: 1})
    with pytest.raises(ValueError):
        huff.build_huffman_tree({1: -1})


def test_count_frequencies():
    counts = huff.count_frequencies(b"aab\x00")
    assert len(counts) == 256
    assert counts[ord("a")] == 2
    assert counts[ord("b")] == 1
    assert counts[0] == 1
    assert sum(counts) == 4


def test_child_on_leaf_raises():
    leaf = huff.HuffmanNode(65, 1)
    assert leaf.is_leaf()
    with pytest.raises(StructuralError):
        leaf.child(0)


def test_child_follows_bit():
    root = huff.build_huffman_tree({1: 1, 2: 1})
    assert root.child(0).symbol == 1
    assert root.child(1).symbol == 2
    with pytest.raises(StructuralError):
        root.child(2)


def test_single_symbol_tree_is_a_leaf():
    root = huff.build_huffman_tree({65: 10})
    assert root.is_leaf()
    assert root.symbol == 65
    assert huff.generate_huffman_codes(root) == {65: ""}


def test_single_symbol_encodes_to_zero_bits():
    root = huff.build_huffman_tree({65: 10})
    packed, n = encode_bits(b"AAAAAAAAAA", root)
    assert n == 0
    assert packed == b""
    assert huff.huffman_decode(BitReader(packed), root, symbol_count=10) == b"AAAAAAAAAA"


def test_single_symbol_decode_without_count_is_empty():
    root = huff.build_huffman_tree({65: 10})
    assert huff.huffman_decode(BitReader(b""), root) == b""


def test_single_symbol_decode_with_leftover_bits_raises():
    root = huff.build_huffman_tree({65: 10})
    with pytest.raises(StructuralError):
        huff.huffman_decode(BitReader(b"\x00"), root, symbol_count=1)


def test_round_trip_exact_bit_count():
    data = b"this is an example of a huffman tree"
    root = huff.build_huffman_tree(huff.count_frequencies(data))
    packed, n = encode_bits(data, root)
    assert huff.huffman_decode(BitReader(packed, n), root) == data


def test_round_trip_random_bytes():
    rng = random.Random(3)
    data = bytes(rng.getrandbits(8) for _ in range(5000))
    root = huff.build_huffman_tree(huff.count_frequencies(data))
    packed, n = encode_bits(data, root)
    assert huff.huffman_decode(BitReader(packed, n), root) == data
    assert huff.huffman_decode(BitReader(packed), root, symbol_count=len(data)) == data


def test_round_trip_with_wider_tree():
    # tree covers more symbols than the input uses
    root = huff.build_huffman_tree({s: s + 1 for s in range(256)})
    data = bytes(range(0, 256, 3))
    packed, n = encode_bits(data, root)
    assert huff.huffman_decode(BitReader(packed, n), root) == data


def test_encode_unknown_byte_raises():
    root = huff.build_huffman_tree({97: 1, 98: 1})
    with pytest.raises(ValueError):
        encode_bits(b"abc", root)


def test_truncated_stream_raises():
    # 16 equal weights: every code is 4 bits
    root = huff.build_huffman_tree({s: 1 for s in range(16)})
    assert min(len(c) for c in huff.generate_huffman_codes(root).values()) == 4
    with pytest.raises(TruncatedInputError):
        huff.huffman_decode(BitReader(b"\xff", 3), root)


def test_stream_shorter_than_symbol_count_raises():
    root = huff.build_huffman_tree({1: 1, 2: 1})
    with pytest.raises(TruncatedInputError):
        huff.huffman_decode(BitReader(b"\x00", 4), root, symbol_count=5)


def test_decode_stops_at_symbol_count():
    root = huff.build_huffman_tree({1: 1, 2: 1})
    # 0b01000000: the trailing zero bits would decode as more 1s without the count
    assert huff.huffman_decode(BitReader(b"\x40"), root, symbol_count=2) == bytes([1, 2])


def test_table_rebuild_matches_codes():
    codes = huff.generate_huffman_codes(huff.build_huffman_tree(CLASSIC))
    entries = list(codes.items())
    random.Random(1).shuffle(entries)
    assert huff.generate_huffman_codes(huff.build_tree_from_table(entries)) == codes


def test_table_rebuild_single_leaf():
    root = huff.build_tree_from_table([(65, "")])
    assert root.is_leaf() and root.symbol == 65


@pytest.mark.parametrize("entries", [
    [(1, "0"), (2, "01"), (3, "1")],     # leaf is a prefix of a later code
    [(2, "01"), (3, "00"), (1, "0"), (4, "1")],  # later code is a prefix of earlier ones
    [(1, "0"), (2, "0"), (3, "1")],      # duplicate code
    [(1, ""), (2, "1")],                 # empty code next to others
    [(2, "1"), (1, "")],
    [(1, "0")],                          # no code starts with 1
    [(1, "00"), (2, "01"), (3, "10")],   # no code starts with 11
    [(1, "0"), (2, "1x")],
    [(256, "0"), (1, "1")],
])
def test_table_rebuild_rejects_bad_tables(entries):
    with pytest.raises(FormatError):
        huff.build_tree_from_table(entries)


def test_table_rebuild_empty_raises():
    with pytest.raises(EmptyAlphabetError):
        huff.build_tree_from_table([])
