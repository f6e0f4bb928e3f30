"""
Packed Huffman stream: tree descriptor + encoded payload

Wire layout (MSB first throughout):
  - one {8-bit code length}{8-bit symbol} entry per leaf, depth-first,
    left subtree before right, then one all-zero 8-bit terminator
  - the payload, one prefix code per symbol
  - zero padding up to the next byte boundary

encode/decode follow the sentinel convention: a zero byte is appended before
encoding and decoding stops at the first decoded zero. encode_framed /
decode_framed prefix a 32-bit symbol count instead and are safe for any data.
"""

from typing import Dict, List, Optional, Tuple

from huffman import (
    HuffmanError,
    HuffmanNode,
    Internal,
    Leaf,
    build_huffman_tree,
    code_points,
    encode_symbol,
    generate_huffman_codes,
)


FIELD_BITS = 8
MAX_CODE_LENGTH = (1 << FIELD_BITS) - 1
SENTINEL = 0
FRAME_HEADER = 4
GUARD_BITS = 1 # trailing False appended by unpack_bits


class CodecError(HuffmanError):
    pass


class CorruptStreamError(CodecError):
    pass


# Bit packing

def pack_bits(bits: str) -> Tuple[bytes, int]:
    """
    Packs a '0'/'1' string into bytes, 8 bits at a time, MSB first
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    out = bytearray()
    acc = 0
    acc_bits = 0

    for ch in bits:
        acc = (acc << 1) | (1 if ch == '1' else 0)
        acc_bits += 1
        if acc_bits == 8:
            out.append(acc & 0xFF)
            acc = 0
            acc_bits = 0

    pad_bits = 0
    if acc_bits != 0:
        pad_bits = 8 - acc_bits
        acc = acc << pad_bits
        out.append(acc & 0xFF)

    return bytes(out), pad_bits


def unpack_bits(packed: bytes) -> List[bool]:
    bits = [(byte >> i) & 1 == 1 for byte in packed for i in range(7, -1, -1)]
    bits.append(False) # guard bit
    return bits


class BitReader:
    """Cursor over an unpacked bit list; never reads into the guard bit."""

    def __init__(self, bits: List[bool]):
        self.bits = bits
        self.pos = 0
        self.end = len(bits) - GUARD_BITS

    def remaining(self) -> int: # includes the guard bit
        return len(self.bits) - self.pos

    def read_bit(self) -> bool:
        if self.pos >= self.end:
            raise CorruptStreamError(f"bit stream ended at bit {self.pos} in the middle of a code")
        bit = self.bits[self.pos]
        self.pos += 1
        return bit

    def read_field(self, width: int = FIELD_BITS) -> int:
        if self.pos + width > self.end:
            raise CorruptStreamError(f"truncated tree descriptor at bit {self.pos}")
        value = 0
        for bit in self.bits[self.pos:self.pos + width]:
            value = (value << 1) | bit
        self.pos += width
        return value


# Serializer

def tree_descriptor(tree: HuffmanNode) -> str:
    fields = []
    for length, symbol in code_points(tree):
        if length > MAX_CODE_LENGTH:
            raise CodecError(f"code length {length} for symbol {symbol} does not fit in {FIELD_BITS} bits")
        fields.append(f"{length:08b}{symbol:08b}")
    fields.append('0' * FIELD_BITS) # terminator, real lengths are always >= 1
    return ''.join(fields)


def serialize(tree: HuffmanNode, symbols, codes: Optional[Dict[int, str]] = None) -> bytes:
    """
    Packs the tree descriptor followed by the code of every symbol.
    Without a code map each symbol is found by walking the tree.
    """
    bits = [tree_descriptor(tree)]
    for symbol in symbols:
        code = codes.get(symbol) if codes is not None else encode_symbol(tree, symbol)
        if code is None:
            raise CodecError(f"symbol {symbol} has no code in this tree")
        bits.append(code)

    packed, _ = pack_bits(''.join(bits))
    return packed


# Deserializer

def read_descriptor(reader: BitReader) -> List[Tuple[int, int]]:
    points: List[Tuple[int, int]] = []
    while True:
        length = reader.read_field()
        if length == 0:
            return points
        symbol = reader.read_field()
        points.append((length, symbol))


def rebuild_tree(points: List[Tuple[int, int]]) -> HuffmanNode:
    """
    Inverse of code_points(): entries are consumed strictly in order, a leaf is
    placed as soon as the next entry's length equals the current depth.
    """
    if not points:
        raise CorruptStreamError("tree descriptor has no leaves")

    index = 0

    def build(depth):
        nonlocal index
        if index >= len(points):
            raise CorruptStreamError(f"tree descriptor ran out of leaves at depth {depth}")

        length, symbol = points[index]
        if length == depth:
            index += 1
            return Leaf(symbol)
        if length < depth:
            raise CorruptStreamError(f"leaf {symbol} declares length {length} but is reached at depth {depth}")

        left = build(depth + 1)
        right = build(depth + 1)
        return Internal(left, right)

    root = build(0)
    if index != len(points):
        raise CorruptStreamError(f"tree descriptor has {len(points) - index} leaves past a complete tree")
    return root


def decode_symbol(tree: HuffmanNode, reader: BitReader) -> int:
    node = tree
    while not node.is_leaf():
        node = node.right if reader.read_bit() else node.left
    return node.symbol


def deserialize(packed: bytes, count: Optional[int] = None) -> Tuple[HuffmanNode, bytes]:
    """
    Rebuilds the tree and decodes the payload.

    count=None: stop at the first decoded SENTINEL (not returned) or once fewer
    than 2 bits are left, guard bit included.
    count=n: decode exactly n symbols, zero bytes included.
    """
    reader = BitReader(unpack_bits(packed))
    tree = rebuild_tree(read_descriptor(reader))

    out = bytearray()
    if count is None:
        while reader.remaining() > 1:
            symbol = decode_symbol(tree, reader)
            if symbol == SENTINEL:
                break
            out.append(symbol)
    else:
        for _ in range(count):
            out.append(decode_symbol(tree, reader))

    return tree, bytes(out)


# Entry points

def encode(data: bytes) -> bytes:
    symbols = bytes(data) + bytes([SENTINEL])
    tree = build_huffman_tree(symbols)
    return serialize(tree, symbols, generate_huffman_codes(tree))


def decode(packed: bytes) -> bytes:
    _, data = deserialize(packed)
    return data


def encode_framed(data: bytes) -> bytes:
    data = bytes(data)
    if len(data) >= 1 << (8 * FRAME_HEADER):
        raise CodecError(f"{len(data)} symbols do not fit in a {FRAME_HEADER}-byte frame header")
    tree = build_huffman_tree(data)
    return len(data).to_bytes(FRAME_HEADER, 'big') + serialize(tree, data, generate_huffman_codes(tree))


def decode_framed(packed: bytes) -> bytes:
    if len(packed) < FRAME_HEADER:
        raise CorruptStreamError(f"frame header needs {FRAME_HEADER} bytes, got {len(packed)}")
    count = int.from_bytes(packed[:FRAME_HEADER], 'big')
    _, data = deserialize(packed[FRAME_HEADER:], count=count)
    return data
