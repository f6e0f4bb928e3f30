import random

import pytest

from huffman import (
    HuffmanError,
    Internal,
    Leaf,
    TreeBuildError,
    build_huffman_tree,
    code_points,
    encode_symbol,
    freq_table,
    generate_huffman_codes,
    tree_depth,
)


def _check_weights(node):
    if node.is_leaf():
        return node.weight
    assert node.weight == _check_weights(node.left) + _check_weights(node.right)
    return node.weight


def test_freq_table_counts_bytes():
    assert freq_table(b"aab\x00") == {97: 2, 98: 1, 0: 1}
    assert freq_table(b"") == {}


def test_aab_with_sentinel_tree_shape():
    tree = build_huffman_tree(b"aab\x00")
    assert tree == Internal(Internal(Leaf(ord('b')), Leaf(0)), Leaf(ord('a')))
    assert tree.weight == 4
    assert generate_huffman_codes(tree) == {98: '00', 0: '01', 97: '1'}


def test_equal_leaves_merge_in_ascending_byte_order():
    tree = build_huffman_tree(b"abcd")
    a, b, c, d = (Leaf(ord(ch)) for ch in "abcd")
    assert tree == Internal(Internal(b, a), Internal(d, c))


def test_earlier_leaf_keeps_its_place_against_new_internal_node():
    # 'a' (weight 2) ties with Internal(c, b) (weight 2) and stays ahead of it
    tree = build_huffman_tree(b"aabc")
    assert tree == Internal(Internal(Leaf(ord('c')), Leaf(ord('b'))), Leaf(ord('a')))


def test_heavier_leaf_ends_up_shallower():
    tree = build_huffman_tree(b"aabbc")
    assert tree == Internal(Leaf(ord('a')), Internal(Leaf(ord('c')), Leaf(ord('b'))))
    codes = generate_huffman_codes(tree)
    assert codes == {97: '0', 99: '10', 98: '11'}


def test_weights_sum_to_input_length():
    rng = random.Random(7)
    data = bytes(rng.randrange(0, 40) for _ in range(3000))
    tree = build_huffman_tree(data)
    assert _check_weights(tree) == len(data)


def test_empty_input_is_rejected():
    with pytest.raises(TreeBuildError):
        build_huffman_tree(b"")


def test_single_distinct_symbol_is_rejected():
    with pytest.raises(TreeBuildError, match="single distinct symbol"):
        build_huffman_tree(b"aaaa")


def test_tree_errors_are_value_errors():
    assert issubclass(TreeBuildError, HuffmanError)
    with pytest.raises(ValueError):
        build_huffman_tree(b"z")


def test_equality_ignores_weights():
    assert Leaf(5, 1) == Leaf(5, 100)
    assert Leaf(5) != Leaf(6)
    assert Leaf(5) != Internal(Leaf(5), Leaf(6))
    assert Internal(Leaf(1), Leaf(2)) != Internal(Leaf(2), Leaf(1))


@pytest.mark.parametrize("seed", [1, 2, 3, 4])
def test_codes_are_prefix_free(seed):
    rng = random.Random(seed)
    data = bytes(rng.randrange(0, 256) for _ in range(rng.randrange(50, 2000)))
    codes = list(generate_huffman_codes(build_huffman_tree(data)).values())
    for i, x in enumerate(codes):
        assert x
        for j, y in enumerate(codes):
            if i != j:
                assert not y.startswith(x)


def test_encode_symbol_matches_code_map():
    tree = build_huffman_tree(b"the quick brown fox\x00")
    codes = generate_huffman_codes(tree)
    for symbol, code in codes.items():
        assert encode_symbol(tree, symbol) == code
    assert encode_symbol(tree, ord('Z')) is None


def test_code_points_follow_leaf_order():
    tree = build_huffman_tree(b"aab\x00")
    assert code_points(tree) == [(2, 98), (2, 0), (1, 97)]


def test_all_byte_values_give_balanced_tree():
    tree = build_huffman_tree(bytes(range(256)))
    points = code_points(tree)
    assert len(points) == 256
    assert {length for length, _ in points} == {8}
    assert sorted(symbol for _, symbol in points) == list(range(256))


def test_tree_depth():
    assert tree_depth(Leaf(1)) == 1
    assert tree_depth(build_huffman_tree(b"aab\x00")) == 3
    assert tree_depth(build_huffman_tree(bytes(range(256)))) == 9
