from typing import Dict, Iterable, List, Optional, Tuple


class HuffmanError(ValueError): # base for every codec failure
    pass


class TreeBuildError(HuffmanError):
    pass


class HuffmanNode: # Node for Huffman tree, either a Leaf or an Internal node
    weight = 0

    def is_leaf(self) -> bool:
        return False


class Leaf(HuffmanNode):
    def __init__(self, symbol: int, weight: int = 0):
        self.symbol = symbol # byte value 0..255
        self.weight = weight # occurrence count, only meaningful while building

    def is_leaf(self) -> bool:
        return True

    def __eq__(self, other):
        # weights are construction bookkeeping, not part of the code
        return isinstance(other, Leaf) and self.symbol == other.symbol

    def __repr__(self):
        return f"Leaf({self.symbol}, {self.weight})"


class Internal(HuffmanNode):
    def __init__(self, left: HuffmanNode, right: HuffmanNode):
        self.left = left
        self.right = right
        self.weight = left.weight + right.weight # combined weight of both subtrees

    def __eq__(self, other):
        return isinstance(other, Internal) and self.left == other.left and self.right == other.right

    def __repr__(self):
        return f"Internal({self.left!r}, {self.right!r})"


def freq_table(data: Iterable[int]) -> Dict[int, int]:
    ft: Dict[int, int] = {}
    for b in data:
        ft[b] = ft.get(b, 0) + 1
    return ft


def build_huffman_tree(symbols) -> HuffmanNode: # symbols: non-empty sequence of byte values
    if not symbols:
        raise TreeBuildError("cannot build a tree over an empty input")

    ft = freq_table(symbols)
    trees: List[HuffmanNode] = [Leaf(symbol, ft[symbol]) for symbol in sorted(ft)] # ascending byte order

    while len(trees) > 1:
        # stable sort, so equal weights keep their current relative order
        trees.sort(key=lambda node: node.weight, reverse=True)

        left = trees.pop() # lightest entry
        right = trees.pop() # second lightest
        trees.append(Internal(left, right))

    root = trees.pop()
    if root.is_leaf():
        raise TreeBuildError(f"input has a single distinct symbol ({root.symbol}), nothing to code")
    return root


def generate_huffman_codes(root: HuffmanNode) -> Dict[int, str]: # root: root of the Huffman tree
    codes: Dict[int, str] = {}

    def generate_codes_helper(node, current_code): # depth-first, left appends '0', right appends '1'
        if node.is_leaf():
            codes.setdefault(node.symbol, current_code)
            return

        generate_codes_helper(node.left, current_code + '0')
        generate_codes_helper(node.right, current_code + '1')

    generate_codes_helper(root, '')
    return codes


def encode_symbol(root: HuffmanNode, symbol: int) -> Optional[str]:
    """
    Find the code of one symbol by searching the tree, left subtree first.
    Returns None when the symbol has no leaf.
    """
    if root.is_leaf():
        return '' if root.symbol == symbol else None

    code = encode_symbol(root.left, symbol)
    if code is not None:
        return '0' + code
    code = encode_symbol(root.right, symbol)
    if code is not None:
        return '1' + code
    return None


def code_points(root: HuffmanNode) -> List[Tuple[int, int]]:
    """
    (code length, symbol) for every leaf, in depth-first left-before-right order.
    The tree descriptor is written in this order and rebuilt from it.
    """
    points: List[Tuple[int, int]] = []

    def visit(node, depth):
        if node.is_leaf():
            points.append((depth, node.symbol))
            return
        visit(node.left, depth + 1)
        visit(node.right, depth + 1)

    visit(root, 0)
    return points


def tree_depth(root: HuffmanNode) -> int: # number of levels, a lone leaf counts as 1
    if root.is_leaf():
        return 1
    return max(tree_depth(root.left), tree_depth(root.right)) + 1
