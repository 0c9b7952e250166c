import random

import pytest

from navigator.models import FolderNode, FolderTree, coerce_folder_tree
from navigator.tree import PathIndexCache, build_path_index, find_ancestor_chain


def _random_tree(seed: int, size: int = 200) -> FolderTree:
    rng = random.Random(seed)
    # build flat parent links first, then nest
    parents: dict[int, int | None] = {}
    for folder_id in range(1, size + 1):
        candidates = list(parents)
        parents[folder_id] = rng.choice(candidates) if candidates and rng.random() < 0.8 else None

    def build(folder_id: int) -> dict:
        children = [build(child) for child, parent in parents.items() if parent == folder_id]
        return {"id": folder_id, "name": rng.choice(["a", "b", "c", "Login"]), "parentId": parents[folder_id], "children": children}

    return coerce_folder_tree([build(folder_id) for folder_id, parent in parents.items() if parent is None])


def _parent_map(tree: FolderTree) -> dict[int, int | None]:
    parents: dict[int, int | None] = {root.id: None for root in tree.roots}
    for node in tree.walk():
        for child in node.children:
            parents[child.id] = node.id
    return parents


def test_abc_scenario(abc_tree_payload):
    tree = coerce_folder_tree(abc_tree_payload)
    index = build_path_index(tree)
    assert find_ancestor_chain(tree, 3) == [1, 2, 3]
    assert index.path_of(3) == "A/B/C"
    assert index.path_of(1) == "A"


def test_every_path_is_parent_path_plus_name():
    for seed in range(5):
        tree = _random_tree(seed)
        index = build_path_index(tree)
        parents = _parent_map(tree)
        assert len(index) == tree.node_count
        for node in tree.walk():
            parent = parents[node.id]
            if parent is None:
                assert index.path_of(node.id) == node.name
            else:
                assert index.path_of(node.id) == f"{index.path_of(parent)}/{node.name}"


def test_chain_ends_at_target_and_follows_parent_links():
    tree = _random_tree(42)
    parents = _parent_map(tree)
    for node in tree.walk():
        chain = find_ancestor_chain(tree, node.id)
        assert chain[-1] == node.id
        assert parents[chain[0]] is None
        for parent, child in zip(chain, chain[1:]):
            assert parents[child] == parent


def test_chain_for_missing_id_is_none(forest_payload):
    tree = coerce_folder_tree(forest_payload)
    assert find_ancestor_chain(tree, 999) is None
    assert build_path_index(tree).ancestor_chain_to(999) is None


def test_forest_with_duplicate_names(forest_payload):
    index = build_path_index(coerce_folder_tree(forest_payload))
    assert index.path_of(12) == "Regression/Login/SSO"
    assert index.path_of(21) == "Smoke/Login"
    assert index.ancestor_chain_to(13) == [10, 11, 13]
    assert index.ancestor_chain_to(21) == [20, 21]


def test_duplicate_sibling_names_share_a_path():
    tree = coerce_folder_tree([
        {"id": 1, "name": "Root", "children": [
            {"id": 2, "name": "Same", "children": []},
            {"id": 3, "name": "Same", "children": []},
        ]},
    ])
    index = build_path_index(tree)
    assert index.path_of(2) == index.path_of(3) == "Root/Same"
    assert index.ancestor_chain_to(3) == [1, 3]


def test_deep_tree_does_not_recurse():
    depth = 5000
    node = FolderNode(id=depth, name=f"n{depth}")
    for folder_id in range(depth - 1, 0, -1):
        node = FolderNode(id=folder_id, name=f"n{folder_id}", children=(node,))
    tree = FolderTree(roots=(node,))
    index = build_path_index(tree)
    assert index.path_of(depth).count("/") == depth - 1
    assert find_ancestor_chain(tree, depth) == list(range(1, depth + 1))


def test_first_match_in_preorder_wins():
    # ids are assumed unique; when they are not, traversal order decides
    tree = coerce_folder_tree([
        {"id": 1, "name": "A", "children": [{"id": 7, "name": "deep", "children": []}]},
        {"id": 7, "name": "root-level", "children": []},
    ])
    assert find_ancestor_chain(tree, 7) == [1, 7]


def test_chain_lookup_is_memoized(forest_payload, monkeypatch):
    import navigator.tree as tree_module

    index = build_path_index(coerce_folder_tree(forest_payload))
    calls = []
    original = tree_module.find_ancestor_chain

    def counting(tree, target_id):
        calls.append(target_id)
        return original(tree, target_id)

    monkeypatch.setattr(tree_module, "find_ancestor_chain", counting)
    assert index.ancestor_chain_to(12) == [10, 11, 12]
    chain = index.ancestor_chain_to(12)
    chain.append(99)  # callers get their own copy
    assert index.ancestor_chain_to(12) == [10, 11, 12]
    assert calls == [12]


def test_paths_mapping_is_read_only(abc_tree_payload):
    index = build_path_index(coerce_folder_tree(abc_tree_payload))
    with pytest.raises(TypeError):
        index.paths[1] = "X"  # type: ignore[index]


def test_cache_swaps_whole_snapshots(abc_tree_payload, forest_payload):
    cache = PathIndexCache()
    assert cache.current is None
    assert cache.path_of(3) is None

    first = cache.rebuild(abc_tree_payload)
    assert cache.path_of(3) == "A/B/C"
    second = cache.rebuild(forest_payload)

    assert cache.current is second
    assert cache.path_of(3) is None
    assert cache.ancestor_chain_to(12) == [10, 11, 12]
    # an old reference stays valid and unchanged
    assert first.path_of(3) == "A/B/C"
    assert 12 not in first

    cache.clear()
    assert cache.current is None
