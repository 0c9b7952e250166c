from connectors.simulated_tree_ui import SimulatedTreeUI
from navigator.models import coerce_folder_tree


def test_roots_render_after_initial_delay(forest_payload):
    ui = SimulatedTreeUI(coerce_folder_tree(forest_payload), initial_delay=2)
    assert not ui.any_folder_present()
    assert not ui.is_present(10)
    assert ui.is_present(10)
    assert ui.any_folder_present()


def test_children_render_only_after_expand(forest_payload):
    ui = SimulatedTreeUI(coerce_folder_tree(forest_payload), child_delay=1)
    assert ui.is_present(10)
    assert not ui.is_present(11)
    assert ui.has_expand_control(10)
    assert not ui.is_expanded(10)
    ui.expand(10)
    assert ui.is_expanded(10)
    assert not ui.is_present(11)
    assert ui.is_present(11)
    assert ui.actions == [("expand", 10)]


def test_leaves_and_forced_leaves_have_no_expand_control(forest_payload):
    ui = SimulatedTreeUI(coerce_folder_tree(forest_payload), leaf_ids=[20])
    assert ui.is_present(20)
    assert not ui.has_expand_control(20)
    assert not ui.has_expand_control(14)
    assert not ui.has_expand_control(999)


def test_hidden_folders_never_render(forest_payload):
    ui = SimulatedTreeUI(coerce_folder_tree(forest_payload), hidden=[10], expanded=[10])
    for _ in range(5):
        assert not ui.is_present(10)
        assert not ui.is_present(11)
    assert ui.presence_checks[10] == 5


def test_select_records_and_reports_clickability(forest_payload):
    ui = SimulatedTreeUI(coerce_folder_tree(forest_payload))
    assert not ui.select(12)
    assert ui.selected is None
    ui.is_present(20)
    assert ui.select(20)
    assert ui.selected == 20
    assert ui.actions == [("select", 12), ("select", 20)]


def test_expand_is_idempotent(forest_payload):
    ui = SimulatedTreeUI(coerce_folder_tree(forest_payload), child_delay=0)
    ui.is_present(10)
    ui.expand(10)
    ui.expand(10)
    assert ui.is_present(11)
    assert ui.actions == [("expand", 10), ("expand", 10)]
