import pytest

from hidden_variable.projections import identity, item, length, lookup


def test_projections_do_not_mutate_state():
    state = [3, 1, 2]
    assert identity(state) is state
    assert item(0)(state) == 3
    assert length(state) == 3
    assert state == [3, 1, 2]


def test_lookup_freezes_its_table():
    table = {"calm": 0, "storm": 1}
    proj = lookup(table)
    table["calm"] = 99
    assert proj("calm") == 0
    assert lookup(["zero", "one"])(1) == "one"
    with pytest.raises(KeyError):
        proj("fog")


def test_item_and_length():
    assert item("hp")({"hp": 10, "mp": 3}) == 10
    assert item(-1)((1, 2, 3)) == 3
    assert length(()) == 0
