import pytest

from tilealgo.grid import TileArea, TilemapType, neighbours
from tilealgo.rules import WfcMode, WfcRules
from tilealgo.wfc import (
    WfcData,
    WfcElement,
    WfcGrid,
    WfcRunner,
    WfcSource,
    run_wfc,
)


def _path_rules(ty=TilemapType.SQUARE):
    dirs = ty.direction_count
    return WfcRules.from_lists(
        [[[0, 1]] * dirs, [[0, 1, 2]] * dirs, [[1, 2]] * dirs], ty
    )


def _single_rules():
    return WfcRules.from_lists([[[0], [0], [0], [0]]], TilemapType.SQUARE)


def _checker_rules():
    return WfcRules.from_lists(
        [[[1], [1], [1], [1]], [[0], [0], [0], [0]]], TilemapType.SQUARE
    )


def _violations(data, rules, ty):
    found = []
    for index in data.area.indices():
        value = data.get(index)
        for direction, nei in enumerate(neighbours(index, ty, False)):
            if data.area.contains(nei) and not rules[value][direction] & (1 << data.get(nei)):
                found.append((index, direction, nei))
    return found


def test_element_possibilities():
    elem = WfcElement((0, 0), 0b1011)
    assert elem.possibilities() == [0, 1, 3]
    assert elem.entropy == len(elem.possibilities())


def test_data_set_get_roundtrip():
    area = TileArea((0, 0), (4, 3))
    data = WfcData(area)
    for n, index in enumerate(area.indices()):
        data.set(index, n)
    for n, index in enumerate(area.indices()):
        assert data.get(index) == n


def test_data_get_outside_returns_none_and_set_raises():
    data = WfcData(TileArea((0, 0), (2, 2)))
    assert data.get((0, 5)) is None
    with pytest.raises(IndexError):
        data.set((0, 5), 1)


def test_elem_idx_to_grid_covers_area():
    area = TileArea((0, 0), (5, 3))
    data = WfcData(area)
    grid = [data.elem_idx_to_grid(i) for i in range(area.size())]
    assert grid == list(area.indices())


def test_runner_defaults_follow_size():
    runner = WfcRunner(TilemapType.SQUARE, _single_rules(), TileArea((0, 0), (4, 4)))
    assert runner.max_retrace_factor == 2
    assert runner.max_retrace_time == runner.max_retrace_factor * 100
    assert runner.mode is WfcMode.NON_WEIGHTED


def test_runner_rejects_empty_area():
    with pytest.raises(ValueError):
        WfcRunner(TilemapType.SQUARE, _single_rules(), TileArea((0, 0), (0, 4)))


def test_retrace_factor_limit():
    runner = WfcRunner(TilemapType.SQUARE, _single_rules(), TileArea((0, 0), (4, 4)))
    with pytest.raises(ValueError):
        runner.with_retrace_settings(17, None)
    runner.with_retrace_settings(8, 1000)
    assert (runner.max_retrace_factor, runner.max_retrace_time) == (8, 1000)


def test_history_settings_validation():
    runner = WfcRunner(TilemapType.SQUARE, _single_rules(), TileArea((0, 0), (4, 4)))
    with pytest.raises(ValueError):
        runner.with_history_settings(0)
    assert runner.with_history_settings(5).max_history == 5


def test_only_one_sampler_or_weights():
    runner = WfcRunner(TilemapType.SQUARE, _path_rules(), TileArea((0, 0), (4, 4)))
    runner.with_weights([1, 1, 1])
    with pytest.raises(ValueError):
        runner.with_weights([1, 1, 1])
    with pytest.raises(ValueError):
        runner.with_custom_sampler(lambda elem, rng: 0)


def test_weights_length_must_match():
    runner = WfcRunner(TilemapType.SQUARE, _path_rules(), TileArea((0, 0), (4, 4)))
    with pytest.raises(ValueError):
        runner.with_weights([1, 1])


def test_single_element_fills_area():
    area = TileArea((0, 0), (6, 5))
    data = run_wfc(WfcRunner(TilemapType.SQUARE, _single_rules(), area, seed=1))
    assert data.data == [0] * area.size()


def test_checkerboard_rules_alternate():
    rules = _checker_rules()
    data = run_wfc(WfcRunner(TilemapType.SQUARE, rules, TileArea((0, 0), (6, 6)), seed=3))
    assert _violations(data, rules, TilemapType.SQUARE) == []
    assert set(data.data) == {0, 1}


@pytest.mark.parametrize("seed", [0, 1, 2, 42])
def test_path_rules_result_is_valid(seed):
    rules = _path_rules()
    area = TileArea((0, 0), (8, 8))
    data = run_wfc(WfcRunner(TilemapType.SQUARE, rules, area, seed=seed))
    assert len(data.data) == area.size()
    assert set(data.data) <= {0, 1, 2}
    assert _violations(data, rules, TilemapType.SQUARE) == []


def test_hexagonal_result_is_valid():
    ty = TilemapType.HEXAGONAL
    rules = _path_rules(ty)
    area = TileArea((0, 0), (7, 7))
    data = run_wfc(WfcRunner(ty, rules, area, seed=5))
    assert len(data.data) == area.size()
    assert set(data.data) <= {0, 1, 2}
    assert _violations(data, rules, ty) == []


def test_same_seed_same_result():
    area = TileArea((0, 0), (8, 8))
    first = run_wfc(WfcRunner(TilemapType.SQUARE, _path_rules(), area, seed=9))
    second = run_wfc(WfcRunner(TilemapType.SQUARE, _path_rules(), area, seed=9))
    assert first == second


def test_custom_sampler_is_used():
    calls = []

    def sampler(elem, rng):
        calls.append(elem.index)
        return max(elem.possibilities())

    runner = WfcRunner(
        TilemapType.SQUARE, _path_rules(), TileArea((0, 0), (4, 4)), seed=0
    ).with_custom_sampler(sampler)
    data = run_wfc(runner)
    assert data.data == [2] * 16
    assert len(calls) == 16


def test_weighted_mode_respects_zero_weights():
    runner = WfcRunner(
        TilemapType.SQUARE, _path_rules(), TileArea((0, 0), (5, 5)), seed=4
    ).with_weights([0, 0, 1])
    data = run_wfc(runner)
    assert data.data == [2] * 25


def test_impossible_rules_give_none():
    rules = WfcRules.from_lists([[[], [], [], []]], TilemapType.SQUARE)
    grid = WfcGrid.from_runner(WfcRunner(TilemapType.SQUARE, rules, TileArea((0, 0), (2, 1)), seed=0))
    assert grid.run() is None
    assert grid.retraced_time >= grid.max_retrace_time


def test_retrace_without_history_gives_up():
    grid = WfcGrid.from_runner(
        WfcRunner(TilemapType.SQUARE, _path_rules(), TileArea((0, 0), (3, 3)), seed=0)
    )
    grid.retrace()
    assert grid.generate_data() is None


def test_update_entropy_steers_get_min():
    grid = WfcGrid.from_runner(
        WfcRunner(TilemapType.SQUARE, _path_rules(), TileArea((0, 0), (3, 3)), seed=0)
    )
    grid.update_entropy(3, 1, (1, 1))
    assert (1, 1) in {index for _, index in grid.uncollapsed}
    assert grid.get_min() == (1, 1)


def test_collapse_reduces_remaining_and_constrains():
    grid = WfcGrid.from_runner(
        WfcRunner(TilemapType.SQUARE, _checker_rules(), TileArea((0, 0), (3, 3)), seed=2)
    )
    before = grid.remaining
    grid.collapse()
    assert grid.remaining == before - 1
    collapsed = [e for e in grid.elements.values() if e.collapsed]
    assert len(collapsed) == 1
    for elem in grid.elements.values():
        assert elem.entropy == 1


def test_source_from_texture_indices_applies_values():
    rules = _single_rules()
    area = TileArea((0, 0), (3, 2))
    data = run_wfc(WfcRunner(TilemapType.SQUARE, rules, area, seed=0))
    placed = WfcSource.from_texture_indices(rules).apply(data)
    assert placed == {index: 0 for index in area.indices()}


def test_source_apply_custom_tiles_and_out_of_range():
    area = TileArea((0, 0), (2, 1))
    data = WfcData(area)
    data.set((1, 0), 1)
    source = WfcSource(("grass", "water"))
    assert source.apply(data) == {(0, 0): "grass", (1, 0): "water"}
    data.set((0, 0), 5)
    with pytest.raises(IndexError):
        source.apply(data)