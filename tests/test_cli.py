import json

import pytest

from tilealgo.cli import main, render_wfc_data, run_pathfinding_demo, run_wfc_demo
from tilealgo.grid import TileArea, manhattan_distance
from tilealgo.wfc import WfcData

FREE_RULES = [[[0, 1]] * 4, [[0, 1]] * 4]
CHECKER_RULES = [[[1]] * 4, [[0]] * 4]
DEAD_RULES = [[[], [], [], []]]


def _write(tmp_path, rules, name="rules.ron"):
    path = tmp_path / name
    path.write_text(json.dumps(rules), encoding="utf-8")
    return path


def test_wfc_demo_covers_area(tmp_path):
    data = run_wfc_demo(_write(tmp_path, FREE_RULES), 5, 4, seed=3)
    assert len(data.data) == 5 * 4
    assert set(data.data) <= {0, 1}


def test_wfc_demo_is_deterministic(tmp_path):
    path = _write(tmp_path, FREE_RULES)
    first = run_wfc_demo(path, 6, 6, seed=7)
    second = run_wfc_demo(path, 6, 6, seed=7)
    assert len(first.data) == 36
    assert set(first.data) <= {0, 1}
    assert first.data == second.data


def test_wfc_demo_checkerboard(tmp_path):
    data = run_wfc_demo(_write(tmp_path, CHECKER_RULES), 4, 4, seed=1)
    for y in range(4):
        for x in range(4):
            if x + 1 < 4:
                assert data.get((x, y)) != data.get((x + 1, y))
            if y + 1 < 4:
                assert data.get((x, y)) != data.get((x, y + 1))


def test_wfc_demo_gives_up(tmp_path):
    assert run_wfc_demo(_write(tmp_path, DEAD_RULES), 2, 1, seed=0) is None


def test_render_wfc_data():
    data = WfcData(TileArea((0, 0), (2, 2)))
    for i, value in enumerate([0, 1, 2, 3]):
        data.set((i % 2, i // 2), value)
    assert render_wfc_data(data) == "2 3\n0 1"


def test_pathfinding_demo_paths_are_connected():
    paths = run_pathfinding_demo(size=6, finders=3, seed=1)
    assert sorted(paths) == [0, 1, 2]
    for path in paths.values():
        nodes = list(path)
        assert nodes[0] == (5, 5)
        assert len(nodes) >= manhattan_distance((0, 0), (5, 5))
        for a, b in zip(nodes, nodes[1:]):
            assert manhattan_distance(a, b) == 1
        assert manhattan_distance(nodes[-1], (0, 0)) == 1


def test_pathfinding_demo_rejects_empty_size():
    with pytest.raises(ValueError):
        run_pathfinding_demo(size=0)


def test_main_wfc(tmp_path, capsys):
    path = _write(tmp_path, FREE_RULES)
    assert main(["wfc", str(path), "--width", "3", "--height", "2", "--seed", "0"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert all(len(line.split()) == 3 for line in lines)


def test_main_wfc_failure(tmp_path):
    path = _write(tmp_path, DEAD_RULES)
    assert main(["wfc", str(path), "--width", "2", "--height", "1"]) == 1


def test_main_wfc_missing_file(tmp_path, capsys):
    assert main(["wfc", str(tmp_path / "missing.ron")]) == 2
    assert "error" in capsys.readouterr().err


def test_main_wfc_conflicting_rules(tmp_path):
    path = _write(tmp_path, [[[1], [], [], []], [[], [], [], []]])
    assert main(["wfc", str(path)]) == 2


def test_main_path(capsys):
    assert main(["path", "--size", "5", "--finders", "2", "--seed", "3"]) == 0
    out = capsys.readouterr().out
    assert "Pathfinding tasks done!" in out
    assert out.count("steps") == 2