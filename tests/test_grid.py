import pytest

from tilealgo.grid import TileArea, TilemapType, manhattan_distance, neighbours


def test_stress_area_size():
    area = TileArea((-500, -500), (1000, 1000))
    assert area.size() == 1_000_000


def test_stress_area_bounds():
    area = TileArea((-500, -500), (1000, 1000))
    assert area.contains((-500, -500))
    assert area.contains((499, 499))
    assert not area.contains((500, 0))
    assert not area.contains((0, -501))
    assert area.dest == (499, 499)


def test_indices_row_major_and_count():
    area = TileArea((1, 2), (3, 2))
    indices = list(area.indices())
    assert indices == [(1, 2), (2, 2), (3, 2), (1, 3), (2, 3), (3, 3)]
    assert len(indices) == area.size()
    assert all(area.contains(i) for i in indices)


def test_empty_area():
    area = TileArea((0, 0), (0, 5))
    assert area.size() == 0
    assert list(area.indices()) == []
    assert not area.contains((0, 0))


def test_negative_extent_rejected():
    with pytest.raises(ValueError):
        TileArea((0, 0), (-1, 3))


def test_square_neighbour_order():
    assert neighbours((0, 0), TilemapType.SQUARE, False) == [(0, 1), (1, 0), (-1, 0), (0, -1)]


@pytest.mark.parametrize("ty", list(TilemapType))
def test_opposite_directions(ty):
    centre = (4, 7)
    ns = neighbours(centre, ty, False)
    assert len(ns) == ty.direction_count
    for d, n in enumerate(ns):
        opposite = ns[len(ns) - 1 - d]
        assert (n[0] + opposite[0], n[1] + opposite[1]) == (2 * centre[0], 2 * centre[1])


def test_direction_names():
    named = dict(
        zip(TilemapType.SQUARE.direction_names, neighbours((0, 0), TilemapType.SQUARE, False))
    )
    assert named == {"up": (0, 1), "right": (1, 0), "left": (-1, 0), "down": (0, -1)}
    hex_neighbours = neighbours((0, 0), TilemapType.HEXAGONAL, False)
    assert len(hex_neighbours) == 6
    assert len(hex_neighbours) == TilemapType.HEXAGONAL.direction_count


def test_diagonal_neighbours_distinct():
    ns = neighbours((0, 0), TilemapType.SQUARE, True)
    assert len(ns) == 8
    assert len(set(ns)) == 8
    assert (0, 0) not in ns
    assert all(max(abs(x), abs(y)) == 1 for x, y in ns)


def test_hex_ignores_diagonal_flag():
    assert neighbours((2, 2), TilemapType.HEXAGONAL, True) == neighbours(
        (2, 2), TilemapType.HEXAGONAL, False
    )


def test_manhattan_distance():
    assert manhattan_distance((0, 0), (3, 3)) == 6
    assert manhattan_distance((1, 2), (1, 2)) == 0
    assert manhattan_distance((1, 2), (4, -2)) == manhattan_distance((4, -2), (1, 2))