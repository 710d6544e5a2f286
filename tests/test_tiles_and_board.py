import random
import unittest

from game import (
    ANCHOR,
    BAG_SIZE,
    Board,
    Cell,
    Color,
    Side,
    Tile,
    adjacent_cells,
    create_tile_bag,
    deal,
    draw_one,
    points_up,
)


def _tile(*sides, rotation=0):
    return Tile(sides=tuple(Side(value=v, color=c) for c, v in sides), rotation=rotation)


class TestTile(unittest.TestCase):
    def test_given_tile_when_rotated_three_times_then_sides_match_original(self):
        t = _tile(("red", 4), ("blue", 6), ("green", 0))
        before = [t.get_side(i) for i in range(3)]
        for _ in range(3):
            t.rotate()
        self.assertEqual(t.rotation, 0)
        self.assertEqual([t.get_side(i) for i in range(3)], before)

    def test_given_rotation_when_reading_sides_then_shifted_by_rotation(self):
        t = _tile(("red", 4), ("blue", 6), ("green", 0), rotation=1)
        self.assertEqual(t.get_side(0), Side(6, Color.BLUE))
        self.assertEqual(t.get_side(1), Side(0, Color.GREEN))
        self.assertEqual(t.get_side(2), Side(4, Color.RED))
        self.assertEqual(t.label(), "blue6/green0/red4")

    def test_given_clone_when_rotating_clone_then_original_untouched(self):
        t = _tile(("red", 4), ("blue", 6), ("green", 0))
        c = t.clone()
        c.rotate()
        self.assertEqual(t.rotation, 0)
        self.assertEqual(c.rotation, 1)
        self.assertEqual(c.sides, t.sides)

    def test_given_bad_values_when_constructing_then_value_error(self):
        with self.assertRaises(ValueError):
            Side(11, Color.RED)
        with self.assertRaises(ValueError):
            Side(-1, Color.RED)
        with self.assertRaises(ValueError):
            Side(3, "pink")
        with self.assertRaises(ValueError):
            _tile(("red", 1), ("red", 2))
        with self.assertRaises(ValueError):
            _tile(("red", 1), ("red", 2), ("red", 3), rotation=3)


class TestBoard(unittest.TestCase):
    def test_given_cells_when_checking_orientation_then_parity_decides(self):
        self.assertTrue(points_up(Cell(0, 0)))
        self.assertFalse(points_up(Cell(0, 1)))
        self.assertFalse(points_up(Cell(1, 0)))
        self.assertTrue(points_up(Cell(-1, 1)))
        self.assertTrue(points_up(Cell(-3, -5)))

    def test_given_up_and_down_cells_when_listing_adjacency_then_fixed_table(self):
        up = [(a.cell, a.my_side, a.their_side) for a in adjacent_cells(Cell(2, 4))]
        self.assertEqual(up, [((3, 4), 0, 0), ((2, 3), 1, 2), ((2, 5), 2, 1)])
        down = [(a.cell, a.my_side, a.their_side) for a in adjacent_cells(Cell(2, 3))]
        self.assertEqual(down, [((1, 3), 0, 0), ((2, 2), 1, 2), ((2, 4), 2, 1)])

    def test_given_any_cell_when_following_adjacency_back_then_sides_are_symmetric(self):
        for cell in [Cell(r, c) for r in range(-2, 3) for c in range(-2, 3)]:
            for adj in adjacent_cells(cell):
                back = [a for a in adjacent_cells(adj.cell) if a.cell == cell]
                self.assertEqual(len(back), 1)
                self.assertEqual(back[0].my_side, adj.their_side)
                self.assertEqual(back[0].their_side, adj.my_side)
                self.assertNotEqual(points_up(cell), points_up(adj.cell))

    def test_given_board_when_placing_then_snapshot_stored_and_orientation_recorded(self):
        board = Board()
        t = _tile(("red", 4), ("blue", 6), ("green", 0))
        placed = board.place(Cell(0, 1), t)
        t.rotate()
        self.assertEqual(placed.tile.rotation, 0)
        self.assertFalse(placed.points_up)
        self.assertTrue(board.has((0, 1)))
        self.assertIn(Cell(0, 1), board)
        self.assertEqual(len(board), 1)
        with self.assertRaises(ValueError):
            board.place(Cell(0, 1), t)

    def test_given_empty_board_when_frontier_then_only_anchor(self):
        self.assertEqual(Board().frontier(), [ANCHOR])

    def test_given_two_tiles_when_frontier_then_distinct_empty_neighbors(self):
        board = Board()
        board.place(Cell(0, 0), _tile(("red", 1), ("red", 2), ("red", 3)))
        board.place(Cell(0, 1), _tile(("red", 1), ("red", 2), ("red", 3)))
        frontier = board.frontier()
        self.assertEqual(len(frontier), len(set(frontier)))
        self.assertEqual(set(frontier), {Cell(1, 0), Cell(0, -1), Cell(-1, 1), Cell(0, 2)})
        self.assertIn("^", board.pretty())
        self.assertIn("v", board.pretty())


class TestDeal(unittest.TestCase):
    def test_given_seed_when_creating_bag_then_deterministic_and_full(self):
        a = create_tile_bag(seed=42)
        b = create_tile_bag(seed=42)
        self.assertEqual(len(a), BAG_SIZE)
        self.assertEqual([t.label() for t in a], [t.label() for t in b])

    def test_given_bag_when_dealing_then_tiles_come_from_the_end(self):
        bag = create_tile_bag(size=10, rng=random.Random(1))
        last = bag[-1]
        hand = []
        self.assertEqual(deal(bag, hand, 6), 6)
        self.assertIs(hand[0], last)
        self.assertEqual(len(bag), 4)
        self.assertEqual(deal(bag, hand, 6), 4)
        self.assertEqual(len(hand), 10)
        self.assertFalse(draw_one(bag, hand))
        self.assertEqual(len(hand), 10)


if __name__ == "__main__":
    unittest.main()
