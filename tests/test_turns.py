import unittest

from game import (
    Board,
    Cell,
    GameConfig,
    GameOver,
    NoTileSelected,
    NotAutomatedTurn,
    NotYourTurn,
    Phase,
    PlacementError,
    Session,
    Side,
    Tile,
    TurnStateMachine,
)
from tens_core.turns import ANNOUNCE_TASK, CPU_TASK


def _tile(*sides, rotation=0):
    return Tile(sides=tuple(Side(value=v, color=c) for c, v in sides), rotation=rotation)


def _session(hands, scores=None, bag=None, automated=None, current=0):
    board = Board()
    board.place(Cell(0, 0), _tile(("red", 4), ("blue", 6), ("green", 0)))
    n = len(hands)
    return Session(
        player_count=n,
        current_player=current,
        tile_bag=list(bag or []),
        board=board,
        hands=[list(h) for h in hands],
        scores=list(scores or [0] * n),
        player_names=[f"P{i + 1}" for i in range(n)],
        automated=list(automated or [False] * n),
        started=True,
    )


def _fits():
    # red6 on side 0 fits below the red4 anchor
    return _tile(("red", 6), ("yellow", 1), ("yellow", 2))


def _misfit():
    return _tile(("blue", 1), ("blue", 1), ("blue", 1))


class TestTurnStateMachine(unittest.TestCase):
    def setUp(self):
        self.events = []

    def _machine(self, **cfg):
        m = TurnStateMachine(config=GameConfig(**cfg))
        m.add_listener(self.events.append)
        return m

    def test_given_new_game_when_started_then_hands_dealt_and_anchor_placed(self):
        m = self._machine()
        s = m.new_game(["Ann", "Bob", "Cy"], seed=5)
        self.assertEqual(m.phase, Phase.IN_PROGRESS)
        self.assertEqual([len(h) for h in s.hands], [6, 6, 6])
        self.assertTrue(s.board.has(Cell(0, 0)))
        # The starting tile is drawn fresh, not from the bag
        self.assertEqual(s.tile_count(), 101)
        self.assertEqual(len(s.tile_bag), 100 - 18)
        self.assertEqual(s.scores, [0, 0, 0])
        self.assertTrue(s.started)
        self.assertEqual(self.events[-1].kind, "player_turn")
        self.assertEqual(self.events[-1].params["name"], "Ann")

    def test_given_bad_player_count_when_new_game_then_value_error(self):
        m = self._machine()
        with self.assertRaises(ValueError):
            m.new_game(["solo"])
        with self.assertRaises(ValueError):
            m.new_game(["a", "b", "c", "d", "e"])

    def test_given_hand_size_one_when_first_tile_placed_then_game_ends_in_tie(self):
        m = self._machine(hand_size=1, starting_tile=False)
        m.new_game(["A", "B"], seed=1)
        outcome = m.place_tile(0, Cell(0, 0))
        self.assertTrue(outcome.game_over)
        self.assertEqual(outcome.points, 0)
        self.assertEqual(m.phase, Phase.ENDED)
        self.assertFalse(m.session.started)
        result = m.result()
        self.assertEqual(result.winners, [0, 1])
        self.assertTrue(result.tie)
        self.assertEqual(self.events[-1].message_key, "itsATie")
        with self.assertRaises(GameOver):
            m.pass_turn()

    def test_given_valid_placement_when_placing_then_score_and_turn_advance(self):
        m = self._machine()
        m.load_session(_session([[_fits(), _misfit()], [_misfit(), _misfit()]]))
        outcome = m.place_tile(0, Cell(1, 0))
        self.assertEqual(outcome.points, 10)
        self.assertFalse(outcome.game_over)
        self.assertEqual(m.session.scores, [10, 0])
        self.assertEqual(m.session.current_player, 1)
        self.assertEqual(len(m.session.hands[0]), 1)
        self.assertTrue(m.session.board.has(Cell(1, 0)))
        self.assertEqual(len(m.session.tile_bag), 0)

    def test_given_last_tile_placed_when_scores_differ_then_single_winner(self):
        m = self._machine()
        m.load_session(_session([[_fits()], [_misfit(), _misfit()]], scores=[0, 5]))
        outcome = m.place_tile(0, Cell(1, 0))
        self.assertTrue(outcome.game_over)
        self.assertEqual(m.result().winners, [0])
        self.assertFalse(m.result().tie)
        self.assertEqual(self.events[-1].message_key, "playerWins")
        self.assertEqual(self.events[-1].params["name"], "P1")

    def test_given_illegal_placement_when_placing_then_state_untouched(self):
        m = self._machine()
        m.load_session(_session([[_misfit(), _fits()], [_misfit()]]))
        with self.assertRaises(PlacementError) as ctx:
            m.place_tile(0, Cell(1, 0), rotation=2)
        self.assertEqual(ctx.exception.key, "colorsDontMatch")
        self.assertEqual(m.session.current_hand()[0].rotation, 0)
        self.assertEqual(len(m.session.hands[0]), 2)
        self.assertEqual(m.session.scores, [0, 0])
        self.assertEqual(m.session.current_player, 0)
        self.assertEqual(len(m.session.board), 1)

    def test_given_no_selection_when_placing_then_no_tile_selected(self):
        m = self._machine()
        m.load_session(_session([[_fits()], [_misfit()]]))
        with self.assertRaises(NoTileSelected):
            m.place(Cell(1, 0))

    def test_given_selection_when_rotating_and_placing_then_selected_tile_used(self):
        m = self._machine()
        tile = _tile(("yellow", 1), ("red", 6), ("green", 2))
        m.load_session(_session([[_misfit(), tile], [_misfit()]]))
        self.assertTrue(m.select_tile(1))
        self.assertTrue(m.select_tile(1))
        self.assertIsNone(m.selected)
        m.select_tile(1)
        m.rotate_selected()
        outcome = m.place(Cell(1, 0))
        self.assertEqual(outcome.points, 10)
        self.assertIsNone(m.selected)

    def test_given_bag_when_passing_then_one_tile_drawn(self):
        m = self._machine()
        m.load_session(_session([[_misfit()], [_misfit()]], bag=[_fits(), _misfit()]))
        outcome = m.pass_turn()
        self.assertTrue(outcome.drew)
        self.assertEqual(len(m.session.hands[0]), 2)
        self.assertEqual(len(m.session.tile_bag), 1)
        self.assertEqual(m.session.current_player, 1)
        passed = [e for e in self.events if e.kind == "passed"]
        self.assertEqual(passed[-1].message_key, "passedAndDrew")

    def test_given_empty_bag_when_passing_then_nothing_drawn_and_turn_advances(self):
        m = self._machine()
        m.load_session(_session([[_misfit()], [_misfit()]], current=1))
        outcome = m.pass_turn()
        self.assertFalse(outcome.drew)
        self.assertEqual(len(m.session.hands[1]), 1)
        self.assertEqual(m.session.current_player, 0)
        passed = [e for e in self.events if e.kind == "passed"]
        self.assertEqual(passed[-1].message_key, "passedNoDraw")

    def test_given_cpu_slot_when_human_acts_then_not_your_turn(self):
        m = self._machine()
        m.load_session(_session([[_fits()], [_misfit()]], automated=[True, False]))
        with self.assertRaises(NotYourTurn):
            m.pass_turn()
        self.assertFalse(m.select_tile(0))

    def test_given_human_slot_when_automated_turn_requested_then_not_automated(self):
        m = self._machine()
        m.load_session(_session([[_fits()], [_misfit()]]))
        with self.assertRaises(NotAutomatedTurn):
            m.play_automated_turn()

    def test_given_cpu_without_legal_move_when_playing_then_passes(self):
        m = self._machine()
        m.load_session(_session([[_misfit()], [_misfit()]], automated=[True, False], bag=[_fits()]))
        outcome = m.play_automated_turn()
        self.assertEqual(outcome.kind, "pass")
        self.assertTrue(outcome.drew)
        self.assertFalse(m.thinking)
        self.assertEqual(m.session.current_player, 1)

    def test_given_other_slot_hand_empty_when_loading_then_game_over(self):
        m = self._machine()
        m.load_session(_session([[_fits(), _misfit()], [], [_misfit()]], scores=[0, 20, 10]))
        self.assertEqual(m.phase, Phase.ENDED)
        self.assertTrue(m.is_game_over())
        self.assertEqual(m.result().winners, [1])
        with self.assertRaises(GameOver):
            m.pass_turn()
        with self.assertRaises(GameOver):
            m.place_tile(0, Cell(1, 0))
        self.assertEqual(len(m.session.hands[0]), 2)

    def test_given_snapshot_with_other_slot_empty_when_applied_then_game_over_emitted(self):
        m = self._machine()
        m.new_game(["A", "B"], seed=2)
        m.apply_snapshot(_session([[_fits()], []], scores=[30, 30]))
        self.assertEqual(m.phase, Phase.ENDED)
        self.assertEqual(self.events[-1].kind, "game_over")
        self.assertEqual(self.events[-1].message_key, "itsATie")
        self.assertEqual(m.scheduler.pending_names(), [])
        with self.assertRaises(GameOver):
            m.pass_turn()


class TestTurnScheduling(unittest.TestCase):
    def test_given_cpu_first_when_clock_advances_then_cpu_moves_after_delays(self):
        m = TurnStateMachine(config=GameConfig())
        m.new_game(["CPU 1", "Human"], [True, False], seed=3)
        self.assertTrue(m.scheduler.pending(ANNOUNCE_TASK))
        self.assertFalse(m.scheduler.pending(CPU_TASK))

        m.scheduler.advance(1.0)
        self.assertTrue(m.scheduler.pending(CPU_TASK))
        self.assertTrue(m.thinking)
        self.assertEqual(m.session.current_player, 0)

        m.scheduler.advance(0.8)
        self.assertEqual(m.session.current_player, 1)
        self.assertFalse(m.thinking)
        self.assertFalse(m.scheduler.pending(CPU_TASK))

    def test_given_pending_cpu_move_when_new_game_then_old_move_never_runs(self):
        m = TurnStateMachine(config=GameConfig())
        m.new_game(["CPU 1", "Human"], [True, False], seed=3)
        m.scheduler.advance(1.0)
        generation = m.scheduler.generation
        self.assertTrue(m.scheduler.pending(CPU_TASK))

        s = m.new_game(["A", "B"], seed=4)
        self.assertGreater(m.scheduler.generation, generation)
        self.assertFalse(m.scheduler.pending(CPU_TASK))
        self.assertFalse(m.thinking)
        m.scheduler.advance(10.0)
        self.assertEqual(s.current_player, 0)
        self.assertEqual([len(h) for h in s.hands], [6, 6])

    def test_given_cpu_announcement_when_dismissed_then_cpu_move_queued_immediately(self):
        m = TurnStateMachine(config=GameConfig())
        m.new_game(["CPU 1", "Human"], [True, False], seed=3)
        m.dismiss_announcement()
        self.assertFalse(m.scheduler.pending(ANNOUNCE_TASK))
        self.assertTrue(m.scheduler.pending(CPU_TASK))
        self.assertFalse(m.schedule_cpu_turn())
        m.scheduler.advance(0.8)
        self.assertEqual(m.session.current_player, 1)

    def test_given_expired_announcement_when_dismissed_then_queued_cpu_move_still_runs(self):
        m = TurnStateMachine(config=GameConfig())
        m.new_game(["CPU 1", "Human"], [True, False], seed=3)
        m.scheduler.advance(1.0)
        self.assertTrue(m.scheduler.pending(CPU_TASK))
        m.dismiss_announcement()
        self.assertTrue(m.scheduler.pending(CPU_TASK))
        self.assertTrue(m.thinking)
        m.scheduler.advance(100.0)
        self.assertEqual(m.session.current_player, 1)
        m.dismiss_announcement()
        m.pass_turn()
        self.assertEqual(m.session.current_player, 0)

    def test_given_human_turn_when_announcement_expires_then_nothing_queued(self):
        m = TurnStateMachine(config=GameConfig())
        m.new_game(["A", "B"], seed=3)
        m.scheduler.advance(1.5)
        self.assertEqual(m.scheduler.pending_names(), [])
        self.assertEqual(m.session.current_player, 0)

    def test_given_all_cpu_game_when_running_clock_then_game_progresses(self):
        m = TurnStateMachine(config=GameConfig(hand_size=2))
        m.new_game(["C1", "C2"], [True, True], seed=11)
        m.scheduler.advance(20.0)
        self.assertEqual(m.session.tile_count(), 101)
        self.assertTrue(m.phase is Phase.ENDED or m.scheduler.pending_names())
        self.assertTrue(len(m.session.board) > 1 or len(m.session.tile_bag) < 100 - 4)


if __name__ == "__main__":
    unittest.main()
