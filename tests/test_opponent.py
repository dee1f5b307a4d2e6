"""
Tests for the local opponent and hint engine.
"""

import random

import pytest

from conftest import B, R, board
from ultimate.errors import OutOfRange
from ultimate.opponent import HintRequest, LocalOpponent, MoveRequest, parse_index
from ultimate.rules import GameState, Status, legal_moves


def test_new_game_is_opening_position(engine):
    s = engine.new_game()
    assert s.status is Status.BLUE_TO_MOVE
    assert s.required_board is None
    assert len(legal_moves(s)) == 81


def test_reply_follows_required_board(engine):
    resp = engine.submit_move(MoveRequest(GameState(), 0, 6))
    assert resp.ok
    assert resp.state.last_red[0] == 6
    assert resp.state.status is Status.BLUE_TO_MOVE


def test_request_state_is_not_mutated(engine):
    s = GameState()
    before = s.to_dict()
    engine.submit_move(MoveRequest(s, 4, 4))
    assert s.to_dict() == before


@pytest.mark.parametrize("b, c, error", [(9, 0, "Invalid indices"), (0, "1", "Invalid indices")])
def test_bad_indices(engine, b, c, error):
    resp = engine.submit_move(MoveRequest(GameState(), b, c))
    assert not resp.ok and resp.error == error


def test_level_zero_avoids_winning_a_board():
    s = GameState(status=Status.RED_TO_MOVE, required_board=0)
    s.cells[0] = board("RR.BB....")
    for seed in range(20):
        reply = LocalOpponent(random.Random(seed)).reply(s, 0)
        assert reply.board_winners[0] is None


def test_higher_levels_take_the_board():
    s = GameState(status=Status.RED_TO_MOVE, required_board=0)
    s.cells[0] = board("RR.B.B...")
    reply = LocalOpponent(random.Random(0)).reply(s, 2)
    assert reply.board_winners[0] is R


def test_level_three_blocks():
    s = GameState(status=Status.RED_TO_MOVE, required_board=0)
    s.cells[0] = board("BB..R....")
    reply = LocalOpponent(random.Random(0)).reply(s, 3)
    assert reply.cells[0][2] is R


def test_game_ending_move_gets_no_reply(engine):
    s = GameState()
    s.board_winners[0] = B
    s.board_winners[1] = B
    s.cells[2] = board("BB.......")
    resp = engine.submit_move(MoveRequest(s, 2, 2))
    assert resp.ok
    assert resp.state.status is Status.BLUE_WINS
    assert resp.state.last_red is None


class TestHints:
    def test_hint_prefers_game_win(self, engine):
        s = GameState()
        s.board_winners[3] = B
        s.board_winners[4] = B
        s.cells[0] = board("BB.......")
        s.cells[5] = board("B.B......")
        h = engine.hint(HintRequest(s))
        assert (h.board_idx, h.cell_idx, h.explanation) == (5, 1, "Wins the game!")

    def test_hint_blocks_red(self, engine):
        s = GameState(required_board=6)
        s.cells[6] = board("R.R.B....")
        h = engine.hint(HintRequest(s))
        assert (h.board_idx, h.cell_idx, h.explanation) == (6, 1, "Blocks red from winning a board")

    def test_hint_points_at_free_choice(self, engine):
        s = GameState(required_board=1)
        s.cells[1] = board("BRB......")
        s.cells[3] = board("BRBBRRRBB")
        s.board_full[3] = True
        h = engine.hint(HintRequest(s))
        assert (h.board_idx, h.cell_idx, h.explanation) == (1, 3, "Gives you a free choice next")

    def test_hint_counts_won_board_as_free_choice(self, engine):
        s = GameState(required_board=1)
        s.cells[1] = board("BRB......")
        s.cells[3] = board("BBB......")
        s.board_winners[3] = B
        h = engine.hint(HintRequest(s))
        assert (h.board_idx, h.cell_idx, h.explanation) == (1, 3, "Gives you a free choice next")

    def test_hint_when_not_blues_turn(self, engine):
        h = engine.hint(HintRequest(GameState(status=Status.DRAW)))
        assert h.explanation == "Not blue's turn"


def test_parse_index():
    assert parse_index("3") == 3
    with pytest.raises(OutOfRange):
        parse_index("three")
    with pytest.raises(OutOfRange):
        parse_index(None)


def test_levels_above_three_play_like_three():
    s = GameState(status=Status.RED_TO_MOVE)
    s.cells[2] = board("B.R......")
    for seed in range(5):
        three = LocalOpponent(random.Random(seed)).reply(s, 3)
        top = LocalOpponent(random.Random(seed)).reply(s, 21)
        assert three == top
