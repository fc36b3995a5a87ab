import pytest

from ai.data_logger import GameRecorder
from game.state import GameAction, Player
from tests.helpers import FakeClock, bluff, truthful


def test_recorder_builds_summary(tmp_path):
    clock = FakeClock()
    path = tmp_path / "games.csv"
    recorder = GameRecorder(str(path), clock=clock)
    recorder.start_game()
    recorder.log_move(bluff())
    recorder.log_move(GameAction.challenge(Player.AI), was_successful=True)
    recorder.mark_last_play_challenged(Player.HUMAN, caught=True)
    recorder.log_move(truthful(player=Player.AI))
    clock.advance(12.0)
    summary = recorder.end_game(Player.AI)

    assert summary.winner is Player.AI
    assert len(summary.player_moves) == 1
    assert len(summary.ai_moves) == 2
    assert summary.player_moves[0].was_challenged
    assert not summary.player_moves[0].was_successful
    assert summary.duration == pytest.approx(12.0)

    lines = path.read_text().splitlines()
    assert lines[0].startswith("game_id,winner")
    assert lines[1].startswith("1,ai,1,2,1,0")




def test_header_written_once_across_games(tmp_path):
    path = tmp_path / "games.csv"
    recorder = GameRecorder(str(path))
    for winner in (Player.HUMAN, Player.AI):
        recorder.start_game()
        recorder.log_move(GameAction.pass_turn(Player.HUMAN))
        recorder.end_game(winner)
    lines = path.read_text().splitlines()
    assert len(lines) == 3
    assert lines[2].startswith("2,ai")


def test_no_csv_without_path(tmp_path):
    recorder = GameRecorder()
    recorder.start_game()
    summary = recorder.end_game(Player.HUMAN)
    assert summary.player_moves == []
    assert list(tmp_path.iterdir()) == []


def test_mark_challenged_ignores_other_players_moves():
    recorder = GameRecorder()
    recorder.start_game()
    recorder.log_move(bluff(Player.AI))
    recorder.mark_last_play_challenged(Player.HUMAN, caught=True)
    summary = recorder.end_game(Player.AI)
    assert not summary.ai_moves[0].was_challenged
