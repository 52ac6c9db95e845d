"""Tests for the game session state machine and tick simulation."""

from datetime import datetime

import pytest

from shake_racing.models import (
    GameSettings,
    GameStatus,
    GuardNotMet,
    InvalidSettings,
    InvalidTeam,
    StaleReference,
    TeamFull,
)
from shake_racing.services.race_engine import TRACK_LENGTH, GameSession


def _shake_until_finished(game: GameSession, clock, player_id: str, max_ticks=2000):
    """Feed constant input and tick until the race ends. Returns (ticks, results)."""
    results = []
    for i in range(1, max_ticks + 1):
        game.report_input(player_id, 10)
        clock.advance(0.05)
        results.append(game.tick())
        if game.status is GameStatus.FINISHED:
            return i, results
    raise AssertionError("race never finished")


class TestRegistration:
    def test_register_keeps_roster_and_registry_consistent(self, game):
        player = game.register_player(1, "Red")
        assert game.roster.teams[1].players == [player.id]
        assert game.players.get(player.id).team_id == 1

    def test_failed_registration_changes_nothing(self, game):
        game.register_player(1, "Red")
        game.register_player(1, None)
        with pytest.raises(TeamFull):
            game.register_player(1, "Blue")
        with pytest.raises(InvalidTeam):
            game.register_player(999, "Blue")
        assert len(game.players) == 2
        assert len(game.roster.teams[1].players) == 2

    def test_remove_player(self, game):
        player = game.register_player(2, "Green")
        game.remove_player(player.id)
        assert game.roster.teams[2].players == []
        assert player.id not in game.players

    def test_input_for_removed_player(self, game):
        player = game.register_player(2, "Green")
        game.remove_player(player.id)
        with pytest.raises(StaleReference):
            game.report_input(player.id, 5)


class TestStartRace:
    def test_start_requires_min_teams(self, clock):
        game = GameSession(GameSettings(num_teams=3, min_teams=2), clock=clock)
        game.register_player(1, "Red")
        with pytest.raises(GuardNotMet):
            game.start_race()
        assert game.status is GameStatus.REGISTRATION

        game.register_player(2, "Blue")
        game.start_race()
        assert game.status is GameStatus.RACING
        assert isinstance(game.race_started_at, datetime)

    def test_start_resets_progress(self, game):
        game.register_player(1, "Red")
        game.roster.teams[1].position = 42
        game.roster.teams[1].shake_intensity = 3
        game.start_race()
        assert game.roster.teams[1].position == 0
        assert game.roster.teams[1].shake_intensity == 0
        assert game.winner_id is None

    def test_cannot_start_twice(self, game):
        game.register_player(1, "Red")
        game.start_race()
        with pytest.raises(GuardNotMet):
            game.start_race()

    def test_cannot_restart_finished_race(self, game, clock):
        player = game.register_player(1, "Red")
        game.start_race()
        _shake_until_finished(game, clock, player.id)
        with pytest.raises(GuardNotMet):
            game.start_race()
        assert game.status is GameStatus.FINISHED


class TestReset:
    def test_reset_clears_everything(self, game, clock):
        player = game.register_player(1, "Red")
        game.start_race()
        _shake_until_finished(game, clock, player.id)

        game.reset_game()
        assert game.status is GameStatus.REGISTRATION
        assert game.winner_id is None
        assert game.race_started_at is None
        assert len(game.players) == 0
        assert game.roster.active_teams() == []
        assert all(t.name == "" for t in game.roster.teams.values())

    def test_reset_is_idempotent(self, game):
        game.register_player(1, "Red")
        game.reset_game()
        once = (game.status, game.winner_id, dict(game.players.players), game.roster.teams)
        game.reset_game()
        twice = (game.status, game.winner_id, dict(game.players.players), game.roster.teams)
        assert once == twice


class TestUpdateSettings:
    def test_settings_change_rebuilds_roster(self, game):
        game.register_player(1, "Red")
        game.update_settings(num_teams=5, max_players=4)
        assert list(game.roster.teams.keys()) == [1, 2, 3, 4, 5]
        assert game.roster.max_players == 4
        assert len(game.players) == 0
        assert game.settings.min_teams == 1

    def test_last_settings_win(self, game):
        game.update_settings(num_teams=4)
        game.update_settings(num_teams=2)
        assert list(game.roster.teams.keys()) == [1, 2]
        assert game.settings.num_teams == 2

    def test_settings_locked_while_racing(self, game):
        game.register_player(1, "Red")
        game.start_race()
        with pytest.raises(GuardNotMet):
            game.update_settings(num_teams=2)
        assert game.status is GameStatus.RACING
        assert game.settings.num_teams == 3
        assert game.roster.teams[1].is_active

    def test_settings_change_after_reset(self, game, clock):
        player = game.register_player(3, "Red")
        game.start_race()
        _shake_until_finished(game, clock, player.id)
        with pytest.raises(GuardNotMet):
            game.update_settings(num_teams=2)
        assert game.winner.id == 3

        game.reset_game()
        game.update_settings(num_teams=2)
        assert list(game.roster.teams.keys()) == [1, 2]
        assert game.winner is None
        assert game.status is GameStatus.REGISTRATION

    def test_invalid_settings_change_nothing(self, game):
        player = game.register_player(1, "Red")
        with pytest.raises(InvalidSettings):
            game.update_settings(min_teams=10)
        assert game.settings.num_teams == 3
        assert player.id in game.players


class TestTick:
    def test_decay_runs_outside_races(self, game, clock):
        player = game.register_player(1, "Red")
        game.report_input(player.id, 2.0)
        clock.advance(0.25)
        assert game.tick() is None
        assert game.players.get(player.id).shake_intensity == 1.5

    def test_decay_loses_half_per_tick_never_negative(self, game, clock):
        player = game.register_player(1, "Red")
        game.report_input(player.id, 1.0)
        clock.advance(0.3)
        game.tick()
        assert game.players.get(player.id).shake_intensity == 0.5
        clock.advance(0.05)
        game.tick()
        assert game.players.get(player.id).shake_intensity == 0
        clock.advance(0.05)
        game.tick()
        assert game.players.get(player.id).shake_intensity == 0

    def test_position_integrates_team_intensity(self, game, clock):
        a = game.register_player(1, "Red")
        b = game.register_player(1, None)
        game.start_race()
        game.report_input(a.id, 3)
        game.report_input(b.id, 2)
        clock.advance(0.05)
        result = game.tick()

        team = game.roster.teams[1]
        assert team.shake_intensity == 5
        assert team.position == pytest.approx(5 * (1000 / 330) * 0.05)
        assert [t.id for t in result.teams] == [1]
        assert result.winner is None
        assert not result.just_finished

    def test_inactive_teams_not_reported(self, game, clock):
        game.register_player(2, "Blue")
        game.start_race()
        result = game.tick()
        assert [t.id for t in result.teams] == [2]

    def test_negative_input_never_moves_backwards(self, game, clock):
        player = game.register_player(1, "Red")
        game.start_race()
        game.report_input(player.id, 10)
        game.tick()
        before = game.roster.teams[1].position
        game.report_input(player.id, -50)
        game.tick()
        assert game.roster.teams[1].position == before

    def test_positions_non_decreasing(self, game, clock):
        player = game.register_player(1, "Red")
        game.start_race()
        last = 0.0
        for intensity in [4, 0, 7, 1, 0, 0, 12]:
            game.report_input(player.id, intensity)
            clock.advance(0.05)
            game.tick()
            assert game.roster.teams[1].position >= last
            last = game.roster.teams[1].position


class TestWinner:
    def test_end_to_end_single_team_race(self, clock):
        game = GameSession(GameSettings(num_teams=2, max_players=1, min_teams=1), clock=clock)
        player = game.register_player(1, "Red")
        game.start_race()
        assert game.status is GameStatus.RACING

        ticks, results = _shake_until_finished(game, clock, player.id)

        # 10 * 1000/330 * 0.05 per tick -> ~660 ticks to cover 1000 units
        assert 655 <= ticks <= 665
        assert game.winner_id == 1
        assert game.status is GameStatus.FINISHED
        assert [r.just_finished for r in results].count(True) == 1
        assert results[-1].winner.name == "Red"

    def test_winner_is_never_reassigned(self, game, clock):
        a = game.register_player(1, "Red")
        b = game.register_player(2, "Blue")
        game.start_race()
        _shake_until_finished(game, clock, a.id)
        assert game.winner_id == 1

        frozen = {t.id: t.position for t in game.roster.teams.values()}
        for _ in range(50):
            game.report_input(b.id, 100)
            clock.advance(0.05)
            assert game.tick() is None
        assert game.winner_id == 1
        assert {t.id: t.position for t in game.roster.teams.values()} == frozen

    def test_tie_goes_to_lowest_team_id(self, game, clock):
        a = game.register_player(1, "Red")
        b = game.register_player(2, "Blue")
        game.start_race()
        game.roster.teams[1].position = TRACK_LENGTH - 0.1
        game.roster.teams[2].position = TRACK_LENGTH - 0.1
        game.report_input(a.id, 10)
        game.report_input(b.id, 10)
        result = game.tick()

        assert result.just_finished
        assert game.winner_id == 1
        # Team 2 still moved on the finishing tick
        assert game.roster.teams[2].position >= TRACK_LENGTH

    def test_reset_allows_new_winner(self, game, clock):
        a = game.register_player(1, "Red")
        game.start_race()
        _shake_until_finished(game, clock, a.id)
        game.reset_game()

        b = game.register_player(2, "Blue")
        game.start_race()
        _shake_until_finished(game, clock, b.id)
        assert game.winner_id == 2
