from shared.dal.models import Game, GamePlayer
from stats.overall import compute_overall, rank_seats


def _game(game_id: str, names: tuple[str, ...], base: tuple[int, ...], uma: tuple[int, ...] = (0, 0, 0, 0)) -> Game:
    return Game(
        id=game_id,
        players=[GamePlayer(name=n) for n in names],
        points=[[b, u] for b, u in zip(base, uma, strict=True)],
    )


class TestRankSeats:
    def test_ranks_best_first_with_filter_keys(self):
        game = _game("g", ("Alice", "Bob", "Carol", "Dave"), (10000, 40000, 30000, 20000))

        standings = rank_seats(game, ["bob", "carol"])

        assert [(s.seat, s.rank, s.filter_key) for s in standings] == [
            (1, 1, "bob"),
            (2, 2, "carol"),
            (3, 3, None),
            (0, 4, None),
        ]

    def test_ties_keep_seat_order(self):
        game = _game("g", ("Alice", "Bob", "Carol", "Dave"), (25000, 25000, 25000, 25000))

        assert [s.rank for s in rank_seats(game, [])] == [1, 2, 3, 4]
        assert [s.seat for s in rank_seats(game, [])] == [0, 1, 2, 3]


class TestComputeOverall:
    def test_each_player_gets_their_own_rank(self):
        game = _game("g", ("Alice", "Bob", "Carol", "Dave"), (20000, 40000, 10000, 30000), (-10, 20, -20, 10))

        results = compute_overall([game], ["Bob", "Carol"])

        bob, carol = results.player_rankings
        assert bob.player_name == "Bob"
        assert bob.first_places == 1
        assert bob.games_played == 1
        assert bob.total_points == 40020
        assert carol.player_name == "Carol"
        assert carol.fourth_places == 1
        assert carol.first_places == 0
        assert carol.average_rank == 4.0

    def test_aggregates_across_games_and_sorts_by_points(self):
        games = [
            _game("1", ("Bob", "Carol", "x", "y"), (40000, 30000, 20000, 10000), (20, 10, -10, -20)),
            _game("2", ("Carol", "Bob", "x", "y"), (40000, 10000, 30000, 20000), (20, -20, 10, -10)),
            _game("3", ("Carol", "x", "y", "z"), (35000, 30000, 20000, 15000), (20, 10, -10, -20)),
        ]

        results = compute_overall(games, ["bob", "Carol"])

        carol, bob = results.player_rankings
        assert carol.games_played == 3
        assert carol.total_points == 30010 + 40020 + 35020
        assert (carol.first_places, carol.second_places) == (2, 1)
        assert carol.average_rank == (1 + 1 + 2) / 3
        assert bob.player_name == "bob"
        assert bob.games_played == 2
        assert (bob.first_places, bob.fourth_places) == (1, 1)
        assert bob.average_rank == 2.5

    def test_requested_player_without_games_gets_empty_summary(self):
        game = _game("g", ("Alice", "Bob", "Carol", "Dave"), (40000, 30000, 20000, 10000))

        results = compute_overall([game], ["Alice", "Zed"])

        zed = next(s for s in results.player_rankings if s.player_name == "Zed")
        assert zed.games_played == 0
        assert zed.average_rank == 0.0

    def test_duplicate_names_keep_first_spelling(self):
        game = _game("g", ("Alice", "Bob", "Carol", "Dave"), (40000, 30000, 20000, 10000))

        results = compute_overall([game], ["Alice", "ALICE"])

        assert [s.player_name for s in results.player_rankings] == ["Alice"]
        assert results.player_rankings[0].games_played == 1

    def test_matches_by_substring(self):
        game = _game("g", ("Alice (guest)", "Bob", "Carol", "Dave"), (40000, 30000, 20000, 10000))

        results = compute_overall([game], ["alice"])

        assert results.player_rankings[0].first_places == 1

    def test_empty_inputs(self):
        game = _game("g", ("Alice", "Bob", "Carol", "Dave"), (40000, 30000, 20000, 10000))

        assert compute_overall([], ["Alice"]).player_rankings == []
        assert compute_overall([game], []).player_rankings == []

    def test_game_with_malformed_points_is_skipped(self):
        broken = Game(id="broken", players=[GamePlayer(name="Alice")] * 4, points=[[40000], [30000]])
        good = _game("g", ("Alice", "Bob", "Carol", "Dave"), (40000, 30000, 20000, 10000))

        results = compute_overall([broken, good], ["Alice"])

        assert results.player_rankings[0].games_played == 1
