import threading

import pytest

from ringgame.services.games import GameError, GameNotFound, GameRegistry, GameState
from ringgame.services.games.errors import AlreadyPlacedThisRound, SlotOccupied


def started_game(code='WXYZ'):
    state = GameState.new(code, 'Acme', 2)
    state.add_member(1, 'Alice')
    state.add_member(2, 'Bob')
    state.start()
    return state


def test_add_publishes_snapshot():
    registry = GameRegistry()
    snapshot = registry.add(started_game())
    assert snapshot['phase'] == 'active'
    assert registry.snapshot('WXYZ') is snapshot
    assert registry.codes() == ['WXYZ']


def test_duplicate_code_rejected():
    registry = GameRegistry()
    registry.add(started_game())
    with pytest.raises(ValueError):
        registry.add(started_game())


def test_unknown_game():
    with pytest.raises(GameNotFound):
        GameRegistry().snapshot('NOPE')


def test_readers_see_last_published_snapshot_only():
    registry = GameRegistry()
    registry.add(started_game())
    before = registry.snapshot('WXYZ')
    with registry.mutate('WXYZ') as state:
        state.draw_card(0)
        assert registry.snapshot('WXYZ') is before
    after = registry.snapshot('WXYZ')
    assert after['round'] == 1
    assert before['round'] == 0


def test_rejected_command_publishes_nothing():
    registry = GameRegistry()
    registry.add(started_game())
    with registry.mutate('WXYZ') as state:
        state.draw_card(0)
    published = registry.snapshot('WXYZ')
    with pytest.raises(GameError):
        with registry.mutate('WXYZ') as state:
            state.draw_card(1)
    assert registry.snapshot('WXYZ') == published
    assert registry.snapshot('WXYZ')['round'] == 1


def test_loader_restores_and_rescores():
    source = started_game('LOAD')
    source.draw_card(0)
    source.place_for_team(1, 0)
    source.place_for_team(2, 5)
    source.draw_card(1)
    source.place_for_team(1, 1)
    data = source.to_dict()
    data['teams'][0]['score'] = 12345

    registry = GameRegistry(loader=lambda code: data if code == 'LOAD' else None)
    snapshot = registry.snapshot('LOAD')
    assert snapshot['teams'][0]['score'] == 1
    assert snapshot['waiting_for_placements']
    with pytest.raises(GameNotFound):
        registry.snapshot('MISS')


def test_concurrent_placements_for_one_team_apply_once():
    registry = GameRegistry()
    registry.add(started_game())
    with registry.mutate('WXYZ') as state:
        state.draw_card(0)

    barrier = threading.Barrier(8)
    outcomes = []

    def worker(slot):
        barrier.wait()
        try:
            with registry.mutate('WXYZ') as s:
                s.place_for_team(1, slot)
            outcomes.append('ok')
        except (AlreadyPlacedThisRound, SlotOccupied):
            outcomes.append('rejected')

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count('ok') == 1
    assert outcomes.count('rejected') == 7
    slots = registry.snapshot('WXYZ')['teams'][0]['slots']
    assert sum(1 for s in slots if s is not None) == 1


def test_games_are_isolated():
    registry = GameRegistry()
    registry.add(started_game('AAAA'))
    registry.add(started_game('BBBB'))
    with registry.mutate('AAAA') as state:
        state.draw_card(0)
    assert registry.snapshot('BBBB')['round'] == 0
    registry.discard('AAAA')
    assert registry.codes() == ['BBBB']


def test_failure_after_command_still_publishes():
    registry = GameRegistry()
    registry.add(started_game())
    with pytest.raises(RuntimeError):
        with registry.mutate('WXYZ') as state:
            state.draw_card(0)
            raise RuntimeError('save failed')
    snapshot = registry.snapshot('WXYZ')
    assert snapshot['round'] == 1
    assert snapshot['waiting_for_placements']


def test_throttle_per_game_and_action():
    registry = GameRegistry()
    registry.add(started_game('AAAA'))
    registry.add(started_game('BBBB'))
    assert not registry.throttle('AAAA', 'draw', 500, now=1000.0)
    assert registry.throttle('AAAA', 'draw', 500, now=1200.0)
    assert not registry.throttle('AAAA', 'start', 500, now=1200.0)
    assert not registry.throttle('BBBB', 'draw', 500, now=1200.0)
    assert not registry.throttle('AAAA', 'draw', 500, now=1600.0)
    registry.discard('AAAA')
    with pytest.raises(GameNotFound):
        registry.throttle('AAAA', 'draw', 500)
