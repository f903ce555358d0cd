import random

from pairs.services.games.session import (
    GameSession,
    MATCH_CONFIRM_DELAY,
    MISMATCH_REVERT_DELAY,
    SessionState,
)
from pairs.services.games.scoring import MATCH_REWARD, final_score


def _session(clock, rng, symbols=('A', 'B', 'C', 'D')):
    return GameSession(clock, symbols=symbols, rng=rng, code='TEST')


def _revealed_unmatched(session):
    return [c.id for c in session.cards if c.revealed and not c.matched]


def _pairs(session):
    by_value = {}
    for card in session.cards:
        by_value.setdefault(card.value, []).append(card.id)
    return list(by_value.values())


def test_mismatch_then_match_scenario(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    assert session.start_game()
    assert session.state == SessionState.PLAYING

    assert session.reveal_card(0)
    assert session.reveal_card(1)
    clock.advance(MISMATCH_REVERT_DELAY - 0.25)
    assert _revealed_unmatched(session) == [0, 1]
    clock.advance(0.25)
    assert _revealed_unmatched(session) == []
    assert not any(c.matched for c in session.cards)

    assert session.reveal_card(0)
    assert session.reveal_card(2)
    clock.advance(MATCH_CONFIRM_DELAY)
    cards = session.cards
    assert cards[0].matched and cards[2].matched
    assert session.score == MATCH_REWARD
    assert session.move_count == 4


def test_reveal_ignored_unless_playing(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    assert not session.reveal_card(0)
    session.start_game()
    session.pause_game()
    assert not session.reveal_card(0)
    assert session.move_count == 0
    session.resume_game()
    assert session.reveal_card(0)


def test_invalid_reveals_are_inert(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    session.start_game()
    for bad in (-1, 8, 100, None, '0', True, 1.0):
        assert not session.reveal_card(bad)
    assert session.reveal_card(0)
    assert not session.reveal_card(0)
    assert session.move_count == 1


def test_third_reveal_rejected_while_pair_pending(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    session.start_game()
    session.reveal_card(0)
    session.reveal_card(1)
    assert not session.reveal_card(4)
    assert session.pending == [0, 1]
    assert len(_revealed_unmatched(session)) == 2
    clock.advance(MISMATCH_REVERT_DELAY)
    assert session.reveal_card(4)


def test_never_more_than_two_revealed_unmatched(clock):
    session = _session(clock, random.Random(7), symbols='ABCDEF')
    session.start_game()
    rnd = random.Random(11)
    for _ in range(400):
        if rnd.random() < 0.6:
            session.reveal_card(rnd.randrange(12))
        else:
            clock.advance(rnd.choice([0.25, 0.5, 1.0]))
        assert len(_revealed_unmatched(session)) <= 2
        assert len(session.pending) <= 2


def test_matched_cards_stay_matched(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    session.start_game()
    session.reveal_card(0)
    session.reveal_card(2)
    clock.advance(MATCH_CONFIRM_DELAY)
    session.reveal_card(1)
    session.reveal_card(4)
    clock.advance(MISMATCH_REVERT_DELAY)
    cards = session.cards
    assert cards[0].matched and cards[2].matched
    assert not session.reveal_card(0)


def test_completion_computes_final_score(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    completed = []
    session.add_listener(lambda event, s: completed.append(s.score) if event == 'completed' else None)
    session.start_game()
    for a, b in [(0, 2), (1, 3), (4, 5), (6, 7)]:
        session.reveal_card(a)
        session.reveal_card(b)
        clock.advance(MATCH_CONFIRM_DELAY)

    assert session.state == SessionState.COMPLETED
    assert session.elapsed == 2
    assert session.move_count == 8
    expected = final_score(4 * MATCH_REWARD, 2, 8)
    assert session.breakdown == expected
    assert session.score == 400 + 980 + 420
    assert completed == [session.score]


def test_counters_frozen_after_completion(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    session.start_game()
    for a, b in [(0, 2), (1, 3), (4, 5), (6, 7)]:
        session.reveal_card(a)
        session.reveal_card(b)
        clock.advance(MATCH_CONFIRM_DELAY)
    snapshot = (session.elapsed, session.move_count, session.score)
    clock.advance(30)
    assert not session.reveal_card(0)
    assert not session.pause_game()
    assert (session.elapsed, session.move_count, session.score) == snapshot
    assert clock.pending() == 0


def test_final_score_never_below_match_points(clock):
    session = _session(clock, random.Random(1), symbols='AB')
    session.start_game()
    clock.advance(500)
    for a, b in _pairs(session):
        session.reveal_card(a)
        session.reveal_card(b)
        clock.advance(MATCH_CONFIRM_DELAY)
    assert session.state == SessionState.COMPLETED
    assert session.breakdown['time_bonus'] == 0
    assert session.score >= 2 * MATCH_REWARD


def test_bonus_uses_state_at_resolution_time(clock):
    session = _session(clock, random.Random(0), symbols=['A'])
    session.start_game()
    clock.advance(0.75)
    session.reveal_card(0)
    session.reveal_card(1)
    assert session.elapsed == 0
    # The ticker fires at t=1.0, before the resolution at t=1.25
    clock.advance(MATCH_CONFIRM_DELAY)
    assert session.state == SessionState.COMPLETED
    assert session.elapsed == 1
    assert session.breakdown['time_bonus'] == 990


def test_ticker_counts_while_playing_only(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    session.start_game()
    clock.advance(3)
    assert session.elapsed == 3
    assert session.pause_game()
    assert not session.pause_game()
    clock.advance(5)
    assert session.elapsed == 3
    assert session.resume_game()
    assert not session.resume_game()
    clock.advance(2)
    assert session.elapsed == 5


def test_pause_does_not_cancel_pending_resolution(clock):
    session = _session(clock, random.Random(0), symbols=['A'])
    session.start_game()
    session.reveal_card(0)
    session.reveal_card(1)
    session.pause_game()
    clock.advance(MATCH_CONFIRM_DELAY)
    assert session.state == SessionState.COMPLETED
    assert all(c.matched for c in session.cards)


def test_reset_cancels_timers_and_stale_callbacks(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    session.start_game()
    session.reveal_card(0)
    session.reveal_card(2)
    assert session.reset_game()
    assert session.state == SessionState.IDLE
    assert session.cards == []
    assert clock.pending() == 0

    session.start_game()
    clock.advance(MATCH_CONFIRM_DELAY)
    assert not any(c.matched or c.revealed for c in session.cards)
    assert session.score == 0


def test_stale_resolution_is_ignored_even_if_it_fires(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    session.start_game()
    session.reveal_card(0)
    session.reveal_card(2)
    stale_epoch = session.epoch
    session.reset_game()
    session.start_game()
    session._resolve(stale_epoch, (0, 2))
    assert not any(c.matched for c in session.cards)


def test_start_only_from_idle_or_completed(clock):
    session = _session(clock, random.Random(0), symbols=['A'])
    assert session.start_game()
    assert not session.start_game()
    session.reveal_card(0)
    session.reveal_card(1)
    clock.advance(MATCH_CONFIRM_DELAY)
    assert session.state == SessionState.COMPLETED
    assert session.start_game()
    assert session.state == SessionState.PLAYING
    assert session.score == 0 and session.move_count == 0


def test_empty_deck_completes_immediately(clock):
    session = _session(clock, random.Random(0), symbols=[])
    session.start_game()
    assert session.state == SessionState.COMPLETED
    assert session.score == 1500
    assert clock.pending() == 0


def test_snapshot_hides_face_down_values(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    session.start_game()
    session.reveal_card(0)
    payload = session.to_dict()
    assert payload['state'] == 'playing'
    assert payload['cards'][0]['value'] == 'A'
    assert payload['cards'][1]['value'] is None
    assert session.to_dict(reveal_all=True)['cards'][1]['value'] == 'B'


def test_listener_events(clock, arranged_rng):
    session = _session(clock, arranged_rng)
    events = []
    session.add_listener(lambda event, s: events.append(event))
    session.start_game()
    session.reveal_card(0)
    session.reveal_card(1)
    clock.advance(MISMATCH_REVERT_DELAY)
    session.pause_game()
    session.resume_game()
    session.reset_game()
    assert events == ['started', 'revealed', 'revealed', 'tick', 'mismatched', 'paused', 'resumed', 'reset']


def test_raising_listener_does_not_strand_session(clock):
    session = _session(clock, random.Random(0), symbols=['A'])
    seen = []

    def _broken(event, s):
        if event == 'matched':
            raise RuntimeError('emit failed')

    session.add_listener(_broken)
    session.add_listener(lambda event, s: seen.append(event))
    session.start_game()
    session.reveal_card(0)
    session.reveal_card(1)
    clock.advance(5)
    assert session.state == SessionState.COMPLETED
    assert all(c.matched for c in session.cards)
    assert seen[-2:] == ['matched', 'completed']
    assert clock.pending() == 0


def test_player_is_part_of_snapshot(clock, arranged_rng):
    session = GameSession(clock, symbols='ABCD', rng=arranged_rng, code='P1', player='alice')
    assert session.to_dict()['player'] == 'alice'
