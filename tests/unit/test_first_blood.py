from __future__ import annotations

import threading

from judgearena.engine.first_blood import FirstBloodTracker


def test_first_claim_wins(storage) -> None:
    tracker = FirstBloodTracker(storage)
    assert tracker.try_claim("p1", "alice") is True
    assert tracker.try_claim("p1", "bob") is False
    assert tracker.holder("p1") == "alice"
    assert tracker.holder("p2") is None


def test_claims_are_per_problem(storage) -> None:
    tracker = FirstBloodTracker(storage)
    assert tracker.try_claim("p1", "alice") is True
    assert tracker.try_claim("p2", "bob") is True


def test_concurrent_claims_have_one_winner(storage) -> None:
    tracker = FirstBloodTracker(storage)
    names = [f"user{i}" for i in range(10)]
    outcomes = {}
    barrier = threading.Barrier(len(names))

    def claim(name: str) -> None:
        barrier.wait()
        outcomes[name] = tracker.try_claim("p1", name)

    threads = [threading.Thread(target=claim, args=(name,)) for name in names]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    winners = [name for name, won in outcomes.items() if won]
    assert len(winners) == 1
    assert tracker.holder("p1") == winners[0]
