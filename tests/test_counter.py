import threading

from castv2.counter import ChCounter, Counter


def test_get_and_increment_returns_previous_value():
    counter = Counter()
    first = counter.get_and_increment()
    second = counter.get_and_increment()
    assert first == 0
    assert second == first + 1
    assert counter.get() == second + 1


def test_get_does_not_change_value():
    counter = Counter()
    counter.get_and_increment()
    assert counter.get() == 1
    assert counter.get() == 1
    assert counter.get_and_increment() == 1


def test_reset_returns_to_zero():
    counter = Counter()
    for _ in range(5):
        counter.get_and_increment()
    counter.reset()
    assert counter.get() == 0
    assert counter.get_and_increment() == 0


def test_concurrent_increments_are_not_lost():
    counter = Counter()
    threads_count = 8
    per_thread = 250
    seen: list[int] = []
    seen_lock = threading.Lock()

    def worker():
        local = [counter.get_and_increment() for _ in range(per_thread)]
        with seen_lock:
            seen.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    total = threads_count * per_thread
    assert counter.get() == total
    assert sorted(seen) == list(range(total))


def test_ch_counter_publishes_successive_values():
    counter = ChCounter()
    counter.increment()
    counter.increment()
    counter.increment()
    values = [counter.outputs.get_nowait() for _ in range(3)]
    assert values == [1, 2, 3]
    assert counter.outputs.empty()