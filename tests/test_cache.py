"""Tests for the resolution cache."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import threading

from rdflib import Namespace

from resid.cache import ResolutionCache

EX = Namespace("http://example.org/")


class TestUuids:
    def test_miss(self):
        assert ResolutionCache().get_uuids((EX.a, False)) is None

    def test_empty_result_is_a_hit(self):
        cache = ResolutionCache()
        cache.put_uuids((EX.a, False), [])
        assert cache.get_uuids((EX.a, False)) == []

    def test_copies(self):
        cache = ResolutionCache()
        stored = [EX.x, EX.y]
        cache.put_uuids((EX.a, False), stored)
        stored.append(EX.z)
        got = cache.get_uuids((EX.a, False))
        got.append(EX.w)
        assert cache.get_uuids((EX.a, False)) == [EX.x, EX.y]

    def test_keys_separate(self):
        cache = ResolutionCache()
        cache.put_uuids((EX.a, False), [EX.x])
        assert cache.get_uuids((EX.a, True)) is None


class TestSubjects:
    def test_check_called_once(self):
        cache = ResolutionCache()
        calls = []

        def check(term):
            calls.append(term)
            return term == EX.a

        assert cache.has_subject(EX.a, check)
        assert cache.has_subject(EX.a, check)
        assert not cache.has_subject(EX.b, check)
        assert not cache.has_subject(EX.b, check)
        assert calls == [EX.a, EX.b]


class TestClear:
    def test_clear(self):
        cache = ResolutionCache()
        cache.put_uuids((EX.a, False), [EX.x])
        cache.has_subject(EX.a, lambda t: True)
        assert len(cache) == 2

        cache.clear()
        assert len(cache) == 0
        assert cache.get_uuids((EX.a, False)) is None
        assert "0 resolutions" in repr(cache)


class TestThreads:
    def test_concurrent_checks(self):
        cache = ResolutionCache()
        calls = []
        lock = threading.Lock()

        def check(term):
            with lock:
                calls.append(term)
            return True

        def worker():
            for i in range(50):
                cache.has_subject(EX[f"s{i}"], check)
                cache.put_uuids((EX[f"s{i}"], False), [EX.x])

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 50
        assert len(cache) == 100
