import time

from esg_platform.query_cache import QueryCache, EMPLOYEE, PROGRAM, COMPANY


def test_get_or_compute_caches_value():
    cache = QueryCache()
    calls = []

    def compute():
        calls.append(1)
        return {"total": 3}

    assert cache.get_or_compute("summary", EMPLOYEE, 1, compute) == {"total": 3}
    assert cache.get_or_compute("summary", EMPLOYEE, 1, compute) == {"total": 3}
    assert len(calls) == 1


def test_none_is_not_cached():
    cache = QueryCache()
    assert cache.get_or_compute("economic", COMPANY, None, lambda: None) is None
    assert len(cache) == 0


def test_invalidate_only_touches_one_entity():
    cache = QueryCache()
    cache.set("summary", EMPLOYEE, 1, "a")
    cache.set("trainings", EMPLOYEE, 1, "b")
    cache.set("summary", EMPLOYEE, 2, "c")
    cache.set("detail", PROGRAM, 1, "d")

    assert cache.invalidate(EMPLOYEE, 1) == 2
    assert cache.get("summary", EMPLOYEE, 1) is None
    assert cache.get("summary", EMPLOYEE, 2) == "c"
    assert cache.get("detail", PROGRAM, 1) == "d"


def test_ttl_expiry():
    cache = QueryCache(ttl=0.0001)
    cache.set("summary", EMPLOYEE, 1, "a")
    time.sleep(0.01)
    assert cache.get("summary", EMPLOYEE, 1) is None


def test_max_entries_evicts_oldest():
    cache = QueryCache(max_entries=2)
    cache.set("a", COMPANY, None, 1)
    cache.set("b", COMPANY, None, 2)
    cache.set("c", COMPANY, None, 3)
    assert len(cache) == 2
    assert ("c", COMPANY, None) in cache


def test_invalidate_namespace_and_clear():
    cache = QueryCache()
    cache.set("emissions", COMPANY, None, 1)
    cache.set("water", COMPANY, None, 2)
    assert cache.invalidate_namespace("emissions") == 1
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0
