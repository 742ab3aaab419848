"""Tests for watch() registration, listeners and deregistration."""

import pytest

from scopewatch import Scope, WatchFnRequiredError


class TestWatch:
    def test_requires_watch_fn(self):
        scope = Scope()
        with pytest.raises(WatchFnRequiredError):
            scope.watch(None)

    def test_rejects_non_callable(self):
        scope = Scope()
        with pytest.raises(TypeError):
            scope.watch("a")

    def test_not_called_before_digest(self):
        scope = Scope()
        calls = []
        scope.watch(lambda s: calls.append("watch"))
        assert calls == []

    def test_first_digest_fires_with_old_equal_new(self):
        scope = Scope()
        scope.value = "abc"
        calls = []
        scope.watch(lambda s: s.value, lambda new, old, s: calls.append((new, old, s)))
        scope.digest()
        assert calls == [("abc", "abc", scope)]

    def test_unset_field_reads_as_none(self):
        scope = Scope()
        calls = []
        scope.watch(lambda s: s.missing, lambda new, old, s: calls.append((new, old)))
        scope.digest()
        assert calls == [(None, None)]

    def test_none_value_still_fires_first_time(self):
        scope = Scope()
        scope.value = None
        calls = []
        scope.watch(lambda s: s.value, lambda new, old, s: calls.append(new))
        scope.digest()
        assert calls == [None]

    def test_unchanged_value_does_not_refire(self):
        scope = Scope()
        scope.value = 1
        calls = []
        scope.watch(lambda s: s.value, lambda new, old, s: calls.append(new))
        scope.digest()
        scope.digest()
        scope.digest()
        assert calls == [1]

    def test_change_reports_previous_value(self):
        scope = Scope()
        scope.value = 1
        calls = []
        scope.watch(lambda s: s.value, lambda new, old, s: calls.append((new, old)))
        scope.digest()
        scope.value = 2
        scope.digest()
        assert calls == [(1, 1), (2, 1)]

    def test_listener_is_optional(self):
        scope = Scope()
        scope.value = 1
        seen = []
        scope.watch(lambda s: seen.append(s.value))
        scope.digest()
        assert seen == [1, 1]  # dirty pass, then clean pass

    def test_private_attributes_still_raise(self):
        scope = Scope()
        with pytest.raises(AttributeError):
            scope._nope


class TestDeregister:
    def test_counter_scenario(self):
        scope = Scope()
        scope.counter = 0

        def increment(new, old, s):
            s.counter += 1

        remove = scope.watch(lambda s: s.a, increment)
        assert scope.counter == 0
        scope.digest()
        assert scope.counter == 1
        scope.a = 5
        scope.apply()
        assert scope.counter == 2
        remove()
        scope.a = 6
        scope.digest()
        assert scope.counter == 2

    def test_deregistered_watch_never_evaluated(self):
        scope = Scope()
        evaluated = []
        remove = scope.watch(lambda s: evaluated.append(1))
        remove()
        scope.digest()
        assert evaluated == []
        assert scope.watcher_count() == 0

    def test_deregister_is_idempotent(self):
        scope = Scope()
        remove = scope.watch(lambda s: s.a)
        keep = []
        scope.watch(lambda s: s.b, lambda new, old, s: keep.append(new))
        remove()
        remove()
        assert scope.watcher_count() == 1
        scope.digest()
        assert keep == [None]

    def test_removes_only_its_own_watcher(self):
        scope = Scope()
        fn = lambda s: s.a
        first = []
        second = []
        remove_first = scope.watch(fn, lambda new, old, s: first.append(new))
        scope.watch(fn, lambda new, old, s: second.append(new))
        remove_first()
        scope.digest()
        assert first == []
        assert second == [None]

    def test_listener_removing_later_watcher_mid_pass(self):
        scope = Scope()
        later = []
        removers = {}
        scope.watch(lambda s: s.a, lambda new, old, s: removers["later"]())
        removers["later"] = scope.watch(lambda s: later.append(1))
        scope.digest()
        assert later == []

    def test_listener_removing_itself(self):
        scope = Scope()
        scope.a = 1
        calls = []
        removers = {}

        def once(new, old, s):
            calls.append(new)
            removers["self"]()

        removers["self"] = scope.watch(lambda s: s.a, once)
        other = []
        scope.watch(lambda s: s.a, lambda new, old, s: other.append(new))
        scope.digest()
        scope.a = 2
        scope.digest()
        assert calls == [1]
        assert other == [1, 2]


class TestUnsetAttributes:
    def test_misspelt_method_reads_as_none(self):
        scope = Scope()
        assert scope.digset is None
        assert callable(scope.digest)

    def test_assigned_field_shadows_default(self):
        scope = Scope()
        scope.digset = 3
        assert scope.digset == 3
