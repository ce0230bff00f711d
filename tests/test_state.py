# -*- coding: utf-8 -*-
"""Pure sync transitions."""

from conftest import make_dataset

from sluicewatch import state
from sluicewatch.errors import HttpError, NetworkError
from sluicewatch.state import Phase, StalePolicy


def test_mount_with_cache_shows_it():
    model = state.mounted(state.bootstrap(), make_dataset(3))
    assert model.phase is Phase.SHOWING_CACHE
    assert model.dataset == make_dataset(3)
    assert not model.loading


def test_mount_without_cache_loads():
    model = state.mounted(state.bootstrap(), None)
    assert model.phase is Phase.LOADING
    assert model.loading
    assert model.dataset is None


def test_success_replaces_and_requests_cache_write():
    model = state.mounted(state.bootstrap(), make_dataset(3))
    model, write = state.fetch_succeeded(model, 1, make_dataset(5))

    assert write
    assert model.phase is Phase.READY
    assert model.dataset == make_dataset(5)
    assert model.last_applied_seq == 1


def test_empty_success_keeps_existing_data():
    model = state.mounted(state.bootstrap(), make_dataset(3))
    model, write = state.fetch_succeeded(model, 1, ())

    assert not write
    assert model.phase is Phase.READY
    assert model.dataset == make_dataset(3)


def test_empty_success_without_data_is_empty_ready():
    model = state.mounted(state.bootstrap(), None)
    model, write = state.fetch_succeeded(model, 1, ())

    assert not write
    assert model.phase is Phase.READY
    assert model.dataset == ()


def test_failure_without_data_is_error():
    err = NetworkError("refused")
    model = state.fetch_failed(state.mounted(state.bootstrap(), None), 1, err)

    assert model.phase is Phase.ERROR
    assert model.error is err
    assert model.dataset is None


def test_failure_with_data_is_transient():
    err = HttpError(500)
    model = state.mounted(state.bootstrap(), make_dataset(2))
    model = state.fetch_failed(model, 1, err)

    assert model.phase is Phase.SHOWING_CACHE
    assert model.transient_error is err
    assert model.dataset == make_dataset(2)

    model = state.error_dismissed(model)
    assert model.transient_error is None


def test_success_clears_errors():
    model = state.mounted(state.bootstrap(), make_dataset(2))
    model = state.fetch_failed(model, 1, NetworkError("x"))
    model, _ = state.fetch_succeeded(model, 2, make_dataset(2))
    assert model.transient_error is None


def test_stale_completion_is_dropped_under_sequence_policy():
    model = state.mounted(state.bootstrap(StalePolicy.SEQUENCE), None)
    model, _ = state.fetch_succeeded(model, 2, make_dataset(4))

    after, write = state.fetch_succeeded(model, 1, make_dataset(1))
    assert not write
    assert after.dataset == make_dataset(4)

    after = state.fetch_failed(model, 1, NetworkError("late"))
    assert after.transient_error is None


def test_last_completed_policy_applies_everything():
    model = state.mounted(state.bootstrap(StalePolicy.LAST_COMPLETED), None)
    model, _ = state.fetch_succeeded(model, 2, make_dataset(4))
    model, write = state.fetch_succeeded(model, 1, make_dataset(1))

    assert write
    assert model.dataset == make_dataset(1)
    assert model.last_applied_seq == 2


def test_manual_refresh_counter():
    model = state.mounted(state.bootstrap(), make_dataset(1))
    model = state.fetch_started(model, manual=True)
    model = state.fetch_started(model, manual=True)
    assert model.refreshing

    model, _ = state.fetch_succeeded(model, 1, make_dataset(1), manual=True)
    assert model.refreshing
    model = state.fetch_failed(model, 2, NetworkError("x"), manual=True)
    assert not model.refreshing

    # a background fetch never touches the indicator
    assert state.fetch_started(model) is model
