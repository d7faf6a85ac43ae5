"""Tests for the explicit execution context."""

import pytest

from gnocchi.core.context import GnocchiContext, resolve_context


def test_defaults() -> None:
    context = GnocchiContext()
    assert context.chunk_size == 250_000
    assert context.n_jobs == 1
    assert context.max_workers == 1
    assert context.verbose is True
    assert "chunk_size=250000" in repr(context)


@pytest.mark.parametrize("kwargs", [{"chunk_size": 0}, {"n_jobs": 0}, {"n_jobs": -2}])
def test_invalid_settings_raise(kwargs) -> None:
    with pytest.raises(ValueError):
        GnocchiContext(**kwargs)


def test_all_cpus_setting(monkeypatch) -> None:
    monkeypatch.setattr("gnocchi.core.context.os.cpu_count", lambda: 6)
    assert GnocchiContext(n_jobs=-1).max_workers == 6


@pytest.mark.parametrize("n_jobs", [1, 3])
def test_map_preserves_order(n_jobs: int) -> None:
    context = GnocchiContext(n_jobs=n_jobs)
    assert context.map(lambda x: x * 2, iter(range(10))) == [x * 2 for x in range(10)]


def test_log_respects_verbosity(capsys) -> None:
    GnocchiContext(verbose=False).log("hidden")
    GnocchiContext().log("shown")
    assert capsys.readouterr().out == "shown\n"


def test_resolve_context() -> None:
    context = GnocchiContext(chunk_size=10)
    assert resolve_context(context) is context
    assert resolve_context(None, verbose=False).verbose is False
    assert resolve_context(None).verbose is True
