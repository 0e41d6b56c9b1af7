from __future__ import annotations

import logging

import pytest

from mailbox_chess.config import Settings


def test_defaults_without_environment() -> None:
    s = Settings.from_env({})
    assert s == Settings()
    assert (s.log_level, s.hash_mb, s.default_depth, s.max_depth) == ("INFO", 16, 3, 8)
    assert s.quiescence_depth == 6


def test_values_read_from_environment() -> None:
    s = Settings.from_env(
        {
            "MAILBOX_CHESS_LOG_LEVEL": "debug",
            "MAILBOX_CHESS_HASH_MB": "4",
            "MAILBOX_CHESS_DEFAULT_DEPTH": "2",
            "MAILBOX_CHESS_MAX_DEPTH": "5",
            "MAILBOX_CHESS_QUIESCENCE_DEPTH": "0",
            "UNRELATED": "ignored",
        }
    )
    assert s == Settings(
        log_level="DEBUG", hash_mb=4, default_depth=2, max_depth=5, quiescence_depth=0
    )


def test_blank_values_fall_back_to_defaults() -> None:
    assert Settings.from_env({"MAILBOX_CHESS_HASH_MB": "  "}).hash_mb == 16


@pytest.mark.parametrize(
    "env, name",
    [
        ({"MAILBOX_CHESS_HASH_MB": "lots"}, "HASH_MB"),
        ({"MAILBOX_CHESS_HASH_MB": "0"}, "HASH_MB"),
        ({"MAILBOX_CHESS_LOG_LEVEL": "chatty"}, "LOG_LEVEL"),
        ({"MAILBOX_CHESS_MAX_DEPTH": "2"}, "DEFAULT_DEPTH"),
        ({"MAILBOX_CHESS_QUIESCENCE_DEPTH": "-1"}, "QUIESCENCE_DEPTH"),
    ],
)
def test_invalid_values_name_the_variable(env: dict, name: str) -> None:
    with pytest.raises(ValueError, match=f"MAILBOX_CHESS_{name}"):
        Settings.from_env(env)


def test_from_env_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAILBOX_CHESS_MAX_DEPTH", "12")
    assert Settings.from_env().max_depth == 12


def test_configure_logging_sets_root_level(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    Settings(log_level="WARNING").configure_logging()
    assert calls == [{"level": logging.WARNING}]
