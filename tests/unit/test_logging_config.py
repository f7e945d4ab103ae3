"""Tests for loguru configuration."""

import sys
from collections.abc import Iterator

import pytest
from loguru import logger

from ordered_tree.logging_config import configure_logging, log_level


@pytest.fixture(autouse=True)
def _restore_logger() -> Iterator[None]:
    yield
    logger.remove()
    logger.add(sys.__stderr__)


@pytest.mark.parametrize(
    ("verbose", "quiet", "level"),
    [(False, False, "INFO"), (True, False, "DEBUG"), (False, True, "WARNING")],
)
def test_log_level_follows_the_flags(verbose: bool, quiet: bool, level: str) -> None:
    assert log_level(verbose=verbose, quiet=quiet) == level


def test_log_level_rejects_both_flags() -> None:
    with pytest.raises(ValueError, match="mutually exclusive"):
        log_level(verbose=True, quiet=True)


def test_quiet_logging_drops_info(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(quiet=True)
    logger.info("renumbered siblings")
    logger.warning("missing parent")

    err = capsys.readouterr().err
    assert "missing parent" in err
    assert "renumbered siblings" not in err


def test_verbose_logging_names_the_module(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(verbose=True)
    logger.debug("anchored drag")

    err = capsys.readouterr().err
    assert "anchored drag" in err
    assert "test_logging_config:test_verbose_logging_names_the_module" in err
