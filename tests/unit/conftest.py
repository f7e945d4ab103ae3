"""Shared test fixtures."""

import pytest

from tests.unit.kin import FAMILY, Kin


@pytest.fixture
def family() -> list[Kin]:
    """Unordered family tree.

    Built with NEWEST_FIRST_FUNCTIONS it looks like::

        v gramps
        -v momma
        --- grandkid
        -- auntie
    """
    return list(FAMILY)
