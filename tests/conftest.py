"""
Shared fixtures for zkgmbridge tests.
"""

import pytest

from zkgmbridge.chains.registry import ChainRegistry
from zkgmbridge.logging import shutdown_logging
from zkgmbridge.routes import RouteTable

ATOMONE_SENDER = "atone1qqqsyqcyq5rqwzqfpg9scrgwpugpzysndkda8p"
ATOMONE_SENDER_ON_HUB = "osmo1qqqsyqcyq5rqwzqfpg9scrgwpugpzysntdz28t"
SENDER_BYTES = bytes(range(20))
EVM_ACCOUNT = "0x000102030405060708090a0b0c0d0e0f10111213"
EVM_RECIPIENT = "0xA1a1d0B9182339e86e80db519218eA03Ec09a1A1"

UATONE_ON_HUB = "ibc/BC26A7A805ECD6822719472BCB7842A48EF09DF206182F8F259B2593EB5D23FB"
ERC20_ATONE = "0xA1a1d0B9182339e86e80db519218eA03Ec09a1A1"
SOLVER_METADATA = "0x" + "ab" * 40

FIXED_SALT = bytes(range(32, 64))
FIXED_NOW_NS = 1_700_000_000_000_000_000


@pytest.fixture
def route_table():
    """Routes for both directions of the uatone link."""
    return RouteTable.from_list(
        [
            {
                "src": "AtomOne",
                "dest": "Ethereum",
                "denom": "uatone",
                "baseToken": UATONE_ON_HUB,
                "quoteToken": ERC20_ATONE,
                "metadata": SOLVER_METADATA,
            },
            {
                "src": "Ethereum",
                "dest": "AtomOne",
                "denom": "uatone",
                "baseToken": ERC20_ATONE,
                "quoteToken": UATONE_ON_HUB,
                "metadata": SOLVER_METADATA,
            },
        ]
    )


@pytest.fixture
def registry():
    return ChainRegistry()


@pytest.fixture
def fixed_salt():
    return lambda: FIXED_SALT


@pytest.fixture
def fixed_clock_ns():
    return lambda: FIXED_NOW_NS


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo any handler a test installs on the package logger."""
    yield
    shutdown_logging()
