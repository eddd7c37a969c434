from unittest.mock import AsyncMock, MagicMock

import pytest

from hybrid_launch.core.utils.web3 import (
    get_web3,
    is_dev_chain,
)


def _web3_with_version(result=None, error=None):
    web3 = MagicMock()
    web3.manager.coro_request = AsyncMock(return_value=result, side_effect=error)
    return web3


def test_get_web3_uses_rpc_url():
    web3 = get_web3("http://127.0.0.1:8545")
    assert web3.provider.endpoint_uri == "http://127.0.0.1:8545"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("version", "expected"),
    [
        ("anvil/v0.2.0", True),
        ("HardhatNetwork/2.22.0/@ethereumjs/vm/7.0.0", True),
        ("Geth/v1.14.0-stable/linux-amd64/go1.22", False),
    ],
)
async def test_is_dev_chain_by_client_version(version, expected):
    web3 = _web3_with_version(result=version)
    assert await is_dev_chain(web3) is expected
    web3.manager.coro_request.assert_awaited_once_with("web3_clientVersion", [])


@pytest.mark.asyncio
async def test_is_dev_chain_false_when_method_missing():
    web3 = _web3_with_version(error=ValueError({"code": -32601, "message": "not found"}))
    assert await is_dev_chain(web3) is False
