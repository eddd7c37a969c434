from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3

from hybrid_launch.core.constants.base import DEFAULT_HTTP_TIMEOUT
from hybrid_launch.core.constants.devchain import DEV_CLIENT_MARKERS


def get_web3(rpc_url: str) -> AsyncWeb3:
    provider = AsyncHTTPProvider(
        rpc_url,
        request_kwargs={
            "headers": AsyncHTTPProvider.get_request_headers(),
            "timeout": DEFAULT_HTTP_TIMEOUT,
        },
    )
    return AsyncWeb3(provider)


async def get_client_version(web3: AsyncWeb3) -> str:
    return str(await web3.manager.coro_request("web3_clientVersion", []))


async def is_dev_chain(web3: AsyncWeb3) -> bool:
    try:
        version = (await get_client_version(web3)).lower()
    except Exception as exc:
        logger.debug(f"web3_clientVersion unavailable: {exc}")
        return False
    return any(marker in version for marker in DEV_CLIENT_MARKERS)
