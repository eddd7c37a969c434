import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "smoke: mark test as a smoke test")
    config.addinivalue_line(
        "markers", "integration: mark test as integration (needs a local anvil node)"
    )


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "smoke" in item.nodeid:
            item.add_marker(pytest.mark.smoke)


def _valid_launch_config() -> dict:
    return {
        "token": {
            "name": "Camel",
            "symbol": "CAMEL",
            "maxSupply": "10000000000000000000000000",
            "liquidityReservePercent": 20,
            "projectReservePercent": 10,
            "sniperTaxDuration": 3600,
            "unrevealedURI": "ipfs://bafybeigdyrzt/unrevealed.json",
        },
        "protocol": {
            "weth": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
            "algebraFactory": "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
            "positionManager": "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359",
            "swapRouter": "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB",
        },
        "team": {
            "artist": "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
            "dev": "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC",
        },
        "liquidity": {
            "initialWethAmount": "1000000000000000000",
            "initialSqrtPriceX96": "79228162514264337593543950336",
            "tickLower": -120000,
            "tickUpper": 120000,
        },
        "whitelist": {
            "merkleRoot": "0x" + "ab" * 32,
            "mintAmount": "1",
            "enableAtLaunch": True,
        },
        "roles": {
            "artistRole": 1,
            "devRole": 2,
            "liquidityRole": 4,
            "metadataRole": 8,
        },
    }


@pytest.fixture
def launch_config() -> dict:
    return _valid_launch_config()
