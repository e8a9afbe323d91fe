"""Token, contract and endpoint constants."""

from __future__ import annotations

from typing import TypedDict

from .domain import Chain


class HolderContract(TypedDict):
    """A contract known to hold tBTC."""

    address: str
    name: str


TBTC_ADDRESSES: dict[Chain, str] = {
    Chain.ETHEREUM: "0x18084fbA666a33d37592fA2633fD49a74DD93a88",
    Chain.ARBITRUM: "0x6c84a8f1c29108F47a79964b5Fe888D4f4D0dE40",
    Chain.BASE: "0x236aa50979D5f3De3Bd1Eeb40E81137F22ab794b",
    Chain.OPTIMISM: "0x6c84a8f1c29108F47a79964b5Fe888D4f4D0dE40",
    Chain.STARKNET: "0x04daa17763b286d1e59b97c283c0b8c949994c361e426a28f743c67bdfe9a32f",
    # Sui uses the full coin type: package_id::module::struct
    Chain.SUI: "0x77045f1b9f811a7a8fb9ebd085b5b0c55c5cb0d1520ff55f7037f89b5da9f5f1::TBTC::TBTC",
}

TBTC_DECIMALS = 18
SUI_TBTC_DECIMALS = 8
SUI_TBTC_COIN_TYPE = TBTC_ADDRESSES[Chain.SUI]

DEFAULT_RPC_URLS: dict[Chain, str] = {
    Chain.ETHEREUM: "https://eth.llamarpc.com",
    Chain.ARBITRUM: "https://arb1.arbitrum.io/rpc",
    Chain.BASE: "https://mainnet.base.org",
    Chain.OPTIMISM: "https://mainnet.optimism.io",
    Chain.STARKNET: "https://rpc.starknet.lava.build",
    Chain.SUI: "https://sui-rpc.publicnode.com",
}

THEGRAPH_GATEWAY_URL = "https://gateway.thegraph.com/api"

DEFAULT_REPORT_VERSION = "1.0.0"

# 1 billion tBTC in 18-decimal units; anything above is a scaling bug.
MAX_PLAUSIBLE_TVL = 1_000_000_000 * 10**18

# --- Aave V3 (github.com/aave/protocol-subgraphs) ---
AAVE_SUBGRAPH_IDS: dict[Chain, str] = {
    Chain.ETHEREUM: "Cd2gEDVeqnjBn1hSeqFMitw8Q1iiyV9FYUZkLNRcL87g",
    Chain.ARBITRUM: "DLuE98kEb5pQNXAcKFQGQgfSQ57Xdou4jnVbAEqMfy3B",
    Chain.BASE: "GQFbb95cE6d8mV989mL5figjaGaKCQB3xqYrr1bRyXqF",
    Chain.OPTIMISM: "DSfLz8oQBUeU5atALgUFQKMTSYV9mZAVYp4noLSXAfvb",
}

# --- Uniswap (docs.uniswap.org/api/subgraph/overview) ---
UNISWAP_V3_SUBGRAPH_IDS: dict[Chain, str] = {
    Chain.ETHEREUM: "5zvR82QoaXYFyDEKLZ9t6v9adgnptxYpKpSbxtgVENFV",
    Chain.ARBITRUM: "FbCGRftH4a3yZugY7TnbYgPJVEv2LvMT6oF1fxPe9aJM",
    Chain.BASE: "43Hwfi3dJSoGpyas9VwNoDAv55yjgGrPpNSmbQZArzMG",
    Chain.OPTIMISM: "Cghf4LfVqPiFw6fp6Y5X5Ubc8UpmUhSfJL82zwiBFLaj",
}

# V4 keeps all pool liquidity in one PoolManager singleton per chain
UNISWAP_V4_POOL_MANAGERS: dict[Chain, str] = {
    Chain.ETHEREUM: "0x000000000004444c5dc75cB358380D2e3dE08A90",
    Chain.ARBITRUM: "0x360e68faccca8ca495c1b759fd9eee466db9fb32",
    Chain.BASE: "0x498581ff718922c3f8e6a244956af099b2652b2b",
    Chain.OPTIMISM: "0x9a13f98cb987694c9f086b1f5eb990eea8264ec3",
}

# --- Compound V3 community subgraph (github.com/papercliplabs/compound-v3-subgraph) ---
COMPOUND_V3_SUBGRAPH_IDS: dict[Chain, str] = {
    Chain.ETHEREUM: "5nwMCSHaTqG3Kd2gHznbTXEnZ9QNWsssQfbHhDqQSQFp",
}
# marketCollateralBalance ids are the collateral token id + hex("BAL")
COMPOUND_BALANCE_ID_SUFFIX = "42414c"

# --- Spark Lend (Messari schema) ---
SPARK_SUBGRAPH_IDS: dict[Chain, str] = {
    Chain.ETHEREUM: "GbKdmBe4ycCYCQLQSjqGg6UHYoYfbyJyq5WrG35pv1si",
}

# --- Aerodrome ---
AERODROME_SUBGRAPH_IDS: dict[Chain, str] = {
    Chain.BASE: "GENunSHWLBXm59mBSgPzQ8metBEp9YDfdqwFr91Av1UM",
}

# --- Curve ---
CURVE_API_URL = "https://api.curve.finance/v1"
CURVE_API_CHAIN_NAMES: dict[Chain, str] = {
    Chain.ETHEREUM: "ethereum",
    Chain.ARBITRUM: "arbitrum",
    Chain.OPTIMISM: "optimism",
    Chain.BASE: "base",
}
CURVE_POOL_TYPES: tuple[str, ...] = (
    "main",
    "crypto",
    "factory-stable-ng",
    "factory-crvusd",
    "factory-twocrypto",
    "factory-tricrypto",
    "factory-crypto",
)
# crvUSD lending AMM for tBTC collateral; a lending market, not listed by the pool API
CURVE_CRVUSD_TBTC_LLAMMA = "0xf9bd9da2427a50908c4c6d1599d8e62837c2bcb0"
CURVE_STATIC_POOLS: dict[Chain, list[HolderContract]] = {
    Chain.ETHEREUM: [
        {
            "address": "0xf1F435B05D255a5dBdE37333C0f61DA6F69c6127",
            "name": "crvUSD/tBTC (factory-twocrypto-253)",
        },
        {"address": CURVE_CRVUSD_TBTC_LLAMMA, "name": "crvUSD/tBTC Lending AMM"},
        {"address": "0xC25099792E9349C7DD09759744ea681C7de2cb66", "name": "tBTC/sbtcCrv"},
    ],
    Chain.BASE: [
        {"address": "0x6e53131f68a034873b6bfa15502af094ef0c5854", "name": "crvUSD/tBTC/WETH"},
    ],
    Chain.ARBITRUM: [
        {
            "address": "0x186cF879186986A20aADFb7eAD50e3C20cb26CeC",
            "name": "2BTC-ng (factory-stable-ng-69)",
        },
        {
            "address": "0xDa73dC70D5ca3F51b0000C308abcd358b5F3FEFe",
            "name": "tBTC/crvUSD (factory-twocrypto-30)",
        },
        {
            "address": "0x3c64d44Ab19D63F09ebaD38fd7b913Ab7E15e341",
            "name": "TricryptoFRAX (factory-tricrypto-8)",
        },
        {
            "address": "0xFA8BD41E404fc66448C4bAf717b697089569Ff41",
            "name": "GODDOG/tBTC/crvUSD (factory-tricrypto-44)",
        },
    ],
    Chain.OPTIMISM: [],
}

# --- Velodrome (pool discovery through GeckoTerminal) ---
GECKO_TERMINAL_API_URL = "https://api.geckoterminal.com/api/v2"
GECKO_TERMINAL_NETWORKS: dict[Chain, str] = {Chain.OPTIMISM: "optimism"}
VELODROME_DEX_IDENTIFIERS: frozenset[str] = frozenset(
    {"velodrome-finance-v2", "velodrome-finance-slipstream"}
)
VELODROME_STATIC_POOLS: dict[Chain, list[HolderContract]] = {
    Chain.OPTIMISM: [
        {"address": "0xec3d9098bd40ec741676fc04d4bd26bccf592aa3", "name": "tBTC/WETH 0.3% CL"},
        {"address": "0x8949a8e02998d76d7a703cac9ee7e0f529828011", "name": "tBTC/WBTC 0.01% CL"},
        {"address": "0xa1507a6d0aa14f61cf9195ebd10cc15ecf1e40f2", "name": "tBTC/WETH 0.3% CL (2)"},
        {"address": "0xe612cb2b5644aef0ad3e922bae70a8374c63515f", "name": "tBTC/WBTC 0.01% CL (3)"},
    ],
}

# --- Yield Basis ---
YIELD_BASIS_FACTORIES: dict[Chain, str] = {
    Chain.ETHEREUM: "0x370a449FeBb9411c95bf897021377fe0B7D100c0",
}
YIELD_BASIS_MAX_POOL_COINS = 3

# --- Gearbox (ERC-4626 PoolV3 vaults) ---
GEARBOX_TBTC_POOLS: dict[Chain, list[HolderContract]] = {
    Chain.ETHEREUM: [
        {"address": "0x7354ec6e852108411e681d13e11185c3a2567981", "name": "Chaos Labs tBTC v3 Pool"},
        {"address": "0xf791ecc5f2472637eac9dfe3f7894c0b32c32bdf", "name": "Re7 tBTC Pool"},
    ],
}

# --- Starknet protocols ---
VESU_SINGLETONS: dict[Chain, str] = {
    Chain.STARKNET: "0x000d8d6dfec4d33bfb6895de9f3852143a17c6f92fd2a21da3d6924d34870160",
}
VESU_V2_POOLS: dict[Chain, list[HolderContract]] = {
    Chain.STARKNET: [
        {"address": "0x451fe483d5921a2919ddd81d0de6696669bccdacd859f72a4fba7656b97c3b5", "name": "Vesu Prime Pool"},
        {"address": "0x2eef0c13b10b487ea5916b54c0a7f98ec43fb3048f60fdeedaf5b08f6f88aaf", "name": "Re7 USDC Prime Pool"},
        {"address": "0x3976cac265a12609934089004df458ea29c776d77da423c96dc761d09d24124", "name": "Re7 USDC Core Pool"},
        {"address": "0x3a8416bf20d036df5b1cf3447630a2e1cb04685f6b0c3a70ed7fb1473548ecf", "name": "Re7 xBTC Pool"},
        {"address": "0x73702fce24aba36da1eac539bd4bae62d4d6a76747b7cdd3e016da754d7a135", "name": "Re7 USDC Stable Core Pool"},
        {"address": "0x5c03e7e0ccfe79c634782388eb1e6ed4e8e2a013ab0fcc055140805e46261bd", "name": "Re7 USDC Frontier Pool"},
    ],
}
ENDUR_TBTC_VAULTS: dict[Chain, list[HolderContract]] = {
    Chain.STARKNET: [
        {"address": "0x43a35c1425a0125ef8c171f1a75c6f31ef8648edcc8324b55ce1917db3f9b91", "name": "Endur tBTC Vault"},
    ],
}
EKUBO_CORE: dict[Chain, str] = {
    Chain.STARKNET: "0x00000005dd3d2f4429af886cd1a3b08289dbcea99a294197e9eb43b0e0325b4b",
}

# --- Sui protocols ---
ALPHALEND_MARKETS_CONTAINER = (
    "0x2326d387ba8bb7d24aa4cfa31f9a1e58bf9234b097574afb06c5dfb267df4c2e"
)
ALPHALEND_MARKET_TYPE_MARKER = "::market::Market"
ALPHALEND_PAGE_SIZE = 50
BUCKET_TBTC_BUCKET_ID = (
    "0x3a3545739027335834e930175942fb11a9d5ca4aea2ebad46770a1cc77d340b3"
)
EMBER_VAULTS_API = "https://vaults.api.sui-prod.bluefin.io/api/v1/vaults"
EMBER_TBTC_VAULT_ID = (
    "0x323578c2b24683ca845c68c1e2097697d65e235826a9dc931abce3b4b1e43642"
)

# Protocols listed in the worklist that have no viable data source on a chain.
SKIP_PROTOCOLS: dict[str, dict[str, str]] = {
    "Asymmetry": {"Ethereum": "No public subgraph or API available"},
    "Merkl": {"Ethereum": "Rewards aggregator, not a TVL protocol"},
    "Nerite": {"Arbitrum": "No public subgraph available yet"},
    "Starknet Earn": {"Starknet": "Native staking aggregator, no API"},
    "0D": {"Starknet": "Vesu vault wrapper, TVL counted in Vesu"},
    "Bluefin": {"Sui": "Perps DEX, no spot TVL subgraph"},
}

# Worklist protocol names that differ from extractor names.
PROTOCOL_ALIASES: dict[str, str] = {
    "aave": "Aave V3",
    "aave v3": "Aave V3",
    "uniswap": "Uniswap V3",
    "uniswap v3": "Uniswap V3",
    "compound": "Compound",
    "curve": "Curve",
    "spark/maker": "Spark Lend",
    "spark": "Spark Lend",
    "aerodrome": "Aerodrome",
    "velodrome": "Velodrome",
}
