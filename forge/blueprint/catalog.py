"""Block catalog: default configs for each block type.

The session calls :meth:`BlockCatalog.get_default_config` once per new node.
The catalog is open-ended, so an unknown type yields an empty config rather
than an error.  Block-specific validation of config shapes belongs to the
catalog owner, not the graph core.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Protocol


class DefaultConfigSource(Protocol):
    def get_default_config(self, block_type: str) -> dict[str, Any]: ...


@dataclass(frozen=True)
class BlockDefinition:
    id: str
    name: str
    category: str
    default_config: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Built-in blocks
# ---------------------------------------------------------------------------

DEFAULT_BLOCKS: tuple[BlockDefinition, ...] = (
    # contracts
    BlockDefinition("erc20-stylus", "ERC-20 Token", "contracts", {
        "tokenName": "SuperPositionToken",
        "tokenSymbol": "SPT",
        "decimals": 18,
        "network": "arbitrum-sepolia",
        "selectedFunctions": ["mint", "mint_to", "burn"],
    }),
    BlockDefinition("erc721-stylus", "ERC-721 NFT", "contracts", {
        "collectionName": "SuperPositionNFT",
        "collectionSymbol": "SPTNFT",
        "network": "arbitrum-sepolia",
        "selectedFunctions": ["mint", "mint_to", "safe_mint", "burn"],
    }),
    BlockDefinition("erc1155-stylus", "ERC-1155 Multi-Token", "contracts", {
        "collectionName": "My Multi-Token Collection",
        "baseUri": "https://api.example.com/metadata/",
        "network": "arbitrum-sepolia",
        "features": ["ownable", "mintable", "burnable", "pausable"],
    }),
    BlockDefinition("stylus-rust-contract", "Stylus Rust Contract", "contracts", {
        "network": "arbitrum-sepolia",
        "exampleType": "counter",
        "contractName": "MyContract",
        "contractCode": "",
    }),
    BlockDefinition("smartcache-caching", "SmartCache Caching", "contracts", {
        "crateVersion": "latest",
        "autoOptIn": True,
    }),
    BlockDefinition("auditware-analyzing", "Auditware Analyzer", "contracts", {
        "outputFormat": "both",
        "severityFilter": ["low", "medium", "high"],
        "projectPath": ".",
    }),
    # application
    BlockDefinition("frontend-scaffold", "Frontend", "app", {
        "framework": "nextjs",
        "styling": "tailwind",
        "web3Provider": "wagmi",
        "walletConnect": True,
        "rainbowKit": True,
    }),
    BlockDefinition("wallet-auth", "Wallet Auth", "app", {
        "provider": "rainbowkit",
        "walletConnectEnabled": True,
        "siweEnabled": True,
        "socialLogins": [],
        "sessionPersistence": True,
    }),
    BlockDefinition("rpc-provider", "RPC Provider", "app", {
        "primaryProvider": "alchemy",
        "fallbackProviders": ["public"],
        "enableWebSocket": True,
        "healthCheckInterval": 30000,
        "retryAttempts": 3,
        "privacyMode": False,
    }),
    BlockDefinition("ipfs-storage", "IPFS Storage", "app", {
        "provider": "pinata",
        "generateMetadataSchemas": True,
        "generateUI": True,
    }),
    BlockDefinition("chain-data", "Chain Data", "app", {
        "provider": "alchemy",
        "features": ["token-balances", "nft-data"],
        "cacheEnabled": True,
        "cacheDuration": 60000,
    }),
    # analytics / oracles
    BlockDefinition("chainlink-price-feed", "Chainlink Price Feed", "analytics", {
        "chain": "arbitrum",
        "feedAddress": "0x639Fe6ab55C921f74e7fac1ee960C0B6293ba612",
    }),
    BlockDefinition("pyth-oracle", "Pyth Price Oracle", "analytics", {
        "chain": "arbitrum",
    }),
    BlockDefinition("dune-transaction-history", "Transaction History", "analytics", {
        "blockchain": "arbitrum",
        "limit": 100,
        "generateUI": True,
    }),
    BlockDefinition("dune-dex-volume", "DEX Volume", "analytics", {
        "blockchain": "arbitrum",
        "timeRange": "24h",
        "generateUI": True,
    }),
    BlockDefinition("dune-protocol-tvl", "Protocol TVL", "analytics", {
        "blockchain": "arbitrum",
        "generateUI": True,
        "cacheDuration": 600000,
    }),
    BlockDefinition("dune-nft-floor", "NFT Floor Price", "analytics", {
        "blockchain": "ethereum",
        "generateUI": True,
        "cacheDuration": 300000,
    }),
    BlockDefinition("dune-token-price", "Token Price", "analytics", {
        "blockchain": "arbitrum",
        "cacheEnabled": True,
        "cacheDuration": 60000,
        "generateUI": True,
    }),
    BlockDefinition("dune-execute-sql", "Execute SQL", "analytics", {
        "performanceMode": "medium",
        "timeout": 60000,
        "generateHooks": True,
    }),
    # agents
    BlockDefinition("onchain-activity", "Onchain Activity", "agents", {
        "network": "arbitrum",
        "transactionLimit": "10",
        "categories": ["erc20", "external"],
    }),
    BlockDefinition("maxxit", "Maxxit Lazy Trader", "agents", {}),
    BlockDefinition("ostium-trading", "Ostium Trading", "agents", {
        "tradingPair": "ETH/USD",
        "leverage": 10,
        "enableOneClick": True,
    }),
    BlockDefinition("uniswap-swap", "Uniswap Swap", "agents", {
        "chain": "arbitrum",
    }),
    BlockDefinition("aave-lending", "Aave Lending", "agents", {
        "chain": "arbitrum",
    }),
    BlockDefinition("compound-lending", "Compound Lending", "agents", {
        "chain": "arbitrum",
    }),
    BlockDefinition("erc8004-agent-runtime", "ERC-8004 Agent", "agents", {
        "agentName": "MyAgent",
        "agentVersion": "0.1.0",
        "capabilities": ["text-generation"],
        "registryIntegration": True,
        "selectedModel": "openai/gpt-4o",
    }),
    # payments / quality / telegram
    BlockDefinition("x402-paywall-api", "x402 Paywall", "payments", {
        "resourcePath": "/api/premium/resource",
        "priceInWei": "1000000000000000",
        "currency": "ETH",
        "paymentTimeout": 300,
        "receiptValidation": True,
        "openApiSpec": True,
    }),
    BlockDefinition("repo-quality-gates", "Quality Gates", "quality", {
        "ciProvider": "github-actions",
        "testFramework": "vitest",
        "linter": "biome",
        "typecheck": True,
        "coverageThreshold": 80,
    }),
    BlockDefinition("telegram-notifications", "Notifications", "telegram", {
        "webhookEnabled": True,
        "notificationTypes": ["transaction", "price-alert"],
    }),
    BlockDefinition("telegram-ai-agent", "Telegram AI Agent", "telegram", {
        "modelProvider": "openai",
        "personality": "helpful",
        "contextMemory": True,
    }),
    # superposition
    BlockDefinition("superposition-network", "Network Config", "superposition", {
        "includeTestnet": True,
    }),
    BlockDefinition("superposition-bridge", "Superposition Bridge", "superposition", {}),
    BlockDefinition("superposition-longtail", "Longtail AMM", "superposition", {}),
    BlockDefinition("superposition-faucet", "Superposition Faucet", "superposition", {}),
    BlockDefinition("superposition-meow-domains", "Meow Domains", "superposition", {}),
    # robinhood chain
    BlockDefinition("robinhood-network", "Robinhood Network", "robinhood", {
        "includeTestnet": True,
    }),
    BlockDefinition("robinhood-contracts", "Robinhood Contracts", "robinhood", {
        "includeTokenContracts": True,
        "includeCoreContracts": True,
        "includeBridgeContracts": True,
        "includePrecompiles": True,
        "generateTypes": True,
    }),
    BlockDefinition("robinhood-deployment", "Robinhood Deployment", "robinhood", {
        "framework": "hardhat",
        "includeExampleContract": True,
        "includeVerificationSteps": True,
        "outputPath": "robinhood",
    }),
)


class BlockCatalog:
    """Lookup table of block definitions keyed by block type."""

    def __init__(self, blocks: Optional[Iterable[BlockDefinition]] = None) -> None:
        self._blocks = {b.id: b for b in (DEFAULT_BLOCKS if blocks is None else blocks)}

    def __contains__(self, block_type: object) -> bool:
        return block_type in self._blocks

    def __len__(self) -> int:
        return len(self._blocks)

    def get(self, block_type: str) -> Optional[BlockDefinition]:
        return self._blocks.get(block_type)

    def list_blocks(self, category: Optional[str] = None) -> list[BlockDefinition]:
        return [b for b in self._blocks.values() if category is None or b.category == category]

    def get_default_config(self, block_type: str) -> dict[str, Any]:
        """Return a private copy of the default config for ``block_type``.

        Unknown types return ``{}``.
        """
        block = self._blocks.get(block_type)
        if block is None:
            return {}
        return copy.deepcopy(block.default_config)


default_catalog = BlockCatalog()


def get_default_config(block_type: str) -> dict[str, Any]:
    """Module-level shortcut onto :data:`default_catalog`."""
    return default_catalog.get_default_config(block_type)
