"""Built-in template catalog.

The first group keeps the hand-authored coordinates shipped with the canvas
editor.  Templates added later are declared by topology only and placed with
:func:`~forge.templates.layout.build_template`.
"""

from __future__ import annotations

from typing import Any, Optional

from forge.blueprint.models import Position
from forge.exceptions import UnknownTemplateError
from forge.templates.layout import build_template
from forge.templates.models import Template, TemplateEdge, TemplateNode

CHAINLINK_ETH_USD = "0x639Fe6ab55C921f74e7fac1ee960C0B6293ba612"
PYTH_ETH_USD = "0xff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace"

TEMPLATE_CATEGORIES: list[dict[str, str]] = [
    {"id": "all", "label": "All"},
    {"id": "contracts", "label": "Contracts"},
    {"id": "defi", "label": "DeFi"},
    {"id": "nft", "label": "NFT"},
    {"id": "ai", "label": "AI / Agents"},
    {"id": "telegram", "label": "Telegram"},
    {"id": "analytics", "label": "Analytics"},
    {"id": "superposition", "label": "Superposition"},
    {"id": "robinhood", "label": "Robinhood"},
    {"id": "payments", "label": "Payments"},
    {"id": "infrastructure", "label": "Infra"},
]


def _node(block_type: str, x: float, y: float, **config: Any) -> TemplateNode:
    return TemplateNode(type=block_type, position=Position(x, y), config=config)


def _edges(*pairs: tuple[int, int]) -> tuple[TemplateEdge, ...]:
    return tuple(TemplateEdge(s, t) for s, t in pairs)


# ---------------------------------------------------------------------------
# Hand-placed templates
# ---------------------------------------------------------------------------

FULL_STACK_DAPP = Template(
    id="full-stack-dapp",
    name="Full Stack dApp",
    description=(
        "Stylus contract + Chainlink + ERC-1155 + SmartCache + Radar + Frontend + "
        "Dune Analytics, with ERC tokens, agent and paywall offered as suggestions"
    ),
    category="contracts",
    tags=("Full Stack", "Stylus", "Chainlink", "Dune", "ERC-1155"),
    explainer=(
        "A Stylus contract core supported by Chainlink oracles and an ERC-1155 token. "
        "SmartCache warms the contract cache and Auditware (Radar) scans it for "
        "vulnerabilities. The frontend provides the interface while Dune tracks "
        "transactions; Wallet Auth and the RPC provider handle chain access."
    ),
    nodes=(
        _node("stylus-rust-contract", 0, 150),
        _node("smartcache-caching", 300, 0),
        _node("auditware-analyzing", 300, 150),
        _node("frontend-scaffold", 300, 300),
        _node("wallet-auth", 600, 0),
        _node("rpc-provider", 600, 150),
        _node("dune-transaction-history", 600, 300),
        _node("chainlink-price-feed", 0, 0, feedAddress=CHAINLINK_ETH_USD),
        _node("erc1155-stylus", 0, 300),
    ),
    edges=_edges((0, 1), (0, 2), (0, 3), (1, 2), (3, 4), (3, 5), (3, 6), (0, 7), (8, 1)),
    ghost_nodes=(
        _node("onchain-activity", 900, 0),
        _node("ipfs-storage", 900, 150),
        _node("pyth-oracle", 900, 300, priceFeedId=PYTH_ETH_USD),
        _node("erc20-stylus", 0, 450),
        _node("erc721-stylus", 0, 600),
    ),
    ghost_edges=_edges((4, 9), (0, 10), (0, 11), (12, 1), (13, 1)),
)

AGENTIC_TRADING_PLATFORM = Template(
    id="agentic-trading-platform",
    name="Agentic Trading Platform",
    description=(
        "Ostium + Maxxit + Uniswap + oracles + on-chain activity + frontend, with Dune, "
        "IPFS and Telegram offered as suggestions"
    ),
    category="defi",
    tags=("Trading", "AI", "Oracles", "Uniswap", "Dune"),
    explainer=(
        "Wallet auth feeds Maxxit for automation, which routes trades through Ostium "
        "for leveraged perps and Uniswap for swaps. The frontend reads Pyth and "
        "Chainlink prices. Suggested blocks add Dune volume and TVL analytics, IPFS "
        "storage and Telegram notifications."
    ),
    nodes=(
        _node("wallet-auth", 0, 150),
        _node("onchain-activity", 0, 300),
        _node("maxxit", 300, 150),
        _node("ostium-trading", 600, 150),
        _node("uniswap-swap", 600, 300),
        _node("frontend-scaffold", 900, 150),
        _node("pyth-oracle", 900, 0, priceFeedId=PYTH_ETH_USD),
        _node("chainlink-price-feed", 900, 300, feedAddress=CHAINLINK_ETH_USD),
    ),
    edges=_edges((0, 2), (0, 1), (2, 3), (3, 5), (3, 4), (6, 5), (7, 5)),
    ghost_nodes=(
        _node("ipfs-storage", 300, 300),
        _node("telegram-notifications", 900, 450),
        _node("dune-dex-volume", 1200, 0),
        _node("dune-protocol-tvl", 1200, 150),
    ),
    ghost_edges=_edges((2, 8), (5, 9), (3, 10), (3, 11)),
)

NFT_MARKETPLACE = Template(
    id="nft-marketplace",
    name="NFT Marketplace",
    description=(
        "ERC-721 collection + SmartCache + Radar + IPFS + analytics + history, with "
        "agent and paywall offered as suggestions"
    ),
    category="nft",
    tags=("NFT", "Stylus", "Marketplace", "Caching", "Radar"),
    explainer=(
        "A pre-deployed ERC-721 handles minting with metadata pinned to IPFS. SmartCache "
        "and Auditware (Radar) cover caching and security. The frontend renders the "
        "marketplace with wallet auth, Dune NFT Floor tracks prices and chain-data "
        "indexes events."
    ),
    nodes=(
        _node("erc721-stylus", 0, 340),
        _node("smartcache-caching", 360, -160),
        _node("auditware-analyzing", 650, -160),
        _node("ipfs-storage", 360, 320),
        _node("frontend-scaffold", 360, 140),
        _node("dune-nft-floor", 360, 600),
        _node("dune-transaction-history", 360, 450),
        _node("wallet-auth", 680, 40),
        _node("chain-data", 700, 220),
    ),
    edges=_edges((0, 1), (1, 2), (0, 3), (0, 4), (0, 5), (0, 6), (4, 7), (4, 8)),
    ghost_nodes=(
        _node("x402-paywall-api", 900, 0),
        _node("erc8004-agent-runtime", 900, 150),
        _node("repo-quality-gates", 900, 300),
    ),
    ghost_edges=_edges((4, 9), (4, 10), (0, 11)),
)

SUPERPOSITION_FULL_STACK = Template(
    id="superposition-full-stack",
    name="Superposition Full Stack",
    description=(
        "Superposition L3 + Stylus contract + ERC-20 + Radar + bridge + AMM + frontend + "
        "analytics, with faucet, storage, on-chain activity and Meow domains as suggestions"
    ),
    category="superposition",
    tags=("Superposition", "Stylus", "L3", "Analytics"),
    explainer=(
        "Superposition is the L3 chain: the bridge moves assets between L2 and L3 and "
        "Longtail provides AMM liquidity. A Stylus contract and an ERC-20 token deploy "
        "natively and are scanned by Auditware (Radar). The frontend ties them together "
        "through wallet auth and Dune transaction history."
    ),
    nodes=(
        _node("superposition-network", 0, 75),
        _node("stylus-rust-contract", 300, 225),
        _node("erc20-stylus", 600, 0),
        _node("auditware-analyzing", 600, 150),
        _node("superposition-bridge", 600, 300),
        _node("superposition-longtail", 600, 450),
        _node("frontend-scaffold", 900, 225),
        _node("dune-transaction-history", 1200, 75),
        _node("wallet-auth", 1200, 375),
    ),
    edges=_edges(
        (0, 4), (0, 5), (0, 6), (1, 3), (1, 6), (2, 3),
        (2, 6), (4, 6), (5, 6), (6, 7), (6, 8),
    ),
    ghost_nodes=(
        _node("superposition-faucet", 1500, 150),
        _node("superposition-meow-domains", 1500, 300),
        _node("ipfs-storage", 1200, 225),
        _node("onchain-activity", 1200, 525),
    ),
    ghost_edges=_edges((0, 9), (0, 10), (6, 11), (6, 12)),
)

TRADING_BOT = Template(
    id="trading-bot",
    name="Trading Bot",
    description=(
        "Custom Stylus vault contract + Ostium + Maxxit + SmartCache + Radar + ERC-8004 "
        "agent + Dune DEX + Telegram + RPC, with paywall and token price as suggestions"
    ),
    category="ai",
    tags=("Trading", "Stylus", "Caching", "Radar", "Agent"),
    explainer=(
        "A Stylus vault contract holds funds and executes trades on-chain. SmartCache "
        "warms its cache and Auditware (Radar) scans it for vulnerabilities. Ostium runs "
        "leveraged perps while Maxxit and the ERC-8004 agent drive the trade logic. Dune "
        "DEX volume, chain data and RPC supply market depth, and the Telegram AI agent "
        "relays signals and takes commands."
    ),
    nodes=(
        _node("stylus-rust-contract", 60, 0),
        _node("ostium-trading", 80, 140),
        _node("maxxit", -300, 300),
        _node("erc8004-agent-runtime", -280, 540),
        _node("smartcache-caching", 600, 0),
        _node("auditware-analyzing", 600, 150),
        _node("dune-dex-volume", 600, 300),
        _node("chain-data", 600, 450),
        _node("frontend-scaffold", 900, 150),
        _node("wallet-auth", 1200, 0),
        _node("rpc-provider", 1200, 150),
        _node("telegram-ai-agent", 1200, 300),
    ),
    edges=_edges(
        (0, 4), (0, 5), (3, 0), (3, 1), (2, 1), (3, 11), (8, 9), (8, 10),
        (0, 8), (1, 8), (4, 8), (5, 8), (6, 8), (7, 8), (3, 8),
    ),
    ghost_nodes=(
        _node("x402-paywall-api", 1500, 0),
        _node("dune-token-price", 1500, 150),
        _node("telegram-notifications", 1500, 300),
    ),
    ghost_edges=_edges((8, 12), (8, 13), (11, 14)),
)

ROBINHOOD_DAPP = Template(
    id="robinhood-dapp",
    name="Robinhood Dapp",
    description=(
        "ERC-20/721/1155 Stylus tokens on Robinhood Chain + Radar + frontend + Robinhood "
        "network, contracts and deployment + Dune history, with on-chain activity, Pyth "
        "and Chainlink as suggestions"
    ),
    category="robinhood",
    tags=("Robinhood", "Tokens", "Analytics"),
    explainer=(
        "Three Stylus token standards are the core assets on Robinhood Chain, all "
        "scanned by Auditware (Radar) and driven from the frontend. Robinhood Network "
        "wires RPC and chain settings, Robinhood Contracts exposes typed addresses and "
        "Robinhood Deployment generates the deploy scripts. Dune transaction history "
        "powers analytics."
    ),
    nodes=(
        _node("erc20-stylus", 0, 0),
        _node("erc721-stylus", 0, 150),
        _node("erc1155-stylus", 0, 300),
        _node("auditware-analyzing", 300, 75),
        _node("frontend-scaffold", 300, 275),
        _node("robinhood-network", 300, 450),
        _node("robinhood-contracts", 600, 450),
        _node("robinhood-deployment", 900, 450),
        _node("wallet-auth", 600, 150),
        _node("dune-transaction-history", 600, 275),
    ),
    edges=_edges(
        (0, 3), (1, 3), (2, 3), (0, 4), (1, 4), (2, 4),
        (5, 4), (6, 4), (5, 6), (6, 7), (4, 8), (4, 9),
    ),
    ghost_nodes=(
        _node("onchain-activity", 900, 150),
        _node("pyth-oracle", 900, 0, priceFeedId=PYTH_ETH_USD),
        _node("chainlink-price-feed", 900, 300, feedAddress=CHAINLINK_ETH_USD),
    ),
    ghost_edges=_edges((8, 10), (4, 11), (4, 12)),
)

DEFI_DASHBOARD = Template(
    id="defi-dashboard",
    name="DeFi Dashboard",
    description=(
        "Aave, Compound, Uniswap + Chainlink/Pyth oracles and a full frontend, with an "
        "agent and a paywall ready for monetisation"
    ),
    category="defi",
    tags=("Aave", "Compound", "Uniswap", "Oracles", "Agent-Ready"),
    explainer=(
        "Aave and Compound supply lending data and Uniswap supplies swap liquidity. "
        "Chainlink prices the lending positions while Pyth gives low-latency prices for "
        "Uniswap pairs. The frontend aggregates everything, with wallet auth, RPC and "
        "chain data for connectivity. Suggested blocks add an agent to manage positions "
        "or a paywall to monetise the dashboard."
    ),
    nodes=(
        _node("aave-lending", 0, 0),
        _node("compound-lending", 0, 150),
        _node("uniswap-swap", 0, 300),
        _node("chainlink-price-feed", 300, 0, feedAddress=CHAINLINK_ETH_USD),
        _node("pyth-oracle", 300, 150, priceFeedId=PYTH_ETH_USD),
        _node("frontend-scaffold", 300, 300),
        _node("wallet-auth", 600, 0),
        _node("rpc-provider", 600, 150),
        _node("chain-data", 600, 300),
    ),
    edges=_edges((0, 3), (1, 3), (2, 4), (0, 5), (1, 5), (2, 5), (5, 6), (5, 7), (5, 8)),
    ghost_nodes=(
        _node("erc8004-agent-runtime", 900, 0),
        _node("x402-paywall-api", 900, 150),
        _node("dune-dex-volume", 900, 300),
    ),
    ghost_edges=_edges((5, 9), (5, 10), (5, 11)),
)

AI_POWERED_PAYWALL = Template(
    id="ai-powered-paywall",
    name="AI-Powered Paywall dApp",
    description=(
        "x402 paywall + Stylus subscription contract + SmartCache + Radar + ERC-20 + "
        "ERC-8004 agent + Dune token price, with a Telegram bot, quality gates and "
        "custom analytics as suggestions"
    ),
    category="payments",
    tags=("Paywall", "Stylus", "Caching", "Radar", "Agent"),
    explainer=(
        "A Stylus subscription contract manages access tiers on-chain, cached by "
        "SmartCache and scanned by Auditware (Radar). The x402 paywall gates API "
        "endpoints behind micro-payments in the ERC-20 token, and the ERC-8004 agent "
        "verifies payments. Dune token price tracks the payment token. Suggested blocks "
        "add a Telegram bot with notifications, CI quality gates and Dune SQL revenue "
        "analytics."
    ),
    nodes=(
        _node("x402-paywall-api", 0, 0),
        _node("erc20-stylus", 0, 150),
        _node("erc8004-agent-runtime", 0, 300),
        _node("stylus-rust-contract", 0, 450),
        _node("smartcache-caching", 300, 0),
        _node("auditware-analyzing", 300, 150),
        _node("frontend-scaffold", 300, 300),
        _node("dune-token-price", 300, 450),
        _node("wallet-auth", 600, 0),
        _node("rpc-provider", 600, 150),
    ),
    edges=_edges((0, 6), (1, 6), (1, 7), (2, 6), (3, 4), (3, 5), (3, 6), (6, 8), (6, 9)),
    ghost_nodes=(
        _node("telegram-ai-agent", 900, 0),
        _node("telegram-notifications", 900, 150),
        _node("repo-quality-gates", 900, 300),
        _node("dune-execute-sql", 900, 450),
    ),
    ghost_edges=_edges((2, 10), (10, 11), (3, 12), (6, 13)),
)


# ---------------------------------------------------------------------------
# Computed-layout templates
# ---------------------------------------------------------------------------

TOKEN_LAUNCHPAD = build_template(
    id="token-launchpad",
    name="Token Launchpad",
    description=(
        "ERC-20 token + SmartCache + Radar + frontend + DEX volume tracking, with a "
        "Uniswap pool and Telegram alerts offered as suggestions"
    ),
    category="defi",
    tags=("ERC-20", "Stylus", "Launch", "Dune"),
    explainer=(
        "The ERC-20 contract is the root of the graph: caching, auditing and the "
        "frontend all depend on it, and Dune DEX volume watches its market. The "
        "frontend in turn needs wallet auth and an RPC provider. Suggested blocks seed "
        "a Uniswap pool and push price alerts to Telegram."
    ),
    nodes=(
        "erc20-stylus",
        "smartcache-caching",
        "auditware-analyzing",
        "frontend-scaffold",
        "wallet-auth",
        "rpc-provider",
        "dune-dex-volume",
    ),
    edges=((0, 1), (0, 2), (0, 3), (3, 4), (3, 5), (0, 6)),
    ghost_nodes=("uniswap-swap", "telegram-notifications"),
    ghost_edges=((3, 7), (7, 8)),
)

AI_AGENT_PAYWALL = build_template(
    id="ai-agent-paywall",
    name="AI Agent Paywall",
    description=(
        "ERC-8004 agent behind an x402 paywall, priced from Chainlink, with a frontend "
        "and wallet auth; Telegram and quality gates offered as suggestions"
    ),
    category="payments",
    tags=("Agent", "Paywall", "x402", "Chainlink"),
    explainer=(
        "Chainlink prices feed the agent runtime, whose endpoints are gated by the x402 "
        "paywall. The frontend sits behind the paywall and signs users in through "
        "wallet auth. Suggested blocks notify on payments via Telegram and add CI "
        "quality gates."
    ),
    nodes=(
        ("chainlink-price-feed", {"feedAddress": CHAINLINK_ETH_USD}),
        "erc8004-agent-runtime",
        "x402-paywall-api",
        "frontend-scaffold",
        "wallet-auth",
    ),
    edges=((0, 1), (1, 2), (2, 3), (3, 4)),
    ghost_nodes=("telegram-notifications", "repo-quality-gates"),
    ghost_edges=((2, 5),),
)


TEMPLATES: tuple[Template, ...] = (
    FULL_STACK_DAPP,
    AGENTIC_TRADING_PLATFORM,
    NFT_MARKETPLACE,
    SUPERPOSITION_FULL_STACK,
    TRADING_BOT,
    ROBINHOOD_DAPP,
    DEFI_DASHBOARD,
    AI_POWERED_PAYWALL,
    TOKEN_LAUNCHPAD,
    AI_AGENT_PAYWALL,
)

COMPUTED_TEMPLATE_IDS = frozenset({TOKEN_LAUNCHPAD.id, AI_AGENT_PAYWALL.id})

_BY_ID = {t.id: t for t in TEMPLATES}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_template(template_id: str) -> Template:
    """Return the template registered under *template_id*.

    Raises:
        UnknownTemplateError: If no such template exists.
    """
    try:
        return _BY_ID[template_id]
    except KeyError:
        raise UnknownTemplateError(template_id) from None


def list_templates(category: Optional[str] = None) -> list[Template]:
    """Return templates in catalog order, optionally filtered by category.

    ``"all"`` and ``None`` both return every template.
    """
    if category in (None, "all"):
        return list(TEMPLATES)
    return [t for t in TEMPLATES if t.category == category]
