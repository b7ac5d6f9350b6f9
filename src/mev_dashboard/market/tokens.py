"""
Reference data for the simulated Solana market.

Tokens carry the base prices the random walk is anchored to; venues
carry the fee, gas and liquidity parameters the rate synthesizer and
finders use.
"""

from typing import Final

from mev_dashboard.core.types import Token, Venue


DEFAULT_TOKENS: Final[tuple[Token, ...]] = (
    Token("SOL", 121.35, "Solana", "solana"),
    Token("USDC", 1.0, "USD Coin", "usd-coin"),
    Token("USDT", 1.0, "Tether", "tether"),
    Token("ETH", 3050.0, "Ether (Wormhole)", "ethereum"),
    Token("BTC", 62000.0, "Bitcoin (Wormhole)", "bitcoin"),
    Token("RAY", 3.52, "Raydium", "raydium"),
    Token("JUP", 2.78, "Jupiter", "jupiter-exchange-solana"),
    Token("ORCA", 3.15, "Orca", "orca"),
    Token("BONK", 0.000025, "Bonk", "bonk"),
    Token("MSOL", 140.2, "Marinade staked SOL", "msol"),
)

# Fees are fractions per swap; gas is the reference-currency cost per swap.
DEFAULT_VENUES: Final[tuple[Venue, ...]] = (
    Venue("jupiter", "Jupiter", 0.0003, 0.0006, 5, 0.8),
    Venue("raydium", "Raydium", 0.0025, 0.0005, 4, 1.0),
    Venue("orca", "Orca", 0.003, 0.0004, 4, 1.2),
    Venue("openbook", "OpenBook", 0.002, 0.0005, 3, 0.9),
    Venue("lifinity", "Lifinity", 0.001, 0.0007, 3, 1.3),
)
