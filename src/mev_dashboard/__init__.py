"""
Solana MEV Dashboard simulation engine.

An asynchronous engine that fabricates DEX prices, detects simple,
triangular and multi-hop arbitrage opportunities across simulated
Solana venues, and simulates their execution for demonstration purposes.
"""

__version__ = "1.0.0"
__author__ = "Tim"
