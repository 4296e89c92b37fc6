"""
Flash Loan Arbitrage Scanner.

Scans DEX routers for cross-exchange price gaps, estimates whether a
flash loan round trip would clear its fee and gas cost, and serves the
results to a live dashboard.
"""

__version__ = "1.0.0"
