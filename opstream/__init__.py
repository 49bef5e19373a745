"""
opstream - concurrent operation generator and history recorder for
Jepsen-style database tests
"""
__version__ = "0.1.0"
