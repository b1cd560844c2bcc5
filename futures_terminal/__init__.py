"""
Dual-mode (simulated / live) USDT-M futures order terminal.
"""

__version__ = "0.1.0"
