"""
FiscalWiser paper-trading engine.

Cash and position accounting shared by the stock and crypto simulators.
"""

__version__ = "1.0.0"
