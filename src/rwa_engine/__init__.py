"""
IRB RWA Engine.

Computes Basel IRB risk-weighted assets per counterparty, layers analyst
adjustment overlays on top, distributes portfolio-level adjustments and
searches for EAD scaling that reaches a target RWA.

Basic usage:
    >>> from rwa_engine.contracts.records import Counterparty
    >>> from rwa_engine.engine.capital import CapitalEngine
    >>>
    >>> engine = CapitalEngine()
    >>> result = engine.compute_rwa(Counterparty(id="cp-1", pd=0.01, lgd=0.45, ead=1e7))
    >>> result.rwa
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
