"""
RWA Engine API Module.

Usage:
    from rwa_engine.api import RWAEngineService

    service = RWAEngineService()
    response = service.calculate(counterparties, book)
    print(f"Total RWA: {response.total_rwa:,.0f}")
    for error in response.warnings:
        print(f"{error.code}: {error.message}")
"""

from rwa_engine.api.models import AdjustmentResponse, CalculationResponse
from rwa_engine.api.service import RWAEngineService, create_service

__all__ = [
    "AdjustmentResponse",
    "CalculationResponse",
    "RWAEngineService",
    "create_service",
]
