"""
Record contracts exchanged with the RWA engine.

All records are frozen dataclasses. The engine never mutates a record it
is given; helpers return new records instead.

- Counterparty: Identity and risk inputs supplied by the caller
- NoAdjustment / Multiplicative / Additive: RWA overlay variants
- OverlayPair: Counterparty-level and portfolio-level overlay for one id
- AdjustmentBook: Caller-owned overlays keyed by counterparty id
- RWAResult: Per-counterparty capital calculation output
- PortfolioAdjustment / CounterpartyAdjustment: Distributor output records
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Mapping, Union

import polars as pl

from rwa_engine.data.schemas import COUNTERPARTY_SCHEMA
from rwa_engine.domain.enums import (
    AdjustmentKind,
    DistributionMethod,
    PortfolioAdjustmentKind,
)

if TYPE_CHECKING:
    from rwa_engine.contracts.errors import CalculationError


# =============================================================================
# Counterparty
# =============================================================================


@dataclass(frozen=True)
class Counterparty:
    """
    Counterparty identity and risk inputs.

    Numeric risk fields may be None (or NaN); the engine substitutes
    documented defaults for them. TTC inputs are optional and only used
    when the record carries no ttc_pd of its own.

    Attributes:
        id: Unique, opaque identifier
        pd: Point-in-time probability of default (0-1)
        ttc_pd: Through-the-cycle PD (0-1)
        lgd: Loss given default (0-1)
        ead: Exposure at default (currency, >= 0)
        maturity: Effective maturity in years
        is_financial / is_large_financial / is_regulated: Classification
            flags driving the asset value correlation multiplier
        credit_rating: External rating symbol (e.g. "BBB+")
        use_credit_rating_pd: Take PD from the rating instead of `pd`
        macroeconomic_index / long_term_average / cyclicality: TTC PD inputs
    """

    id: str
    name: str = ""
    industry: str = ""
    region: str = ""
    pd: float | None = None
    ttc_pd: float | None = None
    lgd: float | None = None
    ead: float | None = None
    maturity: float | None = None
    is_financial: bool = False
    is_large_financial: bool = False
    is_regulated: bool = True
    credit_rating: str | None = None
    use_credit_rating_pd: bool = False
    macroeconomic_index: float | None = None
    long_term_average: float | None = None
    cyclicality: float | None = None

    def with_ead(self, ead: float) -> Counterparty:
        """Return a copy with a different exposure at default."""
        return replace(self, ead=ead)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Counterparty:
        """
        Build a Counterparty from a mapping, ignoring unknown keys.

        Numeric fields are coerced to float, the id to str.
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        values["id"] = str(values["id"])
        for name in _FLOAT_FIELDS:
            if values.get(name) is not None:
                values[name] = float(values[name])
        return cls(**values)


_FLOAT_FIELDS = (
    "pd",
    "ttc_pd",
    "lgd",
    "ead",
    "maturity",
    "macroeconomic_index",
    "long_term_average",
    "cyclicality",
)


def counterparties_to_frame(counterparties: Iterable[Counterparty]) -> pl.DataFrame:
    """Convert counterparty records to a DataFrame with COUNTERPARTY_SCHEMA."""
    rows = [cp.to_dict() for cp in counterparties]
    columns = {name: [row[name] for row in rows] for name in COUNTERPARTY_SCHEMA}
    return pl.DataFrame(columns, schema=COUNTERPARTY_SCHEMA)


def counterparties_from_frame(frame: pl.DataFrame) -> list[Counterparty]:
    """Convert a DataFrame (COUNTERPARTY_SCHEMA columns) to records."""
    return [Counterparty.from_dict(row) for row in frame.iter_rows(named=True)]


# =============================================================================
# Adjustment overlays (tagged union)
# =============================================================================


@dataclass(frozen=True)
class NoAdjustment:
    """Absence of an overlay. Leaves RWA unchanged."""

    kind: ClassVar[AdjustmentKind] = AdjustmentKind.NONE

    def apply(self, rwa: float) -> float:
        return rwa

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value}


@dataclass(frozen=True)
class Multiplicative:
    """Overlay scaling RWA by `factor`."""

    factor: float
    kind: ClassVar[AdjustmentKind] = AdjustmentKind.MULTIPLICATIVE

    def apply(self, rwa: float) -> float:
        return rwa * self.factor

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "multiplier": self.factor}


@dataclass(frozen=True)
class Additive:
    """Overlay adding `amount` (currency) to RWA."""

    amount: float
    kind: ClassVar[AdjustmentKind] = AdjustmentKind.ADDITIVE

    def apply(self, rwa: float) -> float:
        return rwa + self.amount

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "amount": self.amount}


Adjustment = Union[NoAdjustment, Multiplicative, Additive]

NO_ADJUSTMENT = NoAdjustment()


def adjustment_from_input(
    kind: PortfolioAdjustmentKind | str,
    value: float,
) -> Adjustment:
    """
    Build an overlay from an analyst input.

    A percentage input becomes Multiplicative(1 + value/100), an absolute
    input becomes Additive(value).

    Raises:
        ValueError: If kind is not a PortfolioAdjustmentKind value
    """
    kind = PortfolioAdjustmentKind(kind)
    if kind == PortfolioAdjustmentKind.PERCENTAGE:
        return Multiplicative(1.0 + value / 100.0)
    return Additive(value)


def adjustment_from_dict(data: Mapping[str, Any] | None) -> Adjustment:
    """Inverse of the overlay to_dict methods."""
    if not data:
        return NO_ADJUSTMENT
    kind = AdjustmentKind(data["kind"])
    if kind == AdjustmentKind.MULTIPLICATIVE:
        return Multiplicative(float(data["multiplier"]))
    if kind == AdjustmentKind.ADDITIVE:
        return Additive(float(data["amount"]))
    return NO_ADJUSTMENT


@dataclass(frozen=True)
class OverlayPair:
    """
    Overlays attached to one counterparty.

    Holds at most one counterparty-level and one portfolio-level overlay.
    The engine applies `counterparty` first, then `portfolio`.
    """

    counterparty: Adjustment = NO_ADJUSTMENT
    portfolio: Adjustment = NO_ADJUSTMENT

    @property
    def is_empty(self) -> bool:
        return isinstance(self.counterparty, NoAdjustment) and isinstance(
            self.portfolio, NoAdjustment
        )

    def apply(self, rwa: float) -> float:
        """Apply counterparty-level then portfolio-level overlay."""
        return self.portfolio.apply(self.counterparty.apply(rwa))

    @property
    def marginal_factor(self) -> float:
        """
        Change in overlaid RWA per unit change in pre-overlay RWA.

        Multiplicative factors compound; additive amounts are fixed and
        contribute nothing.
        """
        factor = 1.0
        for overlay in (self.counterparty, self.portfolio):
            if isinstance(overlay, Multiplicative):
                factor *= overlay.factor
        return factor


EMPTY_OVERLAYS = OverlayPair()


@dataclass(frozen=True)
class AdjustmentBook:
    """
    Overlays keyed by counterparty id, owned by the caller.

    Every mutator returns a new book. Empty overlay pairs are dropped so
    two books with the same effective overlays compare equal.

    Usage:
        book = AdjustmentBook()
        book = book.with_counterparty_adjustment("cp-1", Multiplicative(1.1))
        overlays = book.overlays_for("cp-1")
    """

    entries: Mapping[str, OverlayPair] = field(default_factory=dict)

    def __post_init__(self) -> None:
        cleaned = {key: pair for key, pair in self.entries.items() if not pair.is_empty}
        object.__setattr__(self, "entries", MappingProxyType(cleaned))

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, counterparty_id: object) -> bool:
        return counterparty_id in self.entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AdjustmentBook):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.entries.items())))

    def overlays_for(self, counterparty_id: str) -> OverlayPair:
        """Overlays for an id (empty pair when none are attached)."""
        return self.entries.get(counterparty_id, EMPTY_OVERLAYS)

    def _with_pair(self, counterparty_id: str, pair: OverlayPair) -> AdjustmentBook:
        updated = dict(self.entries)
        updated[counterparty_id] = pair
        return AdjustmentBook(updated)

    def with_counterparty_adjustment(
        self, counterparty_id: str, adjustment: Adjustment
    ) -> AdjustmentBook:
        """Replace the counterparty-level overlay for an id."""
        pair = replace(self.overlays_for(counterparty_id), counterparty=adjustment)
        return self._with_pair(counterparty_id, pair)

    def with_portfolio_adjustment(
        self, counterparty_id: str, adjustment: Adjustment
    ) -> AdjustmentBook:
        """Replace the portfolio-level overlay for an id."""
        pair = replace(self.overlays_for(counterparty_id), portfolio=adjustment)
        return self._with_pair(counterparty_id, pair)

    def without_counterparty_adjustment(self, counterparty_id: str) -> AdjustmentBook:
        return self.with_counterparty_adjustment(counterparty_id, NO_ADJUSTMENT)

    def without_portfolio_adjustments(self) -> AdjustmentBook:
        """Drop every portfolio-level overlay, keeping counterparty-level ones."""
        return AdjustmentBook(
            {key: replace(pair, portfolio=NO_ADJUSTMENT) for key, pair in self.entries.items()}
        )

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {
            key: {
                "rwa_adjustment": pair.counterparty.to_dict(),
                "portfolio_rwa_adjustment": pair.portfolio.to_dict(),
            }
            for key, pair in self.entries.items()
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Any]]) -> AdjustmentBook:
        return cls(
            {
                key: OverlayPair(
                    counterparty=adjustment_from_dict(value.get("rwa_adjustment")),
                    portfolio=adjustment_from_dict(value.get("portfolio_rwa_adjustment")),
                )
                for key, value in data.items()
            }
        )


# =============================================================================
# RWA result
# =============================================================================


@dataclass(frozen=True)
class RWAResult:
    """
    Per-counterparty capital calculation output.

    Effective values (pd, lgd, ead, maturity, ttc_pd) are the ones used
    after defaults, rating PD and option overrides were resolved.
    `original_rwa` is captured before any overlay, so `rwa == original_rwa`
    whenever no overlay is attached.

    Attributes:
        correlation_r: Asset correlation R
        maturity_adjustment: Maturity adjustment factor MA
        k: Capital requirement ratio
        risk_weight: K × 1250, expressed as a percent
        errors: Data quality warnings raised while resolving inputs
    """

    counterparty_id: str | None
    pd: float
    lgd: float
    ead: float
    maturity: float
    ttc_pd: float
    correlation_r: float
    maturity_adjustment: float
    k: float
    risk_weight: float
    original_rwa: float
    rwa: float
    errors: tuple[CalculationError, ...] = ()

    @property
    def total_adjustment(self) -> float:
        return self.rwa - self.original_rwa

    @property
    def rwa_density(self) -> float:
        """RWA per unit of EAD (0 for zero exposure)."""
        return self.rwa / self.ead if self.ead > 0 else 0.0

    @classmethod
    def zero(
        cls,
        counterparty_id: str | None = None,
        errors: tuple[CalculationError, ...] = (),
    ) -> RWAResult:
        """Zeroed result used when no counterparty is supplied."""
        return cls(
            counterparty_id=counterparty_id,
            pd=0.0,
            lgd=0.0,
            ead=0.0,
            maturity=0.0,
            ttc_pd=0.0,
            correlation_r=0.0,
            maturity_adjustment=0.0,
            k=0.0,
            risk_weight=0.0,
            original_rwa=0.0,
            rwa=0.0,
            errors=errors,
        )

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "errors"}
        data["errors"] = [e.to_dict() for e in self.errors]
        return data


# =============================================================================
# Portfolio adjustment records
# =============================================================================


@dataclass(frozen=True)
class PortfolioAdjustment:
    """
    Summary of one portfolio-level adjustment.

    Created by the AdjustmentDistributor. The per-counterparty overlays
    it produced are carried separately as CounterpartyAdjustment records.
    """

    kind: PortfolioAdjustmentKind
    value: float
    distribution_method: DistributionMethod
    reason: str
    timestamp: datetime
    affected_counterparties: int
    total_baseline_rwa: float
    total_adjusted_rwa: float
    total_absolute_change: float
    total_percentage_change: float

    @property
    def adjustment_kind(self) -> AdjustmentKind:
        """Overlay shape produced for each counterparty."""
        if self.kind == PortfolioAdjustmentKind.PERCENTAGE:
            return AdjustmentKind.MULTIPLICATIVE
        return AdjustmentKind.ADDITIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "type": self.adjustment_kind.value,
            "value": self.value,
            "distribution_method": self.distribution_method.value,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
            "affected_counterparties": self.affected_counterparties,
            "total_baseline_rwa": self.total_baseline_rwa,
            "total_adjusted_rwa": self.total_adjusted_rwa,
            "total_absolute_change": self.total_absolute_change,
            "total_percentage_change": self.total_percentage_change,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PortfolioAdjustment:
        return cls(
            kind=PortfolioAdjustmentKind(data["kind"]),
            value=float(data["value"]),
            distribution_method=DistributionMethod(data["distribution_method"]),
            reason=data.get("reason", ""),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            affected_counterparties=int(data["affected_counterparties"]),
            total_baseline_rwa=float(data["total_baseline_rwa"]),
            total_adjusted_rwa=float(data["total_adjusted_rwa"]),
            total_absolute_change=float(data["total_absolute_change"]),
            total_percentage_change=float(data["total_percentage_change"]),
        )


@dataclass(frozen=True)
class CounterpartyAdjustment:
    """
    One counterparty's part of a portfolio adjustment.

    `share` is the reported portion of the total adjustment amount.
    `adjustment` is the overlay to attach at portfolio level; applying it
    to `baseline_rwa` gives `adjusted_rwa`.
    """

    counterparty_id: str
    baseline_rwa: float
    share: float
    adjusted_rwa: float
    absolute_change: float
    percentage_change: float
    adjustment: Adjustment

    def to_dict(self) -> dict[str, Any]:
        return {
            "counterparty_id": self.counterparty_id,
            "baseline_rwa": self.baseline_rwa,
            "share": self.share,
            "adjusted_rwa": self.adjusted_rwa,
            "absolute_change": self.absolute_change,
            "percentage_change": self.percentage_change,
            "adjustment": self.adjustment.to_dict(),
        }


def finite_or_none(value: Any) -> float | None:
    """Return value as float when it is a finite number, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
