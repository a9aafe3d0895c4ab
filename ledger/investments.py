"""Yield projection for investment assets.

Projections are standalone: they never touch accounts or transactions.
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ledger.domain import Benchmark, InvestmentAsset

CENT = Decimal("0.01")
MAX_OPPORTUNITIES = 5
LONG_LIQUIDITY_DAYS = 30


@dataclass(frozen=True)
class Projection:
    days: int
    gross: Decimal
    gross_yield: Decimal
    iof: Decimal
    ir: Decimal
    net: Decimal
    net_yield: Decimal


def _money(value: float) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def simulate(asset: InvestmentAsset, today: date) -> Projection:
    end = asset.expected_withdrawal_date or today
    days = max(1, (end - asset.start_date).days)
    principal = float(asset.principal)

    gross = principal * (1 + float(asset.annual_rate) / 100) ** (days / 365)
    gross_yield = gross - principal
    iof = max(0.0, gross_yield * float(asset.iof_rate) / 100)
    ir = max(0.0, (gross_yield - iof) * float(asset.ir_rate) / 100)
    net = gross - iof - ir

    return Projection(
        days=days,
        gross=_money(gross),
        gross_yield=_money(gross_yield),
        iof=_money(iof),
        ir=_money(ir),
        net=_money(net),
        net_yield=_money(net - principal),
    )


def portfolio_totals(assets: Iterable[InvestmentAsset], today: date) -> dict[str, Decimal]:
    totals = {"applied": Decimal("0"), "gross": Decimal("0"), "net": Decimal("0")}
    for a in assets:
        p = simulate(a, today)
        totals["applied"] += a.principal
        totals["gross"] += p.gross
        totals["net"] += p.net
    return totals


def opportunities(assets: Iterable[InvestmentAsset], today: date) -> list[str]:
    notes = []
    for a in assets:
        p = simulate(a, today)
        if a.liquidity_days > LONG_LIQUIDITY_DAYS:
            notes.append(f"{a.name}: {a.liquidity_days}-day liquidity, plan your cash.")
        if p.net_yield < 0:
            notes.append(f"{a.name}: projected net yield is negative.")
        if a.benchmark is Benchmark.CDI and (a.benchmark_percent or Decimal("0")) < 100:
            notes.append(f"{a.name}: below 100% of CDI, compare alternatives.")
    return notes[:MAX_OPPORTUNITIES]
