"""Period-scoped tax configuration (loonheffingen) and rate arithmetic.

A configuration is keyed by period (``YYYY-MM``) and created lazily from the
year's defaults on first access. It only changes through an explicit
``update`` (source ``manual``) or ``import_configuration`` (source ``import``),
each of which stamps ``last_updated``.

Brackets are defined by their upper cumulative limits only, so consecutive
brackets are contiguous and non-overlapping by construction::

    [TaxBracket(3714900, 0.3697), TaxBracket(7551800, 0.495), TaxBracket(None, 0.495)]

taxes the first EUR 37,149 at 36.97% and everything above at 49.5%.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from dutch_payroll.calculators.money import round_cents, to_decimal
from dutch_payroll.calculators.periods import format_period, parse_period
from dutch_payroll.calculators.types import MinimumWageCheck
from dutch_payroll.errors import ValidationError

FULL_TIME_HOURS_PER_WEEK = Decimal("40")


@dataclass(frozen=True)
class TaxBracket:
    """Tax bracket for progressive taxation."""

    limit_cents: int | None  # Annual cumulative upper limit; None = no upper limit
    rate: Decimal


@dataclass(frozen=True)
class SocialSecurityRates:
    """Employee social security (volksverzekeringen/werknemersverzekeringen) rates."""

    aow: Decimal
    anw: Decimal
    wlz: Decimal
    ww: Decimal
    wia: Decimal
    total: Decimal

    @property
    def components_total(self) -> Decimal:
        return self.aow + self.anw + self.wlz + self.ww + self.wia


@dataclass(frozen=True)
class TaxConfiguration:
    """Tax tables and rates in force for one period."""

    period: str
    year: int
    month: int
    tax_brackets: tuple[TaxBracket, ...]
    social_security_rates: SocialSecurityRates
    social_security_ceiling_cents: int
    wage_tax_credit_base_cents: int
    wage_tax_credit_rate: Decimal
    wage_tax_credit_max_cents: int
    minimum_wage_full_time_cents: int
    health_insurance_employer_rate: Decimal
    pension_base_rate: Decimal
    last_updated: datetime
    source: str = "manual"


# 2024 defaults; applied to every year until newer tables are imported.
DEFAULT_TAX_BRACKETS_2024 = (
    TaxBracket(3714900, Decimal("0.3697")),
    TaxBracket(7551800, Decimal("0.495")),
    TaxBracket(None, Decimal("0.495")),
)

DEFAULT_SOCIAL_SECURITY_2024 = SocialSecurityRates(
    aow=Decimal("0.175"),
    anw=Decimal("0.001"),
    wlz=Decimal("0.095"),
    ww=Decimal("0.004"),
    wia=Decimal("0.0025"),
    total=Decimal("0.2775"),
)

DEFAULT_SOCIAL_SECURITY_CEILING_2024_CENTS = 3714900
DEFAULT_WAGE_TAX_CREDIT_BASE_CENTS = 3070000
DEFAULT_WAGE_TAX_CREDIT_RATE = Decimal("0.07307")
DEFAULT_WAGE_TAX_CREDIT_MAX_CENTS = 3070000
DEFAULT_MINIMUM_WAGE_2024_CENTS = 207000  # EUR 2,070 per month at 40h/week
DEFAULT_HEALTH_INSURANCE_EMPLOYER_RATE = Decimal("0.0682")
DEFAULT_PENSION_BASE_RATE = Decimal("0.04")

_SCALAR_FIELDS: dict[str, Callable[[Any], Any]] = {
    "social_security_ceiling_cents": int,
    "wage_tax_credit_base_cents": int,
    "wage_tax_credit_rate": to_decimal,
    "wage_tax_credit_max_cents": int,
    "minimum_wage_full_time_cents": int,
    "health_insurance_employer_rate": to_decimal,
    "pension_base_rate": to_decimal,
}
_SOCIAL_SECURITY_COMPONENTS = ("aow", "anw", "wlz", "ww", "wia")
UPDATABLE_FIELDS = frozenset(_SCALAR_FIELDS) | {"tax_brackets", "social_security_rates"}


def default_configuration(period: str, now: datetime) -> TaxConfiguration:
    """Build the year-scoped default configuration for ``period``."""
    year, month = parse_period(period)
    return TaxConfiguration(
        period=period,
        year=year,
        month=month,
        tax_brackets=DEFAULT_TAX_BRACKETS_2024,
        social_security_rates=DEFAULT_SOCIAL_SECURITY_2024,
        social_security_ceiling_cents=DEFAULT_SOCIAL_SECURITY_CEILING_2024_CENTS,
        wage_tax_credit_base_cents=DEFAULT_WAGE_TAX_CREDIT_BASE_CENTS,
        wage_tax_credit_rate=DEFAULT_WAGE_TAX_CREDIT_RATE,
        wage_tax_credit_max_cents=DEFAULT_WAGE_TAX_CREDIT_MAX_CENTS,
        minimum_wage_full_time_cents=DEFAULT_MINIMUM_WAGE_2024_CENTS,
        health_insurance_employer_rate=DEFAULT_HEALTH_INSURANCE_EMPLOYER_RATE,
        pension_base_rate=DEFAULT_PENSION_BASE_RATE,
        last_updated=now,
        source="manual",
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaxConfigurationProvider:
    """Memoizing provider of per-period tax configurations.

    One provider per store context; ``reset()`` drops every cached period.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._configurations: dict[str, TaxConfiguration] = {}

    def get_configuration(self, period: str) -> TaxConfiguration:
        """Return the configuration for ``period``, creating defaults on first access."""
        key = _normalize_period(period)
        existing = self._configurations.get(key)
        if existing is not None:
            return existing
        config = default_configuration(key, self._clock())
        self._configurations[key] = config
        return config

    def update(self, period: str, fields: Mapping[str, Any]) -> TaxConfiguration:
        """Merge manually edited fields into the period's configuration."""
        return self._merge(period, fields, source="manual")

    def import_configuration(self, period: str, fields: Mapping[str, Any]) -> TaxConfiguration:
        """Merge externally sourced fields (e.g. a Belastingdienst table refresh)."""
        return self._merge(period, fields, source="import")

    def list_configurations(self) -> list[TaxConfiguration]:
        return sorted(
            self._configurations.values(),
            key=lambda c: (c.year, c.month),
            reverse=True,
        )

    def reset(self) -> None:
        self._configurations.clear()

    def _merge(self, period: str, fields: Mapping[str, Any], source: str) -> TaxConfiguration:
        existing = self.get_configuration(period)

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown tax configuration field(s): {', '.join(sorted(unknown))}"
            )

        changes: dict[str, Any] = {}
        for name, convert in _SCALAR_FIELDS.items():
            value = fields.get(name)
            if value is None:
                continue
            try:
                changes[name] = convert(value)
            except (TypeError, ValueError, ArithmeticError):
                raise ValidationError(f"Invalid value for {name}: {value!r}", field=name)

        if fields.get("tax_brackets") is not None:
            changes["tax_brackets"] = validate_brackets(fields["tax_brackets"])

        if fields.get("social_security_rates") is not None:
            changes["social_security_rates"] = _merge_social_security(
                existing.social_security_rates, fields["social_security_rates"]
            )

        updated = replace(existing, **changes, last_updated=self._clock(), source=source)
        self._configurations[updated.period] = updated
        return updated


def _normalize_period(period: str) -> str:
    return format_period(*parse_period(period))


def _merge_social_security(
    existing: SocialSecurityRates, updates: SocialSecurityRates | Mapping[str, Any]
) -> SocialSecurityRates:
    if isinstance(updates, SocialSecurityRates):
        return updates

    unknown = set(updates) - set(_SOCIAL_SECURITY_COMPONENTS) - {"total"}
    if unknown:
        raise ValidationError(
            f"Unknown social security component(s): {', '.join(sorted(unknown))}",
            field="social_security_rates",
        )

    try:
        components = {
            name: to_decimal(updates[name]) if updates.get(name) is not None else getattr(existing, name)
            for name in _SOCIAL_SECURITY_COMPONENTS
        }
        explicit_total = to_decimal(updates["total"]) if updates.get("total") is not None else None
    except (TypeError, ValueError, ArithmeticError):
        raise ValidationError(
            f"Invalid social security rates: {dict(updates)!r}", field="social_security_rates"
        )

    if explicit_total is not None:
        total = explicit_total
    elif any(updates.get(name) is not None for name in _SOCIAL_SECURITY_COMPONENTS):
        total = sum(components.values(), Decimal("0"))
    else:
        total = existing.total
    return SocialSecurityRates(**components, total=total)


def validate_brackets(brackets: Iterable[TaxBracket | Mapping[str, Any]]) -> tuple[TaxBracket, ...]:
    """Normalize and check a bracket list.

    Limits must be strictly increasing and only the last bracket may be
    unbounded (and it must be).

    Raises:
        ValidationError: If the list is empty or the limits are not well ordered.
    """
    parsed: list[TaxBracket] = []
    for raw in brackets:
        if isinstance(raw, TaxBracket):
            parsed.append(raw)
            continue
        limit = raw.get("limit_cents", raw.get("limit"))
        try:
            parsed.append(
                TaxBracket(
                    limit_cents=None if limit is None else int(limit),
                    rate=to_decimal(raw["rate"]),
                )
            )
        except (KeyError, TypeError, ValueError, ArithmeticError):
            raise ValidationError(f"Invalid tax bracket: {raw!r}", field="tax_brackets")

    if not parsed:
        raise ValidationError("At least one tax bracket is required", field="tax_brackets")

    previous = 0
    for index, bracket in enumerate(parsed):
        is_last = index == len(parsed) - 1
        if bracket.limit_cents is None:
            if not is_last:
                raise ValidationError(
                    "Only the last tax bracket may be unbounded", field="tax_brackets"
                )
            continue
        if is_last:
            raise ValidationError("The last tax bracket must be unbounded", field="tax_brackets")
        if bracket.limit_cents <= previous:
            raise ValidationError(
                "Tax bracket limits must be strictly increasing", field="tax_brackets"
            )
        previous = bracket.limit_cents
    return tuple(parsed)


def calculate_progressive_tax(amount_cents: int, brackets: Sequence[TaxBracket]) -> int:
    """Tax ``amount_cents`` over ascending cumulative brackets.

    The portion of the amount falling within each bracket is taxed at that
    bracket's rate; the total is rounded once at the end.
    """
    remaining = Decimal(max(0, amount_cents))
    taxed = Decimal("0")
    floor = 0
    for bracket in brackets:
        if remaining <= 0:
            break
        if bracket.limit_cents is None:
            span = remaining
        else:
            span = min(remaining, Decimal(bracket.limit_cents - floor))
        if span > 0:
            taxed += span * bracket.rate
            remaining -= span
        if bracket.limit_cents is not None:
            floor = bracket.limit_cents
    return round_cents(taxed)


def calculate_wage_tax_credit(annual_taxable_cents: int, config: TaxConfiguration) -> int:
    """Wage tax credit (heffingskorting), phased out above the base income."""
    if annual_taxable_cents <= config.wage_tax_credit_base_cents:
        return config.wage_tax_credit_max_cents

    excess = annual_taxable_cents - config.wage_tax_credit_base_cents
    reduction = round_cents(excess * config.wage_tax_credit_rate)
    credit = max(0, config.wage_tax_credit_max_cents - reduction)
    return min(credit, config.wage_tax_credit_max_cents)


def calculate_minimum_wage_for_employee(
    hours_per_week: Decimal | int | float, config: TaxConfiguration
) -> int:
    """Monthly minimum wage pro-rated to the contract hours."""
    factor = to_decimal(hours_per_week) / FULL_TIME_HOURS_PER_WEEK
    return round_cents(config.minimum_wage_full_time_cents * factor)


def check_minimum_wage_compliance(
    monthly_salary_cents: int,
    hours_per_week: Decimal | int | float,
    config: TaxConfiguration,
) -> MinimumWageCheck:
    required = calculate_minimum_wage_for_employee(hours_per_week, config)
    shortfall = max(0, required - monthly_salary_cents)
    return MinimumWageCheck(
        compliant=shortfall == 0,
        required_cents=required,
        actual_cents=monthly_salary_cents,
        shortfall_cents=shortfall,
    )
