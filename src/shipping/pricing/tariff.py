"""Tariff — versioned pricing configuration consumed by ``PricingEngine``.

A tariff bundles everything a booking flow charges for: tier tables per
fixed-tariff item type (standard and pay-later bases), mandatory surcharges,
optional add-ons and the payment-option modifiers. Tariffs validate
themselves on construction and raise ``ConfigurationError`` when malformed,
so a broken table fails at startup rather than on a customer's quote.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from protean.exceptions import ConfigurationError


class BookingFlow(Enum):
    STANDARD = "standard"
    SIMPLIFIED = "simplified"


class PaymentOption(Enum):
    STANDARD = "standard"
    PAY_LATER = "pay_later"
    CASH_ON_COLLECTION = "cash_on_collection"
    PAY_ON_ARRIVAL = "pay_on_arrival"


class AddOnBasis(Enum):
    PER_UNIT = "per_unit"
    FLAT = "flat"
    PER_ADDRESS = "per_address"


@dataclass(frozen=True)
class PriceTier:
    """Unit price for quantities from ``min_quantity`` up to ``max_quantity``.

    ``max_quantity`` of ``None`` marks the open-ended top tier.
    """

    name: str
    min_quantity: int
    max_quantity: int | None
    unit_price: Decimal

    def covers(self, quantity: int) -> bool:
        return quantity >= self.min_quantity and (self.max_quantity is None or quantity <= self.max_quantity)


@dataclass(frozen=True)
class TierTable:
    tiers: tuple[PriceTier, ...]

    def __post_init__(self):
        if not self.tiers:
            raise ConfigurationError("Tier table must have at least one tier")

        expected_min = 1
        previous_price = None
        for index, tier in enumerate(self.tiers):
            if tier.min_quantity != expected_min:
                raise ConfigurationError(
                    f"Tier {tier.name} starts at {tier.min_quantity}, expected {expected_min} (gap or overlap)"
                )
            if tier.unit_price < 0:
                raise ConfigurationError(f"Tier {tier.name} has a negative unit price")
            if previous_price is not None and tier.unit_price > previous_price:
                raise ConfigurationError(f"Tier {tier.name} is more expensive per unit than the tier before it")

            is_last = index == len(self.tiers) - 1
            if tier.max_quantity is None:
                if not is_last:
                    raise ConfigurationError(f"Only the last tier may be open-ended, not {tier.name}")
            else:
                if tier.max_quantity < tier.min_quantity:
                    raise ConfigurationError(f"Tier {tier.name} ends before it starts")
                if is_last:
                    raise ConfigurationError(f"Last tier {tier.name} must be open-ended")
                expected_min = tier.max_quantity + 1
            previous_price = tier.unit_price

    def tier_for(self, quantity: int) -> PriceTier:
        for tier in self.tiers:
            if tier.covers(quantity):
                return tier
        raise ValueError(f"No tier covers quantity {quantity}")


@dataclass(frozen=True)
class Surcharge:
    """Fee charged once whenever a fixed-tariff item is present."""

    code: str
    label: str
    amount: Decimal


@dataclass(frozen=True)
class AddOnRule:
    code: str
    label: str
    basis: AddOnBasis
    amount: Decimal


@dataclass(frozen=True)
class Tariff:
    version: str
    flow: BookingFlow
    tier_tables: dict[str, TierTable]
    pay_later_tier_tables: dict[str, TierTable] = field(default_factory=dict)
    mandatory_surcharges: tuple[Surcharge, ...] = ()
    add_ons: tuple[AddOnRule, ...] = ()
    cash_discount_per_unit: Decimal = Decimal("0")
    arrival_premium_rate: Decimal = Decimal("0")
    currency: str = "GBP"

    def __post_init__(self):
        if not self.version:
            raise ConfigurationError("Tariff must carry a version")
        if not self.tier_tables:
            raise ConfigurationError(f"Tariff {self.version} has no tier tables")

        unknown = set(self.pay_later_tier_tables) - set(self.tier_tables)
        if unknown:
            raise ConfigurationError(
                f"Tariff {self.version} has pay-later tiers for unpriced item types: {sorted(unknown)}"
            )

        codes = [rule.code for rule in self.add_ons]
        if len(codes) != len(set(codes)):
            raise ConfigurationError(f"Tariff {self.version} declares an add-on code twice")
        for rule in self.add_ons:
            if rule.amount < 0:
                raise ConfigurationError(f"Add-on {rule.code} has a negative fee")
        for surcharge in self.mandatory_surcharges:
            if surcharge.amount < 0:
                raise ConfigurationError(f"Surcharge {surcharge.code} is negative")

        if self.cash_discount_per_unit < 0:
            raise ConfigurationError("Cash-on-collection discount cannot be negative")
        if not Decimal("0") <= self.arrival_premium_rate < Decimal("1"):
            raise ConfigurationError("Pay-on-arrival premium must be a rate between 0 and 1")

    @property
    def supports_pay_later(self) -> bool:
        return bool(self.pay_later_tier_tables)

    def add_on(self, code: str) -> AddOnRule | None:
        for rule in self.add_ons:
            if rule.code == code:
                return rule
        return None

    def prices(self, item_type: str) -> bool:
        return item_type in self.tier_tables
