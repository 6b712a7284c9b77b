"""Published tariffs for the two booking flows."""

from decimal import Decimal

from shipping.pricing.composition import DOOR_TO_DOOR, DRUM, METAL_SEAL
from shipping.pricing.tariff import (
    AddOnBasis,
    AddOnRule,
    BookingFlow,
    PriceTier,
    Tariff,
    TierTable,
)

METAL_SEAL_FEE = Decimal("5.00")
DOOR_TO_DOOR_FEE = Decimal("25.00")
CASH_DISCOUNT_PER_DRUM = Decimal("20.00")
ARRIVAL_PREMIUM_RATE = Decimal("0.20")

STANDARD_DRUM_TIERS = TierTable(
    tiers=(
        PriceTier("single", 1, 1, Decimal("240.00")),
        PriceTier("small_multiple", 2, 4, Decimal("230.00")),
        PriceTier("bulk", 5, 9, Decimal("220.00")),
        PriceTier("wholesale", 10, None, Decimal("200.00")),
    )
)

# 30-day terms are priced off their own table rather than a multiplier
PAY_LATER_DRUM_TIERS = TierTable(
    tiers=(
        PriceTier("single", 1, 1, Decimal("280.00")),
        PriceTier("small_multiple", 2, 4, Decimal("260.00")),
        PriceTier("bulk", 5, None, Decimal("240.00")),
    )
)

SIMPLIFIED_DRUM_TIERS = TierTable(
    tiers=(
        PriceTier("single", 1, 1, Decimal("280.00")),
        PriceTier("small_multiple", 2, 4, Decimal("270.00")),
        PriceTier("bulk", 5, None, Decimal("260.00")),
    )
)

ADD_ONS = (
    AddOnRule(METAL_SEAL, "Metal coded seal", AddOnBasis.PER_UNIT, METAL_SEAL_FEE),
    AddOnRule(DOOR_TO_DOOR, "Door to door delivery", AddOnBasis.PER_ADDRESS, DOOR_TO_DOOR_FEE),
)

STANDARD_TARIFF = Tariff(
    version="standard-2024.1",
    flow=BookingFlow.STANDARD,
    tier_tables={DRUM: STANDARD_DRUM_TIERS},
    pay_later_tier_tables={DRUM: PAY_LATER_DRUM_TIERS},
    add_ons=ADD_ONS,
    cash_discount_per_unit=CASH_DISCOUNT_PER_DRUM,
    arrival_premium_rate=ARRIVAL_PREMIUM_RATE,
)

SIMPLIFIED_TARIFF = Tariff(
    version="simplified-2024.1",
    flow=BookingFlow.SIMPLIFIED,
    tier_tables={DRUM: SIMPLIFIED_DRUM_TIERS},
    add_ons=ADD_ONS,
    cash_discount_per_unit=CASH_DISCOUNT_PER_DRUM,
    arrival_premium_rate=ARRIVAL_PREMIUM_RATE,
)

DEFAULT_TARIFFS = {
    BookingFlow.STANDARD: STANDARD_TARIFF,
    BookingFlow.SIMPLIFIED: SIMPLIFIED_TARIFF,
}
