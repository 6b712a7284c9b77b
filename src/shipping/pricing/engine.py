"""PricingEngine — deterministic quote for a composition and payment option.

Order of computation:

1. Base amount: each fixed-tariff item type priced at the unit price of the
   tier its total quantity falls in.
2. Mandatory surcharges, once any fixed-tariff item is present.
3. Add-ons: per unit, flat, or per delivery address.
4. Payment-option modifier, applied last to the subtotal. Exactly one
   applies: pay-later uplift to the parallel tier table, cash-on-collection
   per-unit discount, pay-on-arrival percentage premium, or nothing.

Custom items are never priced here; they are counted in ``deferred_items``
and, when nothing else is priceable, ``final_amount`` is ``None``.
"""

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError

from shipping.pricing.composition import Composition
from shipping.pricing.tariff import AddOnBasis, PaymentOption, Tariff

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class QuoteLine:
    item_type: str
    quantity: int
    tier: str
    unit_price: Decimal
    amount: Decimal


@dataclass(frozen=True)
class Charge:
    code: str
    label: str
    amount: Decimal


@dataclass(frozen=True)
class Quote:
    tariff_version: str
    currency: str
    payment_option: PaymentOption
    unit_lines: tuple[QuoteLine, ...]
    base_amount: Decimal
    surcharges: tuple[Charge, ...]
    subtotal: Decimal
    modifier: Charge | None
    discount_or_premium: Decimal
    final_amount: Decimal | None
    deferred_items: int

    @property
    def is_deferred(self) -> bool:
        return self.deferred_items > 0

    def unit_price(self, item_type: str) -> Decimal | None:
        for line in self.unit_lines:
            if line.item_type == item_type:
                return line.unit_price
        return None

    def to_dict(self) -> dict:
        return {
            "tariff_version": self.tariff_version,
            "currency": self.currency,
            "payment_option": self.payment_option.value,
            "unit_lines": [
                {
                    "item_type": line.item_type,
                    "quantity": line.quantity,
                    "tier": line.tier,
                    "unit_price": str(line.unit_price),
                    "amount": str(line.amount),
                }
                for line in self.unit_lines
            ],
            "base_amount": str(self.base_amount),
            "surcharges": [{"code": c.code, "label": c.label, "amount": str(c.amount)} for c in self.surcharges],
            "subtotal": str(self.subtotal),
            "modifier": (
                {"code": self.modifier.code, "label": self.modifier.label, "amount": str(self.modifier.amount)}
                if self.modifier
                else None
            ),
            "discount_or_premium": str(self.discount_or_premium),
            "final_amount": str(self.final_amount) if self.final_amount is not None else None,
            "deferred_items": self.deferred_items,
        }


class PricingEngine:
    def __init__(self, tariff: Tariff):
        self.tariff = tariff

    def price(self, composition: Composition, payment_option: PaymentOption) -> Quote:
        payment_option = PaymentOption(payment_option)
        self._validate(composition, payment_option)

        deferred = sum(item.quantity for item in composition.custom_items)
        if not composition.has_priceable_items:
            return Quote(
                tariff_version=self.tariff.version,
                currency=self.tariff.currency,
                payment_option=payment_option,
                unit_lines=(),
                base_amount=ZERO,
                surcharges=(),
                subtotal=ZERO,
                modifier=None,
                discount_or_premium=ZERO,
                final_amount=None,
                deferred_items=deferred,
            )

        unit_lines = tuple(self._unit_lines(composition, pay_later=False))
        base_amount = money(sum((line.amount for line in unit_lines), ZERO))

        charges = [Charge(s.code, s.label, money(s.amount)) for s in self.tariff.mandatory_surcharges]
        charges.extend(self._add_on_charges(composition))
        subtotal = money(base_amount + sum((c.amount for c in charges), ZERO))

        modifier = self._modifier(composition, payment_option, base_amount, subtotal)
        final_amount = max(money(subtotal + (modifier.amount if modifier else ZERO)), ZERO)
        # A discount larger than the subtotal only takes the total to zero
        adjustment = final_amount - subtotal
        if modifier and modifier.amount != adjustment:
            modifier = replace(modifier, amount=adjustment)

        return Quote(
            tariff_version=self.tariff.version,
            currency=self.tariff.currency,
            payment_option=payment_option,
            unit_lines=unit_lines,
            base_amount=base_amount,
            surcharges=tuple(charges),
            subtotal=subtotal,
            modifier=modifier,
            discount_or_premium=adjustment,
            final_amount=final_amount,
            deferred_items=deferred,
        )

    def _validate(self, composition: Composition, payment_option: PaymentOption) -> None:
        errors: dict[str, list[str]] = {}
        for line in composition.units:
            if line.quantity < 1:
                errors.setdefault("quantity", []).append(f"{line.item_type} quantity must be at least 1")
            if not self.tariff.prices(line.item_type):
                errors.setdefault("item_type", []).append(
                    f"{line.item_type} is not priced by tariff {self.tariff.version}"
                )
        for code in sorted(composition.add_ons):
            if self.tariff.add_on(code) is None:
                errors.setdefault("add_ons", []).append(f"Unknown add-on {code}")
        if composition.delivery_address_count < 1:
            errors.setdefault("delivery_address_count", []).append("At least one delivery address is required")
        if not composition.units and not composition.custom_items:
            errors.setdefault("line_items", []).append("A shipment must contain at least one item")
        if payment_option == PaymentOption.PAY_LATER and not self.tariff.supports_pay_later:
            errors.setdefault("payment_option", []).append(
                f"Pay later is not offered on the {self.tariff.flow.value} booking flow"
            )
        if errors:
            raise ValidationError(errors)

    def _unit_lines(self, composition: Composition, pay_later: bool):
        tables = self.tariff.pay_later_tier_tables if pay_later else self.tariff.tier_tables
        for item_type, quantity in composition.quantities().items():
            table = tables.get(item_type) or self.tariff.tier_tables[item_type]
            tier = table.tier_for(quantity)
            yield QuoteLine(
                item_type=item_type,
                quantity=quantity,
                tier=tier.name,
                unit_price=money(tier.unit_price),
                amount=money(tier.unit_price * quantity),
            )

    def _add_on_charges(self, composition: Composition):
        # Tariff order, so the breakdown reads the same for every caller
        for rule in self.tariff.add_ons:
            if rule.code not in composition.add_ons:
                continue
            if rule.basis == AddOnBasis.PER_UNIT:
                amount = rule.amount * composition.unit_count
            elif rule.basis == AddOnBasis.PER_ADDRESS:
                amount = rule.amount * composition.delivery_address_count
            else:
                amount = rule.amount
            yield Charge(rule.code, rule.label, money(amount))

    def _modifier(self, composition, payment_option, base_amount, subtotal) -> Charge | None:
        if payment_option == PaymentOption.PAY_LATER:
            pay_later_base = money(sum((line.amount for line in self._unit_lines(composition, pay_later=True)), ZERO))
            return Charge("pay_later", "Pay later uplift", money(pay_later_base - base_amount))
        if payment_option == PaymentOption.CASH_ON_COLLECTION:
            discount = self.tariff.cash_discount_per_unit * composition.unit_count
            return Charge("cash_on_collection", "Cash on collection discount", -money(discount))
        if payment_option == PaymentOption.PAY_ON_ARRIVAL:
            premium = subtotal * self.tariff.arrival_premium_rate
            return Charge("pay_on_arrival", "Pay on arrival premium", money(premium))
        return None
