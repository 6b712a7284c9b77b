"""What a shipment contains, in the shape the pricing engine consumes."""

from dataclasses import dataclass, field

DRUM = "drum"

METAL_SEAL = "metal_seal"
DOOR_TO_DOOR = "door_to_door"


@dataclass(frozen=True)
class UnitLine:
    """Fixed-tariff items of one type, priced by quantity tier."""

    item_type: str
    quantity: int


@dataclass(frozen=True)
class CustomLine:
    """Free-form item that needs a manual quote."""

    description: str
    category: str = ""
    quantity: int = 1


@dataclass(frozen=True)
class Composition:
    units: tuple[UnitLine, ...] = ()
    custom_items: tuple[CustomLine, ...] = ()
    add_ons: frozenset[str] = field(default_factory=frozenset)
    delivery_address_count: int = 1

    @classmethod
    def drums(cls, quantity: int, add_ons=(), delivery_address_count: int = 1) -> "Composition":
        return cls(
            units=(UnitLine(item_type=DRUM, quantity=quantity),),
            add_ons=frozenset(add_ons),
            delivery_address_count=delivery_address_count,
        )

    def quantities(self) -> dict[str, int]:
        """Total quantity per fixed-tariff item type, in first-seen order."""
        totals: dict[str, int] = {}
        for line in self.units:
            totals[line.item_type] = totals.get(line.item_type, 0) + line.quantity
        return totals

    @property
    def unit_count(self) -> int:
        return sum(line.quantity for line in self.units)

    @property
    def has_priceable_items(self) -> bool:
        return self.unit_count > 0
