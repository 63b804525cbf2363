"""Cart state and its reducer.

The cart is a pure function of the actions dispatched to it. The total is
never tracked incrementally; every reduction recomputes it from the lines.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from uuid import UUID

from domain.entities.product import Product


@dataclass(frozen=True)
class CartLine:
    """One product and how many of it are in the cart."""

    product: Product
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity


@dataclass(frozen=True)
class CartState:
    """Immutable cart snapshot."""

    lines: tuple[CartLine, ...] = ()
    total: Decimal = Decimal("0")

    def line_for(self, product_id: UUID) -> CartLine | None:
        for line in self.lines:
            if line.product.id == product_id:
                return line
        return None

    @property
    def is_empty(self) -> bool:
        return not self.lines


# --- Actions ---


@dataclass(frozen=True)
class AddItem:
    product: Product
    quantity: int = 1


@dataclass(frozen=True)
class UpdateQuantity:
    product_id: UUID
    quantity: int


@dataclass(frozen=True)
class RemoveItem:
    product_id: UUID


@dataclass(frozen=True)
class ClearCart:
    pass


CartAction = AddItem | UpdateQuantity | RemoveItem | ClearCart


def compute_total(lines: tuple[CartLine, ...]) -> Decimal:
    """Sum of quantity x price over the given lines."""
    return sum((line.subtotal for line in lines), Decimal("0"))


def _with_lines(lines: tuple[CartLine, ...]) -> CartState:
    return CartState(lines=lines, total=compute_total(lines))


def reduce_cart(state: CartState, action: CartAction) -> CartState:
    """Apply ``action`` to ``state`` and return the new state."""
    match action:
        case AddItem(product=product, quantity=quantity):
            if state.line_for(product.id) is None:
                return _with_lines(state.lines + (CartLine(product, quantity),))
            return _with_lines(
                tuple(
                    replace(line, quantity=line.quantity + quantity)
                    if line.product.id == product.id
                    else line
                    for line in state.lines
                )
            )

        case UpdateQuantity(product_id=product_id, quantity=quantity):
            if quantity < 1:
                return reduce_cart(state, RemoveItem(product_id))
            return _with_lines(
                tuple(
                    replace(line, quantity=quantity) if line.product.id == product_id else line
                    for line in state.lines
                )
            )

        case RemoveItem(product_id=product_id):
            return _with_lines(
                tuple(line for line in state.lines if line.product.id != product_id)
            )

        case ClearCart():
            return CartState()

    raise TypeError(f"Unknown cart action: {action!r}")
