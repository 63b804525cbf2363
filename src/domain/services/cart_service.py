"""Client-side cart store driven by ``reduce_cart``."""

from collections.abc import Callable
from decimal import Decimal
from uuid import UUID

from domain.entities.cart import (
    AddItem,
    CartAction,
    CartState,
    ClearCart,
    RemoveItem,
    UpdateQuantity,
    reduce_cart,
)
from domain.entities.order import OrderItem
from domain.entities.product import Product

CartListener = Callable[[CartState], None]


class CartStore:
    """Holds the cart of one client instance. Nothing is persisted."""

    def __init__(self, state: CartState | None = None) -> None:
        self._state = state or CartState()
        self._listeners: list[CartListener] = []

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def total(self) -> Decimal:
        return self._state.total

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._state.lines)

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: CartAction) -> CartState:
        self._state = reduce_cart(self._state, action)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    # Convenience wrappers

    def add(self, product: Product, quantity: int = 1) -> CartState:
        return self.dispatch(AddItem(product, quantity))

    def update_quantity(self, product_id: UUID, quantity: int) -> CartState:
        return self.dispatch(UpdateQuantity(product_id, quantity))

    def remove(self, product_id: UUID) -> CartState:
        return self.dispatch(RemoveItem(product_id))

    def clear(self) -> CartState:
        return self.dispatch(ClearCart())

    def to_order_items(self) -> list[OrderItem]:
        """Snapshot the lines as order items, capturing current prices."""
        return [
            OrderItem(product_id=line.product.id, quantity=line.quantity, price=line.product.price)
            for line in self._state.lines
        ]

    def seller_ids(self) -> set[UUID]:
        return {line.product.seller_id for line in self._state.lines}

    def seller_id(self) -> UUID | None:
        """Seller of the first line, used to address the order."""
        if not self._state.lines:
            return None
        return self._state.lines[0].product.seller_id
