from .catalog import Category, Supplier, Product
from .customers import Customer
from .movements import Movement, MovementKind, ImmutableMovementError

__all__ = [
    'Category', 'Supplier', 'Product',
    'Customer',
    'Movement', 'MovementKind', 'ImmutableMovementError',
]
