"""Cart exceptions."""


class CartItemNotFound(Exception):
    """The cart line does not exist or belongs to another customer."""


class InvalidQuantity(ValueError):
    """Quantities must be at least 1."""
