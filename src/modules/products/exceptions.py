"""Catalog exceptions shared by the cart and checkout flows."""


class ProductNotFound(Exception):
    """The product does not exist in this tenant."""


class InactiveProduct(Exception):
    """The product is inactive or deleted and cannot be sold."""


class InsufficientStock(Exception):
    """Not enough stock to fulfil the requested quantity."""
