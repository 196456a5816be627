"""Domain models and types for the exchange-rate service and the catalog.

This package holds the currency enumeration shared by both sides of the rate
service contract, the rate feed types and errors, and the catalog product
models. They are independent from persistence and transport so that the
resolver and converter can be tested without a network or a database.
"""

__all__ = [
    "catalog",
    "currency",
    "pricing",
    "rates",
]
