"""Cost and pricing exceptions."""


class PricingError(Exception):
    """Base class for pricing errors."""


class PricingConfigError(PricingError, ValueError):
    """Raised when a pricing table or pricing file is malformed."""
