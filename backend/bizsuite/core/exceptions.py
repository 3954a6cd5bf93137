"""Domain exceptions raised by services and mapped to HTTP 400 by the API."""


class BusinessRuleError(ValueError):
    """A request violates a business rule (bad state, invalid input)."""


class FormulaError(BusinessRuleError):
    """A formula cannot be evaluated for the given inputs."""
