"""FoodGuard: concurrent multi-detector food safety analysis engine."""

__version__ = "1.0.0"
