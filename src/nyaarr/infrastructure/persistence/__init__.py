from .in_flight import InFlightRegistry

__all__ = ["InFlightRegistry"]
