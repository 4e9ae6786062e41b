from .realdebrid import RealDebridClient

__all__ = ["RealDebridClient"]
