from .security_validator import SecurityValidator

__all__ = ['SecurityValidator']
