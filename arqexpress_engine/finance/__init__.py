from .derivation import derive

__all__ = ["derive"]
