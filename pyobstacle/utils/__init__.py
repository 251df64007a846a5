from .bitset import BitSet, ActiveSet
__all__ = ["BitSet", "ActiveSet"]
