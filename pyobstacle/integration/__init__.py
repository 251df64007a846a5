from .quadrature import volume, gauss_legendre
__all__ = ["volume", "gauss_legendre"]
