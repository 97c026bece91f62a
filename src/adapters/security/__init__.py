"""Security adapters - session token signing."""

from .jwt import JwtTokenIssuer

__all__ = ["JwtTokenIssuer"]
