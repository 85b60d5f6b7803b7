"""Device pairing."""

from .service import AuthService, Device, PairingInfo

__all__ = ["AuthService", "Device", "PairingInfo"]
