"""Device pairing and the list of connected devices.

Pairing hands out a short-lived opaque token embedded in a URL; the UI shows
the URL as a QR code. A device that presents a live token is added to the
in-memory device list. Nothing is persisted across restarts.
"""

import logging
import secrets
import socket
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_PAIRING_TTL_SECONDS = 300


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PairingInfo:
    token: str
    url: str
    expires_at: datetime


@dataclass
class Device:
    id: str
    name: str
    paired_at: datetime = field(default_factory=_now)
    last_seen: datetime = field(default_factory=_now)


def get_lan_address() -> str:
    """Best guess at the address other devices on the network can reach."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # No packet is sent; connect() only selects the outgoing interface
        sock.connect(("10.255.255.255", 1))
        return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        sock.close()


class AuthService:
    """Issues pairing tokens and tracks paired devices."""

    def __init__(
        self,
        pairing_ttl_seconds: int = DEFAULT_PAIRING_TTL_SECONDS,
        host: Optional[str] = None,
    ):
        self.pairing_ttl = timedelta(seconds=pairing_ttl_seconds)
        self.host = host
        self._pending: Dict[str, datetime] = {}
        self._devices: Dict[str, Device] = {}

    def generate_pairing(self, port: int) -> PairingInfo:
        """Create a pairing token and the URL a device should open."""
        self._prune_expired()
        token = secrets.token_urlsafe(32)
        expires_at = _now() + self.pairing_ttl
        self._pending[token] = expires_at

        host = self.host or get_lan_address()
        url = f"http://{host}:{port}/?token={token}"
        logger.info(f"Issued pairing token valid until {expires_at.isoformat()}")
        return PairingInfo(token=token, url=url, expires_at=expires_at)

    def pair_device(self, token: str, name: str) -> Optional[Device]:
        """Consume a pairing token. None if it is unknown or expired."""
        self._prune_expired()
        if self._pending.pop(token, None) is None:
            logger.warning("Rejected pairing attempt with unknown or expired token")
            return None

        device = Device(id=uuid.uuid4().hex, name=name or "Unnamed device")
        self._devices[device.id] = device
        logger.info(f"Paired device {device.name} ({device.id})")
        return device

    def get_connected_devices(self) -> List[Device]:
        return list(self._devices.values())

    def disconnect_device(self, device_id: str) -> bool:
        device = self._devices.pop(device_id, None)
        if device is None:
            return False
        logger.info(f"Disconnected device {device.name} ({device_id})")
        return True

    def _prune_expired(self) -> None:
        now = _now()
        for token, expires_at in list(self._pending.items()):
            if expires_at <= now:
                del self._pending[token]
