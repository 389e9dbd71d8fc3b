import threading
import time
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional


class GemWatchError(RuntimeError):
    pass


class NotLoggedInError(GemWatchError):
    pass


class SessionExpiredError(GemWatchError):
    pass


@dataclass(frozen=True)
class Session:
    cookies: Dict[str, str] = field(default_factory=dict)
    user_id: Optional[str] = None
    expires_at: int = 0

    def is_expired(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        return self.expires_at <= now

    def cookie_header(self) -> str:
        return "; ".join(f"{k}={v}" for k, v in self.cookies.items())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Session":
        user_id = raw.get("user_id")
        return cls(
            cookies={str(k): str(v) for k, v in (raw.get("cookies") or {}).items()},
            user_id=str(user_id) if user_id is not None else None,
            expires_at=int(raw.get("expires_at") or 0),
        )


class SessionStore:
    """In-memory cell for the active session and the open login surface.

    The two slots are guarded by separate locks. Nothing here performs I/O
    or inspects what it stores; callers copy what they need and release.
    """

    def __init__(self) -> None:
        self._session: Optional[Session] = None
        self._session_lock = threading.Lock()
        self._surface: Any = None
        self._surface_lock = threading.Lock()

    def get(self) -> Optional[Session]:
        with self._session_lock:
            return self._session

    def set(self, session: Session) -> None:
        with self._session_lock:
            self._session = session

    def clear(self) -> None:
        with self._session_lock:
            self._session = None

    def get_login_surface(self) -> Any:
        with self._surface_lock:
            return self._surface

    def set_login_surface(self, surface: Any) -> None:
        with self._surface_lock:
            self._surface = surface

    def take_login_surface(self) -> Any:
        with self._surface_lock:
            surface, self._surface = self._surface, None
            return surface

    def clear_login_surface(self, expected: Any) -> bool:
        """Clear the slot only if it still holds ``expected``."""
        with self._surface_lock:
            if self._surface is not expected:
                return False
            self._surface = None
            return True
