"""
📬 Email mocks
- Every outbound sender in `app.utils.email_utils` is replaced by a recorder
- Tests read what would have been sent from the `outbox` fixture
- `outbox.fail(name)` makes one sender raise to exercise error paths
"""

from typing import Any, Dict, List, Optional, Set

import pytest

SENDERS = (
    "send_otp_email",
    "send_delete_otp_email",
    "send_contact_email",
    "send_account_deleted_notification",
    "send_subscription_welcome_email",
    "send_new_subscriber_email",
)


class Outbox:
    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self._failing: Set[str] = set()

    def fail(self, name: str) -> None:
        self._failing.add(name)

    def of(self, name: str) -> List[Dict[str, Any]]:
        return [m for m in self.sent if m["sender"] == name]

    def last_otp(self, name: str = "send_otp_email", email: Optional[str] = None) -> str:
        for message in reversed(self.of(name)):
            if email is None or message["args"][0] == email:
                return message["args"][1]
        raise AssertionError(f"no {name} message recorded")

    def _recorder(self, name: str):
        async def _send(*args: Any, **kwargs: Any) -> None:
            if name in self._failing:
                raise RuntimeError(f"[MOCK EMAIL] {name} unavailable")
            self.sent.append({"sender": name, "args": args, "kwargs": kwargs})
        return _send


@pytest.fixture(autouse=True)
def outbox(monkeypatch) -> Outbox:
    box = Outbox()
    for name in SENDERS:
        monkeypatch.setattr(f"app.utils.email_utils.{name}", box._recorder(name))
    return box


__all__ = ["Outbox", "outbox"]
