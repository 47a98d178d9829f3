"""In-memory notification sink for report tests."""

from __future__ import annotations

from smol_analytics.schemas import NotificationDeliveryStats


class FakeNotifier:
    """Records messages instead of posting them."""

    def __init__(self, *, accept: bool = True) -> None:
        self.accept = accept
        self.messages: list[str] = []

    @property
    def enabled(self) -> bool:
        return True

    def stats(self) -> NotificationDeliveryStats:
        sent = len(self.messages) if self.accept else 0
        return NotificationDeliveryStats(attempted=len(self.messages), sent=sent)

    async def send(self, content: str) -> bool:
        self.messages.append(content)
        return self.accept
