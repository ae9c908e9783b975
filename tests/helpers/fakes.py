"""Fakes for the on-chain capabilities of the migrations service."""


class FakeBalanceQuery:
    """Balance query returning configured balances.

    Usage:
        balances = FakeBalanceQuery({(token, holder): 10**18})
        balances = FakeBalanceQuery(default=1000)
    """

    def __init__(
        self, balances: dict[tuple[str, str], int] | None = None, default: int = 0
    ) -> None:
        self.balances = {
            (token.lower(), holder.lower()): amount
            for (token, holder), amount in (balances or {}).items()
        }
        self.default = default
        self.calls: list[tuple[str, str]] = []  # Track calls for assertions

    async def balance_of(self, token: str, holder: str) -> int:
        self.calls.append((token, holder))
        return self.balances.get((token.lower(), holder.lower()), self.default)


class FakeCallSimulator:
    """Call simulator returning fixed return data and recording calls."""

    def __init__(self, return_data: str | bytes) -> None:
        self.return_data = return_data
        self.calls: list[tuple[str, str, str]] = []

    async def call(self, to: str, data: str, sender: str) -> bytes:
        self.calls.append((to, data, sender))
        if isinstance(self.return_data, bytes):
            return self.return_data
        return bytes.fromhex(self.return_data[2:])


__all__ = ["FakeBalanceQuery", "FakeCallSimulator"]
