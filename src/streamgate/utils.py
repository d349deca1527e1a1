from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def normalize_address(address: str | None) -> str | None:
    """Lower-case a wallet address, mapping empty values to None."""
    if not address:
        return None
    return address.strip().lower() or None
