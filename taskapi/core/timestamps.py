"""UTC timestamp helpers shared by the validators and the document store."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 date or datetime into an aware UTC datetime.

    Naive values are taken to be UTC. Date-only strings ("2030-01-31") resolve
    to midnight UTC.

    Raises:
        ValueError: If the value is not a parseable ISO-8601 string or datetime,
            or its UTC equivalent falls outside the representable range
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip())
    else:
        msg = f"Expected ISO-8601 string or datetime, got {type(value).__name__}"
        raise ValueError(msg)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except OverflowError as e:
        # e.g. 9999-12-31T23:00:00-05:00 lands past datetime.max in UTC
        msg = f"Timestamp out of range: {value}"
        raise ValueError(msg) from e


def format_timestamp(value: datetime) -> str:
    """Render a datetime as UTC ISO-8601 with millisecond precision and a Z suffix.

    Every stored timestamp uses this format so string order matches time order.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
