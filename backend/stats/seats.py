"""Seat and dealer index parsing for tracker round payloads."""

_SEAT_PREFIX = "player"
_SEATS = 4


def parse_seat(value: str | None) -> int | None:
    """Convert a tracker seat string to a 0-based seat index.

    "Player1".."Player4" (any case) map to 0..3. A bare non-negative integer
    is taken as an index already. Anything else is an unknown seat and
    yields None, which never matches a real seat.
    """
    if not value:
        return None
    text = value.strip()
    if text.lower().startswith(_SEAT_PREFIX):
        number = text[len(_SEAT_PREFIX) :]
        if number.isdecimal() and 1 <= int(number) <= _SEATS:
            return int(number) - 1
    if text.isdecimal():
        return int(text)
    return None


def dealer_index(label: str | None) -> int | None:
    """Derive the dealer seat from a round label like "E1", "S3" or "E4-2".

    The character after the wind is the dealer number 1..4. Labels without
    one have no known dealer.
    """
    if not label or len(label) < 2:
        return None
    digit = label[1]
    if digit.isdecimal() and 1 <= int(digit) <= _SEATS:
        return int(digit) - 1
    return None
