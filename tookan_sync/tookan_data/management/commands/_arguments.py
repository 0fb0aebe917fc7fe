from argparse import ArgumentTypeError
from datetime import date


def iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ArgumentTypeError(f"Expected a YYYY-MM-DD date, got {value!r}") from exc


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise ArgumentTypeError(f"Expected a whole number, got {value!r}") from exc
    if number <= 0:
        raise ArgumentTypeError(f"Expected a number greater than zero, got {number}")
    return number
