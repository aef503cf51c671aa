from decimal import Decimal

import pytest

from shopdesk.checkout_service.app.schemas import AddressPayload
from shopdesk.checkout_service.app.services import (
    extract_estimated_days,
    generate_order_number,
    guest_email,
    is_address_complete,
    tax_cents_for,
)


@pytest.mark.parametrize(
    ("subtotal_cents", "rate", "expected"),
    [
        (10000, Decimal("8"), 800),
        (3998, Decimal("10"), 400),
        (1005, Decimal("10"), 101),
        (0, Decimal("25"), 0),
    ],
)
def test_tax_rounds_half_up_to_the_cent(subtotal_cents: int, rate: Decimal, expected: int) -> None:
    assert tax_cents_for(subtotal_cents, rate) == expected


@pytest.mark.parametrize(
    ("description", "expected"),
    [
        ("Delivered in 3-5 days", 5),
        ("Next day: 1 day", 1),
        ("Ships within 7 Days", 7),
        ("Pick up in store", None),
        (None, None),
    ],
)
def test_estimated_days_uses_upper_bound(description: str | None, expected: int | None) -> None:
    assert extract_estimated_days(description) == expected


def test_address_completeness_requires_every_field() -> None:
    complete = AddressPayload(
        firstName="Ada",
        lastName="Lovelace",
        address1="1 Main St",
        city="Springfield",
        state="IL",
        postalCode="62701",
        country="US",
        phone="555-0100",
    )
    assert is_address_complete(complete)
    assert not is_address_complete(complete.model_copy(update={"phone": "  "}))
    assert not is_address_complete(None)


def test_order_number_format() -> None:
    number = generate_order_number("SHOP")
    prefix, timestamp, suffix = number.split("-")
    assert prefix == "SHOP"
    assert len(timestamp) == 8 and timestamp.isdigit()
    assert len(suffix) == 3 and suffix.isdigit()


def test_guest_email_is_unique_per_call() -> None:
    first = guest_email("Ada Lovelace")
    second = guest_email("Ada Lovelace")
    assert first != second
    assert first.startswith("adalovelace.") and first.endswith("@guest.com")
    assert guest_email(None).startswith("guest.")
