import pytest
from notifications.channel.phone import normalize_phone_number


@pytest.mark.parametrize(
    "raw",
    ["03001234567", "0300-1234567", "3001234567", "+92 300 1234567", "923001234567", "920300-1234567"],
)
def test_local_formats_normalized(raw):
    assert normalize_phone_number(raw) == "923001234567"


@pytest.mark.parametrize("raw", ["", "12345", "0300123456789", "abc", None])
def test_unusable_numbers_rejected(raw):
    with pytest.raises(ValueError, match="Invalid phone number"):
        normalize_phone_number(raw)


def test_other_country_code():
    assert normalize_phone_number("03001234567", country_code="44") == "443001234567"
