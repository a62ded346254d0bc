import pytest

from storefront.currency import convert, exchange_rate
from storefront.errors import InvalidArgument


def test_same_currency_is_identity():
    assert convert(19.999, "USD", "USD") == 19.999


def test_converts_and_rounds():
    assert convert(10.0, "USD", "JOD") == 7.09
    assert convert(100.0, "USD", "KWD") == 30.7


def test_cross_rate_goes_through_usd():
    assert exchange_rate("EUR", "GBP") == pytest.approx(0.79 / 0.92)


@pytest.mark.parametrize("src, dst", [("XYZ", "USD"), ("USD", "XYZ"), ("XYZ", "XYZ")])
def test_unsupported_currency(src, dst):
    with pytest.raises(InvalidArgument, match="Unsupported currency"):
        convert(1.0, src, dst)
