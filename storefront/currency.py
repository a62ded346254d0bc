from storefront.errors import InvalidArgument

# Units of each currency per 1 USD
SUPPORTED_CURRENCIES: dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "AED": 3.6725,
    "SAR": 3.75,
    "QAR": 3.64,
    "KWD": 0.307,
    "BHD": 0.376,
    "OMR": 0.385,
    "JOD": 0.709,
    "LBP": 89500.0,
    "EGP": 48.5,
    "IQD": 1310.0,
    "ILS": 3.7,
}


def exchange_rate(from_currency: str, to_currency: str) -> float:
    """Multiplier that turns an amount in ``from_currency`` into ``to_currency``."""
    for code in (from_currency, to_currency):
        if code not in SUPPORTED_CURRENCIES:
            raise InvalidArgument(f"Unsupported currency: {code}")
    return SUPPORTED_CURRENCIES[to_currency] / SUPPORTED_CURRENCIES[from_currency]


def convert(amount: float, from_currency: str, to_currency: str) -> float:
    if from_currency == to_currency:
        exchange_rate(from_currency, to_currency)
        return amount
    return round(amount * exchange_rate(from_currency, to_currency), 2)
