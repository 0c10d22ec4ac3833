class ConversionError(Exception):
    """Base class for every failure a conversion can report to the user."""

    code = 'conversion_error'
    default_message = 'Conversion failed.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidAmount(ConversionError):
    code = 'invalid_amount'
    default_message = 'Amount must be a positive number.'


class UnknownCurrency(ConversionError):
    code = 'unknown_currency'
    default_message = 'Unknown currency code.'


class RateFetchError(ConversionError):
    """The live rate table could not be obtained."""

    code = 'rate_unavailable'
    default_message = 'Failed to fetch live rates.'
    user_message = 'Could not fetch live rates. Please try again.'


class NetworkError(RateFetchError):
    code = 'network_error'


class ParseError(RateFetchError):
    code = 'parse_error'


class PersistenceError(ConversionError):
    code = 'persistence_error'
    default_message = 'Failed to save conversion.'


def user_message(exc: ConversionError) -> str:
    """Text shown to the user for a failed conversion."""
    if isinstance(exc, RateFetchError):
        return exc.user_message
    return exc.message
