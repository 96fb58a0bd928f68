import enum


class UpstreamSource(str, enum.Enum):
    COUNTRIES = "restcountries.com"
    EXCHANGE_RATES = "open.er-api.com"


class UpstreamError(Exception):
    """An external data source could not be fetched.

    `source` identifies which upstream failed; callers branch on it rather
    than on the message text.
    """

    def __init__(self, source: UpstreamSource, reason: str = ""):
        self.source = source
        self.reason = reason
        super().__init__(f"{source.value}: {reason}" if reason else source.value)


class NotFoundError(Exception):
    def __init__(self, message: str = "Country not found"):
        self.message = message
        super().__init__(message)
