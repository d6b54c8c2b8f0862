"""Exceptions raised while resolving and interpreting prayer timings."""


class WaqtError(Exception):
    """Base class for all waqt errors."""


class ProviderError(WaqtError):
    """No strategy could produce a TimingResult. The caller shows 'unavailable'."""


class NetworkTimeout(ProviderError):
    """The remote timing service did not answer before the deadline."""


class ProviderDataError(ProviderError):
    """The remote service answered with a failure code or a malformed payload."""


class SecondaryFetchFailure(ProviderError):
    """The next-day lookup used for next_sehri failed. Never fatal."""


class FallbackComputationError(ProviderError):
    """Local calculation failed, e.g. no sun event at polar latitudes."""


class InvalidCoordinatesError(ProviderError):
    """Latitude or longitude is out of range."""


class TimingsFormatError(WaqtError, ValueError):
    """A time-of-day string or cached timing blob could not be parsed."""
