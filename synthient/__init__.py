"""Client for the Synthient IP lookup API and anonymizer feeds."""

from .client import DEFAULT_API_BASE_URL, DEFAULT_FEEDS_BASE_URL, SynthientClient
from .config import SynthientConfig
from .errors import (
    APIStatusError,
    BadRequestError,
    DecodeError,
    FeedFileExistsError,
    InternalServerError,
    NoTokenError,
    PaymentRequiredError,
    RequestCancelledError,
    RequestFailedError,
    SynthientError,
    SynthientIOError,
    UnauthorizedError,
    UnexpectedStatusCodeError,
)
from .models import AnonymizersQuery, Device, Enrichment, IpData, IpRecord, Location, Network
from .transport import RequestOptions, ResponseStream

__all__ = [
    "DEFAULT_API_BASE_URL",
    "DEFAULT_FEEDS_BASE_URL",
    "APIStatusError",
    "AnonymizersQuery",
    "BadRequestError",
    "DecodeError",
    "Device",
    "Enrichment",
    "FeedFileExistsError",
    "InternalServerError",
    "IpData",
    "IpRecord",
    "Location",
    "Network",
    "NoTokenError",
    "PaymentRequiredError",
    "RequestCancelledError",
    "RequestFailedError",
    "RequestOptions",
    "ResponseStream",
    "SynthientClient",
    "SynthientConfig",
    "SynthientError",
    "SynthientIOError",
    "UnauthorizedError",
    "UnexpectedStatusCodeError",
]
