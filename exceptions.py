"""
exceptions.py
Error taxonomy for the venue pipeline
"""

from models import FailureKind


class VenuePipelineError(Exception):
    """Base class for all pipeline errors"""


class VenueFeedError(VenuePipelineError):
    """Remote feed could not produce a venue list"""
    kind = FailureKind.NETWORK


class NetworkError(VenueFeedError):
    """Transport-level failure, including non-2xx responses"""
    kind = FailureKind.NETWORK


class EmptyResponseError(VenueFeedError):
    """Feed answered with no body"""
    kind = FailureKind.NO_DATA


class DecodeError(VenueFeedError):
    """Payload was not valid JSON or did not match the venue schema"""
    kind = FailureKind.MALFORMED


class CacheMiss(VenuePipelineError):
    """No usable local snapshot"""
    kind = FailureKind.CACHE_MISS


class StatusPersistError(VenuePipelineError):
    """Writing the status mapping failed; the in-memory change still applies"""
