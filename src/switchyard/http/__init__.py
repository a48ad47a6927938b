"""HTTP types — request descriptor, request context, headers, response."""

from switchyard.http.headers import Headers
from switchyard.http.request import RawRequest, RequestContext
from switchyard.http.response import Response, data, error, json_response, to_response

__all__ = [
    "Headers",
    "RawRequest",
    "RequestContext",
    "Response",
    "data",
    "error",
    "json_response",
    "to_response",
]
