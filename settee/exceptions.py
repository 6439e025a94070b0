# encoding: utf-8
"""
settee.exceptions

Everything that can go wrong...
"""

class HTTPError(Exception):
    """Base class for errors based on HTTP status codes >= 400.

    Attributes:
        status (int): the HTTP status code of the failed response

        response (object): the decoded response body (usually a dict of the
        form ``{error:'', reason:''}``) or the raw text if it wasn't json
    """
    def __init__(self, message='', status=None, response=None):
        super(HTTPError, self).__init__(message)
        self.status = status
        self.response = response

    @property
    def error(self):
        if isinstance(self.response, dict):
            return self.response.get('error')

    @property
    def reason(self):
        if isinstance(self.response, dict):
            return self.response.get('reason')

class PreconditionFailed(HTTPError):
    """Exception raised when a 412 HTTP error is received in response to a
    request.
    """

class NotFound(HTTPError):
    """Exception raised when a 404 HTTP error is received in response to a
    request.
    """

class ServerError(HTTPError):
    """Exception raised when an unexpected HTTP error is received in response
    to a request.
    """

class Unauthorized(HTTPError):
    """Exception raised when the server requires authentication credentials
    but either none are provided, or they are incorrect.
    """

class Conflict(HTTPError):
    """Exception raised when a 409 HTTP error is received in response to a
    request."""

class DocumentError(ValueError):
    """A document can't be saved, deleted or looked up as requested.

    Raise this (or any other RuntimeError/ValueError) from a before_* callback
    to keep a document out of a bulk save.
    """

class UUIDError(RuntimeError):
    """The uuid allocator couldn't refill its pool."""

ERRORS_BY_STATUS = {401:Unauthorized, 404:NotFound, 409:Conflict, 412:PreconditionFailed}

def error_for_status(code):
    if code in ERRORS_BY_STATUS:
        return ERRORS_BY_STATUS[code]
    elif code >= 500:
        return ServerError
    return HTTPError
