# encoding: utf-8
"""
Settee | a small couch

A synchronous CouchDB client with a micro-ORM: typed documents, callbacks,
bulk saves, streamed views and self-deploying design documents.

BSD Licensed
"""

__title__ = 'settee'
__version__ = '0.9.0'
__license__ = 'BSD'

__all__ = ['Couch', 'Database', 'Document', 'Design', 'Finder', 'Property',
           'RowStream', 'defaults', 'HTTPError', 'Conflict', 'NotFound',
           'PreconditionFailed', 'ServerError', 'Unauthorized', 'DocumentError',
           'UUIDError', 'REDUCE_COUNT', 'REDUCE_LOW_CARDINALITY', 'REDUCE_NULL']

from .config import defaults
from .exceptions import HTTPError, PreconditionFailed, ServerError, \
                        NotFound, Unauthorized, Conflict, DocumentError, UUIDError
from .io import RowStream
from .couchdb import Couch, Database
from .design import Design, REDUCE_COUNT, REDUCE_LOW_CARDINALITY, REDUCE_NULL
from .finder import Finder
from .document import Document
from .properties import Property
