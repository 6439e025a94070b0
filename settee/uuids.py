# encoding: utf-8
"""
settee.uuids

Allocating ids for documents saved without one.
"""

import os
import random
import threading
import time

from .config import defaults
from .exceptions import UUIDError

__all__ = ['ServerUUIDs', 'TimeUUIDs']

class ServerUUIDs(object):
    """Hands out uuids fetched from the server's ``_uuids`` resource, keeping
    a local pool so that only one request in every `batch_size` ids goes over
    the wire. Safe to share between threads.
    """
    def __init__(self, http, batch_size=None):
        self.http = http
        self.batch_size = batch_size or defaults.uuid_batch_size
        self.path = '/_uuids?count=%i' % self.batch_size
        self._uuids = []
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            for _ in range(defaults.uuid_attempts):
                if self._uuids:
                    return self._uuids.pop()
                more = self.http.get(self.path).get('uuids')
                if more:
                    self._uuids.extend(more)
            raise UUIDError('Failed to obtain uuid')

    def bulk(self):
        """For this allocator, bulk allocation is the same as normal allocation"""
        return self

    def size(self):
        return len(self._uuids)

    def __repr__(self):
        # not the whole pool, thanks
        return '<%s (%i)>' % (type(self).__name__, len(self._uuids))


class TimeUUIDs(object):
    """Time-ordered ids.

    The top 48 bits hold the time in milliseconds since the epoch (as a
    javascript Date would see it), then 16 bits of pid, then 64 pseudo-random
    bits. Ids from a single `bulk()` sequence share their timestamp and count
    upwards from a random start, so a batch keeps its insertion order in
    ``_all_docs`` and in views with equal keys. Plain calls share a sequence
    for as long as the millisecond lasts, so they increase too.

    Usage:
        couch = Couch(uuid_generator=TimeUUIDs())
    """
    def __init__(self):
        self._seq = None
        self._lock = threading.Lock()

    def __call__(self):
        seq = Seq()
        with self._lock:
            if self._seq is None or self._seq.ms != seq.ms:
                self._seq = seq
            return self._seq()

    def bulk(self, time=None):
        """Return a callable producing consecutive ids (not thread-safe).

        Pass `time` (seconds since the epoch) to give a batch of creates and
        updates exactly matching timestamps.
        """
        return Seq(time)

    @staticmethod
    def created_at(uuid):
        """The creation time (seconds since the epoch) encoded in an id"""
        return int(uuid[:12], 16) / 1000.0

class Seq(object):
    RAND_SIZE = (1<<64) - (1<<32)

    def __init__(self, when=None):
        if when is None:
            when = time.time()
        self.ms = int(when * 1000)
        self.pid = os.getpid() & 0xffff
        self.seq = None

    def __call__(self):
        self.seq = random.randrange(self.RAND_SIZE) if self.seq is None else self.seq + 1
        return '%012x%04x%016x' % (self.ms, self.pid, self.seq)
