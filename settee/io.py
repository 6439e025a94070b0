# encoding: utf-8
"""
settee.io

Synchronous HTTP bit-slinging and line-at-a-time view streaming.
"""

import re
import logging
from urllib.parse import urlsplit, urlunsplit, quote_plus

import requests

from .config import defaults, json
from .exceptions import error_for_status
from . import __version__ as VERSION

__all__ = ['HTTP', 'RowStream', 'escape', 'escape_docid', 'paramify_path',
           'validate_response']

_logger = logging.getLogger('settee')
def log(*msg):
    _logger.info(" ".join([str(s) for s in msg]))

def escape(string):
    """Escape a value for use as a single path segment or query value.

    >>> escape('foo/bar baz')
    'foo%2Fbar+baz'
    """
    return quote_plus(str(string), safe='')

def escape_docid(doc_id):
    """Escape a document id, leaving the slash after a ``_design`` prefix alone.

    >>> escape_docid('_design/foo/bar')
    '_design/foo%2Fbar'
    >>> escape_docid('a/b')
    'a%2Fb'
    """
    if doc_id.startswith('_design/'):
        return '_design/%s' % escape(doc_id[len('_design/'):])
    return escape(doc_id)

JSON_PARAMS = ('key', 'startkey', 'endkey')

def paramify_path(path, params=None, unparse=None):
    """Append a query string built from `params` to `path`.

    Key-ish values (and anything that isn't already a string) are sent as
    json, so ``limit=10`` becomes ``limit=10``, ``descending=True`` becomes
    ``descending=true`` and ``key='foo'`` becomes ``key=%22foo%22``. Params
    whose value is None are dropped, except for the key-ish ones where None
    means a json null.
    """
    if not params:
        return path
    unparse = unparse or json.encode
    query = []
    for name, value in params.items():
        if name in JSON_PARAMS or not isinstance(value, str):
            if value is None and name not in JSON_PARAMS:
                continue
            value = unparse(value)
        query.append('%s=%s' % (name, escape(value)))
    if not query:
        return path
    return '%s?%s' % (path, '&'.join(query))

def normalize_url(url):
    """Extract authentication credentials from the given URL and fill in the default host if omitted."""
    if url is None:
        url = defaults.url
    elif not url.startswith('http'):
        url = 'http://%s' % url

    parts = list(urlsplit(url))
    credentials = None
    if '@' in parts[1]:
        creds, netloc = parts[1].rsplit('@', 1)
        credentials = tuple(creds.split(':', 1))
        parts[1] = netloc
    return urlunsplit(tuple(parts)).rstrip('/'), credentials

def validate_response(resp):
    """Raise the HTTPError subclass matching the response status (if >= 400).

    The decoded error body (``{error:'', reason:''}``) rides along on the
    exception's `response` attribute.
    """
    code = resp.status_code
    if code < 400:
        return resp

    data = resp.content
    exc_info = ''
    if data:
        try:
            data = json.decode(data)
            exc_info = '%s: %s' % (data.get('error'), data.get('reason'))
        except (ValueError, AttributeError):
            data = exc_info = resp.text
    raise error_for_status(code)(exc_info, status=code, response=data)


class HTTP(object):
    """Blocking transport to a CouchDB server.

    Every method takes a path relative to the server url (e.g., ``/db/docid``)
    and returns the decoded json response, raising an HTTPError subclass
    when the server says no.
    """
    def __init__(self, url=None, parser=None, headers=None, auth=None, timeout=None):
        self.url, credentials = normalize_url(url)
        self.parser = parser or json
        self.timeout = timeout or defaults.http.timeout
        self.session = requests.Session()
        self.session.headers.update(defaults.http.headers)
        self.session.headers['User-Agent'] = 'Settee/%s' % VERSION
        self.session.headers.update(headers or {})
        self.session.auth = auth or credentials

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self.url)

    def parse(self, body):
        return self.parser.decode(body)

    def unparse(self, obj):
        return self.parser.encode(obj)

    def get(self, path, raw=False):
        resp = self._request('GET', path)
        if raw:
            return resp.content
        return self.parse(resp.content)

    def head(self, path):
        return self._request('HEAD', path).headers

    def put(self, path, doc=None, raw=False, content_type=None):
        headers = {}
        if raw:
            body = doc.encode('utf-8') if isinstance(doc, str) else doc
            headers['Content-Type'] = content_type or 'application/octet-stream'
        else:
            body = self._body(doc)
        return self.parse(self._request('PUT', path, body, headers).content)

    def post(self, path, doc=None):
        return self.parse(self._request('POST', path, self._body(doc)).content)

    def delete(self, path):
        return self.parse(self._request('DELETE', path).content)

    def copy(self, path, destination):
        resp = self._request('COPY', path, headers={'Destination':destination})
        return self.parse(resp.content)

    def stream(self, path, body=None):
        """Issue a GET (or a POST when `body` is given) and return a RowStream
        over the response's ``rows``.

        The request body is sent in full before any of the response is read.
        Errors in the response status are raised here, before the first row.
        """
        method = 'GET' if body is None else 'POST'
        url = self.url + path
        log("⌁ %4s %s" % (method, url))
        resp = self.session.request(method, url, data=self._body(body),
                                    stream=True, timeout=self.timeout)
        try:
            validate_response(resp)
        except Exception:
            resp.close()
            raise
        return RowStream(resp.iter_lines(), parse=self.parse, close=resp.close)

    def _body(self, doc):
        if doc is None:
            return None
        return self.unparse(doc).encode('utf-8')

    def _request(self, method, path, body=None, headers=None):
        url = self.url + path
        log("✓ %4s %s" % (method, url))
        resp = self.session.request(method, url, data=body, headers=headers,
                                    timeout=self.timeout)
        return validate_response(resp)


class RowStream(object):
    """A lazy, single-pass iterator over the rows of a streamed view response.

    CouchDB lays out view results with one row per line::

        {"total_rows":3,"offset":0,"rows":[
        {"id":"a","key":1,"value":null},
        {"id":"b","key":2,"value":null},
        {"id":"c","key":3,"value":null}
        ]}

    The first line is read as soon as the stream is constructed and is held
    back. Each subsequent line that looks like a single json object (once any
    trailing comma is removed) is parsed and yielded; anything else (the
    closing ``]}``, blank keepalives, garbage) is skipped.

    Once the rows have been exhausted, `info` holds the wrapper's metadata
    (e.g., ``{total_rows:3, offset:0}``) recovered from the first line, or
    None if it couldn't be recovered.

    Args:
        lines (iterable): str or bytes lines, without any need for line endings

    Kwargs:
        parse (function): json decoder for each line

        process (function): applied to each parsed row before it is yielded

        close (function): called once the lines are exhausted (or the stream is
        closed early)
    """
    def __init__(self, lines, parse=None, process=None, close=None):
        self._lines = iter(lines)
        self._parse = parse or json.decode
        self.process = process
        self._close = close
        self._info = None
        self.drained = False
        self.first = next(self._lines, None)
        self._rows = self._iter_rows()

    def __iter__(self):
        return self

    def __next__(self):
        return next(self._rows)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def info(self):
        """The response's non-row fields. None until the stream has been drained."""
        return self._info

    def close(self):
        if self._close is not None:
            close, self._close = self._close, None
            close()

    def _iter_rows(self):
        try:
            for line in self._lines:
                row = self._parse_line(line)
                if row is None:
                    continue
                yield self.process(row) if self.process else row
            self.drained = True
            self._info = self._parse_first(self.first)
        finally:
            self.close()

    def _parse_line(self, line):
        if isinstance(line, bytes):
            line = line.decode('utf-8')
        line = line.strip()
        if line.endswith(','):
            line = line[:-1]
        if not (line.startswith('{') and line.endswith('}')):
            return None
        try:
            return self._parse(line)
        except ValueError:
            _logger.debug('skipping unparseable row: %r', line)
            return None

    def _parse_first(self, first):
        if not first:
            return None
        try:
            if isinstance(first, bytes):
                first = first.decode('utf-8')
            head = re.sub(r',[^,]*\Z', '', first.strip())
            return self._parse(head + '}')
        except ValueError:
            return None
