#!/usr/bin/env python
# encoding: utf-8
"""
settee.tests.test_io
"""

import unittest

from settee.io import RowStream, HTTP, escape, escape_docid, paramify_path, \
                      normalize_url, validate_response
from settee.exceptions import HTTPError, NotFound, Conflict, ServerError
from settee.config import json, unwrap

LINES = [
    '{"total_rows":3,"offset":0,"rows":[',
    '{"id":"a","key":1,"value":null},',
    '{"id":"b","key":2,"value":{"x":[1,2]}},',
    '{"id":"c","key":3,"value":null}',
    ']}',
]

class Response(object):
    def __init__(self, status_code, content=b''):
        self.status_code = status_code
        self.content = content
        self.text = content.decode('utf-8')

class RowStreamTestCase(unittest.TestCase):

    def test_rows_in_order(self):
        stream = RowStream(LINES)
        rows = list(stream)
        self.assertEqual(3, len(rows))
        self.assertEqual(['a', 'b', 'c'], [r['id'] for r in rows])
        self.assertEqual({'x':[1, 2]}, rows[1]['value'])

    def test_info_after_drain(self):
        stream = RowStream(LINES)
        self.assertEqual(None, stream.info)
        self.assertFalse(stream.drained)
        for row in stream:
            self.assertEqual(None, stream.info)
        self.assertTrue(stream.drained)
        self.assertEqual({'total_rows':3, 'offset':0}, stream.info)

    def test_first_line_is_read_eagerly(self):
        consumed = []
        def lines():
            for line in LINES:
                consumed.append(line)
                yield line
        stream = RowStream(lines())
        self.assertEqual([LINES[0]], consumed)
        self.assertEqual(LINES[0], stream.first)
        next(stream)
        self.assertEqual(LINES[:2], consumed)

    def test_malformed_lines_are_skipped(self):
        lines = [LINES[0], '', '{"id":"a","key":1,"value":null},', '{"id":"b",broken},',
                 '   ', 'not json at all', '{"id":"c","key":3,"value":null}', ']}']
        rows = list(RowStream(lines))
        self.assertEqual(['a', 'c'], [r['id'] for r in rows])

    def test_bytes_lines(self):
        rows = list(RowStream([l.encode('utf-8') for l in LINES]))
        self.assertEqual(3, len(rows))

    def test_unrecoverable_metadata(self):
        stream = RowStream(['{"rows":[', '{"key":null,"value":4}', ']}'])
        self.assertEqual([{'key':None, 'value':4}], list(stream))
        self.assertTrue(stream.drained)
        self.assertEqual(None, stream.info)

        stream = RowStream(['garbage', '{"key":1,"value":1}'])
        list(stream)
        self.assertEqual(None, stream.info)

    def test_empty(self):
        stream = RowStream([])
        self.assertEqual(None, stream.first)
        self.assertEqual([], list(stream))
        self.assertEqual(None, stream.info)

    def test_process(self):
        stream = RowStream(LINES)
        stream.process = lambda row: row['key'] * 10
        self.assertEqual([10, 20, 30], list(stream))

    def test_close_on_exhaustion(self):
        closed = []
        stream = RowStream(LINES, close=lambda: closed.append(True))
        list(stream)
        stream.close()
        self.assertEqual([True], closed)

    def test_close_early(self):
        closed = []
        with RowStream(LINES, close=lambda: closed.append(True)) as stream:
            next(stream)
        self.assertEqual([True], closed)
        self.assertFalse(stream.drained)
        self.assertEqual(None, stream.info)


class PathTestCase(unittest.TestCase):

    def test_escape(self):
        self.assertEqual('foo%2Fbar+baz', escape('foo/bar baz'))
        self.assertEqual('_design/foo%2Fbar', escape_docid('_design/foo/bar'))
        self.assertEqual('a%2Fb', escape_docid('a/b'))

    def test_paramify(self):
        self.assertEqual('/db', paramify_path('/db'))
        self.assertEqual('/db', paramify_path('/db', {}))
        self.assertEqual('/db?key=%22foo%22', paramify_path('/db', {'key':'foo'}))
        self.assertEqual('/db?limit=10&descending=true',
                         paramify_path('/db', {'limit':10, 'descending':True}))
        self.assertEqual('/db?stale=ok', paramify_path('/db', {'stale':'ok'}))

    def test_paramify_none(self):
        self.assertEqual('/db', paramify_path('/db', {'rev':None}))
        self.assertEqual('/db?key=null', paramify_path('/db', {'key':None}))

    def test_paramify_structured_keys(self):
        self.assertEqual('/db?startkey=%5B%22a%22%2C+1%5D',
                         paramify_path('/db', {'startkey':['a', 1]}))

    def test_normalize_url(self):
        self.assertEqual(('http://127.0.0.1:5984', None), normalize_url(None))
        self.assertEqual(('http://host:5984', ('user', 'pass')),
                         normalize_url('user:pass@host:5984/'))
        self.assertEqual(('https://host', None), normalize_url('https://host'))


class ResponseTestCase(unittest.TestCase):

    def test_success_passes_through(self):
        resp = Response(201, b'{"ok":true}')
        self.assertTrue(validate_response(resp) is resp)

    def test_mapped_errors(self):
        body = b'{"error":"not_found","reason":"missing"}'
        try:
            validate_response(Response(404, body))
        except NotFound as e:
            self.assertEqual(404, e.status)
            self.assertEqual('not_found', e.error)
            self.assertEqual('missing', e.reason)
        else:
            self.fail('NotFound not raised')
        self.assertRaises(Conflict, validate_response, Response(409, b'{"error":"conflict"}'))
        self.assertRaises(ServerError, validate_response, Response(503, b''))

    def test_non_json_error(self):
        try:
            validate_response(Response(418, b'short and stout'))
        except HTTPError as e:
            self.assertEqual('short and stout', e.response)
            self.assertEqual(None, e.error)
        else:
            self.fail('HTTPError not raised')

    def test_transport_setup(self):
        http = HTTP('admin:secret@example.com:5984', headers={'X-Extra':'1'})
        self.assertEqual('http://example.com:5984', http.url)
        self.assertEqual(('admin', 'secret'), http.session.auth)
        self.assertEqual('1', http.session.headers['X-Extra'])
        self.assertTrue(http.session.headers['User-Agent'].startswith('Settee/'))
        self.assertEqual({'a':[1]}, http.parse(http.unparse({'a':[1]})))


class StreamedResponse(Response):
    def __init__(self, status_code, lines=(), content=b''):
        super(StreamedResponse, self).__init__(status_code, content)
        self.lines = [l.encode('utf-8') for l in lines]
        self.closed = 0

    def iter_lines(self):
        return iter(self.lines)

    def close(self):
        self.closed += 1

class RecordingSession(object):
    """Stands in for a requests.Session and answers every request with `response`"""
    def __init__(self, response):
        self.response = response
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.response

class StreamTestCase(unittest.TestCase):

    def transport(self, response):
        http = HTTP('http://couch.example.com:5984', timeout=30)
        http.session = RecordingSession(response)
        return http

    def test_get_without_body(self):
        resp = StreamedResponse(200, LINES)
        http = self.transport(resp)
        stream = http.stream('/db/_all_docs?limit=3')

        method, url, kwargs = http.session.calls[0]
        self.assertEqual('GET', method)
        self.assertEqual('http://couch.example.com:5984/db/_all_docs?limit=3', url)
        self.assertEqual(None, kwargs['data'])
        self.assertTrue(kwargs['stream'])
        self.assertEqual(30, kwargs['timeout'])

        self.assertEqual(0, resp.closed)
        self.assertEqual(['a', 'b', 'c'], [r['id'] for r in stream])
        self.assertEqual({'total_rows':3, 'offset':0}, stream.info)
        self.assertEqual(1, resp.closed)
        stream.close()
        self.assertEqual(1, resp.closed)

    def test_post_sends_encoded_body(self):
        http = self.transport(StreamedResponse(200, LINES))
        body = {'keys':['a', 'c', 'é']}
        list(http.stream('/db/_all_docs', body))

        method, url, kwargs = http.session.calls[0]
        self.assertEqual('POST', method)
        self.assertTrue(isinstance(kwargs['data'], bytes))
        self.assertEqual(http.unparse(body).encode('utf-8'), kwargs['data'])
        self.assertEqual(body, http.parse(kwargs['data'].decode('utf-8')))

    def test_error_status_raised_before_rows(self):
        resp = StreamedResponse(404, content=b'{"error":"not_found","reason":"missing"}')
        http = self.transport(resp)
        try:
            http.stream('/db/_design/gone/_view/v')
        except NotFound as e:
            self.assertEqual('missing', e.reason)
        else:
            self.fail('NotFound not raised')
        self.assertEqual(1, resp.closed)

    def test_early_close(self):
        resp = StreamedResponse(200, LINES)
        with self.transport(resp).stream('/db/_all_docs') as stream:
            self.assertEqual('a', next(stream)['id'])
        self.assertEqual(1, resp.closed)
        self.assertEqual(None, stream.info)


class CodecTestCase(unittest.TestCase):

    def test_decoded_docs_encode_again(self):
        doc = json.decode('{"_id":"x","nested":{"a":[1,{"b":2}]}}')
        self.assertEqual(None, doc.missing)
        self.assertEqual(doc, json.decode(json.encode(doc)))

    def test_wrapped_docs_are_unwrapped(self):
        class Wrapper(object):
            def __init__(self, doc):
                self.doc = doc
            def to_dict(self):
                return self.doc
        inner = json.decode('{"a":1}')
        self.assertEqual({'list':[{'a':1}]}, json.decode(json.encode({'list':[Wrapper(inner)]})))
        self.assertTrue(unwrap(inner) is inner)
        self.assertTrue(unwrap(Wrapper(inner)) is inner)
        self.assertRaises(TypeError, json.encode, object())

def suite():
    suite = unittest.TestSuite()
    suite.addTest(unittest.defaultTestLoader.loadTestsFromTestCase(RowStreamTestCase))
    suite.addTest(unittest.defaultTestLoader.loadTestsFromTestCase(PathTestCase))
    suite.addTest(unittest.defaultTestLoader.loadTestsFromTestCase(ResponseTestCase))
    suite.addTest(unittest.defaultTestLoader.loadTestsFromTestCase(StreamTestCase))
    suite.addTest(unittest.defaultTestLoader.loadTestsFromTestCase(CodecTestCase))
    return suite

if __name__ == '__main__':
    unittest.main(defaultTest='suite')
