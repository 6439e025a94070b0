# encoding: utf-8
"""
settee.finder

Class-level queries and bulk operations for Document classes, bound to a
particular database.
"""

import logging

import requests

from .exceptions import HTTPError

__all__ = ['Finder', 'RECOVERABLE', 'UNRECOVERABLE']

_logger = logging.getLogger('settee')

# Exceptions raised by before_* callbacks during bulk operations which are
# reported in the result list rather than raised. Anything else propagates
# before a single doc has been written.
RECOVERABLE = (RuntimeError, ValueError)

# Once the batch has been written, callback failures of any kind are reported
# in the result list. Only these still propagate.
UNRECOVERABLE = (HTTPError, requests.RequestException)

KEY_OPTIONS = ('key', 'keys', 'startkey', 'endkey')

class Finder(object):
    """Implements the class-level finder methods on a chosen database.

        Foo.on(db).all(limit=10)
        Foo.on(db).bulk_save([foo, bar, {'plain':'dict'}])

    Rows which carry a ``doc`` are turned into Document objects (of the class
    named by each doc's type attribute) unless ``raw=True`` or ``reduce=True``
    is passed.
    """
    def __init__(self, database, klass):
        self.database = database
        self.klass = klass

    def __repr__(self):
        return '<%s %s on %r>' % (type(self).__name__, self.name, self.database)

    @property
    def name(self):
        return self.klass.__name__

    def get(self, docid, **options):
        """Retrieve a document by id.

        If the `open_revs` option is supplied you get a list of (non-deleted)
        documents instead.

        Raises:
            NotFound
        """
        res = self.database.get(docid, **options)
        if options.get('open_revs'):
            return [self.klass.instantiate(r['ok'], self.database) for r in res
                    if r.get('ok') and not r['ok'].get('_deleted')]
        return self.klass.instantiate(res, self.database)

    def view(self, vname, stream=False, raw=False, **options):
        """Query a view in the class's design doc (creating the design doc if
        it doesn't exist yet). Unlike Database.view, this dereferences the
        ``rows`` for you.

        Kwargs:
            stream (bool): if True return a RowStream, materializing each row
            as it is read

            raw (bool): if True, return the rows as they came from the server

            All standard view options apply.

        Returns:
            list (or RowStream) of rows and/or Documents
        """
        raw = raw or options.get('reduce')
        res = self.klass.design_doc.view_on(self.database, vname, stream=stream, **options)
        return self._rows(res, raw, stream)

    def class_view(self, vname, **options):
        """Query a view defined with ``Foo.define_view(vname, ...)``"""
        return self.view(self.klass.view_name(vname), **options)

    def bulk_get(self, stream=False, raw=False, **options):
        """Get multiple documents by id, e.g. ``bulk_get(keys=["xxx","yyy"])``.

        Ids which don't exist come back as raw ``{key:'', error:'not_found'}`` rows.
        """
        options.setdefault('include_docs', True)
        raw = raw or options.get('reduce')
        res = self.database.all_docs(stream=stream, **options)
        return self._rows(res, raw, stream)

    def all(self, **options):
        """Get all docs of this class using the "all" view.

        Kwargs:
            all_classes (bool): return docs of every type rather than just this class

            key, keys, startkey, endkey: select by type name yourself (this
            also disables the class restriction)

            All standard view options apply. include_docs defaults to True
            unless reducing.
        """
        if 'include_docs' not in options and not options.get('reduce'):
            options['include_docs'] = True
        all_classes = options.pop('all_classes', False)
        if not all_classes and not any(k in options for k in KEY_OPTIONS):
            options['key'] = self.klass.type_name
        return self.view('all', **options)

    def count(self, **options):
        """Count the docs of this class.

        Without options this reads the single overall reduce value. With any
        options (e.g., ``all_classes=True``, ``startkey=...``) it sums the
        reduce over the selected keys, which forces a re-reduce on the server
        and is rather less efficient.
        """
        if not options:
            rows = self.view('all', reduce=True)
            try:
                return rows[0]['value'].get(self.klass.type_name or 'null', 0)
            except (IndexError, KeyError, TypeError, AttributeError):
                return 0

        opts = {'reduce':True}
        opts.update(options)
        return sum(sum(row['value'].values()) for row in self.all(**opts))

    def first(self, **options):
        opts = {'limit':1}
        opts.update(options)
        res = self.all(**opts)
        return res[0] if res else None

    def last(self, **options):
        opts = {'limit':1, 'descending':True}
        opts.update(options)
        res = self.all(**opts)
        return res[0] if res else None

    def new(self, doc=None):
        return self.klass(doc, self.database)

    def create(self, doc=None):
        """Instantiate and save. Raises on failure."""
        obj = self.new(doc)
        obj.save()
        return obj

    def bulk_save(self, docs, **options):
        """Save a list of documents (and/or plain dicts) in a single request.

        The callbacks are invoked; a RuntimeError or ValueError raised by a
        before_* callback is returned in the result list rather than raised,
        much as a validate_doc_update failure on the server would be, and the
        doc is not saved. The after_* callbacks only run for docs which were
        successfully written, and anything they raise (short of an HTTPError
        or transport failure) ends up in that doc's result slot.

        Docs are tagged with their class's type name if they don't have a type
        yet (plain dicts get this finder's class's type name), and are
        associated with this database once written.

        Kwargs:
            all_or_nothing (bool): passed through to the server

        Returns:
            list. One result per doc, in order: ``{id:'', rev:''}`` on success
            or ``{id:'', error:'', reason:''}`` on failure (with the exception
            under ``exception`` when a callback raised it).
        """
        result = [None] * len(docs)
        dbdocs = []
        dbnew = []
        dbindex = []
        for i, doc in enumerate(docs):
            new_record = not doc.get('_rev')
            try:
                _callback(doc, 'before_save')
                _callback(doc, 'before_create' if new_record else 'before_update')
                self._tag_type(doc)
            except RECOVERABLE as e:
                result[i] = _failure(doc, e)
            else:
                dbdocs.append(doc)
                dbnew.append(new_record)
                dbindex.append(i)

        if dbdocs:
            dbres = self.database.bulk_docs(dbdocs, **options)
            for doc, new_record, i, stat in zip(dbdocs, dbnew, dbindex, dbres):
                result[i] = stat
                if not stat.get('rev'):
                    continue
                try:
                    if hasattr(type(doc), 'database'):
                        doc.database = self.database
                    _callback(doc, 'after_create' if new_record else 'after_update')
                    _callback(doc, 'after_save')
                except UNRECOVERABLE:
                    raise
                except Exception as e:
                    result[i] = _failure(doc, e)

        return result

    def bulk_destroy(self, docs, **options):
        """Delete a list of documents in a single request (no callbacks are run).

        Each deletion record carries the doc's own `_id` and `_rev`, so a doc
        that was never saved comes back as a failure from the server.

        Returns:
            list. The server's result for each doc, in order.
        """
        req = [{'_id':doc.get('_id'), '_rev':doc.get('_rev'), '_deleted':True}
               for doc in docs]
        return self.database.bulk_docs_noupdate(req, **options)

    def cleanup_design_docs(self):
        """Delete out-of-date design docs which share this class's design doc
        prefix. Don't do this until all your model classes have been loaded, or
        you may lose your current view data.

        Returns:
            list. The bulk delete results (empty if there was nothing to delete)
        """
        design_doc = self.klass.design_doc
        if not design_doc.with_slug:
            return []
        prefix = '_design/%s' % design_doc.name_prefix
        current_id = design_doc.id
        stale = []
        for row in self.database.all_docs(stream=True, startkey=prefix, endkey=prefix + '~'):
            docid = row['id']
            if docid == current_id or not docid.startswith('_design/') or docid == '_design/':
                continue
            stale.append({'_id':docid, '_rev':row['value']['rev'], '_deleted':True})
        if not stale:
            return []
        _logger.info('deleting %i stale design docs from %r', len(stale), self.database)
        return self.database.bulk_docs_noupdate(stale)

    def _rows(self, res, raw, stream):
        if stream:
            if not raw:
                res.process = self._materialize
            return res
        rows = res['rows']
        if raw:
            return rows
        return [self._materialize(row) for row in rows]

    def _materialize(self, row):
        if row.get('doc'):
            return self.klass.instantiate(row['doc'], self.database)
        return row

    def _tag_type(self, doc):
        klass = type(doc) if hasattr(type(doc), 'type_attr') else self.klass
        if klass.type_name and not doc.get(klass.type_attr):
            doc[klass.type_attr] = klass.type_name

def _callback(doc, name):
    # plain dicts don't have callbacks
    callback = getattr(type(doc), name, None)
    if callback is not None:
        callback(doc)

def _failure(doc, exc):
    return {'id':doc.get('_id'), 'error':type(exc).__name__, 'reason':str(exc), 'exception':exc}
