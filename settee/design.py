# encoding: utf-8
"""
settee.design

Design documents that name themselves after their contents.
"""

import hashlib
import logging

from .config import json
from .exceptions import NotFound, Conflict

__all__ = ['Design', 'REDUCE_COUNT', 'REDUCE_LOW_CARDINALITY', 'REDUCE_NULL']

_logger = logging.getLogger('settee')

class Design(object):
    """Wraps the dict of a design document and works out its id.

    With `with_slug` set (the default when no name is given) the id embeds an
    md5 of all the view definitions, so editing any view puts the design doc
    under a brand new name. Readers still running the old code keep hitting
    the old design doc, and the new one is written the first time one of its
    views is queried. Without a slug the id is fixed and it's up to you to
    deploy view changes.

        des = Design('myapp-', with_slug=True)
        des.define_view('by_tag', 'function(doc){ emit(doc.tag, null) }')
        des.id  # '_design/myapp-1b4f0e9851971998e732078544c96b36'
    """
    def __init__(self, name_prefix='', with_slug=False, doc=None):
        self.doc = doc if doc is not None else self.default_doc()
        self.name_prefix = name_prefix
        self.with_slug = with_slug or not name_prefix
        self.default_view_opts = {}
        self.changed()

    @staticmethod
    def default_doc():
        return {'language':'javascript'}

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self.id)

    def changed(self):
        """Force recalculation of the slug"""
        self._slug = None

    @property
    def slug(self):
        if self._slug is None:
            md5 = hashlib.md5()
            for vname, view in sorted(self.doc.get('views', {}).items()):
                chunk = json.encode([vname, view['map'], view.get('reduce'),
                                     self.default_view_opts.get(vname, {})], sort_keys=True)
                md5.update(chunk.encode('utf-8'))
            self._slug = md5.hexdigest()
        return self._slug

    @property
    def name(self):
        if self.with_slug:
            return '%s%s' % (self.name_prefix, self.slug)
        return self.name_prefix

    @property
    def id(self):
        return '_design/%s' % self.name

    def define_view(self, vname, map_src, reduce_src=None, options=None):
        """Define (or redefine) a view.

        Args:
            vname (str): the view's name

            map_src (str): the javascript map function

            reduce_src (str): an optional reduce function (or builtin such as
            ``_count``). Leaving it out removes any reduce the view had before.

            options (dict): default query options for this view. For example
            you can define a reduce but pass ``{'reduce':False}`` here so that
            it only runs when explicitly requested.
        """
        self.default_view_opts[vname] = dict(options or {})
        view = self.doc.setdefault('views', {}).setdefault(vname, {})
        view['map'] = map_src
        if reduce_src:
            view['reduce'] = reduce_src
        else:
            view.pop('reduce', None)
        self.changed()

    def view_on(self, db, vname, stream=False, **options):
        """Query one of this design doc's views on a particular database,
        creating the design doc there if it doesn't exist yet.

        The view's default options are applied first and anything passed in
        `options` takes precedence. When reducing without an explicit
        ``include_docs=True``, include_docs is dropped since couch refuses the
        combination.

        If the query comes back NotFound the design doc is written and the
        query is tried exactly once more. Note that you'll also get a NotFound
        if the design doc exists but the view name is wrong: the write then
        fails with a Conflict (which is ignored) and the retry raises NotFound.
        """
        opts = dict(self.default_view_opts.get(vname, {}))
        opts.update(options)
        if opts.get('reduce') and not opts.get('include_docs'):
            opts.pop('include_docs', None)

        try:
            return db.view(self.name, vname, stream=stream, **dict(opts))
        except NotFound:
            _logger.warning('writing design doc %s to %r', self.id, db)
            try:
                db.put_noupdate(dict(self.doc, _id=self.id))
            except Conflict:
                _logger.warning('design doc %s already exists on %r', self.id, db)
            return db.view(self.name, vname, stream=stream, **dict(opts))

# A generic reduce for counting objects. Returns a Number.
REDUCE_COUNT = """\
function(ks, vs, co) {
  if (co) {
    return sum(vs);
  } else {
    return vs.length;
  }
}
"""

# A reduce for low-cardinality string values. Returns an Object which maps
# each value to its count.
REDUCE_LOW_CARDINALITY = """\
function(ks, vs, co) {
  if (co) {
    var result = vs.shift();
    for (var i in vs) {
      for (var j in vs[i]) {
        result[j] = (result[j] || 0) + vs[i][j];
      }
    }
    return result;
  } else {
    var result = {};
    for (var i in ks) {
      var key = ks[i];
      result[key[0]] = (result[key[0]] || 0) + 1;
    }
    return result;
  }
}
"""

# Throws the values away. Query with group=true to get the distinct keys.
REDUCE_NULL = """\
function(ks, vs, co) {
  return null;
}
"""
