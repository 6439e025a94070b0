# encoding: utf-8
"""
settee.document

Document classes on top of plain dicts:

- a document is associated with a database: ``doc.database = db``
- a class is optionally associated with a database: ``Foo.use_database(db)``
- instantiation respects a definable 'type' attribute
- class queries can be directed to any other database: ``Foo.on(db).all()``
- a design doc, by default shared between all classes
- a default view "all" to locate and count objects by type
"""

import threading
from abc import ABCMeta
from collections.abc import MutableMapping

from .config import defaults
from .design import Design, REDUCE_COUNT, REDUCE_LOW_CARDINALITY
from .exceptions import DocumentError
from .finder import Finder

__all__ = ['Document', 'DocumentType', 'type_to_class', 'register_type']

# Mapping of permitted type names to classes. This keeps database users from
# being able to create objects of arbitrary class.
type_to_class = {}
_registry_lock = threading.Lock()

def register_type(type_name, klass):
    with _registry_lock:
        type_to_class[type_name] = klass

def _finder_method(name):
    def shortcut(cls):
        def call_finder(*args, **kwargs):
            return getattr(cls.finder(), name)(*args, **kwargs)
        call_finder.__name__ = name
        call_finder.__doc__ = getattr(Finder, name).__doc__
        return call_finder
    return property(shortcut, doc="Finder.%s on the class's default database" % name)


class DocumentType(ABCMeta):
    """Metaclass for Document.

    Registers each new class in `type_to_class` under its type name (the class
    name unless the class body says otherwise) and gives the class the finder
    methods (``Foo.get(id)``, ``Foo.all()``, ``Foo.count()``...) working on
    its default database. These live on the metaclass so they don't get in
    the way of the instances' own dict-like methods.
    """
    def __init__(cls, name, bases, attrs):
        super(DocumentType, cls).__init__(name, bases, attrs)
        if 'type_name' not in attrs:
            cls.type_name = name
        register_type(cls.type_name, cls)

    get = _finder_method('get')
    bulk_get = _finder_method('bulk_get')
    bulk_save = _finder_method('bulk_save')
    bulk_destroy = _finder_method('bulk_destroy')
    view = _finder_method('view')
    class_view = _finder_method('class_view')
    all = _finder_method('all')
    count = _finder_method('count')
    first = _finder_method('first')
    last = _finder_method('last')
    create = _finder_method('create')
    cleanup_design_docs = _finder_method('cleanup_design_docs')

    def finder(cls):
        """A Finder on the class's default database"""
        if cls.database is None:
            raise DocumentError('Database not set - try use_database')
        return cls.on(cls.database)

    def on(cls, database):
        """Direct class queries to a particular database, e.g.

            Foo.on(db).class_view('by_bar', startkey=123)
        """
        return cls.finder_class(database, cls)

    def instantiate(cls, doc=None, database=None):
        """Create an object of the class named in the doc's type attribute.

        If the type attribute is missing, unknown or not a string, fall back to
        Document (rather than to the class this was called on, since a
        CouchDB database is only one 'table').
        """
        doc = doc if doc is not None else {}
        type_name = doc.get(cls.type_attr)
        if not isinstance(type_name, str):
            type_name = None
        klass = type_to_class.get(type_name) or Document
        obj = klass(doc, database if database is not None else cls.database)
        obj.after_find()
        return obj

    def use_database(cls, database):
        """Set the default database for the class's finder methods"""
        cls.database = database

    def use_design_doc(cls, design_doc):
        """Set the design doc. Call this before defining any views in the class.
        Can be used to put certain classes in their own design documents:

            class Foo(Document):
                pass
            Foo.use_design_doc(Design("Foo-", True))

        or to set a prefix for the whole application:

            Document.use_design_doc(Design("MyAppName-", True))
        """
        cls.design_doc = design_doc

    def use_type_attr(cls, type_attr):
        """Set the attribute used for storing the type (default: 'type')"""
        cls.type_attr = str(type_attr)
        cls.define_view_all()

    def use_type_name(cls, type_name):
        """Set the type name stored in the database for this class (defaults
        to the class name). Not inherited by subclasses."""
        type_name = None if type_name is None else str(type_name)
        register_type(type_name, cls)
        cls.type_name = type_name

    def define_view(cls, vname, map_src, reduce_src=None, options=None):
        """Define a view using map and (optionally) reduce functions. It is up
        to you to apply a class filter. e.g.

            Foo.define_view("by_bar", '''
              function(doc) {
                if(doc.type == 'Foo' && doc.bar) {
                  emit(doc.bar, null);
                }
              }''')

            Foo.class_view("by_bar", key=123)

        The view is stored in the design doc as "Foo_by_bar".
        """
        cls.design_doc.define_view(cls.view_name(vname), map_src, reduce_src, options)

    def view_name(cls, vname):
        return '%s_%s' % (cls.__name__, vname)

    def define_view_all(cls, map_src=None, reduce_src=None, options=None):
        """(Re)define the "all" view used by `all`, `count`, `first` and `last`"""
        if map_src is None:
            map_src = """\
function(doc) {
  emit(doc['%s'] || null, null);
}
""" % cls.type_attr
            reduce_src = reduce_src or REDUCE_LOW_CARDINALITY
        else:
            reduce_src = reduce_src or REDUCE_COUNT
        if options is None:
            options = {'reduce':False}
        cls.design_doc.define_view('all', map_src, reduce_src, options)


class Document(MutableMapping, metaclass=DocumentType):
    """Wraps a dict holding a couch document, which stays available as `doc`.

    Subclasses may define any of the callbacks (before/after create, update,
    save and destroy, plus after_find and after_initialize); the defaults do
    nothing. before_create is a good place to allocate an id.
    """
    database = None
    design_doc = Design()
    type_attr = defaults.type_attr
    type_name = None
    finder_class = Finder

    def __init__(self, doc=None, database=None):
        if isinstance(doc, Document):
            doc = doc.doc
        self.doc = doc if doc is not None else {}
        self.database = database if database is not None else type(self).database
        type_name = type(self).type_name
        if type_name:
            self.doc[type(self).type_attr] = type_name
        self.after_initialize()

    def __repr__(self):
        res = '<%s %r' % (type(self).__name__, self.doc)
        if self.database is not None:
            res += ' on %s' % self.database.url
        return res + '>'

    def __getitem__(self, key):
        return self.doc[key]

    def __setitem__(self, key, value):
        self.doc[key] = value

    def __delitem__(self, key):
        del self.doc[key]

    def __iter__(self):
        return iter(self.doc)

    def __len__(self):
        return len(self.doc)

    def __eq__(self, other):
        if isinstance(other, Document):
            other = other.doc
        return self.doc == other

    def __ne__(self, other):
        return not self == other

    __hash__ = None

    def to_dict(self):
        return self.doc

    def set(self, key, value):
        self.doc[key] = value

    @property
    def id(self):
        return self.doc.get('_id')

    @id.setter
    def id(self, value):
        self.doc['_id'] = value

    @property
    def rev(self):
        return self.doc.get('_rev')

    @rev.setter
    def rev(self, value):
        self.doc['_rev'] = value

    @property
    def new_record(self):
        return not self.doc.get('_rev')

    # Only very simple callback handling, useful for allocating ids.
    def before_create(self): pass
    def after_create(self): pass
    def before_update(self): pass
    def after_update(self): pass
    def before_save(self): pass
    def after_save(self): pass
    def before_destroy(self): pass
    def after_destroy(self): pass
    def after_find(self): pass
    def after_initialize(self): pass

    def save(self):
        """Write the document to its database, updating `id` and `rev`.

        Returns:
            True. Any failure (a Conflict, a callback's exception) is raised.
        """
        database = self._require_database()
        new = self.new_record
        self.before_save()
        self.before_create() if new else self.before_update()
        result = database.put(self.doc).get('ok', False)
        self.after_create() if new else self.after_update()
        self.after_save()
        return result

    def destroy(self):
        database = self._require_database()
        self.before_destroy()
        result = database.delete(self.doc).get('ok', False)
        self.after_destroy()
        return result

    def get_attachment(self, filename):
        return self._require_database().get_attachment(self.doc, filename)

    def put_attachment(self, filename, data, content_type=None):
        return self._require_database().put_attachment(self.doc, filename, data, content_type).get('ok', False)

    def delete_attachment(self, filename):
        return self._require_database().delete_attachment(self.doc, filename).get('ok', False)

    def has_attachment(self, filename):
        return filename in self.doc.get('_attachments', {})

    def attachment_info(self, filename):
        return self.doc.get('_attachments', {}).get(filename)

    def _require_database(self):
        if self.database is None:
            raise DocumentError('%r is not associated with a database' % self)
        return self.database

Document.define_view_all()
