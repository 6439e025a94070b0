# encoding: utf-8
"""
settee.properties

Typed accessors for document fields.

    class Person(Document):
        name = Property(str)
        age = Property(int)
        born = Property('time_as_iso8601_extended')
        address = Property(Address)     # another Document class
"""

from datetime import datetime, timezone

__all__ = ['Property', 'property_builder']

# Map a type (or type name) to a (getter, setter) pair of converters
BUILDER_MAP = {}

def property_builder(*names):
    """Register a pair of converters for one or more type names, e.g.

        @property_builder(Decimal, 'decimal')
        def decimal_converters():
            return (lambda raw: Decimal(raw), lambda val: str(val))
    """
    def register(fn):
        converters = fn()
        for name in names:
            BUILDER_MAP[name] = converters
        return fn
    return register

def _parse_time(raw):
    if raw is None:
        return None
    for fmt in ('%Y/%m/%d %H:%M:%S %z', '%Y-%m-%dT%H:%M:%SZ', '%Y%m%dT%H%M%SZ'):
        try:
            parsed = datetime.strptime(raw, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise ValueError('unrecognised time %r' % raw)

def _time_writer(fmt):
    def write(val):
        if val.tzinfo is not None:
            val = val.astimezone(timezone.utc)
        return val.strftime(fmt)
    return write

@property_builder(None, 'generic')
def _generic():
    return (lambda raw: raw, lambda val: val)

@property_builder(str, 'string')
def _string():
    return (lambda raw: '' if raw is None else str(raw), str)

@property_builder(int, 'integer')
def _integer():
    return (lambda raw: int(raw or 0), int)

@property_builder(float, 'float')
def _float():
    return (lambda raw: float(raw or 0), float)

@property_builder(datetime, 'time', 'time_as_utc_text')
def _time():
    return (_parse_time, _time_writer('%Y/%m/%d %H:%M:%S +0000'))

@property_builder('time_as_iso8601_extended')
def _time_extended():
    return (_parse_time, _time_writer('%Y-%m-%dT%H:%M:%SZ'))

@property_builder('time_as_iso8601_basic')
def _time_basic():
    return (_parse_time, _time_writer('%Y%m%dT%H%M%SZ'))


class Property(object):
    """A descriptor exposing ``doc[name]`` as an attribute, converting on the way
    in and out. The field name defaults to the attribute name, and assigning
    None always stores a null.

    Any type not in BUILDER_MAP is treated as a wrapper class: it must accept
    a dict in its constructor and have a `to_dict` method (as Documents do).
    Reading the property wraps the stored dict (creating it if missing);
    assigning anything other than an instance of that class (or None) raises
    a ValueError.
    """
    def __init__(self, kind=None, name=None):
        self.kind = kind
        self.name = name

    def __set_name__(self, owner, attr):
        if self.name is None:
            self.name = attr

    def __get__(self, obj, owner=None):
        if obj is None:
            return self
        if self.kind in BUILDER_MAP:
            reader = BUILDER_MAP[self.kind][0]
            return reader(obj.doc.get(self.name))
        return self.kind(obj.doc.setdefault(self.name, {}))

    def __set__(self, obj, value):
        if value is None:
            obj.doc[self.name] = None
        elif self.kind in BUILDER_MAP:
            writer = BUILDER_MAP[self.kind][1]
            obj.doc[self.name] = writer(value)
        elif isinstance(value, self.kind):
            obj.doc[self.name] = value.to_dict()
        else:
            raise ValueError('Expected %s, got %s' % (self.kind.__name__, type(value).__name__))
