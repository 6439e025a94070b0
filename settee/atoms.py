# encoding: utf-8
"""
settee.atoms

Little dicts with big ambitions.
"""

__all__ = ['adict']

class adict(dict):
    """A dict whose keys can also be read and written as attributes.

    Missing attributes evaluate to None rather than raising, which keeps
    ``row.doc`` and friends pleasant to use on view results.
    """
    def __getattr__(self, attr):
        if attr.startswith('__'):
            raise AttributeError(attr)
        return self.get(attr)

    def __setattr__(self, attr, value):
        self[attr] = value

    def __delattr__(self, attr):
        try:
            del self[attr]
        except KeyError:
            raise AttributeError(attr)

    def __repr__(self):
        return '<adict %s>' % dict.__repr__(self)
