# encoding: utf-8
"""
settee.config

Internal state
"""

import simplejson as _json
from .atoms import adict

defaults = adict({
            "url":"http://127.0.0.1:5984",
            "uuid_batch_size":100,
            "uuid_attempts":3,
            "type_attr":"type",
            "types":adict({
                "dict":adict
            }),
            "http":adict({
                "timeout":60*60,
                "headers":{
                    "Content-Type":"application/json",
                    "Accept":"application/json",
                }
            })
         })

class json(object):
    @classmethod
    def decode(cls, string, **opts):
        """Decode the given JSON string.

        :param string: the JSON string to decode
        :type string: str or bytes
        :return: the corresponding Python data structure
        :rtype: object
        """
        if isinstance(string, bytes):
            string = string.decode('utf-8')
        return _json.loads(string, object_hook=defaults.types.dict, **opts)

    @classmethod
    def encode(cls, obj, **opts):
        """Encode the given object as a JSON string.

        :param obj: the Python data structure to encode
        :type obj: object
        :return: the corresponding JSON string
        :rtype: str
        """
        obj = unwrap(obj)
        return _json.dumps(obj, allow_nan=False, ensure_ascii=False, default=_unwrap, **opts)

def unwrap(obj):
    """The plain dict inside a Document-like wrapper, or `obj` unchanged.

    Looked up on the type since adicts answer every attribute."""
    to_dict = getattr(type(obj), "to_dict", None)
    return to_dict(obj) if callable(to_dict) else obj

def _unwrap(obj):
    # Document wrappers nested inside other structures
    if callable(getattr(type(obj), "to_dict", None)):
        return obj.to_dict()
    raise TypeError('%r is not JSON serializable' % (obj,))
