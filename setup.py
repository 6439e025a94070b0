#!/usr/bin/env python
from setuptools import setup
import codecs
import re

VERSION = re.search(r"__version__ = '([^']+)'",
                    codecs.open('settee/__init__.py', encoding='utf-8').read()).group(1)
README = codecs.open('README.rst', encoding='utf-8').read()
setup(
    name='settee',
    version=VERSION,
    packages=['settee', 'settee.tests'],
    license='BSD',
    description='A CouchDB client with typed documents, bulk saves and streamed views',
    long_description=README,
    install_requires=['requests', 'simplejson'],
    extras_require={'test':['pytest']},
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Database :: Front-Ends',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ]
)
