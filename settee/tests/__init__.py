#!/usr/bin/env python
# encoding: utf-8
"""
settee.tests
"""

import unittest
from settee.tests import test_package, test_io, test_couchdb, test_uuids, \
                         test_design, test_document, test_bulk, test_properties

def suite():
    suite = unittest.TestSuite()
    suite.addTest(test_package.suite())
    suite.addTest(test_io.suite())
    suite.addTest(test_couchdb.suite())
    suite.addTest(test_uuids.suite())
    suite.addTest(test_design.suite())
    suite.addTest(test_document.suite())
    suite.addTest(test_bulk.suite())
    suite.addTest(test_properties.suite())
    return suite


if __name__ == '__main__':
    unittest.main(defaultTest='suite')
