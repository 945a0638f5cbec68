import logging
import random
import streamsplit
import string
import unittest

from streamsplit.lib.tools import splitat


__all__ = ['streamsplit', 'TestBase']


class TestBase(unittest.TestCase):

    def generate_random_buffer(self, size, alphabet=None):
        if alphabet is None:
            return bytes(random.randrange(0, 0x100) for _ in range(size))
        return bytes(random.choice(alphabet) for _ in range(size))

    def generate_random_text(self, size):
        return ''.join(string.printable[
            random.randrange(0, len(string.printable))] for _ in range(size)).encode('UTF8')

    def generate_random_chunking(self, data, cuts=None):
        if cuts is None:
            cuts = random.randrange(0, len(data) + 1)
        return splitat(data, *(random.randrange(0, len(data) + 1) for _ in range(cuts)))

    def setUp(self):
        random.seed(0xBAADF00D)  # guarantee deterministic 'random' buffers
        logging.disable(logging.CRITICAL)

    def assertContains(self, container, member, msg=None):
        self.assertIn(member, container, msg)
