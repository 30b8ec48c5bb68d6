"""
Tests for observer implementations
"""

import logging
import unittest
from unittest.mock import MagicMock
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sftp_uploader.upload.observer import LoggingObserver, ObserverChain
from fakes import RecordingObserver


class TestObserverChain(unittest.TestCase):

    def test_fans_out_in_order(self):
        first, second = RecordingObserver(), RecordingObserver()
        chain = ObserverChain(first, second)

        chain.on_message('hello')
        chain.on_expected_chunk_count(2)
        chain.on_chunk_sent()
        chain.on_run_finished()

        expected = [('message', 'hello'), ('expected', 2), ('chunk',), ('finished',)]
        self.assertEqual(first.events, expected)
        self.assertEqual(second.events, expected)

    def test_failing_observer_does_not_block_others(self):
        broken = MagicMock()
        broken.on_message.side_effect = RuntimeError('boom')
        recorder = RecordingObserver()

        with self.assertLogs('sftp_uploader.upload.observer', level='ERROR'):
            ObserverChain(broken, recorder).on_message('hi')

        self.assertEqual(recorder.messages, ['hi'])


class TestLoggingObserver(unittest.TestCase):

    def test_messages_are_logged(self):
        log = logging.getLogger('test.upload')
        observer = LoggingObserver(log)
        with self.assertLogs('test.upload', level='INFO') as cm:
            observer.on_message('connection established')
        self.assertIn('connection established', cm.output[0])

    def test_counts_chunks(self):
        observer = LoggingObserver()
        observer.on_expected_chunk_count(4)
        observer.on_chunk_sent()
        observer.on_chunk_sent()
        self.assertEqual((observer.chunks_sent, observer.expected_chunks), (2, 4))


if __name__ == '__main__':
    unittest.main()
