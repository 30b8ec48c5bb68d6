"""
Tests for the secret prompt rendezvous between worker and front end
"""

import threading
import unittest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sftp_uploader.upload.secret_prompt import SecretPrompt
from fakes import RecordingObserver


class TestSecretPrompt(unittest.TestCase):
    """Test SecretPrompt cross-thread hand-off"""

    def test_secret_supplied_from_other_thread(self):
        prompt = SecretPrompt()
        observer = RecordingObserver()
        result = {}

        def worker():
            result['secret'] = prompt.request(observer, timeout=5)

        thread = threading.Thread(target=worker)
        thread.start()
        for _ in range(500):
            if prompt.waiting and observer.count('secret_requested'):
                break
            threading.Event().wait(0.01)
        prompt.supply('s3cret')
        thread.join(timeout=5)

        self.assertFalse(thread.is_alive())
        self.assertEqual(result['secret'], 's3cret')
        self.assertEqual(observer.count('secret_requested'), 1)
        self.assertFalse(prompt.waiting)

    def test_empty_secret_cancels(self):
        prompt = SecretPrompt()
        observer = RecordingObserver(secret='')
        observer.prompt = prompt
        self.assertIsNone(prompt.request(observer, timeout=5))

    def test_synchronous_supply_is_not_lost(self):
        prompt = SecretPrompt()
        observer = RecordingObserver(secret='pw')
        observer.prompt = prompt
        self.assertEqual(prompt.request(observer, timeout=5), 'pw')

    def test_cancel_from_other_thread(self):
        prompt = SecretPrompt()
        observer = RecordingObserver()
        timer = threading.Timer(0.05, prompt.supply, args=('',))
        timer.start()
        self.assertIsNone(prompt.request(observer, timeout=5))
        timer.join()

    def test_timeout_returns_none(self):
        prompt = SecretPrompt()
        self.assertIsNone(prompt.request(RecordingObserver(), timeout=0.01))

    def test_stale_secret_is_not_reused(self):
        prompt = SecretPrompt()
        prompt.supply('old')
        self.assertIsNone(prompt.request(RecordingObserver(), timeout=0.01))


if __name__ == '__main__':
    unittest.main()
