"""
Tests for the remote directory ensurer
"""

import unittest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sftp_uploader.upload.errors import RemoteStateError
from sftp_uploader.upload.models import Stage
from sftp_uploader.upload.remote_dirs import RemoteDirectoryEnsurer
from fakes import FakeChannel, RecordingObserver


class TestRemoteDirectoryEnsurer(unittest.TestCase):
    """Test remote directory creation"""

    def setUp(self):
        self.observer = RecordingObserver()
        self.ensurer = RemoteDirectoryEnsurer(self.observer)

    def test_existing_directory_is_reported(self):
        channel = FakeChannel(existing_dirs={'/srv/alice'})
        self.assertTrue(self.ensurer.ensure(channel, '/srv/alice'))
        self.assertEqual(channel.mkdir_calls, [])
        self.assertIn('server path /srv/alice exists', self.observer.messages)

    def test_missing_directory_is_created_with_755(self):
        channel = FakeChannel()
        self.assertTrue(self.ensurer.ensure(channel, '/srv/alice'))
        self.assertEqual(channel.mkdir_calls, [('/srv/alice', 0o755)])
        self.assertIn('server path /srv/alice does not exist, creating it', self.observer.messages)

    def test_ensure_is_idempotent(self):
        channel = FakeChannel()
        self.ensurer.ensure(channel, '/srv/alice')
        self.ensurer.ensure(channel, '/srv/alice')
        self.assertEqual(len(channel.mkdir_calls), 1)
        self.assertEqual(self.observer.messages.count('server path /srv/alice exists'), 1)

    def test_creation_failure_raises(self):
        channel = FakeChannel(fail_mkdir=True)
        with self.assertRaises(RemoteStateError) as ctx:
            self.ensurer.ensure(channel, '/srv/alice')
        self.assertEqual(ctx.exception.stage, Stage.MKDIR)


if __name__ == '__main__':
    unittest.main()
