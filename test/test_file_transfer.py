"""
Tests for the file transfer engine
"""

import os
import shutil
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sftp_uploader.upload.errors import LocalIOError, TransferError
from sftp_uploader.upload.file_transfer import FileTransferEngine
from sftp_uploader.upload.models import RemoteSessionPath, Stage
from fakes import FakeChannel, RecordingObserver

CHUNK = 16


class TestFileTransferEngine(unittest.TestCase):
    """Test planning and chunked streaming"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.local_dir = os.path.join(self.temp_dir, 'session-7')
        os.makedirs(self.local_dir)
        self.remote = RemoteSessionPath('/srv/alice', '/srv/alice/session-7')
        self.observer = RecordingObserver()
        self.engine = FileTransferEngine(self.observer, chunk_size=CHUNK)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write(self, name, data):
        with open(os.path.join(self.local_dir, name), 'wb') as f:
            f.write(data)
        return data

    def test_plan_lists_visible_regular_files_only(self):
        self._write('b.txt', b'12345')
        self._write('a.txt', b'123')
        self._write('.hidden', b'1')
        self._write('.DS_Store', b'xx')
        os.makedirs(os.path.join(self.local_dir, 'nested'))
        self._write(os.path.join('nested', 'skip.txt'), b'x' * 100)

        plan = self.engine.plan(self.local_dir)

        self.assertEqual(plan.files, ['a.txt', 'b.txt'])
        self.assertEqual(plan.total_bytes, 8)
        self.assertEqual(plan.expected_chunks(CHUNK), 1)

    def test_plan_of_missing_directory_raises(self):
        with self.assertRaises(OSError):
            self.engine.plan(os.path.join(self.temp_dir, 'nope'))

    def test_chunk_events_per_file(self):
        self._write('a_empty', b'')
        self._write('b_exact', b'e' * CHUNK)
        self._write('c_over', b'o' * (CHUNK + 1))
        channel = FakeChannel()

        self.assertTrue(self.engine.transfer(channel, self.engine.plan(self.local_dir), self.remote))

        self.assertEqual(self.observer.count('chunk'), 1 + 1 + 2)
        self.assertEqual(channel.files['/srv/alice/session-7/a_empty'], b'')
        self.assertEqual(channel.opened[0].write_calls, 0)

    def test_round_trip_small_and_large(self):
        small = self._write('small.bin', os.urandom(CHUNK - 3))
        large = self._write('large.bin', os.urandom(CHUNK * 5 + 7))
        channel = FakeChannel()

        self.engine.transfer(channel, self.engine.plan(self.local_dir), self.remote)

        self.assertEqual(channel.files['/srv/alice/session-7/small.bin'], small)
        self.assertEqual(channel.files['/srv/alice/session-7/large.bin'], large)
        self.assertEqual(channel.modes['/srv/alice/session-7/large.bin'], 0o644)
        self.assertTrue(all(f.closed for f in channel.opened))

    def test_partial_writes_are_retried(self):
        data = self._write('data.bin', os.urandom(CHUNK * 2))
        channel = FakeChannel(max_write=5)

        self.engine.transfer(channel, self.engine.plan(self.local_dir), self.remote)

        self.assertEqual(channel.files['/srv/alice/session-7/data.bin'], data)
        self.assertEqual(self.observer.count('chunk'), 2)
        # 16 bytes in writes of at most 5: 4 calls per chunk
        self.assertEqual(channel.opened[0].write_calls, 8)

    def test_negative_write_aborts(self):
        self._write('a.bin', b'abc')
        channel = FakeChannel(write_result=-1)

        with self.assertRaises(TransferError) as ctx:
            self.engine.transfer(channel, self.engine.plan(self.local_dir), self.remote)

        self.assertEqual(ctx.exception.stage, Stage.WRITE)
        self.assertEqual(self.observer.count('chunk'), 0)
        self.assertTrue(channel.opened[0].closed)

    def test_zero_length_write_aborts(self):
        self._write('a.bin', b'abc')
        channel = FakeChannel(write_result=0)

        with self.assertRaises(TransferError) as ctx:
            self.engine.transfer(channel, self.engine.plan(self.local_dir), self.remote)

        self.assertEqual(ctx.exception.stage, Stage.WRITE)
        self.assertEqual(channel.opened[0].write_calls, 1)

    def test_remote_open_failure_aborts_all_files(self):
        self._write('a.bin', b'abc')
        self._write('b.bin', b'def')
        channel = FakeChannel(fail_open=True)

        with self.assertRaises(TransferError) as ctx:
            self.engine.transfer(channel, self.engine.plan(self.local_dir), self.remote)

        self.assertEqual(ctx.exception.stage, Stage.OPEN)
        self.assertIn('unable to open file with SFTP', self.observer.messages)
        self.assertEqual(channel.files, {})

    def test_local_open_failure_aborts(self):
        self._write('a.bin', b'abc')
        plan = self.engine.plan(self.local_dir)
        os.remove(os.path.join(self.local_dir, 'a.bin'))

        with self.assertRaises(LocalIOError) as ctx:
            self.engine.transfer(FakeChannel(), plan, self.remote)

        self.assertEqual(ctx.exception.stage, Stage.OPEN)

    def test_files_sent_in_plan_order(self):
        for name in ('c', 'a', 'b'):
            self._write(name, name.encode())
        channel = FakeChannel()

        self.engine.transfer(channel, self.engine.plan(self.local_dir), self.remote)

        self.assertEqual([f.path.rsplit('/', 1)[1] for f in channel.opened], ['a', 'b', 'c'])

    def test_invalid_chunk_size(self):
        with self.assertRaises(ValueError):
            FileTransferEngine(self.observer, chunk_size=0)


if __name__ == '__main__':
    unittest.main()
