"""
File transfer engine: plan the upload, then stream each file in chunks
"""

import logging
import os

from .errors import LocalIOError, TransferError
from .models import DEFAULT_CHUNK_SIZE, RemoteSessionPath, Stage, TransferPlan
from .observer import UploadObserver
from .transport import RemoteChannel

logger = logging.getLogger(__name__)

# rw-r--r--
FILE_MODE = 0o644


class FileTransferEngine:
    """Send the regular files of one local directory, chunk by chunk."""
    
    def __init__(self, observer: UploadObserver, chunk_size: int = DEFAULT_CHUNK_SIZE,
                 file_mode: int = FILE_MODE):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.observer = observer
        self.chunk_size = chunk_size
        self.file_mode = file_mode
    
    def plan(self, local_dir: str) -> TransferPlan:
        """
        Enumerate the regular files directly inside local_dir and sum their sizes.
        
        Hidden files and sub-directories are skipped. Files are ordered by name.
        """
        files = []
        total = 0
        with os.scandir(local_dir) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                if entry.name.startswith('.') or not entry.is_file():
                    continue
                files.append(entry.name)
                total += entry.stat().st_size
        
        logger.debug(f"Planned {len(files)} files, {total} bytes from {local_dir}")
        return TransferPlan(local_dir=local_dir, files=files, total_bytes=total)
    
    def transfer(self, channel: RemoteChannel, plan: TransferPlan, remote: RemoteSessionPath) -> bool:
        """
        Send every planned file in order. The first failure aborts the run.
        
        Raises:
            LocalIOError: If a local file can not be opened
            TransferError: If a remote file can not be opened or written
        """
        for filename in plan.files:
            self.send_file(channel, plan.local_path(filename), remote.remote_file(filename))
        return True
    
    def send_file(self, channel: RemoteChannel, local_path: str, remote_path: str):
        try:
            local = open(local_path, 'rb')
        except OSError as e:
            self.observer.on_message(f"can't open local file {local_path}")
            raise LocalIOError(f"can't open local file {local_path}: {e}") from e
        
        with local:
            self.observer.on_message(f"opened local file {local_path}")
            self.observer.on_message(f"opening remote file {remote_path}")
            try:
                remote_file = channel.open_write(remote_path, self.file_mode)
            except OSError as e:
                self.observer.on_message("unable to open file with SFTP")
                raise TransferError(f"unable to open remote file {remote_path}: {e}", stage=Stage.OPEN) from e
            
            try:
                self.observer.on_message("remote file open, now sending data")
                self._stream(local, remote_file, local_path, remote_path)
            finally:
                remote_file.close()
        
        self.observer.on_message("data sent successfully")
    
    def _stream(self, local, remote_file, local_path: str, remote_path: str):
        chunks = 0
        while True:
            try:
                chunk = local.read(self.chunk_size)
            except OSError as e:
                raise LocalIOError(f"reading {local_path} failed: {e}") from e
            if not chunk:
                break
            
            self._write_chunk(remote_file, chunk, remote_path)
            chunks += 1
            self.observer.on_chunk_sent()
        
        # An empty file still gets its single terminal progress event
        if chunks == 0:
            self.observer.on_chunk_sent()
    
    def _write_chunk(self, remote_file, chunk: bytes, remote_path: str):
        view = memoryview(chunk)
        while view:
            try:
                written = remote_file.write(view.tobytes())
            except OSError as e:
                raise TransferError(f"writing {remote_path} failed: {e}") from e
            if written <= 0:
                self.observer.on_message(f"write to {remote_path} failed ({written})")
                raise TransferError(f"writing {remote_path} failed ({written})")
            view = view[written:]
