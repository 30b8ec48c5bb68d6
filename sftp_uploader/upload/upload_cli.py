"""
Console front end for upload runs
"""

import argparse
import getpass
import logging
import sys
import threading

import yaml

from .observer import LoggingObserver, ObserverChain, UploadObserver
from .orchestrator import UploadWorker
from ..utils.config_loader import build_job, load_preferences
from ..utils.upload_logs import RunLogRecorder, save_run_log

logger = logging.getLogger(__name__)


class ConsoleObserver(UploadObserver):
    """Print run messages and a chunk counter; flag secret requests for the main thread."""
    
    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stdout
        self.expected_chunks = 0
        self.chunks_sent = 0
        self._progress_line = False
        self.secret_requested = threading.Event()
        self.finished = threading.Event()
    
    def on_message(self, text: str):
        if self._progress_line:
            self.stream.write("\n")
            self._progress_line = False
        print(text, file=self.stream)
    
    def on_expected_chunk_count(self, count: int):
        self.expected_chunks = count
    
    def on_chunk_sent(self):
        self.chunks_sent += 1
        self.stream.write(f"\rsent {self.chunks_sent}/{self.expected_chunks} chunks")
        self._progress_line = True
        self.stream.flush()
    
    def on_secret_requested(self):
        self.secret_requested.set()
    
    def on_run_finished(self):
        self.finished.set()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='sftp-upload',
        description='Upload a local directory to <server_path>/<username>/<dirname> over SFTP')
    parser.add_argument('local_dir', help='Directory whose files are uploaded')
    parser.add_argument('--config', help='Path to config.yaml')
    parser.add_argument('--username', help='Remote username')
    parser.add_argument('--server-address', help='Server host name or address')
    parser.add_argument('--server-path', help='Base remote path')
    parser.add_argument('--port', type=int, help='SSH port (default 22)')
    parser.add_argument('--chunk-size', type=int, help='Bytes per write (default 102400)')
    parser.add_argument('--log-dir', help='Directory for JSON run logs')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser.parse_args(argv)


def run_upload(job, console: ConsoleObserver, log_dir=None, prompt=getpass.getpass, orchestrator=None):
    """Run a job on a worker thread, answering secret requests from this thread."""
    recorder = RunLogRecorder()
    worker = UploadWorker(job, ObserverChain(console, recorder, LoggingObserver()), orchestrator=orchestrator)
    worker.start()
    
    while not console.finished.is_set():
        if console.secret_requested.wait(timeout=0.1):
            console.secret_requested.clear()
            try:
                secret = prompt(f"Password for {job.username}@{job.server_address}: ")
            except (EOFError, KeyboardInterrupt):
                secret = ""
            worker.supply_secret(secret)
    
    worker.join()
    save_run_log(job, worker.outcome, recorder, log_dir=log_dir)
    return worker.outcome


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    
    try:
        preferences = load_preferences(args.config)
    except FileNotFoundError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except yaml.YAMLError as e:
        print(f"❌ Invalid configuration file: {e}", file=sys.stderr)
        return 1
    
    overrides = {
        'username': args.username,
        'server_address': args.server_address,
        'server_path': args.server_path,
        'port': args.port,
        'chunk_size': args.chunk_size,
        'log_dir': args.log_dir,
    }
    preferences.update({k: v for k, v in overrides.items() if v is not None})
    
    try:
        job = build_job(args.local_dir, preferences)
    except (TypeError, ValueError) as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 1
    
    outcome = run_upload(job, ConsoleObserver(), log_dir=preferences.get('log_dir'))
    if outcome.success:
        print("✅ Upload complete")
        return 0
    print(f"❌ Upload failed during {outcome.stage.value}: {outcome.reason}", file=sys.stderr)
    return 1


if __name__ == '__main__':
    sys.exit(main())
