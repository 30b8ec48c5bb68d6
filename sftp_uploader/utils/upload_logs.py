"""
Upload run log management utilities
"""

import os
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..upload.models import RunOutcome, UploadJob
from ..upload.observer import UploadObserver

logger = logging.getLogger(__name__)

# Configuration constants
LOG_BASE = os.environ.get('LOG_BASE', os.path.expanduser('~/.sftp_uploader/logs'))
UPLOAD_LOG_DIR = os.path.join(LOG_BASE, 'upload')


class RunLogRecorder(UploadObserver):
    """Collect everything a run reports so it can be written to a run log."""
    
    def __init__(self):
        self.started = datetime.now()
        self.finished: Optional[datetime] = None
        self.messages: List[str] = []
        self.expected_chunks = 0
        self.chunks_sent = 0
    
    def on_message(self, text: str):
        self.messages.append(text)
    
    def on_expected_chunk_count(self, count: int):
        self.expected_chunks = count
    
    def on_chunk_sent(self):
        self.chunks_sent += 1
    
    def on_run_finished(self):
        self.finished = datetime.now()
    
    @property
    def duration(self) -> float:
        end = self.finished or datetime.now()
        return (end - self.started).total_seconds()


def _load_json(path):
    """Load JSON from file, return None if file doesn't exist or is invalid"""
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return None


def save_run_log(job: UploadJob, outcome: RunOutcome, recorder: RunLogRecorder,
                 log_dir: Optional[str] = None) -> Optional[str]:
    """
    Write one JSON document describing a finished run.
    
    Returns:
        Path of the written log, or None if it could not be written
    """
    log_dir = log_dir or UPLOAD_LOG_DIR
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create upload log directory {log_dir}: {e}")
        return None
    
    timestamp = recorder.started
    log_path = os.path.join(log_dir, f"upload_log_{timestamp.strftime('%Y%m%d_%H%M%S_%f')}.json")
    log_entry = {
        'timestamp': timestamp.isoformat(),
        'end_time': recorder.finished.isoformat() if recorder.finished else None,
        'duration': recorder.duration,
        'job': job.to_dict(),
        'expected_chunks': recorder.expected_chunks,
        'chunks_sent': recorder.chunks_sent,
        'messages': recorder.messages,
        'result': outcome.to_dict(),
    }
    
    try:
        with open(log_path, 'w') as f:
            json.dump(log_entry, f, indent=2)
    except OSError as e:
        logger.error(f"Failed to write upload log {log_path}: {e}")
        return None
    
    logger.debug(f"Upload run logged to: {log_path}")
    return log_path


def get_logs_manifest(log_dir: Optional[str] = None, limit: int = 50) -> Dict[str, Any]:
    """Get list of recent run logs with summary metadata"""
    log_dir = log_dir or UPLOAD_LOG_DIR
    if not os.path.exists(log_dir):
        return {"success": True, "logs": []}
    
    log_files = []
    for filename in sorted(os.listdir(log_dir), reverse=True):
        if not filename.endswith('.json'):
            continue
        log_data = _load_json(os.path.join(log_dir, filename))
        if log_data is None:
            logger.warning(f"Skipping invalid log file {filename}")
            continue
        
        result = log_data.get('result', {})
        log_files.append({
            'filename': filename,
            'timestamp': log_data.get('timestamp'),
            'local_dir': log_data.get('job', {}).get('local_dir'),
            'success': result.get('success', False),
            'stage': result.get('stage'),
            'reason': result.get('reason'),
            'duration_seconds': log_data.get('duration'),
        })
    
    return {"success": True, "logs": log_files[:limit]}
