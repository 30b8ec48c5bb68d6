"""
Observer interface for upload runs

The observer is the only point of contact between the upload worker and
whatever front end displays messages and progress.
"""

import logging
from typing import List

logger = logging.getLogger(__name__)


class UploadObserver:
    """Sink for run messages, progress and secret requests. Methods default to no-ops."""
    
    def on_message(self, text: str):
        pass
    
    def on_expected_chunk_count(self, count: int):
        pass
    
    def on_chunk_sent(self):
        pass
    
    def on_secret_requested(self):
        pass
    
    def on_run_finished(self):
        pass


class LoggingObserver(UploadObserver):
    """Forward run messages to the standard logger."""
    
    def __init__(self, log: logging.Logger = None):
        self.log = log or logger
        self.chunks_sent = 0
        self.expected_chunks = 0
    
    def on_message(self, text: str):
        self.log.info(text)
    
    def on_expected_chunk_count(self, count: int):
        self.expected_chunks = count
        self.log.info(f"Expecting {count} chunks")
    
    def on_chunk_sent(self):
        self.chunks_sent += 1
        self.log.debug(f"Chunk {self.chunks_sent}/{self.expected_chunks} sent")
    
    def on_secret_requested(self):
        self.log.info("Secret requested")
    
    def on_run_finished(self):
        self.log.info("Upload run finished")


class ObserverChain(UploadObserver):
    """Fan events out to several observers in registration order."""
    
    def __init__(self, *observers: UploadObserver):
        self._observers: List[UploadObserver] = list(observers)
    
    def _notify(self, method: str, *args):
        for observer in self._observers:
            try:
                getattr(observer, method)(*args)
            except Exception as e:
                logger.error(f"Observer callback {method} failed: {e}")
    
    def on_message(self, text: str):
        self._notify('on_message', text)
    
    def on_expected_chunk_count(self, count: int):
        self._notify('on_expected_chunk_count', count)
    
    def on_chunk_sent(self):
        self._notify('on_chunk_sent')
    
    def on_secret_requested(self):
        self._notify('on_secret_requested')
    
    def on_run_finished(self):
        self._notify('on_run_finished')
