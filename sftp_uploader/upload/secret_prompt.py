"""
Single-slot rendezvous for the interactively supplied secret
"""

import logging
import threading
from typing import Optional

from .observer import UploadObserver

logger = logging.getLogger(__name__)


class SecretPrompt:
    """
    Lets the upload worker block until another thread supplies a secret.
    
    The worker calls request(); the front end is told through
    on_secret_requested() and answers with supply(). An empty answer
    cancels the prompt.
    """
    
    def __init__(self):
        self._condition = threading.Condition()
        self._secret: Optional[str] = None
        self._waiting = False
    
    @property
    def waiting(self) -> bool:
        with self._condition:
            return self._waiting
    
    def request(self, observer: UploadObserver, timeout: Optional[float] = None) -> Optional[str]:
        """
        Ask the observer for a secret and block until it is supplied.
        
        Returns:
            The secret, or None when the prompt was cancelled or timed out
        """
        with self._condition:
            self._secret = None
            self._waiting = True
        
        # Notify outside the lock so a front end may answer synchronously
        observer.on_secret_requested()
        
        with self._condition:
            supplied = self._condition.wait_for(lambda: self._secret is not None, timeout=timeout)
            secret = self._secret
            self._secret = None
            self._waiting = False
        
        if not supplied or not secret:
            logger.debug("Secret prompt cancelled")
            return None
        return secret
    
    def supply(self, secret: str):
        """Hand a secret to the waiting worker. Safe to call from any thread."""
        with self._condition:
            self._secret = secret or ""
            self._condition.notify_all()
