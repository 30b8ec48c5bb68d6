"""
Remote directory ensurer
"""

import logging

from .errors import RemoteStateError
from .observer import UploadObserver
from .transport import RemoteChannel

logger = logging.getLogger(__name__)

# rwxr-xr-x
DIRECTORY_MODE = 0o755


class RemoteDirectoryEnsurer:
    """Make sure a remote directory exists, creating it when the stat fails."""
    
    def __init__(self, observer: UploadObserver, mode: int = DIRECTORY_MODE):
        self.observer = observer
        self.mode = mode
    
    def ensure(self, channel: RemoteChannel, path: str) -> bool:
        """
        Ensure a remote directory exists.
        
        Any stat failure is treated as "absent" and creation is attempted.
        
        Returns:
            True when the directory existed or was created
            
        Raises:
            RemoteStateError: If the directory could not be created
        """
        try:
            channel.stat(path)
        except OSError as e:
            logger.debug(f"stat {path} failed: {e}")
        else:
            self.observer.on_message(f"server path {path} exists")
            return True
        
        self.observer.on_message(f"server path {path} does not exist, creating it")
        try:
            channel.mkdir(path, self.mode)
        except OSError as e:
            self.observer.on_message(f"creating {path} failed: {e}")
            raise RemoteStateError(f"unable to create remote directory {path}: {e}") from e
        return True
