"""
Transport interfaces for upload runs
"""

from abc import ABC, abstractmethod
from typing import Optional


class RemoteFile(ABC):
    """Remote file handle opened for writing."""
    
    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write data, returning the number of bytes acknowledged (negative on failure)."""
        pass
    
    @abstractmethod
    def close(self):
        pass


class RemoteChannel(ABC):
    """File-transfer channel over an authenticated session."""
    
    @abstractmethod
    def stat(self, path: str):
        """Stat a remote path. Raises OSError when it can not be statted."""
        pass
    
    @abstractmethod
    def mkdir(self, path: str, mode: int):
        """Create a remote directory. Raises OSError on failure."""
        pass
    
    @abstractmethod
    def open_write(self, path: str, mode: int) -> RemoteFile:
        """Create or truncate a remote file. Raises OSError on failure."""
        pass
    
    @abstractmethod
    def close(self):
        pass


class TransportSession(ABC):
    """Network connection plus secure session to the upload server."""
    
    @abstractmethod
    def connect(self):
        """Open the network connection. Raises OSError on failure."""
        pass
    
    @abstractmethod
    def handshake(self):
        """Negotiate the secure session. Raises on failure."""
        pass
    
    @abstractmethod
    def host_key_fingerprint(self) -> bytes:
        """SHA-1 digest of the server host key."""
        pass
    
    @abstractmethod
    def auth_agent_key(self, username: str, key) -> bool:
        pass
    
    @abstractmethod
    def auth_key_pair(self, username: str, public_path: str, private_path: str,
                      passphrase: Optional[str] = None) -> bool:
        pass
    
    @abstractmethod
    def auth_secret(self, username: str, secret: str) -> bool:
        pass
    
    @abstractmethod
    def open_channel(self) -> RemoteChannel:
        pass
    
    @abstractmethod
    def disconnect(self, reason: str):
        """Tear down the secure session."""
        pass
    
    @abstractmethod
    def close(self):
        """Close the network connection."""
        pass
