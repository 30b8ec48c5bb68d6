"""
Error taxonomy for upload runs
"""

from .models import Stage


class UploadError(Exception):
    """Base class for fatal run errors. Carries the stage that failed."""
    
    stage = None
    
    def __init__(self, message: str, stage: Stage = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ConfigurationError(UploadError):
    """A required job field is empty or still holds a placeholder."""
    stage = Stage.CONFIG


class TransportConnectionError(UploadError):
    """Socket connect or SSH handshake failure."""
    stage = Stage.CONNECT


class AuthenticationError(UploadError):
    """Every credential path failed or the secret prompt was cancelled."""
    stage = Stage.AUTH


class RemoteStateError(UploadError):
    """Remote directory could not be created."""
    stage = Stage.MKDIR


class LocalIOError(UploadError):
    """Local file could not be opened or read."""
    stage = Stage.OPEN


class TransferError(UploadError):
    """Remote file could not be opened or a write failed."""
    stage = Stage.WRITE
