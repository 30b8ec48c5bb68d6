"""
Data models for upload runs
"""

import os
from dataclasses import dataclass, field
from typing import Optional, List
from enum import Enum


DEFAULT_CHUNK_SIZE = 1024 * 100
MISSING_PREFIX = "MISSING"


class Stage(Enum):
    """Workflow stage a run failed in."""
    CONFIG = "config"
    CONNECT = "connect"
    HANDSHAKE = "handshake"
    AUTH = "auth"
    MKDIR = "mkdir"
    OPEN = "open"
    WRITE = "write"


@dataclass(frozen=True)
class UploadJob:
    """Configuration for a single upload run."""
    
    # Local source
    local_dir: str
    
    # Target configuration
    server_address: str
    server_path: str
    username: str
    port: int = 22
    
    # Transfer options
    chunk_size: int = DEFAULT_CHUNK_SIZE
    connect_timeout: Optional[float] = None
    
    # Key pair fallback
    public_key_path: str = "~/.ssh/id_rsa.pub"
    private_key_path: str = "~/.ssh/id_rsa"
    key_passphrase: Optional[str] = None
    
    def missing_fields(self) -> List[str]:
        """Names of required fields that are empty or carry the sentinel marker."""
        missing = []
        for name in ('username', 'server_address', 'server_path'):
            value = getattr(self, name)
            if not value or value.startswith(MISSING_PREFIX):
                missing.append(name)
        return missing
    
    def to_dict(self) -> dict:
        """Describe the job for logs. Never includes the key passphrase."""
        return {
            'local_dir': self.local_dir,
            'server_address': self.server_address,
            'server_path': self.server_path,
            'username': self.username,
            'port': self.port,
            'chunk_size': self.chunk_size,
        }


@dataclass(frozen=True)
class RemoteSessionPath:
    """Remote directories a run writes into."""
    user_root: str
    session_dir: str
    
    @classmethod
    def for_job(cls, job: UploadJob) -> 'RemoteSessionPath':
        user_root = f"{job.server_path}/{job.username}"
        session_name = os.path.basename(os.path.normpath(job.local_dir))
        return cls(user_root=user_root, session_dir=f"{user_root}/{session_name}")
    
    def remote_file(self, filename: str) -> str:
        return f"{self.session_dir}/{filename}"


@dataclass
class TransferPlan:
    """Ordered local files to send and their aggregate size."""
    local_dir: str
    files: List[str] = field(default_factory=list)
    total_bytes: int = 0
    
    def expected_chunks(self, chunk_size: int) -> int:
        return self.total_bytes // chunk_size + 1
    
    def local_path(self, filename: str) -> str:
        return os.path.join(self.local_dir, filename)


@dataclass(frozen=True)
class RunOutcome:
    """Terminal state of a run."""
    success: bool
    stage: Optional[Stage] = None
    reason: Optional[str] = None
    
    @classmethod
    def succeeded(cls) -> 'RunOutcome':
        return cls(success=True)
    
    @classmethod
    def failed(cls, stage: Stage, reason: str) -> 'RunOutcome':
        return cls(success=False, stage=stage, reason=reason)
    
    def to_dict(self) -> dict:
        return {
            'success': self.success,
            'stage': self.stage.value if self.stage else None,
            'reason': self.reason,
        }
