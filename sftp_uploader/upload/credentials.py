"""
Credential variants and the source that supplies them
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

import paramiko

from .observer import UploadObserver
from .secret_prompt import SecretPrompt
from .transport import TransportSession

logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_KEY = "~/.ssh/id_rsa.pub"
DEFAULT_PRIVATE_KEY = "~/.ssh/id_rsa"


class AgentUnavailableError(Exception):
    """The SSH agent could not be reached or would not list identities."""
    pass


class Credential(ABC):
    """One authentication attempt's worth of credentials."""
    
    @abstractmethod
    def attempt(self, session: TransportSession, username: str) -> bool:
        pass


@dataclass(frozen=True)
class AgentIdentity(Credential):
    key: Any = field(repr=False)
    label: str
    
    def attempt(self, session: TransportSession, username: str) -> bool:
        return session.auth_agent_key(username, self.key)


@dataclass(frozen=True)
class KeyPair(Credential):
    public_path: str
    private_path: str
    passphrase: Optional[str] = field(default=None, repr=False)
    
    def attempt(self, session: TransportSession, username: str) -> bool:
        return session.auth_key_pair(username, self.public_path, self.private_path, self.passphrase)


@dataclass(frozen=True)
class Secret(Credential):
    value: str = field(repr=False)
    
    def attempt(self, session: TransportSession, username: str) -> bool:
        return session.auth_secret(username, self.value)


def _key_label(key) -> str:
    comment = getattr(key, 'comment', '')
    if isinstance(comment, bytes):
        comment = comment.decode('utf-8', errors='replace')
    if comment:
        return comment
    return getattr(key, 'fingerprint', None) or key.get_name()


class CredentialSource:
    """Supplies agent identities, the conventional key pair and interactive secrets."""
    
    def __init__(self, secret_prompt: Optional[SecretPrompt] = None,
                 public_key_path: str = DEFAULT_PUBLIC_KEY,
                 private_key_path: str = DEFAULT_PRIVATE_KEY,
                 key_passphrase: Optional[str] = None,
                 agent_factory: Callable[[], Any] = paramiko.Agent):
        self.secret_prompt = secret_prompt or SecretPrompt()
        self.public_key_path = public_key_path
        self.private_key_path = private_key_path
        self._key_passphrase = key_passphrase
        self._agent_factory = agent_factory
        self._agent = None
    
    def agent_identities(self) -> Iterator[AgentIdentity]:
        """
        Yield the identities held by the SSH agent.
        
        Raises:
            AgentUnavailableError: If the agent can not be connected to or
                does not list its identities
        """
        try:
            self._agent = self._agent_factory()
        except (paramiko.SSHException, OSError) as e:
            raise AgentUnavailableError(f"failure connecting to ssh-agent: {e}") from e
        
        try:
            keys = self._agent.get_keys()
        except (paramiko.SSHException, OSError) as e:
            raise AgentUnavailableError(f"failure requesting identities to ssh-agent: {e}") from e
        
        for key in keys:
            yield AgentIdentity(key=key, label=_key_label(key))
    
    def key_pair(self) -> KeyPair:
        return KeyPair(
            public_path=os.path.expanduser(self.public_key_path),
            private_path=os.path.expanduser(self.private_key_path),
            passphrase=self._key_passphrase,
        )
    
    def request_secret(self, observer: UploadObserver) -> Optional[Secret]:
        """Block until the front end supplies a secret. None means cancelled."""
        value = self.secret_prompt.request(observer)
        if value is None:
            return None
        return Secret(value=value)
    
    def close(self):
        """Release the agent connection, if one was opened."""
        if self._agent is not None:
            try:
                self._agent.close()
            finally:
                self._agent = None
