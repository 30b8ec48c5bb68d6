"""
Credential fallback chain: ssh-agent, then key pair, then interactive secret
"""

import logging
from typing import List, Optional

from .credentials import AgentUnavailableError, CredentialSource
from .observer import UploadObserver
from .transport import TransportSession

logger = logging.getLogger(__name__)


class AuthStrategy:
    """One path of the fallback chain."""
    
    name = "strategy"
    
    def authenticate(self, session: TransportSession, username: str,
                     source: CredentialSource, observer: UploadObserver) -> bool:
        raise NotImplementedError


class AgentStrategy(AuthStrategy):
    """Try every identity the SSH agent holds, each once."""
    
    name = "ssh-agent"
    
    def authenticate(self, session, username, source, observer):
        observer.on_message("trying to authenticate with ssh-agent")
        try:
            for identity in source.agent_identities():
                if identity.attempt(session, username):
                    observer.on_message(
                        f"authentication with username {username} and public key {identity.label} succeeded")
                    return True
                observer.on_message(
                    f"authentication with username {username} and public key {identity.label} failed")
        except AgentUnavailableError as e:
            observer.on_message(str(e))
            return False
        
        observer.on_message("no more ssh-agent identities to try")
        return False


class KeyPairStrategy(AuthStrategy):
    """Authenticate with the conventional key pair files."""
    
    name = "public key"
    
    def authenticate(self, session, username, source, observer):
        observer.on_message("ssh-agent failed or not found, trying authentication without it")
        key_pair = source.key_pair()
        observer.on_message(f"using public key: {key_pair.public_path}")
        observer.on_message(f"using private key: {key_pair.private_path}")
        
        if key_pair.attempt(session, username):
            observer.on_message("authentication by public key successful")
            return True
        observer.on_message("authentication by public key failed")
        return False


class InteractiveSecretStrategy(AuthStrategy):
    """Ask the front end for a password and try it once."""
    
    name = "password"
    
    def __init__(self):
        self.cancelled = False
    
    def authenticate(self, session, username, source, observer):
        self.cancelled = False
        observer.on_message("trying to authenticate with password")
        secret = source.request_secret(observer)
        if secret is None:
            self.cancelled = True
            observer.on_message("authentication by password cancelled")
            return False
        
        if secret.attempt(session, username):
            observer.on_message("authentication by password successful")
            return True
        observer.on_message("authentication by password failed")
        return False


def default_strategies() -> List[AuthStrategy]:
    return [AgentStrategy(), KeyPairStrategy(), InteractiveSecretStrategy()]


class Authenticator:
    """Drive the fallback chain until one path succeeds or all fail."""
    
    def __init__(self, observer: UploadObserver, strategies: Optional[List[AuthStrategy]] = None):
        self.observer = observer
        self.strategies = strategies if strategies is not None else default_strategies()
        self.succeeded_with: Optional[str] = None
    
    @property
    def cancelled(self) -> bool:
        """True when the last authenticate() call ended at a cancelled secret prompt."""
        return any(getattr(strategy, 'cancelled', False) for strategy in self.strategies)
    
    def authenticate(self, session: TransportSession, username: str,
                     credential_source: CredentialSource) -> bool:
        self.succeeded_with = None
        for strategy in self.strategies:
            if strategy.authenticate(session, username, credential_source, self.observer):
                self.succeeded_with = strategy.name
                return True
        
        logger.warning(f"All authentication methods failed for {username}")
        return False
