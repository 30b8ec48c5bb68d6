"""
paramiko-backed transport session and SFTP channel
"""

import hashlib
import logging
import os
import socket
from typing import Optional

import paramiko

from . import TransportSession, RemoteChannel, RemoteFile

logger = logging.getLogger(__name__)


class ParamikoRemoteFile(RemoteFile):
    """Remote file opened through an SFTP client."""
    
    def __init__(self, sftp_file: paramiko.SFTPFile):
        self._file = sftp_file
    
    def write(self, data: bytes) -> int:
        # SFTPFile.write either sends the whole buffer or raises IOError
        self._file.write(data)
        return len(data)
    
    def close(self):
        self._file.close()


class ParamikoChannel(RemoteChannel):
    """SFTP channel over a paramiko transport."""
    
    def __init__(self, sftp: paramiko.SFTPClient):
        self._sftp = sftp
    
    def stat(self, path: str):
        return self._sftp.stat(path)
    
    def mkdir(self, path: str, mode: int):
        self._sftp.mkdir(path, mode)
    
    def open_write(self, path: str, mode: int) -> RemoteFile:
        sftp_file = self._sftp.open(path, 'wb')
        try:
            sftp_file.chmod(mode)
        except IOError:
            sftp_file.close()
            raise
        sftp_file.set_pipelined(True)
        return ParamikoRemoteFile(sftp_file)
    
    def close(self):
        self._sftp.close()


class ParamikoSession(TransportSession):
    """Blocking SSH session to the upload server."""
    
    def __init__(self, host: str, port: int = 22, timeout: Optional[float] = None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._sock: Optional[socket.socket] = None
        self._transport: Optional[paramiko.Transport] = None
    
    def connect(self):
        logger.debug(f"Connecting to {self.host}:{self.port}")
        self._sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        # Blocking I/O from here on
        self._sock.settimeout(None)
    
    def handshake(self):
        if self._sock is None:
            raise paramiko.SSHException("Not connected")
        self._transport = paramiko.Transport(self._sock)
        if self.timeout is not None:
            self._transport.banner_timeout = self.timeout
        self._transport.start_client(timeout=self.timeout)
    
    def host_key_fingerprint(self) -> bytes:
        key = self._transport.get_remote_server_key()
        return hashlib.sha1(key.asbytes()).digest()
    
    def _authenticated(self) -> bool:
        return self._transport is not None and self._transport.is_authenticated()
    
    def auth_agent_key(self, username: str, key) -> bool:
        try:
            self._transport.auth_publickey(username, key)
        except paramiko.SSHException as e:
            logger.debug(f"Agent key authentication failed: {e}")
            return False
        return self._authenticated()
    
    def auth_key_pair(self, username: str, public_path: str, private_path: str,
                      passphrase: Optional[str] = None) -> bool:
        # Passphrase goes positionally: the keyword name differs across paramiko releases
        try:
            pkey = paramiko.PKey.from_path(os.path.expanduser(private_path), passphrase)
        except Exception as e:
            logger.warning(f"Could not load private key {private_path}: {e}")
            return False
        
        try:
            self._transport.auth_publickey(username, pkey)
        except paramiko.SSHException as e:
            logger.debug(f"Key pair authentication failed: {e}")
            return False
        return self._authenticated()
    
    def auth_secret(self, username: str, secret: str) -> bool:
        try:
            self._transport.auth_password(username, secret)
        except paramiko.SSHException as e:
            logger.debug(f"Password authentication failed: {e}")
            return False
        return self._authenticated()
    
    def open_channel(self) -> RemoteChannel:
        sftp = paramiko.SFTPClient.from_transport(self._transport)
        if sftp is None:
            raise paramiko.SSHException("Unable to open SFTP channel")
        return ParamikoChannel(sftp)
    
    def disconnect(self, reason: str):
        if self._transport is not None:
            logger.debug(f"Disconnecting: {reason}")
            self._transport.close()
            self._transport = None
    
    def close(self):
        if self._sock is not None:
            self._sock.close()
            self._sock = None
