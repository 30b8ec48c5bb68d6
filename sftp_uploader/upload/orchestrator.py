"""
Upload orchestrator - runs one upload from validation to teardown
"""

import logging
import threading
from contextlib import ExitStack
from typing import Callable, List, Optional

import paramiko

from .authenticator import Authenticator, AuthStrategy, default_strategies
from .credentials import CredentialSource
from .errors import (
    AuthenticationError,
    ConfigurationError,
    LocalIOError,
    TransportConnectionError,
    UploadError,
)
from .file_transfer import FileTransferEngine
from .models import RemoteSessionPath, RunOutcome, Stage, UploadJob
from .observer import UploadObserver
from .remote_dirs import RemoteDirectoryEnsurer
from .secret_prompt import SecretPrompt
from .transport import TransportSession
from .transport.paramiko_session import ParamikoSession

logger = logging.getLogger(__name__)

DISCONNECT_REASON = "Normal Shutdown, Thank you for playing"


def _paramiko_session(job: UploadJob) -> TransportSession:
    return ParamikoSession(job.server_address, port=job.port, timeout=job.connect_timeout)


def format_fingerprint(digest: bytes) -> str:
    return "fingerprint: " + " ".join(str(b) for b in digest)


class UploadOrchestrator:
    """Compose connect, authenticate, mkdir and transfer into one run."""
    
    def __init__(self,
                 secret_prompt: Optional[SecretPrompt] = None,
                 session_factory: Callable[[UploadJob], TransportSession] = None,
                 credential_source_factory: Callable[[UploadJob], CredentialSource] = None,
                 strategies_factory: Callable[[], List[AuthStrategy]] = None):
        self.secret_prompt = secret_prompt or SecretPrompt()
        self.session_factory = session_factory or _paramiko_session
        self.credential_source_factory = credential_source_factory or self._default_credential_source
        self.strategies_factory = strategies_factory or default_strategies
        self._stage = Stage.CONFIG
    
    def _default_credential_source(self, job: UploadJob) -> CredentialSource:
        return CredentialSource(
            secret_prompt=self.secret_prompt,
            public_key_path=job.public_key_path,
            private_key_path=job.private_key_path,
            key_passphrase=job.key_passphrase,
        )
    
    def supply_secret(self, secret: str):
        """Answer a pending secret request. An empty string cancels."""
        self.secret_prompt.supply(secret)
    
    def run(self, job: UploadJob, observer: UploadObserver) -> RunOutcome:
        """
        Execute one upload run.
        
        Always ends with an "uploadthread ending" message followed by
        exactly one on_run_finished(), whatever the outcome.
        """
        observer.on_message("uploadthread starting")
        try:
            outcome = self._run(job, observer)
        finally:
            observer.on_message("uploadthread ending")
            observer.on_run_finished()
        
        if outcome.success:
            logger.info(f"Upload of {job.local_dir} completed")
        else:
            logger.error(f"Upload of {job.local_dir} failed at {outcome.stage.value}: {outcome.reason}")
        return outcome
    
    def _run(self, job: UploadJob, observer: UploadObserver) -> RunOutcome:
        self._stage = Stage.CONFIG
        try:
            self.validate(job, observer)
        except ConfigurationError as e:
            return RunOutcome.failed(e.stage, str(e))
        
        remote = RemoteSessionPath.for_job(job)
        observer.on_message(f"target directory: {remote.session_dir}")
        
        try:
            with ExitStack() as cleanup:
                self._execute(job, observer, remote, cleanup)
            outcome = RunOutcome.succeeded()
        except UploadError as e:
            outcome = RunOutcome.failed(e.stage or self._stage, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error during {self._stage.value} stage")
            observer.on_message(f"unexpected error: {e}")
            outcome = RunOutcome.failed(self._stage, str(e))
        
        observer.on_message("all done")
        return outcome
    
    def validate(self, job: UploadJob, observer: UploadObserver):
        """Raise ConfigurationError for the first missing required field or a bad chunk size."""
        for name in job.missing_fields():
            observer.on_message(f"{name} not set, exiting")
            raise ConfigurationError(f"{name} not set")
        if job.chunk_size <= 0:
            observer.on_message(f"chunk_size must be positive, got {job.chunk_size}, exiting")
            raise ConfigurationError(f"invalid chunk_size {job.chunk_size}")
    
    def _execute(self, job: UploadJob, observer: UploadObserver,
                 remote: RemoteSessionPath, cleanup: ExitStack):
        session = self.session_factory(job)
        
        # Callbacks unwind in reverse: channel, session, then socket
        self._stage = Stage.CONNECT
        cleanup.callback(self._close_connection, session)
        try:
            session.connect()
        except OSError as e:
            observer.on_message("failed to connect(), exiting")
            raise TransportConnectionError(f"connect to {job.server_address}:{job.port} failed: {e}") from e
        observer.on_message("connection established")
        
        self._stage = Stage.HANDSHAKE
        cleanup.callback(self._disconnect_session, session)
        try:
            session.handshake()
        except (paramiko.SSHException, OSError, EOFError) as e:
            observer.on_message(f"failure establishing SSH session ({e}), exiting")
            raise TransportConnectionError(f"SSH handshake failed: {e}", stage=Stage.HANDSHAKE) from e
        observer.on_message("session established")
        observer.on_message(format_fingerprint(session.host_key_fingerprint()))
        
        self._stage = Stage.AUTH
        self._authenticate(job, observer, session)
        
        self._stage = Stage.OPEN
        try:
            channel = session.open_channel()
        except (paramiko.SSHException, OSError) as e:
            observer.on_message("unable to init SFTP session")
            raise TransportConnectionError(f"unable to open SFTP channel: {e}", stage=Stage.OPEN) from e
        cleanup.callback(channel.close)
        
        self._stage = Stage.MKDIR
        ensurer = RemoteDirectoryEnsurer(observer)
        ensurer.ensure(channel, remote.user_root)
        ensurer.ensure(channel, remote.session_dir)
        
        engine = FileTransferEngine(observer, chunk_size=job.chunk_size)
        self._stage = Stage.OPEN
        try:
            plan = engine.plan(job.local_dir)
        except OSError as e:
            observer.on_message(f"can't list local directory {job.local_dir}")
            raise LocalIOError(f"can't list local directory {job.local_dir}: {e}") from e
        observer.on_expected_chunk_count(plan.expected_chunks(job.chunk_size))
        
        self._stage = Stage.WRITE
        engine.transfer(channel, plan, remote)
    
    def _authenticate(self, job: UploadJob, observer: UploadObserver, session: TransportSession):
        source = self.credential_source_factory(job)
        try:
            authenticator = Authenticator(observer, self.strategies_factory())
            if not authenticator.authenticate(session, job.username, source):
                if authenticator.cancelled:
                    raise AuthenticationError(f"authentication cancelled for {job.username}")
                raise AuthenticationError(f"all authentication methods failed for {job.username}")
            logger.info(f"Authenticated as {job.username} via {authenticator.succeeded_with}")
        finally:
            source.close()
    
    @staticmethod
    def _disconnect_session(session: TransportSession):
        try:
            session.disconnect(DISCONNECT_REASON)
        except Exception as e:
            logger.warning(f"Error disconnecting session: {e}")
    
    @staticmethod
    def _close_connection(session: TransportSession):
        try:
            session.close()
        except OSError as e:
            logger.warning(f"Error closing connection: {e}")


class UploadWorker(threading.Thread):
    """Run one upload job on a dedicated background thread."""
    
    def __init__(self, job: UploadJob, observer: UploadObserver,
                 orchestrator: Optional[UploadOrchestrator] = None):
        super().__init__(name=f"upload-{job.username}", daemon=True)
        self.job = job
        self.observer = observer
        self.orchestrator = orchestrator or UploadOrchestrator()
        self.outcome: Optional[RunOutcome] = None
    
    def run(self):
        self.outcome = self.orchestrator.run(self.job, self.observer)
    
    def supply_secret(self, secret: str):
        """Secret-supply entry point. Callable from any thread."""
        self.orchestrator.supply_secret(secret)
