"""
Whole-file fetch with local backup of existing targets.

fetch() downloads a remote file into local_directory/<basename> in a single
RETR. An existing local file is first renamed to <path>-<unixtime>.backup;
backups are never deleted. A failed transfer removes the partially written
local file. Every failure is returned as a TransferOutcome so a batch keeps
going past a bad file.
"""

import os
import posixpath
import time
from typing import List, Optional, Sequence, Union

from core.errors.classifiers import FtpErrorClassifier
from core.errors.exceptions import FilesystemError, FtpClientError, TransferError
from ftpfetch.models import SessionResult, TransferOutcome
from ftpfetch.observer import LoggingObserver, TransferObserver
from ftpfetch.session import Session

OPERATION = "fetch"

# One attempt, then one more after moving the existing file out of the way
MAX_FETCH_ATTEMPTS = 2


def backup_path_for(local_path: str, timestamp: Optional[int] = None) -> str:
    """
    Pick an unused backup name for local_path.

    <path>-<unixtime>.backup, or <path>-<unixtime>-<n>.backup when that name
    is already taken by an earlier backup made within the same second.
    """
    if timestamp is None:
        timestamp = int(time.time())
    candidate = f"{local_path}-{timestamp}.backup"
    n = 1
    while os.path.exists(candidate):
        candidate = f"{local_path}-{timestamp}-{n}.backup"
        n += 1
    return candidate


def _remove_partial(local_path: str, error: FtpClientError) -> None:
    if not os.path.exists(local_path):
        return
    try:
        os.remove(local_path)
    except OSError as e:
        error.context["cleanup_error"] = str(e)


def _receive(session: Session, remote_filename: str, local_path: str) -> TransferOutcome:
    transport = session.transport
    remote_dir, basename = posixpath.split(remote_filename)

    # Relative names in a batch resolve against the directory the session
    # started in, so the previous directory is restored after every file
    previous_dir = None
    try:
        if remote_dir:
            previous_dir = transport.pwd()
            transport.cwd(remote_dir)
        transport.set_binary()
        nbytes = transport.retrieve_file(basename, local_path)
    except FtpClientError as e:
        _remove_partial(local_path, e)
        if previous_dir is not None:
            try:
                transport.cwd(previous_dir)
            except FtpClientError as restore_error:
                e.context["cleanup_error"] = str(restore_error)
        return TransferOutcome.failure(remote_filename, e, local_path=local_path)

    if previous_dir is not None:
        try:
            transport.cwd(previous_dir)
        except FtpClientError as e:
            return TransferOutcome.failure(remote_filename, e, local_path=local_path)

    return TransferOutcome.success_outcome(remote_filename, local_path, nbytes)


def _fetch_one(
    session: Session,
    remote_filename: str,
    local_directory: str,
    observer: TransferObserver,
) -> TransferOutcome:
    try:
        session.require_authenticated(OPERATION)
    except FtpClientError as e:
        return TransferOutcome.failure(remote_filename, e)

    basename = posixpath.basename(remote_filename)
    if not basename:
        return TransferOutcome.failure(
            remote_filename,
            TransferError(
                f"Remote path has no file name: {remote_filename!r}",
                context={"operation": OPERATION, "remote_path": remote_filename},
            ),
        )

    local_path = os.path.join(local_directory, basename)
    backup_path = None

    for _ in range(MAX_FETCH_ATTEMPTS):
        if not os.path.exists(local_path):
            observer.transfer_started(OPERATION, remote_filename, local_path)
            outcome = _receive(session, remote_filename, local_path)
            outcome.backup_path = backup_path
            return outcome

        candidate = backup_path_for(local_path)
        try:
            os.rename(local_path, candidate)
        except OSError as e:
            error = FtpErrorClassifier.classify_local_error(e, local_path, "back up")
            return TransferOutcome.failure(remote_filename, error, local_path=local_path)
        backup_path = candidate
        observer.backup_created(local_path, backup_path)

    return TransferOutcome.failure(
        remote_filename,
        FilesystemError(
            f"Local target still exists after backup: {local_path}",
            context={"destination_path": local_path, "backup_path": backup_path},
        ),
        local_path=local_path,
        backup_path=backup_path,
    )


def fetch(
    result: SessionResult,
    remote_filename: Union[str, Sequence[str]],
    local_directory: str,
    *,
    observer: Optional[TransferObserver] = None,
) -> Union[TransferOutcome, List[TransferOutcome]]:
    """
    Fetch one remote file into local_directory.

    Args:
        result: SessionResult from connect/authenticate; a failed result is
            passed through as a failure outcome
        remote_filename: Remote path; a list of paths is fetched as a batch
        local_directory: Existing local directory to write into
        observer: Receives transfer events (default LoggingObserver)

    Returns:
        TransferOutcome, or a list of them when given a list of names
    """
    if not isinstance(remote_filename, str):
        return fetch_many(result, remote_filename, local_directory, observer=observer)

    observer = observer or LoggingObserver()
    if not result.ok:
        outcome = TransferOutcome.failure(remote_filename, result.error)
    else:
        outcome = _fetch_one(result.session, remote_filename, local_directory, observer)

    observer.transfer_finished(OPERATION, outcome)
    return outcome


def fetch_many(
    result: SessionResult,
    files: Sequence[str],
    local_directory: str,
    *,
    observer: Optional[TransferObserver] = None,
) -> List[TransferOutcome]:
    """Fetch each file in order; one outcome per name, failures included."""
    observer = observer or LoggingObserver()
    return [fetch(result, name, local_directory, observer=observer) for name in files]


__all__ = ["MAX_FETCH_ATTEMPTS", "backup_path_for", "fetch", "fetch_many"]
