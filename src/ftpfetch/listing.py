"""Remote directory listing (NLST)."""

from typing import Iterator, Optional

from ftpfetch.session import Session

LINE_SEPARATOR = "\r\n"


def split_names(raw: bytes, encoding: str = "utf-8") -> Iterator[str]:
    """
    Decode an NLST payload and yield the non-empty names.

    >>> list(split_names(b"a.txt\\r\\nb.txt\\r\\n\\r\\n"))
    ['a.txt', 'b.txt']
    """
    text = raw.decode(encoding, errors="replace")
    return (name for name in text.split(LINE_SEPARATOR) if name)


def list_names(
    session: Session,
    directory: Optional[str] = None,
    encoding: Optional[str] = None,
) -> Iterator[str]:
    """
    List names in the current (or given) remote directory.

    The listing is fetched before this returns, so errors raise here rather
    than on first iteration. The returned iterator yields names in server
    order and can be consumed once.

    Raises:
        SessionStateError: Session is not authenticated
        TransferError: Server refused the listing
    """
    session.require_authenticated("list")
    raw = session.transport.list_names(directory)
    return split_names(raw, encoding or session.encoding)


__all__ = ["list_names", "split_names"]
