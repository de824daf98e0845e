import pytest

from core.errors.exceptions import SessionStateError, TransferError
from ftpfetch.listing import list_names, split_names
from ftpfetch.session import SessionState


class TestSplitNames:

    def test_drops_empty_entries(self):
        assert list(split_names(b"a.txt\r\nb.txt\r\n\r\n")) == ["a.txt", "b.txt"]

    def test_empty_payload(self):
        assert list(split_names(b"")) == []

    def test_keeps_server_order(self):
        assert list(split_names(b"z\r\na\r\nm\r\n")) == ["z", "a", "m"]

    def test_decodes_with_encoding(self):
        assert list(split_names("café.txt\r\n".encode("latin-1"), "latin-1")) == ["café.txt"]

    def test_undecodable_bytes_replaced(self):
        assert list(split_names(b"caf\xe9.txt\r\n")) == ["caf�.txt"]


class TestListNames:

    def test_lists_current_directory(self, session, transport):
        transport.list_names.return_value = b"a.txt\r\nb.txt\r\n\r\n"

        assert list(list_names(session)) == ["a.txt", "b.txt"]
        transport.list_names.assert_called_once_with(None)

    def test_lists_given_directory(self, session, transport):
        transport.list_names.return_value = b"x.bin\r\n"

        assert list(list_names(session, "/pub")) == ["x.bin"]
        transport.list_names.assert_called_once_with("/pub")

    def test_uses_session_encoding(self, session, transport):
        transport.encoding = "latin-1"
        transport.list_names.return_value = "résumé.pdf\r\n".encode("latin-1")

        assert list(list_names(session)) == ["résumé.pdf"]

    def test_iterator_consumed_once(self, session, transport):
        transport.list_names.return_value = b"a\r\nb\r\n"

        names = list_names(session)

        assert list(names) == ["a", "b"]
        assert list(names) == []

    def test_requires_authentication(self, session, transport):
        session.state = SessionState.CONNECTED

        with pytest.raises(SessionStateError):
            list_names(session)
        transport.list_names.assert_not_called()

    def test_server_error_raised_before_iteration(self, session, transport):
        transport.list_names.side_effect = TransferError("550 Permission denied")

        with pytest.raises(TransferError):
            list_names(session)
