"""
Protocol definitions (interfaces) for the sharing subsystem's collaborators.

Protocols define contracts that services must fulfill, enabling:
- Duck typing with static type checking
- Dependency inversion (depend on abstractions, not concretions)
- Easy mocking in tests

Available Protocols:
    EmailSender: Email sending interface
    FileStore: Read-side access to stored files

Usage:
    from toolkit.protocols import EmailSender

    class RecordingSender:
        def __init__(self):
            self.outbox = []

        def send(self, to, subject, body_text, body_html=None, **kwargs) -> bool:
            self.outbox.append((to, subject))
            return True

    sender: EmailSender = RecordingSender()

Note:
    - @runtime_checkable allows isinstance() checks
    - For generic infrastructure protocols (Clock), see core.protocols
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import uuid
    from typing import Any, BinaryIO

    from media.services.file_store import FileMetadata


@runtime_checkable
class EmailSender(Protocol):
    """
    Protocol for email sending services.

    Implemented by toolkit.services.email.EmailService.
    """

    def send(
        self,
        to: str | list[str],
        subject: str,
        body_text: str,
        body_html: str | None = None,
        **kwargs: Any,
    ) -> bool:
        """
        Send email.

        Args:
            to: Recipient email address(es)
            subject: Email subject
            body_text: Plain text body
            body_html: HTML body (optional)
            **kwargs: Additional options (from_email, reply_to, etc.)

        Returns:
            True if email was sent successfully
        """
        ...


@runtime_checkable
class FileStore(Protocol):
    """
    Protocol for the file storage collaborator.

    The sharing subsystem only needs to look files up and read their
    bytes; upload and deletion live elsewhere.

    Implemented by media.services.file_store.MediaFileStore.
    """

    def get_file_metadata(self, file_id: uuid.UUID) -> FileMetadata | None:
        """
        Look up a stored file.

        Args:
            file_id: Identifier of the file

        Returns:
            FileMetadata, or None when no such file exists
        """
        ...

    def read_file_stream(self, file_id: uuid.UUID) -> BinaryIO:
        """
        Open the file's content for reading.

        Args:
            file_id: Identifier of the file

        Returns:
            Binary file object; the caller closes it

        Raises:
            NotFoundError: If the file does not exist
        """
        ...
