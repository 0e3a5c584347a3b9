"""Custom exception classes for the Fragments service."""


class FragmentsException(Exception):
    """
    Base exception class for all fragment-related errors.
    """
    pass


class FragmentValidationError(FragmentsException):
    """
    Raised when a fragment is built or written with invalid arguments.
    """
    pass


class UnsupportedContentTypeError(FragmentValidationError):
    """
    Raised when a content type is missing, unparseable or not supported.
    """
    pass


class TypeMismatchError(FragmentValidationError):
    """
    Raised when replacement data does not match the fragment's base mime type.
    """
    pass


class FragmentNotFoundError(FragmentsException):
    """
    Raised when no metadata exists for an (owner_id, id) pair.
    """

    def __init__(self, owner_id: str, fragment_id: str):
        self.owner_id = owner_id
        self.fragment_id = fragment_id
        super().__init__(f"fragment {fragment_id} not found")


class ConversionUnsupportedError(FragmentsException):
    """
    Raised when a fragment cannot be converted to the requested extension.
    """

    def __init__(self, content_type: str, extension: str):
        self.content_type = content_type
        self.extension = extension
        super().__init__(f"cannot convert {content_type} to {extension}")


class ConversionError(FragmentsException):
    """
    Raised when a supported conversion fails on the stored payload.
    """
    pass


class StorageFailureError(FragmentsException):
    """
    Raised when a metadata or blob store call fails, or when a blob
    expected by its metadata record cannot be read.
    """
    pass


class ConfigurationError(FragmentsException):
    """
    Raised when the storage backend configuration is incomplete or the
    supported-type tables disagree.
    """
    pass
