"""Error taxonomy for the submission pipeline.

Validation problems are plain error lists (see validation_service). Decode
errors are user-correctable and end up in the response envelope. Storage,
persistence and configuration errors are operational and only reach the
client as a generic message.
"""


class SignpadError(Exception):
    pass


class DecodeError(SignpadError):
    MALFORMED_DATA_URL = "malformed_data_url"
    UNSUPPORTED_MIME = "unsupported_mime"
    OVERSIZE = "oversize"
    CORRUPT_IMAGE = "corrupt_image"
    INVALID_SVG = "invalid_svg"
    NO_FORMATS = "no_formats"

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class StorageError(SignpadError):
    pass


class PersistenceError(SignpadError):
    pass


class ConfigurationError(SignpadError):
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
