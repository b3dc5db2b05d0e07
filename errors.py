"""
pb Errors

Every failure the tool reports derives from PbError. The CLI prints
`pb: <error>` and exits with status 1 for any of them.
"""


class PbError(Exception):
    """Base class for all pb failures."""


class UsageError(PbError):
    """A required command argument is missing."""


class ParseError(PbError):
    """Exception raised when proto files fail to load, with line/column info."""
    def __init__(self, message: str, line: int = None, column: int = None, file_path: str = None,
                 diagnostics: list[str] = None):
        self.line = line
        self.column = column
        self.file_path = file_path
        self.diagnostics = diagnostics or []
        super().__init__(message)

    def __str__(self):
        location = ""
        if self.file_path:
            location = f"{self.file_path}:"
        if self.line is not None:
            location += f"{self.line}:"
            if self.column is not None:
                location += f"{self.column}:"
        if location:
            return f"failed to parse proto files: {location} {self.args[0]}"
        return f"failed to parse proto files: {self.args[0]}"


class ResolveError(PbError):
    """The requested message type is not declared in the loaded files."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"failed to resolve message: unknown message type \"{name}\"")


class InputError(PbError):
    """Reading stdin failed, or its base64 content is malformed."""


class DecodeError(PbError):
    """The input bytes violate the wire format of the resolved message."""


class SerializeError(PbError):
    """The decoded message could not be marshaled to JSON."""
