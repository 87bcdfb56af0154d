from pathlib import Path


class LocresError(Exception):
    pass


class ParseError(LocresError):
    def __init__(
        self,
        message: str,
        file_path: str | Path,
        line: int | None = None,
        position: int | None = None,
    ) -> None:
        self.message = message
        self.file_path = str(file_path)
        self.line = line
        self.position = position
        super().__init__(str(self))

    def __str__(self) -> str:
        location = self.file_path
        if self.line is not None:
            location += f":{self.line}"
            if self.position is not None:
                location += f":{self.position}"
        return f"{location}: {self.message}"


class NotFoundError(LocresError):
    pass


class AlreadyExistsError(LocresError):
    pass


class UnsupportedFormatError(NotFoundError):
    pass


class CancelledError(LocresError):
    pass


class TranslationError(LocresError):
    """Raised by a translation provider when it cannot translate a request."""
