"""Exception hierarchy for the TD4 emulator."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorInfo:
    """Structured error information for CLI and API responses."""
    type: str
    message: str
    step: int
    addr: int
    source_line_no: Optional[int] = None
    source_text: Optional[str] = None
    word: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "step": self.step,
            "addr": self.addr,
            "source_line_no": self.source_line_no,
            "source_text": self.source_text,
            "word": self.word,
        }


class TD4Error(Exception):
    """Base exception for all TD4 errors."""

    def __init__(
        self,
        message: str,
        step: int = 0,
        addr: int = 0,
        source_line_no: Optional[int] = None,
        source_text: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.addr = addr
        self.source_line_no = source_line_no
        self.source_text = source_text

    def to_error_info(self) -> ErrorInfo:
        return ErrorInfo(
            type=self.__class__.__name__,
            message=self.message,
            step=self.step,
            addr=self.addr,
            source_line_no=self.source_line_no,
            source_text=self.source_text,
        )


class ParseError(TD4Error):
    """Error while assembling program text."""
    pass


class UnknownMnemonic(ParseError):
    """Mnemonic is not part of the TD4 instruction set."""
    pass


class InvalidOperand(ParseError):
    """Operand missing, malformed, or outside 0-15."""
    pass


class DuplicateLabel(ParseError):
    """Label defined more than once."""
    pass


class UndefinedLabel(ParseError):
    """Jump target refers to a label that is never defined."""
    pass


class ProgramTooLarge(ParseError):
    """Program does not fit in the 16-word ROM."""
    pass


class ImageError(TD4Error):
    """ROM image has the wrong size or holds non-byte values."""
    pass


class TD4RuntimeError(TD4Error):
    """Error during program execution."""
    pass


class DecodeError(TD4RuntimeError):
    """Instruction word carries an opcode prefix TD4 does not define."""

    def __init__(self, message: str, word: int, addr: int = 0, **kwargs):
        super().__init__(message, addr=addr, **kwargs)
        self.word = word

    def to_error_info(self) -> ErrorInfo:
        info = super().to_error_info()
        info.word = self.word
        return info


class InputOutOfRange(TD4RuntimeError):
    """Input supplier returned a value that does not fit in 4 bits."""
    pass


class StepLimitExceeded(TD4RuntimeError):
    """Maximum step count exceeded without reaching a halt."""
    pass


class RomAccessError(TD4RuntimeError):
    """ROM address out of range."""
    pass
