from typing import List

from uwscript.objects import Error


class UwscError(Exception):
    """Exception type used to propagate UWSC runtime errors."""
    def __init__(self, err: Error):
        super().__init__(err.message)
        self.err = err


class ParseError(Exception):
    """Raised by parse_program when the parser recorded any errors."""
    def __init__(self, errors: List[str]):
        super().__init__('\n'.join(errors))
        self.errors = errors


class LoopSignal(Exception):
    """Internal exception for CONTINUE/BREAK inside FOR loops."""


class BreakSignal(LoopSignal):
    pass


class ContinueSignal(LoopSignal):
    pass
