
class PhpLiteError(Exception):
    """ Base class for all phplite errors"""
    pass

class PhpLiteSyntaxError(PhpLiteError):
    """ Raised by the parser when a statement cannot be read.

    Never escapes the parser: it is turned into a diagnostic and the parser
    resynchronizes at the next statement boundary.
    """

    def __init__(self, message: str, start: int, end: int, code: str = "PHP1001"):
        super().__init__(message)
        self.message = message
        self.start = start
        self.end = end
        self.code = code

class ProjectError(PhpLiteError):
    """ Raised when a project descriptor cannot be read or is malformed"""
