"""
Logging Module

Secret material (passwords, shared secrets) must never be passed to these functions.
Access tokens should go through ``mask()`` first.
"""


DEBUG_COLOR = (136, 136, 136)
INFO_COLOR = (68, 170, 238)
SUCCESS_COLOR = (204, 255, 51)
WARNING_COLOR = (255, 204, 85)
ERROR_COLOR = (255, 51, 102)

_debug = False


def set_debug(enabled: bool):
    """Enable or disable debug output."""

    global _debug
    _debug = bool(enabled)


def colored(msg: str, color: tuple[int, int, int]):
    """
    Return a string with an ANSI escape code colored message.
    Will only work if the terminal supports TrueColor.
    """

    r, g, b = color

    return f'\x1b[38;2;{ r };{ g };{ b }m{ msg }\033[0m'


def mask(token: str, visible: int = 4):
    """Mask a token, leaving only its last few characters visible."""

    if not token:
        return '<none>'

    if len(token) <= visible:
        return '*' * len(token)

    return '*' * 8 + token[-visible:]


def debug(msg: str):
    """Debug logging function. Silent unless enabled through ``set_debug()``."""

    if _debug:
        print(colored('[DEBUG]', DEBUG_COLOR) + ' ' + msg)


def info(msg: str):
    """Info logging function."""

    print(colored('[INFO]', INFO_COLOR) + ' ' + msg)


def success(msg: str):
    """Success logging function."""

    print(colored('[SUCCESS]', SUCCESS_COLOR) + ' ' + msg)


def warn(msg: str):
    """Warning logging function."""

    print(colored('[WARN]', WARNING_COLOR) + ' ' + msg)


def error(msg: str):
    """Error logging function."""

    print(colored('[ERROR]', ERROR_COLOR) + ' ' + msg)
