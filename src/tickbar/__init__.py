# -*- coding: utf-8 -*-
"""
Tickbar – A single-line terminal progress bar for Python.
Copyright (c) 2025 Igor Iatsenko
Licensed under the MIT License.
"""

import os
import re
import sys
import math
import time
import shutil
import numbers
import itertools
from enum import Enum, Flag
from typing import (
        Optional,
        Tuple,
        Mapping,
        Callable,
        Any,
        Iterable,
        Iterator,
        Union,
        TextIO,
)
import logging

from rich.cells import cell_len

__all__ = [
    'progress',
    'ProgressBar',
    'Spinner',
    'Token',
    'TickbarError',
    'ConfigurationError',
    'UsageError',
    'strip_ansi',
    'display_width',
    'truncate',
    'ellipsize',
    'format_duration',
    'format_clock',
    'format_bytes',
]

logger = logging.getLogger('tickbar')


_ELLIPSIS = '...'
_UNKNOWN_ETA = '?s'
_UNPRINTABLE_TOKEN = '???'
_FALSE_VALUES = ('0', 'false', 'no', 'off')

# ============================================================================
# Errors
# ============================================================================

class TickbarError(Exception):
    """Base class for all progress bar errors"""


class ConfigurationError(TickbarError, ValueError):
    """Invalid progress bar configuration"""


class UsageError(TickbarError, RuntimeError):
    """Progress bar operation called in an invalid state or with invalid arguments"""


# ============================================================================
# Terminal utilities
# ============================================================================

class TerminalCapability(Enum):
    """Terminal capability levels"""
    MINIMAL = 1  # No ANSI support
    BASIC = 2    # ANSI cursor control


def _isatty(stream: Any) -> bool:
    isatty = getattr(stream, 'isatty', None)
    if not callable(isatty):
        return False
    try:
        return bool(isatty())
    except (OSError, ValueError):
        # Closed or detached streams
        return False


def _is_supported(stream: Any) -> bool:
    """Whether the stream allows redrawing the current line in place"""
    enabled = os.environ.get('TICKBAR_ENABLED', '')
    if enabled.strip().lower() in _FALSE_VALUES:
        return False
    return _isatty(stream)


def _detect_terminal_capability(stream: Any) -> TerminalCapability:
    """Detect terminal capabilities of the given stream"""
    if not _isatty(stream):
        return TerminalCapability.MINIMAL

    term = os.environ.get('TERM', '')
    # ANSI cursor control
    if term and term != 'dumb':
        return TerminalCapability.BASIC

    return TerminalCapability.MINIMAL


def _get_terminal_size(default: Optional[os.terminal_size] = None) -> Tuple[int, int]:
    """Return the size of the terminal in columns and lines, with a safe fallback."""
    if default is None:
        default = os.terminal_size([80, 24])
    try:
        return tuple(os.get_terminal_size())
    except OSError:
        # Some environments (cron, IDEs, CI, redirected stdout) have no TTY
        pass
    try:
        return tuple(shutil.get_terminal_size(fallback=default))
    except Exception:
        pass
    return tuple(default)


def _default_width() -> int:
    columns, _ = _get_terminal_size()
    return max(1, columns - 2)


# ============================================================================
# Text width
# ============================================================================

_ANSI_PATTERN = re.compile(r'(\x1b\[[0-9;?]*[ -/]*[@-~])')


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text"""
    return _ANSI_PATTERN.sub('', text)


def display_width(text: str) -> int:
    """Number of terminal cells the text occupies, ignoring escape sequences"""
    return cell_len(strip_ansi(text))


def truncate(text: str, width: int) -> str:
    """Keep the first ``width`` visible cells of text.

    Escape sequences are kept as they are, including the ones following the
    cut, so styles opened before the cut are still closed.
    """
    result = []
    used = 0
    full = width <= 0

    for index, piece in enumerate(_ANSI_PATTERN.split(text)):
        if index % 2:
            result.append(piece)
            continue
        if full:
            continue
        for char in piece:
            char_width = cell_len(char)
            if used + char_width > width:
                full = True
                break
            result.append(char)
            used += char_width

    return ''.join(result)


def ellipsize(text: str, width: int) -> str:
    """Trim text to fit within the specified width, marking the cut with dots"""
    if display_width(text) <= width:
        return text
    return truncate(text, width - len(_ELLIPSIS)) + _ELLIPSIS


# ============================================================================
# Formatting
# ============================================================================

_BYTE_UNITS = ['B', 'kB', 'MB', 'GB', 'TB', 'PB', 'EB', 'ZB', 'YB']

# (upper bound in seconds, unit size in seconds, suffix)
_DURATION_STEPS = [
    (50, 1, 's'),
    (50 * 60, 60, 'm'),
    (18 * 3600, 3600, 'h'),
    (30 * 86400, 86400, 'd'),
    (335 * 86400, 30 * 86400, 'mo'),
]
_SECONDS_PER_YEAR = 365.25 * 86400


def format_duration(seconds: float) -> str:
    """Format a duration tersely: 3s, 12m, 5h, 2d, 3mo, 1.5y"""
    for bound, unit, suffix in _DURATION_STEPS:
        if seconds < bound:
            return '{}{}'.format(int(round(seconds / unit)), suffix)
    years = round(seconds / _SECONDS_PER_YEAR, 1)
    return '{:g}y'.format(years)


def format_clock(seconds: float) -> str:
    """Format a duration as hh:mm:ss"""
    hours, remainder = divmod(int(seconds), 3600)
    minutes, seconds = divmod(remainder, 60)
    return '{:02d}:{:02d}:{:02d}'.format(hours, minutes, seconds)


def format_bytes(count: float) -> str:
    """Format a byte count with decimal units: 0 B, 512 B, 1.34 kB, 2.5 GB"""
    if count < 0:
        return '-' + format_bytes(-count)
    if count == 0:
        return '0 B'

    exponent = 0
    while exponent < len(_BYTE_UNITS) - 1 and count >= 1000 ** (exponent + 1):
        exponent += 1
    value = round(count / 1000 ** exponent, 2)
    return '{:g} {}'.format(value, _BYTE_UNITS[exponent])


# ============================================================================
# Spinner
# ============================================================================

class Spinner:
    """Cyclic spinner, every call returns the next frame"""

    FRAMES = ['-', '\\', '|', '/']

    def __init__(self):
        self._cycle = itertools.cycle(self.FRAMES)

    def __call__(self) -> str:
        return next(self._cycle)


# ============================================================================
# Tokens
# ============================================================================

class Token(Flag):
    """Built-in format tokens"""
    NONE = 0
    CURRENT = 1
    TOTAL = 2
    ELAPSEDFULL = 4
    ELAPSED = 8
    ETA = 16
    PERCENT = 32
    RATE = 64
    BYTES = 128
    SPIN = 256
    BAR = 512

    @property
    def placeholder(self) -> str:
        """Text of the token inside a format string"""
        return ':' + self.name.lower()

    @classmethod
    def scan(cls, format: str) -> 'Token':
        """Find which built-in tokens occur in the format string"""
        found = cls.NONE
        for token in _ALL_TOKENS:
            if token.placeholder in format:
                found |= token
        return found


# Substitution order, the bar is handled separately as it fills the remaining width
_VALUE_TOKENS = (
    Token.PERCENT,
    Token.ELAPSEDFULL,
    Token.ELAPSED,
    Token.ETA,
    Token.RATE,
    Token.CURRENT,
    Token.TOTAL,
    Token.BYTES,
    Token.SPIN,
)
_ALL_TOKENS = _VALUE_TOKENS + (Token.BAR,)


def _stringify(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        logger.debug('Custom token value of type %s cannot be converted to text', type(value).__name__)
        return _UNPRINTABLE_TOKEN


# ============================================================================
# Progress Bar
# ============================================================================

def _is_real(value: Any) -> bool:
    return (isinstance(value, numbers.Real)
            and not isinstance(value, bool)
            and math.isfinite(value))


class ProgressBar:
    """Progress bar redrawn in place on a single terminal line"""

    def __init__(self,
                 format: str = '[:bar] :percent',
                 total: float = 100,
                 width: Optional[int] = None,
                 stream: Optional[TextIO] = None,
                 complete: str = '=',
                 incomplete: str = '-',
                 callback: Optional[Callable[['ProgressBar'], Any]] = None,
                 clear: bool = True,
                 show_after: float = 0.2,
                 force: bool = False):
        """
        Create a progress bar.

        Args:
            format: Format string with tokens such as :bar, :percent, :eta
            total: Number of ticks to complete
            width: Maximum line width (terminal width minus two by default)
            stream: Output stream (sys.stderr by default)
            complete: Character of the completed part of the bar
            incomplete: Character of the remaining part of the bar
            callback: Called with the bar after it finished and was terminated
            clear: Erase the line when finished instead of leaving it
            show_after: Seconds after the first tick before anything is drawn
            force: Draw even if the stream does not look like a terminal
        """
        if stream is None:
            stream = sys.stderr
        if width is None:
            width = _default_width()

        # Validation
        if not isinstance(format, str) or not format:
            raise ConfigurationError("format must be a non-empty string")
        if not _is_real(total) or total <= 0:
            raise ConfigurationError("total must be a positive number")
        if not isinstance(width, int) or isinstance(width, bool) or width <= 0:
            raise ConfigurationError("width must be a positive integer")
        if stream is None or not callable(getattr(stream, 'write', None)):
            raise ConfigurationError("stream must be a writable stream")
        if not isinstance(complete, str) or display_width(complete) != 1:
            raise ConfigurationError("complete must be a single one-column character")
        if not isinstance(incomplete, str) or display_width(incomplete) != 1:
            raise ConfigurationError("incomplete must be a single one-column character")
        if callback is not None and not callable(callback):
            raise ConfigurationError("callback must be callable")
        if not isinstance(clear, bool):
            raise ConfigurationError("clear must be a boolean")
        if not _is_real(show_after) or show_after < 0:
            raise ConfigurationError("show_after must be a non-negative number")

        self._format = format
        self._total = total
        self._width = width
        self._stream = stream
        self._complete_char = complete
        self._incomplete_char = incomplete
        self._callback = callback
        self._clear = clear
        self._show_after = show_after

        self._supported = bool(force) or _is_supported(stream)
        self._capability = _detect_terminal_capability(stream)
        self._tokens = Token.scan(format)
        self._spinner = Spinner()

        self._current = 0
        self._start: Optional[float] = None
        self._drawable = False
        self._finished = False
        self._last_draw = ''

    def __enter__(self):
        """Enter context manager"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager"""
        self.terminate()
        return False

    def __repr__(self):
        return '<ProgressBar {:g}/{:g} finished={}>'.format(self._current, self._total, self._finished)

    # Queries

    @property
    def finished(self) -> bool:
        """Whether the bar was terminated"""
        return self._finished

    @property
    def current(self) -> float:
        return self._current

    @property
    def total(self) -> float:
        return self._total

    @property
    def width(self) -> int:
        return self._width

    @property
    def supported(self) -> bool:
        """Whether anything is drawn on the stream"""
        return self._supported

    @property
    def ratio(self) -> float:
        """Progress ratio clamped to [0, 1]"""
        return min(1.0, max(0.0, self._current / self._total))

    @property
    def elapsed(self) -> float:
        """Seconds since the first tick"""
        if self._start is None:
            return 0.0
        return time.monotonic() - self._start

    # Operations

    def tick(self, amount: float = 1, tokens: Optional[Mapping[str, Any]] = None) -> 'ProgressBar':
        """Advance progress by amount, drawing the bar once show_after has passed"""
        self._check_active('tick')
        if not _is_real(amount):
            raise UsageError("tick amount must be a finite number")
        tokens = self._check_tokens(tokens)

        self._start_clock()
        self._current += amount

        if not self._drawable and self.elapsed >= self._show_after:
            self._drawable = True
            logger.debug('Progress bar shown after %.3fs', self.elapsed)

        complete = self._current >= self._total

        if self._drawable:
            self._render(tokens)

        if complete:
            self.terminate()
            if self._callback is not None:
                self._callback(self)

        return self

    def update(self, ratio: float, tokens: Optional[Mapping[str, Any]] = None) -> 'ProgressBar':
        """Set progress to the given ratio of the total"""
        if not _is_real(ratio) or not 0 <= ratio <= 1:
            raise UsageError("ratio must be a number between 0 and 1")
        self._check_active('update')

        goal = math.floor(ratio * self._total)
        return self.tick(goal - self._current, tokens)

    def message(self, msg: Union[str, Iterable[str]]) -> 'ProgressBar':
        """Print lines above the bar without disturbing it"""
        if isinstance(msg, str):
            lines = msg.splitlines() or ['']
        else:
            try:
                lines = list(msg)
            except TypeError:
                raise UsageError("message must be a string or an iterable of strings") from None
            if not all(isinstance(line, str) for line in lines):
                raise UsageError("message must be a string or an iterable of strings")
        self._check_active('message')

        text = ''.join(ellipsize(line, self._width) + '\n' for line in lines)

        if not self._supported:
            self._write(text)
            return self

        self._write(self._erase_sequence() + '\r' + text + self._last_draw)
        return self

    def terminate(self) -> 'ProgressBar':
        """Finish the bar, erasing it or leaving it on its own line"""
        if self._finished:
            return self

        self._finished = True
        logger.debug('Progress bar terminated at %s/%s', self._current, self._total)

        if not self._supported or not self._drawable:
            return self

        if self._clear:
            self._write(self._erase_sequence() + '\r')
        else:
            self._write('\n')
        return self

    # Internals

    def _check_active(self, operation: str):
        if self._finished:
            raise UsageError("cannot {} a finished progress bar".format(operation))

    def _start_clock(self):
        if self._start is None:
            self._start = time.monotonic()

    @staticmethod
    def _check_tokens(tokens: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
        if tokens is None:
            return {}
        if not isinstance(tokens, Mapping):
            raise UsageError("tokens must be a mapping of token names to values")
        for name in tokens:
            if not isinstance(name, str) or not name:
                raise UsageError("token names must be non-empty strings")
        return tokens

    def _render(self, tokens: Mapping[str, Any]):
        if not self._supported:
            return

        line = self._build_line(tokens)
        if line == self._last_draw:
            return

        output = ''
        if display_width(self._last_draw) > display_width(line):
            output += self._erase_sequence()
        output += '\r' + line

        self._write(output)
        self._last_draw = line

    def _build_line(self, tokens: Mapping[str, Any]) -> str:
        line = self._format
        elapsed = self.elapsed

        for token in _VALUE_TOKENS:
            if token in self._tokens:
                line = line.replace(token.placeholder, self._token_value(token, elapsed), 1)

        for name, value in tokens.items():
            line = line.replace(':' + name, _stringify(value))

        if Token.BAR in self._tokens:
            line = line.replace(Token.BAR.placeholder, self._bar(line), 1)

        if display_width(line) > self._width:
            line = ellipsize(line, self._width)

        return line

    def _token_value(self, token: Token, elapsed: float) -> str:
        if token is Token.PERCENT:
            return '{:>3d}%'.format(int(round(self.ratio * 100)))
        if token is Token.ELAPSEDFULL:
            return format_clock(elapsed)
        if token is Token.ELAPSED:
            return format_duration(elapsed)
        if token is Token.ETA:
            return self._eta(elapsed)
        if token is Token.RATE:
            rate = self._current / elapsed if elapsed > 0 else 0.0
            if not math.isfinite(rate):
                rate = 0.0
            return format_bytes(round(rate)) + '/s'
        if token is Token.CURRENT:
            return str(int(round(self._current)))
        if token is Token.TOTAL:
            return str(int(round(self._total)))
        if token is Token.BYTES:
            return format_bytes(round(self._current))
        if token is Token.SPIN:
            return self._spinner()
        raise ValueError("unknown token {!r}".format(token))

    def _eta(self, elapsed: float) -> str:
        if self.ratio == 1.0:
            return format_duration(0)
        if self._current == 0:
            return _UNKNOWN_ETA

        eta = elapsed * (self._total / self._current - 1.0)
        if not math.isfinite(eta) or eta < 0:
            return _UNKNOWN_ETA
        return format_duration(eta)

    def _bar(self, line: str) -> str:
        bar_width = self._width - display_width(line.replace(Token.BAR.placeholder, '', 1))
        bar_width = max(0, bar_width)

        complete_len = int(round(bar_width * self.ratio))
        return (self._complete_char * complete_len +
                self._incomplete_char * (bar_width - complete_len))

    def _erase_sequence(self) -> str:
        if self._capability is TerminalCapability.MINIMAL:
            return '\r' + ' ' * self._width
        return '\r\033[K'

    def _write(self, data: str):
        try:
            self._stream.write(data)
            flush = getattr(self._stream, 'flush', None)
            if callable(flush):
                flush()
        except (OSError, ValueError):
            logger.exception('Display progress failed')
            self._supported = False


# ============================================================================
# Convenience Functions
# ============================================================================

def progress(iterable: Iterable,
             total: Optional[float] = None,
             tokens: Union[Mapping[str, Any], Callable[[Any], Mapping[str, Any]], None] = None,
             **kwargs) -> Iterator:
    """
    Wrap an iterable to display progress automatically.

    Example:
        for item in progress([1, 2, 3, 4, 5], format=':spin [:bar] :percent'):
            process(item)

    Args:
        iterable: The iterable to wrap
        total: Total items (auto-detected if possible)
        tokens: Custom token values, or a callable returning them for each item
            (with a callable nothing is drawn before the first item)
        **kwargs: Additional arguments for ProgressBar
    """
    if total is None:
        try:
            total = len(iterable)
        except TypeError:
            raise ConfigurationError("total is required for iterables without a length") from None

    if total == 0:
        yield from iterable
        return

    with ProgressBar(total=total, **kwargs) as bar:
        # show_after counts from the start of the iteration
        if callable(tokens):
            bar._start_clock()
        else:
            bar.tick(0, tokens)

        for item in iterable:
            yield item
            if bar.finished:
                continue
            values = tokens(item) if callable(tokens) else tokens
            bar.tick(tokens=values)
