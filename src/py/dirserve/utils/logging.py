import sys
import time
import inspect
from enum import Enum
from typing import Any, Callable, NamedTuple, TextIO, TypeAlias
from .term import Term, hasColor

TPrimitive: TypeAlias = (
	None | bool | int | float | str | bytes | list[Any] | tuple[Any, ...] | dict[str, Any]
)


class LogType(Enum):
	Message = 0  # A general information message
	Event = 20  # An event


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Warning = 30  # A Warning
	Error = 40  # A managed error
	Exception = 50  # An un-managed error

	@staticmethod
	def Parse(name: str | None, default: "LogLevel") -> "LogLevel":
		if not name:
			return default
		for level in LogLevel:
			if level.name.lower() == name.strip().lower():
				return level
		return default


LOG_LEVEL_COLOR = {
	LogLevel.Debug: 31,
	LogLevel.Info: 75,
	LogLevel.Warning: 202,
	LogLevel.Error: 160,
	LogLevel.Exception: 124,
}


class LogEntry(NamedTuple):
	origin: str
	time: float
	type: LogType = LogType.Message
	level: LogLevel = LogLevel.Info
	message: str | None = None
	name: str | None = None
	value: TPrimitive | None = None
	context: dict[str, TPrimitive] | None = None
	icon: str | None = None
	stack: list[str] | None = None


TStack: TypeAlias = list[str]


def callstack(offset: int = 1) -> list[str]:
	"""
	Returns a list of function/method names on the call stack.
	For methods, the class name is included as 'ClassName.methodName'.
	"""
	return [
		(
			f"{_.frame.f_locals['self'].__class__.__qualname__}.{_.function}"
			if "self" in _.frame.f_locals
			else _.function
		).replace("<lambda>", "λ")
		for _ in reversed(inspect.stack()[offset:])
	]


def formatData(value: Any, *, color: bool = True) -> str:
	if value is None or value == () or value == [] or value == {}:
		return "◌"
	elif isinstance(value, dict):
		bold, normal = (Term.BOLD, Term.NORMAL) if color else ("", "")
		return " ".join(
			f"{bold}{k}{normal}={formatData(v, color=color)}" for k, v in value.items()
		)
	elif isinstance(value, list) or isinstance(value, tuple):
		return ",".join(formatData(v, color=color) for v in value)
	elif isinstance(value, str):
		return repr(value) if " " in value else value
	elif isinstance(value, bool):
		return "✓" if value else "✗"
	elif isinstance(value, float):
		return f"{value:0.2f}"
	else:
		return str(value)


# -----------------------------------------------------------------------------
#
# LOGGER
#
# -----------------------------------------------------------------------------


class Logger:
	"""Writes log entries for a given origin to a text sink. Loggers are
	passed to the components that need one, the module-level functions
	use the default `LOGGER`."""

	__slots__ = ["origin", "level", "sink", "listeners"]

	def __init__(
		self,
		origin: str = "dirserve",
		*,
		level: LogLevel = LogLevel.Info,
		sink: TextIO | None = None,
	) -> None:
		self.origin: str = origin
		self.level: LogLevel = level
		self.sink: TextIO | None = sink
		self.listeners: list[Callable[[LogEntry], None]] = []

	def logged(self, level: LogLevel) -> bool:
		return level.value >= self.level.value

	def send(self, entry: LogEntry) -> LogEntry:
		for listener in self.listeners:
			listener(entry)
		if not self.logged(entry.level):
			return entry
		out: TextIO = self.sink or sys.stderr
		color: bool = hasColor(out)
		icon: str = f" {entry.icon}" if entry.icon else ""
		clr: str = Term.Color(LOG_LEVEL_COLOR[entry.level]) if color else ""
		bold, reset = (Term.BOLD, Term.RESET) if color else ("", "")
		if entry.type == LogType.Event:
			out.write(
				f"{clr}{bold}[{entry.origin}] {entry.name}{reset} {formatData(entry.value, color=color)} {formatData(entry.context, color=color)}{reset}\n"
			)
		else:
			out.write(
				f"{clr}{bold}[{entry.origin}]{reset}{icon} {entry.message} {formatData(entry.context, color=color)}{reset}\n"
			)
		if entry.stack:
			out.write(f"  {' ' * len(entry.origin)} {'→'.join(entry.stack)}\n")
		out.flush()
		return entry

	def entry(
		self,
		*,
		type: LogType = LogType.Message,
		level: LogLevel = LogLevel.Info,
		message: str | None = None,
		name: str | None = None,
		value: TPrimitive | None = None,
		context: dict[str, TPrimitive],
		icon: str | None = None,
		stack: TStack | bool | None = None,
	) -> LogEntry:
		return LogEntry(
			origin=self.origin,
			time=time.time(),
			type=type,
			level=level,
			message=message,
			name=name,
			value=value,
			context=context,
			icon=icon,
			stack=callstack(2) if stack is True else stack if stack else None,
		)

	def debug(
		self, message: str, *, icon: str | None = None, **context: TPrimitive
	) -> LogEntry:
		return self.send(
			self.entry(message=message, level=LogLevel.Debug, context=context, icon=icon)
		)

	def info(
		self, message: str, *, icon: str | None = None, **context: TPrimitive
	) -> LogEntry:
		return self.send(self.entry(message=message, context=context, icon=icon))

	def warning(
		self, message: str, *, icon: str | None = None, **context: TPrimitive
	) -> LogEntry:
		return self.send(
			self.entry(
				message=message, level=LogLevel.Warning, context=context, icon=icon
			)
		)

	def error(
		self,
		message: str,
		code: int | str | None,
		*,
		icon: str | None = None,
		**context: TPrimitive,
	) -> LogEntry:
		return self.send(
			self.entry(
				message=message,
				value=code,
				level=LogLevel.Error,
				context=context,
				icon=icon,
			)
		)

	def event(self, event: str, value: Any = None, **context: TPrimitive) -> LogEntry:
		return self.send(
			self.entry(name=event, value=value, type=LogType.Event, context=context)
		)

	def exception(
		self, exception: BaseException, message: str | None = None
	) -> BaseException:
		"""Writes the exception and its traceback, returns the exception so
		that it can be used as `raise logger.exception(e)`."""
		try:
			out: TextIO = self.sink or sys.stderr
			out.write(
				f"!!! EXCP {f'{message}: ' if message else ''}[{exception.__class__.__name__}] {exception}\n"
			)
			tb = exception.__traceback__
			while tb:
				code = tb.tb_frame.f_code
				out.write(
					f"... in {code.co_name:15s} at {tb.tb_lineno:4d} in {code.co_filename}\n",
				)
				tb = tb.tb_next
			out.flush()
		except Exception:  # nosec: B110
			# This is called from exception handlers, it must not raise.
			pass
		for listener in self.listeners:
			listener(
				self.entry(
					message=message or str(exception),
					name=exception.__class__.__name__,
					level=LogLevel.Exception,
					context={},
				)
			)
		return exception


# -----------------------------------------------------------------------------
#
# DEFAULT LOGGER
#
# -----------------------------------------------------------------------------

LOGGER: Logger = Logger()


def debug(message: str, *, icon: str | None = None, **context: TPrimitive) -> LogEntry:
	return LOGGER.debug(message, icon=icon, **context)


def info(message: str, *, icon: str | None = None, **context: TPrimitive) -> LogEntry:
	return LOGGER.info(message, icon=icon, **context)


def warning(
	message: str, *, icon: str | None = None, **context: TPrimitive
) -> LogEntry:
	return LOGGER.warning(message, icon=icon, **context)


def error(
	message: str,
	code: int | str | None,
	*,
	icon: str | None = None,
	**context: TPrimitive,
) -> LogEntry:
	return LOGGER.error(message, code, icon=icon, **context)


def event(event: str, value: Any = None, **context: TPrimitive) -> LogEntry:
	return LOGGER.event(event, value, **context)


def exception(exception: BaseException, message: str | None = None) -> BaseException:
	return LOGGER.exception(exception, message)


def logged(item: Callable[..., Any], logger: Logger = LOGGER) -> bool:
	"""Takes one of the logging functions and tells if its level is currently
	written. Guards against building expensive entries for nothing."""
	level: LogLevel = {
		"debug": LogLevel.Debug,
		"info": LogLevel.Info,
		"warning": LogLevel.Warning,
		"error": LogLevel.Error,
	}.get(getattr(item, "__name__", ""), LogLevel.Info)
	return logger.logged(level)


# EOF
