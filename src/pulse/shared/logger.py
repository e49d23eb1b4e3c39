from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TextIO


class RunLogger:
    """Console/file logger for command-line runs of a pipeline stage.

    - console   : INFO+ (human-readable, can be turned off)
    - log_file  : INFO+ (persisted copy of the console)
    - trace_file: every line, including TRACE and DEBUG

    Library modules keep using ``logging.getLogger(__name__)``;
    ``install_stdlib_bridge`` routes those records into this logger.
    """

    LEVELS: dict[str, int] = {
        "TRACE": -1,
        "DEBUG": 0,
        "INFO": 1,
        "METRIC": 1,
        "WARN": 2,
        "ERROR": 3,
    }

    def __init__(
        self,
        log_file: str | Path | None = None,
        trace_file: str | Path | None = None,
        console: bool = True,
        min_level: str = "INFO",
        title: str = "Pulse",
    ) -> None:
        self.console = console
        self.min_level = self.LEVELS.get(min_level.upper(), 1)
        self.log_path = Path(log_file) if log_file else None
        self.trace_path = Path(trace_file) if trace_file else None
        self._log_fh = self._open(self.log_path, f"{title} log")
        self._trace_fh = self._open(self.trace_path, f"{title} trace")
        self._counters: dict[str, float] = {}
        self._bridged: set[str] = set()
        self._bridges: list[tuple[logging.Logger, logging.Handler]] = []
        self._start = time.perf_counter()

    @staticmethod
    def _open(path: Path | None, banner: str) -> TextIO | None:
        if path is None:
            return None
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = open(path, "w", encoding="utf-8", buffering=1)
        fh.write(f"# {banner} - {time.strftime('%Y-%m-%d %H:%M:%S')}\n")
        return fh

    def _emit(self, level: str, msg: str) -> None:
        level_int = self.LEVELS.get(level, 1)
        elapsed = time.perf_counter() - self._start
        line = f"[{time.strftime('%H:%M:%S')}] [{elapsed:7.2f}s] {level:6} | {msg}"

        if self.console and level_int >= self.min_level:
            print(line, flush=True)
        if self._log_fh and level_int >= 1:
            self._log_fh.write(line + "\n")
        if self._trace_fh:
            self._trace_fh.write(line + "\n")

    def trace(self, msg: str) -> None:
        self._emit("TRACE", msg)

    def debug(self, msg: str) -> None:
        self._emit("DEBUG", msg)

    def info(self, msg: str) -> None:
        self._emit("INFO", msg)

    def warn(self, msg: str) -> None:
        self._emit("WARN", msg)

    def error(self, msg: str) -> None:
        self._emit("ERROR", msg)

    def section(self, title: str) -> None:
        self._emit("INFO", f"== {title} ==")

    def count(self, name: str, value: float = 1) -> None:
        """Add ``value`` to the named counter (reported by ``summary``)."""
        self._counters[name] = self._counters.get(name, 0) + value

    def metric(self, name: str, value: Any, unit: str = "") -> None:
        vstr = f"{value:.3f}" if isinstance(value, float) else str(value)
        self._emit("METRIC", f"{name} = {vstr}{' ' + unit if unit else ''}")

    @contextmanager
    def timer(self, name: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            self.metric(f"timer:{name}", time.perf_counter() - start, "s")

    def summary(self) -> None:
        self.section("RUN SUMMARY")
        self.info(f"Total wall time: {time.perf_counter() - self._start:.2f}s")
        for name, value in sorted(self._counters.items()):
            self.metric(name, value)
        if self.log_path:
            self.info(f"Info log : {self.log_path}")
        if self.trace_path:
            self.info(f"Trace log: {self.trace_path}")

    def install_stdlib_bridge(self, root_logger: str = "", level: int = logging.INFO) -> None:
        """Forward stdlib records from ``root_logger`` into this run log.

        Records are written once even when both a named logger and the root
        logger are bridged: the root bridge skips names covered by a named one.
        """
        handler = _BridgeHandler(self)
        handler.setLevel(level)
        if root_logger:
            self._bridged.add(root_logger)
        else:
            handler.addFilter(self._not_bridged_elsewhere)
        root = logging.getLogger(root_logger)
        root.setLevel(min(root.level or logging.DEBUG, level))
        for old in [h for h in root.handlers if isinstance(h, _BridgeHandler)]:
            root.removeHandler(old)
        root.addHandler(handler)
        self._bridges.append((root, handler))

    def _not_bridged_elsewhere(self, record: logging.LogRecord) -> bool:
        return not any(
            record.name == name or record.name.startswith(name + ".") for name in self._bridged
        )

    def close(self) -> None:
        for target, handler in self._bridges:
            target.removeHandler(handler)
        self._bridges.clear()
        self._bridged.clear()
        for fh in (self._log_fh, self._trace_fh):
            if fh:
                fh.close()
        self._log_fh = None
        self._trace_fh = None

    def __enter__(self) -> "RunLogger":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class _BridgeHandler(logging.Handler):
    _MAP = {
        logging.DEBUG: "debug",
        logging.INFO: "info",
        logging.WARNING: "warn",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def __init__(self, logger: RunLogger) -> None:
        super().__init__()
        self._run = logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            getattr(self._run, self._MAP.get(record.levelno, "info"))(
                f"[{record.name}] {msg}"
            )
        except Exception:
            self.handleError(record)
