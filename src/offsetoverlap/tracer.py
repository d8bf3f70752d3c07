"""
Hierarchical runtime tracing for the OffsetOverlap pipeline.

A run is traced as nested spans (job, candidate, stage) with elapsed time
on close, plus leveled one-off events such as dropped candidates. Lines go
to stderr and optionally to a trace file, as text and optionally as JSON.
Settings come from the `tracing` section of the pipeline config.
"""

import functools
import hashlib
import json
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

import networkx as nx
import numpy as np
from pydantic import BaseModel
from shapely.geometry.base import BaseGeometry

from offsetoverlap.config import TracingConfig
from offsetoverlap.kernel.curve import Curve, Plane


LEVELS = {"ERROR": 0, "WARN": 1, "INFO": 2, "DEBUG": 3}


@dataclass
class _Span:
    name: str
    module: str
    started: float

    def elapsed_ms(self):
        return (time.perf_counter() - self.started) * 1000


class Tracer:
    """
    Span-based tracer shared by every pipeline module.

    Disabled by default; nothing is formatted or written until
    apply() turns it on.
    """

    def __init__(self):
        self.config = TracingConfig()
        self._span_stack = []
        self._file = None

    @property
    def _depth(self):
        return len(self._span_stack)

    def apply(self, settings):
        """Switch to new TracingConfig settings, reopening the trace file."""
        if self._file:
            self._file.close()
            self._file = None

        self.config = TracingConfig(
            enabled=settings.enabled,
            level=settings.level.upper(),
            file_path=settings.file_path,
            json_output=settings.json_output,
        )
        if self.config.enabled and self.config.file_path:
            self._file = open(self.config.file_path, "w", encoding="utf-8")

    def enabled_for(self, level):
        if not self.config.enabled:
            return False
        return LEVELS.get(level, 2) <= LEVELS.get(self.config.level, 2)

    def _emit(self, line):
        print(line, file=sys.stderr)
        if self._file:
            self._file.write(line + "\n")
            self._file.flush()

    def _write(self, level, module, name, message, meta=None):
        if not self.enabled_for(level):
            return

        now = datetime.now()
        stamp = now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"
        where = f"{module}:{name}" if name else module

        self._emit(f"{stamp} {level:<5} {'  ' * self._depth}{where}  {message}")

        if self.config.json_output:
            self._emit(json.dumps({
                "timestamp": stamp,
                "level": level,
                "depth": self._depth,
                "module": module,
                "function": name,
                "message": message,
                "meta": {k: summarize(v) for k, v in (meta or {}).items()},
            }))

    @contextmanager
    def span(self, name, module="", **meta):
        """
        Trace a block as a nested span.

        Writes a start line, then an end line with elapsed time, or an ERROR
        line naming the exception before it propagates.
        """
        if not self.config.enabled:
            yield
            return

        details = " ".join(f"{k}={summarize(v)}" for k, v in meta.items())
        self._write("INFO", module, name, f"start {details}".strip())
        current = _Span(name, module, time.perf_counter())
        self._span_stack.append(current)

        try:
            yield
        except Exception as e:
            self._span_stack.pop()
            self._write(
                "ERROR", module, name,
                f"failed dt={current.elapsed_ms():.0f}ms error={type(e).__name__}: {str(e)[:100]}",
            )
            raise
        self._span_stack.pop()
        self._write("INFO", module, name, f"end ok dt={current.elapsed_ms():.0f}ms")

    def event(self, message, level="INFO", **meta):
        """Log a one-off event under the innermost open span."""
        if not self.enabled_for(level):
            return

        name, module = "", ""
        if self._span_stack:
            name, module = self._span_stack[-1].name, self._span_stack[-1].module

        details = " ".join(f"{k}={summarize(v)}" for k, v in meta.items())
        self._write(level, module, name, f"{message} {details}".strip(), meta)


def _digest(data):
    return hashlib.md5(data).hexdigest()[:8]


def _curve(obj):
    t0, t1 = obj.domain
    return f"Curve(n={len(obj.points)},len={obj.length:.3f},t=[{t0:.3f},{t1:.3f}],closed={obj.is_closed()})"


def _plane(obj):
    normal = ",".join(f"{c:.2f}" for c in obj.normal)
    return f"Plane(normal=[{normal}])"


def _array(obj):
    shape = "x".join(str(s) for s in obj.shape)
    data = obj.tobytes() if 0 < obj.size < 1000 else str(obj.shape).encode()
    return f"ndarray({obj.dtype},{shape},h={_digest(data)})"


def _geometry(obj):
    bounds = ",".join(f"{b:.1f}" for b in obj.bounds)
    return f"{type(obj).__name__}(bounds=[{bounds}])"


def _graph(obj):
    return f"{type(obj).__name__}(nodes={obj.number_of_nodes()},edges={obj.number_of_edges()})"


def _model(obj):
    names = list(type(obj).model_fields)[:3]
    return f"{type(obj).__name__}(fields={names}...)"


def _text(obj):
    if len(obj) > 50:
        return f"str(len={len(obj)},h={_digest(obj.encode())})"
    return repr(obj)


def _sequence(obj):
    first = type(obj[0]).__name__ if obj else "-"
    return f"{type(obj).__name__}(len={len(obj)},first={first})"


def _mapping(obj):
    keys = ",".join(str(k) for k in list(obj)[:5])
    return f"dict(len={len(obj)},keys=[{keys}])"


# bool before int, since bool is an int
_SUMMARIZERS = (
    (Curve, _curve),
    (Plane, _plane),
    (np.ndarray, _array),
    (BaseGeometry, _geometry),
    (nx.Graph, _graph),
    (BaseModel, _model),
    (str, _text),
    ((list, tuple), _sequence),
    (dict, _mapping),
    (bool, str),
    (float, lambda obj: f"{obj:.6g}"),
    (int, str),
)


def summarize(obj, max_len=200):
    """
    Compact, length-capped description of a value for trace lines.

    Curves report vertex count, length, domain and closure; arrays, shapely
    geometries, graphs and models report their shape rather than contents.
    """
    if obj is None:
        return "None"

    text = f"<{type(obj).__name__}>"
    for kind, describe in _SUMMARIZERS:
        if isinstance(obj, kind):
            try:
                text = describe(obj)
            except (AttributeError, TypeError, ValueError):
                text = f"<{type(obj).__name__}>"
            break

    if len(text) > max_len:
        return text[:max_len - 3] + "..."
    return text


def trace(label=None):
    """Run the decorated function inside a span named label (or its own name)."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _tracer.config.enabled:
                return func(*args, **kwargs)
            module = func.__module__.rsplit(".", 1)[-1] if func.__module__ else ""
            with _tracer.span(label or func.__name__, module=module):
                return func(*args, **kwargs)
        return wrapper
    return decorator


_tracer = Tracer()


def get_tracer():
    return _tracer


def configure_tracer(enabled=False, level="INFO", file_path=None, json_output=False):
    """Configure the global tracer from keyword settings."""
    _tracer.apply(TracingConfig(
        enabled=enabled,
        level=level,
        file_path=file_path,
        json_output=json_output,
    ))
