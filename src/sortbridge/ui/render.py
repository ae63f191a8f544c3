"""Presentation helpers for SortBridge CLI output."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence, TextIO

try:  # pragma: no cover - optional at runtime
    from rich import box
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    _HAS_RICH = True
except Exception:  # pragma: no cover - fallback when Rich is unavailable
    _HAS_RICH = False
    Console = None  # type: ignore[assignment]
    Panel = None  # type: ignore[assignment]
    Text = None  # type: ignore[assignment]
    box = None  # type: ignore[assignment]

from sortbridge.task.types import CompletionEvent, ExchangeEvent

_BAR_WIDTH = 40


def bilingual_text(zh: str, en: Optional[str] = None) -> str:
    if not en:
        return zh
    return "{0} ({1})".format(zh, en)


def render_notice(level: str, zh: str, en: Optional[str] = None) -> str:
    prefix_map = {
        "info": bilingual_text("提示", "Info"),
        "warn": bilingual_text("警告", "Warning"),
        "error": bilingual_text("错误", "Error"),
        "success": bilingual_text("成功", "Success"),
    }
    prefix = prefix_map.get(level, bilingual_text("提示", "Info"))
    return "{0}: {1}".format(prefix, bilingual_text(zh, en))


def _is_tty(stream: TextIO, forced: Optional[bool]) -> bool:
    if forced is not None:
        return forced
    isatty = getattr(stream, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except Exception:
            return False
    return False


def format_exchange(event: ExchangeEvent) -> str:
    return "#{0} swap [{1}]={2} <-> [{3}]={4}".format(
        event.sequence,
        event.first_index,
        event.first_value,
        event.second_index,
        event.second_value,
    )


def format_array(values: Sequence[int], limit: int = 64) -> str:
    items = [str(value) for value in values[:limit]]
    if len(values) > limit:
        items.append("... (+{0})".format(len(values) - limit))
    return "[{0}]".format(", ".join(items))


def _bar_lines(values: Sequence[int], highlight: Iterable[int] = ()) -> Iterable[tuple]:
    marked = set(highlight)
    peak = max([abs(int(value)) for value in values] + [1])
    for index, value in enumerate(values):
        length = max(1, int(round(abs(int(value)) * _BAR_WIDTH / peak))) if value else 0
        yield index, value, "#" * length, index in marked


def render_array_bars(
    values: Sequence[int],
    stream: TextIO,
    highlight: Iterable[int] = (),
    is_tty: Optional[bool] = None,
) -> None:
    tty = _is_tty(stream, is_tty)
    rows = list(_bar_lines(values, highlight))

    if tty and _HAS_RICH:
        console = Console(file=stream, highlight=False, soft_wrap=True)
        for index, value, bar, marked in rows:
            line = Text("{0:>4} {1:>6} ".format(index, value))
            line.append(bar, style="bold yellow" if marked else "cyan")
            console.print(line)
        return

    for index, value, bar, marked in rows:
        stream.write("{0:>4} {1:>6} {2}{3}\n".format(index, value, bar, " *" if marked else ""))
    stream.flush()


def render_exchange(event: ExchangeEvent, stream: TextIO, is_tty: Optional[bool] = None) -> None:
    tty = _is_tty(stream, is_tty)
    line = format_exchange(event)
    if tty and _HAS_RICH:
        console = Console(file=stream, highlight=False, soft_wrap=True)
        console.print(Text(line, style="dim"))
        return
    stream.write(line + "\n")
    stream.flush()


def _completion_lines(event: CompletionEvent, values: Sequence[int]) -> Iterable[str]:
    if event.fault is not None:
        yield bilingual_text("排序失败", "Sort faulted")
        yield "fault={0}".format(event.fault)
    elif event.canceled:
        yield bilingual_text("排序已取消", "Sort canceled")
    else:
        yield bilingual_text("排序完成", "Sort completed")
    yield "run_id={0} exchanges={1}".format(event.run_id, event.exchange_count)
    yield "array={0}".format(format_array(values))


def render_completion(
    event: CompletionEvent,
    values: Sequence[int],
    stream: TextIO,
    is_tty: Optional[bool] = None,
) -> None:
    tty = _is_tty(stream, is_tty)
    lines = list(_completion_lines(event, values))

    if tty and _HAS_RICH:
        if event.fault is not None:
            border = "red"
        elif event.canceled:
            border = "yellow"
        else:
            border = "green"
        console = Console(file=stream, highlight=False, soft_wrap=True)
        console.print(
            Panel(
                "\n".join(lines[1:]),
                title=lines[0],
                border_style=border,
                box=box.ROUNDED,
            )
        )
        return

    for line in lines:
        stream.write(line + "\n")
    stream.flush()


def render_doctor_text(report: Dict[str, Any]) -> str:
    algorithms = report.get("algorithms")
    if not isinstance(algorithms, list):
        algorithms = []
    lines = [
        bilingual_text("系统诊断", "Doctor Report"),
        "config_root={0}".format(report.get("config_root", "")),
        "",
        bilingual_text("排序设置", "Sorter Settings"),
        "algorithm={0}".format(report.get("algorithm", "")),
        "algorithms_available={0}".format(",".join(str(item) for item in algorithms)),
        "array_size={0} max_value={1}".format(
            int(report.get("array_size") or 0),
            int(report.get("max_value") or 0),
        ),
        "step_delay_ms={0}".format(int(report.get("step_delay_ms") or 0)),
        "progress_channel={0} packed_capacity={1}".format(
            str(report.get("progress_channel") or ""),
            int(report.get("packed_capacity") or 0),
        ),
        "",
        bilingual_text("调试日志", "Debug Logs"),
        "logs_enabled={0}".format(bool(report.get("logs_enabled"))),
        "logs_active_size_bytes={0} logs_total_size_bytes={1}".format(
            int(report.get("logs_active_size_bytes") or 0),
            int(report.get("logs_total_size_bytes") or 0),
        ),
        "logs_max_file_bytes={0} logs_max_files={1}".format(
            int(report.get("logs_max_file_bytes") or 0),
            int(report.get("logs_max_files") or 0),
        ),
        "logs_write_errors={0}".format(int(report.get("logs_write_errors") or 0)),
    ]
    return "\n".join(lines)
