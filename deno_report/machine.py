"""Report state machine driven by declarative rule tables."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from .constants import ANSI_PATTERN, INITIAL_STATE
from .logging import get_logger
from .models import LineEvent, ParserRule, PendingReport, StreamSource

logger = get_logger("machine")

FlushCallback = Callable[[dict[str, str], bool], None]


def strip_ansi(text: str) -> str:
    return ANSI_PATTERN.sub("", text)


class ReportStateMachine:
    """Turn line events into report data using a command's rule table.

    The machine holds a single pending report. A rule that starts a new report
    flushes the pending one first; continuation rules extend it. Every matched
    line also flushes the pending report as partial so callers can follow it
    while it grows. Only final lines change the parser state.

    Args:
        rules: Rules tried in order against every line.
        on_flush: Called with a copy of the report data and whether it is final.
        on_unrecognized: Called with final standard error lines no rule accounts for.

    Examples:
        machine = ReportStateMachine(CHECK_RULES, on_flush=collect, on_unrecognized=errors.append)
        for event in events:
            machine.feed(event)
        machine.close()
    """

    def __init__(
        self,
        rules: Sequence[ParserRule],
        on_flush: FlushCallback,
        on_unrecognized: Callable[[str], None],
    ):
        self.rules = tuple(rules)
        self.on_flush = on_flush
        self.on_unrecognized = on_unrecognized
        self.pending = PendingReport(state=INITIAL_STATE)

    @property
    def state(self) -> str:
        return self.pending.state

    def feed(self, event: LineEvent) -> None:
        text = strip_ansi(event.text)
        rule, match = self._match(text)
        if rule is None:
            self._unrecognized(event, text)
            return

        if rule.ignore:
            return

        captured = {key: value for key, value in match.groupdict().items() if value is not None}
        if rule.report is not None:
            self._flush(self.pending.done)
            self.pending.data = {**captured, "kind": rule.report.value, "message": text}
            self.pending.done = event.final
        elif self.pending.data is not None:
            self._merge(rule, captured, text, event.final)
        else:
            self._unrecognized(event, text)
            return

        self._flush(False)
        if event.final:
            self.pending.state = rule.next or (rule.report.value if rule.report else self.state)

    def close(self) -> None:
        """Flush the pending report at the end of output."""
        self._flush(self.pending.done)
        self.pending.data = None

    def _match(self, text: str):
        for rule in self.rules:
            if not rule.applies(self.state):
                continue
            match = rule.match(text)
            if match is not None:
                return rule, match
        return None, None

    def _merge(
        self, rule: ParserRule, captured: dict[str, str], text: str, final: bool
    ) -> None:
        data = self.pending.data
        for key, value in captured.items():
            if key not in rule.aggregate:
                data[key] = value
        if not final:
            return
        data["message"] = f"{data['message']}\n{text}"
        for key in rule.aggregate:
            if key not in captured:
                continue
            if key in data:
                data[key] = f"{data[key]}\n{captured[key]}"
            else:
                data[key] = captured[key]

    def _unrecognized(self, event: LineEvent, text: str) -> None:
        if not event.final or event.source is not StreamSource.STDERR:
            return
        logger.warning("Unrecognized output: %s", text)
        self.on_unrecognized(text)

    def _flush(self, done: bool) -> None:
        if self.pending.data is None:
            return
        self.on_flush(dict(self.pending.data), done)
