"""Line-oriented task detection over a single file's content."""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from open_tasks.domain.models import Finding, Priority
from open_tasks.errors import ScanIOError
from open_tasks.parser.patterns import TagRules

_LOGGER = logging.getLogger(__name__)

# Only the colon of "TODO: ..." is dropped; other leading punctuation is message text.
MESSAGE_SEPARATORS = ":"


def clean_message(raw: str) -> str:
    return raw.lstrip(MESSAGE_SEPARATORS + " \t").strip()


class LineScanner:
    """Applies compiled tier rules to every line of one file.

    A line may yield one finding per enabled tier; output is ordered by line
    and then by tier. The scanner holds no mutable state and may be shared
    between threads.
    """

    def __init__(self, rules: TagRules) -> None:
        self._rules = rules

    @property
    def rules(self) -> TagRules:
        return self._rules

    def scan_lines(self, lines: Iterable[str]) -> list[Finding]:
        findings: list[Finding] = []
        enabled = tuple(self._rules.enabled())
        if not enabled:
            # Still consume the input so stream-backed iterables are drained.
            for _ in lines:
                pass
            return findings

        for line_no, raw_line in enumerate(lines, start=1):
            line = raw_line.rstrip("\r\n")
            for priority, rule in enabled:
                matched = rule.match(line)
                if matched is None:
                    continue
                tag, message = matched
                findings.append(self._finding(priority, line_no, tag, message))
        return findings

    def scan_text(self, text: str) -> list[Finding]:
        return self.scan_lines(io.StringIO(text, newline=""))

    def scan_stream(self, stream: TextIO, *, name: str = "<stream>") -> list[Finding]:
        """Scan an open text stream; read or decode failures raise ``ScanIOError``."""

        try:
            return self.scan_lines(stream)
        except (OSError, UnicodeDecodeError) as exc:
            raise ScanIOError(name, str(exc)) from exc

    def scan_file(self, path: Path, *, encoding: str = "utf-8") -> list[Finding]:
        """Scan a file on disk; undecodable bytes are replaced, read failures raise."""

        try:
            with path.open("r", encoding=encoding, errors="replace", newline="") as handle:
                findings = self.scan_lines(handle)
        except OSError as exc:
            raise ScanIOError(str(path), str(exc)) from exc
        _LOGGER.debug("scanned file", extra={"path": str(path), "finding_count": len(findings)})
        return findings

    def _finding(self, priority: Priority, line_no: int, tag: str, message: str) -> Finding:
        tag = tag.strip()
        if self._rules.ignore_case:
            tag = tag.upper()
        return Finding(priority=priority, line=line_no, tag=tag, message=clean_message(message))


__all__ = ["MESSAGE_SEPARATORS", "LineScanner", "clean_message"]
