"""JSONL logger for provider calls.

Writes one structured entry per completion attempt to llm_calls.jsonl.
Prompts and responses are never truncated.

Only active when --log flag is passed to CLI.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


@dataclass
class CallLogEntry:
    """Entry for provider call logging."""

    timestamp: str
    provider: str
    model: str

    # Request
    system_prompt: str
    user_prompt: str
    temperature: float

    # Response
    content: str
    duration_seconds: float

    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class CallLogger:
    """Logger for provider calls in JSONL format.

    Attributes:
        log_path: Path to the JSONL log file.
        enabled: Whether logging is enabled.
    """

    def __init__(self, log_dir: Path, enabled: bool = True) -> None:
        """Initialize call logger.

        Args:
            log_dir: Directory that receives llm_calls.jsonl.
            enabled: Whether to actually write logs.
        """
        self.enabled = enabled
        self.log_path = log_dir / "llm_calls.jsonl"
        if enabled:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: CallLogEntry) -> None:
        """Append an entry to the JSONL log."""
        if not self.enabled:
            return

        with self.log_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(entry)) + "\n")

    @staticmethod
    def create_entry(
        provider: str,
        model: str,
        system_prompt: str,
        user_prompt: str,
        content: str,
        duration_seconds: float,
        temperature: float = 1.0,
        error: str | None = None,
        **metadata: Any,
    ) -> CallLogEntry:
        """Create a log entry with current timestamp.

        Args:
            provider: Provider name.
            model: Model identifier used.
            system_prompt: System prompt sent.
            user_prompt: User prompt sent.
            content: Raw response content ("" on failure).
            duration_seconds: Time taken for call.
            temperature: Sampling temperature.
            error: Error message if call failed.
            **metadata: Additional metadata.

        Returns:
            CallLogEntry ready for logging.
        """
        return CallLogEntry(
            timestamp=datetime.now(UTC).isoformat(),
            provider=provider,
            model=model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=temperature,
            content=content,
            duration_seconds=duration_seconds,
            error=error,
            metadata=dict(metadata),
        )

    def read_entries(self) -> list[CallLogEntry]:
        """Read all entries from the log file."""
        if not self.log_path.exists():
            return []

        entries = []
        with self.log_path.open(encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    entries.append(CallLogEntry(**json.loads(line)))
        return entries
