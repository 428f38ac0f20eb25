from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Sequence

from mediabot.errors import EntryTooLarge


RESULT_HEADER = "📬 Upload Complete"
DEFAULT_MAX_MESSAGE_LENGTH = 1900
DEFAULT_ATTACHMENT_FILENAME = "upload_results.txt"

DISCORD_MESSAGE_LIMIT = 2000
# Longest body that still fits under the "(nnn/nnn):" label and its newline.
MAX_BODY_LENGTH = DISCORD_MESSAGE_LIMIT - len(f"{RESULT_HEADER} (999/999):\n")

_DIGITS = re.compile(r"(\d+)")


def natural_key(text: str) -> tuple[list[Any], str]:
    """
    Sort key where digit runs compare by value: "file2" < "file10".

    re.split with a capture group alternates text/digits, so equal positions
    always hold the same type and the lists stay comparable.
    """
    parts: list[Any] = [
        int(part) if i % 2 else part.casefold()
        for i, part in enumerate(_DIGITS.split(text))
    ]
    return parts, text


def chunk_lines(lines: Iterable[str], limit: int) -> list[list[str]]:
    """
    Greedily pack lines into chunks whose newline-joined length stays within limit.

    Raises EntryTooLarge if any single line cannot fit on its own; nothing is
    returned in that case.
    """
    chunks: list[list[str]] = []
    current: list[str] = []
    current_len = 0
    for line in lines:
        if len(line) > limit:
            raise EntryTooLarge(f"Entry is {len(line)} characters, the limit is {limit}: {line[:80]}")
        added = len(line) + (1 if current else 0)
        if current and current_len + added > limit:
            chunks.append(current)
            current, current_len = [], 0
            added = len(line)
        current.append(line)
        current_len += added
    if current:
        chunks.append(current)
    return chunks


@dataclass(frozen=True)
class RelayedFile:
    name: str
    url: str

    def render(self) -> str:
        return f"{self.name}: {self.url}"


@dataclass
class FormattedOutput:
    kind: Literal["inline", "attachment"]
    messages: list[str] = field(default_factory=list)
    filename: str | None = None
    data: bytes | None = None
    count: int = 0


class ResultFormatter:
    def __init__(
        self,
        max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
        attachment_threshold: int | None = DEFAULT_MAX_MESSAGE_LENGTH,
        attachment_filename: str = DEFAULT_ATTACHMENT_FILENAME,
    ):
        """
        max_message_length: upper bound for the body of each posted message,
            clamped to MAX_BODY_LENGTH so the labelled message fits in Discord
        attachment_threshold: listings longer than this become a single text
            attachment; None always posts messages
        """
        self.max_message_length = max_message_length
        self.attachment_threshold = attachment_threshold
        self.attachment_filename = attachment_filename

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ResultFormatter":
        fmt = config.get("formatting", {})
        return cls(
            max_message_length=fmt.get("max_message_length", DEFAULT_MAX_MESSAGE_LENGTH),
            attachment_threshold=fmt.get("attachment_threshold", DEFAULT_MAX_MESSAGE_LENGTH),
            attachment_filename=fmt.get("attachment_filename", DEFAULT_ATTACHMENT_FILENAME),
        )

    @property
    def body_limit(self) -> int:
        return min(self.max_message_length, MAX_BODY_LENGTH)

    @staticmethod
    def sort(files: Iterable[RelayedFile]) -> list[RelayedFile]:
        return sorted(files, key=lambda f: natural_key(f.name))

    def format(self, files: Sequence[RelayedFile]) -> FormattedOutput:
        lines = [f.render() for f in self.sort(files)]
        limit = self.body_limit

        # Validate every entry up front so a failure never leaves partial output.
        for line in lines:
            if len(line) > limit:
                raise EntryTooLarge(f"Entry is {len(line)} characters, the limit is {limit}: {line[:80]}")

        text = "\n".join(lines)
        if self.attachment_threshold is not None and len(text) > self.attachment_threshold:
            return FormattedOutput(
                kind="attachment",
                messages=[f"{RESULT_HEADER}: {len(lines)} file{'s' if len(lines) != 1 else ''} (see attachment)"],
                filename=self.attachment_filename,
                data=text.encode("utf-8"),
                count=len(lines),
            )

        chunks = chunk_lines(lines, limit)
        total = len(chunks)
        messages = []
        for i, chunk in enumerate(chunks, 1):
            label = f"{RESULT_HEADER} ({i}/{total}):" if total > 1 else f"{RESULT_HEADER}:"
            messages.append(label + "\n" + "\n".join(chunk))
        return FormattedOutput(kind="inline", messages=messages, count=len(lines))
