"""
Core split orchestrator.

Drives the per-message build → summarize loop over one MailParser.
Progress is published to Celery every PROGRESS_BATCH messages.
Per-message errors are caught, counted, and do NOT abort the run.

Body content is NEVER logged; only metadata (counts, offsets) appears in logs.
"""

import logging
from typing import Any, Optional

from mailsplit.builder import MessageTreeBuilder
from mailsplit.core.config import settings
from mailsplit.models.message import Message
from mailsplit.parsers.base import MailParser, ParsedMessage
from mailsplit.schemas.summary import MessageSummary, PartSummary

logger = logging.getLogger(__name__)


# ── message summaries ─────────────────────────────────────────────────────────

def summarize_part(message: Message) -> PartSummary:
    header = message.header
    if not message.multipart:
        return PartSummary(
            content_type=header.content_type,
            size=len(message.body) if message.body is not None else None,
        )
    return PartSummary(
        content_type=header.content_type,
        boundary=header.param("content-type", "boundary"),
        preamble_size=len(message.preamble) if message.preamble is not None else None,
        epilogue_size=len(message.epilogue) if message.epilogue is not None else None,
        parts=[summarize_part(part) for part in message.parts],
    )


def summarize(index: int, parsed: ParsedMessage, message: Message) -> MessageSummary:
    header = message.header
    mbox_from = header.mbox_from.decode("latin-1") if header.mbox_from is not None else None
    message_id = (header.get("message-id") or "").strip().strip("<>").strip() or None
    return MessageSummary(
        index=index,
        folder_path=parsed.folder_path,
        offset=parsed.offset,
        mbox_from=mbox_from,
        subject=header.get("subject") or None,
        message_id=message_id,
        part_count=sum(1 for part in message.walk() if not part.multipart),
        structure=summarize_part(message),
    )


# ── importer class ─────────────────────────────────────────────────────────────

class Importer:
    """
    Splits every message of one source into a message tree.

    Handles:
    - Streaming: one message is held in memory at a time
    - Per-message error isolation: errors increment counter, the run continues
    - Progress publishing: celery_task.update_state every PROGRESS_BATCH messages
    """

    def __init__(
        self,
        builder: Optional[MessageTreeBuilder] = None,
        progress_batch: Optional[int] = None,
    ) -> None:
        self.builder = builder or MessageTreeBuilder(chunk_size=settings.CHUNK_SIZE)
        self.progress_batch = progress_batch or settings.PROGRESS_BATCH

    # ── public ────────────────────────────────────────────────────────────────

    def run(self, parser: MailParser, celery_task=None) -> dict:
        """
        Execute the split.  Returns the final progress dict, which carries one
        JSON-safe summary per message under "messages".
        """
        progress: dict[str, Any] = {
            "phase": "starting",
            "source_type": parser.source_type.value,
            "total": parser.count(),
            "processed": 0,
            "multipart": 0,
            "parts": 0,
            "errors": 0,
            "last_error": None,
        }
        summaries: list[dict] = []
        progress["phase"] = "splitting"

        for index, parsed_msg in enumerate(parser.messages()):
            try:
                message = self.builder.parse(parsed_msg.raw)
                summary = summarize(index, parsed_msg, message)
                summaries.append(summary.model_dump(mode="json"))

                if message.multipart:
                    progress["multipart"] += 1
                progress["parts"] += summary.part_count
                progress["processed"] += 1

            except Exception as exc:  # noqa: BLE001 (per-message error isolation)
                progress["errors"] += 1
                # Truncate error; NEVER include message body
                err = f"{type(exc).__name__}: {str(exc)[:300]}"
                progress["last_error"] = err
                logger.warning(
                    "importer: message %d at offset %s skipped: %s",
                    index, parsed_msg.offset, err,
                )
                continue

            if progress["processed"] % self.progress_batch == 0:
                logger.info("importer: %d messages split", progress["processed"])
                if celery_task is not None:
                    celery_task.update_state(state="PROGRESS", meta=progress)

        progress["phase"] = "done"
        progress["messages"] = summaries
        return progress
