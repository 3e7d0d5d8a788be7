"""
Split task for mailbox sources (MBOX primary, single EML files).

Dispatched via:
    celery.send_task("tasks.split_mailbox.split_mailbox",
                     kwargs={"path": "/uploads/archive.mbox", "source_type": "mbox"})

The returned progress dict carries one structure summary per message.
Per-message parse errors are caught and counted; the run continues.
"""

import logging
from pathlib import Path

from mailsplit.celery_app import celery_app
from mailsplit.core.config import settings
from mailsplit.models.enums import SourceType

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="tasks.split_mailbox.split_mailbox",
    max_retries=0,
)
def split_mailbox(self, *, path: str, source_type: str = "mbox") -> dict:
    """
    Split a mailbox file into message trees.

    Selects the parser based on source_type:
      - mbox  → MboxParser     (streams messages, separator from settings)
      - eml   → EmlFileParser  (one message, leading junk stripped)
    """
    path = _resolve(path)
    logger.info("split_mailbox start: source_type=%s path=%s", source_type, path)

    try:
        parser = _make_parser(source_type, path)
    except Exception as exc:
        logger.error("split_mailbox failed: path=%s error=%s", path, str(exc)[:200])
        raise

    from mailsplit.importer import Importer

    result = Importer().run(parser, celery_task=self)

    logger.info(
        "split_mailbox done: path=%s processed=%s multipart=%s errors=%s",
        path, result.get("processed", 0), result.get("multipart", 0), result.get("errors", 0),
    )
    return result


# ── helpers ────────────────────────────────────────────────────────────────────

def _make_parser(source_type: str, path: str):
    from mailsplit.parsers.mbox_eml import EmlFileParser, MboxParser

    try:
        kind = SourceType(source_type)
    except ValueError:
        raise ValueError(f"Unsupported source_type: {source_type!r}") from None

    if kind is SourceType.mbox:
        return MboxParser(path, settings.line_separator, settings.CHUNK_SIZE)
    return EmlFileParser(path, settings.CHUNK_SIZE)


def _resolve(path: str) -> str:
    # relative paths name files under the uploads directory
    p = Path(path)
    if not p.is_absolute():
        p = Path(settings.UPLOADS_DIR) / p
    return str(p)
