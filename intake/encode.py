"""
File encoding: attachment bytes -> base64 text paired with the mime type.
"""

import base64
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence, Tuple

from intake.errors import EncodingError
from intake.schema import Attachment, EncodedImage

logger = logging.getLogger(__name__)

MAX_WORKERS = 10


def file_to_base64(attachment: Attachment) -> EncodedImage:
    """
    Encode the full content of an attachment, without any data-URL prefix.

    Raises:
        EncodingError: if the file is unreadable or encodes to nothing
    """
    try:
        encoded = base64.b64encode(attachment.data).decode("ascii")
    except (TypeError, ValueError) as e:
        logger.error(f"❌ Could not encode {attachment.filename}: {e}")
        raise EncodingError(attachment.filename) from e

    if not encoded:
        logger.error(f"❌ Empty encoding for {attachment.filename}")
        raise EncodingError(attachment.filename)

    return EncodedImage(data=encoded, mime_type=attachment.mimetype)


def encode_attachments(
    current: Sequence[Attachment],
    final: Sequence[Attachment],
) -> Tuple[List[EncodedImage], List[EncodedImage]]:
    """
    Encode both sequences concurrently. Order within each sequence is preserved;
    the first failure aborts the whole call.
    """
    files = list(current) + list(final)
    if not files:
        return [], []

    with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(files))) as executor:
        encoded = list(executor.map(file_to_base64, files))

    return encoded[:len(current)], encoded[len(current):]
