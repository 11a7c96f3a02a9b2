"""
Vault image export: answers -> checksummed payload -> PNG with embedded tEXt.

Mirrors what verification reverses. The rasterizer is called exactly once
and its bytes are treated as an opaque PNG.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from ibvault.classifier import Analysis, classify
from ibvault.config import Settings
from ibvault.payload import Payload, attach_checksum, build_payload, decode_transport, encode_transport
from ibvault.pngmeta import find_text, insert_text_chunk, strip_text_chunks
from ibvault.questionnaire import normalize_answers
from ibvault.render import Rasterizer, solid_rasterizer
from ibvault.verification import TEXT_KEY


logger = logging.getLogger(__name__)

FILENAME_PREFIX = "IB_V1_PrivateResult_"


@dataclass(frozen=True)
class VaultImage:
    """
    An exported result image.

    Properties:
        data: PNG bytes with the embedded payload
        payload: The checksummed payload that was embedded
        analysis: Full analysis (including tensions) for display
        filename: Suggested file name derived from the checksum
    """

    data: bytes
    payload: Payload
    analysis: Analysis
    filename: str


def vault_filename(payload: Payload) -> str:
    return f"{FILENAME_PREFIX}{(payload.checksum or '')[:10]}.png"


def make_vault_image(
    answers: Iterable[Any],
    rasterizer: Optional[Rasterizer] = None,
    settings: Optional[Settings] = None,
    timestamp: Optional[str] = None,
) -> VaultImage:
    """
    Classify answers and embed the checksummed payload into a PNG.

    Args:
        answers: Ten raw answers (clamped during classification and payload build)
        rasterizer: Callable(title) -> PNG bytes; defaults to a solid image
            sized and coloured from settings
        settings: Settings for the default rasterizer
        timestamp: Override the payload timestamp (for reproducible output)

    Raises:
        FormatError: if the rasterizer output is not a PNG with an IEND chunk
    """
    answers = normalize_answers(answers)
    analysis = classify(answers)
    payload = attach_checksum(build_payload(answers, analysis, timestamp=timestamp))

    if rasterizer is None:
        settings = settings or Settings()
        rasterizer = solid_rasterizer(settings.image_width, settings.image_height, settings.background_rgb)

    baseline = strip_text_chunks(rasterizer(payload.orientation), TEXT_KEY)
    data = insert_text_chunk(baseline, TEXT_KEY, encode_transport(payload))
    logger.info(
        "Exported vault image for %s (%d bytes)",
        payload.orientation,
        len(data),
        extra={"extra_fields": {"checksum": payload.checksum}},
    )
    return VaultImage(data=data, payload=payload, analysis=analysis, filename=vault_filename(payload))


def write_vault_image(image: VaultImage, output_dir: str = ".", path: Optional[str] = None) -> str:
    """Write the image to `path` (or output_dir/filename) and return the path."""
    target = path or os.path.join(output_dir, image.filename)
    with open(target, "wb") as fh:
        fh.write(image.data)
    return target


def read_payload(data: bytes) -> Optional[Dict[str, Any]]:
    """
    Decode the embedded payload without verifying it.

    Returns:
        Payload mapping, or None when no IB_V1 entry exists

    Raises:
        FormatError: if the buffer is not a PNG
        SchemaError: if the entry is not base64 JSON
    """
    text = find_text(data, TEXT_KEY)
    if text is None:
        return None
    return decode_transport(text)
