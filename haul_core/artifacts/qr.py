# haul_core/artifacts/qr.py
from __future__ import annotations

import base64
import io
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import qrcode
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from qrcode.exceptions import DataOverflowError

from haul_core.common.errors import EncodingError

logger = logging.getLogger(__name__)

ARTIFACT_EXTENSION = "png"


def encode_image(payload: Mapping[str, Any]) -> bytes:
    """
    Render the JSON form of `payload` as a PNG QR code.
    Any rendering failure is raised as EncodingError.
    """
    try:
        text = json.dumps(payload, indent=2, cls=DjangoJSONEncoder)
        image = qrcode.make(text)
        buffer = io.BytesIO()
        image.save(buffer)
    except (TypeError, ValueError, DataOverflowError) as exc:
        raise EncodingError("QR image could not be rendered") from exc
    return buffer.getvalue()


@dataclass(frozen=True)
class Artifact:
    path: Path
    png: bytes

    @property
    def base64(self) -> str:
        return base64.b64encode(self.png).decode("ascii")


class QRArtifactStore:
    """
    Renders QR artifacts and persists them as <prefix>_<shortId>.png under root.

    render() is pure (no filesystem access) so it can run inside the owning
    transaction; write() is called once that transaction has committed.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    @classmethod
    def from_settings(cls) -> "QRArtifactStore":
        return cls(settings.HAUL_ARTIFACTS_DIR)

    def path_for(self, prefix: str, short_id: str) -> Path:
        return self.root / f"{prefix}_{short_id}.{ARTIFACT_EXTENSION}"

    def render(self, prefix: str, short_id: str, payload: Mapping[str, Any]) -> Artifact:
        return Artifact(path=self.path_for(prefix, short_id), png=encode_image(payload))

    def write(self, artifact: Artifact) -> bool:
        """
        Returns False when the bytes could not be written. The path is already
        committed with its row, so the image can be re-rendered from the record.
        """
        try:
            artifact.path.parent.mkdir(parents=True, exist_ok=True)
            artifact.path.write_bytes(artifact.png)
        except OSError:
            logger.exception("failed to write QR artifact %s", artifact.path)
            return False
        return True
