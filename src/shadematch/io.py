from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from typing import Any, Protocol

import numpy as np
import requests
from PIL import Image

logger = logging.getLogger(__name__)

# Transparent pixels become white, which the skin mask never accepts.
BACKGROUND_RGB = (255, 255, 255)


class SupportsToDict(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


def flatten_image(image: Image.Image) -> np.ndarray:
    """Return an RGB array, compositing any alpha channel onto a white background."""
    has_alpha = image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )
    if not has_alpha:
        return np.asarray(image.convert("RGB"), dtype=np.uint8)

    rgba = image.convert("RGBA")
    background = Image.new("RGBA", rgba.size, BACKGROUND_RGB + (255,))
    flattened = Image.alpha_composite(background, rgba).convert("RGB")
    logger.debug("flattened %s image onto white background", image.mode)
    return np.asarray(flattened, dtype=np.uint8)


def read_image_rgb(image_path: str | Path) -> np.ndarray:
    path_str = str(image_path)
    if path_str.startswith(("http://", "https://")):
        logger.debug("fetching image %s", path_str)
        response = requests.get(path_str, timeout=10)
        response.raise_for_status()
        source: io.BytesIO | Path = io.BytesIO(response.content)
    else:
        source = Path(image_path)

    with Image.open(source) as image:
        return flatten_image(image)


def result_json(result: SupportsToDict | dict[str, Any]) -> str:
    payload = result if isinstance(result, dict) else result.to_dict()
    return json.dumps(payload, indent=2)


def write_result_json(result: SupportsToDict | dict[str, Any], output_path: str | Path) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(result_json(result) + "\n", encoding="utf-8")
