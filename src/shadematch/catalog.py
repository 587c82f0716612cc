from __future__ import annotations

import csv
import json
import logging
from pathlib import Path

from .colorspace import InvalidColorFormat, normalize_hex
from .models import LAB, ShadeCandidate, Undertone

logger = logging.getLogger(__name__)

_FIELD_ALIASES = {
    "product": ("product", "product_name"),
    "shade": ("shade", "shade_name", "name"),
    "hex": ("hex", "hex_color", "color"),
    "available": ("available", "is_available"),
    "review_count": ("review_count", "reviews"),
    "depth_level": ("depth_level", "depth"),
    "candidate_id": ("id", "candidate_id"),
}
_TRUE_VALUES = {"true", "1", "yes", "y", "t"}
_FALSE_VALUES = {"false", "0", "no", "n", "f"}


class CatalogValidationError(ValueError):
    pass


def load_catalog(path_like: str | Path, strict: bool = False) -> list[ShadeCandidate]:
    path = Path(path_like)
    if not path.exists():
        raise CatalogValidationError(f"catalog file does not exist: {path}")

    if path.suffix.lower() == ".csv":
        records = _read_csv(path)
    elif path.suffix.lower() == ".json":
        records = _read_json(path)
    else:
        raise CatalogValidationError(
            f"unsupported catalog format '{path.suffix}'. Use .csv or .json"
        )

    candidates: list[ShadeCandidate] = []
    for location, record in records:
        candidate = parse_candidate(record, location, strict=strict)
        if candidate is not None:
            candidates.append(candidate)

    if not candidates:
        logger.warning("catalog %s has no usable shades", path)
    logger.debug("loaded %d shades from %s", len(candidates), path)
    return candidates


def _read_csv(path: Path) -> list[tuple[str, dict[str, object]]]:
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise CatalogValidationError(f"catalog csv has no header: {path}")
        return [(f"{path}:{idx}", dict(row)) for idx, row in enumerate(reader, start=2)]


def _read_json(path: Path) -> list[tuple[str, dict[str, object]]]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogValidationError(f"catalog json at {path} is not valid json") from exc

    if isinstance(payload, dict):
        if not isinstance(payload.get("shades"), list):
            raise CatalogValidationError(
                f"json catalog at {path} must be a list or include a 'shades' list"
            )
        records = payload["shades"]
    elif isinstance(payload, list):
        records = payload
    else:
        raise CatalogValidationError(
            f"json catalog at {path} must be a list or object with 'shades'"
        )

    parsed: list[tuple[str, dict[str, object]]] = []
    for idx, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            raise CatalogValidationError(
                f"invalid catalog entry at {path}:{idx} (expected object)"
            )
        parsed.append((f"{path}:{idx}", record))
    return parsed


def parse_candidate(
    raw_entry: dict[str, object], location: str = "<entry>", strict: bool = False
) -> ShadeCandidate | None:
    """Build a candidate from one catalog record.

    Returns ``None`` for a row with a malformed hex when ``strict`` is off.
    """
    normalized: dict[str, object] = {
        str(key).strip().lower(): value
        for key, value in raw_entry.items()
        if key is not None
    }

    brand = _as_clean_str(normalized.get("brand"))
    product = _as_clean_str(_lookup(normalized, "product"))
    shade = _as_clean_str(_lookup(normalized, "shade"))
    for field_name, value in (("brand", brand), ("product", product), ("shade", shade)):
        if not value:
            raise CatalogValidationError(f"{location}: missing required field '{field_name}'")

    hex_value = _as_clean_str(_lookup(normalized, "hex"))
    if hex_value is not None:
        try:
            hex_value = normalize_hex(hex_value)
        except InvalidColorFormat as exc:
            if strict:
                raise CatalogValidationError(f"{location}: {exc}") from exc
            logger.warning("%s: skipping shade with %s", location, exc)
            return None

    undertone_raw = _as_clean_str(normalized.get("undertone"))
    undertone = None
    if undertone_raw is not None:
        try:
            undertone = Undertone.parse(undertone_raw)
        except ValueError as exc:
            if strict:
                raise CatalogValidationError(f"{location}: {exc}") from exc
            logger.warning("%s: ignoring %s", location, exc)

    return ShadeCandidate(
        brand=brand,
        product=product,
        shade=shade,
        hex=hex_value,
        lab=_parse_lab(normalized, location),
        undertone=undertone,
        depth_level=_as_float(_lookup(normalized, "depth_level"), location, "depth_level"),
        price=_as_float(normalized.get("price"), location, "price"),
        available=_as_bool(_lookup(normalized, "available"), location),
        rating=_as_float(normalized.get("rating"), location, "rating"),
        review_count=_as_int(_lookup(normalized, "review_count"), location),
        finish=_as_clean_str(normalized.get("finish")),
        coverage=_as_clean_str(normalized.get("coverage")),
        candidate_id=_as_clean_str(_lookup(normalized, "candidate_id")),
    )


def _lookup(normalized: dict[str, object], field_name: str) -> object:
    for alias in _FIELD_ALIASES[field_name]:
        value = normalized.get(alias)
        if _as_clean_str(value) is not None:
            return value
    return None


def _parse_lab(normalized: dict[str, object], location: str) -> LAB | None:
    raw = [_as_clean_str(normalized.get(key)) for key in ("l", "a", "b")]
    if all(value is None for value in raw):
        return None
    if any(value is None for value in raw):
        raise CatalogValidationError(f"{location}: provide all of 'l','a','b' or none")

    try:
        return float(raw[0]), float(raw[1]), float(raw[2])
    except (TypeError, ValueError) as exc:
        raise CatalogValidationError(
            f"{location}: invalid Lab values, expected numeric l/a/b"
        ) from exc


def _as_clean_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def _as_float(value: object, location: str, field_name: str) -> float | None:
    text = _as_clean_str(value)
    if text is None:
        return None
    try:
        return float(text)
    except ValueError as exc:
        raise CatalogValidationError(
            f"{location}: '{field_name}' must be numeric, got '{text}'"
        ) from exc


def _as_int(value: object, location: str) -> int | None:
    number = _as_float(value, location, "review_count")
    return None if number is None else int(number)


def _as_bool(value: object, location: str) -> bool:
    if isinstance(value, bool):
        return value
    text = _as_clean_str(value)
    if text is None:
        return True
    if text.lower() in _TRUE_VALUES:
        return True
    if text.lower() in _FALSE_VALUES:
        return False
    raise CatalogValidationError(f"{location}: 'available' must be a boolean, got '{text}'")
