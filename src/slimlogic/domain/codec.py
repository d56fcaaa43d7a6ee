"""JSON-compatible encoding of daily logs."""

from datetime import UTC, date, datetime

from slimlogic.domain.coach import DailyAnalysis
from slimlogic.domain.models import DailyLog, FoodEntry, MacroNutrients


def macros_to_dict(macros: MacroNutrients) -> dict[str, float]:
    return {
        "calories": macros.calories,
        "protein": macros.protein,
        "carbs": macros.carbs,
        "fats": macros.fats,
        "saturatedFats": macros.saturated_fats,
        "sugars": macros.sugars,
    }


def macros_from_dict(raw: dict[str, object]) -> MacroNutrients:
    return MacroNutrients(
        calories=_to_float(raw.get("calories")),
        protein=_to_float(raw.get("protein")),
        carbs=_to_float(raw.get("carbs")),
        fats=_to_float(raw.get("fats")),
        saturated_fats=_to_float(raw.get("saturatedFats")),
        sugars=_to_float(raw.get("sugars")),
    )


def entry_to_dict(entry: FoodEntry) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": entry.id,
        "name": entry.name,
        "timestamp": int(entry.timestamp.timestamp() * 1000),
        "macros": macros_to_dict(entry.macros),
    }
    if entry.verdict is not None:
        payload["verdict"] = entry.verdict
    if entry.image_uri is not None:
        payload["imageUri"] = entry.image_uri
    return payload


def entry_from_dict(raw: dict[str, object]) -> FoodEntry:
    macros = raw.get("macros")
    return FoodEntry(
        id=str(raw["id"]),
        name=str(raw.get("name", "")),
        timestamp=datetime.fromtimestamp(
            _to_float(raw.get("timestamp")) / 1000, tz=UTC
        ),
        macros=macros_from_dict(macros if isinstance(macros, dict) else {}),
        verdict=_optional_str(raw.get("verdict")),
        image_uri=_optional_str(raw.get("imageUri")),
    )


def log_to_dict(log: DailyLog, include_images: bool = True) -> dict[str, object]:
    """Encode a log; image data can be left out to keep prompts small."""
    entries = []
    for entry in log.entries:
        encoded = entry_to_dict(entry)
        if not include_images:
            encoded.pop("imageUri", None)
        entries.append(encoded)
    payload: dict[str, object] = {
        "date": log.date.isoformat(),
        "entries": entries,
    }
    if log.weight is not None:
        payload["weight"] = log.weight
    if log.notes is not None:
        payload["notes"] = log.notes
    if log.analysis is not None:
        payload["analysis"] = log.analysis.model_dump()
    return payload


def log_from_dict(raw: dict[str, object]) -> DailyLog:
    entries = raw.get("entries")
    analysis = raw.get("analysis")
    weight = raw.get("weight")
    return DailyLog(
        date=date.fromisoformat(str(raw["date"])),
        entries=tuple(
            entry_from_dict(entry)
            for entry in (entries if isinstance(entries, list) else [])
            if isinstance(entry, dict)
        ),
        weight=float(weight) if isinstance(weight, int | float) else None,
        notes=_optional_str(raw.get("notes")),
        analysis=(
            DailyAnalysis.model_validate(analysis)
            if isinstance(analysis, dict)
            else None
        ),
    )


def _to_float(value: object) -> float:
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def _optional_str(value: object) -> str | None:
    return str(value) if value is not None else None
