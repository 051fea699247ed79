from __future__ import annotations

import json
from dataclasses import fields
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from casino.engine.types import GameConfig


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(
    instance: object,
    schema: Mapping[str, object],
    *,
    context: str,
    error: type[ContentError] = ContentError,
) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.absolute_path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise error("\n".join(lines))


def _require_object(raw: object, context: str) -> dict[str, object]:
    if not isinstance(raw, dict):
        raise ContentError(f"{context} must be an object")
    return raw


class ContentService:
    """Loads the rule constants and the shared-state schema from the data dir."""

    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir
        self._state_schema: dict[str, object] | None = None

    def load_rules(self, path: Path | None = None) -> GameConfig:
        rules_path = path or self._data_dir / "rules.json"
        schema = _require_object(_load_json(self._schema_dir / "rules.schema.json"), "rules schema")
        raw = _require_object(_load_json(rules_path), str(rules_path))
        validate_json(raw, schema, context=str(rules_path))

        known = {f.name for f in fields(GameConfig)}
        values = {k: v for k, v in raw.items() if k in known}
        if "deal_delay" in values:
            values["deal_delay"] = float(values["deal_delay"])  # type: ignore[arg-type]
        return GameConfig(**values)  # type: ignore[arg-type]

    def state_schema(self) -> dict[str, object]:
        if self._state_schema is None:
            self._state_schema = _require_object(
                _load_json(self._schema_dir / "game_state.schema.json"), "game state schema"
            )
        return self._state_schema

    def validate_all(self) -> None:
        # load_rules validates against rules.schema.json on the way in
        _ = self.load_rules()
        Draft202012Validator.check_schema(self.state_schema())
