from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from jsonschema import ValidationError
from jsonschema.validators import Draft202012Validator

from .errors import ConfigInvalid
from .io import read_json


@dataclass(frozen=True)
class SchemaRegistry:
    schemas_base_dir: Path

    def validate(self, document: dict, schema_filename: str) -> None:
        schema = read_json(self.schemas_base_dir / schema_filename)
        try:
            Draft202012Validator(schema).validate(document)
        except ValidationError as e:
            where = "/".join(str(p) for p in e.absolute_path) or "<root>"
            raise ConfigInvalid(code="CONFIG_INVALID", message=f"{where}: {e.message}") from e
