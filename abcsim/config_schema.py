"""
abcsim/config_schema.py - Parameter Files

Load and save SimParameters as JSON or YAML, validated against a compiled
JSON Schema (Draft 2020-12).

A parameter file is a flat mapping of parameter names (snake_case or the
UI's camelCase) with an optional "preset" base:

    preset: black_hole
    central_mass: 20
    timeSpeed: 0.5

Validation policy:
- Wrong types are errors (ValueError)
- Out-of-range values and unknown keys are warnings (UserWarning);
  with strict=True they are errors too
"""

import json
import logging
import warnings
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml
from jsonschema import Draft202012Validator

from .types_config import (
    DEFAULT_PARAMETERS, FIELD_NAMES, PRESETS, SimParameters, apply_patch,
    canonical_key,
)

logger = logging.getLogger(__name__)

_NUMBER = {"type": "number"}
_NON_NEGATIVE = {"type": "number", "minimum": 0}

_JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "SimParameters",
    "description": "ABC emergence engine parameters",
    "type": "object",
    "properties": {
        "preset": {"type": "string", "enum": sorted(PRESETS)},
        "scale": {"type": "integer", "minimum": 0, "maximum": 8},
        "n_abc": {"type": "integer", "minimum": 0},
        "density": _NON_NEGATIVE,
        "central_mass": _NUMBER,
        "time_speed": _NON_NEGATIVE,
        "velocity": {"type": "number", "minimum": 0, "exclusiveMaximum": 1},
        "strong_energy": _NON_NEGATIVE,
        "weak_energy": _NON_NEGATIVE,
        "radio_pi": _NON_NEGATIVE,
        "evolution_rate": _NON_NEGATIVE,
        "dimension_count": {"type": "number", "minimum": 2, "maximum": 3},
        "initial_rigidity": _NON_NEGATIVE,
    },
}

Draft202012Validator.check_schema(_JSON_SCHEMA)
_COMPILED_VALIDATOR = Draft202012Validator(_JSON_SCHEMA)

# Schema failures reported as warnings rather than errors
_SOFT_VALIDATORS = frozenset({"minimum", "maximum", "exclusiveMaximum", "exclusiveMinimum"})


def get_schema() -> Dict[str, Any]:
    return dict(_JSON_SCHEMA)


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {canonical_key(str(k)): v for k, v in data.items()}


def validate_parameters(data: Dict[str, Any]) -> Tuple[List[str], List[str]]:
    """
    Validate a parameter mapping.

    Returns: (errors, warnings)
    """
    errors: List[str] = []
    warns: List[str] = []

    if not isinstance(data, dict):
        return [f"Parameter file must be a mapping, got {type(data).__name__}"], warns

    normalized = _normalize_keys(data)
    for key in sorted(set(normalized) - FIELD_NAMES - {"preset"}):
        warns.append(f"Unknown parameter: {key}")

    for err in _COMPILED_VALIDATOR.iter_errors(normalized):
        location = ".".join(str(p) for p in err.path) or "<root>"
        message = f"{location}: {err.message}"
        if err.validator in _SOFT_VALIDATORS:
            warns.append(message)
        else:
            errors.append(message)
    return errors, warns


def parameters_from_mapping(data: Dict[str, Any], validate: bool = True, strict: bool = False) -> SimParameters:
    """
    Build SimParameters from a mapping (preset base + overrides).

    Raises:
        ValueError: On type errors, or on any warning when strict=True
    """
    if validate:
        errors, warns = validate_parameters(data)
        if strict:
            errors = errors + warns
            warns = []
        if errors:
            raise ValueError("Parameter validation failed:\n" + "\n".join(f"  - {e}" for e in errors))
        for w in warns:
            warnings.warn(f"SimParameters: {w}", UserWarning, stacklevel=3)

    normalized = _normalize_keys(data)
    base = PRESETS.get(normalized.pop("preset", "default"), DEFAULT_PARAMETERS)
    overrides = {k: v for k, v in normalized.items() if k in FIELD_NAMES}
    return apply_patch(base, overrides)


def load_parameters(path: str, validate: bool = True, strict: bool = False) -> SimParameters:
    """
    Load parameters from a JSON/YAML file.

    Args:
        path: Path to parameter file
        validate: Whether to validate (default True)
        strict: If True, warnings become errors

    Returns:
        Frozen SimParameters

    Raises:
        FileNotFoundError: If path doesn't exist
        ValueError: If the file cannot be parsed or validation fails
    """
    path_obj = Path(path)

    if not path_obj.exists():
        raise FileNotFoundError(f"Parameter file not found: {path}")

    content = path_obj.read_text()

    try:
        if path_obj.suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Cannot parse {path}: {e}")

    if data is None:
        data = {}
    logger.debug("Loaded parameter file %s", path)
    return parameters_from_mapping(data, validate=validate, strict=strict)


def save_parameters(params: SimParameters, path: str) -> None:
    """Write parameters as JSON, or YAML for .yaml/.yml paths."""
    path_obj = Path(path)
    data = params.to_dict()
    if path_obj.suffix in ('.yaml', '.yml'):
        content = yaml.safe_dump(data, default_flow_style=False, sort_keys=True)
    else:
        content = json.dumps(data, indent=2, sort_keys=True)
    path_obj.write_text(content)
