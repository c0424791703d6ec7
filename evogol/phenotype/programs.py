"""
Loading phenotype programs from plain data.

Programs are written in YAML configs as nested dicts. This module converts
those documents into validated PhenotypeProgram objects, converts programs
back into dicts for experiment tracking, and ships a small library of
ready-made programs that can be referenced by name.

Document schema:

    draw_ops:
      - compose_mode: OR
        stamp: {gene_index: 0}            # or {pattern: [[0, 1, 0], ...]}
        stamp_transforms:
          - {type: ROTATE, args: [{gene_index: 1}]}
        global_transforms:
          - {type: TRANSLATE, args: [{value: 28}, {value: 28}]}

An argument is either `{gene_index: i}` (read a gene) or `{value: v}` (fixed).
A literal `pattern` smaller than a stamp is padded with dead cells.
"""

import logging
from typing import Any, Dict, List, Mapping

from ..entities import (
    STAMP_SIZE,
    BiasMode,
    ComposeMode,
    ConfigError,
    DrawOperation,
    PhenotypeProgram,
    ScalarArgument,
    StampArgument,
    TransformOperation,
    TransformType,
)
from ..gol import patterns
from .interpreter import validate_program


logger = logging.getLogger(__name__)


def _parse_enum(enum_cls, value: Any, where: str):
    if isinstance(value, str):
        try:
            return enum_cls[value.upper()]
        except KeyError:
            raise ConfigError(f"{where}: unknown {enum_cls.__name__} '{value}'") from None
    try:
        return enum_cls(value)
    except ValueError:
        raise ConfigError(f"{where}: invalid {enum_cls.__name__} {value!r}") from None


def _require_mapping(data: Any, where: str) -> Mapping:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{where}: expected a mapping, got {type(data).__name__}")
    return data


def _require_list(data: Any, where: str) -> List:
    if not isinstance(data, (list, tuple)):
        raise ConfigError(f"{where}: expected a list, got {type(data).__name__}")
    return list(data)


def _parse_scalar_argument(data: Any, where: str) -> ScalarArgument:
    data = _require_mapping(data, where)
    if "value" in data:
        return ScalarArgument.fixed(data["value"])
    return ScalarArgument(
        gene_index=data.get("gene_index", 0),
        bias=data.get("bias", 0),
        bias_mode=_parse_enum(BiasMode, data.get("bias_mode", BiasMode.NONE), where),
    )


def _parse_stamp_argument(data: Any, where: str) -> StampArgument:
    data = _require_mapping(data, where)
    if "pattern" in data:
        pattern = data["pattern"]
        if isinstance(pattern, str):
            if pattern not in patterns.PATTERNS:
                raise ConfigError(f"{where}: unknown pattern '{pattern}'")
            pattern = patterns.PATTERNS[pattern].tolist()
        pattern = [_require_list(row, where) for row in _require_list(pattern, where)]
        if len(pattern) > STAMP_SIZE or any(len(row) > STAMP_SIZE for row in pattern):
            raise ConfigError(f"{where}: pattern is larger than {STAMP_SIZE}x{STAMP_SIZE}")
        try:
            return StampArgument.fixed(patterns.to_stamp(pattern))
        except (ValueError, OverflowError) as e:
            raise ConfigError(f"{where}: invalid pattern: {e}") from e
    return StampArgument(
        gene_index=data.get("gene_index", 0),
        bias_mode=_parse_enum(BiasMode, data.get("bias_mode", BiasMode.NONE), where),
    )


def _parse_transforms(data: Any, where: str) -> List[TransformOperation]:
    transforms = []
    for i, entry in enumerate(_require_list(data, where)):
        location = f"{where}[{i}]"
        entry = _require_mapping(entry, location)
        if "type" not in entry:
            raise ConfigError(f"{location}: transform is missing 'type'")
        args = [
            _parse_scalar_argument(arg, f"{location}.args[{j}]")
            for j, arg in enumerate(_require_list(entry.get("args", []), location))
        ]
        transforms.append(TransformOperation(
            type=_parse_enum(TransformType, entry["type"], location), args=args))
    return transforms


def program_from_dict(data: Mapping) -> PhenotypeProgram:
    """
    Build and validate a PhenotypeProgram from a plain document.

    Args:
        data: Mapping following the schema in the module docstring

    Returns:
        A validated PhenotypeProgram

    Raises:
        ConfigError: If the document is malformed or breaks program limits
    """
    data = _require_mapping(data, "program")
    draw_ops = []
    for i, entry in enumerate(_require_list(data.get("draw_ops", []), "draw_ops")):
        where = f"draw_ops[{i}]"
        entry = _require_mapping(entry, where)
        draw_ops.append(DrawOperation(
            compose_mode=_parse_enum(ComposeMode, entry.get("compose_mode", "OR"), where),
            stamp=_parse_stamp_argument(entry.get("stamp", {}), f"{where}.stamp"),
            stamp_transforms=_parse_transforms(
                entry.get("stamp_transforms", []), f"{where}.stamp_transforms"),
            global_transforms=_parse_transforms(
                entry.get("global_transforms", []), f"{where}.global_transforms"),
        ))
    return validate_program(PhenotypeProgram(draw_ops=draw_ops))


def _argument_to_dict(argument: ScalarArgument) -> Dict[str, Any]:
    if argument.bias_mode == BiasMode.FIXED_VALUE:
        return {"value": int(argument.bias)}
    return {"gene_index": int(argument.gene_index)}


def _transforms_to_list(transforms) -> List[Dict[str, Any]]:
    return [
        {
            "type": TransformType(t.type).name,
            "args": [_argument_to_dict(a) for a in t.args],
        }
        for t in transforms
    ]


def program_to_dict(program: PhenotypeProgram) -> Dict[str, Any]:
    """Convert a program into a document accepted by program_from_dict."""
    draw_ops = []
    for draw_op in program.draw_ops:
        if draw_op.stamp.bias_mode == BiasMode.FIXED_VALUE:
            stamp = {"pattern": [list(row) for row in draw_op.stamp.bias]}
        else:
            stamp = {"gene_index": int(draw_op.stamp.gene_index)}
        draw_ops.append({
            "compose_mode": ComposeMode(draw_op.compose_mode).name,
            "stamp": stamp,
            "stamp_transforms": _transforms_to_list(draw_op.stamp_transforms),
            "global_transforms": _transforms_to_list(draw_op.global_transforms),
        })
    return {"draw_ops": draw_ops}


PROGRAM_LIBRARY: Dict[str, Dict[str, Any]] = {
    # One evolvable stamp in the middle of the world
    "centered_stamp": {
        "draw_ops": [{
            "stamp": {"gene_index": 0},
            "global_transforms": [
                {"type": "TRANSLATE", "args": [{"value": 28}, {"value": 28}]},
            ],
        }],
    },
    # One evolvable stamp whose position is also evolvable
    "free_stamp": {
        "draw_ops": [{
            "stamp": {"gene_index": 0},
            "global_transforms": [
                {"type": "TRANSLATE", "args": [{"gene_index": 0}, {"gene_index": 1}]},
            ],
        }],
    },
    # An evolvable stamp repeated across the world with empty gutters
    "tiled_stamp": {
        "draw_ops": [{
            "stamp": {"gene_index": 0},
            "global_transforms": [
                {"type": "TILE", "args": [{"value": 16}, {"value": 16}]},
            ],
        }],
    },
    # An evolvable stamp and its left-right reflection
    "mirrored_stamp": {
        "draw_ops": [{
            "stamp": {"gene_index": 0},
            "global_transforms": [
                {"type": "TRANSLATE", "args": [{"value": 28}, {"value": 20}]},
                {"type": "MIRROR", "args": [{"value": 1}]},
            ],
        }],
    },
    # Gliders in an evolvable orientation, laid out in a 3x3 grid
    "glider_array": {
        "draw_ops": [{
            "stamp": {"pattern": "glider"},
            "stamp_transforms": [
                {"type": "ROTATE", "args": [{"gene_index": 0}]},
            ],
            "global_transforms": [
                {"type": "TRANSLATE", "args": [{"value": 8}, {"value": 8}]},
                {"type": "ARRAY_2D", "args": [{"value": 2}, {"value": 2}, {"value": 16}, {"value": 16}]},
            ],
        }],
    },
    # Two evolvable stamps overlapping in the middle, combined with XOR
    "layered_stamps": {
        "draw_ops": [
            {
                "stamp": {"gene_index": 0},
                "stamp_transforms": [{"type": "SCALE", "args": [{"value": 1}]}],
                "global_transforms": [
                    {"type": "TRANSLATE", "args": [{"value": 24}, {"value": 24}]},
                ],
            },
            {
                "compose_mode": "XOR",
                "stamp": {"gene_index": 1},
                "global_transforms": [
                    {"type": "TRANSLATE", "args": [{"value": 28}, {"value": 28}]},
                ],
            },
        ],
    },
}


def get_library_program(name: str) -> PhenotypeProgram:
    """Look up a built-in program by name."""
    if name not in PROGRAM_LIBRARY:
        raise ConfigError(f"Unknown program: {name}. Available: {list(PROGRAM_LIBRARY.keys())}")
    return program_from_dict(PROGRAM_LIBRARY[name])


def load_programs(entries: List[Any]) -> List[PhenotypeProgram]:
    """
    Load one program per species from config entries.

    Each entry is either the name of a library program or a program document.
    """
    programs = []
    for i, entry in enumerate(_require_list(entries, "programs")):
        if isinstance(entry, str):
            program = get_library_program(entry)
        else:
            try:
                program = program_from_dict(entry)
            except ConfigError as e:
                raise ConfigError(f"programs[{i}]: {e}") from e
        programs.append(program)
    logger.debug(f"Loaded {len(programs)} phenotype programs")
    return programs
