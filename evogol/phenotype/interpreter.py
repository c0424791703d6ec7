"""
Phenotype program interpreter.

Turns a (PhenotypeProgram, Genotype) pair into an initial Frame. Programs are
validated once, when they are loaded or handed to the simulator; `render`
itself assumes a valid program and is a pure function of its inputs.
"""

from typing import Optional, Sequence

import numpy as np

from ..entities import (
    CELL_DTYPE,
    MAX_ARGUMENTS,
    MAX_DRAWS,
    MAX_GENE_VALUE,
    MAX_TRANSFORMS,
    NUM_GENES,
    STAMP_SIZE,
    WORLD_SIZE,
    BiasMode,
    ComposeMode,
    ConfigError,
    DrawOperation,
    Genotype,
    PhenotypeProgram,
    ScalarArgument,
    StampArgument,
    TransformOperation,
    TransformType,
    as_genotype,
)
from .transforms import TRANSFORMS


COMPOSERS = {
    ComposeMode.OR: np.logical_or,
    ComposeMode.XOR: np.logical_xor,
    ComposeMode.AND: np.logical_and,
}


def _enum_member(enum_cls, value, where: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ConfigError(f"{where}: invalid {enum_cls.__name__} {value!r}") from None


def _check_gene_index(gene_index, where: str):
    if not isinstance(gene_index, (int, np.integer)) or isinstance(gene_index, bool):
        raise ConfigError(f"{where}: gene_index must be an integer, got {gene_index!r}")
    if not 0 <= gene_index < NUM_GENES:
        raise ConfigError(f"{where}: gene_index {gene_index} outside [0, {NUM_GENES})")


def _validate_scalar_argument(argument: ScalarArgument, where: str):
    if not isinstance(argument, ScalarArgument):
        raise ConfigError(f"{where}: expected ScalarArgument, got {type(argument).__name__}")
    _check_gene_index(argument.gene_index, where)
    _enum_member(BiasMode, argument.bias_mode, where)
    if not isinstance(argument.bias, (int, np.integer)) or not 0 <= argument.bias <= MAX_GENE_VALUE:
        raise ConfigError(f"{where}: bias {argument.bias!r} is not an unsigned 32-bit integer")


def _validate_stamp_argument(argument: StampArgument, where: str):
    if not isinstance(argument, StampArgument):
        raise ConfigError(f"{where}: expected StampArgument, got {type(argument).__name__}")
    _check_gene_index(argument.gene_index, where)
    mode = _enum_member(BiasMode, argument.bias_mode, where)
    if mode == BiasMode.FIXED_VALUE:
        rows = argument.bias
        if len(rows) != STAMP_SIZE or any(len(row) != STAMP_SIZE for row in rows):
            raise ConfigError(f"{where}: literal stamp must be {STAMP_SIZE}x{STAMP_SIZE}")
        if any(cell not in (0, 1) for row in rows for cell in row):
            raise ConfigError(f"{where}: literal stamp may only contain 0 and 1")


def _validate_transforms(transforms: Sequence[TransformOperation], where: str):
    if len(transforms) > MAX_TRANSFORMS:
        raise ConfigError(f"{where}: {len(transforms)} transforms exceed MAX_TRANSFORMS={MAX_TRANSFORMS}")
    for i, transform in enumerate(transforms):
        location = f"{where}[{i}]"
        if not isinstance(transform, TransformOperation):
            raise ConfigError(f"{location}: expected TransformOperation, got {type(transform).__name__}")
        transform_type = _enum_member(TransformType, transform.type, location)
        if len(transform.args) > MAX_ARGUMENTS:
            raise ConfigError(
                f"{location}: {len(transform.args)} arguments exceed MAX_ARGUMENTS={MAX_ARGUMENTS}")
        required = TRANSFORMS[transform_type].arity
        if len(transform.args) < required:
            raise ConfigError(
                f"{location}: {transform_type.name} needs {required} arguments, got {len(transform.args)}")
        for j, argument in enumerate(transform.args):
            _validate_scalar_argument(argument, f"{location}.args[{j}]")


def validate_program(program: PhenotypeProgram) -> PhenotypeProgram:
    """
    Check a phenotype program against the fixed capacities and gene layout.

    Args:
        program: The program to check

    Returns:
        The same program, so calls can be chained

    Raises:
        ConfigError: If any part of the program is malformed
    """
    if not isinstance(program, PhenotypeProgram):
        raise ConfigError(f"Expected PhenotypeProgram, got {type(program).__name__}")
    if len(program.draw_ops) > MAX_DRAWS:
        raise ConfigError(f"{len(program.draw_ops)} draw operations exceed MAX_DRAWS={MAX_DRAWS}")

    for i, draw_op in enumerate(program.draw_ops):
        where = f"draw_ops[{i}]"
        if not isinstance(draw_op, DrawOperation):
            raise ConfigError(f"{where}: expected DrawOperation, got {type(draw_op).__name__}")
        _enum_member(ComposeMode, draw_op.compose_mode, where)
        _validate_stamp_argument(draw_op.stamp, f"{where}.stamp")
        _validate_transforms(draw_op.stamp_transforms, f"{where}.stamp_transforms")
        _validate_transforms(draw_op.global_transforms, f"{where}.global_transforms")
    return program


def resolve_scalar(argument: ScalarArgument, genotype: Genotype) -> int:
    """Resolve a scalar operand to an unsigned integer."""
    if argument.bias_mode == BiasMode.FIXED_VALUE:
        return int(argument.bias)
    return int(genotype.scalar_genes[argument.gene_index])


def resolve_stamp(argument: StampArgument, genotype: Genotype) -> np.ndarray:
    """Resolve a stamp operand to a STAMP_SIZE x STAMP_SIZE boolean canvas."""
    if argument.bias_mode == BiasMode.FIXED_VALUE:
        return np.array(argument.bias, dtype=bool)
    return genotype.stamp_genes[argument.gene_index].astype(bool)


def _run_pipeline(canvas: np.ndarray, transforms: Sequence[TransformOperation],
                  genotype: Genotype) -> np.ndarray:
    for transform in transforms:
        spec = TRANSFORMS[TransformType(transform.type)]
        values = [resolve_scalar(argument, genotype) for argument in transform.args]
        canvas = spec.apply(canvas, values)
    return canvas


def render_layer(draw_op: DrawOperation, genotype: Genotype) -> np.ndarray:
    """Render one draw operation onto an otherwise empty world canvas."""
    stamp = resolve_stamp(draw_op.stamp, genotype)
    stamp = _run_pipeline(stamp, draw_op.stamp_transforms, genotype)

    layer = np.zeros((WORLD_SIZE, WORLD_SIZE), dtype=bool)
    layer[:STAMP_SIZE, :STAMP_SIZE] = stamp
    return _run_pipeline(layer, draw_op.global_transforms, genotype)


def render(program: PhenotypeProgram, genotype) -> np.ndarray:
    """
    Interpret a genotype through a phenotype program.

    Draw operations are composited in order onto an all-dead canvas; an
    operation whose compose mode is NONE is skipped.

    Args:
        program: A validated PhenotypeProgram
        genotype: A Genotype or a GENOTYPE_DTYPE record

    Returns:
        The rendered (WORLD_SIZE, WORLD_SIZE) frame
    """
    genotype = as_genotype(genotype)
    canvas = np.zeros((WORLD_SIZE, WORLD_SIZE), dtype=bool)
    for draw_op in program.draw_ops:
        compose_mode = ComposeMode(draw_op.compose_mode)
        if compose_mode == ComposeMode.NONE:
            continue
        layer = render_layer(draw_op, genotype)
        canvas = COMPOSERS[compose_mode](canvas, layer)
    return canvas.astype(CELL_DTYPE)


def render_phenotype(program: PhenotypeProgram, genotype: Optional[Genotype] = None) -> np.ndarray:
    """Validate a program and render it, using an all-zero genotype by default."""
    validate_program(program)
    if genotype is None:
        genotype = Genotype.zeros()
    return render(program, genotype)
