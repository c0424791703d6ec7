"""
Phenotype programs: the interpreter that renders genotypes into initial
frames, and loaders for programs written as plain data.
"""

from .interpreter import render, render_phenotype, validate_program
from .programs import (
    PROGRAM_LIBRARY,
    get_library_program,
    load_programs,
    program_from_dict,
    program_to_dict,
)

__all__ = [
    "render",
    "render_phenotype",
    "validate_program",
    "PROGRAM_LIBRARY",
    "get_library_program",
    "load_programs",
    "program_from_dict",
    "program_to_dict",
]
