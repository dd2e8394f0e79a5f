# src/smallbasis/compression/__init__.py
from .basis import basis_matrix, ortho_basis, normalize_columns, build_basis
from .blocks import BlockCodec, serpentine_indices, to_unit_rgb
from .solver import ExactSolver, ProjectionSolver, linear_combination
from .ranking import accumulate_importance, rank_directions, retained_count, select_basis
from .smallbasis_compressor import SmallBasisCompressor
from .base import *

__all__ = [
    "BaseCompressor",
    "SmallBasisCompressor",
    "BlockCodec",
    "ExactSolver",
    "ProjectionSolver",
    "basis_matrix",
    "ortho_basis",
    "normalize_columns",
    "build_basis",
    "serpentine_indices",
    "to_unit_rgb",
    "linear_combination",
    "accumulate_importance",
    "rank_directions",
    "retained_count",
    "select_basis",
]
