"""
Core components for EvoGoL - evolving Game of Life seed patterns.
"""

from .rng import RandomStream

from .selection import (
    SelectionStrategy,
    FitnessProportionateSelection,
    TournamentSelection,
    create_selection_strategy,
    select
)

from .reproduction import (
    breed_population,
    random_population
)

from .simulator import (
    Simulator,
    SimulatorConfig,
    simulate_organism
)

from .controller import (
    EvolutionController,
    EvolutionConfig,
    create_evolution_controller
)

__all__ = [
    "RandomStream",
    "SelectionStrategy",
    "FitnessProportionateSelection",
    "TournamentSelection",
    "create_selection_strategy",
    "select",
    "breed_population",
    "random_population",
    "Simulator",
    "SimulatorConfig",
    "simulate_organism",
    "EvolutionController",
    "EvolutionConfig",
    "create_evolution_controller"
]
