#!/usr/bin/env python3
"""
EvoGoL Entrypoint - Run Game of Life seed evolution from YAML configuration.

This entrypoint allows for comprehensive configuration of the simulator, the
evolution loop and the per-species phenotype programs through a YAML config
file, providing more flexibility than the factory function
create_evolution_controller.

Usage:
    python run_evolution.py config.yaml
    python run_evolution.py --config config.yaml
    python run_evolution.py --config config.yaml --dry-run
"""

import argparse
import logging
import sys
import yaml
from pathlib import Path
from typing import Dict, Any, List

from evogol.core import (
    EvolutionController,
    EvolutionConfig,
    Simulator,
    SimulatorConfig,
)
from evogol.entities import ConfigError, FitnessGoal, PhenotypeProgram
from evogol.gol import minimum_steps
from evogol.phenotype import load_programs


def setup_logging():
    """Setup basic logging configuration."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def parse_goal(value: Any) -> FitnessGoal:
    """Parse a fitness goal given by name or number."""
    if isinstance(value, str):
        try:
            return FitnessGoal[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown fitness goal: {value}. "
                             f"Available: {[g.name for g in FitnessGoal]}") from None
    return FitnessGoal(value)


def create_evolution_config(config_dict: Dict[str, Any]) -> EvolutionConfig:
    """Create EvolutionConfig from configuration dictionary."""
    evolution_config = config_dict.get('evolution', {})
    mlflow_config = config_dict.get('mlflow', {})

    return EvolutionConfig(
        goal=parse_goal(evolution_config.get('goal', 'EXPLODE')),
        num_generations=evolution_config.get('num_generations', 100),
        early_stopping_generations=evolution_config.get('early_stopping_generations', 0),
        verbose=evolution_config.get('verbose', True),
        num_best_organisms=evolution_config.get('num_best_organisms', 5),
        experiment_name=mlflow_config.get('experiment_name', 'evogol_evolution'),
        log_artifacts=mlflow_config.get('log_artifacts', True),
        tracking_uri=mlflow_config.get('tracking_uri')
    )


def create_simulator_config(config_dict: Dict[str, Any]) -> SimulatorConfig:
    """Create SimulatorConfig from configuration dictionary."""
    simulator_config = config_dict.get('simulator', {})
    defaults = SimulatorConfig()

    return SimulatorConfig(
        crossover_rate=simulator_config.get('crossover_rate', defaults.crossover_rate),
        mutation_rate=simulator_config.get('mutation_rate', defaults.mutation_rate),
        selection_strategy=simulator_config.get('selection_strategy', defaults.selection_strategy),
        selection_params=simulator_config.get('selection_params', {}),
        num_steps=simulator_config.get('num_steps', defaults.num_steps),
        num_workers=simulator_config.get('num_workers', defaults.num_workers),
        seed=simulator_config.get('seed', defaults.seed)
    )


def create_simulator_from_config(config_dict: Dict[str, Any], num_species: int) -> Simulator:
    """Create Simulator from configuration dictionary."""
    simulator_config = config_dict.get('simulator', {})

    return Simulator(
        num_species=num_species,
        num_trials=simulator_config.get('num_trials', 1),
        num_organisms=simulator_config.get('num_organisms', 32),
        config=create_simulator_config(config_dict)
    )


def load_programs_from_config(config_dict: Dict[str, Any]) -> List[PhenotypeProgram]:
    """Load one phenotype program per species from configuration."""
    return load_programs(config_dict['programs'])


def validate_config(config: Dict[str, Any]) -> None:
    """Validate the configuration dictionary."""
    if not isinstance(config, dict):
        raise ValueError("Configuration must be a mapping")

    required_sections = ['programs']
    for section in required_sections:
        if section not in config:
            raise ValueError(f"Missing required configuration section: {section}")

    programs = config['programs']
    if not isinstance(programs, list) or not programs:
        raise ValueError("Programs section must list at least one program")

    for section in ('simulator', 'evolution', 'mlflow'):
        if not isinstance(config.get(section, {}), dict):
            raise ValueError(f"Configuration section '{section}' must be a mapping")

    goal = parse_goal(config.get('evolution', {}).get('goal', 'EXPLODE'))
    num_steps = config.get('simulator', {}).get('num_steps', SimulatorConfig().num_steps)
    if num_steps < minimum_steps(goal):
        raise ValueError(f"simulator.num_steps={num_steps} is too short for {goal.name}, "
                         f"which needs at least {minimum_steps(goal)}")


def run_evolution(config_file: Path, dry_run: bool = False) -> None:
    """Run the evolutionary experiment from configuration file."""
    # Load configuration
    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except Exception as e:
        print(f"Error loading configuration file: {e}")
        sys.exit(1)

    # Validate configuration, including every phenotype program
    try:
        validate_config(config)
        programs = load_programs_from_config(config)
    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    # Setup logging
    setup_logging()
    logger = logging.getLogger(__name__)

    if dry_run:
        print("Dry run mode - configuration validated successfully!")
        return

    try:
        logger.info("Creating evolution components...")

        evolution_config = create_evolution_config(config)
        simulator = create_simulator_from_config(config, num_species=len(programs))

        controller = EvolutionController(
            simulator=simulator,
            programs=programs,
            config=evolution_config
        )

        logger.info("Starting evolutionary optimization...")
        results = controller.run_evolution()

        # Print final results
        print("\n" + "=" * 60)
        print("Evolution Complete!")
        print("=" * 60)

        evolution_stats = results['evolution_stats']

        print(f"Generations run: {evolution_stats['generations_run']}")
        print(f"Best fitness achieved: {evolution_stats['best_fitness_seen']}")
        print(f"Early stopped: {evolution_stats['early_stopped']}")

        if results.get('best_organisms'):
            print(f"\nTop 3 organisms:")
            for i, organism in enumerate(results['best_organisms'][:3], 1):
                print(f"  {i}. Species {organism['species']}, trial {organism['trial']}, "
                      f"organism {organism['organism']}: {organism['fitness']} "
                      f"(Gen {organism['generation'] + 1})")

    except KeyboardInterrupt:
        logger.info("Evolution interrupted by user")
        print("\nEvolution interrupted!")
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        print(f"Configuration error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Evolution failed: {e}", exc_info=True)
        print(f"Evolution failed: {e}")
        sys.exit(1)


def main():
    """Main entrypoint."""
    parser = argparse.ArgumentParser(
        description="Run EvoGoL evolution of Game of Life seed patterns",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_evolution.py config.yaml
  python run_evolution.py --config my_config.yaml
  python run_evolution.py --config config.yaml --dry-run
  python run_evolution.py --example-config > example.yaml
        """
    )

    parser.add_argument(
        'config_file',
        nargs='?',
        type=Path,
        help='Path to YAML configuration file'
    )

    parser.add_argument(
        '--config', '-c',
        type=Path,
        help='Path to YAML configuration file (alternative to positional argument)'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate configuration without running evolution'
    )

    parser.add_argument(
        '--example-config',
        action='store_true',
        help='Print an example configuration file and exit'
    )

    args = parser.parse_args()

    if args.example_config:
        example_config_path = Path(__file__).parent / "config" / "example_config.yaml"
        try:
            with open(example_config_path, 'r') as f:
                print(f.read())
        except FileNotFoundError:
            print("Error: Example configuration file not found.")
            sys.exit(1)
        return

    # Determine config file
    config_file = args.config or args.config_file
    if not config_file:
        parser.error("Configuration file is required (provide as positional argument or with --config)")

    if not config_file.exists():
        print(f"Error: Configuration file not found: {config_file}")
        sys.exit(1)

    run_evolution(config_file, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
