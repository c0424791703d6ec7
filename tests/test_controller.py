"""
Lightweight tests for the controller module.

These tests run a real but tiny Simulator and use mocking to avoid
external dependencies like an MLflow tracking server.
"""

import json

import numpy as np
import pytest
from unittest.mock import Mock, patch

from evogol.core.controller import (
    EvolutionController,
    EvolutionConfig,
    create_evolution_controller
)
from evogol.core.simulator import Simulator, SimulatorConfig
from evogol.entities import FitnessGoal, Genotype, PhenotypeProgram
from evogol.phenotype.programs import get_library_program


class TestEvolutionConfig:
    """Test the evolution configuration class."""

    def test_default_config(self):
        """Test default configuration values."""
        config = EvolutionConfig()

        assert config.goal == FitnessGoal.EXPLODE
        assert config.num_generations == 100
        assert config.early_stopping_generations == 0
        assert config.verbose is True
        assert config.experiment_name == "evogol_evolution"
        assert config.log_artifacts is True
        assert config.tracking_uri is None

    def test_custom_config(self):
        """Test custom configuration values."""
        config = EvolutionConfig(
            goal=FitnessGoal.GLIDERS,
            num_generations=5,
            verbose=False,
            experiment_name="test_experiment"
        )

        assert config.goal == FitnessGoal.GLIDERS
        assert config.num_generations == 5
        assert config.verbose is False
        assert config.experiment_name == "test_experiment"


class TestEvolutionController:
    """Test the main evolution controller functionality."""

    @pytest.fixture
    def programs(self):
        return [get_library_program("centered_stamp"), get_library_program("free_stamp")]

    @pytest.fixture
    def simulator(self):
        return Simulator(2, 2, 4, SimulatorConfig(num_steps=10, seed=3))

    def make_controller(self, simulator, programs, **kwargs):
        kwargs.setdefault('verbose', False)
        kwargs.setdefault('log_artifacts', False)
        return EvolutionController(simulator, programs, EvolutionConfig(**kwargs))

    @patch('evogol.core.controller.mlflow')
    def test_controller_initialization(self, mock_mlflow, simulator, programs):
        """Test controller initialization with mocked MLflow."""
        mock_experiment = Mock()
        mock_experiment.experiment_id = "test_exp_id"
        mock_mlflow.get_experiment_by_name.return_value = mock_experiment

        controller = self.make_controller(simulator, programs)

        assert controller.simulator is simulator
        assert controller.programs == programs
        assert controller.stats == {
            'generations_run': 0,
            'best_fitness_seen': 0,
            'best_generation': -1,
            'generations_without_improvement': 0,
            'early_stopped': False,
        }
        mock_mlflow.create_experiment.assert_not_called()
        mock_mlflow.set_experiment.assert_called_once_with(experiment_id="test_exp_id")

    @patch('evogol.core.controller.mlflow')
    def test_creates_missing_experiment(self, mock_mlflow, simulator, programs):
        mock_mlflow.get_experiment_by_name.return_value = None
        mock_mlflow.create_experiment.return_value = "new_id"

        self.make_controller(simulator, programs, tracking_uri="file:///tmp/mlruns")

        mock_mlflow.set_tracking_uri.assert_called_once_with("file:///tmp/mlruns")
        mock_mlflow.create_experiment.assert_called_once_with("evogol_evolution")
        mock_mlflow.set_experiment.assert_called_once_with(experiment_id="new_id")

    @patch('evogol.core.controller.mlflow')
    def test_run_evolution(self, mock_mlflow, simulator, programs):
        """Test a short complete run."""
        controller = self.make_controller(simulator, programs, num_generations=3)
        results = controller.run_evolution()

        mock_mlflow.start_run.assert_called_once()
        assert results['evolution_stats']['generations_run'] == 3
        assert results['population_stats']['generation'] == 3
        assert simulator.generation == 3
        assert len(results['best_organisms']) == 5
        assert mock_mlflow.log_metrics.call_count == 4

        logged_params = {c.args[0] for c in mock_mlflow.log_param.call_args_list}
        assert {'goal', 'num_generations', 'num_species', 'simulator_seed'} <= logged_params

    @patch('evogol.core.controller.mlflow')
    def test_best_organisms_are_sorted(self, mock_mlflow, simulator, programs):
        controller = self.make_controller(simulator, programs, num_generations=2,
                                          num_best_organisms=8)
        results = controller.run_evolution()

        scores = [organism['fitness'] for organism in results['best_organisms']]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == results['evolution_stats']['best_fitness_seen']

    @patch('evogol.core.controller.mlflow')
    def test_early_stopping(self, mock_mlflow, simulator):
        """An empty program never improves, so the run stops early."""
        programs = [PhenotypeProgram(), PhenotypeProgram()]
        controller = self.make_controller(simulator, programs, num_generations=10,
                                          early_stopping_generations=2)
        results = controller.run_evolution()

        assert results['evolution_stats']['generations_run'] == 3
        assert results['evolution_stats']['early_stopped'] is True
        mock_mlflow.log_param.assert_any_call("early_stopped", True)
        # Stopped before breeding, so genotypes still match the stored fitness
        assert simulator.generation == 2

    @patch('evogol.core.controller.mlflow')
    def test_run_drives_simulator_evolve(self, mock_mlflow, simulator, programs):
        controller = self.make_controller(simulator, programs, num_generations=2)
        simulator.evolve = Mock(wraps=simulator.evolve)
        controller.run_evolution()

        simulator.evolve.assert_called_once_with(
            programs, FitnessGoal.EXPLODE, 2, callback=controller._on_generation)
        assert controller.stats['generations_run'] == 2

    @patch('evogol.core.controller.mlflow')
    def test_rejects_horizon_too_short_for_goal(self, mock_mlflow, programs):
        simulator = Simulator(2, 1, 2, SimulatorConfig(num_steps=3))

        with pytest.raises(ValueError, match="too short for GLIDERS"):
            self.make_controller(simulator, programs, goal=FitnessGoal.GLIDERS)
        mock_mlflow.set_experiment.assert_not_called()

    @patch('evogol.core.controller.mlflow')
    def test_early_stopping_disabled(self, mock_mlflow, simulator):
        programs = [PhenotypeProgram(), PhenotypeProgram()]
        controller = self.make_controller(simulator, programs, num_generations=4)
        results = controller.run_evolution()

        assert results['evolution_stats']['generations_run'] == 4
        assert results['evolution_stats']['early_stopped'] is False

    @patch('evogol.core.controller.mlflow')
    def test_run_single_generation(self, mock_mlflow, simulator, programs):
        controller = self.make_controller(simulator, programs)
        simulator.populate(programs)
        result = controller.run_single_generation(0)

        assert result['improved'] is True
        assert len(result['species_best_fitness']) == 2
        assert result['best_fitness'] == max(result['species_best_fitness'])
        assert result['worst_fitness'] <= result['mean_fitness'] <= result['best_fitness']
        assert simulator.generation == 1

    @patch('evogol.core.controller.mlflow')
    def test_get_best_organism(self, mock_mlflow, simulator, programs):
        controller = self.make_controller(simulator, programs, num_generations=2)

        with pytest.raises(ValueError, match="No generations"):
            controller.get_best_organism()

        controller.run_evolution()
        index, genotype, fitness = controller.get_best_organism()

        assert len(index) == 3
        assert isinstance(genotype, Genotype)
        assert fitness == controller.stats['best_fitness_seen']

    @patch('evogol.core.controller.mlflow')
    def test_best_organism_comes_from_scored_generation(self, mock_mlflow, simulator, programs):
        """The best organism is taken from the population that earned its score."""
        controller = self.make_controller(simulator, programs)
        simulator.populate(programs)
        scored = simulator.get_genotypes()
        controller.run_single_generation(0)

        index, genotype, _ = controller.get_best_organism()
        assert genotype == Genotype.from_record(scored[index])

    @patch('evogol.core.controller.mlflow')
    def test_generation_errors_are_raised(self, mock_mlflow, simulator, programs):
        controller = self.make_controller(simulator, programs, num_generations=2)
        simulator.simulate_and_record = Mock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            controller.run_evolution()
        mock_mlflow.log_metric.assert_any_call("generation_errors", 1, step=0)

    @patch('evogol.core.controller.mlflow')
    def test_logs_artifacts(self, mock_mlflow, simulator, programs):
        controller = self.make_controller(simulator, programs, num_generations=1,
                                          log_artifacts=True)
        controller.run_evolution()

        artifact_paths = [c.args[1] for c in mock_mlflow.log_artifact.call_args_list]
        assert artifact_paths == ["best_organisms", "programs"]

        with open(mock_mlflow.log_artifact.call_args_list[1].args[0]) as f:
            assert len(json.load(f)) == 2

    @patch('evogol.core.controller.mlflow')
    def test_verbose_output(self, mock_mlflow, simulator, programs, capsys):
        controller = self.make_controller(simulator, programs, num_generations=2, verbose=True)
        controller.run_evolution()

        output = capsys.readouterr().out
        assert "Initial Population" in output
        assert "Gen   1" in output
        assert "Gen   2" in output


class TestCreateEvolutionController:
    """Test the controller factory."""

    @patch('evogol.core.controller.mlflow')
    def test_factory(self, mock_mlflow):
        programs = [get_library_program("tiled_stamp")] * 3
        controller = create_evolution_controller(
            programs, num_trials=2, num_organisms=5,
            simulator_config=SimulatorConfig(num_steps=5),
            experiment_name="factory_experiment",
            mlflow_tracking_uri="file:///tmp/mlruns"
        )

        assert controller.simulator.shape == (3, 2, 5)
        assert controller.simulator.config.num_steps == 5
        assert controller.config.experiment_name == "factory_experiment"
        assert controller.config.tracking_uri == "file:///tmp/mlruns"

    @patch('evogol.core.controller.mlflow')
    def test_factory_keeps_given_config(self, mock_mlflow):
        config = EvolutionConfig(goal=FitnessGoal.SYMMETRY, experiment_name="mine")
        controller = create_evolution_controller([PhenotypeProgram()], config=config)

        assert controller.config is config
        assert controller.config.experiment_name == "mine"
        assert controller.simulator.shape == (1, 1, 32)
