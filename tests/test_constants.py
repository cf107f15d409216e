import pytest

from jaxpif._constants import (
    length_default, number_grid_points, number_particles, mass_particle, charge_particle,
    epsilon_0, beam_speed, thermal_velocity, two_stream_spread, wave_mode,
    perturbation_amplitude, standing_amplitude, timestep, stop_time, mode_log_max
)


def test_domain_defaults():
    assert length_default == 16.0, "Incorrect default system length"
    assert number_grid_points == 64, "Incorrect default grid size"
    assert number_grid_points & (number_grid_points - 1) == 0, "Grid size must be a power of two"
    assert number_particles == 10000, "Incorrect default particle count"

def test_species_defaults():
    assert mass_particle == 0.005, "Incorrect particle mass"
    assert charge_particle == -0.02, "Incorrect particle charge"
    assert epsilon_0 == 1.0, "Incorrect normalized permittivity"

def test_initial_condition_defaults():
    assert beam_speed == 8.0
    assert thermal_velocity == 3.5
    assert two_stream_spread == pytest.approx((500 / 5.1e5) ** 0.5)
    assert wave_mode == 2
    assert perturbation_amplitude == 0.25
    assert standing_amplitude == 0.3

def test_time_and_logging_defaults():
    assert timestep == 0.001
    assert stop_time == 20.0
    assert mode_log_max == 32
