# tests/test_fields.py
import pytest
import numpy as np

import jax.numpy as jnp

from jaxpif._fields import (
    wavenumbers,
    deposit,
    solve_fields,
    mode_energies,
    hermitian_spectrum,
    interpolate_field,
    real_space,
)
from jaxpif._filters import build_shape_filter
from jaxpif._transforms import FinufftTransform
from jaxpif._simulation import initialize_simulation_parameters, make_config


# -----------------------------
# small helpers
# -----------------------------
def _config(**overrides):
    parameters = {"test_case": "landau", "number_grid_points": 16, "number_particles": 64,
                  "length": 4.0, "print_info": False, **overrides}
    return make_config(initialize_simulation_parameters(parameters))


def _setup(order=10, **overrides):
    config = _config(**overrides)
    transform = FinufftTransform(config.number_grid_points, config.length, order)
    shape_filter = build_shape_filter(config.length, config.number_grid_points, transform=transform)
    return config, transform, shape_filter


def _single_mode(config, mode, value):
    return jnp.zeros(config.number_grid_points // 2, dtype=jnp.complex128).at[mode].set(value)


# -----------------------------
# deposit
# -----------------------------
def test_deposit_is_neutral():
    config, transform, shape_filter = _setup()
    positions = jnp.array(np.random.default_rng(0).uniform(0, config.length, 64))

    rhok = deposit(positions, shape_filter, config, transform)

    assert rhok.shape == (config.number_grid_points // 2,)
    assert rhok[0] == 0


def test_deposit_of_uniform_lattice_vanishes():
    config, transform, shape_filter = _setup()
    positions = jnp.arange(config.number_particles) * config.length / config.number_particles

    rhok = deposit(positions, shape_filter, config, transform)

    np.testing.assert_allclose(np.asarray(rhok), 0.0, atol=1e-10)


def test_deposit_single_particle_density():
    config, transform, shape_filter = _setup(number_particles=1)
    x0 = 1.3
    rhok = deposit(jnp.array([x0]), shape_filter, config, transform)

    k = np.asarray(wavenumbers(config))
    expected = config.charge / config.length * np.exp(-1j * k * x0)
    expected[0] = 0.0
    np.testing.assert_allclose(np.asarray(rhok), expected, atol=1e-10)


# -----------------------------
# field solve
# -----------------------------
def test_solve_fields_single_mode():
    config, _, shape_filter = _setup()
    mode = 3
    k = 2 * np.pi * mode / config.length
    rhok = _single_mode(config, mode, 0.2 - 0.1j)

    phik, ek, potential = solve_fields(rhok, shape_filter, config)

    # Delta filter: S * dx == 1
    assert complex(phik[mode]) == pytest.approx((0.2 - 0.1j) / (config.epsilon_0 * k**2), rel=1e-12)
    assert complex(ek[mode]) == pytest.approx(-1j * k * complex(phik[mode]), rel=1e-12)
    assert float(potential) == pytest.approx(config.length * (0.2**2 + 0.1**2) / k**2, rel=1e-12)
    assert phik[0] == 0 and ek[0] == 0


def test_potential_energy_is_non_negative():
    config, transform, shape_filter = _setup()
    positions = jnp.array(np.random.default_rng(1).uniform(0, config.length, 64))
    rhok = deposit(positions, shape_filter, config, transform)
    _, _, potential = solve_fields(rhok, shape_filter, config)
    assert float(potential) >= 0.0


def test_mode_energies_sum_to_potential_energy():
    config, transform, shape_filter = _setup()
    positions = jnp.array(np.random.default_rng(2).uniform(0, config.length, 64))
    rhok = deposit(positions, shape_filter, config, transform)
    phik, _, potential = solve_fields(rhok, shape_filter, config)

    energies = mode_energies(phik, rhok, config.number_grid_points // 2 - 1)

    assert energies.shape == (config.number_grid_points // 2 - 1,)
    assert float(config.length * jnp.sum(energies)) == pytest.approx(float(potential), rel=1e-12)
    assert mode_energies(phik, rhok, 3).shape == (3,)


# -----------------------------
# interpolation
# -----------------------------
def test_hermitian_spectrum_symmetry():
    config = _config()
    G = config.number_grid_points
    ek = jnp.array(np.random.default_rng(3).normal(size=G // 2) + 1j * np.random.default_rng(4).normal(size=G // 2))

    spectrum = hermitian_spectrum(ek)
    standard = np.fft.ifftshift(np.asarray(spectrum))

    assert spectrum.shape == (G,)
    assert standard[0] == 0
    for j in range(1, G // 2):
        assert standard[G - j] == pytest.approx(np.conj(standard[j]))
        assert standard[j] == pytest.approx(complex(ek[j]))


def test_interpolate_single_mode_is_real_cosine():
    config, transform, _ = _setup(order=12)
    mode, amplitude = 2, 0.3 + 0.4j
    k = 2 * np.pi * mode / config.length
    ek = _single_mode(config, mode, amplitude)
    positions = jnp.linspace(0.0, config.length, 11, endpoint=False)

    field = interpolate_field(ek, positions, transform)

    expected = 2 * np.real(amplitude * np.exp(1j * k * np.asarray(positions)))
    assert field.dtype == jnp.float64
    np.testing.assert_allclose(np.asarray(field), expected, atol=1e-10)


def test_field_is_periodic():
    config, transform, _ = _setup(order=12)
    ek = _single_mode(config, 1, 1.0 - 0.5j) + _single_mode(config, 5, 0.2j)
    x = jnp.array([0.7, 2.1])
    np.testing.assert_allclose(np.asarray(interpolate_field(ek, x, transform)),
                               np.asarray(interpolate_field(ek, x - config.length, transform)),
                               atol=1e-9)


def test_field_points_towards_negative_charge_bunch():
    # Particles bunched near x0 with q < 0
    config, transform, shape_filter = _setup(order=10, number_particles=200)
    rng = np.random.default_rng(5)
    x0 = 2.0
    positions = jnp.array(np.mod(x0 + 0.05 * rng.normal(size=200), config.length))
    rhok = deposit(positions, shape_filter, config, transform)
    _, ek, _ = solve_fields(rhok, shape_filter, config)

    field = interpolate_field(ek, jnp.array([x0 - 0.5, x0 + 0.5]), transform)

    assert float(field[0]) > 0
    assert float(field[1]) < 0


# -----------------------------
# real space samples
# -----------------------------
def test_real_space_of_single_mode():
    config, transform, _ = _setup()
    G = config.number_grid_points
    mode, value = 3, 0.5 - 0.25j
    coefficients = _single_mode(config, mode, value)

    samples = real_space(coefficients, transform)

    x = np.arange(G) * config.length / G
    expected = 2 * np.real(value * np.exp(1j * 2 * np.pi * mode * x / config.length))
    assert samples.shape == (G,)
    np.testing.assert_allclose(np.asarray(samples), expected, atol=1e-12)
