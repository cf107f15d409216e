import math
from functools import partial
from typing import NamedTuple, Optional

import numpy as np
import jax.numpy as jnp
from jax import lax, jit
from jax_tqdm import scan_tqdm

from . import _constants as defaults
from ._transforms import FinufftTransform
from ._filters import shape_function, build_shape_filter
from ._particles import Particles, make_particles
from ._distributions import initialize_particles, TEST_CASES
from ._algorithms import bootstrap, leapfrog_step
from ._sinks import StepRecord

try: import tomllib
except ModuleNotFoundError: import tomli as tomllib

__all__ = ["SimulationConfig", "initialize_simulation_parameters", "load_parameters", "make_config",
           "number_of_steps", "simulation", "run"]

_TEST_CASE_ALIASES = {"2stream": "two_stream", "two-stream": "two_stream", "standing_wave": "standing"}


class SimulationConfig(NamedTuple):
    """
    Immutable run configuration shared by every component.

    Hashable, so jitted functions take it as a static argument: shapes
    (particle count, grid size) and constants are fixed at compile time.
    """
    test_case: str
    length: float
    number_grid_points: int
    number_particles: int
    mass: float
    charge: float
    epsilon_0: float
    dt: float
    t_max: float
    total_steps: int
    dx: float
    plasma_frequency: float
    debye_length: float
    beam_speed: float
    thermal_velocity: float
    two_stream_spread: float
    wave_mode: int
    perturbation_amplitude: float
    standing_amplitude: float
    interpolation_order: int
    mode_log_max: int
    diagnostics_stride: int
    shape: str
    shape_width: Optional[float]
    seed: int


def number_of_steps(dt, t_max):
    """Number of steps n = 0, 1, ... with n * dt < t_max."""
    if dt <= 0:
        raise ValueError(f"Timestep must be positive, got {dt}")
    n = max(int(t_max / dt) - 1, 0)
    while n * dt < t_max:
        n += 1
    return n


def _plasma_frequency(p):
    density = p["number_particles"] / p["length"]
    return math.sqrt(density * p["charge"]**2 / (p["mass"] * p["epsilon_0"]))


def _debye_length(p):
    speed = p["beam_speed"] if _canonical_test_case(p["test_case"]) == "two_stream" else p["thermal_velocity"]
    kt = p["mass"] * speed**2
    density = p["number_particles"] / p["length"]
    return math.sqrt(p["epsilon_0"] * kt / (density * p["charge"]**2))


def _canonical_test_case(name):
    return _TEST_CASE_ALIASES.get(name, name)


def load_parameters(input_file):
    """
    Load parameters from a TOML file.

    Parameters:
    ----------
    input_file : str
        Path to a TOML file with an [input_parameters] table and an
        optional [solver_parameters] table.

    Returns:
    -------
    input_parameters, solver_parameters : dict, dict
    """
    with open(input_file, "rb") as f:
        parameters = tomllib.load(f)
    input_parameters = parameters.get('input_parameters', {})
    solver_parameters = parameters.get('solver_parameters', {})
    return input_parameters, solver_parameters


def initialize_simulation_parameters(user_parameters={}):
    """
    Initialize the simulation parameters, combining user-provided values with
    predefined defaults.

    Derived parameters are lambda functions of the merged dictionary; they are
    evaluated after the merge so that they stay consistent with any override.
    Base values that would make a derived parameter meaningless (non-positive
    length, mass, permittivity, timestep, ...) raise ValueError here, before
    any particle state exists.

    Parameters:
    ----------
    user_parameters : dict
        User-specified parameters. Any parameter not provided takes its default.

    Returns:
    -------
    parameters : dict
        All simulation parameters, user values overriding defaults.
    """
    default_parameters = {
        # Test case and time
        "test_case":              None,                         # "two_stream", "landau" or "standing"
        "dt":                     defaults.timestep,            # Timestep
        "t_max":                  defaults.stop_time,           # Simulated time limit
        "seed":                   1701,                         # Random seed for reproducibility
        "print_info":             True,                         # Print information about the simulation

        # Domain and species
        "length":                 defaults.length_default,      # Periodic system length
        "number_grid_points":     defaults.number_grid_points,  # Spectral grid size G (power of two)
        "number_particles":       defaults.number_particles,    # Number of particles N
        "mass":                   defaults.mass_particle,       # Particle mass
        "charge":                 defaults.charge_particle,     # Particle charge
        "epsilon_0":              defaults.epsilon_0,           # Vacuum permittivity

        # Initial distributions
        "beam_speed":             defaults.beam_speed,          # Two-stream beam speed
        "two_stream_spread":      defaults.two_stream_spread,   # Thermal spread of each beam
        "thermal_velocity":       defaults.thermal_velocity,    # Landau thermal velocity
        "wave_mode":              defaults.wave_mode,           # Wave periods per system length
        "perturbation_amplitude": defaults.perturbation_amplitude, # Landau density perturbation
        "standing_amplitude":     defaults.standing_amplitude,  # Standing-wave displacement

        # Spectral method
        "interpolation_order":    defaults.interpolation_order, # NUFFT accuracy order
        "shape":                  "delta",                      # Particle shape: delta, gaussian, triangle
        "shape_width":            None,                         # Gaussian sigma or triangle half-width

        # Output
        "diagnostics_stride":     defaults.diagnostics_stride,  # Steps between console rows
        "damping_fit_periods":    4,                            # Plasma periods used for the damping fit

        # Derived parameters
        "mode_log_max":     lambda p: min(defaults.mode_log_max, p["number_grid_points"] // 2 - 1),
        "dx":               lambda p: p["length"] / p["number_grid_points"],
        "plasma_frequency": _plasma_frequency,
        "debye_length":     _debye_length,
        "total_steps":      lambda p: number_of_steps(p["dt"], p["t_max"]),
    }

    parameters = {**default_parameters, **user_parameters}
    parameters["test_case"] = _canonical_test_case(parameters["test_case"])

    for key in ("length", "mass", "epsilon_0", "dt", "t_max", "number_particles", "number_grid_points"):
        if not parameters[key] > 0:
            raise ValueError(f"Parameter '{key}' must be positive, got {parameters[key]}")

    # Compute derived parameters based on user-provided or default values
    for key, value in parameters.items():
        if callable(value):
            parameters[key] = value(parameters)

    return parameters


def make_config(parameters):
    """
    Validate a parameter dictionary and freeze it into a SimulationConfig.

    Raises:
        ValueError: On a missing or unknown test case, a grid size that is not
            a power of two, or out-of-range solver settings.
    """
    p = parameters
    test_case = _canonical_test_case(p["test_case"])
    if test_case is None:
        raise ValueError("No test case selected")
    if test_case not in TEST_CASES:
        raise ValueError(f"Unknown test case {test_case!r}, expected one of {tuple(TEST_CASES)}")

    G = int(p["number_grid_points"])
    if G < 4 or G & (G - 1):
        raise ValueError(f"number_grid_points must be a power of two >= 4, got {G}")
    if not 1 <= p["mode_log_max"] <= G // 2 - 1:
        raise ValueError(f"mode_log_max must be between 1 and {G // 2 - 1}, got {p['mode_log_max']}")
    if not 1 <= p["interpolation_order"] <= 14:
        raise ValueError(f"interpolation_order must be between 1 and 14, got {p['interpolation_order']}")
    if p["diagnostics_stride"] < 1:
        raise ValueError(f"diagnostics_stride must be at least 1, got {p['diagnostics_stride']}")
    shape_function(p["shape"], p["shape_width"], p["dx"])

    return SimulationConfig(
        test_case=test_case,
        length=float(p["length"]),
        number_grid_points=G,
        number_particles=int(p["number_particles"]),
        mass=float(p["mass"]),
        charge=float(p["charge"]),
        epsilon_0=float(p["epsilon_0"]),
        dt=float(p["dt"]),
        t_max=float(p["t_max"]),
        total_steps=int(p["total_steps"]),
        dx=float(p["dx"]),
        plasma_frequency=float(p["plasma_frequency"]),
        debye_length=float(p["debye_length"]),
        beam_speed=float(p["beam_speed"]),
        thermal_velocity=float(p["thermal_velocity"]),
        two_stream_spread=float(p["two_stream_spread"]),
        wave_mode=int(p["wave_mode"]),
        perturbation_amplitude=float(p["perturbation_amplitude"]),
        standing_amplitude=float(p["standing_amplitude"]),
        interpolation_order=int(p["interpolation_order"]),
        mode_log_max=int(p["mode_log_max"]),
        diagnostics_stride=int(p["diagnostics_stride"]),
        shape=str(p["shape"]),
        shape_width=None if p["shape_width"] is None else float(p["shape_width"]),
        seed=int(p["seed"]),
    )


def _print_info(config):
    debye = config.debye_length
    wavenumber = 2 * math.pi * config.wave_mode / config.length
    print(
        f"Test case: {config.test_case}\n"
        f"Length of the simulation box: {config.length / debye} Debye lengths\n"
        f"Debye length: {debye}\n"
        f"Plasma frequency: {config.plasma_frequency}\n"
        f"Wavenumber * Debye length (mode {config.wave_mode}): {wavenumber * debye}\n"
        f"Particles per Debye length: {config.number_particles / config.length * debye}\n"
        f"Resolved modes: {config.number_grid_points // 2 - 1}\n"
        f"Steps at each plasma frequency: {1 / (config.plasma_frequency * config.dt)}\n"
        f"Total time: {config.plasma_frequency * config.t_max} / plasma frequency\n"
        f"Number of steps: {config.total_steps}"
    )


def _prepare(input_parameters, solver_parameters, positions, velocities, transform):
    solver_parameters = {key: value for key, value in solver_parameters.items() if value is not None}
    parameters = initialize_simulation_parameters({**input_parameters, **solver_parameters})
    config = make_config(parameters)

    if transform is None:
        transform = FinufftTransform(config.number_grid_points, config.length, config.interpolation_order)
    shape = shape_function(config.shape, config.shape_width, config.dx)
    shape_filter = build_shape_filter(config.length, config.number_grid_points, shape, transform)

    particles = initialize_particles(config)
    if positions is not None or velocities is not None:
        positions = particles.positions if positions is None else positions
        velocities = particles.velocities if velocities is None else velocities
        expected = (config.number_particles,)
        if jnp.shape(positions) != expected:
            raise ValueError(f"Expected positions shape {expected}, got {jnp.shape(positions)}")
        if jnp.shape(velocities) != expected:
            raise ValueError(f"Expected velocities shape {expected}, got {jnp.shape(velocities)}")
        particles = make_particles(positions, velocities, particles.tags)

    if parameters["print_info"]:
        _print_info(config)
    return parameters, config, transform, shape_filter, particles


@partial(jit, static_argnames=('config', 'transform'))
def _integrate(positions, velocities, shape_filter, config, transform):
    velocities = bootstrap(positions, velocities, shape_filter, config, transform)

    @scan_tqdm(config.total_steps)
    def simulation_step(carry, step_index):
        return leapfrog_step(carry, step_index, shape_filter, config, transform)

    return lax.scan(simulation_step, (positions, velocities), jnp.arange(config.total_steps))


def simulation(input_parameters={}, number_grid_points=None, number_particles=None, interpolation_order=None,
               positions=None, velocities=None, transform=None, **solver_parameters):
    """
    Run a one-dimensional electrostatic Particle-in-Fourier simulation in JAX.

    Charge is deposited straight into Fourier modes with a nonuniform FFT,
    fields are solved exactly per mode, and particles are advanced with a
    leapfrog scheme until n * dt reaches t_max. The whole time loop is a
    single jitted `lax.scan`; energies, momentum, mode energies and the
    real-space density and potential are recorded at every step.

    Parameters:
    ----------
    input_parameters : dict
        Physical and run parameters (see initialize_simulation_parameters);
        must select a test case.
    number_grid_points, number_particles, interpolation_order : int
        Solver parameters; the defaults of initialize_simulation_parameters if None.
    positions, velocities : array, optional
        Initial state overriding the test case initializer, shape (N,).
    transform : optional
        Spectral transform adapter; a FinufftTransform if None.
    **solver_parameters
        Other solver parameters (mode_log_max, diagnostics_stride).

    Returns:
    -------
    output : dict
        Time histories, final particle state and all simulation parameters.
    """
    solver_parameters = {"number_grid_points": number_grid_points, "number_particles": number_particles,
                         "interpolation_order": interpolation_order, **solver_parameters}
    parameters, config, transform, shape_filter, particles = _prepare(
        input_parameters, solver_parameters, positions, velocities, transform)

    (final_positions, final_velocities), results = _integrate(
        particles.positions, particles.velocities, shape_filter, config, transform)

    time_array, potential_energy, kinetic_energy, momentum, mode_energy, charge_density, potential = results

    temporary_output = {
        "positions":          final_positions,
        "velocities":         final_velocities,
        "tags":               particles.tags,
        "initial_positions":  particles.positions,
        "initial_velocities": particles.velocities,
        "time_array":         time_array,
        "potential_energy":   potential_energy,
        "kinetic_energy":     kinetic_energy,
        "total_energy":       potential_energy + kinetic_energy,
        "momentum":           momentum,
        "mode_energy":        mode_energy,
        "charge_density":     charge_density,
        "electric_potential": potential,
        "grid":               jnp.arange(config.number_grid_points) * config.dx,
        "shape_filter":       shape_filter,
    }

    return {**temporary_output, **parameters, "test_case": config.test_case}


def run(input_parameters={}, sinks=(), number_grid_points=None, number_particles=None, interpolation_order=None,
        positions=None, velocities=None, transform=None, **solver_parameters):
    """
    Step the simulation one jitted step at a time, feeding sinks as it goes.

    Every sink receives each StepRecord in order and the state after every
    step; the run stops when n * dt reaches t_max or as soon as any sink's
    `update` returns False (e.g. the plot window was closed). Sinks are
    closed on exit.

    Returns:
    -------
    output : dict
        Final particle state, number of completed steps and all parameters.
    """
    solver_parameters = {"number_grid_points": number_grid_points, "number_particles": number_particles,
                         "interpolation_order": interpolation_order, **solver_parameters}
    parameters, config, transform, shape_filter, particles = _prepare(
        input_parameters, solver_parameters, positions, velocities, transform)

    grid = jnp.arange(config.number_grid_points) * config.dx
    carry = (particles.positions,
             bootstrap(particles.positions, particles.velocities, shape_filter, config, transform))

    n = 0
    keep_running = True
    try:
        for sink in sinks:
            sink.start(config)
        while keep_running and n < config.total_steps:
            carry, step_data = leapfrog_step(carry, n, shape_filter, config, transform)
            time, potential, kinetic, momentum, mode_energy, charge_density, potential_x = step_data

            record = StepRecord(n, float(time), float(potential), float(kinetic),
                                float(potential + kinetic), float(momentum), np.asarray(mode_energy))
            for sink in sinks:
                sink.record(record)

            state = Particles(carry[0], carry[1], particles.tags)
            keep_running = all([sink.update(state, grid, charge_density, potential_x) for sink in sinks])
            n += 1
    finally:
        for sink in sinks:
            sink.close()

    return {"positions": carry[0], "velocities": carry[1], "tags": particles.tags,
            "steps_completed": n, **parameters, "test_case": config.test_case}
