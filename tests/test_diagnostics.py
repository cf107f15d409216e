# tests/test_diagnostics.py

import numpy as np
import pytest
import jax.numpy as jnp

from jaxpif._diagnostics import kinetic_energy, momentum, damping_rate, diagnostics


def _make_output(test_case="landau", T=2000, dt=0.01, gamma=-0.1, omega=2.0):
    time = np.arange(T) * dt
    mode_energy = np.zeros((T, 4))
    mode_energy[:, 1] = np.exp(2 * gamma * time) * np.cos(omega * time) ** 2
    potential = 0.5 + 0.1 * np.cos(2 * omega * time)
    kinetic = 10.0 - potential + 1e-4 * np.sin(time)
    return {
        "time_array":       jnp.array(time),
        "potential_energy": jnp.array(potential),
        "kinetic_energy":   jnp.array(kinetic),
        "total_energy":     jnp.array(potential + kinetic),
        "momentum":         jnp.array(1e-6 * np.sin(3 * time)),
        "mode_energy":      jnp.array(mode_energy),
        "dt":               dt,
        "test_case":        test_case,
        "wave_mode":        2,
        "plasma_frequency": 1.0,
        "damping_fit_periods": 2,
    }


def test_kinetic_energy_and_momentum():
    v = jnp.array([1.0, -2.0, 3.0])
    assert float(kinetic_energy(v, 2.0)) == pytest.approx(14.0)
    assert float(momentum(v, 2.0)) == pytest.approx(4.0)


def test_damping_rate_recovers_envelope():
    time = np.arange(0, 20, 0.001)
    gamma = -0.1
    energy = np.exp(2 * gamma * time) * np.cos(2.0 * time) ** 2
    assert damping_rate(time, energy) == pytest.approx(gamma, abs=1e-3)


def test_damping_rate_growth_and_window():
    time = np.arange(0, 20, 0.001)
    energy = np.exp(2 * 0.05 * time) * np.cos(1.5 * time) ** 2
    assert damping_rate(time, energy, t_start=5.0, t_end=15.0) == pytest.approx(0.05, abs=1e-3)


def test_damping_rate_errors():
    time = np.linspace(0, 1, 100)
    with pytest.raises(ValueError):
        damping_rate(time, np.exp(-time))
    with pytest.raises(ValueError):
        damping_rate(time, np.exp(-time), t_start=0.0, t_end=0.01)


def test_diagnostics_adds_conservation_and_frequency():
    output = _make_output()
    diagnostics(output)

    for key in ["relative_energy_error", "max_relative_energy_error", "momentum_change",
                "max_momentum_change", "dominant_frequency", "damping_rate"]:
        assert key in output

    assert output["relative_energy_error"].shape == output["time_array"].shape
    assert float(output["max_relative_energy_error"]) < 1e-4
    assert float(output["max_momentum_change"]) < 3e-6
    # Potential energy oscillates at 2 omega
    assert float(output["dominant_frequency"]) == pytest.approx(4.0, rel=0.05)
    assert output["damping_rate"] == pytest.approx(-0.1, abs=5e-3)


def test_diagnostics_skips_damping_for_other_cases():
    output = _make_output(test_case="two_stream")
    diagnostics(output)
    assert "damping_rate" not in output


def test_diagnostics_damping_rate_nan_without_peaks():
    output = _make_output(T=50)
    output["mode_energy"] = jnp.ones((50, 4))
    diagnostics(output)
    assert np.isnan(output["damping_rate"])
