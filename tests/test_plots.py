# tests/test_plots.py
import numpy as np
import pytest
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from jaxpif._plot import plot, LivePlot
from jaxpif._particles import make_particles
from jaxpif._simulation import initialize_simulation_parameters, make_config


def _synthetic_output(T=20, G=16, N=50, L=16.0):
    rng = np.random.default_rng(0)
    time = np.arange(T) * 0.01
    grid = np.arange(G) * L / G
    potential = 0.1 * np.cos(3 * time) ** 2
    kinetic = 5.0 - potential
    return {
        "time_array":       time,
        "grid":             grid,
        "charge_density":   np.sin(2 * np.pi * grid / L)[None, :] * np.cos(time)[:, None],
        "potential_energy": potential,
        "kinetic_energy":   kinetic,
        "total_energy":     potential + kinetic,
        "mode_energy":      np.column_stack([np.exp(-time), np.zeros(T), 1e-3 * np.ones(T)]),
        "positions":        rng.uniform(0, L, N),
        "velocities":       rng.normal(size=N),
        "tags":             np.arange(N) % 2,
        "plasma_frequency": 7.0,
        "length":           L,
    }


def test_plot_returns_figure_without_showing():
    fig = plot(_synthetic_output(), show=False)
    assert len(fig.axes) >= 4
    assert not plt.fignum_exists(fig.number)


def test_plot_saves_figure(tmp_path):
    path = tmp_path / "summary.png"
    plot(_synthetic_output(), show=False, save_path=str(path), dpi=50)
    assert path.exists()


def test_plot_shows(monkeypatch):
    shown = []
    monkeypatch.setattr(plt, "show", lambda *args, **kwargs: shown.append(True))
    plot(_synthetic_output(), show=True)
    assert shown == [True]
    plt.close("all")


def _config():
    return make_config(initialize_simulation_parameters({"test_case": "two_stream", "number_grid_points": 16}))


def test_live_plot_updates_until_window_closed(monkeypatch):
    monkeypatch.setattr(plt, "show", lambda *args, **kwargs: None)
    monkeypatch.setattr(plt, "pause", lambda interval: None)
    config = _config()
    sink = LivePlot(interval=2)
    sink.start(config)

    particles = make_particles(np.linspace(0, config.length, 10, endpoint=False), np.linspace(-1, 1, 10),
                               np.arange(10) % 2)
    grid = np.arange(16) * config.dx
    rho = np.sin(2 * np.pi * grid / config.length)

    assert sink.update(particles, grid, rho, 0.5 * rho) is True
    assert sink.update(particles, grid, rho, 0.5 * rho) is True
    assert sink.scatter is not None

    plt.close(sink.fig)
    assert sink.update(particles, grid, rho, 0.5 * rho) is False
    sink.close()


def test_live_plot_without_start_stops():
    sink = LivePlot()
    assert sink.update(None, None, None, None) is False
