# jaxpif/_plot.py
import warnings
from typing import Optional

import numpy as np
import matplotlib.pyplot as plt

from ._sinks import Sink

__all__ = ["plot", "LivePlot"]

# ======================================================================================
# Helpers
# ======================================================================================

_TAG_COLORS = {0: "tab:blue", 1: "tab:red"}


def _robust_abs_max(a, q: float = 99.0, eps: float = 1e-30) -> float:
    """Robust symmetric scale: percentile(|a|)."""
    an = np.asarray(a)
    return float(max(np.percentile(np.abs(an), q), eps))


def _tag_colors(tags) -> list:
    return [_TAG_COLORS.get(int(t), "tab:gray") for t in np.asarray(tags)]


# ======================================================================================
# Post-run summary
# ======================================================================================

def plot(output, show: bool = True, save_path: Optional[str] = None, number_modes: int = 4, dpi: int = 150):
    """
    Summary figure of a finished `simulation` run.

    Panels:
      1) Charge density heatmap (x vs time), color limits fixed over the whole run.
      2) Potential, kinetic and total energy vs time.
      3) Energy of the lowest `number_modes` modes on a log scale.
      4) Final phase space (x vs v), colored by particle tag.
    """
    time = np.asarray(output["time_array"])
    grid = np.asarray(output["grid"])
    omega_p = float(output["plasma_frequency"])
    scaled_time = time * omega_p

    fig, axes = plt.subplots(2, 2, figsize=(11, 7), squeeze=False)

    # ---- charge density heatmap ----
    ax = axes[0, 0]
    rho = np.asarray(output["charge_density"])
    vlim = _robust_abs_max(rho - np.mean(rho))
    im = ax.imshow(
        rho - np.mean(rho),
        aspect="auto",
        cmap="RdBu",
        origin="lower",
        extent=[grid[0], grid[-1], scaled_time[0], scaled_time[-1]],
        vmin=-vlim,
        vmax=vlim,
    )
    ax.set_title("Charge density")
    ax.set_xlabel("x")
    ax.set_ylabel(r"t $\omega_p$")
    cb = fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04)
    cb.set_label(r"$\rho - \langle\rho\rangle$")

    # ---- energies ----
    ax = axes[0, 1]
    ax.plot(scaled_time, output["potential_energy"], label="Potential")
    ax.plot(scaled_time, output["kinetic_energy"], label="Kinetic")
    ax.plot(scaled_time, output["total_energy"], "k--", label="Total")
    ax.set_title("Energy")
    ax.set_xlabel(r"t $\omega_p$")
    ax.legend(fontsize=8)

    # ---- mode energies ----
    ax = axes[1, 0]
    mode_energy = np.asarray(output["mode_energy"])
    for j in range(min(number_modes, mode_energy.shape[1])):
        energy = np.abs(mode_energy[:, j])
        if np.any(energy > 0):
            ax.semilogy(scaled_time, energy, label=f"m = {j + 1}")
        else:
            ax.plot(scaled_time, energy, label=f"m = {j + 1}")
    ax.set_title("Mode energy")
    ax.set_xlabel(r"t $\omega_p$")
    ax.legend(fontsize=8)

    # ---- final phase space ----
    ax = axes[1, 1]
    ax.scatter(np.asarray(output["positions"]), np.asarray(output["velocities"]),
               s=1, c=_tag_colors(output["tags"]))
    ax.set_xlim(0, float(output["length"]))
    ax.set_title(f"Phase space at t = {scaled_time[-1]:.2f} / ωₚ")
    ax.set_xlabel("x")
    ax.set_ylabel("v")

    fig.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, dpi=dpi)

    if show:
        plt.show()
    else:
        plt.close(fig)
    return fig


# ======================================================================================
# Live view
# ======================================================================================

class LivePlot(Sink):
    """
    Live phase space, charge density and potential while the run steps.

    The figure is redrawn every `interval` steps. Closing the window is the
    stop signal: `update` then returns False and the driver ends the run.
    """

    def __init__(self, interval: int = 10, pause: float = 1e-3):
        self.interval = interval
        self.pause = pause
        self.fig = None
        self._calls = 0

    def start(self, config):
        self.fig, (self.ax_phase, self.ax_fields) = plt.subplots(2, 1, figsize=(7, 7))
        self.ax_phase.set_xlim(0, config.length)
        self.ax_phase.set_xlabel("x")
        self.ax_phase.set_ylabel("v")
        self.ax_fields.set_xlim(0, config.length)
        self.ax_fields.set_xlabel("x")
        self.scatter = None
        self.rho_line, = self.ax_fields.plot([], [], label=r"$\rho$")
        self.phi_line, = self.ax_fields.plot([], [], label=r"$\phi$")
        self.ax_fields.legend(loc="upper right", fontsize=8)
        self.time_text = self.ax_phase.set_title("")
        self.omega_p = config.plasma_frequency
        self.dt = config.dt
        plt.ion()
        plt.show(block=False)

    def update(self, particles, grid, charge_density, potential):
        if self.fig is None or not plt.fignum_exists(self.fig.number):
            return False

        self._calls += 1
        if (self._calls - 1) % self.interval:
            return True

        x = np.asarray(particles.positions)
        v = np.asarray(particles.velocities)
        if self.scatter is None:
            self.scatter = self.ax_phase.scatter(x, v, s=1, c=_tag_colors(particles.tags))
        else:
            self.scatter.set_offsets(np.column_stack([x, v]))
        vmax = max(float(np.max(np.abs(v))), 1e-30)
        self.ax_phase.set_ylim(-1.1 * vmax, 1.1 * vmax)

        grid = np.asarray(grid)
        rho = np.asarray(charge_density)
        phi = np.asarray(potential)
        self.rho_line.set_data(grid, rho - np.mean(rho))
        self.phi_line.set_data(grid, phi)
        self.ax_fields.relim()
        self.ax_fields.autoscale_view(scalex=False)

        time = (self._calls - 1) * self.dt * self.omega_p
        self.time_text.set_text(f"t = {time:.2f} / ωₚ")

        try:
            self.fig.canvas.draw_idle()
            plt.pause(self.pause)
        except Exception as e:
            warnings.warn(f"Live plot could not be redrawn: {e}", RuntimeWarning)
            return False
        return plt.fignum_exists(self.fig.number)

    def close(self):
        plt.ioff()
