import sys
from typing import NamedTuple

import numpy as np

__all__ = ['StepRecord', 'Sink', 'ConsoleDiagnostics', 'ModeLog',
           'open_log', 'write_parameter_log', 'records_from_output']


class StepRecord(NamedTuple):
    """Diagnostics of one synchronized step, appended in step order."""
    step: int
    time: float
    potential: float
    kinetic: float
    total: float
    momentum: float
    mode_energy: np.ndarray


class Sink:
    """
    No-op consumer of a running simulation.

    The driver calls every method unconditionally; subclasses override the
    ones they care about. `update` returning False is the external stop signal.
    """

    def start(self, config):
        pass

    def record(self, record):
        pass

    def update(self, particles, grid, charge_density, potential):
        return True

    def close(self):
        pass


class ConsoleDiagnostics(Sink):
    """CSV stream `time,potential,kinetic,total,momentum` every `stride` steps."""

    def __init__(self, stream=None, stride=10):
        self.stream = sys.stdout if stream is None else stream
        self.stride = stride

    def start(self, config):
        self.stream.write("time,potential,kinetic,total,momentum\n")

    def record(self, record):
        if record.step % self.stride == 0:
            self.stream.write(f"{record.time:f},{record.potential:f},{record.kinetic:f},"
                              f"{record.total:f},{record.momentum:f}\n")


class ModeLog(Sink):
    """
    Per-mode electrostatic energy, one row per step: `time,m1,...,mM`.

    A ModeLog without a stream is silent, so a log that could not be opened
    simply does not appear.
    """

    def __init__(self, stream, number_modes):
        self.stream = stream
        self.number_modes = number_modes

    def start(self, config):
        if self.stream is None:
            return
        header = ",".join(f"m{j}" for j in range(1, self.number_modes + 1))
        self.stream.write(f"time,{header}\n")

    def record(self, record):
        if self.stream is None:
            return
        values = "".join(f",{energy:e}" for energy in np.asarray(record.mode_energy))
        self.stream.write(f"{record.time:f}{values}\n")

    def close(self):
        if self.stream is not None:
            self.stream.close()


def open_log(path, mode="w"):
    """Open a log file for writing, or return None if it cannot be opened."""
    if path is None:
        return None
    try:
        return open(path, mode)
    except OSError:
        return None


def write_parameter_log(stream, parameters):
    """
    Human-readable dump of the run parameters, written once at startup.

    The Debye length uses kT = m v_beam^2 for the two-stream case and
    kT = m v_th^2 otherwise.
    """
    if stream is None:
        return
    p = parameters
    stream.write(f" particles: {p['number_particles']}\n")
    stream.write(f"  timestep: {p['dt']:e}\n")
    stream.write(f"    length: {p['length']:e}\n")
    stream.write(f"    v_beam: {p['beam_speed']:e}\n")
    stream.write(f"      mass: {p['mass']:e}\n")
    stream.write(f"    charge: {p['charge']:e}\n")
    stream.write(f"     eps_0: {p['epsilon_0']:e}\n")
    stream.write("\n")
    stream.write(f"    lambda: {float(p['debye_length']):e}\n")
    stream.write(f" frequency: {float(p['plasma_frequency']):e}\n")


def records_from_output(output):
    """Yield the StepRecords of a finished `simulation` output, in step order."""
    time = np.asarray(output["time_array"])
    potential = np.asarray(output["potential_energy"])
    kinetic = np.asarray(output["kinetic_energy"])
    total = np.asarray(output["total_energy"])
    momentum = np.asarray(output["momentum"])
    mode_energy = np.asarray(output["mode_energy"])
    for n in range(time.shape[0]):
        yield StepRecord(n, float(time[n]), float(potential[n]), float(kinetic[n]),
                         float(total[n]), float(momentum[n]), mode_energy[n])
