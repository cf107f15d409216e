## standing_wave.py
# A single standing mode of displaced charges. A spectral code keeps the
# energy in the excited mode; the other modes should stay near round-off.
from jaxpif import plot
from jaxpif import simulation, diagnostics
import numpy as np
from jax import block_until_ready

input_parameters = {
    "test_case"          : "standing", # Displaced charges, single standing mode
    "wave_mode"          : 2,     # Wave periods per system length
    "standing_amplitude" : 0.3,   # Displacement amplitude
    "dt"                 : 0.005, # Timestep
    "t_max"              : 10.0,  # Stop time
    "print_info"         : True,  # Print information about the simulation
}

solver_parameters = {
    "number_grid_points" : 32,    # Spectral grid size
    "number_particles"   : 4096,  # Number of particles
}

output = block_until_ready(simulation(input_parameters, **solver_parameters))
diagnostics(output)

mode_energy = np.abs(np.asarray(output['mode_energy']))
excited = mode_energy[:, output['wave_mode'] - 1].max()
others = np.delete(mode_energy, output['wave_mode'] - 1, axis=1).max()
print(f"Peak energy in mode {output['wave_mode']}: {excited:.3e}")
print(f"Peak energy in any other mode: {others:.3e}")
print(f"Oscillation frequency / w_p:  {output['dominant_frequency'] / 2 / output['plasma_frequency']:.4f}")

plot(output)
