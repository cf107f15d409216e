## Landau_damping.py
# Example of electric field damping in a plasma
from jaxpif import plot
from jaxpif import simulation, diagnostics
import numpy as np
from jax import block_until_ready

input_parameters = {
    "test_case"              : "landau", # Maxwellian with a density perturbation
    "length"                 : 16.0,  # Periodic system length
    "wave_mode"              : 2,     # Wave periods per system length
    "perturbation_amplitude" : 0.25,  # Density perturbation amplitude
    "thermal_velocity"       : 3.5,   # Thermal velocity of the Maxwellian
    "dt"                     : 0.01,  # Timestep
    "t_max"                  : 10.0,  # Stop time
    "print_info"             : True,  # Print information about the simulation
}

solver_parameters = {
    "number_grid_points"  : 64,    # Spectral grid size
    "number_particles"    : 20000, # Number of particles
    "interpolation_order" : 6,     # NUFFT accuracy order
}

output = block_until_ready(simulation(input_parameters, **solver_parameters))

# Post-process: conservation errors, dominant frequency, damping rate of mode 2
diagnostics(output)

wavenumber_debye = 2 * np.pi * output['wave_mode'] / output['length'] * output['debye_length']
print(f"k * Debye length:     {wavenumber_debye:.3f}")
print(f"Dominant frequency:   {output['dominant_frequency']:.4f}")
print(f"Plasma frequency:     {output['plasma_frequency']:.4f}")
print(f"Damping rate / w_p:   {output['damping_rate'] / output['plasma_frequency']:.4f}")

plot(output)
