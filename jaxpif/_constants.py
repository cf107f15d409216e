# Normalized units: lengths in system units, eps_0 = 1.
length_default         = 16.0     # Periodic system length
number_grid_points     = 64       # Spectral grid size (power of two)
number_particles       = 10000    # Particles in the ensemble
mass_particle          = 0.005    # Particle mass
charge_particle        = -0.02    # Particle charge
epsilon_0              = 1.0      # Vacuum permittivity

beam_speed             = 8.0      # Two-stream beam speed
thermal_velocity       = 3.5      # sqrt(kT/m) of the Landau Maxwellian
two_stream_spread      = (500 / 5.1e5) ** 0.5  # Thermal spread of each beam

wave_mode              = 2        # Wave periods per system length
perturbation_amplitude = 0.25     # Landau density perturbation amplitude
standing_amplitude     = 0.3      # Standing-wave displacement amplitude

timestep               = 0.001
stop_time              = 20.0

interpolation_order    = 5        # NUFFT accuracy order
mode_log_max           = 32       # Modes written to the mode log
diagnostics_stride     = 10       # Steps between console diagnostics rows
