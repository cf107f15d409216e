# Example script to run the two-stream instability and plot the results
import os
import time
from jax import block_until_ready
from jaxpif import plot, simulation, load_parameters, diagnostics

# Read from input.toml (assuming it's in the same directory as this script)
input_file = 'input.toml'
current_directory = os.path.dirname(os.path.abspath(__file__))
input_toml_path = os.path.join(current_directory, input_file)

input_parameters, solver_parameters = load_parameters(input_toml_path)

n_simulations = 1 # >1 to check that first simulation takes longer due to JIT compilation

# Run the simulation
for i in range(n_simulations):
    if i>0: input_parameters["print_info"] = False
    start = time.time()
    output = block_until_ready(simulation(input_parameters, **solver_parameters))
    print(f"Run #{i+1}: Wall clock time: {time.time()-start}s")

# Post-process: energy and momentum conservation, dominant frequency
diagnostics(output)
print(f"Maximum relative energy error: {output['max_relative_energy_error']:.2e}")
print(f"Maximum momentum change:       {output['max_momentum_change']:.2e}")

# Plot the results
plot(output)
# Save the figure instead of showing it
# plot(output, save_path="two_stream.png", show=False)
