"""Main command line interface to JAX-PIF."""
import sys
import argparse

from ._plot import LivePlot
from ._diagnostics import diagnostics
from ._simulation import simulation, run, load_parameters, initialize_simulation_parameters, make_config
from ._sinks import ConsoleDiagnostics, ModeLog, open_log, write_parameter_log, records_from_output

TEST_CASE_CHOICES = ("2stream", "landau", "standing")


def _time_pair(text):
    """Parse `DT,TMAX` into two positive floats."""
    try:
        dt, t_max = (float(value) for value in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected DT,TMAX, got {text!r}")
    if dt <= 0 or t_max <= 0:
        raise argparse.ArgumentTypeError(f"timestep and stop time must be positive, got {text!r}")
    return dt, t_max


def build_parser():
    parser = argparse.ArgumentParser(
        prog="jaxpif",
        description="One-dimensional electrostatic Particle-in-Fourier plasma simulation.")
    parser.add_argument("input_file", nargs="?", default=None,
                        help="TOML file with [input_parameters] and [solver_parameters] tables")
    parser.add_argument("-c", "--case", choices=TEST_CASE_CHOICES,
                        help="initial condition: two-stream, Landau damping or standing wave")
    parser.add_argument("-t", "--time", type=_time_pair, metavar="DT,TMAX",
                        help="timestep and stop time")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="headless run, no live plot")
    parser.add_argument("-p", "--parameter-log", metavar="FILE",
                        help="write the run parameters to FILE")
    parser.add_argument("-m", "--mode-log", metavar="FILE",
                        help="write per-mode electrostatic energy to FILE every step")
    return parser


def main(cl_args=sys.argv[1:]):
    """Run the main JAX-PIF code from the command line.

    Reads and parses user input from the command line and an optional TOML
    file, writes the parameter log, then either runs the scanned simulation
    and replays its records into the console and mode log (quiet), or steps
    the simulation with a live plot until the window is closed or the stop
    time is reached.

    """
    parser = build_parser()
    args = parser.parse_args(cl_args)

    if args.input_file is None:
        print("Using standard input parameters instead of an input TOML file.")
        input_parameters, solver_parameters = {}, {}
    else:
        try:
            input_parameters, solver_parameters = load_parameters(args.input_file)
        except OSError as e:
            parser.error(f"cannot read {args.input_file}: {e}")

    if args.case is not None:
        input_parameters["test_case"] = args.case
    if args.time is not None:
        input_parameters["dt"], input_parameters["t_max"] = args.time

    try:
        parameters = initialize_simulation_parameters({**input_parameters, **solver_parameters})
        config = make_config(parameters)
    except ValueError as e:
        parser.error(str(e))

    parameter_log = open_log(args.parameter_log)
    if parameter_log is not None:
        with parameter_log:
            write_parameter_log(parameter_log, parameters)

    sinks = [ConsoleDiagnostics(stride=config.diagnostics_stride),
             ModeLog(open_log(args.mode_log), config.mode_log_max)]

    if args.quiet:
        output = simulation(input_parameters, **solver_parameters)
        try:
            for sink in sinks:
                sink.start(config)
            for record in records_from_output(output):
                for sink in sinks:
                    sink.record(record)
        finally:
            for sink in sinks:
                sink.close()
        diagnostics(output)
        print(f"Maximum relative energy error: {float(output['max_relative_energy_error']):e}")
    else:
        run(input_parameters, sinks=sinks + [LivePlot()], **solver_parameters)


if __name__ == "__main__":
    main(sys.argv[1:])
