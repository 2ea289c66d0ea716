"""Command line interface: `pyrefr` or `python -m py_atmrefraction`.

Examples:
    $ pyrefr -H 10 -a 0.5 -o 100        # altitude 100 km away from a ray launched at 0.5 deg
    $ pyrefr -H 2 -t 0 -d 30 --output-ang  # launch angle that hits sea level 30 km away
    $ pyrefr -H 1 --output-horizon --output-horizon-dist -v
"""
import argparse
import logging
import math
import sys
from importlib import metadata
from typing import List, NamedTuple, Optional, Tuple

from py_atmrefraction import basicConfig
from py_atmrefraction.atmosphere import load_atmosphere, us76_atmosphere
from py_atmrefraction.conditions import Environment, Flat, Spherical
from py_atmrefraction.constants import cEarthRadius
from py_atmrefraction.exceptions import AtmosphereLoadingError, InvalidConfigurationError, SolverRuntimeError
from py_atmrefraction.interface import Calculator
from py_atmrefraction.logger import logger

version = metadata.metadata("py_atmrefraction")['Version']

OUTPUT_H_AT_DIST = 'h_at_dist'
OUTPUT_ANGLE = 'angle'
OUTPUT_HORIZON_ANGLE = 'horizon_angle'
OUTPUT_HORIZON_DISTANCE = 'horizon_distance'
OUTPUT_ASTRONOMICAL = 'astronomical'


class RunParams(NamedTuple):
    """Validated command line parameters (metres, degrees)."""

    env: Environment
    start_h: float
    start_angle: Optional[float]
    target: Optional[Tuple[float, float]]  # (altitude, distance)
    horizon: bool
    straight: bool
    outputs: List[Tuple[str, Optional[float]]]


def add_ray_group(parser):
    ray = parser.add_argument_group('Ray', 'Starting point and direction of the ray')
    ray.add_argument("-H", "--start-h", type=float, default=1.0, metavar="ALTITUDE",
                     help="Starting point altitude (meters) (default = 1)")
    ray.add_argument("-a", "--start-angle", type=float, metavar="ANGLE",
                     help="Starting direction, angle relative to horizontal (degrees); "
                          "conflicts with --tgt-h and --tgt-dist")
    ray.add_argument("-t", "--tgt-h", type=float, metavar="ALTITUDE",
                     help="Target point altitude (meters); conflicts with --start-angle")
    ray.add_argument("-d", "--tgt-dist", type=float, metavar="DISTANCE",
                     help="Target point distance (kilometers); conflicts with --start-angle")
    ray.add_argument("-s", "--straight", action="store_true", help="Calculation for a straight-line ray")


def add_environment_group(parser):
    environment = parser.add_argument_group('Environment', 'Planet and atmosphere')
    environment.add_argument("-R", "--radius", type=float, metavar="RADIUS",
                             help="Earth's radius in km (default: 6378) (conflicts with --flat)")
    environment.add_argument("-f", "--flat", action="store_true",
                             help="Simulate a flat Earth (conflicts with --radius)")
    environment.add_argument("--atmosphere", metavar="FILE",
                             help="Atmosphere definition file (.yaml, .yml or .toml)")


def add_output_group(parser):
    output = parser.add_argument_group('Output')
    output.add_argument("-o", "--output-dist", type=float, metavar="DISTANCE",
                        help="Distance at which to output altitude (kilometers)")
    output.add_argument("--output-ang", action="store_true", help="Output the starting angle of the ray")
    output.add_argument("--output-horizon", action="store_true", help="Output the angle to the horizon")
    output.add_argument("--output-horizon-dist", action="store_true", help="Output the distance to the horizon")
    output.add_argument("--output-astronomical", action="store_true",
                        help="Output the angle of deflection of rays from celestial objects")


def get_arg_parser():
    parser = argparse.ArgumentParser(
        prog='pyrefr',
        description="Calculates paths of light in Earth's atmosphere"
    )
    add_ray_group(parser)
    add_environment_group(parser)
    add_output_group(parser)
    parser.add_argument("-e", "--engine", help="Integration engine entry point (rk4_engine, scipy_engine)")
    parser.add_argument("-c", "--config", metavar="FILE", help="Configuration file (.pyrefr.toml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Be verbose")
    parser.add_argument("--debug", action="store_true", help="Enable debug messages")
    parser.add_argument("--version", action='version', version=f'pyrefr v{version}', help="Show version")
    return parser


def _build_shape(args):
    if args.flat and args.radius is not None:
        raise InvalidConfigurationError("Conflicting Earth shape options chosen (--flat, --radius)")
    if args.flat:
        return Flat()
    try:
        return Spherical(cEarthRadius if args.radius is None else args.radius * 1e3)
    except ValueError as e:
        raise InvalidConfigurationError(str(e)) from e


def build_params(args) -> RunParams:
    """Validate parsed arguments.

    Raises:
        InvalidConfigurationError: If the ray direction is missing or options conflict.
        AtmosphereLoadingError: If the atmosphere file can't be loaded.
    """
    horizon = args.output_horizon or args.output_horizon_dist
    target: Optional[Tuple[float, float]] = None
    if not horizon:
        given = (args.start_angle is not None, args.tgt_h is not None, args.tgt_dist is not None)
        if given == (False, False, False):
            raise InvalidConfigurationError("No ray direction chosen (--start-angle or --tgt-h with --tgt-dist)")
        if given == (False, True, True):
            target = (args.tgt_h, args.tgt_dist * 1e3)
        elif given != (True, False, False):
            raise InvalidConfigurationError("Conflicting options detected (--start-angle, --tgt-h, --tgt-dist)")

    shape = _build_shape(args)
    atmosphere = load_atmosphere(args.atmosphere) if args.atmosphere else us76_atmosphere()

    outputs: List[Tuple[str, Optional[float]]] = []
    if horizon:
        # horizon outputs replace every other output
        if args.output_horizon:
            outputs.append((OUTPUT_HORIZON_ANGLE, None))
        if args.output_horizon_dist:
            outputs.append((OUTPUT_HORIZON_DISTANCE, None))
    else:
        if args.output_dist is not None:
            outputs.append((OUTPUT_H_AT_DIST, args.output_dist * 1e3))
        if args.output_ang:
            outputs.append((OUTPUT_ANGLE, None))
        if args.output_astronomical:
            outputs.append((OUTPUT_ASTRONOMICAL, None))

    return RunParams(Environment(shape, atmosphere), args.start_h, args.start_angle, target,
                     horizon, args.straight, outputs)


def describe(params: RunParams) -> List[str]:
    radius = params.env.radius
    lines = ["Ray parameters chosen:",
             f"Earth: spherical with radius {radius / 1e3} km" if radius is not None else "Earth: flat",
             f"Starting altitude: {params.start_h} m ASL"]
    if params.straight:
        lines.append("Straight-line calculation chosen.")
    lines.append("")
    return lines


def run(calc, params: RunParams, verbose: bool = False) -> List[str]:
    """Compute the requested outputs, one printable line each."""
    lines = describe(params) if verbose else []

    if params.horizon:
        horizon = calc.horizon(params.env, params.start_h, params.straight)
        for output, _ in params.outputs:
            if output == OUTPUT_HORIZON_ANGLE:
                value = math.degrees(horizon.angle)
                lines.append(f"Angle to the horizon: {value} degrees" if verbose else f"{value}")
            else:
                value = horizon.distance / 1e3
                lines.append(f"Distance to the horizon: {value} km" if verbose else f"{value}")
        return lines

    if params.target is not None:
        target_h, target_dist = params.target
        path = calc.cast_ray_target(params.env, params.start_h, target_h, target_dist, params.straight)
    else:
        assert params.start_angle is not None
        path = calc.cast_ray(params.env, params.start_h, math.radians(params.start_angle), params.straight)

    for output, dist in params.outputs:
        if output == OUTPUT_H_AT_DIST:
            assert dist is not None
            value = path.h_at_dist(dist)
            lines.append(f"Altitude at distance {dist / 1e3} km: {value}" if verbose else f"{value}")
        elif output == OUTPUT_ANGLE:
            value = math.degrees(path.angle_at_dist(0.0))
            lines.append(f"Starting angle: {value} degrees" if verbose else f"{value}")
        elif output == OUTPUT_ASTRONOMICAL:
            value = math.degrees(calc.astronomical_refraction(params.env, params.start_h,
                                                              path.angle_at_dist(0.0), params.straight))
            lines.append(f"Astronomical refraction: {value} degrees" if verbose else f"{value}")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    parser = get_arg_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logger.setLevel(logging.DEBUG)
        logger.info("Debug messages enabled")

    try:
        if args.config:
            try:
                basicConfig(args.config)
            except (OSError, ValueError) as exc:
                raise InvalidConfigurationError(f"Couldn't load config {args.config}: {exc}") from exc
        params = build_params(args)
        try:
            calc = Calculator(engine=args.engine) if args.engine else Calculator()
        except (TypeError, ValueError) as exc:
            raise InvalidConfigurationError(str(exc)) from exc
        for line in run(calc, params, args.verbose):
            print(line)
    except InvalidConfigurationError as exc:
        logger.error(exc)
        return 2
    except (AtmosphereLoadingError, SolverRuntimeError) as exc:
        logger.error(exc)
        return 1
    except ValueError as exc:
        # out-of-range launch angle or non-positive target distance
        logger.error(exc)
        return 2
    return 0


if __name__ == '__main__':
    sys.exit(main())
