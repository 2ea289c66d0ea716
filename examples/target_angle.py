"""Launch angle needed to see a point at sea level, with and without refraction."""
import math

from py_atmrefraction import Calculator, Environment, Spherical, us76_atmosphere

calc = Calculator(engine='rk4_engine')
env = Environment(Spherical(), us76_atmosphere())

for target_km in (5.0, 10.0, 20.0, 40.0):
    straight = calc.cast_ray_target(env, 100.0, 0.0, target_km * 1e3, straight=True)
    refracted = calc.cast_ray_target(env, 100.0, 0.0, target_km * 1e3)
    print(f"{target_km:5.1f} km: {math.degrees(refracted.launch_angle):+.5f} deg "
          f"(straight {math.degrees(straight.launch_angle):+.5f} deg, "
          f"{calc.trajectory_count} rays traced so far)")
