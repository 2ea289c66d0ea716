"""Distance and dip of the horizon for a few observer altitudes, in US76 and a tropical atmosphere."""
import math
import pathlib

from py_atmrefraction import Calculator, Environment, Spherical, load_atmosphere, us76_atmosphere

calc = Calculator()
tropical = load_atmosphere(str(pathlib.Path(__file__).with_name('tropical.yaml')))

for name, atmosphere in (('US76', us76_atmosphere()), ('tropical', tropical)):
    env = Environment(Spherical(), atmosphere)
    print(f"{name}:")
    for start_h in (1.0, 10.0, 100.0, 1000.0):
        geometric = calc.horizon(env, start_h, straight=True)
        refracted = calc.horizon(env, start_h)
        print(f"  {start_h:7.1f} m: {refracted.distance / 1e3:8.3f} km "
              f"(geometric {geometric.distance / 1e3:8.3f} km), "
              f"dip {math.degrees(-refracted.angle) * 60:6.2f}'")
