"""Run the docstring examples of every py_atmrefraction module.

Usage (run from repo root):
        - python scripts/run_doctest.py
        - python -m scripts.run_doctest

Package `__init__` modules and the command line entry point are skipped. Modules that fail to
import are reported as `IMPORT-ERROR <module> <exception>`; a final line `TOTAL <failures>
<attempted>` summarises the run, and the exit code is 1 if any example failed.
"""

import doctest
import importlib
import pathlib
import pkgutil

SKIPPED = ('__init__', '__main__')


def main() -> int:
    root = pathlib.Path(__file__).resolve().parents[1] / 'py_atmrefraction'
    names = sorted(m.name for m in pkgutil.walk_packages([str(root)], prefix='py_atmrefraction.')
                   if not m.ispkg and not m.name.endswith(SKIPPED))
    failed = attempted = 0
    for name in names:
        try:
            module = importlib.import_module(name)
        except ImportError as e:
            print('IMPORT-ERROR', name, e)
            continue
        result = doctest.testmod(module, optionflags=doctest.ELLIPSIS | doctest.NORMALIZE_WHITESPACE)
        attempted += result.attempted
        failed += result.failed
        if result.failed:
            print(f'FAIL {name}: {result.failed}/{result.attempted}')
    print('TOTAL', failed, attempted)
    return int(failed > 0)


if __name__ == '__main__':
    raise SystemExit(main())
