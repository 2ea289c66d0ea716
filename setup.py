# #!/usr/bin/env python

"""setup.py script for py_atmrefraction library"""

from setuptools import setup, find_packages

setup(
    name='py_atmrefraction',
    version='1.0.0',
    description='Ray tracing of light through a refracting atmosphere',
    packages=find_packages(include=['py_atmrefraction', 'py_atmrefraction.*']),
    python_requires='>=3.8',
    install_requires=[
        'typing_extensions>=4.12.2',
        "tomli>=2.0.1; python_version<'3.11'",
        'PyYAML>=6.0',
    ],
    extras_require={
        'scipy': ['scipy>=1.10', 'numpy>=1.24'],
        'test': ['pytest>=8.0', 'scipy>=1.10', 'numpy>=1.24'],
    },
    entry_points={
        'py_atmrefraction': [
            'rk4_engine=py_atmrefraction.engines:RK4IntegrationEngine',
            'scipy_engine=py_atmrefraction.engines:SciPyIntegrationEngine',
        ],
        'console_scripts': [
            'pyrefr=py_atmrefraction.__main__:main',
        ],
    },
)
