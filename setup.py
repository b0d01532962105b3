from setuptools import find_packages, setup

from car.main import _VERSION_

setup(
    name='car',
    description='Command line tool for creating tar and zip archives',
    version=_VERSION_,
    license='MIT',
    python_requires='>=3.9',
    install_requires=[
        'fasteners>=0.14.1',
        'pydantic>=2.0',
        'pydantic-settings>=2.3',
        'python-json-logger>=3.1',
    ],
    packages=find_packages(exclude=['tests']),
    entry_points={
        'console_scripts': ['car = car.main:main'],
    },
)
