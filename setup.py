from pathlib import Path
from setuptools import setup, find_packages


def read_requirements(filename):
    with open(filename) as f:
        return [req for req in (req.partition('#')[0].strip() for req in f) if req]


setup(
    name='geotypes',
    description='PostGIS spatial column types: parsing, DDL and EWKB defaults.',
    long_description=Path('README.rst').read_text(),
    version='0.1.0',
    license='MIT',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.9',
    install_requires=read_requirements('requirements.in'),
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'geotypes = geotypes.cli.main:app',
        ]
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: POSIX',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Database',
        'Topic :: Scientific/Engineering :: GIS',
    ],
)
