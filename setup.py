"""
Setup script for BasisFES package.
"""

from setuptools import setup, find_packages
import os

# Read the README file for long description
readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
if os.path.exists(readme_path):
    with open(readme_path, 'r', encoding='utf-8') as f:
        long_description = f.read()
else:
    long_description = "BasisFES: adaptive basis-function biasing for enhanced sampling"

# Read requirements
requirements = [
    'numpy>=1.24.0',
    'scipy>=1.10.0',
    'matplotlib>=3.6.0',
]

# Development requirements
dev_requirements = [
    'pytest>=6.0.0',
]

setup(
    name='basisfes',
    version='0.1.0',
    description='Adaptive basis-function biasing for enhanced-sampling molecular simulation',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='BasisFES Development Team',
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    python_requires='>=3.10',
    install_requires=requirements,
    extras_require={
        'dev': dev_requirements,
        'test': dev_requirements,
        'mpi': ['mpi4py>=3.1'],
        'all': requirements + dev_requirements,
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Scientific/Engineering :: Chemistry',
        'Topic :: Scientific/Engineering :: Physics',
    ],
    keywords='molecular dynamics, enhanced sampling, free energy, basis functions, legendre polynomials',
    entry_points={
        'console_scripts': [
            'basisfes=basisfes.cli:main',
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
