"""
Honeywell Wireless Sensors Library Setup
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_path = Path(__file__).parent / 'README.md'
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding='utf-8')

setup(
    name='honeywell_sensors',
    version='1.0.0',
    author='CRK',
    author_email='',
    description='Honeywell / Ademco 345MHz wireless sensor bridge for rtl_433 over MQTT',
    long_description=long_description,
    long_description_content_type='text/markdown',
    url='',
    license='MIT',

    # Package configuration
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.8',

    # Dependencies
    install_requires=[
        'paho-mqtt>=1.6',
        'pyyaml>=6.0',
        'filelock>=3.12',
    ],

    # Optional dependencies
    extras_require={
        'dev': [
            'pytest>=7.0',
            'pytest-cov>=4.0',
            'black>=23.0',
            'mypy>=1.0',
            'types-PyYAML>=6.0',
        ],
    },

    # Entry points (optional CLI commands)
    entry_points={
        'console_scripts': [
            'honeywell-bridge=honeywell_sensors.cli:main',
        ],
    },

    # Classifiers
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Topic :: Home Automation',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],

    # Keywords
    keywords='honeywell ademco 5800 rtl_433 mqtt sensors home-automation',
)
