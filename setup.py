# setup.py
from setuptools import setup, find_packages

with open('requirements.txt') as f:
    requirements = [line for line in f.read().splitlines() if line and not line.startswith('#')]

setup(
    name='slip_service',
    version='1.0.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    author='Jules',
    author_email='',
    description='Booking code slip extraction service for the tips marketplace.',
    long_description='This package contains the FastAPI server, the bookmaker page fetcher and the slip extraction engine.',
    install_requires=requirements,
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
            'respx',
        ],
    },
    entry_points={
        'console_scripts': [
            'slip-service=slip_service.run_api:main',
        ],
    },
    include_package_data=True,
    package_data={
        'slip_service': ['*.py'],
    },
)
