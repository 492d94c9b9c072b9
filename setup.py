from setuptools import find_packages, setup

# Get long description
with open("README.md", "r") as fh:
    __long_description__ = fh.read()

# Get requirements from requirements.txt, ignoring editable/local refs
with open('requirements.txt') as f:
    required = [line.strip() for line in f if line.strip() and not line.startswith('-e')]

setup(
    name='pyAssoc',
    version='0.1.0',
    description=(
        'Associability-modulated (Pearce-Hall) reinforcement learning model '
        'with likelihood and simulation paths for fitting behavioral data'
    ),
    long_description=__long_description__,
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.9',
    install_requires=required,
    extras_require={'test': ['pytest']},
)
