# setup.py
from setuptools import setup, find_packages


def parse_reqs(fname="requirements.txt"):
    with open(fname) as f:
        # strip comments and empty lines
        return [l.strip() for l in f if l.strip() and not l.startswith("#")]


setup(
    name="poyang",
    version="0.1.0",
    package_dir={"poyang": "poyang"},
    packages=find_packages(include=["poyang", "poyang.*"]),
    install_requires=parse_reqs(),
    extras_require={"test": ["pytest>=7"]},
    include_package_data=True,
    package_data={"poyang": ["resources/*.json", "resources/*.toml"]},
    python_requires=">=3.10",
    entry_points={"console_scripts": ["poyang=poyang.core.cli:cli"]},
)
