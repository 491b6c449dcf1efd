from setuptools import find_packages, setup

# Namespace layout: packages/flowscene/cli maps to flowscene.cli
packages = find_packages(where="../..", include=["flowscene.cli", "flowscene.cli.*"])

setup(
    packages=packages,
    package_dir={"": "../.."},
)
