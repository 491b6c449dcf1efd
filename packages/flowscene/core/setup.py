from setuptools import find_packages, setup

# Namespace layout: packages/flowscene/core maps to flowscene.core
packages = find_packages(where="../..", include=["flowscene.core", "flowscene.core.*"])

setup(
    packages=packages,
    package_dir={"": "../.."},
)
